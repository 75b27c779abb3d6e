"""
Shared configuration management for the AURIA access layer.
"""

import json
from typing import Annotated, Any, List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local", validation_alias=AliasChoices("ACCESS_ENV", "env"))
    log_level: str = Field(default="info", validation_alias=AliasChoices("ACCESS_LOG_LEVEL", "log_level"))

    # HTTP surface
    api_prefix: str = Field(default="/api", validation_alias=AliasChoices("ACCESS_API_PREFIX", "api_prefix"))
    cors_origins: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["*"],
        validation_alias=AliasChoices("ACCESS_CORS_ORIGINS", "cors_origins"),
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, value: Any) -> Any:
        """Accept a JSON array or a comma-separated list of origins."""
        if not isinstance(value, str):
            return value
        value = value.strip()
        if value.startswith("["):
            return json.loads(value)
        return [origin.strip() for origin in value.split(",") if origin.strip()]

    # Security
    gateway_token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GATEWAY_TOKEN", "gateway_token"),
    )

    # Data store (Supabase / PostgREST)
    supabase_url: str = Field(
        default="",
        validation_alias=AliasChoices("SUPABASE_URL", "VITE_SUPABASE_URL", "supabase_url"),
    )
    supabase_service_key: str = Field(
        default="",
        validation_alias=AliasChoices(
            "SUPABASE_SERVICE_ROLE_KEY",
            "VITE_SUPABASE_ANON_KEY",
            "supabase_service_key",
        ),
    )
    data_store_timeout: float = Field(
        default=10.0,
        validation_alias=AliasChoices("ACCESS_DATA_STORE_TIMEOUT", "data_store_timeout"),
    )

    # Notion pass-through
    enable_notion_proxy: bool = Field(
        default=True,
        validation_alias=AliasChoices("ACCESS_ENABLE_NOTION_PROXY", "enable_notion_proxy"),
    )
    notion_api_url: str = Field(
        default="https://api.notion.com",
        validation_alias=AliasChoices("ACCESS_NOTION_API_URL", "notion_api_url"),
    )
    notion_version: str = Field(
        default="2022-06-28",
        validation_alias=AliasChoices("ACCESS_NOTION_VERSION", "notion_version"),
    )


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int = Field(default=3001, validation_alias=AliasChoices("PORT", "port"))
    host: str = Field(default="0.0.0.0", validation_alias=AliasChoices("HOST", "host"))


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service.

    Keyword overrides take precedence over the environment and ``.env``.
    """
    return ServiceConfig(service_name=service_name, **overrides)
