"""
API Gateway service for AURIA Mission Control.

Request path, outermost first: CORS, request logger, rate limiter, auth
gate, then the resource routers, the monitoring endpoint or the Notion
proxy. Rate limiting and auth apply only under the API prefix.
"""

from typing import Optional

import httpx

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.metrics import MetricsCollector

from .adapters.supabase_client import SupabaseClient
from .domain.auth_middleware import AuthMiddleware
from .domain.request_logger import RequestLoggerMiddleware
from .ratelimit.sliding_window import RateLimitMiddleware, SlidingWindowRateLimiter
from .resources import RESOURCES, build_resource_router
from .resources.catalog import PROBE_TABLE
from .routes import build_monitoring_router, build_notion_proxy_router


class GatewayService(BaseService):
    """API Gateway service implementation."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        metrics: Optional[MetricsCollector] = None,
        data_store: Optional[SupabaseClient] = None,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        notion_client: Optional[httpx.AsyncClient] = None,
    ):
        self._data_store_override = data_store
        self._rate_limiter_override = rate_limiter
        self._notion_client_override = notion_client
        super().__init__("gateway", config=config, metrics=metrics)

        # Expose service instance via app state for introspection/testing
        self.app.state.gateway_service = self

    def _setup_components(self) -> None:
        self.data_store = self._data_store_override or SupabaseClient.from_config(self.config)
        self.rate_limiter = self._rate_limiter_override or SlidingWindowRateLimiter()
        self.notion_client = None
        if self.config.enable_notion_proxy:
            self.notion_client = self._notion_client_override or httpx.AsyncClient(
                base_url=self.config.notion_api_url.rstrip("/"),
                timeout=30.0,
            )

    def _setup_service_middleware(self) -> None:
        prefix = self.config.api_prefix

        # Added innermost first
        self.app.add_middleware(
            AuthMiddleware,
            gateway_token=self.config.gateway_token,
            path_prefix=prefix,
            public_paths=[self.health_path],
        )
        self.app.add_middleware(
            RateLimitMiddleware,
            rate_limiter=self.rate_limiter,
            path_prefix=prefix,
        )
        self.app.add_middleware(RequestLoggerMiddleware, metrics=self.metrics)

    def _setup_service_routes(self) -> None:
        prefix = self.config.api_prefix.rstrip("/")

        for schema in RESOURCES:
            self.app.include_router(build_resource_router(schema, self.data_store, prefix=f"{prefix}/mc"))

        self.app.include_router(
            build_monitoring_router(self.metrics, self.data_store, PROBE_TABLE, prefix=prefix)
        )

        if self.notion_client is not None:
            self.app.include_router(
                build_notion_proxy_router(
                    self.notion_client,
                    self.config.notion_version,
                    prefix=f"{prefix}/proxy/notion",
                )
            )

    async def on_startup(self) -> None:
        await self.rate_limiter.start()

    async def on_shutdown(self) -> None:
        await self.rate_limiter.stop()
        await self.data_store.close()
        if self.notion_client is not None:
            await self.notion_client.aclose()


def create_app(config: Optional[ServiceConfig] = None, **components):
    """Create FastAPI application."""
    service = GatewayService(config, **components)
    return service.app


def main():
    service = GatewayService()
    service.logger.info("Server starting", host=service.config.host, port=service.config.port)
    service.run()


if __name__ == "__main__":
    main()
