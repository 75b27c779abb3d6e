"""
Base service class for AURIA access layer services.
"""

import math
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.config import ServiceConfig, get_config
from shared.errors import AccessLayerException, error_response
from shared.logging import configure_logging, get_logger
from shared.metrics import MetricsCollector, get_metrics_collector


class BaseService:
    """Base service class with common functionality.

    Subclasses hook in through ``_setup_components`` (build collaborators),
    ``_setup_service_middleware`` (middleware that must sit inside CORS),
    ``_setup_service_routes`` and the ``on_startup``/``on_shutdown`` lifecycle.
    """

    def __init__(
        self,
        service_name: str,
        config: Optional[ServiceConfig] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.service_name = service_name
        self.config = config or get_config(service_name)

        # Configure logging
        configure_logging(service_name, self.config.log_level)
        self.logger = get_logger(service_name)
        self.metrics = metrics or get_metrics_collector(service_name)
        self._start_time = time.time()

        # Create FastAPI app
        self.app = self._create_app()

        self._setup_components()
        self._setup_middleware()
        self._setup_routes()
        self._setup_service_routes()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""
        return FastAPI(
            title=f"{self.service_name.title()} Service",
            description=f"AURIA Mission Control - {self.service_name.title()} Service",
            version="1.0.0",
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url="/redoc" if self.config.env == "local" else None,
            lifespan=self._lifespan,
        )

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        await self.on_startup()
        self.logger.info("Service started", service=self.service_name)
        try:
            yield
        finally:
            await self.on_shutdown()
            self.logger.info("Service stopped", service=self.service_name)

    async def on_startup(self) -> None:
        """Start background work. Override in subclasses."""

    async def on_shutdown(self) -> None:
        """Release resources. Override in subclasses."""

    def _setup_components(self) -> None:
        """Build service collaborators. Override in subclasses."""

    def _setup_service_middleware(self) -> None:
        """Add service middleware. Override in subclasses."""

    def _setup_service_routes(self) -> None:
        """Add service routes. Override in subclasses."""

    def _setup_middleware(self):
        """Set up middleware.

        Starlette wraps the most recently added middleware outermost, so
        service middleware goes in first and CORS last.
        """
        self._setup_service_middleware()

        # CORS middleware
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=self.config.cors_origins,
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
        )

    @property
    def health_path(self) -> str:
        return f"{self.config.api_prefix}/health"

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get(self.health_path)
        async def health_check():
            """Liveness endpoint."""
            return {
                "status": "ok",
                "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
                "uptime": self._get_uptime(),
            }

        @self.app.get("/metrics", include_in_schema=False)
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            from prometheus_client import CONTENT_TYPE_LATEST
            return Response(
                content=self.metrics.export(),
                media_type=CONTENT_TYPE_LATEST
            )

        # Error handlers
        @self.app.exception_handler(AccessLayerException)
        async def access_layer_exception_handler(request: Request, exc: AccessLayerException):
            """Handle AccessLayerException."""
            log = self.logger.error if exc.status_code >= 500 else self.logger.info
            log(
                "Access layer error",
                error_type=type(exc).__name__,
                message=exc.message,
                status_code=exc.status_code,
                path=request.url.path,
            )
            return error_response(exc)

        @self.app.exception_handler(StarletteHTTPException)
        async def http_exception_handler(request: Request, exc: StarletteHTTPException):
            """Render framework HTTP errors with the canonical body."""
            return JSONResponse(
                status_code=exc.status_code,
                content={"error": str(exc.detail)},
                headers=getattr(exc, "headers", None),
            )

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Handle general exceptions."""
            self.logger.error("Unhandled exception", error=str(exc), exc_info=True)
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error"}
            )

    def _get_uptime(self) -> int:
        """Get service uptime in whole seconds."""
        return math.floor(time.time() - self._start_time)

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )
