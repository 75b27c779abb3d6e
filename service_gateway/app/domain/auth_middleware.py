"""
Authentication middleware for Gateway.

Single static bearer token shared between the dashboard and the gateway.
There is no per-user identity, expiry or scope.
"""

import hmac
from typing import Iterable, Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from shared.errors import (
    AccessLayerException,
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    error_response,
)
from shared.logging import get_logger

BEARER_PREFIX = "Bearer "


def extract_token(auth_header: str) -> str:
    """Strip a leading ``Bearer `` from the header value.

    Headers without the prefix are taken whole.
    """
    if auth_header.startswith(BEARER_PREFIX):
        return auth_header[len(BEARER_PREFIX):]
    return auth_header


class AuthMiddleware(BaseHTTPMiddleware):
    """Reject unauthenticated API access, except for public paths."""

    def __init__(
        self,
        app,
        gateway_token: Optional[str],
        path_prefix: str = "/api",
        public_paths: Iterable[str] = (),
    ):
        super().__init__(app)
        self.gateway_token = gateway_token
        self.path_prefix = path_prefix.rstrip("/")
        self.public_paths = frozenset(public_paths)
        self.logger = get_logger("gateway.auth_middleware")

    def _applies_to(self, path: str) -> bool:
        return path == self.path_prefix or path.startswith(self.path_prefix + "/")

    def authenticate_request(self, request: Request) -> None:
        """Validate the request credential. Raises on failure."""
        if request.url.path in self.public_paths:
            return

        auth_header = request.headers.get("Authorization")
        if not auth_header:
            raise AuthenticationError("Missing Authorization header")

        token = extract_token(auth_header)

        if not self.gateway_token:
            self.logger.error("GATEWAY_TOKEN not set in environment")
            raise ConfigurationError("Server misconfigured")

        if not hmac.compare_digest(token.encode("utf-8"), self.gateway_token.encode("utf-8")):
            self.logger.warning("Invalid gateway token", path=request.url.path)
            raise AuthorizationError("Invalid token")

    async def dispatch(self, request: Request, call_next):
        if self._applies_to(request.url.path):
            try:
                self.authenticate_request(request)
            except AccessLayerException as exc:
                return error_response(exc)

        return await call_next(request)
