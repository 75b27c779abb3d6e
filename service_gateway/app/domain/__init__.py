"""
Domain utilities for the Gateway Service.

Cross-cutting middleware that does not belong to adapters or routes.
"""

from .auth_middleware import AuthMiddleware
from .request_logger import RequestLoggerMiddleware

__all__ = [
    "AuthMiddleware",
    "RequestLoggerMiddleware",
]
