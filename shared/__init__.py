"""
Shared utilities for the AURIA Mission Control access layer.

This package aggregates common building blocks consumed by the gateway:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: In-process request metrics with Prometheus export
- errors: Canonical error types and responses
- base_service: FastAPI application scaffolding (CORS, liveness, handlers)

Any cross-service logic should live here to avoid import cycles across
service packages. Do not import from service_* packages into shared/.
"""
