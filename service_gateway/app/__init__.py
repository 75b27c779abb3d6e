"""
API Gateway Service package for AURIA Mission Control.

The gateway sits between the dashboard and Supabase, enforcing:
- Authentication: one shared bearer token on every API path but liveness
- Rate limiting: a per-client request budget per window
- Observability: per-request timing fed into the monitoring snapshot

Structure:
- app.main: GatewayService, middleware wiring and bootstrap.
- app.adapters: Supabase (PostgREST) data store client.
- app.domain: auth gate and request logger middleware.
- app.ratelimit: windowed limiter and its middleware.
- app.resources: collection schemas and the generic CRUD router.
- app.routes: monitoring endpoint and Notion pass-through.
"""
