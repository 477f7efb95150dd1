"""
Backend API service package.

This package serves the authenticated JSON API consumed by the web
frontend:

- app.main: Application entrypoint that wires routes and lifecycle.
- app.auth: Identity verification against Firebase Authentication and the
  startup credential chain.
- app.domain: Request authentication middleware.
- app.resources: Cache-aside handlers for per-user resources and the
  administrative cache operations.
- app.cache: Redis-backed cache client with a degraded no-op mode.

Guidelines:
- Module import must not perform network calls; Redis and Firebase are
  initialized from the service lifespan.
- The cache is an accelerator. Every endpoint must answer correctly with
  Redis unreachable.
"""
