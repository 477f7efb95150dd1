"""
Shared utilities for the backend API.

This package holds the building blocks the service is assembled from:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- retry: Backoff policy for reconnect loops
- base_service: FastAPI application skeleton

Do not import from service packages into shared/.
"""
