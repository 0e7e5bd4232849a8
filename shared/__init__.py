"""
Shared utilities for the access-layer MFA service.

This package aggregates common building blocks consumed by the service:

- config: Service configuration via pydantic-settings
- logging: Structured logging with trace correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- base_service: FastAPI service scaffolding (health, metrics, error handlers)

Cross-service logic should live here to avoid import cycles. Do not import
from service_* packages into shared/.
"""
