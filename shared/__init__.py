"""
Shared utilities for the Supplier Portal Access Layer.

This package aggregates common building blocks consumed by the services:

- config: Service configuration via pydantic-settings
- logging: Structured logging with request correlation
- metrics: Prometheus metrics helpers
- errors: Canonical error types and responses
- tracing: OpenTelemetry spans for requests and ERP calls
- base_service: FastAPI app factory with health, metrics and error handlers

Any cross-service logic should live here to avoid import cycles across
service packages. Do not import from service packages into shared/.
"""
