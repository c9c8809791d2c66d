"""
Infrastructure layer - Adapters for external systems.

This layer contains:
- In-memory stubs of every application port
- Production adapters (system clock)
- Observability (structlog configuration, correlation IDs)
- Monitoring (Prometheus counters)

IMPORT RULES:
- CAN import from: application (ports), domain, config
- CANNOT import from: bootstrap
"""
