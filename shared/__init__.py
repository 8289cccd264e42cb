"""
Shared utilities for the parcel tracking scraper.

This package is intentionally small and focused. It currently provides:

- `shared.config` for environment-based configuration
- `shared.logging` for structlog-based structured logging

Both the API service and the scrape pipeline should treat `shared/` as
read-only infrastructure code and avoid introducing service-specific
coupling here.
"""
