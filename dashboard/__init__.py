"""
Dashboard Package.

This package provides external visibility into the pipeline.

Modules:
- api: REST API endpoints (FastAPI)
"""

from .api import app, get_service


__all__ = ["app", "get_service"]
