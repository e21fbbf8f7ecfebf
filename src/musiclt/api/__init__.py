"""API module.

Structure:
- routers/: endpoints (artists, albums, tracks, translate, health), aggregated into
  `api_router` and mounted under settings.api_prefix in main.py
- dependencies.py: dependency injection (database, services, auth)
- exception_handlers.py: global error handlers
"""

from musiclt.api.routers import api_router

__all__ = ["api_router"]
