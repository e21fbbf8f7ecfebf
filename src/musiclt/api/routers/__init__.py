"""API router initialization."""

# Hey future me, this is the aggregate router mounted under settings.api_prefix ("/api") in
# main.py. Each router carries its own prefix, so endpoints come out as /api/artists,
# /api/albums, /api/health/db-metrics and so on.

from fastapi import APIRouter

from musiclt.api.routers import (
    albums,
    artists,
    health,
    news,
    news_types,
    tracks,
    translate,
)

api_router = APIRouter()

api_router.include_router(artists.router)
api_router.include_router(albums.router)
api_router.include_router(tracks.router)
api_router.include_router(news.router)
api_router.include_router(news_types.router)
api_router.include_router(translate.router)
api_router.include_router(health.router)

__all__ = ["api_router"]
