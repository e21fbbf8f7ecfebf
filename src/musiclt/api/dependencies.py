"""Dependency injection for API endpoints."""

import logging
from collections.abc import AsyncGenerator
from typing import cast

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from musiclt.application.services import ArtistService, CatalogService, NewsService
from musiclt.config import Settings
from musiclt.domain.exceptions import AuthenticationError, AuthorizationError
from musiclt.domain.ports import ITranslationClient
from musiclt.infrastructure.persistence.database import Database
from musiclt.infrastructure.persistence.repositories import (
    AlbumRepository,
    NewsRepository,
    NewsTypeRepository,
    SqlAlchemyArtistStore,
    TrackRepository,
    artist_store_scope,
)

logger = logging.getLogger(__name__)


# Hey future me, settings come from app.state and NOT from get_settings() directly, so
# create_app(Settings(...)) in tests gets its own config without touching env vars.
def get_app_settings(request: Request) -> Settings:
    """Get settings the app was created with."""
    return cast(Settings, request.app.state.settings)


def get_database(request: Request) -> Database:
    """Get Database from app state.

    Raises:
        HTTPException: 503 if the database is not initialized yet
    """
    if not hasattr(request.app.state, "db"):
        raise HTTPException(status_code=503, detail="Database not initialized")
    return cast(Database, request.app.state.db)


# Use session_scope() rather than a raw session so the connection is always returned, and
# whatever a route staged but didn't commit is committed (or rolled back on error) here.
async def get_db_session(
    db: Database = Depends(get_database),
) -> AsyncGenerator[AsyncSession, None]:
    """Get a request-scoped database session."""
    async with db.session_scope() as session:
        yield session


# Listen up, ArtistService does NOT take the request session. It opens its own unit of work
# per attempt through artist_store_scope(), because a version conflict must restart with a
# brand-new transaction and a fresh snapshot.
def get_artist_service(
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_app_settings),
) -> ArtistService:
    """Get artist service instance."""
    return ArtistService(
        artist_store_scope(db),
        max_attempts=settings.relations.max_attempts,
        retry_delay=settings.database.lock_retry_base_delay,
    )


def get_catalog_service(
    session: AsyncSession = Depends(get_db_session),
) -> CatalogService:
    """Get album/track catalog service bound to the request session."""
    return CatalogService(
        SqlAlchemyArtistStore(session),
        AlbumRepository(session),
        TrackRepository(session),
    )


def get_news_service(
    session: AsyncSession = Depends(get_db_session),
) -> NewsService:
    """Get news service instance bound to the request session."""
    return NewsService(
        NewsRepository(session),
        NewsTypeRepository(session),
        SqlAlchemyArtistStore(session),
        AlbumRepository(session),
        TrackRepository(session),
    )


def get_translation_client(request: Request) -> ITranslationClient:
    """Get the shared translation client.

    Raises:
        HTTPException: 503 if the client is not initialized yet
    """
    if not hasattr(request.app.state, "translation_client"):
        raise HTTPException(status_code=503, detail="Translation client not initialized")
    return cast(ITranslationClient, request.app.state.translation_client)


def parse_bearer_token(authorization: str) -> str:
    """Parse Authorization header to extract the token.

    Handles both "Bearer {token}" and raw token formats, prefix is case-insensitive.
    """
    if authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return authorization.strip()


# Hey future me - tokens are a static map in settings (MUSICLT_AUTH__API_TOKENS), token -> role.
# No sessions, no expiry; the admin UI sits behind its own login and forwards a service token.
async def get_current_role(
    authorization: str | None = Header(None),
    settings: Settings = Depends(get_app_settings),
) -> str:
    """Resolve the caller's role from the Authorization header.

    Raises:
        AuthenticationError: If the header is missing or the token is unknown
    """
    if not authorization or not authorization.strip():
        raise AuthenticationError("Missing Authorization header")

    token = parse_bearer_token(authorization)
    role = settings.auth.api_tokens.get(token)
    if role is None:
        raise AuthenticationError("Invalid API token")
    return role


async def require_admin(
    role: str = Depends(get_current_role),
    settings: Settings = Depends(get_app_settings),
) -> str:
    """Require a role allowed to modify the catalog.

    Raises:
        AuthorizationError: If the role may not write
    """
    if role not in settings.auth.write_roles:
        logger.info("Write denied for role %s", role)
        raise AuthorizationError(f"Role '{role}' may not modify the catalog")
    return role
