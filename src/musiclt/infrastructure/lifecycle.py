"""Application lifecycle management for startup and shutdown tasks."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path

from fastapi import FastAPI
from sqlalchemy.engine import make_url

from musiclt.config import Settings
from musiclt.domain.exceptions import ConfigurationError
from musiclt.infrastructure.integrations import TranslationClient
from musiclt.infrastructure.observability import configure_logging
from musiclt.infrastructure.persistence import Database

logger = logging.getLogger(__name__)


# Hey future me, SQLite won't create missing parent directories and the resulting
# "unable to open database file" is useless. Create them up front; in-memory URLs and
# PostgreSQL return early.
def _ensure_sqlite_directory(settings: Settings) -> None:
    """Create the parent directory of a file-based SQLite database."""
    url = make_url(settings.database.url)
    if not url.drivername.startswith("sqlite"):
        return
    if not url.database or url.database == ":memory:":
        return

    parent = Path(url.database).parent
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to create SQLite database directory '{parent}': {exc}"
        ) from exc


# Listen future me, everything before `yield` runs at startup, after it at shutdown. Settings
# are read from app.state (set by create_app) so tests can inject their own. The translation
# client is ALWAYS created; without an API key it raises ConfigurationError per request
# (503) instead of blocking startup.
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles logging configuration, database initialization, the translation client
    and resource cleanup.
    """
    settings: Settings = app.state.settings

    configure_logging(
        log_level=settings.logging.level,
        json_format=settings.logging.json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting application: %s", settings.app_name)

    _ensure_sqlite_directory(settings)

    db = Database(settings)
    translation_client = TranslationClient(settings.translation)
    try:
        await db.create_tables()
        app.state.db = db
        logger.info("Database initialized: %s", make_url(settings.database.url).drivername)

        app.state.translation_client = translation_client
        if not settings.translation.api_key:
            logger.warning("Translation API key not configured, /translate will return 503")

        app.state.startup_time = datetime.now(UTC)
        yield
    finally:
        logger.info("Shutting down application")
        await translation_client.close()
        await db.close()
        logger.info("Database connection closed")
