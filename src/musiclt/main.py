"""FastAPI application factory.

Run with:
    uvicorn musiclt.main:create_app --factory --reload
"""

from fastapi import FastAPI

from musiclt import __version__
from musiclt.api.exception_handlers import register_exception_handlers
from musiclt.api.routers import api_router
from musiclt.config import Settings, get_settings
from musiclt.infrastructure.lifecycle import lifespan
from musiclt.infrastructure.observability import RequestLoggingMiddleware


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment if omitted

    Returns:
        Configured FastAPI app (database and clients start in the lifespan)
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="music.lt catalog API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.api_prefix)

    return app

