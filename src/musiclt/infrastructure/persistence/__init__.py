"""Infrastructure persistence layer."""

from .database import Database
from .memory_store import InMemoryArtistSession, InMemoryArtistStore
from .models import (
    AlbumModel,
    AlbumTrackModel,
    ArtistLinkModel,
    ArtistModel,
    Base,
    NewsModel,
    NewsSongModel,
    NewsTypeModel,
    TrackArtistModel,
    TrackModel,
)
from .repositories import (
    AlbumRepository,
    NewsRepository,
    NewsTypeRepository,
    SqlAlchemyArtistStore,
    TrackRepository,
    artist_store_scope,
)
from .retry import (
    DatabaseLockMetrics,
    execute_with_retry,
    is_lock_error,
    is_retryable_error,
)

__all__ = [
    "AlbumModel",
    "AlbumRepository",
    "AlbumTrackModel",
    "ArtistLinkModel",
    "ArtistModel",
    "Base",
    "Database",
    "DatabaseLockMetrics",
    "InMemoryArtistSession",
    "InMemoryArtistStore",
    "NewsModel",
    "NewsRepository",
    "NewsSongModel",
    "NewsTypeModel",
    "NewsTypeRepository",
    "SqlAlchemyArtistStore",
    "TrackArtistModel",
    "TrackModel",
    "TrackRepository",
    "artist_store_scope",
    "execute_with_retry",
    "is_lock_error",
    "is_retryable_error",
]
