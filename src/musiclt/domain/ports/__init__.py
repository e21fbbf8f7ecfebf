"""Domain ports (interfaces) for dependency inversion."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Sequence
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass

from musiclt.domain.entities import Album, Artist, News, NewsSong, NewsType, Track
from musiclt.domain.value_objects import AlbumId, ArtistId, NewsId, TrackId


# Hey future me, IArtistStore is THE persistence port for the relation synchronizer. It is
# deliberately snapshot-shaped (load a set of artists, save a set of artists) instead of
# row-by-row CRUD, because reconciliation reads several rows and writes several rows as ONE
# logical change. Implementations must make save_all() + delete() inside one scope atomic and
# must raise ConcurrentModificationError when a saved artist's version is stale.
class IArtistStore(ABC):
    """Persistence port for Artist entities and their relation lists."""

    @abstractmethod
    async def load_all(self) -> list[Artist]:
        """Load every artist, ordered by name."""
        pass

    @abstractmethod
    async def load_many(self, artist_ids: Iterable[str]) -> list[Artist]:
        """Load the artists with the given ids; unknown ids are ignored."""
        pass

    @abstractmethod
    async def get(self, artist_id: ArtistId) -> Artist | None:
        """Load a single artist."""
        pass

    @abstractmethod
    async def find_by_slug(self, slug: str) -> Artist | None:
        """Load the first artist (by name) carrying the slug."""
        pass

    @abstractmethod
    async def find_referencing(self, artist_id: str) -> list[Artist]:
        """Load artists whose relation lists reference artist_id."""
        pass

    @abstractmethod
    async def save_all(self, artists: Sequence[Artist]) -> None:
        """Insert or update the given artists.

        Raises:
            ConcurrentModificationError: If an artist's version is stale
        """
        pass

    @abstractmethod
    async def delete(
        self, artist_id: ArtistId, expected_version: int | None = None
    ) -> None:
        """Delete an artist row.

        With expected_version the delete only happens if the row still carries that
        version, so a writer that linked to the artist after it was read is detected.

        Raises:
            EntityNotFoundException: If the artist does not exist and no version was given
            ConcurrentModificationError: If the row is gone or saved since expected_version
        """
        pass

    @abstractmethod
    async def list_page(
        self, limit: int = 50, offset: int = 0, search: str = ""
    ) -> list[Artist]:
        """List artists ordered by name, optionally filtered by name substring."""
        pass

    @abstractmethod
    async def count(self, search: str = "") -> int:
        """Count artists, optionally filtered by name substring."""
        pass


# A factory that opens one unit of work. Everything done through the yielded store is
# committed when the context exits cleanly and rolled back when it raises.
ArtistStoreScope = Callable[[], AbstractAsyncContextManager[IArtistStore]]


class IAlbumRepository(ABC):
    """Repository interface for Album entities."""

    @abstractmethod
    async def add(self, album: Album) -> None:
        """Add a new album."""
        pass

    @abstractmethod
    async def update(self, album: Album) -> None:
        """Update an existing album."""
        pass

    @abstractmethod
    async def delete(self, album_id: AlbumId) -> None:
        """Delete an album."""
        pass

    @abstractmethod
    async def get_by_id(self, album_id: AlbumId) -> Album | None:
        """Get an album by ID."""
        pass

    @abstractmethod
    async def list_page(
        self,
        artist_id: ArtistId | None = None,
        limit: int = 50,
        offset: int = 0,
        search: str = "",
    ) -> list[Album]:
        """List albums, newest first."""
        pass

    @abstractmethod
    async def count(self, artist_id: ArtistId | None = None, search: str = "") -> int:
        """Count albums matching the filters."""
        pass


class ITrackRepository(ABC):
    """Repository interface for Track entities."""

    @abstractmethod
    async def add(self, track: Track) -> None:
        """Add a new track."""
        pass

    @abstractmethod
    async def update(self, track: Track) -> None:
        """Update an existing track."""
        pass

    @abstractmethod
    async def delete(self, track_id: TrackId) -> None:
        """Delete a track."""
        pass

    @abstractmethod
    async def get_by_id(self, track_id: TrackId) -> Track | None:
        """Get a track by ID."""
        pass

    @abstractmethod
    async def find_by_slug(self, artist_id: ArtistId, slug: str) -> Track | None:
        """Get an artist's track by slug."""
        pass

    @abstractmethod
    async def existing_ids(self, track_ids: Iterable[str]) -> set[str]:
        """Return the subset of track_ids that exist."""
        pass

    @abstractmethod
    async def list_page(
        self,
        artist_id: ArtistId | None = None,
        limit: int = 50,
        offset: int = 0,
        search: str = "",
    ) -> list[Track]:
        """List tracks ordered by title."""
        pass

    @abstractmethod
    async def count(self, artist_id: ArtistId | None = None, search: str = "") -> int:
        """Count tracks matching the filters."""
        pass


class INewsRepository(ABC):
    """Repository interface for News entities and their embedded songs."""

    @abstractmethod
    async def add(self, news: News) -> None:
        """Add a news item."""
        pass

    @abstractmethod
    async def update(self, news: News) -> None:
        """Update an existing news item."""
        pass

    @abstractmethod
    async def delete(self, news_id: NewsId) -> None:
        """Delete a news item and its songs."""
        pass

    @abstractmethod
    async def get_by_id(self, news_id: NewsId) -> News | None:
        """Get a news item by ID."""
        pass

    @abstractmethod
    async def slug_taken(self, slug: str, exclude_id: NewsId | None = None) -> bool:
        """Check whether another news item already uses the slug."""
        pass

    @abstractmethod
    async def list_page(
        self,
        limit: int = 20,
        offset: int = 0,
        search: str = "",
        news_type: str | None = None,
    ) -> list[News]:
        """List news, most recently published first."""
        pass

    @abstractmethod
    async def count(self, search: str = "", news_type: str | None = None) -> int:
        """Count news matching the filters."""
        pass

    @abstractmethod
    async def get_songs(self, news_id: NewsId) -> list[NewsSong]:
        """Get a news item's songs in display order."""
        pass

    @abstractmethod
    async def replace_songs(self, news_id: NewsId, songs: Sequence[NewsSong]) -> None:
        """Replace a news item's songs; list order becomes display order."""
        pass


class INewsTypeRepository(ABC):
    """Repository interface for news categories."""

    @abstractmethod
    async def list_all(self) -> list[NewsType]:
        """List categories ordered by label."""
        pass

    @abstractmethod
    async def get_by_slug(self, slug: str) -> NewsType | None:
        """Get a category by slug."""
        pass

    @abstractmethod
    async def add(self, news_type: NewsType) -> None:
        """Add a category; its id is set on success."""
        pass


@dataclass(frozen=True)
class TranslationResult:
    """Outcome of a translation request.

    On failure `text` is the untouched input, so callers can always display it.
    """

    text: str
    ok: bool
    error: str | None = None


class ITranslationClient(ABC):
    """Port for machine translation into Lithuanian."""

    @abstractmethod
    async def translate(self, text: str) -> TranslationResult:
        """Translate text to Lithuanian."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release HTTP resources."""
        pass


__all__ = [
    "ArtistStoreScope",
    "IAlbumRepository",
    "IArtistStore",
    "INewsRepository",
    "INewsTypeRepository",
    "ITrackRepository",
    "ITranslationClient",
    "TranslationResult",
]
