"""In-memory artist store for tests and local tooling.

Implements the same contract as SqlAlchemyArtistStore without a database:

- scope() opens a unit of work; writes are staged and only become visible to other
  scopes when the block exits without an exception.
- Every saved artist carries a version, checked on save and again on commit, so
  interleaved scopes produce ConcurrentModificationError exactly like the SQL store.
- Entities handed out are deep copies; callers can never mutate stored state.

Example:
    >>> store = InMemoryArtistStore()
    >>> store.seed(Artist(id=ArtistId("g1"), name="Group", kind=ArtistKind.GROUP))
    >>> async with store.scope() as artists:
    ...     group = await artists.get(ArtistId("g1"))
"""

import copy
from collections.abc import AsyncGenerator, Iterable, Sequence
from contextlib import asynccontextmanager

from musiclt.domain.entities import Artist
from musiclt.domain.exceptions import (
    ConcurrentModificationError,
    EntityNotFoundException,
)
from musiclt.domain.ports import IArtistStore
from musiclt.domain.value_objects import ArtistId


class InMemoryArtistStore:
    """Committed artist state shared by all scopes."""

    def __init__(self) -> None:
        """Initialize an empty store."""
        self.committed: dict[str, Artist] = {}
        self.commits: int = 0

    def seed(self, *artists: Artist) -> None:
        """Put artists straight into committed state (version 1 if never saved)."""
        for artist in artists:
            stored = copy.deepcopy(artist)
            if stored.version == 0:
                stored.version = 1
            self.committed[stored.id.value] = stored

    def snapshot(self) -> list[Artist]:
        """Copies of all committed artists, in insertion order."""
        return [copy.deepcopy(artist) for artist in self.committed.values()]

    def get_committed(self, artist_id: str) -> Artist | None:
        """Copy of one committed artist."""
        artist = self.committed.get(artist_id)
        return copy.deepcopy(artist) if artist is not None else None

    @asynccontextmanager
    async def scope(self) -> AsyncGenerator[IArtistStore, None]:
        """Open a unit of work; staged writes are discarded if the block raises."""
        session = InMemoryArtistSession(self)
        yield session
        session.commit()


class InMemoryArtistSession(IArtistStore):
    """One unit of work against an InMemoryArtistStore."""

    def __init__(self, backend: InMemoryArtistStore) -> None:
        self._backend = backend
        # None marks a staged delete
        self._staged: dict[str, Artist | None] = {}
        # committed version each staged id had when this scope first touched it
        self._base_versions: dict[str, int] = {}

    def _visible(self) -> dict[str, Artist]:
        merged = dict(self._backend.committed)
        for artist_id, artist in self._staged.items():
            if artist is None:
                merged.pop(artist_id, None)
            else:
                merged[artist_id] = artist
        return merged

    def _remember_base(self, artist_id: str) -> None:
        if artist_id not in self._base_versions:
            committed = self._backend.committed.get(artist_id)
            self._base_versions[artist_id] = committed.version if committed else 0

    async def load_all(self) -> list[Artist]:
        """Load every artist, ordered by name."""
        return _sorted_copies(self._visible().values())

    async def load_many(self, artist_ids: Iterable[str]) -> list[Artist]:
        """Load the artists with the given ids; unknown ids are ignored."""
        visible = self._visible()
        wanted = {artist_id for artist_id in artist_ids if artist_id}
        return _sorted_copies(visible[i] for i in wanted if i in visible)

    async def get(self, artist_id: ArtistId) -> Artist | None:
        """Load a single artist."""
        artist = self._visible().get(artist_id.value)
        return copy.deepcopy(artist) if artist is not None else None

    async def find_by_slug(self, slug: str) -> Artist | None:
        """Load the first artist (by name) carrying the slug."""
        matching = _sorted_copies(
            artist for artist in self._visible().values() if slug and artist.slug == slug
        )
        return matching[0] if matching else None

    async def find_referencing(self, artist_id: str) -> list[Artist]:
        """Load artists whose relation lists reference artist_id."""
        return _sorted_copies(
            artist
            for artist in self._visible().values()
            if artist.references(artist_id)
        )

    async def save_all(self, artists: Sequence[Artist]) -> None:
        """Stage the given artists with a version check."""
        visible = self._visible()
        for artist in artists:
            artist_id = artist.id.value
            current = visible.get(artist_id)
            expected = current.version if current is not None else 0
            if artist.version != expected:
                raise ConcurrentModificationError("Artist", artist_id)

            self._remember_base(artist_id)
            artist.version = expected + 1
            stored = copy.deepcopy(artist)
            self._staged[artist_id] = stored
            visible[artist_id] = stored

    async def delete(
        self, artist_id: ArtistId, expected_version: int | None = None
    ) -> None:
        """Stage an artist delete, optionally only from expected_version."""
        current = self._visible().get(artist_id.value)
        if expected_version is not None:
            if current is None or current.version != expected_version:
                raise ConcurrentModificationError("Artist", artist_id.value)
            # checked again at commit against what was read, not what is there now
            self._base_versions.setdefault(artist_id.value, expected_version)
        elif current is None:
            raise EntityNotFoundException("Artist", artist_id.value)
        self._remember_base(artist_id.value)
        self._staged[artist_id.value] = None

    async def list_page(
        self, limit: int = 50, offset: int = 0, search: str = ""
    ) -> list[Artist]:
        """List artists ordered by name, optionally filtered by name substring."""
        matching = _sorted_copies(_matching(self._visible().values(), search))
        return matching[offset : offset + limit]

    async def count(self, search: str = "") -> int:
        """Count artists, optionally filtered by name substring."""
        return len(list(_matching(self._visible().values(), search)))

    def commit(self) -> None:
        """Apply staged writes if nobody committed over them in the meantime."""
        committed = self._backend.committed
        for artist_id, base_version in self._base_versions.items():
            current = committed.get(artist_id)
            if (current.version if current else 0) != base_version:
                raise ConcurrentModificationError("Artist", artist_id)

        for artist_id, artist in self._staged.items():
            if artist is None:
                committed.pop(artist_id, None)
            else:
                committed[artist_id] = artist
        self._backend.commits += 1


def _matching(artists: Iterable[Artist], search: str) -> Iterable[Artist]:
    term = search.strip().lower()
    return (artist for artist in artists if term in artist.name.lower())


def _sorted_copies(artists: Iterable[Artist]) -> list[Artist]:
    return [
        copy.deepcopy(artist)
        for artist in sorted(artists, key=lambda a: (a.name, a.id.value))
    ]
