"""Artist service: saves and deletes artists with their relations kept in sync."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from datetime import UTC, datetime
from typing import TypeVar

from musiclt.application.services.relation_synchronizer import (
    RelationSynchronizer,
    RelationViolation,
)
from musiclt.domain.entities import Artist
from musiclt.domain.exceptions import EntityNotFoundException, ValidationException
from musiclt.domain.ports import ArtistStoreScope, IArtistStore
from musiclt.domain.value_objects import ArtistId
from musiclt.infrastructure.persistence.retry import execute_with_retry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ArtistService:
    """Orchestrates load -> reconcile -> save for artists as one unit of work."""

    # Hey future me - the service never holds a session. It gets a store_scope FACTORY and
    # opens a fresh unit of work per attempt. That's what makes the retry loop correct: after
    # a version conflict the old transaction is gone and the next attempt re-reads everything.
    def __init__(
        self,
        store_scope: ArtistStoreScope,
        synchronizer: RelationSynchronizer | None = None,
        max_attempts: int = 3,
        retry_delay: float = 0.1,
    ) -> None:
        """Initialize artist service.

        Args:
            store_scope: Factory opening one artist-store transaction
            synchronizer: Relation synchronizer (a default one if omitted)
            max_attempts: Attempts per operation before a conflict propagates
            retry_delay: Initial backoff between attempts in seconds
        """
        self._store_scope = store_scope
        self._synchronizer = synchronizer or RelationSynchronizer()
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay

    async def get_artist(self, artist_id: ArtistId) -> Artist:
        """Get an artist by ID.

        Raises:
            EntityNotFoundException: If the artist does not exist
        """
        async with self._store_scope() as store:
            artist = await store.get(artist_id)
        if artist is None:
            raise EntityNotFoundException("Artist", artist_id.value)
        return artist

    async def list_artists(
        self, limit: int = 50, offset: int = 0, search: str = ""
    ) -> tuple[list[Artist], int]:
        """List artists with the total count for pagination."""
        async with self._store_scope() as store:
            artists = await store.list_page(limit=limit, offset=offset, search=search)
            total = await store.count(search=search)
        return artists, total

    async def create_artist(self, artist: Artist) -> Artist:
        """Create an artist and add back-references on every declared counterpart.

        Raises:
            ValidationException: If an artist with the same id already exists
            ConcurrentModificationError: If conflicts persist after all retries
        """

        async def attempt() -> Artist:
            async with self._store_scope() as store:
                if await store.get(artist.id) is not None:
                    raise ValidationException(
                        f"Artist with id {artist.id.value} already exists"
                    )
                return await self._save(store, None, replace(artist, version=0))

        saved = await self._with_retry(attempt)
        logger.info("Created artist %s (%s)", saved.id.value, saved.name)
        return saved

    async def update_artist(self, artist_id: ArtistId, artist: Artist) -> Artist:
        """Replace an artist's data and relation lists, syncing both sides.

        Raises:
            EntityNotFoundException: If the artist does not exist
            ConcurrentModificationError: If conflicts persist after all retries
        """

        async def attempt() -> Artist:
            async with self._store_scope() as store:
                current = await store.get(artist_id)
                if current is None:
                    raise EntityNotFoundException("Artist", artist_id.value)
                edited = replace(
                    artist,
                    id=current.id,
                    created_at=current.created_at,
                    updated_at=datetime.now(UTC),
                    version=current.version,
                )
                return await self._save(store, current, edited)

        saved = await self._with_retry(attempt)
        logger.info("Updated artist %s (%s)", saved.id.value, saved.name)
        return saved

    async def delete_artist(self, artist_id: ArtistId) -> None:
        """Delete an artist and scrub every back-reference to it.

        Raises:
            EntityNotFoundException: If the artist does not exist
            ConcurrentModificationError: If conflicts persist after all retries
        """

        async def attempt() -> int:
            async with self._store_scope() as store:
                current = await store.get(artist_id)
                if current is None:
                    raise EntityNotFoundException("Artist", artist_id.value)
                referencing = await store.find_referencing(artist_id.value)
                snapshot = [artist for artist in referencing if artist.id != current.id]

                result = self._synchronizer.detach(snapshot, artist_id.value)
                changed = _changed(snapshot, result)
                await store.save_all(changed)
                await store.delete(artist_id, expected_version=current.version)
                return len(changed)

        scrubbed = await self._with_retry(attempt)
        logger.info(
            "Deleted artist %s (%d back-references scrubbed)", artist_id.value, scrubbed
        )

    async def audit_relations(self) -> list[RelationViolation]:
        """Check the relation invariant over the whole catalog."""
        async with self._store_scope() as store:
            artists = await store.load_all()
        violations = self._synchronizer.find_violations(artists)
        if violations:
            logger.warning("Relation audit found %d violations", len(violations))
        return violations

    # =========================================================================
    # Internals
    # =========================================================================

    async def _with_retry(self, attempt: Callable[[], Awaitable[T]]) -> T:
        return await execute_with_retry(
            attempt,
            max_attempts=self._max_attempts,
            initial_delay=self._retry_delay,
        )

    # Listen up, the snapshot is SCOPED: the edited artist, everything it declares and
    # everything that currently points back at it. That's exactly the set reconcile can
    # touch - prune only ever removes back-references to the edited artist, and those all
    # live on artists returned by find_referencing().
    async def _save(
        self, store: IArtistStore, current: Artist | None, edited: Artist
    ) -> Artist:
        declared_ids = {
            link.artist_id
            for link in (*edited.memberships, *edited.members, *edited.related)
            if link is not None and link.artist_id
        }
        declared_ids.discard(edited.id.value)

        snapshot_by_id: dict[str, Artist] = {}
        if current is not None:
            snapshot_by_id[current.id.value] = current
        for artist in await store.load_many(declared_ids):
            snapshot_by_id[artist.id.value] = artist
        for artist in await store.find_referencing(edited.id.value):
            snapshot_by_id.setdefault(artist.id.value, artist)
        snapshot = list(snapshot_by_id.values())

        result = self._synchronizer.reconcile(snapshot, edited)
        changed = _changed(snapshot, result)

        saved = next(artist for artist in result if artist.id == edited.id)
        # edited artist first so a brand-new row exists before its counterparts are touched
        ordered = [saved, *(artist for artist in changed if artist is not saved)]
        await store.save_all(ordered)

        logger.debug(
            "Reconciled artist %s: %d counterparts updated",
            edited.id.value,
            len(ordered) - 1,
        )
        return saved


def _changed(before: list[Artist], after: list[Artist]) -> list[Artist]:
    """Records in `after` that are not the very same object as in `before`."""
    originals = {artist.id.value: artist for artist in before}
    return [
        artist for artist in after if originals.get(artist.id.value) is not artist
    ]
