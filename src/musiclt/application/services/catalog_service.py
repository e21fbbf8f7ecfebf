"""Album and track catalog service."""

import logging
from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, datetime

from musiclt.domain.entities import (
    Album,
    AlbumTrack,
    AlbumTrackEntry,
    Artist,
    ArtistKind,
    Track,
)
from musiclt.domain.exceptions import EntityNotFoundException, ValidationException
from musiclt.domain.ports import IAlbumRepository, IArtistStore, ITrackRepository
from musiclt.domain.value_objects import (
    AlbumId,
    ArtistId,
    TrackId,
    slugify,
    strip_featuring,
)

logger = logging.getLogger(__name__)


class CatalogService:
    """CRUD for albums and tracks, checking the artist and track references."""

    # Hey future me, all three repositories share the request's session, so the existence
    # checks and the write happen in one transaction. No retry here: albums and tracks
    # carry no back-references, there's nothing to reconcile.
    def __init__(
        self,
        artist_store: IArtistStore,
        album_repository: IAlbumRepository,
        track_repository: ITrackRepository,
    ) -> None:
        """Initialize catalog service.

        Args:
            artist_store: Used to check that referenced artists exist
            album_repository: Album persistence
            track_repository: Track persistence
        """
        self.artist_store = artist_store
        self.album_repository = album_repository
        self.track_repository = track_repository

    async def _ensure_artist(self, artist_id: ArtistId) -> None:
        if await self.artist_store.get(artist_id) is None:
            raise EntityNotFoundException("Artist", artist_id.value)

    async def _ensure_tracks(self, album: Album) -> None:
        await self._ensure_track_ids([entry.track_id for entry in album.tracks])

    async def _ensure_track_ids(self, track_ids: Sequence[str]) -> None:
        wanted = set(track_ids)
        if not wanted:
            return
        unknown = wanted - await self.track_repository.existing_ids(wanted)
        if unknown:
            raise ValidationException(
                f"Album references unknown tracks: {', '.join(sorted(unknown))}"
            )

    async def _ensure_artists(self, artist_ids: Sequence[str]) -> None:
        for artist_id in artist_ids:
            await self._ensure_artist(ArtistId.from_string(artist_id))

    # Hey future me - this is the album form's track list sync. Rows with a track_id edit
    # that track in place; rows with only a title are matched against the album artist's
    # tracks by slug (so re-saving an album never duplicates its tracks) and created when
    # nothing matches. Guest credits in the title move to track_artists. Unknown track_ids
    # are checked BEFORE anything is written.
    async def _sync_album_tracks(
        self, artist_id: ArtistId, entries: Sequence[AlbumTrackEntry]
    ) -> list[AlbumTrack]:
        await self._ensure_track_ids(
            [entry.track_id.strip() for entry in entries if entry.track_id.strip()]
        )

        listing: list[AlbumTrack] = []
        for entry in entries:
            if entry.track_id.strip():
                track = await self._refresh_track(entry)
            else:
                track = await self._find_or_create_track(artist_id, entry)
            listing.append(
                AlbumTrack(
                    track_id=track.id.value, position=0, disc_number=entry.disc_number
                )
            )
        return listing

    async def _refresh_track(self, entry: AlbumTrackEntry) -> Track:
        track = await self.get_track(TrackId.from_string(entry.track_id))
        title = strip_featuring(entry.title)
        if not title:
            return track

        updated = replace(
            track,
            title=title,
            slug=slugify(title, fallback=track.id.value),
            video_url=entry.video_url or track.video_url,
            spotify_id=entry.spotify_id or track.spotify_id,
            updated_at=datetime.now(UTC),
        )
        await self.track_repository.update(updated)
        return updated

    async def _find_or_create_track(
        self, artist_id: ArtistId, entry: AlbumTrackEntry
    ) -> Track:
        title = strip_featuring(entry.title)
        slug = slugify(title)
        existing = (
            await self.track_repository.find_by_slug(artist_id, slug) if slug else None
        )
        if existing is not None:
            return existing

        featuring = [
            (await self._find_or_create_artist(name)).id.value
            for name in entry.featuring
            if name.strip()
        ]
        track = Track(
            id=TrackId.generate(),
            title=title,
            artist_id=artist_id,
            type=entry.type,
            is_single=entry.is_single,
            video_url=entry.video_url,
            spotify_id=entry.spotify_id,
            featuring=featuring,
        )
        await self.track_repository.add(track)
        logger.info("Created track %s (%s) from album listing", track.id.value, title)
        return track

    async def _find_or_create_artist(self, name: str) -> Artist:
        slug = slugify(name)
        artist = await self.artist_store.find_by_slug(slug) if slug else None
        if artist is not None:
            return artist

        # A new guest has no relations yet, so there is nothing to reconcile.
        artist = Artist(id=ArtistId.generate(), name=name.strip(), kind=ArtistKind.SOLO)
        await self.artist_store.save_all([artist])
        logger.info("Created featured artist %s (%s)", artist.id.value, artist.name)
        return artist

    # =========================================================================
    # Albums
    # =========================================================================

    async def get_album(self, album_id: AlbumId) -> Album:
        """Get an album by ID."""
        album = await self.album_repository.get_by_id(album_id)
        if album is None:
            raise EntityNotFoundException("Album", album_id.value)
        return album

    async def list_albums(
        self,
        artist_id: ArtistId | None = None,
        limit: int = 50,
        offset: int = 0,
        search: str = "",
    ) -> tuple[list[Album], int]:
        """List albums with the total count for pagination."""
        albums = await self.album_repository.list_page(
            artist_id=artist_id, limit=limit, offset=offset, search=search
        )
        total = await self.album_repository.count(artist_id=artist_id, search=search)
        return albums, total

    async def create_album(
        self, album: Album, entries: Sequence[AlbumTrackEntry] | None = None
    ) -> Album:
        """Create an album.

        Args:
            album: The album; its `tracks` are used when no entries are given
            entries: Submitted track list to sync (find or create each track)

        Raises:
            EntityNotFoundException: If the album's artist does not exist
            ValidationException: If the track listing references unknown tracks
        """
        await self._ensure_artist(album.artist_id)
        album = await self._with_listing(album, entries)
        await self.album_repository.add(album)
        logger.info("Created album %s (%s)", album.id.value, album.title)
        return album

    async def update_album(
        self,
        album_id: AlbumId,
        album: Album,
        entries: Sequence[AlbumTrackEntry] | None = None,
    ) -> Album:
        """Replace an album's data and track listing."""
        current = await self.get_album(album_id)
        await self._ensure_artist(album.artist_id)
        album = await self._with_listing(album, entries)

        updated = replace(
            album,
            id=current.id,
            created_at=current.created_at,
            updated_at=datetime.now(UTC),
        )
        await self.album_repository.update(updated)
        logger.info("Updated album %s", album_id.value)
        return updated

    async def _with_listing(
        self, album: Album, entries: Sequence[AlbumTrackEntry] | None
    ) -> Album:
        if entries is None:
            await self._ensure_tracks(album)
            return album
        tracks = await self._sync_album_tracks(album.artist_id, entries)
        return replace(album, tracks=tracks)

    async def delete_album(self, album_id: AlbumId) -> None:
        """Delete an album."""
        await self.album_repository.delete(album_id)
        logger.info("Deleted album %s", album_id.value)

    # =========================================================================
    # Tracks
    # =========================================================================

    async def get_track(self, track_id: TrackId) -> Track:
        """Get a track by ID."""
        track = await self.track_repository.get_by_id(track_id)
        if track is None:
            raise EntityNotFoundException("Track", track_id.value)
        return track

    async def list_tracks(
        self,
        artist_id: ArtistId | None = None,
        limit: int = 50,
        offset: int = 0,
        search: str = "",
    ) -> tuple[list[Track], int]:
        """List tracks with the total count for pagination."""
        tracks = await self.track_repository.list_page(
            artist_id=artist_id, limit=limit, offset=offset, search=search
        )
        total = await self.track_repository.count(artist_id=artist_id, search=search)
        return tracks, total

    async def create_track(self, track: Track) -> Track:
        """Create a track.

        Raises:
            EntityNotFoundException: If the track's artist or a featured artist does not
                exist
        """
        await self._ensure_artist(track.artist_id)
        await self._ensure_artists(track.featuring)
        await self.track_repository.add(track)
        logger.info("Created track %s (%s)", track.id.value, track.title)
        return track

    async def update_track(self, track_id: TrackId, track: Track) -> Track:
        """Replace a track's data."""
        current = await self.get_track(track_id)
        await self._ensure_artist(track.artist_id)
        await self._ensure_artists(track.featuring)

        updated = replace(
            track,
            id=current.id,
            created_at=current.created_at,
            updated_at=datetime.now(UTC),
        )
        await self.track_repository.update(updated)
        logger.info("Updated track %s", track_id.value)
        return updated

    async def delete_track(self, track_id: TrackId) -> None:
        """Delete a track (it disappears from every album listing)."""
        await self.track_repository.delete(track_id)
        logger.info("Deleted track %s", track_id.value)
