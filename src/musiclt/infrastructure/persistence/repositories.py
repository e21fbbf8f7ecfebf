"""Repository implementations for domain entities."""

from __future__ import annotations

import json
from collections import defaultdict
from collections.abc import AsyncGenerator, Iterable, Sequence
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from musiclt.domain.entities import (
    Album,
    AlbumTrack,
    AlbumType,
    Artist,
    ArtistBreak,
    ArtistKind,
    ArtistLink,
    ArtistPhoto,
    GalleryImage,
    Gender,
    News,
    NewsSong,
    NewsType,
    Track,
    TrackType,
)
from musiclt.domain.exceptions import (
    ConcurrentModificationError,
    EntityNotFoundException,
)
from musiclt.domain.ports import (
    ArtistStoreScope,
    IAlbumRepository,
    IArtistStore,
    INewsRepository,
    INewsTypeRepository,
    ITrackRepository,
)
from musiclt.domain.value_objects import AlbumId, ArtistId, NewsId, TrackId

from .models import (
    AlbumModel,
    AlbumTrackModel,
    ArtistLinkModel,
    ArtistModel,
    NewsModel,
    NewsSongModel,
    NewsTypeModel,
    TrackArtistModel,
    TrackModel,
    ensure_utc_aware,
    utc_now,
)

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement

    from .database import Database

RELATION_FIELDS: tuple[str, ...] = ("memberships", "members", "related")


def _name_filter(column: Any, search: str) -> ColumnElement[bool] | None:
    """Case-insensitive substring filter, None when search is blank."""
    term = search.strip().lower()
    if not term:
        return None
    return func.lower(column).contains(term, autoescape=True)


def _json_list(raw: str | None) -> list[dict[str, Any]]:
    return json.loads(raw) if raw else []


def _json_dump_list(items: Sequence[Any]) -> str | None:
    """Dump a list of frozen dataclasses as JSON, None for an empty list."""
    return json.dumps([asdict(item) for item in items]) if items else None


class SqlAlchemyArtistStore(IArtistStore):
    """SQLAlchemy implementation of the artist store.

    Relation lists are stored as rows of artist_links (one row per half edge).
    """

    # Hey future me, the store gets ONE AsyncSession for the whole unit of work and never
    # commits. artist_store_scope() owns the transaction: the reads of the snapshot, the
    # version-checked writes of every changed artist and the delete all land in the same
    # transaction, so a failed save leaves NOTHING half-written.
    def __init__(self, session: AsyncSession) -> None:
        """Initialize store with session."""
        self.session = session

    async def load_all(self) -> list[Artist]:
        """Load every artist, ordered by name."""
        stmt = select(ArtistModel).order_by(ArtistModel.name, ArtistModel.id)
        return await self._load(stmt)

    async def load_many(self, artist_ids: Iterable[str]) -> list[Artist]:
        """Load the artists with the given ids; unknown ids are ignored."""
        ids = sorted({artist_id for artist_id in artist_ids if artist_id})
        if not ids:
            return []
        stmt = (
            select(ArtistModel)
            .where(ArtistModel.id.in_(ids))
            .order_by(ArtistModel.name, ArtistModel.id)
        )
        return await self._load(stmt)

    async def get(self, artist_id: ArtistId) -> Artist | None:
        """Load a single artist."""
        artists = await self._load(
            select(ArtistModel).where(ArtistModel.id == artist_id.value)
        )
        return artists[0] if artists else None

    async def find_by_slug(self, slug: str) -> Artist | None:
        """Load the first artist (by name) carrying the slug."""
        if not slug:
            return None
        stmt = (
            select(ArtistModel)
            .where(ArtistModel.slug == slug)
            .order_by(ArtistModel.name, ArtistModel.id)
            .limit(1)
        )
        artists = await self._load(stmt)
        return artists[0] if artists else None

    # Yo, this is why counterpart_id is indexed. Everyone who points AT an artist holds a
    # row with counterpart_id == that artist, whichever relation it is.
    async def find_referencing(self, artist_id: str) -> list[Artist]:
        """Load artists whose relation lists reference artist_id."""
        stmt = (
            select(ArtistLinkModel.artist_id)
            .where(ArtistLinkModel.counterpart_id == artist_id)
            .distinct()
        )
        result = await self.session.execute(stmt)
        return await self.load_many(result.scalars().all())

    async def save_all(self, artists: Sequence[Artist]) -> None:
        """Insert or update the given artists with a version check.

        On success every saved entity carries its new version.

        Raises:
            ConcurrentModificationError: If an artist's version is stale
        """
        for artist in artists:
            await self._save(artist)

    # Listen up, the artist row goes FIRST and is conditional on the version we read. A
    # writer that linked to this artist after our snapshot saved the artist too (its
    # back-reference bumps the version), so zero rows match and the whole unit of work is
    # retried from a fresh snapshot instead of leaving that new link dangling.
    async def delete(
        self, artist_id: ArtistId, expected_version: int | None = None
    ) -> None:
        """Delete an artist row and its own link rows."""
        stmt = delete(ArtistModel).where(ArtistModel.id == artist_id.value)
        if expected_version is not None:
            stmt = stmt.where(ArtistModel.version == expected_version)
        result = await self.session.execute(stmt)
        if result.rowcount == 0:  # type: ignore[attr-defined]
            if expected_version is not None:
                raise ConcurrentModificationError("Artist", artist_id.value)
            raise EntityNotFoundException("Artist", artist_id.value)
        await self.session.execute(
            delete(ArtistLinkModel).where(ArtistLinkModel.artist_id == artist_id.value)
        )

    async def list_page(
        self, limit: int = 50, offset: int = 0, search: str = ""
    ) -> list[Artist]:
        """List artists ordered by name, optionally filtered by name substring."""
        stmt = select(ArtistModel).order_by(ArtistModel.name, ArtistModel.id)
        condition = _name_filter(ArtistModel.name, search)
        if condition is not None:
            stmt = stmt.where(condition)
        return await self._load(stmt.limit(limit).offset(offset))

    async def count(self, search: str = "") -> int:
        """Count artists, optionally filtered by name substring."""
        stmt = select(func.count(ArtistModel.id))
        condition = _name_filter(ArtistModel.name, search)
        if condition is not None:
            stmt = stmt.where(condition)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    # =========================================================================
    # Internals
    # =========================================================================

    async def _load(self, stmt: Any) -> list[Artist]:
        result = await self.session.execute(stmt)
        models = list(result.scalars().all())
        if not models:
            return []

        link_stmt = (
            select(ArtistLinkModel)
            .where(ArtistLinkModel.artist_id.in_([model.id for model in models]))
            .order_by(ArtistLinkModel.position, ArtistLinkModel.id)
        )
        link_result = await self.session.execute(link_stmt)
        links: dict[tuple[str, str], list[ArtistLink]] = defaultdict(list)
        for row in link_result.scalars().all():
            links[(row.artist_id, row.relation)].append(
                ArtistLink(
                    artist_id=row.counterpart_id,
                    name=row.name,
                    year_from=row.year_from,
                    year_to=row.year_to,
                )
            )

        return [self._model_to_entity(model, links) for model in models]

    def _model_to_entity(
        self,
        model: ArtistModel,
        links: dict[tuple[str, str], list[ArtistLink]],
    ) -> Artist:
        """Convert ArtistModel plus its link rows to an Artist entity.

        Hey future me - this is the ONE place that maps DB -> Entity! When you add fields
        to Artist, UPDATE THIS FUNCTION and _apply_fields below!
        """
        return Artist(
            id=ArtistId.from_string(model.id),
            name=model.name,
            kind=ArtistKind(model.kind),
            slug=model.slug,
            country=model.country,
            active_from=model.active_from,
            active_until=model.active_until,
            description=model.description,
            spotify_id=model.spotify_id,
            youtube_channel_id=model.youtube_channel_id,
            cover_image_url=model.cover_image_url,
            website=model.website,
            is_verified=model.is_verified,
            type_music=model.type_music,
            type_film=model.type_film,
            type_dance=model.type_dance,
            type_books=model.type_books,
            gender=Gender(model.gender) if model.gender else None,
            birth_date=model.birth_date,
            death_date=model.death_date,
            subdomain=model.subdomain,
            breaks=[ArtistBreak(**item) for item in _json_list(model.breaks)],
            photos=[ArtistPhoto(**item) for item in _json_list(model.photos)],
            genres=json.loads(model.genres) if model.genres else [],
            links=json.loads(model.links) if model.links else {},
            memberships=links.get((model.id, "memberships"), []),
            members=links.get((model.id, "members"), []),
            related=links.get((model.id, "related"), []),
            created_at=ensure_utc_aware(model.created_at),
            updated_at=ensure_utc_aware(model.updated_at),
            version=model.version,
        )

    @staticmethod
    def _apply_fields(model: ArtistModel, artist: Artist) -> None:
        model.name = artist.name
        model.slug = artist.slug
        model.kind = artist.kind.value
        model.country = artist.country
        model.active_from = artist.active_from
        model.active_until = artist.active_until
        model.description = artist.description
        model.spotify_id = artist.spotify_id
        model.youtube_channel_id = artist.youtube_channel_id
        model.cover_image_url = artist.cover_image_url
        model.website = artist.website
        model.is_verified = artist.is_verified
        model.type_music = artist.type_music
        model.type_film = artist.type_film
        model.type_dance = artist.type_dance
        model.type_books = artist.type_books
        model.gender = artist.gender.value if artist.gender else None
        model.birth_date = artist.birth_date
        model.death_date = artist.death_date
        model.subdomain = artist.subdomain
        model.breaks = _json_dump_list(artist.breaks)
        model.photos = _json_dump_list(artist.photos)
        model.genres = json.dumps(artist.genres) if artist.genres else None
        model.links = json.dumps(artist.links) if artist.links else None

    # Listen up, the version check happens twice. First against the row we can see (cheap,
    # catches most conflicts before any write). Then SQLAlchemy's version_id_col makes the
    # UPDATE itself conditional on the old version, which catches a writer that committed
    # between our read and our flush. Both end up as ConcurrentModificationError.
    async def _save(self, artist: Artist) -> None:
        artist_id = artist.id.value
        model = await self.session.get(ArtistModel, artist_id)

        if model is None:
            if artist.version != 0:
                # It existed when we read it, somebody deleted it since
                raise ConcurrentModificationError("Artist", artist_id)
            model = ArtistModel(id=artist_id, created_at=artist.created_at)
            self._apply_fields(model, artist)
            model.updated_at = artist.updated_at
            self.session.add(model)
        else:
            if artist.version != model.version:
                raise ConcurrentModificationError("Artist", artist_id)
            self._apply_fields(model, artist)
            # Always touch updated_at so the version-checked UPDATE is emitted even when
            # only link rows changed.
            model.updated_at = utc_now()

        try:
            await self.session.flush()
        except (StaleDataError, IntegrityError) as e:
            raise ConcurrentModificationError("Artist", artist_id) from e

        await self.session.execute(
            delete(ArtistLinkModel).where(ArtistLinkModel.artist_id == artist_id)
        )
        rows = [
            {
                "artist_id": artist_id,
                "relation": relation,
                "counterpart_id": link.artist_id,
                "name": link.name,
                "year_from": link.year_from,
                "year_to": link.year_to,
                "position": position,
            }
            for relation in RELATION_FIELDS
            for position, link in enumerate(getattr(artist, relation))
        ]
        if rows:
            await self.session.execute(insert(ArtistLinkModel), rows)

        artist.version = model.version
        artist.updated_at = ensure_utc_aware(model.updated_at)


def artist_store_scope(db: Database) -> ArtistStoreScope:
    """Build a unit-of-work factory for the artist store on top of a Database."""

    @asynccontextmanager
    async def scope() -> AsyncGenerator[IArtistStore, None]:
        async with db.session_scope() as session:
            yield SqlAlchemyArtistStore(session)

    return scope


class AlbumRepository(IAlbumRepository):
    """SQLAlchemy implementation of Album repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    def _model_to_entity(
        self, model: AlbumModel, tracks: list[AlbumTrackModel]
    ) -> Album:
        """Convert AlbumModel and its track listing to an Album entity."""
        return Album(
            id=AlbumId.from_string(model.id),
            title=model.title,
            artist_id=ArtistId.from_string(model.artist_id),
            slug=model.slug,
            year=model.year,
            month=model.month,
            day=model.day,
            types=[AlbumType(value) for value in json.loads(model.types)]
            if model.types
            else [],
            cover_image_url=model.cover_image_url,
            spotify_id=model.spotify_id,
            video_url=model.video_url,
            is_upcoming=model.is_upcoming,
            description=model.description,
            tracks=[
                AlbumTrack(
                    track_id=row.track_id,
                    position=row.position,
                    disc_number=row.disc_number,
                )
                for row in tracks
            ],
            created_at=ensure_utc_aware(model.created_at),
            updated_at=ensure_utc_aware(model.updated_at),
        )

    @staticmethod
    def _apply_fields(model: AlbumModel, album: Album) -> None:
        model.title = album.title
        model.slug = album.slug
        model.artist_id = album.artist_id.value
        model.year = album.year
        model.month = album.month
        model.day = album.day
        model.types = json.dumps([album_type.value for album_type in album.types])
        model.cover_image_url = album.cover_image_url
        model.spotify_id = album.spotify_id
        model.video_url = album.video_url
        model.is_upcoming = album.is_upcoming
        model.description = album.description

    async def _replace_tracks(self, album: Album) -> None:
        await self.session.execute(
            delete(AlbumTrackModel).where(AlbumTrackModel.album_id == album.id.value)
        )
        if album.tracks:
            await self.session.execute(
                insert(AlbumTrackModel),
                [
                    {
                        "album_id": album.id.value,
                        "track_id": track.track_id,
                        "position": track.position,
                        "disc_number": track.disc_number,
                    }
                    for track in album.tracks
                ],
            )

    async def _tracks_for(self, album_ids: list[str]) -> dict[str, list[AlbumTrackModel]]:
        if not album_ids:
            return {}
        stmt = (
            select(AlbumTrackModel)
            .where(AlbumTrackModel.album_id.in_(album_ids))
            .order_by(AlbumTrackModel.disc_number, AlbumTrackModel.position)
        )
        result = await self.session.execute(stmt)
        grouped: dict[str, list[AlbumTrackModel]] = defaultdict(list)
        for row in result.scalars().all():
            grouped[row.album_id].append(row)
        return grouped

    async def add(self, album: Album) -> None:
        """Add a new album."""
        model = AlbumModel(
            id=album.id.value,
            created_at=album.created_at,
            updated_at=album.updated_at,
        )
        self._apply_fields(model, album)
        self.session.add(model)
        # Track rows reference the album, so the album row must exist first
        await self.session.flush()
        await self._replace_tracks(album)

    async def update(self, album: Album) -> None:
        """Update an existing album."""
        model = await self.session.get(AlbumModel, album.id.value)
        if not model:
            raise EntityNotFoundException("Album", album.id.value)

        self._apply_fields(model, album)
        model.updated_at = album.updated_at
        await self.session.flush()
        await self._replace_tracks(album)

    async def delete(self, album_id: AlbumId) -> None:
        """Delete an album."""
        await self.session.execute(
            delete(AlbumTrackModel).where(AlbumTrackModel.album_id == album_id.value)
        )
        result = await self.session.execute(
            delete(AlbumModel).where(AlbumModel.id == album_id.value)
        )
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise EntityNotFoundException("Album", album_id.value)

    async def get_by_id(self, album_id: AlbumId) -> Album | None:
        """Get an album by ID."""
        stmt = select(AlbumModel).where(AlbumModel.id == album_id.value)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            return None

        tracks = await self._tracks_for([model.id])
        return self._model_to_entity(model, tracks.get(model.id, []))

    def _filtered(self, stmt: Any, artist_id: ArtistId | None, search: str) -> Any:
        if artist_id is not None:
            stmt = stmt.where(AlbumModel.artist_id == artist_id.value)
        condition = _name_filter(AlbumModel.title, search)
        if condition is not None:
            stmt = stmt.where(condition)
        return stmt

    # Hey future me - newest first, albums without a year sink to the bottom.
    async def list_page(
        self,
        artist_id: ArtistId | None = None,
        limit: int = 50,
        offset: int = 0,
        search: str = "",
    ) -> list[Album]:
        """List albums, newest first."""
        stmt = self._filtered(select(AlbumModel), artist_id, search)
        stmt = (
            stmt.order_by(
                AlbumModel.year.is_(None),
                AlbumModel.year.desc(),
                AlbumModel.month.desc(),
                AlbumModel.title,
            )
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        models = list(result.scalars().all())
        tracks = await self._tracks_for([model.id for model in models])
        return [self._model_to_entity(model, tracks.get(model.id, [])) for model in models]

    async def count(self, artist_id: ArtistId | None = None, search: str = "") -> int:
        """Count albums matching the filters."""
        stmt = self._filtered(select(func.count(AlbumModel.id)), artist_id, search)
        result = await self.session.execute(stmt)
        return result.scalar() or 0


class TrackRepository(ITrackRepository):
    """SQLAlchemy implementation of Track repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    def _model_to_entity(self, model: TrackModel, featuring: list[str]) -> Track:
        return Track(
            id=TrackId.from_string(model.id),
            title=model.title,
            artist_id=ArtistId.from_string(model.artist_id),
            slug=model.slug,
            type=TrackType(model.type),
            release_date=model.release_date,
            is_single=model.is_single,
            video_url=model.video_url,
            spotify_id=model.spotify_id,
            lyrics=model.lyrics,
            description=model.description,
            featuring=featuring,
            created_at=ensure_utc_aware(model.created_at),
            updated_at=ensure_utc_aware(model.updated_at),
        )

    @staticmethod
    def _apply_fields(model: TrackModel, track: Track) -> None:
        model.title = track.title
        model.slug = track.slug
        model.artist_id = track.artist_id.value
        model.type = track.type.value
        model.release_date = track.release_date
        model.is_single = track.is_single
        model.video_url = track.video_url
        model.spotify_id = track.spotify_id
        model.lyrics = track.lyrics
        model.description = track.description

    async def _featuring_for(self, track_ids: list[str]) -> dict[str, list[str]]:
        if not track_ids:
            return {}
        stmt = (
            select(TrackArtistModel)
            .where(TrackArtistModel.track_id.in_(track_ids))
            .order_by(TrackArtistModel.position)
        )
        result = await self.session.execute(stmt)
        grouped: dict[str, list[str]] = defaultdict(list)
        for row in result.scalars().all():
            grouped[row.track_id].append(row.artist_id)
        return grouped

    async def _to_entities(self, models: list[TrackModel]) -> list[Track]:
        featuring = await self._featuring_for([model.id for model in models])
        return [
            self._model_to_entity(model, featuring.get(model.id, [])) for model in models
        ]

    async def _replace_featuring(self, track: Track) -> None:
        await self.session.execute(
            delete(TrackArtistModel).where(TrackArtistModel.track_id == track.id.value)
        )
        if track.featuring:
            await self.session.execute(
                insert(TrackArtistModel),
                [
                    {"track_id": track.id.value, "artist_id": artist_id, "position": i}
                    for i, artist_id in enumerate(track.featuring)
                ],
            )

    async def add(self, track: Track) -> None:
        """Add a new track."""
        model = TrackModel(
            id=track.id.value,
            created_at=track.created_at,
            updated_at=track.updated_at,
        )
        self._apply_fields(model, track)
        self.session.add(model)
        await self.session.flush()
        await self._replace_featuring(track)

    async def update(self, track: Track) -> None:
        """Update an existing track."""
        model = await self.session.get(TrackModel, track.id.value)
        if not model:
            raise EntityNotFoundException("Track", track.id.value)

        self._apply_fields(model, track)
        model.updated_at = track.updated_at
        await self.session.flush()
        await self._replace_featuring(track)

    async def delete(self, track_id: TrackId) -> None:
        """Delete a track."""
        stmt = delete(TrackModel).where(TrackModel.id == track_id.value)
        result = await self.session.execute(stmt)
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise EntityNotFoundException("Track", track_id.value)

    async def get_by_id(self, track_id: TrackId) -> Track | None:
        """Get a track by ID."""
        stmt = select(TrackModel).where(TrackModel.id == track_id.value)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()

        if not model:
            return None

        return (await self._to_entities([model]))[0]

    async def find_by_slug(self, artist_id: ArtistId, slug: str) -> Track | None:
        """Get an artist's track by slug (the oldest one if there are several)."""
        stmt = (
            select(TrackModel)
            .where(TrackModel.artist_id == artist_id.value, TrackModel.slug == slug)
            .order_by(TrackModel.created_at, TrackModel.id)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return (await self._to_entities([model]))[0] if model else None

    async def existing_ids(self, track_ids: Iterable[str]) -> set[str]:
        """Return the subset of track_ids that exist."""
        ids = {track_id for track_id in track_ids if track_id}
        if not ids:
            return set()
        stmt = select(TrackModel.id).where(TrackModel.id.in_(ids))
        result = await self.session.execute(stmt)
        return set(result.scalars().all())

    def _filtered(self, stmt: Any, artist_id: ArtistId | None, search: str) -> Any:
        if artist_id is not None:
            stmt = stmt.where(TrackModel.artist_id == artist_id.value)
        condition = _name_filter(TrackModel.title, search)
        if condition is not None:
            stmt = stmt.where(condition)
        return stmt

    async def list_page(
        self,
        artist_id: ArtistId | None = None,
        limit: int = 50,
        offset: int = 0,
        search: str = "",
    ) -> list[Track]:
        """List tracks ordered by title."""
        stmt = self._filtered(select(TrackModel), artist_id, search)
        stmt = stmt.order_by(TrackModel.title, TrackModel.id).limit(limit).offset(offset)
        result = await self.session.execute(stmt)
        return await self._to_entities(list(result.scalars().all()))

    async def count(self, artist_id: ArtistId | None = None, search: str = "") -> int:
        """Count tracks matching the filters."""
        stmt = self._filtered(select(func.count(TrackModel.id)), artist_id, search)
        result = await self.session.execute(stmt)
        return result.scalar() or 0


class NewsRepository(INewsRepository):
    """SQLAlchemy implementation of News repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    def _model_to_entity(self, model: NewsModel) -> News:
        """Convert NewsModel to News entity."""
        return News(
            id=NewsId.from_string(model.id),
            title=model.title,
            slug=model.slug,
            body=model.body,
            type=model.type,
            author=model.author,
            source_url=model.source_url,
            source_name=model.source_name,
            is_featured=model.is_featured,
            is_hidden_home=model.is_hidden_home,
            is_title_page=model.is_title_page,
            artist_id=ArtistId.from_string(model.artist_id) if model.artist_id else None,
            artist_id2=ArtistId.from_string(model.artist_id2)
            if model.artist_id2
            else None,
            album_id=AlbumId.from_string(model.album_id) if model.album_id else None,
            image_small_url=model.image_small_url,
            image_title_url=model.image_title_url,
            gallery=[GalleryImage(**item) for item in _json_list(model.gallery)],
            published_at=ensure_utc_aware(model.published_at),
            created_at=ensure_utc_aware(model.created_at),
            updated_at=ensure_utc_aware(model.updated_at),
        )

    @staticmethod
    def _apply_fields(model: NewsModel, news: News) -> None:
        model.title = news.title
        model.slug = news.slug
        model.body = news.body
        model.type = news.type
        model.author = news.author
        model.source_url = news.source_url
        model.source_name = news.source_name
        model.is_featured = news.is_featured
        model.is_hidden_home = news.is_hidden_home
        model.is_title_page = news.is_title_page
        model.artist_id = news.artist_id.value if news.artist_id else None
        model.artist_id2 = news.artist_id2.value if news.artist_id2 else None
        model.album_id = news.album_id.value if news.album_id else None
        model.image_small_url = news.image_small_url
        model.image_title_url = news.image_title_url
        model.gallery = _json_dump_list(news.gallery)
        model.published_at = news.published_at

    async def add(self, news: News) -> None:
        """Add a news item."""
        model = NewsModel(
            id=news.id.value, created_at=news.created_at, updated_at=news.updated_at
        )
        self._apply_fields(model, news)
        self.session.add(model)
        await self.session.flush()

    async def update(self, news: News) -> None:
        """Update an existing news item."""
        model = await self.session.get(NewsModel, news.id.value)
        if not model:
            raise EntityNotFoundException("News", news.id.value)

        self._apply_fields(model, news)
        model.updated_at = news.updated_at
        await self.session.flush()

    async def delete(self, news_id: NewsId) -> None:
        """Delete a news item and its songs."""
        await self.session.execute(
            delete(NewsSongModel).where(NewsSongModel.news_id == news_id.value)
        )
        result = await self.session.execute(
            delete(NewsModel).where(NewsModel.id == news_id.value)
        )
        if result.rowcount == 0:  # type: ignore[attr-defined]
            raise EntityNotFoundException("News", news_id.value)

    async def get_by_id(self, news_id: NewsId) -> News | None:
        """Get a news item by ID."""
        model = await self.session.get(NewsModel, news_id.value)
        return self._model_to_entity(model) if model else None

    async def slug_taken(self, slug: str, exclude_id: NewsId | None = None) -> bool:
        """Check whether another news item already uses the slug."""
        stmt = select(NewsModel.id).where(NewsModel.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(NewsModel.id != exclude_id.value)
        result = await self.session.execute(stmt.limit(1))
        return result.scalar_one_or_none() is not None

    def _filtered(self, stmt: Any, search: str, news_type: str | None) -> Any:
        if news_type:
            stmt = stmt.where(NewsModel.type == news_type)
        condition = _name_filter(NewsModel.title, search)
        if condition is not None:
            stmt = stmt.where(condition)
        return stmt

    async def list_page(
        self,
        limit: int = 20,
        offset: int = 0,
        search: str = "",
        news_type: str | None = None,
    ) -> list[News]:
        """List news, most recently published first."""
        stmt = self._filtered(select(NewsModel), search, news_type)
        stmt = (
            stmt.order_by(NewsModel.published_at.desc(), NewsModel.id)
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def count(self, search: str = "", news_type: str | None = None) -> int:
        """Count news matching the filters."""
        stmt = self._filtered(select(func.count(NewsModel.id)), search, news_type)
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def get_songs(self, news_id: NewsId) -> list[NewsSong]:
        """Get a news item's songs in display order."""
        stmt = (
            select(NewsSongModel)
            .where(NewsSongModel.news_id == news_id.value)
            .order_by(NewsSongModel.sort_order, NewsSongModel.id)
        )
        result = await self.session.execute(stmt)
        return [
            NewsSong(
                title=row.title,
                artist_name=row.artist_name,
                track_id=row.track_id,
                youtube_url=row.youtube_url,
            )
            for row in result.scalars().all()
        ]

    async def replace_songs(self, news_id: NewsId, songs: Sequence[NewsSong]) -> None:
        """Replace a news item's songs; list order becomes display order."""
        await self.session.execute(
            delete(NewsSongModel).where(NewsSongModel.news_id == news_id.value)
        )
        if songs:
            await self.session.execute(
                insert(NewsSongModel),
                [
                    {
                        "news_id": news_id.value,
                        "track_id": song.track_id,
                        "title": song.title,
                        "artist_name": song.artist_name,
                        "youtube_url": song.youtube_url,
                        "sort_order": sort_order,
                    }
                    for sort_order, song in enumerate(songs)
                ],
            )


class NewsTypeRepository(INewsTypeRepository):
    """SQLAlchemy implementation of the news category repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    @staticmethod
    def _model_to_entity(model: NewsTypeModel) -> NewsType:
        return NewsType(id=model.id, label=model.label, slug=model.slug)

    async def list_all(self) -> list[NewsType]:
        """List categories ordered by label."""
        stmt = select(NewsTypeModel).order_by(NewsTypeModel.label, NewsTypeModel.id)
        result = await self.session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def get_by_slug(self, slug: str) -> NewsType | None:
        """Get a category by slug."""
        stmt = select(NewsTypeModel).where(NewsTypeModel.slug == slug)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def add(self, news_type: NewsType) -> None:
        """Add a category; its id is set on success."""
        model = NewsTypeModel(label=news_type.label, slug=news_type.slug)
        self.session.add(model)
        await self.session.flush()
        news_type.id = model.id
