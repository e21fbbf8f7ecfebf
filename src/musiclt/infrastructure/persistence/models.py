"""SQLAlchemy ORM models for the music.lt catalog."""

import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


# Hey future me - SQLite doesn't preserve timezone info! Datetimes come back naive, so attach
# UTC before comparing them with datetime.now(UTC) or you'll get a TypeError.
def ensure_utc_aware(dt: datetime) -> datetime:
    """Ensure datetime is UTC-aware, assuming naive datetimes are UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# Listen up, ArtistModel carries a `version` column wired up as SQLAlchemy's version_id_col.
# Every UPDATE is issued as "... WHERE id = :id AND version = :old" and bumps the version.
# If another transaction saved the row in between, zero rows match and SQLAlchemy raises
# StaleDataError at flush time - the store turns that into ConcurrentModificationError.
# genres, links, breaks and photos are JSON text (SQLite compatible), relation lists live
# in artist_links.
class ArtistModel(Base):
    """SQLAlchemy model for Artist entity."""

    __tablename__ = "artists"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    kind: Mapped[str] = mapped_column(String(10), nullable=False, default="solo")
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    active_from: Mapped[int | None] = mapped_column(Integer, nullable=True)
    active_until: Mapped[int | None] = mapped_column(Integer, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    spotify_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    youtube_channel_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    cover_image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    website: Mapped[str | None] = mapped_column(String(512), nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    type_music: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    type_film: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    type_dance: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    type_books: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    gender: Mapped[str | None] = mapped_column(String(10), nullable=True)
    birth_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    death_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    subdomain: Mapped[str | None] = mapped_column(String(100), nullable=True)
    genres: Mapped[str | None] = mapped_column(Text, nullable=True)
    links: Mapped[str | None] = mapped_column(Text, nullable=True)
    # JSON lists: [{"year_from": 1999, "year_to": 2003}], [{"url": ..., "caption": ...}]
    breaks: Mapped[str | None] = mapped_column(Text, nullable=True)
    photos: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (Index("ix_artists_name_lower", func.lower(name)),)


# Hey future me, one row per HALF of an edge. A solo S in group G is two rows:
# (S, memberships, G) and (G, members, S). counterpart_id has NO foreign key on purpose:
# declared counterparts that don't exist are tolerated soft references. The index on
# counterpart_id is what makes find_referencing() cheap - it's how the store finds every
# artist holding a back-reference to the one being saved or deleted.
class ArtistLinkModel(Base):
    """One half of a bidirectional artist relation."""

    __tablename__ = "artist_links"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    artist_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("artists.id", ondelete="CASCADE"), nullable=False
    )
    relation: Mapped[str] = mapped_column(String(20), nullable=False)
    counterpart_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    year_from: Mapped[str] = mapped_column(String(10), nullable=False, default="")
    year_to: Mapped[str] = mapped_column(String(10), nullable=False, default="")
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint(
            "artist_id", "relation", "counterpart_id", name="uq_artist_links_edge"
        ),
        Index("ix_artist_links_artist_relation", "artist_id", "relation"),
    )


class AlbumModel(Base):
    """SQLAlchemy model for Album entity."""

    __tablename__ = "albums"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    artist_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("artists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    month: Mapped[int | None] = mapped_column(Integer, nullable=True)
    day: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # JSON list of album type strings, e.g. '["studio", "live"]'
    types: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover_image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    spotify_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    video_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    is_upcoming: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class TrackModel(Base):
    """SQLAlchemy model for Track entity."""

    __tablename__ = "tracks"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    artist_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("artists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="normal")
    release_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    is_single: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    video_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    spotify_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    lyrics: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )

    __table_args__ = (Index("ix_tracks_artist_slug", "artist_id", "slug"),)


class AlbumTrackModel(Base):
    """Ordered track listing of an album."""

    __tablename__ = "album_tracks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    album_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("albums.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    track_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tracks.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    disc_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)


# Guest artists of a track. The main artist stays on tracks.artist_id; these rows are the
# "feat." credits only.
class TrackArtistModel(Base):
    """Featured artist on a track."""

    __tablename__ = "track_artists"

    track_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("tracks.id", ondelete="CASCADE"), primary_key=True
    )
    artist_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("artists.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class NewsModel(Base):
    """SQLAlchemy model for News entity."""

    __tablename__ = "news"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[str] = mapped_column(String(500), nullable=False, unique=True)
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    type: Mapped[str] = mapped_column(String(50), nullable=False, default="news")
    author: Mapped[str | None] = mapped_column(String(255), nullable=True)
    source_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    source_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_hidden_home: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_title_page: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    # Deleting a tagged artist or album keeps the article, just untagged
    artist_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("artists.id", ondelete="SET NULL"), nullable=True
    )
    artist_id2: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("artists.id", ondelete="SET NULL"), nullable=True
    )
    album_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("albums.id", ondelete="SET NULL"), nullable=True
    )
    image_small_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    image_title_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    # JSON list of {"url": ..., "caption": ...}
    gallery: Mapped[str | None] = mapped_column(Text, nullable=True)
    published_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


class NewsSongModel(Base):
    """Song embedded in a news item."""

    __tablename__ = "news_songs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    news_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("news.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    track_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("tracks.id", ondelete="SET NULL"), nullable=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    artist_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    youtube_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class NewsTypeModel(Base):
    """News category."""

    __tablename__ = "news_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    label: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
