"""Domain entities."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum

from musiclt.domain.value_objects import AlbumId, ArtistId, NewsId, TrackId, slugify

# Platforms accepted in Artist.links. Anything else is dropped on normalization.
LINK_PLATFORMS: tuple[str, ...] = (
    "facebook",
    "instagram",
    "youtube",
    "tiktok",
    "spotify",
    "soundcloud",
    "bandcamp",
    "twitter",
)


class ArtistKind(str, Enum):
    """Whether an artist is a single person or a group."""

    SOLO = "solo"
    GROUP = "group"


class Gender(str, Enum):
    """Gender of a solo artist; unknown is None."""

    MALE = "male"
    FEMALE = "female"


# Hey future me, ArtistLink is ONE half of a bidirectional edge. The same shape is used for
# all three relation lists: on a solo artist `memberships` points at groups, on a group
# `members` points at solo artists, and `related` points anywhere. `name` is a denormalized
# copy of the counterpart's display name taken at write time - it can lag behind a rename
# until the renamed artist is saved again. Years are strings because the admin form sends
# "" for "still active" / "unknown".
@dataclass(frozen=True)
class ArtistLink:
    """Reference from one artist to another, with a validity interval."""

    artist_id: str
    name: str = ""
    year_from: str = ""
    year_to: str = ""

    @property
    def interval(self) -> tuple[str, str]:
        """Validity interval as a comparable pair."""
        return (self.year_from, self.year_to)

    def with_interval(self, year_from: str, year_to: str) -> "ArtistLink":
        """Return a copy carrying another interval."""
        return replace(self, year_from=year_from, year_to=year_to)


@dataclass(frozen=True)
class ArtistBreak:
    """A hiatus in an artist's activity. year_to None means the break is ongoing."""

    year_from: int
    year_to: int | None = None

    def __post_init__(self) -> None:
        if self.year_to is not None and self.year_to < self.year_from:
            raise ValueError(
                f"Break ends before it starts: {self.year_from}-{self.year_to}"
            )


@dataclass(frozen=True)
class ArtistPhoto:
    """Gallery photo of an artist, kept in list order."""

    url: str
    caption: str = ""


@dataclass
class Artist:
    """Artist entity: a solo performer or a group."""

    id: ArtistId
    name: str
    kind: ArtistKind = ArtistKind.SOLO
    slug: str = ""
    country: str | None = None
    active_from: int | None = None
    active_until: int | None = None
    description: str | None = None
    spotify_id: str | None = None
    youtube_channel_id: str | None = None
    cover_image_url: str | None = None
    website: str | None = None
    is_verified: bool = False
    # which sections of the site list the artist
    type_music: bool = True
    type_film: bool = False
    type_dance: bool = False
    type_books: bool = False
    gender: Gender | None = None
    birth_date: str | None = None
    death_date: str | None = None
    subdomain: str | None = None
    breaks: list[ArtistBreak] = field(default_factory=list)
    photos: list[ArtistPhoto] = field(default_factory=list)
    genres: list[int] = field(default_factory=list)
    links: dict[str, str] = field(default_factory=dict)
    memberships: list[ArtistLink] = field(default_factory=list)
    members: list[ArtistLink] = field(default_factory=list)
    related: list[ArtistLink] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    # 0 = never persisted. The store bumps it on every successful save.
    version: int = 0

    def __post_init__(self) -> None:
        """Validate artist data."""
        if not self.name or not self.name.strip():
            raise ValueError("Artist name cannot be empty")
        if not self.slug:
            self.slug = slugify(self.name, fallback=self.id.value)
        self.links = {
            platform: url
            for platform, url in self.links.items()
            if platform in LINK_PLATFORMS and url
        }

    @property
    def is_solo(self) -> bool:
        """Check if artist is a solo performer."""
        return self.kind == ArtistKind.SOLO

    @property
    def is_group(self) -> bool:
        """Check if artist is a group."""
        return self.kind == ArtistKind.GROUP

    def links_for(self, field_name: str) -> list[ArtistLink]:
        """Get one of the relation lists by field name."""
        return list(getattr(self, field_name))

    def references(self, artist_id: str) -> bool:
        """Check whether any relation list points at artist_id."""
        return any(
            link.artist_id == artist_id
            for link in (*self.memberships, *self.members, *self.related)
        )

    def update_name(self, name: str) -> None:
        """Update artist name and its slug."""
        if not name or not name.strip():
            raise ValueError("Artist name cannot be empty")
        self.name = name
        self.slug = slugify(name, fallback=self.id.value)
        self.updated_at = datetime.now(UTC)


class AlbumType(str, Enum):
    """Release types an album can be tagged with."""

    STUDIO = "studio"
    COMPILATION = "compilation"
    EP = "ep"
    SINGLE = "single"
    LIVE = "live"
    REMIX = "remix"
    COVERS = "covers"
    HOLIDAY = "holiday"
    SOUNDTRACK = "soundtrack"
    DEMO = "demo"


class TrackType(str, Enum):
    """Kind of recording."""

    NORMAL = "normal"
    SINGLE = "single"
    REMIX = "remix"
    LIVE = "live"
    MASHUP = "mashup"
    INSTRUMENTAL = "instrumental"


@dataclass(frozen=True)
class AlbumTrack:
    """Position of a track on an album."""

    track_id: str
    position: int
    disc_number: int = 1


@dataclass
class Album:
    """Album entity."""

    id: AlbumId
    title: str
    artist_id: ArtistId
    slug: str = ""
    year: int | None = None
    month: int | None = None
    day: int | None = None
    types: list[AlbumType] = field(default_factory=lambda: [AlbumType.STUDIO])
    cover_image_url: str | None = None
    spotify_id: str | None = None
    video_url: str | None = None
    is_upcoming: bool = False
    description: str | None = None
    tracks: list[AlbumTrack] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        """Validate album data."""
        if not self.title or not self.title.strip():
            raise ValueError("Album title cannot be empty")
        if self.month is not None and not 1 <= self.month <= 12:
            raise ValueError(f"Invalid month: {self.month}")
        if self.day is not None and not 1 <= self.day <= 31:
            raise ValueError(f"Invalid day: {self.day}")
        if not self.slug:
            self.slug = slugify(self.title, fallback=self.id.value)
            if self.year is not None:
                self.slug = f"{self.slug}-{self.year}"
        # Positions are re-numbered 1..n in list order so gaps from the form never persist.
        self.tracks = [
            replace(track, position=index)
            for index, track in enumerate(self.tracks, start=1)
        ]


@dataclass
class Track:
    """Track entity."""

    id: TrackId
    title: str
    artist_id: ArtistId
    slug: str = ""
    type: TrackType = TrackType.NORMAL
    release_date: str | None = None
    is_single: bool = False
    video_url: str | None = None
    spotify_id: str | None = None
    lyrics: str | None = None
    description: str | None = None
    # ids of guest artists, besides the main artist_id
    featuring: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        """Validate track data."""
        if not self.title or not self.title.strip():
            raise ValueError("Track title cannot be empty")
        if not self.slug:
            self.slug = slugify(self.title, fallback=self.id.value)
        self.featuring = list(
            dict.fromkeys(
                artist_id
                for artist_id in self.featuring
                if artist_id and artist_id != self.artist_id.value
            )
        )


# Hey future me - this is what the album form sends for each row of the track list, NOT
# what gets stored. A row either points at an existing track (track_id) or only names one
# (title), in which case CatalogService finds the artist's track with the same slug or
# creates it. `featuring` holds guest artist NAMES, resolved the same find-or-create way.
@dataclass(frozen=True)
class AlbumTrackEntry:
    """One row of an album's submitted track list."""

    track_id: str = ""
    title: str = ""
    disc_number: int = 1
    type: TrackType = TrackType.NORMAL
    is_single: bool = False
    video_url: str | None = None
    spotify_id: str | None = None
    featuring: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.track_id.strip() and not self.title.strip():
            raise ValueError("Album track needs a track_id or a title")


@dataclass(frozen=True)
class GalleryImage:
    """Image shown in a news item's gallery."""

    url: str
    caption: str = ""


@dataclass
class News:
    """News item, optionally tied to up to two artists and an album."""

    id: NewsId
    title: str
    slug: str = ""
    body: str | None = None
    type: str = "news"
    author: str | None = None
    source_url: str | None = None
    source_name: str | None = None
    is_featured: bool = False
    is_hidden_home: bool = False
    is_title_page: bool = False
    artist_id: ArtistId | None = None
    artist_id2: ArtistId | None = None
    album_id: AlbumId | None = None
    image_small_url: str | None = None
    image_title_url: str | None = None
    gallery: list[GalleryImage] = field(default_factory=list)
    published_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        """Validate news data."""
        if not self.title or not self.title.strip():
            raise ValueError("News title cannot be empty")
        if not self.type or not self.type.strip():
            self.type = "news"
        if not self.slug:
            self.slug = slugify(self.title, fallback=self.id.value)
        self.gallery = [image for image in self.gallery if image.url]

    @property
    def artist_ids(self) -> list[ArtistId]:
        """Artists the item is tagged with, primary first."""
        return [aid for aid in (self.artist_id, self.artist_id2) if aid is not None]


@dataclass(frozen=True)
class NewsSong:
    """Song embedded in a news item: a catalog track or a free-form YouTube link."""

    title: str = ""
    artist_name: str = ""
    track_id: str | None = None
    youtube_url: str | None = None

    def __post_init__(self) -> None:
        if not self.track_id and not self.title.strip() and not self.youtube_url:
            raise ValueError("News song needs a track_id, a title or a YouTube URL")


@dataclass
class NewsType:
    """Category a news item's `type` refers to by slug."""

    label: str
    slug: str = ""
    id: int | None = None

    def __post_init__(self) -> None:
        if not self.label or not self.label.strip():
            raise ValueError("News type label cannot be empty")
        self.label = self.label.strip()
        if not self.slug:
            self.slug = slugify(self.label)
        if not self.slug:
            raise ValueError(f"News type label has no usable characters: {self.label}")


__all__ = [
    "LINK_PLATFORMS",
    "Album",
    "AlbumTrack",
    "AlbumTrackEntry",
    "AlbumType",
    "Artist",
    "ArtistBreak",
    "ArtistKind",
    "ArtistLink",
    "ArtistPhoto",
    "GalleryImage",
    "Gender",
    "News",
    "NewsSong",
    "NewsType",
    "Track",
    "TrackType",
]
