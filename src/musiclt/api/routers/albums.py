"""Album API endpoints."""

import logging

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from musiclt.api.dependencies import get_catalog_service, get_db_session, require_admin
from musiclt.application.services import CatalogService
from musiclt.domain.entities import Album, AlbumTrackEntry, AlbumType, TrackType
from musiclt.domain.value_objects import AlbumId, ArtistId

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/albums", tags=["Albums"])


class AlbumTrackSchema(BaseModel):
    """Track entry on an album."""

    track_id: str
    disc_number: int = 1
    position: int


# Either track_id or title must be set. A title-only row is matched to the album artist's
# track with the same slug or becomes a new track; "(feat. X)" is cut from the title.
class AlbumTrackEntrySchema(BaseModel):
    """Row of the submitted track list."""

    track_id: str | None = Field(None, description="Existing track ID")
    title: str = Field("", description="Track title, used to find or create the track")
    disc_number: int = Field(1, ge=1, description="Disc number")
    position: int | None = Field(
        None, description="Ignored on input, entries are numbered in list order"
    )
    type: TrackType = TrackType.NORMAL
    is_single: bool = False
    video_url: str | None = None
    spotify_id: str | None = None
    featuring: list[str] = Field(
        default_factory=list, description="Guest artist names, created if unknown"
    )

    def to_domain(self) -> AlbumTrackEntry:
        return AlbumTrackEntry(
            track_id=(self.track_id or "").strip(),
            title=self.title.strip(),
            disc_number=self.disc_number,
            type=self.type,
            is_single=self.is_single,
            video_url=self.video_url or None,
            spotify_id=self.spotify_id or None,
            featuring=tuple(self.featuring),
        )


class AlbumRequest(BaseModel):
    """Request body for creating or replacing an album."""

    title: str = Field(..., min_length=1)
    artist_id: str = Field(..., min_length=1)
    slug: str | None = None
    year: int | None = None
    month: int | None = Field(None, ge=1, le=12)
    day: int | None = Field(None, ge=1, le=31)
    types: list[AlbumType] = Field(default_factory=lambda: [AlbumType.STUDIO])
    cover_image_url: str | None = None
    spotify_id: str | None = None
    video_url: str | None = None
    is_upcoming: bool = False
    description: str | None = None
    tracks: list[AlbumTrackEntrySchema] = Field(default_factory=list)

    def to_domain(self, album_id: AlbumId) -> Album:
        """Build an Album entity."""
        return Album(
            id=album_id,
            title=self.title.strip(),
            artist_id=ArtistId.from_string(self.artist_id),
            slug=self.slug or "",
            year=self.year,
            month=self.month,
            day=self.day,
            types=list(dict.fromkeys(self.types)),
            cover_image_url=self.cover_image_url,
            spotify_id=self.spotify_id,
            video_url=self.video_url,
            is_upcoming=self.is_upcoming,
            description=self.description,
        )

    def track_entries(self) -> list[AlbumTrackEntry]:
        """Submitted track list as domain entries."""
        return [entry.to_domain() for entry in self.tracks]


class AlbumResponse(BaseModel):
    """Response model for an album."""

    id: str
    title: str
    artist_id: str
    slug: str
    year: int | None = None
    month: int | None = None
    day: int | None = None
    types: list[str] = Field(default_factory=list)
    cover_image_url: str | None = None
    spotify_id: str | None = None
    video_url: str | None = None
    is_upcoming: bool = False
    description: str | None = None
    tracks: list[AlbumTrackSchema] = Field(default_factory=list)
    created_at: str = Field(..., description="ISO 8601 timestamp")
    updated_at: str = Field(..., description="ISO 8601 timestamp")


class AlbumListResponse(BaseModel):
    """Response model for listing albums."""

    albums: list[AlbumResponse]
    total_count: int
    limit: int
    offset: int


def _album_to_response(album: Album) -> AlbumResponse:
    return AlbumResponse(
        id=album.id.value,
        title=album.title,
        artist_id=album.artist_id.value,
        slug=album.slug,
        year=album.year,
        month=album.month,
        day=album.day,
        types=[album_type.value for album_type in album.types],
        cover_image_url=album.cover_image_url,
        spotify_id=album.spotify_id,
        video_url=album.video_url,
        is_upcoming=album.is_upcoming,
        description=album.description,
        tracks=[
            AlbumTrackSchema(
                track_id=track.track_id,
                disc_number=track.disc_number,
                position=track.position,
            )
            for track in album.tracks
        ],
        created_at=album.created_at.isoformat(),
        updated_at=album.updated_at.isoformat(),
    )


@router.get("", response_model=AlbumListResponse)
async def list_albums(
    artist_id: str | None = Query(None, description="Only albums of this artist"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    search: str = Query("", description="Case-insensitive title filter"),
    service: CatalogService = Depends(get_catalog_service),
) -> AlbumListResponse:
    """List albums, newest first."""
    albums, total = await service.list_albums(
        artist_id=ArtistId.from_string(artist_id) if artist_id else None,
        limit=limit,
        offset=offset,
        search=search,
    )
    return AlbumListResponse(
        albums=[_album_to_response(album) for album in albums],
        total_count=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{album_id}", response_model=AlbumResponse)
async def get_album(
    album_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> AlbumResponse:
    """Get a single album with its track listing."""
    album = await service.get_album(AlbumId.from_string(album_id))
    return _album_to_response(album)


@router.post("", response_model=AlbumResponse, status_code=status.HTTP_201_CREATED)
async def create_album(
    body: AlbumRequest,
    _role: str = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
    session: AsyncSession = Depends(get_db_session),
) -> AlbumResponse:
    """Create an album."""
    album = await service.create_album(
        body.to_domain(AlbumId.generate()), body.track_entries()
    )
    await session.commit()
    return _album_to_response(album)


@router.put("/{album_id}", response_model=AlbumResponse)
async def update_album(
    album_id: str,
    body: AlbumRequest,
    _role: str = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
    session: AsyncSession = Depends(get_db_session),
) -> AlbumResponse:
    """Replace an album and its track listing."""
    target = AlbumId.from_string(album_id)
    album = await service.update_album(
        target, body.to_domain(target), body.track_entries()
    )
    await session.commit()
    return _album_to_response(album)


@router.delete("/{album_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_album(
    album_id: str,
    _role: str = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    """Delete an album (its tracks stay in the catalog)."""
    await service.delete_album(AlbumId.from_string(album_id))
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
