"""Track API endpoints."""

import logging

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from musiclt.api.dependencies import get_catalog_service, get_db_session, require_admin
from musiclt.application.services import CatalogService
from musiclt.domain.entities import Track, TrackType
from musiclt.domain.value_objects import ArtistId, TrackId

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tracks", tags=["Tracks"])


class TrackRequest(BaseModel):
    """Request body for creating or replacing a track."""

    title: str = Field(..., min_length=1)
    artist_id: str = Field(..., min_length=1)
    slug: str | None = None
    type: TrackType = TrackType.NORMAL
    release_date: str | None = Field(None, description="YYYY-MM-DD")
    is_single: bool = False
    video_url: str | None = None
    spotify_id: str | None = None
    lyrics: str | None = None
    description: str | None = None
    featuring: list[str] = Field(default_factory=list, description="Guest artist IDs")

    def to_domain(self, track_id: TrackId) -> Track:
        """Build a Track entity."""
        return Track(
            id=track_id,
            title=self.title.strip(),
            artist_id=ArtistId.from_string(self.artist_id),
            slug=self.slug or "",
            type=self.type,
            release_date=self.release_date,
            is_single=self.is_single,
            video_url=self.video_url,
            spotify_id=self.spotify_id,
            lyrics=self.lyrics,
            description=self.description,
            featuring=[artist_id.strip() for artist_id in self.featuring],
        )


class TrackResponse(BaseModel):
    """Response model for a track."""

    id: str
    title: str
    artist_id: str
    slug: str
    type: str
    release_date: str | None = None
    is_single: bool = False
    video_url: str | None = None
    spotify_id: str | None = None
    lyrics: str | None = None
    description: str | None = None
    featuring: list[str] = Field(default_factory=list)
    created_at: str
    updated_at: str


class TrackListResponse(BaseModel):
    """Response model for listing tracks."""

    tracks: list[TrackResponse]
    total_count: int
    limit: int
    offset: int


def _track_to_response(track: Track) -> TrackResponse:
    return TrackResponse(
        id=track.id.value,
        title=track.title,
        artist_id=track.artist_id.value,
        slug=track.slug,
        type=track.type.value,
        release_date=track.release_date,
        is_single=track.is_single,
        video_url=track.video_url,
        spotify_id=track.spotify_id,
        lyrics=track.lyrics,
        description=track.description,
        featuring=list(track.featuring),
        created_at=track.created_at.isoformat(),
        updated_at=track.updated_at.isoformat(),
    )


@router.get("", response_model=TrackListResponse)
async def list_tracks(
    artist_id: str | None = Query(None, description="Only tracks of this artist"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    search: str = Query("", description="Case-insensitive title filter"),
    service: CatalogService = Depends(get_catalog_service),
) -> TrackListResponse:
    """List tracks ordered by title."""
    tracks, total = await service.list_tracks(
        artist_id=ArtistId.from_string(artist_id) if artist_id else None,
        limit=limit,
        offset=offset,
        search=search,
    )
    return TrackListResponse(
        tracks=[_track_to_response(track) for track in tracks],
        total_count=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{track_id}", response_model=TrackResponse)
async def get_track(
    track_id: str,
    service: CatalogService = Depends(get_catalog_service),
) -> TrackResponse:
    """Get a single track."""
    track = await service.get_track(TrackId.from_string(track_id))
    return _track_to_response(track)


@router.post("", response_model=TrackResponse, status_code=status.HTTP_201_CREATED)
async def create_track(
    body: TrackRequest,
    _role: str = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
    session: AsyncSession = Depends(get_db_session),
) -> TrackResponse:
    """Create a track."""
    track = await service.create_track(body.to_domain(TrackId.generate()))
    await session.commit()
    return _track_to_response(track)


@router.put("/{track_id}", response_model=TrackResponse)
async def update_track(
    track_id: str,
    body: TrackRequest,
    _role: str = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
    session: AsyncSession = Depends(get_db_session),
) -> TrackResponse:
    """Replace a track."""
    target = TrackId.from_string(track_id)
    track = await service.update_track(target, body.to_domain(target))
    await session.commit()
    return _track_to_response(track)


@router.delete("/{track_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_track(
    track_id: str,
    _role: str = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    """Delete a track; it is removed from every album listing as well."""
    await service.delete_track(TrackId.from_string(track_id))
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
