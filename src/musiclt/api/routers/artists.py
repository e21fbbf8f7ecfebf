"""Artist management API endpoints.

Hey future me - every write here goes through ArtistService, never a repository. Saving one
artist can rewrite several others (the back-references on its groups, members and related
artists), and only the service does that atomically with conflict retries.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field, field_validator

from musiclt.api.dependencies import get_artist_service, require_admin
from musiclt.application.services import ArtistService
from musiclt.domain.entities import (
    Artist,
    ArtistBreak,
    ArtistKind,
    ArtistLink,
    ArtistPhoto,
    Gender,
)
from musiclt.domain.value_objects import ArtistId

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/artists", tags=["Artists"])


class ArtistLinkSchema(BaseModel):
    """One declared relation of an artist."""

    artist_id: str | None = Field(None, description="Counterpart artist ID")
    name: str = Field("", description="Counterpart display name (refreshed on save)")
    year_from: str = Field("", description="Start year, empty if unknown")
    year_to: str = Field("", description="End year, empty if still active")

    # The admin form sends years as numbers, strings or null depending on the widget
    @field_validator("year_from", "year_to", "name", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()

    def to_domain(self) -> ArtistLink:
        """Convert to a domain link; a missing id becomes "" and is dropped on save."""
        return ArtistLink(
            artist_id=(self.artist_id or "").strip(),
            name=self.name,
            year_from=self.year_from,
            year_to=self.year_to,
        )

    @classmethod
    def from_domain(cls, link: ArtistLink) -> "ArtistLinkSchema":
        """Build from a domain link."""
        return cls(
            artist_id=link.artist_id,
            name=link.name,
            year_from=link.year_from,
            year_to=link.year_to,
        )


class ArtistBreakSchema(BaseModel):
    """Hiatus in an artist's career; rows without a start year are ignored."""

    year_from: int | None = None
    year_to: int | None = Field(None, description="Empty while the break lasts")

    @field_validator("year_from", "year_to", mode="before")
    @classmethod
    def _blank_year(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ArtistPhotoSchema(BaseModel):
    """Gallery photo."""

    url: str = Field(..., min_length=1)
    caption: str = ""


class ArtistRequest(BaseModel):
    """Request body for creating or replacing an artist."""

    name: str = Field(..., min_length=1, description="Artist name")
    kind: ArtistKind = Field(ArtistKind.SOLO, description="solo or group")
    slug: str | None = Field(None, description="URL slug, derived from name if empty")
    country: str | None = None
    active_from: int | None = None
    active_until: int | None = None
    description: str | None = None
    spotify_id: str | None = None
    youtube_channel_id: str | None = None
    cover_image_url: str | None = None
    website: str | None = None
    is_verified: bool = False
    type_music: bool = True
    type_film: bool = False
    type_dance: bool = False
    type_books: bool = False
    gender: Gender | None = Field(None, description="male, female or empty")
    birth_date: str | None = Field(None, description="YYYY-MM-DD")
    death_date: str | None = Field(None, description="YYYY-MM-DD")
    subdomain: str | None = None
    breaks: list[ArtistBreakSchema] = Field(default_factory=list)
    photos: list[ArtistPhotoSchema] = Field(default_factory=list)
    genres: list[int] = Field(default_factory=list, description="Genre IDs")
    links: dict[str, str] = Field(
        default_factory=dict, description="Platform -> URL (facebook, spotify, ...)"
    )
    memberships: list[ArtistLinkSchema | None] = Field(
        default_factory=list, description="Groups a solo artist belongs to"
    )
    members: list[ArtistLinkSchema | None] = Field(
        default_factory=list, description="Solo artists in a group"
    )
    related: list[ArtistLinkSchema | None] = Field(
        default_factory=list, description="Related artists of any kind"
    )

    @field_validator("gender", "birth_date", "death_date", "subdomain", mode="before")
    @classmethod
    def _blank_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_domain(self, artist_id: ArtistId) -> Artist:
        """Build the edited Artist entity carrying its declared relations."""
        return Artist(
            id=artist_id,
            name=self.name.strip(),
            kind=self.kind,
            slug=self.slug or "",
            country=self.country,
            active_from=self.active_from,
            active_until=self.active_until,
            description=self.description,
            spotify_id=self.spotify_id,
            youtube_channel_id=self.youtube_channel_id,
            cover_image_url=self.cover_image_url,
            website=self.website,
            is_verified=self.is_verified,
            type_music=self.type_music,
            type_film=self.type_film,
            type_dance=self.type_dance,
            type_books=self.type_books,
            gender=self.gender,
            birth_date=self.birth_date,
            death_date=self.death_date,
            subdomain=self.subdomain,
            breaks=[
                ArtistBreak(year_from=item.year_from, year_to=item.year_to)
                for item in self.breaks
                if item.year_from is not None
            ],
            photos=[
                ArtistPhoto(url=item.url, caption=item.caption) for item in self.photos
            ],
            genres=list(self.genres),
            links=dict(self.links),
            memberships=_declared(self.memberships),
            members=_declared(self.members),
            related=_declared(self.related),
        )


def _declared(links: list[ArtistLinkSchema | None]) -> list[ArtistLink]:
    return [link.to_domain() for link in links if link is not None]


class ArtistResponse(BaseModel):
    """Response model for an artist."""

    id: str = Field(..., description="Artist ID")
    name: str = Field(..., description="Artist name")
    kind: str = Field(..., description="solo or group")
    slug: str = Field(..., description="URL slug")
    country: str | None = None
    active_from: int | None = None
    active_until: int | None = None
    description: str | None = None
    spotify_id: str | None = None
    youtube_channel_id: str | None = None
    cover_image_url: str | None = None
    website: str | None = None
    is_verified: bool = False
    type_music: bool = True
    type_film: bool = False
    type_dance: bool = False
    type_books: bool = False
    gender: str | None = None
    birth_date: str | None = None
    death_date: str | None = None
    subdomain: str | None = None
    breaks: list[ArtistBreakSchema] = Field(default_factory=list)
    photos: list[ArtistPhotoSchema] = Field(default_factory=list)
    genres: list[int] = Field(default_factory=list)
    links: dict[str, str] = Field(default_factory=dict)
    memberships: list[ArtistLinkSchema] = Field(default_factory=list)
    members: list[ArtistLinkSchema] = Field(default_factory=list)
    related: list[ArtistLinkSchema] = Field(default_factory=list)
    version: int = Field(..., description="Row version, bumps on every save")
    created_at: str = Field(..., description="ISO 8601 timestamp")
    updated_at: str = Field(..., description="ISO 8601 timestamp")


class ArtistListResponse(BaseModel):
    """Response model for listing artists."""

    artists: list[ArtistResponse] = Field(..., description="Page of artists")
    total_count: int = Field(..., description="Total number of matching artists")
    limit: int = Field(..., description="Pagination limit used")
    offset: int = Field(..., description="Pagination offset used")


class RelationViolationResponse(BaseModel):
    """One broken relation edge."""

    artist_id: str
    counterpart_id: str
    field: str
    reason: str


class RelationAuditResponse(BaseModel):
    """Result of a relation audit."""

    consistent: bool = Field(..., description="True when no violations were found")
    violations: list[RelationViolationResponse] = Field(default_factory=list)


def _artist_to_response(artist: Artist) -> ArtistResponse:
    """Convert domain Artist to ArtistResponse DTO."""
    return ArtistResponse(
        id=artist.id.value,
        name=artist.name,
        kind=artist.kind.value,
        slug=artist.slug,
        country=artist.country,
        active_from=artist.active_from,
        active_until=artist.active_until,
        description=artist.description,
        spotify_id=artist.spotify_id,
        youtube_channel_id=artist.youtube_channel_id,
        cover_image_url=artist.cover_image_url,
        website=artist.website,
        is_verified=artist.is_verified,
        type_music=artist.type_music,
        type_film=artist.type_film,
        type_dance=artist.type_dance,
        type_books=artist.type_books,
        gender=artist.gender.value if artist.gender else None,
        birth_date=artist.birth_date,
        death_date=artist.death_date,
        subdomain=artist.subdomain,
        breaks=[
            ArtistBreakSchema(year_from=item.year_from, year_to=item.year_to)
            for item in artist.breaks
        ],
        photos=[
            ArtistPhotoSchema(url=item.url, caption=item.caption) for item in artist.photos
        ],
        genres=artist.genres,
        links=artist.links,
        memberships=[ArtistLinkSchema.from_domain(link) for link in artist.memberships],
        members=[ArtistLinkSchema.from_domain(link) for link in artist.members],
        related=[ArtistLinkSchema.from_domain(link) for link in artist.related],
        version=artist.version,
        created_at=artist.created_at.isoformat(),
        updated_at=artist.updated_at.isoformat(),
    )


@router.get("", response_model=ArtistListResponse)
async def list_artists(
    limit: int = Query(50, ge=1, le=200, description="Page size"),
    offset: int = Query(0, ge=0, description="Items to skip"),
    search: str = Query("", description="Case-insensitive name filter"),
    service: ArtistService = Depends(get_artist_service),
) -> ArtistListResponse:
    """List artists ordered by name."""
    artists, total = await service.list_artists(limit=limit, offset=offset, search=search)
    return ArtistListResponse(
        artists=[_artist_to_response(artist) for artist in artists],
        total_count=total,
        limit=limit,
        offset=offset,
    )


# Declared before /{artist_id} so "relations" is never taken for an artist id
@router.get("/relations/audit", response_model=RelationAuditResponse)
async def audit_relations(
    _role: str = Depends(require_admin),
    service: ArtistService = Depends(get_artist_service),
) -> RelationAuditResponse:
    """Check that every relation is mirrored on its counterpart."""
    violations = await service.audit_relations()
    return RelationAuditResponse(
        consistent=not violations,
        violations=[
            RelationViolationResponse(**violation.to_dict()) for violation in violations
        ],
    )


@router.get("/{artist_id}", response_model=ArtistResponse)
async def get_artist(
    artist_id: str,
    service: ArtistService = Depends(get_artist_service),
) -> ArtistResponse:
    """Get a single artist with its relation lists."""
    artist = await service.get_artist(ArtistId.from_string(artist_id))
    return _artist_to_response(artist)


@router.post("", response_model=ArtistResponse, status_code=status.HTTP_201_CREATED)
async def create_artist(
    body: ArtistRequest,
    _role: str = Depends(require_admin),
    service: ArtistService = Depends(get_artist_service),
) -> ArtistResponse:
    """Create an artist; its groups/members/related get matching back-references."""
    artist = await service.create_artist(body.to_domain(ArtistId.generate()))
    return _artist_to_response(artist)


@router.put("/{artist_id}", response_model=ArtistResponse)
async def update_artist(
    artist_id: str,
    body: ArtistRequest,
    _role: str = Depends(require_admin),
    service: ArtistService = Depends(get_artist_service),
) -> ArtistResponse:
    """Replace an artist; counterparts are added, updated or pruned to match."""
    target = ArtistId.from_string(artist_id)
    artist = await service.update_artist(target, body.to_domain(target))
    return _artist_to_response(artist)


@router.delete("/{artist_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_artist(
    artist_id: str,
    _role: str = Depends(require_admin),
    service: ArtistService = Depends(get_artist_service),
) -> Response:
    """Delete an artist and remove it from every counterpart's relation lists."""
    await service.delete_artist(ArtistId.from_string(artist_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
