"""News API endpoints."""

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from musiclt.api.dependencies import get_db_session, get_news_service, require_admin
from musiclt.application.services import NewsService
from musiclt.domain.entities import GalleryImage, News, NewsSong
from musiclt.domain.value_objects import AlbumId, ArtistId, NewsId

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/news", tags=["News"])


class GalleryImageSchema(BaseModel):
    """Gallery image of a news item."""

    url: str
    caption: str = ""


class NewsRequest(BaseModel):
    """Request body for creating or replacing a news item."""

    title: str = Field(..., min_length=1)
    slug: str | None = Field(None, description="Derived from the title if empty")
    body: str | None = None
    type: str = Field("news", description="News type slug")
    author: str | None = None
    source_url: str | None = None
    source_name: str | None = None
    is_featured: bool = False
    is_hidden_home: bool = False
    is_title_page: bool = False
    artist_id: str | None = None
    artist_id2: str | None = None
    album_id: str | None = None
    image_small_url: str | None = None
    image_title_url: str | None = None
    gallery: list[GalleryImageSchema] = Field(default_factory=list)
    published_at: datetime | None = Field(None, description="Defaults to now")

    def to_domain(self, news_id: NewsId) -> News:
        """Build a News entity."""
        news = News(
            id=news_id,
            title=self.title.strip(),
            slug=(self.slug or "").strip(),
            body=self.body,
            type=self.type,
            author=self.author,
            source_url=self.source_url,
            source_name=self.source_name,
            is_featured=self.is_featured,
            is_hidden_home=self.is_hidden_home,
            is_title_page=self.is_title_page,
            artist_id=ArtistId.from_string(self.artist_id) if self.artist_id else None,
            artist_id2=(
                ArtistId.from_string(self.artist_id2) if self.artist_id2 else None
            ),
            album_id=AlbumId.from_string(self.album_id) if self.album_id else None,
            image_small_url=self.image_small_url,
            image_title_url=self.image_title_url,
            gallery=[
                GalleryImage(url=image.url, caption=image.caption)
                for image in self.gallery
            ],
        )
        if self.published_at is not None:
            news.published_at = self.published_at
        return news


class NewsResponse(BaseModel):
    """Response model for a news item."""

    id: str
    title: str
    slug: str
    body: str | None = None
    type: str
    author: str | None = None
    source_url: str | None = None
    source_name: str | None = None
    is_featured: bool = False
    is_hidden_home: bool = False
    is_title_page: bool = False
    artist_id: str | None = None
    artist_id2: str | None = None
    album_id: str | None = None
    image_small_url: str | None = None
    image_title_url: str | None = None
    gallery: list[GalleryImageSchema] = Field(default_factory=list)
    published_at: str
    created_at: str
    updated_at: str


class NewsListResponse(BaseModel):
    """Response model for listing news."""

    news: list[NewsResponse]
    total_count: int
    limit: int
    offset: int


class NewsSongSchema(BaseModel):
    """Song embedded in a news item."""

    track_id: str | None = None
    title: str = ""
    artist_name: str = ""
    youtube_url: str | None = None

    def to_domain(self) -> NewsSong:
        return NewsSong(
            title=self.title.strip(),
            artist_name=self.artist_name.strip(),
            track_id=self.track_id or None,
            youtube_url=self.youtube_url or None,
        )


class NewsSongsRequest(BaseModel):
    """Full replacement of a news item's songs; list order is display order."""

    songs: list[NewsSongSchema] = Field(default_factory=list)


class NewsSongsResponse(BaseModel):
    """Songs of a news item."""

    songs: list[NewsSongSchema]


def _news_to_response(news: News) -> NewsResponse:
    return NewsResponse(
        id=news.id.value,
        title=news.title,
        slug=news.slug,
        body=news.body,
        type=news.type,
        author=news.author,
        source_url=news.source_url,
        source_name=news.source_name,
        is_featured=news.is_featured,
        is_hidden_home=news.is_hidden_home,
        is_title_page=news.is_title_page,
        artist_id=news.artist_id.value if news.artist_id else None,
        artist_id2=news.artist_id2.value if news.artist_id2 else None,
        album_id=news.album_id.value if news.album_id else None,
        image_small_url=news.image_small_url,
        image_title_url=news.image_title_url,
        gallery=[
            GalleryImageSchema(url=image.url, caption=image.caption)
            for image in news.gallery
        ],
        published_at=news.published_at.isoformat(),
        created_at=news.created_at.isoformat(),
        updated_at=news.updated_at.isoformat(),
    )


def _songs_to_response(songs: list[NewsSong]) -> NewsSongsResponse:
    return NewsSongsResponse(
        songs=[
            NewsSongSchema(
                track_id=song.track_id,
                title=song.title,
                artist_name=song.artist_name,
                youtube_url=song.youtube_url,
            )
            for song in songs
        ]
    )


@router.get("", response_model=NewsListResponse)
async def list_news(
    limit: int = Query(20, ge=1, le=200),
    offset: int = Query(0, ge=0),
    search: str = Query("", description="Case-insensitive title filter"),
    news_type: str | None = Query(None, alias="type", description="Only this type"),
    service: NewsService = Depends(get_news_service),
) -> NewsListResponse:
    """List news, most recently published first."""
    items, total = await service.list_news(
        limit=limit, offset=offset, search=search, news_type=news_type or None
    )
    return NewsListResponse(
        news=[_news_to_response(news) for news in items],
        total_count=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{news_id}", response_model=NewsResponse)
async def get_news(
    news_id: str,
    service: NewsService = Depends(get_news_service),
) -> NewsResponse:
    """Get a single news item."""
    return _news_to_response(await service.get_news(NewsId.from_string(news_id)))


@router.post("", response_model=NewsResponse, status_code=status.HTTP_201_CREATED)
async def create_news(
    body: NewsRequest,
    _role: str = Depends(require_admin),
    service: NewsService = Depends(get_news_service),
    session: AsyncSession = Depends(get_db_session),
) -> NewsResponse:
    """Create a news item; a taken slug gets a numeric suffix."""
    news = await service.create_news(body.to_domain(NewsId.generate()))
    await session.commit()
    return _news_to_response(news)


@router.put("/{news_id}", response_model=NewsResponse)
async def update_news(
    news_id: str,
    body: NewsRequest,
    _role: str = Depends(require_admin),
    service: NewsService = Depends(get_news_service),
    session: AsyncSession = Depends(get_db_session),
) -> NewsResponse:
    """Replace a news item."""
    target = NewsId.from_string(news_id)
    news = await service.update_news(target, body.to_domain(target))
    await session.commit()
    return _news_to_response(news)


@router.delete("/{news_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_news(
    news_id: str,
    _role: str = Depends(require_admin),
    service: NewsService = Depends(get_news_service),
    session: AsyncSession = Depends(get_db_session),
) -> Response:
    """Delete a news item and its songs."""
    await service.delete_news(NewsId.from_string(news_id))
    await session.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{news_id}/songs", response_model=NewsSongsResponse)
async def get_news_songs(
    news_id: str,
    service: NewsService = Depends(get_news_service),
) -> NewsSongsResponse:
    """Songs embedded in a news item, in display order."""
    songs = await service.get_songs(NewsId.from_string(news_id))
    return _songs_to_response(songs)


@router.put("/{news_id}/songs", response_model=NewsSongsResponse)
async def replace_news_songs(
    news_id: str,
    body: NewsSongsRequest,
    _role: str = Depends(require_admin),
    service: NewsService = Depends(get_news_service),
    session: AsyncSession = Depends(get_db_session),
) -> NewsSongsResponse:
    """Replace the songs embedded in a news item."""
    songs = await service.replace_songs(
        NewsId.from_string(news_id), [song.to_domain() for song in body.songs]
    )
    await session.commit()
    return _songs_to_response(songs)
