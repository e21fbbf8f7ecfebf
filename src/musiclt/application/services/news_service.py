"""News service: articles, their embedded songs and categories."""

import logging
from collections.abc import Sequence
from dataclasses import replace
from datetime import UTC, datetime

from musiclt.domain.entities import News, NewsSong, NewsType
from musiclt.domain.exceptions import EntityNotFoundException, ValidationException
from musiclt.domain.ports import (
    IAlbumRepository,
    IArtistStore,
    INewsRepository,
    INewsTypeRepository,
    ITrackRepository,
)
from musiclt.domain.value_objects import NewsId, slugify

logger = logging.getLogger(__name__)

# Gives up on suffixing after this many taken slugs, the id is used instead
MAX_SLUG_SUFFIX = 100


class NewsService:
    """CRUD for news items with artist, album and track reference checks."""

    # Same deal as CatalogService: every repository shares the request session, the router
    # commits. News only points at the catalog, nothing points back, so no retries.
    def __init__(
        self,
        news_repository: INewsRepository,
        news_type_repository: INewsTypeRepository,
        artist_store: IArtistStore,
        album_repository: IAlbumRepository,
        track_repository: ITrackRepository,
    ) -> None:
        self.news_repository = news_repository
        self.news_type_repository = news_type_repository
        self.artist_store = artist_store
        self.album_repository = album_repository
        self.track_repository = track_repository

    async def _ensure_references(self, news: News) -> None:
        for artist_id in news.artist_ids:
            if await self.artist_store.get(artist_id) is None:
                raise EntityNotFoundException("Artist", artist_id.value)
        if news.album_id is not None:
            if await self.album_repository.get_by_id(news.album_id) is None:
                raise EntityNotFoundException("Album", news.album_id.value)

    # Hey future me - two articles with the same headline are common ("Naujas albumas!"),
    # so a taken slug gets -1, -2, ... appended instead of failing the save.
    async def _unique_slug(self, news: News, exclude_id: NewsId | None = None) -> str:
        base = news.slug or slugify(news.title, fallback=news.id.value)
        candidate = base
        for suffix in range(1, MAX_SLUG_SUFFIX + 1):
            if not await self.news_repository.slug_taken(candidate, exclude_id):
                return candidate
            candidate = f"{base}-{suffix}"
        return f"{base}-{news.id.value}"

    # =========================================================================
    # News
    # =========================================================================

    async def get_news(self, news_id: NewsId) -> News:
        """Get a news item by ID."""
        news = await self.news_repository.get_by_id(news_id)
        if news is None:
            raise EntityNotFoundException("News", news_id.value)
        return news

    async def list_news(
        self,
        limit: int = 20,
        offset: int = 0,
        search: str = "",
        news_type: str | None = None,
    ) -> tuple[list[News], int]:
        """List news, newest published first, with the total count."""
        items = await self.news_repository.list_page(
            limit=limit, offset=offset, search=search, news_type=news_type
        )
        total = await self.news_repository.count(search=search, news_type=news_type)
        return items, total

    async def create_news(self, news: News) -> News:
        """Create a news item.

        Raises:
            EntityNotFoundException: If a tagged artist or album does not exist
        """
        await self._ensure_references(news)
        created = replace(news, slug=await self._unique_slug(news))
        await self.news_repository.add(created)
        logger.info("Created news %s (%s)", created.id.value, created.slug)
        return created

    async def update_news(self, news_id: NewsId, news: News) -> News:
        """Replace a news item's data; its songs are left alone."""
        current = await self.get_news(news_id)
        await self._ensure_references(news)

        updated = replace(
            news,
            id=current.id,
            created_at=current.created_at,
            updated_at=datetime.now(UTC),
        )
        updated = replace(
            updated, slug=await self._unique_slug(updated, exclude_id=current.id)
        )
        await self.news_repository.update(updated)
        logger.info("Updated news %s", news_id.value)
        return updated

    async def delete_news(self, news_id: NewsId) -> None:
        """Delete a news item with its songs."""
        await self.news_repository.delete(news_id)
        logger.info("Deleted news %s", news_id.value)

    # =========================================================================
    # Songs
    # =========================================================================

    async def get_songs(self, news_id: NewsId) -> list[NewsSong]:
        """Get the songs embedded in a news item, in display order."""
        await self.get_news(news_id)
        return await self.news_repository.get_songs(news_id)

    async def replace_songs(
        self, news_id: NewsId, songs: Sequence[NewsSong]
    ) -> list[NewsSong]:
        """Replace the songs of a news item.

        Raises:
            EntityNotFoundException: If the news item does not exist
            ValidationException: If a song references an unknown track
        """
        await self.get_news(news_id)
        wanted = {song.track_id for song in songs if song.track_id}
        unknown = (
            wanted - await self.track_repository.existing_ids(wanted) if wanted else set()
        )
        if unknown:
            raise ValidationException(
                f"News songs reference unknown tracks: {', '.join(sorted(unknown))}"
            )
        await self.news_repository.replace_songs(news_id, songs)
        logger.debug("News %s now has %d songs", news_id.value, len(songs))
        return list(songs)

    # =========================================================================
    # Types
    # =========================================================================

    async def list_news_types(self) -> list[NewsType]:
        """List news categories."""
        return await self.news_type_repository.list_all()

    async def create_news_type(self, label: str) -> NewsType:
        """Create a news category; its slug comes from the label.

        Raises:
            ValidationException: If the label is blank or its slug is already taken
        """
        try:
            news_type = NewsType(label=label)
        except ValueError as e:
            raise ValidationException(str(e)) from e
        if await self.news_type_repository.get_by_slug(news_type.slug) is not None:
            raise ValidationException(f"News type '{news_type.slug}' already exists")
        await self.news_type_repository.add(news_type)
        logger.info("Created news type %s", news_type.slug)
        return news_type
