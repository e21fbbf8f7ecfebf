"""News category endpoints."""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from musiclt.api.dependencies import get_db_session, get_news_service, require_admin
from musiclt.application.services import NewsService
from musiclt.domain.entities import NewsType

router = APIRouter(prefix="/news-types", tags=["News"])


class NewsTypeRequest(BaseModel):
    """Request body for a new category; the slug is derived from the label."""

    label: str


class NewsTypeResponse(BaseModel):
    """News category."""

    id: int
    label: str
    slug: str


def _to_response(news_type: NewsType) -> NewsTypeResponse:
    return NewsTypeResponse(
        id=news_type.id or 0, label=news_type.label, slug=news_type.slug
    )


@router.get("", response_model=list[NewsTypeResponse])
async def list_news_types(
    service: NewsService = Depends(get_news_service),
) -> list[NewsTypeResponse]:
    """List news categories ordered by label."""
    return [_to_response(news_type) for news_type in await service.list_news_types()]


@router.post("", response_model=NewsTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_news_type(
    body: NewsTypeRequest,
    _role: str = Depends(require_admin),
    service: NewsService = Depends(get_news_service),
    session: AsyncSession = Depends(get_db_session),
) -> NewsTypeResponse:
    """Create a news category."""
    news_type = await service.create_news_type(body.label)
    await session.commit()
    return _to_response(news_type)
