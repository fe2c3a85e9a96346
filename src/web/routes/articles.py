"""
Public article routes. No identity header required.
"""
from typing import Optional

from fastapi import APIRouter, Query

from ..models import Article, ArticlePage
from ..services.article_service import get_article_service

router = APIRouter(prefix="/api/articles", tags=["articles"])


@router.get("", response_model=ArticlePage)
async def list_published(
    cursor: Optional[str] = None,
    num_items: int = Query(default=20, ge=1, le=100),
):
    return get_article_service().list_published(cursor, num_items)


@router.get("/{article_id}", response_model=Article)
async def get_article(article_id: str):
    return get_article_service().get_published_article(article_id)
