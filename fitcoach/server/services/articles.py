"""
Service for the public reads library and its admin editor.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fitcoach.core.database.base import utc_now
from fitcoach.core.database.entities.articles import Article, ArticleCreate, ArticleUpdate, estimate_read_time
from fitcoach.core.database.repositories import ArticleRepository
from fitcoach.core.errors import NotFoundError, ValidationFailedError

logger = logging.getLogger(__name__)


class ArticleService:
    """Reads listing, lookup by slug and admin CRUD."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.articles = ArticleRepository(session)

    async def list_published(
        self,
        *,
        category: Optional[str] = None,
        format: Optional[str] = None,
        tag: Optional[str] = None,
        query: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Article]:
        return await self.articles.search(
            published_only=True, category=category, format=format, tag=tag, query=query, limit=limit, offset=offset
        )

    async def list_all(self, limit: Optional[int] = None, offset: Optional[int] = None) -> List[Article]:
        return await self.articles.search(published_only=False, limit=limit, offset=offset)

    async def get_published(self, slug: str) -> Article:
        article = await self.articles.get_by_slug(slug, published_only=True)
        if article is None:
            raise NotFoundError(f"Article {slug} not found")
        return article

    async def _get(self, article_id: int) -> Article:
        article = await self.articles.get_by_id(article_id)
        if article is None:
            raise NotFoundError(f"Article {article_id} not found")
        return article

    async def _ensure_slug_free(self, slug: str, article_id: Optional[int] = None) -> None:
        existing = await self.articles.get_by_slug(slug, published_only=False)
        if existing is not None and existing.id != article_id:
            raise ValidationFailedError(f"Slug {slug} is already in use", status_code=409)

    async def create(self, payload: ArticleCreate) -> Article:
        """
        Create an article; the read time is estimated from the content when omitted.

        Raises:
            ValidationFailedError: The slug is taken.
        """
        await self._ensure_slug_free(payload.slug)
        data = payload.model_dump()
        if data.get("read_time_minutes") is None:
            data["read_time_minutes"] = estimate_read_time(payload.content)
        article = await self.articles.create(Article(**data))
        logger.info(f"Article {article.id} created with slug {article.slug}")
        return article

    async def update(self, article_id: int, payload: ArticleUpdate) -> Article:
        article = await self._get(article_id)
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("slug") and changes["slug"] != article.slug:
            await self._ensure_slug_free(changes["slug"], article.id)
        for key, value in changes.items():
            setattr(article, key, value)
        # New content without an explicit read time gets a fresh estimate.
        if "content" in changes and "read_time_minutes" not in changes:
            article.read_time_minutes = estimate_read_time(article.content)
        article.updated_at = utc_now()
        article = await self.articles.update(article)
        logger.info(f"Article {article.id} updated: {sorted(changes)}")
        return article

    async def delete(self, article_id: int) -> None:
        if not await self.articles.delete(article_id):
            raise NotFoundError(f"Article {article_id} not found")
        logger.info(f"Article {article_id} deleted")
