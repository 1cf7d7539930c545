"""
Article repositories.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.articles import Article
from .base import QueryBuilder, SQLModelRepository


class ArticleRepository(SQLModelRepository[Article]):
    """Repository for evidence-based reads."""

    order_by = "created_at"

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Article)

    async def get_by_slug(self, slug: str, published_only: bool = True) -> Optional[Article]:
        stmt = select(Article).where(Article.slug == slug)
        if published_only:
            stmt = stmt.where(Article.published == True)  # noqa: E712
        return await self.first(stmt)

    async def search(
        self,
        *,
        published_only: bool = True,
        category: Optional[str] = None,
        format: Optional[str] = None,
        tag: Optional[str] = None,
        query: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Article]:
        """Filter articles; ``tag`` is matched in Python since tags are stored as JSON."""
        stmt = select(Article).order_by(Article.created_at.desc())
        if published_only:
            stmt = stmt.where(Article.published == True)  # noqa: E712
        stmt = QueryBuilder.apply_filters(stmt, Article, {"category": category, "format": format})
        if query:
            pattern = f"%{query.strip()}%"
            stmt = stmt.where(
                or_(Article.title.ilike(pattern), Article.summary.ilike(pattern), Article.content.ilike(pattern))
            )
        if not tag:
            stmt = QueryBuilder.apply_pagination(stmt, limit, offset)
            return await self.scalars(stmt)
        matches = [a for a in await self.scalars(stmt) if tag in (a.tags or [])]
        start = offset or 0
        return matches[start : start + limit] if limit is not None else matches[start:]
