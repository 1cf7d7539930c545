"""
API endpoints for the reads library.

``router`` serves published articles to everyone; ``admin_router`` lets admins
write, publish and delete them.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query, Response, status

from fitcoach.core.database.entities.articles import ArticleCreate, ArticleFormat, ArticleRead, ArticleUpdate
from fitcoach.server.services.articles import ArticleService
from fitcoach.server.services.deps import AdminUserDep, SessionDep

router = APIRouter(tags=["reads"])
admin_router = APIRouter(tags=["admin-articles"])


@router.get(
    "",
    response_model=list[ArticleRead],
    summary="List Reads",
    description="Published articles, newest first, optionally filtered by category, tag, format or a search term.",
    response_description="A list of published articles.",
)
async def list_reads(
    session: SessionDep,
    category: Optional[str] = None,
    tag: Optional[str] = None,
    format: Optional[ArticleFormat] = None,
    q: Optional[str] = Query(None, description="Matched against title, summary and content."),
    limit: Optional[int] = Query(None, ge=1, le=100),
    offset: Optional[int] = Query(None, ge=0),
) -> list[ArticleRead]:
    articles = await ArticleService(session).list_published(
        category=category, format=format, tag=tag, query=q, limit=limit, offset=offset
    )
    return [ArticleRead.model_validate(a) for a in articles]


@router.get(
    "/{slug}",
    response_model=ArticleRead,
    summary="Get Read",
    description="A published article by its slug.",
    response_description="The article.",
    responses={404: {"description": "No published article with this slug"}},
)
async def get_read(slug: str, session: SessionDep) -> ArticleRead:
    return ArticleRead.model_validate(await ArticleService(session).get_published(slug))


@admin_router.get(
    "",
    response_model=list[ArticleRead],
    summary="List All Articles",
    description="Admin only. Every article including drafts.",
    response_description="A list of articles.",
)
async def admin_list_articles(
    admin: AdminUserDep,
    session: SessionDep,
    limit: Optional[int] = Query(None, ge=1, le=200),
    offset: Optional[int] = Query(None, ge=0),
) -> list[ArticleRead]:
    articles = await ArticleService(session).list_all(limit=limit, offset=offset)
    return [ArticleRead.model_validate(a) for a in articles]


@admin_router.post(
    "",
    response_model=ArticleRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Article",
    description="Admin only. Create an article; the read time is estimated from the content when omitted.",
    response_description="The created article.",
    responses={409: {"description": "Slug already in use"}, 422: {"description": "Invalid article fields"}},
)
async def create_article(payload: ArticleCreate, admin: AdminUserDep, session: SessionDep) -> ArticleRead:
    """
    Create an article.

    - **slug**: Lowercase words separated by single hyphens.
    - **category**: One of the fixed reads categories.
    - **format**: TLDR, Steps or MythFact.
    - **evidence_strength**: kõrge, keskmine or madal.
    """
    return ArticleRead.model_validate(await ArticleService(session).create(payload))


@admin_router.patch(
    "/{article_id}",
    response_model=ArticleRead,
    summary="Update Article",
    description="Admin only. Change some fields of an article.",
    response_description="The updated article.",
    responses={404: {"description": "Article not found"}, 409: {"description": "Slug already in use"}},
)
async def update_article(
    article_id: int, payload: ArticleUpdate, admin: AdminUserDep, session: SessionDep
) -> ArticleRead:
    return ArticleRead.model_validate(await ArticleService(session).update(article_id, payload))


@admin_router.delete(
    "/{article_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Article",
    description="Admin only. Delete an article permanently.",
    responses={404: {"description": "Article not found"}},
)
async def delete_article(article_id: int, admin: AdminUserDep, session: SessionDep) -> Response:
    await ArticleService(session).delete(article_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
