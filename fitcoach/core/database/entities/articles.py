"""
Article entity models.

Articles ("reads") are short evidence-graded pieces in one of three formats.
Slugs are URL-safe kebab case and unique.
"""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Literal, Optional

from pydantic import field_validator
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from ..base import Base, UTCDateTime, utc_now

ARTICLE_CATEGORIES = (
    "Toitumine",
    "Liikumine",
    "Magamine",
    "Stress",
    "Tööergonoomika",
    "Kaelavalu",
    "Seljavalu",
    "Lihasmassi vähenemine",
)
ARTICLE_FORMATS = ("TLDR", "Steps", "MythFact")
EVIDENCE_LEVELS = ("kõrge", "keskmine", "madal")
SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
WORDS_PER_MINUTE = 200

ArticleFormat = Literal["TLDR", "Steps", "MythFact"]
EvidenceLevel = Literal["kõrge", "keskmine", "madal"]


def estimate_read_time(content: str) -> int:
    """Minutes to read ``content`` at 200 words per minute, at least 1."""
    words = len(content.split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def _check_slug(value: str) -> str:
    if not SLUG_PATTERN.match(value):
        raise ValueError("slug must be lowercase words separated by single hyphens")
    return value


def _check_category(value: str) -> str:
    if value not in ARTICLE_CATEGORIES:
        raise ValueError(f"category must be one of {', '.join(ARTICLE_CATEGORIES)}")
    return value


class ArticleBase(Base):
    slug: str = Field(index=True, unique=True)
    title: str
    summary: str
    content: str
    excerpt: Optional[str] = Field(default=None)
    category: str
    format: str = Field(default="TLDR")
    evidence_strength: str = Field(default="keskmine")
    read_time_minutes: int = Field(default=1)
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    featured_image_url: Optional[str] = Field(default=None)
    author: Optional[str] = Field(default=None)
    meta_description: Optional[str] = Field(default=None)
    published: bool = Field(default=False)


class Article(ArticleBase, table=True):
    """
    Table: articles
    """

    __tablename__ = "articles"
    __table_args__ = ({"extend_existing": True},)

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utc_now, index=True, sa_type=UTCDateTime)
    updated_at: datetime = Field(
        default_factory=utc_now, sa_column_kwargs={"onupdate": utc_now}, sa_type=UTCDateTime
    )


class ArticleRead(ArticleBase):
    id: int
    created_at: datetime
    updated_at: datetime


class ArticleCreate(SQLModel):
    """Admin payload for a new article; read time is estimated when omitted."""

    slug: str
    title: str = Field(min_length=1)
    summary: str = Field(min_length=1)
    content: str = Field(min_length=1)
    excerpt: Optional[str] = None
    category: str
    format: ArticleFormat = "TLDR"
    evidence_strength: EvidenceLevel = "keskmine"
    read_time_minutes: Optional[int] = Field(default=None, ge=1)
    tags: list[str] = Field(default_factory=list)
    featured_image_url: Optional[str] = None
    author: Optional[str] = None
    meta_description: Optional[str] = None
    published: bool = False

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, value: str) -> str:
        return _check_slug(value)

    @field_validator("category")
    @classmethod
    def validate_category(cls, value: str) -> str:
        return _check_category(value)


class ArticleUpdate(SQLModel):
    slug: Optional[str] = None
    title: Optional[str] = None
    summary: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    category: Optional[str] = None
    format: Optional[ArticleFormat] = None
    evidence_strength: Optional[EvidenceLevel] = None
    read_time_minutes: Optional[int] = Field(default=None, ge=1)
    tags: Optional[list[str]] = None
    featured_image_url: Optional[str] = None
    author: Optional[str] = None
    meta_description: Optional[str] = None
    published: Optional[bool] = None

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, value: Optional[str]) -> Optional[str]:
        return _check_slug(value) if value is not None else value

    @field_validator("category")
    @classmethod
    def validate_category(cls, value: Optional[str]) -> Optional[str]:
        return _check_category(value) if value is not None else value
