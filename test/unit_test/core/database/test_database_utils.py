"""Unit tests for engine helpers and the shared CRUD repository."""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest
from sqlmodel import select

from fitcoach.core.database import create_engine, utc_now
from fitcoach.core.database.entities.accounts import Profile
from fitcoach.core.database.repositories import ProfileRepository, QueryBuilder

pytestmark = pytest.mark.asyncio


class TestCreateEngine:
    @pytest.mark.parametrize(
        "url",
        [
            "postgres://u:p@db/fit",
            "postgresql://u:p@db/fit",
            "postgresql+psycopg://u:p@db/fit",
            "postgresql+asyncpg://u:p@db/fit",
        ],
    )
    async def test_postgres_urls_use_asyncpg(self, url):
        with patch("fitcoach.core.database.utils.create_async_engine") as factory:
            create_engine(url)

        assert factory.call_args.args[0] == "postgresql+asyncpg://u:p@db/fit"
        assert factory.call_args.kwargs["pool_pre_ping"] is True

    async def test_sqlite_url_is_untouched(self):
        with patch("fitcoach.core.database.utils.create_async_engine") as factory:
            create_engine("sqlite+aiosqlite:///:memory:", echo=True)

        assert factory.call_args.args[0] == "sqlite+aiosqlite:///:memory:"
        assert "pool_pre_ping" not in factory.call_args.kwargs


async def test_utc_now_is_aware_utc():
    assert utc_now().utcoffset() == timedelta(0)


class TestUTCDateTime:
    async def test_offset_values_come_back_as_utc(self, db_session):
        eet = timezone(timedelta(hours=2))
        db_session.add(Profile(id="u1", email="a@example.com", created_at=datetime(2024, 3, 13, 15, 0, tzinfo=eet)))
        await db_session.commit()
        db_session.expire_all()

        profile = (await db_session.execute(select(Profile))).scalars().one()

        assert profile.created_at == datetime(2024, 3, 13, 13, 0, tzinfo=timezone.utc)
        assert profile.created_at.tzinfo == timezone.utc

    async def test_naive_values_are_taken_as_utc(self, db_session):
        db_session.add(Profile(id="u1", email="a@example.com", created_at=datetime(2024, 3, 13, 13, 0)))
        await db_session.commit()
        db_session.expire_all()

        profile = (await db_session.execute(select(Profile))).scalars().one()

        assert profile.created_at == datetime(2024, 3, 13, 13, 0, tzinfo=timezone.utc)


class TestSQLModelRepository:
    async def test_crud(self, db_session):
        repo = ProfileRepository(db_session)

        created = await repo.create(Profile(id="u1", email="a@example.com"))
        assert (await repo.get_by_id("u1")).email == "a@example.com"

        created.role = "admin"
        await repo.update(created)
        assert (await repo.get_by_id("u1")).role == "admin"

        assert await repo.delete("u1") is True
        assert await repo.delete("u1") is False
        assert await repo.get_by_id("u1") is None

    async def test_list_filters_and_paginates(self, db_session):
        repo = ProfileRepository(db_session)
        for i in range(5):
            await repo.create(Profile(id=f"u{i}", role="admin" if i % 2 else "user"))

        admins = await repo.list(filters={"role": "admin", "unknown": "x"})
        assert {p.id for p in admins} == {"u1", "u3"}
        assert len(await repo.list(limit=2, offset=1)) == 2
        assert len(await repo.list(filters={"role": None})) == 5

    async def test_query_builder_skips_none(self):
        stmt = QueryBuilder.apply_filters(select(Profile), Profile, {"email": None})
        assert stmt.whereclause is None
