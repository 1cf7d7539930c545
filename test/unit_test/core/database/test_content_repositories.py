"""Unit tests for article, support, billing, booking, habit and static program repositories."""

from datetime import date, datetime, timedelta, timezone

import pytest

from fitcoach.core.database import utc_now
from fitcoach.core.database.entities.articles import Article
from fitcoach.core.database.entities.bookings import BookingRequest
from fitcoach.core.database.entities.habits import CustomHabit, HabitLog
from fitcoach.core.database.entities.static_program import StaticProgramDay, StaticStart, UserProgress
from fitcoach.core.database.entities.support import SupportConversation, SupportMessage
from fitcoach.core.database.repositories import (
    ArticleRepository,
    BookingRepository,
    HabitRepository,
    StaticProgramRepository,
    StripeEventRepository,
    SubscriberRepository,
    SupportRepository,
)

pytestmark = pytest.mark.asyncio


def article(slug, **fields):
    data = dict(slug=slug, title=slug.title(), summary="s", content="c", category="Liikumine", published=True)
    data.update(fields)
    return Article(**data)


class TestArticleRepository:
    async def test_get_by_slug_respects_published(self, db_session):
        repo = ArticleRepository(db_session)
        await repo.create(article("draft", published=False))

        assert await repo.get_by_slug("draft") is None
        assert (await repo.get_by_slug("draft", published_only=False)).slug == "draft"

    async def test_search(self, db_session):
        repo = ArticleRepository(db_session)
        await repo.create(article("sleep-basics", category="Magamine", tags=["sleep"], content="Melatonin"))
        await repo.create(article("desk-breaks", format="Steps", tags=["office", "sleep"]))
        await repo.create(article("hidden", published=False, tags=["sleep"]))

        assert [a.slug for a in await repo.search(category="Magamine")] == ["sleep-basics"]
        assert [a.slug for a in await repo.search(format="Steps")] == ["desk-breaks"]
        assert {a.slug for a in await repo.search(tag="sleep")} == {"sleep-basics", "desk-breaks"}
        assert [a.slug for a in await repo.search(query="melatonin")] == ["sleep-basics"]
        assert len(await repo.search(published_only=False)) == 3
        assert len(await repo.search(tag="sleep", limit=1)) == 1


class TestSupportRepository:
    async def test_messages_and_unread(self, db_session):
        repo = SupportRepository(db_session)
        conversation = await repo.create(SupportConversation(user_id="u1"))
        before = conversation.last_message_at

        await repo.add_message(
            conversation, SupportMessage(conversation_id=conversation.id, sender_id="u1", message="Hi")
        )
        await repo.add_message(
            conversation, SupportMessage(conversation_id=conversation.id, sender_id="u1", message="Hello?")
        )
        await repo.add_message(
            conversation,
            SupportMessage(conversation_id=conversation.id, sender_id="admin", message="Hey", is_admin=True),
        )

        assert [m.message for m in await repo.list_messages(conversation.id)] == ["Hi", "Hello?", "Hey"]
        assert conversation.last_message_at >= before
        assert await repo.unread_counts(from_admin=False) == {conversation.id: 2}
        assert await repo.mark_read(conversation.id, from_admin=False) == 2
        assert await repo.unread_counts(from_admin=False) == {}
        assert await repo.unread_counts(from_admin=True) == {conversation.id: 1}

    async def test_active_conversation(self, db_session):
        repo = SupportRepository(db_session)
        await repo.create(SupportConversation(user_id="u1", status="closed"))
        active = await repo.create(SupportConversation(user_id="u1"))

        assert (await repo.get_active_for_user("u1")).id == active.id
        assert len(await repo.list_for_user("u1")) == 2
        assert await repo.count_by_status("closed") == 1


class TestBillingRepositories:
    async def test_subscriber_upsert(self, db_session):
        repo = SubscriberRepository(db_session)
        await repo.upsert("u1", email="a@example.com", stripe_customer_id="cus_1")
        updated = await repo.upsert("u1", status="active")

        assert updated.stripe_customer_id == "cus_1"
        assert (await repo.get_by_customer("cus_1")).user_id == "u1"
        assert await repo.get_by_user("u2") is None

    async def test_event_ids_are_remembered(self, db_session):
        repo = StripeEventRepository(db_session)

        assert await repo.seen("evt_1") is False
        await repo.record("evt_1", "invoice.paid")
        assert await repo.seen("evt_1") is True


class TestBookingRepository:
    async def test_confirmed_between(self, db_session):
        repo = BookingRepository(db_session)
        slot = datetime(2024, 3, 13, 13, 0, tzinfo=timezone.utc)
        common = dict(user_id="u1", service_type="initial_assessment", client_name="Mari", client_email="m@x.ee")
        await repo.create(BookingRequest(status="confirmed", preferred_date=slot, **common))
        await repo.create(
            BookingRequest(status="pending", preferred_date=slot, stripe_payment_intent_id="pi_1", **common)
        )
        await repo.create(BookingRequest(status="confirmed", preferred_date=slot + timedelta(days=10), **common))

        found = await repo.list_confirmed_between(slot - timedelta(days=1), slot + timedelta(days=1))
        assert len(found) == 1
        assert (await repo.get_by_payment_intent("pi_1")).status == "pending"


class TestHabitRepository:
    async def test_active_habits_and_logs(self, db_session):
        repo = HabitRepository(db_session)
        water = await repo.create(CustomHabit(user_id="u1", title="Water"))
        await repo.create(CustomHabit(user_id="u1", title="Old", is_active=False))
        db_session.add(HabitLog(user_id="u1", habit_id=water.id, logged_on=date(2024, 3, 11)))
        await db_session.commit()

        ids = await repo.list_active_ids("u1")
        assert ids == [water.id]
        assert len(await repo.list_logs("u1", ids)) == 1
        assert await repo.list_logs("u1", []) == []


class TestStaticProgramRepository:
    async def test_progress_and_start(self, db_session):
        repo = StaticProgramRepository(db_session)
        day = StaticProgramDay(day=1, title="Day 1")
        db_session.add(day)
        await db_session.commit()

        await repo.create(UserProgress(user_id="u1", programday_id=day.id, day_key="2024-03-11"))
        await repo.create(
            UserProgress(user_id="u1", programday_id=day.id, day_key="2024-03-12", completed_at=utc_now())
        )
        await repo.save_start(StaticStart(user_id="u1", start_monday=date(2024, 3, 11)))

        assert (await repo.get_day(1)).title == "Day 1"
        assert await repo.get_day(2) is None
        assert (await repo.get_start("u1")).start_monday == date(2024, 3, 11)
        assert len(await repo.list_progress("u1")) == 2
        assert (await repo.get_progress_on("u1", "2024-03-12")) is not None
        assert await repo.get_progress_on("u1", "2024-03-13") is None
