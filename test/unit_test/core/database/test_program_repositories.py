"""Unit tests for program, workout session and set log repositories."""

from datetime import timedelta

import pytest

from fitcoach.core.database import utc_now
from fitcoach.core.database.entities.programs import (
    ClientDayCreate,
    ClientItemCreate,
    ClientProgramCreate,
    SetLog,
    WorkoutSession,
)
from fitcoach.core.database.repositories import ProgramRepository, SetLogRepository, WorkoutSessionRepository

pytestmark = pytest.mark.asyncio


def program_payload(**overrides):
    data = dict(
        title="Strength block",
        assigned_to="u1",
        days=[
            ClientDayCreate(
                title="Upper",
                day_order=2,
                items=[
                    ClientItemCreate(exercise_name="Row", order_in_day=2),
                    ClientItemCreate(exercise_name="Bench press", order_in_day=1, weight_kg=60),
                ],
            ),
            ClientDayCreate(title="Lower", day_order=1, items=[ClientItemCreate(exercise_name="Squat")]),
        ],
    )
    data.update(overrides)
    return ClientProgramCreate(**data)


@pytest.fixture
def repo(db_session):
    return ProgramRepository(db_session)


class TestProgramRepository:
    async def test_create_with_days(self, repo):
        program = await repo.create_with_days(program_payload(), assigned_by="admin-1")

        assert program.assigned_by == "admin-1"
        days = await repo.get_days(program.id)
        assert [d.title for d in days] == ["Lower", "Upper"]

        items = await repo.get_items([d.id for d in days])
        assert [i.exercise_name for i in items[days[1].id]] == ["Bench press", "Row"]
        assert [i.exercise_name for i in await repo.list_items(program.id)] == ["Squat", "Bench press", "Row"]

    async def test_get_item_checks_program(self, repo):
        first = await repo.create_with_days(program_payload(), assigned_by=None)
        other = await repo.create_with_days(program_payload(assigned_to="u2"), assigned_by=None)
        item = (await repo.list_items(first.id))[0]

        assert (await repo.get_item(first.id, item.id)).exercise_name == "Squat"
        assert await repo.get_item(other.id, item.id) is None

    async def test_user_listing(self, repo):
        await repo.create_with_days(program_payload(title="Old"), assigned_by=None)
        await repo.create_with_days(program_payload(title="New"), assigned_by=None)

        assert len(await repo.list_for_user("u1")) == 2
        assert await repo.has_assigned("u1") is True
        assert await repo.has_assigned("u2") is False

    async def test_auto_progression_candidates(self, repo):
        await repo.create_with_days(program_payload(title="On"), assigned_by=None)
        await repo.create_with_days(program_payload(title="Off", auto_progression_enabled=False), assigned_by=None)
        await repo.create_with_days(program_payload(title="Done", status="completed"), assigned_by=None)
        await repo.create_with_days(program_payload(title="Paused", is_active=False), assigned_by=None)

        assert [p.title for p in await repo.list_auto_progression_candidates()] == ["On"]
        assert len(await repo.list_active()) == 3

    async def test_get_items_without_days(self, repo):
        assert await repo.get_items([]) == {}


class TestWorkoutRepositories:
    async def _program(self, db_session):
        repo = ProgramRepository(db_session)
        program = await repo.create_with_days(program_payload(), assigned_by=None)
        day = (await repo.get_days(program.id))[0]
        item = (await repo.get_items([day.id]))[day.id][0]
        return program, day, item

    async def test_open_and_finished_sessions(self, db_session):
        program, day, _ = await self._program(db_session)
        sessions = WorkoutSessionRepository(db_session)
        finished = await sessions.create(
            WorkoutSession(
                user_id="u1", client_program_id=program.id, client_day_id=day.id, ended_at=utc_now()
            )
        )
        open_one = await sessions.create(
            WorkoutSession(user_id="u1", client_program_id=program.id, client_day_id=day.id)
        )

        assert (await sessions.get_open("u1", day.id)).id == open_one.id
        assert await sessions.get_open("u2", day.id) is None
        assert [s.id for s in await sessions.list_finished_for_user("u1")] == [finished.id]
        assert await sessions.count_finished_for_program(program.id) == 1
        assert await sessions.count_since(utc_now() - timedelta(hours=1)) == 2

    async def test_set_logs(self, db_session):
        program, day, item = await self._program(db_session)
        workout = await WorkoutSessionRepository(db_session).create(
            WorkoutSession(user_id="u1", client_program_id=program.id, client_day_id=day.id)
        )
        logs = SetLogRepository(db_session)
        now = utc_now()
        await logs.create(
            SetLog(session_id=workout.id, user_id="u1", client_item_id=item.id, set_number=1, marked_done_at=now)
        )
        await logs.create(
            SetLog(
                session_id=workout.id,
                user_id="u1",
                client_item_id=item.id,
                set_number=2,
                marked_done_at=now - timedelta(days=30),
            )
        )

        assert [log.set_number for log in await logs.list_for_session(workout.id)] == [2, 1]
        assert (await logs.get_for_set(workout.id, item.id, 2)).set_number == 2
        assert await logs.get_for_set(workout.id, item.id, 3) is None
        recent = await logs.list_for_item_since(item.id, now - timedelta(days=7))
        assert [log.set_number for log in recent] == [1]
