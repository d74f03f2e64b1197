import uuid
from datetime import date, datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from momentum.core.errors import ProfileNotFound, StreakWriteError, WeekCompleteWriteError
from momentum.db import Base, SessionLocal, engine
from momentum.models.profile import Profile
from momentum.models.workout_log import WorkoutLog
from momentum.services.persistence import SqlAlchemyPersistence

# conftest points the engine at in-memory sqlite
Base.metadata.create_all(bind=engine)


class LockedSession(Session):
    """Session whose commits fail as if the database were locked."""

    def commit(self):
        raise OperationalError("UPDATE profiles", {}, Exception("database is locked"))


def locked_store() -> SqlAlchemyPersistence:
    return SqlAlchemyPersistence(
        sessionmaker(autocommit=False, autoflush=False, bind=engine, class_=LockedSession)
    )


def add_profile(streak=4, credited=None) -> str:
    user_id = f"user-{uuid.uuid4().hex[:8]}"
    with SessionLocal() as db:
        db.add(
            Profile(
                id=user_id,
                weekly_goal=3,
                current_streak=streak,
                longest_streak=streak,
                is_week_complete=False,
                last_credited_week=credited,
                timezone="UTC",
            )
        )
        db.commit()
    return user_id


def test_writes_update_the_profile():
    user_id = add_profile()
    store = SqlAlchemyPersistence(SessionLocal)

    store.write_current_streak(user_id, 5, credited_week=date(2025, 1, 6))
    store.write_week_complete(user_id, True)

    profile = store.fetch_profile(user_id)
    assert profile.current_streak == 5
    assert profile.longest_streak == 5
    assert profile.last_credited_week == date(2025, 1, 6)
    assert profile.is_week_complete is True


def test_failed_streak_write_keeps_last_known_value():
    user_id = add_profile(streak=4, credited=date(2024, 12, 30))

    with pytest.raises(StreakWriteError) as exc:
        locked_store().write_current_streak(user_id, 5, credited_week=date(2025, 1, 6))

    assert exc.value.operation == "write_current_streak"
    profile = SqlAlchemyPersistence(SessionLocal).fetch_profile(user_id)
    assert profile.current_streak == 4
    assert profile.longest_streak == 4
    assert profile.last_credited_week == date(2024, 12, 30)


def test_failed_week_write_keeps_last_known_value():
    user_id = add_profile()

    with pytest.raises(WeekCompleteWriteError) as exc:
        locked_store().write_week_complete(user_id, True)

    assert exc.value.operation == "write_week_complete"
    assert SqlAlchemyPersistence(SessionLocal).fetch_profile(user_id).is_week_complete is False


def test_missing_profile():
    store = SqlAlchemyPersistence(SessionLocal)
    with pytest.raises(ProfileNotFound) as exc:
        store.fetch_profile("nobody")
    assert exc.value.operation == "fetch_profile"


def test_fetch_workout_logs_since():
    user_id = add_profile()
    with SessionLocal() as db:
        for day, rest in ((5, False), (6, True), (8, False)):
            db.add(
                WorkoutLog(
                    user_id=user_id,
                    completed_at=datetime(2025, 1, day, 10, tzinfo=timezone.utc),
                    log_date=date(2025, 1, day),
                    is_rest_day=rest,
                )
            )
        db.commit()

    logs = SqlAlchemyPersistence(SessionLocal).fetch_workout_logs(
        user_id, since=datetime(2025, 1, 6, tzinfo=timezone.utc)
    )
    assert [(l.completed_at.day, l.is_rest_day) for l in logs] == [(6, True), (8, False)]
    assert all(l.completed_at.tzinfo is not None for l in logs)
