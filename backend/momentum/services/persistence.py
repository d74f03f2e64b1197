"""Storage collaborator for the streak engine.

``PersistenceAdapter`` is what the streak service depends on;
``SqlAlchemyPersistence`` implements it on the application database. Each
write runs in its own transaction, so a field is either fully written or left
at its last known good value.
"""

import threading
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from momentum.core.errors import (
    PersistenceError,
    ProfileNotFound,
    StreakWriteError,
    WeekCompleteWriteError,
)
from momentum.core.logger import logger
from momentum.core.streak import WorkoutLogEntry
from momentum.core.time_utils import parse_instant
from momentum.db import SessionLocal
from momentum.models.profile import Profile
from momentum.models.workout_log import WorkoutLog

ChangeCallback = Callable[[str], None]


@dataclass(frozen=True)
class ProfileSnapshot:
    weekly_goal: Optional[int]
    current_streak: int
    is_week_complete: bool
    longest_streak: int = 0
    last_credited_week: Optional[date] = None
    timezone: Optional[str] = None


class PersistenceAdapter(Protocol):
    def fetch_workout_logs(
        self, user_id: str, since: Optional[datetime] = None
    ) -> list[WorkoutLogEntry]: ...

    def fetch_profile(self, user_id: str) -> ProfileSnapshot: ...

    def write_current_streak(
        self, user_id: str, value: int, credited_week: Optional[date] = None
    ) -> None: ...

    def write_week_complete(self, user_id: str, value: bool) -> None: ...

    def on_change(self, user_id: Optional[str], callback: ChangeCallback) -> None: ...

    def off_change(self, user_id: Optional[str], callback: ChangeCallback) -> None: ...


class ChangeNotifier:
    """In-process change fan-out.

    Subscribers registered for ``None`` receive changes for every user.
    Delivery may repeat; subscribers must tolerate duplicates.
    """

    def __init__(self) -> None:
        self._subscribers: dict[Optional[str], list[ChangeCallback]] = defaultdict(list)
        self._subscribers_lock = threading.Lock()

    def on_change(self, user_id: Optional[str], callback: ChangeCallback) -> None:
        with self._subscribers_lock:
            self._subscribers[user_id].append(callback)

    def off_change(self, user_id: Optional[str], callback: ChangeCallback) -> None:
        with self._subscribers_lock:
            callbacks = self._subscribers.get(user_id, [])
            if callback in callbacks:
                callbacks.remove(callback)

    def notify_change(self, user_id: str) -> None:
        with self._subscribers_lock:
            callbacks = list(self._subscribers.get(user_id, [])) + list(
                self._subscribers.get(None, [])
            )
        logger.debug("Change for {} delivered to {} subscriber(s)", user_id, len(callbacks))
        for callback in callbacks:
            try:
                callback(user_id)
            except Exception:
                # keep delivering to the remaining subscribers
                logger.exception("Change subscriber {!r} failed for {}", callback, user_id)


class SqlAlchemyPersistence(ChangeNotifier):
    def __init__(self, session_factory: sessionmaker = SessionLocal) -> None:
        super().__init__()
        self._session_factory = session_factory

    @staticmethod
    def _get_profile(db: Session, user_id: str) -> Profile:
        profile = db.query(Profile).filter(Profile.id == user_id).first()
        if not profile:
            raise ProfileNotFound(user_id)
        return profile

    def fetch_workout_logs(
        self, user_id: str, since: Optional[datetime] = None
    ) -> list[WorkoutLogEntry]:
        with self._session_factory() as db:
            try:
                query = db.query(WorkoutLog).filter(WorkoutLog.user_id == user_id)
                if since is not None:
                    # completed_at is stored in UTC
                    query = query.filter(
                        WorkoutLog.completed_at >= parse_instant(since).astimezone(timezone.utc)
                    )
                rows = query.order_by(WorkoutLog.completed_at).all()
            except SQLAlchemyError as e:
                raise PersistenceError(str(e), operation="fetch_workout_logs") from e

            return [
                WorkoutLogEntry(
                    completed_at=parse_instant(row.completed_at),
                    is_rest_day=bool(row.is_rest_day),
                )
                for row in rows
            ]

    def fetch_profile(self, user_id: str) -> ProfileSnapshot:
        with self._session_factory() as db:
            try:
                profile = self._get_profile(db, user_id)
            except SQLAlchemyError as e:
                raise PersistenceError(str(e), operation="fetch_profile") from e

            return ProfileSnapshot(
                weekly_goal=profile.weekly_goal,
                current_streak=profile.current_streak or 0,
                is_week_complete=bool(profile.is_week_complete),
                longest_streak=profile.longest_streak or 0,
                last_credited_week=profile.last_credited_week,
                timezone=profile.timezone,
            )

    def write_current_streak(
        self, user_id: str, value: int, credited_week: Optional[date] = None
    ) -> None:
        with self._session_factory() as db:
            try:
                profile = self._get_profile(db, user_id)
                profile.current_streak = value
                profile.longest_streak = max(profile.longest_streak or 0, value)
                profile.last_credited_week = credited_week
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise StreakWriteError(str(e)) from e

    def write_week_complete(self, user_id: str, value: bool) -> None:
        with self._session_factory() as db:
            try:
                profile = self._get_profile(db, user_id)
                profile.is_week_complete = value
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise WeekCompleteWriteError(str(e)) from e
