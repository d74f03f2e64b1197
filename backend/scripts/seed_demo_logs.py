from datetime import datetime, time, timedelta, timezone
import random

from momentum.core.logger import logger
from momentum.core.time_utils import local_date, monday_of
from momentum.db import Base, SessionLocal, engine
from momentum.models.profile import Profile
from momentum.models.workout_log import WorkoutLog

DEMO_USER_ID = "demo-user"
WORKOUT_TYPES = ["strength", "cardio", "boxing", "yoga"]


def ensure_demo_profile(db, weekly_goal: int = 3) -> Profile:
    profile = db.query(Profile).filter(Profile.id == DEMO_USER_ID).first()
    if not profile:
        profile = Profile(
            id=DEMO_USER_ID, username="demo", weekly_goal=weekly_goal, timezone="UTC"
        )
        db.add(profile)
        db.commit()
        db.refresh(profile)
    return profile


def clear_demo_logs(db) -> None:
    """Delete the demo user's logs so we can reseed cleanly."""
    db.query(WorkoutLog).filter(WorkoutLog.user_id == DEMO_USER_ID).delete()
    db.commit()


def seed_demo_logs(db, weeks: int = 12) -> None:
    """Insert a block of demo weeks: Mon/Wed/Fri workouts, Sun rest day.

    Every fourth week drops the Friday workout so the streak breaks.
    """
    today = local_date(tz="UTC")
    start_monday = monday_of(today) - timedelta(weeks=weeks - 1)

    logs_to_add = []
    for week in range(weeks):
        monday = start_monday + timedelta(weeks=week)
        days = [(0, False), (2, False), (4, False), (6, True)]
        if week % 4 == 3:
            days = [(0, False), (2, False), (6, True)]

        for offset, is_rest_day in days:
            day = monday + timedelta(days=offset)
            # Skip future days
            if day > today:
                continue
            completed_at = datetime.combine(day, time(7, 30), tzinfo=timezone.utc)
            logs_to_add.append(
                WorkoutLog(
                    user_id=DEMO_USER_ID,
                    completed_at=completed_at,
                    log_date=day,
                    is_rest_day=is_rest_day,
                    workout_type=None if is_rest_day else random.choice(WORKOUT_TYPES),
                    duration=None if is_rest_day else random.choice([30, 45, 60]),
                    notes="seed",
                )
            )

    if logs_to_add:
        db.add_all(logs_to_add)
        db.commit()

    logger.info("Seeded {} demo workout logs", len(logs_to_add))


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        ensure_demo_profile(db)
        clear_demo_logs(db)
        seed_demo_logs(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
