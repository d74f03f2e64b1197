from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from momentum.api.deps import get_profile_or_404, get_streak_service
from momentum.core.calendar_marking import derive_calendar_marking
from momentum.core.errors import ConcurrentUpdateError, PersistenceError, ProfileNotFound
from momentum.core.logger import logger
from momentum.core.streak import compute_display_streak, streak_history, weekly_progress
from momentum.core.time_utils import start_of_week
from momentum.db import get_db
from momentum.models.profile import Profile
from momentum.models.workout_log import WorkoutLog
from momentum.schemas.streak import (
    DayMarking,
    StreakHistoryRead,
    StreakStatus,
    StreakUpdateRead,
)
from momentum.services.streak_service import StreakService

router = APIRouter(prefix="/profiles/{user_id}", tags=["streaks"])


def _user_logs(db: Session, user_id: str) -> list[WorkoutLog]:
    return (
        db.query(WorkoutLog)
        .filter(WorkoutLog.user_id == user_id)
        .order_by(WorkoutLog.completed_at)
        .all()
    )


@router.get("/streak", response_model=StreakStatus)
def get_streak(
    user_id: str,
    profile: Profile = Depends(get_profile_or_404),
    db: Session = Depends(get_db),
):
    """Persisted streak plus the display bonus for a completed current week."""
    since = start_of_week(tz=profile.timezone)
    logs = [log for log in _user_logs(db, user_id) if log.log_date >= since.date()]
    current = profile.current_streak or 0
    return StreakStatus(
        user_id=user_id,
        weekly_goal=profile.weekly_goal,
        current_streak=current,
        longest_streak=profile.longest_streak or 0,
        display_streak=compute_display_streak(current, bool(profile.is_week_complete)),
        is_week_complete=bool(profile.is_week_complete),
        weekly_progress=weekly_progress(logs, profile.weekly_goal, tz=profile.timezone),
    )


@router.post("/streak/refresh", response_model=StreakUpdateRead)
def refresh_streak(
    user_id: str,
    service: StreakService = Depends(get_streak_service),
):
    """Run the week rollover and week-complete update now."""
    try:
        update = service.refresh(user_id)
    except ProfileNotFound:
        raise HTTPException(status_code=404, detail="Profile not found")
    except ConcurrentUpdateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except PersistenceError as e:
        logger.error("Streak refresh for {} failed in {}: {}", user_id, e.operation, e)
        raise HTTPException(status_code=503, detail=f"{e.operation} failed: {e}")
    return StreakUpdateRead.model_validate(update)


@router.get("/streak/history", response_model=StreakHistoryRead)
def get_streak_history(
    user_id: str,
    profile: Profile = Depends(get_profile_or_404),
    db: Session = Depends(get_db),
):
    history = streak_history(_user_logs(db, user_id), profile.weekly_goal, tz=profile.timezone)
    stored = profile.current_streak or 0
    return StreakHistoryRead(
        user_id=user_id,
        current=history.current,
        longest=history.longest,
        completed_weeks=list(history.completed_weeks),
        stored_streak=stored,
        in_sync=history.current == stored,
    )


@router.get(
    "/calendar",
    response_model=dict[str, DayMarking],
    response_model_exclude_none=True,
)
def get_calendar(
    user_id: str,
    profile: Profile = Depends(get_profile_or_404),
    db: Session = Depends(get_db),
):
    """Marking map for the calendar: workout dots, streak weeks, today's status."""
    return derive_calendar_marking(
        _user_logs(db, user_id),
        profile.weekly_goal,
        bool(profile.is_week_complete),
        tz=profile.timezone,
    )
