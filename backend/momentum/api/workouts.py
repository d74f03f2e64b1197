from datetime import date, datetime, timezone
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from momentum.api.deps import get_persistence, get_profile_or_404
from momentum.core.errors import InvalidDate
from momentum.core.logger import logger
from momentum.core.time_utils import local_date, parse_instant
from momentum.db import get_db
from momentum.models.profile import Profile
from momentum.models.workout_log import WorkoutLog
from momentum.schemas.workout_log import (
    WorkoutLogCreate,
    WorkoutLogRead,
    WorkoutLogUpdate,
)
from momentum.services.persistence import SqlAlchemyPersistence

router = APIRouter(prefix="/profiles/{user_id}/workouts", tags=["workouts"])


def log_to_read(log: WorkoutLog) -> WorkoutLogRead:
    return WorkoutLogRead(
        id=log.id,
        user_id=log.user_id,
        # SQLite hands back naive values; they were written in UTC
        completed_at=parse_instant(log.completed_at),
        log_date=log.log_date,
        is_rest_day=bool(log.is_rest_day),
        workout_type=log.workout_type,
        duration=log.duration,
        intensity=log.intensity,
        notes=log.notes,
    )


def _parse_completed_at(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    try:
        return parse_instant(value).astimezone(timezone.utc)
    except InvalidDate as e:
        raise HTTPException(status_code=422, detail=str(e))


def _ensure_day_is_free(
    db: Session, user_id: str, log_date: date, exclude_id: Optional[int] = None
) -> None:
    query = (
        db.query(WorkoutLog)
        .filter(WorkoutLog.user_id == user_id)
        .filter(WorkoutLog.log_date == log_date)
    )
    if exclude_id is not None:
        query = query.filter(WorkoutLog.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=409, detail=f"A workout is already logged for {log_date.isoformat()}"
        )


def _commit_or_conflict(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="A workout is already logged for that day")


@router.post("/", response_model=WorkoutLogRead)
def create_workout_log(
    user_id: str,
    payload: WorkoutLogCreate,
    background_tasks: BackgroundTasks,
    profile: Profile = Depends(get_profile_or_404),
    db: Session = Depends(get_db),
    persistence: SqlAlchemyPersistence = Depends(get_persistence),
):
    completed_at = _parse_completed_at(payload.completed_at)
    log_date = local_date(completed_at, profile.timezone)
    _ensure_day_is_free(db, user_id, log_date)

    log = WorkoutLog(
        user_id=user_id,
        completed_at=completed_at,
        log_date=log_date,
        is_rest_day=payload.is_rest_day,
        workout_type=payload.workout_type,
        duration=payload.duration,
        intensity=payload.intensity.value if payload.intensity else None,
        notes=payload.notes,
    )
    db.add(log)
    _commit_or_conflict(db)
    db.refresh(log)

    logger.info(
        "Logged {} for {} on {}", "rest day" if log.is_rest_day else "workout", user_id, log_date
    )
    # Recompute the streak once the response is sent
    background_tasks.add_task(persistence.notify_change, user_id)
    return log_to_read(log)


@router.get("/", response_model=list[WorkoutLogRead])
def list_workout_logs(
    user_id: str,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    profile: Profile = Depends(get_profile_or_404),
    db: Session = Depends(get_db),
):
    """
    List a user's logs, optionally filtered by local day in [start_date, end_date].

      GET /profiles/u1/workouts?start_date=2025-01-06&end_date=2025-01-12
    """
    query = db.query(WorkoutLog).filter(WorkoutLog.user_id == user_id)
    if start_date is not None:
        query = query.filter(WorkoutLog.log_date >= start_date)
    if end_date is not None:
        query = query.filter(WorkoutLog.log_date <= end_date)

    # Most recent first
    logs = query.order_by(WorkoutLog.completed_at.desc()).all()
    return [log_to_read(log) for log in logs]


def _get_log_or_404(db: Session, user_id: str, log_id: int) -> WorkoutLog:
    log = (
        db.query(WorkoutLog)
        .filter(WorkoutLog.id == log_id)
        .filter(WorkoutLog.user_id == user_id)
        .first()
    )
    if not log:
        raise HTTPException(status_code=404, detail="Workout log not found")
    return log


@router.put("/{log_id}", response_model=WorkoutLogRead)
def update_workout_log(
    user_id: str,
    log_id: int,
    payload: WorkoutLogUpdate,
    background_tasks: BackgroundTasks,
    profile: Profile = Depends(get_profile_or_404),
    db: Session = Depends(get_db),
    persistence: SqlAlchemyPersistence = Depends(get_persistence),
):
    log = _get_log_or_404(db, user_id, log_id)

    update_data = payload.model_dump(exclude_unset=True)
    # Identity fields are never changed through an edit
    update_data.pop("id", None)
    update_data.pop("user_id", None)

    if "completed_at" in update_data:
        value = update_data.pop("completed_at")
        if value:
            completed_at = _parse_completed_at(value)
            log_date = local_date(completed_at, profile.timezone)
            _ensure_day_is_free(db, user_id, log_date, exclude_id=log.id)
            log.completed_at = completed_at
            log.log_date = log_date

    if update_data.get("intensity") is not None:
        update_data["intensity"] = update_data["intensity"].value
    if "is_rest_day" in update_data and update_data["is_rest_day"] is None:
        update_data.pop("is_rest_day")

    for key, value in update_data.items():
        setattr(log, key, value)

    _commit_or_conflict(db)
    db.refresh(log)

    background_tasks.add_task(persistence.notify_change, user_id)
    return log_to_read(log)


@router.delete("/{log_id}", status_code=204)
def delete_workout_log(
    user_id: str,
    log_id: int,
    background_tasks: BackgroundTasks,
    profile: Profile = Depends(get_profile_or_404),
    db: Session = Depends(get_db),
    persistence: SqlAlchemyPersistence = Depends(get_persistence),
):
    log = _get_log_or_404(db, user_id, log_id)
    db.delete(log)
    db.commit()
    background_tasks.add_task(persistence.notify_change, user_id)
