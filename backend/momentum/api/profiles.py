from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

from momentum.api.deps import get_persistence, get_profile_or_404
from momentum.core.errors import InvalidGoal, InvalidTimezone
from momentum.core.streak import compute_display_streak, validate_weekly_goal
from momentum.core.time_utils import resolve_tz
from momentum.db import get_db
from momentum.models.profile import Profile
from momentum.schemas.profile import ProfileCreate, ProfileRead, WeeklyGoalUpdate
from momentum.services.persistence import SqlAlchemyPersistence


router = APIRouter(prefix="/profiles", tags=["profiles"])


def profile_to_read(profile: Profile) -> ProfileRead:
    return ProfileRead(
        id=profile.id,
        username=profile.username,
        weekly_goal=profile.weekly_goal,
        current_streak=profile.current_streak or 0,
        longest_streak=profile.longest_streak or 0,
        is_week_complete=bool(profile.is_week_complete),
        display_streak=compute_display_streak(
            profile.current_streak or 0, bool(profile.is_week_complete)
        ),
        last_credited_week=profile.last_credited_week,
        timezone=profile.timezone,
    )


@router.post("/", response_model=ProfileRead)
def create_profile(payload: ProfileCreate, db: Session = Depends(get_db)):
    if db.query(Profile).filter(Profile.id == payload.id).first():
        raise HTTPException(status_code=409, detail="Profile already exists")

    try:
        if payload.weekly_goal is not None:
            validate_weekly_goal(payload.weekly_goal)
        if payload.timezone:
            resolve_tz(payload.timezone)
    except (InvalidGoal, InvalidTimezone) as e:
        raise HTTPException(status_code=422, detail=str(e))

    profile = Profile(
        id=payload.id,
        username=payload.username,
        weekly_goal=payload.weekly_goal,
        timezone=payload.timezone or None,
        current_streak=0,
        longest_streak=0,
        is_week_complete=False,
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile_to_read(profile)


@router.get("/{user_id}", response_model=ProfileRead)
def get_profile(profile: Profile = Depends(get_profile_or_404)):
    return profile_to_read(profile)


@router.put("/{user_id}/goal", response_model=ProfileRead)
def update_weekly_goal(
    user_id: str,
    payload: WeeklyGoalUpdate,
    background_tasks: BackgroundTasks,
    profile: Profile = Depends(get_profile_or_404),
    db: Session = Depends(get_db),
    persistence: SqlAlchemyPersistence = Depends(get_persistence),
):
    """Change the weekly goal.

    Only future evaluations use the new goal; weeks already credited keep
    their credit. The current week's flag is recomputed in the background.
    """
    try:
        profile.weekly_goal = validate_weekly_goal(payload.weekly_goal)
    except InvalidGoal as e:
        raise HTTPException(status_code=422, detail=str(e))

    db.commit()
    db.refresh(profile)
    background_tasks.add_task(persistence.notify_change, user_id)
    return profile_to_read(profile)
