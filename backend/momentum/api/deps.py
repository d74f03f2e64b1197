from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from momentum.db import get_db
from momentum.models.profile import Profile
from momentum.services.persistence import SqlAlchemyPersistence
from momentum.services.streak_service import StreakService


def get_persistence(request: Request) -> SqlAlchemyPersistence:
    return request.app.state.persistence


def get_streak_service(request: Request) -> StreakService:
    return request.app.state.streak_service


def get_profile_or_404(user_id: str, db: Session = Depends(get_db)) -> Profile:
    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile
