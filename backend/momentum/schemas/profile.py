from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ProfileCreate(BaseModel):
    id: str
    username: Optional[str] = None
    weekly_goal: Optional[int] = None  # 1..7, may be set later
    timezone: Optional[str] = None  # IANA name, e.g. "America/New_York"


class WeeklyGoalUpdate(BaseModel):
    weekly_goal: int


class ProfileRead(BaseModel):
    """Profile as shown in the app; display_streak is computed, never stored."""

    id: str
    username: Optional[str] = None
    weekly_goal: Optional[int] = None
    current_streak: int
    longest_streak: int
    is_week_complete: bool
    display_streak: int
    last_credited_week: Optional[date] = None
    timezone: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
