from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StreakStatus(BaseModel):
    user_id: str
    weekly_goal: Optional[int] = None
    current_streak: int
    longest_streak: int
    display_streak: int
    is_week_complete: bool
    weekly_progress: float  # 0.0 .. 1.0


class StreakUpdateRead(BaseModel):
    user_id: str
    new_streak: int
    should_reset: bool
    streak_changed: bool
    evaluated_week: date
    is_week_complete: bool
    display_streak: int

    model_config = ConfigDict(from_attributes=True)


class DayMarking(BaseModel):
    """One calendar day directive, serialized with the widget's field names."""

    marked: Optional[bool] = None
    dot_color: Optional[str] = Field(default=None, alias="dotColor")
    starting_day: Optional[bool] = Field(default=None, alias="startingDay")
    ending_day: Optional[bool] = Field(default=None, alias="endingDay")
    color: Optional[str] = None
    text_color: Optional[str] = Field(default=None, alias="textColor")

    model_config = ConfigDict(populate_by_name=True)


class StreakHistoryRead(BaseModel):
    """Streaks recomputed from the raw log, for auditing the stored counter."""

    user_id: str
    current: int
    longest: int
    completed_weeks: list[date]
    stored_streak: int
    in_sync: bool
