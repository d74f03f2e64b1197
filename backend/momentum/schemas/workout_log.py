from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Intensity(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class WorkoutLogBase(BaseModel):
    is_rest_day: bool = False
    workout_type: Optional[str] = None
    duration: Optional[int] = None  # minutes
    intensity: Optional[Intensity] = None
    notes: Optional[str] = None


class WorkoutLogCreate(WorkoutLogBase):
    """Schema for logging a workout.

    completed_at is an ISO-8601 string (UTC if no offset); omitted means now.
    Kept as a string so malformed values are reported as InvalidDate.
    """

    completed_at: Optional[str] = None


class WorkoutLogUpdate(BaseModel):
    """Schema for editing a log entry (all fields optional)."""

    completed_at: Optional[str] = None
    is_rest_day: Optional[bool] = None
    workout_type: Optional[str] = None
    duration: Optional[int] = None
    intensity: Optional[Intensity] = None
    notes: Optional[str] = None
    # Tolerate common extras a client might include
    id: Optional[int] = None
    user_id: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class WorkoutLogRead(WorkoutLogBase):
    id: int
    user_id: str
    completed_at: datetime
    log_date: date

    model_config = ConfigDict(from_attributes=True)
