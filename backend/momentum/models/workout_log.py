from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    false,
)
from sqlalchemy.sql import func
from momentum.db import Base


class WorkoutLog(Base):
    __tablename__ = "workout_logs"
    __table_args__ = (
        # One entry per user per local calendar day
        UniqueConstraint("user_id", "log_date", name="uq_workout_logs_user_day"),
    )

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(
        String,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Stored in UTC; bucketed into days/weeks in the profile's timezone
    completed_at = Column(DateTime(timezone=True), nullable=False, index=True)

    # Local calendar day of completed_at, backs the one-per-day constraint
    log_date = Column(Date, nullable=False)

    # Rest days are shown on the calendar but never count toward the goal
    is_rest_day = Column(Boolean, nullable=False, default=False, server_default=false())

    workout_type = Column(String(30), nullable=True)  # strength, cardio, boxing, ...
    duration = Column(Integer, nullable=True)  # minutes
    intensity = Column(String(20), nullable=True)  # low, medium, high
    notes = Column(String, nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
