from sqlalchemy import Boolean, Column, Date, DateTime, Integer, String, false
from sqlalchemy.sql import func
from momentum.db import Base


class Profile(Base):
    __tablename__ = "profiles"

    # User id issued by the auth provider
    id = Column(String, primary_key=True, index=True)

    username = Column(String, nullable=True)

    # Non-rest workouts required per week (1..7); NULL until onboarding
    weekly_goal = Column(Integer, nullable=True)

    # Fully completed weeks already credited; never includes the current week
    current_streak = Column(Integer, nullable=False, default=0, server_default="0")
    longest_streak = Column(Integer, nullable=False, default=0, server_default="0")

    # Cached completion flag for the week containing today
    is_week_complete = Column(Boolean, nullable=False, default=False, server_default=false())

    # Monday of the last week that incremented current_streak
    last_credited_week = Column(Date, nullable=True)

    # IANA zone used to bucket workouts into days; NULL = settings.timezone
    timezone = Column(String, nullable=True)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
