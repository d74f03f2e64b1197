"""Exceptions shared by the streak engine, the persistence layer and the API."""


class MomentumError(Exception):
    """Base class for all application errors."""


class InvalidDate(MomentumError, ValueError):
    """Raised when a timestamp cannot be parsed into an instant."""


class InvalidTimezone(InvalidDate):
    """Raised when a timezone name is not a known IANA zone."""


class InvalidGoal(MomentumError, ValueError):
    """Raised when a weekly goal is missing or outside the allowed range."""


class PersistenceError(MomentumError):
    """Raised when a read or write against the store fails."""

    def __init__(self, message: str, *, operation: str) -> None:
        super().__init__(message)
        self.operation = operation


class StreakWriteError(PersistenceError):
    """The current streak could not be written."""

    def __init__(self, message: str) -> None:
        super().__init__(message, operation="write_current_streak")


class WeekCompleteWriteError(PersistenceError):
    """The week-complete flag could not be written."""

    def __init__(self, message: str) -> None:
        super().__init__(message, operation="write_week_complete")


class ProfileNotFound(PersistenceError):
    def __init__(self, user_id: str) -> None:
        super().__init__(f"Profile {user_id} not found", operation="fetch_profile")
        self.user_id = user_id


class ConcurrentUpdateError(MomentumError):
    """Raised when a streak update for a user is already in flight."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"Streak update already in progress for {user_id}")
        self.user_id = user_id
