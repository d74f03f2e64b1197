"""Week completion and streak computation.

Everything in this module is a pure function of its arguments. ``today``
defaults to the current instant, so callers that need repeatable results pass
it explicitly. Log entries are any objects with ``completed_at`` (datetime or
ISO string, UTC if naive) and ``is_rest_day`` attributes.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Protocol, Sequence, Union

from momentum.core.config import settings
from momentum.core.constants import MIN_WEEKLY_GOAL
from momentum.core.errors import InvalidGoal
from momentum.core.time_utils import (
    InstantLike,
    TzLike,
    end_of_week,
    local_date,
    monday_of,
    parse_instant,
    previous_week_window,
    start_of_week,
    to_local_date_key,
)


class LogLike(Protocol):
    completed_at: Union[datetime, str]
    is_rest_day: bool


@dataclass(frozen=True)
class WorkoutLogEntry:
    completed_at: datetime
    is_rest_day: bool = False


@dataclass(frozen=True)
class RolloverDecision:
    new_streak: int
    should_reset: bool
    # Monday of the evaluated (previous) week
    week_start: date
    # True when this evaluation increments the streak for week_start
    credited: bool = False


@dataclass(frozen=True)
class StreakHistory:
    current: int
    longest: int
    completed_weeks: tuple[date, ...]


def has_valid_goal(goal: Optional[int]) -> bool:
    return goal is not None and goal >= MIN_WEEKLY_GOAL


def validate_weekly_goal(goal: Optional[int]) -> int:
    """Return ``goal`` or raise InvalidGoal when it is outside 1..max."""
    if goal is None or not (MIN_WEEKLY_GOAL <= goal <= settings.max_weekly_goal):
        raise InvalidGoal(
            f"weekly_goal must be between {MIN_WEEKLY_GOAL} and {settings.max_weekly_goal}"
        )
    return goal


def count_workouts(logs: Iterable[LogLike], week_start: InstantLike, week_end: InstantLike) -> int:
    """Number of non-rest entries with week_start <= completed_at <= week_end.

    Entries are compared at millisecond precision, the resolution of the
    window bounds, so Sunday 23:59:59.9995 still falls inside its week.
    """
    start = parse_instant(week_start)
    end = parse_instant(week_end)
    return sum(
        1
        for log in logs
        if not log.is_rest_day and start <= _to_millis(parse_instant(log.completed_at)) <= end
    )


def _to_millis(instant: datetime) -> datetime:
    return instant.replace(microsecond=instant.microsecond - instant.microsecond % 1000)


def is_week_complete(
    logs: Iterable[LogLike],
    week_start: InstantLike,
    week_end: InstantLike,
    goal: Optional[int],
) -> bool:
    # A week can never be complete against a missing goal
    if not has_valid_goal(goal):
        return False
    return count_workouts(logs, week_start, week_end) >= goal


def is_current_week_complete(
    logs: Iterable[LogLike],
    goal: Optional[int],
    *,
    today: Optional[InstantLike] = None,
    tz: TzLike = None,
) -> bool:
    return is_week_complete(logs, start_of_week(today, tz), end_of_week(today, tz), goal)


def compute_display_streak(current_streak: int, is_current_week_complete: bool) -> int:
    return current_streak + (1 if is_current_week_complete else 0)


def evaluate_week_rollover(
    logs: Sequence[LogLike],
    goal: Optional[int],
    current_streak: int,
    *,
    today: Optional[InstantLike] = None,
    tz: TzLike = None,
    last_credited_week: Optional[date] = None,
) -> RolloverDecision:
    """Decide the persisted streak once the previous week is over.

    - previous week already credited (``last_credited_week``): unchanged,
      whatever its logs or the goal say now
    - previous week complete: streak + 1
    - previous week incomplete and streak > 0: reset to 0
    - otherwise: unchanged
    """
    start, end = previous_week_window(today, tz)
    week = start.date()

    if last_credited_week == week:
        return RolloverDecision(new_streak=current_streak, should_reset=False, week_start=week)

    if is_week_complete(logs, start, end, goal):
        return RolloverDecision(
            new_streak=current_streak + 1,
            should_reset=False,
            week_start=week,
            credited=True,
        )

    if current_streak > 0:
        return RolloverDecision(new_streak=0, should_reset=True, week_start=week)
    return RolloverDecision(new_streak=current_streak, should_reset=False, week_start=week)


def weekly_progress(
    logs: Iterable[LogLike],
    goal: Optional[int],
    *,
    today: Optional[InstantLike] = None,
    tz: TzLike = None,
) -> float:
    """Share of the weekly goal reached this week, capped at 1.0.

    Counts distinct local days with a non-rest workout.
    """
    if not has_valid_goal(goal):
        return 0.0
    start = start_of_week(today, tz)
    end = end_of_week(today, tz)
    days = {
        to_local_date_key(log.completed_at, tz)
        for log in logs
        if not log.is_rest_day and start <= parse_instant(log.completed_at) <= end
    }
    return min(len(days) / goal, 1.0)


def group_by_week(logs: Iterable[LogLike], tz: TzLike = None) -> dict[date, list]:
    """Group entries by the Monday of the local week containing them."""
    groups: dict[date, list] = defaultdict(list)
    for log in logs:
        groups[monday_of(local_date(log.completed_at, tz))].append(log)
    return dict(sorted(groups.items()))


def completed_weeks(logs: Iterable[LogLike], goal: Optional[int], tz: TzLike = None) -> list[date]:
    """Mondays of every week whose non-rest count meets ``goal``."""
    if not has_valid_goal(goal):
        return []
    return [
        monday
        for monday, entries in group_by_week(logs, tz).items()
        if sum(1 for e in entries if not e.is_rest_day) >= goal
    ]


def streak_history(
    logs: Iterable[LogLike],
    goal: Optional[int],
    *,
    today: Optional[InstantLike] = None,
    tz: TzLike = None,
) -> StreakHistory:
    """Recompute streaks from the raw log.

    ``current`` counts consecutive completed weeks ending with the week
    before today's; the in-progress week only shows up through the display
    bonus. ``longest`` includes the in-progress week when it is complete.
    """
    weeks = completed_weeks(logs, goal, tz)
    week_set = set(weeks)

    longest = 0
    run = 0
    previous = None
    for monday in weeks:
        run = run + 1 if previous is not None and monday - previous == timedelta(weeks=1) else 1
        longest = max(longest, run)
        previous = monday

    current = 0
    cursor = monday_of(local_date(today, tz)) - timedelta(weeks=1)
    while cursor in week_set:
        current += 1
        cursor -= timedelta(weeks=1)

    return StreakHistory(current=current, longest=longest, completed_weeks=tuple(weeks))
