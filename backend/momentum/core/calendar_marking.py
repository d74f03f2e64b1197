"""Calendar marking map for the mobile calendar widget.

Produces ``{'YYYY-MM-DD': directive}`` where a directive may carry a dot
(``marked``/``dotColor``) for a logged day, a period background
(``startingDay``/``endingDay``/``color``/``textColor``) for a completed streak
week, or both.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Optional

from momentum.core.config import settings
from momentum.core.constants import (
    DAYS_PER_WEEK,
    MARK_COLOR,
    MARK_DOT_COLOR,
    MARK_ENDING_DAY,
    MARK_MARKED,
    MARK_STARTING_DAY,
    MARK_TEXT_COLOR,
)
from momentum.core.streak import LogLike, group_by_week, has_valid_goal
from momentum.core.time_utils import (
    InstantLike,
    TzLike,
    local_date,
    monday_of,
    to_local_date_key,
    week_days,
)

Marking = dict[str, dict[str, Any]]


@dataclass(frozen=True)
class CalendarPalette:
    streak_background: str
    streak_text: str
    active_dot: str
    rest_dot: str
    error_dot: str

    @classmethod
    def from_settings(cls) -> "CalendarPalette":
        return cls(
            streak_background=settings.streak_background_color,
            streak_text=settings.streak_text_color,
            active_dot=settings.active_dot_color,
            rest_dot=settings.rest_dot_color,
            error_dot=settings.error_dot_color,
        )


def derive_calendar_marking(
    logs: Iterable[LogLike],
    goal: Optional[int],
    is_current_week_complete: bool,
    *,
    today: Optional[InstantLike] = None,
    tz: TzLike = None,
    palette: Optional[CalendarPalette] = None,
) -> Marking:
    """Build the marking map for ``logs``.

    A week is drawn as a streak period when its non-rest count meets the
    goal; the week containing today additionally requires
    ``is_current_week_complete``. Today gets an error dot if nothing else
    marks it.
    """
    palette = palette or CalendarPalette.from_settings()
    logs = list(logs)
    marked: Marking = {}

    # Step 1: one dot per logged day, last write wins
    for log in logs:
        key = to_local_date_key(log.completed_at, tz)
        marked[key] = {
            MARK_MARKED: True,
            MARK_DOT_COLOR: palette.rest_dot if log.is_rest_day else palette.active_dot,
        }

    # Step 2 + 3: period background for completed weeks, merged with dots
    today_date = local_date(today, tz)
    this_monday = monday_of(today_date)
    if has_valid_goal(goal):
        for monday, entries in group_by_week(logs, tz).items():
            workouts = sum(1 for e in entries if not e.is_rest_day)
            if workouts < goal:
                continue
            if monday == this_monday and not is_current_week_complete:
                continue

            for index, day in enumerate(week_days(monday)):
                key = day.isoformat()
                directive = dict(marked.get(key, {}))
                if index == 0:
                    directive[MARK_STARTING_DAY] = True
                elif index == DAYS_PER_WEEK - 1:
                    directive[MARK_ENDING_DAY] = True
                directive[MARK_COLOR] = palette.streak_background
                directive[MARK_TEXT_COLOR] = palette.streak_text
                marked[key] = directive

    # Step 4: flag today when nothing has been logged yet
    today_key = today_date.isoformat()
    if today_key not in marked:
        marked[today_key] = {MARK_MARKED: True, MARK_DOT_COLOR: palette.error_dot}

    return {key: marked[key] for key in sorted(marked)}
