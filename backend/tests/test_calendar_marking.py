from datetime import date, timedelta

from momentum.core.calendar_marking import CalendarPalette, derive_calendar_marking
from momentum.core.streak import WorkoutLogEntry
from momentum.core.time_utils import parse_instant

PALETTE = CalendarPalette(
    streak_background="bg",
    streak_text="txt",
    active_dot="active",
    rest_dot="rest",
    error_dot="error",
)


def log(day: str, rest: bool = False, hour: str = "10:00:00") -> WorkoutLogEntry:
    return WorkoutLogEntry(completed_at=parse_instant(f"{day}T{hour}Z"), is_rest_day=rest)


def marking(logs, goal, complete, today, tz="UTC"):
    return derive_calendar_marking(
        logs, goal, complete, today=f"{today}T12:00:00Z", tz=tz, palette=PALETTE
    )


COMPLETED_WEEK = [log("2025-01-06"), log("2025-01-08"), log("2025-01-10")]


def test_empty_log_only_flags_today():
    assert marking([], 4, False, "2025-01-08") == {
        "2025-01-08": {"marked": True, "dotColor": "error"},
    }


def test_dots_for_workouts_and_rest_days():
    result = marking([log("2025-01-06"), log("2025-01-07", rest=True)], 3, False, "2025-01-07")
    assert result["2025-01-06"] == {"marked": True, "dotColor": "active"}
    assert result["2025-01-07"] == {"marked": True, "dotColor": "rest"}


def test_completed_past_week_is_drawn_as_period():
    result = marking(COMPLETED_WEEK, 3, False, "2025-01-15")

    monday = date(2025, 1, 6)
    for offset in range(7):
        key = (monday + timedelta(days=offset)).isoformat()
        assert result[key]["color"] == "bg"
        assert result[key]["textColor"] == "txt"

    assert result["2025-01-06"]["startingDay"] is True
    assert result["2025-01-12"]["endingDay"] is True
    for key in ["2025-01-07", "2025-01-08", "2025-01-09", "2025-01-10", "2025-01-11"]:
        assert "startingDay" not in result[key]
        assert "endingDay" not in result[key]

    # today is outside the period and has no log
    assert result["2025-01-15"] == {"marked": True, "dotColor": "error"}


def test_period_merges_with_dots():
    result = marking(COMPLETED_WEEK, 3, False, "2025-01-15")
    assert result["2025-01-08"] == {
        "marked": True,
        "dotColor": "active",
        "color": "bg",
        "textColor": "txt",
    }
    assert result["2025-01-06"]["dotColor"] == "active"
    assert result["2025-01-06"]["startingDay"] is True
    # Sunday had no log: background only
    assert "dotColor" not in result["2025-01-12"]


def test_incomplete_week_has_no_period():
    result = marking(COMPLETED_WEEK[:2], 3, False, "2025-01-15")
    assert all("color" not in directive for directive in result.values())


def test_current_week_needs_completion_flag():
    pending = marking(COMPLETED_WEEK, 3, False, "2025-01-10")
    assert "color" not in pending["2025-01-06"]

    complete = marking(COMPLETED_WEEK, 3, True, "2025-01-10")
    assert complete["2025-01-06"]["color"] == "bg"
    # today is logged, so no error dot
    assert complete["2025-01-10"]["dotColor"] == "active"


def test_today_inside_streak_week_is_not_flagged():
    result = marking(COMPLETED_WEEK, 3, True, "2025-01-11")
    assert result["2025-01-11"] == {"color": "bg", "textColor": "txt"}


def test_today_without_log_is_flagged_in_incomplete_week():
    result = marking([log("2025-01-06")], 3, False, "2025-01-08")
    assert result["2025-01-08"]["dotColor"] == "error"


def test_same_day_last_write_wins():
    result = marking([log("2025-01-06"), log("2025-01-06", rest=True, hour="18:00:00")], 3, False, "2025-01-06")
    assert result["2025-01-06"] == {"marked": True, "dotColor": "rest"}


def test_missing_goal_draws_no_period():
    result = marking(COMPLETED_WEEK, 0, True, "2025-01-15")
    assert all("color" not in directive for directive in result.values())


def test_output_is_independent_of_input_order():
    logs = COMPLETED_WEEK + [log("2025-01-14", rest=True)]
    forward = marking(logs, 3, False, "2025-01-15")
    backward = marking(list(reversed(logs)), 3, False, "2025-01-15")
    assert forward == backward
    assert list(forward) == sorted(forward)
    assert list(forward) == list(backward)


def test_day_keys_use_local_zone():
    # 03:00 UTC Monday is Sunday evening in New York
    result = marking([log("2025-01-13", hour="03:00:00")], 3, False, "2025-01-15", tz="America/New_York")
    assert result["2025-01-12"] == {"marked": True, "dotColor": "active"}
    assert "2025-01-13" not in result


def test_default_palette_comes_from_settings():
    from momentum.core.config import settings

    result = derive_calendar_marking([], 3, False, today="2025-01-08T12:00:00Z", tz="UTC")
    assert result["2025-01-08"]["dotColor"] == settings.error_dot_color
