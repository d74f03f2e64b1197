"""Local-timezone day and week boundaries.

All instants handled here are timezone-aware. The store keeps timestamps in
UTC; naive values are therefore read as UTC. Every function takes an optional
``tz`` which may be an IANA name, a ``tzinfo``, ``"local"`` for the system
zone, or ``None`` for the configured ``settings.timezone``.

Weeks start on Monday.
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from momentum.core.config import settings
from momentum.core.errors import InvalidDate, InvalidTimezone

TzLike = Union[str, tzinfo, None]
InstantLike = Union[datetime, str]

END_OF_DAY = time(23, 59, 59, 999000)


def resolve_tz(tz: TzLike = None) -> Optional[tzinfo]:
    """Resolve ``tz`` to a tzinfo.

    Returns None for the system zone ("local"); datetime.astimezone(None)
    and naive-local localization both understand that.
    """
    if tz is None:
        tz = settings.timezone
    if isinstance(tz, tzinfo):
        return tz
    name = tz.strip()
    if name in ("", "local"):
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTimezone(f"Unknown timezone: {tz!r}") from e


def parse_instant(value: InstantLike) -> datetime:
    """Return an aware datetime for a datetime or ISO-8601 string.

    Malformed input raises InvalidDate; it is never replaced by "now".
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        s = value.strip()
        if s == "":
            raise InvalidDate("Empty timestamp")
        try:
            dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
        except ValueError as e:
            raise InvalidDate(f"Invalid timestamp: {value!r}") from e
    else:
        raise InvalidDate(f"Unsupported timestamp type: {type(value).__name__}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_local_datetime(dt: InstantLike, tz: TzLike = None) -> datetime:
    """Convert an instant (UTC if naive) to the local or given timezone."""
    return parse_instant(dt).astimezone(resolve_tz(tz))


def _localize(naive: datetime, zone: Optional[tzinfo]) -> datetime:
    if zone is None:
        return naive.astimezone()
    return naive.replace(tzinfo=zone)


def _local_now_or(instant: Optional[InstantLike], zone: Optional[tzinfo]) -> datetime:
    if instant is None:
        return datetime.now(timezone.utc).astimezone(zone)
    return parse_instant(instant).astimezone(zone)


def local_date(instant: Optional[InstantLike] = None, tz: TzLike = None) -> date:
    """Calendar date of ``instant`` (default: now) in the local zone."""
    return _local_now_or(instant, resolve_tz(tz)).date()


def monday_of(d: date) -> date:
    # Monday = 0, Sunday = 6
    return d - timedelta(days=d.weekday())


def start_of_day(instant: Optional[InstantLike] = None, tz: TzLike = None) -> datetime:
    zone = resolve_tz(tz)
    day = _local_now_or(instant, zone).date()
    return _localize(datetime.combine(day, time.min), zone)


def end_of_day(instant: Optional[InstantLike] = None, tz: TzLike = None) -> datetime:
    zone = resolve_tz(tz)
    day = _local_now_or(instant, zone).date()
    return _localize(datetime.combine(day, END_OF_DAY), zone)


def week_window(monday: date, tz: TzLike = None) -> tuple[datetime, datetime]:
    """Return (Monday 00:00:00, Sunday 23:59:59.999) for the week of ``monday``."""
    zone = resolve_tz(tz)
    monday = monday_of(monday)
    start = _localize(datetime.combine(monday, time.min), zone)
    end = _localize(datetime.combine(monday + timedelta(days=6), END_OF_DAY), zone)
    return start, end


def start_of_week(instant: Optional[InstantLike] = None, tz: TzLike = None) -> datetime:
    """Monday 00:00 on or before ``instant``, local time."""
    return week_window(local_date(instant, tz), tz)[0]


def end_of_week(instant: Optional[InstantLike] = None, tz: TzLike = None) -> datetime:
    """Sunday 23:59:59.999 following ``start_of_week(instant)``."""
    return week_window(local_date(instant, tz), tz)[1]


def previous_week_window(
    today: Optional[InstantLike] = None, tz: TzLike = None
) -> tuple[datetime, datetime]:
    """Window of the week before the one containing ``today``."""
    this_monday = monday_of(local_date(today, tz))
    return week_window(this_monday - timedelta(weeks=1), tz)


def week_days(monday: date) -> list[date]:
    """The seven dates Monday..Sunday of the week starting at ``monday``."""
    monday = monday_of(monday)
    return [monday + timedelta(days=i) for i in range(7)]


def to_local_date_key(instant: InstantLike, tz: TzLike = None) -> str:
    """Format an instant as 'YYYY-MM-DD' in the local zone.

    Example: '2025-01-06T03:30:00Z' in America/New_York -> '2025-01-05'
    """
    return to_local_datetime(instant, tz).date().isoformat()
