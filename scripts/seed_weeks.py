#!/usr/bin/env python3
"""
Seed weeks of workout logs into the Momentum API.

Pattern per week (Mon–Sun), for a weekly goal of 3:
  - Mon: strength
  - Wed: cardio
  - Fri: strength
  - Sun: rest day

Weeks listed in --skip-weeks (0 = oldest) only get Mon and Wed, so the
goal is missed and the streak resets there.

Usage examples:
  - Against a local backend:
      python scripts/seed_weeks.py --base-url http://localhost:8000 --user-id demo
  - Eight weeks with a break in week 5:
      python scripts/seed_weeks.py --base-url http://localhost:8000 --user-id demo --weeks 8 --skip-weeks 5
"""

from __future__ import annotations

import argparse
import datetime as dt
import sys
from typing import List, Tuple

try:
    import requests  # type: ignore
except Exception as exc:  # pragma: no cover
    print("This script requires the 'requests' package.\nInstall with: pip install requests", file=sys.stderr)
    raise


FULL_WEEK: List[Tuple[int, str, bool]] = [
    (0, "strength", False),
    (2, "cardio", False),
    (4, "strength", False),
    (6, "rest", True),
]


def monday_of_week(d: dt.date) -> dt.date:
    return d - dt.timedelta(days=d.weekday())


def send_json(base_url: str, method: str, path: str, payload: dict) -> requests.Response:
    url = f"{base_url.rstrip('/')}/{path.lstrip('/')}"
    r = requests.request(method, url, json=payload, timeout=15)
    if r.status_code >= 300 and r.status_code != 409:
        raise RuntimeError(f"{path} -> HTTP {r.status_code}: {r.text}")
    return r


def ensure_profile(base_url: str, user_id: str, weekly_goal: int) -> None:
    send_json(
        base_url,
        "POST",
        "profiles/",
        {"id": user_id, "username": user_id, "weekly_goal": weekly_goal, "timezone": "UTC"},
    )
    send_json(base_url, "PUT", f"profiles/{user_id}/goal", {"weekly_goal": weekly_goal})


def seed_week(base_url: str, user_id: str, week_start: dt.date, complete: bool, today: dt.date) -> int:
    days = FULL_WEEK if complete else [d for d in FULL_WEEK if d[0] in (0, 2, 6)]
    created = 0
    for dow, workout_type, is_rest_day in days:
        day = week_start + dt.timedelta(days=dow)
        if day > today:
            continue
        payload = {
            "completed_at": f"{day.isoformat()}T07:30:00Z",
            "is_rest_day": is_rest_day,
            "workout_type": None if is_rest_day else workout_type,
            "duration": None if is_rest_day else 45,
            "notes": "seed",
        }
        r = send_json(base_url, "POST", f"profiles/{user_id}/workouts/", payload)
        if r.status_code < 300:
            created += 1
    return created


def main() -> None:
    ap = argparse.ArgumentParser(description="Seed weeks of workout logs for one user")
    ap.add_argument("--base-url", required=True, help="API base URL (e.g., http://localhost:8000)")
    ap.add_argument("--user-id", required=True, help="Profile id to seed (created if missing)")
    ap.add_argument("--weeks", type=int, default=8, help="Number of weeks ending with the current one")
    ap.add_argument("--goal", type=int, default=3, help="Weekly goal to set on the profile")
    ap.add_argument("--skip-weeks", type=int, nargs="*", default=[], help="Week indexes that miss the goal")
    args = ap.parse_args()

    base_url = args.base_url
    today = dt.datetime.now(dt.timezone.utc).date()
    this_monday = monday_of_week(today)

    ensure_profile(base_url, args.user_id, args.goal)

    # Generate week starts ending with current week
    week_starts = [this_monday - dt.timedelta(weeks=args.weeks - 1 - i) for i in range(args.weeks)]

    created = 0
    for i, ws in enumerate(week_starts):
        created += seed_week(base_url, args.user_id, ws, i not in args.skip_weeks, today)

    r = requests.post(f"{base_url.rstrip('/')}/profiles/{args.user_id}/streak/refresh", timeout=15)
    print(f"Seed complete: {created} logs over {args.weeks} weeks. Streak: {r.text}")


if __name__ == "__main__":
    main()
