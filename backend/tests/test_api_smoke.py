import uuid
from datetime import datetime, timedelta, timezone


def get_client():
    # conftest points DATABASE_URL at in-memory sqlite before the app is imported
    from momentum.main import app  # noqa: WPS433
    from fastapi.testclient import TestClient  # noqa: WPS433
    return TestClient(app)


def create_profile(client, weekly_goal=1, tz="UTC"):
    user_id = f"user-{uuid.uuid4().hex[:8]}"
    r = client.post(
        "/profiles/",
        json={"id": user_id, "username": "tester", "weekly_goal": weekly_goal, "timezone": tz},
    )
    assert r.status_code == 200, r.text
    return user_id


def utc_today():
    return datetime.now(timezone.utc).date()


def test_root_ok():
    client = get_client()
    r = client.get("/")
    assert r.status_code == 200
    data = r.json()
    assert "message" in data


def test_create_and_read_profile():
    client = get_client()
    user_id = create_profile(client, weekly_goal=3)
    r = client.get(f"/profiles/{user_id}")
    assert r.status_code == 200
    profile = r.json()
    assert profile["weekly_goal"] == 3
    assert profile["current_streak"] == 0
    assert profile["display_streak"] == 0

    dup = client.post("/profiles/", json={"id": user_id})
    assert dup.status_code == 409


def test_profile_validation():
    client = get_client()
    bad_goal = client.post("/profiles/", json={"id": "bad-goal", "weekly_goal": 9})
    assert bad_goal.status_code == 422
    bad_tz = client.post("/profiles/", json={"id": "bad-tz", "timezone": "Not/AZone"})
    assert bad_tz.status_code == 422

    assert client.get("/profiles/nobody").status_code == 404
    assert client.get("/profiles/nobody/streak").status_code == 404
    assert client.post("/profiles/nobody/streak/refresh").status_code == 404


def test_update_goal():
    client = get_client()
    user_id = create_profile(client, weekly_goal=2)
    r = client.put(f"/profiles/{user_id}/goal", json={"weekly_goal": 4})
    assert r.status_code == 200
    assert r.json()["weekly_goal"] == 4

    for goal in (0, 8):
        bad = client.put(f"/profiles/{user_id}/goal", json={"weekly_goal": goal})
        assert bad.status_code == 422


def test_logging_a_workout_completes_the_week():
    client = get_client()
    user_id = create_profile(client, weekly_goal=1)

    r = client.post(f"/profiles/{user_id}/workouts/", json={"workout_type": "strength", "duration": 45})
    assert r.status_code == 200, r.text
    assert r.json()["log_date"] == utc_today().isoformat()

    # the background refresh has already run
    streak = client.get(f"/profiles/{user_id}/streak").json()
    assert streak["is_week_complete"] is True
    assert streak["display_streak"] == streak["current_streak"] + 1
    assert streak["weekly_progress"] == 1.0


def test_one_log_per_day():
    client = get_client()
    user_id = create_profile(client)
    first = client.post(f"/profiles/{user_id}/workouts/", json={})
    assert first.status_code == 200
    second = client.post(f"/profiles/{user_id}/workouts/", json={"is_rest_day": True})
    assert second.status_code == 409


def test_invalid_completed_at_is_rejected():
    client = get_client()
    user_id = create_profile(client)
    r = client.post(f"/profiles/{user_id}/workouts/", json={"completed_at": "yesterday-ish"})
    assert r.status_code == 422


def test_rest_day_does_not_complete_the_week():
    client = get_client()
    user_id = create_profile(client, weekly_goal=1)
    r = client.post(f"/profiles/{user_id}/workouts/", json={"is_rest_day": True})
    assert r.status_code == 200
    streak = client.get(f"/profiles/{user_id}/streak").json()
    assert streak["is_week_complete"] is False
    assert streak["weekly_progress"] == 0.0


def test_last_week_is_credited_once():
    client = get_client()
    user_id = create_profile(client, weekly_goal=1)
    last_week = datetime.now(timezone.utc) - timedelta(days=7)

    r = client.post(f"/profiles/{user_id}/workouts/", json={"completed_at": last_week.isoformat()})
    assert r.status_code == 200, r.text

    refreshed = client.post(f"/profiles/{user_id}/streak/refresh")
    assert refreshed.status_code == 200
    data = refreshed.json()
    assert data["new_streak"] == 1
    assert data["streak_changed"] is False  # credited by the background refresh

    profile = client.get(f"/profiles/{user_id}").json()
    assert profile["current_streak"] == 1
    assert profile["longest_streak"] == 1
    monday = utc_today() - timedelta(days=utc_today().weekday() + 7)
    assert profile["last_credited_week"] == monday.isoformat()

    history = client.get(f"/profiles/{user_id}/streak/history").json()
    assert history["current"] == 1
    assert history["in_sync"] is True


def test_list_update_and_delete_logs():
    client = get_client()
    user_id = create_profile(client, weekly_goal=2)
    yesterday = datetime.now(timezone.utc) - timedelta(days=1)

    a = client.post(f"/profiles/{user_id}/workouts/", json={}).json()
    b = client.post(f"/profiles/{user_id}/workouts/", json={"completed_at": yesterday.isoformat()}).json()

    logs = client.get(f"/profiles/{user_id}/workouts/").json()
    assert [l["id"] for l in logs] == [a["id"], b["id"]]  # most recent first

    filtered = client.get(
        f"/profiles/{user_id}/workouts/",
        params={"start_date": utc_today().isoformat(), "end_date": utc_today().isoformat()},
    ).json()
    assert [l["id"] for l in filtered] == [a["id"]]

    upd = client.put(f"/profiles/{user_id}/workouts/{b['id']}", json={"notes": "legs", "intensity": "high"})
    assert upd.status_code == 200, upd.text
    assert upd.json()["notes"] == "legs"
    assert upd.json()["intensity"] == "high"

    # moving b onto a's day collides
    clash = client.put(
        f"/profiles/{user_id}/workouts/{b['id']}",
        json={"completed_at": datetime.now(timezone.utc).isoformat()},
    )
    assert clash.status_code == 409

    assert client.delete(f"/profiles/{user_id}/workouts/{a['id']}").status_code == 204
    assert client.delete(f"/profiles/{user_id}/workouts/{a['id']}").status_code == 404
    remaining = client.get(f"/profiles/{user_id}/workouts/").json()
    assert [l["id"] for l in remaining] == [b["id"]]


def test_calendar_flags_today_until_logged():
    from momentum.core.config import settings

    client = get_client()
    user_id = create_profile(client, weekly_goal=4)
    today = utc_today().isoformat()

    empty = client.get(f"/profiles/{user_id}/calendar").json()
    assert empty == {today: {"marked": True, "dotColor": settings.error_dot_color}}

    client.post(f"/profiles/{user_id}/workouts/", json={})
    marked = client.get(f"/profiles/{user_id}/calendar").json()
    assert marked[today]["dotColor"] == settings.active_dot_color


def test_calendar_draws_completed_week():
    from momentum.core.config import settings

    client = get_client()
    user_id = create_profile(client, weekly_goal=1)
    last_week = utc_today() - timedelta(days=7)
    client.post(
        f"/profiles/{user_id}/workouts/",
        json={"completed_at": f"{last_week.isoformat()}T12:00:00Z"},
    )

    calendar = client.get(f"/profiles/{user_id}/calendar").json()
    monday = last_week - timedelta(days=last_week.weekday())
    sunday = monday + timedelta(days=6)
    assert calendar[monday.isoformat()]["startingDay"] is True
    assert calendar[sunday.isoformat()]["endingDay"] is True
    assert calendar[last_week.isoformat()]["color"] == settings.streak_background_color
    assert calendar[last_week.isoformat()]["dotColor"] == settings.active_dot_color


def test_refresh_reports_store_failure():
    from sqlalchemy.exc import OperationalError
    from sqlalchemy.orm import Session, sessionmaker

    from momentum.api.deps import get_streak_service
    from momentum.db import engine
    from momentum.main import app
    from momentum.services.persistence import SqlAlchemyPersistence
    from momentum.services.streak_service import StreakService

    class LockedSession(Session):
        def commit(self):
            raise OperationalError("UPDATE profiles", {}, Exception("database is locked"))

    client = get_client()
    user_id = create_profile(client, weekly_goal=1)
    locked = SqlAlchemyPersistence(sessionmaker(bind=engine, class_=LockedSession))
    app.dependency_overrides[get_streak_service] = lambda: StreakService(locked)
    try:
        r = client.post(f"/profiles/{user_id}/streak/refresh")
    finally:
        app.dependency_overrides.pop(get_streak_service, None)

    assert r.status_code == 503
    assert r.json()["detail"].startswith("write_week_complete failed:")
    assert client.get(f"/profiles/{user_id}").json()["is_week_complete"] is False
