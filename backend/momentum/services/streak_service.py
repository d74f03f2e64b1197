"""Applies streak decisions to the store.

``StreakService`` is the only writer of ``current_streak`` and
``is_week_complete``. Updates for one user are serialized with a single-flight
guard: a concurrent request fails with ConcurrentUpdateError, while a change
notification that arrives mid-update is queued and re-run on fresh reads
once the in-flight update finishes.
"""

import threading
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional, Sequence

from momentum.core.errors import (
    ConcurrentUpdateError,
    StreakWriteError,
    WeekCompleteWriteError,
)
from momentum.core.logger import logger
from momentum.core.streak import (
    LogLike,
    compute_display_streak,
    evaluate_week_rollover,
    is_current_week_complete,
)
from momentum.core.time_utils import InstantLike, TzLike, previous_week_window
from momentum.services.persistence import PersistenceAdapter


@dataclass(frozen=True)
class StreakUpdate:
    user_id: str
    new_streak: int
    should_reset: bool
    streak_changed: bool
    evaluated_week: date
    is_week_complete: bool

    @property
    def display_streak(self) -> int:
        return compute_display_streak(self.new_streak, self.is_week_complete)


class StreakService:
    def __init__(self, adapter: PersistenceAdapter) -> None:
        self._adapter = adapter
        self._guard = threading.Lock()
        self._in_flight: set[str] = set()
        self._pending: set[str] = set()

    # ---- single-flight guard ----

    def _acquire(self, user_id: str, *, queue: bool = False) -> None:
        with self._guard:
            if user_id in self._in_flight:
                if queue:
                    self._pending.add(user_id)
                raise ConcurrentUpdateError(user_id)
            self._in_flight.add(user_id)

    def _release_unless_pending(self, user_id: str) -> bool:
        """Release the user's slot; keep it and return False if a rerun is queued."""
        with self._guard:
            if user_id in self._pending:
                self._pending.discard(user_id)
                return False
            self._in_flight.discard(user_id)
            return True

    def _release(self, user_id: str) -> None:
        """Release the user's slot and drop any rerun queued against it."""
        with self._guard:
            self._pending.discard(user_id)
            self._in_flight.discard(user_id)

    def _exclusive(
        self,
        user_id: str,
        operation: Callable[[], StreakUpdate],
        *,
        queue: bool = False,
        today: Optional[InstantLike] = None,
    ) -> StreakUpdate:
        self._acquire(user_id, queue=queue)
        released = False
        try:
            result = operation()
            while not self._release_unless_pending(user_id):
                logger.info("Change for {} arrived during streak update, recomputing", user_id)
                try:
                    result = self._refresh_locked(user_id, today=today)
                except Exception:
                    # The caller's own update succeeded; report that one
                    logger.exception("Queued streak recompute for {} failed", user_id)
                    break
            else:
                released = True
            return result
        finally:
            if not released:
                self._release(user_id)

    # ---- public API ----

    def check_and_update_streak(
        self,
        user_id: str,
        logs: Sequence[LogLike],
        goal: Optional[int],
        current_streak: int,
        *,
        last_credited_week: Optional[date] = None,
        today: Optional[InstantLike] = None,
        tz: TzLike = None,
    ) -> StreakUpdate:
        """Roll the streak over for the previous week, then refresh this week's flag.

        The streak write is issued (only when the value changes) and finished
        before the week-complete write. A failure of either raises its own
        PersistenceError subclass.
        """
        return self._exclusive(
            user_id,
            lambda: self._apply(
                user_id,
                logs,
                goal,
                current_streak,
                last_credited_week=last_credited_week,
                today=today,
                tz=tz,
            ),
            today=today,
        )

    def refresh(self, user_id: str, *, today: Optional[InstantLike] = None) -> StreakUpdate:
        """Fetch the profile and recent logs, then run check_and_update_streak."""
        return self._exclusive(
            user_id, lambda: self._refresh_locked(user_id, today=today), today=today
        )

    def watch(self) -> None:
        """Recompute streaks whenever the adapter reports a change."""
        self._adapter.on_change(None, self.handle_change)

    def unwatch(self) -> None:
        self._adapter.off_change(None, self.handle_change)

    def handle_change(self, user_id: str) -> None:
        try:
            self._exclusive(
                user_id, lambda: self._refresh_locked(user_id), queue=True
            )
        except ConcurrentUpdateError:
            logger.debug("Streak update for {} in flight, rerun queued", user_id)

    # ---- internals (caller holds the user's slot) ----

    def _refresh_locked(
        self, user_id: str, *, today: Optional[InstantLike] = None
    ) -> StreakUpdate:
        profile = self._adapter.fetch_profile(user_id)
        # Rollover needs the previous week, completion needs the current one
        since, _ = previous_week_window(today, profile.timezone)
        logs = self._adapter.fetch_workout_logs(user_id, since=since)
        return self._apply(
            user_id,
            logs,
            profile.weekly_goal,
            profile.current_streak,
            last_credited_week=profile.last_credited_week,
            today=today,
            tz=profile.timezone,
        )

    def _apply(
        self,
        user_id: str,
        logs: Sequence[LogLike],
        goal: Optional[int],
        current_streak: int,
        *,
        last_credited_week: Optional[date],
        today: Optional[InstantLike],
        tz: TzLike,
    ) -> StreakUpdate:
        decision = evaluate_week_rollover(
            logs,
            goal,
            current_streak,
            today=today,
            tz=tz,
            last_credited_week=last_credited_week,
        )
        changed = decision.new_streak != current_streak

        if changed:
            credited_week = decision.week_start if decision.credited else None
            try:
                self._adapter.write_current_streak(
                    user_id, decision.new_streak, credited_week=credited_week
                )
            except StreakWriteError:
                logger.error("Streak write failed for {}", user_id)
                raise
            except Exception as e:
                logger.error("Streak write failed for {}: {}", user_id, e)
                raise StreakWriteError(f"Could not write streak for {user_id}: {e}") from e

            if decision.should_reset:
                logger.info(
                    "Reset streak for {}: week of {} incomplete (was {})",
                    user_id,
                    decision.week_start,
                    current_streak,
                )
            else:
                logger.info(
                    "Credited week of {} for {}: streak {} -> {}",
                    decision.week_start,
                    user_id,
                    current_streak,
                    decision.new_streak,
                )

        week_complete = is_current_week_complete(logs, goal, today=today, tz=tz)
        try:
            self._adapter.write_week_complete(user_id, week_complete)
        except WeekCompleteWriteError:
            logger.error("Week-complete write failed for {} (streak written: {})", user_id, changed)
            raise
        except Exception as e:
            logger.error("Week-complete write failed for {} (streak written: {}): {}", user_id, changed, e)
            raise WeekCompleteWriteError(
                f"Could not write week status for {user_id}: {e}"
            ) from e
        logger.debug("Week complete for {}: {}", user_id, week_complete)

        return StreakUpdate(
            user_id=user_id,
            new_streak=decision.new_streak,
            should_reset=decision.should_reset,
            streak_changed=changed,
            evaluated_week=decision.week_start,
            is_week_complete=week_complete,
        )
