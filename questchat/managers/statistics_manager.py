"""Statistics Manager - Owns the per-day counter buckets.

Every raw fact the evaluators read (timers, ratings, hydration, screen
views, reminder acknowledgments, quest completions) is recorded here into
the bucket of its local calendar day. Buckets older than the configured
retention window are pruned, which bounds weekly aggregation to the
retained history.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const, data_builders as db
from ..utils.dt_utils import local_date, local_date_iso, retention_cutoff
from .base_manager import BaseManager

if TYPE_CHECKING:
    from datetime import datetime

    from ..engines.statistics_engine import StatisticsEngine
    from ..type_defs import DayBucket, QuestDefinition, TimerRecord


__all__ = ["StatisticsManager"]


class StatisticsManager(BaseManager):
    """Manager for activity counters.

    Responsibilities:
    - Record events into day buckets keyed by local ISO date
    - Answer hydration and day-metric questions for a given day
    - Prune buckets outside the retention window

    NOT responsible for:
    - Quest or achievement evaluation (QuestManager, AchievementManager)
    - XP grants (ProgressionManager via the coordinator)
    """

    @property
    def stats(self) -> StatisticsEngine:
        return self.coordinator.stats

    @property
    def days(self) -> dict[str, DayBucket]:
        return self._section(const.DATA_COUNTERS)[const.DATA_COUNTERS_DAYS]

    @property
    def default_hydration_goal(self) -> int:
        return self.coordinator.options[const.CONF_HYDRATION_GOAL_OUNCES]

    def setup(self) -> None:
        counters = self._section(const.DATA_COUNTERS)
        if not isinstance(counters.get(const.DATA_COUNTERS_DAYS), dict):
            counters[const.DATA_COUNTERS_DAYS] = {}
        for day_iso in list(self.days):
            if isinstance(self.days[day_iso], dict):
                self.stats.ensure_day(self.days, day_iso)
            else:
                del self.days[day_iso]

    def bucket(self, now: datetime) -> DayBucket:
        """Return today's bucket, creating it if needed."""
        return self.stats.ensure_day(self.days, local_date_iso(now, self.tz))

    # ────────────────────────────────────────────────────────────────
    # Recording
    # ────────────────────────────────────────────────────────────────

    def record_timer(
        self, category: str, duration_minutes: int, ended_at: datetime
    ) -> TimerRecord:
        """Record a finished timer on the local day it ended."""
        timer = db.build_timer_record(category, duration_minutes, ended_at, self.tz)
        self.stats.record_timer(self.bucket(ended_at), timer)
        const.LOGGER.debug(
            "Recorded %s min %s timer (ended hour %s)",
            duration_minutes,
            category,
            timer[const.DATA_TIMER_ENDED_HOUR],
        )
        return timer

    def record_checkin(self, kind: str, value: int, now: datetime) -> None:
        self.stats.record_checkin(self.bucket(now), kind, value)

    def record_hydration(
        self, ounces: int, goal_ounces: int | None, now: datetime
    ) -> int:
        """Add ounces to today's total. Returns the new total."""
        return self.stats.record_hydration(self.bucket(now), ounces, goal_ounces)

    def record_screen(self, screen: str, now: datetime) -> int:
        return self.stats.record_count(
            self.bucket(now), const.DATA_DAY_SCREENS, screen
        )

    def record_reminder_response(self, reminder_type: str, now: datetime) -> int:
        return self.stats.record_count(
            self.bucket(now), const.DATA_DAY_REMINDERS_RESPONDED, reminder_type
        )

    def record_quest_completion(
        self, definition: QuestDefinition, now: datetime
    ) -> None:
        completion = db.build_quest_completion(
            definition["id"],
            definition[const.DATA_QUEST_SCOPE],
            definition["difficulty"],
            now,
        )
        self.stats.record_quest_completion(self.bucket(now), completion)

    # ────────────────────────────────────────────────────────────────
    # Queries
    # ────────────────────────────────────────────────────────────────

    def hydration_status(self, now: datetime) -> tuple[int, int]:
        """Return (ounces today, goal in force today)."""
        bucket = self.days.get(local_date_iso(now, self.tz))
        ounces = bucket.get(const.DATA_DAY_HYDRATION_OUNCES, 0) if bucket else 0
        return ounces, self.stats.hydration_goal(bucket, self.default_hydration_goal)

    def day_metrics(self, now: datetime) -> set[str]:
        """Day metrics holding for the local day of `now`."""
        bucket = self.days.get(local_date_iso(now, self.tz))
        return self.stats.day_metrics(bucket, self.default_hydration_goal)

    def prune(self, now: datetime) -> int:
        """Drop buckets older than the retention window."""
        cutoff = retention_cutoff(
            local_date(now, self.tz),
            self.coordinator.options[const.CONF_COUNTER_RETENTION_DAYS],
        )
        return self.stats.prune_history(self.days, cutoff)

    def clear(self) -> None:
        self.coordinator.data[const.DATA_COUNTERS] = db.build_default_counters()
