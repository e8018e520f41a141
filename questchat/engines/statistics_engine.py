"""Statistics Engine - Per-day counter buckets, streaks and day metrics.

This engine centralizes the raw activity counters every evaluator reads:
- Timer sessions (category, minutes, local end hour)
- Ratings, hydration totals, screen views, reminder acknowledgments
- Quest completions (feeding meta quests such as "First Quest")
- Consecutive-day streak trackers
- Day metrics (boolean facts about a calendar day used by achievements)

Design Principles:
    - Stateless: No coordinator reference, operates on passed data structures
    - Consistent: Single source of truth for the day bucket layout
    - Bounded: Buckets older than the retention window are pruned
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

from .. import const
from ..utils.math_utils import calculate_percentage

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..type_defs import (
        DayBucket,
        QuestCompletionRecord,
        StreakTracker,
        TimerRecord,
    )


class StatisticsEngine:
    """Unified engine for per-day activity counters.

    All methods are stateless - they operate on data structures passed as
    arguments. The engine does NOT persist data; StatisticsManager owns the
    counters section and persistence happens in the coordinator.

    Example:
        stats = StatisticsEngine()

        bucket = stats.ensure_day(days, "2026-01-19")
        stats.record_timer(bucket, timer_record)
        stats.update_streak(tracker, date(2026, 1, 19))
        stats.prune_history(days, cutoff=date(2026, 1, 6))
    """

    # ────────────────────────────────────────────────────────────────
    # Day Buckets
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def empty_day() -> DayBucket:
        """Return an empty counter bucket for one calendar day."""
        return {
            const.DATA_DAY_TIMERS: [],
            const.DATA_DAY_FOCUS_MINUTES: 0,
            const.DATA_DAY_HYDRATION_OUNCES: 0,
            const.DATA_DAY_HYDRATION_GOAL_OUNCES: None,
            const.DATA_DAY_CHECKINS: {},
            const.DATA_DAY_SCREENS: {},
            const.DATA_DAY_REMINDERS_RESPONDED: {},
            const.DATA_DAY_QUEST_COMPLETIONS: [],
        }

    def ensure_day(self, days: dict[str, DayBucket], day_iso: str) -> DayBucket:
        """Return the bucket for `day_iso`, creating it if needed.

        Missing keys in an existing bucket (older snapshots) are filled in.
        """
        bucket = days.setdefault(day_iso, self.empty_day())
        for key, default in self.empty_day().items():
            bucket.setdefault(key, default)
        return bucket

    # ────────────────────────────────────────────────────────────────
    # Recording
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def record_timer(bucket: DayBucket, timer: TimerRecord) -> None:
        """Append a completed timer and update focus minutes."""
        bucket[const.DATA_DAY_TIMERS].append(timer)
        if timer[const.DATA_TIMER_CATEGORY] in const.FOCUS_TIMER_CATEGORIES:
            bucket[const.DATA_DAY_FOCUS_MINUTES] += timer[
                const.DATA_TIMER_DURATION_MINUTES
            ]

    @staticmethod
    def record_checkin(bucket: DayBucket, kind: str, value: int) -> None:
        """Store the latest rating of a kind for the day."""
        bucket[const.DATA_DAY_CHECKINS][kind] = value

    @staticmethod
    def record_hydration(
        bucket: DayBucket, ounces: int, goal_ounces: int | None
    ) -> int:
        """Add ounces to the day total and return the new total.

        A goal supplied with the log overrides the profile default for
        the rest of that day.
        """
        bucket[const.DATA_DAY_HYDRATION_OUNCES] += ounces
        if goal_ounces is not None:
            bucket[const.DATA_DAY_HYDRATION_GOAL_OUNCES] = goal_ounces
        return bucket[const.DATA_DAY_HYDRATION_OUNCES]

    @staticmethod
    def record_count(bucket: DayBucket, section: str, key: str) -> int:
        """Increment a keyed counter (screens, reminder responses)."""
        counters = bucket[section]
        counters[key] = counters.get(key, 0) + 1
        return counters[key]

    @staticmethod
    def record_quest_completion(
        bucket: DayBucket, completion: QuestCompletionRecord
    ) -> None:
        """Append a quest completion record."""
        bucket[const.DATA_DAY_QUEST_COMPLETIONS].append(completion)

    # ────────────────────────────────────────────────────────────────
    # Derived Values
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def hydration_goal(bucket: DayBucket | None, default_goal: int) -> int:
        """Return the goal in force for a day."""
        if bucket:
            goal = bucket.get(const.DATA_DAY_HYDRATION_GOAL_OUNCES)
            if goal is not None:
                return goal
        return default_goal

    @staticmethod
    def minutes_in_categories(
        bucket: DayBucket | None, categories: Iterable[str]
    ) -> int:
        """Sum timer minutes for the given categories."""
        if not bucket:
            return 0
        wanted = set(categories)
        return sum(
            timer[const.DATA_TIMER_DURATION_MINUTES]
            for timer in bucket.get(const.DATA_DAY_TIMERS, [])
            if timer[const.DATA_TIMER_CATEGORY] in wanted
        )

    def day_metrics(self, bucket: DayBucket | None, default_goal: int) -> set[str]:
        """Return the day metrics that hold for a bucket.

        Args:
            bucket: Counter bucket for one day (None means no activity)
            default_goal: Profile hydration goal in ounces

        Returns:
            Set of const.DAY_METRIC_* names.
        """
        if not bucket:
            return set()

        metrics: set[str] = set()
        checkins = bucket.get(const.DATA_DAY_CHECKINS, {})
        ounces = bucket.get(const.DATA_DAY_HYDRATION_OUNCES, 0)
        goal = self.hydration_goal(bucket, default_goal)

        if bucket.get(const.DATA_DAY_TIMERS) or checkins:
            metrics.add(const.DAY_METRIC_ACTIVITY)
        if bucket.get(const.DATA_DAY_FOCUS_MINUTES, 0) >= const.FOCUS_DAY_MINUTES:
            metrics.add(const.DAY_METRIC_FOCUS_60)
        if bucket.get(const.DATA_DAY_SCREENS, {}).get(const.SCREEN_QUESTS, 0) > 0:
            metrics.add(const.DAY_METRIC_QUESTS_OPENED)
        mood = checkins.get(const.RATING_KIND_MOOD)
        if mood is not None and mood >= const.RATING_POSITIVE_THRESHOLD:
            metrics.add(const.DAY_METRIC_MOOD_POSITIVE)
        if goal > 0 and ounces >= goal:
            metrics.add(const.DAY_METRIC_HYDRATION_GOAL)
        if (
            const.RATING_KIND_MOOD in checkins
            and const.RATING_KIND_SLEEP in checkins
            and calculate_percentage(ounces, goal)
            >= const.BALANCED_DAY_HYDRATION_PERCENT
        ):
            metrics.add(const.DAY_METRIC_BALANCED)

        for metric, categories in const.REALM_DAY_METRICS.items():
            if (
                self.minutes_in_categories(bucket, categories)
                >= const.REALM_SESSION_MINUTES
            ):
                metrics.add(metric)

        return metrics

    # ────────────────────────────────────────────────────────────────
    # Streak Management
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def empty_streak() -> StreakTracker:
        """Return a tracker that has never been marked."""
        return {
            const.DATA_STREAK_CURRENT: 0,
            const.DATA_STREAK_LONGEST: 0,
            const.DATA_STREAK_LAST_DATE: None,
        }  # type: ignore[return-value]

    def update_streak(self, tracker: StreakTracker, day: date) -> int:
        """Update and return the current streak value.

        Streak logic:
        - Same day as last mark: No change (already counted)
        - Day after last mark (yesterday): Increment streak
        - Earlier than last mark (clock moved backwards): No change
        - Any other case: Reset streak to 1

        This method mutates `tracker` in place.
        """
        current = tracker.get(const.DATA_STREAK_CURRENT, 0)
        last_iso = tracker.get(const.DATA_STREAK_LAST_DATE)
        last_day = date.fromisoformat(last_iso) if last_iso else None

        if last_day is not None and day <= last_day:
            return current

        if last_day is not None and day - last_day == timedelta(days=1):
            current += 1
        else:
            current = 1

        tracker[const.DATA_STREAK_CURRENT] = current
        tracker[const.DATA_STREAK_LONGEST] = max(
            tracker.get(const.DATA_STREAK_LONGEST, 0), current
        )
        tracker[const.DATA_STREAK_LAST_DATE] = day.isoformat()
        return current

    @staticmethod
    def live_streak(tracker: StreakTracker | None, today: date) -> int:
        """Return the streak still alive as of `today`.

        A streak last marked today or yesterday is alive; anything older
        has been broken even though the tracker has not been touched since.
        """
        if not tracker:
            return 0
        last_iso = tracker.get(const.DATA_STREAK_LAST_DATE)
        if not last_iso:
            return 0
        if today - date.fromisoformat(last_iso) > timedelta(days=1):
            return 0
        return tracker.get(const.DATA_STREAK_CURRENT, 0)

    # ────────────────────────────────────────────────────────────────
    # History Pruning
    # ────────────────────────────────────────────────────────────────

    @staticmethod
    def prune_history(days: dict[str, Any], cutoff: date) -> int:
        """Remove day buckets older than `cutoff`.

        This method mutates `days` in place. Unparseable keys are dropped.

        Returns:
            Number of buckets pruned.
        """
        cutoff_iso = cutoff.isoformat()
        stale = [
            key
            for key in days
            if not isinstance(key, str) or len(key) != 10 or key < cutoff_iso
        ]
        for key in stale:
            del days[key]
        if stale:
            const.LOGGER.debug("Pruned %s counter day buckets", len(stale))
        return len(stale)
