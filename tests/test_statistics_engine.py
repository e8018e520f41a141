"""Tests for StatisticsEngine.

Tests cover:
- Day buckets (creation, back-filling older buckets)
- Recording (timers, ratings, hydration, keyed counters)
- Day metrics (focus, realms, mood, hydration, balanced)
- Streak management (update, live value, clock going backwards)
- History pruning
"""

from __future__ import annotations

from datetime import date
from typing import Any

import pytest

from questchat import const
from questchat.engines.statistics_engine import StatisticsEngine


def _timer(category: str, minutes: int, hour: int = 10) -> dict[str, Any]:
    return {
        const.DATA_TIMER_CATEGORY: category,
        const.DATA_TIMER_DURATION_MINUTES: minutes,
        const.DATA_TIMER_ENDED_AT: "2026-01-19T16:00:00+00:00",
        const.DATA_TIMER_ENDED_HOUR: hour,
    }


# ============================================================================
# Day Buckets & Recording
# ============================================================================


class TestDayBuckets:
    """Tests for empty_day / ensure_day."""

    def test_ensure_day_creates_bucket(self, stats: StatisticsEngine) -> None:
        days: dict[str, Any] = {}
        bucket = stats.ensure_day(days, "2026-01-19")
        assert days["2026-01-19"] is bucket
        assert bucket == stats.empty_day()

    def test_ensure_day_backfills_missing_keys(self, stats: StatisticsEngine) -> None:
        """Older buckets gain keys added later without losing data."""
        days: dict[str, Any] = {"2026-01-19": {const.DATA_DAY_HYDRATION_OUNCES: 12}}
        bucket = stats.ensure_day(days, "2026-01-19")
        assert bucket[const.DATA_DAY_HYDRATION_OUNCES] == 12
        assert bucket[const.DATA_DAY_TIMERS] == []


class TestRecording:
    """Tests for the record_* helpers."""

    def test_focus_minutes_count_focus_categories_only(
        self, stats: StatisticsEngine
    ) -> None:
        bucket = stats.empty_day()
        stats.record_timer(bucket, _timer("work", 25))
        stats.record_timer(bucket, _timer("deep_focus", 40))
        stats.record_timer(bucket, _timer("chores", 30))
        assert bucket[const.DATA_DAY_FOCUS_MINUTES] == 65
        assert len(bucket[const.DATA_DAY_TIMERS]) == 3

    def test_latest_rating_wins(self, stats: StatisticsEngine) -> None:
        bucket = stats.empty_day()
        stats.record_checkin(bucket, "mood", 2)
        stats.record_checkin(bucket, "mood", 5)
        assert bucket[const.DATA_DAY_CHECKINS] == {"mood": 5}

    def test_hydration_totals_and_goal_override(self, stats: StatisticsEngine) -> None:
        bucket = stats.empty_day()
        assert stats.record_hydration(bucket, 16, None) == 16
        assert stats.hydration_goal(bucket, 64) == 64
        assert stats.record_hydration(bucket, 16, 40) == 32
        assert stats.hydration_goal(bucket, 64) == 40
        assert stats.hydration_goal(None, 64) == 64

    def test_record_count(self, stats: StatisticsEngine) -> None:
        bucket = stats.empty_day()
        stats.record_count(bucket, const.DATA_DAY_SCREENS, "quests")
        assert stats.record_count(bucket, const.DATA_DAY_SCREENS, "quests") == 2

    def test_minutes_in_categories(self, stats: StatisticsEngine) -> None:
        bucket = stats.empty_day()
        stats.record_timer(bucket, _timer("chores", 12))
        stats.record_timer(bucket, _timer("self_care", 8))
        stats.record_timer(bucket, _timer("gaming", 30))
        assert stats.minutes_in_categories(bucket, {"chores", "self_care"}) == 20
        assert stats.minutes_in_categories(None, {"chores"}) == 0


# ============================================================================
# Day Metrics
# ============================================================================


class TestDayMetrics:
    """Boolean facts about one calendar day."""

    def test_empty_bucket_has_no_metrics(self, stats: StatisticsEngine) -> None:
        assert stats.day_metrics(None, 64) == set()
        assert stats.day_metrics(stats.empty_day(), 64) == set()

    def test_focus_and_work_realm(self, stats: StatisticsEngine) -> None:
        bucket = stats.empty_day()
        stats.record_timer(bucket, _timer("work", 35))
        stats.record_timer(bucket, _timer("deep_focus", 25))
        metrics = stats.day_metrics(bucket, 64)
        assert const.DAY_METRIC_FOCUS_60 in metrics
        assert const.DAY_METRIC_REALM_WORK in metrics
        assert const.DAY_METRIC_ACTIVITY in metrics
        assert const.DAY_METRIC_REALM_HOME not in metrics

    def test_realms_sum_across_categories(self, stats: StatisticsEngine) -> None:
        """Health realm counts self_care, quick_break and move together."""
        bucket = stats.empty_day()
        stats.record_timer(bucket, _timer("self_care", 10))
        stats.record_timer(bucket, _timer("quick_break", 10))
        stats.record_timer(bucket, _timer("move", 10))
        assert const.DAY_METRIC_REALM_HEALTH in stats.day_metrics(bucket, 64)

    @pytest.mark.parametrize(("mood", "positive"), [(3, False), (4, True), (5, True)])
    def test_mood_positive(
        self, stats: StatisticsEngine, mood: int, positive: bool
    ) -> None:
        bucket = stats.empty_day()
        stats.record_checkin(bucket, "mood", mood)
        metrics = stats.day_metrics(bucket, 64)
        assert (const.DAY_METRIC_MOOD_POSITIVE in metrics) is positive

    def test_hydration_goal_metric(self, stats: StatisticsEngine) -> None:
        bucket = stats.empty_day()
        stats.record_hydration(bucket, 63, None)
        assert const.DAY_METRIC_HYDRATION_GOAL not in stats.day_metrics(bucket, 64)
        stats.record_hydration(bucket, 1, None)
        assert const.DAY_METRIC_HYDRATION_GOAL in stats.day_metrics(bucket, 64)
        assert const.DAY_METRIC_HYDRATION_GOAL not in stats.day_metrics(bucket, 0)

    def test_balanced_day(self, stats: StatisticsEngine) -> None:
        """Mood and sleep logged plus at least half the water goal."""
        bucket = stats.empty_day()
        stats.record_checkin(bucket, "mood", 2)
        stats.record_checkin(bucket, "sleep", 3)
        stats.record_hydration(bucket, 31, None)
        assert const.DAY_METRIC_BALANCED not in stats.day_metrics(bucket, 64)
        stats.record_hydration(bucket, 1, None)
        assert const.DAY_METRIC_BALANCED in stats.day_metrics(bucket, 64)

    def test_quests_opened(self, stats: StatisticsEngine) -> None:
        bucket = stats.empty_day()
        stats.record_count(bucket, const.DATA_DAY_SCREENS, "stats")
        assert const.DAY_METRIC_QUESTS_OPENED not in stats.day_metrics(bucket, 64)
        stats.record_count(bucket, const.DATA_DAY_SCREENS, "quests")
        assert const.DAY_METRIC_QUESTS_OPENED in stats.day_metrics(bucket, 64)


# ============================================================================
# Streaks
# ============================================================================


class TestStreaks:
    """Tests for update_streak / live_streak."""

    def test_consecutive_days_increment(self, stats: StatisticsEngine) -> None:
        tracker = stats.empty_streak()
        assert stats.update_streak(tracker, date(2026, 1, 19)) == 1
        assert stats.update_streak(tracker, date(2026, 1, 20)) == 2
        assert stats.update_streak(tracker, date(2026, 1, 21)) == 3
        assert tracker[const.DATA_STREAK_LONGEST] == 3

    def test_same_day_counts_once(self, stats: StatisticsEngine) -> None:
        tracker = stats.empty_streak()
        stats.update_streak(tracker, date(2026, 1, 19))
        assert stats.update_streak(tracker, date(2026, 1, 19)) == 1

    def test_gap_resets_but_longest_survives(self, stats: StatisticsEngine) -> None:
        tracker = stats.empty_streak()
        stats.update_streak(tracker, date(2026, 1, 19))
        stats.update_streak(tracker, date(2026, 1, 20))
        assert stats.update_streak(tracker, date(2026, 1, 23)) == 1
        assert tracker[const.DATA_STREAK_LONGEST] == 2

    def test_earlier_day_is_ignored(self, stats: StatisticsEngine) -> None:
        tracker = stats.empty_streak()
        stats.update_streak(tracker, date(2026, 1, 20))
        assert stats.update_streak(tracker, date(2026, 1, 19)) == 1
        assert tracker[const.DATA_STREAK_LAST_DATE] == "2026-01-20"

    def test_live_streak(self, stats: StatisticsEngine) -> None:
        tracker = stats.empty_streak()
        stats.update_streak(tracker, date(2026, 1, 19))
        stats.update_streak(tracker, date(2026, 1, 20))
        assert stats.live_streak(tracker, date(2026, 1, 20)) == 2
        assert stats.live_streak(tracker, date(2026, 1, 21)) == 2
        assert stats.live_streak(tracker, date(2026, 1, 22)) == 0
        assert stats.live_streak(None, date(2026, 1, 22)) == 0


# ============================================================================
# History Pruning
# ============================================================================


class TestPruneHistory:
    """Tests for prune_history."""

    def test_prunes_older_than_cutoff(self, stats: StatisticsEngine) -> None:
        days: dict[str, Any] = {
            "2026-01-05": {},
            "2026-01-06": {},
            "2026-01-19": {},
            "garbage": {},
        }
        removed = stats.prune_history(days, date(2026, 1, 6))
        assert removed == 2
        assert sorted(days) == ["2026-01-06", "2026-01-19"]
