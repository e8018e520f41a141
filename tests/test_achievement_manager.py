"""Tests for AchievementManager.

Tests cover:
- Season counters fed by timers
- Day-metric marking (once per day, streaks, composite trackers)
- Permanent unlocks and reward titles
- Secret achievement visibility
- Season rollover on setup
"""

from __future__ import annotations

from typing import Any

from questchat import QuestChatCoordinator, const
from questchat.engines.achievement_engine import AchievementEngine
from questchat.managers import AchievementManager
from tests.helpers import (
    MONDAY,
    TEST_OPTIONS,
    TUESDAY,
    WEDNESDAY,
    make_achievement,
    make_catalog,
    on,
)


def _manager(*achievements: dict[str, Any]) -> AchievementManager:
    coordinator = QuestChatCoordinator(
        TEST_OPTIONS, catalog=make_catalog(achievements=list(achievements))
    )
    return coordinator.achievement_manager


def _timer(category: str, minutes: int) -> dict[str, Any]:
    return {
        const.DATA_TIMER_CATEGORY: category,
        const.DATA_TIMER_DURATION_MINUTES: minutes,
        const.DATA_TIMER_ENDED_AT: "2026-01-19T16:00:00+00:00",
        const.DATA_TIMER_ENDED_HOUR: 10,
    }


# ============================================================================
# Season counters
# ============================================================================


class TestSessionCounts:
    """Qualifying sessions bump the season counters."""

    def test_long_focus_and_chore_blitz(self) -> None:
        manager = _manager()
        manager.record_timer(_timer("deep_focus", 40))
        manager.record_timer(_timer("work", 39))
        manager.record_timer(_timer("chores", 10))
        manager.record_timer(_timer("gaming", 120))
        counts = manager.coordinator.data[const.DATA_SEASON][const.DATA_SEASON_COUNTS]
        assert counts == {
            const.METRIC_LONG_FOCUS_SESSIONS: 1,
            const.METRIC_CHORE_BLITZ_SESSIONS: 1,
        }


class TestDayMetrics:
    """Each metric is marked at most once per day."""

    def test_second_mark_same_day_is_noop(self) -> None:
        manager = _manager()
        metrics = {const.DAY_METRIC_HYDRATION_GOAL, const.DAY_METRIC_ACTIVITY}
        assert manager.mark_day_metrics(metrics, on(MONDAY, 9)) == metrics
        assert manager.mark_day_metrics(metrics, on(MONDAY, 18)) == set()
        counts = manager.coordinator.data[const.DATA_SEASON][const.DATA_SEASON_COUNTS]
        assert counts == {const.METRIC_HYDRATION_GOAL_DAYS: 1}

    def test_streak_continued_needs_consecutive_days(self) -> None:
        manager = _manager()
        metric = const.DAY_METRIC_ACTIVITY
        manager.mark_day_metrics({metric}, on(MONDAY))
        assert not manager.streak_continued(metric, on(MONDAY))
        manager.mark_day_metrics({metric}, on(TUESDAY))
        assert manager.streak_continued(metric, on(TUESDAY))
        assert manager.live_streak(metric, on(WEDNESDAY)) == 2

    def test_composite_tracker_marks_only_when_all_hold(self) -> None:
        metrics = [const.DAY_METRIC_REALM_WORK, const.DAY_METRIC_REALM_HOME]
        manager = _manager(
            make_achievement("COMBO", const.ACHIEVEMENT_TYPE_COMPOSITE, 2, metrics=metrics)
        )
        key = AchievementEngine.composite_key(metrics)
        streaks = manager.coordinator.data[const.DATA_SEASON][const.DATA_SEASON_STREAKS]

        manager.mark_day_metrics({const.DAY_METRIC_REALM_WORK}, on(MONDAY))
        assert key not in streaks
        manager.mark_day_metrics(set(metrics), on(TUESDAY))
        assert streaks[key][const.DATA_STREAK_CURRENT] == 1


# ============================================================================
# Unlocks and titles
# ============================================================================


class TestUnlocks:
    """Unlocks are permanent and award the reward title."""

    def test_count_unlock_adds_title_once(self) -> None:
        manager = _manager(
            make_achievement(
                "FOCUSED",
                const.ACHIEVEMENT_TYPE_COUNT,
                1,
                metric=const.METRIC_LONG_FOCUS_SESSIONS,
            )
        )
        assert manager.evaluate(on(MONDAY)) == []
        manager.record_timer(_timer("work", 45))
        assert [d["id"] for d in manager.evaluate(on(MONDAY))] == ["FOCUSED"]
        assert manager.evaluate(on(MONDAY)) == []
        assert manager.unlocked_titles == ["Title FOCUSED"]

    def test_streak_unlock_survives_broken_streak(self) -> None:
        manager = _manager(
            make_achievement(
                "MOODY",
                const.ACHIEVEMENT_TYPE_STREAK,
                2,
                metric=const.DAY_METRIC_MOOD_POSITIVE,
            )
        )
        manager.mark_day_metrics({const.DAY_METRIC_MOOD_POSITIVE}, on(MONDAY))
        manager.mark_day_metrics({const.DAY_METRIC_MOOD_POSITIVE}, on(TUESDAY))
        assert len(manager.evaluate(on(TUESDAY))) == 1

        later = on((2026, 1, 25))
        assert manager.evaluate(later) == []
        view = manager.views()[0]
        assert view["current_value"] == 0
        assert view["fraction"] == 1.0
        assert view["unlocked_at"] is not None

    def test_equip_title(self) -> None:
        manager = _manager(
            make_achievement(
                "FOCUSED",
                const.ACHIEVEMENT_TYPE_COUNT,
                1,
                metric=const.METRIC_LONG_FOCUS_SESSIONS,
            )
        )
        assert not manager.equip_title("Title FOCUSED")
        manager.record_timer(_timer("work", 45))
        manager.evaluate(on(MONDAY))
        assert manager.equip_title("Title FOCUSED")
        assert manager.equipped_title == "Title FOCUSED"
        assert manager.equip_title(None)
        assert manager.equipped_title is None


class TestVisibility:
    """Locked secret achievements are hidden from views."""

    def test_secret_hidden_until_unlocked(self) -> None:
        manager = _manager(
            make_achievement(
                "SECRET",
                const.ACHIEVEMENT_TYPE_COUNT,
                1,
                metric=const.METRIC_CHORE_BLITZ_SESSIONS,
                is_secret=True,
            ),
            make_achievement(
                "PUBLIC",
                const.ACHIEVEMENT_TYPE_COUNT,
                5,
                metric=const.METRIC_CHORE_BLITZ_SESSIONS,
            ),
        )
        assert [v["id"] for v in manager.views()] == ["PUBLIC"]
        manager.record_timer(_timer("chores", 15))
        manager.evaluate(on(MONDAY))
        assert [v["id"] for v in manager.views()] == ["SECRET", "PUBLIC"]


class TestSeasonRollover:
    """A stored season other than the current one is replaced on setup."""

    def test_old_season_counters_dropped(self) -> None:
        coordinator = QuestChatCoordinator(TEST_OPTIONS, catalog=make_catalog())
        snapshot = coordinator.to_snapshot()
        snapshot[const.DATA_SEASON] = {
            const.DATA_SEASON_ID: "S0",
            const.DATA_SEASON_COUNTS: {const.METRIC_LONG_FOCUS_SESSIONS: 9},
            const.DATA_SEASON_STREAKS: {},
        }
        snapshot[const.DATA_TITLES] = {
            const.DATA_TITLES_UNLOCKED: ["Old Title"],
            const.DATA_TITLES_EQUIPPED: "Old Title",
        }
        restored = QuestChatCoordinator.from_snapshot(
            snapshot, TEST_OPTIONS, catalog=make_catalog()
        )
        season = restored.data[const.DATA_SEASON]
        assert season[const.DATA_SEASON_ID] == const.CURRENT_SEASON_ID
        assert season[const.DATA_SEASON_COUNTS] == {}
        assert restored.unlocked_titles == ["Old Title"]
