"""Tests for AchievementEngine - season value derivation and views."""

from __future__ import annotations

from datetime import date
from typing import Any

import pytest

from questchat import const
from questchat.engines.achievement_engine import AchievementEngine
from tests.helpers import make_achievement

TODAY = date(2026, 1, 21)


def _season(
    counts: dict[str, int] | None = None,
    streaks: dict[str, dict[str, Any]] | None = None,
) -> dict[str, Any]:
    return {
        const.DATA_SEASON_ID: const.CURRENT_SEASON_ID,
        const.DATA_SEASON_COUNTS: counts or {},
        const.DATA_SEASON_STREAKS: streaks or {},
    }


def _tracker(current: int, last_date: str) -> dict[str, Any]:
    return {
        const.DATA_STREAK_CURRENT: current,
        const.DATA_STREAK_LONGEST: current,
        const.DATA_STREAK_LAST_DATE: last_date,
    }


# ============================================================================
# Current value
# ============================================================================


class TestCurrentValue:
    """Each condition type reads its season state."""

    def test_count_reads_season_counter(self) -> None:
        definition = make_achievement(
            "A", const.ACHIEVEMENT_TYPE_COUNT, 3, metric=const.METRIC_BALANCED_DAYS
        )
        season = _season(counts={const.METRIC_BALANCED_DAYS: 2})
        assert AchievementEngine.current_value(definition, season, TODAY) == 2
        assert AchievementEngine.current_value(definition, _season(), TODAY) == 0

    @pytest.mark.parametrize(
        ("last_date", "expected"),
        [
            ("2026-01-21", 4),  # marked today
            ("2026-01-20", 4),  # marked yesterday, still alive
            ("2026-01-19", 0),  # missed a day
        ],
    )
    def test_streak_is_live(self, last_date: str, expected: int) -> None:
        definition = make_achievement(
            "A",
            const.ACHIEVEMENT_TYPE_STREAK,
            5,
            metric=const.DAY_METRIC_QUESTS_OPENED,
        )
        season = _season(
            streaks={const.DAY_METRIC_QUESTS_OPENED: _tracker(4, last_date)}
        )
        assert AchievementEngine.current_value(definition, season, TODAY) == expected

    def test_composite_uses_shared_key(self) -> None:
        metrics = [const.DAY_METRIC_REALM_HOME, const.DAY_METRIC_REALM_WORK]
        definition = make_achievement(
            "A", const.ACHIEVEMENT_TYPE_COMPOSITE, 3, metrics=metrics
        )
        key = AchievementEngine.composite_key(list(reversed(metrics)))
        assert key == "all:realm_home_30+realm_work_30"
        season = _season(streaks={key: _tracker(2, "2026-01-21")})
        assert AchievementEngine.current_value(definition, season, TODAY) == 2

    def test_unknown_condition_type_is_zero(self) -> None:
        definition = make_achievement("A", "mystery", 1, metric="x")
        season = _season(counts={"x": 5})
        assert AchievementEngine.current_value(definition, season, TODAY) == 0


# ============================================================================
# Threshold & Views
# ============================================================================


class TestThresholdAndView:
    def test_threshold_is_inclusive(self) -> None:
        definition = make_achievement("A", const.ACHIEVEMENT_TYPE_COUNT, 3, metric="x")
        assert not AchievementEngine.threshold_met(definition, 2)
        assert AchievementEngine.threshold_met(definition, 3)

    def test_view_fraction(self) -> None:
        definition = make_achievement("A", const.ACHIEVEMENT_TYPE_COUNT, 4, metric="x")
        progress = {
            const.DATA_ACHIEVEMENT_CURRENT_VALUE: 1,
            const.DATA_ACHIEVEMENT_UNLOCKED_AT: None,
        }
        view = AchievementEngine.to_view(definition, progress)
        assert view["fraction"] == 0.25
        assert view["unlocked_at"] is None

    def test_unlocked_view_is_full(self) -> None:
        definition = make_achievement("A", const.ACHIEVEMENT_TYPE_COUNT, 4, metric="x")
        progress = {
            const.DATA_ACHIEVEMENT_CURRENT_VALUE: 0,
            const.DATA_ACHIEVEMENT_UNLOCKED_AT: "2026-01-19T16:00:00+00:00",
        }
        assert AchievementEngine.to_view(definition, progress)["fraction"] == 1.0
