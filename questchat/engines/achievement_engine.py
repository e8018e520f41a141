"""Achievement Engine - Pure evaluation of season achievements.

Achievements read season-long counters and streak trackers (never the daily
buckets directly) so their progress survives counter pruning.

Condition types:
    - count: a season counter reaches the threshold
    - streak: consecutive days on which a day metric held
    - composite: consecutive days on which every listed day metric held

Unlocking is monotonic: the engine only reports whether the threshold is met
now; AchievementManager keeps unlocked_at once it has been set.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from .. import const
from ..utils.math_utils import calculate_fraction
from .statistics_engine import StatisticsEngine

if TYPE_CHECKING:
    from datetime import date

    from ..type_defs import (
        AchievementDefinition,
        AchievementProgress,
        AchievementView,
        SeasonState,
    )

# Type alias for condition handler functions
ConditionHandler = Callable[["AchievementDefinition", "SeasonState", "date"], int]


class AchievementEngine:
    """Pure logic engine for achievement progress."""

    _CONDITION_HANDLERS: dict[str, ConditionHandler] = {}

    @classmethod
    def _register_handlers(cls) -> None:
        """Register condition handlers once at module load."""
        if cls._CONDITION_HANDLERS:
            return

        cls._CONDITION_HANDLERS = {
            const.ACHIEVEMENT_TYPE_COUNT: cls._evaluate_count,
            const.ACHIEVEMENT_TYPE_STREAK: cls._evaluate_streak,
            const.ACHIEVEMENT_TYPE_COMPOSITE: cls._evaluate_composite,
        }

    @staticmethod
    def composite_key(metrics: list[str]) -> str:
        """Return the streak tracker key shared by a set of day metrics."""
        return const.COMPOSITE_STREAK_PREFIX + "+".join(sorted(metrics))

    @classmethod
    def current_value(
        cls,
        definition: AchievementDefinition,
        season: SeasonState,
        today: date,
    ) -> int:
        """Return the achievement's current value for `today`."""
        cls._register_handlers()
        handler = cls._CONDITION_HANDLERS.get(definition["condition_type"])
        if handler is None:
            const.LOGGER.warning(
                "Unknown achievement condition '%s' for %s",
                definition["condition_type"],
                definition["id"],
            )
            return 0
        return handler(definition, season, today)

    @staticmethod
    def threshold_met(definition: AchievementDefinition, value: int) -> bool:
        """Return True when `value` reaches the unlock threshold."""
        return value >= definition["threshold"]

    @staticmethod
    def _evaluate_count(
        definition: AchievementDefinition, season: SeasonState, today: date
    ) -> int:
        return season[const.DATA_SEASON_COUNTS].get(definition["metric"], 0)

    @staticmethod
    def _evaluate_streak(
        definition: AchievementDefinition, season: SeasonState, today: date
    ) -> int:
        tracker = season[const.DATA_SEASON_STREAKS].get(definition["metric"])
        return StatisticsEngine.live_streak(tracker, today)

    @classmethod
    def _evaluate_composite(
        cls, definition: AchievementDefinition, season: SeasonState, today: date
    ) -> int:
        key = cls.composite_key(definition["metrics"])
        tracker = season[const.DATA_SEASON_STREAKS].get(key)
        return StatisticsEngine.live_streak(tracker, today)

    @staticmethod
    def to_view(
        definition: AchievementDefinition, progress: AchievementProgress
    ) -> AchievementView:
        """Project an achievement into its presentation shape.

        Unlocked achievements always report a full bar, whatever their
        counter has done since.
        """
        unlocked_at = progress.get(const.DATA_ACHIEVEMENT_UNLOCKED_AT)
        value = progress.get(const.DATA_ACHIEVEMENT_CURRENT_VALUE, 0)
        fraction = (
            1.0
            if unlocked_at
            else calculate_fraction(value, definition["threshold"])
        )
        return {
            "id": definition["id"],
            "title": definition["title"],
            "current_value": value,
            "threshold": definition["threshold"],
            "fraction": fraction,
            "unlocked_at": unlocked_at,
        }


# Register handlers at module load
AchievementEngine._register_handlers()  # noqa: SLF001
