"""Achievement Manager - Season counters, streak trackers and unlocks.

Achievements never reset daily. Season state is fed from two places:
- record_timer(): per-session counts (long focus, chore blitz)
- mark_day_metrics(): once per day and metric, advances streak trackers
  and the day-count metrics (hydration goal days, balanced days)

evaluate() compares each season achievement against its threshold and
unlocks it permanently, unlocking its reward title with it. The XP reward
is granted by the coordinator for each achievement evaluate() returns.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from .. import const, data_builders as db
from ..engines.achievement_engine import AchievementEngine
from ..utils.dt_utils import dt_format_iso, local_date
from .base_manager import BaseManager

if TYPE_CHECKING:
    from datetime import datetime

    from ..type_defs import (
        AchievementDefinition,
        AchievementId,
        AchievementProgress,
        AchievementView,
        SeasonState,
        TimerRecord,
        TitleState,
    )


__all__ = ["AchievementManager"]


class AchievementManager(BaseManager):
    """Manager for season achievements and cosmetic titles."""

    @property
    def _progress(self) -> dict[AchievementId, AchievementProgress]:
        return self._section(const.DATA_ACHIEVEMENTS)

    @property
    def _season(self) -> SeasonState:
        return self._section(const.DATA_SEASON)

    @property
    def _titles(self) -> TitleState:
        return self._section(const.DATA_TITLES)

    @property
    def _definitions(self) -> list[AchievementDefinition]:
        return self.coordinator.catalog.season_achievements(const.CURRENT_SEASON_ID)

    def setup(self) -> None:
        """Roll the season over if needed and seed progress entries."""
        season = self._season
        if season.get(const.DATA_SEASON_ID) != const.CURRENT_SEASON_ID:
            const.LOGGER.info(
                "Season rollover %s -> %s",
                season.get(const.DATA_SEASON_ID),
                const.CURRENT_SEASON_ID,
            )
            self.coordinator.data[const.DATA_SEASON] = db.build_default_season()
        for definition in self._definitions:
            self._progress.setdefault(
                definition["id"],
                {
                    const.DATA_ACHIEVEMENT_CURRENT_VALUE: 0,
                    const.DATA_ACHIEVEMENT_UNLOCKED_AT: None,
                    const.DATA_ACHIEVEMENT_LAST_UPDATED_AT: None,
                },  # type: ignore[arg-type]
            )

    # ────────────────────────────────────────────────────────────────
    # Season counters
    # ────────────────────────────────────────────────────────────────

    def _increment(self, metric: str) -> int:
        counts = self._season[const.DATA_SEASON_COUNTS]
        counts[metric] = counts.get(metric, 0) + 1
        return counts[metric]

    def record_timer(self, timer: TimerRecord) -> None:
        """Count long focus and chore blitz sessions."""
        category = timer[const.DATA_TIMER_CATEGORY]
        minutes = timer[const.DATA_TIMER_DURATION_MINUTES]
        if (
            category in const.FOCUS_TIMER_CATEGORIES
            and minutes >= const.LONG_FOCUS_SESSION_MINUTES
        ):
            self._increment(const.METRIC_LONG_FOCUS_SESSIONS)
        if (
            category == const.TIMER_CATEGORY_CHORES
            and minutes >= const.CHORE_BLITZ_SESSION_MINUTES
        ):
            self._increment(const.METRIC_CHORE_BLITZ_SESSIONS)

    def _mark(self, key: str, day: date) -> bool:
        """Advance one streak tracker for `day`. False if already marked."""
        streaks = self._season[const.DATA_SEASON_STREAKS]
        tracker = streaks.setdefault(key, self.coordinator.stats.empty_streak())
        last = tracker.get(const.DATA_STREAK_LAST_DATE)
        if last is not None and day.isoformat() <= last:
            return False
        self.coordinator.stats.update_streak(tracker, day)
        return True

    def mark_day_metrics(self, metrics: set[str], now: datetime) -> set[str]:
        """Mark the day metrics holding today.

        Each metric advances its streak at most once per day; metrics that
        also count days bump their season counter on that first mark.

        Returns:
            Metrics newly marked by this call.
        """
        day = local_date(now, self.tz)
        marked = {metric for metric in sorted(metrics) if self._mark(metric, day)}
        for metric in marked:
            if metric in const.DAY_METRIC_SEASON_COUNTS:
                self._increment(const.DAY_METRIC_SEASON_COUNTS[metric])

        for definition in self._definitions:
            if definition["condition_type"] != const.ACHIEVEMENT_TYPE_COMPOSITE:
                continue
            if set(definition["metrics"]) <= metrics:
                self._mark(AchievementEngine.composite_key(definition["metrics"]), day)

        if marked:
            const.LOGGER.debug("Day metrics marked for %s: %s", day, sorted(marked))
        return marked

    def streak_continued(self, metric: str, now: datetime) -> bool:
        """True when `metric` was marked today and yesterday."""
        tracker = self._season[const.DATA_SEASON_STREAKS].get(metric)
        if not tracker:
            return False
        return (
            tracker.get(const.DATA_STREAK_LAST_DATE)
            == local_date(now, self.tz).isoformat()
            and tracker.get(const.DATA_STREAK_CURRENT, 0) > 1
        )

    def live_streak(self, metric: str, now: datetime) -> int:
        return self.coordinator.stats.live_streak(
            self._season[const.DATA_SEASON_STREAKS].get(metric),
            local_date(now, self.tz),
        )

    # ────────────────────────────────────────────────────────────────
    # Unlocks
    # ────────────────────────────────────────────────────────────────

    def evaluate(self, now: datetime) -> list[AchievementDefinition]:
        """Refresh current values and unlock achievements at threshold.

        Returns:
            Definitions unlocked by this call.
        """
        today = local_date(now, self.tz)
        unlocked: list[AchievementDefinition] = []
        for definition in self._definitions:
            progress = self._progress[definition["id"]]
            value = AchievementEngine.current_value(definition, self._season, today)
            if value != progress[const.DATA_ACHIEVEMENT_CURRENT_VALUE]:
                progress[const.DATA_ACHIEVEMENT_CURRENT_VALUE] = value
                progress[const.DATA_ACHIEVEMENT_LAST_UPDATED_AT] = dt_format_iso(now)

            if progress[const.DATA_ACHIEVEMENT_UNLOCKED_AT]:
                continue
            if not AchievementEngine.threshold_met(definition, value):
                continue

            progress[const.DATA_ACHIEVEMENT_UNLOCKED_AT] = dt_format_iso(now)
            titles = self._titles[const.DATA_TITLES_UNLOCKED]
            if definition["reward_title"] not in titles:
                titles.append(definition["reward_title"])
            unlocked.append(definition)
            const.LOGGER.info("Achievement unlocked: %s", definition["id"])
        return unlocked

    def equip_title(self, title: str | None) -> bool:
        """Equip an unlocked title, or unequip with None."""
        if title is not None and title not in self._titles[const.DATA_TITLES_UNLOCKED]:
            return False
        self._titles[const.DATA_TITLES_EQUIPPED] = title
        return True

    @property
    def unlocked_titles(self) -> list[str]:
        return list(self._titles[const.DATA_TITLES_UNLOCKED])

    @property
    def equipped_title(self) -> str | None:
        return self._titles[const.DATA_TITLES_EQUIPPED]

    def views(self) -> list[AchievementView]:
        """Season achievements with progress; locked secret ones are hidden."""
        views: list[AchievementView] = []
        for definition in self._definitions:
            progress = self._progress[definition["id"]]
            if definition["is_secret"] and not progress[
                const.DATA_ACHIEVEMENT_UNLOCKED_AT
            ]:
                continue
            views.append(AchievementEngine.to_view(definition, progress))
        return views

    def clear(self) -> None:
        data = self.coordinator.data
        data[const.DATA_ACHIEVEMENTS] = {}
        data[const.DATA_SEASON] = db.build_default_season()
        data[const.DATA_TITLES] = db.build_default_titles()
        self.setup()
