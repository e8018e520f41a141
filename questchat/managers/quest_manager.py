"""Quest Manager - Daily/weekly quest windows, completion and rerolls.

Quest windows are materialized lazily:
- A daily board is built the first time a call observes a new local day;
  unmet instances of the previous day are discarded with it.
- Weekly instances are built the first time a call observes a new locale
  week, one per weekly catalog entry.

Completion is re-derived from the counters on every evaluate() call, so
evaluation is idempotent and a completed instance never reverts. XP is
granted by the coordinator for each definition evaluate() returns.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const, data_builders as db
from ..engines.quest_engine import QuestEngine
from ..utils.dt_utils import dt_format_iso, local_date, start_of_week, week_dates
from .base_manager import BaseManager

if TYPE_CHECKING:
    from datetime import date, datetime

    from ..type_defs import (
        QuestContext,
        QuestDefinition,
        QuestId,
        QuestInstance,
        QuestState,
        QuestView,
    )


__all__ = ["QuestManager"]


class QuestManager(BaseManager):
    """Manager for quest instances.

    Responsibilities:
    - Materialize daily boards and weekly quest sets per window
    - Evaluate pending instances to a fixpoint and record completions
    - Handle the once-per-day reroll

    NOT responsible for:
    - Granting quest XP (coordinator, through ProgressionManager)
    - Recording raw activity (StatisticsManager)
    """

    @property
    def _state(self) -> QuestState:
        return self._section(const.DATA_QUESTS)

    @property
    def definitions(self) -> dict[QuestId, QuestDefinition]:
        return self.coordinator.catalog.quests

    @property
    def _seed(self) -> str:
        return self.coordinator.options[const.CONF_BOARD_SEED]

    @property
    def _week_start(self) -> int:
        return self.coordinator.options[const.CONF_WEEK_START]

    def setup(self) -> None:
        """Drop instances whose definition no longer exists in the catalog."""
        state = self._state
        for key, default in db.build_default_quests().items():
            state.setdefault(key, default)
        for scope_key in (const.DATA_QUESTS_DAILY, const.DATA_QUESTS_WEEKLY):
            instances = state[scope_key]
            kept = [
                instance
                for instance in instances
                if instance.get(const.DATA_QUEST_DEFINITION_ID) in self.definitions
            ]
            if len(kept) != len(instances):
                const.LOGGER.warning(
                    "WARNING: Dropped %s %s quest instances with unknown definitions",
                    len(instances) - len(kept),
                    scope_key,
                )
            state[scope_key] = kept

    # ────────────────────────────────────────────────────────────────
    # Windows
    # ────────────────────────────────────────────────────────────────

    def _week_start_day(self, today: date) -> date:
        return start_of_week(today, self._week_start)

    def _daily_is_current(self, today: date) -> bool:
        return self._state[const.DATA_QUESTS_DAILY_WINDOW] == today.isoformat()

    def _weekly_is_current(self, today: date) -> bool:
        return (
            self._state[const.DATA_QUESTS_WEEKLY_WINDOW]
            == self._week_start_day(today).isoformat()
        )

    def refresh_windows(self, now: datetime) -> bool:
        """Materialize new daily/weekly windows when `now` entered one.

        A window that moved backwards (clock anomaly) is left untouched.

        Returns:
            True when any window was rebuilt.
        """
        today = local_date(now, self.tz)
        state = self._state
        changed = False

        today_iso = today.isoformat()
        daily_window = state[const.DATA_QUESTS_DAILY_WINDOW]
        if daily_window is None or today_iso > daily_window:
            board = QuestEngine.build_daily_board(self.definitions, today_iso, self._seed)
            state[const.DATA_QUESTS_DAILY] = [
                QuestEngine.build_instance(
                    self.definitions[quest_id],
                    today_iso,
                    is_core=quest_id in const.DAILY_REQUIRED_QUEST_IDS,
                )
                for quest_id in board
            ]
            state[const.DATA_QUESTS_DAILY_WINDOW] = today_iso
            state[const.DATA_QUESTS_DISCARDED] = []
            const.LOGGER.info("Daily quest board for %s: %s", today_iso, board)
            changed = True

        week_iso = self._week_start_day(today).isoformat()
        weekly_window = state[const.DATA_QUESTS_WEEKLY_WINDOW]
        if weekly_window is None or week_iso > weekly_window:
            state[const.DATA_QUESTS_WEEKLY] = [
                QuestEngine.build_instance(definition, week_iso)
                for definition in self.coordinator.catalog.quests_for_scope(
                    const.QUEST_SCOPE_WEEKLY
                )
            ]
            state[const.DATA_QUESTS_WEEKLY_WINDOW] = week_iso
            const.LOGGER.info("Weekly quests for week of %s", week_iso)
            changed = True

        return changed

    # ────────────────────────────────────────────────────────────────
    # Evaluation
    # ────────────────────────────────────────────────────────────────

    def build_context(self, now: datetime) -> QuestContext:
        """Build the evaluation context for the local day of `now`."""
        today = local_date(now, self.tz)
        return {
            "today": today.isoformat(),
            "week_days": [
                day.isoformat() for day in week_dates(today, self._week_start)
            ],
            "days": self.coordinator.statistics_manager.days,
            "hydration_goal_ounces": (
                self.coordinator.statistics_manager.default_hydration_goal
            ),
        }

    def _current_instances(self, today: date) -> list[QuestInstance]:
        instances: list[QuestInstance] = []
        if self._daily_is_current(today):
            instances.extend(self._state[const.DATA_QUESTS_DAILY])
        if self._weekly_is_current(today):
            instances.extend(self._state[const.DATA_QUESTS_WEEKLY])
        return instances

    def evaluate(self, now: datetime) -> list[QuestDefinition]:
        """Re-derive completion for every pending instance of the current windows.

        Loops until no further instance completes, so quests counting other
        completions settle within one call.

        Returns:
            Definitions of the instances completed by this call, in order.
        """
        today = local_date(now, self.tz)
        completed: list[QuestDefinition] = []
        progressed = True
        while progressed:
            progressed = False
            context = self.build_context(now)
            for instance in self._current_instances(today):
                if instance[const.DATA_QUEST_STATUS] == const.QUEST_STATUS_COMPLETED:
                    continue
                definition = self.definitions[instance[const.DATA_QUEST_DEFINITION_ID]]
                result = QuestEngine.evaluate(definition, context)
                instance[const.DATA_QUEST_PROGRESS] = result["progress"]
                instance[const.DATA_QUEST_TARGET] = result["target"]
                if not result["met"]:
                    continue

                instance[const.DATA_QUEST_STATUS] = const.QUEST_STATUS_COMPLETED
                instance[const.DATA_QUEST_COMPLETED_AT] = dt_format_iso(now)
                self.coordinator.statistics_manager.record_quest_completion(
                    definition, now
                )
                completed.append(definition)
                progressed = True
                const.LOGGER.debug("Quest %s completed", definition["id"])
        return completed

    def all_daily_completed(self, now: datetime) -> bool:
        """True when today's board is non-empty and fully completed."""
        if not self._daily_is_current(local_date(now, self.tz)):
            return False
        daily = self._state[const.DATA_QUESTS_DAILY]
        return bool(daily) and all(
            instance[const.DATA_QUEST_STATUS] == const.QUEST_STATUS_COMPLETED
            for instance in daily
        )

    # ────────────────────────────────────────────────────────────────
    # Reroll
    # ────────────────────────────────────────────────────────────────

    def _rerollable(self, instance: QuestInstance) -> bool:
        return instance[
            const.DATA_QUEST_STATUS
        ] == const.QUEST_STATUS_PENDING and QuestEngine.can_reroll(
            instance[const.DATA_QUEST_DEFINITION_ID]
        )

    def reroll(
        self, quest_id: QuestId, now: datetime
    ) -> tuple[QuestId | None, str | None]:
        """Replace a pending daily quest, at most once per day.

        The reroll allowance is only consumed when a replacement is found.

        Returns:
            (replacement id, None) on success, (None, reason) otherwise.
        """
        daily_manager = self.coordinator.daily_manager
        if daily_manager.is_flag_set(const.FLAG_REROLL_USED, now):
            return None, const.REASON_REROLL_USED

        today = local_date(now, self.tz)
        if not self._daily_is_current(today):
            return None, const.REASON_REROLL_UNAVAILABLE

        state = self._state
        daily = state[const.DATA_QUESTS_DAILY]
        board = [instance[const.DATA_QUEST_DEFINITION_ID] for instance in daily]
        if quest_id not in board or not self._rerollable(daily[board.index(quest_id)]):
            const.LOGGER.debug("Quest %s cannot be rerolled", quest_id)
            return None, const.REASON_REROLL_UNAVAILABLE

        replacement = QuestEngine.pick_reroll(
            board,
            quest_id,
            self.definitions,
            set(state[const.DATA_QUESTS_DISCARDED]),
            today.isoformat(),
            self._seed,
        )
        if replacement is None:
            const.LOGGER.debug("No reroll candidate for quest %s", quest_id)
            return None, const.REASON_REROLL_UNAVAILABLE

        daily[board.index(quest_id)] = QuestEngine.build_instance(
            self.definitions[replacement], today.isoformat()
        )
        state[const.DATA_QUESTS_DISCARDED].append(quest_id)
        daily_manager.set_flag(const.FLAG_REROLL_USED, now)
        const.LOGGER.info("Rerolled quest %s into %s", quest_id, replacement)
        return replacement, None

    # ────────────────────────────────────────────────────────────────
    # Views
    # ────────────────────────────────────────────────────────────────

    def _view(self, instance: QuestInstance, reroll_open: bool) -> QuestView:
        definition = self.definitions[instance[const.DATA_QUEST_DEFINITION_ID]]
        return {
            "id": definition["id"],
            "title": definition["title"],
            "subtitle": definition["subtitle"],
            "category": definition["category"],
            "difficulty": definition["difficulty"],
            "xp_reward": definition["xp_reward"],
            "status": instance[const.DATA_QUEST_STATUS],
            "progress": instance[const.DATA_QUEST_PROGRESS],
            "target": instance[const.DATA_QUEST_TARGET],
            "is_core": instance[const.DATA_QUEST_IS_CORE],
            "can_reroll": reroll_open and self._rerollable(instance),
        }

    def daily_views(self, now: datetime) -> list[QuestView]:
        reroll_open = not self.coordinator.daily_manager.is_flag_set(
            const.FLAG_REROLL_USED, now
        )
        return [
            self._view(instance, reroll_open)
            for instance in self._state[const.DATA_QUESTS_DAILY]
        ]

    def weekly_views(self) -> list[QuestView]:
        return [
            self._view(instance, False)
            for instance in self._state[const.DATA_QUESTS_WEEKLY]
        ]

    def clear(self) -> None:
        self.coordinator.data[const.DATA_QUESTS] = db.build_default_quests()
