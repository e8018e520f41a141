"""Quest Engine - Pure predicate evaluation and daily board selection.

This engine evaluates quest completion predicates against per-day counter
buckets and chooses which catalog quests appear on a day's board.

PURITY CONTRACT:
- All data comes via the `context` parameter (built by QuestManager)
- No side effects, no state mutation
- Same counters in, same decision out (evaluation is re-entrant)

Predicate Handler Registry:
    Each catalog predicate has a `type` and optional `params`. Handlers are
    looked up in `_PREDICATE_HANDLERS` and receive the list of ISO days the
    predicate should look at: the current day for daily quests, the days
    of the locale week so far for weekly quests, or a single day when
    nested inside `distinct_days`.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
import random
from typing import TYPE_CHECKING, Any

from .. import const
from .statistics_engine import StatisticsEngine

if TYPE_CHECKING:
    from ..type_defs import (
        DayBucket,
        PredicateResult,
        QuestContext,
        QuestDefinition,
        QuestId,
        QuestInstance,
        QuestPredicate,
    )

# Type alias for predicate handler functions
PredicateHandler = Callable[
    [dict[str, Any], "QuestContext", list[str], str], "PredicateResult"
]

_SATURDAY = 5


class QuestEngine:
    """Pure logic engine for quest predicates and board rules.

    Evaluation Flow:
        1. QuestManager builds a QuestContext from the counters section
        2. evaluate() dispatches to the registered predicate handler
        3. Handler returns met/progress/target
        4. QuestManager applies the status transition and XP grant
    """

    # =========================================================================
    # PREDICATE HANDLER REGISTRY
    # =========================================================================

    _PREDICATE_HANDLERS: dict[str, PredicateHandler] = {}

    @classmethod
    def _register_handlers(cls) -> None:
        """Register all predicate handlers.

        Called once at module load to populate _PREDICATE_HANDLERS.
        """
        if cls._PREDICATE_HANDLERS:
            return

        cls._PREDICATE_HANDLERS = {
            # Timer sessions
            const.PREDICATE_TIMER: cls._evaluate_timer,
            const.PREDICATE_TIMER_COUNT: cls._evaluate_timer_count,
            const.PREDICATE_TIMER_MINUTES: cls._evaluate_timer_minutes,
            # Health bar
            const.PREDICATE_CHECKIN: cls._evaluate_checkin,
            const.PREDICATE_HYDRATION_OUNCES: cls._evaluate_hydration_ounces,
            const.PREDICATE_HYDRATION_GOAL_PERCENT: (
                cls._evaluate_hydration_goal_percent
            ),
            const.PREDICATE_REMINDER_RESPONDED: cls._evaluate_reminder_responded,
            # Meta
            const.PREDICATE_SCREEN_VIEWED: cls._evaluate_screen_viewed,
            const.PREDICATE_QUESTS_COMPLETED: cls._evaluate_quests_completed,
            const.PREDICATE_QUEST_CHAIN: cls._evaluate_quest_chain,
            const.PREDICATE_HARD_QUESTS_COMPLETED: (
                cls._evaluate_hard_quests_completed
            ),
            # Day windows
            const.PREDICATE_DISTINCT_DAYS: cls._evaluate_distinct_days,
            const.PREDICATE_GOOD_DAYS: cls._evaluate_good_days,
            const.PREDICATE_WEEKEND_WARRIOR: cls._evaluate_weekend_warrior,
            # Composition
            const.PREDICATE_ALL_OF: cls._evaluate_all_of,
        }

    @classmethod
    def supported_predicates(cls) -> frozenset[str]:
        """Return the predicate types the engine can evaluate."""
        cls._register_handlers()
        return frozenset(cls._PREDICATE_HANDLERS)

    # =========================================================================
    # MAIN EVALUATION METHODS
    # =========================================================================

    @classmethod
    def evaluate(
        cls, definition: QuestDefinition, context: QuestContext
    ) -> PredicateResult:
        """Evaluate a quest definition against the current counters.

        Args:
            definition: Catalog entry
            context: Counters and window days built by QuestManager

        Returns:
            PredicateResult with progress capped at target.
        """
        if definition[const.DATA_QUEST_SCOPE] == const.QUEST_SCOPE_WEEKLY:
            days = list(context["week_days"])
        else:
            days = [context["today"]]
        return cls.evaluate_predicate(
            definition["predicate"], context, days, definition["id"]
        )

    @classmethod
    def evaluate_predicate(
        cls,
        predicate: QuestPredicate,
        context: QuestContext,
        days: list[str],
        quest_id: str = "",
    ) -> PredicateResult:
        """Dispatch a predicate to its registered handler.

        Unknown predicate types never complete; they are logged once per
        evaluation so a catalog typo is visible.
        """
        cls._register_handlers()
        handler = cls._PREDICATE_HANDLERS.get(predicate.get("type", ""))
        if handler is None:
            const.LOGGER.warning(
                "Unknown quest predicate type '%s' for quest %s",
                predicate.get("type"),
                quest_id,
            )
            return cls._make_result(0, 1)
        return handler(predicate.get("params", {}), context, days, quest_id)

    # =========================================================================
    # TIMER PREDICATES
    # =========================================================================

    @classmethod
    def _matching_timers(
        cls, params: dict[str, Any], context: QuestContext, days: list[str]
    ) -> list[dict[str, Any]]:
        """Return timers in `days` matching category, minutes and end hour."""
        categories = params.get("categories")
        min_minutes = params.get("min_minutes", 0)
        min_end_hour = params.get("min_end_hour")
        matches = []
        for bucket in cls._buckets(context, days):
            for timer in bucket.get(const.DATA_DAY_TIMERS, []):
                if categories and timer[const.DATA_TIMER_CATEGORY] not in categories:
                    continue
                if timer[const.DATA_TIMER_DURATION_MINUTES] < min_minutes:
                    continue
                if (
                    min_end_hour is not None
                    and timer.get(const.DATA_TIMER_ENDED_HOUR, 0) < min_end_hour
                ):
                    continue
                matches.append(timer)
        return matches

    @classmethod
    def _evaluate_timer(
        cls,
        params: dict[str, Any],
        context: QuestContext,
        days: list[str],
        quest_id: str,
    ) -> PredicateResult:
        """At least one matching timer finished in the window."""
        matches = cls._matching_timers(params, context, days)
        return cls._make_result(len(matches), 1)

    @classmethod
    def _evaluate_timer_count(
        cls,
        params: dict[str, Any],
        context: QuestContext,
        days: list[str],
        quest_id: str,
    ) -> PredicateResult:
        """At least `count` matching timers finished in the window."""
        matches = cls._matching_timers(params, context, days)
        return cls._make_result(len(matches), params.get("count", 1))

    @classmethod
    def _evaluate_timer_minutes(
        cls,
        params: dict[str, Any],
        context: QuestContext,
        days: list[str],
        quest_id: str,
    ) -> PredicateResult:
        """Matching timers add up to at least `minutes`."""
        matches = cls._matching_timers(params, context, days)
        total = sum(timer[const.DATA_TIMER_DURATION_MINUTES] for timer in matches)
        return cls._make_result(total, params["minutes"])

    # =========================================================================
    # HEALTH BAR PREDICATES
    # =========================================================================

    @classmethod
    def _evaluate_checkin(
        cls,
        params: dict[str, Any],
        context: QuestContext,
        days: list[str],
        quest_id: str,
    ) -> PredicateResult:
        """Every listed rating kind was logged (optionally at min_value)."""
        kinds = params.get("kinds", [])
        min_value = params.get("min_value", const.RATING_MIN)
        logged: set[str] = set()
        for bucket in cls._buckets(context, days):
            for kind, value in bucket.get(const.DATA_DAY_CHECKINS, {}).items():
                if kind in kinds and value >= min_value:
                    logged.add(kind)
        return cls._make_result(len(logged), len(kinds))

    @classmethod
    def _evaluate_hydration_ounces(
        cls,
        params: dict[str, Any],
        context: QuestContext,
        days: list[str],
        quest_id: str,
    ) -> PredicateResult:
        """Logged water across the window reaches `ounces`."""
        total = sum(
            bucket.get(const.DATA_DAY_HYDRATION_OUNCES, 0)
            for bucket in cls._buckets(context, days)
        )
        return cls._make_result(total, params["ounces"])

    @classmethod
    def _evaluate_hydration_goal_percent(
        cls,
        params: dict[str, Any],
        context: QuestContext,
        days: list[str],
        quest_id: str,
    ) -> PredicateResult:
        """Some day in the window reached `percent` of its hydration goal.

        A day with no goal (goal of zero) can never satisfy this.
        """
        target = params.get("percent", 100)
        best = 0
        for day in days:
            bucket = context["days"].get(day)
            if not bucket:
                continue
            goal = StatisticsEngine.hydration_goal(
                bucket, context["hydration_goal_ounces"]
            )
            if goal <= 0:
                continue
            ounces = bucket.get(const.DATA_DAY_HYDRATION_OUNCES, 0)
            best = max(best, ounces * 100 // goal)
        return cls._make_result(best, target)

    @classmethod
    def _evaluate_reminder_responded(
        cls,
        params: dict[str, Any],
        context: QuestContext,
        days: list[str],
        quest_id: str,
    ) -> PredicateResult:
        """A reminder of `reminder_type` was acknowledged."""
        reminder_type = params.get("reminder_type")
        total = sum(
            bucket.get(const.DATA_DAY_REMINDERS_RESPONDED, {}).get(reminder_type, 0)
            for bucket in cls._buckets(context, days)
        )
        return cls._make_result(total, params.get("count", 1))

    # =========================================================================
    # META PREDICATES
    # =========================================================================

    @classmethod
    def _evaluate_screen_viewed(
        cls,
        params: dict[str, Any],
        context: QuestContext,
        days: list[str],
        quest_id: str,
    ) -> PredicateResult:
        """The named screen was opened."""
        screen = params.get("screen")
        total = sum(
            bucket.get(const.DATA_DAY_SCREENS, {}).get(screen, 0)
            for bucket in cls._buckets(context, days)
        )
        return cls._make_result(total, params.get("count", 1))

    @classmethod
    def _completions(
        cls,
        params: dict[str, Any],
        context: QuestContext,
        days: list[str],
        quest_id: str,
    ) -> list[dict[str, Any]]:
        """Return completion records in `days`, excluding `quest_id` itself."""
        scope = params.get("scope", const.QUEST_SCOPE_DAILY)
        difficulty = params.get("difficulty")
        records = []
        for bucket in cls._buckets(context, days):
            for record in bucket.get(const.DATA_DAY_QUEST_COMPLETIONS, []):
                if record[const.DATA_QUEST_COMPLETION_ID] == quest_id:
                    continue
                if scope and record.get(const.DATA_QUEST_COMPLETION_SCOPE) != scope:
                    continue
                if (
                    difficulty
                    and record.get(const.DATA_QUEST_COMPLETION_DIFFICULTY)
                    != difficulty
                ):
                    continue
                records.append(record)
        return records

    @classmethod
    def _evaluate_quests_completed(
        cls,
        params: dict[str, Any],
        context: QuestContext,
        days: list[str],
        quest_id: str,
    ) -> PredicateResult:
        """At least `count` other quests were completed."""
        records = cls._completions(params, context, days, quest_id)
        return cls._make_result(len(records), params.get("count", 1))

    @classmethod
    def _evaluate_quest_chain(
        cls,
        params: dict[str, Any],
        context: QuestContext,
        days: list[str],
        quest_id: str,
    ) -> PredicateResult:
        """`count` other quests were completed within `within_minutes`.

        Progress is the longest run found inside any such window.
        """
        count = params.get("count", 2)
        window_seconds = params.get("within_minutes", 10) * 60
        times = sorted(
            datetime.fromisoformat(record[const.DATA_QUEST_COMPLETION_AT])
            for record in cls._completions(params, context, days, quest_id)
        )
        best = 0
        start = 0
        for end, completed_at in enumerate(times):
            while (completed_at - times[start]).total_seconds() > window_seconds:
                start += 1
            best = max(best, end - start + 1)
        return cls._make_result(best, count)

    @classmethod
    def _evaluate_hard_quests_completed(
        cls,
        params: dict[str, Any],
        context: QuestContext,
        days: list[str],
        quest_id: str,
    ) -> PredicateResult:
        """At least `count` hard quests of any scope were completed."""
        hard_params = {
            "count": params.get("count", 1),
            "scope": None,
            "difficulty": const.QUEST_DIFFICULTY_HARD,
        }
        return cls._evaluate_quests_completed(hard_params, context, days, quest_id)

    # =========================================================================
    # DAY WINDOW PREDICATES
    # =========================================================================

    @classmethod
    def _evaluate_distinct_days(
        cls,
        params: dict[str, Any],
        context: QuestContext,
        days: list[str],
        quest_id: str,
    ) -> PredicateResult:
        """At least `days` days in the window satisfy a nested predicate."""
        nested: QuestPredicate = params["predicate"]
        qualifying = sum(
            1
            for day in days
            if cls.evaluate_predicate(nested, context, [day], quest_id)["met"]
        )
        return cls._make_result(qualifying, params["days"])

    @classmethod
    def _evaluate_good_days(
        cls,
        params: dict[str, Any],
        context: QuestContext,
        days: list[str],
        quest_id: str,
    ) -> PredicateResult:
        """At least `days` days had `min_quests` daily quests completed."""
        return cls._evaluate_distinct_days(
            {
                "days": params.get("days", 3),
                "predicate": {
                    "type": const.PREDICATE_QUESTS_COMPLETED,
                    "params": {"count": params.get("min_quests", 4)},
                },
            },
            context,
            days,
            quest_id,
        )

    @classmethod
    def _evaluate_weekend_warrior(
        cls,
        params: dict[str, Any],
        context: QuestContext,
        days: list[str],
        quest_id: str,
    ) -> PredicateResult:
        """A Saturday or Sunday had quests completed plus a long timer."""
        min_quests = params.get("min_quests", 2)
        timer_params = {"min_minutes": params.get("min_timer_minutes", 20)}
        qualifying = 0
        for day in days:
            if date.fromisoformat(day).weekday() < _SATURDAY:
                continue
            completions = cls._completions({}, context, [day], quest_id)
            timers = cls._matching_timers(timer_params, context, [day])
            if len(completions) >= min_quests and timers:
                qualifying += 1
        return cls._make_result(qualifying, params.get("days", 1))

    # =========================================================================
    # COMPOSITION
    # =========================================================================

    @classmethod
    def _evaluate_all_of(
        cls,
        params: dict[str, Any],
        context: QuestContext,
        days: list[str],
        quest_id: str,
    ) -> PredicateResult:
        """Every nested predicate is met; progress counts the met ones."""
        predicates: list[QuestPredicate] = params.get("predicates", [])
        met = sum(
            1
            for nested in predicates
            if cls.evaluate_predicate(nested, context, days, quest_id)["met"]
        )
        return cls._make_result(met, len(predicates))

    # =========================================================================
    # DAILY BOARD
    # =========================================================================

    @staticmethod
    def board_rng(seed: str, day_iso: str, salt: str = "") -> random.Random:
        """Return the deterministic RNG for a profile seed and day."""
        key = f"{seed}:{day_iso}"
        if salt:
            key = f"{key}:{salt}"
        return random.Random(key)

    @staticmethod
    def _shuffled_pool(
        definitions: dict[QuestId, QuestDefinition],
        excluded: set[str],
        rng: random.Random,
    ) -> list[QuestId]:
        pool = sorted(
            quest_id
            for quest_id, definition in definitions.items()
            if definition[const.DATA_QUEST_SCOPE] == const.QUEST_SCOPE_DAILY
            and quest_id not in excluded
        )
        rng.shuffle(pool)
        return pool

    @staticmethod
    def _timer_count(
        board: list[QuestId], definitions: dict[QuestId, QuestDefinition]
    ) -> int:
        return sum(
            1
            for quest_id in board
            if definitions[quest_id]["category"] == const.QUEST_CATEGORY_TIMER
        )

    @classmethod
    def build_daily_board(
        cls,
        definitions: dict[QuestId, QuestDefinition],
        day_iso: str,
        seed: str,
        excluded: set[str] | None = None,
    ) -> list[QuestId]:
        """Choose the quest ids for a day's board.

        Board rules:
        - Required quests always present, then preferred quests
        - At least one quest of every required category
        - At most DAILY_BOARD_MAX_TIMER_QUESTS timer quests
        - Remaining slots filled from a per-day deterministic shuffle

        Args:
            definitions: Full quest catalog keyed by id
            day_iso: Board day
            seed: Profile board seed
            excluded: Quest ids that may not appear

        Returns:
            Ordered list of at most DAILY_BOARD_SIZE quest ids.
        """
        excluded = excluded or set()
        pool = cls._shuffled_pool(
            definitions, excluded, cls.board_rng(seed, day_iso)
        )

        board: list[QuestId] = [
            quest_id
            for quest_id in (
                *const.DAILY_REQUIRED_QUEST_IDS,
                *const.DAILY_PREFERRED_QUEST_IDS,
            )
            if quest_id in definitions and quest_id not in excluded
        ]

        for category in const.DAILY_BOARD_REQUIRED_CATEGORIES:
            if any(definitions[q]["category"] == category for q in board):
                continue
            pick = next(
                (
                    q
                    for q in pool
                    if q not in board and definitions[q]["category"] == category
                ),
                None,
            )
            if pick is not None:
                board.append(pick)

        for quest_id in pool:
            if len(board) >= const.DAILY_BOARD_SIZE:
                break
            if quest_id in board:
                continue
            if (
                definitions[quest_id]["category"] == const.QUEST_CATEGORY_TIMER
                and cls._timer_count(board, definitions)
                >= const.DAILY_BOARD_MAX_TIMER_QUESTS
            ):
                continue
            board.append(quest_id)

        return board

    @classmethod
    def board_satisfies_rules(
        cls, board: list[QuestId], definitions: dict[QuestId, QuestDefinition]
    ) -> bool:
        """Return True when a board meets the timer cap and category minimums."""
        if cls._timer_count(board, definitions) > const.DAILY_BOARD_MAX_TIMER_QUESTS:
            return False
        categories = {definitions[quest_id]["category"] for quest_id in board}
        return all(
            category in categories
            for category in const.DAILY_BOARD_REQUIRED_CATEGORIES
        )

    @staticmethod
    def can_reroll(quest_id: QuestId) -> bool:
        """Required and preferred board quests are pinned."""
        return quest_id not in const.NON_REROLLABLE_QUEST_IDS

    @classmethod
    def pick_reroll(
        cls,
        board: list[QuestId],
        quest_id: QuestId,
        definitions: dict[QuestId, QuestDefinition],
        excluded: set[str],
        day_iso: str,
        seed: str,
    ) -> QuestId | None:
        """Choose the replacement for `quest_id` on a board.

        Candidates with the same category and difficulty are preferred; any
        other candidate is the fallback. A candidate is only accepted when
        the resulting board still satisfies the board rules.

        Returns:
            Replacement quest id, or None when no candidate fits.
        """
        if quest_id not in board or quest_id not in definitions:
            return None
        original = definitions[quest_id]
        pool = cls._shuffled_pool(
            definitions,
            excluded | set(board),
            cls.board_rng(seed, day_iso, salt=f"reroll:{quest_id}"),
        )
        same_kind = [
            q
            for q in pool
            if definitions[q]["category"] == original["category"]
            and definitions[q]["difficulty"] == original["difficulty"]
        ]
        fallback = [q for q in pool if q not in same_kind]

        index = board.index(quest_id)
        for candidate in same_kind + fallback:
            trial = [*board[:index], candidate, *board[index + 1 :]]
            if cls.board_satisfies_rules(trial, definitions):
                return candidate
        return None

    # =========================================================================
    # INSTANCES
    # =========================================================================

    @classmethod
    def build_instance(
        cls,
        definition: QuestDefinition,
        window_start: str,
        *,
        is_core: bool = False,
    ) -> QuestInstance:
        """Materialize a pending instance of a definition for a window.

        Only the caller decides `is_core`; a catalog tier of "core" does not
        make a quest core for the day.
        """
        return {
            const.DATA_QUEST_DEFINITION_ID: definition["id"],
            const.DATA_QUEST_SCOPE: definition[const.DATA_QUEST_SCOPE],
            const.DATA_QUEST_WINDOW_START: window_start,
            const.DATA_QUEST_STATUS: const.QUEST_STATUS_PENDING,
            const.DATA_QUEST_PROGRESS: 0,
            const.DATA_QUEST_TARGET: cls.target_for(definition),
            const.DATA_QUEST_COMPLETED_AT: None,
            const.DATA_QUEST_IS_CORE: is_core,
        }  # type: ignore[return-value]

    @classmethod
    def target_for(cls, definition: QuestDefinition) -> int:
        """Return the progress target a definition's predicate reports."""
        empty: QuestContext = {
            "today": "",
            "week_days": [],
            "days": {},
            "hydration_goal_ounces": 0,
        }
        return cls.evaluate_predicate(definition["predicate"], empty, [], "")[
            "target"
        ]

    # =========================================================================
    # HELPER METHODS
    # =========================================================================

    @staticmethod
    def _buckets(context: QuestContext, days: list[str]) -> list[DayBucket]:
        """Return the existing counter buckets for `days`."""
        return [context["days"][day] for day in days if day in context["days"]]

    @staticmethod
    def _make_result(progress: int, target: int) -> PredicateResult:
        """Create a standardized PredicateResult (progress capped at target)."""
        target = max(int(target), 1)
        return {
            "met": progress >= target,
            "progress": min(int(progress), target),
            "target": target,
        }


# Register handlers at module load
QuestEngine._register_handlers()  # noqa: SLF001
