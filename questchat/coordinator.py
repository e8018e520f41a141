"""Coordinator for the QuestChat progression engine.

The coordinator is the one object a host constructs per player profile. It
owns the snapshot, wires the managers together and exposes:
- one entry point per event kind, each returning an EventResult delta
- the read-only query surface used by the presentation layer
- snapshot export and reconstruction

Every event runs the same pipeline:
    validate payload → daily reset / window refresh → record + grant
    → day metrics and streak bonus → quest evaluation (+ quest XP)
    → achievement evaluation (+ achievement XP) → persistence callback
"""

# pylint: disable=too-many-public-methods

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from zoneinfo import ZoneInfo

import voluptuous as vol

from . import const, data_builders as db
from .catalog import load_catalog
from .engines.statistics_engine import StatisticsEngine
from .managers import (
    AchievementManager,
    BuffManager,
    DailyManager,
    ProgressionManager,
    QuestManager,
    ReminderManager,
    StatisticsManager,
    TalentManager,
)
from .migration import migrate_snapshot
from .services import EVENT_SCHEMAS, OPTIONS_SCHEMA
from .utils.dt_utils import dt_format_iso, dt_now_utc, dt_parse

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from datetime import datetime

    from .catalog import Catalog
    from .type_defs import (
        AchievementView,
        ActiveBuffView,
        EventResult,
        LevelProgress,
        PendingLevelUp,
        QuestView,
        ReminderContext,
        Snapshot,
        TalentNodeView,
    )

    PersistCallback = Callable[[Snapshot], Any]


class QuestChatCoordinator:
    """Progression engine for one player profile.

    Usage:
        coordinator = QuestChatCoordinator.from_snapshot(store.load(), options)
        result = coordinator.timer_completed(
            {"category": "work", "duration_minutes": 45}, now
        )
    """

    def __init__(
        self,
        options: Mapping[str, Any] | None = None,
        *,
        catalog: Catalog | None = None,
        snapshot: Mapping[str, Any] | None = None,
        persist: PersistCallback | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            options: CONF_* options; missing keys fall back to DEFAULT_* values
            catalog: Quest/achievement/talent tables (bundled catalog if None)
            snapshot: Persisted data to resume from (fresh profile if None)
            persist: Called with a snapshot copy after every mutation

        Raises:
            vol.Invalid: The options fail validation.
            SnapshotError: The snapshot root is not a mapping.
        """
        self.options: dict[str, Any] = OPTIONS_SCHEMA(dict(options or {}))
        self.tz = ZoneInfo(self.options[const.CONF_TIMEZONE])
        self.catalog = catalog or load_catalog()
        self.stats = StatisticsEngine()
        self._persist_callback = persist

        self._data: dict[str, Any] = dict(
            migrate_snapshot(
                snapshot if snapshot is not None else db.build_default_snapshot(),
                self.tz,
            )
        )

        # Managers (setup order matters: talents read the progression level)
        self.buff_manager = BuffManager(self)
        self.progression_manager = ProgressionManager(self)
        self.daily_manager = DailyManager(self)
        self.statistics_manager = StatisticsManager(self)
        self.quest_manager = QuestManager(self)
        self.achievement_manager = AchievementManager(self)
        self.talent_manager = TalentManager(self)
        self.reminder_manager = ReminderManager(self)
        self._setup_managers()

        self._handlers: dict[str, Callable[[dict[str, Any], datetime, Any], Any]] = {
            const.EVENT_TIMER_COMPLETED: self._apply_timer_completed,
            const.EVENT_RATING_LOGGED: self._apply_rating_logged,
            const.EVENT_HYDRATION_LOGGED: self._apply_hydration_logged,
            const.EVENT_SCREEN_VIEWED: self._apply_screen_viewed,
            const.EVENT_QUEST_REROLLED: self._apply_quest_rerolled,
            const.EVENT_TALENT_POINT_SPENT: self._apply_talent_point_spent,
            const.EVENT_TALENT_RESPEC: self._apply_talent_respec,
            const.EVENT_REMINDER_SETTING_CHANGED: self._apply_reminder_setting_changed,
            const.EVENT_REMINDER_RESPONDED: self._apply_reminder_responded,
            const.EVENT_LEVEL_UP_ACKNOWLEDGED: self._apply_level_up_acknowledged,
            const.EVENT_FULL_RESET: self._apply_full_reset,
        }

        const.LOGGER.debug(
            "DEBUG: Coordinator ready (tz=%s, level=%s, xp=%s)",
            self.tz,
            self.progression_manager.level,
            self.progression_manager.total_xp,
        )

    @classmethod
    def from_snapshot(
        cls,
        data: Mapping[str, Any],
        options: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> QuestChatCoordinator:
        """Rebuild a coordinator from persisted data.

        Older layouts are migrated and malformed sections fall back to
        defaults. The persistence callback is not invoked.
        """
        return cls(options, snapshot=data, **kwargs)

    def _setup_managers(self) -> None:
        for manager in (
            self.buff_manager,
            self.progression_manager,
            self.daily_manager,
            self.statistics_manager,
            self.quest_manager,
            self.achievement_manager,
            self.talent_manager,
            self.reminder_manager,
        ):
            manager.setup()

    # -------------------------------------------------------------------------------------
    # Snapshot
    # -------------------------------------------------------------------------------------

    @property
    def data(self) -> dict[str, Any]:
        """Live snapshot. Managers mutate their sections in place."""
        return self._data

    def to_snapshot(self) -> Snapshot:
        """Return a detached copy of the full versioned snapshot."""
        return db.clone_snapshot(self._data)  # type: ignore[arg-type]

    def _persist(self, now: datetime) -> None:
        """Stamp the snapshot and hand a copy to the persistence callback."""
        self._data[const.DATA_META][const.DATA_META_LAST_SAVED_AT] = dt_format_iso(
            now
        )
        if self._persist_callback is None:
            return
        self._persist_callback(self.to_snapshot())

    # -------------------------------------------------------------------------------------
    # Event pipeline
    # -------------------------------------------------------------------------------------

    @staticmethod
    def _resolve_now(now: datetime | None) -> datetime:
        if now is None:
            return dt_now_utc()
        return dt_parse(now)  # type: ignore[return-value]

    def _refresh_day(self, now: datetime) -> tuple[bool, bool]:
        """Run the lazy day-boundary work.

        Returns:
            (day_reset, changed) where changed covers window rebuilds,
            pruned counter buckets and expired buffs as well.
        """
        day_reset = self.daily_manager.ensure_fresh_day(now)
        windows = self.quest_manager.refresh_windows(now)
        pruned = self.statistics_manager.prune(now)
        expired = self.buff_manager.sweep(now)
        return day_reset, bool(day_reset or windows or pruned or expired)

    def _buff_names(self) -> set[str]:
        return {buff[const.DATA_BUFF_NAME] for buff in self._data[const.DATA_BUFFS]}

    def handle_event(
        self,
        event: str,
        payload: Mapping[str, Any] | None = None,
        now: datetime | None = None,
    ) -> EventResult:
        """Validate and apply one event.

        Args:
            event: One of the const.EVENT_* kinds
            payload: Event fields, validated against the event's schema
            now: Event time (timezone-aware; naive values are taken as UTC)

        Returns:
            EventResult describing the state delta. Rejected payloads and
            invalid commands come back with applied=False and a reason.
        """
        now = self._resolve_now(now)
        result = db.build_event_result(event)

        handler = self._handlers.get(event)
        if handler is None:
            const.LOGGER.warning("WARNING: Unknown event kind '%s'", event)
            return self._not_applied(result, const.REASON_UNKNOWN_EVENT)

        try:
            validated = EVENT_SCHEMAS[event](dict(payload or {}))
        except vol.Invalid as err:
            const.LOGGER.warning("WARNING: Rejected %s payload: %s", event, err)
            return self._not_applied(result, const.REASON_INVALID_PAYLOAD)

        buffs_before = self._buff_names()
        day_reset, changed = self._refresh_day(now)
        result[const.RESULT_DAY_RESET] = day_reset

        activated: list[str] = []
        reason = handler(validated, now, _EventContext(result, activated))
        if reason is not None:
            self._not_applied(result, reason)
        elif event != const.EVENT_FULL_RESET:
            self._settle(result, now)

        buffs_after = self._buff_names()
        result[const.RESULT_BUFFS_CHANGED] = sorted(
            (buffs_before ^ buffs_after) | set(activated)
        )

        if result[const.RESULT_APPLIED] or changed:
            self._persist(now)

        const.LOGGER.debug(
            "DEBUG: Event %s applied=%s xp=%s quests=%s",
            event,
            result[const.RESULT_APPLIED],
            result[const.RESULT_XP_GRANTED],
            result[const.RESULT_QUESTS_COMPLETED],
        )
        return result

    @staticmethod
    def _not_applied(result: EventResult, reason: str) -> EventResult:
        result[const.RESULT_APPLIED] = False
        result[const.RESULT_REASON] = reason  # type: ignore[typeddict-unknown-key]
        return result

    def _grant(
        self,
        result: EventResult,
        source: str,
        base_amount: int,
        now: datetime,
        reference_id: str | None = None,
    ) -> int:
        """Grant XP through the progression ledger and record it on `result`."""
        outcome = self.progression_manager.grant_xp(
            base_amount, self.buff_manager.count_active(now)
        )
        if outcome is None:
            return 0
        result[const.RESULT_GRANTS].append(
            db.build_grant_record(
                source, reference_id, base_amount, outcome["adjusted_amount"]
            )
        )
        result[const.RESULT_XP_GRANTED] += outcome["adjusted_amount"]
        if outcome["level_up"] is not None:
            result[const.RESULT_LEVEL_UP] = outcome["level_up"]
        return outcome["adjusted_amount"]

    def _grant_daily(
        self,
        result: EventResult,
        flag_id: str,
        source: str,
        base_amount: int,
        now: datetime,
        buff_type: const.BuffType | None = None,
        activated: list[str] | None = None,
    ) -> bool:
        """Once-per-day grant, optionally activating its buff first.

        The buff is activated before the XP so it counts toward its own
        grant's multiplier.
        """

        def _action() -> None:
            if buff_type is not None:
                self.buff_manager.activate(buff_type, now)
                if activated is not None:
                    activated.append(buff_type.value)
            self._grant(result, source, base_amount, now)

        return self.daily_manager.grant_once_per_day(flag_id, _action, now)

    def _check_trifecta(self, result: EventResult, now: datetime) -> bool:
        """Grant the trifecta bonus once all three health flags are set today."""
        if not self.daily_manager.all_flags_set(const.TRIFECTA_REQUIRED_FLAGS, now):
            return False
        granted = self._grant_daily(
            result,
            const.FLAG_TRIFECTA_GRANTED,
            const.GRANT_SOURCE_TRIFECTA,
            const.XP_TRIFECTA_BONUS,
            now,
        )
        if granted:
            const.LOGGER.info("INFO: Trifecta bonus granted")
        return granted

    def _settle(self, result: EventResult, now: datetime) -> None:
        """Re-derive streaks, quests and achievements from the counters."""
        self.achievement_manager.mark_day_metrics(
            self.statistics_manager.day_metrics(now), now
        )
        if self.achievement_manager.streak_continued(const.DAY_METRIC_ACTIVITY, now):
            self._grant_daily(
                result,
                const.FLAG_STREAK_GRANTED,
                const.GRANT_SOURCE_STREAK,
                const.XP_STREAK_BONUS,
                now,
            )

        for definition in self.quest_manager.evaluate(now):
            result[const.RESULT_QUESTS_COMPLETED].append(definition["id"])
            self._grant(
                result,
                const.GRANT_SOURCE_QUEST,
                definition["xp_reward"],
                now,
                reference_id=definition["id"],
            )

        if self.quest_manager.all_daily_completed(now):
            self._grant_daily(
                result,
                const.FLAG_QUEST_CHEST_GRANTED,
                const.GRANT_SOURCE_QUEST_CHEST,
                const.XP_QUEST_CHEST_BONUS,
                now,
            )

        for definition in self.achievement_manager.evaluate(now):
            result[const.RESULT_ACHIEVEMENTS_UNLOCKED].append(definition["id"])
            self._grant(
                result,
                const.GRANT_SOURCE_ACHIEVEMENT,
                definition["xp_reward"],
                now,
                reference_id=definition["id"],
            )

    # -------------------------------------------------------------------------------------
    # Event handlers
    # Each returns None when applied, or a REASON_* value when not.
    # -------------------------------------------------------------------------------------

    def _apply_timer_completed(
        self, payload: dict[str, Any], now: datetime, ctx: _EventContext
    ) -> str | None:
        minutes = payload[const.FIELD_DURATION_MINUTES]
        timer = self.statistics_manager.record_timer(
            payload[const.FIELD_CATEGORY],
            minutes,
            payload.get(const.FIELD_ENDED_AT, now),
        )
        self.achievement_manager.record_timer(timer)
        self._grant(
            ctx.result,
            const.GRANT_SOURCE_SESSION,
            minutes * const.XP_PER_SESSION_MINUTE,
            now,
        )
        return None

    def _apply_rating_logged(
        self, payload: dict[str, Any], now: datetime, ctx: _EventContext
    ) -> str | None:
        kind = payload[const.FIELD_RATING_KIND]
        value = payload[const.FIELD_RATING_VALUE]
        self.statistics_manager.record_checkin(kind, value, now)

        if kind == const.RATING_KIND_SLEEP:
            self._grant_daily(
                ctx.result,
                const.FLAG_SLEEP_GRANTED,
                const.GRANT_SOURCE_SLEEP,
                const.XP_HEALTH_GRANT,
                now,
                const.BuffType.RESTED,
                ctx.activated,
            )
            self._check_trifecta(ctx.result, now)
        elif kind == const.RATING_KIND_GUT:
            self._grant_daily(
                ctx.result,
                const.FLAG_GUT_GRANTED,
                const.GRANT_SOURCE_GUT,
                const.XP_HEALTH_GRANT,
                now,
                const.BuffType.GUT_HAPPY,
                ctx.activated,
            )
            self._check_trifecta(ctx.result, now)
        elif value >= const.RATING_POSITIVE_THRESHOLD:
            self.buff_manager.activate(const.BuffType.RAY_OF_SUNSHINE, now)
            ctx.activated.append(const.BuffType.RAY_OF_SUNSHINE.value)
        return None

    def _apply_hydration_logged(
        self, payload: dict[str, Any], now: datetime, ctx: _EventContext
    ) -> str | None:
        total = self.statistics_manager.record_hydration(
            payload[const.FIELD_OUNCES], payload.get(const.FIELD_GOAL_OUNCES), now
        )
        _, goal = self.statistics_manager.hydration_status(now)
        if goal > 0 and total >= goal:
            self._grant_daily(
                ctx.result,
                const.FLAG_WATER_GOAL_GRANTED,
                const.GRANT_SOURCE_HYDRATION_GOAL,
                const.XP_HEALTH_GRANT,
                now,
                const.BuffType.HYDRATED,
                ctx.activated,
            )
            self._check_trifecta(ctx.result, now)
        return None

    def _apply_screen_viewed(
        self, payload: dict[str, Any], now: datetime, ctx: _EventContext
    ) -> str | None:
        self.statistics_manager.record_screen(payload[const.FIELD_SCREEN], now)
        return None

    def _apply_quest_rerolled(
        self, payload: dict[str, Any], now: datetime, ctx: _EventContext
    ) -> str | None:
        replacement, reason = self.quest_manager.reroll(
            payload[const.FIELD_QUEST_ID], now
        )
        if replacement is None:
            return reason
        ctx.result[const.RESULT_REPLACEMENT_ID] = replacement  # type: ignore[typeddict-unknown-key]
        return None

    def _apply_talent_point_spent(
        self, payload: dict[str, Any], now: datetime, ctx: _EventContext
    ) -> str | None:
        if not self.talent_manager.allocate(payload[const.FIELD_NODE_ID]):
            return const.REASON_TALENT_LOCKED
        return None

    def _apply_talent_respec(
        self, payload: dict[str, Any], now: datetime, ctx: _EventContext
    ) -> str | None:
        self.talent_manager.respec_all()
        return None

    def _apply_reminder_setting_changed(
        self, payload: dict[str, Any], now: datetime, ctx: _EventContext
    ) -> str | None:
        changes = dict(payload)
        reminder_type = changes.pop(const.FIELD_REMINDER_TYPE)
        if not self.reminder_manager.update_settings(reminder_type, changes):
            return const.REASON_INVALID_PAYLOAD
        return None

    def _apply_reminder_responded(
        self, payload: dict[str, Any], now: datetime, ctx: _EventContext
    ) -> str | None:
        self.reminder_manager.responded(payload[const.FIELD_REMINDER_TYPE], now)
        return None

    def _apply_level_up_acknowledged(
        self, payload: dict[str, Any], now: datetime, ctx: _EventContext
    ) -> str | None:
        if not self.progression_manager.acknowledge_level_up():
            return const.REASON_NOTHING_PENDING
        return None

    def _apply_full_reset(
        self, payload: dict[str, Any], now: datetime, ctx: _EventContext
    ) -> str | None:
        """Wipe all progress. Reminder settings survive the reset."""
        const.LOGGER.warning("WARNING: Full progression reset requested")
        self.buff_manager.clear_all()
        self.progression_manager.reset_xp()
        self.talent_manager.respec_all()
        self._data[const.DATA_DAILY] = db.build_default_daily()
        self.statistics_manager.clear()
        self.quest_manager.clear()
        self.achievement_manager.clear()
        self.reminder_manager.reset_runtime()
        self._setup_managers()
        return None

    # -------------------------------------------------------------------------------------
    # Event entry points
    # -------------------------------------------------------------------------------------

    def timer_completed(
        self, payload: Mapping[str, Any], now: datetime | None = None
    ) -> EventResult:
        """A focus/chore/self-care timer finished.

        Payload: category, duration_minutes, optional ended_at (defaults to now).
        """
        return self.handle_event(const.EVENT_TIMER_COMPLETED, payload, now)

    def rating_logged(
        self, payload: Mapping[str, Any], now: datetime | None = None
    ) -> EventResult:
        """A mood, sleep or gut check-in was logged (value 1-5)."""
        return self.handle_event(const.EVENT_RATING_LOGGED, payload, now)

    def hydration_logged(
        self, payload: Mapping[str, Any], now: datetime | None = None
    ) -> EventResult:
        """Water intake was logged; optional goal_ounces overrides today's goal."""
        return self.handle_event(const.EVENT_HYDRATION_LOGGED, payload, now)

    def screen_viewed(
        self, payload: Mapping[str, Any], now: datetime | None = None
    ) -> EventResult:
        return self.handle_event(const.EVENT_SCREEN_VIEWED, payload, now)

    def quest_rerolled(
        self, payload: Mapping[str, Any], now: datetime | None = None
    ) -> EventResult:
        """Swap one pending daily quest; the result carries the replacement id."""
        return self.handle_event(const.EVENT_QUEST_REROLLED, payload, now)

    def talent_point_spent(
        self, payload: Mapping[str, Any], now: datetime | None = None
    ) -> EventResult:
        return self.handle_event(const.EVENT_TALENT_POINT_SPENT, payload, now)

    def talent_respec(
        self, payload: Mapping[str, Any] | None = None, now: datetime | None = None
    ) -> EventResult:
        return self.handle_event(const.EVENT_TALENT_RESPEC, payload, now)

    def reminder_setting_changed(
        self, payload: Mapping[str, Any], now: datetime | None = None
    ) -> EventResult:
        return self.handle_event(const.EVENT_REMINDER_SETTING_CHANGED, payload, now)

    def reminder_responded(
        self, payload: Mapping[str, Any], now: datetime | None = None
    ) -> EventResult:
        return self.handle_event(const.EVENT_REMINDER_RESPONDED, payload, now)

    def level_up_acknowledged(
        self, payload: Mapping[str, Any] | None = None, now: datetime | None = None
    ) -> EventResult:
        return self.handle_event(const.EVENT_LEVEL_UP_ACKNOWLEDGED, payload, now)

    def full_reset(
        self, payload: Mapping[str, Any] | None = None, now: datetime | None = None
    ) -> EventResult:
        return self.handle_event(const.EVENT_FULL_RESET, payload, now)

    # -------------------------------------------------------------------------------------
    # Query surface
    # -------------------------------------------------------------------------------------

    @property
    def level(self) -> int:
        return self.progression_manager.level

    @property
    def total_xp(self) -> int:
        return self.progression_manager.total_xp

    @property
    def pending_level_up(self) -> PendingLevelUp | None:
        return self.progression_manager.pending_level_up

    def progress_to_next_level(self) -> LevelProgress:
        return self.progression_manager.progress_to_next_level()

    def active_buffs(self, now: datetime | None = None) -> list[ActiveBuffView]:
        """Active buffs with remaining time; a new day reports none."""
        now = self._resolve_now(now)
        if self._refresh_day(now)[1]:
            self._persist(now)
        return self.buff_manager.active_buffs(now)

    def daily_quests(self, now: datetime | None = None) -> list[QuestView]:
        """Today's quest board, materializing it if the day rolled over."""
        now = self._resolve_now(now)
        if self._refresh_day(now)[1]:
            self._persist(now)
        return self.quest_manager.daily_views(now)

    def weekly_quests(self, now: datetime | None = None) -> list[QuestView]:
        now = self._resolve_now(now)
        if self._refresh_day(now)[1]:
            self._persist(now)
        return self.quest_manager.weekly_views()

    def achievements(self) -> list[AchievementView]:
        return self.achievement_manager.views()

    @property
    def unlocked_titles(self) -> list[str]:
        return self.achievement_manager.unlocked_titles

    @property
    def equipped_title(self) -> str | None:
        return self.achievement_manager.equipped_title

    def equip_title(self, title: str | None, now: datetime | None = None) -> bool:
        """Equip an unlocked cosmetic title (None unequips)."""
        if not self.achievement_manager.equip_title(title):
            const.LOGGER.debug("DEBUG: Title '%s' is not unlocked", title)
            return False
        self._persist(self._resolve_now(now))
        return True

    def talent_tree(self) -> list[TalentNodeView]:
        return self.talent_manager.tree_state()

    @property
    def talent_points_available(self) -> int:
        return self.talent_manager.points_available

    # -------------------------------------------------------------------------------------
    # Reminders
    # -------------------------------------------------------------------------------------

    def reminder_context(
        self,
        now: datetime | None = None,
        *,
        reason: str = const.REMINDER_REASON_PERIODIC,
        session_category: str | None = None,
        session_duration_minutes: int | None = None,
        qualifying_session_active: bool = False,
    ) -> ReminderContext:
        """Build reminder context, filling hydration numbers from today's counters."""
        ounces, goal = self.statistics_manager.hydration_status(
            self._resolve_now(now)
        )
        return {
            "qualifying_session_active": qualifying_session_active,
            "reason": reason,
            "session_category": session_category,
            "session_duration_minutes": session_duration_minutes,
            "water_intake_ounces": ounces,
            "water_goal_ounces": goal,
        }

    def _full_context(
        self, now: datetime, context: ReminderContext | None
    ) -> ReminderContext:
        return {**self.reminder_context(now), **(context or {})}  # type: ignore[typeddict-item]

    def should_fire_reminder(
        self,
        reminder_type: str,
        now: datetime | None = None,
        context: ReminderContext | None = None,
    ) -> bool:
        """Whether a reminder may fire now. Does not record anything."""
        now = self._resolve_now(now)
        return self.reminder_manager.should_fire(
            reminder_type, now, self._full_context(now, context)
        )

    def maybe_fire_reminder(
        self,
        reminder_type: str,
        now: datetime | None = None,
        context: ReminderContext | None = None,
    ) -> bool:
        """Fire-and-record in one step. Returns whether the host should notify."""
        now = self._resolve_now(now)
        fired = self.reminder_manager.maybe_fire(
            reminder_type, now, self._full_context(now, context)
        )
        if fired:
            self._persist(now)
        return fired

    def next_reminder_times(
        self, now: datetime | None = None
    ) -> dict[str, datetime | None]:
        """Next eligible time per reminder type (None when disabled)."""
        now = self._resolve_now(now)
        return {
            reminder_type: self.reminder_manager.next_eligible_time(
                reminder_type, now
            )
            for reminder_type in const.REMINDER_TYPES
        }


class _EventContext:
    """Mutable state shared by one event's handler and the pipeline."""

    __slots__ = ("activated", "result")

    def __init__(self, result: EventResult, activated: list[str]) -> None:
        self.result = result
        self.activated = activated
