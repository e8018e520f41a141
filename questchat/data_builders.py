"""Snapshot section and record builders.

This module is the SINGLE SOURCE OF TRUTH for:
- Default snapshot sections (fresh profiles, recovered sections, full reset)
- Record structures written into counters (timers, quest completions)
- Reminder settings merged over their per-type defaults

Consumers:
- store.py (get_default_structure)
- migration.py (section fallback on malformed input)
- managers (record creation, full reset)
- coordinator (event results)
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from . import const
from .utils.dt_utils import as_local, dt_format_iso

if TYPE_CHECKING:
    from datetime import datetime
    from zoneinfo import ZoneInfo

    from .type_defs import (
        CounterState,
        DailyState,
        EventResult,
        GrantRecord,
        ProgressionState,
        QuestCompletionRecord,
        QuestState,
        ReminderSettings,
        ReminderState,
        SeasonState,
        Snapshot,
        TalentState,
        TimerRecord,
        TitleState,
    )


# ==============================================================================
# DEFAULT SECTIONS
# ==============================================================================


def build_default_progression() -> ProgressionState:
    """Return the progression section of a fresh profile."""
    return {
        const.DATA_PROGRESSION_TOTAL_XP: 0,
        const.DATA_PROGRESSION_LEVEL: const.MIN_LEVEL,
        const.DATA_PROGRESSION_PENDING_LEVEL_UP: None,
    }  # type: ignore[return-value]


def build_default_daily() -> DailyState:
    """Return a daily section that has never been reset."""
    return {
        const.DATA_DAILY_LAST_RESET_DAY: None,
        const.DATA_DAILY_FLAGS: {},
    }  # type: ignore[return-value]


def build_default_counters() -> CounterState:
    """Return an empty counters section."""
    return {const.DATA_COUNTERS_DAYS: {}}  # type: ignore[return-value]


def build_default_quests() -> QuestState:
    """Return a quests section with no materialized windows."""
    return {
        const.DATA_QUESTS_DAILY: [],
        const.DATA_QUESTS_WEEKLY: [],
        const.DATA_QUESTS_DAILY_WINDOW: None,
        const.DATA_QUESTS_WEEKLY_WINDOW: None,
        const.DATA_QUESTS_DISCARDED: [],
    }  # type: ignore[return-value]


def build_default_season(season_id: str = const.CURRENT_SEASON_ID) -> SeasonState:
    """Return empty season counters."""
    return {
        const.DATA_SEASON_ID: season_id,
        const.DATA_SEASON_COUNTS: {},
        const.DATA_SEASON_STREAKS: {},
    }  # type: ignore[return-value]


def build_default_titles() -> TitleState:
    """Return a titles section with nothing unlocked."""
    return {
        const.DATA_TITLES_UNLOCKED: [],
        const.DATA_TITLES_EQUIPPED: None,
    }  # type: ignore[return-value]


def build_default_talents() -> TalentState:
    """Return an unallocated talent section."""
    return {const.DATA_TALENTS_RANKS: {}}  # type: ignore[return-value]


def build_reminder_settings(
    reminder_type: str, overrides: dict[str, Any] | None = None
) -> ReminderSettings:
    """Return reminder settings with `overrides` merged over the type defaults.

    Unknown keys in `overrides` are ignored.
    """
    settings = dict(const.DEFAULT_REMINDER_SETTINGS[reminder_type])
    for key, value in (overrides or {}).items():
        if key in settings:
            settings[key] = value
    return settings  # type: ignore[return-value]


def build_default_reminders() -> ReminderState:
    """Return default settings and empty runtime state for every type."""
    return {
        const.DATA_REMINDERS_SETTINGS: {
            reminder_type: build_reminder_settings(reminder_type)
            for reminder_type in const.REMINDER_TYPES
        },
        const.DATA_REMINDERS_STATE: {
            reminder_type: {const.DATA_REMINDER_LAST_FIRED_AT: None}
            for reminder_type in const.REMINDER_TYPES
        },
    }  # type: ignore[return-value]


_SECTION_BUILDERS = {
    const.DATA_PROGRESSION: build_default_progression,
    const.DATA_BUFFS: list,
    const.DATA_DAILY: build_default_daily,
    const.DATA_COUNTERS: build_default_counters,
    const.DATA_QUESTS: build_default_quests,
    const.DATA_ACHIEVEMENTS: dict,
    const.DATA_SEASON: build_default_season,
    const.DATA_TITLES: build_default_titles,
    const.DATA_TALENTS: build_default_talents,
    const.DATA_REMINDERS: build_default_reminders,
}


def build_default_section(section: str) -> Any:
    """Return the default value for a snapshot section key."""
    return _SECTION_BUILDERS[section]()


def build_default_snapshot() -> Snapshot:
    """Return the canonical empty snapshot for a fresh profile."""
    snapshot: dict[str, Any] = {
        const.DATA_META: {
            const.DATA_META_SCHEMA_VERSION: const.SCHEMA_VERSION_CURRENT,
            const.DATA_META_LAST_SAVED_AT: None,
            const.DATA_META_MIGRATIONS_APPLIED: [],
        }
    }
    for section in const.SNAPSHOT_SECTIONS:
        snapshot[section] = build_default_section(section)
    return snapshot  # type: ignore[return-value]


def clone_snapshot(snapshot: Snapshot) -> Snapshot:
    """Deep copy a snapshot so callers cannot mutate live state."""
    return copy.deepcopy(snapshot)


# ==============================================================================
# RECORDS
# ==============================================================================


def build_timer_record(
    category: str,
    duration_minutes: int,
    ended_at: datetime,
    tz: ZoneInfo | None = None,
) -> TimerRecord:
    """Build a timer record, capturing the local end hour."""
    return {
        const.DATA_TIMER_CATEGORY: category,
        const.DATA_TIMER_DURATION_MINUTES: duration_minutes,
        const.DATA_TIMER_ENDED_AT: dt_format_iso(ended_at),
        const.DATA_TIMER_ENDED_HOUR: as_local(ended_at, tz).hour,
    }  # type: ignore[return-value]


def build_quest_completion(
    quest_id: str, scope: str, difficulty: str, completed_at: datetime
) -> QuestCompletionRecord:
    """Build a quest completion record for the day bucket."""
    return {
        const.DATA_QUEST_COMPLETION_ID: quest_id,
        const.DATA_QUEST_COMPLETION_SCOPE: scope,
        const.DATA_QUEST_COMPLETION_DIFFICULTY: difficulty,
        const.DATA_QUEST_COMPLETION_AT: dt_format_iso(completed_at),
    }  # type: ignore[return-value]


def build_grant_record(
    source: str, reference_id: str | None, base_amount: int, adjusted_amount: int
) -> GrantRecord:
    """Build one XP grant entry of an event result."""
    return {
        "source": source,
        "reference_id": reference_id,
        "base_amount": base_amount,
        "adjusted_amount": adjusted_amount,
    }  # type: ignore[return-value]


def build_event_result(event: str) -> EventResult:
    """Build an empty, applied result for an event entry point."""
    return {
        const.RESULT_EVENT: event,
        const.RESULT_APPLIED: True,
        const.RESULT_XP_GRANTED: 0,
        const.RESULT_GRANTS: [],
        const.RESULT_QUESTS_COMPLETED: [],
        const.RESULT_ACHIEVEMENTS_UNLOCKED: [],
        const.RESULT_LEVEL_UP: None,
        const.RESULT_BUFFS_CHANGED: [],
        const.RESULT_DAY_RESET: False,
    }  # type: ignore[return-value]
