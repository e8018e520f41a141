"""Type definitions for QuestChat snapshot and catalog structures.

ARCHITECTURE DECISION: HYBRID APPROACH (TypedDict + dict[str, Any])
===================================================================

1. **TypedDict for STATIC structures** (fixed keys known at design time):
   snapshot sections, catalog entries, event results.

2. **dict[str, Any] for DYNAMIC structures** (keys determined at runtime):
   per-day counter buckets keyed by ISO date, flags keyed by grant id,
   talent ranks keyed by node id, season counts keyed by metric name.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Runtime validation of persisted data
happens in migration.py (voluptuous schemas per snapshot section).

IMPORTANT: This file must NOT import from coordinator.py or managers to avoid
circular dependencies. Only typing machinery is imported here.
"""

from typing import Any, Literal, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

QuestId = str
AchievementId = str
TalentNodeId = str
FlagId = str
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00+00:00"
ISODate = str  # ISO 8601 date string (no time) "2026-01-18"

LevelUpTier = Literal["normal", "milestone", "jackpot"]
QuestScope = Literal["daily", "weekly"]
QuestStatus = Literal["pending", "completed"]


# =============================================================================
# Progression
# =============================================================================


class PendingLevelUp(TypedDict):
    """Latest unacknowledged level-up."""

    level: int
    tier: LevelUpTier


class ProgressionState(TypedDict):
    """Progression ledger section.

    Invariant: level == min(100, total_xp // 1000 + 1).
    """

    total_xp: int
    level: int
    pending_level_up: PendingLevelUp | None


class GrantOutcome(TypedDict):
    """Result of a single XP grant computed by ProgressionEngine."""

    base_amount: int
    multiplier: float
    adjusted_amount: int
    total_xp: int
    previous_level: int
    level: int
    level_up: PendingLevelUp | None


class LevelProgress(TypedDict):
    """Progress-to-next-level view for the presentation layer."""

    level: int
    total_xp: int
    xp_into_level: int
    xp_for_level: int
    fraction: float


# =============================================================================
# Buffs
# =============================================================================


class BuffEntry(TypedDict):
    """A single time-limited buff.

    `name` holds the BuffType value so snapshots stay plain strings.
    """

    id: str
    name: str
    magnitude: float
    duration_seconds: int
    started_at: ISODatetime


class ActiveBuffView(TypedDict):
    """Active buff with its derived remaining time."""

    name: str
    magnitude: float
    remaining_seconds: int
    started_at: ISODatetime


# =============================================================================
# Daily state
# =============================================================================


class DailyState(TypedDict):
    """Per-day grant flags and the day marker of the last reset."""

    last_reset_day: ISODate | None
    flags: dict[FlagId, bool]


# =============================================================================
# Counters (dynamic - keyed by ISO date)
# =============================================================================


class TimerRecord(TypedDict):
    """A completed timer session."""

    category: str
    duration_minutes: int
    ended_at: ISODatetime
    ended_hour: int  # local hour, so predicates stay timezone-free


class QuestCompletionRecord(TypedDict):
    """A quest completion recorded in the day bucket."""

    quest_id: QuestId
    scope: QuestScope
    difficulty: str
    completed_at: ISODatetime


# Day bucket keys are DATA_DAY_* constants; values vary per key.
DayBucket = dict[str, Any]


class CounterState(TypedDict):
    """Retained per-day counter buckets."""

    days: dict[ISODate, DayBucket]


# =============================================================================
# Quests
# =============================================================================


class QuestPredicate(TypedDict):
    """Declarative completion predicate reference."""

    type: str
    params: NotRequired[dict[str, Any]]


class QuestDefinition(TypedDict):
    """Static quest catalog entry (quests.json)."""

    id: QuestId
    scope: QuestScope
    category: str
    difficulty: str
    tier: str
    xp_reward: int
    once_per_scope: bool
    title: str
    subtitle: str
    predicate: QuestPredicate


class QuestInstance(TypedDict):
    """Runtime quest instance for one scope window."""

    definition_id: QuestId
    scope: QuestScope
    window_start: ISODate
    status: QuestStatus
    progress: int
    target: int
    completed_at: ISODatetime | None
    is_core: bool


class QuestState(TypedDict):
    """Quest section of the snapshot."""

    daily: list[QuestInstance]
    weekly: list[QuestInstance]
    daily_window: ISODate | None
    weekly_window: ISODate | None
    discarded: list[QuestId]


class PredicateResult(TypedDict):
    """Outcome of evaluating one predicate against counters."""

    met: bool
    progress: int
    target: int


class QuestContext(TypedDict):
    """Everything a quest predicate may read.

    Built by QuestManager from counters; the engine never touches snapshot
    state directly.
    """

    today: ISODate
    week_days: list[ISODate]
    days: dict[ISODate, DayBucket]
    hydration_goal_ounces: int


class QuestView(TypedDict):
    """Quest instance joined with its definition for the presentation layer."""

    id: QuestId
    title: str
    subtitle: str
    category: str
    difficulty: str
    xp_reward: int
    status: QuestStatus
    progress: int
    target: int
    is_core: bool
    can_reroll: bool


# =============================================================================
# Achievements
# =============================================================================


class AchievementDefinition(TypedDict):
    """Static season achievement catalog entry (achievements.json)."""

    id: AchievementId
    title: str
    subtitle: str
    condition_type: str
    metric: NotRequired[str]
    metrics: NotRequired[list[str]]
    threshold: int
    xp_reward: int
    season_id: str
    reward_title: str
    is_secret: bool


class AchievementProgress(TypedDict):
    """Per-achievement progress. unlocked_at is fixed once set."""

    current_value: int
    unlocked_at: ISODatetime | None
    last_updated_at: ISODatetime | None


class StreakTracker(TypedDict):
    """Consecutive-day tracker for a day metric."""

    current: int
    longest: int
    last_date: ISODate | None


class SeasonState(TypedDict):
    """Season-long counters (never reset daily)."""

    season_id: str
    counts: dict[str, int]
    streaks: dict[str, StreakTracker]


class TitleState(TypedDict):
    """Cosmetic titles unlocked by achievements."""

    unlocked: list[str]
    equipped: str | None


class AchievementView(TypedDict):
    """Achievement list entry for the presentation layer."""

    id: AchievementId
    title: str
    current_value: int
    threshold: int
    fraction: float
    unlocked_at: ISODatetime | None


# =============================================================================
# Talents
# =============================================================================


class TalentNode(TypedDict):
    """Static talent catalog entry (talents.json)."""

    id: TalentNodeId
    name: str
    description: str
    tier: int
    column: int
    max_ranks: int
    prerequisite_ids: list[TalentNodeId]


class TalentState(TypedDict):
    """Talent allocation section."""

    ranks: dict[TalentNodeId, int]


class TalentNodeView(TypedDict):
    """Talent node with allocation state for the presentation layer."""

    id: TalentNodeId
    name: str
    tier: int
    rank: int
    max_ranks: int
    can_allocate: bool


# =============================================================================
# Reminders
# =============================================================================


class ReminderSettings(TypedDict):
    """Per reminder-type settings."""

    enabled: bool
    cadence_minutes: int
    active_start_hour: int
    active_end_hour: int
    only_during_qualifying_session: bool


class ReminderRuntime(TypedDict):
    """Per reminder-type runtime state."""

    last_fired_at: ISODatetime | None


class ReminderState(TypedDict):
    """Reminder section of the snapshot."""

    settings: dict[str, ReminderSettings]
    state: dict[str, ReminderRuntime]


class ReminderContext(TypedDict, total=False):
    """Live context supplied by the host when asking whether to fire."""

    qualifying_session_active: bool
    reason: str
    session_category: str | None
    session_duration_minutes: int | None
    water_intake_ounces: int
    water_goal_ounces: int


# =============================================================================
# Snapshot & event results
# =============================================================================


class SnapshotMeta(TypedDict):
    """Snapshot metadata."""

    schema_version: int
    last_saved_at: ISODatetime | None
    migrations_applied: list[str]


class Snapshot(TypedDict):
    """Flat, versioned persistence record."""

    meta: SnapshotMeta
    progression: ProgressionState
    buffs: list[BuffEntry]
    daily: DailyState
    counters: CounterState
    quests: QuestState
    achievements: dict[AchievementId, AchievementProgress]
    season: SeasonState
    titles: TitleState
    talents: TalentState
    reminders: ReminderState


class GrantRecord(TypedDict):
    """One XP grant inside an EventResult."""

    source: str
    reference_id: str | None
    base_amount: int
    adjusted_amount: int


class EventResult(TypedDict):
    """State delta returned from every coordinator entry point."""

    event: str
    applied: bool
    xp_granted: int
    grants: list[GrantRecord]
    quests_completed: list[QuestId]
    achievements_unlocked: list[AchievementId]
    level_up: PendingLevelUp | None
    buffs_changed: list[str]
    day_reset: bool
    reason: NotRequired[str]
    replacement_id: NotRequired[QuestId]
