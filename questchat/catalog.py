"""Declarative content catalogs (quests, achievements, talents).

Catalog data lives in JSON files under questchat/data so content changes
never touch rule logic. Each entry is validated with a voluptuous schema on
load; a malformed bundled file raises CatalogError.

Usage:
    catalog = load_catalog()
    catalog.quests["DAILY_HB_MORNING_CHECKIN"]["xp_reward"]
"""

from __future__ import annotations

from dataclasses import dataclass, field
from importlib import resources
import json
from typing import TYPE_CHECKING, Any

import voluptuous as vol

from . import const
from .engines.quest_engine import QuestEngine
from .exceptions import CatalogError

if TYPE_CHECKING:
    from .type_defs import (
        AchievementDefinition,
        AchievementId,
        QuestDefinition,
        QuestId,
        TalentNode,
        TalentNodeId,
    )

# ==============================================================================
# Entry Schemas
# ==============================================================================

PREDICATE_SCHEMA = vol.Schema(
    {
        vol.Required("type"): vol.In(QuestEngine.supported_predicates()),
        vol.Optional("params", default={}): dict,
    }
)

QUEST_SCHEMA = vol.Schema(
    {
        vol.Required("id"): str,
        vol.Required("scope"): vol.In(
            [const.QUEST_SCOPE_DAILY, const.QUEST_SCOPE_WEEKLY]
        ),
        vol.Required("category"): vol.In(
            [
                const.QUEST_CATEGORY_TIMER,
                const.QUEST_CATEGORY_HEALTH_BAR,
                const.QUEST_CATEGORY_META,
                const.QUEST_CATEGORY_EASY_WIN,
            ]
        ),
        vol.Required("difficulty"): vol.In(
            [
                const.QUEST_DIFFICULTY_EASY,
                const.QUEST_DIFFICULTY_MEDIUM,
                const.QUEST_DIFFICULTY_HARD,
            ]
        ),
        vol.Required("tier"): vol.In(
            [const.QUEST_TIER_CORE, const.QUEST_TIER_HABIT, const.QUEST_TIER_BONUS]
        ),
        vol.Required("xp_reward"): vol.All(int, vol.Range(min=0)),
        vol.Optional("once_per_scope", default=True): bool,
        vol.Required("title"): str,
        vol.Optional("subtitle", default=""): str,
        vol.Required("predicate"): PREDICATE_SCHEMA,
    }
)

ACHIEVEMENT_SCHEMA = vol.Schema(
    {
        vol.Required("id"): str,
        vol.Required("title"): str,
        vol.Optional("subtitle", default=""): str,
        vol.Required("condition_type"): vol.In(
            [
                const.ACHIEVEMENT_TYPE_COUNT,
                const.ACHIEVEMENT_TYPE_STREAK,
                const.ACHIEVEMENT_TYPE_COMPOSITE,
            ]
        ),
        vol.Optional("metric"): str,
        vol.Optional("metrics"): [str],
        vol.Required("threshold"): vol.All(int, vol.Range(min=1)),
        vol.Required("xp_reward"): vol.All(int, vol.Range(min=0)),
        vol.Required("season_id"): str,
        vol.Required("reward_title"): str,
        vol.Optional("is_secret", default=False): bool,
    }
)

TALENT_SCHEMA = vol.Schema(
    {
        vol.Required("id"): str,
        vol.Required("name"): str,
        vol.Optional("description", default=""): str,
        vol.Required("tier"): vol.All(
            int, vol.Range(min=const.TALENT_MIN_TIER, max=const.TALENT_MAX_TIER)
        ),
        vol.Required("column"): vol.All(int, vol.Range(min=0)),
        vol.Required("max_ranks"): vol.All(int, vol.Range(min=1)),
        vol.Optional("prerequisite_ids", default=[]): [str],
    }
)


@dataclass(frozen=True, slots=True)
class Catalog:
    """Validated catalog tables keyed by id."""

    quests: dict[QuestId, QuestDefinition] = field(default_factory=dict)
    achievements: dict[AchievementId, AchievementDefinition] = field(
        default_factory=dict
    )
    talents: dict[TalentNodeId, TalentNode] = field(default_factory=dict)

    def quests_for_scope(self, scope: str) -> list[QuestDefinition]:
        """Return definitions of one scope in catalog order."""
        return [q for q in self.quests.values() if q["scope"] == scope]

    def season_achievements(self, season_id: str) -> list[AchievementDefinition]:
        """Return the achievements belonging to a season."""
        return [a for a in self.achievements.values() if a["season_id"] == season_id]


# ==============================================================================
# Loading
# ==============================================================================


def _read_entries(file_name: str) -> list[dict[str, Any]]:
    """Read a bundled catalog file and return its entry list."""
    try:
        raw = resources.files(const.CATALOG_PACKAGE).joinpath(file_name).read_text(
            encoding="utf-8"
        )
        entries = json.loads(raw)
    except (OSError, ValueError) as err:
        raise CatalogError(file_name, str(err)) from err
    if not isinstance(entries, list):
        raise CatalogError(file_name, "top level must be a list")
    return entries


def _validate_entries(
    file_name: str, entries: list[dict[str, Any]], schema: vol.Schema
) -> dict[str, Any]:
    """Validate entries and key them by id, rejecting duplicates."""
    table: dict[str, Any] = {}
    for index, entry in enumerate(entries):
        try:
            validated = schema(entry)
        except vol.Invalid as err:
            raise CatalogError(file_name, f"entry {index}: {err}") from err
        if validated["id"] in table:
            raise CatalogError(file_name, f"duplicate id {validated['id']}")
        table[validated["id"]] = validated
    return table


def _check_achievement_metrics(achievements: dict[str, Any]) -> None:
    for achievement in achievements.values():
        condition = achievement["condition_type"]
        if condition == const.ACHIEVEMENT_TYPE_COMPOSITE:
            if not achievement.get("metrics"):
                raise CatalogError(
                    const.CATALOG_ACHIEVEMENTS_FILE,
                    f"{achievement['id']} needs a metrics list",
                )
        elif not achievement.get("metric"):
            raise CatalogError(
                const.CATALOG_ACHIEVEMENTS_FILE,
                f"{achievement['id']} needs a metric",
            )


def _check_talent_prerequisites(talents: dict[str, Any]) -> None:
    for node in talents.values():
        for prereq_id in node["prerequisite_ids"]:
            if prereq_id not in talents:
                raise CatalogError(
                    const.CATALOG_TALENTS_FILE,
                    f"{node['id']} references unknown prerequisite {prereq_id}",
                )


def load_catalog() -> Catalog:
    """Load and validate every bundled catalog file.

    Raises:
        CatalogError: A bundled file is missing or malformed.
    """
    quests = _validate_entries(
        const.CATALOG_QUESTS_FILE,
        _read_entries(const.CATALOG_QUESTS_FILE),
        QUEST_SCHEMA,
    )
    achievements = _validate_entries(
        const.CATALOG_ACHIEVEMENTS_FILE,
        _read_entries(const.CATALOG_ACHIEVEMENTS_FILE),
        ACHIEVEMENT_SCHEMA,
    )
    talents = _validate_entries(
        const.CATALOG_TALENTS_FILE,
        _read_entries(const.CATALOG_TALENTS_FILE),
        TALENT_SCHEMA,
    )
    _check_achievement_metrics(achievements)
    _check_talent_prerequisites(talents)

    const.LOGGER.debug(
        "Loaded catalogs: %s quests, %s achievements, %s talents",
        len(quests),
        len(achievements),
        len(talents),
    )
    return Catalog(quests=quests, achievements=achievements, talents=talents)
