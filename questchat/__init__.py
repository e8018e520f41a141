"""QuestChat player-progression rules engine.

Turns real-world player actions (timers, hydration, check-ins, screen
views) into persistent game state: XP and levels, temporary buffs, daily
one-shot grants, quests, season achievements, talents and reminders.

Usage:
    from questchat import QuestChatCoordinator, QuestChatStore

    store = QuestChatStore("profile.json")
    coordinator = QuestChatCoordinator.from_snapshot(
        store.load(), {"timezone": "Europe/Berlin"}, persist=store.save
    )
    coordinator.hydration_logged({"ounces": 16}, now)
"""

from .catalog import Catalog, load_catalog
from .coordinator import QuestChatCoordinator
from .exceptions import CatalogError, QuestChatError, SnapshotError
from .migration import migrate_snapshot
from .store import QuestChatStore

__all__ = [
    "Catalog",
    "CatalogError",
    "QuestChatCoordinator",
    "QuestChatError",
    "QuestChatStore",
    "SnapshotError",
    "load_catalog",
    "migrate_snapshot",
]
