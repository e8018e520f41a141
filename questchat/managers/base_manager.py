"""Base manager class for QuestChat managers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from zoneinfo import ZoneInfo

    from ..coordinator import QuestChatCoordinator


class BaseManager(ABC):
    """Base class for all QuestChat managers.

    Provides:
    - Access to the owning coordinator's snapshot sections
    - The profile timezone used for local-day boundaries

    Data Persistence:
    - Managers mutate their section in place and never persist on their own
    - The coordinator invokes the persistence callback once per event

    Subclasses must implement:
    - setup(): Normalize the owned section after a snapshot is loaded
    """

    def __init__(self, coordinator: QuestChatCoordinator) -> None:
        """Initialize manager.

        Args:
            coordinator: Parent coordinator owning the snapshot
        """
        self.coordinator = coordinator

    @property
    def tz(self) -> ZoneInfo:
        """Profile timezone."""
        return self.coordinator.tz

    def _section(self, key: str) -> Any:
        """Return a live snapshot section by DATA_* key."""
        return self.coordinator.data[key]

    @abstractmethod
    def setup(self) -> None:
        """Set up the manager against the loaded snapshot.

        Called once during coordinator initialization and again after a
        full reset.
        """
