"""Exceptions for the QuestChat progression engine.

Expected invalid commands (a locked talent, a claimed one-shot grant, a second
reroll) are NOT exceptions; they come back as not-applied EventResults. These
classes cover input the engine cannot degrade around.
"""

from __future__ import annotations

from typing import Any


class QuestChatError(Exception):
    """Base class for QuestChat errors."""


class SnapshotError(QuestChatError):
    """Raised when persisted data cannot be read as a snapshot at all.

    Individual malformed sections are recovered with defaults; this is only
    raised when the root is not a mapping.

    Attributes:
        received_type: Type name of the offending root value
    """

    def __init__(self, received: Any, detail: str | None = None) -> None:
        """Initialize SnapshotError.

        Args:
            received: The value passed in place of a snapshot mapping
            detail: Decoder message when the raw input could not be parsed
        """
        self.received_type = type(received).__name__
        super().__init__(
            detail or f"Snapshot root must be a mapping, got {self.received_type}"
        )


class CatalogError(QuestChatError):
    """Raised when a bundled catalog file is missing or malformed.

    Catalogs ship with the package, so this indicates a packaging defect
    rather than bad player data.

    Attributes:
        catalog: Catalog file name
    """

    def __init__(self, catalog: str, detail: str) -> None:
        """Initialize CatalogError.

        Args:
            catalog: Catalog file name
            detail: Human-readable description of the problem
        """
        self.catalog = catalog
        super().__init__(f"Invalid catalog {catalog}: {detail}")
