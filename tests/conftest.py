"""Shared fixtures for QuestChat tests."""

from __future__ import annotations

from typing import Any

import pytest

from questchat import QuestChatCoordinator
from questchat.catalog import Catalog, load_catalog
from questchat.engines.statistics_engine import StatisticsEngine

from tests.helpers import TEST_OPTIONS, make_catalog


@pytest.fixture(scope="session")
def bundled_catalog() -> Catalog:
    """The catalog shipped with the package (loaded once)."""
    return load_catalog()


@pytest.fixture
def saved() -> list[dict[str, Any]]:
    """Snapshots handed to the persistence callback, in order."""
    return []


@pytest.fixture
def coordinator(
    bundled_catalog: Catalog, saved: list[dict[str, Any]]
) -> QuestChatCoordinator:
    """Fresh profile with the bundled catalog."""
    return QuestChatCoordinator(
        TEST_OPTIONS, catalog=bundled_catalog, persist=saved.append
    )


@pytest.fixture
def bare_coordinator(saved: list[dict[str, Any]]) -> QuestChatCoordinator:
    """Fresh profile without quests or achievements.

    Only direct grants move XP, so amounts can be asserted exactly.
    """
    return QuestChatCoordinator(
        TEST_OPTIONS, catalog=make_catalog(), persist=saved.append
    )


@pytest.fixture
def stats() -> StatisticsEngine:
    """Return a StatisticsEngine instance."""
    return StatisticsEngine()
