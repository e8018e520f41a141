"""Tests for catalog loading and validation."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from questchat import catalog as catalog_module, const
from questchat.catalog import Catalog, load_catalog
from questchat.exceptions import CatalogError


class TestBundledCatalog:
    """The shipped catalog is complete and consistent."""

    def test_sizes(self, bundled_catalog: Catalog) -> None:
        assert len(bundled_catalog.talents) == 20
        assert len(bundled_catalog.quests_for_scope(const.QUEST_SCOPE_WEEKLY)) == 15
        assert bundled_catalog.season_achievements(const.CURRENT_SEASON_ID)

    def test_required_board_quests_present(self, bundled_catalog: Catalog) -> None:
        for quest_id in (*const.DAILY_REQUIRED_QUEST_IDS, *const.DAILY_PREFERRED_QUEST_IDS):
            assert bundled_catalog.quests[quest_id]["scope"] == const.QUEST_SCOPE_DAILY

    def test_defaults_filled(self, bundled_catalog: Catalog) -> None:
        quest = bundled_catalog.quests["daily-checkin"]
        assert quest["once_per_scope"] is True
        node = bundled_catalog.talents["hydrationRookie"]
        assert node["prerequisite_ids"] == []

    def test_five_tiers_of_four(self, bundled_catalog: Catalog) -> None:
        tiers = [node["tier"] for node in bundled_catalog.talents.values()]
        assert all(tiers.count(tier) == 4 for tier in range(1, 6))

    def test_catalog_is_frozen(self, bundled_catalog: Catalog) -> None:
        with pytest.raises(AttributeError):
            bundled_catalog.quests = {}  # type: ignore[misc]


class TestMalformedCatalog:
    """Malformed entries raise CatalogError naming the file."""

    @pytest.fixture
    def patch_entries(self, monkeypatch: pytest.MonkeyPatch):
        bundled = {
            name: catalog_module._read_entries(name)  # noqa: SLF001
            for name in (
                const.CATALOG_QUESTS_FILE,
                const.CATALOG_ACHIEVEMENTS_FILE,
                const.CATALOG_TALENTS_FILE,
            )
        }

        def _patch(file_name: str, mutate) -> None:
            entries: list[dict[str, Any]] = copy.deepcopy(bundled[file_name])
            mutate(entries)
            tables = {**bundled, file_name: entries}
            monkeypatch.setattr(
                catalog_module, "_read_entries", lambda name: copy.deepcopy(tables[name])
            )

        return _patch

    def test_unknown_predicate(self, patch_entries) -> None:
        patch_entries(
            const.CATALOG_QUESTS_FILE,
            lambda entries: entries[0]["predicate"].update(type="telepathy"),
        )
        with pytest.raises(CatalogError) as err:
            load_catalog()
        assert err.value.catalog == const.CATALOG_QUESTS_FILE

    def test_duplicate_id(self, patch_entries) -> None:
        patch_entries(
            const.CATALOG_TALENTS_FILE, lambda entries: entries.append(dict(entries[0]))
        )
        with pytest.raises(CatalogError, match="duplicate id hydrationRookie"):
            load_catalog()

    def test_unknown_prerequisite(self, patch_entries) -> None:
        patch_entries(
            const.CATALOG_TALENTS_FILE,
            lambda entries: entries[4].update(prerequisite_ids=["ghost"]),
        )
        with pytest.raises(CatalogError, match="ghost"):
            load_catalog()

    def test_achievement_without_metric(self, patch_entries) -> None:
        def _strip(entries: list[dict[str, Any]]) -> None:
            target = next(e for e in entries if e["condition_type"] != "composite")
            target.pop("metric")

        patch_entries(const.CATALOG_ACHIEVEMENTS_FILE, _strip)
        with pytest.raises(CatalogError, match="needs a metric"):
            load_catalog()

    def test_tier_out_of_range(self, patch_entries) -> None:
        patch_entries(
            const.CATALOG_TALENTS_FILE, lambda entries: entries[0].update(tier=6)
        )
        with pytest.raises(CatalogError):
            load_catalog()
