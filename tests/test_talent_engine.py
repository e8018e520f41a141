"""Tests for TalentEngine - allocation rules on the bundled tree.

Test categories:
- Point accounting (earned, spent, available, tier costs)
- Blocking reasons (points, max rank, tier, prerequisites)
- Allocation and sanitizing stored ranks
- Tree view ordering
"""

from __future__ import annotations

from typing import Any

import pytest

from questchat.catalog import Catalog
from questchat.engines.talent_engine import TalentEngine


@pytest.fixture
def nodes(bundled_catalog: Catalog) -> dict[str, Any]:
    """Bundled talent nodes keyed by id."""
    return bundled_catalog.talents


# ============================================================================
# Point Accounting
# ============================================================================


class TestPointAccounting:
    """One point per level; tiers open every five points spent."""

    def test_points(self) -> None:
        ranks = {"hydrationRookie": 3, "focusSpark": 2}
        assert TalentEngine.points_earned(7) == 7
        assert TalentEngine.points_spent(ranks) == 5
        assert TalentEngine.points_available(7, ranks) == 2
        assert TalentEngine.points_available(3, ranks) == 0

    @pytest.mark.parametrize(("tier", "cost"), [(1, 0), (2, 5), (3, 10), (5, 20)])
    def test_tier_unlock_cost(self, tier: int, cost: int) -> None:
        assert TalentEngine.tier_unlock_cost(tier) == cost


# ============================================================================
# Blocking Reasons
# ============================================================================


class TestBlockingReasons:
    """Each rule failure is reported as a guarded no-op."""

    def test_tier_one_allocates_at_level_one(self, nodes: dict[str, Any]) -> None:
        assert TalentEngine.blocking_reason(nodes, {}, 1, "hydrationRookie") is None

    def test_unknown_node(self, nodes: dict[str, Any]) -> None:
        assert TalentEngine.blocking_reason(nodes, {}, 5, "nope") == "unknown_node"

    def test_no_points(self, nodes: dict[str, Any]) -> None:
        ranks = {"hydrationRookie": 1}
        assert TalentEngine.blocking_reason(nodes, ranks, 1, "focusSpark") == "no_points"

    def test_max_rank(self, nodes: dict[str, Any]) -> None:
        ranks = {"gentleReset": 3}
        assert TalentEngine.blocking_reason(nodes, ranks, 10, "gentleReset") == "max_rank"

    def test_tier_locked(self, nodes: dict[str, Any]) -> None:
        """Tier 2 needs five points already spent."""
        ranks = {"hydrationRookie": 4}
        reason = TalentEngine.blocking_reason(nodes, ranks, 10, "hydrationHabit")
        assert reason == "tier_locked"

    def test_prerequisite_must_be_maxed(self, nodes: dict[str, Any]) -> None:
        """Five points spent elsewhere open tier 2 but not the prerequisite."""
        ranks = {"hydrationRookie": 2, "gentleReset": 3}
        reason = TalentEngine.blocking_reason(nodes, ranks, 10, "hydrationHabit")
        assert reason == "prerequisite"

    def test_tier_two_opens_with_maxed_prerequisite(
        self, nodes: dict[str, Any]
    ) -> None:
        ranks = {"hydrationRookie": 5}
        assert TalentEngine.can_allocate(nodes, ranks, 6, "hydrationHabit")

    def test_tier_three_waits_for_mastered_tier_one_prerequisite(
        self, nodes: dict[str, Any]
    ) -> None:
        """A tier-3 node over a tier-1 prerequisite opens once it is mastered."""
        tree = {
            **nodes,
            "breakMaster": {
                "id": "breakMaster",
                "name": "Break Master",
                "description": "Short breaks happen on schedule.",
                "tier": 3,
                "column": 2,
                "max_ranks": 3,
                "prerequisite_ids": ["gentleReset"],
            },
        }
        # Ten points spent open tier 3; gentleReset sits one rank short.
        ranks = {"gentleReset": 2, "hydrationRookie": 5, "focusSpark": 3}
        assert TalentEngine.blocking_reason(tree, ranks, 20, "breakMaster") == "prerequisite"
        assert TalentEngine.allocate(tree, ranks, 20, "breakMaster") is None

        ranks = TalentEngine.allocate(tree, ranks, 20, "gentleReset")
        assert ranks is not None
        updated = TalentEngine.allocate(tree, ranks, 20, "breakMaster")
        assert updated is not None
        assert updated["breakMaster"] == 1


# ============================================================================
# Allocation
# ============================================================================


class TestAllocation:
    """Tests for allocate / sanitize_ranks / tree_view."""

    def test_allocate_returns_new_ranks(self, nodes: dict[str, Any]) -> None:
        ranks = {"focusSpark": 1}
        updated = TalentEngine.allocate(nodes, ranks, 3, "focusSpark")
        assert updated == {"focusSpark": 2}
        assert ranks == {"focusSpark": 1}

    def test_allocate_blocked_returns_none(self, nodes: dict[str, Any]) -> None:
        assert TalentEngine.allocate(nodes, {}, 0, "focusSpark") is None

    def test_sanitize_ranks(self, nodes: dict[str, Any]) -> None:
        """Unknown ids are dropped; ranks clamp to [0, max_ranks]."""
        stored = {"gentleReset": 9, "focusSpark": -2, "removedNode": 4, "moodTuner": 2}
        assert TalentEngine.sanitize_ranks(nodes, stored) == {
            "gentleReset": 3,
            "moodTuner": 2,
        }

    def test_tree_view_ordering(self, nodes: dict[str, Any]) -> None:
        view = TalentEngine.tree_view(nodes, {"hydrationRookie": 1}, 1)
        assert len(view) == 20
        assert [n["id"] for n in view[:4]] == [
            "hydrationRookie",
            "focusSpark",
            "gentleReset",
            "moodTuner",
        ]
        assert view[0]["rank"] == 1
        assert not any(n["can_allocate"] for n in view)
        assert view[-1]["tier"] == 5
