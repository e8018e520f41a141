"""Talent Engine - Pure validation of talent-point allocation.

The talent tree is a prerequisite DAG (acyclic by catalog construction, not
checked at runtime). A rank increase on node N requires:
    (a) points available (level minus points spent) > 0
    (b) rank(N) < max_ranks(N)
    (c) points spent >= (tier(N) - 1) * TALENT_POINTS_PER_TIER
    (d) every prerequisite of N at its own max rank

Failing any check is a guarded no-op, not an error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const

if TYPE_CHECKING:
    from ..type_defs import TalentNode, TalentNodeId, TalentNodeView


class TalentEngine:
    """Pure logic engine for talent allocation rules."""

    @staticmethod
    def points_earned(level: int) -> int:
        """One talent point per level."""
        return max(level, 0)

    @staticmethod
    def points_spent(ranks: dict[TalentNodeId, int]) -> int:
        """Sum of all allocated ranks."""
        return sum(max(rank, 0) for rank in ranks.values())

    @classmethod
    def points_available(cls, level: int, ranks: dict[TalentNodeId, int]) -> int:
        """Points earned minus points spent (never negative)."""
        return max(cls.points_earned(level) - cls.points_spent(ranks), 0)

    @staticmethod
    def tier_unlock_cost(tier: int) -> int:
        """Points that must already be spent before a tier opens."""
        return (tier - 1) * const.TALENT_POINTS_PER_TIER

    @classmethod
    def blocking_reason(
        cls,
        nodes: dict[TalentNodeId, TalentNode],
        ranks: dict[TalentNodeId, int],
        level: int,
        node_id: TalentNodeId,
    ) -> str | None:
        """Return why a node cannot take a point, or None when it can.

        Reasons are short machine-readable tags used in debug logging.
        """
        node = nodes.get(node_id)
        if node is None:
            return "unknown_node"
        if cls.points_available(level, ranks) <= 0:
            return "no_points"
        if ranks.get(node_id, 0) >= node["max_ranks"]:
            return "max_rank"
        if cls.points_spent(ranks) < cls.tier_unlock_cost(node["tier"]):
            return "tier_locked"
        for prereq_id in node["prerequisite_ids"]:
            prereq = nodes.get(prereq_id)
            if prereq is None or ranks.get(prereq_id, 0) < prereq["max_ranks"]:
                return "prerequisite"
        return None

    @classmethod
    def can_allocate(
        cls,
        nodes: dict[TalentNodeId, TalentNode],
        ranks: dict[TalentNodeId, int],
        level: int,
        node_id: TalentNodeId,
    ) -> bool:
        """Return True when one more rank may be put into `node_id`."""
        return cls.blocking_reason(nodes, ranks, level, node_id) is None

    @classmethod
    def allocate(
        cls,
        nodes: dict[TalentNodeId, TalentNode],
        ranks: dict[TalentNodeId, int],
        level: int,
        node_id: TalentNodeId,
    ) -> dict[TalentNodeId, int] | None:
        """Return new ranks with `node_id` incremented, or None if blocked."""
        if not cls.can_allocate(nodes, ranks, level, node_id):
            return None
        updated = dict(ranks)
        updated[node_id] = updated.get(node_id, 0) + 1
        return updated

    @staticmethod
    def sanitize_ranks(
        nodes: dict[TalentNodeId, TalentNode], ranks: dict[str, int]
    ) -> dict[TalentNodeId, int]:
        """Drop unknown nodes and clamp ranks to [0, max_ranks]."""
        cleaned: dict[TalentNodeId, int] = {}
        for node_id, rank in ranks.items():
            node = nodes.get(node_id)
            if node is None:
                continue
            value = min(max(int(rank), 0), node["max_ranks"])
            if value:
                cleaned[node_id] = value
        return cleaned

    @classmethod
    def tree_view(
        cls,
        nodes: dict[TalentNodeId, TalentNode],
        ranks: dict[TalentNodeId, int],
        level: int,
    ) -> list[TalentNodeView]:
        """Return every node with rank and allocatable state, tier-ordered."""
        ordered = sorted(nodes.values(), key=lambda n: (n["tier"], n["column"]))
        return [
            {
                "id": node["id"],
                "name": node["name"],
                "tier": node["tier"],
                "rank": ranks.get(node["id"], 0),
                "max_ranks": node["max_ranks"],
                "can_allocate": cls.can_allocate(nodes, ranks, level, node["id"]),
            }
            for node in ordered
        ]
