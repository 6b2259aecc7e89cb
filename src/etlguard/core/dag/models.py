# src/etlguard/core/dag/models.py
"""Types for cycle detection.

Leaf module: no intra-package imports.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CycleDetail:
    """One detected cycle with advisory policy flags.

    ``nodes`` runs from the node the back edge returns to, along the DFS
    path, to the node the back edge leaves. ``edges`` follows the same
    order and ends with the closing back edge. A self-loop is one node
    and one edge.

    is_allowed and violates_schema are reported for context only; every
    cycle is still an error.
    """

    nodes: tuple[str, ...]
    edges: tuple[str, ...]
    is_allowed: bool
    violates_schema: bool


@dataclass(frozen=True, slots=True)
class CycleDetectionResult:
    has_cycle: bool
    cycles: tuple[tuple[str, ...], ...]
    nodes_in_cycles: frozenset[str]
    edges_in_cycles: frozenset[str]
    cycle_details: tuple[CycleDetail, ...]

    @classmethod
    def from_details(cls, details: tuple[CycleDetail, ...]) -> CycleDetectionResult:
        return cls(
            has_cycle=bool(details),
            cycles=tuple(detail.nodes for detail in details),
            nodes_in_cycles=frozenset(node for detail in details for node in detail.nodes),
            edges_in_cycles=frozenset(edge for detail in details for edge in detail.edges),
            cycle_details=details,
        )


@dataclass(frozen=True, slots=True)
class CyclePathResult:
    """Whether a proposed edge would close a cycle.

    ``path`` runs from the proposed target back to the proposed source
    over existing edges.
    """

    would_cause_cycle: bool
    path: tuple[str, ...] = ()


__all__ = [
    "CycleDetail",
    "CycleDetectionResult",
    "CyclePathResult",
]
