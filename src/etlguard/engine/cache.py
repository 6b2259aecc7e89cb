# src/etlguard/engine/cache.py
"""Structure-keyed TTL cache of validation summaries.

The key covers node ids and types and edge endpoints only. Snapshots that
differ solely in labels, positions, schemas or handles share a key, so a
cached verdict may be stale for those changes until the entry expires or
the cache is cleared.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from etlguard.contracts.graph import GraphState
from etlguard.contracts.results import ValidationSummary
from etlguard.core.canonical import stable_hash
from etlguard.engine.clock import DEFAULT_CLOCK, Clock

logger = structlog.get_logger(__name__)


def graph_cache_key(graph: GraphState) -> str:
    """Order-independent content hash of a snapshot's structure."""
    return stable_hash(
        {
            "node_count": len(graph.nodes),
            "edge_count": len(graph.edges),
            "nodes": sorted([node.id, node.type] for node in graph.nodes),
            "edges": sorted([edge.source, edge.target] for edge in graph.edges),
        }
    )


@dataclass(frozen=True, slots=True)
class _Entry:
    summary: ValidationSummary
    stored_at: float


class ValidationCache:
    """TTL map from structural key to summary.

    Expired entries are dropped lazily: on lookup of that key and by
    purge_expired().
    """

    def __init__(self, ttl_seconds: float, *, clock: Clock = DEFAULT_CLOCK) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> ValidationSummary | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._is_expired(entry):
            del self._entries[key]
            return None
        return entry.summary

    def put(self, key: str, summary: ValidationSummary) -> None:
        self._entries[key] = _Entry(summary=summary, stored_at=self._clock.monotonic())

    def purge_expired(self) -> int:
        """Drop expired entries and return how many were dropped."""
        expired = [key for key, entry in self._entries.items() if self._is_expired(entry)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("validation_cache_purged", purged=len(expired), remaining=len(self._entries))
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def _is_expired(self, entry: _Entry) -> bool:
        return self._clock.monotonic() - entry.stored_at >= self._ttl
