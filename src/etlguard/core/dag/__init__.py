# src/etlguard/core/dag/__init__.py
"""Directed-graph analysis for editor snapshots."""

from etlguard.core.dag.cycles import CycleDetector, build_adjacency
from etlguard.core.dag.models import (
    CycleDetail,
    CycleDetectionResult,
    CyclePathResult,
)

__all__ = [
    "CycleDetail",
    "CycleDetectionResult",
    "CycleDetector",
    "CyclePathResult",
    "build_adjacency",
]
