# tests/strategies/__init__.py
"""Hypothesis strategies for property-based tests.

Re-exports commonly used strategies for convenience:
    from tests.strategies import graph_states, acyclic_graph_states
"""

from tests.strategies.graphs import (
    CATALOGUE_TYPES,
    SOURCE_TYPES,
    acyclic_graph_states,
    graph_states,
    permuted,
)

__all__ = [
    "CATALOGUE_TYPES",
    "SOURCE_TYPES",
    "acyclic_graph_states",
    "graph_states",
    "permuted",
]
