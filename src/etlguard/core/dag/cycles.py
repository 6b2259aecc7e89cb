# src/etlguard/core/dag/cycles.py
"""Cycle detection over graph snapshots.

The adjacency is rebuilt from the snapshot on every call as a NetworkX
DiGraph. Parallel edges between the same ordered pair collapse into one
adjacency entry (the first edge id in snapshot order is kept for cycle
reconstruction), and edges with an unknown endpoint are ignored.

Detection is a depth-first search with an explicit stack, so deep
pipelines cannot exhaust the interpreter's recursion limit. Each back
edge found yields one reported cycle. O(V + E) per call.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

import networkx as nx
import structlog

from etlguard.contracts.graph import GraphState
from etlguard.core.dag.models import CycleDetail, CycleDetectionResult, CyclePathResult
from etlguard.core.registry import SchemaRegistry, normalize_type

logger = structlog.get_logger(__name__)


def build_adjacency(graph: GraphState) -> nx.DiGraph[str]:
    """Collapse a snapshot into a simple directed graph.

    Edge attribute ``edge_id`` holds the first snapshot edge id for each
    ordered node pair.
    """
    adjacency: nx.DiGraph[str] = nx.DiGraph()
    adjacency.add_nodes_from(node.id for node in graph.nodes)
    for edge in graph.edges:
        if edge.source not in adjacency or edge.target not in adjacency:
            continue
        if adjacency.has_edge(edge.source, edge.target):
            continue
        adjacency.add_edge(edge.source, edge.target, edge_id=edge.id)
    return adjacency


class CycleDetector:
    """Finds directed cycles in graph snapshots.

    Stateless between calls; one instance can serve any number of
    snapshots.
    """

    def detect_cycles(self, graph: GraphState, registry: SchemaRegistry | None = None) -> CycleDetectionResult:
        """Report every cycle closed by a DFS back edge.

        Args:
            graph: Snapshot to inspect
            registry: Schemas used for the advisory is_allowed and
                violates_schema flags; without one both are permissive

        Returns:
            Detection result. A graph without edges never has a cycle.
        """
        adjacency = build_adjacency(graph)
        details = tuple(
            CycleDetail(
                nodes=nodes,
                edges=edges,
                is_allowed=self._is_cycle_allowed(nodes, graph, registry),
                violates_schema=self._violates_schema(nodes, graph, registry),
            )
            for nodes, edges in self._find_back_edge_cycles(adjacency)
        )
        if details:
            logger.debug("cycles_detected", cycle_count=len(details))
        return CycleDetectionResult.from_details(details)

    def has_cycle_fast(self, graph: GraphState) -> bool:
        """Boolean cycle check over the same adjacency as detect_cycles."""
        return not nx.is_directed_acyclic_graph(build_adjacency(graph))

    def get_nodes_that_would_cause_cycle(self, source_id: str, target_id: str, graph: GraphState) -> CyclePathResult:
        """Would adding ``source_id -> target_id`` close a cycle.

        It would exactly when the target already reaches the source (or
        the edge is a self-loop).
        """
        adjacency = build_adjacency(graph)
        if source_id not in adjacency or target_id not in adjacency:
            return CyclePathResult(would_cause_cycle=False)
        if source_id == target_id:
            return CyclePathResult(would_cause_cycle=True, path=(source_id,))
        try:
            path = nx.shortest_path(adjacency, target_id, source_id)
        except nx.NetworkXNoPath:
            return CyclePathResult(would_cause_cycle=False)
        return CyclePathResult(would_cause_cycle=True, path=tuple(path))

    @staticmethod
    def get_simple_cycles(cycles: Iterable[tuple[str, ...]]) -> list[tuple[str, ...]]:
        """Drop cycles that visit the same node set as an earlier one."""
        seen: set[tuple[str, ...]] = set()
        simple: list[tuple[str, ...]] = []
        for cycle in cycles:
            signature = tuple(sorted(cycle))
            if signature in seen:
                continue
            seen.add(signature)
            simple.append(cycle)
        return simple

    def _find_back_edge_cycles(self, adjacency: nx.DiGraph[str]) -> Iterator[tuple[tuple[str, ...], tuple[str, ...]]]:
        visited: set[str] = set()
        on_stack: set[str] = set()
        parent: dict[str, str] = {}
        parent_edge: dict[str, str] = {}

        # Snapshot order: add_nodes_from preserved it
        for root in adjacency.nodes:
            if root in visited:
                continue
            visited.add(root)
            on_stack.add(root)
            stack: list[tuple[str, Iterator[str]]] = [(root, iter(adjacency.successors(root)))]

            while stack:
                current, successors = stack[-1]
                advanced = False
                for neighbor in successors:
                    if neighbor in on_stack:
                        back_edge = adjacency.edges[current, neighbor]["edge_id"]
                        yield self._reconstruct(neighbor, current, back_edge, parent, parent_edge)
                    elif neighbor not in visited:
                        visited.add(neighbor)
                        on_stack.add(neighbor)
                        parent[neighbor] = current
                        parent_edge[neighbor] = adjacency.edges[current, neighbor]["edge_id"]
                        stack.append((neighbor, iter(adjacency.successors(neighbor))))
                        advanced = True
                        break
                if not advanced:
                    stack.pop()
                    on_stack.discard(current)

    @staticmethod
    def _reconstruct(
        start: str,
        current: str,
        back_edge: str,
        parent: dict[str, str],
        parent_edge: dict[str, str],
    ) -> tuple[tuple[str, ...], tuple[str, ...]]:
        nodes = [current]
        edges = [back_edge]
        node = current
        while node != start:
            edges.append(parent_edge[node])
            node = parent[node]
            nodes.append(node)
        nodes.reverse()
        # edges holds the back edge first, then tree edges walking upward
        tree_edges = edges[1:]
        tree_edges.reverse()
        return tuple(nodes), (*tree_edges, back_edge)

    @staticmethod
    def _is_cycle_allowed(nodes: tuple[str, ...], graph: GraphState, registry: SchemaRegistry | None) -> bool:
        if registry is None:
            return True
        for node_id in nodes:
            node = graph.get_node(node_id)
            if node is None:
                continue
            schema = registry.get_schema(node.type)
            if schema is not None and not schema.allows_cycles:
                return False
        return True

    @staticmethod
    def _violates_schema(nodes: tuple[str, ...], graph: GraphState, registry: SchemaRegistry | None) -> bool:
        if registry is None:
            return False
        # Consecutive pairs, including the closing pair back to the start
        for source_id, target_id in zip(nodes, (*nodes[1:], nodes[0]), strict=True):
            source = graph.get_node(source_id)
            target = graph.get_node(target_id)
            if source is None or target is None:
                continue
            source_schema = registry.get_schema(source.type)
            target_schema = registry.get_schema(target.type)
            if source_schema is not None and normalize_type(target.type) not in {
                normalize_type(t) for t in source_schema.allowed_target_types
            }:
                return True
            if target_schema is not None and normalize_type(source.type) not in {
                normalize_type(t) for t in target_schema.allowed_source_types
            }:
                return True
        return False
