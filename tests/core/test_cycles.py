# tests/core/test_cycles.py
"""Tests for cycle detection over graph snapshots."""

from __future__ import annotations

from etlguard.contracts.enums import NodeCategory
from etlguard.contracts.schema import NodeSchema
from etlguard.core.dag import CycleDetector, build_adjacency
from etlguard.core.registry import SchemaRegistry
from tests.fixtures.factories import make_edge, make_graph, make_node, make_ring


class TestBuildAdjacency:
    """Snapshot to DiGraph collapse."""

    def test_parallel_edges_keep_first_id(self) -> None:
        graph = make_graph(
            [make_node("a", "csv"), make_node("b", "tMap")],
            [make_edge("a", "b", edge_id="first"), make_edge("a", "b", edge_id="second")],
        )

        adjacency = build_adjacency(graph)

        assert adjacency.number_of_edges() == 1
        assert adjacency.edges["a", "b"]["edge_id"] == "first"

    def test_dangling_edges_ignored(self) -> None:
        graph = make_graph([make_node("a", "csv")], [make_edge("a", "ghost"), make_edge("ghost", "a")])

        adjacency = build_adjacency(graph)

        assert list(adjacency.nodes) == ["a"]
        assert adjacency.number_of_edges() == 0


class TestDetectCycles:
    """Back-edge cycle reporting."""

    def test_empty_graph(self) -> None:
        result = CycleDetector().detect_cycles(make_graph())

        assert result.has_cycle is False
        assert result.cycles == ()
        assert result.nodes_in_cycles == frozenset()

    def test_chain_has_no_cycle(self) -> None:
        graph = make_graph(
            [make_node("a", "csv"), make_node("b", "tMap"), make_node("c", "output")],
            [make_edge("a", "b"), make_edge("b", "c")],
        )

        assert CycleDetector().detect_cycles(graph).has_cycle is False

    def test_ring_nodes_and_edges_in_walk_order(self) -> None:
        result = CycleDetector().detect_cycles(make_ring(3))

        assert result.has_cycle is True
        assert result.cycles == (("n0", "n1", "n2"),)
        assert result.cycle_details[0].edges == ("e0", "e1", "e2")
        assert result.nodes_in_cycles == frozenset({"n0", "n1", "n2"})
        assert result.edges_in_cycles == frozenset({"e0", "e1", "e2"})

    def test_self_loop(self) -> None:
        graph = make_graph([make_node("a", "tMap")], [make_edge("a", "a", edge_id="loop")])

        result = CycleDetector().detect_cycles(graph)

        assert result.cycles == (("a",),)
        assert result.cycle_details[0].edges == ("loop",)

    def test_cycle_behind_a_tail(self) -> None:
        graph = make_graph(
            [make_node("src", "csv"), make_node("x", "tMap"), make_node("y", "tMap")],
            [make_edge("src", "x", edge_id="e1"), make_edge("x", "y", edge_id="e2"), make_edge("y", "x", edge_id="e3")],
        )

        result = CycleDetector().detect_cycles(graph)

        assert result.cycles == (("x", "y"),)
        assert result.cycle_details[0].edges == ("e2", "e3")
        assert "src" not in result.nodes_in_cycles

    def test_two_disjoint_cycles(self) -> None:
        graph = make_graph(
            [make_node(node_id, "custom") for node_id in ("a", "b", "c", "d")],
            [make_edge("a", "b"), make_edge("b", "a"), make_edge("c", "d"), make_edge("d", "c")],
        )

        result = CycleDetector().detect_cycles(graph)

        assert result.cycles == (("a", "b"), ("c", "d"))

    def test_long_chain_does_not_recurse(self) -> None:
        size = 5000
        nodes = [make_node(f"n{i}", "custom") for i in range(size)]
        edges = [make_edge(f"n{i}", f"n{i + 1}") for i in range(size - 1)]
        edges.append(make_edge(f"n{size - 1}", "n0", edge_id="back"))

        result = CycleDetector().detect_cycles(make_graph(nodes, edges))

        assert result.has_cycle is True
        assert len(result.cycles[0]) == size

    def test_advisory_flags_without_registry(self) -> None:
        detail = CycleDetector().detect_cycles(make_ring(2)).cycle_details[0]

        assert detail.is_allowed is True
        assert detail.violates_schema is False

    def test_advisory_flags_with_registry(self) -> None:
        registry = SchemaRegistry()
        registry.register_schema(
            NodeSchema(
                id="schema:loop",
                node_type="loop",
                display_name="Loop",
                category=NodeCategory.PROCESSING,
                allows_cycles=True,
                allowed_source_types=("loop",),
                allowed_target_types=("loop",),
            )
        )

        permitted = CycleDetector().detect_cycles(make_ring(2, "loop"), registry).cycle_details[0]
        assert permitted.is_allowed is True
        assert permitted.violates_schema is False

        registry.register_schema(
            NodeSchema(id="schema:loop", node_type="loop", display_name="Loop", category=NodeCategory.PROCESSING)
        )
        forbidden = CycleDetector().detect_cycles(make_ring(2, "loop"), registry).cycle_details[0]
        assert forbidden.is_allowed is False
        assert forbidden.violates_schema is True


class TestCycleQueries:
    """Fast checks and proposed-edge lookahead."""

    def test_has_cycle_fast(self) -> None:
        detector = CycleDetector()

        assert detector.has_cycle_fast(make_ring(4)) is True
        assert detector.has_cycle_fast(make_graph([make_node("a", "csv")])) is False

    def test_proposed_edge_closing_cycle(self) -> None:
        graph = make_graph(
            [make_node("a", "csv"), make_node("b", "tMap"), make_node("c", "tSortRow")],
            [make_edge("a", "b"), make_edge("b", "c")],
        )

        result = CycleDetector().get_nodes_that_would_cause_cycle("c", "a", graph)

        assert result.would_cause_cycle is True
        assert result.path == ("a", "b", "c")

    def test_proposed_edge_without_cycle(self) -> None:
        graph = make_graph([make_node("a", "csv"), make_node("b", "tMap")], [make_edge("a", "b")])

        assert CycleDetector().get_nodes_that_would_cause_cycle("a", "b", graph).would_cause_cycle is False

    def test_proposed_self_loop(self) -> None:
        graph = make_graph([make_node("a", "tMap")])

        result = CycleDetector().get_nodes_that_would_cause_cycle("a", "a", graph)

        assert result.would_cause_cycle is True
        assert result.path == ("a",)

    def test_existing_unrelated_cycle_is_not_attributed_to_proposed_edge(self) -> None:
        graph = make_graph(
            [make_node("x", "custom"), make_node("y", "custom"), make_node("a", "csv"), make_node("b", "tMap")],
            [make_edge("x", "y"), make_edge("y", "x")],
        )
        detector = CycleDetector()

        result = detector.get_nodes_that_would_cause_cycle("a", "b", graph)

        assert detector.has_cycle_fast(graph) is True
        assert result.would_cause_cycle is False
        assert result.path == ()

    def test_proposed_edge_with_unknown_endpoint(self) -> None:
        graph = make_graph([make_node("a", "tMap")])

        assert CycleDetector().get_nodes_that_would_cause_cycle("a", "ghost", graph).would_cause_cycle is False

    def test_simple_cycles_drop_rotations(self) -> None:
        cycles = [("a", "b", "c"), ("b", "c", "a"), ("x", "y")]

        assert CycleDetector.get_simple_cycles(cycles) == [("a", "b", "c"), ("x", "y")]
