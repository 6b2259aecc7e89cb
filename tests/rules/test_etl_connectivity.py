# tests/rules/test_etl_connectivity.py
"""Tests for role-based ETL connectivity checks."""

from __future__ import annotations

import pytest

from etlguard.contracts.enums import EtlCategory, NodeCategory, ValidationErrorCode, ValidationLevel
from etlguard.contracts.graph import GraphEdge, GraphState
from etlguard.contracts.results import ValidationResult
from etlguard.contracts.schema import NodeSchema
from etlguard.core.registry import SchemaRegistry
from etlguard.rules.etl_connectivity import EtlConnectivityRule
from tests.fixtures.factories import make_edge, make_graph, make_node, make_sink

Code = ValidationErrorCode


def _codes(results: list[ValidationResult]) -> list[ValidationErrorCode]:
    return [result.code for result in results]


def _validate_edge(rule: EtlConnectivityRule, graph: GraphState, edge: GraphEdge) -> list[ValidationResult]:
    return rule.validate(graph.get_node(edge.source), edge, graph)


@pytest.fixture
def rule(registry: SchemaRegistry) -> EtlConnectivityRule:
    return EtlConnectivityRule(registry)


class TestClassification:
    """Static table first, registry schema second."""

    def test_static_table_is_case_insensitive(self) -> None:
        rule = EtlConnectivityRule()

        classification = rule.classify("tJoin")

        assert classification is not None
        assert classification.etl_category == EtlCategory.MERGE
        assert classification.exact_inputs == 2

    def test_unknown_type_without_registry(self) -> None:
        assert EtlConnectivityRule().classify("custom") is None

    def test_registry_schema_fallback(self) -> None:
        registry = SchemaRegistry()
        registry.register_schema(
            NodeSchema(
                id="schema:tcollect",
                node_type="tcollect",
                display_name="tCollect",
                category=NodeCategory.TRANSFORM,
                etl_category=EtlCategory.MERGE,
                min_incoming_connections=2,
                max_incoming_connections=3,
            )
        )

        classification = EtlConnectivityRule(registry).classify("tCollect")

        assert classification is not None
        assert classification.etl_category == EtlCategory.MERGE
        assert classification.is_multi_input is True
        assert classification.min_inputs == 2
        assert classification.max_inputs == 3

    def test_component_classification_of_unknown_node(self, rule: EtlConnectivityRule) -> None:
        classification = rule.get_component_classification(make_node("x", "custom"))

        assert classification.etl_category == EtlCategory.UNKNOWN
        assert classification.is_multi_input is False
        assert classification.is_branching is False

    def test_component_classification_of_branching_node(self, rule: EtlConnectivityRule) -> None:
        classification = rule.get_component_classification(make_node("r", "tReplicate"))

        assert classification.etl_category == EtlCategory.BRANCHING
        assert classification.is_branching is True


class TestCategoryChecks:
    """Which roles may feed which."""

    def test_source_to_source(self, rule: EtlConnectivityRule) -> None:
        edge = make_edge("a", "b", edge_id="e1")
        graph = make_graph([make_node("a", "csv"), make_node("b", "excel")], [edge])

        results = _validate_edge(rule, graph, edge)

        assert _codes(results) == [Code.SOURCE_TO_SOURCE_DISALLOWED, Code.INVALID_ETL_CONNECTION]
        assert all(result.edge_ids == ("e1",) for result in results)
        assert results[0].message == 'Source "a" cannot connect to source "b"'

    def test_sink_to_sink(self, rule: EtlConnectivityRule) -> None:
        edge = make_edge("a", "b")
        graph = make_graph([make_sink("a", "output"), make_sink("b", "tMysqlOutput")], [edge])

        assert _codes(_validate_edge(rule, graph, edge)) == [Code.SINK_TO_SINK_DISALLOWED, Code.INVALID_ETL_CONNECTION]

    def test_sink_has_no_allowed_targets(self, rule: EtlConnectivityRule) -> None:
        edge = make_edge("out", "m")
        graph = make_graph([make_sink("out"), make_node("m", "tMap")], [edge])

        results = _validate_edge(rule, graph, edge)

        assert Code.INVALID_ETL_CONNECTION in _codes(results)
        invalid = next(r for r in results if r.code == Code.INVALID_ETL_CONNECTION)
        assert invalid.fix_suggestion == "sink components cannot connect to anything"
        assert invalid.context["allowed_targets"] == []

    def test_unclassified_endpoint_is_skipped(self, rule: EtlConnectivityRule) -> None:
        edge = make_edge("a", "b")
        graph = make_graph([make_node("a", "csv"), make_node("b", "custom")], [edge])

        assert _validate_edge(rule, graph, edge) == []

    def test_dangling_edge_is_skipped(self, rule: EtlConnectivityRule) -> None:
        edge = make_edge("a", "ghost")
        graph = make_graph([make_node("a", "csv")], [edge])

        assert _validate_edge(rule, graph, edge) == []

    def test_valid_chain_is_clean(self, rule: EtlConnectivityRule) -> None:
        edge = make_edge("src", "filter")
        graph = make_graph([make_node("src", "csv"), make_node("filter", "tFilterRow")], [edge])

        assert _validate_edge(rule, graph, edge) == []


class TestMultiInput:
    """One main input unless the target merges."""

    def test_non_merge_target_with_two_inputs(self, rule: EtlConnectivityRule) -> None:
        first = make_edge("a", "s")
        graph = make_graph(
            [make_node("a", "csv"), make_node("b", "excel"), make_node("s", "tSortRow")],
            [first, make_edge("b", "s")],
        )

        results = _validate_edge(rule, graph, first)

        assert _codes(results) == [Code.NON_MERGE_NODE_MULTIPLE_INPUTS]
        assert results[0].node_ids == ("s",)
        assert results[0].edge_ids == ()
        assert results[0].context["current"] == 2

    def test_join_with_three_inputs(self, rule: EtlConnectivityRule) -> None:
        first = make_edge("a", "j")
        graph = make_graph(
            [make_node("a", "csv"), make_node("b", "excel"), make_node("c", "database"), make_node("j", "tJoin")],
            [first, make_edge("b", "j"), make_edge("c", "j")],
        )

        results = _validate_edge(rule, graph, first)

        assert _codes(results) == [Code.EXACT_INPUT_COUNT_REQUIRED, Code.INVALID_MERGE_NODE_INPUTS]
        assert results[0].context["required"] == 2
        assert results[0].context["current"] == 3

    def test_join_with_one_input(self, rule: EtlConnectivityRule) -> None:
        edge = make_edge("a", "j")
        graph = make_graph([make_node("a", "csv"), make_node("j", "tJoin")], [edge])

        assert _codes(_validate_edge(rule, graph, edge)) == [Code.INVALID_MERGE_NODE_INPUTS]

    def test_join_with_two_inputs_is_clean(self, rule: EtlConnectivityRule) -> None:
        first = make_edge("a", "j")
        graph = make_graph(
            [make_node("a", "csv"), make_node("b", "excel"), make_node("j", "tJoin")],
            [first, make_edge("b", "j")],
        )

        assert _validate_edge(rule, graph, first) == []

    def test_unite_below_minimum(self, rule: EtlConnectivityRule) -> None:
        edge = make_edge("a", "u")
        graph = make_graph([make_node("a", "csv"), make_node("u", "tUnite")], [edge])

        results = _validate_edge(rule, graph, edge)

        assert _codes(results) == [Code.TOO_FEW_INPUTS]
        assert results[0].context["min_inputs"] == 2

    def test_registry_merge_above_maximum(self) -> None:
        registry = SchemaRegistry()
        registry.register_schema(
            NodeSchema(
                id="schema:tcollect",
                node_type="tcollect",
                display_name="tCollect",
                category=NodeCategory.TRANSFORM,
                etl_category=EtlCategory.MERGE,
                max_incoming_connections=3,
            )
        )
        sources = [make_node(f"s{i}", "csv") for i in range(4)]
        edges = [make_edge(f"s{i}", "c") for i in range(4)]
        graph = make_graph([*sources, make_node("c", "tcollect")], edges)

        results = _validate_edge(EtlConnectivityRule(registry), graph, edges[0])

        assert _codes(results) == [Code.TOO_MANY_INPUTS]
        assert results[0].context == {"max_inputs": 3, "current": 4, "component_type": "tcollect"}


class TestFanOut:
    """Multiple outputs require a branching component."""

    def test_fan_out_from_processing(self, rule: EtlConnectivityRule) -> None:
        first = make_edge("f", "o1")
        graph = make_graph(
            [make_node("src", "csv"), make_node("f", "tFilterRow"), make_sink("o1"), make_sink("o2", "tMysqlOutput")],
            [make_edge("src", "f"), first, make_edge("f", "o2")],
        )

        results = _validate_edge(rule, graph, first)

        assert _codes(results) == [Code.BRANCHING_REQUIRED_FOR_FAN_OUT]
        assert results[0].node_ids == ("f",)
        assert results[0].fix_suggestion == "Insert a tReplicate component between these nodes"

    def test_replicate_fan_out_is_clean(self, rule: EtlConnectivityRule) -> None:
        first = make_edge("r", "o1")
        graph = make_graph(
            [make_node("src", "csv"), make_node("r", "tReplicate"), make_sink("o1"), make_sink("o2", "tMysqlOutput")],
            [make_edge("src", "r"), first, make_edge("r", "o2")],
        )

        assert _validate_edge(rule, graph, first) == []

    def test_replicate_with_single_output(self, rule: EtlConnectivityRule) -> None:
        edge = make_edge("r", "o1")
        graph = make_graph([make_node("src", "csv"), make_node("r", "tReplicate"), make_sink("o1")], [make_edge("src", "r"), edge])

        results = _validate_edge(rule, graph, edge)

        assert _codes(results) == [Code.INVALID_BRANCHING_NODE_OUTPUTS]
        assert results[0].context["current_outputs"] == 1


class TestPortUsage:
    """Handles are exclusive except on branching components."""

    def test_output_port_reuse(self, rule: EtlConnectivityRule) -> None:
        first = make_edge("src", "m1", source_handle="out")
        graph = make_graph(
            [make_node("src", "csv"), make_node("m1", "tMap"), make_node("m2", "tMap")],
            [first, make_edge("src", "m2", source_handle="out")],
        )

        results = _validate_edge(rule, graph, first)

        assert _codes(results) == [Code.OUTPUT_PORT_REUSE_DISALLOWED, Code.BRANCHING_REQUIRED_FOR_FAN_OUT]
        assert results[0].context["port_id"] == "out"
        assert results[0].context["current_connections"] == 2

    def test_branching_source_may_reuse_output_port(self, rule: EtlConnectivityRule) -> None:
        first = make_edge("r", "m1", source_handle="out")
        graph = make_graph(
            [make_node("src", "csv"), make_node("r", "tReplicate"), make_node("m1", "tMap"), make_node("m2", "tMap")],
            [make_edge("src", "r"), first, make_edge("r", "m2", source_handle="out")],
        )

        assert _validate_edge(rule, graph, first) == []

    def test_input_port_multiple_connections(self, rule: EtlConnectivityRule) -> None:
        first = make_edge("a", "m", target_handle="main")
        graph = make_graph(
            [make_node("a", "csv"), make_node("b", "excel"), make_node("m", "tMap")],
            [first, make_edge("b", "m", target_handle="main")],
        )

        results = _validate_edge(rule, graph, first)

        assert _codes(results) == [Code.INPUT_PORT_MULTIPLE_CONNECTIONS]
        assert results[0].node_ids == ("m",)

    def test_shared_handle_names_across_nodes(self, rule: EtlConnectivityRule) -> None:
        edges = [
            make_edge("src", "sort", source_handle="output", target_handle="input"),
            make_edge("sort", "out", source_handle="output", target_handle="input"),
        ]
        graph = make_graph(
            [make_node("src", "tFileInputDelimited"), make_node("sort", "tSortRow"), make_sink("out")],
            edges,
        )

        for edge in edges:
            assert _validate_edge(rule, graph, edge) == []

    def test_port_count_is_per_node(self, rule: EtlConnectivityRule) -> None:
        first = make_edge("a", "m", source_handle="out", target_handle="main")
        graph = make_graph(
            [make_node("a", "csv"), make_node("b", "excel"), make_node("m", "tMap"), make_node("n", "tMap")],
            [first, make_edge("b", "n", source_handle="out", target_handle="main")],
        )

        assert _validate_edge(rule, graph, first) == []


class TestGraphTopologySweep:
    """Arity findings no single edge reveals."""

    def test_isolated_components(self, rule: EtlConnectivityRule) -> None:
        graph = make_graph(
            [
                make_node("src", "csv"),
                make_node("sort", "tSortRow"),
                make_node("rep", "tReplicate"),
                make_sink("out"),
                make_node("other", "custom"),
            ]
        )

        found = [(r.node_ids[0], r.code, r.level) for r in rule.validate_graph_topology(graph)]

        assert found == [
            ("src", Code.PROCESSING_NODE_MISSING_OUTPUTS, ValidationLevel.WARNING),
            ("sort", Code.PROCESSING_NODE_MISSING_INPUTS, ValidationLevel.ERROR),
            ("sort", Code.PROCESSING_NODE_MISSING_OUTPUTS, ValidationLevel.WARNING),
            ("rep", Code.BRANCHING_NODE_INPUT_MISSING, ValidationLevel.ERROR),
            ("rep", Code.INVALID_BRANCHING_NODE_OUTPUTS, ValidationLevel.WARNING),
            ("out", Code.PROCESSING_NODE_MISSING_INPUTS, ValidationLevel.ERROR),
        ]

    def test_merge_with_one_input_and_no_output(self, rule: EtlConnectivityRule) -> None:
        graph = make_graph([make_node("src", "csv"), make_node("m", "tMap", name="Lookup")], [make_edge("src", "m")])

        results = [r for r in rule.validate_graph_topology(graph) if r.node_ids == ("m",)]

        assert [(r.code, r.level) for r in results] == [
            (Code.MERGE_NODE_MISSING_INPUTS, ValidationLevel.WARNING),
            (Code.MERGE_NODE_OUTPUT_MISSING, ValidationLevel.ERROR),
        ]
        assert results[0].message == 'Merge component "Lookup" has only 1 input(s)'

    def test_source_with_input_and_sink_with_output(self, rule: EtlConnectivityRule) -> None:
        graph = make_graph(
            [make_node("m", "tMap"), make_node("src", "csv"), make_sink("out"), make_node("after", "tSortRow")],
            [make_edge("m", "src"), make_edge("out", "after")],
        )

        codes = {(r.node_ids[0], r.code) for r in rule.validate_graph_topology(graph)}

        assert ("src", Code.SOURCE_COMPONENT_INPUTS) in codes
        assert ("out", Code.SINK_COMPONENT_OUTPUTS) in codes
        assert ("out", Code.PROCESSING_NODE_MISSING_INPUTS) in codes

    def test_clean_pipeline_has_no_sweep_findings(self, rule: EtlConnectivityRule) -> None:
        from tests.fixtures.factories import make_clean_pipeline

        assert rule.validate_graph_topology(make_clean_pipeline()) == []


class TestProposedConnection:
    """Lookahead for an edge that does not exist yet."""

    def test_source_to_source(self, rule: EtlConnectivityRule) -> None:
        graph = make_graph([make_node("a", "csv"), make_node("b", "excel")])

        results = rule.check_proposed_connection(graph.nodes[0], graph.nodes[1], graph)

        assert _codes(results) == [Code.SOURCE_TO_SOURCE_DISALLOWED, Code.INVALID_ETL_CONNECTION]
        assert results[1].message == "Connection from source to source is not allowed"

    def test_second_output_requires_branching(self, rule: EtlConnectivityRule) -> None:
        graph = make_graph(
            [make_node("a", "csv"), make_node("m", "tMap"), make_node("s", "tSortRow")],
            [make_edge("a", "m")],
        )

        results = rule.check_proposed_connection(graph.nodes[0], graph.nodes[2], graph)

        assert _codes(results) == [Code.BRANCHING_REQUIRED_FOR_FAN_OUT]
        assert results[0].context["current_outputs"] == 1

    def test_second_input_requires_merge(self, rule: EtlConnectivityRule) -> None:
        graph = make_graph(
            [make_node("a", "csv"), make_node("b", "excel"), make_node("s", "tSortRow")],
            [make_edge("a", "s")],
        )

        results = rule.check_proposed_connection(graph.nodes[1], graph.nodes[2], graph)

        assert _codes(results) == [Code.NON_MERGE_NODE_MULTIPLE_INPUTS]

    def test_saturated_join(self, rule: EtlConnectivityRule) -> None:
        graph = make_graph(
            [make_node("a", "csv"), make_node("b", "excel"), make_node("c", "database"), make_node("j", "tJoin")],
            [make_edge("a", "j"), make_edge("b", "j")],
        )

        results = rule.check_proposed_connection(graph.nodes[2], graph.nodes[3], graph)

        assert _codes(results) == [Code.EXACT_INPUT_COUNT_REQUIRED]
        assert results[0].context == {"required": 2, "current": 3}

    def test_replicate_may_add_outputs(self, rule: EtlConnectivityRule) -> None:
        graph = make_graph(
            [make_node("r", "tReplicate"), make_sink("o1"), make_sink("o2")],
            [make_edge("r", "o1")],
        )

        assert rule.check_proposed_connection(graph.nodes[0], graph.nodes[2], graph) == []

    def test_unknown_endpoint(self, rule: EtlConnectivityRule) -> None:
        graph = make_graph([make_node("a", "csv"), make_node("b", "custom")])

        assert rule.check_proposed_connection(graph.nodes[0], graph.nodes[1], graph) == []

    def test_would_connection_be_valid(self, rule: EtlConnectivityRule) -> None:
        graph = make_graph([make_sink("o1"), make_sink("o2", "tMysqlOutput"), make_node("m", "tMap")])

        rejected = rule.would_connection_be_valid(graph.nodes[0], graph.nodes[1], graph)
        accepted = rule.would_connection_be_valid(graph.nodes[2], graph.nodes[0], graph)

        assert rejected.is_valid is False
        assert rejected.errors == (
            "Sink components cannot connect to other sink components",
            "Connection from sink to sink is not allowed",
        )
        assert accepted.is_valid is True
        assert accepted.errors == ()
