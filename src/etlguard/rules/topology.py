# src/etlguard/rules/topology.py
"""Whole-graph structure warnings."""

from __future__ import annotations

from etlguard.contracts.enums import NodeCategory, RuleScope, ValidationErrorCode, ValidationLevel
from etlguard.contracts.graph import GraphEdge, GraphNode, GraphState
from etlguard.contracts.results import ValidationResult
from etlguard.rules import messages
from etlguard.rules.base import BaseValidationRule


class GraphTopologyRule(BaseValidationRule):
    """Flags disconnected nodes and dead ends.

    Nodes whose component category is ``output`` are terminal
    and never reported as dead ends. A node with no edges at all is both
    disconnected and a dead end.
    """

    rule_id = "graph-topology"
    name = "Graph Topology"
    description = "Validates overall graph structure and connectivity"
    severity = ValidationLevel.WARNING
    scope = RuleScope.GRAPH

    def applies_to(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> bool:
        return len(graph.nodes) > 0

    def validate(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> list[ValidationResult]:
        results: list[ValidationResult] = []

        connected: set[str] = set()
        with_outgoing: set[str] = set()
        for graph_edge in graph.edges:
            connected.add(graph_edge.source)
            connected.add(graph_edge.target)
            with_outgoing.add(graph_edge.source)

        context_for = {
            graph_node.id: {"node_type": graph_node.type, "node_category": graph_node.data.component_category}
            for graph_node in graph.nodes
        }

        for graph_node in graph.nodes:
            if graph_node.id in connected:
                continue
            results.append(
                ValidationResult.warning(
                    ValidationErrorCode.DISCONNECTED_NODE,
                    messages.disconnected_node(graph_node.data.name),
                    node_ids=(graph_node.id,),
                    details=f'Node "{graph_node.data.name}" is not connected to any other node',
                    fix_suggestion=messages.fix_suggestion(ValidationErrorCode.DISCONNECTED_NODE),
                    context=context_for[graph_node.id],
                )
            )

        for graph_node in graph.nodes:
            if graph_node.id in with_outgoing or graph_node.data.component_category == NodeCategory.OUTPUT:
                continue
            results.append(
                ValidationResult.warning(
                    ValidationErrorCode.DEAD_END,
                    messages.dead_end(graph_node.data.name),
                    node_ids=(graph_node.id,),
                    details=f'Node "{graph_node.data.name}" has no outgoing connections',
                    fix_suggestion=messages.fix_suggestion(ValidationErrorCode.DEAD_END),
                    context=context_for[graph_node.id],
                )
            )

        return results
