# src/etlguard/rules/cardinality.py
"""Connection count limits per node and per port."""

from __future__ import annotations

from etlguard.contracts.enums import RuleScope, ValidationErrorCode, ValidationLevel
from etlguard.contracts.graph import GraphEdge, GraphNode, GraphState
from etlguard.contracts.results import ValidationResult
from etlguard.core.registry import SchemaRegistry
from etlguard.rules import messages
from etlguard.rules.base import BaseValidationRule


class CardinalityRule(BaseValidationRule):
    """Enforces a node schema's maximum incoming/outgoing counts and port limits.

    A port's count is the number of this node's edges that name the port
    as their handle on this node's side.
    """

    rule_id = "cardinality-validation"
    name = "Cardinality Validation"
    description = "Validates connection limits per node and port"
    severity = ValidationLevel.ERROR
    scope = RuleScope.NODE

    def __init__(self, registry: SchemaRegistry) -> None:
        self._registry = registry

    def applies_to(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> bool:
        return node is not None

    def validate(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> list[ValidationResult]:
        if node is None:
            return []
        schema = self.get_node_schema(node, self._registry)
        if schema is None:
            return []

        results: list[ValidationResult] = []

        if schema.max_incoming_connections is not None:
            incoming = self.count_incoming(node.id, graph)
            if incoming > schema.max_incoming_connections:
                results.append(
                    ValidationResult.error(
                        ValidationErrorCode.MAX_INCOMING_EXCEEDED,
                        messages.max_incoming_exceeded(node.data.name, schema.max_incoming_connections, incoming),
                        node_ids=(node.id,),
                        details=f"Node has {incoming} incoming connections, maximum is {schema.max_incoming_connections}",
                        fix_suggestion=messages.fix_suggestion(ValidationErrorCode.MAX_INCOMING_EXCEEDED),
                        context={
                            "max_incoming": schema.max_incoming_connections,
                            "current_incoming": incoming,
                            "node_type": node.type,
                        },
                    )
                )

        if schema.max_outgoing_connections is not None:
            outgoing = self.count_outgoing(node.id, graph)
            if outgoing > schema.max_outgoing_connections:
                results.append(
                    ValidationResult.error(
                        ValidationErrorCode.MAX_OUTGOING_EXCEEDED,
                        messages.max_outgoing_exceeded(node.data.name, schema.max_outgoing_connections, outgoing),
                        node_ids=(node.id,),
                        details=f"Node has {outgoing} outgoing connections, maximum is {schema.max_outgoing_connections}",
                        fix_suggestion=messages.fix_suggestion(ValidationErrorCode.MAX_OUTGOING_EXCEEDED),
                        context={
                            "max_outgoing": schema.max_outgoing_connections,
                            "current_outgoing": outgoing,
                            "node_type": node.type,
                        },
                    )
                )

        for port_id, port_rule in (schema.port_rules or {}).items():
            if port_rule.max_connections is None:
                continue
            connections = self._count_node_port_connections(node.id, port_id, graph)
            if connections > port_rule.max_connections:
                results.append(
                    ValidationResult.error(
                        ValidationErrorCode.PORT_CONNECTION_LIMIT,
                        messages.port_connection_limit(port_id, port_rule.max_connections),
                        node_ids=(node.id,),
                        details=f'Port "{port_id}" has {connections} connections, maximum is {port_rule.max_connections}',
                        fix_suggestion=messages.fix_suggestion(ValidationErrorCode.PORT_CONNECTION_LIMIT),
                        context={
                            "port_id": port_id,
                            "max_connections": port_rule.max_connections,
                            "current_connections": connections,
                            "port_type": str(port_rule.port_type),
                        },
                    )
                )

        return results

    @staticmethod
    def _count_node_port_connections(node_id: str, port_id: str, graph: GraphState) -> int:
        count = 0
        for edge in graph.edges:
            if edge.source == node_id and edge.source_handle == port_id:
                count += 1
            elif edge.target == node_id and edge.target_handle == port_id:
                count += 1
        return count
