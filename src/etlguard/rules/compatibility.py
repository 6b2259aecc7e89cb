# src/etlguard/rules/compatibility.py
"""Node type compatibility rule."""

from __future__ import annotations

from etlguard.contracts.enums import RuleScope, ValidationErrorCode, ValidationLevel
from etlguard.contracts.graph import GraphEdge, GraphNode, GraphState
from etlguard.contracts.results import ValidationResult
from etlguard.core.registry import SchemaRegistry, normalize_type
from etlguard.rules import messages
from etlguard.rules.base import BaseValidationRule


class NodeTypeCompatibilityRule(BaseValidationRule):
    """Checks an edge against registry pair rules and schema allow-lists.

    An empty allow-list admits nothing: a source schema with no allowed
    source types rejects every incoming edge.
    """

    rule_id = "node-type-compatibility"
    name = "Node Type Compatibility"
    description = "Validates that node types can connect to each other"
    severity = ValidationLevel.ERROR
    scope = RuleScope.EDGE

    def __init__(self, registry: SchemaRegistry) -> None:
        self._registry = registry

    def applies_to(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> bool:
        return edge is not None and bool(edge.source) and bool(edge.target)

    def validate(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> list[ValidationResult]:
        if edge is None:
            return []
        source = graph.get_node(edge.source)
        target = graph.get_node(edge.target)
        if source is None or target is None:
            return []

        results: list[ValidationResult] = []
        node_ids = (source.id, target.id)
        edge_ids = (edge.id,)

        decision = self._registry.is_connection_allowed(source.type, target.type)
        if not decision.allowed:
            results.append(
                ValidationResult.error(
                    ValidationErrorCode.INVALID_CONNECTION_TYPE,
                    messages.invalid_connection_type(source.type, target.type),
                    node_ids=node_ids,
                    edge_ids=edge_ids,
                    details=f"Connection from {source.type} to {target.type} is prohibited",
                    fix_suggestion=messages.fix_suggestion(ValidationErrorCode.INVALID_CONNECTION_TYPE),
                    context={
                        "source_type": source.type,
                        "target_type": target.type,
                        "rule": decision.rule.model_dump() if decision.rule is not None else None,
                    },
                )
            )

        source_schema = self.get_node_schema(source, self._registry)
        if source_schema is not None and not _type_listed(target.type, source_schema.allowed_target_types):
            allowed = source_schema.allowed_target_types
            results.append(
                ValidationResult.error(
                    ValidationErrorCode.INVALID_TARGET_TYPE,
                    messages.invalid_target_type(target.type, allowed),
                    node_ids=node_ids,
                    edge_ids=edge_ids,
                    details=f'Node type "{source.type}" cannot connect to "{target.type}"',
                    fix_suggestion=f"Connect to one of: {', '.join(allowed)}" if allowed else None,
                    context={
                        "source_type": source.type,
                        "target_type": target.type,
                        "allowed_target_types": list(allowed),
                    },
                )
            )

        target_schema = self.get_node_schema(target, self._registry)
        if target_schema is not None and not _type_listed(source.type, target_schema.allowed_source_types):
            allowed = target_schema.allowed_source_types
            results.append(
                ValidationResult.error(
                    ValidationErrorCode.INVALID_SOURCE_TYPE,
                    messages.invalid_source_type(source.type, allowed),
                    node_ids=node_ids,
                    edge_ids=edge_ids,
                    details=f'Node type "{target.type}" cannot accept connection from "{source.type}"',
                    fix_suggestion=f"Connect from one of: {', '.join(allowed)}" if allowed else None,
                    context={
                        "source_type": source.type,
                        "target_type": target.type,
                        "allowed_source_types": list(allowed),
                    },
                )
            )

        return results

    def get_fix_suggestion(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> str | None:
        return messages.fix_suggestion(ValidationErrorCode.INVALID_CONNECTION_TYPE)


def _type_listed(node_type: str, allowed: tuple[str, ...]) -> bool:
    key = normalize_type(node_type)
    return any(normalize_type(candidate) == key for candidate in allowed)
