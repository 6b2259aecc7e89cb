# src/etlguard/rules/cycle.py
"""Cycle detection rule: every directed cycle is an error."""

from __future__ import annotations

from etlguard.contracts.enums import RuleScope, ValidationErrorCode, ValidationLevel
from etlguard.contracts.graph import GraphEdge, GraphNode, GraphState
from etlguard.contracts.results import ValidationResult
from etlguard.core.dag import CycleDetector
from etlguard.core.registry import SchemaRegistry
from etlguard.rules import messages
from etlguard.rules.base import BaseValidationRule


class CycleDetectionRule(BaseValidationRule):
    """Reports one CYCLE_DETECTED error per detected cycle.

    Schemas that allow cycles do not soften the verdict: the execution
    pipeline cannot run a cyclic flow. The advisory flags are carried in
    the result context.
    """

    rule_id = "cycle-detection"
    name = "Cycle Detection"
    description = "Detects cycles in the graph"
    severity = ValidationLevel.ERROR
    scope = RuleScope.GRAPH

    def __init__(self, registry: SchemaRegistry | None = None, detector: CycleDetector | None = None) -> None:
        self._registry = registry
        self._detector = detector if detector is not None else CycleDetector()

    def applies_to(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> bool:
        return len(graph.edges) > 0

    def validate(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> list[ValidationResult]:
        detection = self._detector.detect_cycles(graph, self._registry)
        results: list[ValidationResult] = []

        for detail in detection.cycle_details:
            names = []
            for node_id in detail.nodes:
                cycle_node = graph.get_node(node_id)
                names.append(cycle_node.data.name if cycle_node is not None else node_id)

            results.append(
                ValidationResult.error(
                    ValidationErrorCode.CYCLE_DETECTED,
                    messages.cycle_detected(names),
                    node_ids=detail.nodes,
                    edge_ids=detail.edges,
                    details=f"Cycle detected: {' → '.join(detail.nodes)}",
                    fix_suggestion=messages.fix_suggestion(ValidationErrorCode.CYCLE_DETECTED),
                    context={
                        "cycle": list(detail.nodes),
                        "is_allowed": detail.is_allowed,
                        "violates_schema": detail.violates_schema,
                    },
                )
            )
        return results

    def get_fix_suggestion(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> str | None:
        return messages.fix_suggestion(ValidationErrorCode.CYCLE_DETECTED)
