# src/etlguard/rules/base.py
"""Rule contract and shared base class.

A rule inspects a snapshot and returns findings; it never raises for a
malformed graph and never mutates the snapshot. The engine decides which
elements a rule sees from its ``scope``:

- GRAPH rules are called once with ``node=None, edge=None``
- NODE rules are called once per node with ``edge=None``
- EDGE rules are called once per edge whose endpoints both resolve, with
  the edge's source node as ``node``

ValidationRule is the structural type the engine accepts, so hosts can
supply custom rules without subclassing. BaseValidationRule carries the
lookup and counting helpers the built-in rules share.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

from etlguard.contracts.enums import RuleScope, ValidationLevel
from etlguard.contracts.graph import GraphEdge, GraphNode, GraphState
from etlguard.contracts.results import ValidationResult
from etlguard.contracts.schema import NodeSchema
from etlguard.core.registry import SchemaRegistry


@runtime_checkable
class ValidationRule(Protocol):
    """Structural contract for anything the engine can run."""

    rule_id: str
    name: str
    description: str
    severity: ValidationLevel
    scope: RuleScope

    def applies_to(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> bool: ...

    def validate(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> list[ValidationResult]: ...

    def get_fix_suggestion(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> str | None: ...


class BaseValidationRule(ABC):
    """Base class for built-in rules.

    Subclasses set the class attributes and implement validate().
    """

    rule_id: str
    name: str
    description: str
    severity: ValidationLevel = ValidationLevel.ERROR
    scope: RuleScope = RuleScope.EDGE

    def applies_to(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> bool:
        return True

    @abstractmethod
    def validate(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> list[ValidationResult]:
        """Return findings for the element(s) this rule was invoked on."""
        ...

    def get_fix_suggestion(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> str | None:
        return None

    # Helpers

    @staticmethod
    def get_node_by_id(node_id: str, graph: GraphState) -> GraphNode | None:
        return graph.get_node(node_id)

    @staticmethod
    def get_node_schema(node: GraphNode, registry: SchemaRegistry) -> NodeSchema | None:
        return registry.get_schema(node.type)

    @staticmethod
    def count_incoming(node_id: str, graph: GraphState) -> int:
        return sum(1 for edge in graph.edges if edge.target == node_id)

    @staticmethod
    def count_outgoing(node_id: str, graph: GraphState) -> int:
        return sum(1 for edge in graph.edges if edge.source == node_id)

    @staticmethod
    def count_output_port_connections(node_id: str, port_id: str, graph: GraphState) -> int:
        """Outgoing edges of ``node_id`` leaving through ``port_id``."""
        return sum(1 for edge in graph.edges if edge.source == node_id and edge.source_handle == port_id)

    @staticmethod
    def count_input_port_connections(node_id: str, port_id: str, graph: GraphState) -> int:
        """Incoming edges of ``node_id`` arriving at ``port_id``."""
        return sum(1 for edge in graph.edges if edge.target == node_id and edge.target_handle == port_id)
