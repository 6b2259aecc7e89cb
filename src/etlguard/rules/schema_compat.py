# src/etlguard/rules/schema_compat.py
"""Column-level schema compatibility between connected nodes."""

from __future__ import annotations

from types import MappingProxyType

from etlguard.contracts.enums import RuleScope, ValidationErrorCode, ValidationLevel
from etlguard.contracts.graph import GraphEdge, GraphNode, GraphState
from etlguard.contracts.results import ValidationResult
from etlguard.rules import messages
from etlguard.rules.base import BaseValidationRule

TYPE_FAMILIES: MappingProxyType[str, frozenset[str]] = MappingProxyType(
    {
        "string": frozenset({"string", "text", "varchar", "char"}),
        "number": frozenset({"number", "int", "integer", "float", "decimal", "double"}),
        "boolean": frozenset({"boolean", "bool", "bit"}),
        "date": frozenset({"date", "datetime", "timestamp"}),
        "any": frozenset({"string", "number", "boolean", "date", "any"}),
    }
)

WILDCARD_FAMILY = "any"


def expand_type(type_name: str) -> frozenset[str]:
    """Every type name ``type_name`` is interchangeable with.

    Family names expand to their members; members expand to their own
    family. Only ``any`` itself expands to the ``any`` row, so a family name
    never reaches the other families through it. Unknown types only match
    themselves.
    """
    key = type_name.strip().lower()
    expanded = {key}
    if key in TYPE_FAMILIES:
        expanded |= TYPE_FAMILIES[key]
    for family, members in TYPE_FAMILIES.items():
        if family == WILDCARD_FAMILY:
            continue
        if key in members:
            expanded |= members
            expanded.add(family)
    return frozenset(expanded)


def are_types_compatible(source_type: str, target_type: str) -> bool:
    return not expand_type(source_type).isdisjoint(expand_type(target_type))


class SchemaCompatibilityRule(BaseValidationRule):
    """Compares tabular data schemas across an edge.

    Only runs when both endpoints carry a data schema.
    """

    rule_id = "schema-compatibility"
    name = "Schema Compatibility"
    description = "Validates data schema compatibility between connected nodes"
    severity = ValidationLevel.ERROR
    scope = RuleScope.EDGE

    def applies_to(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> bool:
        return edge is not None and bool(edge.source) and bool(edge.target)

    def validate(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> list[ValidationResult]:
        if edge is None:
            return []
        source = graph.get_node(edge.source)
        target = graph.get_node(edge.target)
        if source is None or target is None:
            return []

        source_schema = source.data.data_schema
        target_schema = target.data.data_schema
        if source_schema is None or target_schema is None:
            return []

        results: list[ValidationResult] = []
        node_ids = (source.id, target.id)
        edge_ids = (edge.id,)
        source_columns = {col.name: col for col in source_schema.columns}

        for column in target_schema.columns:
            if column.nullable or column.name in source_columns:
                continue
            results.append(
                ValidationResult.error(
                    ValidationErrorCode.REQUIRED_COLUMN_MISSING,
                    messages.required_column_missing(column.name),
                    node_ids=node_ids,
                    edge_ids=edge_ids,
                    details=f"Target requires column \"{column.name}\" but it's not available in source",
                    fix_suggestion=f'Add column "{column.name}" to source or make it nullable in target',
                    context={
                        "column_name": column.name,
                        "column_type": column.type,
                        "source_node": source.data.name,
                        "target_node": target.data.name,
                    },
                )
            )

        mapping = edge.data.mapping if edge.data is not None else None
        for source_column_name, target_column_name in (mapping or {}).items():
            source_column = source_schema.column(source_column_name)
            target_column = target_schema.column(target_column_name)
            if source_column is None or target_column is None:
                continue
            if are_types_compatible(source_column.type, target_column.type):
                continue
            results.append(
                ValidationResult.error(
                    ValidationErrorCode.DATA_TYPE_MISMATCH,
                    messages.data_type_mismatch(source_column_name, source_column.type, target_column.type),
                    node_ids=node_ids,
                    edge_ids=edge_ids,
                    details=(
                        f'Column "{source_column_name}" ({source_column.type}) cannot be mapped to '
                        f'"{target_column_name}" ({target_column.type})'
                    ),
                    fix_suggestion=messages.fix_suggestion(ValidationErrorCode.DATA_TYPE_MISMATCH),
                    context={
                        "source_column": source_column_name,
                        "target_column": target_column_name,
                        "source_type": source_column.type,
                        "target_type": target_column.type,
                    },
                )
            )

        for foreign_key in target_schema.foreign_keys:
            if foreign_key.column in source_columns:
                continue
            results.append(
                ValidationResult.warning(
                    ValidationErrorCode.SCHEMA_INCOMPATIBILITY,
                    f'Foreign key column "{foreign_key.column}" not found in source',
                    node_ids=node_ids,
                    edge_ids=edge_ids,
                    details=(
                        f'Target expects foreign key "{foreign_key.column}" referencing '
                        f"{foreign_key.reference_table}.{foreign_key.reference_column}"
                    ),
                    fix_suggestion="Add the foreign key column or adjust the schema",
                    context={
                        "foreign_key": foreign_key.model_dump(),
                        "source_node": source.data.name,
                        "target_node": target.data.name,
                    },
                )
            )

        return results
