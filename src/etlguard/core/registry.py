# src/etlguard/core/registry.py
"""Schema registry: the policy store consulted by validation rules.

Holds one NodeSchema per component type and explicit ConnectionRule
overrides per ordered type pair. Type keys are case-insensitive
('tMap' and 'tmap' name the same component). Hierarchical types written
as 'parent:child' fall back to the parent's schema and rules when no
entry exists for the child.

Connection policy has two layers:
1. The ETL category table decides which roles may feed which.
2. Explicit type-pair rules refine that verdict (e.g. tjoin -> tjoin is
   forbidden although merge -> merge is allowed).
Pairs with no explicit rule keep the category verdict.
"""

from __future__ import annotations

from collections.abc import Iterable
from types import MappingProxyType

import structlog

from etlguard.contracts.enums import EtlCategory, ValidationLevel
from etlguard.contracts.results import ConnectionDecision, SchemaIssue
from etlguard.contracts.schema import ConnectionRule, NodeSchema

logger = structlog.get_logger(__name__)

# Matches any type on one side of a ConnectionRule.
WILDCARD_TYPE = "*"

_VALID_ETL_CATEGORIES: frozenset[EtlCategory] = frozenset(
    {
        EtlCategory.SOURCE,
        EtlCategory.SINK,
        EtlCategory.PROCESSING,
        EtlCategory.MERGE,
        EtlCategory.BRANCHING,
    }
)

ETL_ALLOWED_TARGETS: MappingProxyType[EtlCategory, frozenset[EtlCategory]] = MappingProxyType(
    {
        EtlCategory.SOURCE: frozenset({EtlCategory.PROCESSING, EtlCategory.MERGE, EtlCategory.BRANCHING}),
        EtlCategory.PROCESSING: frozenset(
            {EtlCategory.PROCESSING, EtlCategory.MERGE, EtlCategory.BRANCHING, EtlCategory.SINK}
        ),
        EtlCategory.MERGE: frozenset({EtlCategory.PROCESSING, EtlCategory.MERGE, EtlCategory.BRANCHING, EtlCategory.SINK}),
        EtlCategory.BRANCHING: frozenset(
            {EtlCategory.PROCESSING, EtlCategory.MERGE, EtlCategory.BRANCHING, EtlCategory.SINK}
        ),
        EtlCategory.SINK: frozenset(),
    }
)
"""Target roles each ETL role may connect to."""


def normalize_type(node_type: str) -> str:
    """Canonical registry key for a component type."""
    return node_type.strip().lower()


def parent_type(node_type: str) -> str | None:
    """Parent of a 'parent:child' type, or None for a flat type."""
    if ":" not in node_type:
        return None
    return node_type.split(":", 1)[0]


class SchemaRegistry:
    """Per-type schemas and per-pair connection rules.

    Re-registering a type or pair replaces the previous entry.
    """

    def __init__(self) -> None:
        self._schemas: dict[str, NodeSchema] = {}
        self._connection_rules: dict[tuple[str, str], ConnectionRule] = {}
        self._type_hierarchy: dict[str, list[str]] = {}

    # ------------------------------------------------------------------
    # Schemas
    # ------------------------------------------------------------------

    def register_schema(self, schema: NodeSchema) -> None:
        key = normalize_type(schema.node_type)
        self._schemas[key] = schema

        parent = parent_type(key)
        if parent is not None:
            children = self._type_hierarchy.setdefault(parent, [])
            child = key.split(":", 1)[1]
            if child not in children:
                children.append(child)

    def register_schemas(self, schemas: Iterable[NodeSchema]) -> None:
        for schema in schemas:
            self.register_schema(schema)

    def get_schema(self, node_type: str) -> NodeSchema | None:
        """Exact type match first, then the parent of a 'parent:child' type."""
        key = normalize_type(node_type)
        schema = self._schemas.get(key)
        if schema is None:
            parent = parent_type(key)
            if parent is not None:
                schema = self._schemas.get(parent)
        return schema

    def has_schema(self, node_type: str) -> bool:
        return self.get_schema(node_type) is not None

    def get_all_schemas(self) -> list[NodeSchema]:
        return list(self._schemas.values())

    def child_types(self, parent: str) -> list[str]:
        """Registered child types of a hierarchical parent type."""
        return list(self._type_hierarchy.get(normalize_type(parent), ()))

    def get_schemas_by_etl_category(self, category: EtlCategory) -> list[NodeSchema]:
        return [schema for schema in self._schemas.values() if schema.etl_category == category]

    # ------------------------------------------------------------------
    # Connection rules
    # ------------------------------------------------------------------

    def register_connection_rule(self, rule: ConnectionRule) -> None:
        key = (normalize_type(rule.source_type), normalize_type(rule.target_type))
        self._connection_rules[key] = rule

    def register_connection_rules(self, rules: Iterable[ConnectionRule]) -> None:
        for rule in rules:
            self.register_connection_rule(rule)

    def get_all_connection_rules(self) -> list[ConnectionRule]:
        return list(self._connection_rules.values())

    def is_connection_allowed(self, source_type: str, target_type: str) -> ConnectionDecision:
        """Explicit verdict for a type pair.

        Lookup order: exact pair, parent pair, source wildcard, target
        wildcard. Pairs with no rule are allowed.
        """
        rule = self._find_connection_rule(normalize_type(source_type), normalize_type(target_type))
        if rule is None:
            return ConnectionDecision(allowed=True)
        return ConnectionDecision(allowed=rule.allowed, rule=rule)

    def _find_connection_rule(self, source: str, target: str) -> ConnectionRule | None:
        rule = self._connection_rules.get((source, target))
        if rule is not None:
            return rule

        source_parent = parent_type(source) or source
        target_parent = parent_type(target) or target
        if (source_parent, target_parent) != (source, target):
            rule = self._connection_rules.get((source_parent, target_parent))
            if rule is not None:
                return rule

        for key in ((source, WILDCARD_TYPE), (WILDCARD_TYPE, target)):
            rule = self._connection_rules.get(key)
            if rule is not None:
                return rule
        return None

    # ------------------------------------------------------------------
    # ETL policy
    # ------------------------------------------------------------------

    def get_etl_classification(self, node_type: str) -> tuple[EtlCategory, NodeSchema | None]:
        schema = self.get_schema(node_type)
        if schema is None or schema.etl_category is None:
            return EtlCategory.UNKNOWN, schema
        return schema.etl_category, schema

    def can_accept_multiple_inputs(self, node_type: str) -> bool:
        schema = self.get_schema(node_type)
        if schema is None:
            return False

        if schema.etl_category in (EtlCategory.MERGE, EtlCategory.BRANCHING):
            return True

        metadata = schema.component_metadata
        if metadata is not None and (
            metadata.is_multi_input or metadata.allows_unlimited_inputs or metadata.allows_lookup_inputs
        ):
            return True

        return schema.max_incoming_connections is None or schema.max_incoming_connections > 1

    def can_have_multiple_outputs(self, node_type: str) -> bool:
        schema = self.get_schema(node_type)
        if schema is None:
            return False

        if schema.etl_category == EtlCategory.BRANCHING:
            return True

        metadata = schema.component_metadata
        if metadata is not None and metadata.allows_multiple_main_outputs:
            return True

        return schema.max_outgoing_connections is None or schema.max_outgoing_connections > 1

    def is_etl_connection_allowed(self, source_type: str, target_type: str) -> ConnectionDecision:
        """Category table verdict refined by explicit type-pair rules.

        Types without a schema or without an ETL category are allowed:
        the registry cannot judge what it does not know.
        """
        source_category, _ = self.get_etl_classification(source_type)
        target_category, _ = self.get_etl_classification(target_type)

        if EtlCategory.UNKNOWN in (source_category, target_category):
            return ConnectionDecision(allowed=True)

        implied_rule = ConnectionRule(source_type=source_type, target_type=target_type, allowed=False)

        if source_category == EtlCategory.SOURCE and target_category == EtlCategory.SOURCE:
            return ConnectionDecision(
                allowed=False,
                rule=implied_rule,
                reason="Source components cannot connect to other source components",
            )
        if source_category == EtlCategory.SINK and target_category == EtlCategory.SINK:
            return ConnectionDecision(
                allowed=False,
                rule=implied_rule,
                reason="Sink components cannot connect to other sink components",
            )

        if target_category not in ETL_ALLOWED_TARGETS[source_category]:
            return ConnectionDecision(
                allowed=False,
                rule=implied_rule,
                reason=f"ETL rules prohibit {source_category} → {target_category} connections",
            )

        return self.is_connection_allowed(source_type, target_type)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def validate_schema_consistency(self) -> list[SchemaIssue]:
        """Audit registered schemas for contradictions.

        Reports problems as issues; never raises.
        """
        issues: list[SchemaIssue] = []

        for schema in self._schemas.values():
            node_type = normalize_type(schema.node_type)

            for source_type in schema.allowed_source_types:
                if not self.has_schema(source_type):
                    issues.append(
                        SchemaIssue(
                            level=ValidationLevel.WARNING,
                            message=f'Schema "{schema.node_type}" references unknown source type: {source_type}',
                            schema_id=schema.id,
                        )
                    )
            for target_type in schema.allowed_target_types:
                if not self.has_schema(target_type):
                    issues.append(
                        SchemaIssue(
                            level=ValidationLevel.WARNING,
                            message=f'Schema "{schema.node_type}" references unknown target type: {target_type}',
                            schema_id=schema.id,
                        )
                    )

            referenced = {normalize_type(t) for t in (*schema.allowed_source_types, *schema.allowed_target_types)}
            if not schema.allows_cycles and node_type in referenced:
                issues.append(
                    SchemaIssue(
                        level=ValidationLevel.ERROR,
                        message=f'Schema "{schema.node_type}" disallows cycles but references itself',
                        schema_id=schema.id,
                    )
                )

            if schema.etl_category is None:
                continue

            if schema.etl_category not in _VALID_ETL_CATEGORIES:
                issues.append(
                    SchemaIssue(
                        level=ValidationLevel.ERROR,
                        message=f'Schema "{schema.node_type}" has invalid ETL category: {schema.etl_category}',
                        schema_id=schema.id,
                    )
                )
            if schema.etl_category == EtlCategory.SOURCE and schema.max_incoming_connections != 0:
                issues.append(
                    SchemaIssue(
                        level=ValidationLevel.WARNING,
                        message=f'Source component "{schema.node_type}" should not accept incoming connections',
                        schema_id=schema.id,
                    )
                )
            if schema.etl_category == EtlCategory.SINK and schema.max_outgoing_connections != 0:
                issues.append(
                    SchemaIssue(
                        level=ValidationLevel.WARNING,
                        message=f'Sink component "{schema.node_type}" should not have outgoing connections',
                        schema_id=schema.id,
                    )
                )

        if issues:
            logger.debug("schema_consistency_issues", issue_count=len(issues))
        return issues

    def clear(self) -> None:
        self._schemas.clear()
        self._connection_rules.clear()
        self._type_hierarchy.clear()
