# tests/core/test_registry.py
"""Tests for the schema registry."""

from __future__ import annotations

from etlguard.contracts.enums import EtlCategory, NodeCategory, ValidationLevel
from etlguard.contracts.schema import ComponentMetadata, ConnectionRule, NodeSchema
from etlguard.core.registry import SchemaRegistry


def _schema(node_type: str, **overrides: object) -> NodeSchema:
    fields: dict[str, object] = {
        "id": f"schema:{node_type}",
        "node_type": node_type,
        "display_name": node_type,
        "category": NodeCategory.PROCESSING,
    }
    fields.update(overrides)
    return NodeSchema.model_validate(fields)


class TestSchemaLookup:
    """Type keys and hierarchy fallback."""

    def test_lookup_is_case_insensitive(self) -> None:
        registry = SchemaRegistry()
        registry.register_schema(_schema("tMap"))

        assert registry.get_schema("tmap") is not None
        assert registry.get_schema("TMAP") is not None
        assert registry.has_schema(" tMap ")

    def test_child_type_falls_back_to_parent(self) -> None:
        registry = SchemaRegistry()
        parent = _schema("input", category=NodeCategory.INPUT)
        registry.register_schema(parent)

        assert registry.get_schema("input:csv") is parent

    def test_child_schema_wins_over_parent(self) -> None:
        registry = SchemaRegistry()
        parent = _schema("input", category=NodeCategory.INPUT)
        child = _schema("input:csv", category=NodeCategory.INPUT)
        registry.register_schemas([parent, child])

        assert registry.get_schema("input:csv") is child
        assert registry.child_types("input") == ["csv"]

    def test_reregistering_replaces(self) -> None:
        registry = SchemaRegistry()
        registry.register_schema(_schema("tsortrow", max_incoming_connections=1))
        registry.register_schema(_schema("tsortrow", max_incoming_connections=3))

        schema = registry.get_schema("tsortrow")
        assert schema is not None
        assert schema.max_incoming_connections == 3
        assert len(registry.get_all_schemas()) == 1

    def test_unknown_type(self) -> None:
        registry = SchemaRegistry()

        assert registry.get_schema("nothing") is None
        assert registry.get_etl_classification("nothing") == (EtlCategory.UNKNOWN, None)

    def test_schemas_by_etl_category(self, registry: SchemaRegistry) -> None:
        sources = {schema.node_type for schema in registry.get_schemas_by_etl_category(EtlCategory.SOURCE)}

        assert sources == {"excel", "database", "csv", "delimited"}

    def test_clear(self, registry: SchemaRegistry) -> None:
        registry.clear()

        assert registry.get_all_schemas() == []
        assert registry.get_all_connection_rules() == []


class TestConnectionRules:
    """Explicit type-pair verdicts."""

    def test_no_rule_allows(self) -> None:
        decision = SchemaRegistry().is_connection_allowed("a", "b")

        assert decision.allowed is True
        assert decision.rule is None

    def test_exact_pair(self, registry: SchemaRegistry) -> None:
        decision = registry.is_connection_allowed("tJoin", "tJoin")

        assert decision.allowed is False
        assert decision.rule is not None
        assert decision.rule.key == ("tjoin", "tjoin")

    def test_parent_pair(self) -> None:
        registry = SchemaRegistry()
        registry.register_connection_rule(ConnectionRule(source_type="input", target_type="output", allowed=False))

        assert registry.is_connection_allowed("input:csv", "output:file").allowed is False

    def test_source_wildcard(self, registry: SchemaRegistry) -> None:
        decision = registry.is_connection_allowed("output", "tMap")

        assert decision.allowed is False
        assert decision.rule is not None
        assert decision.rule.target_type == "*"

    def test_target_wildcard(self) -> None:
        registry = SchemaRegistry()
        registry.register_connection_rule(ConnectionRule(source_type="*", target_type="audit", allowed=False))

        assert registry.is_connection_allowed("csv", "audit").allowed is False
        assert registry.is_connection_allowed("csv", "other").allowed is True

    def test_exact_pair_beats_wildcard(self) -> None:
        registry = SchemaRegistry()
        registry.register_connection_rules(
            [
                ConnectionRule(source_type="sink", target_type="*", allowed=False),
                ConnectionRule(source_type="sink", target_type="archive", allowed=True),
            ]
        )

        assert registry.is_connection_allowed("sink", "archive").allowed is True
        assert registry.is_connection_allowed("sink", "other").allowed is False


class TestEtlPolicy:
    """Category table refined by type-pair rules."""

    def test_source_to_source_denied(self, registry: SchemaRegistry) -> None:
        decision = registry.is_etl_connection_allowed("csv", "excel")

        assert decision.allowed is False
        assert decision.reason == "Source components cannot connect to other source components"

    def test_sink_to_sink_denied(self, registry: SchemaRegistry) -> None:
        decision = registry.is_etl_connection_allowed("output", "tMysqlOutput")

        assert decision.allowed is False
        assert decision.reason == "Sink components cannot connect to other sink components"

    def test_category_table_denial(self, registry: SchemaRegistry) -> None:
        decision = registry.is_etl_connection_allowed("tMap", "csv")

        assert decision.allowed is False
        assert decision.reason == "ETL rules prohibit merge → source connections"

    def test_type_rule_refines_allowed_categories(self, registry: SchemaRegistry) -> None:
        assert registry.is_etl_connection_allowed("csv", "tJoin").allowed is True
        assert registry.is_etl_connection_allowed("tJoin", "tJoin").allowed is False

    def test_unknown_types_are_allowed(self, registry: SchemaRegistry) -> None:
        assert registry.is_etl_connection_allowed("custom", "csv").allowed is True

    def test_multiple_inputs(self, registry: SchemaRegistry) -> None:
        assert registry.can_accept_multiple_inputs("tJoin") is True
        assert registry.can_accept_multiple_inputs("tReplicate") is True
        assert registry.can_accept_multiple_inputs("output") is True
        assert registry.can_accept_multiple_inputs("tSortRow") is False
        assert registry.can_accept_multiple_inputs("csv") is False
        assert registry.can_accept_multiple_inputs("custom") is False

    def test_multiple_outputs(self, registry: SchemaRegistry) -> None:
        assert registry.can_have_multiple_outputs("tReplicate") is True
        assert registry.can_have_multiple_outputs("tFilterRow") is True
        assert registry.can_have_multiple_outputs("tSortRow") is False
        assert registry.can_have_multiple_outputs("custom") is False

    def test_metadata_flags_grant_multiple_inputs(self) -> None:
        registry = SchemaRegistry()
        registry.register_schema(
            _schema(
                "tlookup",
                max_incoming_connections=1,
                component_metadata=ComponentMetadata(allows_lookup_inputs=True),
            )
        )

        assert registry.can_accept_multiple_inputs("tlookup") is True


class TestSchemaConsistency:
    """Auditing registered schemas."""

    def test_clean_registry_has_no_issues(self) -> None:
        registry = SchemaRegistry()
        registry.register_schemas(
            [
                _schema("reader", etl_category=EtlCategory.SOURCE, max_incoming_connections=0, allowed_target_types=("writer",)),
                _schema("writer", etl_category=EtlCategory.SINK, max_outgoing_connections=0, allowed_source_types=("reader",)),
            ]
        )

        assert registry.validate_schema_consistency() == []

    def test_unknown_references(self) -> None:
        registry = SchemaRegistry()
        registry.register_schema(_schema("reader", allowed_source_types=("ghost",), allowed_target_types=("phantom",)))

        messages = [issue.message for issue in registry.validate_schema_consistency()]

        assert messages == [
            'Schema "reader" references unknown source type: ghost',
            'Schema "reader" references unknown target type: phantom',
        ]

    def test_self_reference_without_cycles(self) -> None:
        registry = SchemaRegistry()
        registry.register_schema(_schema("loop", allowed_target_types=("loop",)))

        issues = registry.validate_schema_consistency()

        assert [(issue.level, issue.schema_id) for issue in issues] == [(ValidationLevel.ERROR, "schema:loop")]

    def test_self_reference_with_cycles_allowed(self) -> None:
        registry = SchemaRegistry()
        registry.register_schema(_schema("loop", allows_cycles=True, allowed_target_types=("loop",)))

        assert registry.validate_schema_consistency() == []

    def test_source_accepting_inputs_and_sink_emitting_outputs(self) -> None:
        registry = SchemaRegistry()
        registry.register_schemas(
            [
                _schema("reader", etl_category=EtlCategory.SOURCE),
                _schema("writer", etl_category=EtlCategory.SINK),
            ]
        )

        messages = [issue.message for issue in registry.validate_schema_consistency()]

        assert messages == [
            'Source component "reader" should not accept incoming connections',
            'Sink component "writer" should not have outgoing connections',
        ]
