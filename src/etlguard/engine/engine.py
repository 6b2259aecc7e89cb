# src/etlguard/engine/engine.py
"""ValidationEngine: runs the rule set over graph snapshots.

The engine owns an ordered rule list, a schema registry reference and a
structural result cache. Every public query is a blocking computation
over an immutable snapshot; the only mutable state is the rule list and
the cache, and hosts must serialize add_rule()/update_config() relative
to validate_graph().

Pipeline for a full validation:

1. Cache lookup by structural key (live hits return the stored summary)
2. Non-ETL rules, dispatched by scope
3. ETL topology sweep and per-edge checks, relaxed if configured
4. Fingerprint deduplication
5. Severity-mode filter
6. Summary built and cached

Example:
    from etlguard.core.catalogue import create_default_registry
    from etlguard.engine import ValidationEngine, assert_executable

    engine = ValidationEngine(create_default_registry())
    summary = engine.validate_graph(graph)
    assert_executable(summary)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

import structlog

from etlguard.contracts.enums import EtlCategory, RuleScope, ValidationErrorCode, ValidationLevel
from etlguard.contracts.errors import GraphValidationError
from etlguard.contracts.graph import GraphEdge, GraphNode, GraphState
from etlguard.contracts.results import (
    ConnectionCheck,
    ElementStatus,
    EngineStatistics,
    EtlClassification,
    EtlValidationSummary,
    EtlViolations,
    FanOutCheck,
    MultiInputCheck,
    SpecificConnectionResult,
    ValidationResult,
    ValidationSummary,
    filter_by_level,
    group_by_affected_element,
)
from etlguard.core.catalogue import create_default_registry, load_catalogue
from etlguard.core.config import ValidationSettings
from etlguard.core.dag import CycleDetector
from etlguard.core.registry import ETL_ALLOWED_TARGETS, SchemaRegistry
from etlguard.engine.cache import ValidationCache, graph_cache_key
from etlguard.engine.clock import DEFAULT_CLOCK, Clock
from etlguard.engine.filtering import dedupe_results, filter_by_mode, is_etl_code, relax_etl_results
from etlguard.rules import messages
from etlguard.rules.base import ValidationRule
from etlguard.rules.cycle import CycleDetectionRule
from etlguard.rules.etl_connectivity import EtlConnectivityRule
from etlguard.rules.factory import create_all_rules

logger = structlog.get_logger(__name__)

TEMP_EDGE_ID = "temp-validation-edge"

_MAX_ERRORS_IN_MESSAGE = 5


class ValidationEngine:
    """Validate ETL graph snapshots against a schema registry.

    Args:
        schema_registry: Registry the built-in rules consult
        settings: Engine configuration (defaults to ValidationSettings())
        custom_rules: Extra rules appended after the built-ins
        clock: Time source for cache expiry
    """

    def __init__(
        self,
        schema_registry: SchemaRegistry,
        settings: ValidationSettings | None = None,
        *,
        custom_rules: Sequence[ValidationRule] = (),
        clock: Clock = DEFAULT_CLOCK,
    ) -> None:
        self._registry = schema_registry
        self._settings = settings if settings is not None else ValidationSettings()
        self._custom_rules: list[ValidationRule] = list(custom_rules)
        self._clock = clock
        self._detector = CycleDetector()
        self._rules: list[ValidationRule] = []
        self._cache: ValidationCache | None = None

        self._build_rules()
        self._build_cache()

    @property
    def schema_registry(self) -> SchemaRegistry:
        return self._registry

    def _build_rules(self) -> None:
        built_in: list[ValidationRule] = list(create_all_rules(self._registry))
        enabled = self._settings.enabled_rules
        if enabled is not None:
            built_in = [rule for rule in built_in if rule.rule_id in enabled]
        self._rules = [*built_in, *self._custom_rules]

    def _build_cache(self) -> None:
        cache_settings = self._settings.cache
        if cache_settings.enabled:
            self._cache = ValidationCache(cache_settings.ttl_seconds, clock=self._clock)
        else:
            self._cache = None

    def _etl_rule(self) -> EtlConnectivityRule | None:
        for rule in self._rules:
            if isinstance(rule, EtlConnectivityRule):
                return rule
        return None

    def _has_rule(self, rule_id: str) -> bool:
        return any(rule.rule_id == rule_id for rule in self._rules)

    # ------------------------------------------------------------------
    # Full-graph validation
    # ------------------------------------------------------------------

    def validate_graph(self, graph: GraphState) -> ValidationSummary:
        """Validate a whole snapshot.

        Within the cache TTL, a structurally identical snapshot returns
        the previously built summary object.
        """
        key: str | None = None
        if self._cache is not None:
            key = graph_cache_key(graph)
            cached = self._cache.get(key)
            if cached is not None:
                logger.debug("validation_cache_hit", cache_key=key[:12])
                return cached

        raw: list[ValidationResult] = []
        for rule in self._rules:
            if isinstance(rule, EtlConnectivityRule):
                continue
            raw.extend(self._run_rule(rule, graph))

        etl_rule = self._etl_rule()
        if self._settings.enable_etl_validation and etl_rule is not None:
            raw.extend(relax_etl_results(self._run_etl_rule(etl_rule, graph), self._settings.etl_mode))

        results = filter_by_mode(dedupe_results(raw), self._settings.mode)
        summary = ValidationSummary.from_results(results, node_count=len(graph.nodes), edge_count=len(graph.edges))

        if self._cache is not None and key is not None:
            self._cache.put(key, summary)
            self._cache.purge_expired()

        logger.debug(
            "graph_validated",
            is_valid=summary.is_valid,
            errors=summary.counts.errors,
            warnings=summary.counts.warnings,
            nodes=len(graph.nodes),
            edges=len(graph.edges),
        )
        return summary

    def _run_rule(self, rule: ValidationRule, graph: GraphState) -> list[ValidationResult]:
        results: list[ValidationResult] = []
        match rule.scope:
            case RuleScope.GRAPH:
                if rule.applies_to(None, None, graph):
                    results.extend(rule.validate(None, None, graph))
            case RuleScope.NODE:
                for node in graph.nodes:
                    if rule.applies_to(node, None, graph):
                        results.extend(rule.validate(node, None, graph))
            case _:
                for edge in graph.edges:
                    source = graph.get_node(edge.source)
                    if source is None or graph.get_node(edge.target) is None:
                        continue
                    if rule.applies_to(source, edge, graph):
                        results.extend(rule.validate(source, edge, graph))
        return results

    def _run_etl_rule(self, rule: EtlConnectivityRule, graph: GraphState) -> list[ValidationResult]:
        results = rule.validate_graph_topology(graph)
        for edge in graph.edges:
            source = graph.get_node(edge.source)
            if source is not None and rule.applies_to(source, edge, graph):
                results.extend(rule.validate(source, edge, graph))
        return results

    # ------------------------------------------------------------------
    # Proposed connections
    # ------------------------------------------------------------------

    def validate_connection(self, source_id: str, target_id: str, graph: GraphState) -> ValidationSummary:
        """Validate adding ``source_id -> target_id`` without inserting it.

        Unresolvable endpoints yield an empty, valid summary.
        """
        source = graph.get_node(source_id)
        target = graph.get_node(target_id)
        if source is None or target is None:
            return ValidationSummary.from_results((), node_count=0, edge_count=0)

        edge = GraphEdge(id=TEMP_EDGE_ID, source=source_id, target=target_id)
        raw: list[ValidationResult] = []

        for rule in self._rules:
            if isinstance(rule, EtlConnectivityRule) or rule.scope != RuleScope.EDGE:
                continue
            if rule.applies_to(source, edge, graph):
                raw.extend(rule.validate(source, edge, graph))

        if self._has_rule(CycleDetectionRule.rule_id):
            raw.extend(self._proposed_cycle(source, target, graph))

        etl_rule = self._etl_rule()
        if self._settings.enable_etl_validation and etl_rule is not None:
            raw.extend(
                relax_etl_results(etl_rule.check_proposed_connection(source, target, graph), self._settings.etl_mode)
            )

        results = filter_by_mode(dedupe_results(raw), self._settings.mode)
        return ValidationSummary.from_results(results, node_count=2, edge_count=1)

    def _proposed_cycle(self, source: GraphNode, target: GraphNode, graph: GraphState) -> list[ValidationResult]:
        check = self._detector.get_nodes_that_would_cause_cycle(source.id, target.id, graph)
        if not check.would_cause_cycle:
            return []
        names = [node.data.name if (node := graph.get_node(node_id)) else node_id for node_id in check.path]
        return [
            ValidationResult.error(
                ValidationErrorCode.CYCLE_DETECTED,
                messages.cycle_detected(names),
                node_ids=check.path,
                edge_ids=(TEMP_EDGE_ID,),
                details="Adding this connection would close a cycle",
                fix_suggestion=messages.fix_suggestion(ValidationErrorCode.CYCLE_DETECTED),
                context={"cycle": list(check.path)},
            )
        ]

    def would_connection_be_valid(self, source_id: str, target_id: str, graph: GraphState) -> ConnectionCheck:
        summary = self.validate_connection(source_id, target_id, graph)
        return ConnectionCheck(
            is_valid=summary.is_valid,
            errors=tuple(result.message for result in summary.errors),
            warnings=tuple(result.message for result in summary.warnings),
        )

    def validate_specific_connection(
        self, source_id: str, target_id: str, graph: GraphState
    ) -> SpecificConnectionResult:
        """Connection verdict plus the ETL roles of both endpoints."""
        if graph.get_node(source_id) is None or graph.get_node(target_id) is None:
            return SpecificConnectionResult(
                is_valid=False,
                errors=("Source or target node not found",),
                warnings=(),
                detailed_results=(),
                source_category=EtlCategory.UNKNOWN,
                target_category=EtlCategory.UNKNOWN,
                allowed=False,
            )

        summary = self.validate_connection(source_id, target_id, graph)
        return SpecificConnectionResult(
            is_valid=summary.is_valid,
            errors=tuple(result.message for result in summary.errors),
            warnings=tuple(result.message for result in summary.warnings),
            detailed_results=summary.results,
            source_category=self.get_etl_classification(source_id, graph).etl_category,
            target_category=self.get_etl_classification(target_id, graph).etl_category,
            allowed=summary.is_valid,
        )

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def get_node_validation_status(self, node_id: str, graph: GraphState) -> ElementStatus:
        grouped = group_by_affected_element(self.validate_graph(graph).results)
        node_results = grouped.node_results(node_id)
        return ElementStatus(
            is_valid=not grouped.has_node_errors(node_id),
            errors=filter_by_level(node_results, ValidationLevel.ERROR),
            warnings=filter_by_level(node_results, ValidationLevel.WARNING),
        )

    def get_edge_validation_status(self, edge_id: str, graph: GraphState) -> ElementStatus:
        grouped = group_by_affected_element(self.validate_graph(graph).results)
        edge_results = grouped.edge_results(edge_id)
        return ElementStatus(
            is_valid=not grouped.has_edge_errors(edge_id),
            errors=filter_by_level(edge_results, ValidationLevel.ERROR),
            warnings=filter_by_level(edge_results, ValidationLevel.WARNING),
        )

    def get_etl_classification(self, node_id: str, graph: GraphState) -> EtlClassification:
        """ETL role of a node; unknown when absent or when no ETL rule is active."""
        etl_rule = self._etl_rule()
        node = graph.get_node(node_id)
        if etl_rule is None or node is None:
            return EtlClassification()
        return etl_rule.get_component_classification(node)

    def can_node_accept_multiple_inputs(self, node_id: str, graph: GraphState) -> bool:
        classification = self.get_etl_classification(node_id, graph)
        return classification.etl_category == EtlCategory.MERGE or classification.is_multi_input

    def can_node_have_multiple_outputs(self, node_id: str, graph: GraphState) -> bool:
        classification = self.get_etl_classification(node_id, graph)
        return classification.etl_category == EtlCategory.BRANCHING or classification.is_branching

    def check_fan_out_violation(self, source_id: str, graph: GraphState) -> FanOutCheck:
        """Would one more outgoing edge from ``source_id`` be an unbranched fan-out."""
        classification = self.get_etl_classification(source_id, graph)
        current = len(graph.outgoing_edges(source_id))
        violates = (
            current >= 1
            and classification.etl_category != EtlCategory.UNKNOWN
            and not self.can_node_have_multiple_outputs(source_id, graph)
        )
        return FanOutCheck(violates=violates, requires_branching=violates, current_output_count=current)

    def check_multi_input_violation(self, target_id: str, graph: GraphState) -> MultiInputCheck:
        """Would one more incoming edge to ``target_id`` need a merge component."""
        classification = self.get_etl_classification(target_id, graph)
        current = len(graph.incoming_edges(target_id))
        violates = (
            current >= 1
            and classification.etl_category != EtlCategory.UNKNOWN
            and not self.can_node_accept_multiple_inputs(target_id, graph)
        )
        return MultiInputCheck(violates=violates, requires_merge=violates, current_input_count=current)

    def get_etl_validation_summary(self, graph: GraphState) -> EtlValidationSummary:
        """ETL-only view of a full validation plus the role of every node.

        Violation lists describe the graph as it stands: a fan-out is a
        non-branching node with more than one output, a multi-input
        violation a non-merge node with more than one input.
        """
        summary = self.validate_graph(graph)
        etl_errors = tuple(result.message for result in summary.errors if is_etl_code(result))
        etl_warnings = tuple(result.message for result in summary.warnings if is_etl_code(result))

        classifications = {node.id: self.get_etl_classification(node.id, graph) for node in graph.nodes}

        fan_out: list[str] = []
        multi_input: list[str] = []
        for node in graph.nodes:
            classification = classifications[node.id]
            if classification.etl_category == EtlCategory.UNKNOWN:
                continue
            outputs = len(graph.outgoing_edges(node.id))
            inputs = len(graph.incoming_edges(node.id))
            if outputs > 1 and not self.can_node_have_multiple_outputs(node.id, graph):
                fan_out.append(f"{node.data.name} ({node.type}) has {outputs} outputs without branching")
            if inputs > 1 and not self.can_node_accept_multiple_inputs(node.id, graph):
                multi_input.append(f"{node.data.name} ({node.type}) has {inputs} inputs without merge capability")

        invalid_connections: list[str] = []
        for edge in graph.edges:
            source = graph.get_node(edge.source)
            target = graph.get_node(edge.target)
            if source is None or target is None:
                continue
            source_cat = classifications[source.id].etl_category
            target_cat = classifications[target.id].etl_category
            if EtlCategory.UNKNOWN in (source_cat, target_cat):
                continue
            if target_cat not in ETL_ALLOWED_TARGETS.get(source_cat, frozenset()):
                invalid_connections.append(f"{source.data.name} → {target.data.name}")

        return EtlValidationSummary(
            is_valid=not etl_errors,
            errors=etl_errors,
            warnings=etl_warnings,
            node_classifications={node_id: c.etl_category for node_id, c in classifications.items()},
            violations=EtlViolations(
                fan_out=tuple(fan_out),
                multi_input=tuple(multi_input),
                invalid_connections=tuple(invalid_connections),
            ),
        )

    # ------------------------------------------------------------------
    # Mutation and introspection
    # ------------------------------------------------------------------

    def add_rule(self, rule: ValidationRule) -> None:
        """Append a custom rule. Invalidates the whole cache."""
        self._custom_rules.append(rule)
        self._rules.append(rule)
        self.clear_cache()

    def remove_rule(self, rule_id: str) -> bool:
        """Remove the first rule with ``rule_id``; True if one was removed."""
        for index, rule in enumerate(self._rules):
            if rule.rule_id == rule_id:
                del self._rules[index]
                if rule in self._custom_rules:
                    self._custom_rules.remove(rule)
                self.clear_cache()
                return True
        return False

    def update_config(
        self,
        *,
        schema_registry: SchemaRegistry | None = None,
        custom_rules: Sequence[ValidationRule] | None = None,
        **changes: Any,
    ) -> None:
        """Apply setting changes.

        ``changes`` are ValidationSettings fields and are validated. Rules
        are rebuilt when the registry, the custom rules or ``enabled_rules``
        change; the cache is always cleared.

        Raises:
            pydantic.ValidationError: If the merged settings are invalid.
        """
        if changes:
            self._settings = ValidationSettings.model_validate({**self._settings.model_dump(), **changes})
        if schema_registry is not None:
            self._registry = schema_registry
        if custom_rules is not None:
            self._custom_rules = list(custom_rules)

        if schema_registry is not None or custom_rules is not None or "enabled_rules" in changes:
            self._build_rules()
        if "cache" in changes:
            self._build_cache()
        self.clear_cache()

    def clear_cache(self) -> None:
        if self._cache is not None:
            self._cache.clear()

    def get_config(self) -> ValidationSettings:
        return self._settings

    def get_rules(self) -> list[ValidationRule]:
        return list(self._rules)

    def get_statistics(self) -> EngineStatistics:
        return EngineStatistics(
            cache_size=len(self._cache) if self._cache is not None else 0,
            rule_count=len(self._rules),
            etl_validation_enabled=self._settings.enable_etl_validation,
            etl_mode=self._settings.etl_mode,
        )


def assert_executable(summary: ValidationSummary) -> None:
    """Refuse an invalid summary.

    Raises:
        GraphValidationError: If the summary carries error-level findings.
    """
    if summary.is_valid:
        return
    errors = summary.errors
    shown = "; ".join(result.message for result in errors[:_MAX_ERRORS_IN_MESSAGE])
    if len(errors) > _MAX_ERRORS_IN_MESSAGE:
        shown += f"; and {len(errors) - _MAX_ERRORS_IN_MESSAGE} more"
    raise GraphValidationError(f"Graph is not executable ({len(errors)} error(s)): {shown}", errors)


def create_default_validation_engine(
    settings: ValidationSettings | None = None,
    *,
    custom_rules: Iterable[ValidationRule] = (),
    clock: Clock = DEFAULT_CLOCK,
) -> ValidationEngine:
    """Engine over the built-in component catalogue.

    When ``settings.catalogue_path`` is set, that catalogue is registered
    on top of the defaults.
    """
    settings = settings if settings is not None else ValidationSettings()
    extra = load_catalogue(settings.catalogue_path) if settings.catalogue_path is not None else None
    registry = create_default_registry(extra)
    return ValidationEngine(registry, settings, custom_rules=tuple(custom_rules), clock=clock)
