"""Validation result contracts.

Leaf module: depends only on enums and schema contracts.

ValidationResult is the single shape every rule emits. ValidationSummary
aggregates the results of one validation call; it is the value the engine
caches and the value the execution pipeline gates on.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any, TypeAlias

from etlguard.contracts.enums import EtlCategory, EtlMode, ValidationErrorCode, ValidationLevel
from etlguard.contracts.schema import ConnectionRule

Fingerprint: TypeAlias = tuple[str, str, tuple[str, ...], tuple[str, ...], str]


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """One finding produced by a rule.

    Results carry no ids or timestamps so that validating the same snapshot
    twice produces equal results.
    """

    code: ValidationErrorCode
    level: ValidationLevel
    message: str
    node_ids: tuple[str, ...] = ()
    edge_ids: tuple[str, ...] = ()
    details: str | None = None
    fix_suggestion: str | None = None
    context: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def error(
        cls,
        code: ValidationErrorCode,
        message: str,
        *,
        node_ids: Iterable[str] = (),
        edge_ids: Iterable[str] = (),
        details: str | None = None,
        fix_suggestion: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> ValidationResult:
        return cls._build(ValidationLevel.ERROR, code, message, node_ids, edge_ids, details, fix_suggestion, context)

    @classmethod
    def warning(
        cls,
        code: ValidationErrorCode,
        message: str,
        *,
        node_ids: Iterable[str] = (),
        edge_ids: Iterable[str] = (),
        details: str | None = None,
        fix_suggestion: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> ValidationResult:
        return cls._build(ValidationLevel.WARNING, code, message, node_ids, edge_ids, details, fix_suggestion, context)

    @classmethod
    def info(
        cls,
        code: ValidationErrorCode,
        message: str,
        *,
        node_ids: Iterable[str] = (),
        edge_ids: Iterable[str] = (),
        details: str | None = None,
        fix_suggestion: str | None = None,
        context: Mapping[str, Any] | None = None,
    ) -> ValidationResult:
        return cls._build(ValidationLevel.INFO, code, message, node_ids, edge_ids, details, fix_suggestion, context)

    @classmethod
    def _build(
        cls,
        level: ValidationLevel,
        code: ValidationErrorCode,
        message: str,
        node_ids: Iterable[str],
        edge_ids: Iterable[str],
        details: str | None,
        fix_suggestion: str | None,
        context: Mapping[str, Any] | None,
    ) -> ValidationResult:
        return cls(
            code=code,
            level=level,
            message=message,
            node_ids=tuple(node_ids),
            edge_ids=tuple(edge_ids),
            details=details,
            fix_suggestion=fix_suggestion,
            context=MappingProxyType(dict(context or {})),
        )

    def with_level(self, level: ValidationLevel) -> ValidationResult:
        """Return a copy of this result at another severity."""
        return replace(self, level=level)

    @property
    def fingerprint(self) -> Fingerprint:
        """Identity of a finding for deduplication."""
        return (str(self.code), str(self.level), self.node_ids, self.edge_ids, self.message)

    def to_dict(self) -> dict[str, Any]:
        """Editor-facing JSON shape."""
        payload: dict[str, Any] = {
            "code": str(self.code),
            "level": str(self.level),
            "message": self.message,
            "nodeIds": list(self.node_ids),
            "edgeIds": list(self.edge_ids),
        }
        if self.details is not None:
            payload["details"] = self.details
        if self.fix_suggestion is not None:
            payload["fixSuggestion"] = self.fix_suggestion
        if self.context:
            payload["context"] = dict(self.context)
        return payload


@dataclass(frozen=True, slots=True)
class SeverityCounts:
    errors: int = 0
    warnings: int = 0
    infos: int = 0

    @classmethod
    def of(cls, results: Iterable[ValidationResult]) -> SeverityCounts:
        errors = warnings = infos = 0
        for result in results:
            if result.level == ValidationLevel.ERROR:
                errors += 1
            elif result.level == ValidationLevel.WARNING:
                warnings += 1
            else:
                infos += 1
        return cls(errors=errors, warnings=warnings, infos=infos)


@dataclass(frozen=True, slots=True)
class GraphMetadata:
    node_count: int
    edge_count: int
    validation_status: str


@dataclass(frozen=True, slots=True)
class ValidationSummary:
    """Aggregate outcome of one validation call.

    is_valid is true iff no surviving result is an error.
    """

    is_valid: bool
    counts: SeverityCounts
    results: tuple[ValidationResult, ...]
    validated_at: datetime
    graph_metadata: GraphMetadata

    @classmethod
    def from_results(
        cls,
        results: Iterable[ValidationResult],
        *,
        node_count: int,
        edge_count: int,
        validated_at: datetime | None = None,
    ) -> ValidationSummary:
        collected = tuple(results)
        counts = SeverityCounts.of(collected)
        is_valid = counts.errors == 0
        return cls(
            is_valid=is_valid,
            counts=counts,
            results=collected,
            validated_at=validated_at if validated_at is not None else datetime.now(UTC),
            graph_metadata=GraphMetadata(
                node_count=node_count,
                edge_count=edge_count,
                validation_status="valid" if is_valid else "invalid",
            ),
        )

    @property
    def errors(self) -> tuple[ValidationResult, ...]:
        return filter_by_level(self.results, ValidationLevel.ERROR)

    @property
    def warnings(self) -> tuple[ValidationResult, ...]:
        return filter_by_level(self.results, ValidationLevel.WARNING)

    @property
    def infos(self) -> tuple[ValidationResult, ...]:
        return filter_by_level(self.results, ValidationLevel.INFO)

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errorCount": self.counts.errors,
            "warningCount": self.counts.warnings,
            "infoCount": self.counts.infos,
            "results": [result.to_dict() for result in self.results],
            "validatedAt": self.validated_at.isoformat(),
            "graphMetadata": {
                "nodeCount": self.graph_metadata.node_count,
                "edgeCount": self.graph_metadata.edge_count,
                "validationStatus": self.graph_metadata.validation_status,
            },
        }


def filter_by_level(results: Iterable[ValidationResult], level: ValidationLevel) -> tuple[ValidationResult, ...]:
    return tuple(result for result in results if result.level == level)


@dataclass(frozen=True, slots=True)
class GroupedResults:
    """Results indexed by the graph element they affect.

    A result naming several nodes appears under each of them. Results
    naming no node and no edge are global.
    """

    by_node: Mapping[str, tuple[ValidationResult, ...]]
    by_edge: Mapping[str, tuple[ValidationResult, ...]]
    global_results: tuple[ValidationResult, ...]

    def node_results(self, node_id: str) -> tuple[ValidationResult, ...]:
        return self.by_node.get(node_id, ())

    def edge_results(self, edge_id: str) -> tuple[ValidationResult, ...]:
        return self.by_edge.get(edge_id, ())

    def has_node_errors(self, node_id: str) -> bool:
        return any(result.level == ValidationLevel.ERROR for result in self.node_results(node_id))

    def has_edge_errors(self, edge_id: str) -> bool:
        return any(result.level == ValidationLevel.ERROR for result in self.edge_results(edge_id))


def group_by_affected_element(results: Iterable[ValidationResult]) -> GroupedResults:
    by_node: dict[str, list[ValidationResult]] = {}
    by_edge: dict[str, list[ValidationResult]] = {}
    global_results: list[ValidationResult] = []

    for result in results:
        for node_id in result.node_ids:
            by_node.setdefault(node_id, []).append(result)
        for edge_id in result.edge_ids:
            by_edge.setdefault(edge_id, []).append(result)
        if not result.node_ids and not result.edge_ids:
            global_results.append(result)

    return GroupedResults(
        by_node=MappingProxyType({key: tuple(value) for key, value in by_node.items()}),
        by_edge=MappingProxyType({key: tuple(value) for key, value in by_edge.items()}),
        global_results=tuple(global_results),
    )


# =============================================================================
# Diagnostic shapes returned by engine and registry queries
# =============================================================================


@dataclass(frozen=True, slots=True)
class ConnectionDecision:
    """Registry verdict on a type pair, with the rule that decided it, if any."""

    allowed: bool
    rule: ConnectionRule | None = None
    reason: str | None = None


@dataclass(frozen=True, slots=True)
class SchemaIssue:
    """Problem found while auditing registered schemas."""

    level: ValidationLevel
    message: str
    schema_id: str


@dataclass(frozen=True, slots=True)
class ConnectionCheck:
    """Verdict on a proposed connection, as human-readable messages."""

    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ElementStatus:
    """Findings that affect a single node or edge."""

    is_valid: bool
    errors: tuple[ValidationResult, ...] = ()
    warnings: tuple[ValidationResult, ...] = ()


@dataclass(frozen=True, slots=True)
class EtlClassification:
    etl_category: EtlCategory = EtlCategory.UNKNOWN
    is_multi_input: bool = False
    is_branching: bool = False


@dataclass(frozen=True, slots=True)
class SpecificConnectionResult:
    is_valid: bool
    errors: tuple[str, ...]
    warnings: tuple[str, ...]
    detailed_results: tuple[ValidationResult, ...]
    source_category: EtlCategory
    target_category: EtlCategory
    allowed: bool


@dataclass(frozen=True, slots=True)
class FanOutCheck:
    """Would one more outgoing edge from this node break fan-out policy."""

    violates: bool
    requires_branching: bool
    current_output_count: int


@dataclass(frozen=True, slots=True)
class MultiInputCheck:
    """Would one more incoming edge to this node break multi-input policy."""

    violates: bool
    requires_merge: bool
    current_input_count: int


@dataclass(frozen=True, slots=True)
class EtlViolations:
    fan_out: tuple[str, ...] = ()
    multi_input: tuple[str, ...] = ()
    invalid_connections: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class EtlValidationSummary:
    is_valid: bool
    errors: tuple[str, ...]
    warnings: tuple[str, ...]
    node_classifications: Mapping[str, EtlCategory]
    violations: EtlViolations


@dataclass(frozen=True, slots=True)
class EngineStatistics:
    cache_size: int
    rule_count: int
    etl_validation_enabled: bool
    etl_mode: EtlMode
