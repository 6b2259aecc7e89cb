"""Shared contracts for etlguard.

Leaf package: nothing here imports from core, rules, or engine. Everything
that crosses a subsystem boundary (snapshots, policies, results, codes)
is defined here.
"""

from etlguard.contracts.enums import (
    ETL_CONNECTIVITY_CODES,
    EtlCategory,
    EtlMode,
    NodeCategory,
    PortType,
    RuleScope,
    ValidationErrorCode,
    ValidationLevel,
    ValidationMode,
)
from etlguard.contracts.errors import CatalogueError, EtlGuardError, GraphValidationError
from etlguard.contracts.graph import (
    ColumnDefinition,
    DataSchema,
    EdgeData,
    ForeignKey,
    GraphEdge,
    GraphNode,
    GraphState,
    NodeData,
    NodePort,
)
from etlguard.contracts.results import (
    ConnectionCheck,
    ConnectionDecision,
    ElementStatus,
    EngineStatistics,
    EtlClassification,
    EtlValidationSummary,
    EtlViolations,
    FanOutCheck,
    GraphMetadata,
    GroupedResults,
    MultiInputCheck,
    SchemaIssue,
    SeverityCounts,
    SpecificConnectionResult,
    ValidationResult,
    ValidationSummary,
    filter_by_level,
    group_by_affected_element,
)
from etlguard.contracts.schema import (
    ComponentMetadata,
    ConnectionRule,
    EtlConnectionRules,
    NodeSchema,
    PortRule,
)

__all__ = [
    "ETL_CONNECTIVITY_CODES",
    "CatalogueError",
    "ColumnDefinition",
    "ComponentMetadata",
    "ConnectionCheck",
    "ConnectionDecision",
    "ConnectionRule",
    "DataSchema",
    "EdgeData",
    "ElementStatus",
    "EngineStatistics",
    "EtlCategory",
    "EtlClassification",
    "EtlConnectionRules",
    "EtlGuardError",
    "EtlMode",
    "EtlValidationSummary",
    "EtlViolations",
    "FanOutCheck",
    "ForeignKey",
    "GraphEdge",
    "GraphMetadata",
    "GraphNode",
    "GraphState",
    "GraphValidationError",
    "GroupedResults",
    "MultiInputCheck",
    "NodeCategory",
    "NodeData",
    "NodePort",
    "NodeSchema",
    "PortRule",
    "PortType",
    "RuleScope",
    "SchemaIssue",
    "SeverityCounts",
    "SpecificConnectionResult",
    "ValidationErrorCode",
    "ValidationLevel",
    "ValidationMode",
    "ValidationResult",
    "ValidationSummary",
    "filter_by_level",
    "group_by_affected_element",
]
