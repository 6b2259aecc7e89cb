# src/etlguard/rules/__init__.py
"""Validation rules: the rule contract, the built-in rules and rule sets."""

from etlguard.rules.base import BaseValidationRule, ValidationRule
from etlguard.rules.cardinality import CardinalityRule
from etlguard.rules.classification import (
    COMPONENT_CLASSIFICATIONS,
    ComponentClassification,
    classification_from_schema,
)
from etlguard.rules.compatibility import NodeTypeCompatibilityRule
from etlguard.rules.cycle import CycleDetectionRule
from etlguard.rules.etl_connectivity import EtlConnectivityRule
from etlguard.rules.factory import (
    RULE_IDS,
    create_all_rules,
    create_basic_rules,
    create_etl_rules,
    create_rule_by_id,
)
from etlguard.rules.schema_compat import SchemaCompatibilityRule, are_types_compatible
from etlguard.rules.topology import GraphTopologyRule

__all__ = [
    "COMPONENT_CLASSIFICATIONS",
    "RULE_IDS",
    "BaseValidationRule",
    "CardinalityRule",
    "ComponentClassification",
    "CycleDetectionRule",
    "EtlConnectivityRule",
    "GraphTopologyRule",
    "NodeTypeCompatibilityRule",
    "SchemaCompatibilityRule",
    "ValidationRule",
    "are_types_compatible",
    "classification_from_schema",
    "create_all_rules",
    "create_basic_rules",
    "create_etl_rules",
    "create_rule_by_id",
]
