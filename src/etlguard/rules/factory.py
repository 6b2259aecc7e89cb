# src/etlguard/rules/factory.py
"""Built-in rule sets.

Each factory returns fresh rule instances bound to the given registry.
Rule order is the order findings are reported in.
"""

from __future__ import annotations

from collections.abc import Callable
from types import MappingProxyType

from etlguard.core.registry import SchemaRegistry
from etlguard.rules.base import BaseValidationRule
from etlguard.rules.cardinality import CardinalityRule
from etlguard.rules.compatibility import NodeTypeCompatibilityRule
from etlguard.rules.cycle import CycleDetectionRule
from etlguard.rules.etl_connectivity import EtlConnectivityRule
from etlguard.rules.schema_compat import SchemaCompatibilityRule
from etlguard.rules.topology import GraphTopologyRule

_RULE_BUILDERS: MappingProxyType[str, Callable[[SchemaRegistry], BaseValidationRule]] = MappingProxyType(
    {
        CycleDetectionRule.rule_id: lambda registry: CycleDetectionRule(registry),
        NodeTypeCompatibilityRule.rule_id: NodeTypeCompatibilityRule,
        CardinalityRule.rule_id: CardinalityRule,
        SchemaCompatibilityRule.rule_id: lambda registry: SchemaCompatibilityRule(),
        GraphTopologyRule.rule_id: lambda registry: GraphTopologyRule(),
        EtlConnectivityRule.rule_id: EtlConnectivityRule,
    }
)

RULE_IDS: tuple[str, ...] = tuple(_RULE_BUILDERS)


def create_all_rules(registry: SchemaRegistry) -> list[BaseValidationRule]:
    return [build(registry) for build in _RULE_BUILDERS.values()]


def create_etl_rules(registry: SchemaRegistry) -> list[BaseValidationRule]:
    """The rules an ETL editor needs while wiring components."""
    return [
        EtlConnectivityRule(registry),
        NodeTypeCompatibilityRule(registry),
        CardinalityRule(registry),
        CycleDetectionRule(registry),
    ]


def create_basic_rules(registry: SchemaRegistry) -> list[BaseValidationRule]:
    """Every built-in rule except ETL connectivity."""
    return [
        build(registry) for rule_id, build in _RULE_BUILDERS.items() if rule_id != EtlConnectivityRule.rule_id
    ]


def create_rule_by_id(rule_id: str, registry: SchemaRegistry) -> BaseValidationRule:
    """Build a single built-in rule.

    Raises:
        KeyError: If ``rule_id`` names no built-in rule.
    """
    try:
        build = _RULE_BUILDERS[rule_id]
    except KeyError:
        raise KeyError(f"Unknown rule id {rule_id!r}; expected one of {', '.join(RULE_IDS)}") from None
    return build(registry)
