# src/etlguard/rules/classification.py
"""Static ETL role classification of component types.

Keys are lower-cased type names. Types absent from the table are
classified from their registry schema when one declares an ETL category,
and are otherwise unknown (and exempt from ETL checks).
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from etlguard.contracts.enums import EtlCategory
from etlguard.contracts.schema import NodeSchema


@dataclass(frozen=True, slots=True)
class ComponentClassification:
    """ETL role and connection arity of a component type.

    A None maximum means unbounded.
    """

    etl_category: EtlCategory
    min_inputs: int | None = None
    max_inputs: int | None = None
    exact_inputs: int | None = None
    min_outputs: int | None = None
    max_outputs: int | None = None
    is_multi_input: bool = False
    is_branching: bool = False
    allows_unlimited_inputs: bool = False
    allows_lookup_inputs: bool = False
    allows_multiple_main_outputs: bool = False


_SOURCE = ComponentClassification(EtlCategory.SOURCE, min_inputs=0, max_inputs=1, min_outputs=0, max_outputs=5)
_PROCESSING = ComponentClassification(EtlCategory.PROCESSING, min_inputs=1, max_inputs=1, min_outputs=1, max_outputs=1)
_UNLIMITED_MERGE = ComponentClassification(
    EtlCategory.MERGE,
    is_multi_input=True,
    allows_unlimited_inputs=True,
    min_inputs=2,
    max_inputs=None,
    min_outputs=1,
    max_outputs=1,
)

COMPONENT_CLASSIFICATIONS: MappingProxyType[str, ComponentClassification] = MappingProxyType(
    {
        # Sources: entry points of a flow
        **{
            name: _SOURCE
            for name in ("excel", "database", "csv", "delimited", "xml", "json", "webservice", "ldif", "regex")
        },
        # Sinks
        "output": ComponentClassification(EtlCategory.SINK, min_inputs=1, max_inputs=5, min_outputs=0, max_outputs=0),
        # Processing: one main input, one main output
        **{name: _PROCESSING for name in ("tsortrow", "taggregaterow", "tnormalize", "tconverttype", "map")},
        "tfilterrow": ComponentClassification(
            EtlCategory.PROCESSING, min_inputs=1, max_inputs=1, min_outputs=1, max_outputs=2
        ),
        # Merges
        "tmap": ComponentClassification(
            EtlCategory.MERGE,
            is_multi_input=True,
            allows_lookup_inputs=True,
            allows_unlimited_inputs=True,
            min_inputs=1,
            max_inputs=None,
            min_outputs=1,
            max_outputs=None,
        ),
        "tjoin": ComponentClassification(
            EtlCategory.MERGE, is_multi_input=True, exact_inputs=2, min_outputs=1, max_outputs=1
        ),
        "tunite": _UNLIMITED_MERGE,
        "tflowmerge": _UNLIMITED_MERGE,
        "tmatchgroup": ComponentClassification(
            EtlCategory.MERGE,
            is_multi_input=True,
            allows_unlimited_inputs=True,
            min_inputs=1,
            max_inputs=None,
            min_outputs=1,
            max_outputs=1,
        ),
        # Branching
        "treplicate": ComponentClassification(
            EtlCategory.BRANCHING,
            is_branching=True,
            allows_multiple_main_outputs=True,
            min_inputs=1,
            max_inputs=1,
            min_outputs=2,
            max_outputs=None,
        ),
        # Category-only entries
        **{
            name: ComponentClassification(EtlCategory.SOURCE)
            for name in (
                "tfileinputdelimited",
                "tfileinputxml",
                "tfileinputjson",
                "tmysqlinput",
                "toracleinput",
                "tdirectorylist",
                "tservices",
            )
        },
        **{
            name: ComponentClassification(EtlCategory.SINK)
            for name in ("tfileoutputdelimited", "tfileoutputxml", "tfileoutputjson", "tmysqloutput", "toracleoutput")
        },
    }
)


def classification_from_schema(schema: NodeSchema) -> ComponentClassification | None:
    """Derive a classification from a registry schema's ETL declarations."""
    category = schema.etl_category
    if category is None or category == EtlCategory.UNKNOWN:
        return None

    metadata = schema.component_metadata
    etl_rules = schema.etl_connection_rules
    exact = None
    if etl_rules is not None and etl_rules.exact_input_count is not None:
        exact = etl_rules.exact_input_count
    elif metadata is not None:
        exact = metadata.requires_exact_inputs

    is_multi_input = category == EtlCategory.MERGE or (metadata is not None and metadata.is_multi_input)
    is_branching = category == EtlCategory.BRANCHING or (metadata is not None and metadata.is_branching)

    return ComponentClassification(
        etl_category=category,
        min_inputs=schema.min_incoming_connections or None,
        max_inputs=schema.max_incoming_connections,
        exact_inputs=exact,
        min_outputs=schema.min_outgoing_connections or None,
        max_outputs=schema.max_outgoing_connections,
        is_multi_input=is_multi_input,
        is_branching=is_branching,
        allows_unlimited_inputs=schema.max_incoming_connections is None,
        allows_lookup_inputs=metadata is not None and metadata.allows_lookup_inputs,
        allows_multiple_main_outputs=is_branching
        or (metadata is not None and metadata.allows_multiple_main_outputs),
    )
