# src/etlguard/core/catalogue.py
"""Built-in component catalogue and YAML catalogue loading.

DEFAULT_SCHEMAS describes the stock source, processing, merge, branching
and sink components. DEFAULT_CONNECTION_RULES layers explicit type-pair
verdicts over the ETL category table: mostly same-subtype prohibitions
(tjoin -> tjoin) and the restriction of tmatchgroup to sinks.

Deployments add their own components with a YAML file:

    schemas:
      - id: schema:tcustom
        node_type: tcustom
        display_name: tCustom
        category: processing
        etl_category: processing
        max_incoming_connections: 1
    connection_rules:
      - source_type: tcustom
        target_type: tcustom
        allowed: false
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from etlguard.contracts.enums import EtlCategory, NodeCategory
from etlguard.contracts.errors import CatalogueError
from etlguard.contracts.schema import ComponentMetadata, ConnectionRule, EtlConnectionRules, NodeSchema
from etlguard.core.registry import SchemaRegistry

logger = structlog.get_logger(__name__)

_ALL_CATEGORIES_UPSTREAM = (
    EtlCategory.SOURCE,
    EtlCategory.PROCESSING,
    EtlCategory.MERGE,
    EtlCategory.BRANCHING,
)
_ALL_CATEGORIES_DOWNSTREAM = (
    EtlCategory.PROCESSING,
    EtlCategory.MERGE,
    EtlCategory.BRANCHING,
    EtlCategory.SINK,
)

_FILE_SOURCES = ("excel", "database", "csv", "delimited")


def _source(node_type: str, display_name: str) -> NodeSchema:
    return NodeSchema(
        id=f"schema:{node_type}",
        node_type=node_type,
        display_name=display_name,
        category=NodeCategory.INPUT,
        etl_category=EtlCategory.SOURCE,
        max_incoming_connections=0,
        max_outgoing_connections=5,
        allowed_source_types=(),
        allowed_target_types=("tmap", "tfilterrow", "tjoin", "tmatchgroup", "tnormalize", "tdenormalize", "tfileoutputdelimited"),
        etl_connection_rules=EtlConnectionRules(
            allowed_target_categories=(EtlCategory.PROCESSING, EtlCategory.MERGE, EtlCategory.BRANCHING),
        ),
        component_metadata=ComponentMetadata(input_port_count=0, output_port_count=1),
    )


def _processing(
    node_type: str,
    display_name: str,
    *,
    sources: tuple[str, ...],
    targets: tuple[str, ...],
    max_outgoing: int = 1,
) -> NodeSchema:
    return NodeSchema(
        id=f"schema:{node_type}",
        node_type=node_type,
        display_name=display_name,
        category=NodeCategory.PROCESSING,
        etl_category=EtlCategory.PROCESSING,
        max_incoming_connections=1,
        max_outgoing_connections=max_outgoing,
        allowed_source_types=sources,
        allowed_target_types=targets,
        etl_connection_rules=EtlConnectionRules(
            allowed_source_categories=_ALL_CATEGORIES_UPSTREAM,
            allowed_target_categories=_ALL_CATEGORIES_DOWNSTREAM,
        ),
        component_metadata=ComponentMetadata(input_port_count=1, output_port_count=max_outgoing),
    )


def _merge(
    node_type: str,
    display_name: str,
    *,
    category: NodeCategory = NodeCategory.TRANSFORM,
    max_incoming: int | None = None,
    max_outgoing: int | None = 1,
    exact_inputs: int | None = None,
    lookups: bool = False,
    targets: tuple[str, ...] = ("tmap", "tfilterrow", "tsortrow", "tmatchgroup", "tfileoutputdelimited"),
    target_categories: tuple[EtlCategory, ...] = _ALL_CATEGORIES_DOWNSTREAM,
    sources: tuple[str, ...] = (*_FILE_SOURCES, "tmap", "tfilterrow", "tsortrow", "tjoin"),
) -> NodeSchema:
    unlimited = max_incoming is None
    return NodeSchema(
        id=f"schema:{node_type}",
        node_type=node_type,
        display_name=display_name,
        category=category,
        etl_category=EtlCategory.MERGE,
        max_incoming_connections=max_incoming,
        max_outgoing_connections=max_outgoing,
        allowed_source_types=sources,
        allowed_target_types=targets,
        etl_connection_rules=EtlConnectionRules(
            allowed_source_categories=_ALL_CATEGORIES_UPSTREAM,
            allowed_target_categories=target_categories,
            allows_unlimited_inputs=unlimited,
            exact_input_count=exact_inputs,
        ),
        component_metadata=ComponentMetadata(
            is_multi_input=True,
            is_merge=True,
            allows_lookup_inputs=lookups,
            allows_unlimited_inputs=unlimited,
            requires_exact_inputs=exact_inputs,
            input_port_count=exact_inputs,
            output_port_count=max_outgoing,
        ),
    )


def _sink(node_type: str, display_name: str) -> NodeSchema:
    return NodeSchema(
        id=f"schema:{node_type}",
        node_type=node_type,
        display_name=display_name,
        category=NodeCategory.OUTPUT,
        etl_category=EtlCategory.SINK,
        max_incoming_connections=5,
        max_outgoing_connections=0,
        allowed_source_types=(*_FILE_SOURCES, "tmap", "tfilterrow", "tsortrow", "tjoin", "tmatchgroup"),
        allowed_target_types=(),
        etl_connection_rules=EtlConnectionRules(allowed_source_categories=_ALL_CATEGORIES_UPSTREAM),
        component_metadata=ComponentMetadata(input_port_count=1, output_port_count=0),
    )


DEFAULT_SCHEMAS: tuple[NodeSchema, ...] = (
    # Sources
    _source("excel", "Excel File"),
    _source("database", "Database Table"),
    _source("csv", "CSV File"),
    _source("delimited", "Delimited File"),
    # Processing: one main input, one main output
    _processing(
        "tsortrow",
        "tSortRow",
        sources=(*_FILE_SOURCES, "tmap", "tfilterrow", "tjoin"),
        targets=("tmap", "tfilterrow", "tjoin", "tmatchgroup", "tfileoutputdelimited", "tmysqloutput"),
    ),
    _processing(
        "tfilterrow",
        "tFilterRow",
        sources=(*_FILE_SOURCES, "tmap", "tsortrow", "tjoin"),
        targets=("tmap", "tsortrow", "tjoin", "tmatchgroup", "tfileoutputdelimited"),
        max_outgoing=2,  # main + reject
    ),
    _processing(
        "taggregaterow",
        "tAggregateRow",
        sources=(*_FILE_SOURCES, "tmap", "tfilterrow", "tjoin"),
        targets=("tmap", "tfilterrow", "tjoin", "tmatchgroup", "tfileoutputdelimited"),
    ),
    # Merges
    _merge(
        "tmap",
        "tMap",
        max_outgoing=None,
        lookups=True,
        sources=(*_FILE_SOURCES, "tfilterrow", "tsortrow", "tjoin", "tunite"),
        targets=("tfilterrow", "tsortrow", "tjoin", "tmatchgroup", "tfileoutputdelimited", "tmysqloutput"),
    ),
    _merge(
        "tjoin",
        "tJoin",
        max_incoming=2,
        exact_inputs=2,
        sources=(*_FILE_SOURCES, "tmap", "tfilterrow", "tsortrow"),
        targets=("tmap", "tfilterrow", "tsortrow", "tmatchgroup", "tfileoutputdelimited"),
    ),
    _merge("tunite", "tUnite"),
    _merge("tflowmerge", "tFlowMerge"),
    _merge(
        "tmatchgroup",
        "tMatchGroup",
        category=NodeCategory.MATCH,
        targets=("tfileoutputdelimited", "tmysqloutput"),
        target_categories=(EtlCategory.SINK,),
    ),
    # Branching
    NodeSchema(
        id="schema:treplicate",
        node_type="treplicate",
        display_name="tReplicate",
        category=NodeCategory.TRANSFORM,
        etl_category=EtlCategory.BRANCHING,
        max_incoming_connections=1,
        max_outgoing_connections=None,
        allowed_source_types=(*_FILE_SOURCES, "tmap", "tfilterrow", "tsortrow", "tjoin"),
        allowed_target_types=("tmap", "tfilterrow", "tsortrow", "tjoin", "tfileoutputdelimited", "tmysqloutput"),
        etl_connection_rules=EtlConnectionRules(
            allowed_source_categories=_ALL_CATEGORIES_UPSTREAM,
            allowed_target_categories=_ALL_CATEGORIES_DOWNSTREAM,
            allows_multiple_main_outputs=True,
        ),
        component_metadata=ComponentMetadata(
            is_branching=True,
            allows_multiple_main_outputs=True,
            input_port_count=1,
        ),
    ),
    # Sinks
    _sink("tfileoutputdelimited", "tFileOutputDelimited"),
    _sink("tmysqloutput", "tMysqlOutput"),
    _sink("output", "Output"),
)


def _deny(source_type: str, target_type: str) -> ConnectionRule:
    return ConnectionRule(source_type=source_type, target_type=target_type, allowed=False)


def _allow(source_type: str, target_type: str) -> ConnectionRule:
    return ConnectionRule(source_type=source_type, target_type=target_type, allowed=True)


DEFAULT_CONNECTION_RULES: tuple[ConnectionRule, ...] = (
    # Source -> same source
    *(_deny(t, t) for t in (*_FILE_SOURCES, "tfileinputdelimited", "tfileinputxml", "tfileinputjson")),
    # Sink -> same sink
    *(_deny(t, t) for t in ("tfileoutputdelimited", "tmysqloutput", "toracleoutput", "output")),
    # Sinks have no outgoing connections
    _deny("tfileoutputdelimited", "*"),
    _deny("tmysqloutput", "*"),
    _deny("output", "*"),
    # Sources into processing and merges
    *(_allow("excel", t) for t in ("tmap", "tjoin", "tunite", "tsortrow", "tfilterrow")),
    # Processing chains
    _allow("tsortrow", "tfilterrow"),
    _allow("tfilterrow", "tjoin"),
    _allow("tfilterrow", "tmap"),
    # Merges into sinks
    _allow("tmap", "tfileoutputdelimited"),
    _allow("tmap", "tmysqloutput"),
    _allow("tjoin", "tfileoutputdelimited"),
    _allow("tunite", "tfileoutputdelimited"),
    _allow("tflowmerge", "tfileoutputdelimited"),
    # Branching fan-out
    *(_allow("treplicate", t) for t in ("tmap", "tfilterrow", "tfileoutputdelimited", "tmysqloutput")),
    # Match groups feed sinks only
    _deny("tmatchgroup", "tmap"),
    _deny("tmatchgroup", "tfilterrow"),
    _deny("tmatchgroup", "tjoin"),
    _allow("tmatchgroup", "tfileoutputdelimited"),
    _allow("tmatchgroup", "tmysqloutput"),
    # Same-subtype chains
    _deny("tjoin", "tjoin"),
    _deny("treplicate", "treplicate"),
    _deny("tsortrow", "tsortrow"),
)


@dataclass(frozen=True, slots=True)
class Catalogue:
    """Schemas and connection rules loaded from one source."""

    schemas: tuple[NodeSchema, ...] = ()
    connection_rules: tuple[ConnectionRule, ...] = ()

    def register_into(self, registry: SchemaRegistry) -> None:
        registry.register_schemas(self.schemas)
        registry.register_connection_rules(self.connection_rules)


DEFAULT_CATALOGUE = Catalogue(schemas=DEFAULT_SCHEMAS, connection_rules=DEFAULT_CONNECTION_RULES)


def parse_catalogue(raw: Any, *, source: str = "<memory>") -> Catalogue:
    """Validate an already-parsed catalogue document.

    Raises:
        CatalogueError: If the document is not a mapping or an entry is invalid
    """
    if raw is None:
        return Catalogue()
    if not isinstance(raw, dict):
        raise CatalogueError(f"Catalogue {source} must be a mapping, got {type(raw).__name__}")

    unknown = set(raw) - {"schemas", "connection_rules"}
    if unknown:
        raise CatalogueError(f"Catalogue {source} has unknown sections: {sorted(unknown)}")

    raw_schemas = raw.get("schemas") or []
    raw_rules = raw.get("connection_rules") or []
    if not isinstance(raw_schemas, list) or not isinstance(raw_rules, list):
        raise CatalogueError(f"Catalogue {source}: 'schemas' and 'connection_rules' must be lists")

    try:
        schemas = tuple(NodeSchema.model_validate(entry) for entry in raw_schemas)
        rules = tuple(ConnectionRule.model_validate(entry) for entry in raw_rules)
    except ValidationError as exc:
        raise CatalogueError(f"Catalogue {source} has an invalid entry: {exc}") from exc

    return Catalogue(schemas=schemas, connection_rules=rules)


def load_catalogue(path: Path) -> Catalogue:
    """Load a catalogue from a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist
        CatalogueError: If the file is not valid YAML or fails validation
    """
    if not path.exists():
        raise FileNotFoundError(f"Catalogue file not found: {path}")

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise CatalogueError(f"Catalogue {path} is not valid YAML: {exc}") from exc

    catalogue = parse_catalogue(raw, source=str(path))
    logger.info(
        "catalogue_loaded",
        path=str(path),
        schema_count=len(catalogue.schemas),
        rule_count=len(catalogue.connection_rules),
    )
    return catalogue


def create_default_registry(extra: Catalogue | None = None) -> SchemaRegistry:
    """Registry holding the built-in catalogue, plus ``extra`` on top."""
    registry = SchemaRegistry()
    DEFAULT_CATALOGUE.register_into(registry)
    if extra is not None:
        extra.register_into(registry)
    return registry
