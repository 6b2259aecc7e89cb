"""Component policy contracts.

NodeSchema declares what a component type may connect to and how many
connections it accepts; ConnectionRule overrides the verdict for one
ordered (source_type, target_type) pair. Both are registered with a
SchemaRegistry and consulted by the validation rules.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from etlguard.contracts.enums import EtlCategory, NodeCategory, PortType


class PortRule(BaseModel):
    """Constraints on a single named port."""

    model_config = ConfigDict(frozen=True)

    port_type: PortType
    data_types: tuple[str, ...] = ()
    max_connections: int | None = Field(default=None, ge=0)


class EtlConnectionRules(BaseModel):
    """ETL-specific connection policy for a component type."""

    model_config = ConfigDict(frozen=True)

    allowed_source_categories: tuple[EtlCategory, ...] = ()
    allowed_target_categories: tuple[EtlCategory, ...] = ()
    requires_merge_node_for_multiple_inputs: bool = False
    allows_unlimited_inputs: bool = False
    exact_input_count: int | None = Field(default=None, ge=0)
    requires_branching_node_for_fan_out: bool = False
    allows_multiple_main_outputs: bool = False


class ComponentMetadata(BaseModel):
    """Descriptive flags for a component type."""

    model_config = ConfigDict(frozen=True)

    technology: str | None = None
    version: str | None = None
    description: str | None = None
    is_multi_input: bool = False
    is_branching: bool = False
    is_merge: bool = False
    allows_lookup_inputs: bool = False
    allows_unlimited_inputs: bool = False
    allows_multiple_main_outputs: bool = False
    requires_exact_inputs: int | None = Field(default=None, ge=0)
    input_port_count: int | None = Field(default=None, ge=0)
    output_port_count: int | None = Field(default=None, ge=0)


class NodeSchema(BaseModel):
    """Connection policy for one component type.

    A None maximum means unbounded. Minimums default to zero.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    node_type: str = Field(description="Type key this schema governs, e.g. 'tjoin' or 'input:csv'")
    display_name: str
    category: NodeCategory
    etl_category: EtlCategory | None = None
    allows_cycles: bool = False
    min_incoming_connections: int = Field(default=0, ge=0)
    max_incoming_connections: int | None = Field(default=None, ge=0)
    min_outgoing_connections: int = Field(default=0, ge=0)
    max_outgoing_connections: int | None = Field(default=None, ge=0)
    allowed_source_types: tuple[str, ...] = ()
    allowed_target_types: tuple[str, ...] = ()
    port_rules: dict[str, PortRule] | None = None
    etl_connection_rules: EtlConnectionRules | None = None
    component_metadata: ComponentMetadata | None = None

    @model_validator(mode="after")
    def _validate_bounds(self) -> NodeSchema:
        if self.max_incoming_connections is not None and self.min_incoming_connections > self.max_incoming_connections:
            raise ValueError(
                f"Schema '{self.id}': min_incoming_connections ({self.min_incoming_connections}) "
                f"exceeds max_incoming_connections ({self.max_incoming_connections})"
            )
        if self.max_outgoing_connections is not None and self.min_outgoing_connections > self.max_outgoing_connections:
            raise ValueError(
                f"Schema '{self.id}': min_outgoing_connections ({self.min_outgoing_connections}) "
                f"exceeds max_outgoing_connections ({self.max_outgoing_connections})"
            )
        return self


class ConnectionRule(BaseModel):
    """Explicit verdict for one ordered (source_type, target_type) pair."""

    model_config = ConfigDict(frozen=True)

    source_type: str
    target_type: str
    allowed: bool
    max_connections: int | None = Field(default=None, ge=0)
    required_data_type_match: bool = False

    @property
    def key(self) -> tuple[str, str]:
        return (self.source_type, self.target_type)
