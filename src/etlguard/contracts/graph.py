"""Graph snapshot contracts.

A GraphState is what the editor hands over for validation: an ordered list
of typed nodes and an ordered list of directed edges. Snapshots are frozen
for the duration of a validation call.

Editor payloads use camelCase keys (sourceHandle, componentCategory,
schema); those are accepted as aliases so ``GraphState.model_validate``
works directly on editor JSON.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from etlguard.contracts.enums import PortType


class ColumnDefinition(BaseModel):
    """One column of a tabular data schema."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str = Field(description="Declared column type, e.g. 'varchar' or 'int'")
    nullable: bool = True
    constraints: tuple[str, ...] = ()


class ForeignKey(BaseModel):
    """Reference from a column to a column of another table."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    column: str
    reference_table: str = Field(alias="referenceTable")
    reference_column: str = Field(alias="referenceColumn")


class DataSchema(BaseModel):
    """Tabular schema carried by a node's data."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    columns: tuple[ColumnDefinition, ...] = ()
    primary_key: tuple[str, ...] = Field(default=(), alias="primaryKey")
    foreign_keys: tuple[ForeignKey, ...] = Field(default=(), alias="foreignKeys")

    def column(self, name: str) -> ColumnDefinition | None:
        for col in self.columns:
            if col.name == name:
                return col
        return None


class NodePort(BaseModel):
    """Named connection point on a node."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    type: PortType
    data_type: str | None = Field(default=None, alias="dataType")
    label: str | None = None


class NodeData(BaseModel):
    """Payload carried by a node.

    Extra attributes are kept: editors attach arbitrary component
    configuration that rules do not interpret.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    name: str
    label: str | None = None
    technology: str | None = None
    component_category: str | None = Field(default=None, alias="componentCategory")
    data_schema: DataSchema | None = Field(default=None, alias="schema")


class GraphNode(BaseModel):
    """A component instance on the canvas."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: str = Field(description="Component type key, e.g. 'tMap' or 'input:csv'")
    data: NodeData
    ports: tuple[NodePort, ...] | None = None
    position: dict[str, float] | None = None


class EdgeData(BaseModel):
    """Payload carried by an edge."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    label: str | None = None
    data_type: str | None = Field(default=None, alias="dataType")
    mapping: dict[str, str] | None = Field(
        default=None,
        description="Source column name -> target column name",
    )


class GraphEdge(BaseModel):
    """A directed connection between two nodes."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    source: str
    target: str
    source_handle: str | None = Field(default=None, alias="sourceHandle")
    target_handle: str | None = Field(default=None, alias="targetHandle")
    data: EdgeData | None = None


class GraphState(BaseModel):
    """Immutable snapshot of an editor graph.

    Node ids are unique; edges may reference node ids that do not exist
    (dangling edges are skipped by rules, never rejected here).
    """

    model_config = ConfigDict(frozen=True)

    nodes: tuple[GraphNode, ...] = ()
    edges: tuple[GraphEdge, ...] = ()
    metadata: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _validate_unique_node_ids(self) -> GraphState:
        seen: set[str] = set()
        duplicates: list[str] = []
        for node in self.nodes:
            if node.id in seen:
                duplicates.append(node.id)
            seen.add(node.id)
        if duplicates:
            raise ValueError(f"Duplicate node ids in graph snapshot: {sorted(set(duplicates))}")
        return self

    def get_node(self, node_id: str) -> GraphNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def incoming_edges(self, node_id: str) -> list[GraphEdge]:
        return [edge for edge in self.edges if edge.target == node_id]

    def outgoing_edges(self, node_id: str) -> list[GraphEdge]:
        return [edge for edge in self.edges if edge.source == node_id]

    def with_edge(self, edge: GraphEdge) -> GraphState:
        """Return a new snapshot with ``edge`` appended."""
        return self.model_copy(update={"edges": (*self.edges, edge)})
