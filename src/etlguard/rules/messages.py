# src/etlguard/rules/messages.py
"""Human-readable messages and fix suggestions for finding codes.

Messages are for people only; nothing may parse them. Builders take
display names (node names, types, categories) and counts, never nodes.
"""

from __future__ import annotations

from collections.abc import Iterable
from types import MappingProxyType

from etlguard.contracts.enums import ValidationErrorCode as Code

# Cycles


def cycle_detected(node_names: Iterable[str]) -> str:
    return f"Cycle detected involving nodes: {' → '.join(node_names)}"


# Connections


def invalid_connection_type(source_type: str, target_type: str) -> str:
    return f'Connection from "{source_type}" to "{target_type}" is not allowed'


def invalid_source_type(source_type: str, allowed: Iterable[str]) -> str:
    return f'Node type "{source_type}" cannot be used as source. Allowed: {", ".join(allowed)}'


def invalid_target_type(target_type: str, allowed: Iterable[str]) -> str:
    return f'Node type "{target_type}" cannot be used as target. Allowed: {", ".join(allowed)}'


def max_incoming_exceeded(node_name: str, maximum: int, current: int) -> str:
    return f'Node "{node_name}" exceeds maximum incoming connections (max: {maximum}, current: {current})'


def max_outgoing_exceeded(node_name: str, maximum: int, current: int) -> str:
    return f'Node "{node_name}" exceeds maximum outgoing connections (max: {maximum}, current: {current})'


def port_connection_limit(port_id: str, maximum: int) -> str:
    return f'Port "{port_id}" has reached maximum connection limit (max: {maximum})'


# Schema


def data_type_mismatch(column: str, source_type: str, target_type: str) -> str:
    return f'Data type mismatch for column "{column}": {source_type} → {target_type}'


def required_column_missing(column: str) -> str:
    return f'Required column "{column}" is missing from source'


# Topology


def disconnected_node(node_name: str) -> str:
    return f'Node "{node_name}" is disconnected from the main flow'


def dead_end(node_name: str) -> str:
    return f'Node "{node_name}" is a dead end (no outgoing connections)'


# ETL connectivity


def invalid_etl_connection(source_category: str, target_category: str) -> str:
    return f"Invalid ETL connection: {source_category} → {target_category}"


def invalid_merge_node_inputs(node_name: str, required: int, current: int) -> str:
    return f'Merge node "{node_name}" requires {required} inputs, found {current}'


def invalid_branching_node_outputs(node_name: str, min_outputs: int) -> str:
    return f'Branching node "{node_name}" must have at least {min_outputs} outputs'


def source_to_source(source_name: str, target_name: str) -> str:
    return f'Source "{source_name}" cannot connect to source "{target_name}"'


def sink_to_sink(source_name: str, target_name: str) -> str:
    return f'Sink "{source_name}" cannot connect to sink "{target_name}"'


def too_many_inputs(node_name: str, max_inputs: int, current: int) -> str:
    return f'Node "{node_name}" has {current} inputs, maximum is {max_inputs}'


def too_few_inputs(node_name: str, min_inputs: int, current: int) -> str:
    return f'Node "{node_name}" has {current} inputs, minimum required is {min_inputs}'


def exact_input_count_required(node_name: str, required: int, current: int) -> str:
    return f'Node "{node_name}" requires exactly {required} inputs, found {current}'


def output_port_reuse(port_id: str) -> str:
    return f'Output port "{port_id}" is already connected'


def input_port_multiple_connections(port_id: str) -> str:
    return f'Input port "{port_id}" already has a connection'


def merge_node_missing_inputs(node_name: str, current: int) -> str:
    return f'Merge component "{node_name}" has only {current} input(s)'


def non_merge_node_multiple_inputs(node_name: str) -> str:
    return f'Non-merge node "{node_name}" cannot accept multiple inputs'


def branching_required_for_fan_out(node_name: str) -> str:
    return f'Fan-out requires branching component, but "{node_name}" is not a branching component'


def source_component_inputs(node_name: str) -> str:
    return f'Source component "{node_name}" should not have incoming connections'


def processing_node_missing_inputs(node_name: str) -> str:
    return f'Processing component "{node_name}" is missing input connections'


def sink_component_outputs(node_name: str) -> str:
    return f'Sink component "{node_name}" should not have outgoing connections'


def processing_node_missing_outputs(node_name: str) -> str:
    return f'Processing component "{node_name}" is missing output connections'


def branching_node_input_missing(node_name: str) -> str:
    return f'Branching node "{node_name}" requires exactly one input'


def merge_node_output_missing(node_name: str) -> str:
    return f'Merge node "{node_name}" has no output connection'


FIX_SUGGESTIONS: MappingProxyType[Code, str] = MappingProxyType(
    {
        Code.CYCLE_DETECTED: "Remove one of the edges in the cycle",
        Code.INVALID_CONNECTION_TYPE: "Connect to a compatible node type",
        Code.MAX_INCOMING_EXCEEDED: "Remove some incoming connections or increase the limit",
        Code.MAX_OUTGOING_EXCEEDED: "Remove some outgoing connections or increase the limit",
        Code.PORT_CONNECTION_LIMIT: "Connect to a different port or remove an existing connection",
        Code.SCHEMA_INCOMPATIBILITY: "Add a transformation node between incompatible nodes",
        Code.DATA_TYPE_MISMATCH: "Convert the column type upstream or change the mapping",
        Code.REQUIRED_COLUMN_MISSING: "Provide the column upstream or make it nullable in the target",
        Code.DISCONNECTED_NODE: "Connect the node to the main flow or remove it",
        Code.DEAD_END: "Add an output node or connect to downstream processing",
        Code.INVALID_ETL_CONNECTION: "Connect to a compatible ETL component type",
        Code.MULTIPLE_INPUTS_DISALLOWED: "Use a merge component (tJoin, tMap, tUnite) to combine multiple inputs",
        Code.FAN_OUT_DISALLOWED: "Insert a tReplicate component to split the flow",
        Code.INVALID_MERGE_NODE_INPUTS: "Connect the required number of inputs to this merge component",
        Code.INVALID_BRANCHING_NODE_OUTPUTS: "Connect at least two downstream components to this branching component",
        Code.SOURCE_TO_SOURCE_DISALLOWED: "Connect source to processing or merge components",
        Code.SINK_TO_SINK_DISALLOWED: "Sink components should only receive connections",
        Code.OUTPUT_TO_OUTPUT_DISALLOWED: "Connect output ports to input ports only",
        Code.INPUT_TO_INPUT_DISALLOWED: "Connect input ports to output ports only",
        Code.TOO_MANY_INPUTS: "Reduce the number of input connections or use a merge component",
        Code.TOO_FEW_INPUTS: "Add more input connections",
        Code.EXACT_INPUT_COUNT_REQUIRED: "Connect exactly the required number of inputs",
        Code.OUTPUT_PORT_REUSE_DISALLOWED: "Use a branching component for multiple outputs",
        Code.INPUT_PORT_MULTIPLE_CONNECTIONS: "Remove duplicate connection or use a merge component",
        Code.MERGE_NODE_MISSING_INPUTS: "Connect multiple sources to this merge component",
        Code.NON_MERGE_NODE_MULTIPLE_INPUTS: "Use a merge component to combine inputs before connecting",
        Code.BRANCHING_REQUIRED_FOR_FAN_OUT: "Insert a tReplicate component between these nodes",
        Code.SOURCE_COMPONENT_INPUTS: "Consider if this should be a processing component instead",
        Code.PROCESSING_NODE_MISSING_INPUTS: "Connect a source or upstream processing component",
        Code.SINK_COMPONENT_OUTPUTS: "Remove outgoing connections or change component type",
        Code.PROCESSING_NODE_MISSING_OUTPUTS: "Connect to a downstream processing, merge, or sink component",
        Code.BRANCHING_NODE_INPUT_MISSING: "Connect exactly one upstream component to this branching component",
        Code.MERGE_NODE_OUTPUT_MISSING: "Connect this merge component to a downstream component",
    }
)


def fix_suggestion(code: Code) -> str | None:
    return FIX_SUGGESTIONS.get(code)
