"""All categories, severities, modes, and codes shared across subsystems.

Every ValidationErrorCode value is part of the public contract: editors key
highlighting on them and the execution pipeline gates on their severity.
Messages are for humans; codes are for machines.
"""

from enum import StrEnum


class NodeCategory(StrEnum):
    """Editor-level grouping of a component type."""

    INPUT = "input"
    PROCESSING = "processing"
    OUTPUT = "output"
    TRANSFORM = "transform"
    LOOKUP = "lookup"
    MATCH = "match"


class EtlCategory(StrEnum):
    """ETL role of a component type.

    UNKNOWN marks unclassified types. They are exempt from ETL checks
    rather than rejected.
    """

    SOURCE = "source"
    SINK = "sink"
    PROCESSING = "processing"
    MERGE = "merge"
    BRANCHING = "branching"
    UNKNOWN = "unknown"


class ValidationLevel(StrEnum):
    """Severity of a validation finding.

    Only ERROR makes a graph invalid.
    """

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ValidationMode(StrEnum):
    """Which severities survive into a summary.

    - STRICT: everything
    - LENIENT: errors only
    - WARN_ONLY: warnings only
    """

    STRICT = "strict"
    LENIENT = "lenient"
    WARN_ONLY = "warn-only"


class EtlMode(StrEnum):
    """How ETL connectivity findings are reported.

    RELAXED downgrades ETL errors to warnings so design can proceed.
    """

    STRICT = "strict"
    RELAXED = "relaxed"


class PortType(StrEnum):
    """Direction of a node port."""

    INPUT = "input"
    OUTPUT = "output"


class RuleScope(StrEnum):
    """Which graph elements the engine evaluates a rule against.

    - GRAPH: once per snapshot
    - NODE: once per node
    - EDGE: once per edge with resolvable endpoints
    """

    GRAPH = "graph"
    NODE = "node"
    EDGE = "edge"


class ValidationErrorCode(StrEnum):
    """Closed set of machine-readable finding codes."""

    # Cycles
    CYCLE_DETECTED = "CYCLE_DETECTED"
    DISALLOWED_CYCLE = "DISALLOWED_CYCLE"

    # Connections
    INVALID_CONNECTION_TYPE = "INVALID_CONNECTION_TYPE"
    INVALID_SOURCE_TYPE = "INVALID_SOURCE_TYPE"
    INVALID_TARGET_TYPE = "INVALID_TARGET_TYPE"
    MAX_INCOMING_EXCEEDED = "MAX_INCOMING_EXCEEDED"
    MAX_OUTGOING_EXCEEDED = "MAX_OUTGOING_EXCEEDED"
    PORT_CONNECTION_LIMIT = "PORT_CONNECTION_LIMIT"
    MULTIPLE_CONNECTIONS_DISALLOWED = "MULTIPLE_CONNECTIONS_DISALLOWED"

    # Schema
    SCHEMA_INCOMPATIBILITY = "SCHEMA_INCOMPATIBILITY"
    DATA_TYPE_MISMATCH = "DATA_TYPE_MISMATCH"
    REQUIRED_COLUMN_MISSING = "REQUIRED_COLUMN_MISSING"

    # Topology
    DISCONNECTED_NODE = "DISCONNECTED_NODE"
    MULTIPLE_PATHS = "MULTIPLE_PATHS"
    DEAD_END = "DEAD_END"

    # Custom
    CUSTOM_VALIDATION_FAILED = "CUSTOM_VALIDATION_FAILED"

    # ETL connectivity
    INVALID_ETL_CONNECTION = "INVALID_ETL_CONNECTION"
    MULTIPLE_INPUTS_DISALLOWED = "MULTIPLE_INPUTS_DISALLOWED"
    FAN_OUT_DISALLOWED = "FAN_OUT_DISALLOWED"
    INVALID_MERGE_NODE_INPUTS = "INVALID_MERGE_NODE_INPUTS"
    INVALID_BRANCHING_NODE_OUTPUTS = "INVALID_BRANCHING_NODE_OUTPUTS"
    SOURCE_TO_SOURCE_DISALLOWED = "SOURCE_TO_SOURCE_DISALLOWED"
    SINK_TO_SINK_DISALLOWED = "SINK_TO_SINK_DISALLOWED"
    OUTPUT_TO_OUTPUT_DISALLOWED = "OUTPUT_TO_OUTPUT_DISALLOWED"
    INPUT_TO_INPUT_DISALLOWED = "INPUT_TO_INPUT_DISALLOWED"
    TOO_MANY_INPUTS = "TOO_MANY_INPUTS"
    TOO_FEW_INPUTS = "TOO_FEW_INPUTS"
    EXACT_INPUT_COUNT_REQUIRED = "EXACT_INPUT_COUNT_REQUIRED"
    OUTPUT_PORT_REUSE_DISALLOWED = "OUTPUT_PORT_REUSE_DISALLOWED"
    INPUT_PORT_MULTIPLE_CONNECTIONS = "INPUT_PORT_MULTIPLE_CONNECTIONS"
    MERGE_NODE_MISSING_INPUTS = "MERGE_NODE_MISSING_INPUTS"
    NON_MERGE_NODE_MULTIPLE_INPUTS = "NON_MERGE_NODE_MULTIPLE_INPUTS"
    BRANCHING_REQUIRED_FOR_FAN_OUT = "BRANCHING_REQUIRED_FOR_FAN_OUT"
    SOURCE_COMPONENT_INPUTS = "SOURCE_COMPONENT_INPUTS"
    PROCESSING_NODE_MISSING_INPUTS = "PROCESSING_NODE_MISSING_INPUTS"
    SINK_COMPONENT_OUTPUTS = "SINK_COMPONENT_OUTPUTS"
    PROCESSING_NODE_MISSING_OUTPUTS = "PROCESSING_NODE_MISSING_OUTPUTS"
    BRANCHING_NODE_INPUT_MISSING = "BRANCHING_NODE_INPUT_MISSING"
    MERGE_NODE_OUTPUT_MISSING = "MERGE_NODE_OUTPUT_MISSING"


# Codes produced by the ETL connectivity rule. Relaxed ETL mode downgrades
# error-level findings carrying one of these codes to warnings.
ETL_CONNECTIVITY_CODES: frozenset[ValidationErrorCode] = frozenset(
    {
        ValidationErrorCode.INVALID_ETL_CONNECTION,
        ValidationErrorCode.MULTIPLE_INPUTS_DISALLOWED,
        ValidationErrorCode.FAN_OUT_DISALLOWED,
        ValidationErrorCode.INVALID_MERGE_NODE_INPUTS,
        ValidationErrorCode.INVALID_BRANCHING_NODE_OUTPUTS,
        ValidationErrorCode.SOURCE_TO_SOURCE_DISALLOWED,
        ValidationErrorCode.SINK_TO_SINK_DISALLOWED,
        ValidationErrorCode.OUTPUT_TO_OUTPUT_DISALLOWED,
        ValidationErrorCode.INPUT_TO_INPUT_DISALLOWED,
        ValidationErrorCode.TOO_MANY_INPUTS,
        ValidationErrorCode.TOO_FEW_INPUTS,
        ValidationErrorCode.EXACT_INPUT_COUNT_REQUIRED,
        ValidationErrorCode.OUTPUT_PORT_REUSE_DISALLOWED,
        ValidationErrorCode.INPUT_PORT_MULTIPLE_CONNECTIONS,
        ValidationErrorCode.MERGE_NODE_MISSING_INPUTS,
        ValidationErrorCode.NON_MERGE_NODE_MULTIPLE_INPUTS,
        ValidationErrorCode.BRANCHING_REQUIRED_FOR_FAN_OUT,
        ValidationErrorCode.SOURCE_COMPONENT_INPUTS,
        ValidationErrorCode.PROCESSING_NODE_MISSING_INPUTS,
        ValidationErrorCode.SINK_COMPONENT_OUTPUTS,
        ValidationErrorCode.PROCESSING_NODE_MISSING_OUTPUTS,
        ValidationErrorCode.BRANCHING_NODE_INPUT_MISSING,
        ValidationErrorCode.MERGE_NODE_OUTPUT_MISSING,
    }
)
