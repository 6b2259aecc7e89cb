# src/etlguard/rules/etl_connectivity.py
"""ETL connectivity rule.

Enforces the role-based shape of an ETL flow: which roles may feed which,
one main input per non-merge component, fan-out only through branching
components, exact input counts for joins, and exclusive port handles.

Two entry points besides the per-edge validate():

- validate_graph_topology() sweeps every classified node once for arity
  problems that no single edge reveals (a merge with no output, a sink
  with no input).
- check_proposed_connection() judges an edge that does not exist yet,
  against the counts already in the graph.
"""

from __future__ import annotations

from etlguard.contracts.enums import EtlCategory, RuleScope, ValidationErrorCode, ValidationLevel
from etlguard.contracts.graph import GraphEdge, GraphNode, GraphState
from etlguard.contracts.results import ConnectionCheck, EtlClassification, ValidationResult
from etlguard.core.registry import ETL_ALLOWED_TARGETS, SchemaRegistry, normalize_type
from etlguard.rules import messages
from etlguard.rules.base import BaseValidationRule
from etlguard.rules.classification import (
    COMPONENT_CLASSIFICATIONS,
    ComponentClassification,
    classification_from_schema,
)

Code = ValidationErrorCode


class EtlConnectivityRule(BaseValidationRule):
    """Role-based connectivity checks for classified components.

    Edges with an unclassified endpoint are skipped entirely.
    """

    rule_id = "etl-connectivity"
    name = "ETL Connectivity Validation"
    description = "Validates ETL component connectivity, topology, and port usage rules"
    severity = ValidationLevel.ERROR
    scope = RuleScope.EDGE

    def __init__(self, registry: SchemaRegistry | None = None) -> None:
        self._registry = registry

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def classify(self, node_type: str) -> ComponentClassification | None:
        """Static table first, then the registry schema's ETL declaration."""
        classification = COMPONENT_CLASSIFICATIONS.get(normalize_type(node_type))
        if classification is not None or self._registry is None:
            return classification
        schema = self._registry.get_schema(node_type)
        if schema is None:
            return None
        return classification_from_schema(schema)

    def get_component_classification(self, node: GraphNode) -> EtlClassification:
        classification = self.classify(node.type)
        if classification is None:
            return EtlClassification()
        return EtlClassification(
            etl_category=classification.etl_category,
            is_multi_input=classification.is_multi_input,
            is_branching=classification.is_branching,
        )

    # ------------------------------------------------------------------
    # Per-edge checks
    # ------------------------------------------------------------------

    def applies_to(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> bool:
        return edge is not None and bool(edge.source) and bool(edge.target)

    def validate(self, node: GraphNode | None, edge: GraphEdge | None, graph: GraphState) -> list[ValidationResult]:
        if edge is None:
            return []
        source = graph.get_node(edge.source)
        target = graph.get_node(edge.target)
        if source is None or target is None:
            return []

        source_class = self.classify(source.type)
        target_class = self.classify(target.type)
        if source_class is None or target_class is None:
            return []

        return [
            *self._validate_categories(source, source_class, target, target_class, edge),
            *self._validate_port_usage(source, source_class, target, edge, graph),
            *self._validate_multi_input(target, target_class, graph),
            *self._validate_branching(source, source_class, graph),
        ]

    def _validate_categories(
        self,
        source: GraphNode,
        source_class: ComponentClassification,
        target: GraphNode,
        target_class: ComponentClassification,
        edge: GraphEdge,
    ) -> list[ValidationResult]:
        results: list[ValidationResult] = []
        source_cat = source_class.etl_category
        target_cat = target_class.etl_category
        node_ids = (source.id, target.id)

        if source_cat == EtlCategory.SOURCE and target_cat == EtlCategory.SOURCE:
            results.append(
                ValidationResult.error(
                    Code.SOURCE_TO_SOURCE_DISALLOWED,
                    messages.source_to_source(source.data.name, target.data.name),
                    node_ids=node_ids,
                    edge_ids=(edge.id,),
                    details="Data source components cannot connect to other data source components",
                    fix_suggestion=messages.fix_suggestion(Code.SOURCE_TO_SOURCE_DISALLOWED),
                    context={"source_type": source.type, "target_type": target.type},
                )
            )

        if source_cat == EtlCategory.SINK and target_cat == EtlCategory.SINK:
            results.append(
                ValidationResult.error(
                    Code.SINK_TO_SINK_DISALLOWED,
                    messages.sink_to_sink(source.data.name, target.data.name),
                    node_ids=node_ids,
                    edge_ids=(edge.id,),
                    details="Data sink components cannot connect to other data sink components",
                    fix_suggestion=messages.fix_suggestion(Code.SINK_TO_SINK_DISALLOWED),
                    context={"source_type": source.type, "target_type": target.type},
                )
            )

        allowed_targets = ETL_ALLOWED_TARGETS.get(source_cat, frozenset())
        if target_cat not in allowed_targets:
            allowed_names = sorted(str(category) for category in allowed_targets)
            results.append(
                ValidationResult.error(
                    Code.INVALID_ETL_CONNECTION,
                    messages.invalid_etl_connection(source_cat, target_cat),
                    node_ids=node_ids,
                    edge_ids=(edge.id,),
                    details=f"ETL rules prohibit {source_cat} → {target_cat} connections",
                    fix_suggestion=(
                        f"Allowed targets for {source_cat} components: {', '.join(allowed_names)}"
                        if allowed_names
                        else f"{source_cat} components cannot connect to anything"
                    ),
                    context={
                        "source_category": str(source_cat),
                        "target_category": str(target_cat),
                        "allowed_targets": allowed_names,
                    },
                )
            )

        return results

    def _validate_port_usage(
        self,
        source: GraphNode,
        source_class: ComponentClassification,
        target: GraphNode,
        edge: GraphEdge,
        graph: GraphState,
    ) -> list[ValidationResult]:
        results: list[ValidationResult] = []

        if edge.source_handle and not source_class.is_branching:
            connections = self.count_output_port_connections(source.id, edge.source_handle, graph)
            if connections > 1:
                results.append(
                    ValidationResult.error(
                        Code.OUTPUT_PORT_REUSE_DISALLOWED,
                        messages.output_port_reuse(edge.source_handle),
                        node_ids=(source.id,),
                        edge_ids=(edge.id,),
                        details="Each output port may be used only once (except for branching components)",
                        fix_suggestion=messages.fix_suggestion(Code.OUTPUT_PORT_REUSE_DISALLOWED),
                        context={
                            "port_id": edge.source_handle,
                            "current_connections": connections,
                            "component_type": source.type,
                        },
                    )
                )

        if edge.target_handle:
            connections = self.count_input_port_connections(target.id, edge.target_handle, graph)
            if connections > 1:
                results.append(
                    ValidationResult.error(
                        Code.INPUT_PORT_MULTIPLE_CONNECTIONS,
                        messages.input_port_multiple_connections(edge.target_handle),
                        node_ids=(target.id,),
                        edge_ids=(edge.id,),
                        details="Each input port may accept only one connection",
                        fix_suggestion=messages.fix_suggestion(Code.INPUT_PORT_MULTIPLE_CONNECTIONS),
                        context={
                            "port_id": edge.target_handle,
                            "current_connections": connections,
                            "component_type": target.type,
                        },
                    )
                )

        return results

    def _validate_multi_input(
        self,
        node: GraphNode,
        node_class: ComponentClassification,
        graph: GraphState,
    ) -> list[ValidationResult]:
        results: list[ValidationResult] = []
        incoming = self.count_incoming(node.id, graph)

        if not node_class.is_multi_input:
            if incoming > 1:
                results.append(
                    ValidationResult.error(
                        Code.NON_MERGE_NODE_MULTIPLE_INPUTS,
                        messages.non_merge_node_multiple_inputs(node.data.name),
                        node_ids=(node.id,),
                        details="Non-merge components can only accept one input connection",
                        fix_suggestion=messages.fix_suggestion(Code.NON_MERGE_NODE_MULTIPLE_INPUTS),
                        context={"max_allowed_inputs": 1, "current": incoming, "component_type": node.type},
                    )
                )
            return results

        exact = node_class.exact_inputs
        if exact is not None and incoming > exact:
            results.append(
                ValidationResult.error(
                    Code.EXACT_INPUT_COUNT_REQUIRED,
                    messages.exact_input_count_required(node.data.name, exact, incoming),
                    node_ids=(node.id,),
                    details=f"{node.type} must have exactly {exact} input connections",
                    fix_suggestion=f"Connect exactly {exact} sources to this component",
                    context={"required": exact, "current": incoming, "component_type": node.type},
                )
            )

        if node_class.min_inputs is not None and incoming < node_class.min_inputs:
            results.append(
                ValidationResult.error(
                    Code.TOO_FEW_INPUTS,
                    messages.too_few_inputs(node.data.name, node_class.min_inputs, incoming),
                    node_ids=(node.id,),
                    details=f"{node.type} requires at least {node_class.min_inputs} input connections",
                    fix_suggestion=f"Connect at least {node_class.min_inputs} sources to this component",
                    context={"min_inputs": node_class.min_inputs, "current": incoming, "component_type": node.type},
                )
            )

        if node_class.max_inputs is not None and exact is None and incoming > node_class.max_inputs:
            results.append(
                ValidationResult.error(
                    Code.TOO_MANY_INPUTS,
                    messages.too_many_inputs(node.data.name, node_class.max_inputs, incoming),
                    node_ids=(node.id,),
                    details=f"{node.type} accepts at most {node_class.max_inputs} input connections",
                    fix_suggestion=messages.fix_suggestion(Code.TOO_MANY_INPUTS),
                    context={"max_inputs": node_class.max_inputs, "current": incoming, "component_type": node.type},
                )
            )

        if exact is not None and incoming != exact:
            results.append(
                ValidationResult.error(
                    Code.INVALID_MERGE_NODE_INPUTS,
                    messages.invalid_merge_node_inputs(node.data.name, exact, incoming),
                    node_ids=(node.id,),
                    details=f"{node.type} must have exactly {exact} input connections",
                    fix_suggestion=messages.fix_suggestion(Code.INVALID_MERGE_NODE_INPUTS),
                    context={"required": exact, "current": incoming, "component_type": node.type},
                )
            )

        return results

    def _validate_branching(
        self,
        node: GraphNode,
        node_class: ComponentClassification,
        graph: GraphState,
    ) -> list[ValidationResult]:
        outgoing = self.count_outgoing(node.id, graph)

        if not node_class.is_branching and outgoing > 1:
            return [
                ValidationResult.error(
                    Code.BRANCHING_REQUIRED_FOR_FAN_OUT,
                    messages.branching_required_for_fan_out(node.data.name),
                    node_ids=(node.id,),
                    details="Fan-out (one output to multiple inputs) requires a branching component like tReplicate",
                    fix_suggestion=messages.fix_suggestion(Code.BRANCHING_REQUIRED_FOR_FAN_OUT),
                    context={"current_outputs": outgoing, "requires_branching": True, "component_type": node.type},
                )
            ]

        if node_class.is_branching and outgoing < 2:
            return [
                ValidationResult.error(
                    Code.INVALID_BRANCHING_NODE_OUTPUTS,
                    messages.invalid_branching_node_outputs(node.data.name, 2),
                    node_ids=(node.id,),
                    details="Branching components like tReplicate must have at least 2 outputs",
                    fix_suggestion=messages.fix_suggestion(Code.INVALID_BRANCHING_NODE_OUTPUTS),
                    context={"min_outputs": 2, "current_outputs": outgoing, "component_type": node.type},
                )
            ]

        return []

    # ------------------------------------------------------------------
    # Whole-graph sweep
    # ------------------------------------------------------------------

    def validate_graph_topology(self, graph: GraphState) -> list[ValidationResult]:
        """Arity findings for every classified node."""
        results: list[ValidationResult] = []
        for node in graph.nodes:
            node_class = self.classify(node.type)
            if node_class is None:
                continue
            incoming = self.count_incoming(node.id, graph)
            outgoing = self.count_outgoing(node.id, graph)
            results.extend(self._sweep_node(node, node_class.etl_category, incoming, outgoing))
        return results

    def _sweep_node(
        self,
        node: GraphNode,
        category: EtlCategory,
        incoming: int,
        outgoing: int,
    ) -> list[ValidationResult]:
        name = node.data.name
        node_ids = (node.id,)
        context = {"incoming": incoming, "outgoing": outgoing, "component_type": node.type}
        results: list[ValidationResult] = []

        def warn(code: ValidationErrorCode, message: str) -> None:
            results.append(
                ValidationResult.warning(
                    code, message, node_ids=node_ids, fix_suggestion=messages.fix_suggestion(code), context=context
                )
            )

        def fail(code: ValidationErrorCode, message: str) -> None:
            results.append(
                ValidationResult.error(
                    code, message, node_ids=node_ids, fix_suggestion=messages.fix_suggestion(code), context=context
                )
            )

        match category:
            case EtlCategory.SOURCE:
                if incoming > 0:
                    warn(Code.SOURCE_COMPONENT_INPUTS, messages.source_component_inputs(name))
                if outgoing == 0:
                    warn(Code.PROCESSING_NODE_MISSING_OUTPUTS, f'Source component "{name}" has no output connections')
            case EtlCategory.PROCESSING:
                if incoming != 1:
                    fail(Code.PROCESSING_NODE_MISSING_INPUTS, messages.processing_node_missing_inputs(name))
                if outgoing == 0:
                    warn(Code.PROCESSING_NODE_MISSING_OUTPUTS, messages.processing_node_missing_outputs(name))
            case EtlCategory.MERGE:
                if incoming < 2:
                    warn(Code.MERGE_NODE_MISSING_INPUTS, messages.merge_node_missing_inputs(name, incoming))
                if outgoing == 0:
                    fail(Code.MERGE_NODE_OUTPUT_MISSING, messages.merge_node_output_missing(name))
            case EtlCategory.BRANCHING:
                if incoming != 1:
                    fail(Code.BRANCHING_NODE_INPUT_MISSING, messages.branching_node_input_missing(name))
                if outgoing < 2:
                    warn(Code.INVALID_BRANCHING_NODE_OUTPUTS, f'Branching component "{name}" has only {outgoing} output(s)')
            case EtlCategory.SINK:
                if incoming == 0:
                    fail(Code.PROCESSING_NODE_MISSING_INPUTS, f'Sink component "{name}" has no input connections')
                if outgoing > 0:
                    fail(Code.SINK_COMPONENT_OUTPUTS, messages.sink_component_outputs(name))
            case _:
                pass

        return results

    # ------------------------------------------------------------------
    # Proposed connections
    # ------------------------------------------------------------------

    def check_proposed_connection(self, source: GraphNode, target: GraphNode, graph: GraphState) -> list[ValidationResult]:
        """Findings for adding ``source -> target`` to ``graph``.

        Counts are taken from the graph as it stands, so "already has one
        output" means the new edge would be a second.
        """
        source_class = self.classify(source.type)
        target_class = self.classify(target.type)
        if source_class is None or target_class is None:
            return []

        source_cat = source_class.etl_category
        target_cat = target_class.etl_category
        node_ids = (source.id, target.id)
        results: list[ValidationResult] = []

        if source_cat == EtlCategory.SOURCE and target_cat == EtlCategory.SOURCE:
            results.append(
                ValidationResult.error(
                    Code.SOURCE_TO_SOURCE_DISALLOWED,
                    "Source components cannot connect to other source components",
                    node_ids=node_ids,
                    fix_suggestion=messages.fix_suggestion(Code.SOURCE_TO_SOURCE_DISALLOWED),
                )
            )
        if source_cat == EtlCategory.SINK and target_cat == EtlCategory.SINK:
            results.append(
                ValidationResult.error(
                    Code.SINK_TO_SINK_DISALLOWED,
                    "Sink components cannot connect to other sink components",
                    node_ids=node_ids,
                    fix_suggestion=messages.fix_suggestion(Code.SINK_TO_SINK_DISALLOWED),
                )
            )
        if target_cat not in ETL_ALLOWED_TARGETS.get(source_cat, frozenset()):
            results.append(
                ValidationResult.error(
                    Code.INVALID_ETL_CONNECTION,
                    f"Connection from {source_cat} to {target_cat} is not allowed",
                    node_ids=node_ids,
                    fix_suggestion=messages.fix_suggestion(Code.INVALID_ETL_CONNECTION),
                )
            )

        outgoing = self.count_outgoing(source.id, graph)
        if not source_class.is_branching and outgoing >= 1:
            results.append(
                ValidationResult.error(
                    Code.BRANCHING_REQUIRED_FOR_FAN_OUT,
                    "Fan-out without tReplicate is forbidden. Use tReplicate for multiple outputs",
                    node_ids=(source.id,),
                    fix_suggestion=messages.fix_suggestion(Code.BRANCHING_REQUIRED_FOR_FAN_OUT),
                    context={"current_outputs": outgoing},
                )
            )

        incoming = self.count_incoming(target.id, graph)
        if not target_class.is_multi_input and incoming >= 1:
            results.append(
                ValidationResult.error(
                    Code.NON_MERGE_NODE_MULTIPLE_INPUTS,
                    "Multiple inputs into a non-merge component is forbidden",
                    node_ids=(target.id,),
                    fix_suggestion=messages.fix_suggestion(Code.NON_MERGE_NODE_MULTIPLE_INPUTS),
                    context={"current_inputs": incoming},
                )
            )

        exact = target_class.exact_inputs
        if exact is not None and incoming >= exact:
            results.append(
                ValidationResult.error(
                    Code.EXACT_INPUT_COUNT_REQUIRED,
                    f"{target.type} can only accept exactly {exact} inputs",
                    node_ids=(target.id,),
                    fix_suggestion=messages.fix_suggestion(Code.EXACT_INPUT_COUNT_REQUIRED),
                    context={"required": exact, "current": incoming + 1},
                )
            )

        return results

    def would_connection_be_valid(self, source: GraphNode, target: GraphNode, graph: GraphState) -> ConnectionCheck:
        results = self.check_proposed_connection(source, target, graph)
        errors = tuple(r.message for r in results if r.level == ValidationLevel.ERROR)
        warnings = tuple(r.message for r in results if r.level == ValidationLevel.WARNING)
        return ConnectionCheck(is_valid=not errors, errors=errors, warnings=warnings)
