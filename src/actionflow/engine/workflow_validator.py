"""
Whole-workflow validation.

WorkflowValidator combines four analyses into one WorkflowValidationResult:

1. Per-action parameter validation (ParameterValidator) with the outputs of
   every other action available for references
2. Data flow: dependency graph, cycles, unresolved references, type
   compatibility of every wired output, action chaining facets, orphans
3. Structure: non-empty workflow, unique IDs, execution order consistency
4. Size and depth warnings

Validation always completes; problems in the input become issues in the
result, never exceptions.
"""

import logging
from collections import Counter
from typing import Any

from .config import ValidatorSettings
from .dag import DependencyGraphBuilder, describe_cycle
from .parameter_validator import ParameterValidator
from .references import Reference, iter_references, parse_value
from .results import (
    ActionValidationResult,
    CircularDependency,
    CompatibilityIssue,
    DataFlowValidationResult,
    TypeCompatibilityIssue,
    UnresolvedReference,
    ValidationContext,
    ValidationOptions,
    WorkflowValidationResult,
)
from .rules import ValidatorRegistry
from .schema import (
    Action,
    ActionMetadata,
    ActionOutput,
    DependencyGraph,
    ValidationError,
    ValidationErrorType,
    Workflow,
)
from .type_compat import check_action_compatibility, check_types

logger = logging.getLogger(__name__)


def values_for(parameter_values: dict[str, Any], action_id: str) -> dict[str, Any]:
    """Value bag of one action; anything but a mapping reads as empty."""
    values = parameter_values.get(action_id)
    if isinstance(values, dict):
        return values
    return {}


def build_available_outputs(
    workflow: Workflow, action_metadata: dict[str, ActionMetadata]
) -> dict[str, dict[str, ActionOutput]]:
    """
    Outputs each action may reference, keyed ``"<actionId>.<outputName>"``.

    Every other action's outputs are available; execution order is not
    taken into account.
    """
    available: dict[str, dict[str, ActionOutput]] = {}
    for action in workflow.actions:
        outputs: dict[str, ActionOutput] = {}
        for other in workflow.actions:
            if other.id == action.id:
                continue
            metadata = action_metadata.get(other.action_type)
            if metadata is None:
                continue
            for output in metadata.outputs:
                outputs[f"{other.id}.{output.name}"] = output
        available[action.id] = outputs
    return available


class WorkflowValidator:
    """
    Validates complete workflows.

    Example:
        validator = WorkflowValidator()
        result = validator.validate_workflow(workflow, metadata_by_type, values)
        for issue in result.all_errors():
            print(issue.message)
    """

    def __init__(
        self,
        parameter_validator: ParameterValidator | None = None,
        registry: ValidatorRegistry | None = None,
        settings: ValidatorSettings | None = None,
    ):
        self.settings = settings or ValidatorSettings()
        self.parameter_validator = parameter_validator or ParameterValidator(
            registry=registry, settings=self.settings
        )
        self.graph_builder = DependencyGraphBuilder()

    def validate_workflow(
        self,
        workflow: Workflow,
        action_metadata: dict[str, ActionMetadata],
        parameter_values: dict[str, dict[str, Any]],
        options: ValidationOptions | None = None,
    ) -> WorkflowValidationResult:
        """
        Validate a workflow including all actions and its data flow.

        Args:
            workflow: Action graph
            action_metadata: ``action_type -> ActionMetadata``
            parameter_values: ``action_id -> {parameter_name -> raw value}``
            options: Validation switches

        Returns:
            WorkflowValidationResult
        """
        options = options or ValidationOptions()
        action_results: dict[str, ActionValidationResult] = {}
        global_errors: list[ValidationError] = []
        warnings: list[str] = []

        available_outputs = build_available_outputs(workflow, action_metadata)

        for action in workflow.actions:
            metadata = action_metadata.get(action.action_type)
            if metadata is None:
                global_errors.append(
                    ValidationError(
                        type=ValidationErrorType.MISSING_REQUIRED,
                        message=f"Action metadata not found for action type: {action.action_type}",
                        field=action.id,
                        action_id=action.id,
                        suggestion="Check that the action type is published by action discovery",
                    )
                )
                continue

            context = ValidationContext(
                workflow=workflow,
                current_action=action,
                available_outputs=available_outputs.get(action.id, {}),
            )
            result = self.parameter_validator.validate_all_parameters(
                metadata, values_for(parameter_values, action.id), context, options
            )
            action_results[action.id] = result
            warnings.extend(result.warnings)

        graph = self.graph_builder.build(workflow, parameter_values)
        data_flow = self.analyze_data_flow(workflow, action_metadata, parameter_values, graph)

        warnings.extend(
            f"Action {action_id} is not reachable from any root action"
            for action_id in data_flow.orphaned_actions
        )
        if not graph.has_cycles and graph.max_depth > self.settings.depth_warning:
            if not graph.depth_exceeds(self.settings.depth_ceiling):
                warnings.append(
                    f"Workflow has deep dependency chains (>{self.settings.depth_warning} levels). "
                    "Consider breaking into smaller workflows."
                )

        self._validate_structure(workflow, global_errors, warnings)

        is_valid = (
            all(result.is_valid for result in action_results.values())
            and data_flow.is_valid
            and not global_errors
        )

        logger.debug(
            f"Validated workflow with {len(workflow.actions)} actions: valid={is_valid}, "
            f"{len(global_errors)} global errors, {len(warnings)} warnings"
        )

        return WorkflowValidationResult(
            is_valid=is_valid,
            action_results=action_results,
            data_flow_result=data_flow,
            global_errors=global_errors,
            warnings=warnings,
            dependency_graph=graph,
        )

    def validate_action(
        self,
        action: Action,
        metadata: ActionMetadata,
        parameter_values: dict[str, Any],
        context: ValidationContext | None = None,
        options: ValidationOptions | None = None,
    ) -> ActionValidationResult:
        """Validate a single action; without a context it is validated on its own."""
        if context is None:
            context = ValidationContext(
                workflow=Workflow(actions=[action]), current_action=action
            )
        return self.parameter_validator.validate_all_parameters(
            metadata, parameter_values, context, options
        )

    def analyze_data_flow(
        self,
        workflow: Workflow,
        action_metadata: dict[str, ActionMetadata],
        parameter_values: dict[str, dict[str, Any]],
        graph: DependencyGraph | None = None,
    ) -> DataFlowValidationResult:
        """
        Analyze references between actions.

        Args:
            workflow: Action graph
            action_metadata: ``action_type -> ActionMetadata``
            parameter_values: ``action_id -> {parameter_name -> raw value}``
            graph: Prebuilt dependency graph (built here when omitted)

        Returns:
            DataFlowValidationResult
        """
        if graph is None:
            graph = self.graph_builder.build(workflow, parameter_values)

        circular = [
            CircularDependency(cycle=cycle, description=describe_cycle(cycle))
            for cycle in graph.cycles
        ]
        if graph.build_error is not None:
            circular.append(
                CircularDependency(
                    cycle=[],
                    description=(
                        f"Dependency analysis incomplete, cycles could not be ruled out: "
                        f"{graph.build_error}"
                    ),
                )
            )
        elif not circular and graph.depth_exceeds(self.settings.depth_ceiling):
            circular.append(
                CircularDependency(
                    cycle=[],
                    description=(
                        f"Circular dependency suspected: dependency depth {graph.max_depth} "
                        f"exceeds {self.settings.depth_ceiling}"
                    ),
                )
            )

        unresolved = self._find_unresolved_references(workflow, action_metadata, parameter_values)
        type_issues = self._check_type_compatibility(workflow, action_metadata, parameter_values)
        compat_issues = self._check_action_compatibility(workflow, action_metadata, graph)
        orphaned = self._find_orphaned_actions(workflow, graph)

        is_valid = (
            not circular
            and not unresolved
            and not any(not issue.can_convert for issue in type_issues)
            and not any(issue.blocking for issue in compat_issues)
        )

        return DataFlowValidationResult(
            is_valid=is_valid,
            circular_dependencies=circular,
            unresolved_references=unresolved,
            type_compatibility_issues=type_issues,
            compatibility_issues=compat_issues,
            orphaned_actions=orphaned,
        )

    def _find_unresolved_references(
        self,
        workflow: Workflow,
        action_metadata: dict[str, ActionMetadata],
        parameter_values: dict[str, dict[str, Any]],
    ) -> list[UnresolvedReference]:
        unresolved: list[UnresolvedReference] = []
        available_outputs = build_available_outputs(workflow, action_metadata)
        action_ids = set(workflow.action_ids)

        for action in workflow.actions:
            outputs = available_outputs.get(action.id, {})
            for parameter, ref in iter_references(values_for(parameter_values, action.id)):
                if not ref.is_well_formed:
                    reason = "Invalid parameter reference format"
                elif ref.action_id == action.id:
                    reason = "Action cannot reference its own output"
                elif ref.action_id not in action_ids:
                    reason = "Referenced action does not exist in workflow"
                elif ref.key not in outputs:
                    reason = "Referenced output does not exist on the specified action"
                else:
                    continue
                unresolved.append(
                    UnresolvedReference(
                        action_id=action.id,
                        parameter_name=parameter,
                        referenced_action=ref.action_id,
                        referenced_output=ref.output_name or "unknown",
                        reason=reason,
                    )
                )

        return unresolved

    def _check_type_compatibility(
        self,
        workflow: Workflow,
        action_metadata: dict[str, ActionMetadata],
        parameter_values: dict[str, dict[str, Any]],
    ) -> list[TypeCompatibilityIssue]:
        issues: list[TypeCompatibilityIssue] = []

        for action in workflow.actions:
            metadata = action_metadata.get(action.action_type)
            if metadata is None:
                continue
            values = values_for(parameter_values, action.id)

            for descriptor in metadata.parameters:
                parsed = parse_value(values.get(descriptor.name))
                if not isinstance(parsed, Reference) or not parsed.is_well_formed:
                    continue
                if parsed.action_id == action.id:
                    continue
                source = workflow.get_action(parsed.action_id)
                if source is None:
                    continue
                source_metadata = action_metadata.get(source.action_type)
                if source_metadata is None:
                    continue
                output = source_metadata.get_output(parsed.output_name)
                if output is None:
                    continue

                compatibility = check_types(output.type, descriptor.type)
                if compatibility.compatible and not compatibility.convertible:
                    continue
                issues.append(
                    TypeCompatibilityIssue(
                        source_action=parsed.action_id,
                        source_output=parsed.output_name,
                        target_action=action.id,
                        target_parameter=descriptor.name,
                        source_type=output.type,
                        target_type=descriptor.type,
                        can_convert=compatibility.compatible,
                        suggestion=compatibility.suggestion,
                    )
                )

        return issues

    def _check_action_compatibility(
        self,
        workflow: Workflow,
        action_metadata: dict[str, ActionMetadata],
        graph: DependencyGraph,
    ) -> list[CompatibilityIssue]:
        issues: list[CompatibilityIssue] = []
        for source_id, target_id in sorted(graph.edge_pairs()):
            source = workflow.get_action(source_id)
            target = workflow.get_action(target_id)
            if source is None or target is None:
                continue
            source_metadata = action_metadata.get(source.action_type)
            target_metadata = action_metadata.get(target.action_type)
            if source_metadata is None or target_metadata is None:
                continue
            issues.extend(
                check_action_compatibility(source_metadata, target_metadata, source_id, target_id)
            )
        return issues

    def _find_orphaned_actions(self, workflow: Workflow, graph: DependencyGraph) -> list[str]:
        if workflow.root_actions is not None:
            roots = list(workflow.root_actions)
        else:
            roots = [
                action_id for action_id, node in graph.nodes.items() if not node.dependencies
            ]

        reachable: set[str] = set()
        stack = [root for root in roots if root in graph.nodes]
        while stack:
            current = stack.pop()
            if current in reachable:
                continue
            reachable.add(current)
            stack.extend(graph.nodes[current].dependents)

        orphaned: list[str] = []
        for action_id in workflow.action_ids:
            if action_id not in reachable and action_id not in orphaned:
                orphaned.append(action_id)
        return orphaned

    def _validate_structure(
        self,
        workflow: Workflow,
        global_errors: list[ValidationError],
        warnings: list[str],
    ) -> None:
        if not workflow.actions:
            global_errors.append(
                ValidationError(
                    type=ValidationErrorType.MISSING_REQUIRED,
                    message="Workflow must contain at least one action",
                    suggestion="Add an action to the workflow",
                )
            )

        counts = Counter(workflow.action_ids)
        duplicates = [action_id for action_id, count in counts.items() if count > 1]
        if duplicates:
            global_errors.append(
                ValidationError(
                    type=ValidationErrorType.INVALID_FORMAT,
                    message=f"Duplicate action IDs found: {', '.join(duplicates)}",
                    suggestion="Give every action a unique ID",
                )
            )

        if workflow.execution_order is not None:
            order = workflow.execution_order
            missing = [action_id for action_id in counts if action_id not in order]
            unknown = [action_id for action_id in order if action_id not in counts]
            repeated = [action_id for action_id, count in Counter(order).items() if count > 1]
            if missing:
                warnings.append(f"Actions missing from execution order: {', '.join(missing)}")
            if unknown:
                warnings.append(f"Unknown actions in execution order: {', '.join(unknown)}")
            if repeated:
                warnings.append(
                    f"Actions listed more than once in execution order: {', '.join(repeated)}"
                )

        if len(workflow.actions) > self.settings.large_workflow_actions:
            warnings.append(
                f"Large workflow detected (>{self.settings.large_workflow_actions} actions). "
                "Performance may be impacted."
            )
