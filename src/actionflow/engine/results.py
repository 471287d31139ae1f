"""
Validation inputs and result models.

Validators never raise for bad workflow data; every finding lands in one of
these models. ``WorkflowValidationResult.issues()`` flattens everything into
``ValidationError`` records so callers can filter by severity without knowing
where an issue came from.
"""

from typing import Any

from pydantic import BaseModel, Field

from .schema import (
    Action,
    ActionOutput,
    DependencyGraph,
    Severity,
    ValidationError,
    ValidationErrorType,
    Workflow,
)

# =============================================================================
# Validation inputs
# =============================================================================


class ValidationContext(BaseModel):
    """
    Where a parameter is being validated.

    Attributes:
        workflow: Workflow the action belongs to
        current_action: Action whose parameters are validated
        available_outputs: Outputs referenceable from this action, keyed
            ``"<actionId>.<outputName>"``
    """

    workflow: Workflow
    current_action: Action
    available_outputs: dict[str, ActionOutput] = Field(default_factory=dict)


class ValidationOptions(BaseModel):
    """Switches for a validation run."""

    skip_user_interaction_check: bool = Field(
        default=False,
        description="Report missing required parameters even on untouched actions",
    )


# =============================================================================
# Parameter and action results
# =============================================================================


class ParameterValidationResult(BaseModel):
    """Outcome of validating one parameter value."""

    parameter_name: str
    value: Any = None
    is_valid: bool
    is_reference: bool = False
    errors: list[ValidationError] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


class ActionValidationResult(BaseModel):
    """
    Outcome of validating all parameters of one action.

    ``missing_parameters`` and ``invalid_parameters`` never overlap: a missing
    required parameter is reported only in ``missing_parameters``.
    """

    action_id: str
    is_valid: bool
    missing_parameters: list[str] = Field(default_factory=list)
    invalid_parameters: dict[str, ParameterValidationResult] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)

    def issues(self) -> list[ValidationError]:
        """Missing-parameter errors followed by every parameter-level issue."""
        issues = [
            ValidationError(
                type=ValidationErrorType.MISSING_REQUIRED,
                message=f"Missing required parameter: {name}",
                field=name,
                action_id=self.action_id,
            )
            for name in self.missing_parameters
        ]
        for parameter_result in self.invalid_parameters.values():
            for error in parameter_result.errors:
                if error.action_id is None:
                    error = error.model_copy(update={"action_id": self.action_id})
                issues.append(error)
        return issues


# =============================================================================
# Data-flow results
# =============================================================================


class CircularDependency(BaseModel):
    """A cycle in the data-dependency graph, first node repeated at the end."""

    cycle: list[str]
    description: str


class UnresolvedReference(BaseModel):
    """A parameter reference that does not point at an existing output."""

    action_id: str
    parameter_name: str
    referenced_action: str
    referenced_output: str
    reason: str


class TypeCompatibilityIssue(BaseModel):
    """A reference whose source output type differs from the parameter type."""

    source_action: str
    source_output: str
    target_action: str
    target_parameter: str
    source_type: str
    target_type: str
    can_convert: bool
    suggestion: str | None = None


class CompatibilityIssue(BaseModel):
    """A chaining problem between two linked actions."""

    source_action: str
    target_action: str
    issue: str
    suggestion: str | None = None
    blocking: bool = True


class DataFlowValidationResult(BaseModel):
    """Findings of the data-flow analysis."""

    is_valid: bool = True
    circular_dependencies: list[CircularDependency] = Field(default_factory=list)
    unresolved_references: list[UnresolvedReference] = Field(default_factory=list)
    type_compatibility_issues: list[TypeCompatibilityIssue] = Field(default_factory=list)
    compatibility_issues: list[CompatibilityIssue] = Field(default_factory=list)
    orphaned_actions: list[str] = Field(default_factory=list)

    def issues(self) -> list[ValidationError]:
        """Data-flow findings as ValidationError records (orphans excluded)."""
        issues: list[ValidationError] = []

        for cycle in self.circular_dependencies:
            issues.append(
                ValidationError(
                    type=ValidationErrorType.CIRCULAR_DEPENDENCY,
                    message=cycle.description,
                    action_id=cycle.cycle[0] if cycle.cycle else None,
                    suggestion="Remove one of the references that closes the loop",
                )
            )

        for ref in self.unresolved_references:
            issues.append(
                ValidationError(
                    type=ValidationErrorType.UNRESOLVED_REFERENCE,
                    message=(
                        f"Unresolved reference: {ref.action_id}.{ref.parameter_name} -> "
                        f"{ref.referenced_action}.{ref.referenced_output}"
                    ),
                    field=ref.parameter_name,
                    action_id=ref.action_id,
                    suggestion=ref.reason,
                )
            )

        for issue in self.type_compatibility_issues:
            if issue.can_convert:
                message = (
                    f"Type conversion: {issue.source_type} will be converted to {issue.target_type}"
                )
                severity = Severity.WARNING
            else:
                message = (
                    f"Type incompatibility: {issue.source_type} cannot be converted to "
                    f"{issue.target_type}"
                )
                severity = Severity.ERROR
            issues.append(
                ValidationError(
                    type=ValidationErrorType.TYPE_MISMATCH,
                    message=message,
                    field=issue.target_parameter,
                    action_id=issue.target_action,
                    severity=severity,
                    suggestion=issue.suggestion,
                )
            )

        for compat in self.compatibility_issues:
            issues.append(
                ValidationError(
                    type=ValidationErrorType.TYPE_MISMATCH,
                    message=f"{compat.source_action} -> {compat.target_action}: {compat.issue}",
                    action_id=compat.target_action,
                    severity=Severity.ERROR if compat.blocking else Severity.WARNING,
                    suggestion=compat.suggestion,
                )
            )

        return issues


# =============================================================================
# Workflow result
# =============================================================================


class WorkflowValidationResult(BaseModel):
    """
    Complete validation outcome of a workflow.

    Attributes:
        is_valid: All actions valid, data flow valid and no global errors
        action_results: Per-action results keyed by action ID
        data_flow_result: Cycles, unresolved references, type issues, orphans
        global_errors: Structural errors not tied to one parameter
        warnings: Advisory messages (never affect is_valid)
        dependency_graph: Data-dependency graph the analysis ran on
    """

    is_valid: bool
    action_results: dict[str, ActionValidationResult] = Field(default_factory=dict)
    data_flow_result: DataFlowValidationResult = Field(default_factory=DataFlowValidationResult)
    global_errors: list[ValidationError] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    dependency_graph: DependencyGraph = Field(default_factory=DependencyGraph)

    def issues(self) -> list[ValidationError]:
        """Every issue of the run: global, per-action, then data-flow."""
        issues = list(self.global_errors)
        for action_result in self.action_results.values():
            issues.extend(action_result.issues())
        issues.extend(self.data_flow_result.issues())
        return issues

    def all_errors(self) -> list[ValidationError]:
        """Blocking issues only."""
        return [issue for issue in self.issues() if issue.is_blocking]


# =============================================================================
# Execution results
# =============================================================================


class ExecutionReadinessStatus(BaseModel):
    """Four readiness checks worth 25 points each."""

    parameters_configured: bool
    data_flow_valid: bool
    no_circular_dependencies: bool
    all_actions_valid: bool
    readiness_score: int = Field(ge=0, le=100)
    readiness_message: str


class ExecutionValidationResult(BaseModel):
    """Outcome of a pre-execution validation run."""

    can_execute: bool
    validation_result: WorkflowValidationResult
    readiness: ExecutionReadinessStatus
    blocking_errors: list[ValidationError] = Field(default_factory=list)
    warnings: list[ValidationError] = Field(default_factory=list)
    estimated_gas_cost: int | None = None
    estimated_execution_time: int | None = Field(
        default=None, description="Estimated execution time in milliseconds"
    )


class QuickCheckResult(BaseModel):
    """Cheap presence-only check for responsive UIs."""

    is_valid: bool
    error_count: int = 0
    warning_count: int = 0


class ActionExecutionCheck(BaseModel):
    """Execution gate for a single action."""

    can_execute: bool
    errors: list[ValidationError] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
