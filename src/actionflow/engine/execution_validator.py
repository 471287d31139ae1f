"""
Pre-execution validation with caching and a readiness score.

ExecutionValidator wraps WorkflowValidator for the moment a user presses
"run": it reports every missing required parameter (no interaction gating by
default), splits issues into blocking errors and warnings, scores readiness
and attaches gas/time estimates. Results are cached per validator instance.
"""

import logging
import math
import time
from collections.abc import Callable
from typing import Any

from .cache import ValidationCache, cache_key
from .config import ValidatorSettings
from .estimation import GasEstimator, TimeEstimator, estimate_execution_time, estimate_gas
from .parameter_validator import has_user_interaction
from .results import (
    ActionExecutionCheck,
    ExecutionReadinessStatus,
    ExecutionValidationResult,
    QuickCheckResult,
    ValidationContext,
    ValidationOptions,
    WorkflowValidationResult,
)
from .rules import ValidatorRegistry
from .schema import (
    Action,
    ActionMetadata,
    ActionOutput,
    ValidationError,
    ValidationErrorType,
    Workflow,
)
from .values import is_empty
from .workflow_validator import WorkflowValidator, values_for

logger = logging.getLogger(__name__)


def readiness_message(score: float) -> str:
    """Readiness band for a 0-100 score."""
    if score >= 100:
        return "Workflow is ready for execution"
    if score >= 75:
        return "Workflow is mostly ready, minor issues remain"
    if score >= 50:
        return "Workflow needs configuration before execution"
    return "Workflow requires significant configuration"


def analyze_readiness(
    workflow: Workflow,
    validation: WorkflowValidationResult,
    parameter_values: dict[str, dict[str, Any]],
) -> ExecutionReadinessStatus:
    """
    Score execution readiness with four checks worth 25 points each.

    - Required parameters (declared on the workflow actions) that hold a value
    - Data flow validity
    - Absence of circular dependencies
    - Share of actions whose parameter validation passed
    """
    score = 0.0

    total_required = 0
    configured = 0
    for action in workflow.actions:
        values = values_for(parameter_values, action.id)
        for parameter in action.required_parameters:
            total_required += 1
            if not is_empty(values.get(parameter.name)):
                configured += 1

    if total_required > 0:
        score += configured / total_required * 25
        parameters_configured = configured == total_required
    else:
        score += 25
        parameters_configured = True

    data_flow_valid = validation.data_flow_result.is_valid
    if data_flow_valid:
        score += 25

    no_cycles = not validation.data_flow_result.circular_dependencies
    if no_cycles:
        score += 25

    if workflow.actions:
        valid_actions = sum(1 for result in validation.action_results.values() if result.is_valid)
        score += valid_actions / len(workflow.actions) * 25
        all_actions_valid = valid_actions == len(workflow.actions)
    else:
        all_actions_valid = True

    return ExecutionReadinessStatus(
        parameters_configured=parameters_configured,
        data_flow_valid=data_flow_valid,
        no_circular_dependencies=no_cycles,
        all_actions_valid=all_actions_valid,
        readiness_score=min(100, math.floor(score + 0.5)),
        readiness_message=readiness_message(score),
    )


def categorize_issues(
    validation: WorkflowValidationResult,
) -> tuple[list[ValidationError], list[ValidationError]]:
    """Split every issue of a validation run into (blocking errors, warnings)."""
    blocking: list[ValidationError] = []
    warnings: list[ValidationError] = []
    for issue in validation.issues():
        if issue.is_blocking:
            blocking.append(issue)
        else:
            warnings.append(issue)
    return blocking, warnings


class ExecutionValidator:
    """
    Validates workflows for execution and caches the outcome.

    Example:
        validator = ExecutionValidator(settings=ValidatorSettings.from_env())
        result = validator.validate_for_execution(workflow, metadata_by_type, values)
        if result.can_execute:
            submit(workflow)
        else:
            show(result.blocking_errors, result.readiness.readiness_message)
    """

    def __init__(
        self,
        workflow_validator: WorkflowValidator | None = None,
        registry: ValidatorRegistry | None = None,
        settings: ValidatorSettings | None = None,
        gas_estimator: GasEstimator | None = estimate_gas,
        time_estimator: TimeEstimator | None = estimate_execution_time,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings or ValidatorSettings()
        self.workflow_validator = workflow_validator or WorkflowValidator(
            registry=registry, settings=self.settings
        )
        self.gas_estimator = gas_estimator
        self.time_estimator = time_estimator
        self.cache = ValidationCache(
            ttl_seconds=self.settings.cache_ttl_seconds,
            max_entries=self.settings.cache_max_entries,
            clock=clock,
        )

    def validate_for_execution(
        self,
        workflow: Workflow,
        action_metadata: dict[str, ActionMetadata],
        parameter_values: dict[str, dict[str, Any]],
        options: ValidationOptions | None = None,
    ) -> ExecutionValidationResult:
        """
        Validate a workflow for execution, using the cache when possible.

        Args:
            workflow: Action graph
            action_metadata: ``action_type -> ActionMetadata``
            parameter_values: ``action_id -> {parameter_name -> raw value}``
            options: Validation switches (defaults to reporting every missing
                required parameter)

        Returns:
            ExecutionValidationResult
        """
        options = options or ValidationOptions(skip_user_interaction_check=True)
        key = cache_key(workflow, action_metadata, parameter_values)
        key = f"{key}-{int(options.skip_user_interaction_check)}"

        cached = self.cache.get(key)
        if cached is not None:
            return cached

        validation = self.workflow_validator.validate_workflow(
            workflow, action_metadata, parameter_values, options
        )
        readiness = analyze_readiness(workflow, validation, parameter_values)
        blocking, warnings = categorize_issues(validation)

        result = ExecutionValidationResult(
            can_execute=validation.is_valid and not blocking,
            validation_result=validation,
            readiness=readiness,
            blocking_errors=blocking,
            warnings=warnings,
            estimated_gas_cost=self._estimate_gas(workflow, action_metadata),
            estimated_execution_time=self._estimate_time(workflow),
        )

        logger.info(
            f"Execution validation: can_execute={result.can_execute}, "
            f"readiness={readiness.readiness_score}, {len(blocking)} blocking errors"
        )

        self.cache.set(key, result)
        return result

    def quick_check(
        self, workflow: Workflow, parameter_values: dict[str, dict[str, Any]]
    ) -> QuickCheckResult:
        """
        Presence-only check for responsive UIs.

        Counts empty required parameters on actions the user has started
        configuring, plus one error for an empty workflow. No graph or type
        analysis.
        """
        error_count = 0

        for action in workflow.actions:
            values = values_for(parameter_values, action.id)
            if not has_user_interaction(values):
                continue
            for parameter in action.required_parameters:
                if is_empty(values.get(parameter.name)):
                    error_count += 1

        if not workflow.actions:
            error_count += 1

        return QuickCheckResult(is_valid=error_count == 0, error_count=error_count, warning_count=0)

    def validate_action_for_execution(
        self,
        action: Action,
        metadata: ActionMetadata,
        parameter_values: dict[str, Any],
        available_outputs: dict[str, ActionOutput] | None = None,
        options: ValidationOptions | None = None,
    ) -> ActionExecutionCheck:
        """Execution gate for a single action."""
        options = options or ValidationOptions(skip_user_interaction_check=True)
        context = ValidationContext(
            workflow=Workflow(actions=[action]),
            current_action=action,
            available_outputs=available_outputs or {},
        )
        result = self.workflow_validator.validate_action(
            action, metadata, parameter_values, context, options
        )

        errors = [
            ValidationError(
                type=ValidationErrorType.MISSING_REQUIRED,
                message=f"{name} is required for execution",
                field=name,
                action_id=action.id,
            )
            for name in result.missing_parameters
        ]
        for parameter_result in result.invalid_parameters.values():
            errors.extend(parameter_result.errors)

        return ActionExecutionCheck(
            can_execute=result.is_valid, errors=errors, warnings=result.warnings
        )

    def clear_cache(self) -> None:
        """Drop every cached result."""
        self.cache.clear()

    def clear_expired_cache(self) -> int:
        """Drop expired cached results."""
        return self.cache.clear_expired()

    def _estimate_gas(
        self, workflow: Workflow, action_metadata: dict[str, ActionMetadata]
    ) -> int | None:
        if self.gas_estimator is None:
            return None
        try:
            return self.gas_estimator(workflow, action_metadata)
        except Exception as e:
            logger.warning(f"Gas estimation failed: {e}")
            return None

    def _estimate_time(self, workflow: Workflow) -> int | None:
        if self.time_estimator is None:
            return None
        try:
            return self.time_estimator(workflow)
        except Exception as e:
            logger.warning(f"Execution time estimation failed: {e}")
            return None
