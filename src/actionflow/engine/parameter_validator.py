"""
Per-parameter validation against action metadata.

Validation of one value runs in a fixed order and each step only runs when
the previous one let the value through:

    1. Emptiness     absent / None / "" / whitespace-only
    2. Reference     "<actionId>.<output>" values are deferred to the
                     workflow validator
    3. Type          decode into a typed variant (engine/values.py)
    4. Constraints   type defaults merged with descriptor constraints
    5. Custom        named validator from the registry

Missing required parameters on an action the user has not touched yet are not
reported unless ``skip_user_interaction_check`` is set, so that freshly
dropped actions do not light up with errors.
"""

import logging
import math
import re
from decimal import Decimal
from typing import Any

from .config import ValidatorSettings
from .references import is_parameter_reference
from .results import (
    ActionValidationResult,
    ParameterValidationResult,
    ValidationContext,
    ValidationOptions,
)
from .rules import (
    ValidationOutcome,
    ValidatorRegistry,
    create_default_registry,
    evaluate_action_rules,
)
from .schema import (
    ActionMetadata,
    ParameterConstraints,
    ParameterDescriptor,
    ParameterType,
    ValidationError,
    ValidationErrorType,
)
from .values import (
    UFIX64_MAX,
    DecodedValue,
    UFix64Value,
    ValueDecodeError,
    decode_value,
    is_empty,
    length_of,
    numeric_value,
)

logger = logging.getLogger(__name__)


def missing_required_message(param: str) -> str:
    return f"{param} is required and must be provided"


def invalid_type_message(param: str, expected: str, actual: str) -> str:
    return f"{param} expects {expected} but received {actual}"


def invalid_format_message(param: str, format_name: str) -> str:
    return f"{param} must be in {format_name} format"


def out_of_range_message(param: str, low: Any, high: Any) -> str:
    if low is not None and high is not None:
        return f"{param} must be between {_format_number(low)} and {_format_number(high)}"
    if low is not None:
        return f"{param} must be at least {_format_number(low)}"
    return f"{param} must be at most {_format_number(high)}"


def pattern_mismatch_message(param: str, pattern: str) -> str:
    return f"{param} does not match required pattern: {pattern}"


def enum_violation_message(param: str, options: list[Any]) -> str:
    return f"{param} must be one of: {', '.join(str(option) for option in options)}"


def custom_validation_message(param: str, message: str) -> str:
    return f"{param}: {message}"


def _format_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _to_decimal(value: float) -> Decimal:
    return Decimal(repr(value))


def is_allowed_option(raw: Any, options: list[Any]) -> bool:
    """Exact membership: equal value and identical type, so True never matches 1."""
    return any(type(raw) is type(option) and raw == option for option in options)


def has_user_interaction(values: dict[str, Any]) -> bool:
    """
    Check if the user has started configuring an action.

    Any non-blank string, any bool, any number that is not NaN, or any other
    non-None value counts as interaction.
    """
    for value in values.values():
        if isinstance(value, str):
            if value.strip() != "":
                return True
        elif isinstance(value, bool):
            return True
        elif isinstance(value, int | float):
            if not (isinstance(value, float) and math.isnan(value)):
                return True
        elif value is not None:
            return True
    return False


def default_constraints(
    parameter_type: ParameterType, settings: ValidatorSettings
) -> ParameterConstraints | None:
    """Constraints every parameter of a type gets unless its descriptor overrides them."""
    if parameter_type == ParameterType.UFIX64:
        return ParameterConstraints(
            min=0, decimals=settings.ufix64_decimals, meaningful_min=1e-8
        )
    if parameter_type == ParameterType.STRING:
        return ParameterConstraints(max_length=1000)
    if parameter_type in (ParameterType.ARRAY, ParameterType.DICTIONARY):
        return ParameterConstraints(max_length=100)
    return None


class ParameterValidator:
    """
    Validates parameter values against ``ParameterDescriptor`` records.

    Example:
        validator = ParameterValidator()
        result = validator.validate_all_parameters(metadata, {"amount": "10.5"})
        if not result.is_valid:
            print(result.missing_parameters, list(result.invalid_parameters))
    """

    def __init__(
        self,
        registry: ValidatorRegistry | None = None,
        settings: ValidatorSettings | None = None,
    ):
        self.registry = registry or create_default_registry()
        self.settings = settings or ValidatorSettings()

    def validate_parameter(
        self,
        descriptor: ParameterDescriptor,
        value: Any,
        context: ValidationContext | None = None,
    ) -> ParameterValidationResult:
        """
        Validate a single parameter value.

        Args:
            descriptor: Parameter descriptor from action metadata
            value: Raw value from the value bag (None when absent)
            context: Workflow context, passed through to custom validators

        Returns:
            ParameterValidationResult (never raises for bad values)
        """
        name = descriptor.name

        if is_empty(value):
            if descriptor.required:
                return ParameterValidationResult(
                    parameter_name=name,
                    value=value,
                    is_valid=False,
                    errors=[
                        ValidationError(
                            type=ValidationErrorType.MISSING_REQUIRED,
                            message=missing_required_message(name),
                            field=name,
                        )
                    ],
                )
            return ParameterValidationResult(parameter_name=name, value=value, is_valid=True)

        if is_parameter_reference(value):
            return ParameterValidationResult(
                parameter_name=name, value=value, is_valid=True, is_reference=True
            )

        errors: list[ValidationError] = []
        warnings: list[str] = []
        suggestions: list[str] = []

        parameter_type = descriptor.parameter_type
        try:
            decoded = decode_value(parameter_type, value, descriptor.type)
        except ValueDecodeError as e:
            if e.error_type == ValidationErrorType.INVALID_FORMAT:
                message = invalid_format_message(name, e.expected)
            else:
                message = invalid_type_message(name, e.expected, e.actual)
            errors.append(
                ValidationError(
                    type=e.error_type, message=message, field=name, suggestion=e.suggestion
                )
            )
            if e.suggestion:
                suggestions.append(e.suggestion)
            return ParameterValidationResult(
                parameter_name=name,
                value=value,
                is_valid=False,
                errors=errors,
                suggestions=suggestions,
            )

        constraints = self._effective_constraints(descriptor)
        self._check_constraints(
            name, parameter_type, value, decoded, constraints, errors, warnings
        )

        if descriptor.validator:
            self._run_custom_validator(
                descriptor.validator, name, value, context, errors, warnings, suggestions
            )

        return ParameterValidationResult(
            parameter_name=name,
            value=value,
            is_valid=not any(error.is_blocking for error in errors),
            errors=errors,
            warnings=warnings,
            suggestions=suggestions,
        )

    def validate_all_parameters(
        self,
        metadata: ActionMetadata,
        values: dict[str, Any],
        context: ValidationContext | None = None,
        options: ValidationOptions | None = None,
    ) -> ActionValidationResult:
        """
        Validate every parameter of one action.

        Args:
            metadata: Action metadata with parameter descriptors
            values: The action's raw value bag
            context: Workflow context (its current action ID names the result)
            options: Validation switches

        Returns:
            ActionValidationResult
        """
        options = options or ValidationOptions()
        action_id = context.current_action.id if context else metadata.id
        report_missing = options.skip_user_interaction_check or has_user_interaction(values)

        missing: list[str] = []
        invalid: dict[str, ParameterValidationResult] = {}
        warnings: list[str] = []

        for descriptor in metadata.parameters:
            value = values.get(descriptor.name)
            if is_empty(value):
                if descriptor.required and report_missing:
                    missing.append(descriptor.name)
                continue

            result = self.validate_parameter(descriptor, value, context)
            if not result.is_valid:
                invalid[descriptor.name] = result
            warnings.extend(result.warnings)

        if metadata.validation_rules and report_missing:
            warnings.extend(evaluate_action_rules(metadata.validation_rules, values, self.registry))

        return ActionValidationResult(
            action_id=action_id,
            is_valid=not missing and not invalid,
            missing_parameters=missing,
            invalid_parameters=invalid,
            warnings=warnings,
        )

    def _effective_constraints(self, descriptor: ParameterDescriptor) -> ParameterConstraints:
        defaults = default_constraints(descriptor.parameter_type, self.settings)
        explicit = descriptor.constraints or ParameterConstraints()
        merged = explicit.merged_over(defaults)
        if merged.enum is None and descriptor.options:
            merged = merged.model_copy(update={"enum": list(descriptor.options)})
        return merged

    def _check_constraints(
        self,
        name: str,
        parameter_type: ParameterType,
        raw: Any,
        decoded: DecodedValue,
        constraints: ParameterConstraints,
        errors: list[ValidationError],
        warnings: list[str],
    ) -> None:
        number = numeric_value(decoded)
        if number is not None:
            low = constraints.min
            high: Any = constraints.max
            if high is None and parameter_type == ParameterType.UFIX64:
                high = UFIX64_MAX
            below = low is not None and number < _to_decimal(low)
            above = high is not None and number > (
                high if isinstance(high, Decimal) else _to_decimal(high)
            )
            if below or above:
                errors.append(
                    ValidationError(
                        type=ValidationErrorType.OUT_OF_RANGE,
                        message=out_of_range_message(name, low, high),
                        field=name,
                    )
                )

        length = length_of(decoded)
        if length is not None:
            unit = "characters long" if isinstance(raw, str) else "items"
            if constraints.min_length is not None and length < constraints.min_length:
                errors.append(
                    ValidationError(
                        type=ValidationErrorType.OUT_OF_RANGE,
                        message=f"{name} must be at least {constraints.min_length} {unit}",
                        field=name,
                    )
                )
            if constraints.max_length is not None and length > constraints.max_length:
                errors.append(
                    ValidationError(
                        type=ValidationErrorType.OUT_OF_RANGE,
                        message=f"{name} must be at most {constraints.max_length} {unit}",
                        field=name,
                    )
                )

        if constraints.pattern and isinstance(raw, str):
            try:
                matched = re.fullmatch(constraints.pattern, raw) is not None
            except re.error as e:
                logger.warning(f"Invalid pattern for parameter '{name}': {e}")
                warnings.append(f"{name} has an invalid validation pattern and was not checked")
            else:
                if not matched:
                    errors.append(
                        ValidationError(
                            type=ValidationErrorType.PATTERN_MISMATCH,
                            message=pattern_mismatch_message(name, constraints.pattern),
                            field=name,
                        )
                    )

        if constraints.enum is not None and not is_allowed_option(raw, constraints.enum):
            errors.append(
                ValidationError(
                    type=ValidationErrorType.ENUM_VIOLATION,
                    message=enum_violation_message(name, constraints.enum),
                    field=name,
                    suggestion=f"Valid options: {', '.join(str(o) for o in constraints.enum)}",
                )
            )

        if isinstance(decoded, UFix64Value):
            if constraints.decimals is not None and decoded.decimal_places > constraints.decimals:
                warnings.append(f"{name} has more than {constraints.decimals} decimal places")
            if decoded.value == 0:
                warnings.append(f"{name} is zero")
            elif (
                constraints.meaningful_min is not None
                and decoded.value < _to_decimal(constraints.meaningful_min)
            ):
                warnings.append(
                    f"{name} is below the smallest meaningful amount "
                    f"({_format_number(constraints.meaningful_min)})"
                )

    def _run_custom_validator(
        self,
        validator_name: str,
        name: str,
        value: Any,
        context: ValidationContext | None,
        errors: list[ValidationError],
        warnings: list[str],
        suggestions: list[str],
    ) -> None:
        if not self.registry.has(validator_name):
            logger.warning(f"Unknown custom validator '{validator_name}' on parameter '{name}'")
            warnings.append(
                custom_validation_message(name, f"Unknown custom validator: {validator_name}")
            )
            return

        failure: str | None = None
        try:
            outcome = self.registry.get(validator_name).validate(value, context)
        except Exception as e:
            logger.warning(f"Custom validator '{validator_name}' raised on '{name}': {e}")
            failure = f"Custom validator '{validator_name}' failed: {e}"
        else:
            if not isinstance(outcome, ValidationOutcome):
                logger.warning(
                    f"Custom validator '{validator_name}' returned "
                    f"{type(outcome).__name__} for '{name}'"
                )
                failure = (
                    f"Custom validator '{validator_name}' returned an invalid result "
                    f"({type(outcome).__name__})"
                )

        if failure is not None:
            errors.append(
                ValidationError(
                    type=ValidationErrorType.CUSTOM_VALIDATION,
                    message=custom_validation_message(name, failure),
                    field=name,
                )
            )
            return

        for error in outcome.errors:
            if error.field is None:
                error = error.model_copy(update={"field": name})
            errors.append(error)
        warnings.extend(outcome.warnings)
        suggestions.extend(outcome.suggestions)
