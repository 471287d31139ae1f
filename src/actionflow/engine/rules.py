"""
Named custom validators, condition predicates and action-level rules.

Action metadata refers to behaviour by name only: a parameter descriptor may
name a custom validator (``validator: positive_amount``) and an action's
``validation_rules`` may name condition predicates. The names are resolved
through a ``ValidatorRegistry`` that callers populate with strategy objects,
so metadata stays plain data and business rules stay outside the engine.
"""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any, ClassVar
from urllib.parse import urlparse

from pydantic import BaseModel, Field, PrivateAttr

from .results import ValidationContext
from .schema import ActionValidationRules, ValidationError, ValidationErrorType
from .values import is_empty

logger = logging.getLogger(__name__)


class ValidationOutcome(BaseModel):
    """What a custom validator reports; merged verbatim into the parameter result."""

    is_valid: bool = True
    errors: list[ValidationError] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)

    @classmethod
    def failed(cls, message: str, suggestion: str | None = None) -> "ValidationOutcome":
        """Outcome with a single CUSTOM_VALIDATION error."""
        return cls(
            is_valid=False,
            errors=[
                ValidationError(
                    type=ValidationErrorType.CUSTOM_VALIDATION,
                    message=message,
                    suggestion=suggestion,
                )
            ],
            suggestions=[suggestion] if suggestion else [],
        )


class CustomValidator(ABC):
    """Base class for named parameter validators.

    Subclasses set ``name`` and implement ``validate()``. The value passed in
    is never empty and never a parameter reference.

    Example:
        class EvenValidator(CustomValidator):
            name = "even"

            def validate(self, value, context):
                if int(value) % 2:
                    return ValidationOutcome.failed("Value must be even")
                return ValidationOutcome()
    """

    name: ClassVar[str]

    @abstractmethod
    def validate(self, value: Any, context: ValidationContext | None) -> ValidationOutcome:
        """Validate a raw parameter value."""


class ConditionPredicate(ABC):
    """Decides whether a conditional requirement applies to an action's values."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def applies(self, values: dict[str, Any]) -> bool:
        """Check the action's raw value bag."""


class ParameterProvided(ConditionPredicate):
    """Applies when the given parameter holds a non-empty value."""

    def __init__(self, parameter: str, name: str | None = None):
        super().__init__(name or f"{parameter}_provided")
        self.parameter = parameter

    def applies(self, values: dict[str, Any]) -> bool:
        return not is_empty(values.get(self.parameter))


# -----------------------------------------------------------------------------
# Built-in validators
# -----------------------------------------------------------------------------


class PositiveAmountValidator(CustomValidator):
    name = "positive_amount"

    def validate(self, value: Any, context: ValidationContext | None) -> ValidationOutcome:
        if isinstance(value, bool):
            return ValidationOutcome.failed("Amount must be a number")
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            return ValidationOutcome.failed("Amount must be a number")
        if not amount.is_finite() or amount <= 0:
            return ValidationOutcome.failed(
                "Amount must be greater than zero", suggestion="Enter an amount above 0"
            )
        return ValidationOutcome()


class NonBlankValidator(CustomValidator):
    """Rejects empty lists and dictionaries, which otherwise satisfy "required"."""

    name = "non_blank"

    def validate(self, value: Any, context: ValidationContext | None) -> ValidationOutcome:
        if isinstance(value, list | dict | tuple) and len(value) == 0:
            return ValidationOutcome.failed("Value must not be empty")
        if isinstance(value, str) and not value.strip():
            return ValidationOutcome.failed("Value must not be blank")
        return ValidationOutcome()


class UriValidator(CustomValidator):
    name = "uri"

    # Content-addressed schemes carry no network location
    PATH_SCHEMES: ClassVar[frozenset[str]] = frozenset({"ipfs", "ar"})

    def validate(self, value: Any, context: ValidationContext | None) -> ValidationOutcome:
        suggestion = "Use a full URI such as https://example.com/metadata.json or ipfs://<cid>"
        if not isinstance(value, str):
            return ValidationOutcome.failed("Value must be a URI", suggestion=suggestion)
        parsed = urlparse(value.strip())
        if not parsed.scheme:
            return ValidationOutcome.failed("Value must be a URI", suggestion=suggestion)
        if parsed.scheme in self.PATH_SCHEMES:
            if parsed.netloc or parsed.path:
                return ValidationOutcome()
        elif parsed.netloc:
            return ValidationOutcome()
        return ValidationOutcome.failed("Value must be a URI", suggestion=suggestion)


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------


class ValidatorRegistry(BaseModel):
    """
    Registry of custom validators and condition predicates.

    Maps names used in action metadata to strategy instances.
    """

    model_config = {"arbitrary_types_allowed": True}

    _validators: dict[str, CustomValidator] = PrivateAttr(default_factory=dict)
    _predicates: dict[str, ConditionPredicate] = PrivateAttr(default_factory=dict)

    def register(self, validator: CustomValidator) -> None:
        """Register validator using validator.name as key."""
        if validator.name in self._validators:
            raise ValueError(f"Validator already registered: {validator.name}")
        self._validators[validator.name] = validator

    def register_predicate(self, predicate: ConditionPredicate) -> None:
        """Register predicate using predicate.name as key."""
        if predicate.name in self._predicates:
            raise ValueError(f"Predicate already registered: {predicate.name}")
        self._predicates[predicate.name] = predicate

    def get(self, name: str) -> CustomValidator:
        """Get validator by name."""
        if name not in self._validators:
            available = list(self._validators.keys())
            raise ValueError(f"Unknown validator: {name}. Available: {available}")
        return self._validators[name]

    def get_predicate(self, name: str) -> ConditionPredicate:
        """Get predicate by name."""
        if name not in self._predicates:
            available = list(self._predicates.keys())
            raise ValueError(f"Unknown predicate: {name}. Available: {available}")
        return self._predicates[name]

    def has(self, name: str) -> bool:
        """Check if a validator is registered."""
        return name in self._validators

    def has_predicate(self, name: str) -> bool:
        """Check if a predicate is registered."""
        return name in self._predicates

    def list_names(self) -> list[str]:
        """List registered validator names."""
        return list(self._validators.keys())


def create_default_registry() -> ValidatorRegistry:
    """Create ValidatorRegistry with the built-in validators registered.

    Example:
        registry = create_default_registry()
        registry.register_predicate(ParameterProvided("deadline"))
        validator = WorkflowValidator(registry=registry)
    """
    registry = ValidatorRegistry()
    registry.register(PositiveAmountValidator())
    registry.register(NonBlankValidator())
    registry.register(UriValidator())
    return registry


# -----------------------------------------------------------------------------
# Action-level rules
# -----------------------------------------------------------------------------


def evaluate_action_rules(
    rules: ActionValidationRules, values: dict[str, Any], registry: ValidatorRegistry
) -> list[str]:
    """
    Evaluate an action's rules against its value bag.

    Every finding is advisory and returned as a warning message.
    """
    warnings: list[str] = []

    for group in rules.required_parameter_groups:
        if group and all(is_empty(values.get(name)) for name in group):
            warnings.append(f"At least one of {', '.join(group)} must be provided")

    for group in rules.mutually_exclusive:
        present = [name for name in group if not is_empty(values.get(name))]
        if len(present) > 1:
            warnings.append(
                f"Only one of {', '.join(group)} should be provided (got {', '.join(present)})"
            )

    for requirement in rules.conditional_requirements:
        if not registry.has_predicate(requirement.when):
            warnings.append(f"Unknown condition predicate: {requirement.when}")
            continue
        try:
            applies = registry.get_predicate(requirement.when).applies(values)
        except Exception as e:
            logger.warning(f"Condition predicate '{requirement.when}' raised: {e}")
            warnings.append(f"Condition predicate '{requirement.when}' failed: {e}")
            continue
        if not applies:
            continue
        missing = [name for name in requirement.required_parameters if is_empty(values.get(name))]
        if missing or not requirement.required_parameters:
            warnings.append(requirement.message)

    return warnings
