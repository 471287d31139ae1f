"""Tests for per-parameter and per-action validation."""

from typing import Any

import pytest

from actionflow.engine import (
    ActionMetadata,
    ParameterConstraints,
    ParameterDescriptor,
    ParameterValidator,
    ValidationErrorType,
    ValidationOptions,
    ValidationOutcome,
    create_default_registry,
    has_user_interaction,
)
from actionflow.engine.parameter_validator import is_allowed_option
from actionflow.engine.rules import CustomValidator


def descriptor(
    name: str = "amount", type_name: str = "UFix64", **kwargs: Any
) -> ParameterDescriptor:
    return ParameterDescriptor(name=name, type=type_name, **kwargs)


@pytest.fixture
def validator() -> ParameterValidator:
    return ParameterValidator()


class TestEmptyValues:
    """Required/optional symmetry for empty values."""

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_required_empty_is_missing(self, validator: ParameterValidator, value: Any) -> None:
        """Empty required values produce exactly one MISSING_REQUIRED error."""
        result = validator.validate_parameter(descriptor(required=True), value)
        assert not result.is_valid
        assert [e.type for e in result.errors] == [ValidationErrorType.MISSING_REQUIRED]
        assert result.errors[0].message == "amount is required and must be provided"

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_optional_empty_is_valid(self, validator: ParameterValidator, value: Any) -> None:
        """Empty optional values are valid and skip every other check."""
        result = validator.validate_parameter(descriptor(type_name="Address"), value)
        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_empty_container_satisfies_required(self, validator: ParameterValidator) -> None:
        """An empty list is a present value for a required array."""
        result = validator.validate_parameter(
            descriptor("recipients", "[Address]", required=True), []
        )
        assert result.is_valid


class TestReferences:
    """Reference values are passed through."""

    def test_reference_is_deferred(self, validator: ParameterValidator) -> None:
        """A reference skips type checks even on numeric parameters."""
        result = validator.validate_parameter(descriptor(required=True), "swap.amountOut")
        assert result.is_valid
        assert result.is_reference
        assert result.errors == []

    def test_decimal_string_is_literal(self, validator: ParameterValidator) -> None:
        """A decimal string is type checked as a literal."""
        result = validator.validate_parameter(descriptor(), "123.45")
        assert result.is_valid
        assert not result.is_reference


class TestUFix64Parameters:
    """Errors and advisory warnings for UFix64."""

    @pytest.mark.parametrize("value", [0, "0", 1e-8, "  123.45  "])
    def test_accepts_edge_values(self, validator: ParameterValidator, value: Any) -> None:
        """Zero, the smallest unit and padded strings are valid."""
        assert validator.validate_parameter(descriptor(required=True), value).is_valid

    @pytest.mark.parametrize("value", [-1, float("nan"), float("inf"), True, [123], {}])
    def test_rejects_as_invalid_type(self, validator: ParameterValidator, value: Any) -> None:
        """Negatives, non-finite numbers, booleans and containers are INVALID_TYPE."""
        result = validator.validate_parameter(descriptor(required=True), value)
        assert not result.is_valid
        assert [e.type for e in result.errors] == [ValidationErrorType.INVALID_TYPE]
        assert result.errors[0].field == "amount"
        assert result.suggestions == ["UFix64 values must be positive decimal numbers"]

    def test_type_error_message(self, validator: ParameterValidator) -> None:
        """The message names the expected and received types."""
        result = validator.validate_parameter(descriptor(), True)
        assert result.errors[0].message == "amount expects UFix64 but received boolean"

    def test_zero_warns(self, validator: ParameterValidator) -> None:
        """Exactly zero is valid with a warning."""
        result = validator.validate_parameter(descriptor(), "0")
        assert result.is_valid
        assert result.warnings == ["amount is zero"]

    def test_too_many_decimals_warns(self, validator: ParameterValidator) -> None:
        """More than eight decimal places is advisory."""
        result = validator.validate_parameter(descriptor(), "1.123456789")
        assert result.is_valid
        assert result.warnings == ["amount has more than 8 decimal places"]

    def test_below_meaningful_minimum_warns(self, validator: ParameterValidator) -> None:
        """Positive dust below the smallest unit is advisory."""
        result = validator.validate_parameter(descriptor(), "0.000000001")
        assert result.is_valid
        assert "amount is below the smallest meaningful amount (1e-08)" in result.warnings

    def test_above_type_maximum(self, validator: ParameterValidator) -> None:
        """Values above the UFix64 range are OUT_OF_RANGE."""
        result = validator.validate_parameter(descriptor(), "184467440738")
        assert [e.type for e in result.errors] == [ValidationErrorType.OUT_OF_RANGE]

    def test_descriptor_range(self, validator: ParameterValidator) -> None:
        """Descriptor min/max override the type defaults."""
        ranged = descriptor(constraints=ParameterConstraints(min=1, max=10))
        assert validator.validate_parameter(ranged, "5").is_valid
        result = validator.validate_parameter(ranged, "0.5")
        assert result.errors[0].type == ValidationErrorType.OUT_OF_RANGE
        assert result.errors[0].message == "amount must be between 1 and 10"


class TestAddressParameters:
    """Address format errors carry shape hints."""

    def test_valid_address(self, validator: ParameterValidator) -> None:
        """A well-formed address is valid."""
        result = validator.validate_parameter(
            descriptor("recipient", "Address"), "0x1234567890abcdef"
        )
        assert result.is_valid

    def test_missing_prefix(self, validator: ParameterValidator) -> None:
        """A bare hex string is INVALID_FORMAT with a prefix suggestion."""
        result = validator.validate_parameter(
            descriptor("recipient", "Address"), "1234567890abcdef"
        )
        error = result.errors[0]
        assert error.type == ValidationErrorType.INVALID_FORMAT
        assert error.message == "recipient must be in Flow address (0x...) format"
        assert "0x prefix" in (error.suggestion or "")


class TestConstraints:
    """Pattern, enum and length constraints."""

    def test_enum_is_case_sensitive(self, validator: ParameterValidator) -> None:
        """Membership is exact; the message lists the options."""
        token = descriptor("token", "String", options=["FLOW", "USDC"])
        assert validator.validate_parameter(token, "FLOW").is_valid
        result = validator.validate_parameter(token, "flow")
        assert result.errors[0].type == ValidationErrorType.ENUM_VIOLATION
        assert result.errors[0].message == "token must be one of: FLOW, USDC"

    def test_enum_never_trims(self, validator: ParameterValidator) -> None:
        """Padded candidates are not members."""
        token = descriptor("token", "String", options=["FLOW"])
        assert not validator.validate_parameter(token, " FLOW").is_valid

    def test_enum_compares_types(self, validator: ParameterValidator) -> None:
        """Numeric options only match values of the same type."""
        tier = descriptor("tier", "Int", constraints=ParameterConstraints(enum=[1, 2]))
        assert validator.validate_parameter(tier, 1).is_valid
        result = validator.validate_parameter(tier, 1.0)
        assert [e.type for e in result.errors] == [ValidationErrorType.ENUM_VIOLATION]
        assert not is_allowed_option(True, [1])
        assert is_allowed_option("FLOW", ["FLOW"])

    def test_pattern_mismatch(self, validator: ParameterValidator) -> None:
        """Patterns must match the whole value."""
        symbol = descriptor(
            "symbol", "String", constraints=ParameterConstraints(pattern="[A-Z]{3,5}")
        )
        assert validator.validate_parameter(symbol, "FLOW").is_valid
        result = validator.validate_parameter(symbol, "FLOWX1")
        assert result.errors[0].type == ValidationErrorType.PATTERN_MISMATCH

    def test_invalid_pattern_is_a_warning(self, validator: ParameterValidator) -> None:
        """A broken regex in metadata does not fail the value."""
        broken = descriptor("memo", "String", constraints=ParameterConstraints(pattern="[a-"))
        result = validator.validate_parameter(broken, "hello")
        assert result.is_valid
        assert len(result.warnings) == 1

    def test_string_length(self, validator: ParameterValidator) -> None:
        """Length bounds apply to strings."""
        memo = descriptor("memo", "String", constraints=ParameterConstraints(min_length=3))
        result = validator.validate_parameter(memo, "hi")
        assert result.errors[0].message == "memo must be at least 3 characters long"

    def test_default_string_length_cap(self, validator: ParameterValidator) -> None:
        """Strings default to at most 1000 characters."""
        result = validator.validate_parameter(descriptor("memo", "String"), "x" * 1001)
        assert result.errors[0].type == ValidationErrorType.OUT_OF_RANGE

    def test_array_length(self, validator: ParameterValidator) -> None:
        """Length bounds on containers count items."""
        recipients = descriptor(
            "recipients", "[Address]", constraints=ParameterConstraints(max_length=2)
        )
        result = validator.validate_parameter(recipients, ["a", "b", "c"])
        assert result.errors[0].message == "recipients must be at most 2 items"


class ExplodingValidator(CustomValidator):
    name = "exploding"

    def validate(self, value: Any, context: Any) -> ValidationOutcome:
        raise RuntimeError("boom")


class NoneReturningValidator(CustomValidator):
    name = "returns_none"

    def validate(self, value: Any, context: Any) -> ValidationOutcome:
        return None  # type: ignore[return-value]


class TestCustomValidators:
    """Named validators from the registry."""

    def test_builtin_positive_amount(self, validator: ParameterValidator) -> None:
        """Custom errors are merged with the parameter name filled in."""
        amount = descriptor(validator="positive_amount")
        result = validator.validate_parameter(amount, "0")
        assert not result.is_valid
        error = result.errors[0]
        assert error.type == ValidationErrorType.CUSTOM_VALIDATION
        assert error.field == "amount"
        assert error.message == "Amount must be greater than zero"
        assert "Enter an amount above 0" in result.suggestions

    def test_exception_becomes_error(self) -> None:
        """A raising validator is reported, not propagated."""
        registry = create_default_registry()
        registry.register(ExplodingValidator())
        validator = ParameterValidator(registry=registry)
        result = validator.validate_parameter(descriptor(validator="exploding"), "1")
        assert not result.is_valid
        assert result.errors[0].type == ValidationErrorType.CUSTOM_VALIDATION
        assert "boom" in result.errors[0].message

    def test_malformed_outcome_becomes_error(self) -> None:
        """A validator returning something other than an outcome is reported."""
        registry = create_default_registry()
        registry.register(NoneReturningValidator())
        validator = ParameterValidator(registry=registry)
        result = validator.validate_parameter(descriptor(validator="returns_none"), "1")
        assert not result.is_valid
        assert result.errors[0].type == ValidationErrorType.CUSTOM_VALIDATION
        assert result.errors[0].field == "amount"
        assert "invalid result (NoneType)" in result.errors[0].message

    def test_unknown_validator_warns(self, validator: ParameterValidator) -> None:
        """An unregistered validator name is advisory."""
        result = validator.validate_parameter(descriptor(validator="nope"), "1")
        assert result.is_valid
        assert result.warnings == ["amount: Unknown custom validator: nope"]

    def test_custom_validator_skipped_after_type_error(
        self, validator: ParameterValidator
    ) -> None:
        """Custom validators only see decodable values."""
        result = validator.validate_parameter(descriptor(validator="positive_amount"), "abc")
        assert [e.type for e in result.errors] == [ValidationErrorType.INVALID_TYPE]


class TestUserInteraction:
    """Interaction detection gates missing-parameter reporting."""

    def test_has_user_interaction(self) -> None:
        """Blank strings, None and NaN do not count as interaction."""
        assert not has_user_interaction({})
        assert not has_user_interaction({"a": None, "b": "  ", "c": float("nan")})
        assert has_user_interaction({"a": False})
        assert has_user_interaction({"a": 0})
        assert has_user_interaction({"a": []})

    def test_untouched_action_reports_nothing(self, validator: ParameterValidator) -> None:
        """Missing parameters on an untouched action are neither missing nor invalid."""
        metadata = ActionMetadata(
            id="swap-tokens",
            parameters=[descriptor(required=True), descriptor("token", "String", required=True)],
        )
        result = validator.validate_all_parameters(metadata, {})
        assert result.is_valid
        assert result.missing_parameters == []
        assert result.invalid_parameters == {}

    def test_touched_action_reports_missing(self, validator: ParameterValidator) -> None:
        """Once any value is set, the other required parameters are missing."""
        metadata = ActionMetadata(
            id="swap-tokens",
            parameters=[descriptor(required=True), descriptor("token", "String", required=True)],
        )
        result = validator.validate_all_parameters(metadata, {"amount": "5"})
        assert not result.is_valid
        assert result.missing_parameters == ["token"]
        assert result.invalid_parameters == {}
        assert result.action_id == "swap-tokens"

    def test_skip_flag_reports_untouched(self, validator: ParameterValidator) -> None:
        """The skip flag reports missing parameters without interaction."""
        metadata = ActionMetadata(id="swap-tokens", parameters=[descriptor(required=True)])
        result = validator.validate_all_parameters(
            metadata, {}, options=ValidationOptions(skip_user_interaction_check=True)
        )
        assert result.missing_parameters == ["amount"]

    def test_invalid_values_are_collected(self, validator: ParameterValidator) -> None:
        """Invalid parameters are keyed by name with their results."""
        metadata = ActionMetadata(
            id="swap-tokens", parameters=[descriptor(required=True), descriptor("memo", "String")]
        )
        result = validator.validate_all_parameters(metadata, {"amount": "abc", "memo": "x"})
        assert list(result.invalid_parameters) == ["amount"]
        issues = result.issues()
        assert issues[0].action_id == "swap-tokens"
