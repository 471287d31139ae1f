"""Tests for the validator registry and action-level rules."""

from typing import Any

import pytest

from actionflow.engine import (
    ActionValidationRules,
    ConditionalRequirement,
    ConditionPredicate,
    ParameterProvided,
    ValidatorRegistry,
    create_default_registry,
)
from actionflow.engine.rules import (
    NonBlankValidator,
    PositiveAmountValidator,
    UriValidator,
    evaluate_action_rules,
)


class BrokenPredicate(ConditionPredicate):
    def applies(self, values: dict[str, Any]) -> bool:
        raise KeyError("slippage")


# ----------------------------------------------------------------------------
# Registry
# ----------------------------------------------------------------------------


class TestValidatorRegistry:
    """Registration and lookup by name."""

    def test_default_registry_builtins(self) -> None:
        """The default registry carries the built-in validators."""
        registry = create_default_registry()
        assert set(registry.list_names()) == {"positive_amount", "non_blank", "uri"}
        assert isinstance(registry.get("uri"), UriValidator)

    def test_duplicate_name_raises(self) -> None:
        """Registering the same name twice is a programming error."""
        registry = ValidatorRegistry()
        registry.register(PositiveAmountValidator())
        with pytest.raises(ValueError, match="already registered"):
            registry.register(PositiveAmountValidator())

    def test_unknown_name_lists_available(self) -> None:
        """Lookups of unknown names name what is available."""
        registry = create_default_registry()
        with pytest.raises(ValueError, match="Available"):
            registry.get("missing")

    def test_predicates(self) -> None:
        """Predicates register under their own name."""
        registry = ValidatorRegistry()
        registry.register_predicate(ParameterProvided("deadline"))
        assert registry.has_predicate("deadline_provided")
        assert not registry.has("deadline_provided")
        with pytest.raises(ValueError):
            registry.register_predicate(ParameterProvided("deadline"))
        with pytest.raises(ValueError):
            registry.get_predicate("other")


class TestBuiltinValidators:
    """Behaviour of the built-in strategies."""

    @pytest.mark.parametrize("value", ["1", 0.5, "1e-8"])
    def test_positive_amount_accepts(self, value: Any) -> None:
        """Positive numbers pass."""
        assert PositiveAmountValidator().validate(value, None).is_valid

    @pytest.mark.parametrize("value", ["0", -2, "abc", True])
    def test_positive_amount_rejects(self, value: Any) -> None:
        """Zero, negatives and non-numbers fail."""
        assert not PositiveAmountValidator().validate(value, None).is_valid

    def test_non_blank(self) -> None:
        """Empty containers fail; populated ones pass."""
        validator = NonBlankValidator()
        assert not validator.validate([], None).is_valid
        assert not validator.validate({}, None).is_valid
        assert validator.validate(["0x01"], None).is_valid

    @pytest.mark.parametrize(
        ("value", "valid"),
        [
            ("https://example.com/meta.json", True),
            ("ipfs://bafybeigdyrzt", True),
            ("example.com/meta.json", False),
            ("https://", False),
            (42, False),
        ],
    )
    def test_uri(self, value: Any, valid: bool) -> None:
        """URIs need a scheme plus a host, or a content-addressed path."""
        assert UriValidator().validate(value, None).is_valid is valid


# ----------------------------------------------------------------------------
# Action rules
# ----------------------------------------------------------------------------


class TestActionRules:
    """Groups, exclusions and conditional requirements."""

    @pytest.fixture
    def registry(self) -> ValidatorRegistry:
        registry = create_default_registry()
        registry.register_predicate(ParameterProvided("deadline"))
        registry.register_predicate(BrokenPredicate("broken"))
        return registry

    def test_required_group(self, registry: ValidatorRegistry) -> None:
        """A group with no provided member warns."""
        rules = ActionValidationRules(required_parameter_groups=[["amountIn", "amountOut"]])
        assert evaluate_action_rules(rules, {"amountIn": " "}, registry) == [
            "At least one of amountIn, amountOut must be provided"
        ]
        assert evaluate_action_rules(rules, {"amountOut": "5"}, registry) == []

    def test_mutually_exclusive(self, registry: ValidatorRegistry) -> None:
        """More than one provided member warns and names them."""
        rules = ActionValidationRules(mutually_exclusive=[["amountIn", "amountOut"]])
        warnings = evaluate_action_rules(rules, {"amountIn": "1", "amountOut": "2"}, registry)
        assert warnings == [
            "Only one of amountIn, amountOut should be provided (got amountIn, amountOut)"
        ]

    def test_conditional_requirement(self, registry: ValidatorRegistry) -> None:
        """Requirements only apply when their predicate holds."""
        rules = ActionValidationRules(
            conditional_requirements=[
                ConditionalRequirement(
                    when="deadline_provided",
                    required_parameters=["slippage"],
                    message="Set a slippage tolerance when a deadline is given",
                )
            ]
        )
        assert evaluate_action_rules(rules, {}, registry) == []
        assert evaluate_action_rules(rules, {"deadline": "600"}, registry) == [
            "Set a slippage tolerance when a deadline is given"
        ]
        assert evaluate_action_rules(rules, {"deadline": "600", "slippage": 1}, registry) == []

    def test_unknown_and_failing_predicates(self, registry: ValidatorRegistry) -> None:
        """Unknown or raising predicates are reported as warnings."""
        rules = ActionValidationRules(
            conditional_requirements=[
                ConditionalRequirement(when="missing", message="never"),
                ConditionalRequirement(when="broken", message="never"),
            ]
        )
        warnings = evaluate_action_rules(rules, {"amount": "1"}, registry)
        assert warnings[0] == "Unknown condition predicate: missing"
        assert warnings[1].startswith("Condition predicate 'broken' failed:")
