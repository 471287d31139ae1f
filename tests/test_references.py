"""Tests for parameter reference parsing."""

from actionflow.engine import Literal, Reference, is_parameter_reference, parse_value
from actionflow.engine.references import iter_references


class TestIsParameterReference:
    """Reference-vs-literal disambiguation."""

    def test_action_output_is_reference(self) -> None:
        """An identifier, a dot and an output name is a reference."""
        assert is_parameter_reference("action1.amount") is True
        assert is_parameter_reference("swap-1.amount_out") is True

    def test_decimal_string_is_literal(self) -> None:
        """Decimal strings never parse as references."""
        assert is_parameter_reference("123.45") is False
        assert is_parameter_reference(".5") is False
        assert is_parameter_reference("1e-8") is False

    def test_plain_string_is_literal(self) -> None:
        """Strings without a dot are literals."""
        assert is_parameter_reference("FLOW") is False
        assert is_parameter_reference("") is False

    def test_non_strings_are_literals(self) -> None:
        """Numbers, booleans and containers are never references."""
        assert is_parameter_reference(12.5) is False
        assert is_parameter_reference(True) is False
        assert is_parameter_reference(["a.b"]) is False
        assert is_parameter_reference(None) is False

    def test_identifier_must_start_with_letter(self) -> None:
        """Leading digits, underscores or dashes make the value a literal."""
        assert is_parameter_reference("1abc.out") is False
        assert is_parameter_reference("_abc.out") is False
        assert is_parameter_reference("-abc.out") is False


class TestParseValue:
    """Parsing raw values into Literal or Reference."""

    def test_reference_splits_on_first_dot(self) -> None:
        """Everything after the first dot is the output name."""
        parsed = parse_value("quote.result.price")
        assert parsed == Reference(action_id="quote", output_name="result.price")
        assert parsed.key == "quote.result.price"
        assert str(parsed) == "quote.result.price"

    def test_literal_keeps_raw_value(self) -> None:
        """Literals carry the untouched raw value."""
        assert parse_value("123.45") == Literal("123.45")
        assert parse_value(42) == Literal(42)
        assert parse_value(None) == Literal(None)

    def test_trailing_dot_is_malformed_reference(self) -> None:
        """A reference with an empty output name is recognized but not well formed."""
        parsed = parse_value("swap.")
        assert isinstance(parsed, Reference)
        assert parsed.is_well_formed is False

    def test_iter_references_skips_literals(self) -> None:
        """Only reference-valued parameters are returned, in bag order."""
        values = {"amount": "swap.amountOut", "token": "FLOW", "memo": "note.text"}
        refs = iter_references(values)
        assert [name for name, _ in refs] == ["amount", "memo"]
        assert refs[0][1].action_id == "swap"
