"""
Parameter reference parsing.

A parameter value wires another action's output into this parameter when it is
written as ``<actionId>.<outputName>``:

    "swap.amountOut"      -> Reference(action_id="swap", output_name="amountOut")
    "quote.result.price"  -> Reference(action_id="quote", output_name="result.price")
    "123.45"              -> Literal("123.45")   (action IDs must start with a letter)
    42                    -> Literal(42)

Values are parsed once, at the validation boundary, into ``Literal`` or
``Reference``. Graph building, resolution and type checking work on the parsed
variant and never look at the raw string again.
"""

import re
from dataclasses import dataclass
from typing import Any

# Action IDs start with a letter so decimal literals like "123.45" stay literals
ACTION_ID_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9_-]*$")


@dataclass(frozen=True, slots=True)
class Literal:
    """A literal parameter value."""

    value: Any


@dataclass(frozen=True, slots=True)
class Reference:
    """A reference to another action's output."""

    action_id: str
    output_name: str

    @property
    def is_well_formed(self) -> bool:
        """A reference needs a non-empty output name to be resolvable."""
        return self.output_name != ""

    @property
    def key(self) -> str:
        """Lookup key in the available-outputs map."""
        return f"{self.action_id}.{self.output_name}"

    def __str__(self) -> str:
        return self.key


ParsedValue = Literal | Reference


def is_parameter_reference(value: Any) -> bool:
    """
    Check if a raw value uses the ``<actionId>.<outputName>`` syntax.

    Example:
        >>> is_parameter_reference("action1.amount")
        True
        >>> is_parameter_reference("123.45")
        False
    """
    if not isinstance(value, str):
        return False
    head, sep, _ = value.partition(".")
    if not sep:
        return False
    return ACTION_ID_PATTERN.match(head) is not None


def parse_value(value: Any) -> ParsedValue:
    """Parse a raw parameter value into a Literal or a Reference."""
    if not is_parameter_reference(value):
        return Literal(value)
    action_id, _, output_name = value.partition(".")
    return Reference(action_id=action_id, output_name=output_name)


def parse_parameter_values(values: dict[str, Any]) -> dict[str, ParsedValue]:
    """Parse every value of one action's value bag."""
    return {name: parse_value(raw) for name, raw in values.items()}


def iter_references(values: dict[str, Any]) -> list[tuple[str, Reference]]:
    """Return ``(parameter_name, Reference)`` pairs of one action's value bag."""
    references: list[tuple[str, Reference]] = []
    for name, parsed in parse_parameter_values(values).items():
        if isinstance(parsed, Reference):
            references.append((name, parsed))
    return references
