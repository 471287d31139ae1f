"""
Typed decoding of raw parameter values.

Parameter values arrive from UI state as arbitrary JSON-like data. Before any
constraint is checked, a value is decoded into one variant of ``DecodedValue``
according to the parameter's declared type. A value that does not fit the
declared type raises ``ValueDecodeError``, which the parameter validator maps
to an INVALID_TYPE (or INVALID_FORMAT for addresses) issue. Nothing is
silently coerced: ``True`` is not a number and ``[123]`` is not an amount.

Decoding rules:
    UFix64      int, float or numeric string (scientific notation allowed,
                surrounding whitespace trimmed); finite and non-negative
    UInt64      non-negative integer or digit string within the type width
    Int         integer, integral float or integer string within the type width
    Bool        bool, or the strings "true" / "false"
    String      str
    Address     str of the form 0x + 16 hex digits
    Array       list
    Dictionary  dict
    Optional    anything
"""

import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from .schema import ParameterType, ValidationErrorType

NUMERIC_PATTERN = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")
INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{16}$")
ADDRESS_LENGTH = 18

UFIX64_MAX = Decimal("184467440737.09551615")

UINT_MAX = {
    "uint8": 2**8 - 1,
    "uint16": 2**16 - 1,
    "uint32": 2**32 - 1,
    "uint64": 2**64 - 1,
}

INT_BOUNDS: dict[str, tuple[int, int]] = {
    "int8": (-(2**7), 2**7 - 1),
    "int16": (-(2**15), 2**15 - 1),
    "int32": (-(2**31), 2**31 - 1),
    "int64": (-(2**63), 2**63 - 1),
}


class ValueDecodeError(ValueError):
    """
    Raised when a raw value cannot represent the declared parameter type.

    Attributes:
        expected: Declared type name
        actual: JSON-style name of the received value's type
        error_type: Issue category to report (INVALID_TYPE or INVALID_FORMAT)
        suggestion: Optional hint nudging the user toward the expected shape
    """

    def __init__(
        self,
        expected: str,
        actual: str,
        error_type: ValidationErrorType = ValidationErrorType.INVALID_TYPE,
        suggestion: str | None = None,
    ):
        self.expected = expected
        self.actual = actual
        self.error_type = error_type
        self.suggestion = suggestion
        super().__init__(f"expected {expected}, received {actual}")


@dataclass(frozen=True, slots=True)
class UFix64Value:
    value: Decimal
    decimal_places: int


@dataclass(frozen=True, slots=True)
class IntegerValue:
    value: int


@dataclass(frozen=True, slots=True)
class BoolValue:
    value: bool


@dataclass(frozen=True, slots=True)
class StringValue:
    value: str


@dataclass(frozen=True, slots=True)
class AddressValue:
    value: str


@dataclass(frozen=True, slots=True)
class ArrayValue:
    items: list[Any]


@dataclass(frozen=True, slots=True)
class DictionaryValue:
    entries: dict[Any, Any]


@dataclass(frozen=True, slots=True)
class OptionalValue:
    value: Any


DecodedValue = (
    UFix64Value
    | IntegerValue
    | BoolValue
    | StringValue
    | AddressValue
    | ArrayValue
    | DictionaryValue
    | OptionalValue
)


def is_empty(value: Any) -> bool:
    """Absent, None, empty or whitespace-only string. Empty containers are values."""
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    return False


def describe_type(value: Any) -> str:
    """JSON-style type name used in user-facing messages."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list | tuple):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def decimal_places(value: Decimal) -> int:
    """Number of digits after the decimal point (1e-8 -> 8, 1.50 -> 2)."""
    exponent = value.as_tuple().exponent
    if not isinstance(exponent, int):
        return 0
    return max(0, -exponent)


def _decode_ufix64(raw: Any, type_name: str) -> UFix64Value:
    suggestion = "UFix64 values must be positive decimal numbers"
    if isinstance(raw, bool):
        raise ValueDecodeError(type_name, describe_type(raw), suggestion=suggestion)

    if isinstance(raw, int):
        number = Decimal(raw)
    elif isinstance(raw, float):
        if not math.isfinite(raw):
            raise ValueDecodeError(type_name, "non-finite number", suggestion=suggestion)
        number = Decimal(repr(raw))
    elif isinstance(raw, str):
        text = raw.strip()
        if not NUMERIC_PATTERN.match(text):
            raise ValueDecodeError(type_name, "non-numeric string", suggestion=suggestion)
        try:
            number = Decimal(text)
        except InvalidOperation as e:
            raise ValueDecodeError(type_name, "non-numeric string", suggestion=suggestion) from e
    else:
        raise ValueDecodeError(type_name, describe_type(raw), suggestion=suggestion)

    if number < 0:
        raise ValueDecodeError(type_name, "negative number", suggestion=suggestion)

    return UFix64Value(value=number, decimal_places=decimal_places(number))


def _parse_integer(raw: Any, type_name: str, suggestion: str) -> int:
    if isinstance(raw, bool):
        raise ValueDecodeError(type_name, describe_type(raw), suggestion=suggestion)
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if not math.isfinite(raw) or not raw.is_integer():
            raise ValueDecodeError(type_name, "non-integral number", suggestion=suggestion)
        return int(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if not INTEGER_PATTERN.match(text):
            raise ValueDecodeError(type_name, "non-integer string", suggestion=suggestion)
        return int(text)
    raise ValueDecodeError(type_name, describe_type(raw), suggestion=suggestion)


def _decode_uint(raw: Any, type_name: str) -> IntegerValue:
    width = type_name.strip().lower()
    upper = UINT_MAX.get(width, UINT_MAX["uint64"])
    suggestion = f"{type_name} values must be whole numbers between 0 and {upper}"
    number = _parse_integer(raw, type_name, suggestion)
    if number < 0:
        raise ValueDecodeError(type_name, "negative number", suggestion=suggestion)
    if number > upper:
        raise ValueDecodeError(type_name, "number above type range", suggestion=suggestion)
    return IntegerValue(value=number)


def _decode_int(raw: Any, type_name: str) -> IntegerValue:
    bounds = INT_BOUNDS.get(type_name.strip().lower())
    suggestion = f"{type_name} values must be whole numbers"
    if bounds:
        suggestion = f"{type_name} values must be whole numbers between {bounds[0]} and {bounds[1]}"
    number = _parse_integer(raw, type_name, suggestion)
    if bounds and not bounds[0] <= number <= bounds[1]:
        raise ValueDecodeError(type_name, "number outside type range", suggestion=suggestion)
    return IntegerValue(value=number)


def _decode_bool(raw: Any, type_name: str) -> BoolValue:
    if isinstance(raw, bool):
        return BoolValue(value=raw)
    if raw == "true":
        return BoolValue(value=True)
    if raw == "false":
        return BoolValue(value=False)
    raise ValueDecodeError(
        type_name, describe_type(raw), suggestion="Use true or false for boolean parameters"
    )


def _address_suggestion(raw: Any) -> str:
    if not isinstance(raw, str):
        return "Flow addresses are strings like 0x1234567890abcdef"
    if not raw.startswith("0x"):
        return "Add the 0x prefix: Flow addresses look like 0x1234567890abcdef"
    if len(raw) != ADDRESS_LENGTH:
        return (
            f"Flow addresses must be {ADDRESS_LENGTH} characters long "
            f"(0x followed by 16 hex digits), got {len(raw)}"
        )
    return "Flow addresses may only contain hexadecimal characters (0-9, a-f)"


def _decode_address(raw: Any, type_name: str) -> AddressValue:
    if isinstance(raw, str) and ADDRESS_PATTERN.match(raw):
        return AddressValue(value=raw)
    raise ValueDecodeError(
        "Flow address (0x...)",
        describe_type(raw),
        error_type=ValidationErrorType.INVALID_FORMAT,
        suggestion=_address_suggestion(raw),
    )


def decode_value(parameter_type: ParameterType, raw: Any, type_name: str = "") -> DecodedValue:
    """
    Decode a raw, non-empty value into the variant for its declared type.

    Args:
        parameter_type: Validation type family
        raw: Raw value from the value bag
        type_name: Declared Cadence type string (selects integer widths and
            appears in messages); defaults to the family name

    Returns:
        DecodedValue variant

    Raises:
        ValueDecodeError: If the value cannot represent the declared type
    """
    type_name = type_name or parameter_type.value

    if parameter_type == ParameterType.UFIX64:
        return _decode_ufix64(raw, type_name)
    if parameter_type == ParameterType.UINT64:
        return _decode_uint(raw, type_name)
    if parameter_type == ParameterType.INT:
        return _decode_int(raw, type_name)
    if parameter_type == ParameterType.BOOL:
        return _decode_bool(raw, type_name)
    if parameter_type == ParameterType.ADDRESS:
        return _decode_address(raw, type_name)
    if parameter_type == ParameterType.STRING:
        if not isinstance(raw, str):
            raise ValueDecodeError(type_name, describe_type(raw))
        return StringValue(value=raw)
    if parameter_type == ParameterType.ARRAY:
        if not isinstance(raw, list):
            raise ValueDecodeError(
                type_name, describe_type(raw), suggestion="Provide a list of values"
            )
        return ArrayValue(items=raw)
    if parameter_type == ParameterType.DICTIONARY:
        if not isinstance(raw, dict):
            raise ValueDecodeError(
                type_name, describe_type(raw), suggestion="Provide key/value pairs"
            )
        return DictionaryValue(entries=raw)
    return OptionalValue(value=raw)


def numeric_value(decoded: DecodedValue) -> Decimal | None:
    """Numeric view of a decoded value, for range constraints."""
    if isinstance(decoded, UFix64Value):
        return decoded.value
    if isinstance(decoded, IntegerValue):
        return Decimal(decoded.value)
    return None


def length_of(decoded: DecodedValue) -> int | None:
    """Length of a decoded string or container, for length constraints."""
    if isinstance(decoded, StringValue | AddressValue):
        return len(decoded.value)
    if isinstance(decoded, ArrayValue):
        return len(decoded.items)
    if isinstance(decoded, DictionaryValue):
        return len(decoded.entries)
    return None


__all__ = [
    "AddressValue",
    "ArrayValue",
    "BoolValue",
    "DecodedValue",
    "DictionaryValue",
    "IntegerValue",
    "OptionalValue",
    "StringValue",
    "UFix64Value",
    "UFIX64_MAX",
    "ValueDecodeError",
    "decode_value",
    "decimal_places",
    "describe_type",
    "is_empty",
    "length_of",
    "numeric_value",
]
