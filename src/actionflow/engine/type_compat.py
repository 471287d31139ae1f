"""
Type compatibility between wired action outputs and parameters.

When a parameter references another action's output, the output's declared
type must be usable as the parameter's declared type. Identical types always
fit; a small, explicit and deliberately asymmetric table lists the conversions
that are performed automatically (String -> Address is allowed, Address ->
UFix64 is not). Anything not in the table is incompatible.

The module also checks action-level chaining facets (networks, explicit
conflicts, required capabilities) from ``CompatibilityInfo``.
"""

from dataclasses import dataclass
from enum import Enum

from .results import CompatibilityIssue
from .schema import ActionMetadata

# source type -> targets it converts to automatically (normalized, lowercase)
CONVERSION_RULES: dict[str, frozenset[str]] = {
    "string": frozenset({"address", "ufix64", "int", "uint64", "bool"}),
    "ufix64": frozenset({"string", "int", "uint64", "int64", "fix64"}),
    "fix64": frozenset({"string", "ufix64"}),
    "int": frozenset({"string", "ufix64", "uint64"}),
    "uint64": frozenset({"string", "ufix64", "int", "uint32", "uint16", "uint8"}),
    "bool": frozenset({"string"}),
    "address": frozenset({"string"}),
    "resource": frozenset({"anyresource"}),
    "struct": frozenset({"anystruct"}),
    "array": frozenset({"[anystruct]", "[anyresource]"}),
}

PAIR_SUGGESTIONS: dict[tuple[str, str], str] = {
    ("string", "address"): "Ensure the string is a valid Flow address format (0x...)",
    ("string", "ufix64"): "Ensure the string represents a valid decimal number",
    ("ufix64", "string"): "Number will be converted to string representation",
    ("address", "string"): "Address will be converted to string format",
}


def normalize_type(type_name: str) -> str:
    """Case- and whitespace-insensitive form of a type name."""
    return type_name.strip().lower()


class CompatibilityOutcome(str, Enum):
    """How a source type fits a target type."""

    IDENTICAL = "identical"
    CONVERTIBLE = "convertible"
    INCOMPATIBLE = "incompatible"


@dataclass(frozen=True, slots=True)
class TypeCompatibility:
    """Result of comparing a source output type with a target parameter type."""

    outcome: CompatibilityOutcome
    suggestion: str | None = None

    @property
    def compatible(self) -> bool:
        """Identical or convertible."""
        return self.outcome != CompatibilityOutcome.INCOMPATIBLE

    @property
    def convertible(self) -> bool:
        """Compatible, but only through an automatic conversion."""
        return self.outcome == CompatibilityOutcome.CONVERTIBLE


def can_convert(source_type: str, target_type: str) -> bool:
    """Check if ``source_type`` can feed ``target_type`` (identity included)."""
    source = normalize_type(source_type)
    target = normalize_type(target_type)
    if source == target:
        return True
    return target in CONVERSION_RULES.get(source, frozenset())


def check_types(source_type: str, target_type: str) -> TypeCompatibility:
    """
    Compare a source output type with a target parameter type.

    Example:
        >>> check_types("String", "Address").outcome
        <CompatibilityOutcome.CONVERTIBLE: 'convertible'>
        >>> check_types("Address", "UFix64").compatible
        False
    """
    if normalize_type(source_type) == normalize_type(target_type):
        return TypeCompatibility(outcome=CompatibilityOutcome.IDENTICAL)
    if can_convert(source_type, target_type):
        pair = (normalize_type(source_type), normalize_type(target_type))
        return TypeCompatibility(
            outcome=CompatibilityOutcome.CONVERTIBLE,
            suggestion=PAIR_SUGGESTIONS.get(
                pair, f"Automatic conversion from {source_type} to {target_type}"
            ),
        )
    return TypeCompatibility(
        outcome=CompatibilityOutcome.INCOMPATIBLE,
        suggestion=f"Consider adding explicit conversion from {source_type} to {target_type}",
    )


def check_action_compatibility(
    source: ActionMetadata,
    target: ActionMetadata,
    source_action: str | None = None,
    target_action: str | None = None,
) -> list[CompatibilityIssue]:
    """
    Check whether the output of ``source`` can be chained into ``target``.

    Network mismatches and explicit conflicts are blocking. Capabilities the
    target requires are reported as non-blocking hints.

    Args:
        source: Metadata of the action providing the output
        target: Metadata of the action consuming it
        source_action: Workflow action ID to report (defaults to the metadata ID)
        target_action: Workflow action ID to report (defaults to the metadata ID)
    """
    source_id = source_action or source.id
    target_id = target_action or target.id
    issues: list[CompatibilityIssue] = []
    source_info = source.compatibility
    target_info = target.compatibility

    if source_info.supported_networks and target_info.supported_networks:
        shared = set(source_info.supported_networks) & set(target_info.supported_networks)
        if not shared:
            issues.append(
                CompatibilityIssue(
                    source_action=source_id,
                    target_action=target_id,
                    issue="Actions support different networks and cannot be chained",
                    suggestion="Use bridge actions or ensure both actions support the same network",
                )
            )

    if target.id in source_info.conflicts_with or source.id in target_info.conflicts_with:
        issues.append(
            CompatibilityIssue(
                source_action=source_id,
                target_action=target_id,
                issue="Actions are explicitly marked as incompatible",
                suggestion="Remove the connection or pick a different action",
            )
        )

    for capability in target_info.required_capabilities:
        issues.append(
            CompatibilityIssue(
                source_action=source_id,
                target_action=target_id,
                issue=f"{target.id} requires capability: {capability}",
                suggestion=f"Ensure the workflow environment supports capability: {capability}",
                blocking=False,
            )
        )

    return issues
