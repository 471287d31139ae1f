"""
Workflow and action-metadata schema with Pydantic v2 models.

This module defines the data model consumed by the validation engine:
- Action graph (actions, declared parameters, visual next-action edges)
- Action metadata supplied by the discovery service (inputs, outputs,
  parameter descriptors, compatibility information)
- The data-dependency graph built from parameter references
- Validation issues (type, message, severity)

Models are plain data. Structural problems such as duplicate action IDs or an
empty workflow are NOT rejected here; they are reported by WorkflowValidator so
that validation always completes with a result object.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ParameterType(str, Enum):
    """
    Validation type for an action parameter.

    Cadence declares many concrete types (UInt8, Int32, {String: UFix64}, ...).
    The validator groups them into these families; ``from_type_name`` performs
    the mapping.
    """

    ADDRESS = "Address"
    UFIX64 = "UFix64"
    STRING = "String"
    BOOL = "Bool"
    INT = "Int"
    UINT64 = "UInt64"
    ARRAY = "Array"
    DICTIONARY = "Dictionary"
    OPTIONAL = "Optional"

    @classmethod
    def from_type_name(cls, type_name: str) -> "ParameterType":
        """
        Map a declared Cadence type string onto a validation type family.

        Matching is case- and whitespace-insensitive. Unknown types fall back
        to STRING so that validation still completes.

        Example:
            >>> ParameterType.from_type_name("UInt8")
            <ParameterType.UINT64: 'UInt64'>
            >>> ParameterType.from_type_name("{String: UFix64}")
            <ParameterType.DICTIONARY: 'Dictionary'>
        """
        normalized = type_name.strip().lower()

        if normalized == "address":
            return cls.ADDRESS
        if normalized in ("ufix64", "fix64"):
            return cls.UFIX64
        if normalized in ("uint64", "uint32", "uint16", "uint8"):
            return cls.UINT64
        if normalized in ("int", "int64", "int32", "int16", "int8", "integer"):
            return cls.INT
        if normalized == "string":
            return cls.STRING
        if normalized in ("bool", "boolean"):
            return cls.BOOL
        if normalized in ("resource", "struct", "capability", "path"):
            return cls.STRING

        # Composite spellings: "String?", "Optional<Address>", "[UFix64]", "{String: Int}"
        if "optional" in normalized or normalized.endswith("?"):
            return cls.OPTIONAL
        if normalized == "array" or normalized.startswith("["):
            return cls.ARRAY
        if normalized in ("dictionary", "dict") or normalized.startswith("{"):
            return cls.DICTIONARY

        return cls.STRING


class ValidationErrorType(str, Enum):
    """Category of a validation issue."""

    MISSING_REQUIRED = "MISSING_REQUIRED"
    INVALID_TYPE = "INVALID_TYPE"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    PATTERN_MISMATCH = "PATTERN_MISMATCH"
    ENUM_VIOLATION = "ENUM_VIOLATION"
    CIRCULAR_DEPENDENCY = "CIRCULAR_DEPENDENCY"
    UNRESOLVED_REFERENCE = "UNRESOLVED_REFERENCE"
    TYPE_MISMATCH = "TYPE_MISMATCH"
    INVALID_FORMAT = "INVALID_FORMAT"
    CUSTOM_VALIDATION = "CUSTOM_VALIDATION"


class Severity(str, Enum):
    """Issue severity. Only ERROR blocks validation."""

    ERROR = "error"
    WARNING = "warning"


class ValidationError(BaseModel):
    """
    A single validation issue.

    Attributes:
        type: Issue category
        message: Human-readable message
        field: Parameter name the issue belongs to (if any)
        action_id: Action the issue belongs to (if any)
        severity: ERROR (blocking) or WARNING (advisory)
        suggestion: Optional actionable hint for the user
    """

    type: ValidationErrorType
    message: str
    field: str | None = None
    action_id: str | None = None
    severity: Severity = Severity.ERROR
    suggestion: str | None = None

    @property
    def is_blocking(self) -> bool:
        """Check if this issue blocks execution."""
        return self.severity == Severity.ERROR


# =============================================================================
# Workflow (editor side)
# =============================================================================


class Position(BaseModel):
    """Canvas position of an action node."""

    x: float = 0.0
    y: float = 0.0


class ParameterValue(BaseModel):
    """
    Parameter as declared on an action placed in the editor.

    Attributes:
        name: Parameter name
        type: Declared Cadence type string (e.g. "UFix64", "Address")
        value: Current value (literal, or "<actionId>.<outputName>" reference)
        required: Whether the parameter must be provided
        description: Optional help text
        options: Optional list of allowed values for choice parameters
    """

    name: str = Field(min_length=1)
    type: str = Field(default="String")
    value: Any = None
    required: bool = False
    description: str | None = None
    options: list[str] | None = None

    model_config = {"extra": "forbid"}


class Action(BaseModel):
    """
    One action node of the workflow graph.

    ``next_actions`` are visual/execution-order edges only. They never create
    data dependencies; those come exclusively from parameter references.

    Example:
        actions:
          - id: swap
            action_type: swap-tokens
            parameters:
              - {name: amount, type: UFix64, required: true}
            next_actions: [stake]
    """

    id: str = Field(min_length=1, description="Action identifier, unique within the workflow")
    action_type: str = Field(min_length=1, description="Key into the action metadata map")
    name: str | None = None
    parameters: list[ParameterValue] = Field(default_factory=list)
    next_actions: list[str] = Field(default_factory=list)
    position: Position = Field(default_factory=Position)

    model_config = {"extra": "forbid"}

    @property
    def required_parameters(self) -> list[ParameterValue]:
        """Parameters flagged as required on this action."""
        return [param for param in self.parameters if param.required]


class WorkflowMetadata(BaseModel):
    """Descriptive workflow metadata carried along from the editor."""

    name: str | None = None
    description: str | None = None
    version: str | None = None
    author: str | None = None
    tags: list[str] = Field(default_factory=list)
    total_connections: int | None = Field(default=None, ge=0)

    model_config = {"extra": "forbid"}


class Workflow(BaseModel):
    """
    Complete action graph submitted for validation.

    Attributes:
        actions: Action nodes in editor order
        execution_order: Optional explicit execution order (each action once)
        root_actions: Optional explicit entry points for reachability analysis
        metadata: Descriptive metadata
    """

    actions: list[Action] = Field(default_factory=list)
    execution_order: list[str] | None = None
    root_actions: list[str] | None = None
    metadata: WorkflowMetadata = Field(default_factory=WorkflowMetadata)

    model_config = {"extra": "forbid"}

    @property
    def action_ids(self) -> list[str]:
        """Action IDs in editor order (duplicates preserved)."""
        return [action.id for action in self.actions]

    @property
    def connection_count(self) -> int:
        """Number of visual connections (declared, or counted from next_actions)."""
        if self.metadata.total_connections is not None:
            return self.metadata.total_connections
        return sum(len(action.next_actions) for action in self.actions)

    def get_action(self, action_id: str) -> Action | None:
        """Return the first action with the given ID, if any."""
        for action in self.actions:
            if action.id == action_id:
                return action
        return None


# =============================================================================
# Action metadata (discovery side)
# =============================================================================


class ActionInput(BaseModel):
    """Declared input of an action."""

    name: str
    type: str
    required: bool = False
    description: str | None = None


class ActionOutput(BaseModel):
    """Declared output of an action, referenceable as ``<actionId>.<name>``."""

    name: str
    type: str
    description: str | None = None


class CompatibilityInfo(BaseModel):
    """Chaining constraints between actions."""

    supported_networks: list[str] = Field(default_factory=list)
    required_capabilities: list[str] = Field(default_factory=list)
    conflicts_with: list[str] = Field(default_factory=list)
    minimum_flow_version: str | None = None


class ParameterConstraints(BaseModel):
    """
    Constraints layered on top of the type check.

    Attributes:
        min: Inclusive lower bound for numeric values
        max: Inclusive upper bound for numeric values
        pattern: Regular expression the string value must fully match
        enum: Allowed values (exact, case-sensitive membership)
        decimals: Maximum decimal places before an advisory warning
        min_length: Minimum length for strings, arrays and dictionaries
        max_length: Maximum length for strings, arrays and dictionaries
        meaningful_min: Positive values below this produce an advisory warning
    """

    min: float | None = None
    max: float | None = None
    pattern: str | None = None
    enum: list[Any] | None = None
    decimals: int | None = Field(default=None, ge=0)
    min_length: int | None = Field(default=None, ge=0)
    max_length: int | None = Field(default=None, ge=0)
    meaningful_min: float | None = None

    model_config = {"extra": "forbid"}

    def merged_over(self, defaults: "ParameterConstraints | None") -> "ParameterConstraints":
        """Return these constraints layered over type defaults (explicit values win)."""
        if defaults is None:
            return self
        merged = defaults.model_dump()
        merged.update(self.model_dump(exclude_none=True))
        return ParameterConstraints(**merged)


class ParameterDescriptor(BaseModel):
    """
    Parameter descriptor published in action metadata.

    Attributes:
        name: Parameter name
        type: Declared Cadence type string
        required: Whether an empty value is a MISSING_REQUIRED error
        description: Optional help text
        options: Optional choice list (treated as an enum constraint)
        constraints: Optional constraints merged over the type defaults
        validator: Name of a registered custom validator strategy
        default: Optional default value (informational)
    """

    name: str = Field(min_length=1)
    type: str = Field(default="String")
    required: bool = False
    description: str | None = None
    options: list[str] | None = None
    constraints: ParameterConstraints | None = None
    validator: str | None = None
    default: Any = None

    @property
    def parameter_type(self) -> ParameterType:
        """Validation type family of this parameter."""
        return ParameterType.from_type_name(self.type)


class ConditionalRequirement(BaseModel):
    """
    Requirement that applies only when a registered predicate holds.

    When the predicate named by ``when`` applies to the action's values, every
    parameter in ``required_parameters`` must be non-empty; otherwise
    ``message`` is reported as a warning. With no listed parameters the
    message is reported whenever the predicate applies.
    """

    when: str = Field(min_length=1, description="Registered predicate name")
    required_parameters: list[str] = Field(default_factory=list)
    message: str


class ActionValidationRules(BaseModel):
    """Action-level rules evaluated after per-parameter validation."""

    required_parameter_groups: list[list[str]] = Field(default_factory=list)
    mutually_exclusive: list[list[str]] = Field(default_factory=list)
    conditional_requirements: list[ConditionalRequirement] = Field(default_factory=list)


class ActionMetadata(BaseModel):
    """
    Metadata for one action type, supplied by the discovery service.

    Discovery payloads carry more fields (author, audit data, timestamps);
    unknown keys are ignored rather than rejected.
    """

    id: str = Field(min_length=1)
    name: str | None = None
    category: str | None = None
    version: str | None = None
    inputs: list[ActionInput] = Field(default_factory=list)
    outputs: list[ActionOutput] = Field(default_factory=list)
    parameters: list[ParameterDescriptor] = Field(default_factory=list)
    compatibility: CompatibilityInfo = Field(default_factory=CompatibilityInfo)
    gas_estimate: int | None = Field(default=None, ge=0)
    validation_rules: ActionValidationRules | None = None

    model_config = {"extra": "ignore"}

    def get_output(self, name: str) -> ActionOutput | None:
        """Return the declared output with the given name, if any."""
        for output in self.outputs:
            if output.name == name:
                return output
        return None


# =============================================================================
# Data-dependency graph
# =============================================================================


class DependencyNode(BaseModel):
    """
    Node of the data-dependency graph.

    Attributes:
        action_id: Action this node represents
        dependencies: Actions whose outputs this action's parameters reference
        dependents: Actions referencing this action's outputs
        depth: Longest dependency chain below this node (CYCLE_DEPTH on cycles)
        in_cycle: Whether the node lies on a detected cycle
    """

    action_id: str
    dependencies: list[str] = Field(default_factory=list)
    dependents: list[str] = Field(default_factory=list)
    depth: int = 0
    in_cycle: bool = False


class DependencyEdge(BaseModel):
    """Data edge ``from_action -> to_action`` created by one parameter reference."""

    from_action: str
    to_action: str
    parameter: str
    output: str


class DependencyGraph(BaseModel):
    """Data-dependency graph of a workflow (never derived from next_actions)."""

    nodes: dict[str, DependencyNode] = Field(default_factory=dict)
    edges: list[DependencyEdge] = Field(default_factory=list)
    cycles: list[list[str]] = Field(default_factory=list)
    max_depth: int = 0
    build_error: str | None = Field(
        default=None, description="Set when cycle and depth analysis could not complete"
    )

    @property
    def has_cycles(self) -> bool:
        """Check if any cycle was detected."""
        return len(self.cycles) > 0

    def depth_exceeds(self, ceiling: int) -> bool:
        """Check if max_depth is above a practical ceiling (a cycle signal)."""
        return self.max_depth > ceiling

    def edge_pairs(self) -> set[tuple[str, str]]:
        """Distinct (from, to) action pairs."""
        return {(edge.from_action, edge.to_action) for edge in self.edges}
