"""Workflow validation and dependency-resolution engine.

Key Components:

- Workflow / ActionMetadata: Pydantic v2 models for the action graph and the
  metadata published by action discovery
- parse_value: Splits raw parameter values into Literal or Reference
- decode_value: Typed decoding of raw values (UFix64, Address, ...)
- check_types: Asymmetric type conversion table for wired outputs
- ParameterValidator: Per-parameter type, constraint and custom checks
- DependencyGraphBuilder: Data-dependency graph with depths and cycles
- WorkflowValidator: Aggregates action, data-flow and structure checks
- ExecutionValidator: Cached pre-execution validation with readiness score
- ValidatorRegistry: Named custom validators and condition predicates
- ValidatorSettings: Thresholds read from ACTIONFLOW_* environment variables
- LoadResult: Error monad for loader and graph planning operations

Architecture:
- Validators never raise for bad workflow data; issues land in result models
- Data dependencies come only from parameter references, never next_actions
- Values are parsed and decoded once, at the validation boundary
"""

from .cache import ValidationCache, cache_key
from .config import ValidatorSettings
from .dag import (
    CYCLE_DEPTH,
    DependencyGraphBuilder,
    dependency_path,
    execution_waves,
    topological_order,
)
from .estimation import estimate_execution_time, estimate_gas
from .execution_validator import ExecutionValidator
from .load_result import LoadResult, LoadStatus
from .loader import (
    ValidationBundle,
    discover_bundles,
    load_action_catalog,
    load_bundle_from_file,
    load_bundle_from_yaml,
)
from .parameter_validator import ParameterValidator, has_user_interaction
from .references import Literal, Reference, is_parameter_reference, parse_value
from .results import (
    ActionExecutionCheck,
    ActionValidationResult,
    CircularDependency,
    CompatibilityIssue,
    DataFlowValidationResult,
    ExecutionReadinessStatus,
    ExecutionValidationResult,
    ParameterValidationResult,
    QuickCheckResult,
    TypeCompatibilityIssue,
    UnresolvedReference,
    ValidationContext,
    ValidationOptions,
    WorkflowValidationResult,
)
from .rules import (
    ConditionPredicate,
    CustomValidator,
    ParameterProvided,
    ValidationOutcome,
    ValidatorRegistry,
    create_default_registry,
)
from .schema import (
    Action,
    ActionInput,
    ActionMetadata,
    ActionOutput,
    ActionValidationRules,
    CompatibilityInfo,
    ConditionalRequirement,
    DependencyEdge,
    DependencyGraph,
    DependencyNode,
    ParameterConstraints,
    ParameterDescriptor,
    ParameterType,
    ParameterValue,
    Position,
    Severity,
    ValidationError,
    ValidationErrorType,
    Workflow,
    WorkflowMetadata,
)
from .type_compat import (
    CompatibilityOutcome,
    TypeCompatibility,
    check_action_compatibility,
    check_types,
)
from .values import ValueDecodeError, decode_value
from .workflow_validator import WorkflowValidator

__all__ = [
    # Schema
    "Action",
    "ActionInput",
    "ActionMetadata",
    "ActionOutput",
    "ActionValidationRules",
    "CompatibilityInfo",
    "ConditionalRequirement",
    "DependencyEdge",
    "DependencyGraph",
    "DependencyNode",
    "ParameterConstraints",
    "ParameterDescriptor",
    "ParameterType",
    "ParameterValue",
    "Position",
    "Severity",
    "ValidationError",
    "ValidationErrorType",
    "Workflow",
    "WorkflowMetadata",
    # Parsing and decoding
    "Literal",
    "Reference",
    "is_parameter_reference",
    "parse_value",
    "ValueDecodeError",
    "decode_value",
    # Type compatibility
    "CompatibilityOutcome",
    "TypeCompatibility",
    "check_action_compatibility",
    "check_types",
    # Validators
    "ParameterValidator",
    "has_user_interaction",
    "WorkflowValidator",
    "ExecutionValidator",
    "ValidationContext",
    "ValidationOptions",
    # Results
    "ActionExecutionCheck",
    "ActionValidationResult",
    "CircularDependency",
    "CompatibilityIssue",
    "DataFlowValidationResult",
    "ExecutionReadinessStatus",
    "ExecutionValidationResult",
    "ParameterValidationResult",
    "QuickCheckResult",
    "TypeCompatibilityIssue",
    "UnresolvedReference",
    "WorkflowValidationResult",
    # Rules
    "ConditionPredicate",
    "CustomValidator",
    "ParameterProvided",
    "ValidationOutcome",
    "ValidatorRegistry",
    "create_default_registry",
    # Graph
    "CYCLE_DEPTH",
    "DependencyGraphBuilder",
    "dependency_path",
    "execution_waves",
    "topological_order",
    # Cache, estimation, settings
    "ValidationCache",
    "cache_key",
    "estimate_execution_time",
    "estimate_gas",
    "ValidatorSettings",
    # Loading
    "LoadResult",
    "LoadStatus",
    "ValidationBundle",
    "discover_bundles",
    "load_action_catalog",
    "load_bundle_from_file",
    "load_bundle_from_yaml",
]
