"""Default gas and execution-time estimators.

These are heuristics for the readiness report, not a fee oracle. Callers with
access to a real estimator pass their own callables to ExecutionValidator.
"""

from collections.abc import Callable

from .schema import ActionMetadata, Workflow

GasEstimator = Callable[[Workflow, dict[str, ActionMetadata]], int]
TimeEstimator = Callable[[Workflow], int]

BASE_GAS = 1000
GAS_PER_CONNECTION = 100
FALLBACK_ACTION_GAS = 2000

DEFAULT_ACTION_GAS: dict[str, int] = {
    "swap-tokens": 5000,
    "add-liquidity": 7000,
    "stake-tokens": 3000,
    "mint-nft": 4000,
    "transfer-nft": 2000,
    "list-nft": 3000,
    "create-proposal": 6000,
    "vote": 2000,
}

BASE_TIME_MS = 2000
TIME_PER_ACTION_MS = 500
TIME_PER_CONNECTION_MS = 100


def estimate_gas(workflow: Workflow, action_metadata: dict[str, ActionMetadata]) -> int:
    """Base cost, plus per-action cost (metadata estimate or type default), plus connections."""
    total = BASE_GAS
    for action in workflow.actions:
        metadata = action_metadata.get(action.action_type)
        if metadata is not None and metadata.gas_estimate:
            total += metadata.gas_estimate
        else:
            total += DEFAULT_ACTION_GAS.get(action.action_type, FALLBACK_ACTION_GAS)
    total += workflow.connection_count * GAS_PER_CONNECTION
    return total


def estimate_execution_time(workflow: Workflow) -> int:
    """Estimated wall time in milliseconds."""
    return (
        BASE_TIME_MS
        + len(workflow.actions) * TIME_PER_ACTION_MS
        + workflow.connection_count * TIME_PER_CONNECTION_MS
    )
