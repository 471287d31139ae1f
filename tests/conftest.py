"""Shared test configuration for actionflow tests.

Provides:
- A small action catalog (producer/consumer pair plus DeFi-flavoured actions)
- Workflow builders for the common A -> B shapes
- A controllable clock for cache tests
"""

from typing import Any

import pytest

from actionflow.engine import (
    Action,
    ActionMetadata,
    ActionOutput,
    CompatibilityInfo,
    ParameterDescriptor,
    ParameterValue,
    Workflow,
)


def make_action(
    action_id: str,
    action_type: str,
    next_actions: list[str] | None = None,
    parameters: list[ParameterValue] | None = None,
) -> Action:
    """Build an Action with only the fields tests care about."""
    return Action(
        id=action_id,
        action_type=action_type,
        next_actions=next_actions or [],
        parameters=parameters or [],
    )


def make_workflow(*actions: Action, **kwargs: Any) -> Workflow:
    """Build a Workflow from actions."""
    return Workflow(actions=list(actions), **kwargs)


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Controllable clock starting at t=1000s."""
    return FakeClock()


@pytest.fixture
def producer_metadata() -> ActionMetadata:
    """Action type with one UFix64 output named output1."""
    return ActionMetadata(
        id="producer",
        name="Producer",
        outputs=[ActionOutput(name="output1", type="UFix64")],
        parameters=[ParameterDescriptor(name="seed", type="String")],
    )


@pytest.fixture
def consumer_metadata() -> ActionMetadata:
    """Action type with one required UFix64 parameter named amount."""
    return ActionMetadata(
        id="consumer",
        name="Consumer",
        outputs=[ActionOutput(name="result", type="String")],
        parameters=[ParameterDescriptor(name="amount", type="UFix64", required=True)],
    )


@pytest.fixture
def catalog(
    producer_metadata: ActionMetadata, consumer_metadata: ActionMetadata
) -> dict[str, ActionMetadata]:
    """Action metadata keyed by action type."""
    return {
        "producer": producer_metadata,
        "consumer": consumer_metadata,
        "swap-tokens": ActionMetadata(
            id="swap-tokens",
            outputs=[
                ActionOutput(name="amountOut", type="UFix64"),
                ActionOutput(name="receiver", type="Address"),
            ],
            parameters=[
                ParameterDescriptor(name="amount", type="UFix64", required=True),
                ParameterDescriptor(
                    name="tokenIn", type="String", required=True, options=["FLOW", "USDC"]
                ),
            ],
            compatibility=CompatibilityInfo(supported_networks=["mainnet", "testnet"]),
            gas_estimate=5000,
        ),
        "transfer-tokens": ActionMetadata(
            id="transfer-tokens",
            parameters=[
                ParameterDescriptor(name="recipient", type="Address", required=True),
                ParameterDescriptor(name="amount", type="UFix64", required=True),
            ],
            compatibility=CompatibilityInfo(supported_networks=["emulator"]),
        ),
    }


@pytest.fixture
def a_to_b() -> Workflow:
    """Workflow A -> B where B's amount will reference A.output1."""
    return make_workflow(
        make_action("A", "producer", next_actions=["B"]),
        make_action(
            "B",
            "consumer",
            parameters=[ParameterValue(name="amount", type="UFix64", required=True)],
        ),
    )
