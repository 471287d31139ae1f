"""
Data-dependency graph of a workflow.

ARCHITECTURAL DECISION: edges come ONLY from parameter references.

Rationale:
- ``next_actions`` is the author's visual/execution ordering; it says nothing
  about which values flow where
- Treating ordering edges as dependencies produces false-positive cycles
  (A -> B in the editor while B's output feeds A is a legal layout)
- Reordering ``next_actions`` therefore never changes edges, depths or cycles

Design Pattern:
    1. DependencyGraphBuilder.build()        -> nodes, edges, depths, cycles
    2. execution_waves() / topological_order() -> planning views on the graph

Everything here is synchronous, in-memory graph work. ``build()`` never raises:
if analysis fails the graph comes back with ``build_error`` set so callers can
treat it as unverified rather than acyclic.
"""

import logging
from collections import deque
from collections.abc import Iterator
from typing import Any

from .load_result import LoadResult
from .references import iter_references
from .schema import DependencyEdge, DependencyGraph, DependencyNode, Workflow

logger = logging.getLogger(__name__)

# Depth reported for a branch that runs into a node still on the DFS stack
CYCLE_DEPTH = 1000


class DependencyGraphBuilder:
    """Builds the data-dependency graph from a workflow and its value bag."""

    def build(
        self, workflow: Workflow, parameter_values: dict[str, dict[str, Any]]
    ) -> DependencyGraph:
        """
        Build the data-dependency graph.

        Args:
            workflow: Workflow whose actions become nodes
            parameter_values: ``action_id -> {parameter_name -> raw value}``

        Returns:
            DependencyGraph with one node per action. References to actions
            outside the workflow and self-references create no edge.
        """
        nodes: dict[str, DependencyNode] = {}
        edges: list[DependencyEdge] = []

        try:
            for action in workflow.actions:
                nodes.setdefault(action.id, DependencyNode(action_id=action.id))

            for action in workflow.actions:
                values = parameter_values.get(action.id) or {}
                if not isinstance(values, dict):
                    logger.debug(f"Ignoring non-mapping values for action '{action.id}'")
                    continue

                node = nodes[action.id]
                for parameter, ref in iter_references(values):
                    if ref.action_id == action.id or ref.action_id not in nodes:
                        continue
                    edges.append(
                        DependencyEdge(
                            from_action=ref.action_id,
                            to_action=action.id,
                            parameter=parameter,
                            output=ref.output_name,
                        )
                    )
                    if ref.action_id not in node.dependencies:
                        node.dependencies.append(ref.action_id)
                    provider = nodes[ref.action_id]
                    if action.id not in provider.dependents:
                        provider.dependents.append(action.id)

            cycles = find_cycles(nodes)
            max_depth = compute_depths(nodes)
            for cycle in cycles:
                for action_id in cycle:
                    nodes[action_id].in_cycle = True
        except Exception as e:
            logger.warning(f"Dependency graph build degraded: {e}")
            return DependencyGraph(nodes=nodes, edges=edges, build_error=str(e) or type(e).__name__)

        logger.debug(
            f"Dependency graph: {len(nodes)} nodes, {len(edges)} edges, "
            f"{len(cycles)} cycles, max depth {max_depth}"
        )
        return DependencyGraph(nodes=nodes, edges=edges, cycles=cycles, max_depth=max_depth)


def compute_depths(nodes: dict[str, DependencyNode]) -> int:
    """
    Assign ``depth`` to every node and return the maximum.

    depth = 1 + max(depth of dependencies), 0 without dependencies. A branch
    that reaches a node still being visited counts as CYCLE_DEPTH. The walk
    keeps its own stack, so long reference chains do not hit the recursion
    limit.
    """
    visited: set[str] = set()
    visiting: set[str] = set()
    max_depth = 0

    for root in nodes:
        if root in visited:
            continue

        visiting.add(root)
        # (action_id, remaining dependencies, depth so far)
        stack: list[tuple[str, Iterator[str], int]] = [
            (root, iter(nodes[root].dependencies), 0)
        ]
        while stack:
            action_id, pending, depth = stack[-1]
            child: str | None = None
            for dependency in pending:
                if dependency in visiting:
                    depth = max(depth, CYCLE_DEPTH + 1)
                elif dependency in visited:
                    depth = max(depth, nodes[dependency].depth + 1)
                elif dependency in nodes:
                    child = dependency
                    break
                else:
                    depth = max(depth, 1)

            if child is not None:
                stack[-1] = (action_id, pending, depth)
                visiting.add(child)
                stack.append((child, iter(nodes[child].dependencies), 0))
                continue

            stack.pop()
            nodes[action_id].depth = depth
            max_depth = max(max_depth, depth)
            visiting.discard(action_id)
            visited.add(action_id)
            if stack:
                parent, parent_pending, parent_depth = stack[-1]
                stack[-1] = (parent, parent_pending, max(parent_depth, depth + 1))

    return max_depth


def _canonical(cycle: list[str]) -> tuple[str, ...]:
    # Rotation-independent key: drop the repeated tail, start at the smallest id
    body = cycle[:-1]
    start = body.index(min(body))
    return tuple(body[start:] + body[:start])


def find_cycles(nodes: dict[str, DependencyNode]) -> list[list[str]]:
    """
    Find cycles with an iterative DFS over every node.

    Each cycle is reported as the path slice from the first occurrence of the
    repeated node through the repeat, e.g. ``["a", "b", "a"]``. The same cycle
    reached from different entry points is reported once.
    """
    cycles: list[list[str]] = []
    seen: set[tuple[str, ...]] = set()
    visited: set[str] = set()
    on_stack: set[str] = set()

    for root in nodes:
        if root in visited:
            continue

        visited.add(root)
        on_stack.add(root)
        path: list[str] = [root]
        pending: list[Iterator[str]] = [iter(nodes[root].dependencies)]
        while pending:
            child: str | None = None
            for dependency in pending[-1]:
                if dependency in on_stack:
                    cycle = path[path.index(dependency) :] + [dependency]
                    key = _canonical(cycle)
                    if key not in seen:
                        seen.add(key)
                        cycles.append(cycle)
                elif dependency not in visited and dependency in nodes:
                    child = dependency
                    break

            if child is None:
                pending.pop()
                on_stack.discard(path.pop())
                continue

            visited.add(child)
            on_stack.add(child)
            path.append(child)
            pending.append(iter(nodes[child].dependencies))

    return cycles


def describe_cycle(cycle: list[str]) -> str:
    """Human-readable cycle description."""
    return f"Circular dependency detected: {' → '.join(cycle)}"


def topological_order(graph: DependencyGraph) -> LoadResult[list[str]]:
    """
    Order actions so every action comes after the actions it depends on.

    Returns:
        Result containing the ordered action IDs, or an error on cycles
    """
    in_degree = {action_id: len(node.dependencies) for action_id, node in graph.nodes.items()}
    queue = deque(action_id for action_id, degree in in_degree.items() if degree == 0)
    order: list[str] = []

    while queue:
        current = queue.popleft()
        order.append(current)
        for dependent in graph.nodes[current].dependents:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)

    if len(order) != len(graph.nodes):
        return LoadResult.failure("Cyclic dependency detected in workflow")

    return LoadResult.success(order)


def execution_waves(graph: DependencyGraph) -> LoadResult[list[list[str]]]:
    """
    Group actions into waves that have no data dependency between them.

    Every action in a wave only depends on actions of earlier waves, so the
    actions of one wave could run in parallel.

    Returns:
        Result containing the list of waves, or an error on cycles
    """
    waves: list[list[str]] = []
    completed: set[str] = set()
    remaining = [action_id for action_id in graph.nodes]

    while remaining:
        ready = [
            action_id
            for action_id in remaining
            if all(dep in completed for dep in graph.nodes[action_id].dependencies)
        ]
        if not ready:
            return LoadResult.failure(
                f"Cyclic dependency detected among: {', '.join(sorted(remaining))}"
            )
        waves.append(ready)
        completed.update(ready)
        remaining = [action_id for action_id in remaining if action_id not in completed]

    return LoadResult.success(waves)


def dependency_path(graph: DependencyGraph, from_action: str, to_action: str) -> list[str] | None:
    """
    Shortest chain of data flow from ``from_action`` to ``to_action``.

    Walks ``dependents`` breadth-first; returns None when no path exists.
    """
    visited: set[str] = set()
    queue: deque[list[str]] = deque([[from_action]])

    while queue:
        path = queue.popleft()
        current = path[-1]
        if current == to_action:
            return path
        if current in visited:
            continue
        visited.add(current)
        node = graph.nodes.get(current)
        if node is not None:
            for dependent in node.dependents:
                queue.append(path + [dependent])

    return None
