"""Dependency graph utilities.

Provides topological sorting for determining build order in a monorepo.
Packages must be built in dependency order so that when package A depends
on package B, B is built first.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from .errors import CycleError
from .models import PackageNode


def index_nodes(nodes: Iterable[PackageNode]) -> dict[str, PackageNode]:
    """Map package name → node.

    If a name appears more than once the later node wins, but it keeps the
    position of the first occurrence.
    """
    by_name: dict[str, PackageNode] = {}
    for node in nodes:
        by_name[node.name] = node
    return by_name


def topological_sort(nodes: Iterable[PackageNode]) -> list[PackageNode]:
    """Topologically sort packages by their declared dependencies.

    Uses Kahn's algorithm to produce a build order where dependencies
    come before dependents. Among packages that become ready at the same
    time, input order decides, so the output is reproducible.

    Args:
        nodes: Packages in the graph, in their declared order.

    Returns:
        Every package exactly once, dependencies first.

    Raises:
        CycleError: If a dependency cycle is detected.

    Example:
        If C depends on A and B, and B depends on A:
        topological_sort([A, B, C]) → [A, B, C]
    """
    by_name = index_nodes(nodes)

    # Count incoming edges (dependencies) for each package
    in_degree = {n: 0 for n in by_name}
    # Track reverse dependencies (who depends on each package)
    dependents: dict[str, list[str]] = {n: [] for n in by_name}

    for name, node in by_name.items():
        for dep in node.depends_on:
            # Deps outside the graph are external and never block ordering
            if dep in by_name:
                in_degree[name] += 1
                dependents[dep].append(name)

    queue = [n for n, d in in_degree.items() if d == 0]
    order: list[PackageNode] = []

    while queue:
        name = queue.pop(0)
        order.append(by_name[name])
        for dependent in dependents[name]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                queue.append(dependent)

    # If we didn't place every package, the rest sit on or behind a cycle
    if len(order) != len(by_name):
        placed = {node.name for node in order}
        remaining = [n for n in by_name if n not in placed]
        raise CycleError(
            "Circular dependency detected in package graph involving: "
            + ", ".join(remaining)
        )

    return order


def dependency_order(target: str, nodes: Iterable[PackageNode]) -> list[PackageNode]:
    """List what must be built before target, dependencies first.

    Walks the graph depth-first from target and emits each package after
    all of its own dependencies (post-order). The target itself is not
    included. Unknown dependency names are skipped.

    A cycle reachable from target does not raise: each package is emitted
    at most once and the walk always terminates, but the relative order of
    packages on the cycle is arbitrary. Use topological_sort() to reject
    cyclic graphs.

    Args:
        target: Name of the package about to be built.
        nodes: Packages in the graph.

    Returns:
        Transitive dependencies of target, or [] if target isn't in the graph.

    Example:
        With B → A and C → A, B:
        dependency_order("C", ...) → [A, B]
    """
    by_name = index_nodes(nodes)
    root = by_name.get(target)
    if root is None:
        return []

    visited = {target}
    result: list[PackageNode] = []
    # Explicit DFS stack of (node, remaining deps to visit)
    stack: list[tuple[PackageNode, Iterator[str]]] = [(root, iter(root.depends_on))]

    while stack:
        node, deps = stack[-1]
        for dep in deps:
            if dep in visited:
                continue
            visited.add(dep)
            child = by_name.get(dep)
            if child is not None:
                stack.append((child, iter(child.depends_on)))
                break
        else:
            # All deps of node are done, so node itself can be emitted
            stack.pop()
            if node.name != target:
                result.append(node)

    return result
