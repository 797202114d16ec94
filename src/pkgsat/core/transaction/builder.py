"""Turns a solver selection into an ordered Transaction.

Ordering rules:

- Uninstalls run first, dependents before the packages they require
  (reverse dependency order over the previously installed set).
- Installs and updates follow, dependencies before their dependents
  (dependency order over the final set).
- Dependency cycles are collapsed with Tarjan's strongly connected
  components; members of one cycle stay contiguous, sorted by name then
  version. Independent units are ordered by name then version as well.
"""

from __future__ import annotations

import heapq
import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping

from pkgsat.core.pool import Pool
from pkgsat.core.transaction.operations import (
    InstallOperation,
    Operation,
    Transaction,
    UninstallOperation,
    UpdateOperation,
)
from pkgsat.exceptions import PoolError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Graph helpers
# ---------------------------------------------------------------------------


def requires_edges(pool: Pool, package_ids: Iterable[int]) -> dict[int, list[int]]:
    """Map each id to the ids (within the same set) that satisfy its requires."""
    members = set(package_ids)
    edges: dict[int, list[int]] = {}
    for package_id in sorted(members):
        targets: list[int] = []
        for link in pool.package(package_id).requires:
            for provider in pool.what_provides(link.name, link.constraint):
                if provider in members and provider != package_id and provider not in targets:
                    targets.append(provider)
        edges[package_id] = targets
    return edges


def strongly_connected_components(
    nodes: Iterable[int], edges: Mapping[int, Iterable[int]]
) -> list[list[int]]:
    """Tarjan's algorithm, iterative.

    Components come out in reverse topological order: a component is
    emitted only after every component reachable from it.
    """
    index_of: dict[int, int] = {}
    low: dict[int, int] = {}
    stack: list[int] = []
    on_stack: set[int] = set()
    components: list[list[int]] = []
    counter = 0

    for root in nodes:
        if root in index_of:
            continue
        index_of[root] = low[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)
        work = [(root, iter(edges.get(root, ())))]

        while work:
            node, successors = work[-1]
            descended = False
            for succ in successors:
                if succ not in index_of:
                    index_of[succ] = low[succ] = counter
                    counter += 1
                    stack.append(succ)
                    on_stack.add(succ)
                    work.append((succ, iter(edges.get(succ, ()))))
                    descended = True
                    break
                if succ in on_stack:
                    low[node] = min(low[node], index_of[succ])
            if descended:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                low[parent] = min(low[parent], low[node])
            if low[node] == index_of[node]:
                component: list[int] = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                components.append(component)

    return components


def dependency_order(pool: Pool, package_ids: Iterable[int]) -> list[int]:
    """Order ids so that every package comes after the packages it requires.

    Cycle members are emitted together; ties are broken by name then
    version, so the result depends only on the input set.
    """
    def sort_key(package_id: int) -> tuple:
        return (*pool.package(package_id).sort_key, package_id)

    nodes = sorted(set(package_ids), key=sort_key)
    edges = requires_edges(pool, nodes)
    components = [
        sorted(component, key=sort_key)
        for component in strongly_connected_components(nodes, edges)
    ]
    component_of = {member: index for index, component in enumerate(components) for member in component}

    waiting: dict[int, set[int]] = defaultdict(set)
    dependents: dict[int, set[int]] = defaultdict(set)
    for source, targets in edges.items():
        for target in targets:
            src, dst = component_of[source], component_of[target]
            if src != dst:
                waiting[src].add(dst)
                dependents[dst].add(src)

    ready = [
        (sort_key(component[0]), index)
        for index, component in enumerate(components)
        if not waiting[index]
    ]
    heapq.heapify(ready)
    order: list[int] = []
    while ready:
        _, index = heapq.heappop(ready)
        order.extend(components[index])
        for dependent in sorted(dependents[index]):
            waiting[dependent].discard(index)
            if not waiting[dependent]:
                heapq.heappush(ready, (sort_key(components[dependent][0]), dependent))

    assert len(order) == len(nodes), "dependency order lost a package"
    return order


# ---------------------------------------------------------------------------
# TransactionBuilder
# ---------------------------------------------------------------------------


class TransactionBuilder:
    """Diffs a selection against the installed set.

    Args:
        pool: The package universe.
        installed: Ids installed before the run.

    Raises:
        PoolError: If an installed id is not in the pool.
    """

    def __init__(self, pool: Pool, installed: Iterable[int] = ()) -> None:
        self._pool = pool
        self._installed = frozenset(installed)
        for package_id in self._installed:
            if package_id not in pool:
                raise PoolError(f"Installed package id {package_id!r} is not in the pool")

    def build(self, selected: Iterable[int]) -> Transaction:
        """Build the ordered transaction that turns the installed set into *selected*."""
        pool = self._pool
        selected = frozenset(selected)
        for package_id in selected:
            if package_id not in pool:
                raise PoolError(f"Selected package id {package_id!r} is not in the pool")

        installs = selected - self._installed
        removals = self._installed - selected

        def sort_key(package_id: int) -> tuple:
            return (*pool.package(package_id).sort_key, package_id)

        removed_by_name: dict[str, list[int]] = defaultdict(list)
        for package_id in sorted(removals, key=sort_key):
            removed_by_name[pool.package(package_id).name].append(package_id)

        # new id -> old id of the same name
        updates: dict[int, int] = {}
        for package_id in sorted(installs, key=sort_key):
            previous = removed_by_name.get(pool.package(package_id).name)
            if previous:
                updates[package_id] = previous.pop(0)
        replaced = set(updates.values())

        operations: list[Operation] = []
        for package_id in reversed(dependency_order(pool, self._installed)):
            if package_id in removals and package_id not in replaced:
                operations.append(UninstallOperation(pool.package(package_id)))
        for package_id in dependency_order(pool, selected):
            if package_id in updates:
                operations.append(UpdateOperation(pool.package(updates[package_id]), pool.package(package_id)))
            elif package_id in installs:
                operations.append(InstallOperation(pool.package(package_id)))

        logger.debug(
            "Transaction: %d install(s), %d update(s), %d uninstall(s)",
            len(installs) - len(updates), len(updates), len(removals) - len(replaced),
        )
        return Transaction(tuple(operations))
