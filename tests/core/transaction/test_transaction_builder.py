"""Tests for operation ordering and Transaction serialization."""

from __future__ import annotations

import json

import pytest

from pkgsat.core.pool import Pool
from pkgsat.core.transaction import (
    InstallOperation,
    OperationKind,
    Transaction,
    TransactionBuilder,
    UninstallOperation,
    UpdateOperation,
    dependency_order,
    strongly_connected_components,
)
from pkgsat.exceptions import PoolError
from tests.helpers import pid, pkg


def _build(pool: Pool, selected: list[str], installed: list[str] = ()) -> list[str]:
    builder = TransactionBuilder(pool, [pid(pool, spec) for spec in installed])
    return builder.build(pid(pool, spec) for spec in selected).describe()


class TestOrdering:
    """Dependencies before dependents, deterministic tie-breaks."""

    def test_independent_packages_sorted_by_name(self) -> None:
        """Unrelated installs come out alphabetically."""
        pool = Pool([pkg("zeta"), pkg("mid"), pkg("alpha")])
        assert _build(pool, ["zeta@1.0", "mid@1.0", "alpha@1.0"]) == [
            "Install alpha@1.0", "Install mid@1.0", "Install zeta@1.0",
        ]

    def test_cycle_members_stay_together(self) -> None:
        """x <-> y form one unit, installed before the package needing it."""
        pool = Pool([
            pkg("a", requires=["x"]),
            pkg("x", requires=["y"]),
            pkg("y", requires=["x"]),
        ])
        assert _build(pool, ["a@1.0", "x@1.0", "y@1.0"]) == [
            "Install x@1.0", "Install y@1.0", "Install a@1.0",
        ]

    def test_uninstalls_first_dependents_first(self) -> None:
        """Removals run before installs, dependents before dependencies."""
        pool = Pool([
            pkg("lib"),
            pkg("app", requires=["lib"]),
            pkg("fresh"),
        ])
        assert _build(pool, ["fresh@1.0"], installed=["lib@1.0", "app@1.0"]) == [
            "Uninstall app@1.0", "Uninstall lib@1.0", "Install fresh@1.0",
        ]

    def test_update_takes_install_position(self) -> None:
        """An update is ordered like the install it stands for."""
        pool = Pool([
            pkg("app", "1.0", requires=["lib"]),
            pkg("lib", "1.0"),
            pkg("lib", "2.0"),
        ])
        assert _build(pool, ["app@1.0", "lib@2.0"], installed=["lib@1.0"]) == [
            "Update lib (1.0 => 2.0)", "Install app@1.0",
        ]

    def test_unchanged_packages_produce_nothing(self) -> None:
        """Selected and already installed means no operation."""
        pool = Pool([pkg("a")])
        assert _build(pool, ["a@1.0"], installed=["a@1.0"]) == []

    def test_dependency_order_ignores_outside_providers(self) -> None:
        """Only requires satisfied inside the set create edges."""
        pool = Pool([pkg("a", requires=["b"]), pkg("b")])
        assert dependency_order(pool, [pid(pool, "a@1.0")]) == [1]


class TestStronglyConnectedComponents:
    """Tests for the iterative Tarjan implementation."""

    def test_reverse_topological_output(self) -> None:
        """Components come out after everything they reach."""
        components = strongly_connected_components([1, 2, 3, 4], {1: [2], 2: [3], 3: [2], 4: []})
        assert [sorted(c) for c in components] == [[2, 3], [1], [4]]

    def test_self_contained_nodes(self) -> None:
        """Nodes without edges are singleton components."""
        assert strongly_connected_components([5, 6], {}) == [[5], [6]]


class TestBuilderValidation:
    """Ids must come from the pool."""

    def test_unknown_installed_id(self) -> None:
        """Installed ids are checked on construction."""
        with pytest.raises(PoolError):
            TransactionBuilder(Pool([pkg("a")]), installed=[7])

    def test_unknown_selected_id(self) -> None:
        """Selected ids are checked on build."""
        with pytest.raises(PoolError):
            TransactionBuilder(Pool([pkg("a")])).build([7])


class TestTransaction:
    """Tests for the Transaction value."""

    def test_kinds_and_summary(self) -> None:
        """Each operation kind is counted in the summary."""
        old, new, gone = pkg("lib", "1.0"), pkg("lib", "2.0"), pkg("legacy")
        transaction = Transaction((
            UninstallOperation(gone),
            UpdateOperation(old, new),
            InstallOperation(pkg("app")),
        ))
        assert [op.kind for op in transaction] == [
            OperationKind.UNINSTALL, OperationKind.UPDATE, OperationKind.INSTALL,
        ]
        assert transaction.to_dict()["summary"] == {"install": 1, "update": 1, "uninstall": 1}
        assert len(transaction.updates) == 1 and transaction.updates[0].package is new

    def test_to_json_is_deterministic(self) -> None:
        """Equal transactions serialize to identical JSON."""
        first = Transaction((InstallOperation(pkg("a", repository="main")),))
        second = Transaction((InstallOperation(pkg("a", repository="main")),))
        assert first.to_json() == second.to_json()
        data = json.loads(first.to_json())
        assert data["operations"] == [
            {"operation": "install", "package": {"name": "a", "repository": "main", "version": "1.0"}},
        ]

    def test_empty_transaction_is_falsy(self) -> None:
        """No operations, no truth."""
        assert not Transaction()
        assert len(Transaction()) == 0
