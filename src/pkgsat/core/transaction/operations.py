"""Operations and the ordered Transaction they form.

A Transaction is the diff between the installed set and the solver's
selection, expressed as operations a package manager can execute in order.

Determinism guarantee: ``to_dict()`` and ``to_json()`` produce identical
output for identical transactions (keys sorted, operations in plan order).
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from pkgsat.core.pool import Package


class OperationKind(str, Enum):
    """What an operation does to the installed set."""

    INSTALL = "install"
    UPDATE = "update"
    UNINSTALL = "uninstall"


def _package_dict(package: Package) -> dict[str, Any]:
    entry: dict[str, Any] = {"name": package.name, "version": package.version}
    if package.repository:
        entry["repository"] = package.repository
    return entry


@dataclass(frozen=True)
class InstallOperation:
    """Install a package that is not installed yet."""

    package: Package

    @property
    def kind(self) -> OperationKind:
        return OperationKind.INSTALL

    @property
    def name(self) -> str:
        return self.package.name

    def to_dict(self) -> dict[str, Any]:
        return {"operation": self.kind.value, "package": _package_dict(self.package)}

    def __str__(self) -> str:
        return f"Install {self.package.pretty}"


@dataclass(frozen=True)
class UpdateOperation:
    """Replace the installed version of a package by another version.

    Attributes:
        initial: The version installed before the run.
        target: The version installed after the run (may be older).
    """

    initial: Package
    target: Package

    @property
    def kind(self) -> OperationKind:
        return OperationKind.UPDATE

    @property
    def name(self) -> str:
        return self.target.name

    @property
    def package(self) -> Package:
        return self.target

    def to_dict(self) -> dict[str, Any]:
        return {
            "operation": self.kind.value,
            "from": _package_dict(self.initial),
            "package": _package_dict(self.target),
        }

    def __str__(self) -> str:
        return f"Update {self.target.name} ({self.initial.version} => {self.target.version})"


@dataclass(frozen=True)
class UninstallOperation:
    """Remove an installed package."""

    package: Package

    @property
    def kind(self) -> OperationKind:
        return OperationKind.UNINSTALL

    @property
    def name(self) -> str:
        return self.package.name

    def to_dict(self) -> dict[str, Any]:
        return {"operation": self.kind.value, "package": _package_dict(self.package)}

    def __str__(self) -> str:
        return f"Uninstall {self.package.pretty}"


Operation = Union[InstallOperation, UpdateOperation, UninstallOperation]


@dataclass(frozen=True)
class Transaction:
    """An ordered, immutable plan of operations."""

    operations: tuple[Operation, ...] = ()

    def __iter__(self) -> Iterator[Operation]:
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)

    def __bool__(self) -> bool:
        return bool(self.operations)

    def of_kind(self, kind: OperationKind) -> list[Operation]:
        return [op for op in self.operations if op.kind is kind]

    @property
    def installs(self) -> list[Operation]:
        return self.of_kind(OperationKind.INSTALL)

    @property
    def updates(self) -> list[Operation]:
        return self.of_kind(OperationKind.UPDATE)

    @property
    def uninstalls(self) -> list[Operation]:
        return self.of_kind(OperationKind.UNINSTALL)

    def describe(self) -> list[str]:
        """One human-readable line per operation, in plan order."""
        return [str(op) for op in self.operations]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dictionary.

        Returns:
            A dictionary suitable for JSON serialization.
        """
        summary = {kind.value: len(self.of_kind(kind)) for kind in OperationKind}
        return {
            "operations": [op.to_dict() for op in self.operations],
            "summary": summary,
        }

    def to_json(self, indent: int = 2) -> str:
        """Serialize to a deterministic JSON string."""
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)
