"""Package records and the capability links between them.

A ``Package`` is one concrete version of one package: its identity (name,
version, repository) and the capability links it declares. A ``Link``
names a capability plus the version constraint under which it is
required, conflicted with, provided or replaced.

Both are frozen: once a package is placed in a ``Pool`` it never changes.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Union

from pkgsat.core.pool.constraints import (
    ANY,
    Constraint,
    ConstraintLike,
    ExactConstraint,
    parse_constraint,
    version_key,
)
from pkgsat.exceptions import ConstraintError


def normalize_name(name: str) -> str:
    """Capability names compare case-insensitively."""
    return name.strip().lower()


@dataclass(frozen=True)
class Link:
    """A capability spec: a name plus a version constraint.

    In the rule encoding a ``requires`` link of package P becomes
    ``~P OR provider_1 OR ... OR provider_n`` and a ``conflicts`` link
    becomes ``~P OR ~Q`` for every matching provider Q.

    Attributes:
        name: Capability name, normalized to lower case.
        constraint: Accepted versions. A string is parsed on construction.
    """

    name: str
    constraint: Constraint = ANY

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ConstraintError("Link name must not be empty")
        object.__setattr__(self, "name", normalize_name(self.name))
        if not isinstance(self.constraint, Constraint):
            object.__setattr__(self, "constraint", parse_constraint(self.constraint))

    def matches(self, version: str) -> bool:
        return self.constraint.matches(version)

    def __str__(self) -> str:
        if self.constraint == ANY:
            return self.name
        return f"{self.name} {self.constraint}"


LinksLike = Union[Mapping[str, ConstraintLike], Iterable[Union[Link, str, tuple]], None]


def _links(value: LinksLike) -> tuple[Link, ...]:
    """Coerce a mapping or iterable of link specs into a tuple of Links."""
    if not value:
        return ()
    if isinstance(value, Mapping):
        return tuple(Link(name, constraint) for name, constraint in value.items())
    links: list[Link] = []
    for item in value:
        if isinstance(item, Link):
            links.append(item)
        elif isinstance(item, str):
            links.append(Link(item))
        else:
            links.append(Link(*item))
    return tuple(links)


@dataclass(frozen=True)
class Package:
    """One concrete package version in the universe.

    A package always provides its own name at its own version. Entries in
    ``provides`` without a constraint are provided at the package's own
    version. A ``replaces`` entry without a constraint stands in for every
    version of the replaced name, matching the replace rule that excludes
    all of them.

    Attributes:
        name: Package name, normalized to lower case.
        version: Version string; validated on construction.
        requires: Capabilities that must be installed alongside.
        conflicts: Capabilities that must not be installed alongside.
        provides: Additional capabilities this package satisfies.
        replaces: Packages this one stands in for; it provides their names
            and cannot be installed together with them.
        repository: Name of the repository the record came from.
        priority: Repository priority, higher is preferred.
        autoload: ``(prefix, relative path)`` pairs describing the source
            layout, consumed by the autoload collaborator only.
    """

    name: str
    version: str
    requires: tuple[Link, ...] = ()
    conflicts: tuple[Link, ...] = ()
    provides: tuple[Link, ...] = ()
    replaces: tuple[Link, ...] = ()
    repository: str = ""
    priority: int = 0
    autoload: tuple[tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ConstraintError("Package name must not be empty")
        object.__setattr__(self, "name", normalize_name(self.name))
        version_key(self.version)
        for attr in ("requires", "conflicts", "provides", "replaces"):
            object.__setattr__(self, attr, _links(getattr(self, attr)))
        if isinstance(self.autoload, Mapping):
            object.__setattr__(self, "autoload", tuple(self.autoload.items()))
        else:
            object.__setattr__(self, "autoload", tuple(tuple(pair) for pair in self.autoload))

    @property
    def pretty(self) -> str:
        return f"{self.name}@{self.version}"

    @property
    def sort_key(self) -> tuple:
        """Order by name, then version ascending."""
        return (self.name, version_key(self.version), self.repository)

    def capabilities(self) -> list[tuple[str, Constraint]]:
        """Every (capability name, provided versions) pair of this package."""
        own = ExactConstraint(self.version)
        caps = [(self.name, own)]
        for link in self.provides:
            caps.append((link.name, own if link.constraint == ANY else link.constraint))
        for link in self.replaces:
            caps.append((link.name, link.constraint))
        return caps

    def __str__(self) -> str:
        return self.pretty
