"""The Pool: the indexed universe of candidate packages for one resolution run.

The pool assigns every package a stable integer id (``1..n`` in input
order) and builds a provide index once, at construction: capability name
-> ids of the packages that provide it. Provider lists are ordered by
repository priority (descending), then version (descending), then id, and
that order is the default tie-break for every later query.

The pool is never mutated after construction, so concurrent readers are
safe. It is an explicit value owned by one run, never a global registry.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Iterator

from pkgsat.core.pool.constraints import Constraint, ConstraintLike, parse_constraint, version_key
from pkgsat.core.pool.package import Package, normalize_name
from pkgsat.exceptions import PoolError

logger = logging.getLogger(__name__)


class Pool:
    """Indexed, read-only universe of ``Package`` records.

    Example::

        pool = Pool([Package("a", "1.0", requires={"b": "^1.0"}),
                     Package("b", "1.0"), Package("b", "2.0")])
        pool.what_provides("b", "^1.0")   # -> [2]

    Args:
        packages: The package records; ids follow iteration order.

    Raises:
        PoolError: If the same (name, version, repository) appears twice.
    """

    def __init__(self, packages: Iterable[Package] = ()) -> None:
        self._packages: list[Package] = []
        self._ids: dict[Package, int] = {}
        seen: dict[tuple, int] = {}

        for package in packages:
            identity = (package.name, version_key(package.version), package.repository)
            if identity in seen:
                raise PoolError(
                    f"Duplicate package {package.pretty}"
                    + (f" in repository {package.repository!r}" if package.repository else "")
                )
            self._packages.append(package)
            package_id = len(self._packages)
            seen[identity] = package_id
            self._ids.setdefault(package, package_id)

        providers: dict[str, list[tuple[int, Constraint]]] = defaultdict(list)
        named: dict[str, list[int]] = defaultdict(list)
        for package_id, package in enumerate(self._packages, start=1):
            named[package.name].append(package_id)
            for capability, provided in package.capabilities():
                entries = providers[capability]
                if not any(existing == package_id for existing, _ in entries):
                    entries.append((package_id, provided))

        self._providers = {name: self._ordered(entries) for name, entries in providers.items()}
        self._named = {
            name: [pid for pid, _ in self._ordered([(pid, None) for pid in ids])]
            for name, ids in named.items()
        }
        logger.debug(
            "Indexed %d packages providing %d capabilities",
            len(self._packages), len(self._providers),
        )

    @classmethod
    def index(cls, packages: Iterable[Package]) -> Pool:
        """Build a pool and its provide index from package records."""
        return cls(packages)

    def _ordered(self, entries: list) -> list:
        """Sort by repository priority desc, version desc, id asc."""
        ordered = sorted(entries, key=lambda e: e[0])
        ordered.sort(key=lambda e: version_key(self._packages[e[0] - 1].version), reverse=True)
        ordered.sort(key=lambda e: self._packages[e[0] - 1].priority, reverse=True)
        return ordered

    # -- Lookup ---------------------------------------------------------------

    def package(self, package_id: int) -> Package:
        """Return the package with the given id.

        Raises:
            KeyError: If the id does not belong to this pool.
        """
        if not isinstance(package_id, int) or not 1 <= package_id <= len(self._packages):
            raise KeyError(package_id)
        return self._packages[package_id - 1]

    def package_id(self, package: Package) -> int:
        """Return the id of a package record held by this pool.

        Raises:
            KeyError: If the record is not in the pool.
        """
        return self._ids[package]

    def find(self, name: str, version: str, repository: str | None = None) -> int | None:
        """Return the id of ``name@version`` (first match), or None."""
        key = version_key(version)
        for package_id in self._named.get(normalize_name(name), []):
            package = self._packages[package_id - 1]
            if version_key(package.version) != key:
                continue
            if repository is None or package.repository == repository:
                return package_id
        return None

    def what_provides(self, name: str, constraint: ConstraintLike = None) -> list[int]:
        """Return ids of every package providing *name* under *constraint*.

        A provider qualifies when the versions it provides the capability at
        intersect *constraint*; ``None`` matches every provider. The result
        follows the index order and is deterministic.
        """
        entries = self._providers.get(normalize_name(name), [])
        if constraint is None:
            return [package_id for package_id, _ in entries]
        wanted = parse_constraint(constraint)
        return [package_id for package_id, provided in entries if provided.intersects(wanted)]

    def packages_named(self, name: str, constraint: ConstraintLike = None) -> list[int]:
        """Return ids of packages whose own name is *name*, in index order."""
        ids = self._named.get(normalize_name(name), [])
        if constraint is None:
            return list(ids)
        wanted = parse_constraint(constraint)
        return [pid for pid in ids if wanted.matches(self._packages[pid - 1].version)]

    def names(self) -> list[str]:
        """Sorted list of all package names in the pool."""
        return sorted(self._named)

    def pretty(self, package_id: int) -> str:
        return self.package(package_id).pretty

    # -- Container protocol ---------------------------------------------------

    def __len__(self) -> int:
        return len(self._packages)

    def __iter__(self) -> Iterator[Package]:
        return iter(self._packages)

    def __contains__(self, package_id: object) -> bool:
        return isinstance(package_id, int) and 1 <= package_id <= len(self._packages)

    def ids(self) -> range:
        """All package ids, in id order."""
        return range(1, len(self._packages) + 1)
