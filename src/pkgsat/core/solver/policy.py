"""Solver configuration and the package-selection decision policy.

When propagation leaves a choice open, the solver asks the policy which
candidate of an active rule to try first. The default total order is:

1. packages already installed (except for update jobs, which want news),
2. packages whose own name is the requested capability name,
3. highest version (lowest with ``prefer_lowest``),
4. highest repository priority,
5. lowest pool id.

With ``priority_over_version`` steps 3 and 4 swap. The order is total, so
identical inputs always produce identical choices.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields
from typing import Any

from pkgsat.core.pool import Pool, version_key
from pkgsat.core.solver.request import JobKind
from pkgsat.core.solver.rules import Rule


@dataclass(frozen=True)
class SolverPolicy:
    """Tunable knobs for one resolution run.

    Attributes:
        prefer_installed: Keep an installed candidate over a newer one.
        prefer_lowest: Pick the lowest acceptable version instead of the
            highest (update jobs still pick the newest).
        priority_over_version: Rank repository priority above version.
        max_decisions: Abort the search after this many decisions.
        timeout: Abort the search after this many seconds.
    """

    prefer_installed: bool = True
    prefer_lowest: bool = False
    priority_over_version: bool = False
    max_decisions: int | None = None
    timeout: float | None = None

    def __post_init__(self) -> None:
        if self.max_decisions is not None and self.max_decisions < 0:
            raise ValueError("max_decisions must be >= 0")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> SolverPolicy:
        """Build a policy from a plain mapping, e.g. a config file section.

        Raises:
            ValueError: On unknown keys or invalid values.
        """
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown solver policy option(s): {', '.join(unknown)}")
        return cls(**dict(data))


class DecisionPolicy:
    """Orders candidate package ids for the solver's free decisions.

    Args:
        pool: The package universe.
        installed: Ids installed before the run.
        settings: The tunable policy; defaults to ``SolverPolicy()``.
    """

    def __init__(
        self,
        pool: Pool,
        installed: Iterable[int] = (),
        settings: SolverPolicy | None = None,
    ) -> None:
        self._pool = pool
        self._installed = frozenset(installed)
        self._settings = settings or SolverPolicy()
        keys = sorted({version_key(p.version) for p in pool}, reverse=True)
        rank = {key: index for index, key in enumerate(keys)}
        self._version_rank = {
            package_id: rank[version_key(pool.package(package_id).version)]
            for package_id in pool.ids()
        }

    @property
    def settings(self) -> SolverPolicy:
        return self._settings

    def candidate_key(self, package_id: int, target: str | None = None, newest_first: bool = False) -> tuple:
        """Sort key of one candidate; smaller is preferred."""
        package = self._pool.package(package_id)
        settings = self._settings
        installed_rank = 0
        if settings.prefer_installed and not newest_first and package_id in self._installed:
            installed_rank = -1
        name_rank = 0 if target is not None and package.name == target else 1
        version_rank = self._version_rank[package_id]
        if settings.prefer_lowest and not newest_first:
            version_rank = -version_rank
        priority_rank = -package.priority
        if settings.priority_over_version:
            return (installed_rank, name_rank, priority_rank, version_rank, package_id)
        return (installed_rank, name_rank, version_rank, priority_rank, package_id)

    def order(self, package_ids: Iterable[int], target: str | None = None, newest_first: bool = False) -> list[int]:
        """Return *package_ids* best-first."""
        return sorted(package_ids, key=lambda pid: self.candidate_key(pid, target, newest_first))

    def select(self, rule: Rule, undecided: Iterable[int]) -> int:
        """Pick the package to try first among a rule's undecided candidates."""
        newest_first = rule.job is not None and rule.job.kind is JobKind.UPDATE
        return min(undecided, key=lambda pid: self.candidate_key(pid, rule.target, newest_first))
