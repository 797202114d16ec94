"""User jobs: install, update and remove requests against one Pool.

Each job is anchored, at the moment it is added, to the candidate set the
Pool returns for its name and constraint. The snapshot is never
re-evaluated, so the solver always sees the universe the job was made in.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from pkgsat.core.pool import ANY, Constraint, ConstraintLike, Pool, normalize_name, parse_constraint

logger = logging.getLogger(__name__)


class JobKind(str, Enum):
    """The three job variants."""

    INSTALL = "install"
    UPDATE = "update"
    REMOVE = "remove"


@dataclass(frozen=True)
class Job:
    """One requested operation and the candidate ids it may mean.

    Attributes:
        kind: Install, update or remove.
        name: Target capability name.
        constraint: Accepted versions (``ANY`` when none was given).
        candidates: Pool ids matching name and constraint, in pool order.
    """

    kind: JobKind
    name: str
    constraint: Constraint
    candidates: tuple[int, ...]

    def __str__(self) -> str:
        if self.constraint == ANY:
            return f"{self.kind.value} {self.name}"
        return f"{self.kind.value} {self.name} {self.constraint}"


class Request:
    """Ordered queue of jobs resolved against a Pool.

    Job order does not change the logical problem, but it fixes the order
    rules are generated in, and with it decision and diagnostics order.

    Args:
        pool: The pool every job is resolved against.
    """

    def __init__(self, pool: Pool) -> None:
        self._pool = pool
        self._jobs: list[Job] = []

    @property
    def pool(self) -> Pool:
        return self._pool

    def install(self, name: str, constraint: ConstraintLike = None) -> Job:
        """Request that some provider of *name* be installed."""
        return self._add_job(JobKind.INSTALL, name, constraint)

    def update(self, name: str, constraint: ConstraintLike = None) -> Job:
        """Request *name* at its newest acceptable version."""
        return self._add_job(JobKind.UPDATE, name, constraint)

    def remove(self, name: str, constraint: ConstraintLike = None) -> Job:
        """Request that no matching provider of *name* stays installed."""
        return self._add_job(JobKind.REMOVE, name, constraint)

    def _add_job(self, kind: JobKind, name: str, constraint: ConstraintLike) -> Job:
        parsed = parse_constraint(constraint)
        normalized = normalize_name(name)
        candidates = tuple(self._pool.what_provides(normalized, parsed))
        job = Job(kind=kind, name=normalized, constraint=parsed, candidates=candidates)
        if not candidates:
            logger.warning("No package in the pool matches job %r", str(job))
        else:
            logger.debug("Job %r resolved to %d candidate(s)", str(job), len(candidates))
        self._jobs.append(job)
        return job

    @property
    def jobs(self) -> tuple[Job, ...]:
        return tuple(self._jobs)

    def __iter__(self) -> Iterator[Job]:
        return iter(self._jobs)

    def __len__(self) -> int:
        return len(self._jobs)
