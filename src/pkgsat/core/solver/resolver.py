"""Resolver facade: rules, search and transaction in one call.

``DependencyResolver`` is what callers normally use. It wires the Rule
Generator, the Solver and the Transaction Builder together for one
request against one Pool and installed set.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from pkgsat.core.pool import Pool
from pkgsat.core.solver.generator import RuleGenerator
from pkgsat.core.solver.policy import SolverPolicy
from pkgsat.core.solver.problem import Problem
from pkgsat.core.solver.request import Request
from pkgsat.core.solver.solver import Solver, SolverStats, SolverStatus
from pkgsat.core.transaction import Transaction, TransactionBuilder

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Resolution: The output of one resolver run
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Resolution:
    """Result of resolving one request.

    A successful resolution carries the ordered transaction that turns the
    installed set into the selected set. A failed one carries either the
    ``Problem`` (unsatisfiable) or nothing (aborted by the budget).

    Attributes:
        status: SATISFIED, UNSATISFIABLE or ABORTED.
        transaction: The plan; empty unless the run succeeded.
        problem: Why the request cannot be satisfied, if it cannot.
        selected: Ids installed after the plan runs.
        stats: Search counters.
    """

    status: SolverStatus
    transaction: Transaction = field(default_factory=Transaction)
    problem: Problem | None = None
    selected: frozenset[int] = frozenset()
    stats: SolverStats = field(default_factory=SolverStats)
    pool: Pool | None = field(default=None, repr=False, compare=False)

    @property
    def success(self) -> bool:
        return self.status is SolverStatus.SATISFIED

    def installed_names(self) -> dict[str, str]:
        """Mapping of package name -> version for the resulting package set."""
        if self.pool is None:
            return {}
        packages = sorted((self.pool.package(pid) for pid in self.selected), key=lambda p: p.sort_key)
        return {package.name: package.version for package in packages}


# ---------------------------------------------------------------------------
# DependencyResolver
# ---------------------------------------------------------------------------


class DependencyResolver:
    """Resolves requests against a Pool and an installed set.

    Args:
        pool: The package universe.
        installed: Ids installed before the run.
        policy: Tie-break weighting and search budget.
    """

    def __init__(
        self,
        pool: Pool,
        installed: Iterable[int] = (),
        policy: SolverPolicy | None = None,
    ) -> None:
        self._pool = pool
        self._installed = tuple(dict.fromkeys(installed))
        self._policy = policy or SolverPolicy()

    @property
    def pool(self) -> Pool:
        return self._pool

    @property
    def policy(self) -> SolverPolicy:
        return self._policy

    def resolve(self, request: Request) -> Resolution:
        """Solve *request* and plan the resulting transaction.

        Returns:
            A ``Resolution``. Unsatisfiable and aborted runs are reported
            through ``status``, never raised.

        Raises:
            PoolError: If the request or an installed id belongs to another pool.
        """
        rules = RuleGenerator(self._pool, request, self._installed).generate()
        solver = Solver(self._pool, rules, self._installed, self._policy)
        result = solver.solve(request)

        if not result.success:
            if result.problem is not None:
                logger.info("Request is unsatisfiable:\n%s", result.problem.describe())
            return Resolution(
                status=result.status,
                problem=result.problem,
                stats=result.stats,
                pool=self._pool,
            )

        transaction = TransactionBuilder(self._pool, self._installed).build(result.selected)
        logger.info("Resolved %d job(s) into %d operation(s)", len(request), len(transaction))
        return Resolution(
            status=result.status,
            transaction=transaction,
            selected=result.selected,
            stats=result.stats,
            pool=self._pool,
        )
