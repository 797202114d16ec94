"""Translation of packages and jobs into rules.

The encoding follows the OPIUM approach (Tucker et al., ICSE 2007) as
refined by libsolv and Composer:

- install / update job ``J``:  ``c_1 OR ... OR c_n`` over J's candidates
- remove job ``J``:            ``~c`` for every candidate c
- installed package ``I`` not touched by any job:  ``I``
- ``P requires L``:            ``~P OR p_1 OR ... OR p_k`` over L's providers
                               (``~P`` alone when nothing provides L)
- ``P conflicts L``:           ``~P OR ~Q`` for every provider Q != P of L
- ``P replaces L``:            ``~P OR ~Q`` for every package Q named by L
- same package name:           ``~P OR ~Q`` for two versions P, Q of one name

Replacers need no rule of their own to *satisfy* anything: the Pool index
already lists them as providers of what they replace.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from pkgsat.core.pool import Link, Pool
from pkgsat.core.solver.request import JobKind, Request
from pkgsat.core.solver.rules import Rule, RuleReason, RuleSet
from pkgsat.exceptions import PoolError

logger = logging.getLogger(__name__)


def _unique(literals: Iterable[int]) -> tuple[int, ...]:
    return tuple(dict.fromkeys(literals))


class RuleGenerator:
    """Builds the ``RuleSet`` for one resolution run.

    Rules are emitted in a fixed order (jobs, installed packages, then
    package declarations by id) which makes decisions and diagnostics
    reproducible.

    Args:
        pool: The package universe.
        request: The jobs to satisfy.
        installed: Ids of the packages installed before the run.

    Raises:
        PoolError: If an installed id, or the request, belongs to another pool.
    """

    def __init__(self, pool: Pool, request: Request, installed: Iterable[int] = ()) -> None:
        if request.pool is not pool:
            raise PoolError("Request was resolved against a different pool")
        self._pool = pool
        self._request = request
        self._installed = tuple(dict.fromkeys(installed))
        for package_id in self._installed:
            if package_id not in pool:
                raise PoolError(f"Installed package id {package_id!r} is not in the pool")

    def generate(self) -> RuleSet:
        """Emit every rule for the run."""
        rules = RuleSet()
        self._add_job_rules(rules)
        self._add_installed_rules(rules)
        for package_id in self._pool.ids():
            self._add_package_rules(rules, package_id)
        logger.debug(
            "Generated %d rules for %d jobs over %d packages",
            len(rules), len(self._request), len(self._pool),
        )
        return rules

    # -- Jobs -------------------------------------------------------------------

    def _add_job_rules(self, rules: RuleSet) -> None:
        for job in self._request:
            if job.kind is JobKind.REMOVE:
                for candidate in job.candidates:
                    rules.add(Rule((-candidate,), RuleReason.JOB_REMOVE, job=job))
            elif job.candidates:
                rules.add(Rule(_unique(job.candidates), RuleReason.JOB_INSTALL, job=job))

    def _targeted(self) -> set[int]:
        """Installed ids that some job is allowed to change.

        Remove jobs release all of their candidates. Install and update jobs
        release only installed packages carrying the job's own name; an
        installed provider of the name under another name stays put.
        """
        targeted: set[int] = set()
        names = {job.name for job in self._request}
        for job in self._request:
            if job.kind is JobKind.REMOVE:
                targeted.update(job.candidates)
        for package_id in self._installed:
            if self._pool.package(package_id).name in names:
                targeted.add(package_id)
        return targeted

    def _add_installed_rules(self, rules: RuleSet) -> None:
        targeted = self._targeted()
        for package_id in self._installed:
            if package_id not in targeted:
                rules.add(Rule((package_id,), RuleReason.PACKAGE_INSTALLED, package_id=package_id))

    # -- Package declarations ---------------------------------------------------

    def _add_package_rules(self, rules: RuleSet, package_id: int) -> None:
        package = self._pool.package(package_id)

        for link in package.requires:
            providers = self._pool.what_provides(link.name, link.constraint)
            rules.add(self._package_rule(
                (-package_id, *providers), RuleReason.PACKAGE_REQUIRES, package_id, link,
            ))

        for link in package.conflicts:
            for other in self._pool.what_provides(link.name, link.constraint):
                if other != package_id:
                    rules.add(self._package_rule(
                        (-package_id, -other), RuleReason.PACKAGE_CONFLICTS, package_id, link,
                    ))

        for link in package.replaces:
            for other in self._pool.packages_named(link.name, link.constraint):
                if other != package_id:
                    rules.add(self._package_rule(
                        (-package_id, -other), RuleReason.PACKAGE_REPLACES, package_id, link,
                    ))

        for other in self._pool.packages_named(package.name):
            if other > package_id:
                rules.add(self._package_rule(
                    (-package_id, -other), RuleReason.PACKAGE_SAME_NAME, package_id, None,
                ))

    @staticmethod
    def _package_rule(
        literals: tuple[int, ...], reason: RuleReason, package_id: int, link: Link | None,
    ) -> Rule:
        return Rule(_unique(literals), reason, package_id=package_id, link=link)


def generate_rules(pool: Pool, request: Request, installed: Iterable[int] = ()) -> RuleSet:
    """Convenience wrapper around ``RuleGenerator(...).generate()``."""
    return RuleGenerator(pool, request, installed).generate()


