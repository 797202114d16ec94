"""Literals, rules and the rule set the solver searches over.

A literal is a signed package id: ``+id`` reads "package id is installed",
``-id`` reads "package id is not installed" (the DIMACS convention, shared
with python-sat). A rule is a disjunction of literals that must hold in
every valid assignment, tagged with the reason it exists so that an
unsatisfiable run can be explained in terms of jobs and packages.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from pkgsat.core.pool import Link

if TYPE_CHECKING:
    from pkgsat.core.solver.request import Job


def literal(package_id: int, installed: bool = True) -> int:
    """Build the literal for a package id with the given polarity."""
    assert package_id > 0, "package ids start at 1"
    return package_id if installed else -package_id


def package_id(lit: int) -> int:
    return abs(lit)


def is_positive(lit: int) -> bool:
    return lit > 0


class RuleReason(str, Enum):
    """Why a rule exists."""

    JOB_INSTALL = "job-install"
    JOB_REMOVE = "job-remove"
    PACKAGE_INSTALLED = "package-installed"
    PACKAGE_REQUIRES = "package-requires"
    PACKAGE_CONFLICTS = "package-conflicts"
    PACKAGE_REPLACES = "package-replace"
    PACKAGE_SAME_NAME = "package-same-name"
    LEARNED = "learned"

    @property
    def is_job(self) -> bool:
        return self in (RuleReason.JOB_INSTALL, RuleReason.JOB_REMOVE)


@dataclass(frozen=True, eq=False)
class Rule:
    """A disjunction of literals plus its provenance.

    Rules compare by identity; ``RuleSet`` deduplicates by literal set.

    Attributes:
        literals: The disjunction, never empty.
        reason: Why the rule exists.
        package_id: The package whose declaration produced the rule.
        link: The requires / conflicts / replaces link behind the rule.
        job: The job behind a job rule.
        origin: For learned rules, the original rules they derive from.
    """

    literals: tuple[int, ...]
    reason: RuleReason
    package_id: int | None = None
    link: Link | None = None
    job: Job | None = None
    origin: tuple[Rule, ...] = ()

    def __post_init__(self) -> None:
        assert self.literals, "a rule must contain at least one literal"

    @property
    def is_assertion(self) -> bool:
        return len(self.literals) == 1

    @property
    def is_learned(self) -> bool:
        return self.reason is RuleReason.LEARNED

    @property
    def target(self) -> str | None:
        """Capability name the rule is about, used by the decision policy."""
        if self.job is not None:
            return self.job.name
        if self.link is not None:
            return self.link.name
        return None

    def signature(self) -> frozenset[int]:
        return frozenset(self.literals)

    def __repr__(self) -> str:
        return f"Rule({self.reason.value}, {list(self.literals)})"


@dataclass(frozen=True)
class Decision:
    """One trail entry: a literal assigned at a decision level.

    ``rule`` is the rule that forced the literal, or None for a free choice.
    """

    literal: int
    level: int
    rule: Rule | None = None


class RuleSet:
    """Ordered collection of generated rules.

    Rules keep generation order. Tautologies (``x OR ~x``) and rules whose
    literal set was already added are dropped.
    """

    def __init__(self, rules: Iterable[Rule] = ()) -> None:
        self._rules: list[Rule] = []
        self._signatures: set[frozenset[int]] = set()
        for rule in rules:
            self.add(rule)

    def add(self, rule: Rule) -> bool:
        """Add a rule; return False if it was a duplicate or tautology."""
        signature = rule.signature()
        if any(-lit in signature for lit in signature):
            return False
        if signature in self._signatures:
            return False
        self._signatures.add(signature)
        self._rules.append(rule)
        return True

    def by_reason(self, reason: RuleReason) -> list[Rule]:
        return [rule for rule in self._rules if rule.reason is reason]

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __getitem__(self, index: int) -> Rule:
        return self._rules[index]
