"""Explanations for unsatisfiable requests.

A ``Problem`` is an ordered list of reason chains. Each chain is the set of
original (never learned) rules behind one contradiction, rendered as
``(subject, relation, object)`` steps in user terms: jobs, packages and the
links between them.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from pkgsat.core.pool import Pool
from pkgsat.core.solver.request import Job, JobKind
from pkgsat.core.solver.rules import Rule, RuleReason

_REASON_RANK = {
    RuleReason.JOB_INSTALL: 0,
    RuleReason.JOB_REMOVE: 0,
    RuleReason.PACKAGE_INSTALLED: 1,
}


@dataclass(frozen=True)
class ReasonStep:
    """One link of a reason chain, e.g. ``a@1.0 conflicts with b@1.0``."""

    subject: str
    relation: str
    object: str
    reason: RuleReason | None = None

    def __str__(self) -> str:
        return f"{self.subject} {self.relation} {self.object}".strip()


@dataclass(frozen=True)
class Problem:
    """Why a request cannot be satisfied.

    Attributes:
        chains: Ordered reason chains; never empty for a failed run.
        rules: The original rules implicated, across all chains.
    """

    chains: tuple[tuple[ReasonStep, ...], ...]
    rules: tuple[Rule, ...] = field(default=(), compare=False)

    @property
    def reasons(self) -> set[RuleReason]:
        return {step.reason for chain in self.chains for step in chain if step.reason is not None}

    def describe(self) -> str:
        """Render the chains as indented, human-readable text."""
        lines: list[str] = []
        for index, chain in enumerate(self.chains, start=1):
            lines.append(f"Problem {index}")
            lines.extend(f"  - {step}" for step in chain)
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        return {
            "chains": [
                [
                    {
                        "subject": step.subject,
                        "relation": step.relation,
                        "object": step.object,
                        "reason": step.reason.value if step.reason else None,
                    }
                    for step in chain
                ]
                for chain in self.chains
            ]
        }

    def __str__(self) -> str:
        return self.describe()


def _pretty_ids(pool: Pool, ids: Iterable[int]) -> str:
    return ", ".join(pool.pretty(package_id) for package_id in ids)


def _other(rule: Rule) -> int:
    return next(abs(lit) for lit in rule.literals if abs(lit) != rule.package_id)


def describe_rule(pool: Pool, rule: Rule) -> ReasonStep:
    """Render one original rule as a reason step."""
    reason = rule.reason
    if reason is RuleReason.JOB_INSTALL:
        relation = "updates to one of" if rule.job.kind is JobKind.UPDATE else "needs one of"
        return ReasonStep(f"job '{rule.job}'", relation, _pretty_ids(pool, rule.literals), reason)
    if reason is RuleReason.JOB_REMOVE:
        return ReasonStep(f"job '{rule.job}'", "forbids", pool.pretty(abs(rule.literals[0])), reason)
    if reason is RuleReason.PACKAGE_INSTALLED:
        return ReasonStep(pool.pretty(rule.package_id), "is kept from", "the installed set", reason)

    subject = pool.pretty(rule.package_id)
    if reason is RuleReason.PACKAGE_REQUIRES:
        providers = [abs(lit) for lit in rule.literals if lit > 0]
        if providers:
            target = f"{rule.link} (satisfied by {_pretty_ids(pool, providers)})"
        else:
            target = f"{rule.link}, which no package in the pool provides"
        return ReasonStep(subject, "requires", target, reason)
    if reason is RuleReason.PACKAGE_CONFLICTS:
        return ReasonStep(subject, "conflicts with", pool.pretty(_other(rule)), reason)
    if reason is RuleReason.PACKAGE_REPLACES:
        return ReasonStep(subject, "replaces", pool.pretty(_other(rule)), reason)
    if reason is RuleReason.PACKAGE_SAME_NAME:
        return ReasonStep(subject, "cannot be installed together with", pool.pretty(_other(rule)), reason)
    literals = " OR ".join(("" if lit > 0 else "not ") + pool.pretty(abs(lit)) for lit in rule.literals)
    return ReasonStep("learned rule", "requires", literals, reason)


def missing_job_step(job: Job) -> ReasonStep:
    """Reason step for an install/update job whose candidate set is empty."""
    return ReasonStep(
        f"job '{job}'",
        "matches",
        "no package in the pool",
        RuleReason.JOB_INSTALL,
    )


def build_chain(pool: Pool, rules: Iterable[Rule]) -> tuple[ReasonStep, ...]:
    """Render original rules as one chain: jobs first, then installed, then packages."""
    ordered = sorted(rules, key=lambda rule: _REASON_RANK.get(rule.reason, 2))
    return tuple(describe_rule(pool, rule) for rule in ordered)
