"""Conflict-driven backtracking search over package rules.

The solver is a small CDCL engine specialised for package selection:

- **Propagation**: two-watched-literal unit propagation to a fixed point.
- **Decision**: the first active rule (unsatisfied, every negative literal
  false, some positive literal undecided) gets its best candidate, per
  ``DecisionPolicy``, set true at a new decision level.
- **Conflict**: first-UIP analysis over the explicit trail produces a
  learned rule; the search backjumps to the second highest level in it.
- **Termination**: a conflict at level 0 is UNSATISFIABLE; no active rule
  left means every undecided package is set false and the run is
  SATISFIED.

The trail is an explicit stack of ``Decision`` entries (push on assign, pop
on backjump); nothing recurses. Each ``solve`` call owns its trail, its
learned rules and its watches.
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from pkgsat.core.pool import Pool
from pkgsat.core.solver.policy import DecisionPolicy, SolverPolicy
from pkgsat.core.solver.problem import Problem, build_chain, missing_job_step
from pkgsat.core.solver.request import JobKind, Request
from pkgsat.core.solver.rules import Decision, Rule, RuleReason

logger = logging.getLogger(__name__)


class SolverStatus(str, Enum):
    """Solver state machine: SEARCHING -> SATISFIED | UNSATISFIABLE | ABORTED."""

    SEARCHING = "searching"
    SATISFIED = "satisfied"
    UNSATISFIABLE = "unsatisfiable"
    ABORTED = "aborted"


@dataclass(frozen=True)
class SolverStats:
    """Counters for one search."""

    decisions: int = 0
    propagations: int = 0
    conflicts: int = 0
    learned: int = 0
    elapsed: float = 0.0


@dataclass(frozen=True)
class SolverResult:
    """Outcome of one search.

    Attributes:
        status: SATISFIED, UNSATISFIABLE or ABORTED.
        selected: Ids installed in the satisfying assignment.
        problem: The explanation when UNSATISFIABLE.
        stats: Search counters.
    """

    status: SolverStatus
    selected: frozenset[int] = frozenset()
    problem: Problem | None = None
    stats: SolverStats = field(default_factory=SolverStats)

    @property
    def success(self) -> bool:
        return self.status is SolverStatus.SATISFIED


class Solver:
    """CDCL search over a rule set.

    Args:
        pool: The package universe the rules refer to.
        rules: The generated rules, in generation order.
        installed: Ids installed before the run (for the decision policy).
        policy: Tie-break weighting and search budget.
    """

    def __init__(
        self,
        pool: Pool,
        rules: Iterable[Rule],
        installed: Iterable[int] = (),
        policy: SolverPolicy | None = None,
    ) -> None:
        self._pool = pool
        self._original: list[Rule] = list(rules)
        self._order = {rule: index for index, rule in enumerate(self._original)}
        self._settings = policy or SolverPolicy()
        self._policy = DecisionPolicy(pool, installed, self._settings)
        self.state = SolverStatus.SEARCHING
        self._reset()

    def _reset(self) -> None:
        size = len(self._pool) + 1
        self._values: list[bool | None] = [None] * size
        self._levels: list[int | None] = [None] * size
        self._reasons: list[Rule | None] = [None] * size
        self._trail: list[Decision] = []
        self._propagated = 0
        self._rules: list[Rule] = list(self._original)
        self._watch_pairs: list[list[int] | None] = [None] * len(self._rules)
        self._watches: dict[int, list[int]] = defaultdict(list)
        self._learned: list[Rule] = []
        self._decisions = 0
        self._propagations = 0
        self._conflicts = 0
        self._started = 0.0
        self.state = SolverStatus.SEARCHING

    @property
    def learned_rules(self) -> tuple[Rule, ...]:
        return tuple(self._learned)

    @property
    def trail(self) -> tuple[Decision, ...]:
        return tuple(self._trail)

    # -- Public entry point -----------------------------------------------------

    def solve(self, request: Request | None = None) -> SolverResult:
        """Search for an assignment satisfying every rule.

        Args:
            request: The request the rules were generated from; used to
                report install/update jobs that have no candidates at all.
        """
        self._reset()
        self._started = time.monotonic()

        if request is not None:
            missing = [job for job in request if job.kind is not JobKind.REMOVE and not job.candidates]
            if missing:
                chains = tuple((missing_job_step(job),) for job in missing)
                return self._finish(SolverStatus.UNSATISFIABLE, problem=Problem(chains))

        conflict = self._assert_units()
        if conflict is None:
            conflict = self._propagate()
        if conflict is not None:
            return self._unsatisfiable(conflict)

        level = 0
        while True:
            choice = self._select()
            if choice is None:
                break
            if self._budget_exhausted():
                logger.info("Search aborted after %d decisions", self._decisions)
                return self._finish(SolverStatus.ABORTED)
            rule, package_id = choice
            level += 1
            self._decisions += 1
            logger.debug(
                "Decide %s at level %d (from %s)",
                self._pool.pretty(package_id), level, rule.reason.value,
            )
            self._assign(package_id, level, None)

            while True:
                conflict = self._propagate()
                if conflict is None:
                    break
                self._conflicts += 1
                if level == 0:
                    return self._unsatisfiable(conflict)
                learned, backjump = self._analyze(conflict, level)
                logger.debug(
                    "Conflict at level %d on %r; learned %s, backjump to %d",
                    level, conflict, list(learned.literals), backjump,
                )
                self._revert(backjump)
                level = backjump
                self._add_learned(learned)
                self._assign(learned.literals[0], level, learned)

        for package_id in self._pool.ids():
            if self._values[package_id] is None:
                self._assign(-package_id, level, None)
        assert all(
            any(self._is_true(lit) for lit in rule.literals) for rule in self._rules
        ), "satisfying assignment violates a rule"

        selected = frozenset(pid for pid in self._pool.ids() if self._values[pid])
        return self._finish(SolverStatus.SATISFIED, selected=selected)

    def _finish(
        self,
        status: SolverStatus,
        selected: frozenset[int] = frozenset(),
        problem: Problem | None = None,
    ) -> SolverResult:
        self.state = status
        stats = SolverStats(
            decisions=self._decisions,
            propagations=self._propagations,
            conflicts=self._conflicts,
            learned=len(self._learned),
            elapsed=time.monotonic() - self._started,
        )
        logger.info(
            "Solver finished: %s after %d decisions, %d conflicts",
            status.value, stats.decisions, stats.conflicts,
        )
        return SolverResult(status=status, selected=selected, problem=problem, stats=stats)

    def _budget_exhausted(self) -> bool:
        settings = self._settings
        if settings.max_decisions is not None and self._decisions >= settings.max_decisions:
            return True
        if settings.timeout is not None and time.monotonic() - self._started > settings.timeout:
            return True
        return False

    # -- Assignment -------------------------------------------------------------

    def _value(self, lit: int) -> bool | None:
        value = self._values[abs(lit)]
        if value is None:
            return None
        return value if lit > 0 else not value

    def _is_true(self, lit: int) -> bool:
        return self._value(lit) is True

    def _is_false(self, lit: int) -> bool:
        return self._value(lit) is False

    def _assign(self, lit: int, level: int, rule: Rule | None) -> None:
        package_id = abs(lit)
        assert package_id in self._pool, f"literal {lit} references a package outside the pool"
        assert self._values[package_id] is None, f"package {package_id} assigned twice"
        self._values[package_id] = lit > 0
        self._levels[package_id] = level
        self._reasons[package_id] = rule
        self._trail.append(Decision(lit, level, rule))

    def _revert(self, level: int) -> None:
        while self._trail and self._trail[-1].level > level:
            decision = self._trail.pop()
            package_id = abs(decision.literal)
            self._values[package_id] = None
            self._levels[package_id] = None
            self._reasons[package_id] = None
        self._propagated = len(self._trail)

    # -- Propagation ------------------------------------------------------------

    def _watch(self, index: int, first: int, second: int) -> None:
        self._watch_pairs[index] = [first, second]
        self._watches[first].append(index)
        self._watches[second].append(index)

    def _assert_units(self) -> Rule | None:
        """Assert unit rules at level 0 and set up watches for the rest."""
        for index, rule in enumerate(self._rules):
            if rule.is_assertion:
                lit = rule.literals[0]
                if self._is_false(lit):
                    return rule
                if not self._is_true(lit):
                    self._assign(lit, 0, rule)
            else:
                self._watch(index, rule.literals[0], rule.literals[1])
        return None

    def _propagate(self) -> Rule | None:
        """Unit-propagate the unprocessed tail of the trail.

        Returns:
            The rule that became false, or None at a fixed point.
        """
        while self._propagated < len(self._trail):
            false_lit = -self._trail[self._propagated].literal
            self._propagated += 1
            watchers = self._watches[false_lit]
            position = 0
            while position < len(watchers):
                index = watchers[position]
                pair = self._watch_pairs[index]
                other = pair[1] if pair[0] == false_lit else pair[0]
                if self._is_true(other):
                    position += 1
                    continue

                rule = self._rules[index]
                replacement = next(
                    (lit for lit in rule.literals
                     if lit != pair[0] and lit != pair[1] and not self._is_false(lit)),
                    None,
                )
                if replacement is not None:
                    pair[pair.index(false_lit)] = replacement
                    watchers[position] = watchers[-1]
                    watchers.pop()
                    self._watches[replacement].append(index)
                    continue

                if self._is_false(other):
                    return rule
                self._propagations += 1
                self._assign(other, self._trail[-1].level, rule)
                position += 1
        return None

    # -- Decisions --------------------------------------------------------------

    def _select(self) -> tuple[Rule, int] | None:
        """Find the first active rule and the policy's pick among its candidates."""
        for rule in self._original:
            undecided: list[int] = []
            settled = False
            for lit in rule.literals:
                value = self._value(lit)
                if value is True:
                    settled = True
                    break
                if value is None:
                    if lit < 0:
                        settled = True
                        break
                    undecided.append(lit)
            if settled or not undecided:
                continue
            return rule, self._policy.select(rule, undecided)
        return None

    # -- Conflict analysis ------------------------------------------------------

    def _analyze(self, conflict: Rule, level: int) -> tuple[Rule, int]:
        """First-UIP analysis of a conflict at *level*.

        Returns:
            The learned rule (UIP literal first, then the literal with the
            highest remaining level) and the level to backjump to.
        """
        seen: set[int] = set()
        tail: list[int] = []
        involved: list[Rule] = [conflict]
        pending = 0
        index = len(self._trail) - 1
        rule = conflict

        while True:
            for lit in rule.literals:
                package_id = abs(lit)
                if package_id in seen:
                    continue
                lit_level = self._levels[package_id]
                if lit_level == 0:
                    continue
                seen.add(package_id)
                if lit_level == level:
                    pending += 1
                else:
                    tail.append(lit)

            while abs(self._trail[index].literal) not in seen:
                index -= 1
            decision = self._trail[index]
            index -= 1
            pending -= 1
            if pending == 0:
                break
            rule = self._reasons[abs(decision.literal)]
            assert rule is not None, "implied literal without a reason"
            involved.append(rule)

        tail.sort(key=lambda lit: self._levels[abs(lit)], reverse=True)
        backjump = self._levels[abs(tail[0])] if tail else 0
        learned = Rule(
            (-decision.literal, *tail),
            RuleReason.LEARNED,
            origin=tuple(self._explain(involved)),
        )
        return learned, backjump

    def _add_learned(self, rule: Rule) -> None:
        index = len(self._rules)
        self._rules.append(rule)
        self._watch_pairs.append(None)
        self._learned.append(rule)
        if not rule.is_assertion:
            self._watch(index, rule.literals[0], rule.literals[1])

    def _explain(self, rules: Iterable[Rule]) -> list[Rule]:
        """Original rules behind *rules*, following level-0 facts.

        Learned rules are replaced by their recorded origin; every literal
        fixed at level 0 contributes the rule that fixed it.
        """
        collected: dict[Rule, None] = {}
        expanded: set[Rule] = set()
        visited: set[int] = set()
        stack: list[tuple[Rule, bool]] = [(rule, True) for rule in rules]

        while stack:
            rule, expand = stack.pop()
            if rule.is_learned:
                stack.extend((original, False) for original in rule.origin)
            else:
                collected.setdefault(rule, None)
            if not expand or rule in expanded:
                continue
            expanded.add(rule)
            for lit in rule.literals:
                package_id = abs(lit)
                if package_id in visited or self._levels[package_id] != 0:
                    continue
                visited.add(package_id)
                reason = self._reasons[package_id]
                if reason is not None:
                    stack.append((reason, True))

        return sorted(collected, key=lambda rule: self._order.get(rule, len(self._order)))

    def _unsatisfiable(self, conflict: Rule) -> SolverResult:
        rules = self._explain([conflict])
        logger.debug("Unsatisfiable; %d original rules involved", len(rules))
        problem = Problem(chains=(build_chain(self._pool, rules),), rules=tuple(rules))
        return self._finish(SolverStatus.UNSATISFIABLE, problem=problem)
