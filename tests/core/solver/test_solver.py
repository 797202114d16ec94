"""Tests for the CDCL solver: scenarios, learning, budget and explanations.

Covers the four canonical scenarios (simple install, conflict with an
installed package, update, remove with a dependent) plus conflict-driven
learning and the decision budget.
"""

from __future__ import annotations

from pkgsat.core.pool import Pool
from pkgsat.core.solver import (
    RuleReason,
    Solver,
    SolverPolicy,
    SolverStatus,
    generate_rules,
)
from tests.helpers import pid, pkg, plan, request_for, resolve


def _solve(pool: Pool, *jobs: tuple, installed=(), policy: SolverPolicy | None = None):
    request = request_for(pool, *jobs)
    installed_ids = [pid(pool, spec) for spec in installed]
    rules = generate_rules(pool, request, installed_ids)
    solver = Solver(pool, rules, installed_ids, policy)
    return solver, solver.solve(request)


# ===========================================================================
# Canonical scenarios
# ===========================================================================


class TestScenarios:
    """End-to-end behaviour for the four reference scenarios."""

    def test_install_with_dependency(self, simple_pool: Pool) -> None:
        """install a pulls in the only matching b, dependency first."""
        resolution = resolve(simple_pool, ("install", "a"))
        assert resolution.success
        assert resolution.installed_names() == {"a": "1.0", "b": "1.0"}
        assert plan(resolution) == ["Install b@1.0", "Install a@1.0"]

    def test_conflict_with_installed_package(self) -> None:
        """a conflicts with the installed b: unsatisfiable."""
        pool = Pool([pkg("a", conflicts=["b"]), pkg("b")])
        resolution = resolve(pool, ("install", "a"), installed=("b@1.0",))
        assert resolution.status is SolverStatus.UNSATISFIABLE
        assert not resolution.transaction
        assert {
            RuleReason.JOB_INSTALL,
            RuleReason.PACKAGE_INSTALLED,
            RuleReason.PACKAGE_CONFLICTS,
        } <= resolution.problem.reasons

    def test_update_to_newest(self, versions_pool: Pool) -> None:
        """update a moves 1.0 to 2.0 in one operation."""
        resolution = resolve(versions_pool, ("update", "a"), installed=("a@1.0",))
        assert resolution.success
        assert plan(resolution) == ["Update a (1.0 => 2.0)"]

    def test_remove_with_installed_dependent(self) -> None:
        """remove a is impossible while the installed b requires it."""
        pool = Pool([pkg("a"), pkg("b", requires=["a"])])
        resolution = resolve(pool, ("remove", "a"), installed=("a@1.0", "b@1.0"))
        assert resolution.status is SolverStatus.UNSATISFIABLE
        assert RuleReason.PACKAGE_REQUIRES in resolution.problem.reasons

    def test_remove_dependent_and_dependency(self) -> None:
        """Removing both uninstalls the dependent first."""
        pool = Pool([pkg("a"), pkg("b", requires=["a"])])
        resolution = resolve(
            pool, ("remove", "a"), ("remove", "b"), installed=("a@1.0", "b@1.0"),
        )
        assert resolution.success
        assert plan(resolution) == ["Uninstall b@1.0", "Uninstall a@1.0"]


# ===========================================================================
# Search behaviour
# ===========================================================================


class TestSearch:
    """Tests for decisions, propagation and learning."""

    def test_propagation_only(self, simple_pool: Pool) -> None:
        """A fully forced problem needs no decisions."""
        _, result = _solve(simple_pool, ("install", "a"))
        assert result.success
        assert result.stats.decisions == 0
        assert result.selected == frozenset({1, 2})

    def test_decision_prefers_newest(self, versions_pool: Pool) -> None:
        """A free choice between versions picks the newest."""
        _, result = _solve(versions_pool, ("install", "a"))
        assert result.selected == frozenset({2})
        assert result.stats.decisions == 1

    def test_installed_version_is_kept_on_install(self, versions_pool: Pool) -> None:
        """install a with a@1.0 installed changes nothing."""
        resolution = resolve(versions_pool, ("install", "a"), installed=("a@1.0",))
        assert resolution.success
        assert plan(resolution) == []

    def test_conflict_learns_and_backjumps(self) -> None:
        """The newest a leads to a conflict; the solver learns ~a@2.0."""
        pool = Pool([
            pkg("a", "2.0", requires=["b"]),
            pkg("a", "1.0"),
            pkg("b", "1.0", requires={"c": "^2.0"}),
            pkg("c", "2.0", conflicts={"a": "2.0"}),
        ])
        solver, result = _solve(pool, ("install", "a"))
        assert result.success
        assert result.selected == frozenset({pid(pool, "a@1.0")})
        assert result.stats.conflicts == 1

        (learned,) = solver.learned_rules
        assert learned.literals == (-pid(pool, "a@2.0"),)
        assert learned.is_learned
        assert {rule.reason for rule in learned.origin} == {
            RuleReason.PACKAGE_REQUIRES,
            RuleReason.PACKAGE_CONFLICTS,
        }

    def test_unsat_after_learning_explains_with_original_rules(self) -> None:
        """Every version of a fails; the problem lists only original rules."""
        pool = Pool([
            pkg("a", "2.0", requires=["b"]),
            pkg("a", "1.0", requires=["b"]),
            pkg("b", "1.0", conflicts=["a"]),
        ])
        _, result = _solve(pool, ("install", "a"))
        assert result.status is SolverStatus.UNSATISFIABLE
        assert result.problem.chains
        assert all(not rule.is_learned for rule in result.problem.rules)
        assert RuleReason.JOB_INSTALL in result.problem.reasons

    def test_missing_candidates_report_every_job(self, simple_pool: Pool) -> None:
        """Each install job without candidates gets its own chain."""
        _, result = _solve(simple_pool, ("install", "ghost"), ("update", "phantom"))
        assert result.status is SolverStatus.UNSATISFIABLE
        assert len(result.problem.chains) == 2
        assert "ghost" in result.problem.describe()
        assert "phantom" in result.problem.describe()

    def test_remove_of_unknown_package_is_a_no_op(self, simple_pool: Pool) -> None:
        """Removing something absent succeeds trivially."""
        _, result = _solve(simple_pool, ("remove", "ghost"))
        assert result.success
        assert result.selected == frozenset()

    def test_replacer_satisfies_requirement(self) -> None:
        """A requirement on a replaced name can be met by its replacer."""
        pool = Pool([
            pkg("app", requires=["old"]),
            pkg("new", "2.0", replaces=["old"]),
        ])
        resolution = resolve(pool, ("install", "app"))
        assert resolution.success
        assert resolution.installed_names() == {"app": "1.0", "new": "2.0"}

    def test_solver_state_and_reuse(self, versions_pool: Pool) -> None:
        """State moves to a terminal value; solve() can run again."""
        solver, first = _solve(versions_pool, ("install", "a"))
        assert solver.state is SolverStatus.SATISFIED
        second = solver.solve()
        assert second.selected == first.selected


# ===========================================================================
# Budget
# ===========================================================================


class TestBudget:
    """The decision budget aborts without claiming unsatisfiability."""

    def test_zero_decisions_aborts_when_a_choice_is_needed(self, versions_pool: Pool) -> None:
        """A free choice with max_decisions=0 aborts."""
        solver, result = _solve(versions_pool, ("install", "a"), policy=SolverPolicy(max_decisions=0))
        assert result.status is SolverStatus.ABORTED
        assert result.problem is None
        assert solver.state is SolverStatus.ABORTED

    def test_zero_decisions_is_enough_for_forced_problems(self, simple_pool: Pool) -> None:
        """Pure propagation never touches the budget."""
        _, result = _solve(simple_pool, ("install", "a"), policy=SolverPolicy(max_decisions=0))
        assert result.status is SolverStatus.SATISFIED

    def test_resolver_reports_abort(self, versions_pool: Pool) -> None:
        """The facade passes ABORTED through with an empty transaction."""
        resolution = resolve(versions_pool, ("install", "a"), policy=SolverPolicy(max_decisions=0))
        assert resolution.status is SolverStatus.ABORTED
        assert not resolution.success
        assert not resolution.transaction
