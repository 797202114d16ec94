"""Requests, rule generation and the CDCL solver.

Pipeline for one run::

    Request(pool) --RuleGenerator--> RuleSet --Solver--> SolverResult
                                                 |
                           DependencyResolver ---+--> Resolution (Transaction | Problem)

All public names are re-exported here, so
``from pkgsat.core.solver import DependencyResolver`` works.
"""

from pkgsat.core.solver.generator import RuleGenerator, generate_rules
from pkgsat.core.solver.policy import DecisionPolicy, SolverPolicy
from pkgsat.core.solver.problem import Problem, ReasonStep, build_chain, describe_rule, missing_job_step
from pkgsat.core.solver.request import Job, JobKind, Request
from pkgsat.core.solver.resolver import DependencyResolver, Resolution
from pkgsat.core.solver.rules import Decision, Rule, RuleReason, RuleSet, is_positive, literal, package_id
from pkgsat.core.solver.solver import Solver, SolverResult, SolverStats, SolverStatus

__all__ = [
    "Decision",
    "DecisionPolicy",
    "DependencyResolver",
    "Job",
    "JobKind",
    "Problem",
    "ReasonStep",
    "Request",
    "Resolution",
    "Rule",
    "RuleGenerator",
    "RuleReason",
    "RuleSet",
    "Solver",
    "SolverPolicy",
    "SolverResult",
    "SolverStats",
    "SolverStatus",
    "build_chain",
    "describe_rule",
    "generate_rules",
    "is_positive",
    "literal",
    "missing_job_step",
    "package_id",
]
