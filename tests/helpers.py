"""Shared factories for building pools, requests and resolutions in tests."""

from __future__ import annotations

from pkgsat.core.pool import Package, Pool
from pkgsat.core.solver import DependencyResolver, Request, Resolution, SolverPolicy


def pkg(
    name: str,
    version: str = "1.0",
    requires=None,
    conflicts=None,
    provides=None,
    replaces=None,
    **extra,
) -> Package:
    """Convenience factory for Package records."""
    return Package(
        name=name,
        version=version,
        requires=requires or (),
        conflicts=conflicts or (),
        provides=provides or (),
        replaces=replaces or (),
        **extra,
    )


def pid(pool: Pool, spec: str) -> int:
    """Resolve ``"name@version"`` to its pool id."""
    name, _, version = spec.partition("@")
    package_id = pool.find(name, version)
    assert package_id is not None, f"{spec} not in pool"
    return package_id


def request_for(pool: Pool, *jobs: tuple) -> Request:
    """Build a request from ``(kind, name[, constraint])`` tuples."""
    request = Request(pool)
    for job in jobs:
        kind, name, *rest = job
        getattr(request, kind)(name, *rest)
    return request


def resolve(
    pool: Pool,
    *jobs: tuple,
    installed: tuple[str, ...] = (),
    policy: SolverPolicy | None = None,
) -> Resolution:
    """Resolve jobs against *pool* with installed ``name@version`` specs."""
    installed_ids = [pid(pool, spec) for spec in installed]
    resolver = DependencyResolver(pool, installed_ids, policy)
    return resolver.resolve(request_for(pool, *jobs))


def plan(resolution: Resolution) -> list[str]:
    """The transaction as a list of human-readable operation lines."""
    return resolution.transaction.describe()
