"""``pkgsat resolve <universe>`` and ``pkgsat why <universe> <name>``.

Both commands load a universe file (packages, installed set, request and
optional policy), run the resolver and report on the result.

Exit Codes:
    0 — Request resolved; the transaction is printed.
    1 — Request is unsatisfiable; the problem is printed.
    2 — Universe file is malformed.
    3 — Search aborted by the decision or time budget.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import replace
from pathlib import Path

import click

from pkgsat.cli.output import print_problem, print_transaction, print_why, resolution_to_json
from pkgsat.cli.universe import Universe, load_universe
from pkgsat.core.pool import normalize_name
from pkgsat.core.solver import DependencyResolver, Resolution, SolverStatus
from pkgsat.exceptions import UniverseError

logger = logging.getLogger(__name__)

_EXIT_CODES = {
    SolverStatus.SATISFIED: 0,
    SolverStatus.UNSATISFIABLE: 1,
    SolverStatus.ABORTED: 3,
}


def _load(path: str, as_json: bool) -> Universe:
    """Load a universe or exit with code 2."""
    try:
        return load_universe(Path(path))
    except UniverseError as exc:
        if as_json:
            click.echo(json.dumps({"error": str(exc)}))
        else:
            click.echo(f"Error: {exc}")
        sys.exit(2)


def _resolve(universe: Universe) -> Resolution:
    resolver = DependencyResolver(universe.pool, universe.installed, universe.policy)
    return resolver.resolve(universe.request)


def _why_rows(resolution: Resolution, name: str) -> list[tuple[str, str]]:
    """Selected packages with a requires link satisfied by a package named *name*."""
    pool = resolution.pool
    selected = resolution.selected
    rows: list[tuple[str, str]] = []
    for package_id in sorted(selected, key=lambda pid: pool.package(pid).sort_key):
        package = pool.package(package_id)
        for link in package.requires:
            providers = [pid for pid in pool.what_provides(link.name, link.constraint) if pid in selected]
            if link.name == name or any(pool.package(pid).name == name for pid in providers):
                rows.append((package.pretty, str(link)))
    return rows


@click.command("resolve")
@click.argument("universe", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable JSON.")
@click.option("--prefer-lowest", is_flag=True, help="Pick the lowest acceptable versions.")
@click.option("--max-decisions", type=click.IntRange(min=0), default=None,
              help="Abort the search after N decisions.")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), default=None,
              help="Abort the search after S seconds.")
def resolve_command(
    universe: str,
    as_json: bool,
    prefer_lowest: bool,
    max_decisions: int | None,
    timeout: float | None,
) -> None:
    """Resolve the request in a UNIVERSE file into an ordered transaction.

    Exit code 0 on success, 1 if unsatisfiable, 2 on malformed input,
    3 if the search budget ran out.
    """
    loaded = _load(universe, as_json)
    overrides = {}
    if prefer_lowest:
        overrides["prefer_lowest"] = True
    if max_decisions is not None:
        overrides["max_decisions"] = max_decisions
    if timeout is not None:
        overrides["timeout"] = timeout
    if overrides:
        loaded.policy = replace(loaded.policy, **overrides)

    resolution = _resolve(loaded)

    if as_json:
        click.echo(json.dumps(resolution_to_json(resolution), indent=2, sort_keys=True))
    elif resolution.success:
        print_transaction(resolution)
    else:
        print_problem(resolution.problem, resolution.status)
    sys.exit(_EXIT_CODES[resolution.status])


@click.command("why")
@click.argument("universe", type=click.Path(exists=True, dir_okay=False))
@click.argument("name")
def why_command(universe: str, name: str) -> None:
    """Show which resolved packages require NAME.

    Exit code 0 on success, 1 if the request is unsatisfiable, 2 on
    malformed input, 3 if the search budget ran out.
    """
    loaded = _load(universe, as_json=False)
    resolution = _resolve(loaded)
    if not resolution.success:
        print_problem(resolution.problem, resolution.status)
        sys.exit(_EXIT_CODES[resolution.status])

    print_why(normalize_name(name), _why_rows(resolution, normalize_name(name)))
    sys.exit(0)
