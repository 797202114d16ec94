"""pkgsat CLI — Package dependency resolution from the command line.

Entry point for the ``pkgsat`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    resolve — Resolve a universe file into an ordered transaction.
    why     — Show which resolved packages require a given package.

Usage::

    pkgsat resolve universe.yaml
    pkgsat resolve universe.yaml --json
    pkgsat resolve universe.yaml --prefer-lowest --max-decisions 1000
    pkgsat --verbose resolve universe.yaml      # Debug trace on stderr
    pkgsat why universe.yaml acme/log
"""

from __future__ import annotations

import logging

import click

from pkgsat import __version__
from pkgsat.cli.resolve_cmd import resolve_command, why_command


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Log solver decisions to stderr.")
def cli(verbose: bool) -> None:
    """pkgsat: SAT-based package dependency resolution.

    Load a package universe, resolve install / update / remove requests
    with a CDCL solver, and print the ordered transaction or an
    explanation of why the request cannot be satisfied.
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


# Register all subcommands
cli.add_command(resolve_command)
cli.add_command(why_command)
