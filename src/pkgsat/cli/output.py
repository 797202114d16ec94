"""Rich output formatting helpers for the pkgsat CLI.

Operation Color Mapping:
    INSTALL = green, UPDATE = cyan, UNINSTALL = red
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from pkgsat.core.solver import Problem, Resolution, SolverStatus
from pkgsat.core.transaction import OperationKind

_OPERATION_STYLES: dict[OperationKind, str] = {
    OperationKind.INSTALL: "green",
    OperationKind.UPDATE: "cyan",
    OperationKind.UNINSTALL: "red",
}

console = Console()


def operation_style(kind: OperationKind) -> str:
    """Return the Rich style string for an operation kind."""
    return _OPERATION_STYLES.get(kind, "white")


def resolution_to_json(resolution: Resolution) -> dict[str, Any]:
    """Convert a resolution to a JSON-serializable dict."""
    return {
        "status": resolution.status.value,
        "transaction": resolution.transaction.to_dict() if resolution.success else None,
        "installed": resolution.installed_names() if resolution.success else {},
        "problem": resolution.problem.to_dict() if resolution.problem else None,
        "stats": asdict(resolution.stats),
    }


def print_transaction(resolution: Resolution) -> None:
    """Print the ordered operations of a successful resolution."""
    console.print(Panel("[bold green]Resolution successful[/bold green]", title="Dependency Resolution"))
    transaction = resolution.transaction
    if not transaction:
        console.print("[dim]Nothing to install, update or remove.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Operation")
    table.add_column("Package", style="bold")
    table.add_column("Version")
    for position, op in enumerate(transaction, start=1):
        style = operation_style(op.kind)
        if op.kind is OperationKind.UPDATE:
            version = f"{op.initial.version} => {op.target.version}"
        else:
            version = op.package.version
        table.add_row(str(position), f"[{style}]{op.kind.value}[/{style}]", op.name, version)
    console.print(table)


def print_problem(problem: Problem | None, status: SolverStatus) -> None:
    """Print why a resolution failed."""
    if status is SolverStatus.ABORTED:
        console.print(Panel("[bold yellow]Search aborted[/bold yellow]", title="Dependency Resolution"))
        console.print("  [yellow]The decision or time budget ran out before a verdict.[/yellow]")
        return
    console.print(Panel("[bold red]Resolution failed[/bold red]", title="Dependency Resolution"))
    if problem is None:
        return
    for index, chain in enumerate(problem.chains, start=1):
        console.print(f"  [bold]Problem {index}[/bold]")
        for step in chain:
            console.print(f"    [red]- {step}[/red]")


def print_why(name: str, rows: list[tuple[str, str]]) -> None:
    """Print the packages that require *name*."""
    if not rows:
        console.print(f"[dim]Nothing in the resolved set requires {name}.[/dim]")
        return
    table = Table(title=f"Why {name}", show_header=True, header_style="bold")
    table.add_column("Package", style="bold")
    table.add_column("Requires")
    for package, link in rows:
        table.add_row(package, link)
    console.print(table)
