from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from contract_ledger.domain.contract import Contract
from contract_ledger.domain.money import Money
from contract_ledger.projection.abstract import RefreshResult


def _fmt_ts(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S %Z") if value is not None else "-"


def contracts_total(contracts: Sequence[Contract]) -> Money:
    """Total cost of exactly the contracts being rendered."""
    return sum((c.cost_amount for c in contracts), Money.zero())


def build_contracts_table(
    contracts: Sequence[Contract],
    total: Optional[Money] = None,
    title: str = "Active contracts",
) -> Table:
    """
    Build a rich table listing contracts, with an optional total in the caption.
    """
    caption = f"Total active cost: {total}" if total is not None else None
    table = Table(title=title, box=box.ROUNDED, caption=caption)

    table.add_column("Contract", style="cyan", no_wrap=True)
    table.add_column("Start", style="green")
    table.add_column("End", style="yellow")
    table.add_column("Cost", justify="right", style="bold magenta")
    table.add_column("Last modified", style="dim")

    for contract in contracts:
        table.add_row(
            str(contract.id),
            _fmt_ts(contract.start_date),
            _fmt_ts(contract.end_date) if contract.end_date else "open",
            str(contract.cost_amount),
            _fmt_ts(contract.last_modified),
        )
    return table


def print_contracts(
    contracts: List[Contract],
    total: Optional[Money] = None,
    title: str = "Active contracts",
    console: Optional[Console] = None,
) -> None:
    """Render contracts as a rich table."""
    console = console or Console()
    if not contracts:
        console.print("[yellow]No active contracts.[/yellow]")
        if total is not None:
            console.print(f"Total active cost: {total}")
        return
    console.print(build_contracts_table(contracts, total=total, title=title))


def print_cache_status(
    as_of: Optional[datetime],
    stale: bool,
    console: Optional[Console] = None,
) -> None:
    """Tell the reader which instant cached figures reflect, warning when they are stale."""
    console = console or Console()
    if as_of is None:
        console.print("[red]Cached view not refreshed yet; figures are empty.[/red]")
    elif stale:
        console.print(
            f"[yellow]Cached view is stale: last refreshed {_fmt_ts(as_of)}.[/yellow]"
        )
    else:
        console.print(f"[dim]Cached view as of {_fmt_ts(as_of)}.[/dim]")


def print_refresh_result(result: Optional[RefreshResult], console: Optional[Console] = None) -> None:
    console = console or Console()
    if result is None:
        console.print("[red]Refresh failed; previous snapshot kept.[/red]")
        return
    console.print(
        f"[green]Projection refreshed[/green] as of {_fmt_ts(result.as_of)}: "
        f"{result.clients} clients, {result.contracts} active contracts."
    )


__all__ = [
    "build_contracts_table",
    "contracts_total",
    "print_cache_status",
    "print_contracts",
    "print_refresh_result",
]
