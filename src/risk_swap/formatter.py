"""Rich console rendering of balances and workflow results."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .constants import BALANCE_ERROR_MARKER
from .domain import BalanceSnapshot, WorkflowResult


def _truncate_address(address: str) -> str:
    return f"{address[:10]}...{address[-4:]}"


def format_balances_table(
    snapshot: BalanceSnapshot, console: Console | None = None
) -> None:
    """Print the balance snapshot as a table."""
    console = console or Console()

    table = Table(show_header=True, header_style="bold")
    table.add_column("Asset", style="cyan")
    table.add_column("Balance", justify="right")
    for symbol, value in snapshot.balances.items():
        style = "red" if value == BALANCE_ERROR_MARKER else "green"
        table.add_row(symbol, f"[{style}]{value}[/]")

    title = (
        f"[bold]Wallet {_truncate_address(snapshot.wallet_address)}[/] "
        f"(chain {snapshot.chain_id})"
    )
    console.print(Panel(table, title=title, border_style="blue"))


def format_result_panel(
    result: WorkflowResult, console: Console | None = None
) -> None:
    """Print a workflow result summary."""
    console = console or Console()

    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Key", style="dim")
    table.add_column("Value")
    table.add_row("Stage", result.stage)
    if result.from_symbol and result.to_symbol:
        table.add_row("Pair", f"{result.from_symbol} → {result.to_symbol}")
    if result.amount is not None:
        table.add_row("Amount", f"{result.amount} {result.from_symbol or ''}")
    if result.amount_base_units is not None:
        table.add_row("Base units", result.amount_base_units)
    if result.tx_url:
        table.add_row("Transaction", result.tx_url)
    if result.pending_tx_hash:
        table.add_row("Pending tx", f"[yellow]{result.pending_tx_hash}[/]")
    if result.error:
        table.add_row("Error", f"[red]{result.error}[/]")

    border = "green" if result.success else "red"
    console.print(
        Panel(table, title=f"[bold]{result.message}[/]", border_style=border)
    )
