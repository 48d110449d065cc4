"""
Trade Journal CLI - Main entry point.

Typer-based command-line interface for importing broker execution logs
and journal exports.

Usage:
    trade-journal import tradebook.csv
    trade-journal import tradebook.csv --output trades.csv --verbose
    trade-journal sample sample_trades.csv

Installation:
    pip install -e .
    # Then use: trade-journal --help
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from trade_journal.application.services.import_service import TradeImporter
from trade_journal.config.config import Config
from trade_journal.config.validation import ConfigurationError, validate_configuration
from trade_journal.domain.errors import BatchFailure
from trade_journal.domain.types import ImportResult
from trade_journal.infrastructure.csv_export import write_sample_template, write_trades
from trade_journal.utils.logging import setup_logging_from_config

app = typer.Typer(
    name="trade-journal",
    help="Trade Journal - import and reconcile broker trade logs",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

logger = logging.getLogger(__name__)


def _load_config(verbose: bool) -> Config:
    config = Config.from_env()
    setup_logging_from_config(config.logging, level="DEBUG" if verbose else None)
    validate_configuration(config)
    return config


@app.command("import")
def import_trades(
    file: Path = typer.Argument(
        ...,
        help="CSV file to import (broker execution log or journal export).",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output", "-o",
        help="Write consolidated trades to this CSV file.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose output.",
    ),
):
    """
    Import a CSV file and print the consolidated trades.

    Broker fills are grouped per instrument and matched into round trips;
    rows that fail validation are listed but do not stop the import.
    """
    try:
        config = _load_config(verbose)
    except ConfigurationError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        raise typer.Exit(1)

    console.print(Panel(f"Importing [bold cyan]{file}[/bold cyan]", title="Trade Import"))

    try:
        result = TradeImporter(config).import_file(file)
    except BatchFailure as e:
        console.print(f"[red]Import failed: {e.error.message}[/red]")
        raise typer.Exit(1)

    _display_trades(result)
    _display_diagnostics(result)

    if output is not None:
        count = write_trades(result.trades, output)
        console.print(f"[green]Wrote {count} trade(s) to {output}[/green]")


@app.command()
def sample(
    output: Path = typer.Argument(
        ...,
        help="Where to write the sample template CSV.",
    ),
):
    """Write a sample CSV in the journal template format."""
    count = write_sample_template(output)
    console.print(f"[green]Wrote {count} sample row(s) to {output}[/green]")


def _display_trades(result: ImportResult) -> None:
    """Display consolidated trades in a table."""
    table = Table(title="Consolidated Trades")
    table.add_column("Symbol", style="cyan")
    table.add_column("Side")
    table.add_column("Type")
    table.add_column("Strike", justify="right")
    table.add_column("Qty", justify="right")
    table.add_column("Entry", justify="right")
    table.add_column("Exit", justify="right")
    table.add_column("P&L", justify="right")
    table.add_column("Entry Date")

    for trade in result.trades:
        if trade.is_open:
            exit_str = "[dim]open[/dim]"
            pnl_str = "[dim]-[/dim]"
        else:
            exit_str = f"{trade.exit_price:,.2f}"
            pnl = trade.profit_loss or 0.0
            color = "green" if pnl >= 0 else "red"
            pnl_str = f"[{color}]{pnl:,.2f}[/{color}]"

        strike = trade.strike_price
        option = trade.option_type.value if trade.option_type else ""
        table.add_row(
            trade.symbol,
            trade.direction.value,
            trade.instrument_type.value,
            f"{strike:g} {option}".strip() if strike is not None else option,
            f"{trade.quantity:g}",
            f"{trade.entry_price:,.2f}",
            exit_str,
            pnl_str,
            trade.entry_date.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


def _display_diagnostics(result: ImportResult) -> None:
    summary = result.summary()
    console.print(
        f"\nImported [bold]{summary['trades']}[/bold] trade(s) "
        f"from {summary['imported_fills']} of {summary['total_rows']} row(s); "
        f"[yellow]{summary['rejected']} rejected[/yellow], "
        f"[yellow]{summary['warnings']} warning(s)[/yellow]"
    )
    console.print(f"Realized P&L: {summary['realized_pnl']:,.2f}")

    for rejection in result.rejections:
        console.print(f"[red]  {rejection}[/red]")
    for warning in result.warnings:
        console.print(f"[yellow]  {warning}[/yellow]")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
