"""Typer-based CLI for txledger."""

import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import ErrorPolicy, FirstTransactionPolicy, LedgerConfig, UnknownReferencePolicy
from .errors import LedgerInputError, LedgerIOError, TransactionError
from .ledger import Ledger, RunReport
from .reader import read_transactions
from .rejections import RejectionLogWriter, read_rejections_tail
from .writer import write_accounts, write_accounts_file

app = typer.Typer(
    name="txledger",
    help="txledger - apply a transaction stream to client accounts and report balances",
    add_completion=False,
)

# stdout carries the account CSV; everything else goes to stderr
console = Console(stderr=True)


def _setup_logging(verbosity: int) -> None:
    """Route txledger log records to stderr through rich."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    package_logger = logging.getLogger("txledger")
    package_logger.setLevel(level)
    for handler in list(package_logger.handlers):
        if isinstance(handler, RichHandler):
            package_logger.removeHandler(handler)
    handler = RichHandler(console=console, show_path=False, show_time=False)
    handler.setLevel(level)
    package_logger.addHandler(handler)


def _print_summary(report: RunReport) -> None:
    table = Table(title="Ledger Run Summary")
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Count", style="magenta", justify="right")

    table.add_row("Transactions processed", str(report.processed))
    table.add_row("Applied", str(report.applied))
    table.add_row("Rejected", str(report.rejected))
    for kind, count in sorted(report.rejections_by_kind.items(), key=lambda item: item[0].value):
        table.add_row(f"  {kind.value}", str(count))
    table.add_row("Accounts", str(report.accounts))

    console.print(table)


@app.command()
def process(
    input_path: Path = typer.Argument(
        ...,
        help="CSV file of transactions (columns: type, client, tx, amount)",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the account CSV here instead of stdout",
    ),
    on_error: Optional[ErrorPolicy] = typer.Option(
        None,
        "--on-error",
        case_sensitive=False,
        help="continue past rejected transactions or abort on the first one",
    ),
    first_transaction: Optional[FirstTransactionPolicy] = typer.Option(
        None,
        "--first-transaction",
        case_sensitive=False,
        help="strict rejects a client whose first transaction is not a deposit",
    ),
    unknown_reference: Optional[UnknownReferencePolicy] = typer.Option(
        None,
        "--unknown-reference",
        case_sensitive=False,
        help="reject or ignore disputes/resolves/chargebacks of unknown ids",
    ),
    no_sort: bool = typer.Option(
        False,
        "--no-sort",
        help="Keep accounts in creation order instead of sorting by client id",
    ),
    rejections_log: Optional[Path] = typer.Option(
        None,
        "--rejections-log",
        help="Append rejected transactions to this JSONL file",
    ),
    summary: bool = typer.Option(
        False,
        "--summary",
        "-s",
        help="Print run counts to stderr",
    ),
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase log detail (-v info, -vv debug)",
    ),
):
    """Apply every transaction in INPUT_PATH and write the final account balances.

    Nothing is written if the input cannot be read or contains a malformed record.
    """
    _setup_logging(verbose)

    try:
        config = LedgerConfig.from_env(
            on_error=on_error,
            first_transaction=first_transaction,
            unknown_reference=unknown_reference,
            sort_output=False if no_sort else None,
            rejections_log=rejections_log,
        )
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)

    on_rejected = None
    if config.rejections_log is not None:
        on_rejected = RejectionLogWriter(config.rejections_log).append

    ledger = Ledger(config, on_rejected=on_rejected)

    try:
        report = ledger.process(read_transactions(input_path))
    except LedgerInputError as e:
        console.print(f"[red]Could not process transactions from {e.path}:[/red]\n\t{e.cause}")
        raise typer.Exit(code=1)
    except TransactionError as e:
        console.print(f"[red]Aborted on rejected transaction:[/red] {e}")
        raise typer.Exit(code=1)
    except LedgerIOError as e:
        console.print(f"[red]Could not write rejection log {e.path}:[/red]\n\t{e.cause}")
        raise typer.Exit(code=1)

    snapshots = ledger.snapshot()
    try:
        if output is not None:
            write_accounts_file(snapshots, output)
        else:
            write_accounts(snapshots, sys.stdout)
    except LedgerIOError as e:
        console.print(f"[red]Could not write accounts to {e.path}:[/red]\n\t{e.cause}")
        raise typer.Exit(code=1)

    if summary:
        _print_summary(report)


rejections_app = typer.Typer(help="Rejection log commands")
app.add_typer(rejections_app, name="rejections")


@rejections_app.command("tail")
def rejections_tail(
    log_path: Path = typer.Argument(..., help="Rejection log (.jsonl)"),
    n: int = typer.Option(
        20,
        "--n",
        min=1,
        help="Number of recent rejections to display",
    ),
):
    """Display the last N rejected transactions from a rejection log.

    Skips malformed lines with warnings.
    """
    events = read_rejections_tail(log_path, n=n)

    if not events:
        console.print("[dim]No rejections in log[/dim]")
        return

    table = Table(title=f"Last {len(events)} Rejection(s)")
    table.add_column("Timestamp (UTC)", style="cyan", no_wrap=True)
    table.add_column("Kind", style="magenta")
    table.add_column("Client", style="yellow", justify="right")
    table.add_column("Transaction", style="dim")

    for event in events:
        table.add_row(
            event.ts.strftime("%Y-%m-%d %H:%M:%S"),
            event.kind,
            str(event.client_id),
            str(event.transaction),
        )

    console.print(table)


@app.command()
def version():
    """Show txledger version."""
    from . import __version__
    console.print(f"txledger v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
