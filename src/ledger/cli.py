"""Command-line interface for the ledger.

Every command loads the ledger from the data directory, does its work and,
if it changed anything, writes both files back.
"""

from __future__ import annotations

import sys
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable, Optional

import click
from dateutil import parser as date_parser

from ledger.core.config import Settings
from ledger.core.exceptions import CategoryNotFoundError, PersistenceError
from ledger.core.logger import setup_logging
from ledger.core.models import CategoryKind, LoadResult, Transaction
from ledger.core.records import ENCODING_ERRORS
from ledger.services.import_service import import_bank_csv
from ledger.services.ledger_service import LedgerService
from ledger.services.report_service import ReportService, export_transactions_csv


@click.group()
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding categories.csv and transactions.csv",
)
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def main(ctx: click.Context, data_dir: Optional[Path], verbose: bool) -> None:
    """Personal finance ledger."""
    config = Settings(DATA_DIR=data_dir) if data_dir is not None else Settings()
    setup_logging("DEBUG" if verbose else config.LOG_LEVEL)
    ctx.obj = config


def _display(text: str) -> str:
    """Make stored text printable; raw bytes and lone surrogates show as ``?``."""
    return text.encode("utf-8", "replace").decode("utf-8")


def _echo_load_warnings(name: str, result: LoadResult) -> None:
    if result.failed:
        click.echo(f"Error: could not read the {name} file; changes will not be saved", err=True)
    elif result.items_skipped:
        click.echo(f"Warning: skipped {result.items_skipped} malformed {name} records", err=True)
    for warning in result.warnings:
        click.echo(f"- {_display(warning)}", err=True)


def _open(config: Settings) -> LedgerService:
    service = LedgerService.open(config)
    for name, result in service.load_results.items():
        _echo_load_warnings(name, result)
    return service


def _persist(service: LedgerService) -> None:
    try:
        service.persist()
    except PersistenceError as exc:
        raise click.ClickException(str(exc)) from exc


def _parse_amount(value: str) -> Decimal:
    try:
        amount = Decimal(value.replace(",", ""))
    except InvalidOperation:
        raise click.BadParameter(f"not a number: {value}", param_hint="--amount")
    if not amount.is_finite():
        raise click.BadParameter(f"not a number: {value}", param_hint="--amount")
    return amount


def _format_transaction(tx: Transaction) -> str:
    label = tx.category.name if tx.category else "Uncategorized"
    line = f"{tx.id} {tx.timestamp:%Y-%m-%d %H:%M} {tx.merchant} {tx.amount} [{label}]"
    if tx.notes:
        line += f" notes={tx.notes}"
    return _display(line)


def _echo_transactions(transactions: Iterable[Transaction]) -> None:
    count = 0
    for tx in transactions:
        click.echo(_format_transaction(tx))
        count += 1
    if not count:
        click.echo("No transactions.")


def _render_chart(title: str, breakdown: dict[str, Decimal]) -> None:
    total = sum(breakdown.values(), Decimal("0"))
    click.echo(title)
    for name, amount in sorted(breakdown.items()):
        pct = int(amount / total * 100) if total > 0 else 0
        click.echo(f"{name:<12} {'#' * (pct // 2)} {amount} ({pct}%)")
    click.echo(f"Total: {total}")


def _render_summary(title: str, breakdown: dict[str, Decimal]) -> None:
    total = sum(breakdown.values(), Decimal("0"))
    click.echo(title)
    for name, amount in sorted(breakdown.items()):
        click.echo(f"{name:<12} {amount}")
    click.echo(f"Total: {total}")


@main.command("add")
@click.option("--merchant", required=True, help="Who was paid or who paid you")
@click.option("--amount", "amount_str", required=True, help="Amount, sign is taken from --type")
@click.option(
    "--type",
    "tx_type",
    type=click.Choice(["income", "expense"]),
    default="expense",
    show_default=True,
)
@click.option("--notes", default="", help="Free-form notes")
@click.option("--date", "date_str", default=None, help="When it happened (default: now)")
@click.option("--category", "category_name", default=None, help="Assign this category")
@click.option("--auto", is_flag=True, help="Auto-categorize from merchant/notes keywords")
@click.pass_obj
def add_command(
    config: Settings,
    merchant: str,
    amount_str: str,
    tx_type: str,
    notes: str,
    date_str: Optional[str],
    category_name: Optional[str],
    auto: bool,
) -> None:
    """Add a transaction."""
    value = abs(_parse_amount(amount_str))
    amount = value if tx_type == "income" else -value

    if date_str:
        try:
            timestamp = date_parser.parse(date_str)
        except (ValueError, OverflowError):
            raise click.BadParameter(f"not a date: {date_str}", param_hint="--date")
    else:
        timestamp = datetime.now().replace(microsecond=0)

    service = _open(config)

    category = None
    if category_name:
        category = service.categories.find_by_name(category_name)
        if category is None:
            raise click.ClickException(f"Unknown category: {category_name}")

    tx = Transaction(
        id=service.next_transaction_id(),
        amount=amount,
        timestamp=timestamp,
        merchant=merchant,
        category=category,
        notes=notes,
    )
    if auto and category is None:
        (tx,) = service.import_transactions([tx])
    else:
        service.add_transaction(tx)

    _persist(service)
    click.echo(f"✓ Added {_format_transaction(tx)}")


@main.command("list")
@click.pass_obj
def list_command(config: Settings) -> None:
    """Show all transactions in the order they were added."""
    service = _open(config)
    _echo_transactions(service.transactions.find_all())


@main.command("balance")
@click.pass_obj
def balance_command(config: Settings) -> None:
    """Show the running balance of all transactions."""
    service = _open(config)
    click.echo(f"Balance: {ReportService(service.transactions).balance()}")


@main.group("report")
def report_group() -> None:
    """Spending reports."""


@report_group.command("month")
@click.argument("year", type=int)
@click.argument("month", type=click.IntRange(1, 12))
@click.pass_obj
def report_month_command(config: Settings, year: int, month: int) -> None:
    """Income/expense totals and category chart for one month."""
    reports = ReportService(_open(config).transactions)
    totals = reports.income_expense_totals(year, month)
    click.echo(
        f"Income: {totals.income}  Expense: {totals.expense}  Difference: {totals.difference}"
    )
    _render_chart(f"Category breakdown for {year}-{month:02d}", reports.category_breakdown(year, month))


@report_group.command("year")
@click.argument("year", type=int)
@click.pass_obj
def report_year_command(config: Settings, year: int) -> None:
    """Income/expense totals and category summary for one year."""
    reports = ReportService(_open(config).transactions)
    totals = reports.income_expense_totals_year(year)
    click.echo(
        f"Year {year} Income: {totals.income}  Expense: {totals.expense}  "
        f"Difference: {totals.difference}"
    )
    _render_summary(f"Category breakdown for year {year}", reports.category_breakdown_year(year))


@report_group.command("all")
@click.pass_obj
def report_all_command(config: Settings) -> None:
    """Category summary over all transactions."""
    reports = ReportService(_open(config).transactions)
    _render_summary("Category breakdown (all time):", reports.category_breakdown_all())


@main.group("categories")
def categories_group() -> None:
    """Manage categories."""


@categories_group.command("list")
@click.pass_obj
def categories_list_command(config: Settings) -> None:
    service = _open(config)
    for category in sorted(service.categories.all(), key=lambda c: c.name):
        click.echo(f"- {_display(category.name)} ({category.kind.name.capitalize()})")


@categories_group.command("add")
@click.argument("name")
@click.option(
    "--kind",
    type=click.Choice(["income", "expense"]),
    default="expense",
    show_default=True,
)
@click.pass_obj
def categories_add_command(config: Settings, name: str, kind: str) -> None:
    service = _open(config)
    category = service.add_category(name, CategoryKind[kind.upper()])
    _persist(service)
    click.echo(f"✓ Category {category.name} saved")


@categories_group.command("remove")
@click.argument("name")
@click.pass_obj
def categories_remove_command(config: Settings, name: str) -> None:
    """Delete a category; its transactions become uncategorized."""
    service = _open(config)
    if not service.remove_category(name):
        click.echo("Category not found.", err=True)
        sys.exit(1)
    _persist(service)
    click.echo("✓ Category deleted; related transactions set to Uncategorized.")


@main.command("categorize")
@click.argument("transaction_id")
@click.argument("category_name", required=False)
@click.pass_obj
def categorize_command(config: Settings, transaction_id: str, category_name: Optional[str]) -> None:
    """Set a transaction's category, or clear it when no category is given."""
    service = _open(config)
    try:
        changed = service.assign_category(transaction_id, category_name)
    except CategoryNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc
    if not changed:
        click.echo(f"Transaction {transaction_id} not found.", err=True)
        sys.exit(1)
    _persist(service)
    click.echo(f"✓ Updated {changed} transaction(s)")


@main.command("search")
@click.argument("keyword", required=False)
@click.option("--category", "category_name", default=None, help="Match by category name instead")
@click.pass_obj
def search_command(config: Settings, keyword: Optional[str], category_name: Optional[str]) -> None:
    """Find transactions by merchant/notes keyword or by category."""
    if not keyword and not category_name:
        raise click.UsageError("Give a KEYWORD or --category")
    service = _open(config)
    if category_name:
        _echo_transactions(service.search_by_category(category_name))
    else:
        _echo_transactions(service.search_by_keyword(keyword))


@main.command("import")
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--threshold",
    type=click.FloatRange(0.0, 1.0),
    default=None,
    help="Minimum confidence to accept an auto category (default from settings)",
)
@click.pass_obj
def import_command(config: Settings, file_path: Path, threshold: Optional[float]) -> None:
    """Import a bank CSV export with auto-categorization."""
    service = _open(config)
    stored, result = import_bank_csv(service, file_path, confidence_threshold=threshold)
    _persist(service)

    categorized = sum(1 for tx in stored if tx.category is not None)
    click.echo(
        f"Import complete.\n"
        f"Parsed: {result.items_loaded}\n"
        f"Skipped: {result.items_skipped}\n"
        f"Categorized: {categorized}"
    )
    for warning in result.warnings:
        click.echo(f"- {warning}", err=True)


@main.command("export")
@click.option("--output", type=click.Path(dir_okay=False, path_type=Path), default=None)
@click.pass_obj
def export_command(config: Settings, output: Optional[Path]) -> None:
    """Export all transactions as CSV (stdout by default)."""
    service = _open(config)
    payload = export_transactions_csv(service.transactions.find_all())
    if output is None:
        click.echo(_display(payload), nl=False)
        return
    output.write_text(payload, encoding="utf-8", errors=ENCODING_ERRORS)
    click.echo(f"✓ Exported {len(service.transactions)} transactions to {output}")


if __name__ == "__main__":
    main()
