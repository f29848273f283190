import typer
from pathlib import Path
from typing import Optional
from datetime import date
from decimal import Decimal

from rich.console import Console
from rich.table import Table
from rich.panel import Panel

from rosacash.config.settings import Settings
from rosacash.database.connection import DatabaseConfig, DatabaseManager
from rosacash.domain.enums import BalanceMode, TransactionType
from rosacash.domain.models import Transaction, parse_date
from rosacash.logging_setup import configure_logging
from rosacash.repositories.sqlite_ledger_repository import SQLiteLedgerRepository
from rosacash.services.assistant_tools import format_money
from rosacash.services.ledger_service import LedgerService

app = typer.Typer(
    name="rosacash",
    help="Track transactions, credit card bills and projected balances",
    add_completion=False,
)

console = Console()

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]

class State:
    verbose: bool = False
    settings: Optional[Settings] = None
    db_manager: Optional[DatabaseManager] = None
    service: Optional[LedgerService] = None


state = State()

TODAY_OPTION = typer.Option(
    None,
    "--today",
    help="Pretend today is this date (YYYY-MM-DD)",
)

@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose output",
    )
):
    """
    RosaCash - personal finance ledger with credit card billing cycles.
    """
    if state.settings is None:
        state.settings = Settings.load()

    configure_logging("DEBUG" if verbose else state.settings.log_level)

    if state.service is None:
        state.db_manager = DatabaseManager(DatabaseConfig(state.settings.db_path))
        state.db_manager.initialize_schema()
        repository = SQLiteLedgerRepository(state.db_manager)
        state.service = LedgerService(repository, state.settings)

    state.verbose = verbose


def _today(value: Optional[str], option: str = "--today") -> date:
    return parse_date(value, option) if value else date.today()


def _money(value: Decimal) -> str:
    return format_money(value, state.settings.currency_symbol if state.settings else "R$")


def _colored(value: Decimal) -> str:
    color = "green" if value >= 0 else "red"
    return f"[{color}]{_money(value)}[/{color}]"


def _fail(e: Exception):
    console.print(f"[bold red]Error:[/bold red] {e}")
    if state.verbose:
        console.print_exception()
    raise typer.Exit(code=1)


def _resolve_card(name: str):
    card = state.service.load_snapshot().find_card(name)
    if card is None:
        raise ValueError(f"No card matches '{name}'")
    return card


@app.command(name="init-db")
def init_db():
    """Create the ledger tables (safe to run again)."""
    try:
        row = state.db_manager.initialize_schema()
        console.print(f"[green]✓[/green] Database ready at {state.settings.db_path}")
        console.print(f"  Schema version: {row['version']} ({row['description']})")
    except Exception as e:
        _fail(e)


@app.command(name="import")
def import_ledger(
    filepath: Path = typer.Argument(
        ...,
        help="CSV or Excel export",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    kind: str = typer.Option(
        "transactions",
        "--kind", "-k",
        help="What the file holds: transactions, recurring or cards",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Preview without saving to database",
    ),
):
    """
    Import ledger records from a CSV/Excel export.

    Examples:
        rosacash import cards.csv --kind cards
        rosacash import transactions.xlsx --dry-run
    """
    try:
        result = state.service.import_ledger(filepath, kind=kind, dry_run=dry_run)

        console.print(f"\n[bold]Found {result.total_parsed} {kind}[/bold]")
        if dry_run:
            console.print(f"[yellow]DRY RUN - No changes made[/yellow]")
            console.print(f"[green]✓[/green] Would import: {result.new_records}")
            console.print(f"[yellow]⏭️[/yellow]  Would skip: {result.duplicates_skipped}")
        else:
            console.print(f"[bold green]✓ Imported {result.new_records} new {kind}[/bold green]")
            if result.duplicates_skipped > 0:
                console.print(f"[yellow]⏭️  Skipped {result.duplicates_skipped} duplicates[/yellow]")
    except Exception as e:
        _fail(e)


@app.command(name="add")
def add_transaction(
    value: str = typer.Argument(..., help="Amount (total, for installment purchases)"),
    description: str = typer.Argument(..., help="What it was"),
    type_: TransactionType = typer.Option(
        TransactionType.EXPENSE,
        "--type", "-t",
        help="Transaction type",
    ),
    on: Optional[str] = typer.Option(None, "--date", "-d", help="Date (YYYY-MM-DD), today by default"),
    category: str = typer.Option("", "--category", "-c"),
    card: Optional[str] = typer.Option(None, "--card", help="Card name, for credit card purchases"),
    installments: int = typer.Option(1, "--installments", "-i", min=1, help="Split a card purchase"),
):
    """
    Add a transaction to the ledger.

    Examples:
        rosacash add 120.50 "Groceries" --category Food
        rosacash add 900 "Phone" --type credit_card --card nubank -i 3
    """
    try:
        card_id = _resolve_card(card).id if card else None
        saved = state.service.add_transaction(
            Transaction(
                date=on or date.today(),
                type=type_,
                value=value,
                category=category,
                description=description,
                card_id=card_id,
            ),
            installments=installments,
        )
        for txn in saved:
            console.print(f"[green]✓[/green] {txn.date} {txn.description} {_money(txn.value)}")
    except Exception as e:
        _fail(e)


@app.command(name="summary")
def summary(today: Optional[str] = TODAY_OPTION):
    """Totals recorded through today."""
    try:
        result = state.service.get_summary(_today(today))
        console.print(Panel(
            f"[green]💰 Income:[/green]   {_money(result.total_income):>16}\n"
            f"[red]💸 Expenses:[/red] {_money(result.total_expense):>16}\n"
            f"[cyan]🐷 Savings:[/cyan]  {_money(result.total_savings):>16}\n"
            f"{'─' * 30}\n"
            f"[bold]Balance:[/bold]     {_colored(result.net_profit)}",
            title=f"[bold]Summary as of {result.as_of}[/bold]",
            border_style="cyan",
            padding=(1, 2),
        ))
    except Exception as e:
        _fail(e)


@app.command(name="bills")
def bills(
    months: Optional[int] = typer.Option(None, "--months", "-n", min=1, help="How many invoices per card"),
    today: Optional[str] = TODAY_OPTION,
):
    """Upcoming credit card invoices of every card."""
    try:
        snapshot = state.service.load_snapshot()
        upcoming = state.service.get_upcoming_bills(_today(today), months)

        if not upcoming:
            console.print("[yellow]No credit cards registered[/yellow]")
            return

        for card_id, periods in upcoming.items():
            card = snapshot.card_by_id(card_id)
            table = Table(
                title=f"{card.name} (closes day {card.closing_day}, due day {card.due_day})",
                title_justify="left",
            )
            table.add_column("Invoice", style="cyan")
            table.add_column("Due", style="dim")
            table.add_column("Charges", justify="right")
            table.add_column("Total", justify="right")
            table.add_column("Status", justify="center")

            for period in periods:
                if period.is_empty:
                    status = "[dim]-[/dim]"
                elif period.is_paid:
                    status = "[green]PAID[/green]"
                else:
                    status = "[yellow]OPEN[/yellow]"
                table.add_row(
                    f"{MONTH_NAMES[period.month_index]} {period.year}",
                    str(period.due_date),
                    str(len(period.transactions)),
                    _money(period.total),
                    status,
                )
            console.print(table)
    except Exception as e:
        _fail(e)


@app.command(name="bill")
def bill(
    card: str = typer.Argument(..., help="Card name (partial match)"),
    month: int = typer.Argument(..., min=1, max=12),
    year: int = typer.Argument(...),
):
    """Charges on one card invoice."""
    try:
        found = _resolve_card(card)
        period = state.service.get_card_bill(found.id, month, year)

        if period.is_empty:
            console.print(Panel(
                f"[yellow]No charges on the {MONTH_NAMES[month - 1]} {year} invoice[/yellow]",
                title=found.name,
                border_style="yellow",
            ))
            return

        table = Table(title=f"{found.name} - {MONTH_NAMES[month - 1]} {year} (due {period.due_date})")
        table.add_column("Date", style="cyan")
        table.add_column("Description")
        table.add_column("Category", style="magenta")
        table.add_column("Value", justify="right")
        table.add_column("Paid", justify="center")
        for txn in sorted(period.transactions, key=lambda t: t.date):
            table.add_row(
                str(txn.date),
                txn.description[:40],
                txn.category,
                _money(txn.value),
                "[green]✓[/green]" if txn.is_paid else "",
            )
        console.print(table)
        console.print(f"[bold]Total:[/bold] {_money(period.total)}")
    except Exception as e:
        _fail(e)


@app.command(name="pay-bill")
def pay_bill(
    card: str = typer.Argument(..., help="Card name (partial match)"),
    month: int = typer.Argument(..., min=1, max=12),
    year: int = typer.Argument(...),
    unpaid: bool = typer.Option(False, "--unpaid", help="Mark the invoice as not paid instead"),
):
    """Mark every charge on an invoice as paid."""
    try:
        found = _resolve_card(card)
        count = state.service.set_bill_paid(found.id, month, year, paid=not unpaid)
        if count == 0:
            console.print(f"[yellow]No charges on {found.name} {month:02d}/{year}[/yellow]")
        else:
            label = "unpaid" if unpaid else "paid"
            console.print(f"[green]✓[/green] Marked {count} charge(s) on {found.name} {month:02d}/{year} as {label}")
    except Exception as e:
        _fail(e)


@app.command(name="balance")
def balance(
    cutoff: Optional[str] = typer.Option(None, "--as-of", help="Cutoff date, today by default"),
    mode: BalanceMode = typer.Option(BalanceMode.CASH, "--mode", "-m", help="cash or invoice"),
    inclusive: bool = typer.Option(False, "--inclusive", help="Include the cutoff day itself"),
):
    """Balance of everything before a date."""
    try:
        result = state.service.get_balance(_today(cutoff, "--as-of"), mode, inclusive)
        boundary = "through" if inclusive else "before"
        console.print(f"Balance {boundary} {result.cutoff} ({mode.value}): {_colored(result.balance)}")
        if result.orphaned:
            console.print(
                f"[yellow]{result.orphan_count} card charge(s) reference deleted cards and were left out[/yellow]"
            )
    except Exception as e:
        _fail(e)


@app.command(name="project")
def project(
    target: str = typer.Argument(..., help="Target date (YYYY-MM-DD)"),
    today: Optional[str] = TODAY_OPTION,
):
    """Projected balance on a future date."""
    try:
        result = state.service.project_balance(_today(today), parse_date(target, "target"))

        table = Table(title=f"Scheduled until {result.to_date}")
        table.add_column("Date", style="cyan")
        table.add_column("Description")
        table.add_column("Value", justify="right")
        table.add_column("Source", style="dim")
        for txn in result.breakdown:
            table.add_row(
                str(txn.date),
                txn.description[:40],
                _colored(txn.signed_value),
                "recurring" if txn.is_virtual else "booked",
            )
        if result.breakdown:
            console.print(table)

        console.print(Panel(
            f"Current:   {_colored(result.current_balance)}\n"
            f"Change:    {_colored(result.delta)}\n"
            f"Projected: {_colored(result.projected_balance)}",
            title=f"[bold]Balance on {result.to_date}[/bold]",
            border_style="cyan",
        ))
    except Exception as e:
        _fail(e)


@app.command(name="forecast")
def forecast(
    month: Optional[int] = typer.Option(None, "--month", "-m", min=1, max=12),
    year: Optional[int] = typer.Option(None, "--year", "-y"),
    today: Optional[str] = TODAY_OPTION,
):
    """Day-by-day balance for a month, card invoices on their due dates."""
    try:
        now = _today(today)
        projection = state.service.get_daily_projection(month or now.month, year or now.year, now)

        table = Table(title=f"{MONTH_NAMES[projection.month - 1]} {projection.year}")
        table.add_column("Day", style="cyan", justify="right")
        table.add_column("In", justify="right", style="green")
        table.add_column("Out", justify="right", style="red")
        table.add_column("Balance", justify="right")
        for day in projection.days:
            if not day.items:
                continue
            table.add_row(
                str(day.day.day),
                _money(day.income) if day.income else "",
                _money(day.expense) if day.expense else "",
                _colored(day.balance),
            )

        console.print(f"Opening balance: {_colored(projection.opening_balance)}")
        console.print(table)
        console.print(f"Closing balance: {_colored(projection.closing_balance)}")
    except Exception as e:
        _fail(e)


@app.command(name="payable")
def payable(
    month: Optional[int] = typer.Option(None, "--month", "-m", min=1, max=12),
    year: Optional[int] = typer.Option(None, "--year", "-y"),
    today: Optional[str] = TODAY_OPTION,
):
    """Bills to pay this month, card invoices consolidated."""
    try:
        now = _today(today)
        result = state.service.get_accounts_payable(month or now.month, year or now.year)

        table = Table(title=f"Accounts payable - {MONTH_NAMES[result.month - 1]} {result.year}")
        table.add_column("Date", style="cyan")
        table.add_column("Description")
        table.add_column("Category", style="magenta")
        table.add_column("Value", justify="right")
        table.add_column("Status", justify="center")
        for item in result.items:
            table.add_row(
                str(item.date),
                item.description[:40],
                item.category,
                _money(item.value),
                "[green]PAID[/green]" if item.is_paid else "[yellow]PENDING[/yellow]",
            )
        console.print(table)
        console.print(
            f"Paid {_money(result.paid)} of {_money(result.total)} "
            f"({result.percent_paid:.0f}%), pending {_money(result.pending)}"
        )
    except Exception as e:
        _fail(e)


@app.command(name="report")
def report(
    month: Optional[int] = typer.Option(None, "--month", "-m", help="Month (1-12)", min=1, max=12),
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Year"),
    today: Optional[str] = TODAY_OPTION,
):
    """
    Monthly report: income, expenses (recurring included), top categories.

    Examples:
        rosacash report
        rosacash report --month 3 --year 2025
    """
    try:
        now = _today(today)
        result = state.service.get_monthly_report(month or now.month, year or now.year)
        month_name = result.start_date.strftime("%B %Y")

        console.print(Panel(
            f"[green]💰 Income:[/green]    {_money(result.total_income):>16}\n"
            f"[red]💸 Expenses:[/red]  {_money(result.total_expenses):>16}\n"
            f"[cyan]🐷 Savings:[/cyan]   {_money(result.total_savings):>16}\n"
            f"{'─' * 30}\n"
            f"[bold]Net:[/bold]         {_colored(result.balance)}\n\n"
            f"[dim]{result.recurring_count} recurring entries, {_money(result.recurring_total)}[/dim]",
            title=f"[bold]{month_name} Summary[/bold]",
            border_style="cyan",
            padding=(1, 2),
        ))

        if result.top_categories:
            category_table = Table(show_header=True, box=None, padding=(0, 2))
            category_table.add_column("Category", style="cyan", no_wrap=True)
            category_table.add_column("Amount", justify="right", style="red")
            category_table.add_column("% of Total", justify="right", style="dim")
            for category, amount in result.top_categories[:10]:
                percentage = amount / result.total_expenses * 100 if result.total_expenses > 0 else 0
                category_table.add_row(category, _money(amount), f"{percentage:.1f}%")
            console.print(f"\n[bold]Top Spending Categories[/bold]")
            console.print(category_table)

        biggest = result.biggest_expense
        if biggest is not None:
            console.print(f"\nBiggest expense: {biggest.description} ({_money(biggest.value)})")
    except Exception as e:
        _fail(e)


def cli_main():
    """Entry point for the CLI"""
    app()


if __name__ == "__main__":
    cli_main()
