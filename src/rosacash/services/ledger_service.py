import logging
from datetime import date, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional

from rosacash.billing import engine
from rosacash.billing.models import BalanceResult, BillingPeriod, ProjectionResult
from rosacash.config.settings import Settings
from rosacash.domain.enums import BalanceMode, TransactionType
from rosacash.domain.installments import split_installments
from rosacash.domain.models import Transaction
from rosacash.parsers.ledger_file import LedgerFileParser
from rosacash.repositories.base import LedgerRepository
from rosacash.services.models import (
    AccountsPayable,
    DailyBalance,
    DailyProjection,
    ImportResult,
    LedgerSnapshot,
    LedgerSummary,
    MonthlyReport,
    PayableItem,
)
from rosacash.utils.date_utils import generate_date_range, month_bounds, shift_month

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CARD_BILL_CATEGORY = "Credit Card"

class LedgerService:
    """
    Reads a ledger snapshot from the repository and answers questions
    about it through the billing engine. Edits go back through the
    repository.
    """

    def __init__(
        self,
        repository: LedgerRepository,
        settings: Optional[Settings] = None,
    ):
        self.repository = repository
        self.settings = settings or Settings()

    def load_snapshot(self) -> LedgerSnapshot:
        """Fetch transactions, recurring rules and cards in one go"""
        return LedgerSnapshot(
            transactions=self.repository.list_transactions(),
            recurring_rules=self.repository.list_recurring(),
            cards=self.repository.list_cards(),
        )

    def get_summary(self, today: date) -> LedgerSummary:
        """
        Dashboard totals as recorded through `today`.

        Expenses include paid card charges; savings are net of
        withdrawals over the whole ledger, future entries included.
        """
        snapshot = self.load_snapshot()
        recorded = [t for t in snapshot.transactions if t.date <= today]

        def total(txns, *types: TransactionType, paid_only: bool = False) -> Decimal:
            return sum(
                (t.value for t in txns if t.type in types and (t.is_paid or not paid_only)),
                ZERO,
            )

        income = total(recorded, TransactionType.INCOME, TransactionType.SAVINGS_WITHDRAWAL)
        expense = total(recorded, TransactionType.EXPENSE) + total(
            recorded, TransactionType.CREDIT_CARD, paid_only=True
        )
        net = engine.compute_balance_as_of(
            snapshot.transactions,
            snapshot.recurring_rules,
            snapshot.cards,
            today,
            BalanceMode.CASH,
            inclusive=True,
        ).balance

        return LedgerSummary(
            as_of=today,
            total_income=income,
            total_expense=expense,
            total_savings=total(snapshot.transactions, TransactionType.SAVINGS)
            - total(snapshot.transactions, TransactionType.SAVINGS_WITHDRAWAL),
            net_profit=net,
        )

    def get_card_bill(self, card_id: str, month: int, year: int) -> BillingPeriod:
        """
        Invoice of one card for (month, year).

        Raises:
            CardNotFoundError: If the card doesn't exist
        """
        card = self.repository.get_card(card_id)
        return engine.aggregate_bill_for_period(
            self.repository.list_transactions(card_id=card_id),
            card.id,
            month,
            year,
            card.closing_day,
            card.due_day,
        )

    def get_upcoming_bills(
        self,
        today: date,
        months: Optional[int] = None,
    ) -> Dict[str, List[BillingPeriod]]:
        """
        Next `months` invoices of every card, starting with today's month.

        Returns:
            Card ID -> invoices in chronological order (empty ones included)
        """
        if months is None:
            months = self.settings.bill_months_ahead
        snapshot = self.load_snapshot()

        bills = {}
        for card in snapshot.cards:
            bills[card.id] = []
            for offset in range(months):
                month, year = shift_month(today.month, today.year, offset)
                bills[card.id].append(
                    engine.aggregate_bill_for_period(
                        snapshot.transactions,
                        card.id,
                        month,
                        year,
                        card.closing_day,
                        card.due_day,
                    )
                )
        return bills

    def set_bill_paid(self, card_id: str, month: int, year: int, paid: bool = True) -> int:
        """
        Mark every charge on an invoice as paid (or unpaid).

        Returns:
            Number of transactions updated
        """
        card = self.repository.get_card(card_id)
        updated = engine.mark_bill_paid(
            self.repository.list_transactions(card_id=card_id),
            card,
            month,
            year,
            paid,
        )
        if updated:
            self.repository.update_transactions(updated)

        logger.info(
            "Marked %d charge(s) on %s %02d/%d as %s",
            len(updated), card.name, month, year, "paid" if paid else "unpaid",
        )
        return len(updated)

    def get_accounts_payable(self, month: int, year: int) -> AccountsPayable:
        """
        Bills to pay in a month: each non card expense or savings entry,
        plus one consolidated item per card invoice, sorted by date.
        """
        snapshot = self.load_snapshot()
        start, end = month_bounds(month, year)

        items = [
            PayableItem(
                description=t.description,
                value=t.value,
                date=t.date,
                category=t.category,
                is_paid=t.is_paid,
                transaction_id=t.id,
            )
            for t in snapshot.transactions
            if not t.is_virtual
            and start <= t.date <= end
            and t.type in (TransactionType.EXPENSE, TransactionType.SAVINGS)
        ]

        for card in snapshot.cards:
            bill = engine.aggregate_bill_for_period(
                snapshot.transactions, card.id, month, year, card.closing_day, card.due_day
            )
            if bill.is_empty:
                continue
            items.append(
                PayableItem(
                    description=f"Card bill: {card.name}",
                    value=bill.total,
                    date=bill.due_date,
                    category=CARD_BILL_CATEGORY,
                    is_paid=bill.is_paid,
                    is_bill=True,
                    card_id=card.id,
                )
            )

        items.sort(key=lambda i: i.date)
        return AccountsPayable(month=month, year=year, items=items)

    def get_balance(
        self,
        cutoff: date,
        mode: BalanceMode = BalanceMode.CASH,
        inclusive: bool = False,
    ) -> BalanceResult:
        snapshot = self.load_snapshot()
        return engine.compute_balance_as_of(
            snapshot.transactions,
            snapshot.recurring_rules,
            snapshot.cards,
            cutoff,
            mode,
            inclusive,
        )

    def project_balance(self, today: date, target: date) -> ProjectionResult:
        """
        Balance on `target`: the cash balance recorded through today, then
        recurring rules and booked entries after today.
        """
        snapshot = self.load_snapshot()
        current = engine.compute_balance_as_of(
            snapshot.transactions,
            snapshot.recurring_rules,
            snapshot.cards,
            today,
            BalanceMode.CASH,
            inclusive=True,
        )
        return engine.project_balance(
            current.balance,
            snapshot.recurring_rules,
            [t for t in snapshot.transactions if t.date > today],
            today,
            target,
        )

    def get_daily_projection(self, month: int, year: int, today: date) -> DailyProjection:
        """
        Day-by-day running balance for one month, invoice convention.

        Past days use only what is in the ledger; from today on, recurring
        rules not yet entered are projected too. Card invoices hit the
        balance in full on their due date, paid or not, so once an invoice
        has closed the running balance matches compute_balance_as_of in
        invoice mode.
        """
        snapshot = self.load_snapshot()
        start, end = month_bounds(month, year)
        due_bills = engine.bills_by_due_date(
            engine.partition_bills(snapshot.transactions, snapshot.cards)
        )
        cards = {card.id: card for card in snapshot.cards}

        def day_movement(day: date) -> DailyBalance:
            items = [
                t for t in snapshot.transactions
                if t.date == day and not t.is_credit_card and not t.is_virtual
            ]
            if day >= today:
                for rule in snapshot.recurring_rules:
                    if day not in engine.occurrences_between(rule, day - timedelta(days=1), day):
                        continue
                    if engine.is_already_launched(
                        rule, snapshot.transactions, day, self.settings.launched_tolerance
                    ):
                        continue
                    items.append(engine.materialize_occurrence(rule, day))
            for bill in due_bills.get(day, []):
                items.append(self._bill_as_expense(bill, cards[bill.card_id].name))

            income = sum((t.value for t in items if t.type.is_inflow), ZERO)
            expense = sum((t.value for t in items if not t.type.is_inflow), ZERO)
            return DailyBalance(day=day, income=income, expense=expense, items=items)

        if start > today:
            opening = self._opening_before(snapshot, today, start)
            for day in generate_date_range(today, start - timedelta(days=1)):
                opening += day_movement(day).profit
        else:
            opening = engine.compute_balance_as_of(
                snapshot.transactions,
                snapshot.recurring_rules,
                snapshot.cards,
                start,
                BalanceMode.INVOICE,
            ).balance

        projection = DailyProjection(month=month, year=year, opening_balance=opening)
        running = opening
        for day in generate_date_range(start, end):
            movement = day_movement(day)
            running += movement.profit
            movement.balance = running
            projection.days.append(movement)

        return projection

    @staticmethod
    def _opening_before(snapshot: LedgerSnapshot, today: date, start: date) -> Decimal:
        """
        Balance before `today` for a projection starting at a later month.

        Invoices come from every charge made before `start`: a charge made
        after today can still sit on an invoice that was due before today
        (due day earlier than closing day).
        """
        balance = sum(
            (
                t.signed_value for t in snapshot.transactions
                if t.date < today and not t.is_credit_card and not t.is_virtual
            ),
            ZERO,
        )
        charged = engine.partition_bills(
            [t for t in snapshot.transactions if t.date < start], snapshot.cards
        )
        for period in charged.periods.values():
            if period.due_date < today:
                balance -= period.total
        return balance

    @staticmethod
    def _bill_as_expense(bill: BillingPeriod, card_name: str) -> Transaction:
        return Transaction(
            id=f"bill-{bill.card_id}-{bill.month}-{bill.year}",
            date=bill.due_date,
            type=TransactionType.EXPENSE,
            value=bill.total,
            category=CARD_BILL_CATEGORY,
            description=f"Card bill: {card_name}",
            is_virtual=True,
        )

    def get_monthly_report(self, month: int, year: int) -> MonthlyReport:
        """Income, expenses (recurring included) and savings of one month"""
        snapshot = self.load_snapshot()
        start, end = month_bounds(month, year)
        month_txns = [
            t for t in snapshot.transactions
            if start <= t.date <= end and not t.is_virtual
        ]
        spending_types = (TransactionType.EXPENSE, TransactionType.CREDIT_CARD)

        active_rules = []
        for rule in snapshot.recurring_rules:
            occurrences = engine.occurrences_between(rule, start - timedelta(days=1), end)
            active_rules.extend((rule, day) for day in occurrences)

        expenses = [t for t in month_txns if t.type in spending_types]
        expenses.extend(
            engine.materialize_occurrence(rule, day)
            for rule, day in active_rules
            if rule.type in spending_types
        )

        return MonthlyReport(
            month=month,
            year=year,
            total_income=sum((t.value for t in month_txns if t.type.is_inflow), ZERO),
            total_expenses=sum((t.value for t in expenses), ZERO),
            total_savings=sum(
                (t.value for t in month_txns if t.type == TransactionType.SAVINGS), ZERO
            ),
            recurring_total=sum((rule.value for rule, _ in active_rules), ZERO),
            recurring_count=len(active_rules),
            expenses=expenses,
        )

    def add_transaction(self, transaction: Transaction, installments: int = 1) -> List[Transaction]:
        """
        Save a new transaction, splitting card purchases into installments.

        Raises:
            CardNotFoundError: If a card purchase references an unknown card
        """
        if transaction.is_credit_card:
            self.repository.get_card(transaction.card_id)
            to_save = split_installments(transaction, installments)
        else:
            to_save = [transaction]

        saved = self.repository.save_transactions(to_save)
        logger.info("Saved %d transaction(s) for %s", len(saved), transaction.description)
        return saved

    def import_ledger(
        self,
        filepath: Path,
        kind: str = "transactions",
        dry_run: bool = False,
    ) -> ImportResult:
        """
        Import records from a CSV/Excel export.

        Args:
            filepath: The path to the export file
            kind: "transactions", "recurring" or "cards"
            dry_run: Parse and count without saving

        Returns:
            An ImportResult.
        """
        records = LedgerFileParser(kind).parse(filepath)

        if kind == "transactions":
            if dry_run:
                new = [t for t in records if t.id is None or self.repository.get_transaction(t.id) is None]
            else:
                new = self.repository.save_transactions(records)
        elif kind == "recurring":
            new = records if dry_run else [self.repository.save_recurring(r) for r in records]
        else:
            existing = {card.id for card in self.repository.list_cards()}
            new = [card for card in records if card.id not in existing]
            if not dry_run:
                for card in records:
                    self.repository.save_card(card)

        return ImportResult(
            total_parsed=len(records),
            new_records=len(new),
            duplicates_skipped=len(records) - len(new),
            filepath=str(filepath),
            kind=kind,
            dry_run=dry_run,
        )
