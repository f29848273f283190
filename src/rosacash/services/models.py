"""
Service layer models - DTOs for service operations.

These models represent the results of service operations, not domain entities.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from rosacash.domain.models import Transaction, RecurringRule, CreditCard

ZERO = Decimal("0")

def _totals_by_category(transactions) -> Dict[str, Decimal]:
    totals = defaultdict(Decimal)
    for txn in transactions:
        totals[txn.category or "Uncategorized"] += txn.value
    return dict(totals)

@dataclass
class LedgerSnapshot:
    """Everything the billing engine needs, fetched once per computation"""
    transactions: List[Transaction] = field(default_factory=list)
    recurring_rules: List[RecurringRule] = field(default_factory=list)
    cards: List[CreditCard] = field(default_factory=list)

    def card_by_id(self, card_id: str) -> Optional[CreditCard]:
        return next((c for c in self.cards if c.id == card_id), None)

    def find_card(self, name: str) -> Optional[CreditCard]:
        """First card whose name contains `name`, ignoring case"""
        needle = name.strip().lower()
        if not needle:
            return None
        return next((c for c in self.cards if needle in c.name.lower()), None)


@dataclass
class ImportResult:
    """
    Result of importing a ledger export file.

    Provides feedback about what happened during import:
    - How many records were parsed
    - Which ones were new vs already stored
    """
    total_parsed: int
    new_records: int
    duplicates_skipped: int

    filepath: str = ""
    kind: str = ""
    dry_run: bool = False

    @property
    def success(self) -> bool:
        """Import is successful if at least one record is imported"""
        return self.new_records > 0

    def __str__(self) -> str:
        "Human-readable summary"
        lines = [
            f"Import summary for {self.kind}:",
            f" 📄 File: {self.filepath}",
            f" ✅ New records: {self.new_records}",
            f" ⏭️ Duplicates Skipped: {self.duplicates_skipped}"
        ]
        return "\n".join(lines)


@dataclass
class LedgerSummary:
    """Dashboard totals as recorded through a given day"""
    as_of: date
    total_income: Decimal = ZERO
    total_expense: Decimal = ZERO
    total_savings: Decimal = ZERO
    net_profit: Decimal = ZERO


@dataclass
class PayableItem:
    """One line of the accounts payable list: an expense or a whole card invoice"""
    description: str
    value: Decimal
    date: date
    category: str
    is_paid: bool
    is_bill: bool = False
    card_id: Optional[str] = None
    transaction_id: Optional[str] = None


@dataclass
class AccountsPayable:
    """Expenses and card invoices due in one month"""
    month: int
    year: int
    items: List[PayableItem] = field(default_factory=list)

    @property
    def paid(self) -> Decimal:
        return sum((i.value for i in self.items if i.is_paid), ZERO)

    @property
    def pending(self) -> Decimal:
        return sum((i.value for i in self.items if not i.is_paid), ZERO)

    @property
    def total(self) -> Decimal:
        return self.paid + self.pending

    @property
    def percent_paid(self) -> Decimal:
        if self.total == 0:
            return ZERO
        return self.paid / self.total * 100


@dataclass
class DailyBalance:
    """Movement and closing balance of one day in a projection"""
    day: date
    income: Decimal = ZERO
    expense: Decimal = ZERO
    balance: Decimal = ZERO
    items: List[Transaction] = field(default_factory=list)

    @property
    def profit(self) -> Decimal:
        return self.income - self.expense


@dataclass
class DailyProjection:
    """Running balance for every day of a month, invoice convention"""
    month: int
    year: int
    opening_balance: Decimal
    days: List[DailyBalance] = field(default_factory=list)

    @property
    def closing_balance(self) -> Decimal:
        return self.days[-1].balance if self.days else self.opening_balance

    def for_day(self, day: int) -> Optional[DailyBalance]:
        return next((d for d in self.days if d.day.day == day), None)


@dataclass
class MonthlyReport:
    """
    Totals for one calendar month.

    Expenses count expense and credit card entries by purchase date plus
    the recurring expense rules active that month.
    """
    month: int
    year: int
    total_income: Decimal = ZERO
    total_expenses: Decimal = ZERO
    total_savings: Decimal = ZERO
    recurring_total: Decimal = ZERO
    recurring_count: int = 0
    expenses: List[Transaction] = field(default_factory=list)

    @property
    def start_date(self) -> date:
        """First day of the month"""
        return date(self.year, self.month, 1)

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expenses - self.total_savings

    @property
    def expenses_by_category(self) -> Dict[str, Decimal]:
        """Calculate expense totals by category"""
        return _totals_by_category(self.expenses)

    @property
    def booked_expenses_by_category(self) -> Dict[str, Decimal]:
        """Same as expenses_by_category, recurring projections left out"""
        return _totals_by_category(t for t in self.expenses if not t.is_virtual)

    @property
    def top_categories(self) -> List[Tuple[str, Decimal]]:
        """Categories sorted by spending amount (descending)"""
        return sorted(
            self.expenses_by_category.items(),
            key=lambda x: x[1],
            reverse=True
        )

    @property
    def booked_expenses(self) -> Decimal:
        """Expenses actually entered in the ledger, without recurring projections"""
        return sum((t.value for t in self.expenses if not t.is_virtual), ZERO)

    @property
    def biggest_expense(self) -> Optional[Transaction]:
        """Largest single expense; the first one wins ties"""
        biggest = None
        for txn in self.expenses:
            if biggest is None or txn.value > biggest.value:
                biggest = txn
        return biggest
