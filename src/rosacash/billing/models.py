"""
Billing models - derived results of billing-cycle computations.

These are computed on demand from a ledger snapshot and never persisted.
"""
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
from rosacash.domain.models import Transaction

@dataclass
class BillingPeriod:
    """
    All credit card charges of one card that land on one invoice.

    `month` is 1-indexed; `month_index` is the 0-indexed view for
    callers that count months from zero.
    """
    card_id: str
    month: int
    year: int
    total: Decimal = Decimal("0")
    transactions: List[Transaction] = field(default_factory=list)
    due_date: Optional[date] = None

    @property
    def month_index(self) -> int:
        return self.month - 1

    @property
    def is_empty(self) -> bool:
        return not self.transactions

    @property
    def is_paid(self) -> bool:
        """An invoice is paid when it has charges and all of them are paid"""
        return bool(self.transactions) and all(t.is_paid for t in self.transactions)

    def __str__(self) -> str:
        return f"Bill {self.card_id} {self.month:02d}/{self.year}: {self.total:,.2f}"


@dataclass
class BillStatus:
    """Answer to "is this invoice paid?", distinguishing "no invoice" from "unpaid" """
    found: bool
    paid: bool = False
    total: Decimal = Decimal("0")


@dataclass
class BillPartition:
    """Credit card charges grouped by invoice, plus the ones whose card is unknown"""
    periods: Dict[Tuple[str, int, int], BillingPeriod] = field(default_factory=dict)
    orphaned: List[Transaction] = field(default_factory=list)

    def for_card(self, card_id: str) -> List[BillingPeriod]:
        """Periods of one card in chronological order"""
        return sorted(
            (p for (cid, _, _), p in self.periods.items() if cid == card_id),
            key=lambda p: (p.year, p.month),
        )


@dataclass
class BalanceResult:
    """Net balance at a cutoff, with charges that could not be attributed"""
    balance: Decimal
    cutoff: date
    orphaned: List[Transaction] = field(default_factory=list)

    @property
    def orphan_count(self) -> int:
        return len(self.orphaned)


@dataclass
class ProjectionResult:
    """
    Balance projected from one date to another.

    `breakdown` holds every applied item in date order: virtual
    transactions for recurring rules, real ones for booked entries.
    """
    current_balance: Decimal
    delta: Decimal
    from_date: date
    to_date: date
    breakdown: List[Transaction] = field(default_factory=list)

    @property
    def projected_balance(self) -> Decimal:
        return self.current_balance + self.delta

    @property
    def total_inflow(self) -> Decimal:
        return sum((t.value for t in self.breakdown if t.type.is_inflow), Decimal("0"))

    @property
    def total_outflow(self) -> Decimal:
        return sum((t.value for t in self.breakdown if not t.type.is_inflow), Decimal("0"))
