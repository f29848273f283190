"""
Billing-cycle engine - credit card invoice attribution and balance projection.

Every function here is pure: it reads a snapshot supplied by the caller and
returns new objects. "Today" is always an explicit argument.
"""
import logging
from collections import defaultdict
from dataclasses import replace
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from rosacash.billing.models import (
    BalanceResult,
    BillingPeriod,
    BillPartition,
    BillStatus,
    ProjectionResult,
)
from rosacash.domain.enums import BalanceMode
from rosacash.domain.exceptions import ValidationError
from rosacash.domain.models import (
    CreditCard,
    DateLike,
    RecurringRule,
    Transaction,
    parse_date,
    validate_day,
)
from rosacash.utils.date_utils import day_in_month, iter_months, shift_month

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
LAUNCHED_TOLERANCE = Decimal("0.01")


def _validate_month(month: int, year: int) -> None:
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise ValidationError(f"month must be between 1 and 12, got {month!r}")
    if isinstance(year, bool) or not isinstance(year, int) or not 1 <= year <= 9998:
        raise ValidationError(f"Invalid year: {year!r}")


def _as_balance(value) -> Decimal:
    """Like to_money, but balances may be negative"""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid current_balance: {value!r}")

    if not amount.is_finite():
        raise ValidationError(f"Invalid current_balance: {value!r}")
    return amount


def assign_billing_period(transaction_date: DateLike, closing_day: int) -> Tuple[int, int]:
    """
    Find the invoice a credit card charge appears on.

    A charge made after the closing day goes to next month's invoice,
    otherwise it stays on the invoice of its own month. Only the numeric
    day is compared, so a closing day of 29-31 never rolls over in
    shorter months.

    Args:
        transaction_date: Date of the charge
        closing_day: Card closing day (1-31)

    Returns:
        (month, year) of the invoice, month 1-indexed

    Example:
        closing day 5: Jan 5 → (1, 2025), Jan 6 → (2, 2025), Dec 6 → (1, 2026)
    """
    charge_date = parse_date(transaction_date)
    validate_day(closing_day, "closing_day")

    if charge_date.day > closing_day:
        return shift_month(charge_date.month, charge_date.year)
    return charge_date.month, charge_date.year


def billing_period_index(transaction_date: DateLike, closing_day: int) -> Tuple[int, int]:
    """Same as assign_billing_period with a 0-indexed month"""
    month, year = assign_billing_period(transaction_date, closing_day)
    return month - 1, year


def invoice_due_date(due_day: int, month: int, year: int) -> date:
    """Due date of the invoice for (month, year), clamped to the month's last day"""
    validate_day(due_day, "due_day")
    _validate_month(month, year)
    return day_in_month(year, month, due_day)


def _card_charges(transactions: Iterable[Transaction], card_id: str) -> List[Transaction]:
    return [
        t for t in transactions
        if t.is_credit_card and t.card_id == card_id and not t.is_virtual
    ]


def aggregate_bill_for_period(
    transactions: Iterable[Transaction],
    card_id: str,
    month: int,
    year: int,
    closing_day: int,
    due_day: Optional[int] = None,
) -> BillingPeriod:
    """
    Collect the charges of one card that land on the (month, year) invoice.

    Args:
        transactions: Ledger snapshot (non card entries are ignored)
        card_id: Card to aggregate
        month: Invoice month (1-12)
        year: Invoice year
        closing_day: Card closing day
        due_day: When given, the period carries its due date

    Returns:
        BillingPeriod with the total and member transactions
    """
    _validate_month(month, year)
    validate_day(closing_day, "closing_day")

    members = [
        t for t in _card_charges(transactions, card_id)
        if assign_billing_period(t.date, closing_day) == (month, year)
    ]

    return BillingPeriod(
        card_id=card_id,
        month=month,
        year=year,
        total=sum((t.value for t in members), ZERO),
        transactions=members,
        due_date=invoice_due_date(due_day, month, year) if due_day is not None else None,
    )


def is_bill_fully_paid(
    transactions: Iterable[Transaction],
    card_id: str,
    month: int,
    year: int,
    closing_day: int,
) -> BillStatus:
    """
    Check whether every charge on an invoice is paid.

    An invoice with no charges is reported as found=False rather than paid.
    """
    period = aggregate_bill_for_period(transactions, card_id, month, year, closing_day)
    if period.is_empty:
        return BillStatus(found=False)
    return BillStatus(found=True, paid=period.is_paid, total=period.total)


def partition_bills(
    transactions: Iterable[Transaction],
    cards: Sequence[CreditCard],
) -> BillPartition:
    """
    Group every credit card charge into the invoice it belongs to.

    Charges whose card is not in `cards` go to `orphaned` instead of
    raising, since a card may have been deleted after its charges.
    """
    cards_by_id = {card.id: card for card in cards}
    partition = BillPartition()

    for txn in transactions:
        if not txn.is_credit_card or txn.is_virtual:
            continue

        card = cards_by_id.get(txn.card_id)
        if card is None:
            partition.orphaned.append(txn)
            continue

        month, year = assign_billing_period(txn.date, card.closing_day)
        key = (card.id, month, year)
        period = partition.periods.get(key)
        if period is None:
            period = BillingPeriod(
                card_id=card.id,
                month=month,
                year=year,
                due_date=invoice_due_date(card.due_day, month, year),
            )
            partition.periods[key] = period

        period.transactions.append(txn)
        period.total += txn.value

    if partition.orphaned:
        logger.warning(
            "%d credit card transaction(s) reference unknown cards: %s",
            len(partition.orphaned),
            sorted({t.card_id for t in partition.orphaned}),
        )

    return partition


def compute_balance_as_of(
    transactions: Iterable[Transaction],
    recurring_rules: Sequence[RecurringRule],
    cards: Sequence[CreditCard],
    cutoff: DateLike,
    mode: BalanceMode = BalanceMode.CASH,
    inclusive: bool = False,
) -> BalanceResult:
    """
    Net balance of all ledger activity before `cutoff`.

    Modes:
    - CASH: every entry on its own date; card charges only once paid
    - INVOICE: card charges never count individually; each invoice whose
      due date is before the cutoff is subtracted in full, paid or not

    Recurring rules are not applied: past activity is exactly the ledger.

    Args:
        transactions: Ledger snapshot
        recurring_rules: Accepted so both modes share one signature
        cards: Card configurations used for invoice attribution
        cutoff: Boundary date
        mode: Balance convention
        inclusive: Count activity (and due dates) on the cutoff day itself

    Returns:
        BalanceResult with the balance and any charges on unknown cards
    """
    cutoff = parse_date(cutoff, "cutoff")

    def before_cutoff(day: date) -> bool:
        return day <= cutoff if inclusive else day < cutoff

    past = [t for t in transactions if not t.is_virtual and before_cutoff(t.date)]

    balance = ZERO
    for txn in past:
        if not txn.is_credit_card:
            balance += txn.signed_value
        elif mode == BalanceMode.CASH and txn.is_paid:
            balance -= txn.value

    partition = partition_bills(past, cards)

    if mode == BalanceMode.INVOICE:
        for period in partition.periods.values():
            if before_cutoff(period.due_date):
                balance -= period.total

    logger.debug(
        "Balance as of %s (%s, %s): %s from %d transactions",
        cutoff,
        mode.value,
        "inclusive" if inclusive else "exclusive",
        balance,
        len(past),
    )

    return BalanceResult(balance=balance, cutoff=cutoff, orphaned=partition.orphaned)


def materialize_occurrence(rule: RecurringRule, on: date) -> Transaction:
    """Projected (virtual) transaction for one occurrence of a recurring rule"""
    return Transaction(
        id=f"{rule.id}-{on.isoformat()}" if rule.id else None,
        date=on,
        type=rule.type,
        value=rule.value,
        category=rule.category,
        description=rule.description,
        subcategory=rule.subcategory,
        is_recurring=True,
        is_virtual=True,
    )


def occurrences_between(rule: RecurringRule, after: date, until: date) -> List[date]:
    """
    Dates the rule fires on in (after, until], never before its start date.

    Days past the end of a short month fall on its last day.
    """
    dates = []
    for month, year in iter_months(after, until):
        occurrence = day_in_month(year, month, rule.day_of_month)
        if after < occurrence <= until and occurrence >= rule.start_date:
            dates.append(occurrence)
    return dates


def project_balance(
    current_balance,
    recurring_rules: Sequence[RecurringRule],
    booked_transactions: Iterable[Transaction],
    from_date: DateLike,
    to_date: DateLike,
) -> ProjectionResult:
    """
    Project a balance forward from `from_date` (already reflected in
    `current_balance`) through `to_date`.

    Applies one occurrence of every recurring rule per month, plus booked
    real transactions dated in (from_date, to_date]. Booked card charges
    count only when paid, as in cash mode.
    """
    balance = _as_balance(current_balance)
    from_date = parse_date(from_date, "from_date")
    to_date = parse_date(to_date, "to_date")
    if to_date < from_date:
        raise ValidationError(f"to_date {to_date} is before from_date {from_date}")

    breakdown: List[Transaction] = []

    for rule in recurring_rules:
        for occurrence in occurrences_between(rule, from_date, to_date):
            breakdown.append(materialize_occurrence(rule, occurrence))

    for txn in booked_transactions:
        if txn.is_virtual or not from_date < txn.date <= to_date:
            continue
        if txn.is_credit_card and not txn.is_paid:
            continue
        breakdown.append(txn)

    breakdown.sort(key=lambda t: t.date)
    delta = sum((t.signed_value for t in breakdown), ZERO)

    return ProjectionResult(
        current_balance=balance,
        delta=delta,
        from_date=from_date,
        to_date=to_date,
        breakdown=breakdown,
    )


def is_already_launched(
    rule: RecurringRule,
    transactions: Iterable[Transaction],
    on: date,
    tolerance: Decimal = LAUNCHED_TOLERANCE,
) -> bool:
    """
    Whether an occurrence of `rule` was already entered as a real transaction.

    Matches on same date, description containing the rule's description
    and value within `tolerance`.
    """
    return any(
        not t.is_virtual
        and t.date == on
        and rule.description in t.description
        and abs(t.value - rule.value) < tolerance
        for t in transactions
    )


def mark_bill_paid(
    transactions: Iterable[Transaction],
    card: CreditCard,
    month: int,
    year: int,
    paid: bool = True,
) -> List[Transaction]:
    """Copies of the invoice's charges with is_paid set; the input is left as is"""
    period = aggregate_bill_for_period(transactions, card.id, month, year, card.closing_day)
    return [replace(t, is_paid=paid) for t in period.transactions]


def bills_by_due_date(partition: BillPartition) -> Dict[date, List[BillingPeriod]]:
    """Index non-empty invoices by the day they are due"""
    due: Dict[date, List[BillingPeriod]] = defaultdict(list)
    for period in partition.periods.values():
        if period.total > 0:
            due[period.due_date].append(period)
    return dict(due)
