"""Installment plan generation for credit card purchases"""

from dataclasses import replace
from decimal import Decimal, ROUND_HALF_UP
from typing import List
from rosacash.domain.models import Transaction
from rosacash.domain.exceptions import ValidationError
from rosacash.utils.date_utils import add_months

CENT = Decimal("0.01")


def split_installments(purchase: Transaction, count: int) -> List[Transaction]:
    """
    Split a credit card purchase into monthly installments.

    Requirements:
    - Each installment is the total divided by `count`, rounded to cents
    - Last installment absorbs the rounding remainder so the parts sum to the total
    - Installment i is dated i months after the purchase (clamped to month end)

    Args:
        purchase: The full purchase, with the total value
        count: Number of installments (1 returns the purchase unchanged)

    Returns:
        List of unpaid credit card transactions, one per month

    Example:
        100.00 in 3 → [33.33, 33.33, 33.34]
    """
    if not purchase.is_credit_card:
        raise ValidationError("Only credit card purchases can be split into installments")

    if isinstance(count, bool) or not isinstance(count, int) or count < 1:
        raise ValidationError(f"Installment count must be a positive integer, got {count!r}")

    if count == 1:
        return [replace(purchase, is_paid=False)]

    base_value = (purchase.value / count).quantize(CENT, rounding=ROUND_HALF_UP)
    last_value = purchase.value - base_value * (count - 1)
    if last_value < 0:
        raise ValidationError(
            f"Purchase of {purchase.value} is too small to split into {count} installments"
        )

    installments = []
    for i in range(count):
        installments.append(
            replace(
                purchase,
                id=f"{purchase.id}-{i + 1}" if purchase.id else None,
                date=add_months(purchase.date, i),
                value=last_value if i == count - 1 else base_value,
                description=f"{purchase.description} ({i + 1}/{count})",
                installment_index=i + 1,
                installment_count=count,
                is_recurring=False,
                is_paid=False,
            )
        )

    return installments
