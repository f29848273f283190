"""Builders for ledger entries used across tests"""
from datetime import date
from decimal import Decimal

from rosacash.domain.enums import TransactionType
from rosacash.domain.models import Transaction


def charge(day: date, value: str, card_id: str = "nubank", paid: bool = False, **kwargs) -> Transaction:
    """Shortcut for a credit card transaction"""
    return Transaction(
        date=day,
        type=TransactionType.CREDIT_CARD,
        value=Decimal(value),
        card_id=card_id,
        is_paid=paid,
        **kwargs,
    )


def entry(day: date, value: str, type: TransactionType = TransactionType.EXPENSE, **kwargs) -> Transaction:
    """Shortcut for a non card transaction"""
    return Transaction(date=day, type=type, value=Decimal(value), **kwargs)
