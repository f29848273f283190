from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Optional, Union
from rosacash.domain.enums import TransactionType
from rosacash.domain.exceptions import ValidationError

DateLike = Union[date, str]
MoneyLike = Union[Decimal, int, float, str]


def parse_date(value: DateLike, field_name: str = "date") -> date:
    """
    Turn an ISO `YYYY-MM-DD` string (or a date) into a calendar date.

    Raises:
        ValidationError: If the value is not a date or cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise ValidationError(f"Invalid {field_name}: {value!r} (expected YYYY-MM-DD)")


def validate_day(value: int, field_name: str) -> int:
    """Ensure a day-of-month setting is an integer in 1-31"""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer, got {value!r}")
    if not 1 <= value <= 31:
        raise ValidationError(f"{field_name} must be between 1 and 31, got {value}")
    return value


def to_money(value: MoneyLike, field_name: str = "value") -> Decimal:
    """Convert to Decimal, rejecting negatives and non-finite numbers"""
    try:
        # floats go through str() so 0.1 stays 0.1
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid {field_name}: {value!r}")

    if not amount.is_finite():
        raise ValidationError(f"Invalid {field_name}: {value!r}")
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative, got {amount}")
    return amount


@dataclass
class Transaction:
    """A single ledger entry (real, or projected when is_virtual is set)"""
    date: date
    type: TransactionType
    value: Decimal
    category: str = ""
    description: str = ""
    subcategory: str = ""
    card_id: Optional[str] = None
    installment_index: Optional[int] = None
    installment_count: Optional[int] = None
    is_paid: bool = False
    is_recurring: bool = False
    is_virtual: bool = False
    id: Optional[str] = None

    def __post_init__(self):
        self.date = parse_date(self.date)
        if not isinstance(self.type, TransactionType):
            try:
                self.type = TransactionType(self.type)
            except ValueError:
                raise ValidationError(f"Unknown transaction type: {self.type!r}")
        self.value = to_money(self.value)

        # projected charges from recurring rules have no card
        if self.type == TransactionType.CREDIT_CARD and not self.card_id and not self.is_virtual:
            raise ValidationError("Credit card transactions must reference a card")
        if self.type != TransactionType.CREDIT_CARD and self.card_id:
            raise ValidationError(
                f"Only credit card transactions can reference a card, got type {self.type.value}"
            )

    @property
    def is_credit_card(self) -> bool:
        return self.type == TransactionType.CREDIT_CARD

    @property
    def signed_value(self) -> Decimal:
        """Value with sign for balance calculations"""
        return self.value if self.type.is_inflow else -self.value

    def __repr__(self):
        sign = "+" if self.type.is_inflow else "-"
        flag = " virtual" if self.is_virtual else ""
        return f"Transaction({self.date}, {self.description[:30]}, {sign}{self.value}{flag})"


@dataclass
class RecurringRule:
    """A charge or income expected every month on day_of_month, from start_date on"""
    day_of_month: int
    value: Decimal
    type: TransactionType
    start_date: date
    category: str = ""
    description: str = ""
    subcategory: str = ""
    id: Optional[str] = None

    def __post_init__(self):
        validate_day(self.day_of_month, "day_of_month")
        self.start_date = parse_date(self.start_date, "start_date")
        if not isinstance(self.type, TransactionType):
            try:
                self.type = TransactionType(self.type)
            except ValueError:
                raise ValidationError(f"Unknown transaction type: {self.type!r}")
        self.value = to_money(self.value)


@dataclass
class CreditCard:
    """Billing-cycle configuration shared by all charges on one card"""
    id: str
    name: str
    closing_day: int
    due_day: int
    limit: Decimal = Decimal("0")
    color: str = ""

    def __post_init__(self):
        validate_day(self.closing_day, "closing_day")
        validate_day(self.due_day, "due_day")
        self.limit = to_money(self.limit, "limit")
