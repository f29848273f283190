"""
Query functions for the conversational assistant.

Each tool answers one kind of question with plain JSON-friendly data.
Monetary values are rounded to 2 decimal places; "nothing found" is a
`found: False` answer, never an exception.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Dict

from rosacash.billing import engine
from rosacash.domain.models import DateLike, parse_date
from rosacash.services.ledger_service import LedgerService

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def round_money(value) -> float:
    """Round to cents (half up) for tool output"""
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    return float(amount.quantize(CENT, rounding=ROUND_HALF_UP))


def format_money(value, symbol: str = "R$") -> str:
    """Brazilian-style amount: R$ 1.234,56"""
    amount = (value if isinstance(value, Decimal) else Decimal(str(value))).quantize(
        CENT, rounding=ROUND_HALF_UP
    )
    digits = f"{abs(amount):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol} {digits}"


class AssistantTools:
    """
    Tools the assistant calls by name with model-chosen arguments.

    Usage:
        tools = AssistantTools(service)
        tools.call("get_card_bill_by_month", card_name="nubank", month=3, year=2025)
    """

    def __init__(self, service: LedgerService):
        self.service = service
        self._tools: Dict[str, Callable[..., Dict[str, Any]]] = {
            "get_card_bill_by_month": self.get_card_bill_by_month,
            "get_projected_balance": self.get_projected_balance,
            "get_total_expenses_by_month": self.get_total_expenses_by_month,
            "get_biggest_expense_of_month": self.get_biggest_expense_of_month,
            "get_financial_summary": self.get_financial_summary,
        }

    @property
    def names(self):
        return list(self._tools)

    def call(self, name: str, **arguments) -> Dict[str, Any]:
        """
        Run a tool by name.

        Raises:
            ValueError: If no tool has that name
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ValueError(f"Unknown tool '{name}'. Available: {', '.join(self._tools)}")

        logger.debug("Tool call %s(%s)", name, arguments)
        return tool(**arguments)

    def get_card_bill_by_month(self, card_name: str, month: int, year: int) -> Dict[str, Any]:
        """Invoice total of the first card whose name contains `card_name`"""
        snapshot = self.service.load_snapshot()
        card = snapshot.find_card(card_name)
        if card is None:
            return {"card_name": card_name, "month": month, "year": year, "total": 0.0, "found": False}

        bill = engine.aggregate_bill_for_period(
            snapshot.transactions, card.id, month, year, card.closing_day, card.due_day
        )
        return {
            "card_name": card.name,
            "month": month,
            "year": year,
            "total": round_money(bill.total),
            "due_date": bill.due_date.isoformat(),
            "paid": bill.is_paid,
            "found": True,
        }

    def get_projected_balance(self, target_date: DateLike, current_date: DateLike) -> Dict[str, Any]:
        """Balance on `target_date` from today's recorded balance plus what is scheduled"""
        target = parse_date(target_date, "target_date")
        today = parse_date(current_date, "current_date")
        result = self.service.project_balance(today, target)
        symbol = self.service.settings.currency_symbol

        return {
            "target_date": target.isoformat(),
            "current_balance": round_money(result.current_balance),
            "projected_balance": round_money(result.projected_balance),
            "explanation": (
                f"Current balance: {format_money(result.current_balance, symbol)}. "
                f"Scheduled entries until {target.isoformat()}: {format_money(result.delta, symbol)}."
            ),
        }

    def get_total_expenses_by_month(self, month: int, year: int) -> Dict[str, Any]:
        """Expenses of a month, recurring bills included, with a per-category breakdown"""
        report = self.service.get_monthly_report(month, year)
        return {
            "month": month,
            "year": year,
            "total_expenses": round_money(report.total_expenses),
            "total_income": round_money(report.total_income),
            "breakdown": [
                {"category": category, "total": round_money(total)}
                for category, total in report.expenses_by_category.items()
            ],
        }

    def get_biggest_expense_of_month(self, month: int, year: int) -> Dict[str, Any]:
        """Single biggest expense entry or recurring bill of a month"""
        biggest = self.service.get_monthly_report(month, year).biggest_expense
        if biggest is None:
            return {"month": month, "year": year, "description": "", "value": 0.0, "category": "", "found": False}

        return {
            "month": month,
            "year": year,
            "description": biggest.description,
            "value": round_money(biggest.value),
            "category": biggest.category,
            "found": True,
        }

    def get_financial_summary(self, month: int, year: int) -> Dict[str, Any]:
        """Aggregated view of a month for general financial health questions"""
        report = self.service.get_monthly_report(month, year)
        booked = report.booked_expenses

        return {
            "month": month,
            "year": year,
            "total_income": round_money(report.total_income),
            "total_expenses": round_money(booked),
            "total_savings": round_money(report.total_savings),
            "balance": round_money(report.total_income - booked - report.total_savings),
            "top_categories": [
                {"category": category, "total": round_money(total)}
                for category, total in sorted(
                    report.booked_expenses_by_category.items(), key=lambda x: x[1], reverse=True
                )[:5]
            ],
            "recurring_total": round_money(report.recurring_total),
            "recurring_count": report.recurring_count,
        }
