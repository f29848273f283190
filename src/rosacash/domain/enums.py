from enum import Enum

class TransactionType(Enum):
    """Kind of ledger entry, as stored in the `type` column"""
    INCOME = "income"
    EXPENSE = "expense"
    CREDIT_CARD = "credit_card"
    SAVINGS = "savings"
    SAVINGS_WITHDRAWAL = "savings_withdrawal"

    @property
    def is_inflow(self) -> bool:
        """Money coming into the account"""
        return self in (TransactionType.INCOME, TransactionType.SAVINGS_WITHDRAWAL)


class BalanceMode(Enum):
    """How credit card charges are applied when computing a balance"""
    CASH = "cash" # each paid charge on its own date
    INVOICE = "invoice" # whole invoice on its due date
