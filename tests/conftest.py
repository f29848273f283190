import pytest
from datetime import date
from decimal import Decimal
from typing import List

from rosacash.database.connection import DatabaseConfig, DatabaseManager
from rosacash.domain.enums import TransactionType
from rosacash.domain.models import Transaction, RecurringRule, CreditCard
from rosacash.repositories.sqlite_ledger_repository import SQLiteLedgerRepository
from tests.helpers import charge, entry

@pytest.fixture
def card() -> CreditCard:
    """Card closing on the 5th, due on the 15th"""
    return CreditCard(id="nubank", name="Nubank Roxinho", closing_day=5, due_day=15, limit=Decimal("5000"))

@pytest.fixture
def other_card() -> CreditCard:
    return CreditCard(id="santander", name="Santander Free", closing_day=25, due_day=5)

@pytest.fixture
def rent_rule() -> RecurringRule:
    return RecurringRule(
        id="rent",
        day_of_month=10,
        value=Decimal("1200"),
        type=TransactionType.EXPENSE,
        start_date=date(2024, 1, 1),
        category="Housing",
        description="Rent",
    )

@pytest.fixture
def salary_rule() -> RecurringRule:
    return RecurringRule(
        id="salary",
        day_of_month=5,
        value=Decimal("3000"),
        type=TransactionType.INCOME,
        start_date=date(2024, 1, 1),
        category="Salary",
        description="Salary",
    )

@pytest.fixture
def sample_ledger() -> List[Transaction]:
    """A few weeks of activity around January 2025"""
    return [
        entry(date(2025, 1, 2), "3000", TransactionType.INCOME, id="t1", description="Salary", category="Salary"),
        entry(date(2025, 1, 3), "200", id="t2", description="Groceries", category="Food"),
        entry(date(2025, 1, 4), "500", TransactionType.SAVINGS, id="t3", description="Emergency fund"),
        charge(date(2025, 1, 5), "50", id="t4", description="Pharmacy", category="Health"),
        charge(date(2025, 1, 6), "100", id="t5", description="Shoes", category="Shopping"),
        entry(date(2025, 1, 20), "80", id="t6", description="Internet", category="Bills"),
    ]

@pytest.fixture
def test_db(tmp_path):
    """
    Create a real test database.

    Use pytest's tmp_path fixture to create a temporary directory.
    """
    config = DatabaseConfig(tmp_path / "test.db")
    db_manager = DatabaseManager(config)
    db_manager.initialize_schema()

    yield db_manager

    db_manager.close()

@pytest.fixture
def repo(test_db) -> SQLiteLedgerRepository:
    """Create a repository with a test database."""
    return SQLiteLedgerRepository(test_db)
