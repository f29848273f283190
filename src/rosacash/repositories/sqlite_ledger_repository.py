import sqlite3
import uuid
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import List, Optional

from rosacash.database.connection import Connection, DatabaseManager
from rosacash.domain.models import Transaction, RecurringRule, CreditCard
from rosacash.domain.enums import TransactionType
from rosacash.repositories.base import (
    LedgerRepository,
    DuplicateTransactionError,
    TransactionNotFoundError,
    CardNotFoundError,
)

INSERT_TRANSACTION = """
    INSERT INTO transactions (
        id, user_id, date, type, value, category, subcategory, description,
        card_id, installments, current_installment, is_recurring, is_paid
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

def _new_id() -> str:
    return uuid.uuid4().hex

class SQLiteLedgerRepository(LedgerRepository):
    """
    SQLite implementation of the LedgerRepository.

    Handles all database operations for one user's ledger using raw SQL.
    Values are stored as text to keep Decimal precision.
    """

    def __init__(self, db_manager: DatabaseManager, user_id: str = "local"):
        self.db = db_manager
        self.user_id = user_id

    # ── Transactions ──────────────────────────────────────────────

    def save_transaction(self, transaction: Transaction) -> Transaction:
        """Save a single transaction."""
        if transaction.id is not None and self.exists(transaction.id):
            raise DuplicateTransactionError(
                f"Transaction already exists: {transaction.id} ({transaction.description})"
            )

        with self.db.transaction() as conn:
            return self._insert_transaction(conn, transaction)

    def save_transactions(self, transactions: List[Transaction]) -> List[Transaction]:
        """Save multiple transactions efficiently"""
        saved = []

        with self.db.transaction() as conn:
            for txn in transactions:
                if txn.id is not None and self.exists(txn.id):
                    continue

                saved.append(self._insert_transaction(conn, txn))

        return saved

    def _insert_transaction(self, conn: Connection, txn: Transaction) -> Transaction:
        """Insert one row; returns the stored copy, with its generated ID if it had none"""
        if txn.is_virtual:
            raise ValueError(f"Virtual transactions are never persisted: {txn!r}")

        if txn.id is None:
            txn = replace(txn, id=_new_id())

        conn.execute(
            INSERT_TRANSACTION,
            (
                txn.id,
                self.user_id,
                txn.date.isoformat(),
                txn.type.value,
                str(txn.value), # Store as string for precision
                txn.category,
                txn.subcategory,
                txn.description,
                txn.card_id,
                txn.installment_count,
                txn.installment_index,
                int(txn.is_recurring),
                int(txn.is_paid),
            ),
        )
        return txn

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """Retrieve a transaction by ID, or None if it doesn't exist"""
        conn = self.db.get_connection()
        cursor = conn.execute(
            "SELECT * FROM transactions WHERE id = ? AND user_id = ?",
            (transaction_id, self.user_id)
        )
        row = cursor.fetchone()

        if row is None:
            return None

        return self._row_to_transaction(row)

    def list_transactions(
            self,
            start_date: Optional[date] = None,
            end_date: Optional[date] = None,
            transaction_type: Optional[TransactionType] = None,
            card_id: Optional[str] = None,
    ) -> List[Transaction]:
        """Retrieve transactions with optional filtering."""
        query = "SELECT * FROM transactions WHERE user_id = ?"
        params: list = [self.user_id]

        if start_date:
            query += " AND date >= ?"
            params.append(start_date.isoformat())

        if end_date:
            query += " AND date <= ?"
            params.append(end_date.isoformat())

        if transaction_type:
            query += " AND type = ?"
            params.append(transaction_type.value)

        if card_id:
            query += " AND card_id = ?"
            params.append(card_id)

        query += " ORDER BY date DESC, id"

        conn = self.db.get_connection()
        rows = conn.execute(query, params).fetchall()

        return [self._row_to_transaction(row) for row in rows]

    def update_transactions(self, transactions: List[Transaction]) -> List[Transaction]:
        """Update existing transactions in one database transaction."""
        with self.db.transaction() as conn:
            for txn in transactions:
                if txn.id is None:
                    raise ValueError("Cannot update transaction without ID")

                cursor = conn.execute(
                    """
                    UPDATE transactions
                    SET date = ?, type = ?, value = ?, category = ?, subcategory = ?,
                        description = ?, card_id = ?, is_paid = ?
                    WHERE id = ? AND user_id = ?
                    """,
                    (
                        txn.date.isoformat(),
                        txn.type.value,
                        str(txn.value),
                        txn.category,
                        txn.subcategory,
                        txn.description,
                        txn.card_id,
                        int(txn.is_paid),
                        txn.id,
                        self.user_id,
                    )
                )

                if cursor.rowcount == 0:
                    raise TransactionNotFoundError(
                        f"Transaction with ID {txn.id} not found"
                    )

        return transactions

    def delete_transaction(self, transaction_id: str) -> bool:
        """Delete a transaction by ID."""
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM transactions WHERE id = ? AND user_id = ?",
                (transaction_id, self.user_id)
            )
            return cursor.rowcount > 0

    def exists(self, transaction_id: str) -> bool:
        """Check if a transaction ID is already taken"""
        conn = self.db.get_connection()
        cursor = conn.execute(
            "SELECT 1 FROM transactions WHERE id = ?",
            (transaction_id,),
        )
        return cursor.fetchone() is not None

    def _row_to_transaction(self, row: sqlite3.Row) -> Transaction:
        """Convert database row to Transaction object."""
        return Transaction(
            id=row["id"],
            date=row["date"],
            type=TransactionType(row["type"]),
            value=Decimal(row["value"]),
            category=row["category"],
            subcategory=row["subcategory"],
            description=row["description"],
            card_id=row["card_id"],
            installment_count=row["installments"],
            installment_index=row["current_installment"],
            is_recurring=bool(row["is_recurring"]),
            is_paid=bool(row["is_paid"]),
        )

    # ── Recurring rules ───────────────────────────────────────────

    def save_recurring(self, rule: RecurringRule) -> RecurringRule:
        if rule.id is None:
            rule = replace(rule, id=_new_id())

        with self.db.transaction() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO recurring (
                    id, user_id, description, value, day_of_month,
                    category, subcategory, type, start_date
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    rule.id,
                    self.user_id,
                    rule.description,
                    str(rule.value),
                    rule.day_of_month,
                    rule.category,
                    rule.subcategory,
                    rule.type.value,
                    rule.start_date.isoformat(),
                ),
            )

        return rule

    def list_recurring(self) -> List[RecurringRule]:
        conn = self.db.get_connection()
        rows = conn.execute(
            "SELECT * FROM recurring WHERE user_id = ? ORDER BY day_of_month, id",
            (self.user_id,),
        ).fetchall()

        return [
            RecurringRule(
                id=row["id"],
                description=row["description"],
                value=Decimal(row["value"]),
                day_of_month=row["day_of_month"],
                category=row["category"],
                subcategory=row["subcategory"],
                type=TransactionType(row["type"]),
                start_date=row["start_date"],
            )
            for row in rows
        ]

    def delete_recurring(self, rule_id: str) -> bool:
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM recurring WHERE id = ? AND user_id = ?",
                (rule_id, self.user_id),
            )
            return cursor.rowcount > 0

    # ── Credit cards ──────────────────────────────────────────────

    def save_card(self, card: CreditCard) -> CreditCard:
        with self.db.transaction() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO cards (
                    id, user_id, name, "limit", closing_day, due_day, color
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    card.id,
                    self.user_id,
                    card.name,
                    str(card.limit),
                    card.closing_day,
                    card.due_day,
                    card.color,
                ),
            )

        return card

    def get_card(self, card_id: str) -> CreditCard:
        conn = self.db.get_connection()
        row = conn.execute(
            "SELECT * FROM cards WHERE id = ? AND user_id = ?",
            (card_id, self.user_id),
        ).fetchone()

        if row is None:
            raise CardNotFoundError(f"Card with ID {card_id} not found")

        return self._row_to_card(row)

    def list_cards(self) -> List[CreditCard]:
        conn = self.db.get_connection()
        rows = conn.execute(
            "SELECT * FROM cards WHERE user_id = ? ORDER BY name",
            (self.user_id,),
        ).fetchall()
        return [self._row_to_card(row) for row in rows]

    def delete_card(self, card_id: str) -> bool:
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM cards WHERE id = ? AND user_id = ?",
                (card_id, self.user_id),
            )
            return cursor.rowcount > 0

    def _row_to_card(self, row: sqlite3.Row) -> CreditCard:
        return CreditCard(
            id=row["id"],
            name=row["name"],
            limit=Decimal(row["limit"]),
            closing_day=row["closing_day"],
            due_day=row["due_day"],
            color=row["color"],
        )
