from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional

from rosacash.domain.models import Transaction, RecurringRule, CreditCard
from rosacash.domain.enums import TransactionType

class DuplicateTransactionError(Exception):
    """Raised when attempting to save a transaction whose ID already exists."""
    pass

class TransactionNotFoundError(Exception):
    """Raised when a transaction cannot be found."""
    pass

class CardNotFoundError(Exception):
    """Raised when a credit card cannot be found."""
    pass

class LedgerRepository(ABC):
    """
    Abstract repository for one user's ledger: transactions, recurring
    rules and credit cards.

    The billing engine never talks to this layer; services load a
    snapshot from it and persist edits back.
    """

    @abstractmethod
    def save_transaction(self, transaction: Transaction) -> Transaction:
        """
        Save a transaction to the repository.

        Args:
            transaction: Transaction to save

        Returns:
            Transaction with ID populated

        Raises:
            DuplicateTransactionError: If the ID already exists
            ValueError: If the transaction is virtual (projections are never stored)
        """
        pass

    @abstractmethod
    def save_transactions(self, transactions: List[Transaction]) -> List[Transaction]:
        """
        Save multiple transactions in a single operation, skipping existing IDs.

        Args:
            transactions: List of transactions to save.

        Returns:
            List of saved transactions with IDs
        """
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """
        Retrieve a transaction by ID.

        Returns:
            Transaction if found, None otherwise
        """
        pass

    @abstractmethod
    def list_transactions(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        transaction_type: Optional[TransactionType] = None,
        card_id: Optional[str] = None,
    ) -> List[Transaction]:
        """
        Retrieve transactions with optional filtering.

        Args:
            start_date: Filter transactions on or after this date
            end_date: Filter transactions on or before this date
            transaction_type: Filter by type
            card_id: Filter by credit card

        Returns:
            List of matching transactions, newest first
        """
        pass

    @abstractmethod
    def update_transactions(self, transactions: List[Transaction]) -> List[Transaction]:
        """
        Update existing transactions.

        Raises:
            TransactionNotFoundError: If any transaction doesn't exist
        """
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: str) -> bool:
        """
        Delete a transaction by ID.

        Returns:
            True if deleted, False if not found
        """
        pass

    @abstractmethod
    def save_recurring(self, rule: RecurringRule) -> RecurringRule:
        """Save a recurring rule, returning it with ID populated"""
        pass

    @abstractmethod
    def list_recurring(self) -> List[RecurringRule]:
        """All recurring rules"""
        pass

    @abstractmethod
    def delete_recurring(self, rule_id: str) -> bool:
        """Delete a recurring rule, True if it existed"""
        pass

    @abstractmethod
    def save_card(self, card: CreditCard) -> CreditCard:
        """Insert or replace a credit card"""
        pass

    @abstractmethod
    def get_card(self, card_id: str) -> CreditCard:
        """
        Retrieve a credit card by ID.

        Raises:
            CardNotFoundError: If the card doesn't exist
        """
        pass

    @abstractmethod
    def list_cards(self) -> List[CreditCard]:
        """All credit cards"""
        pass

    @abstractmethod
    def delete_card(self, card_id: str) -> bool:
        """
        Delete a credit card. Its charges stay in the ledger and show up
        as orphaned in billing computations.
        """
        pass
