from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Union
from rosacash.domain.models import Transaction, RecurringRule, CreditCard

LedgerRecord = Union[Transaction, RecurringRule, CreditCard]

class LedgerParser(ABC):
    """
    Abstract base class for ledger import parsers.

    Each export format gets its own concrete parser that implements
    this interface.
    """

    @abstractmethod
    def parse(self, filepath: Union[str, Path]) -> List[LedgerRecord]:
        """
        Parse an export file and return its records.

        Args:
            filepath: Path to the export file

        Returns:
            List of domain objects

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file format is invalid
        """
        pass

    @abstractmethod
    def validate_file(self, filepath: Union[str, Path]):
        """
        Validate that the file matches the expected format.

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file format is invalid
        """
        pass
