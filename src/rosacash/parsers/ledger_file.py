import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import pandas as pd

from rosacash.parsers.base import LedgerParser, LedgerRecord
from rosacash.domain.models import Transaction, RecurringRule, CreditCard
from rosacash.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)

TRUE_VALUES = {"1", "true", "yes", "y", "sim", "t"}

class LedgerFileParser(LedgerParser):
    """
    Parser for CSV/Excel exports of the ledger tables.

    Column names follow the database columns (`card_id`, `is_paid`,
    `day_of_month`, `closing_day`, ...). One file holds one kind of record:
    transactions, recurring rules or cards.
    """

    SUPPORTED_SUFFIXES = [".csv", ".xlsx", ".xls"]

    REQUIRED_COLUMNS = {
        "transactions": ["date", "type", "value"],
        "recurring": ["day_of_month", "value", "type", "start_date"],
        "cards": ["id", "name", "closing_day", "due_day"],
    }

    def __init__(self, kind: str = "transactions"):
        if kind not in self.REQUIRED_COLUMNS:
            raise ValueError(
                f"Unknown ledger kind '{kind}'. "
                f"Available: {', '.join(self.REQUIRED_COLUMNS)}"
            )
        self.kind = kind

    def validate_file(self, filepath):
        """
        Check the file exists, has a supported extension and the columns
        required for this kind of record.
        """
        path = Path(filepath)

        if not path.exists():
            raise FileNotFoundError(f"File does not exist on path {path}")

        if path.suffix.lower() not in self.SUPPORTED_SUFFIXES:
            raise ValueError(
                f"File must be one of {', '.join(self.SUPPORTED_SUFFIXES)}, got {path.suffix}"
            )

        self._validate_columns(self._read(path))

    def parse(self, filepath: Union[str, Path]) -> List[LedgerRecord]:
        """
        Parse every row into a domain object.

        Raises:
            ValidationError: On the first malformed row, naming its line number
        """
        self.validate_file(filepath)
        df = self._read(Path(filepath))

        records = []
        for index, row in df.iterrows():
            values = {key: value.strip() for key, value in row.items()}
            if not any(values.values()):
                continue

            try:
                records.append(self._parse_row(values))
            except ValidationError as e:
                # +2: header line and 1-based numbering
                raise ValidationError(f"Row {index + 2}: {e}")

        logger.info("Parsed %d %s from %s", len(records), self.kind, filepath)
        return records

    def _read(self, path: Path) -> pd.DataFrame:
        try:
            if path.suffix.lower() == ".csv":
                df = pd.read_csv(path, dtype=str, keep_default_na=False)
            else:
                df = pd.read_excel(path, dtype=str)
        except Exception as e:
            raise ValueError(f"Failed to read {path.name}: {e}")

        df.columns = [str(col).strip().lower() for col in df.columns]
        return df.fillna("")

    def _validate_columns(self, df: pd.DataFrame) -> None:
        """Ensure all required columns are present"""
        missing = [col for col in self.REQUIRED_COLUMNS[self.kind] if col not in df.columns]
        if missing:
            raise ValueError(f"Missing required columns: {', '.join(missing)}")

    def _parse_row(self, row: Dict[str, str]) -> LedgerRecord:
        if self.kind == "transactions":
            return Transaction(
                id=row.get("id") or None,
                date=row["date"],
                type=row["type"],
                value=row["value"],
                category=row.get("category", ""),
                subcategory=row.get("subcategory", ""),
                description=row.get("description", ""),
                card_id=row.get("card_id") or None,
                installment_count=self._to_int(row.get("installments"), "installments"),
                installment_index=self._to_int(row.get("current_installment"), "current_installment"),
                is_recurring=self._to_bool(row.get("is_recurring")),
                is_paid=self._to_bool(row.get("is_paid")),
            )

        if self.kind == "recurring":
            return RecurringRule(
                id=row.get("id") or None,
                day_of_month=self._to_int(row["day_of_month"], "day_of_month"),
                value=row["value"],
                type=row["type"],
                start_date=row["start_date"],
                category=row.get("category", ""),
                subcategory=row.get("subcategory", ""),
                description=row.get("description", ""),
            )

        return CreditCard(
            id=row["id"],
            name=row["name"],
            closing_day=self._to_int(row["closing_day"], "closing_day"),
            due_day=self._to_int(row["due_day"], "due_day"),
            limit=row.get("limit") or "0",
            color=row.get("color", ""),
        )

    @staticmethod
    def _to_int(value: Any, field_name: str):
        if value is None or value == "":
            return None
        try:
            # Excel hands integers back as "5.0"
            number = float(value)
        except ValueError:
            raise ValidationError(f"{field_name} must be a whole number, got {value!r}")
        if not number.is_integer():
            raise ValidationError(f"{field_name} must be a whole number, got {value!r}")
        return int(number)

    @staticmethod
    def _to_bool(value: Any) -> bool:
        return str(value or "").strip().lower() in TRUE_VALUES
