import pytest
import pandas as pd
from datetime import date
from decimal import Decimal

from rosacash.domain.enums import TransactionType
from rosacash.domain.exceptions import ValidationError
from rosacash.parsers.ledger_file import LedgerFileParser

TRANSACTIONS_CSV = """\
id,date,type,value,category,description,card_id,is_paid,installments,current_installment
t1,2025-01-02,income,3000.00,Salary,Salary,,,,
t2,2025-01-06,credit_card,100.10,Shopping,Shoes,nubank,sim,3,1
,,,,,,,,,
t3,2025-01-20,expense,80,Bills,Internet,,false,,
"""

@pytest.fixture
def write_file(tmp_path):
    def _write(name: str, content: str):
        path = tmp_path / name
        path.write_text(content)
        return path
    return _write


@pytest.mark.integration
class TestTransactionsFile:

    def test_parse_csv(self, write_file):
        records = LedgerFileParser().parse(write_file("ledger.csv", TRANSACTIONS_CSV))

        assert [t.id for t in records] == ["t1", "t2", "t3"]
        shoes = records[1]
        assert shoes.type == TransactionType.CREDIT_CARD
        assert shoes.value == Decimal("100.10")
        assert shoes.card_id == "nubank"
        assert shoes.is_paid is True
        assert shoes.installment_count == 3
        assert shoes.installment_index == 1
        assert records[0].card_id is None
        assert records[2].is_paid is False

    def test_column_names_are_case_insensitive(self, write_file):
        path = write_file("ledger.csv", "Date,Type,Value\n2025-01-02,expense,10\n")

        [txn] = LedgerFileParser().parse(path)

        assert txn.date == date(2025, 1, 2)
        assert txn.id is None

    def test_bad_row_names_its_line(self, write_file):
        content = "date,type,value\n2025-01-02,expense,10\n02/01/2025,expense,10\n"

        with pytest.raises(ValidationError, match="Row 3"):
            LedgerFileParser().parse(write_file("ledger.csv", content))

    def test_card_charge_without_card(self, write_file):
        content = "date,type,value\n2025-01-02,credit_card,10\n"

        with pytest.raises(ValidationError, match="Row 2"):
            LedgerFileParser().parse(write_file("ledger.csv", content))

    def test_missing_columns(self, write_file):
        with pytest.raises(ValueError, match="Missing required columns: value"):
            LedgerFileParser().parse(write_file("ledger.csv", "date,type\n2025-01-02,expense\n"))

    def test_parse_excel(self, tmp_path):
        path = tmp_path / "ledger.xlsx"
        pd.DataFrame([
            {"date": "2025-01-02", "type": "expense", "value": 12.5, "installments": None},
            {"date": "2025-01-03", "type": "credit_card", "value": 30, "card_id": "nubank", "installments": 2},
        ]).to_excel(path, index=False)

        records = LedgerFileParser().parse(path)

        assert [t.value for t in records] == [Decimal("12.5"), Decimal("30")]
        assert records[1].installment_count == 2


@pytest.mark.integration
class TestOtherKinds:

    def test_parse_recurring(self, write_file):
        content = "id,day_of_month,value,type,start_date,description\nrent,10,1200,expense,2024-01-01,Rent\n"

        [rule] = LedgerFileParser("recurring").parse(write_file("recurring.csv", content))

        assert rule.id == "rent"
        assert rule.day_of_month == 10
        assert rule.start_date == date(2024, 1, 1)

    def test_recurring_day_out_of_range(self, write_file):
        content = "day_of_month,value,type,start_date\n32,1200,expense,2024-01-01\n"

        with pytest.raises(ValidationError, match="day_of_month"):
            LedgerFileParser("recurring").parse(write_file("recurring.csv", content))

    def test_parse_cards(self, write_file):
        content = "id,name,closing_day,due_day\nnubank,Nubank Roxinho,5,15\n"

        [card] = LedgerFileParser("cards").parse(write_file("cards.csv", content))

        assert card.closing_day == 5
        assert card.due_day == 15
        assert card.limit == Decimal("0")

    def test_fractional_day(self, write_file):
        content = "id,name,closing_day,due_day\nnubank,Nubank,5.5,15\n"

        with pytest.raises(ValidationError, match="whole number"):
            LedgerFileParser("cards").parse(write_file("cards.csv", content))


@pytest.mark.integration
class TestFileValidation:

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown ledger kind"):
            LedgerFileParser("budgets")

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            LedgerFileParser().parse(tmp_path / "missing.csv")

    def test_unsupported_extension(self, write_file):
        with pytest.raises(ValueError, match="File must be one of"):
            LedgerFileParser().parse(write_file("ledger.txt", TRANSACTIONS_CSV))
