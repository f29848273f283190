import pytest
from datetime import date
from decimal import Decimal
from pathlib import Path

from rosacash.config.settings import Settings
from rosacash.domain.enums import BalanceMode, TransactionType
from rosacash.domain.models import CreditCard
from rosacash.repositories.base import CardNotFoundError, LedgerRepository
from rosacash.services.ledger_service import LedgerService
from tests.helpers import charge, entry

@pytest.fixture
def mock_repository(mocker) -> LedgerRepository:
    """Create a mock repository"""
    return mocker.Mock()

@pytest.fixture
def service(mock_repository) -> LedgerService:
    return LedgerService(repository=mock_repository)

@pytest.fixture
def stocked(mock_repository, sample_ledger, card, rent_rule):
    """Repository holding the sample ledger, one card and the rent rule"""
    mock_repository.list_transactions.return_value = sample_ledger
    mock_repository.list_recurring.return_value = [rent_rule]
    mock_repository.list_cards.return_value = [card]
    mock_repository.get_card.return_value = card
    return mock_repository


@pytest.mark.unit
class TestSnapshotQueries:

    def test_load_snapshot_reads_everything(self, service, stocked, sample_ledger, card, rent_rule):
        snapshot = service.load_snapshot()

        stocked.list_transactions.assert_called_once_with()
        assert snapshot.transactions == sample_ledger
        assert snapshot.recurring_rules == [rent_rule]
        assert snapshot.cards == [card]

    def test_summary(self, service, stocked):
        summary = service.get_summary(date(2025, 1, 31))

        assert summary.total_income == Decimal("3000")
        assert summary.total_expense == Decimal("280")
        assert summary.total_savings == Decimal("500")
        # unpaid card charges don't leave the account yet
        assert summary.net_profit == Decimal("2220")

    def test_summary_counts_paid_card_charges(self, service, stocked, sample_ledger):
        sample_ledger.append(charge(date(2025, 1, 8), "20", paid=True))

        summary = service.get_summary(date(2025, 1, 31))

        assert summary.total_expense == Decimal("300")

    def test_get_balance_delegates_to_engine(self, service, stocked):
        result = service.get_balance(date(2025, 1, 16), BalanceMode.INVOICE)

        assert result.balance == Decimal("2250")


@pytest.mark.unit
class TestBills:

    def test_get_card_bill(self, service, stocked):
        bill = service.get_card_bill("nubank", 2, 2025)

        stocked.get_card.assert_called_once_with("nubank")
        stocked.list_transactions.assert_called_once_with(card_id="nubank")
        assert bill.total == Decimal("100")
        assert bill.due_date == date(2025, 2, 15)

    def test_get_card_bill_unknown_card(self, service, mock_repository):
        mock_repository.get_card.side_effect = CardNotFoundError("Card ghost not found")

        with pytest.raises(CardNotFoundError):
            service.get_card_bill("ghost", 2, 2025)

    def test_upcoming_bills(self, service, stocked):
        bills = service.get_upcoming_bills(date(2025, 1, 10), months=2)

        assert [(b.month, b.year, b.total) for b in bills["nubank"]] == [
            (1, 2025, Decimal("50")),
            (2, 2025, Decimal("100")),
        ]

    def test_upcoming_bills_default_horizon(self, mock_repository, stocked):
        service = LedgerService(mock_repository, Settings(bill_months_ahead=3))

        bills = service.get_upcoming_bills(date(2025, 11, 1))

        assert [(b.month, b.year) for b in bills["nubank"]] == [(11, 2025), (12, 2025), (1, 2026)]

    def test_upcoming_bills_explicit_zero_months(self, service, stocked):
        assert service.get_upcoming_bills(date(2025, 1, 10), months=0) == {"nubank": []}

    def test_set_bill_paid_persists_copies(self, service, stocked, sample_ledger):
        count = service.set_bill_paid("nubank", 2, 2025)

        assert count == 1
        [updated] = stocked.update_transactions.call_args[0][0]
        assert updated.id == "t5"
        assert updated.is_paid is True
        # the snapshot itself is untouched
        assert not any(t.is_paid for t in sample_ledger)

    def test_set_bill_paid_on_empty_bill(self, service, stocked):
        assert service.set_bill_paid("nubank", 6, 2025) == 0
        stocked.update_transactions.assert_not_called()

    def test_accounts_payable(self, service, stocked):
        payable = service.get_accounts_payable(1, 2025)

        assert [(i.description, i.value) for i in payable.items] == [
            ("Groceries", Decimal("200")),
            ("Emergency fund", Decimal("500")),
            ("Card bill: Nubank Roxinho", Decimal("50")),
            ("Internet", Decimal("80")),
        ]
        bill = payable.items[2]
        assert bill.is_bill and bill.card_id == "nubank"
        assert bill.date == date(2025, 1, 15)
        assert payable.pending == Decimal("830")
        assert payable.percent_paid == Decimal("0")

    def test_accounts_payable_paid_share(self, service, stocked, sample_ledger):
        sample_ledger[3] = charge(date(2025, 1, 5), "50", paid=True)

        payable = service.get_accounts_payable(1, 2025)

        assert payable.paid == Decimal("50")
        assert payable.total == Decimal("830")
        assert round(payable.percent_paid, 2) == Decimal("6.02")


@pytest.mark.unit
class TestProjections:

    def test_project_balance_starts_from_cash_balance(self, service, stocked):
        result = service.project_balance(date(2025, 1, 31), date(2025, 3, 31))

        assert result.current_balance == Decimal("2220")
        assert result.delta == Decimal("-2400")
        assert result.projected_balance == Decimal("-180")

    def test_project_balance_includes_booked_future_entries(self, service, stocked, sample_ledger):
        sample_ledger.append(entry(date(2025, 2, 20), "100", TransactionType.INCOME, description="Refund"))

        result = service.project_balance(date(2025, 1, 31), date(2025, 3, 31))

        assert result.delta == Decimal("-2300")

    def test_daily_projection_current_month(self, service, stocked):
        projection = service.get_daily_projection(1, 2025, today=date(2025, 1, 1))

        assert projection.opening_balance == Decimal("0")
        assert len(projection.days) == 31
        assert projection.for_day(10).balance == Decimal("1100")
        assert projection.for_day(15).expense == Decimal("50")
        assert projection.closing_balance == Decimal("970")

    def test_daily_projection_skips_launched_occurrences(self, service, stocked, sample_ledger):
        sample_ledger.append(entry(date(2025, 1, 10), "1200", description="Rent January"))

        projection = service.get_daily_projection(1, 2025, today=date(2025, 1, 1))

        [item] = projection.for_day(10).items
        assert not item.is_virtual
        assert projection.closing_balance == Decimal("970")

    def test_daily_projection_past_days_use_ledger_only(self, service, stocked):
        projection = service.get_daily_projection(1, 2025, today=date(2025, 1, 20))

        assert projection.for_day(10).items == []
        assert projection.closing_balance == Decimal("2170")

    def test_daily_projection_future_month(self, service, stocked):
        projection = service.get_daily_projection(2, 2025, today=date(2025, 1, 20))

        assert projection.opening_balance == Decimal("2170")
        assert projection.for_day(15).expense == Decimal("100")
        assert projection.closing_balance == Decimal("870")

    def test_future_month_counts_later_charges_on_invoices_already_due(self, service, mock_repository):
        # due day before closing day: the January invoice is due on the 5th
        # but still takes charges until the 25th
        mock_repository.list_transactions.return_value = [charge(date(2025, 1, 15), "100", card_id="santander")]
        mock_repository.list_recurring.return_value = []
        mock_repository.list_cards.return_value = [
            CreditCard(id="santander", name="Santander Free", closing_day=25, due_day=5)
        ]

        projection = service.get_daily_projection(2, 2025, today=date(2025, 1, 10))

        assert projection.opening_balance == Decimal("-100")
        assert projection.closing_balance == Decimal("-100")
        expected = service.get_balance(date(2025, 3, 1), BalanceMode.INVOICE)
        assert projection.closing_balance == expected.balance

    def test_daily_projection_matches_invoice_balance_for_past_days(self, service, stocked):
        projection = service.get_daily_projection(1, 2025, today=date(2025, 2, 1))

        for day in (3, 15, 31):
            expected = service.get_balance(date(2025, 1, day), BalanceMode.INVOICE, inclusive=True)
            assert projection.for_day(day).balance == expected.balance


@pytest.mark.unit
class TestMonthlyReport:

    def test_report_includes_recurring_expenses(self, service, stocked):
        report = service.get_monthly_report(1, 2025)

        assert report.total_income == Decimal("3000")
        assert report.total_expenses == Decimal("1630")
        assert report.total_savings == Decimal("500")
        assert report.booked_expenses == Decimal("430")
        assert report.recurring_total == Decimal("1200")
        assert report.recurring_count == 1
        assert report.biggest_expense.description == "Rent"
        assert report.top_categories[0] == ("Housing", Decimal("1200"))

    def test_income_rules_count_as_recurring_but_not_expenses(self, service, stocked, rent_rule, salary_rule):
        stocked.list_recurring.return_value = [rent_rule, salary_rule]

        report = service.get_monthly_report(1, 2025)

        assert report.total_expenses == Decimal("1630")
        assert report.recurring_total == Decimal("4200")
        assert report.recurring_count == 2

    def test_rules_not_started_are_left_out(self, service, stocked, rent_rule):
        report = service.get_monthly_report(12, 2023)

        assert report.recurring_count == 0
        assert report.expenses == []


@pytest.mark.unit
class TestWrites:

    def test_add_plain_transaction(self, service, mock_repository):
        txn = entry(date(2025, 1, 3), "200", description="Groceries")
        mock_repository.save_transactions.return_value = [txn]

        saved = service.add_transaction(txn)

        mock_repository.save_transactions.assert_called_once_with([txn])
        mock_repository.get_card.assert_not_called()
        assert saved == [txn]

    def test_add_card_purchase_in_installments(self, service, mock_repository, card):
        mock_repository.get_card.return_value = card
        mock_repository.save_transactions.side_effect = lambda txns: txns

        saved = service.add_transaction(charge(date(2025, 1, 3), "300", description="Phone"), installments=3)

        mock_repository.get_card.assert_called_once_with("nubank")
        assert [t.description for t in saved] == ["Phone (1/3)", "Phone (2/3)", "Phone (3/3)"]

    def test_add_card_purchase_unknown_card(self, service, mock_repository):
        mock_repository.get_card.side_effect = CardNotFoundError("Card ghost not found")

        with pytest.raises(CardNotFoundError):
            service.add_transaction(charge(date(2025, 1, 3), "300", card_id="ghost"))

        mock_repository.save_transactions.assert_not_called()


@pytest.mark.unit
class TestImportLedger:

    @pytest.fixture
    def parser(self, mocker):
        parser_class = mocker.patch("rosacash.services.ledger_service.LedgerFileParser")
        return parser_class.return_value

    def test_import_transactions(self, service, mock_repository, parser, sample_ledger):
        parser.parse.return_value = sample_ledger
        mock_repository.save_transactions.return_value = sample_ledger[:4]

        result = service.import_ledger(Path("ledger.csv"))

        mock_repository.save_transactions.assert_called_once_with(sample_ledger)
        assert result.total_parsed == 6
        assert result.new_records == 4
        assert result.duplicates_skipped == 2
        assert result.success

    def test_dry_run_saves_nothing(self, service, mock_repository, parser, sample_ledger):
        parser.parse.return_value = sample_ledger[:2]
        mock_repository.get_transaction.side_effect = [sample_ledger[0], None]

        result = service.import_ledger(Path("ledger.csv"), dry_run=True)

        mock_repository.save_transactions.assert_not_called()
        assert result.new_records == 1
        assert result.dry_run

    def test_import_cards(self, service, mock_repository, parser, card, other_card):
        parser.parse.return_value = [card, other_card]
        mock_repository.list_cards.return_value = [card]

        result = service.import_ledger(Path("cards.xlsx"), kind="cards")

        assert mock_repository.save_card.call_count == 2
        assert result.new_records == 1
        assert result.kind == "cards"

    def test_import_recurring(self, service, mock_repository, parser, rent_rule, salary_rule):
        parser.parse.return_value = [rent_rule, salary_rule]

        result = service.import_ledger(Path("recurring.csv"), kind="recurring")

        assert mock_repository.save_recurring.call_count == 2
        assert result.new_records == 2
