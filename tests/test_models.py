"""
Tests for the reporting core models

Test strategy:
1. Unit tests for individual components (models, calculators)
2. Flow tests against the in-memory store
3. No real API calls in tests (fake Sheets client)
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from boekhouding.exceptions import InvalidPeriodError
from boekhouding.models import (
    Account,
    AccountBalance,
    AccountType,
    AnnualTaxSummary,
    BalanceSide,
    BalanceSheetPosition,
    CompanyContext,
    FiscalPeriod,
    InvoiceItem,
    JournalEntry,
    JournalLine,
    JournalStatus,
    LegacyInvoiceRecord,
    SalesInvoiceRecord,
    round_money,
)
from boekhouding.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from boekhouding.models.invoice import InvoiceStatus, parse_invoice_status


class TestLedgerModels:
    """Tests for accounts and journal models."""

    def test_account_strips_whitespace(self):
        """Test that whitespace is stripped from account fields."""
        account = Account(id="a1", code=" 1100 ", name="  Bank  ", type=AccountType.ASSET)
        assert account.code == "1100"
        assert account.name == "Bank"
        assert account.is_active is True

    @pytest.mark.parametrize("account_type,side", [
        (AccountType.ASSET, BalanceSide.DEBIT),
        (AccountType.EXPENSE, BalanceSide.DEBIT),
        (AccountType.LIABILITY, BalanceSide.CREDIT),
        (AccountType.EQUITY, BalanceSide.CREDIT),
        (AccountType.REVENUE, BalanceSide.CREDIT),
    ])
    def test_normal_balance(self, account_type, side):
        account = Account(id="a1", code="1", name="x", type=account_type)
        assert account.normal_balance == side

    def test_journal_line_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            JournalLine(
                id="l1",
                journal_entry_id="e1",
                account_id="a1",
                debit=Decimal("-1.00"),
            )

    def test_journal_line_rejects_sub_cent_amount(self):
        with pytest.raises(ValueError):
            JournalLine(
                id="l1",
                journal_entry_id="e1",
                account_id="a1",
                debit=Decimal("1.001"),
            )

    def test_entry_defaults_to_draft(self):
        entry = JournalEntry(id="e1", entry_date=date(2024, 1, 1))
        assert entry.status == JournalStatus.DRAFT
        assert not entry.is_final

    def test_entry_balance_check(self):
        lines = [
            JournalLine(id="l1", journal_entry_id="e1", account_id="a", debit=Decimal("10.00")),
            JournalLine(id="l2", journal_entry_id="e1", account_id="b", credit=Decimal("10.00")),
        ]
        entry = JournalEntry(id="e1", entry_date=date(2024, 1, 1), lines=lines)
        assert entry.is_balanced
        assert entry.total_debit == Decimal("10.00")

        unbalanced = entry.model_copy(update={"lines": lines[:1]})
        assert not unbalanced.is_balanced

    def test_company_context_is_frozen(self):
        company = CompanyContext(company_id="acme")
        assert company.name == "Mijn Onderneming"
        with pytest.raises(ValueError):
            company.name = "Other"


class TestInvoiceModels:
    """Tests for the stored invoice shapes."""

    @pytest.mark.parametrize("raw,expected", [
        ("Sent", InvoiceStatus.SENT),
        ("paid", InvoiceStatus.PAID),
        (" Overdue ", InvoiceStatus.OVERDUE),
        ("Gearchiveerd", InvoiceStatus.UNKNOWN),
        (None, InvoiceStatus.UNKNOWN),
    ])
    def test_parse_invoice_status(self, raw, expected):
        assert parse_invoice_status(raw) == expected

    def test_item_accepts_legacy_price_field(self):
        item = InvoiceItem(quantity=Decimal("1"), price=Decimal("12.50"))
        assert item.unit_price == Decimal("12.50")
        assert item.vat_percentage is None

    def test_sales_invoice_accepts_date_field(self):
        invoice = SalesInvoiceRecord(id="S-1", date=date(2024, 1, 1), status="Sent")
        assert invoice.invoice_date == date(2024, 1, 1)
        assert invoice.status == InvoiceStatus.SENT
        assert invoice.source == "sales_invoices"

    def test_legacy_invoice_source(self):
        invoice = LegacyInvoiceRecord(id="L-1", invoice_date=date(2024, 1, 1))
        assert invoice.source == "invoices"
        assert invoice.status == InvoiceStatus.UNKNOWN


class TestPeriods:
    """Tests for fiscal periods."""

    @pytest.mark.parametrize("quarter,start,end", [
        (1, date(2024, 1, 1), date(2024, 3, 31)),
        (2, date(2024, 4, 1), date(2024, 6, 30)),
        (3, date(2024, 7, 1), date(2024, 9, 30)),
        (4, date(2024, 10, 1), date(2024, 12, 31)),
    ])
    def test_quarters(self, quarter, start, end):
        period = FiscalPeriod.for_quarter(2024, quarter)
        assert (period.start, period.end) == (start, end)
        assert period.label == f"2024-Q{quarter}"

    @pytest.mark.parametrize("quarter", [0, 5, -1])
    def test_invalid_quarter(self, quarter):
        with pytest.raises(InvalidPeriodError, match="Quarter must be 1-4"):
            FiscalPeriod.for_quarter(2024, quarter)

    def test_year(self):
        period = FiscalPeriod.for_year(2024)
        assert period.label == "2024"
        assert period.contains(date(2024, 12, 31))
        assert not period.contains(date(2025, 1, 1))
        assert period.previous_year_end == date(2023, 12, 31)

    def test_end_before_start(self):
        with pytest.raises(ValueError, match="Period end cannot be before start"):
            FiscalPeriod(start=date(2024, 2, 1), end=date(2024, 1, 1), year=2024)


class TestReportModels:
    """Tests for result models."""

    @pytest.mark.parametrize("amount,expected", [
        ("0.125", "0.13"),
        ("0.124", "0.12"),
        ("-0.125", "-0.13"),
        ("10", "10.00"),
    ])
    def test_round_money_half_up(self, amount, expected):
        assert round_money(Decimal(amount)) == Decimal(expected)
        assert str(round_money(Decimal(amount))) == expected

    def test_account_balance_addition(self):
        total = AccountBalance(debit=Decimal("5")) + AccountBalance(credit=Decimal("2"))
        assert total == AccountBalance(debit=Decimal("5"), credit=Decimal("2"))
        assert total.net == Decimal("3")

    def test_balance_sheet_equity(self):
        position = BalanceSheetPosition(total_assets=Decimal("100"), total_liabilities=Decimal("40"))
        assert position.equity == Decimal("60")

    def test_annual_summary_derived_figures(self):
        summary = AnnualTaxSummary(
            year=2024,
            revenue=Decimal("1000"),
            costs=Decimal("250"),
            total_assets=Decimal("900"),
            total_liabilities=Decimal("100"),
        )
        assert summary.profit == Decimal("750")
        assert summary.end_equity == Decimal("800")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.VAT_RETURN_CALCULATED,
            description="VAT return calculated",
        )
        assert event.event_type == AuditEventType.VAT_RETURN_CALCULATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.AUDIT_FILE_EXPORTED,
            description="Audit file exported",
            details={"transaction_count": 4},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "audit_file_exported"
        assert log_dict["details"]["transaction_count"] == 4

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.DATA_ACCESS_FAILED,
            description="Data access failed",
            error_message="timeout",
        )
        row = event.to_sheets_row()
        assert len(row) == 11  # Expected number of columns
        assert row[2] == "data_access_failed"  # event_type
        assert row[10] == "timeout"  # error_message

    def test_audit_event_builder_vat_return(self):
        """Test AuditEventBuilder.vat_return_calculated."""
        correlation_id = uuid4()

        event = AuditEventBuilder.vat_return_calculated(
            company_id="acme",
            period_label="2024-Q1",
            net="15.50",
            invoice_count=3,
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.VAT_RETURN_CALCULATED
        assert event.entity_id == "2024-Q1"
        assert event.correlation_id == correlation_id
        assert event.details["net"] == "15.50"

    def test_audit_event_builder_unresolved_account(self):
        """Test AuditEventBuilder.unresolved_account_reference."""
        event = AuditEventBuilder.unresolved_account_reference(
            company_id="acme",
            account_id="acc-ghost",
            journal_entry_id="e1",
        )

        assert event.severity == AuditSeverity.WARNING
        assert event.entity_type == "journal_entry"
        assert event.details["account_id"] == "acc-ghost"
