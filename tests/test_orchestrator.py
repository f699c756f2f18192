"""
Tests for the reporting service flows.

No external services: the in-memory store and audit storage stand in for
Google Sheets.
"""

from datetime import date
from decimal import Decimal

import pytest

from boekhouding.audit import AuditLogger
from boekhouding.config import ReportingSettings, UnresolvedAccountPolicy
from boekhouding.exceptions import InvalidPeriodError, UnresolvedAccountError
from boekhouding.models import (
    AuditEventType,
    FiscalYearProfile,
    InvoiceItem,
    LegacyInvoiceRecord,
    PurchaseInvoiceRecord,
    SalesInvoiceRecord,
)
from boekhouding.orchestrator import ReportingService
from boekhouding.services.storage import InMemoryLedgerStore, StorageError


COMPANY_ID = "acme"


@pytest.fixture
def invoices():
    return {
        "sales_invoices": [
            SalesInvoiceRecord(
                id="S-1",
                date=date(2024, 1, 15),
                status="sent",
                items=[InvoiceItem(quantity=Decimal("1"), price=Decimal("100"), vat_percentage=Decimal("21"))],
            ),
        ],
        "legacy_invoices": [
            LegacyInvoiceRecord(
                id="L-1", invoice_date=date(2024, 2, 1), status="Paid",
                net_amount=Decimal("50"), vat_amount=Decimal("4.50"),
            ),
            LegacyInvoiceRecord(
                id="L-2", invoice_date=date(2024, 2, 1), status="Draft",
                net_amount=Decimal("1000"), vat_amount=Decimal("210"),
            ),
            LegacyInvoiceRecord(
                id="L-3", invoice_date=date(2024, 4, 2), status="Sent",
                net_amount=Decimal("500"), vat_amount=Decimal("105"),
            ),
        ],
        "purchase_invoices": [
            PurchaseInvoiceRecord(
                id="P-1", invoice_date=date(2024, 3, 1), status="paid",
                vat_amount=Decimal("10.00"),
            ),
        ],
    }


@pytest.fixture
def service(store, company, invoices, audit_storage, reporting_settings):
    store.load(COMPANY_ID, **invoices)
    return ReportingService(
        store,
        company,
        audit_logger=AuditLogger(audit_storage),
        settings=reporting_settings,
    )


class FailingStore(InMemoryLedgerStore):
    async def list_purchase_invoices(self, company_id, date_from=None, date_to=None):
        raise StorageError("purchase sheet unavailable")

    async def list_posted_lines(self, company_id, **kwargs):
        raise StorageError("lines sheet unavailable")


class TestVatReturnFlow:
    """ReportingService.vat_return."""

    @pytest.mark.asyncio
    async def test_quarter_return(self, service, audit_storage):
        result = await service.vat_return(2024, 1)

        assert result.high_rate.base == Decimal("100.00")
        assert result.high_rate.vat == Decimal("21.00")
        assert result.low_rate.base == Decimal("50.00")
        assert result.low_rate.vat == Decimal("4.50")
        assert result.input_vat == Decimal("10.00")
        assert result.net == Decimal("15.50")

        events = audit_storage.events
        assert [e.event_type for e in events] == [AuditEventType.VAT_RETURN_CALCULATED]
        assert events[0].entity_id == "2024-Q1"
        assert events[0].details["invoice_count"] == 3

    @pytest.mark.asyncio
    async def test_later_quarter(self, service):
        result = await service.vat_return(2024, 2)
        assert result.high_rate.base == Decimal("500.00")
        assert result.input_vat == Decimal("0.00")

    @pytest.mark.asyncio
    async def test_invalid_quarter(self, service):
        with pytest.raises(InvalidPeriodError):
            await service.vat_return(2024, 5)

    @pytest.mark.asyncio
    async def test_read_failure_is_audited_and_raised(
        self, accounts, entries, company, audit_storage, reporting_settings
    ):
        store = FailingStore()
        store.load(COMPANY_ID, accounts=accounts, entries=entries)
        service = ReportingService(
            store, company,
            audit_logger=AuditLogger(audit_storage),
            settings=reporting_settings,
        )

        with pytest.raises(StorageError, match="purchase sheet unavailable"):
            await service.vat_return(2024, 1)

        events = audit_storage.events
        assert [e.event_type for e in events] == [AuditEventType.DATA_ACCESS_FAILED]
        assert events[0].error_message == "purchase sheet unavailable"


class TestAuditFileFlow:
    """ReportingService.export_audit_file and write_audit_file."""

    @pytest.mark.asyncio
    async def test_export(self, service, audit_storage):
        export = await service.export_audit_file(2024)

        assert export.account_count == 8
        assert export.transaction_count == 4
        assert "<companyName>Acme Advies</companyName>" in export.xml

        events = audit_storage.events
        assert events[-1].event_type == AuditEventType.AUDIT_FILE_EXPORTED
        assert events[-1].details["transaction_count"] == 4

    @pytest.mark.asyncio
    async def test_write_file(self, service, tmp_path):
        path = await service.write_audit_file(2024, tmp_path)

        assert path == tmp_path / "RGS_Brugstaat_2024.xaf"
        assert path.read_text(encoding="utf-8").startswith('<?xml version="1.0" encoding="UTF-8"?>')

    @pytest.mark.asyncio
    async def test_unresolved_lines_are_audited(
        self, accounts, entries, company, audit_storage, reporting_settings, make_entry
    ):
        gap = make_entry(
            "20240301-0001", date(2024, 3, 1),
            [("acc-ghost", "25.00", 0), ("acc-bank", 0, "25.00")],
        )
        store = InMemoryLedgerStore()
        store.load(COMPANY_ID, accounts=accounts, entries=entries + [gap])
        service = ReportingService(
            store, company,
            audit_logger=AuditLogger(audit_storage),
            settings=reporting_settings,
        )

        await service.export_audit_file(2024)

        types = [e.event_type for e in audit_storage.events]
        assert types == [
            AuditEventType.UNRESOLVED_ACCOUNT_REFERENCE,
            AuditEventType.AUDIT_FILE_EXPORTED,
        ]
        unresolved = audit_storage.events[0]
        assert unresolved.details["account_id"] == "acc-ghost"
        assert unresolved.entity_id == "20240301-0001"
        assert unresolved.correlation_id == audit_storage.events[1].correlation_id

    @pytest.mark.asyncio
    async def test_fail_policy_is_audited(
        self, accounts, entries, company, audit_storage, make_entry
    ):
        gap = make_entry(
            "20240301-0001", date(2024, 3, 1),
            [("acc-ghost", "25.00", 0), ("acc-bank", 0, "25.00")],
        )
        store = InMemoryLedgerStore()
        store.load(COMPANY_ID, accounts=accounts, entries=entries + [gap])
        service = ReportingService(
            store, company,
            audit_logger=AuditLogger(audit_storage),
            settings=ReportingSettings(unresolved_account_policy=UnresolvedAccountPolicy.FAIL),
        )

        with pytest.raises(UnresolvedAccountError):
            await service.export_audit_file(2024)

        events = audit_storage.events
        assert [e.event_type for e in events] == [AuditEventType.SYSTEM_ERROR]
        assert events[0].description == "System error: UnresolvedAccountError"


class TestAnnualFlows:
    """Annual tax summary and fiscal income."""

    @pytest.mark.asyncio
    async def test_annual_tax_summary(self, service, audit_storage):
        summary = await service.annual_tax_summary(2024)

        assert summary.profit == Decimal("800.00")
        assert audit_storage.events[-1].event_type == AuditEventType.TAX_SUMMARY_CALCULATED
        assert audit_storage.events[-1].details["profit"] == "800.00"

    @pytest.mark.asyncio
    async def test_fiscal_income(self, service, audit_storage):
        profile = FiscalYearProfile(
            year=2024,
            hours_criterion_met=True,
            private_use_car_amount=Decimal("5000"),
        )
        result = await service.fiscal_income(2024, profile)

        assert result.adjusted_profit == Decimal("5800.00")
        assert result.profit_after_deductions == Decimal("2050.00")
        assert result.sme_profit_exemption == Decimal("272.86")
        assert result.taxable_income == Decimal("1777.14")

        events = audit_storage.events
        assert [e.event_type for e in events] == [
            AuditEventType.TAX_SUMMARY_CALCULATED,
            AuditEventType.FISCAL_INCOME_CALCULATED,
        ]
        assert events[0].correlation_id == events[1].correlation_id

    @pytest.mark.asyncio
    async def test_summary_read_failure(
        self, accounts, entries, company, audit_storage, reporting_settings
    ):
        store = FailingStore()
        store.load(COMPANY_ID, accounts=accounts, entries=entries)
        service = ReportingService(
            store, company,
            audit_logger=AuditLogger(audit_storage),
            settings=reporting_settings,
        )

        with pytest.raises(StorageError):
            await service.annual_tax_summary(2024)

        assert audit_storage.events[0].event_type == AuditEventType.DATA_ACCESS_FAILED
        assert audit_storage.events[0].details["operation"] == "tax_summary"
