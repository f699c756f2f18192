"""
Reporting Orchestrator

This module ties together the reporting components and defines the
end-to-end flows for one company:
1. VAT return (quarter → invoices → normalize → buckets)
2. Audit file (year → accounts, opening balances, transactions → XAF)
3. Annual tax summary and fiscal income (year → ledger totals → deductions)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every run is scoped to an explicit CompanyContext
- A failed read aborts the run; no partial figures are returned
- Every run is audited under its own correlation id
"""

from pathlib import Path
from typing import Awaitable, Optional, TypeVar, Union
from uuid import UUID

import structlog

from boekhouding.audit import AuditLogger, configure_logging, create_correlation_id
from boekhouding.config import ReportingSettings, get_settings
from boekhouding.exceptions import ReportingError
from boekhouding.export.xaf import AuditFileExport, AuditFileExporter
from boekhouding.ledger.engine import LedgerAggregationEngine
from boekhouding.ledger.fiscal import calculate_fiscal_income
from boekhouding.models.audit import AuditEventBuilder
from boekhouding.models.ledger import CompanyContext
from boekhouding.models.period import FiscalPeriod
from boekhouding.models.reports import (
    TAX_RATES_2024,
    AnnualTaxSummary,
    BtwCalculation,
    FiscalIncomeCalculation,
    FiscalYearProfile,
    TaxRates,
)
from boekhouding.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
    LedgerStoreInterface,
    StorageError,
)
from boekhouding.vat import compute_btw, normalize_invoices


logger = structlog.get_logger(__name__)

T = TypeVar("T")


class ReportingService:
    """
    Runs the reports of one company.

    Usage:
        service = ReportingService(store, CompanyContext(company_id="acme"))
        btw = await service.vat_return(2024, 1)
        export = await service.export_audit_file(2024)
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        company: CompanyContext,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[ReportingSettings] = None,
    ):
        self._store = store
        self._company = company
        self._settings = settings or get_settings().reporting
        self._audit_logger = audit_logger or AuditLogger()
        self._engine = LedgerAggregationEngine(
            store,
            company,
            unresolved_policy=self._settings.unresolved_account_policy,
            match_private_account_names=self._settings.match_private_account_names,
        )
        self._exporter = AuditFileExporter(self._engine, self._settings)

    @property
    def engine(self) -> LedgerAggregationEngine:
        return self._engine

    @property
    def company(self) -> CompanyContext:
        return self._company

    async def _guarded(
        self,
        operation: str,
        awaitable: Awaitable[T],
        correlation_id: UUID,
    ) -> T:
        """Await a ledger read or computation, auditing failures before re-raising."""
        try:
            return await awaitable
        except StorageError as e:
            await self._audit_logger.log_data_access_failed(
                company_id=self._company.company_id,
                operation=operation,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            raise
        except ReportingError as e:
            await self._audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                details={"operation": operation, "company_id": self._company.company_id},
                correlation_id=correlation_id,
            )
            raise

    async def vat_return(
        self,
        year: int,
        quarter: int,
        correlation_id: Optional[UUID] = None,
    ) -> BtwCalculation:
        """
        Calculate the VAT return for a calendar quarter.

        Raises:
            InvalidPeriodError: If quarter is not 1-4
            StorageError: If an invoice read fails
        """
        correlation_id = correlation_id or create_correlation_id()
        period = FiscalPeriod.for_quarter(year, quarter)
        company_id = self._company.company_id

        sales = await self._guarded(
            "vat_return",
            self._store.list_sales_invoices(company_id, period.start, period.end),
            correlation_id,
        )
        legacy = await self._guarded(
            "vat_return",
            self._store.list_legacy_invoices(company_id, period.start, period.end),
            correlation_id,
        )
        purchases = await self._guarded(
            "vat_return",
            self._store.list_purchase_invoices(company_id, period.start, period.end),
            correlation_id,
        )

        sales_stream = normalize_invoices([*sales, *legacy])
        purchase_stream = normalize_invoices(purchases)
        result = compute_btw(sales_stream, purchase_stream)

        invoice_count = (
            sum(1 for invoice in sales_stream if invoice.is_reportable)
            + len(purchase_stream)
        )
        await self._audit_logger.log_vat_return(
            company_id=company_id,
            period_label=period.label,
            net=result.net,
            invoice_count=invoice_count,
            correlation_id=correlation_id,
        )
        return result

    async def export_audit_file(
        self,
        year: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditFileExport:
        """
        Build the XAF audit file for a calendar year.

        Raises:
            UnresolvedAccountError: Under the FAIL policy
            StorageError: If a ledger read fails
        """
        correlation_id = correlation_id or create_correlation_id()
        period = FiscalPeriod.for_year(year)

        export = await self._guarded(
            "audit_file_export",
            self._exporter.build(
                fiscal_year=year,
                start_date=period.start,
                end_date=period.end,
                company_name=self._company.name or self._settings.default_company_name,
                company_vat=self._company.vat_number,
            ),
            correlation_id,
        )

        for reference in export.unresolved:
            await self._audit_logger.log(AuditEventBuilder.unresolved_account_reference(
                company_id=self._company.company_id,
                account_id=reference.account_id,
                journal_entry_id=reference.journal_entry_id,
                correlation_id=correlation_id,
            ))

        await self._audit_logger.log_audit_file_exported(
            company_id=self._company.company_id,
            fiscal_year=year,
            account_count=export.account_count,
            transaction_count=export.transaction_count,
            correlation_id=correlation_id,
        )
        return export

    async def write_audit_file(
        self,
        year: int,
        directory: Union[str, Path],
        correlation_id: Optional[UUID] = None,
    ) -> Path:
        """Export a year and write it as RGS_Brugstaat_<year>.xaf in directory."""
        export = await self.export_audit_file(year, correlation_id=correlation_id)
        path = Path(directory) / export.filename
        path.write_text(export.xml, encoding="utf-8")
        logger.info("audit_file_written", path=str(path), fiscal_year=year)
        return path

    async def annual_tax_summary(
        self,
        year: int,
        correlation_id: Optional[UUID] = None,
    ) -> AnnualTaxSummary:
        """Ledger figures for the annual income tax return."""
        correlation_id = correlation_id or create_correlation_id()

        summary = await self._guarded(
            "tax_summary",
            self._engine.annual_tax_summary(year),
            correlation_id,
        )
        await self._audit_logger.log_tax_summary(
            company_id=self._company.company_id,
            year=year,
            profit=summary.profit,
            excluded_lines=summary.excluded_line_count,
            correlation_id=correlation_id,
        )
        return summary

    async def fiscal_income(
        self,
        year: int,
        profile: Optional[FiscalYearProfile] = None,
        rates: TaxRates = TAX_RATES_2024,
        correlation_id: Optional[UUID] = None,
    ) -> FiscalIncomeCalculation:
        """Taxable business income for a year."""
        correlation_id = correlation_id or create_correlation_id()

        summary = await self.annual_tax_summary(year, correlation_id=correlation_id)
        calculation = calculate_fiscal_income(summary, profile, rates)

        await self._audit_logger.log_fiscal_income(
            company_id=self._company.company_id,
            year=year,
            taxable_income=calculation.taxable_income,
            correlation_id=correlation_id,
        )
        return calculation


def create_reporting_service(
    company: CompanyContext,
    sheets_client: Optional[GoogleSheetsClient] = None,
) -> ReportingService:
    """
    Factory function for a Google Sheets backed reporting service.

    Args:
        company: Company to report on
        sheets_client: Existing client to share; created from settings if None

    Returns:
        ReportingService reading from and auditing to the configured spreadsheet
    """
    configure_logging(get_settings().app.log_level)

    sheets_client = sheets_client or GoogleSheetsClient()
    store = GoogleSheetsLedgerStore(sheets_client)

    try:
        audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
    except Exception as e:
        # Audit sheet not configured - continue with local logging
        logger.warning("audit_storage_not_configured", error=str(e))
        audit_logger = AuditLogger()

    return ReportingService(
        store=store,
        company=company,
        audit_logger=audit_logger,
    )
