"""
Data Models Package

This package contains all Pydantic models used by the reporting core.
All data flowing through the system must conform to these schemas.
"""

from boekhouding.models.ledger import (
    Account,
    AccountRole,
    AccountType,
    BalanceSide,
    CompanyContext,
    JournalEntry,
    JournalLine,
    JournalStatus,
    PostedLine,
    PostedTransaction,
)
from boekhouding.models.invoice import (
    InvoiceItem,
    InvoiceKind,
    InvoiceShape,
    InvoiceStatus,
    LegacyInvoiceRecord,
    NormalizedInvoice,
    PurchaseInvoiceRecord,
    RawInvoice,
    SalesInvoiceRecord,
    TaxableLine,
)
from boekhouding.models.period import FiscalPeriod, InvalidPeriodError
from boekhouding.models.reports import (
    TAX_RATES_2024,
    AccountBalance,
    AnnualTaxSummary,
    BalanceSheetPosition,
    BtwCalculation,
    FiscalIncomeCalculation,
    FiscalYearProfile,
    TaxRates,
    VatBucket,
    ZeroRateBucket,
    round_money,
)
from boekhouding.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Account",
    "AccountRole",
    "AccountType",
    "BalanceSide",
    "CompanyContext",
    "JournalEntry",
    "JournalLine",
    "JournalStatus",
    "PostedLine",
    "PostedTransaction",
    # Invoice models
    "InvoiceItem",
    "InvoiceKind",
    "InvoiceShape",
    "InvoiceStatus",
    "LegacyInvoiceRecord",
    "NormalizedInvoice",
    "PurchaseInvoiceRecord",
    "RawInvoice",
    "SalesInvoiceRecord",
    "TaxableLine",
    # Periods
    "FiscalPeriod",
    "InvalidPeriodError",
    # Report models
    "TAX_RATES_2024",
    "AccountBalance",
    "AnnualTaxSummary",
    "BalanceSheetPosition",
    "BtwCalculation",
    "FiscalIncomeCalculation",
    "FiscalYearProfile",
    "TaxRates",
    "VatBucket",
    "ZeroRateBucket",
    "round_money",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
