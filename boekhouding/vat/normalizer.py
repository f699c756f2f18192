"""
Invoice Normalizer

Maps the stored invoice shapes onto NormalizedInvoice before any VAT
classification happens.

Rules:
- Itemized invoice: one TaxableLine per item, base = quantity * unit_price,
  explicit rate = vat_percentage (missing means 21).
- Aggregate invoice: one TaxableLine without explicit rate. Base is the net
  amount; when net is absent or zero and total exceeds VAT, net = total - VAT.
  A zero-VAT invoice with only a total therefore lands wholly in the zero bucket.
- Statuses are matched case-insensitively ('Sent' == 'sent').
"""

from decimal import Decimal
from typing import Iterable, Optional, Union

import structlog
from pydantic import TypeAdapter

from boekhouding.models.invoice import (
    InvoiceKind,
    InvoiceShape,
    LegacyInvoiceRecord,
    NormalizedInvoice,
    PurchaseInvoiceRecord,
    RawInvoice,
    SalesInvoiceRecord,
    TaxableLine,
)
from boekhouding.models.ledger import ZERO


logger = structlog.get_logger(__name__)

DEFAULT_VAT_PERCENTAGE = Decimal("21")

_raw_invoice_adapter = TypeAdapter(RawInvoice)

InvoiceInput = Union[
    NormalizedInvoice,
    SalesInvoiceRecord,
    LegacyInvoiceRecord,
    PurchaseInvoiceRecord,
    dict,
]


def _aggregate_line(
    net: Optional[Decimal],
    vat: Optional[Decimal],
    total: Optional[Decimal],
) -> Optional[TaxableLine]:
    vat = vat or ZERO
    if not net and total is not None and total > vat:
        net = total - vat
    net = net or ZERO
    if net == ZERO and vat == ZERO:
        return None
    return TaxableLine(base=net, vat=vat)


def normalize_sales_invoice(record: SalesInvoiceRecord) -> NormalizedInvoice:
    """Current-shape sales invoice; itemized unless it carries no items."""
    if not record.items:
        line = _aggregate_line(record.subtotal, record.vat_amount, record.total_amount)
        return NormalizedInvoice(
            id=record.id,
            kind=InvoiceKind.SALES,
            shape=InvoiceShape.AGGREGATE,
            invoice_date=record.invoice_date,
            status=record.status,
            lines=[line] if line else [],
            vat_amount=record.vat_amount or ZERO,
            source=record.source,
        )

    lines = []
    for item in record.items:
        rate = item.vat_percentage
        if rate is None:
            rate = DEFAULT_VAT_PERCENTAGE
        base = item.quantity * item.unit_price
        lines.append(TaxableLine(
            base=base,
            vat=base * rate / Decimal("100"),
            explicit_rate=rate,
        ))

    return NormalizedInvoice(
        id=record.id,
        kind=InvoiceKind.SALES,
        shape=InvoiceShape.ITEMIZED,
        invoice_date=record.invoice_date,
        status=record.status,
        lines=lines,
        vat_amount=sum((line.vat for line in lines), ZERO),
        source=record.source,
    )


def normalize_legacy_invoice(record: LegacyInvoiceRecord) -> NormalizedInvoice:
    """Legacy aggregate sales invoice."""
    net = record.net_amount if record.net_amount is not None else record.subtotal
    line = _aggregate_line(net, record.vat_amount, record.total_amount)
    return NormalizedInvoice(
        id=record.id,
        kind=InvoiceKind.SALES,
        shape=InvoiceShape.AGGREGATE,
        invoice_date=record.invoice_date,
        status=record.status,
        lines=[line] if line else [],
        vat_amount=record.vat_amount or ZERO,
        source=record.source,
    )


def normalize_purchase_invoice(record: PurchaseInvoiceRecord) -> NormalizedInvoice:
    """Purchase invoice. Only vat_amount feeds the return (input VAT)."""
    line = _aggregate_line(record.net_amount, record.vat_amount, record.total_amount)
    return NormalizedInvoice(
        id=record.id,
        kind=InvoiceKind.PURCHASE,
        shape=InvoiceShape.AGGREGATE,
        invoice_date=record.invoice_date,
        status=record.status,
        lines=[line] if line else [],
        vat_amount=record.vat_amount or ZERO,
        source=record.source,
    )


def normalize_invoice(invoice: InvoiceInput) -> NormalizedInvoice:
    """
    Normalize any stored invoice shape.

    Dicts must carry a `source` key naming their table
    ('sales_invoices', 'invoices' or 'purchase_invoices').
    """
    if isinstance(invoice, NormalizedInvoice):
        return invoice
    if isinstance(invoice, dict):
        invoice = _raw_invoice_adapter.validate_python(invoice)

    if isinstance(invoice, SalesInvoiceRecord):
        return normalize_sales_invoice(invoice)
    if isinstance(invoice, LegacyInvoiceRecord):
        return normalize_legacy_invoice(invoice)
    if isinstance(invoice, PurchaseInvoiceRecord):
        return normalize_purchase_invoice(invoice)

    raise TypeError(f"Unsupported invoice type: {type(invoice).__name__}")


def normalize_invoices(invoices: Iterable[InvoiceInput]) -> list[NormalizedInvoice]:
    """Merge legacy and current records into one canonical stream."""
    return [normalize_invoice(invoice) for invoice in invoices]
