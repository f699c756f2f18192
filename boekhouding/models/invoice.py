"""
Invoice Models

Invoices reach the VAT calculator in three raw shapes that coexist in storage:

1. Current sales invoices: itemized, each item carries its own VAT percentage.
2. Legacy invoices: aggregate totals only (subtotal / net_amount, vat_amount,
   total_amount), capitalized status strings, `invoice_date` instead of `date`.
3. Purchase invoices: aggregate totals; only the VAT amount matters for returns.

DESIGN DECISION: The raw shapes form a tagged union (discriminated on
`source`). They are normalized once, at ingestion, into `NormalizedInvoice`
with canonical `TaxableLine`s. The calculator only ever sees the canonical
form. Historical records stay in the old shape indefinitely, so this mapping
is permanent, not a migration aid.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================

class InvoiceKind(str, Enum):
    SALES = "sales"
    PURCHASE = "purchase"


class InvoiceShape(str, Enum):
    """How the VAT information is carried on the invoice."""
    ITEMIZED = "itemized"    # per-item vat_percentage
    AGGREGATE = "aggregate"  # single net/vat/total, no explicit rate


class InvoiceStatus(str, Enum):
    """
    Canonical invoice status.

    Legacy records store these capitalized ('Sent', 'Paid').
    Values are matched case-insensitively on ingestion.
    """
    DRAFT = "draft"
    PENDING = "pending"
    SENT = "sent"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


# Sales invoices in these states count as turnover for the period
REPORTABLE_SALES_STATUSES = frozenset({
    InvoiceStatus.SENT,
    InvoiceStatus.PAID,
    InvoiceStatus.OVERDUE,
})


def parse_invoice_status(value: object) -> InvoiceStatus:
    """Map a raw status string onto InvoiceStatus, case-insensitively."""
    if isinstance(value, InvoiceStatus):
        return value
    if value is None:
        return InvoiceStatus.UNKNOWN
    try:
        return InvoiceStatus(str(value).strip().lower())
    except ValueError:
        return InvoiceStatus.UNKNOWN


class _StatusMixin(BaseModel):

    @field_validator('status', mode='before', check_fields=False)
    @classmethod
    def normalize_status(cls, v: object) -> InvoiceStatus:
        return parse_invoice_status(v)


# =============================================================================
# RAW SHAPES (as stored)
# =============================================================================

class InvoiceItem(BaseModel):
    """A single item on an itemized invoice."""
    model_config = ConfigDict(populate_by_name=True)

    description: Optional[str] = None
    quantity: Decimal = Field(
        default=Decimal("0"),
        description="Quantity"
    )
    unit_price: Decimal = Field(
        default=Decimal("0"),
        validation_alias=AliasChoices("unit_price", "price"),
        description="Price per unit, excluding VAT"
    )
    vat_percentage: Optional[Decimal] = Field(
        default=None,
        description="Explicit VAT percentage (21, 9, 0); missing means 21"
    )


class SalesInvoiceRecord(_StatusMixin):
    """Current-shape sales invoice (sales_invoices table)."""
    model_config = ConfigDict(str_strip_whitespace=True)

    source: Literal["sales_invoices"] = "sales_invoices"
    id: str
    invoice_date: date = Field(
        ...,
        validation_alias=AliasChoices("date", "invoice_date"),
    )
    status: InvoiceStatus = InvoiceStatus.UNKNOWN
    items: list[InvoiceItem] = Field(default_factory=list)
    subtotal: Optional[Decimal] = None
    vat_amount: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None


class LegacyInvoiceRecord(_StatusMixin):
    """Legacy aggregate invoice (invoices table)."""
    model_config = ConfigDict(str_strip_whitespace=True)

    source: Literal["invoices"] = "invoices"
    id: str
    invoice_date: date = Field(
        ...,
        validation_alias=AliasChoices("invoice_date", "date"),
    )
    status: InvoiceStatus = InvoiceStatus.UNKNOWN
    subtotal: Optional[Decimal] = None
    net_amount: Optional[Decimal] = Field(
        default=None,
        description="Synonym of subtotal on newer legacy rows"
    )
    vat_amount: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None


class PurchaseInvoiceRecord(_StatusMixin):
    """Purchase invoice (purchase_invoices table)."""
    model_config = ConfigDict(str_strip_whitespace=True)

    source: Literal["purchase_invoices"] = "purchase_invoices"
    id: str
    invoice_date: date = Field(
        ...,
        validation_alias=AliasChoices("invoice_date", "date"),
    )
    status: InvoiceStatus = InvoiceStatus.UNKNOWN
    net_amount: Optional[Decimal] = Field(
        default=None,
        validation_alias=AliasChoices("net_amount", "subtotal"),
    )
    vat_amount: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None


RawInvoice = Annotated[
    Union[SalesInvoiceRecord, LegacyInvoiceRecord, PurchaseInvoiceRecord],
    Field(discriminator="source"),
]


# =============================================================================
# CANONICAL SHAPE (what the calculator consumes)
# =============================================================================

class TaxableLine(BaseModel):
    """
    One canonical taxable amount.

    `explicit_rate` is set for itemized lines; None means the rate must be
    inferred from `vat / base`.
    """

    base: Decimal
    vat: Decimal
    explicit_rate: Optional[Decimal] = None


class NormalizedInvoice(BaseModel):
    """An invoice after ingestion, independent of its stored shape."""

    id: str
    kind: InvoiceKind
    shape: InvoiceShape
    invoice_date: date
    status: InvoiceStatus
    lines: list[TaxableLine] = Field(default_factory=list)
    vat_amount: Decimal = Decimal("0")
    source: str = Field(
        ...,
        description="Table/shape the record came from"
    )

    @property
    def is_reportable(self) -> bool:
        """Purchases always count; sales only once sent."""
        if self.kind == InvoiceKind.PURCHASE:
            return True
        return self.status in REPORTABLE_SALES_STATUSES
