"""
VAT Period Calculator

Computes the quarterly VAT return (BTW-aangifte) from normalized invoices.

Buckets: high (21%), low (9%) and zero (0%) rated turnover.
Classification per TaxableLine:
1. Explicit rate: 21 -> high, 9 -> low, 0 -> zero, anything else -> high.
2. Implied rate (vat / base, in percent): 20-22 -> high, 8-10 -> low,
   below 1 -> zero, anything else -> high.

Rounding: every subtotal is rounded to cents (half up) on its own, and the
combined figures are computed from the rounded subtotals. A one cent
difference against a raw-sum calculation is accepted.
"""

from decimal import Decimal
from enum import Enum
from typing import Iterable

import structlog

from boekhouding.models.invoice import InvoiceKind, NormalizedInvoice, TaxableLine
from boekhouding.models.ledger import ZERO
from boekhouding.models.reports import (
    BtwCalculation,
    VatBucket,
    ZeroRateBucket,
    round_money,
)
from boekhouding.vat.normalizer import InvoiceInput, normalize_invoices


logger = structlog.get_logger(__name__)

HIGH_RATE = Decimal("21")
LOW_RATE = Decimal("9")
ZERO_RATE = Decimal("0")

# Tolerance bands for rates implied by aggregate amounts
_HIGH_BAND = (Decimal("20"), Decimal("22"))
_LOW_BAND = (Decimal("8"), Decimal("10"))
_ZERO_CEILING = Decimal("1")


class RateBucket(str, Enum):
    HIGH = "high"
    LOW = "low"
    ZERO = "zero"


def classify_line(line: TaxableLine) -> RateBucket:
    """Assign a taxable line to its statutory rate bucket."""
    if line.explicit_rate is not None:
        if line.explicit_rate == HIGH_RATE:
            return RateBucket.HIGH
        if line.explicit_rate == LOW_RATE:
            return RateBucket.LOW
        if line.explicit_rate == ZERO_RATE:
            return RateBucket.ZERO
        logger.debug("vat_rate_defaulted_high", explicit_rate=str(line.explicit_rate))
        return RateBucket.HIGH

    if line.base == ZERO:
        # VAT without a base: no rate can be implied
        logger.debug("vat_rate_defaulted_high", base="0", vat=str(line.vat))
        return RateBucket.HIGH

    implied = abs(line.vat) / abs(line.base) * Decimal("100")
    if _HIGH_BAND[0] <= implied <= _HIGH_BAND[1]:
        return RateBucket.HIGH
    if _LOW_BAND[0] <= implied <= _LOW_BAND[1]:
        return RateBucket.LOW
    if implied < _ZERO_CEILING:
        return RateBucket.ZERO

    logger.debug("vat_rate_defaulted_high", implied_rate=str(implied))
    return RateBucket.HIGH


def compute_btw(
    sales_invoices: Iterable[InvoiceInput],
    purchase_invoices: Iterable[InvoiceInput],
) -> BtwCalculation:
    """
    Calculate the VAT return for a set of invoices.

    Sales invoices are scoped to sent/paid/overdue here; purchase invoices
    count regardless of status. Both accept any stored shape; a record of
    the other kind in either list is ignored.

    Returns:
        BtwCalculation with every figure rounded to cents
    """
    high_base = ZERO
    high_vat = ZERO
    low_base = ZERO
    low_vat = ZERO
    zero_base = ZERO

    for invoice in normalize_invoices(sales_invoices):
        if invoice.kind != InvoiceKind.SALES or not invoice.is_reportable:
            continue
        for line in invoice.lines:
            bucket = classify_line(line)
            if bucket == RateBucket.HIGH:
                high_base += line.base
                high_vat += line.vat
            elif bucket == RateBucket.LOW:
                low_base += line.base
                low_vat += line.vat
            else:
                zero_base += line.base

    input_vat = ZERO
    for invoice in normalize_invoices(purchase_invoices):
        if invoice.kind != InvoiceKind.PURCHASE:
            continue
        input_vat += invoice.vat_amount

    high = VatBucket(base=round_money(high_base), vat=round_money(high_vat))
    low = VatBucket(base=round_money(low_base), vat=round_money(low_vat))
    input_vat = round_money(input_vat)

    output_vat_due = high.vat + low.vat
    net = output_vat_due - input_vat

    return BtwCalculation(
        high_rate=high,
        low_rate=low,
        zero_rate=ZeroRateBucket(base=round_money(zero_base)),
        input_vat=input_vat,
        output_vat_due=output_vat_due,
        refund_due=-net if net < 0 else ZERO,
        net=net,
    )
