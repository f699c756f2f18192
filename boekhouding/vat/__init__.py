"""VAT (BTW) return package."""

from boekhouding.vat.calculator import RateBucket, classify_line, compute_btw
from boekhouding.vat.normalizer import (
    normalize_invoice,
    normalize_invoices,
    normalize_legacy_invoice,
    normalize_purchase_invoice,
    normalize_sales_invoice,
)

__all__ = [
    "RateBucket",
    "classify_line",
    "compute_btw",
    "normalize_invoice",
    "normalize_invoices",
    "normalize_legacy_invoice",
    "normalize_purchase_invoice",
    "normalize_sales_invoice",
]
