"""Ledger aggregation package."""

from boekhouding.ledger.accounts import (
    AccountResolver,
    UnresolvedReference,
    is_private_account,
)
from boekhouding.ledger.engine import LedgerAggregationEngine, unbalanced_entry_ids
from boekhouding.ledger.fiscal import calculate_fiscal_income

__all__ = [
    "AccountResolver",
    "LedgerAggregationEngine",
    "UnresolvedReference",
    "calculate_fiscal_income",
    "is_private_account",
    "unbalanced_entry_ids",
]
