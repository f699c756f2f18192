"""
Boekhouding - Reporting Core

The reporting side of a small-business bookkeeping application:
ledger aggregation, the quarterly VAT (BTW) return and the XAF 3.2
audit file, all computed from the same double-entry data.

DESIGN PRINCIPLES:
1. Only Final journal entries count
2. Money is Decimal, rounded to cents half up
3. Every run is scoped to an explicit company
4. Every run is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Boekhouding Team"
