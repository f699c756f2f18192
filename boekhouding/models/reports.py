"""
Report Result Models

Structured results of the reporting core. These are what callers (UI,
exports, tax wizard) consume; `model_dump(mode="json")` is the wire form.
"""

from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, Field

from boekhouding.models.ledger import ZERO


CENT = Decimal("0.01")


def round_money(amount: Decimal) -> Decimal:
    """Round to two decimals, half away from zero."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


# =============================================================================
# LEDGER AGGREGATES
# =============================================================================

class AccountBalance(BaseModel):
    """
    Raw debit and credit totals for one account.

    DESIGN DECISION: Not netted. The audit file reports opening positions as
    two separate, non-offsetting totals.
    """

    debit: Decimal = ZERO
    credit: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        """Debit minus credit."""
        return self.debit - self.credit

    def add(self, debit: Decimal, credit: Decimal) -> 'AccountBalance':
        return AccountBalance(debit=self.debit + debit, credit=self.credit + credit)

    def __add__(self, other: 'AccountBalance') -> 'AccountBalance':
        return self.add(other.debit, other.credit)


class BalanceSheetPosition(BaseModel):
    """Cumulative balance sheet totals as of a cutoff date (inclusive)."""

    total_assets: Decimal = ZERO
    total_liabilities: Decimal = ZERO

    @property
    def equity(self) -> Decimal:
        return self.total_assets - self.total_liabilities


class AnnualTaxSummary(BaseModel):
    """Figures feeding the annual income tax return for one calendar year."""

    year: int
    revenue: Decimal = ZERO
    costs: Decimal = ZERO
    total_assets: Decimal = ZERO
    total_liabilities: Decimal = ZERO
    private_withdrawals: Decimal = ZERO
    private_deposits: Decimal = ZERO
    start_equity: Decimal = ZERO
    excluded_line_count: int = Field(
        default=0,
        ge=0,
        description="Lines skipped because their account could not be resolved"
    )
    unbalanced_entry_count: int = Field(
        default=0,
        ge=0,
        description="Final entries through year end whose debits and credits differ; figures are unreliable when > 0"
    )

    @property
    def profit(self) -> Decimal:
        return self.revenue - self.costs

    @property
    def end_equity(self) -> Decimal:
        return self.total_assets - self.total_liabilities


# =============================================================================
# VAT RETURN
# =============================================================================

class VatBucket(BaseModel):
    """Turnover and VAT for one rate (grondslag / btw)."""

    base: Decimal = ZERO
    vat: Decimal = ZERO


class ZeroRateBucket(BaseModel):
    """Zero-rated turnover carries a base only."""

    base: Decimal = ZERO


class BtwCalculation(BaseModel):
    """
    The quarterly VAT return.

    Every figure is already rounded to cents. Combined figures are computed
    from rounded subtotals, so they may differ by one cent from a raw sum.
    """

    high_rate: VatBucket = Field(default_factory=VatBucket)
    low_rate: VatBucket = Field(default_factory=VatBucket)
    zero_rate: ZeroRateBucket = Field(default_factory=ZeroRateBucket)
    input_vat: Decimal = ZERO
    output_vat_due: Decimal = ZERO
    refund_due: Decimal = ZERO
    net: Decimal = ZERO

    @property
    def is_refund(self) -> bool:
        return self.net < 0


# =============================================================================
# FISCAL INCOME
# =============================================================================

class TaxRates(BaseModel):
    """Entrepreneur deductions for a tax year."""
    model_config = {"frozen": True}

    self_employed_deduction: Decimal = Decimal("3750")
    starter_deduction: Decimal = Decimal("2123")
    sme_profit_exemption_rate: Decimal = Decimal("0.1331")
    investment_deduction_rate: Decimal = Decimal("0.28")
    investment_deduction_minimum: Decimal = Decimal("2800")


TAX_RATES_2024 = TaxRates()


class FiscalYearProfile(BaseModel):
    """Entrepreneur facts for a year that are not in the ledger."""

    year: int
    hours_criterion_met: bool = False
    is_starter: bool = False
    private_use_car_amount: Decimal = ZERO
    manual_corrections: Decimal = ZERO
    investments: Decimal = Field(
        default=ZERO,
        ge=0,
        description="Qualifying investments made in the year"
    )


class FiscalIncomeCalculation(BaseModel):
    """Profit to taxable income, step by step."""

    year: int
    revenue: Decimal
    expenses: Decimal
    commercial_profit: Decimal
    private_use_car: Decimal
    manual_corrections: Decimal
    adjusted_profit: Decimal
    self_employed_deduction: Decimal
    starter_deduction: Decimal
    total_deductions: Decimal
    profit_after_deductions: Decimal
    sme_profit_exemption: Decimal
    taxable_income: Decimal
    investments: Decimal
    investment_deduction: Decimal
