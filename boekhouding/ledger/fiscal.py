"""
Fiscal Income

From commercial profit to taxable business income for the annual return:
additions, entrepreneur deductions, SME profit exemption and the
small-business investment deduction.

Deductions are applied in the statutory order. The investment deduction is
reported alongside taxable income; it is claimed separately on the return.
"""

from typing import Optional

import structlog

from boekhouding.models.ledger import ZERO
from boekhouding.models.reports import (
    TAX_RATES_2024,
    AnnualTaxSummary,
    FiscalIncomeCalculation,
    FiscalYearProfile,
    TaxRates,
    round_money,
)


logger = structlog.get_logger(__name__)


def calculate_fiscal_income(
    summary: AnnualTaxSummary,
    profile: Optional[FiscalYearProfile] = None,
    rates: TaxRates = TAX_RATES_2024,
) -> FiscalIncomeCalculation:
    """
    Compute taxable income for a year.

    Args:
        summary: Ledger figures of the year
        profile: Entrepreneur facts for the year; defaults to none met
        rates: Deduction amounts and percentages

    Raises:
        ValueError: If the profile is for another year than the summary
    """
    if profile is None:
        profile = FiscalYearProfile(year=summary.year)
    if profile.year != summary.year:
        raise ValueError(
            f"Profile year {profile.year} does not match summary year {summary.year}"
        )

    commercial_profit = summary.revenue - summary.costs
    adjusted_profit = (
        commercial_profit
        + profile.private_use_car_amount
        + profile.manual_corrections
    )

    self_employed = rates.self_employed_deduction if profile.hours_criterion_met else ZERO
    starter = rates.starter_deduction if profile.is_starter else ZERO
    total_deductions = self_employed + starter

    profit_after_deductions = max(ZERO, adjusted_profit - total_deductions)
    sme_exemption = round_money(profit_after_deductions * rates.sme_profit_exemption_rate)
    taxable_income = profit_after_deductions - sme_exemption

    if profile.investments > rates.investment_deduction_minimum:
        investment_deduction = round_money(profile.investments * rates.investment_deduction_rate)
    else:
        investment_deduction = ZERO

    logger.debug(
        "fiscal_income_computed",
        year=summary.year,
        adjusted_profit=str(adjusted_profit),
        taxable_income=str(taxable_income),
    )

    return FiscalIncomeCalculation(
        year=summary.year,
        revenue=summary.revenue,
        expenses=summary.costs,
        commercial_profit=round_money(commercial_profit),
        private_use_car=round_money(profile.private_use_car_amount),
        manual_corrections=round_money(profile.manual_corrections),
        adjusted_profit=round_money(adjusted_profit),
        self_employed_deduction=round_money(self_employed),
        starter_deduction=round_money(starter),
        total_deductions=round_money(total_deductions),
        profit_after_deductions=round_money(profit_after_deductions),
        sme_profit_exemption=sme_exemption,
        taxable_income=round_money(taxable_income),
        investments=round_money(profile.investments),
        investment_deduction=investment_deduction,
    )
