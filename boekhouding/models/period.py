"""
Fiscal Periods

Periods are derived, never stored. Two shapes exist:
calendar quarters (VAT returns) and calendar years (audit export, annual tax).
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from boekhouding.exceptions import InvalidPeriodError


_QUARTER_BOUNDS = {
    1: ((1, 1), (3, 31)),
    2: ((4, 1), (6, 30)),
    3: ((7, 1), (9, 30)),
    4: ((10, 1), (12, 31)),
}


class FiscalPeriod(BaseModel):
    """A closed date interval [start, end]."""
    model_config = {"frozen": True}

    start: date
    end: date
    year: int
    quarter: Optional[int] = Field(
        default=None,
        ge=1,
        le=4,
        description="Quarter number for quarterly periods"
    )

    @model_validator(mode='after')
    def validate_bounds(self) -> 'FiscalPeriod':
        if self.end < self.start:
            raise ValueError("Period end cannot be before start")
        return self

    @classmethod
    def for_quarter(cls, year: int, quarter: int) -> 'FiscalPeriod':
        """Calendar quarter `quarter` (1-4) of `year`."""
        if quarter not in _QUARTER_BOUNDS:
            raise InvalidPeriodError(f"Quarter must be 1-4, got {quarter}")
        (sm, sd), (em, ed) = _QUARTER_BOUNDS[quarter]
        return cls(
            start=date(year, sm, sd),
            end=date(year, em, ed),
            year=year,
            quarter=quarter,
        )

    @classmethod
    def for_year(cls, year: int) -> 'FiscalPeriod':
        """Calendar year `year`."""
        return cls(start=date(year, 1, 1), end=date(year, 12, 31), year=year)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def label(self) -> str:
        if self.quarter:
            return f"{self.year}-Q{self.quarter}"
        return str(self.year)

    @property
    def previous_year_end(self) -> date:
        """Last day of the year before this period's year."""
        return date(self.year - 1, 12, 31)
