"""
Ledger Data Models

These models describe the double-entry data the reporting core reads:
accounts, journal entries and their lines.

DESIGN DECISION: The reporting core never writes these. Entries are created
and finalized by the upstream posting workflow; by the time we see a Final
entry it is an immutable fact. The models are therefore plain read-side
schemas, validated once at the storage boundary.

Money is always Decimal. Floats are never used for amounts.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


ZERO = Decimal("0")


# =============================================================================
# ENUMS
# =============================================================================

class AccountType(str, Enum):
    """Statutory account classes of the chart of accounts."""
    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    REVENUE = "Revenue"
    EXPENSE = "Expense"


class AccountRole(str, Enum):
    """
    Explicit role of an account in reporting.

    PRIVATE marks owner drawings/deposits accounts ("privé").
    Reporting should rely on this instead of the account's display name.
    """
    NONE = "none"
    PRIVATE = "private"


class BalanceSide(str, Enum):
    """Side on which an account's balance increases."""
    DEBIT = "debit"
    CREDIT = "credit"


class JournalStatus(str, Enum):
    """
    Journal entry status.

    CRITICAL: Only FINAL entries take part in reporting.
    Draft entries are invisible to every computation.
    """
    DRAFT = "Draft"
    FINAL = "Final"


# =============================================================================
# CHART OF ACCOUNTS
# =============================================================================

class Account(BaseModel):
    """A ledger account from the chart of accounts."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque account identifier"
    )
    code: str = Field(
        ...,
        min_length=1,
        max_length=20,
        description="Short statutory account code (unique, sortable)"
    )
    name: str = Field(
        ...,
        description="Account name"
    )
    type: AccountType = Field(
        ...,
        description="Account class"
    )
    taxonomy_code: Optional[str] = Field(
        default=None,
        description="External classification code (RGS)"
    )
    is_active: bool = Field(
        default=True,
        description="Inactive accounts are excluded from reports"
    )
    role: AccountRole = Field(
        default=AccountRole.NONE,
        description="Explicit reporting role"
    )

    @property
    def normal_balance(self) -> BalanceSide:
        """Asset and Expense accounts increase with debit, the rest with credit."""
        if self.type in (AccountType.ASSET, AccountType.EXPENSE):
            return BalanceSide.DEBIT
        return BalanceSide.CREDIT


# =============================================================================
# JOURNAL
# =============================================================================

class JournalLine(BaseModel):
    """
    One posting line of a journal entry.

    A line belongs to exactly one entry and references exactly one account.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        description="Opaque line identifier"
    )
    journal_entry_id: str = Field(
        ...,
        description="Owning journal entry"
    )
    account_id: str = Field(
        ...,
        description="Referenced account"
    )
    debit: Decimal = Field(
        default=ZERO,
        ge=0,
        decimal_places=2,
        description="Debit amount"
    )
    credit: Decimal = Field(
        default=ZERO,
        ge=0,
        decimal_places=2,
        description="Credit amount"
    )
    description: Optional[str] = Field(
        default=None,
        description="Line description"
    )


class JournalEntry(BaseModel):
    """
    A journal entry with its ordered lines.

    Within a Final entry sum(debit) == sum(credit) is guaranteed upstream.
    We do not re-validate it here; `is_balanced` exists for diagnostics.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque entry identifier"
    )
    entry_date: date = Field(
        ...,
        description="Booking date"
    )
    status: JournalStatus = Field(
        default=JournalStatus.DRAFT,
        description="Entry status"
    )
    description: str = Field(
        default="",
        description="Entry description"
    )
    memoriaal_type: Optional[str] = Field(
        default=None,
        description="Transaction type tag, used for export labeling only"
    )
    lines: list[JournalLine] = Field(default_factory=list)

    @property
    def is_final(self) -> bool:
        return self.status == JournalStatus.FINAL

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), ZERO)

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), ZERO)

    @property
    def is_balanced(self) -> bool:
        """Check the double-entry precondition for this entry."""
        return self.total_debit == self.total_credit


class PostedLine(BaseModel):
    """
    A journal line joined with its parent entry's date and status.

    This is what date-bounded line scans return from storage.
    """

    line: JournalLine
    entry_date: date
    status: JournalStatus

    @property
    def account_id(self) -> str:
        return self.line.account_id

    @property
    def debit(self) -> Decimal:
        return self.line.debit

    @property
    def credit(self) -> Decimal:
        return self.line.credit

    @property
    def net(self) -> Decimal:
        """Net amount, debit minus credit."""
        return self.line.debit - self.line.credit


class PostedTransaction(BaseModel):
    """A Final journal entry together with its lines, as used by reports."""

    entry: JournalEntry

    @property
    def lines(self) -> list[JournalLine]:
        return self.entry.lines


# =============================================================================
# COMPANY CONTEXT
# =============================================================================

class CompanyContext(BaseModel):
    """
    The company (administration) a report runs for.

    DESIGN DECISION: There is no ambient "current company".
    Every service and every storage query receives this explicitly.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    company_id: str = Field(
        ...,
        min_length=1,
        description="Company identifier used to scope storage queries"
    )
    name: str = Field(
        default="Mijn Onderneming",
        description="Legal name, used in exports"
    )
    vat_number: str = Field(
        default="",
        description="VAT identification number"
    )
