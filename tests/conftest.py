"""
Shared fixtures.

The sample administration ("acme") spans 2023-2025:

2023  capital deposit 1000, sale 500 on 31 Dec
2024  invoice 1000 + 210 VAT on 1 Jan, office costs 200, private draw 300,
      debtor receipt 1210 on 31 Dec, one Draft entry, one entry without lines
2025  sale 50 on 2 Jan
"""

from datetime import date
from decimal import Decimal
from typing import Callable, Optional

import pytest

from boekhouding.config import ReportingSettings, UnresolvedAccountPolicy
from boekhouding.ledger import LedgerAggregationEngine
from boekhouding.models import (
    Account,
    AccountRole,
    AccountType,
    CompanyContext,
    JournalEntry,
    JournalLine,
    JournalStatus,
)
from boekhouding.services.storage import InMemoryAuditStorage, InMemoryLedgerStore


COMPANY_ID = "acme"


def build_entry(
    entry_id: str,
    entry_date: date,
    lines: list[tuple],
    status: JournalStatus = JournalStatus.FINAL,
    description: str = "",
    memoriaal_type: Optional[str] = None,
) -> JournalEntry:
    """Lines are (account_id, debit, credit) or (account_id, debit, credit, description)."""
    journal_lines = []
    for index, line_spec in enumerate(lines, start=1):
        account_id, debit, credit = line_spec[:3]
        journal_lines.append(JournalLine(
            id=f"{entry_id}-{index}",
            journal_entry_id=entry_id,
            account_id=account_id,
            debit=Decimal(str(debit)),
            credit=Decimal(str(credit)),
            description=line_spec[3] if len(line_spec) > 3 else None,
        ))
    return JournalEntry(
        id=entry_id,
        entry_date=entry_date,
        status=status,
        description=description,
        memoriaal_type=memoriaal_type,
        lines=journal_lines,
    )


@pytest.fixture
def make_entry() -> Callable[..., JournalEntry]:
    return build_entry


@pytest.fixture
def company() -> CompanyContext:
    return CompanyContext(
        company_id=COMPANY_ID,
        name="Acme Advies",
        vat_number="NL123456789B01",
    )


@pytest.fixture
def accounts() -> list[Account]:
    return [
        Account(id="acc-bank", code="1100", name="Bank", type=AccountType.ASSET),
        Account(id="acc-debtors", code="1300", name="Debiteuren", type=AccountType.ASSET),
        Account(id="acc-creditors", code="1600", name="Crediteuren", type=AccountType.LIABILITY),
        Account(id="acc-vat", code="1700", name="Af te dragen BTW", type=AccountType.LIABILITY),
        Account(id="acc-equity", code="0500", name="Eigen vermogen", type=AccountType.EQUITY),
        Account(
            id="acc-private",
            code="0600",
            name="Privé opnamen",
            type=AccountType.EQUITY,
            role=AccountRole.PRIVATE,
        ),
        Account(
            id="acc-costs",
            code="4000",
            name="Kantoorkosten",
            type=AccountType.EXPENSE,
            taxonomy_code="WBedAlkKan",
        ),
        Account(
            id="acc-revenue",
            code="8000",
            name="Omzet",
            type=AccountType.REVENUE,
            taxonomy_code="WOmzNop",
        ),
        Account(
            id="acc-old",
            code="9999",
            name="Oude rekening",
            type=AccountType.EXPENSE,
            is_active=False,
        ),
    ]


@pytest.fixture
def entries() -> list[JournalEntry]:
    return [
        build_entry(
            "20230615-0001", date(2023, 6, 15),
            [("acc-bank", "1000.00", 0), ("acc-equity", 0, "1000.00")],
            description="Kapitaalstorting",
        ),
        build_entry(
            "20231231-0001", date(2023, 12, 31),
            [("acc-bank", "500.00", 0), ("acc-revenue", 0, "500.00")],
            description="Contante verkoop",
        ),
        build_entry(
            "20240101-0001", date(2024, 1, 1),
            [
                ("acc-debtors", "1210.00", 0),
                ("acc-revenue", 0, "1000.00", "Advieswerk januari"),
                ("acc-vat", 0, "210.00"),
            ],
            description="Factuur 2024-001",
            memoriaal_type="verkoop",
        ),
        build_entry(
            "20240210-0001", date(2024, 2, 10),
            [("acc-costs", "200.00", 0), ("acc-bank", 0, "200.00")],
            description="Kantoorartikelen",
        ),
        build_entry(
            "20240305-0001", date(2024, 3, 5),
            [("acc-bank", "9999.00", 0), ("acc-revenue", 0, "9999.00")],
            status=JournalStatus.DRAFT,
            description="Concept",
        ),
        build_entry(
            "20240420-0001", date(2024, 4, 20),
            [("acc-private", "300.00", 0), ("acc-bank", 0, "300.00")],
            description="Privé opname",
        ),
        build_entry(
            "20240501-0001", date(2024, 5, 1),
            [],
            description="Lege boeking",
        ),
        build_entry(
            "20241231-0001", date(2024, 12, 31),
            [("acc-bank", "1210.00", 0), ("acc-debtors", 0, "1210.00")],
            description="Ontvangst debiteur",
        ),
        build_entry(
            "20250102-0001", date(2025, 1, 2),
            [("acc-bank", "50.00", 0), ("acc-revenue", 0, "50.00")],
            description="Verkoop",
        ),
    ]


@pytest.fixture
def store(accounts, entries) -> InMemoryLedgerStore:
    ledger_store = InMemoryLedgerStore()
    ledger_store.load(COMPANY_ID, accounts=accounts, entries=entries)
    return ledger_store


@pytest.fixture
def engine(store, company) -> LedgerAggregationEngine:
    return LedgerAggregationEngine(store, company)


@pytest.fixture
def strict_engine(store, company) -> LedgerAggregationEngine:
    return LedgerAggregationEngine(
        store,
        company,
        unresolved_policy=UnresolvedAccountPolicy.FAIL,
    )


@pytest.fixture
def reporting_settings() -> ReportingSettings:
    return ReportingSettings(
        unresolved_account_policy=UnresolvedAccountPolicy.EXCLUDE,
        match_private_account_names=True,
    )


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()
