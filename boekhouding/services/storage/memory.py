"""
In-Memory Storage

A snapshot-backed implementation of the storage interfaces. Used by tests
and by callers that already hold the administration in memory (e.g. after
loading an export).

Filtering mirrors what a database-backed adapter would do in its queries,
so the reporting core behaves identically on top of either.
"""

from datetime import date
from typing import Iterable, Optional
from uuid import UUID

from boekhouding.models.audit import AuditEvent
from boekhouding.models.invoice import (
    LegacyInvoiceRecord,
    PurchaseInvoiceRecord,
    SalesInvoiceRecord,
)
from boekhouding.models.ledger import (
    Account,
    JournalEntry,
    JournalStatus,
    PostedLine,
)
from boekhouding.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerStoreInterface,
)


def _in_range(day: date, date_from: Optional[date], date_to: Optional[date]) -> bool:
    if date_from and day < date_from:
        return False
    if date_to and day > date_to:
        return False
    return True


class InMemoryLedgerStore(LedgerStoreInterface):
    """
    Ledger store over in-memory snapshots, keyed by company.

    Usage:
        store = InMemoryLedgerStore()
        store.load("acme", accounts=[...], entries=[...])
    """

    def __init__(self):
        self._accounts: dict[str, list[Account]] = {}
        self._entries: dict[str, list[JournalEntry]] = {}
        self._sales: dict[str, list[SalesInvoiceRecord]] = {}
        self._legacy: dict[str, list[LegacyInvoiceRecord]] = {}
        self._purchases: dict[str, list[PurchaseInvoiceRecord]] = {}

    def load(
        self,
        company_id: str,
        accounts: Iterable[Account] = (),
        entries: Iterable[JournalEntry] = (),
        sales_invoices: Iterable[SalesInvoiceRecord] = (),
        legacy_invoices: Iterable[LegacyInvoiceRecord] = (),
        purchase_invoices: Iterable[PurchaseInvoiceRecord] = (),
    ) -> None:
        """
        Add a snapshot for a company.

        Raises:
            DuplicateError: If an account or entry id is already present
        """
        accounts = list(accounts)
        entries = list(entries)
        self._check_unique(
            [a.id for a in self._accounts.get(company_id, [])] + [a.id for a in accounts],
            "account",
        )
        self._check_unique(
            [e.id for e in self._entries.get(company_id, [])] + [e.id for e in entries],
            "journal entry",
        )
        self._accounts.setdefault(company_id, []).extend(accounts)
        self._entries.setdefault(company_id, []).extend(entries)
        self._sales.setdefault(company_id, []).extend(sales_invoices)
        self._legacy.setdefault(company_id, []).extend(legacy_invoices)
        self._purchases.setdefault(company_id, []).extend(purchase_invoices)

    @staticmethod
    def _check_unique(ids: list[str], kind: str) -> None:
        seen = set()
        for item_id in ids:
            if item_id in seen:
                raise DuplicateError(f"Duplicate {kind} id: {item_id}")
            seen.add(item_id)

    async def list_accounts(
        self,
        company_id: str,
        active_only: bool = True,
    ) -> list[Account]:
        accounts = [
            a for a in self._accounts.get(company_id, [])
            if a.is_active or not active_only
        ]
        return sorted(accounts, key=lambda a: a.code)

    async def list_journal_entries(
        self,
        company_id: str,
        status: Optional[JournalStatus] = JournalStatus.FINAL,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[JournalEntry]:
        entries = [
            e for e in self._entries.get(company_id, [])
            if (status is None or e.status == status)
            and _in_range(e.entry_date, date_from, date_to)
        ]
        return sorted(entries, key=lambda e: e.entry_date)

    async def list_posted_lines(
        self,
        company_id: str,
        status: Optional[JournalStatus] = JournalStatus.FINAL,
        date_from: Optional[date] = None,
        until: Optional[date] = None,
        until_inclusive: bool = True,
    ) -> list[PostedLine]:
        posted = []
        for entry in self._entries.get(company_id, []):
            if status is not None and entry.status != status:
                continue
            if date_from and entry.entry_date < date_from:
                continue
            if until:
                if until_inclusive and entry.entry_date > until:
                    continue
                if not until_inclusive and entry.entry_date >= until:
                    continue
            for line in entry.lines:
                posted.append(PostedLine(
                    line=line,
                    entry_date=entry.entry_date,
                    status=entry.status,
                ))
        return posted

    async def list_sales_invoices(
        self,
        company_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[SalesInvoiceRecord]:
        return [
            inv for inv in self._sales.get(company_id, [])
            if _in_range(inv.invoice_date, date_from, date_to)
        ]

    async def list_legacy_invoices(
        self,
        company_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[LegacyInvoiceRecord]:
        return [
            inv for inv in self._legacy.get(company_id, [])
            if _in_range(inv.invoice_date, date_from, date_to)
        ]

    async def list_purchase_invoices(
        self,
        company_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[PurchaseInvoiceRecord]:
        return [
            inv for inv in self._purchases.get(company_id, [])
            if _in_range(inv.invoice_date, date_from, date_to)
        ]


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log kept in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
