"""
Abstract Storage Interface

DESIGN DECISION: The reporting core reads the ledger only through this
interface. This allows us to:
1. Keep Google Sheets, a database, or a snapshot file behind one contract
2. Use in-memory storage for testing
3. Keep aggregation logic decoupled from storage implementation

The interface is read-only. Posting, finalizing and editing entries happen
upstream and are not the reporting core's concern.

Every query takes an explicit company_id. There is no ambient
"current company" anywhere in this layer.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
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


class LedgerStoreInterface(ABC):
    """
    Abstract interface for ledger reads.

    Any storage implementation must implement these methods. Implementations
    must guarantee that a Final entry never changes once stored.
    """

    @abstractmethod
    async def list_accounts(
        self,
        company_id: str,
        active_only: bool = True,
    ) -> list[Account]:
        """
        List the chart of accounts.

        Args:
            company_id: Company to read
            active_only: Only return accounts with is_active set

        Returns:
            Accounts ordered by code

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def list_journal_entries(
        self,
        company_id: str,
        status: Optional[JournalStatus] = JournalStatus.FINAL,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[JournalEntry]:
        """
        List journal entries, each with its lines.

        Args:
            company_id: Company to read
            status: Only entries with this status (None for all)
            date_from: Entries on or after this date
            date_to: Entries on or before this date

        Returns:
            Entries ordered by entry_date ascending

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def list_posted_lines(
        self,
        company_id: str,
        status: Optional[JournalStatus] = JournalStatus.FINAL,
        date_from: Optional[date] = None,
        until: Optional[date] = None,
        until_inclusive: bool = True,
    ) -> list[PostedLine]:
        """
        Scan journal lines joined against their parent entry date.

        Args:
            company_id: Company to read
            status: Only lines of entries with this status (None for all)
            date_from: Lines of entries dated on or after this date
            until: Upper date bound of the parent entry
            until_inclusive: `<= until` when True, `< until` when False

        Returns:
            Matching lines

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def list_sales_invoices(
        self,
        company_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[SalesInvoiceRecord]:
        """
        List current-shape sales invoices dated within [date_from, date_to].

        All statuses are returned; scoping by status is the caller's concern.
        """
        pass

    @abstractmethod
    async def list_legacy_invoices(
        self,
        company_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[LegacyInvoiceRecord]:
        """List legacy aggregate sales invoices dated within [date_from, date_to]."""
        pass

    @abstractmethod
    async def list_purchase_invoices(
        self,
        company_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[PurchaseInvoiceRecord]:
        """List purchase invoices dated within [date_from, date_to]."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one report run).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class DuplicateError(StorageError):
    """Two stored rows claim the same identity."""
    pass


class MalformedRowError(StorageError):
    """A stored row cannot be parsed into its model."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
