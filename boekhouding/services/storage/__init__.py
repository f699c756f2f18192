"""
Storage Services Package

Provides abstract interfaces and concrete implementations for ledger reads.
Google Sheets is the hosted backend; the in-memory store serves tests and
callers that already hold a snapshot.
"""

from boekhouding.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    LedgerStoreInterface,
    MalformedRowError,
    StorageError,
)
from boekhouding.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStore,
)
from boekhouding.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStore,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStoreInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "MalformedRowError",
    "StorageError",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStore",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerStore",
]
