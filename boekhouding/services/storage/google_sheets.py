"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is supported as a ledger backend because:
1. Small administrations often already keep their books in a spreadsheet
2. No database setup required
3. Bookkeepers can inspect the raw rows directly

TRADEOFFS:
- Not suitable for high-volume ledgers (fine for a small business)
- Limited query capabilities (we filter in Python)
- Transient API errors are common, so every read is retried

Each worksheet holds the rows of all companies; a company_id column scopes
every read. Complex fields (invoice items) are JSON-serialized.

A journal or invoice row that cannot be parsed fails the whole read with
MalformedRowError; totals over a partial ledger are never returned. Such
reads are not retried. Malformed account rows are skipped, and lines that
reference them fall under the unresolved-account policy.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional, TypeVar
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from boekhouding.config import get_settings
from boekhouding.models.audit import AuditEvent, AuditEventType, AuditSeverity
from boekhouding.models.invoice import (
    InvoiceItem,
    LegacyInvoiceRecord,
    PurchaseInvoiceRecord,
    SalesInvoiceRecord,
)
from boekhouding.models.ledger import (
    Account,
    AccountRole,
    AccountType,
    JournalEntry,
    JournalLine,
    JournalStatus,
    PostedLine,
)
from boekhouding.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    LedgerStoreInterface,
    MalformedRowError,
    StorageError,
)


logger = structlog.get_logger(__name__)

T = TypeVar("T")


# Column mappings per worksheet
ACCOUNT_COLUMNS = [
    "id",
    "company_id",
    "code",
    "name",
    "type",
    "taxonomy_code",
    "is_active",
    "role",
]

JOURNAL_ENTRY_COLUMNS = [
    "id",
    "company_id",
    "entry_date",
    "status",
    "description",
    "memoriaal_type",
]

JOURNAL_LINE_COLUMNS = [
    "id",
    "company_id",
    "journal_entry_id",
    "account_id",
    "debit",
    "credit",
    "description",
]

SALES_INVOICE_COLUMNS = [
    "id",
    "company_id",
    "date",
    "status",
    "subtotal",
    "vat_amount",
    "total_amount",
    "items_json",
]

LEGACY_INVOICE_COLUMNS = [
    "id",
    "company_id",
    "invoice_date",
    "status",
    "subtotal",
    "net_amount",
    "vat_amount",
    "total_amount",
]

PURCHASE_INVOICE_COLUMNS = [
    "id",
    "company_id",
    "invoice_date",
    "status",
    "net_amount",
    "vat_amount",
    "total_amount",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "company_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
]


def _optional_decimal(value: str) -> Optional[Decimal]:
    return Decimal(value) if value else None


def _decimal(value: str) -> Decimal:
    return Decimal(value) if value else Decimal("0")


def _bool(value: str, default: bool = True) -> bool:
    if not value:
        return default
    return value.strip().lower() in ("true", "1", "yes", "ja")


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        """Get or create a worksheet with the given header row."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet


class GoogleSheetsLedgerStore(LedgerStoreInterface):
    """
    Google Sheets implementation of the ledger store.

    One row per account, entry, line or invoice. Rows that fail to parse are
    skipped and logged rather than aborting the read.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._settings = get_settings().google_sheets

    def _read_rows(self, title: str, columns: list[str], company_id: str) -> list[dict]:
        """Read a worksheet as dicts, keeping only the company's rows."""
        sheet = self._client.get_worksheet(title, columns)
        all_rows = sheet.get_all_values()[1:]  # Skip header

        records = []
        for row in all_rows:
            if not row or not row[0]:  # Skip empty rows
                continue
            padded = list(row) + [""] * (len(columns) - len(row))
            record = dict(zip(columns, (cell.strip() for cell in padded)))
            if record["company_id"] != company_id:
                continue
            records.append(record)
        return records

    def _parse_rows(
        self,
        sheet_name: str,
        records: list[dict],
        parser: Callable[[dict], T],
        strict: bool = True,
    ) -> list[T]:
        """
        Parse company rows with `parser`.

        Raises:
            MalformedRowError: If a row fails to parse and strict is set
        """
        parsed = []
        for record in records:
            try:
                parsed.append(parser(record))
            except Exception as e:
                if strict:
                    raise MalformedRowError(
                        f"Malformed row {record.get('id')} in {sheet_name}: {e}"
                    )
                logger.warning(
                    "malformed_row_skipped",
                    sheet=sheet_name,
                    row_id=record.get("id"),
                    error=str(e),
                )
        return parsed

    def _row_to_account(self, record: dict) -> Account:
        return Account(
            id=record["id"],
            code=record["code"],
            name=record["name"],
            type=AccountType(record["type"]),
            taxonomy_code=record["taxonomy_code"] or None,
            is_active=_bool(record["is_active"]),
            role=AccountRole(record["role"]) if record["role"] else AccountRole.NONE,
        )

    def _row_to_entry(self, record: dict) -> JournalEntry:
        return JournalEntry(
            id=record["id"],
            entry_date=date.fromisoformat(record["entry_date"]),
            status=JournalStatus(record["status"]),
            description=record["description"],
            memoriaal_type=record["memoriaal_type"] or None,
        )

    def _row_to_line(self, record: dict) -> JournalLine:
        return JournalLine(
            id=record["id"],
            journal_entry_id=record["journal_entry_id"],
            account_id=record["account_id"],
            debit=_decimal(record["debit"]),
            credit=_decimal(record["credit"]),
            description=record["description"] or None,
        )

    def _row_to_sales_invoice(self, record: dict) -> SalesInvoiceRecord:
        items = []
        if record["items_json"]:
            items = [InvoiceItem(**item) for item in json.loads(record["items_json"])]
        return SalesInvoiceRecord(
            id=record["id"],
            date=date.fromisoformat(record["date"]),
            status=record["status"],
            items=items,
            subtotal=_optional_decimal(record["subtotal"]),
            vat_amount=_optional_decimal(record["vat_amount"]),
            total_amount=_optional_decimal(record["total_amount"]),
        )

    def _row_to_legacy_invoice(self, record: dict) -> LegacyInvoiceRecord:
        return LegacyInvoiceRecord(
            id=record["id"],
            invoice_date=date.fromisoformat(record["invoice_date"]),
            status=record["status"],
            subtotal=_optional_decimal(record["subtotal"]),
            net_amount=_optional_decimal(record["net_amount"]),
            vat_amount=_optional_decimal(record["vat_amount"]),
            total_amount=_optional_decimal(record["total_amount"]),
        )

    def _row_to_purchase_invoice(self, record: dict) -> PurchaseInvoiceRecord:
        return PurchaseInvoiceRecord(
            id=record["id"],
            invoice_date=date.fromisoformat(record["invoice_date"]),
            status=record["status"],
            net_amount=_optional_decimal(record["net_amount"]),
            vat_amount=_optional_decimal(record["vat_amount"]),
            total_amount=_optional_decimal(record["total_amount"]),
        )

    def _load_entries(self, company_id: str) -> tuple[list[JournalEntry], dict[str, list[JournalLine]]]:
        """Load entry headers and lines grouped by entry id, in sheet order."""
        entries = self._parse_rows(
            self._settings.journal_entries_sheet_name,
            self._read_rows(
                self._settings.journal_entries_sheet_name,
                JOURNAL_ENTRY_COLUMNS,
                company_id,
            ),
            self._row_to_entry,
        )
        lines = self._parse_rows(
            self._settings.journal_lines_sheet_name,
            self._read_rows(
                self._settings.journal_lines_sheet_name,
                JOURNAL_LINE_COLUMNS,
                company_id,
            ),
            self._row_to_line,
        )
        lines_by_entry: dict[str, list[JournalLine]] = {}
        for line in lines:
            lines_by_entry.setdefault(line.journal_entry_id, []).append(line)
        return entries, lines_by_entry

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def list_accounts(
        self,
        company_id: str,
        active_only: bool = True,
    ) -> list[Account]:
        """List the company's accounts, ordered by code."""
        try:
            name = self._settings.accounts_sheet_name
            accounts = self._parse_rows(
                name,
                self._read_rows(name, ACCOUNT_COLUMNS, company_id),
                self._row_to_account,
                strict=False,
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list accounts: {e}")

        if active_only:
            accounts = [a for a in accounts if a.is_active]
        return sorted(accounts, key=lambda a: a.code)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(MalformedRowError),
        reraise=True,
    )
    async def list_journal_entries(
        self,
        company_id: str,
        status: Optional[JournalStatus] = JournalStatus.FINAL,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[JournalEntry]:
        """List entries with their lines, oldest first."""
        try:
            entries, lines_by_entry = self._load_entries(company_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list journal entries: {e}")

        result = []
        for entry in entries:
            if status is not None and entry.status != status:
                continue
            if date_from and entry.entry_date < date_from:
                continue
            if date_to and entry.entry_date > date_to:
                continue
            result.append(entry.model_copy(update={"lines": lines_by_entry.get(entry.id, [])}))

        result.sort(key=lambda e: e.entry_date)
        return result

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(MalformedRowError),
        reraise=True,
    )
    async def list_posted_lines(
        self,
        company_id: str,
        status: Optional[JournalStatus] = JournalStatus.FINAL,
        date_from: Optional[date] = None,
        until: Optional[date] = None,
        until_inclusive: bool = True,
    ) -> list[PostedLine]:
        """Scan lines joined on their parent entry's date and status."""
        try:
            entries, lines_by_entry = self._load_entries(company_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to scan journal lines: {e}")

        posted = []
        for entry in entries:
            if status is not None and entry.status != status:
                continue
            if date_from and entry.entry_date < date_from:
                continue
            if until:
                if until_inclusive and entry.entry_date > until:
                    continue
                if not until_inclusive and entry.entry_date >= until:
                    continue
            for line in lines_by_entry.get(entry.id, []):
                posted.append(PostedLine(
                    line=line,
                    entry_date=entry.entry_date,
                    status=entry.status,
                ))
        return posted

    def _list_invoices(
        self,
        sheet_name: str,
        columns: list[str],
        parser: Callable[[dict], T],
        company_id: str,
        date_from: Optional[date],
        date_to: Optional[date],
    ) -> list[T]:
        try:
            invoices = self._parse_rows(
                sheet_name,
                self._read_rows(sheet_name, columns, company_id),
                parser,
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list {sheet_name}: {e}")

        return [
            inv for inv in invoices
            if (not date_from or inv.invoice_date >= date_from)
            and (not date_to or inv.invoice_date <= date_to)
        ]

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(MalformedRowError),
        reraise=True,
    )
    async def list_sales_invoices(
        self,
        company_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[SalesInvoiceRecord]:
        return self._list_invoices(
            self._settings.sales_invoices_sheet_name,
            SALES_INVOICE_COLUMNS,
            self._row_to_sales_invoice,
            company_id,
            date_from,
            date_to,
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(MalformedRowError),
        reraise=True,
    )
    async def list_legacy_invoices(
        self,
        company_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[LegacyInvoiceRecord]:
        return self._list_invoices(
            self._settings.legacy_invoices_sheet_name,
            LEGACY_INVOICE_COLUMNS,
            self._row_to_legacy_invoice,
            company_id,
            date_from,
            date_to,
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_not_exception_type(MalformedRowError),
        reraise=True,
    )
    async def list_purchase_invoices(
        self,
        company_id: str,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> list[PurchaseInvoiceRecord]:
        return self._list_invoices(
            self._settings.purchase_invoices_sheet_name,
            PURCHASE_INVOICE_COLUMNS,
            self._row_to_purchase_invoice,
            company_id,
            date_from,
            date_to,
        )


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()
        self._settings = get_settings().google_sheets

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(self._settings.audit_sheet_name, AUDIT_COLUMNS)

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            company_id=safe_get(4) or None,
            entity_type=safe_get(5) or None,
            entity_id=safe_get(6) or None,
            correlation_id=UUID(safe_get(7)) if safe_get(7) else None,
            description=safe_get(8),
            details=json.loads(safe_get(9)) if safe_get(9) else {},
            error_message=safe_get(10) or None,
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._sheet().append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            # Audit logging must not break a report run
            logger.warning("audit_event_write_failed", error=str(e), event_id=str(event.event_id))
            return False

    def _read_events(self) -> list[AuditEvent]:
        events = []
        for row in self._sheet().get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except Exception:
                continue
        return events

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = self._read_events()
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
