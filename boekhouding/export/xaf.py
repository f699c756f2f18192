"""
XAF 3.2 Audit File Exporter

Serializes one fiscal year of the ledger into the Dutch XML Auditfile
Financieel (XAF 3.2) format:

    auditfile
      header
      company
      generalLedger
        ledgerAccounts/ledgerAccount*
        transactions/transaction*/lines/line*

All four sections are always present, also for a year without postings.

DESIGN DECISION: The document is built as an ElementTree and rendered by a
small serializer of our own. ElementTree leaves quotes in text unescaped;
the audit file requires & < > " ' escaped everywhere.
"""

import xml.etree.ElementTree as ET
from datetime import date
from decimal import Decimal
from typing import Optional
from xml.sax.saxutils import escape

import structlog
from pydantic import BaseModel, Field

from boekhouding.config import ReportingSettings
from boekhouding.exceptions import InvalidPeriodError
from boekhouding.ledger.accounts import UnresolvedReference
from boekhouding.ledger.engine import LedgerAggregationEngine
from boekhouding.models.reports import AccountBalance, round_money


logger = structlog.get_logger(__name__)

XAF_NAMESPACE = "http://www.auditfiles.nl/XAF/3.2"
CURRENCY_CODE = "EUR"
DEFAULT_TRANSACTION_TYPE = "general"

_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def escape_text(value: str) -> str:
    """Escape & < > " ' for use in element text."""
    return escape(value, _ENTITIES)


def format_amount(amount: Decimal) -> str:
    """Fixed-point, two decimals, no thousands separators."""
    return format(round_money(amount), "f")


def audit_file_name(fiscal_year: int) -> str:
    return f"RGS_Brugstaat_{fiscal_year}.xaf"


def _render(element: ET.Element, depth: int = 0) -> list[str]:
    indent = "  " * depth
    attrs = "".join(
        f' {name}="{escape_text(value)}"' for name, value in element.attrib.items()
    )
    children = list(element)
    if not children:
        text = escape_text(element.text or "")
        return [f"{indent}<{element.tag}{attrs}>{text}</{element.tag}>"]

    rendered = [f"{indent}<{element.tag}{attrs}>"]
    for child in children:
        rendered.extend(_render(child, depth + 1))
    rendered.append(f"{indent}</{element.tag}>")
    return rendered


def render_document(root: ET.Element) -> str:
    """Render an element tree as a UTF-8 XML document."""
    lines = ['<?xml version="1.0" encoding="UTF-8"?>']
    lines.extend(_render(root))
    return "\n".join(lines)


def _text(parent: ET.Element, tag: str, value: Optional[str] = "") -> ET.Element:
    child = ET.SubElement(parent, tag)
    child.text = value or ""
    return child


class AuditFileExport(BaseModel):
    """A rendered audit file together with what went into it."""

    fiscal_year: int
    xml: str
    account_count: int = 0
    transaction_count: int = 0
    unresolved: list[UnresolvedReference] = Field(default_factory=list)
    unbalanced_entries: list[str] = Field(
        default_factory=list,
        description="Ids of exported Final entries whose debits and credits differ",
    )

    @property
    def filename(self) -> str:
        return audit_file_name(self.fiscal_year)


class AuditFileExporter:
    """
    Builds XAF 3.2 documents from the ledger.

    Usage:
        exporter = AuditFileExporter(engine)
        xml = await exporter.export_year(2024, date(2024, 1, 1), date(2024, 12, 31))
    """

    def __init__(
        self,
        engine: LedgerAggregationEngine,
        settings: Optional[ReportingSettings] = None,
    ):
        self._engine = engine
        self._settings = settings or ReportingSettings()

    async def export_year(
        self,
        fiscal_year: int,
        start_date: date,
        end_date: date,
        company_name: Optional[str] = None,
        company_vat: Optional[str] = None,
        date_created: Optional[date] = None,
    ) -> str:
        """Render the audit file for a fiscal year as XML text."""
        export = await self.build(
            fiscal_year,
            start_date,
            end_date,
            company_name=company_name,
            company_vat=company_vat,
            date_created=date_created,
        )
        return export.xml

    async def build(
        self,
        fiscal_year: int,
        start_date: date,
        end_date: date,
        company_name: Optional[str] = None,
        company_vat: Optional[str] = None,
        date_created: Optional[date] = None,
    ) -> AuditFileExport:
        """
        Build the audit file for [start_date, end_date].

        Raises:
            InvalidPeriodError: If end_date is before start_date
            UnresolvedAccountError: Under the FAIL policy
            StorageError: If a ledger read fails
        """
        if end_date < start_date:
            raise InvalidPeriodError(f"Period end {end_date} is before start {start_date}")

        company = self._engine.company
        company_name = company_name or company.name or self._settings.default_company_name
        company_vat = company_vat if company_vat is not None else company.vat_number

        resolver = await self._engine.resolver()
        opening = await self._engine.opening_balances(start_date)
        transactions = await self._engine.transactions_in_period(start_date, end_date)

        root = ET.Element("auditfile", {"xmlns": XAF_NAMESPACE})

        header = ET.SubElement(root, "header")
        _text(header, "fiscalYear", str(fiscal_year))
        _text(header, "startDate", start_date.isoformat())
        _text(header, "endDate", end_date.isoformat())
        _text(header, "curCode", CURRENCY_CODE)
        _text(header, "dateCreated", (date_created or date.today()).isoformat())
        _text(header, "softwareDesc", self._settings.software_description)
        _text(header, "softwareVersion", self._settings.software_version)

        company_el = ET.SubElement(root, "company")
        _text(company_el, "companyIdent", company_vat)
        _text(company_el, "companyName", company_name)
        _text(company_el, "taxRegistrationCountry", self._settings.country_code)

        general_ledger = ET.SubElement(root, "generalLedger")

        # Ledger accounts, active only, by code
        accounts = sorted(resolver.accounts, key=lambda a: a.code)
        ledger_accounts = ET.SubElement(general_ledger, "ledgerAccounts")
        for account in accounts:
            balance = opening.get(account.id, AccountBalance())
            account_el = ET.SubElement(ledger_accounts, "ledgerAccount")
            _text(account_el, "accID", account.code)
            _text(account_el, "accDesc", account.name)
            _text(account_el, "accTp", account.type.value)
            _text(account_el, "taxonomy", account.taxonomy_code)
            _text(account_el, "leadCode")
            for amount, side in ((balance.debit, "debit"), (balance.credit, "credit")):
                opening_el = ET.SubElement(account_el, "openingBalance")
                _text(opening_el, "amnt", format_amount(amount))
                _text(opening_el, "amntTp", side)

        # Transactions of the period, oldest first
        transactions_el = ET.SubElement(general_ledger, "transactions")
        transaction_count = 0
        unbalanced = [t.entry.id for t in transactions if not t.entry.is_balanced]
        for transaction in transactions:
            entry = transaction.entry
            if not transaction.lines:
                continue

            transaction_id = entry.id[:8]
            entry_date = entry.entry_date.isoformat()

            transaction_el = ET.SubElement(transactions_el, "transaction")
            _text(transaction_el, "trID", transaction_id)
            _text(transaction_el, "desc", entry.description)
            _text(transaction_el, "periodNumber", str(entry.entry_date.month))
            _text(transaction_el, "trDt", entry_date)
            _text(transaction_el, "trTp", entry.memoriaal_type or DEFAULT_TRANSACTION_TYPE)

            lines_el = ET.SubElement(transaction_el, "lines")
            for line in transaction.lines:
                account = resolver.resolve(line.account_id, entry.id)
                if account is None:
                    continue

                if line.debit > 0:
                    amount, side = line.debit, "debit"
                else:
                    amount, side = line.credit, "credit"

                line_el = ET.SubElement(lines_el, "line")
                _text(line_el, "accID", account.code)
                _text(line_el, "docRef", transaction_id)
                _text(line_el, "effDate", entry_date)
                _text(line_el, "desc", line.description or entry.description)
                _text(line_el, "amnt", format_amount(amount))
                _text(line_el, "amntTp", side)
            transaction_count += 1

        xml = render_document(root)

        logger.info(
            "audit_file_built",
            company_id=company.company_id,
            fiscal_year=fiscal_year,
            account_count=len(accounts),
            transaction_count=transaction_count,
            excluded_line_count=len(resolver.excluded),
            unbalanced_entry_count=len(unbalanced),
        )

        return AuditFileExport(
            fiscal_year=fiscal_year,
            xml=xml,
            account_count=len(accounts),
            transaction_count=transaction_count,
            unresolved=list(resolver.excluded),
            unbalanced_entries=unbalanced,
        )
