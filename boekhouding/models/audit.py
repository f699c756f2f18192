"""
Audit Models for the Reporting Core

Every report run leaves a trace:
1. Which company and period was reported on
2. What the headline figures were
3. Which lines were excluded and why
4. Which data-access failures aborted a run

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    One event type per reporting operation, plus failures.
    """
    # Reporting runs
    VAT_RETURN_CALCULATED = "vat_return_calculated"
    AUDIT_FILE_EXPORTED = "audit_file_exported"
    TAX_SUMMARY_CALCULATED = "tax_summary_calculated"
    FISCAL_INCOME_CALCULATED = "fiscal_income_calculated"

    # Data quality
    UNRESOLVED_ACCOUNT_REFERENCE = "unresolved_account_reference"

    # Failures
    DATA_ACCESS_FAILED = "data_access_failed"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which company / report is this about?
    company_id: Optional[str] = Field(
        default=None,
        description="Company the report ran for"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'vat_return', 'audit_file')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity, e.g. the period label"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate the events of one report run"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "company_id": self.company_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, company_id, entity_type,
         entity_id, correlation_id, description, details_json, error_message]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.company_id or "",
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.vat_return_calculated(company_id, "2024-Q1", ...)
        event = AuditEventBuilder.data_access_failed(company_id, "vat_return", ...)
    """

    @staticmethod
    def vat_return_calculated(
        company_id: str,
        period_label: str,
        net: str,
        invoice_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VAT_RETURN_CALCULATED,
            company_id=company_id,
            entity_type="vat_return",
            entity_id=period_label,
            correlation_id=correlation_id,
            description=f"VAT return {period_label} calculated: net €{net}",
            details={
                "net": net,
                "invoice_count": invoice_count,
            },
        )

    @staticmethod
    def audit_file_exported(
        company_id: str,
        fiscal_year: int,
        account_count: int,
        transaction_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.AUDIT_FILE_EXPORTED,
            company_id=company_id,
            entity_type="audit_file",
            entity_id=str(fiscal_year),
            correlation_id=correlation_id,
            description=f"Audit file {fiscal_year} exported",
            details={
                "account_count": account_count,
                "transaction_count": transaction_count,
            },
        )

    @staticmethod
    def tax_summary_calculated(
        company_id: str,
        year: int,
        profit: str,
        excluded_lines: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TAX_SUMMARY_CALCULATED,
            company_id=company_id,
            entity_type="tax_summary",
            entity_id=str(year),
            correlation_id=correlation_id,
            description=f"Tax summary {year} calculated: profit €{profit}",
            details={
                "profit": profit,
                "excluded_lines": excluded_lines,
            },
        )

    @staticmethod
    def fiscal_income_calculated(
        company_id: str,
        year: int,
        taxable_income: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FISCAL_INCOME_CALCULATED,
            company_id=company_id,
            entity_type="fiscal_income",
            entity_id=str(year),
            correlation_id=correlation_id,
            description=f"Fiscal income {year} calculated: taxable €{taxable_income}",
            details={
                "taxable_income": taxable_income,
            },
        )

    @staticmethod
    def unresolved_account_reference(
        company_id: str,
        account_id: str,
        journal_entry_id: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UNRESOLVED_ACCOUNT_REFERENCE,
            severity=AuditSeverity.WARNING,
            company_id=company_id,
            entity_type="journal_entry",
            entity_id=journal_entry_id,
            correlation_id=correlation_id,
            description=f"Line references unknown or inactive account {account_id}",
            details={
                "account_id": account_id,
            },
        )

    @staticmethod
    def data_access_failed(
        company_id: str,
        operation: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DATA_ACCESS_FAILED,
            severity=AuditSeverity.ERROR,
            company_id=company_id,
            entity_type=operation,
            correlation_id=correlation_id,
            description=f"Data access failed during {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
