"""
Audit Logger

DESIGN DECISION: Every report run is logged.
This provides:
1. Traceability of every figure handed to the tax authority
2. Debugging capability
3. A record of excluded lines and failed reads

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash a report if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from boekhouding.models.audit import AuditEvent, AuditEventBuilder
from boekhouding.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence), when configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger()

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_vat_return(
        self,
        company_id: str,
        period_label: str,
        net: Decimal,
        invoice_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log a calculated VAT return."""
        event = AuditEventBuilder.vat_return_calculated(
            company_id=company_id,
            period_label=period_label,
            net=str(net),
            invoice_count=invoice_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_audit_file_exported(
        self,
        company_id: str,
        fiscal_year: int,
        account_count: int,
        transaction_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log an audit file export."""
        event = AuditEventBuilder.audit_file_exported(
            company_id=company_id,
            fiscal_year=fiscal_year,
            account_count=account_count,
            transaction_count=transaction_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_tax_summary(
        self,
        company_id: str,
        year: int,
        profit: Decimal,
        excluded_lines: int,
        correlation_id: UUID,
    ) -> None:
        """Log an annual tax summary."""
        event = AuditEventBuilder.tax_summary_calculated(
            company_id=company_id,
            year=year,
            profit=str(profit),
            excluded_lines=excluded_lines,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_fiscal_income(
        self,
        company_id: str,
        year: int,
        taxable_income: Decimal,
        correlation_id: UUID,
    ) -> None:
        """Log a fiscal income calculation."""
        event = AuditEventBuilder.fiscal_income_calculated(
            company_id=company_id,
            year=year,
            taxable_income=str(taxable_income),
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_data_access_failed(
        self,
        company_id: str,
        operation: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a failed read from the ledger store."""
        event = AuditEventBuilder.data_access_failed(
            company_id=company_id,
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a report run.
    Pass it through all subsequent operations.
    """
    return uuid4()


def configure_logging(level: str = "INFO") -> None:
    """
    Route structlog output through the stdlib root logger at `level`.

    structlog's filter_by_level drops records below the stdlib level,
    which defaults to WARNING.
    """
    logging.basicConfig(format="%(message)s", level=level.upper())
    logging.getLogger().setLevel(level.upper())
