"""Audit file export package."""

from boekhouding.export.xaf import (
    XAF_NAMESPACE,
    AuditFileExport,
    AuditFileExporter,
    audit_file_name,
    escape_text,
    format_amount,
)

__all__ = [
    "XAF_NAMESPACE",
    "AuditFileExport",
    "AuditFileExporter",
    "audit_file_name",
    "escape_text",
    "format_amount",
]
