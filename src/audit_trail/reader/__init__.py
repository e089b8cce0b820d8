"""Audit history reader."""

from audit_trail.reader.query import AuditFilter, AuditQuery
from audit_trail.reader.reader import Reader, TransactionAudits


__all__ = [
    "AuditFilter",
    "AuditQuery",
    "Reader",
    "TransactionAudits",
]
