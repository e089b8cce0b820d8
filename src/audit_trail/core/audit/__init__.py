"""Audit configuration, naming, entry schemas and persistence."""

from audit_trail.core.audit.configuration import (
    AuditabilityPolicy,
    AuditConfiguration,
    EntityOptions,
)
from audit_trail.core.audit.naming import TableNamer
from audit_trail.core.audit.schemas import AuditEntry, OperationType, PageResult
from audit_trail.core.audit.transaction import PendingEntry, Transaction


__all__ = [
    "AuditConfiguration",
    "AuditEntry",
    "AuditabilityPolicy",
    "EntityOptions",
    "OperationType",
    "PageResult",
    "PendingEntry",
    "TableNamer",
    "Transaction",
]
