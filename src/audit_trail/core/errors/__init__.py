"""Error handling module for the audit trail."""

from audit_trail.core.errors.exceptions import (
    AccessDeniedError,
    AuditError,
    InvalidArgumentError,
    NotAuditableError,
    SchemaOperationError,
    StoreError,
)


__all__ = [
    "AccessDeniedError",
    "AuditError",
    "InvalidArgumentError",
    "NotAuditableError",
    "SchemaOperationError",
    "StoreError",
]
