"""Core services and cross-cutting concerns."""

from audit_trail.core.errors import (
    AccessDeniedError,
    AuditError,
    InvalidArgumentError,
    NotAuditableError,
    SchemaOperationError,
    StoreError,
)


__all__ = [
    # Errors
    "AccessDeniedError",
    "AuditError",
    "InvalidArgumentError",
    "NotAuditableError",
    "SchemaOperationError",
    "StoreError",
]
