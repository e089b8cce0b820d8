"""Domain exceptions for the audit trail.

Validation and access errors are raised before any statement reaches
the database. Store errors wrap whatever the database layer raised.
"""

from typing import Any


class AuditError(Exception):
    """Base exception for all audit trail errors.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        details: Additional error details
    """

    message: str = "An unexpected audit error occurred"
    error_code: str = "audit_error"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class NotAuditableError(AuditError):
    """Raised when an entity is not configured for auditing.

    Example:
        raise NotAuditableError(entity="Invoice")
    """

    message = "Entity is not auditable"
    error_code = "not_auditable"

    def __init__(
        self,
        message: str | None = None,
        entity: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if entity:
            details["entity"] = entity
            message = message or f"Entity {entity} is not auditable."
        super().__init__(message=message, details=details, **kwargs)


class AccessDeniedError(AuditError):
    """Raised when the current user lacks a role required to read audits.

    Example:
        raise AccessDeniedError(entity="Invoice", scope="view")
    """

    message = "Access to audits denied"
    error_code = "access_denied"

    def __init__(
        self,
        message: str | None = None,
        entity: str | None = None,
        scope: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if entity:
            details["entity"] = entity
            message = message or f"You are not allowed to access audits of {entity} entity."
        if scope:
            details["scope"] = scope
        super().__init__(message=message, details=details, **kwargs)


class InvalidArgumentError(AuditError):
    """Raised for caller input that can never produce a valid query.

    Example:
        raise InvalidArgumentError("page must be greater or equal than 1.")
    """

    message = "Invalid argument"
    error_code = "invalid_argument"


class SchemaOperationError(AuditError):
    """Raised when a single schema migration statement fails.

    Collected by the sync manager rather than propagated.
    """

    message = "Schema statement failed"
    error_code = "schema_operation_failed"

    def __init__(
        self,
        message: str | None = None,
        statement: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if statement:
            details["statement"] = statement
        super().__init__(message=message, details=details, **kwargs)


class StoreError(AuditError):
    """Raised when the underlying database fails.

    Example:
        raise StoreError("Database connection failed") from exc
    """

    message = "Audit store unavailable"
    error_code = "store_error"
