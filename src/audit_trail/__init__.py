"""Audit trail for SQLAlchemy entities.

Reads audit history from per-entity shadow tables and keeps those
tables in sync with the uniform audit table shape.
"""

from audit_trail.provider import AuditProvider
from audit_trail.reader import AuditFilter, Reader
from audit_trail.schema import SchemaSyncManager


__version__ = "0.1.0"

__all__ = [
    "AuditFilter",
    "AuditProvider",
    "Reader",
    "SchemaSyncManager",
    "__version__",
]
