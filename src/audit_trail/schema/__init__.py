"""Audit table schema: expected shape, diffing and synchronization."""

from audit_trail.schema.definitions import ColumnDefinition, IndexDefinition, TableDefinition
from audit_trail.schema.differ import OperationKind, SchemaDiffer, SchemaDiffPlan, SchemaOperation
from audit_trail.schema.introspector import SchemaIntrospector
from audit_trail.schema.manager import SchemaSyncManager, SyncProgress, SyncState
from audit_trail.schema.spec import AUDIT_TABLE_SPEC, AuditTableSpec, ColumnSpec, IndexKind, IndexSpec


__all__ = [
    "AUDIT_TABLE_SPEC",
    "AuditTableSpec",
    "ColumnDefinition",
    "ColumnSpec",
    "IndexDefinition",
    "IndexKind",
    "IndexSpec",
    "OperationKind",
    "SchemaDiffPlan",
    "SchemaDiffer",
    "SchemaIntrospector",
    "SchemaOperation",
    "SchemaSyncManager",
    "SyncProgress",
    "SyncState",
    "TableDefinition",
]
