"""Database layer - engines, executors, base models and entity lookup."""

from audit_trail.core.database.base import AuditMixin, Base
from audit_trail.core.database.entities import EntityRegistry, entity_name
from audit_trail.core.database.executor import EngineExecutor, SQLExecutor
from audit_trail.core.database.session import create_entity_engine, create_storage_engine


__all__ = [
    "AuditMixin",
    "Base",
    "EngineExecutor",
    "EntityRegistry",
    "SQLExecutor",
    "create_entity_engine",
    "create_storage_engine",
    "entity_name",
]
