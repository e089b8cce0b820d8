"""Audit schema synchronization.

Each run snapshots the entity and audit databases, plans every audited
entity's audit table, compares the result against the audit database
and optionally applies the resulting statements. Runs are independent
and not coordinated with each other; callers must serialize them.
"""

from collections.abc import Callable, Sequence
from enum import Enum
from typing import TypedDict

import structlog
from sqlalchemy import MetaData
from sqlalchemy.exc import SQLAlchemyError

from audit_trail.core.audit.configuration import AuditabilityPolicy
from audit_trail.core.audit.naming import TableNamer
from audit_trail.core.database.entities import EntityRegistry
from audit_trail.core.database.executor import SQLExecutor
from audit_trail.core.errors import SchemaOperationError, StoreError
from audit_trail.schema.differ import SchemaDiffer
from audit_trail.schema.introspector import SchemaIntrospector


log = structlog.get_logger()


class SyncState(str, Enum):
    IDLE = "idle"
    SNAPSHOTTING = "snapshotting"
    PLANNING = "planning"
    APPLYING = "applying"
    DONE = "done"


class SyncProgress(TypedDict):
    total: int
    current: int


class SchemaSyncManager:
    """Brings every audited entity's audit table in line with the spec.

    Attributes:
        entities: Registry of mapped entities
        auditability: Decides which entities get an audit table
        namer: Derives audit table names
        source: Introspector on the entity database
        storage: Introspector on the audit database
        executor: Executes statements against the audit database
        differ: Plans table definitions
        state: Phase of the current or last run
    """

    def __init__(
        self,
        entities: EntityRegistry,
        auditability: AuditabilityPolicy,
        namer: TableNamer,
        source: SchemaIntrospector,
        storage: SchemaIntrospector,
        executor: SQLExecutor,
        differ: SchemaDiffer | None = None,
    ) -> None:
        self.entities = entities
        self.auditability = auditability
        self.namer = namer
        self.source = source
        self.storage = storage
        self.executor = executor
        self.differ = differ or SchemaDiffer()
        self.state = SyncState.IDLE

    def audited_tables(self) -> set[str]:
        """Return the live table names of all auditable entities.

        Entities sharing a table through single-table inheritance
        contribute one name.
        """
        tables: set[str] = set()
        for name in self.entities.entity_names():
            if not self.auditability.is_auditable(name):
                continue
            schema = self.entities.schema_name(name)
            table = self.entities.table_name(name)
            tables.add(f"{schema}.{table}" if schema else table)
        return tables

    def build_target_schema(self) -> MetaData:
        """Plan every audit table and collect the results in a MetaData."""
        self.state = SyncState.SNAPSHOTTING
        audited = self.audited_tables()
        schemas = {self.namer.split(name)[0] for name in audited} | {None}
        live_tables = self.source.table_names(schemas)
        audit_tables = self.storage.table_names(schemas)

        self.state = SyncState.PLANNING
        target = MetaData()
        for live_name in sorted(audited & live_tables):
            _, table_name = self.namer.split(live_name)
            audit_name = self.namer.from_live_name(live_name, table_name)
            audit_schema, audit_table = self.namer.split(audit_name)

            if audit_name in audit_tables:
                current = self.storage.describe(audit_table, audit_schema)
                definition = self.differ.plan_for_existing_table(current).apply()
                log.debug("audit_table_update_planned", table=audit_name)
            else:
                definition = self.differ.plan_for_new_table(audit_table, audit_schema)
                log.debug("audit_table_creation_planned", table=audit_name)

            definition.to_table(target)

        return target

    def compute_migration_statements(self) -> list[str]:
        """Return the statements that bring all audit tables in sync.

        An unchanged database yields an empty list.
        """
        target = self.build_target_schema()
        statements = self.storage.diff_to(target)
        self.state = SyncState.DONE

        log.info(
            "audit_schema_planned",
            table_count=len(target.tables),
            statement_count=len(statements),
        )
        return statements

    def apply(
        self,
        statements: Sequence[str] | None = None,
        on_progress: Callable[[SyncProgress], None] | None = None,
    ) -> list[tuple[str, SchemaOperationError]]:
        """Execute statements one by one, best effort.

        A failing statement is recorded and the remaining statements still
        run, so drift on one entity doesn't block the others.

        Args:
            statements: Statements to run, computed when omitted
            on_progress: Called after every statement, failed or not

        Returns:
            (statement, error) pairs for the statements that failed
        """
        if statements is None:
            statements = self.compute_migration_statements()

        self.state = SyncState.APPLYING
        failures: list[tuple[str, SchemaOperationError]] = []
        total = len(statements)

        for current, statement in enumerate(statements, start=1):
            try:
                self.executor.execute(statement)
            except (StoreError, SQLAlchemyError) as e:
                error = SchemaOperationError(str(e), statement=statement)
                failures.append((statement, error))
                log.warning("schema_statement_failed", statement=statement, error=str(e))

            if on_progress is not None:
                on_progress(SyncProgress(total=total, current=current))

        self.state = SyncState.DONE
        log.info("audit_schema_applied", statement_count=total, failure_count=len(failures))
        return failures
