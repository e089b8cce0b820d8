"""Schema introspection and comparison.

Reads table structure through SQLAlchemy reflection and computes the
statements needed to reach a target MetaData with Alembic's
autogenerate comparison, rendered offline for the engine's dialect.
"""

from collections.abc import Iterable, Iterator

import structlog
from alembic.autogenerate import produce_migrations
from alembic.migration import MigrationContext
from alembic.operations import Operations, ops
from sqlalchemy import Engine, MetaData, Table, insert, inspect, select
from sqlalchemy.engine import Inspector
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import column as sql_column, table as sql_table

from audit_trail.core.errors import StoreError
from audit_trail.schema.definitions import TableDefinition


log = structlog.get_logger()

# Existing tables are renamed to this while being rebuilt
REBUILD_SUFFIX = "__rebuild"


class _StatementBuffer:
    """Output buffer collecting each statement Alembic writes in offline mode."""

    def __init__(self) -> None:
        self.statements: list[str] = []

    def write(self, text: str) -> None:
        statement = text.strip().rstrip(";").strip()
        if statement:
            self.statements.append(statement)

    def flush(self) -> None:
        pass


def _flatten(operations: Iterable[ops.MigrateOperation]) -> Iterator[ops.MigrateOperation]:
    for operation in operations:
        if isinstance(operation, ops.OpContainer):
            yield from _flatten(operation.ops)
        else:
            yield operation


def _table_key(operation: ops.MigrateOperation) -> tuple[str | None, str | None]:
    return getattr(operation, "schema", None), getattr(operation, "table_name", None)


def _qualified(schema: str | None, name: str) -> str:
    return f"{schema}.{name}" if schema else name


class SchemaIntrospector:
    """Structural view of one database."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def table_names(self, schemas: Iterable[str | None] = (None,)) -> set[str]:
        """Snapshot the table names of the given schemas.

        Args:
            schemas: Schemas to list, None meaning the default schema

        Returns:
            Table names, qualified with the schema when one is given
        """
        try:
            inspector = inspect(self.engine)
            names: set[str] = set()
            for schema in schemas:
                for name in inspector.get_table_names(schema=schema):
                    names.add(f"{schema}.{name}" if schema else name)
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e
        return names

    def describe(self, table_name: str, schema: str | None = None) -> TableDefinition:
        """Reflect the columns, indexes and primary key of one table."""
        try:
            table = Table(table_name, MetaData(), autoload_with=self.engine, schema=schema)
        except SQLAlchemyError as e:
            raise StoreError(str(e), details={"table": table_name}) from e
        return TableDefinition.from_table(table)

    def diff_to(self, target: MetaData) -> list[str]:
        """Return the statements migrating the database to the target tables.

        Only tables present in the target are compared; everything else in
        the database is left alone. Tables whose column types, nullability
        or primary key differ are rebuilt instead of altered in place.

        Args:
            target: MetaData holding the desired tables

        Returns:
            Dialect-specific statements without trailing terminators
        """
        wanted = {(table.schema, table.name) for table in target.tables.values()}
        if not wanted:
            return []
        schemas = {schema for schema, _ in wanted}

        def include_name(name, type_, parent_names):
            if type_ == "table":
                return (parent_names.get("schema_name"), name) in wanted
            return True

        try:
            with self.engine.connect() as conn:
                context = MigrationContext.configure(
                    connection=conn,
                    opts={
                        "compare_type": True,
                        "include_name": include_name,
                        "include_schemas": any(schema is not None for schema in schemas),
                    },
                )
                script = produce_migrations(context, target)
                operations = list(_flatten(script.upgrade_ops.ops))

                inspector = inspect(conn)
                rebuilt = self._tables_to_rebuild(inspector, target, operations)
                rebuild_operations = [
                    operation
                    for key in sorted(rebuilt, key=lambda k: (k[0] or "", k[1]))
                    for operation in self._rebuild(inspector, target.tables[_qualified(*key)])
                ]
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

        operations = [
            operation for operation in operations if _table_key(operation) not in rebuilt
        ] + rebuild_operations

        log.debug(
            "schema_compared",
            table_count=len(wanted),
            rebuilt_count=len(rebuilt),
            operation_count=len(operations),
        )
        return self.render(operations)

    def _tables_to_rebuild(
        self,
        inspector: Inspector,
        target: MetaData,
        operations: list[ops.MigrateOperation],
    ) -> set[tuple[str | None, str]]:
        """Collect existing tables that can't be migrated without partial alters.

        Alembic never compares primary keys, so those are checked here
        against the reflected constraint.
        """
        created = {
            _table_key(operation)
            for operation in operations
            if isinstance(operation, ops.CreateTableOp)
        }
        rebuilt = {
            _table_key(operation)
            for operation in operations
            if isinstance(operation, ops.AlterColumnOp)
            and (operation.modify_type is not None or operation.modify_nullable is not None)
        }

        for table in target.tables.values():
            key = (table.schema, table.name)
            if key in created or key in rebuilt:
                continue
            constraint = inspector.get_pk_constraint(table.name, schema=table.schema)
            current = set(constraint.get("constrained_columns") or ())
            if current != {column.name for column in table.primary_key.columns}:
                rebuilt.add(key)

        return rebuilt

    def _rebuild(self, inspector: Inspector, table: Table) -> list[ops.MigrateOperation]:
        """Replace a table by a fresh copy of its target definition.

        The existing table is renamed aside, the target table and its
        indexes are created, rows of the columns both share are copied
        over and the old table is dropped.
        """
        backup = f"{table.name}{REBUILD_SUFFIX}"
        live_columns = {
            column["name"] for column in inspector.get_columns(table.name, schema=table.schema)
        }
        shared = [column.name for column in table.columns if column.name in live_columns]

        operations: list[ops.MigrateOperation] = [
            ops.DropIndexOp(index["name"], table_name=table.name, schema=table.schema)
            for index in inspector.get_indexes(table.name, schema=table.schema)
            if index["name"]
        ]
        operations.append(ops.RenameTableOp(table.name, backup, schema=table.schema))
        operations.append(ops.CreateTableOp.from_table(table))
        operations.extend(
            ops.CreateIndexOp.from_index(index)
            for index in sorted(table.indexes, key=lambda i: i.name or "")
        )
        if shared:
            source = sql_table(backup, *(sql_column(name) for name in shared), schema=table.schema)
            operations.append(
                ops.ExecuteSQLOp(
                    insert(table).from_select(shared, select(*(source.c[n] for n in shared)))
                )
            )
        operations.append(ops.DropTableOp(backup, schema=table.schema))

        log.info("audit_table_rebuild_planned", table=_qualified(table.schema, table.name))
        return operations

    def render(self, operations: Iterable[ops.MigrateOperation]) -> list[str]:
        """Render migration operations as SQL for this engine's dialect."""
        buffer = _StatementBuffer()
        context = MigrationContext.configure(
            dialect=self.engine.dialect,
            opts={"as_sql": True, "output_buffer": buffer},
        )
        operations_proxy = Operations(context)
        for operation in operations:
            operations_proxy.invoke(operation)
        return buffer.statements
