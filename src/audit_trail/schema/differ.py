"""Audit table diffing.

Existing audit tables are brought in line with the expected spec by
blind replacement: every expected column already present is dropped
and added again with the expected definition, unexpected columns are
dropped, missing ones are added. Indexes and the primary key are
likewise dropped and re-created. This emits more operations than a
minimal diff but always converges, even on stores without partial
ALTER support. The net effect is computed later by comparing the
resulting schema against the database, so unchanged tables produce no
statements.
"""

from dataclasses import dataclass, field
from enum import Enum

import structlog

from audit_trail.core.errors import InvalidArgumentError
from audit_trail.schema.definitions import ColumnDefinition, IndexDefinition, TableDefinition
from audit_trail.schema.spec import AUDIT_TABLE_SPEC, AuditTableSpec, IndexKind


log = structlog.get_logger()


class OperationKind(str, Enum):
    ADD_COLUMN = "add_column"
    DROP_COLUMN = "drop_column"
    ADD_INDEX = "add_index"
    DROP_INDEX = "drop_index"
    DROP_PRIMARY_KEY = "drop_primary_key"
    SET_PRIMARY_KEY = "set_primary_key"


@dataclass(frozen=True)
class SchemaOperation:
    """One structural change to a table."""

    kind: OperationKind
    name: str
    column: ColumnDefinition | None = None
    index: IndexDefinition | None = None
    columns: tuple[str, ...] = ()

    def __str__(self) -> str:
        return f"{self.kind.value} {self.name}"


@dataclass
class SchemaDiffPlan:
    """Ordered operations transforming one table into its expected shape.

    Attributes:
        current: The table as it exists before the plan runs
        operations: Operations in execution order
    """

    current: TableDefinition
    operations: list[SchemaOperation] = field(default_factory=list)

    def __iter__(self):
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)

    def kinds(self) -> list[tuple[OperationKind, str]]:
        """Return (kind, name) pairs, mostly useful for inspection."""
        return [(operation.kind, operation.name) for operation in self.operations]

    def apply(self) -> TableDefinition:
        """Run the operations against a copy of the current table.

        Indexes and primary keys left pointing at dropped columns are
        discarded at the end.

        Returns:
            The resulting table definition

        Raises:
            InvalidArgumentError: If a column is added while a column of
                the same name still exists
        """
        table = self.current.copy()

        for operation in self.operations:
            if operation.kind is OperationKind.DROP_COLUMN:
                table.columns = [c for c in table.columns if c.name != operation.name]
            elif operation.kind is OperationKind.ADD_COLUMN:
                if table.has_column(operation.name):
                    raise InvalidArgumentError(
                        f"Column {operation.name} already exists on {table.qualified_name}."
                    )
                table.columns.append(operation.column)
            elif operation.kind is OperationKind.DROP_INDEX:
                table.indexes.pop(operation.name, None)
            elif operation.kind is OperationKind.ADD_INDEX:
                table.indexes[operation.name] = operation.index
            elif operation.kind is OperationKind.DROP_PRIMARY_KEY:
                table.primary_key = ()
            elif operation.kind is OperationKind.SET_PRIMARY_KEY:
                table.primary_key = operation.columns

        names = set(table.column_names())
        table.indexes = {
            name: index
            for name, index in table.indexes.items()
            if set(index.columns) <= names
        }
        if not set(table.primary_key) <= names:
            table.primary_key = ()

        return table

    @property
    def is_noop(self) -> bool:
        """True when applying the plan leaves the table structurally unchanged."""
        return self.apply().same_structure(self.current)


class SchemaDiffer:
    """Computes audit table definitions and update plans."""

    def __init__(self, spec: AuditTableSpec = AUDIT_TABLE_SPEC) -> None:
        self.spec = spec

    def plan_for_new_table(self, table_name: str, schema: str | None = None) -> TableDefinition:
        """Return the definition of a brand-new audit table.

        Columns come in spec order, then secondary indexes; the primary
        key is emitted last when the definition is materialized.
        """
        return self.spec.definition_for(table_name, schema)

    def plan_for_existing_table(self, current: TableDefinition) -> SchemaDiffPlan:
        """Plan the blind-replace update of an existing audit table.

        Args:
            current: Reflected definition of the audit table

        Returns:
            Column operations (existing columns in table order, then new
            columns in spec order) followed by index operations
        """
        plan = SchemaDiffPlan(current=current)
        expected = {column.name: column for column in self.spec.column_definitions()}

        processed: set[str] = set()
        for column in current.columns:
            plan.operations.append(SchemaOperation(OperationKind.DROP_COLUMN, column.name))
            if column.name in expected:
                plan.operations.append(
                    SchemaOperation(
                        OperationKind.ADD_COLUMN,
                        column.name,
                        column=expected[column.name],
                    )
                )
            processed.add(column.name)

        for name, column in expected.items():
            if name not in processed:
                plan.operations.append(SchemaOperation(OperationKind.ADD_COLUMN, name, column=column))

        for name, index in self.spec.indices_for(current.name).items():
            if index.kind is IndexKind.PRIMARY:
                if current.primary_key:
                    plan.operations.append(SchemaOperation(OperationKind.DROP_PRIMARY_KEY, name))
                plan.operations.append(
                    SchemaOperation(OperationKind.SET_PRIMARY_KEY, name, columns=index.columns)
                )
                continue

            if name in current.indexes:
                plan.operations.append(SchemaOperation(OperationKind.DROP_INDEX, name))
            plan.operations.append(
                SchemaOperation(
                    OperationKind.ADD_INDEX,
                    name,
                    index=IndexDefinition(name=name, columns=index.columns),
                )
            )

        log.debug(
            "audit_table_planned",
            table=current.qualified_name,
            operation_count=len(plan),
        )
        return plan
