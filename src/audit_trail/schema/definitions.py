"""Structural table definitions.

A TableDefinition is a plain, mutable-by-copy description of a table's
columns, indexes and primary key. Definitions are built from reflected
tables or from the audit table spec and turned back into SQLAlchemy
Table objects on a target MetaData.
"""

from dataclasses import dataclass, field, replace

from sqlalchemy import Column, Index, MetaData, PrimaryKeyConstraint, Table
from sqlalchemy.exc import CompileError
from sqlalchemy.types import TypeEngine


def type_signature(type_: TypeEngine) -> str:
    """Render a column type in generic DDL form for comparison."""
    try:
        return str(type_)
    except CompileError:
        return repr(type_)


@dataclass(frozen=True)
class ColumnDefinition:
    """A single column."""

    name: str
    type_: TypeEngine
    nullable: bool = True
    autoincrement: bool | str = "auto"

    def to_column(self) -> Column:
        return Column(
            self.name,
            self.type_,
            nullable=self.nullable,
            autoincrement=self.autoincrement,
        )

    def same_as(self, other: "ColumnDefinition") -> bool:
        """Check structural equality, comparing types by their DDL."""
        return (
            self.name == other.name
            and self.nullable == other.nullable
            and type_signature(self.type_) == type_signature(other.type_)
        )


@dataclass(frozen=True)
class IndexDefinition:
    """A secondary index."""

    name: str
    columns: tuple[str, ...]
    unique: bool = False


@dataclass
class TableDefinition:
    """Columns, indexes and primary key of one table.

    Attributes:
        name: Unqualified table name
        schema: Schema the table lives in, if any
        columns: Columns in table order
        indexes: Secondary indexes keyed by name
        primary_key: Primary key column names, empty when there is none
    """

    name: str
    schema: str | None = None
    columns: list[ColumnDefinition] = field(default_factory=list)
    indexes: dict[str, IndexDefinition] = field(default_factory=dict)
    primary_key: tuple[str, ...] = ()

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.name}" if self.schema else self.name

    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    def has_column(self, name: str) -> bool:
        return name in self.column_names()

    def copy(self) -> "TableDefinition":
        return replace(self, columns=list(self.columns), indexes=dict(self.indexes))

    def same_structure(self, other: "TableDefinition") -> bool:
        """Check whether two definitions describe the same table shape.

        Column order is ignored; types are compared by their DDL.
        """
        if self.qualified_name != other.qualified_name:
            return False
        if set(self.primary_key) != set(other.primary_key):
            return False
        if self.indexes != other.indexes:
            return False

        theirs = {column.name: column for column in other.columns}
        if set(theirs) != set(self.column_names()):
            return False
        return all(column.same_as(theirs[column.name]) for column in self.columns)

    def to_table(self, metadata: MetaData) -> Table:
        """Materialize the definition on a MetaData, replacing any table of the same name."""
        existing = metadata.tables.get(self.qualified_name)
        if existing is not None:
            metadata.remove(existing)

        args: list = [column.to_column() for column in self.columns]
        args.extend(
            Index(index.name, *index.columns, unique=index.unique)
            for index in self.indexes.values()
        )
        if self.primary_key:
            args.append(PrimaryKeyConstraint(*self.primary_key))

        return Table(self.name, metadata, *args, schema=self.schema)

    @classmethod
    def from_table(cls, table: Table) -> "TableDefinition":
        """Build a definition from a SQLAlchemy Table."""
        columns = [
            ColumnDefinition(
                name=column.name,
                type_=column.type,
                nullable=bool(column.nullable),
                autoincrement=column.autoincrement,
            )
            for column in table.columns
        ]
        indexes = {
            index.name: IndexDefinition(
                name=index.name,
                columns=tuple(column.name for column in index.columns),
                unique=bool(index.unique),
            )
            for index in table.indexes
            if index.name
        }
        return cls(
            name=table.name,
            schema=table.schema,
            columns=columns,
            indexes=indexes,
            primary_key=tuple(column.name for column in table.primary_key.columns),
        )
