"""Expected shape of every audit table.

All audit tables share the same columns and indexes; only the table
name, and therefore the index names, differ.
"""

import hashlib
from dataclasses import dataclass
from enum import Enum

from sqlalchemy import JSON, DateTime, Integer, MetaData, String, Table
from sqlalchemy.types import TypeEngine

from audit_trail.core.constants import (
    MAX_BLAME_LENGTH,
    MAX_DISCRIMINATOR_LENGTH,
    MAX_FIREWALL_LENGTH,
    MAX_IPV6_LENGTH,
    MAX_OBJECT_ID_LENGTH,
    MAX_TYPE_LENGTH,
    TRANSACTION_HASH_LENGTH,
)
from audit_trail.schema.definitions import ColumnDefinition, IndexDefinition, TableDefinition


# PostgreSQL truncates identifiers beyond this length
MAX_IDENTIFIER_LENGTH = 63


class IndexKind(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class ColumnSpec:
    """Type and options of an expected column."""

    type_: TypeEngine
    nullable: bool = True
    autoincrement: bool | str = "auto"


@dataclass(frozen=True)
class IndexSpec:
    """An expected index, resolved to a name once the table is known."""

    columns: tuple[str, ...]
    kind: IndexKind = IndexKind.SECONDARY
    name: str | None = None


def index_name(table_name: str, column: str) -> str:
    """Return the secondary index name for a column of an audit table."""
    name = f"ix_{table_name}_{column}"
    if len(name) <= MAX_IDENTIFIER_LENGTH:
        return name
    digest = hashlib.sha1(table_name.encode()).hexdigest()[:16]
    return f"ix_{digest}_{column}"[:MAX_IDENTIFIER_LENGTH]


@dataclass(frozen=True)
class AuditTableSpec:
    """Ordered expected columns and indexes of an audit table."""

    columns: dict[str, ColumnSpec]
    indices: tuple[IndexSpec, ...]

    def column_definitions(self) -> list[ColumnDefinition]:
        return [
            ColumnDefinition(
                name=name,
                type_=spec.type_,
                nullable=spec.nullable,
                autoincrement=spec.autoincrement,
            )
            for name, spec in self.columns.items()
        ]

    def indices_for(self, table_name: str) -> dict[str, IndexSpec]:
        """Resolve index names for a concrete table.

        Args:
            table_name: Unqualified audit table name

        Returns:
            Index specs keyed by name; the primary key is keyed "primary"
        """
        resolved: dict[str, IndexSpec] = {}
        for index in self.indices:
            if index.kind is IndexKind.PRIMARY:
                name = index.name or "primary"
            else:
                name = index.name or index_name(table_name, "_".join(index.columns))
            resolved[name] = IndexSpec(columns=index.columns, kind=index.kind, name=name)
        return resolved

    def definition_for(self, table_name: str, schema: str | None = None) -> TableDefinition:
        """Return the complete expected definition of one audit table."""
        indices = self.indices_for(table_name)
        primary = next(
            (index.columns for index in indices.values() if index.kind is IndexKind.PRIMARY),
            (),
        )
        return TableDefinition(
            name=table_name,
            schema=schema,
            columns=self.column_definitions(),
            indexes={
                name: IndexDefinition(name=name, columns=index.columns)
                for name, index in indices.items()
                if index.kind is IndexKind.SECONDARY
            },
            primary_key=primary,
        )

    def build_table(
        self,
        table_name: str,
        schema: str | None = None,
        metadata: MetaData | None = None,
    ) -> Table:
        """Build a queryable Table for an audit table name."""
        return self.definition_for(table_name, schema).to_table(metadata or MetaData())


AUDIT_TABLE_SPEC = AuditTableSpec(
    columns={
        "id": ColumnSpec(Integer(), nullable=False, autoincrement=True),
        "type": ColumnSpec(String(MAX_TYPE_LENGTH), nullable=False),
        "object_id": ColumnSpec(String(MAX_OBJECT_ID_LENGTH), nullable=False),
        "discriminator": ColumnSpec(String(MAX_DISCRIMINATOR_LENGTH)),
        "transaction_hash": ColumnSpec(String(TRANSACTION_HASH_LENGTH)),
        "diffs": ColumnSpec(JSON()),
        "blame_id": ColumnSpec(String(MAX_BLAME_LENGTH)),
        "blame_user": ColumnSpec(String(MAX_BLAME_LENGTH)),
        "blame_user_fqdn": ColumnSpec(String(MAX_BLAME_LENGTH)),
        "blame_user_firewall": ColumnSpec(String(MAX_FIREWALL_LENGTH)),
        "ip": ColumnSpec(String(MAX_IPV6_LENGTH)),
        "created_at": ColumnSpec(DateTime(), nullable=False),
    },
    indices=(
        IndexSpec(("id",), IndexKind.PRIMARY),
        IndexSpec(("type",)),
        IndexSpec(("object_id",)),
        IndexSpec(("discriminator",)),
        IndexSpec(("transaction_hash",)),
        IndexSpec(("blame_id",)),
        IndexSpec(("created_at",)),
    ),
)
