"""Persistence of audit transactions into audit tables."""

import structlog
from sqlalchemy import MetaData, Table, insert

from audit_trail.core.audit.configuration import AuditabilityPolicy
from audit_trail.core.audit.naming import TableNamer
from audit_trail.core.audit.transaction import PendingEntry, Transaction
from audit_trail.core.database.entities import EntityRegistry
from audit_trail.core.database.executor import SQLExecutor
from audit_trail.core.errors import InvalidArgumentError, NotAuditableError
from audit_trail.schema.spec import AUDIT_TABLE_SPEC, AuditTableSpec


log = structlog.get_logger()


class AuditWriter:
    """Writes every entry of a transaction in one database transaction."""

    def __init__(
        self,
        entities: EntityRegistry,
        auditability: AuditabilityPolicy,
        namer: TableNamer,
        executor: SQLExecutor,
        spec: AuditTableSpec = AUDIT_TABLE_SPEC,
    ) -> None:
        self.entities = entities
        self.auditability = auditability
        self.namer = namer
        self.executor = executor
        self.spec = spec
        self._metadata = MetaData()

    def persist(self, transaction: Transaction) -> int:
        """Insert the transaction's entries and close it.

        Args:
            transaction: Open transaction to write

        Returns:
            Number of entries written

        Raises:
            InvalidArgumentError: If the transaction was already persisted
            NotAuditableError: If an entry targets a non-auditable entity
            StoreError: If the database rejects the inserts
        """
        if transaction.closed:
            raise InvalidArgumentError(
                f"Transaction {transaction.transaction_hash} is already persisted."
            )

        statements = [
            insert(self._audit_table(entry.entity)).values(**self._row(entry, transaction))
            for entry in transaction.entries
        ]
        if statements:
            self.executor.execute_batch(statements)
        transaction.close()

        log.info(
            "audit_transaction_persisted",
            transaction_hash=transaction.transaction_hash,
            entry_count=len(statements),
        )
        return len(statements)

    def _audit_table(self, entity: str) -> Table:
        if not self.auditability.is_auditable(entity):
            raise NotAuditableError(entity=entity)

        qualified = self.namer.audit_table_name(
            self.entities.table_name(entity),
            self.entities.schema_name(entity),
        )
        table = self._metadata.tables.get(qualified)
        if table is None:
            schema, name = self.namer.split(qualified)
            table = self.spec.build_table(name, schema, self._metadata)
        return table

    def _row(self, entry: PendingEntry, transaction: Transaction) -> dict:
        discriminator = entry.discriminator
        if discriminator is None and self.entities.uses_single_table_inheritance(entry.entity):
            discriminator = entry.entity

        return {
            "type": entry.type.value,
            "object_id": entry.object_id,
            "discriminator": discriminator,
            "transaction_hash": transaction.transaction_hash,
            "diffs": entry.diffs,
            "blame_id": entry.blame_id,
            "blame_user": entry.blame_user,
            "blame_user_fqdn": entry.blame_user_fqdn,
            "blame_user_firewall": entry.blame_user_firewall,
            "ip": entry.ip,
            "created_at": entry.created_at,
        }
