"""Audit history reader.

Answers questions about recorded operations: entries for an entity or
an object, entries of one transaction across all entities, pages and
counts. Every query is preceded by an auditability and a role check.
"""

import math
from collections.abc import Iterable
from dataclasses import replace

import structlog
from sqlalchemy import MetaData, Table

from audit_trail.core.audit.naming import TableNamer
from audit_trail.core.audit.schemas import AuditEntry, OperationType, PageResult
from audit_trail.core.constants import DEFAULT_PAGE_SIZE, VIEW_SCOPE
from audit_trail.core.database.entities import EntityRegistry, entity_name
from audit_trail.core.database.executor import SQLExecutor
from audit_trail.core.errors import AccessDeniedError
from audit_trail.core.permissions.gate import AccessGate
from audit_trail.reader.query import AuditFilter, AuditQuery
from audit_trail.schema.spec import AUDIT_TABLE_SPEC, AuditTableSpec


log = structlog.get_logger()


class TransactionAudits(dict[str, list[AuditEntry]]):
    """Entries of one transaction keyed by entity name.

    Attributes:
        denied: (entity, error) pairs for entities the current user
            may not read; those entities are missing from the mapping
    """

    def __init__(self) -> None:
        super().__init__()
        self.denied: list[tuple[str, AccessDeniedError]] = []


class Reader:
    """Reads audit entries for auditable entities.

    The active operation type filter is instance state: share a reader
    between concurrent users only if each sets its filter and queries
    as one step.
    """

    def __init__(
        self,
        entities: EntityRegistry,
        gate: AccessGate,
        namer: TableNamer,
        executor: SQLExecutor,
        spec: AuditTableSpec = AUDIT_TABLE_SPEC,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self.entities = entities
        self.gate = gate
        self.namer = namer
        self.executor = executor
        self.spec = spec
        self.page_size = page_size
        self._types: frozenset[str] = frozenset()
        self._metadata = MetaData()

    @property
    def type_filter(self) -> frozenset[str]:
        """Operation types entries are currently restricted to; empty means all."""
        return self._types

    def set_type_filter(
        self,
        *types: str | OperationType | Iterable[str | OperationType],
    ) -> "Reader":
        """Replace the active operation type filter.

        Accepts any mix of values and iterables of values. Unknown
        values are dropped silently.

        Example:
            reader.set_type_filter("update", "bogus")  # filter is {"update"}
            reader.set_type_filter()  # all types again
        """
        flattened: list = []
        for value in types:
            if isinstance(value, str):
                flattened.append(value)
            else:
                flattened.extend(value)

        raw = [v.value if isinstance(v, OperationType) else v for v in flattened]
        self._types = frozenset(v for v in raw if v in OperationType.values())
        return self

    def get_entities(self) -> dict[str, str]:
        """Return live table names of all auditable entities, sorted by entity name."""
        return {
            name: self.entities.table_name(name)
            for name in self.entities.entity_names()
            if self.gate.auditability.is_auditable(name)
        }

    def get_entity_table_name(self, entity: str | type) -> str:
        """Return the unqualified live table name of an entity."""
        return self.entities.table_name(entity)

    def get_entity_audit_table_name(self, entity: str | type) -> str:
        """Return the audit table name, qualified with the entity's schema."""
        return self.namer.audit_table_name(
            self.entities.table_name(entity),
            self.entities.schema_name(entity),
        )

    def list_audits(
        self,
        entity: str | type,
        filters: AuditFilter | None = None,
    ) -> list[AuditEntry]:
        """Return entries of an entity, newest first.

        Args:
            entity: Entity name or class
            filters: Object, transaction, date and paging filters

        Returns:
            Matching audit entries

        Raises:
            NotAuditableError: If the entity is not auditable
            AccessDeniedError: If the current user may not view its audits
            InvalidArgumentError: For invalid paging or date range
        """
        query = self._build_query(entity, filters or AuditFilter())
        rows = self.executor.fetch_all(query.statement())
        entries = [AuditEntry.model_validate(dict(row)) for row in rows]

        log.debug(
            "audit_query_executed",
            entity=entity_name(entity),
            table=self.get_entity_audit_table_name(entity),
            result_count=len(entries),
        )
        return entries

    def list_by_transaction(self, transaction_hash: str) -> TransactionAudits:
        """Return the entries of one transaction for every auditable entity.

        Entities the current user may not view are skipped and reported in
        the result's denied list; entities without entries are omitted.
        """
        results = TransactionAudits()
        filters = AuditFilter(transaction_hash=transaction_hash)

        for entity in self.get_entities():
            try:
                entries = self.list_audits(entity, filters)
            except AccessDeniedError as e:
                results.denied.append((entity, e))
                continue

            if entries:
                results[entity] = entries

        return results

    def paginate(
        self,
        entity: str | type,
        filters: AuditFilter | None = None,
        page: int = 1,
        page_size: int | None = None,
    ) -> PageResult:
        """Return one page of entries with navigation data.

        Raises:
            InvalidArgumentError: If page or page_size is below 1
        """
        page_size = self.page_size if page_size is None else page_size
        paged = replace(filters or AuditFilter(), page=page, page_size=page_size)

        results = self.list_audits(entity, paged)
        total = self.count(entity, paged)

        has_previous_page = page > 1
        has_next_page = page * page_size < total

        return PageResult(
            results=results,
            current_page=page,
            has_previous_page=has_previous_page,
            has_next_page=has_next_page,
            previous_page=page - 1 if has_previous_page else None,
            next_page=page + 1 if has_next_page else None,
            total=total,
            num_pages=math.ceil(total / page_size),
            have_to_paginate=total > page_size,
        )

    def count(self, entity: str | type, filters: AuditFilter | None = None) -> int:
        """Return the number of matching entries, ignoring pagination.

        Returns 0 when the store cannot report a count.
        """
        query = self._build_query(entity, filters or AuditFilter())
        result = self.executor.fetch_scalar(query.count_statement())
        return int(result) if result is not None else 0

    def get_one(self, entity: str | type, object_id: str | int) -> list[AuditEntry]:
        """Return every entry recorded for one object, honoring the type filter."""
        self._check_access(entity)

        query = (
            AuditQuery(self._audit_table(entity))
            .filter_by_object_id(object_id)
            .filter_by_types(self._types)
        )
        rows = self.executor.fetch_all(query.statement())
        return [AuditEntry.model_validate(dict(row)) for row in rows]

    def _check_access(self, entity: str | type) -> None:
        self.gate.check_auditable(entity)
        self.gate.check_roles(entity, VIEW_SCOPE)

    def _audit_table(self, entity: str | type) -> Table:
        qualified = self.get_entity_audit_table_name(entity)
        table = self._metadata.tables.get(qualified)
        if table is None:
            schema, name = self.namer.split(qualified)
            table = self.spec.build_table(name, schema, self._metadata)
        return table

    def _build_query(self, entity: str | type, filters: AuditFilter) -> AuditQuery:
        self._check_access(entity)

        query = AuditQuery(self._audit_table(entity)).paginate(filters.page, filters.page_size)

        if filters.strict and self.entities.uses_single_table_inheritance(entity):
            query.filter_by_discriminator(entity_name(entity))

        return (
            query.filter_by_object_id(filters.object_id)
            .filter_by_types(self._types)
            .filter_by_transaction(filters.transaction_hash)
            .filter_by_date(filters.start_date, filters.end_date)
        )
