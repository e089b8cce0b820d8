"""Audit query building.

AuditQuery wraps a SELECT over one audit table and adds predicates
one at a time; each filter is a no-op when its value is missing.
"""

from collections.abc import Collection
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Select, Table, func, select

from audit_trail.core.errors import InvalidArgumentError


@dataclass(frozen=True)
class AuditFilter:
    """Request-scoped filters for one reader call.

    Attributes:
        object_id: Only entries for this object
        page: 1-based page number, used with page_size
        page_size: Maximum number of entries returned
        transaction_hash: Only entries written in this transaction
        start_date: Only entries created at or after this instant
        end_date: Only entries created at or before this instant
        strict: Restrict single-table-inheritance entities to their own
            discriminator
    """

    object_id: str | int | None = None
    page: int | None = None
    page_size: int | None = None
    transaction_hash: str | None = None
    start_date: datetime | None = None
    end_date: datetime | None = None
    strict: bool = True


class AuditQuery:
    """Builds the SELECT and COUNT statements for an audit table."""

    def __init__(self, table: Table) -> None:
        self.table = table
        self._criteria: list = []
        self._offset: int | None = None
        self._limit: int | None = None

    def filter_by_object_id(self, object_id: str | int | None) -> "AuditQuery":
        if object_id is not None:
            self._criteria.append(self.table.c.object_id == str(object_id))
        return self

    def filter_by_types(self, types: Collection[str]) -> "AuditQuery":
        """Restrict to operation types; an empty collection means all types."""
        if types:
            self._criteria.append(self.table.c.type.in_(sorted(types)))
        return self

    def filter_by_transaction(self, transaction_hash: str | None) -> "AuditQuery":
        if transaction_hash is not None:
            self._criteria.append(self.table.c.transaction_hash == transaction_hash)
        return self

    def filter_by_discriminator(self, discriminator: str | None) -> "AuditQuery":
        if discriminator is not None:
            self._criteria.append(self.table.c.discriminator == discriminator)
        return self

    def filter_by_date(
        self,
        start_date: datetime | None,
        end_date: datetime | None,
    ) -> "AuditQuery":
        """Restrict to a creation-time range, both bounds inclusive.

        Raises:
            InvalidArgumentError: If end_date is before start_date
        """
        if start_date is not None and end_date is not None and end_date < start_date:
            raise InvalidArgumentError("end_date must be greater than start_date.")

        if start_date is not None:
            self._criteria.append(self.table.c.created_at >= start_date)
        if end_date is not None:
            self._criteria.append(self.table.c.created_at <= end_date)
        return self

    def paginate(self, page: int | None, page_size: int | None) -> "AuditQuery":
        """Limit to one page when a page size is given.

        Raises:
            InvalidArgumentError: If page or page_size is below 1
        """
        if page is not None and page < 1:
            raise InvalidArgumentError("page must be greater or equal than 1.")
        if page_size is not None and page_size < 1:
            raise InvalidArgumentError("page_size must be greater or equal than 1.")

        if page_size is not None:
            self._offset = ((page or 1) - 1) * page_size
            self._limit = page_size
        return self

    def statement(self) -> Select:
        """Return the row query, newest first with id as tie-break."""
        stmt = (
            select(self.table)
            .where(*self._criteria)
            .order_by(self.table.c.created_at.desc(), self.table.c.id.desc())
        )
        if self._limit is not None:
            stmt = stmt.offset(self._offset).limit(self._limit)
        return stmt

    def count_statement(self) -> Select:
        """Return a COUNT(id) over the same predicates, ignoring pagination."""
        return select(func.count(self.table.c.id)).where(*self._criteria)
