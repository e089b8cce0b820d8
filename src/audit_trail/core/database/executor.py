"""SQL execution against the audit storage database.

The reader and sync manager only talk to the database through the
SQLExecutor protocol so that tests and callers can substitute their own.
"""

from collections.abc import Sequence
from typing import Any, Protocol

import structlog
from sqlalchemy import Engine, RowMapping
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import Executable

from audit_trail.core.errors import StoreError


log = structlog.get_logger()


class SQLExecutor(Protocol):
    """Executes statements and returns rows."""

    def fetch_all(self, statement: Executable) -> Sequence[RowMapping]: ...

    def fetch_scalar(self, statement: Executable) -> Any: ...

    def execute(self, statement: str | Executable) -> None: ...

    def execute_batch(self, statements: Sequence[Executable]) -> None: ...


class EngineExecutor:
    """SQLExecutor backed by a SQLAlchemy engine.

    Every call checks out its own connection. Database failures are
    re-raised as StoreError with the original exception chained.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def fetch_all(self, statement: Executable) -> Sequence[RowMapping]:
        """Run a query and return its rows as mappings."""
        try:
            with self.engine.connect() as conn:
                return conn.execute(statement).mappings().all()
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    def fetch_scalar(self, statement: Executable) -> Any:
        """Run a query and return the first column of the first row."""
        try:
            with self.engine.connect() as conn:
                return conn.execute(statement).scalar()
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    def execute(self, statement: str | Executable) -> None:
        """Run a single statement in its own transaction.

        Raw strings are passed to the driver untouched so DDL is not
        parsed for bind parameters.
        """
        try:
            with self.engine.begin() as conn:
                if isinstance(statement, str):
                    conn.exec_driver_sql(statement)
                else:
                    conn.execute(statement)
        except SQLAlchemyError as e:
            raise StoreError(str(e), details={"statement": str(statement)}) from e

    def execute_batch(self, statements: Sequence[Executable]) -> None:
        """Run several statements in one transaction."""
        try:
            with self.engine.begin() as conn:
                for statement in statements:
                    conn.execute(statement)
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e
        log.debug("batch_executed", statement_count=len(statements))
