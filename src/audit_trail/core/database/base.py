"""SQLAlchemy declarative base and audit marker mixin."""

from typing import Any

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for audited SQLAlchemy models."""

    pass


class AuditMixin:
    """Marker mixin to flag a model as auditable.

    AuditConfiguration.load_marked_entities() picks up every mapped class
    whose __audit__ attribute is truthy. A dict value is used as the
    entity options (enabled, ignored_columns, roles).

    Example:
        class Invoice(Base, AuditMixin):
            __tablename__ = "invoice"
            __audit__ = {"roles": {"view": ["ROLE_ACCOUNTING"]}}
            id: Mapped[int] = mapped_column(primary_key=True)
    """

    # Marker attribute checked by the configuration loader
    __audit__: bool | dict[str, Any] = True
