"""Transactions group the audit entries produced by one flush."""

import hashlib
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import uuid4
from zoneinfo import ZoneInfo

from audit_trail.core.audit.schemas import OperationType
from audit_trail.core.database.entities import entity_name
from audit_trail.core.errors import InvalidArgumentError
from audit_trail.core.permissions.gate import Identity


@dataclass(frozen=True)
class PendingEntry:
    """An audit entry waiting to be written."""

    entity: str
    type: OperationType
    object_id: str
    diffs: dict[str, Any] | None = None
    discriminator: str | None = None
    blame_id: str | None = None
    blame_user: str | None = None
    blame_user_fqdn: str | None = None
    blame_user_firewall: str | None = None
    ip: str | None = None
    created_at: datetime | None = None


class Transaction:
    """Append-only set of entries sharing one transaction hash.

    Closed once persisted; a closed transaction accepts no entries.
    """

    def __init__(self, timezone: str = "UTC", transaction_hash: str | None = None) -> None:
        self.timezone = ZoneInfo(timezone)
        self.transaction_hash = transaction_hash or hashlib.sha1(uuid4().bytes).hexdigest()
        self.entries: list[PendingEntry] = []
        self.closed = False

    def __len__(self) -> int:
        return len(self.entries)

    def add(
        self,
        entity: str | type,
        type: str | OperationType,
        object_id: str | int,
        diffs: dict[str, Any] | None = None,
        blame: Identity | None = None,
        ip: str | None = None,
        discriminator: str | None = None,
        created_at: datetime | None = None,
    ) -> PendingEntry:
        """Append an entry.

        Args:
            entity: Entity name or class the change applies to
            type: Operation type
            object_id: Identifier of the changed object
            diffs: Before/after values or association payload
            blame: User responsible for the change
            ip: Client IP address
            discriminator: Concrete class for single-table inheritance
            created_at: Timestamp, now in the configured timezone by default

        Returns:
            The pending entry

        Raises:
            InvalidArgumentError: If the transaction is closed or the
                operation type is unknown
        """
        if self.closed:
            raise InvalidArgumentError(
                f"Transaction {self.transaction_hash} is already persisted."
            )
        try:
            operation = OperationType(type)
        except ValueError:
            raise InvalidArgumentError(f"Unknown operation type {type!r}.") from None

        entry = PendingEntry(
            entity=entity_name(entity),
            type=operation,
            object_id=str(object_id),
            diffs=diffs,
            discriminator=discriminator,
            blame_id=blame.id if blame else None,
            blame_user=blame.username if blame else None,
            blame_user_fqdn=blame.fqdn if blame else None,
            blame_user_firewall=blame.firewall if blame else None,
            ip=ip,
            created_at=created_at or datetime.now(self.timezone).replace(tzinfo=None),
        )
        self.entries.append(entry)
        return entry

    def close(self) -> None:
        self.closed = True
