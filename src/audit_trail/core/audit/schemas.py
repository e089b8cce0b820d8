"""Pydantic schemas for audit entries and paginated results."""

import json
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class OperationType(str, Enum):
    """Kinds of recorded operations."""

    INSERT = "insert"
    UPDATE = "update"
    REMOVE = "remove"
    ASSOCIATE = "associate"
    DISSOCIATE = "dissociate"

    @classmethod
    def values(cls) -> frozenset[str]:
        """Return the raw string value of every operation type."""
        return frozenset(member.value for member in cls)


class AuditEntry(BaseModel):
    """One recorded operation read back from an audit table."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    type: str
    object_id: str | None = None
    discriminator: str | None = None
    transaction_hash: str | None = None
    diffs: Any = None
    blame_id: str | None = None
    blame_user: str | None = None
    blame_user_fqdn: str | None = None
    blame_user_firewall: str | None = None
    ip: str | None = None
    created_at: datetime

    def get_diffs(self) -> dict[str, Any]:
        """Return the diff payload as a dict.

        Payloads stored as JSON text are decoded; a missing payload
        yields an empty dict.
        """
        if self.diffs is None:
            return {}
        if isinstance(self.diffs, str | bytes):
            return json.loads(self.diffs)
        return dict(self.diffs)


class PageResult(BaseModel):
    """One page of audit entries plus navigation data."""

    results: list[AuditEntry]
    current_page: int
    has_previous_page: bool
    has_next_page: bool
    previous_page: int | None = None
    next_page: int | None = None
    total: int = Field(..., ge=0)
    num_pages: int
    have_to_paginate: bool
