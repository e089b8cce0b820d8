"""Access checks performed before audits are read.

This module decides whether an entity may be queried at all and
whether the current user holds one of the roles configured for it.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import structlog

from audit_trail.core.constants import VIEW_SCOPE
from audit_trail.core.database.entities import entity_name
from audit_trail.core.errors import AccessDeniedError, NotAuditableError


if TYPE_CHECKING:
    from audit_trail.core.audit.configuration import AuditabilityPolicy


logger = structlog.get_logger()


@dataclass(frozen=True)
class Identity:
    """The user on whose behalf audits are read or written."""

    id: str
    username: str
    fqdn: str | None = None
    firewall: str | None = None


class UserProvider(Protocol):
    """Supplies the current user, or None when nobody is identified."""

    def current_user(self) -> Identity | None: ...


class AccessPolicy(Protocol):
    """Supplies the roles granted to the current user."""

    def current_user_roles(self) -> set[str] | None: ...


class AccessGate:
    """Evaluates auditability and role checks for the reader.

    Access is granted when no user provider or access policy is
    configured, when nobody is identified or the policy reports no
    roles at all, and when the entity has no roles configured for the
    requested scope.
    """

    def __init__(
        self,
        auditability: "AuditabilityPolicy",
        access_policy: AccessPolicy | None = None,
        user_provider: UserProvider | None = None,
    ) -> None:
        self.auditability = auditability
        self.access_policy = access_policy
        self.user_provider = user_provider

    def check_auditable(self, entity: str | type) -> None:
        """Raise NotAuditableError if the entity is not auditable."""
        if not self.auditability.is_auditable(entity):
            raise NotAuditableError(entity=entity_name(entity))

    def is_granted(self, entity: str | type, scope: str = VIEW_SCOPE) -> bool:
        """Check if the current user may access an entity's audits.

        Args:
            entity: Entity name or class
            scope: Access scope, "view" for reading

        Returns:
            True if access is granted
        """
        if self.user_provider is None or self.access_policy is None:
            return True

        if self.user_provider.current_user() is None:
            return True

        granted = self.access_policy.current_user_roles()
        if granted is None:
            return True

        required = self.auditability.roles_for(entity, scope)
        if required is None:
            return True

        return bool(required & granted)

    def check_roles(self, entity: str | type, scope: str = VIEW_SCOPE) -> None:
        """Raise AccessDeniedError if the current user lacks the required roles."""
        if not self.is_granted(entity, scope):
            logger.info("audit_access_denied", entity=entity_name(entity), scope=scope)
            raise AccessDeniedError(entity=entity_name(entity), scope=scope)
