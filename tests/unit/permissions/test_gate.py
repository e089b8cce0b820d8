"""Unit tests for the audit access gate.

These tests verify:
- Auditability checks
- Role evaluation per scope
- Permissive defaults when no user or policy is configured
"""

import pytest

from audit_trail.core.audit.configuration import AuditConfiguration, EntityOptions
from audit_trail.core.errors import AccessDeniedError, NotAuditableError
from audit_trail.core.permissions import AccessGate, Identity


pytestmark = pytest.mark.unit


class StaticUserProvider:
    def __init__(self, user: Identity | None) -> None:
        self.user = user

    def current_user(self) -> Identity | None:
        return self.user


class StaticAccessPolicy:
    def __init__(self, roles: set[str] | None) -> None:
        self.roles = roles

    def current_user_roles(self) -> set[str] | None:
        return self.roles


ALICE = Identity(id="1", username="alice")


class TestAccessGate:
    """Tests for AccessGate."""

    @pytest.fixture
    def configuration(self) -> AuditConfiguration:
        return AuditConfiguration(
            entities={
                "Invoice": EntityOptions(roles={"view": ["ROLE_ACCOUNTING"]}),
                "Customer": EntityOptions(),
            }
        )

    def gate(
        self,
        configuration: AuditConfiguration,
        roles: set[str] | None = None,
        user: Identity | None = ALICE,
    ) -> AccessGate:
        return AccessGate(configuration, StaticAccessPolicy(roles), StaticUserProvider(user))

    def test_check_auditable(self, configuration: AuditConfiguration) -> None:
        """Non-auditable entities are rejected."""
        gate = AccessGate(configuration)

        gate.check_auditable("Invoice")
        with pytest.raises(NotAuditableError) as exc_info:
            gate.check_auditable("Note")

        assert exc_info.value.details["entity"] == "Note"
        assert exc_info.value.error_code == "not_auditable"

    def test_granted_with_matching_role(self, configuration: AuditConfiguration) -> None:
        gate = self.gate(configuration, roles={"ROLE_USER", "ROLE_ACCOUNTING"})
        assert gate.is_granted("Invoice", "view")

    def test_denied_without_matching_role(self, configuration: AuditConfiguration) -> None:
        """A user lacking every configured role is denied."""
        gate = self.gate(configuration, roles={"ROLE_USER"})

        assert not gate.is_granted("Invoice", "view")
        with pytest.raises(AccessDeniedError) as exc_info:
            gate.check_roles("Invoice")

        assert exc_info.value.details == {"entity": "Invoice", "scope": "view"}

    def test_unconfigured_scope_is_granted(self, configuration: AuditConfiguration) -> None:
        """Roles only restrict the scopes they are configured for."""
        gate = self.gate(configuration, roles={"ROLE_USER"})
        assert gate.is_granted("Invoice", "export")

    def test_entity_without_roles_is_granted(self, configuration: AuditConfiguration) -> None:
        gate = self.gate(configuration, roles={"ROLE_USER"})
        assert gate.is_granted("Customer", "view")

    def test_no_policy_configured(self, configuration: AuditConfiguration) -> None:
        """Without a user provider or access policy everything is granted."""
        assert AccessGate(configuration).is_granted("Invoice")
        assert AccessGate(configuration, StaticAccessPolicy(set())).is_granted("Invoice")

    def test_anonymous_user(self, configuration: AuditConfiguration) -> None:
        """Nobody identified means no restriction."""
        gate = self.gate(configuration, roles=set(), user=None)
        assert gate.is_granted("Invoice")

    def test_policy_without_roles(self, configuration: AuditConfiguration) -> None:
        """A policy reporting no role information grants access."""
        gate = self.gate(configuration, roles=None)
        assert gate.is_granted("Invoice")
