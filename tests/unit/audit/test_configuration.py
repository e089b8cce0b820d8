"""Unit tests for auditability configuration.

These tests verify:
- Entity, field and role lookups
- Loading entities from AuditMixin markers
- Loading entities from YAML files
"""

from pathlib import Path

import pytest

from audit_trail.core.audit.configuration import AuditConfiguration, EntityOptions
from audit_trail.core.database import EntityRegistry
from audit_trail.core.errors import InvalidArgumentError
from tests.models import Customer, Invoice


pytestmark = pytest.mark.unit


class TestAuditConfiguration:
    """Tests for AuditConfiguration lookups."""

    @pytest.fixture
    def configuration(self) -> AuditConfiguration:
        return AuditConfiguration(
            ignored_columns=["updated_at"],
            entities={
                "Invoice": EntityOptions(
                    ignored_columns=["secret"],
                    roles={"view": ["ROLE_ACCOUNTING", "ROLE_ADMIN"]},
                ),
                "Customer": EntityOptions(enabled=False),
            },
        )

    def test_is_auditable(self, configuration: AuditConfiguration) -> None:
        """Configured entities are auditable by name or class."""
        assert configuration.is_auditable("Invoice")
        assert configuration.is_auditable(Invoice)
        assert configuration.is_auditable("Customer")
        assert not configuration.is_auditable("Note")

    def test_disabled_entity_is_auditable_but_not_audited(
        self, configuration: AuditConfiguration
    ) -> None:
        """A disabled entity keeps its history readable."""
        assert configuration.is_auditable(Customer)
        assert not configuration.is_audited(Customer)

    def test_globally_disabled(self, configuration: AuditConfiguration) -> None:
        """Global switch turns off recording for every entity."""
        configuration.enabled = False
        assert not configuration.is_audited("Invoice")
        assert configuration.is_auditable("Invoice")

    def test_is_audited_field(self, configuration: AuditConfiguration) -> None:
        """Globally and per-entity ignored columns are excluded."""
        assert configuration.is_audited_field("Invoice", "number")
        assert not configuration.is_audited_field("Invoice", "secret")
        assert not configuration.is_audited_field("Invoice", "updated_at")
        assert not configuration.is_audited_field("Note", "body")

    def test_roles_for(self, configuration: AuditConfiguration) -> None:
        """Roles are returned per scope."""
        assert configuration.roles_for("Invoice", "view") == {"ROLE_ACCOUNTING", "ROLE_ADMIN"}

    def test_roles_for_unrestricted(self, configuration: AuditConfiguration) -> None:
        """Missing roles or scopes mean no restriction."""
        assert configuration.roles_for("Invoice", "export") is None
        assert configuration.roles_for("Customer", "view") is None
        assert configuration.roles_for("Note", "view") is None

    def test_add_entities_overrides(self, configuration: AuditConfiguration) -> None:
        """Later definitions win."""
        configuration.add_entities({"Customer": EntityOptions()})
        assert configuration.is_audited("Customer")

    def test_get_entities_returns_copy(self, configuration: AuditConfiguration) -> None:
        """Mutating the result leaves the configuration unchanged."""
        entities = configuration.get_entities()
        entities.pop("Invoice")
        assert configuration.is_auditable("Invoice")


class TestMarkedEntities:
    """Tests for loading entities from model markers."""

    def test_load_marked_entities(self, entities: EntityRegistry) -> None:
        """Classes with a truthy __audit__ marker are picked up."""
        configuration = AuditConfiguration().load_marked_entities(entities)

        assert set(configuration.get_entities()) == {
            "Animal",
            "Cat",
            "Customer",
            "Dog",
            "Invoice",
        }

    def test_marker_dict_becomes_options(self, entities: EntityRegistry) -> None:
        """A dict marker is used as entity options."""
        configuration = AuditConfiguration().load_marked_entities(entities)
        assert configuration.roles_for("Invoice", "view") == {"ROLE_ACCOUNTING"}


class TestYamlConfiguration:
    """Tests for AuditConfiguration.from_yaml."""

    def test_load(self, tmp_path: Path) -> None:
        """Entities, roles and global options are read from the file."""
        path = tmp_path / "audit.yaml"
        path.write_text(
            "ignored_columns: [updated_at]\n"
            "entities:\n"
            "  Invoice:\n"
            "    roles:\n"
            "      view: [ROLE_ACCOUNTING]\n"
            "  Customer: ~\n"
        )

        configuration = AuditConfiguration.from_yaml(path)

        assert configuration.ignored_columns == ["updated_at"]
        assert configuration.roles_for("Invoice", "view") == {"ROLE_ACCOUNTING"}
        assert configuration.is_audited("Customer")

    def test_empty_file(self, tmp_path: Path) -> None:
        """An empty file yields the defaults."""
        path = tmp_path / "audit.yaml"
        path.write_text("")

        configuration = AuditConfiguration.from_yaml(path)

        assert configuration.enabled
        assert configuration.get_entities() == {}

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            AuditConfiguration.from_yaml(tmp_path / "missing.yaml")

    def test_invalid_content(self, tmp_path: Path) -> None:
        """Invalid option types raise InvalidArgumentError."""
        path = tmp_path / "audit.yaml"
        path.write_text("entities:\n  Invoice:\n    enabled: [not, a, bool]\n")

        with pytest.raises(InvalidArgumentError):
            AuditConfiguration.from_yaml(path)
