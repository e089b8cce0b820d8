"""Unit tests for settings."""

import pytest
from pydantic import ValidationError

from audit_trail.config import Settings


pytestmark = pytest.mark.unit


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)

        assert settings.table_prefix == ""
        assert settings.table_suffix == "_audit"
        assert settings.timezone == "UTC"
        assert settings.page_size == 50
        assert settings.enabled

    def test_audit_database_defaults_to_entity_database(self) -> None:
        settings = Settings(_env_file=None, database_url="sqlite:///app.db")
        assert settings.audit_database_url == "sqlite:///app.db"

    def test_separate_audit_database(self) -> None:
        settings = Settings(
            _env_file=None,
            database_url="sqlite:///app.db",
            storage_database_url="sqlite:///audit.db",
        )
        assert settings.audit_database_url == "sqlite:///audit.db"

    def test_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Settings are read from AUDIT_ prefixed variables."""
        monkeypatch.setenv("AUDIT_TABLE_PREFIX", "audit_")
        monkeypatch.setenv("AUDIT_TABLE_SUFFIX", "")
        monkeypatch.setenv("AUDIT_PAGE_SIZE", "25")

        settings = Settings(_env_file=None)

        assert settings.table_prefix == "audit_"
        assert settings.table_suffix == ""
        assert settings.page_size == 25

    @pytest.mark.parametrize("field", ["table_prefix", "table_suffix"])
    def test_dotted_affix_rejected(self, field: str) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: "audit."})

    def test_page_size_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, page_size=0)
