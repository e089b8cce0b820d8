"""Package configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from audit_trail.core.constants import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_TABLE_PREFIX,
    DEFAULT_TABLE_SUFFIX,
)


class Settings(BaseSettings):
    """Audit settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="AUDIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///audit.db"
    storage_database_url: str | None = None
    database_echo: bool = False

    # Audit tables
    enabled: bool = True
    table_prefix: str = DEFAULT_TABLE_PREFIX
    table_suffix: str = DEFAULT_TABLE_SUFFIX
    timezone: str = "UTC"
    ignored_columns: list[str] = []
    entities_file: Path | None = None

    # Reader
    page_size: int = DEFAULT_PAGE_SIZE

    # Observability
    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("table_prefix", "table_suffix")
    @classmethod
    def validate_affix(cls, v: str) -> str:
        """Reject affixes that would produce schema-qualified names.

        Args:
            v: The prefix or suffix value

        Returns:
            The validated value

        Raises:
            ValueError: If the value contains a dot
        """
        if "." in v:
            raise ValueError("Audit table prefix and suffix must not contain '.'")
        return v

    @field_validator("page_size")
    @classmethod
    def validate_page_size(cls, v: int) -> int:
        """Ensure the default page size is usable."""
        if v < 1:
            raise ValueError("AUDIT_PAGE_SIZE must be greater or equal than 1")
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def audit_database_url(self) -> str:
        """Database holding the audit tables, the entity database unless overridden."""
        return self.storage_database_url or self.database_url


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()
