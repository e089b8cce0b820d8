"""Pytest configuration and shared fixtures."""

from collections.abc import Generator

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import StaticPool

from audit_trail.config import Settings
from audit_trail.core.audit.configuration import AuditConfiguration
from audit_trail.core.audit.naming import TableNamer
from audit_trail.core.database import Base, EntityRegistry
from audit_trail.provider import AuditProvider
from tests import models  # noqa: F401  registers the mapped test entities


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Create an in-memory SQLite database holding the entity tables.

    Yields:
        Engine shared by every connection of the test
    """
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(_env_file=None, database_url="sqlite://")


@pytest.fixture
def entities() -> EntityRegistry:
    return EntityRegistry(Base)


@pytest.fixture
def configuration(entities: EntityRegistry) -> AuditConfiguration:
    """Configuration built from the AuditMixin markers of the test models."""
    return AuditConfiguration().load_marked_entities(entities)


@pytest.fixture
def namer() -> TableNamer:
    return TableNamer()


@pytest.fixture
def provider(engine: Engine, settings: Settings) -> AuditProvider:
    """Provider with entity and audit tables in the same database."""
    return AuditProvider(Base, settings=settings, entity_engine=engine)
