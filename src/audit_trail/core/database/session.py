"""Engine creation for entity and audit storage databases."""

from sqlalchemy import Engine, create_engine

from audit_trail.config import Settings


def create_entity_engine(settings: Settings) -> Engine:
    """Create the engine for the database holding audited entities."""
    return create_engine(
        settings.database_url,
        echo=settings.database_echo,
        pool_pre_ping=True,
    )


def create_storage_engine(settings: Settings, entity_engine: Engine | None = None) -> Engine:
    """Create the engine for the database holding audit tables.

    Reuses the entity engine when both live in the same database.

    Args:
        settings: Settings with database URLs
        entity_engine: Already created entity engine, if any

    Returns:
        Engine bound to the audit storage database
    """
    if entity_engine is not None and settings.storage_database_url is None:
        return entity_engine
    return create_engine(
        settings.audit_database_url,
        echo=settings.database_echo,
        pool_pre_ping=True,
    )
