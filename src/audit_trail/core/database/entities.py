"""Lookup of mapped entities in a SQLAlchemy registry.

Entities are identified by their class name. Anywhere an entity is
accepted, the mapped class itself may be passed instead.
"""

from sqlalchemy.orm import Mapper, registry as Registry

from audit_trail.core.errors import InvalidArgumentError


def entity_name(entity: str | type) -> str:
    """Return the identifier used for an entity class or name."""
    if isinstance(entity, str):
        return entity
    return entity.__name__


class EntityRegistry:
    """Resolves entity identifiers to mappers and tables.

    Accepts either a registry or a declarative base class exposing one.
    """

    def __init__(self, registry: Registry | type) -> None:
        self._registry: Registry = getattr(registry, "registry", registry)

    def mappers(self) -> dict[str, Mapper]:
        """Return every mapper in the registry keyed by entity name."""
        return {m.class_.__name__: m for m in self._registry.mappers}

    def entity_names(self) -> list[str]:
        """Return the names of all mapped entities, sorted."""
        return sorted(self.mappers())

    def mapper(self, entity: str | type) -> Mapper:
        """Return the mapper for an entity.

        Raises:
            InvalidArgumentError: If the entity is not mapped
        """
        name = entity_name(entity)
        try:
            return self.mappers()[name]
        except KeyError:
            raise InvalidArgumentError(
                f"Entity {name} is not mapped.", details={"entity": name}
            ) from None

    def table_name(self, entity: str | type) -> str:
        """Return the unqualified live table name of an entity."""
        return self.mapper(entity).local_table.name

    def schema_name(self, entity: str | type) -> str | None:
        """Return the schema of an entity's live table, if any."""
        return self.mapper(entity).local_table.schema

    def uses_single_table_inheritance(self, entity: str | type) -> bool:
        """Check whether an entity shares its table with other classes.

        True for a subclass mapped onto its parent's table and for the
        root of such a hierarchy.
        """
        mapper = self.mapper(entity)
        if mapper.single:
            return True
        if mapper.polymorphic_on is None:
            return False
        return any(sub.single for sub in mapper.self_and_descendants if sub is not mapper)
