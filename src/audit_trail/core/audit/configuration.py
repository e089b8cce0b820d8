"""Auditability configuration.

Decides which entities and fields are audited and which roles may
read their audits. Entities come from explicit settings, a YAML file,
or mapped classes carrying the AuditMixin marker.
"""

from pathlib import Path
from typing import Any, Protocol

import structlog
import yaml
from pydantic import BaseModel, Field, ValidationError

from audit_trail.core.database.entities import EntityRegistry, entity_name
from audit_trail.core.errors import InvalidArgumentError


log = structlog.get_logger()


class EntityOptions(BaseModel):
    """Per-entity audit options.

    Attributes:
        enabled: Whether changes are currently recorded
        ignored_columns: Fields excluded from diffs
        roles: Roles required per scope, e.g. {"view": ["ROLE_ADMIN"]}
    """

    enabled: bool = True
    ignored_columns: list[str] = Field(default_factory=list)
    roles: dict[str, list[str]] | None = None


class AuditabilityPolicy(Protocol):
    """Decides which entities are auditable and who may read them."""

    def is_auditable(self, entity: str | type) -> bool: ...

    def get_entities(self) -> dict[str, EntityOptions]: ...

    def roles_for(self, entity: str | type, scope: str) -> set[str] | None: ...


class AuditConfiguration(BaseModel):
    """Default AuditabilityPolicy backed by an entity options mapping."""

    enabled: bool = True
    ignored_columns: list[str] = Field(default_factory=list)
    entities: dict[str, EntityOptions] = Field(default_factory=dict)

    def get_entities(self) -> dict[str, EntityOptions]:
        """Return configured entities keyed by name."""
        return dict(self.entities)

    def is_auditable(self, entity: str | type) -> bool:
        """Check if an entity is part of the audited entities."""
        return entity_name(entity) in self.entities

    def is_audited(self, entity: str | type) -> bool:
        """Check if changes to an entity are currently recorded."""
        if not self.enabled:
            return False

        options = self.entities.get(entity_name(entity))
        if options is None:
            return False

        return options.enabled

    def is_audited_field(self, entity: str | type, field: str) -> bool:
        """Check if a field of an entity is recorded in diffs."""
        if field in self.ignored_columns:
            return False

        if not self.is_audited(entity):
            return False

        return field not in self.entities[entity_name(entity)].ignored_columns

    def roles_for(self, entity: str | type, scope: str) -> set[str] | None:
        """Return the roles allowed to access an entity's audits in a scope.

        Returns:
            Set of role names, or None when no roles are configured for
            the entity or the scope (meaning access is not restricted)
        """
        options = self.entities.get(entity_name(entity))
        if options is None or options.roles is None:
            return None

        roles = options.roles.get(scope)
        if roles is None:
            return None

        return set(roles)

    def add_entities(self, entities: dict[str, EntityOptions]) -> "AuditConfiguration":
        """Merge entity options, later definitions winning."""
        self.entities = {**self.entities, **entities}
        return self

    def load_marked_entities(self, registry: EntityRegistry) -> "AuditConfiguration":
        """Add every mapped class whose __audit__ marker is set.

        Args:
            registry: Registry of mapped entities to scan

        Returns:
            This configuration
        """
        marked: dict[str, EntityOptions] = {}
        for name, mapper in registry.mappers().items():
            marker = getattr(mapper.class_, "__audit__", False)
            if not marker:
                continue
            options = marker if isinstance(marker, dict) else {}
            marked[name] = EntityOptions(**options)

        log.debug("audit_entities_loaded", source="markers", count=len(marked))
        return self.add_entities(marked)

    @classmethod
    def from_yaml(cls, path: Path) -> "AuditConfiguration":
        """Load configuration from a YAML file.

        The file holds the model fields; an entity mapped to null gets
        default options.

        Example:
            entities:
              Invoice:
                roles:
                  view: [ROLE_ACCOUNTING]
              Customer: ~

        Raises:
            FileNotFoundError: If the file doesn't exist
            InvalidArgumentError: If the file content is invalid
        """
        if not path.exists():
            raise FileNotFoundError(f"Audit configuration '{path}' not found")

        with path.open() as f:
            data: dict[str, Any] = yaml.safe_load(f) or {}

        entities = data.get("entities") or {}
        data["entities"] = {name: options or {} for name, options in entities.items()}

        try:
            configuration = cls(**data)
        except ValidationError as e:
            raise InvalidArgumentError(f"Invalid audit configuration: {e}") from e

        log.debug("audit_entities_loaded", source=str(path), count=len(configuration.entities))
        return configuration
