"""Audit provider.

Assembles configuration, engines, reader, writer and schema manager
for one SQLAlchemy registry of mapped entities.
"""

import structlog
from sqlalchemy import Engine
from sqlalchemy.orm import registry as Registry

from audit_trail.config import Settings, get_settings
from audit_trail.core.audit.configuration import AuditConfiguration
from audit_trail.core.audit.naming import TableNamer
from audit_trail.core.audit.transaction import Transaction
from audit_trail.core.audit.writer import AuditWriter
from audit_trail.core.database import (
    EngineExecutor,
    EntityRegistry,
    create_entity_engine,
    create_storage_engine,
)
from audit_trail.core.permissions import AccessGate, AccessPolicy, UserProvider
from audit_trail.reader import Reader
from audit_trail.schema import SchemaIntrospector, SchemaSyncManager


log = structlog.get_logger()


class AuditProvider:
    """Entry point wiring every audit service from settings.

    Example:
        provider = AuditProvider(Base)
        provider.schema_manager.apply()
        entries = provider.reader.list_audits("Invoice")
    """

    def __init__(
        self,
        registry: Registry | type,
        settings: Settings | None = None,
        configuration: AuditConfiguration | None = None,
        access_policy: AccessPolicy | None = None,
        user_provider: UserProvider | None = None,
        entity_engine: Engine | None = None,
        storage_engine: Engine | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            registry: SQLAlchemy registry or declarative base of audited models
            settings: Settings, loaded from the environment by default
            configuration: Auditability configuration, built from settings
                and AuditMixin markers by default
            access_policy: Supplies the current user's roles
            user_provider: Supplies the current user
            entity_engine: Engine of the entity database
            storage_engine: Engine of the audit database
        """
        self.settings = settings or get_settings()
        self.entities = EntityRegistry(registry)
        self.configuration = configuration or self._load_configuration()

        self.entity_engine = entity_engine or create_entity_engine(self.settings)
        self.storage_engine = storage_engine or create_storage_engine(
            self.settings, self.entity_engine
        )

        self.namer = TableNamer(self.settings.table_prefix, self.settings.table_suffix)
        self.executor = EngineExecutor(self.storage_engine)
        self.gate = AccessGate(self.configuration, access_policy, user_provider)

        self.reader = Reader(
            self.entities,
            self.gate,
            self.namer,
            self.executor,
            page_size=self.settings.page_size,
        )
        self.writer = AuditWriter(self.entities, self.configuration, self.namer, self.executor)
        self.schema_manager = SchemaSyncManager(
            self.entities,
            self.configuration,
            self.namer,
            source=SchemaIntrospector(self.entity_engine),
            storage=SchemaIntrospector(self.storage_engine),
            executor=self.executor,
        )

    def _load_configuration(self) -> AuditConfiguration:
        if self.settings.entities_file is not None:
            configuration = AuditConfiguration.from_yaml(self.settings.entities_file)
        else:
            configuration = AuditConfiguration()

        configuration.enabled = self.settings.enabled
        configuration.ignored_columns = [
            *configuration.ignored_columns,
            *self.settings.ignored_columns,
        ]
        return configuration.load_marked_entities(self.entities)

    def is_auditable(self, entity: str | type) -> bool:
        return self.configuration.is_auditable(entity)

    def is_audited(self, entity: str | type) -> bool:
        return self.configuration.is_audited(entity)

    def is_audited_field(self, entity: str | type, field: str) -> bool:
        return self.configuration.is_audited_field(entity, field)

    def new_transaction(self) -> Transaction:
        """Start a transaction stamped in the configured timezone."""
        return Transaction(timezone=self.settings.timezone)

    def persist(self, transaction: Transaction) -> int:
        """Write a transaction unless auditing is globally disabled.

        Returns:
            Number of entries written
        """
        if not self.configuration.enabled:
            log.debug("audit_disabled_skip", transaction_hash=transaction.transaction_hash)
            transaction.close()
            return 0
        return self.writer.persist(transaction)
