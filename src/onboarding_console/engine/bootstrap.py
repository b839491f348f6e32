"""Selecting and building a configured process engine."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from importlib import metadata

from onboarding_console.core.config import DatabaseConfig
from onboarding_console.engine.delegates import JavaDelegate
from onboarding_console.engine.service import ProcessEngine
from onboarding_console.engine.store.base import ProcessStore
from onboarding_console.engine.store.memory import InMemoryProcessStore

logger = logging.getLogger(__name__)

SUPPORTED_DRIVERS = frozenset({"postgresql"})


class EngineType(str, Enum):
    MEMORY = "mem"
    POSTGRES = "pg"


@dataclass
class ProcessEngineConfiguration:
    """Everything needed to build a process engine.

    Creating a configuration has no side effects; no connection is opened
    until `build_process_engine()` is called.
    """

    engine_type: EngineType
    database_url: str | None = None
    database_username: str = ""
    database_password: str = ""
    database_driver: str = "postgresql"
    schema_update: bool = True
    engine_name: str = "default"
    delegates: dict[str, JavaDelegate] = field(default_factory=dict)

    @property
    def requires_connection(self) -> bool:
        return self.engine_type is not EngineType.MEMORY

    def register_delegate(self, name: str, delegate: JavaDelegate) -> "ProcessEngineConfiguration":
        """Make `delegate` callable from script tasks under `name`."""
        self.delegates[name] = delegate
        return self

    def create_store(self) -> ProcessStore:
        if self.engine_type is EngineType.MEMORY:
            return InMemoryProcessStore()

        if self.database_driver not in SUPPORTED_DRIVERS:
            raise ValueError(f"Unsupported database driver: {self.database_driver!r}")

        from onboarding_console.engine.store.postgres import PostgresProcessStore

        return PostgresProcessStore(
            self.database_url or "",
            username=self.database_username,
            password=self.database_password,
        )

    def build_process_engine(self) -> ProcessEngine:
        from onboarding_console.engine.spiff_engine import SpiffProcessEngine

        store = self.create_store()
        if self.schema_update:
            store.migrate()

        engine = SpiffProcessEngine(store, delegates=self.delegates, name=self.engine_name)
        logger.info(
            f"ProcessEngine [{engine.name}] Version: [{engine.VERSION}] "
            f"SpiffWorkflow: [{metadata.version('SpiffWorkflow')}]",
            extra={"engine_type": self.engine_type.value},
        )
        return engine


def get_process_engine_configuration(
    engine_type: str | EngineType,
    database: DatabaseConfig | None = None,
) -> ProcessEngineConfiguration:
    """Return the configuration for a named engine type.

    Args:
        engine_type: "mem" for an ephemeral in-memory store, "pg" for PostgreSQL.
        database: Connection parameters used by "pg"; loaded from the
            environment when omitted.

    Returns:
        An unbuilt engine configuration.

    Raises:
        ValueError: If the engine type or the database driver is not supported.
    """
    try:
        kind = EngineType(engine_type)
    except ValueError:
        raise ValueError(f"Unsupported engine type: {engine_type!r}") from None

    if kind is EngineType.MEMORY:
        return ProcessEngineConfiguration(engine_type=kind)

    database = database or DatabaseConfig()
    if database.driver not in SUPPORTED_DRIVERS:
        raise ValueError(f"Unsupported database driver: {database.driver!r}")

    return ProcessEngineConfiguration(
        engine_type=kind,
        database_url=database.url,
        database_username=database.username,
        database_password=database.password,
        database_driver=database.driver,
    )
