"""Migration orchestration for any stateful resource.

Provides:
- Resolution of migration sources (explicit lists, functions, file globs)
- Sequential up/down runs tracked in a pluggable execution record
- Storage adapters (in-memory, JSON file)
- Lifecycle events and a command-line interface

Usage:
    from transit import GlobSource, JSONStorage, Migrator

    migrator = Migrator(
        migrations=GlobSource("*.sql", cwd="migrations", resolve=load_sql),
        storage=JSONStorage("transit.json"),
    )

    # Apply all pending
    await migrator.up()

    # Revert the last migration
    await migrator.down()

CLI Usage:
    python -m transit up
    python -m transit down --step 1
    python -m transit status
"""

from .config import MigratorConfig, RerunBehavior, default_name_formatter
from .errors import (
    ContractViolationError,
    ExecutionError,
    MethodNotFoundError,
    MigrationError,
    NotFoundError,
    RerunError,
    ResolutionError,
    StorageError,
)
from .events import EventEmitter, MigrationEvent, MigrationEventType
from .migration import (
    BaseMigration,
    Migration,
    MigrationParams,
    MigrationRecord,
    MigrationStatus,
)
from .migrator import Migrator
from .resolver import GlobSource, resolve_migrations
from .storage import JSONStorage, MemoryStorage, MigrationStorage

__all__ = [
    # Configuration
    "MigratorConfig",
    "RerunBehavior",
    "default_name_formatter",
    # Errors
    "MigrationError",
    "ResolutionError",
    "MethodNotFoundError",
    "ContractViolationError",
    "NotFoundError",
    "StorageError",
    "ExecutionError",
    "RerunError",
    # Events
    "EventEmitter",
    "MigrationEvent",
    "MigrationEventType",
    # Units
    "BaseMigration",
    "Migration",
    "MigrationParams",
    "MigrationRecord",
    "MigrationStatus",
    # Engine
    "Migrator",
    "GlobSource",
    "resolve_migrations",
    # Storage
    "MigrationStorage",
    "JSONStorage",
    "MemoryStorage",
]
