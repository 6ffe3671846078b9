"""Migration engine.

Provides:
- Selection of pending / executed units against the current record
- Sequential up and down runs with fail-fast error handling
- Status reporting
- Lifecycle events and progress logging

Units always run one at a time: the next action starts only after the
previous action and its record write have both completed.
"""

import logging
import time
from typing import Any, Iterable, Optional, Union

from .config import MigratorConfig, RerunBehavior
from .errors import ExecutionError, MigrationError, NotFoundError, RerunError, StorageError
from .events import EventEmitter, MigrationEvent, MigrationEventType
from .migration import Migration, MigrationRecord, MigrationStatus
from .resolver import MigrationSource, resolve_migrations
from .storage.base import MigrationStorage

logger = logging.getLogger(__name__)

UP = "up"
DOWN = "down"

_EVENTS = {
    UP: (MigrationEventType.MIGRATING, MigrationEventType.MIGRATED),
    DOWN: (MigrationEventType.REVERTING, MigrationEventType.REVERTED),
}


class Migrator:
    """Runs migrations against a resolved sequence and a storage adapter.

    The migration source is resolved once, at construction. The order of
    the resolved sequence is authoritative: ``up`` runs forward through it,
    ``down`` runs backward, and nothing is ever re-sorted.

    Example::

        migrator = Migrator(
            migrations=GlobSource("*.sql", cwd="migrations", resolve=load_sql),
            storage=JSONStorage("transit.json"),
        )
        await migrator.up()
    """

    def __init__(
        self,
        migrations: MigrationSource,
        storage: MigrationStorage,
        config: Optional[MigratorConfig] = None,
    ):
        """Initialize the migrator.

        Args:
            migrations: Migration source (list, function, or glob source)
            storage: Execution record backend; also the context handed to
                function sources and resolve callbacks
            config: Engine configuration (defaults to MigratorConfig())

        Raises:
            ResolutionError: If the source cannot be resolved
        """
        self.config = config or MigratorConfig()
        self.storage = storage
        self.events = EventEmitter()
        self._migrations = resolve_migrations(migrations, context=storage, config=self.config)
        self._positions = {m.name: i for i, m in enumerate(self._migrations)}

    @property
    def migrations(self) -> list[Migration]:
        """The resolved sequence, in execution order."""
        return list(self._migrations)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def executed(self) -> list[Migration]:
        """Get units present in the execution record, in sequence order."""
        names = await self._executed_names()
        return [m for m in self._migrations if m.name in names]

    async def pending(self) -> list[Migration]:
        """Get units not yet in the execution record, in sequence order."""
        names = await self._executed_names()
        return [m for m in self._migrations if m.name not in names]

    async def status(self) -> list[MigrationRecord]:
        """Get the status of every unit, in sequence order."""
        names = await self._executed_names()

        timestamps: dict[str, Any] = {}
        if hasattr(self.storage, "executed_at"):
            try:
                timestamps = await self.storage.executed_at()
            except Exception as e:
                raise StorageError(f"Failed to read execution timestamps: {e}") from e

        return [
            MigrationRecord(
                name=m.name,
                path=m.path,
                status=MigrationStatus.EXECUTED if m.name in names else MigrationStatus.PENDING,
                executed_at=timestamps.get(m.name),
            )
            for m in self._migrations
        ]

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    async def up(
        self,
        to: Optional[str] = None,
        migrations: Union[str, Iterable[str], None] = None,
        rerun: Optional[RerunBehavior] = None,
    ) -> list[Migration]:
        """Apply migrations.

        Args:
            to: Apply pending units up to and including this one
            migrations: Apply exactly these units (run in sequence order)
            rerun: Overrides the configured policy for selected units that
                are already executed

        Returns:
            Units that were applied, in the order they ran

        Raises:
            NotFoundError: If a named unit is not in the sequence
            RerunError: If a selected unit is already executed under THROW
            MigrationError: Subclasses for any failure while running
        """
        if to is not None and migrations is not None:
            raise ValueError("Pass either 'to' or 'migrations', not both")

        executed = await self._executed_names()

        if migrations is not None:
            selected = self._select_named(migrations, executed, UP, rerun)
        else:
            selected = [m for m in self._migrations if m.name not in executed]
            if to is not None:
                limit = self._position(to)
                selected = [m for m in selected if self._positions[m.name] <= limit]

        return await self._run(selected, UP)

    async def down(
        self,
        to: Union[str, int, None] = None,
        step: Optional[int] = None,
        migrations: Union[str, Iterable[str], None] = None,
        rerun: Optional[RerunBehavior] = None,
    ) -> list[Migration]:
        """Revert migrations, newest first.

        Without arguments only the last executed unit is reverted.

        Args:
            to: Revert executed units back to and including this one;
                ``0`` reverts everything
            step: Revert the last N executed units
            migrations: Revert exactly these units (run in reverse sequence order)
            rerun: Overrides the configured policy for selected units that
                are not executed

        Returns:
            Units that were reverted, in the order they ran

        Raises:
            NotFoundError: If a named unit is not in the sequence
            RerunError: If a selected unit is not executed under THROW
            MigrationError: Subclasses for any failure while running
        """
        if sum(arg is not None for arg in (to, step, migrations)) > 1:
            raise ValueError("Pass only one of 'to', 'step' or 'migrations'")

        executed_names = await self._executed_names()

        if migrations is not None:
            selected = self._select_named(migrations, executed_names, DOWN, rerun)
        else:
            selected = [m for m in self._migrations if m.name in executed_names]
            if isinstance(to, str):
                limit = self._position(to)
                selected = [m for m in selected if self._positions[m.name] >= limit]
            elif to is not None:
                if isinstance(to, bool) or to != 0:
                    raise ValueError(f"'to' must be a migration name or 0, got {to!r}")
            elif step is not None:
                if isinstance(step, bool) or not isinstance(step, int) or step < 1:
                    raise ValueError(f"'step' must be a positive integer, got {step!r}")
                selected = selected[-step:]
            else:
                selected = selected[-1:]

        return await self._run(list(reversed(selected)), DOWN)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _log(self, message: str) -> None:
        if self.config.log is not None:
            self.config.log(message)

    def _position(self, name: str) -> int:
        if name not in self._positions:
            raise NotFoundError(f"Unable to find migration: {name}", migration=name)
        return self._positions[name]

    async def _executed_names(self) -> set[str]:
        try:
            names = await self.storage.executed()
        except Exception as e:
            raise StorageError(f"Failed to read execution record: {e}") from e

        names = set(names)
        unknown = names - self._positions.keys()
        if unknown:
            logger.debug(f"Ignoring recorded migrations not in sequence: {sorted(unknown)}")
        return names

    def _select_named(
        self,
        names: Union[str, Iterable[str]],
        executed: set[str],
        direction: str,
        rerun: Optional[RerunBehavior],
    ) -> list[Migration]:
        if isinstance(names, str):
            names = [names]
        wanted = set(names)
        for name in wanted:
            self._position(name)

        policy = RerunBehavior(rerun) if rerun is not None else self.config.rerun
        selected = [m for m in self._migrations if m.name in wanted]

        if direction == UP:
            done = [m.name for m in selected if m.name in executed]
            state = "already executed"
        else:
            done = [m.name for m in selected if m.name not in executed]
            state = "not executed"

        if done:
            if policy == RerunBehavior.THROW:
                raise RerunError(
                    f"Migration(s) {state}: {', '.join(done)}",
                    migration=done[0],
                    direction=direction,
                )
            if policy == RerunBehavior.SKIP:
                logger.info(f"Skipping migration(s) {state}: {', '.join(done)}")
                selected = [m for m in selected if m.name not in done]

        return selected

    async def _run(self, selected: list[Migration], direction: str) -> list[Migration]:
        if not selected:
            logger.info(f"No migrations to run ({direction})")
            return []

        start_event, end_event = _EVENTS[direction]
        committed: list[str] = []

        for migration in selected:
            self.events.emit(MigrationEvent(start_event, migration.name, migration.path))
            self._log(f"== {migration.name}: {start_event.value} =======")

            start_time = time.time()
            try:
                if direction == UP:
                    await migration.run_up(*self.config.params)
                else:
                    await migration.run_down(*self.config.params)
            except MigrationError as e:
                e.migration = e.migration or migration.name
                e.direction = e.direction or direction
                e.committed = list(committed)
                logger.error(f"Failed to run {direction} for migration {migration.name}: {e.message}")
                raise
            except Exception as e:
                logger.error(f"Failed to run {direction} for migration {migration.name}: {e}")
                raise ExecutionError(
                    f"Migration {migration.name} failed: {e}",
                    cause=e,
                    migration=migration.name,
                    direction=direction,
                    committed=committed,
                ) from e
            duration_ms = int((time.time() - start_time) * 1000)

            await self._record(migration, direction, committed)
            committed.append(migration.name)

            self._log(f"== {migration.name}: {end_event.value} ({duration_ms / 1000:.3f}s)")
            self.events.emit(
                MigrationEvent(end_event, migration.name, migration.path, duration_ms=duration_ms)
            )

        return selected

    async def _record(self, migration: Migration, direction: str, committed: list[str]) -> None:
        try:
            if direction == UP:
                await self.storage.log_migration(migration.name)
            else:
                await self.storage.unlog_migration(migration.name)
        except Exception as e:
            logger.error(f"Failed to record {direction} for migration {migration.name}: {e}")
            raise StorageError(
                f"Failed to record migration {migration.name}: {e}",
                migration=migration.name,
                direction=direction,
                committed=committed,
            ) from e
