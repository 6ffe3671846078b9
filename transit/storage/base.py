"""Storage interface protocol for execution records.

Defines the contract storage backends must implement. The engine only
ever talks to this protocol, so backends can be swapped freely.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class MigrationStorage(Protocol):
    """Protocol for execution record storage.

    Each operation must apply atomically from the caller's perspective.
    Backends do not coordinate concurrent writers.
    """

    async def log_migration(self, name: str) -> None:
        """Record a migration as executed."""
        ...

    async def unlog_migration(self, name: str) -> None:
        """Remove a migration from the execution record."""
        ...

    async def executed(self) -> list[str]:
        """Get names of executed migrations, oldest first."""
        ...
