"""Exception hierarchy for the migration engine.

Every error raised by transit derives from MigrationError and carries
enough context to tell which unit failed, in which direction, and which
units were already committed to the execution record during the call.
"""

from typing import Optional


class MigrationError(Exception):
    """Base exception for migration errors."""

    def __init__(
        self,
        message: str,
        migration: Optional[str] = None,
        direction: Optional[str] = None,
        committed: Optional[list[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.migration = migration
        self.direction = direction
        self.committed: list[str] = list(committed or [])

    def __str__(self) -> str:
        parts = [self.message]
        if self.direction and self.migration:
            parts.append(f"(while running {self.direction} for {self.migration})")
        if self.committed:
            parts.append(f"[committed: {', '.join(self.committed)}]")
        return " ".join(parts)


class ResolutionError(MigrationError):
    """Migration source is malformed, has duplicate names, or a definition could not be obtained."""


class MethodNotFoundError(MigrationError):
    """The migration definition has no method for the requested direction."""


class ContractViolationError(MigrationError):
    """A migration action (or its wrapper) did not return an awaitable."""


class NotFoundError(MigrationError):
    """A named target is not part of the resolved migration sequence."""


class StorageError(MigrationError):
    """The storage adapter failed to read or write the execution record."""


class RerunError(MigrationError):
    """An explicitly selected migration is already in the requested state."""


class ExecutionError(MigrationError):
    """A migration action raised. The original exception is kept in ``cause``."""

    def __init__(
        self,
        message: str,
        cause: BaseException,
        migration: Optional[str] = None,
        direction: Optional[str] = None,
        committed: Optional[list[str]] = None,
    ):
        super().__init__(message, migration=migration, direction=direction, committed=committed)
        self.cause = cause
