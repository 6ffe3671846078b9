"""Migration units.

Defines:
- Migration: an immutable, named unit with lazily obtained up/down actions
- BaseMigration: optional base class for class-based migration definitions
- MigrationParams: context passed to per-file resolve callbacks
- MigrationStatus / MigrationRecord: status reporting
"""

import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from .config import MigratorConfig
from .errors import (
    ContractViolationError,
    ExecutionError,
    MethodNotFoundError,
    MigrationError,
    ResolutionError,
)
from .providers import get_method, normalize_definition

logger = logging.getLogger(__name__)


class MigrationStatus(str, Enum):
    """Status of a migration."""

    PENDING = "pending"
    EXECUTED = "executed"


@dataclass
class MigrationRecord:
    """Status of one unit of the resolved sequence."""

    name: str
    status: MigrationStatus
    path: Optional[str] = None
    executed_at: Optional[datetime] = None


@dataclass(frozen=True)
class MigrationParams:
    """Passed to the ``resolve`` callback of a glob source.

    Attributes:
        name: Formatted migration name
        path: Path of the matched file, relative to the glob cwd
        context: Live context, the storage adapter
    """

    name: str
    path: str
    context: Any = None

    @property
    def storage(self) -> Any:
        return self.context


@dataclass(frozen=True)
class Migration:
    """A named migration unit.

    Exactly one of ``definition`` (already obtained) or ``loader`` (called
    on first use) is set. Units are never mutated after resolution.
    """

    name: str
    path: Optional[str] = None
    definition: Any = field(default=None, repr=False, compare=False)
    loader: Optional[Callable[[], Any]] = field(default=None, repr=False, compare=False)
    config: MigratorConfig = field(default_factory=MigratorConfig, repr=False, compare=False)

    async def get_definition(self) -> Any:
        """Obtain the migration definition, loading it if needed.

        Raises:
            ResolutionError: If nothing could be obtained
        """
        if self.definition is not None:
            result = self.definition
        elif self.loader is not None:
            try:
                result = self.loader()
                if inspect.isawaitable(result):
                    result = await result
            except MigrationError:
                raise
            except Exception as e:
                raise ResolutionError(
                    f"Failed to load migration definition for '{self.path or self.name}': {e}",
                    migration=self.name,
                ) from e
        else:
            result = None

        if not result:
            raise ResolutionError(
                f"Failed to obtain migration definition for '{self.path or self.name}'",
                migration=self.name,
            )

        return normalize_definition(result)

    async def run_up(self, *params: Any) -> None:
        """Execute the ``up`` action."""
        await self._exec("up", params)

    async def run_down(self, *params: Any) -> None:
        """Execute the ``down`` action."""
        await self._exec("down", params)

    async def _exec(self, method: str, params: tuple[Any, ...]) -> None:
        definition = await self.get_definition()

        fn = get_method(definition, method)
        if fn is None:
            raise MethodNotFoundError(
                f"Could not find migration method: {method}",
                migration=self.name,
                direction=method,
            )

        try:
            result = self.config.wrap(fn)(*params)
        except NotImplementedError as e:
            raise self._not_implemented(method) from e
        except Exception as e:
            raise self._failed(method, e) from e

        if not inspect.isawaitable(result):
            raise ContractViolationError(
                f"Migration {self.name} (or wrapper) didn't return an awaitable",
                migration=self.name,
                direction=method,
            )

        try:
            await result
        except NotImplementedError as e:
            raise self._not_implemented(method) from e
        except Exception as e:
            raise self._failed(method, e) from e

    def _not_implemented(self, method: str) -> MethodNotFoundError:
        return MethodNotFoundError(
            f"Migration {self.name} does not support {method}",
            migration=self.name,
            direction=method,
        )

    def _failed(self, method: str, cause: Exception) -> ExecutionError:
        return ExecutionError(
            f"Migration {self.name} failed: {cause}",
            cause=cause,
            migration=self.name,
            direction=method,
        )


class BaseMigration(ABC):
    """Abstract base class for class-based migrations.

    Subclasses must define ``name`` and implement ``up()``. ``down()``
    raises NotImplementedError unless overridden, which the engine reports
    as a MethodNotFoundError.

    Instances can be placed directly in an explicit migration list.
    """

    name: str

    def __init_subclass__(cls, **kwargs):
        """Validate subclass attributes."""
        super().__init_subclass__(**kwargs)

        if not getattr(cls, "name", None):
            raise TypeError(f"Migration {cls.__name__} must define 'name'")

    @abstractmethod
    async def up(self, *params: Any) -> None:
        """Apply the migration."""

    async def down(self, *params: Any) -> None:
        """Rollback the migration.

        Raises:
            NotImplementedError: If rollback is not supported
        """
        raise NotImplementedError(f"Migration {self.name} does not support rollback")

    def __repr__(self) -> str:
        return f"<Migration {self.name}>"
