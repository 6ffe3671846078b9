"""Configuration for the migration engine.

Two layers:
- MigratorConfig: validated, immutable engine options (name formatting,
  definition loading, wrapping, logging, rerun policy)
- EnvironmentSettings: environment-driven defaults used by the CLI
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger("transit.migrator")


class RerunBehavior(str, Enum):
    """What an explicit selection does with units already in the requested state."""

    THROW = "throw"
    SKIP = "skip"
    ALLOW = "allow"


def default_name_formatter(path: str) -> str:
    """Strip directories and the final extension: ``a/b/m1.sql`` -> ``m1``."""
    return Path(path).stem


def default_wrap(action: Callable[..., Any]) -> Callable[..., Any]:
    return action


def default_log(message: str) -> None:
    logger.info(message)


class MigratorConfig(BaseModel):
    """Validated engine configuration.

    Attributes:
        log: Receives progress messages; None disables progress output
        name_formatter: Maps a migration path to its name
        custom_resolver: Maps an absolute path to a migration definition,
            replacing the default import of Python files
        wrap: Wraps every up/down action before it is called
        params: Positional arguments passed to every up/down action
        rerun: Policy for explicitly selected units already in the target state
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    log: Optional[Callable[[str], Any]] = Field(default=default_log)
    name_formatter: Callable[[str], str] = Field(default=default_name_formatter)
    custom_resolver: Optional[Callable[[str], Any]] = None
    wrap: Callable[[Callable[..., Any]], Callable[..., Any]] = Field(default=default_wrap)
    params: tuple[Any, ...] = ()
    rerun: RerunBehavior = RerunBehavior.THROW


@dataclass
class EnvironmentSettings:
    """Environment-based settings for the command-line interface.

    Attributes:
        glob: Pattern matching migration files, relative to cwd
        cwd: Directory the glob is evaluated in
        ignore: Patterns excluded from the glob (comma-separated in the env)
        storage_path: JSON file holding the execution record
    """

    glob: str = field(default_factory=lambda: os.getenv("TRANSIT_GLOB", "migrations/*.py"))
    cwd: str = field(default_factory=lambda: os.getenv("TRANSIT_CWD", "."))
    ignore: list[str] = field(
        default_factory=lambda: [
            p.strip() for p in os.getenv("TRANSIT_IGNORE", "").split(",") if p.strip()
        ]
    )
    storage_path: str = field(
        default_factory=lambda: os.getenv("TRANSIT_STORAGE", "transit.json")
    )

    def validate(self) -> list[str]:
        """Validate settings.

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if not self.glob:
            errors.append("TRANSIT_GLOB is required")

        if not Path(self.cwd).is_dir():
            errors.append(f"TRANSIT_CWD is not a directory: {self.cwd}")

        if not self.storage_path:
            errors.append("TRANSIT_STORAGE is required")

        return errors
