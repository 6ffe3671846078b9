"""Migration resolution.

Turns a declarative migration source into the ordered list of Migration
units the engine executes. Supported sources:
- an explicit list of Migration / BaseMigration instances or
  ``{"name": ..., "migration": ...}`` mappings
- a function receiving the context (the storage adapter) and returning
  such a list
- a glob source: files matching a pattern, each turned into a unit either
  eagerly by a ``resolve`` callback or lazily by importing the file
"""

import functools
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Callable, Optional, Union

from .config import MigratorConfig
from .discovery import find_files
from .errors import ResolutionError
from .migration import BaseMigration, Migration, MigrationParams
from .providers import has_methods, import_definition, normalize_definition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlobSource:
    """Migration files matching a glob pattern.

    Attributes:
        pattern: Glob pattern relative to cwd
        cwd: Directory the pattern is evaluated in
        ignore: Patterns excluded from the match
        resolve: Optional callback turning MigrationParams into a definition;
            when absent, files are loaded lazily through the action provider
    """

    pattern: str
    cwd: Union[str, Path] = "."
    ignore: tuple[str, ...] = field(default_factory=tuple)
    resolve: Optional[Callable[[MigrationParams], Any]] = None

    @classmethod
    def from_mapping(cls, source: Mapping) -> "GlobSource":
        """Build from ``{"glob": [pattern, options], "resolve": fn}``."""
        glob = source["glob"]
        if isinstance(glob, str):
            pattern, options = glob, {}
        else:
            pattern, options = glob[0], (glob[1] if len(glob) > 1 else {})

        ignore = options.get("ignore") or ()
        if isinstance(ignore, str):
            ignore = (ignore,)

        return cls(
            pattern=pattern,
            cwd=options.get("cwd", "."),
            ignore=tuple(ignore),
            resolve=source.get("resolve"),
        )


MigrationSource = Union[GlobSource, Mapping, Callable[[Any], Iterable], Iterable]


def _format_name(path: str, config: MigratorConfig) -> str:
    name = config.name_formatter(path)
    if not isinstance(name, str):
        raise ResolutionError(
            f"Unexpected migration formatter result for '{path}': "
            f"expected str, got {type(name).__name__}"
        )
    return name


def _from_item(item: Any, config: MigratorConfig) -> Migration:
    if isinstance(item, Migration):
        if item.definition is None and item.loader is None:
            raise ResolutionError(
                f"Migration '{item.name}' has no definition", migration=item.name
            )
        if item.definition is not None and not has_methods(
            normalize_definition(item.definition)
        ):
            raise ResolutionError(
                f"Migration '{item.name}' must define up or down", migration=item.name
            )
        # Units run with the configuration of the engine resolving them
        return replace(item, config=config)

    if isinstance(item, BaseMigration):
        return Migration(name=item.name, definition=item, config=config)

    if isinstance(item, Mapping) and "name" in item:
        definition = item.get("migration")
        if definition is None:
            raise ResolutionError(
                f"Migration '{item['name']}' has no definition", migration=item["name"]
            )
        definition = normalize_definition(definition)
        if not has_methods(definition):
            raise ResolutionError(
                f"Migration '{item['name']}' must define up or down", migration=item["name"]
            )
        return Migration(
            name=item["name"],
            path=item.get("path"),
            definition=definition,
            config=config,
        )

    raise ResolutionError(f"Invalid migration entry: {item!r}")


def _from_list(items: Iterable, config: MigratorConfig) -> list[Migration]:
    return [_from_item(item, config) for item in items]


def _from_glob(source: GlobSource, context: Any, config: MigratorConfig) -> list[Migration]:
    cwd = Path(source.cwd)
    paths = find_files(source.pattern, cwd=cwd, ignore=source.ignore)
    logger.debug(f"Glob {source.pattern!r} in {cwd} matched {len(paths)} file(s)")

    migrations = []
    for path in paths:
        name = _format_name(path, config)

        if source.resolve is None:
            provider = config.custom_resolver or import_definition
            absolute = str((cwd / path).resolve())
            migrations.append(
                Migration(
                    name=name,
                    path=path,
                    loader=functools.partial(provider, absolute),
                    config=config,
                )
            )
            continue

        try:
            definition = source.resolve(MigrationParams(name=name, path=path, context=context))
        except Exception as e:
            raise ResolutionError(
                f"Failed to resolve migration '{path}': {e}", migration=name
            ) from e

        if not definition:
            raise ResolutionError(
                f"Failed to obtain migration definition for '{path}'", migration=name
            )
        definition = normalize_definition(definition)
        if not has_methods(definition):
            raise ResolutionError(f"Migration '{path}' must define up or down", migration=name)

        migrations.append(Migration(name=name, path=path, definition=definition, config=config))

    return migrations


def _check_unique(migrations: list[Migration]) -> None:
    seen: dict[str, Migration] = {}
    for migration in migrations:
        if not isinstance(migration.name, str) or not migration.name:
            raise ResolutionError(f"Migration name must be a non-empty string: {migration!r}")
        if migration.name in seen:
            existing = seen[migration.name]
            raise ResolutionError(
                f"Duplicate migration name {migration.name}: "
                f"{existing.path or existing.name} and {migration.path or migration.name}",
                migration=migration.name,
            )
        seen[migration.name] = migration


def resolve_migrations(
    source: MigrationSource,
    context: Any = None,
    config: Optional[MigratorConfig] = None,
) -> list[Migration]:
    """Resolve a migration source into an ordered list of units.

    The order of the result is the order of the source (for globs, the
    sorted order of the enumerated paths); it is never re-sorted here.
    Callers may reorder the result before handing it to a Migrator.

    Args:
        source: Explicit list, function, GlobSource or glob mapping
        context: Live context handed to functions and resolve callbacks
        config: Engine configuration (defaults to MigratorConfig())

    Returns:
        Ordered list of Migration units

    Raises:
        ResolutionError: If the source is malformed or names collide
    """
    config = config or MigratorConfig()

    if isinstance(source, GlobSource):
        migrations = _from_glob(source, context, config)
    elif isinstance(source, Mapping):
        if "glob" not in source:
            raise ResolutionError("Migration source mapping must define 'glob'")
        migrations = _from_glob(GlobSource.from_mapping(source), context, config)
    elif isinstance(source, (str, bytes)):
        raise ResolutionError(f"Unsupported migration source: {source!r}")
    elif callable(source):
        try:
            items = source(context)
        except Exception as e:
            raise ResolutionError(f"Migration function failed: {e}") from e
        if isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Iterable):
            raise ResolutionError(
                f"Migration function must return a list, got {type(items).__name__}"
            )
        migrations = _from_list(items, config)
    elif isinstance(source, Iterable):
        migrations = _from_list(source, config)
    else:
        raise ResolutionError(f"Unsupported migration source: {source!r}")

    _check_unique(migrations)
    return migrations
