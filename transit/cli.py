"""CLI for running migrations.

Usage:
    python -m transit up
    python -m transit up --to 20240101120000_add_users
    python -m transit down
    python -m transit down --step 3
    python -m transit down --all
    python -m transit pending
    python -m transit executed
    python -m transit status
    python -m transit create add_users
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path, PurePosixPath
from textwrap import dedent
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import EnvironmentSettings
from .errors import MigrationError
from .migration import MigrationStatus
from .migrator import Migrator
from .resolver import GlobSource
from .storage import JSONStorage

logger = logging.getLogger(__name__)

console = Console()

MIGRATION_TEMPLATE = '''
    """Migration: {title}."""


    async def up():
        """Apply the migration."""
        raise NotImplementedError("Migration not implemented")


    async def down():
        """Rollback the migration."""
        raise NotImplementedError("Rollback not implemented")
'''


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_migrator(args: argparse.Namespace) -> Migrator:
    """Create a Migrator over the configured glob and JSON record."""
    source = GlobSource(pattern=args.glob, cwd=args.cwd, ignore=tuple(args.ignore))
    return Migrator(migrations=source, storage=JSONStorage(args.storage))


async def cmd_up(args: argparse.Namespace) -> int:
    """Apply pending migrations."""
    migrator = build_migrator(args)
    applied = await migrator.up(to=args.to, migrations=args.name or None)

    if not applied:
        console.print("No pending migrations")
        return 0

    console.print(f"Applied {len(applied)} migration(s):")
    for migration in applied:
        console.print(f"  [green]+[/green] {migration.name}")
    return 0


async def cmd_down(args: argparse.Namespace) -> int:
    """Revert executed migrations."""
    migrator = build_migrator(args)
    reverted = await migrator.down(
        to=0 if args.all else args.to,
        step=args.step,
        migrations=args.name or None,
    )

    if not reverted:
        console.print("No migrations to revert")
        return 0

    console.print(f"Reverted {len(reverted)} migration(s):")
    for migration in reverted:
        console.print(f"  [red]-[/red] {migration.name}")
    return 0


async def cmd_pending(args: argparse.Namespace) -> int:
    """List pending migrations."""
    for migration in await build_migrator(args).pending():
        console.print(migration.name)
    return 0


async def cmd_executed(args: argparse.Namespace) -> int:
    """List executed migrations."""
    for migration in await build_migrator(args).executed():
        console.print(migration.name)
    return 0


async def cmd_status(args: argparse.Namespace) -> int:
    """Show migration status."""
    records = await build_migrator(args).status()

    if not records:
        console.print("No migrations found")
        return 0

    table = Table(title="Migration status")
    table.add_column("", width=3)
    table.add_column("Name")
    table.add_column("Path")
    table.add_column("Executed at")

    for record in records:
        executed = record.status == MigrationStatus.EXECUTED
        table.add_row(
            "✓" if executed else "",
            escape(record.name),
            escape(record.path or ""),
            record.executed_at.strftime("%Y-%m-%d %H:%M") if record.executed_at else "",
        )

    console.print(table)

    executed_count = sum(1 for r in records if r.status == MigrationStatus.EXECUTED)
    console.print(
        f"Total: {len(records)} | Executed: {executed_count} | "
        f"Pending: {len(records) - executed_count}"
    )
    return 0


def cmd_create(args: argparse.Namespace) -> int:
    """Create a new migration file."""
    directory = Path(args.cwd) / PurePosixPath(args.glob).parent
    directory.mkdir(parents=True, exist_ok=True)

    name = args.migration_name.lower().replace("-", "_").replace(" ", "_")
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    filepath = directory / f"{timestamp}_{name}{args.ext}"

    if filepath.exists():
        console.print(f"[red]Error:[/red] Migration file already exists: {filepath}")
        return 1

    if args.ext == ".py":
        title = name.replace("_", " ").capitalize()
        filepath.write_text(dedent(MIGRATION_TEMPLATE.format(title=title)).lstrip())
    else:
        filepath.touch()

    console.print(f"Created migration: {filepath}")
    return 0


def positive_int(value: str) -> int:
    """Parse a strictly positive integer argument."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {number}")
    return number


def create_parser(settings: Optional[EnvironmentSettings] = None) -> argparse.ArgumentParser:
    """Create argument parser."""
    settings = settings or EnvironmentSettings()

    parser = argparse.ArgumentParser(
        prog="transit",
        description="Run migrations tracked in a JSON execution record",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=dedent("""
            Environment:
              TRANSIT_GLOB     migration file pattern (default: migrations/*.py)
              TRANSIT_CWD      directory the pattern is evaluated in (default: .)
              TRANSIT_IGNORE   comma-separated patterns to exclude
              TRANSIT_STORAGE  execution record file (default: transit.json)
        """),
    )

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--glob", default=settings.glob, help="Migration file pattern")
    parser.add_argument("--cwd", default=settings.cwd, help="Directory the pattern is evaluated in")
    parser.add_argument(
        "--ignore",
        action="append",
        default=list(settings.ignore),
        help="Pattern to exclude (repeatable)",
    )
    parser.add_argument("--storage", default=settings.storage_path, help="Execution record file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    up_parser = subparsers.add_parser("up", help="Apply pending migrations")
    up_target = up_parser.add_mutually_exclusive_group()
    up_target.add_argument("--to", help="Apply up to and including this migration")
    up_target.add_argument(
        "--name", action="append", help="Apply only this migration (repeatable)"
    )

    down_parser = subparsers.add_parser("down", help="Revert executed migrations")
    target = down_parser.add_mutually_exclusive_group()
    target.add_argument("--to", help="Revert back to and including this migration")
    target.add_argument("--all", action="store_true", help="Revert every executed migration")
    target.add_argument("--step", type=positive_int, help="Number of migrations to revert")
    target.add_argument(
        "--name", action="append", help="Revert only this migration (repeatable)"
    )

    subparsers.add_parser("pending", help="List pending migrations")
    subparsers.add_parser("executed", help="List executed migrations")
    subparsers.add_parser("status", help="Show migration status")

    create_cmd = subparsers.add_parser("create", help="Create a new migration file")
    create_cmd.add_argument("migration_name", help="Migration name (e.g., add_users)")
    create_cmd.add_argument("--ext", default=".py", help="File extension (default: .py)")

    return parser


async def async_main(args: argparse.Namespace) -> int:
    """Async main entry point."""
    commands = {
        "up": cmd_up,
        "down": cmd_down,
        "pending": cmd_pending,
        "executed": cmd_executed,
        "status": cmd_status,
    }

    try:
        if args.command == "create":
            return cmd_create(args)
        return await commands[args.command](args)
    except MigrationError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        if e.__cause__ is not None:
            logger.debug("Underlying error", exc_info=e.__cause__)
        return 1


def main(argv: Optional[list[str]] = None) -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if args.command != "create":
        settings = EnvironmentSettings(
            glob=args.glob, cwd=args.cwd, ignore=args.ignore, storage_path=args.storage
        )
        errors = settings.validate()
        if errors:
            for error in errors:
                console.print(f"[red]Error:[/red] {escape(error)}")
            sys.exit(2)

    exit_code = asyncio.run(async_main(args))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
