"""Mock factory functions for consistent test fixtures.

Centralizes creation of storage mocks and recording migration definitions
so engine tests can assert exactly which actions ran, and in what order.
"""

from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock


def create_mock_storage(executed: Optional[list[str]] = None) -> MagicMock:
    """Create a storage mock whose record behaves like a real one."""
    record = list(executed or [])
    storage = MagicMock()

    async def log_migration(name: str) -> None:
        if name not in record:
            record.append(name)

    async def unlog_migration(name: str) -> None:
        if name in record:
            record.remove(name)

    async def executed_names() -> list[str]:
        return list(record)

    storage.log_migration = AsyncMock(side_effect=log_migration)
    storage.unlog_migration = AsyncMock(side_effect=unlog_migration)
    storage.executed = AsyncMock(side_effect=executed_names)
    storage.record = record
    return storage


def create_recording_definition(
    calls: list[tuple[str, str]],
    name: str,
    fail_on: Optional[str] = None,
) -> dict[str, Any]:
    """Create an up/down definition that appends (name, direction) to calls.

    Args:
        calls: Shared list receiving one entry per invoked action
        name: Migration name recorded in calls
        fail_on: Direction ("up" or "down") that raises RuntimeError
    """

    def make(direction: str):
        async def action(*params):
            calls.append((name, direction))
            if fail_on == direction:
                raise RuntimeError(f"{name} {direction} exploded")

        return action

    return {"up": make("up"), "down": make("down")}


def create_migration_list(
    calls: list[tuple[str, str]],
    names: list[str],
    fail_on: Optional[dict[str, str]] = None,
) -> list[dict[str, Any]]:
    """Create an explicit migration list of recording definitions."""
    fail_on = fail_on or {}
    return [
        {"name": name, "migration": create_recording_definition(calls, name, fail_on.get(name))}
        for name in names
    ]
