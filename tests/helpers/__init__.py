"""Test helpers package for shared fixtures and mock factories."""

from tests.helpers.mock_factories import (
    create_migration_list,
    create_mock_storage,
    create_recording_definition,
)

__all__ = [
    "create_migration_list",
    "create_mock_storage",
    "create_recording_definition",
]
