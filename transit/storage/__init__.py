"""Storage adapters for the execution record.

Provides:
- MigrationStorage: the protocol the engine depends on
- MemoryStorage: in-process record
- JSONStorage: record persisted as a JSON file
"""

from .base import MigrationStorage
from .json_storage import JSONStorage
from .memory import MemoryStorage

__all__ = [
    "MigrationStorage",
    "JSONStorage",
    "MemoryStorage",
]
