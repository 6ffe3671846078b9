"""In-memory storage, useful for tests and throwaway runs."""

from typing import Iterable, Optional


class MemoryStorage:
    """Keeps the execution record in a list for the lifetime of the object."""

    def __init__(self, executed: Optional[Iterable[str]] = None):
        self._executed: list[str] = list(dict.fromkeys(executed or []))

    async def log_migration(self, name: str) -> None:
        if name not in self._executed:
            self._executed.append(name)

    async def unlog_migration(self, name: str) -> None:
        if name in self._executed:
            self._executed.remove(name)

    async def executed(self) -> list[str]:
        return list(self._executed)

    def __repr__(self) -> str:
        return f"<MemoryStorage executed={self._executed!r}>"
