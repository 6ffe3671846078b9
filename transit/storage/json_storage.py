"""JSON file storage for execution records.

Layout::

    {
      "executed": [
        {"name": "m1", "executed_at": "2024-01-01T00:00:00+00:00"}
      ]
    }

A plain JSON array of names (older layout) is also accepted on read and
rewritten in the current layout on the next write.
"""

import asyncio
import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Union

logger = logging.getLogger(__name__)


class JSONStorage:
    """Stores the execution record in a JSON file.

    Writes go to a temp file in the same directory and are moved into place
    with os.replace(), so a crash never leaves a half-written record.
    """

    def __init__(self, path: Union[str, Path]):
        """Initialize the storage.

        Args:
            path: JSON file location; created on first write
        """
        self.path = Path(path)

    def _read(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []

        text = self.path.read_text(encoding="utf-8")
        if not text.strip():
            return []

        data = json.loads(text)
        entries = data.get("executed", []) if isinstance(data, dict) else data
        if not isinstance(entries, list):
            raise ValueError(f"Malformed execution record in {self.path}")

        return [
            entry if isinstance(entry, dict) else {"name": entry, "executed_at": None}
            for entry in entries
        ]

    def _atomic_save(self, entries: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = None
        success = False

        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=self.path.parent,
                prefix=f".{self.path.name}_",
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            ) as tmp_file:
                tmp_path = tmp_file.name
                json.dump({"executed": entries}, tmp_file, indent=2)
                tmp_file.flush()
                os.fsync(tmp_file.fileno())

            os.replace(tmp_path, str(self.path))
            success = True

        finally:
            if tmp_path and not success:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    logger.debug(f"Could not remove temp file {tmp_path}")

    def _log(self, name: str) -> None:
        entries = self._read()
        if any(entry["name"] == name for entry in entries):
            return
        entries.append({"name": name, "executed_at": datetime.now(timezone.utc).isoformat()})
        self._atomic_save(entries)

    def _unlog(self, name: str) -> None:
        entries = self._read()
        remaining = [entry for entry in entries if entry["name"] != name]
        if len(remaining) != len(entries):
            self._atomic_save(remaining)

    async def log_migration(self, name: str) -> None:
        await asyncio.to_thread(self._log, name)

    async def unlog_migration(self, name: str) -> None:
        await asyncio.to_thread(self._unlog, name)

    async def executed(self) -> list[str]:
        entries = await asyncio.to_thread(self._read)
        return [entry["name"] for entry in entries]

    async def executed_at(self) -> dict[str, datetime]:
        """Get execution timestamps keyed by migration name."""
        entries = await asyncio.to_thread(self._read)
        return {
            entry["name"]: datetime.fromisoformat(entry["executed_at"])
            for entry in entries
            if entry.get("executed_at")
        }

    def __repr__(self) -> str:
        return f"<JSONStorage {self.path}>"
