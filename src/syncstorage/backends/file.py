"""JSON file-based storage backend."""

import asyncio
import atexit
import json
import os
import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any

from syncstorage.exceptions import BackendError

# Thread pool for async file I/O - configurable via environment
_max_workers = int(os.environ.get("SYNCSTORAGE_FILE_WORKERS", "4"))
_executor = ThreadPoolExecutor(max_workers=_max_workers)

# Ensure executor is cleaned up on process exit
atexit.register(_executor.shutdown, wait=False)


class FileBackend:
    """Storage backend that keeps every entry in a single JSON file.

    Suitable for development and single-process deployments. The whole
    file is rewritten on every mutation.
    """

    def __init__(self, path: str | Path | None = None, **kwargs: Any) -> None:
        """Initialize file backend.

        Args:
            path: JSON file to store entries in. Defaults to ./data/storage.json
            **kwargs: Ignored (for compatibility with other backends)
        """
        self.path = Path(path) if path else Path("./data/storage.json")
        self._lock = asyncio.Lock()

    def _read(self) -> dict[str, str]:
        """Load the entries from disk. A missing file is empty."""
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise BackendError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise BackendError(f"Expected a JSON object in {self.path}")
        return {str(k): v for k, v in data.items()}

    def _write(self, data: dict[str, str]) -> None:
        """Atomically replace the file with the given entries."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_name, self.path)
        except OSError as e:
            raise BackendError(f"Cannot write {self.path}: {e}") from e

    async def _run(self, func: Any, *args: Any) -> Any:
        """Run blocking I/O in the thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(_executor, func, *args)

    async def get_all_keys(self) -> list[str]:
        """List every stored key."""
        async with self._lock:
            data = await self._run(self._read)
        return list(data)

    async def multi_get(self, keys: list[str]) -> list[tuple[str, str | None]]:
        """Fetch several values. Missing keys are paired with None."""
        async with self._lock:
            data = await self._run(self._read)
        return [(key, data.get(key)) for key in keys]

    async def set_item(self, key: str, value: str) -> None:
        """Store a value."""
        async with self._lock:
            data = await self._run(self._read)
            data[key] = value
            await self._run(self._write, data)

    async def remove_item(self, key: str) -> None:
        """Remove a key."""
        async with self._lock:
            data = await self._run(self._read)
            if key in data:
                del data[key]
                await self._run(self._write, data)
