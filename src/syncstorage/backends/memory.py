"""In-memory storage backend."""

import asyncio
from collections.abc import Mapping
from typing import Any


class MemoryBackend:
    """In-memory storage backend.

    Suitable for development and testing. Data is lost on restart, but
    survives across Storage instances that share the same backend.
    """

    def __init__(self, data: Mapping[str, str] | None = None, **kwargs: Any) -> None:
        """Initialize memory backend.

        Args:
            data: Optional entries to seed the backend with
            **kwargs: Ignored (for compatibility with other backends)
        """
        self._data: dict[str, str] = dict(data or {})
        self._lock = asyncio.Lock()

    async def get_all_keys(self) -> list[str]:
        """List every stored key."""
        async with self._lock:
            return list(self._data)

    async def multi_get(self, keys: list[str]) -> list[tuple[str, str | None]]:
        """Fetch several values. Missing keys are paired with None."""
        async with self._lock:
            return [(key, self._data.get(key)) for key in keys]

    async def set_item(self, key: str, value: str) -> None:
        """Store a value."""
        async with self._lock:
            self._data[key] = value

    async def remove_item(self, key: str) -> None:
        """Remove a key."""
        async with self._lock:
            self._data.pop(key, None)

    async def clear(self) -> None:
        """Clear all data. Useful for testing."""
        async with self._lock:
            self._data.clear()

    def snapshot(self) -> dict[str, str]:
        """Return a copy of the stored entries."""
        return dict(self._data)
