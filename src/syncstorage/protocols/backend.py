"""StorageBackend protocol for asynchronous key-value backends."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol for the asynchronous backend behind a Storage.

    Failures are reported by raising, preferably a BackendError.
    """

    async def get_all_keys(self) -> list[str]:
        """List every key in the backend, across all prefixes."""
        ...

    async def multi_get(self, keys: list[str]) -> list[tuple[str, str | None]]:
        """Fetch several values at once.

        Missing keys are either omitted or paired with None.
        """
        ...

    async def set_item(self, key: str, value: str) -> None:
        """Store a value."""
        ...

    async def remove_item(self, key: str) -> None:
        """Remove a key. No-op if the key doesn't exist."""
        ...
