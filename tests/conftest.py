"""Pytest configuration and fixtures."""

import asyncio

import pytest

from syncstorage.exceptions import BackendUnavailableError


class RecordingBackend:
    """Fake backend that records every call.

    Enumeration can be held back with ``gate`` and the bulk load with
    ``load_gate`` to open a window in which the caller writes before the
    load is merged. Any primitive can be made to fail by naming it in
    ``fail_on``.
    """

    def __init__(
        self,
        data: dict[str, str] | None = None,
        fail_on: set[str] | None = None,
    ) -> None:
        self.data: dict[str, str] = dict(data or {})
        self.fail_on = fail_on or set()
        self.calls: list[tuple] = []
        self.gate: asyncio.Event | None = None
        self.load_gate: asyncio.Event | None = None

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise BackendUnavailableError(f"{name} failed")

    async def get_all_keys(self) -> list[str]:
        if self.gate is not None:
            await self.gate.wait()
        self._record("get_all_keys")
        return list(self.data)

    async def multi_get(self, keys: list[str]) -> list[tuple[str, str | None]]:
        if self.load_gate is not None:
            await self.load_gate.wait()
        self._record("multi_get", list(keys))
        return [(key, self.data.get(key)) for key in keys]

    async def set_item(self, key: str, value: str) -> None:
        self._record("set_item", key, value)
        self.data[key] = value

    async def remove_item(self, key: str) -> None:
        self._record("remove_item", key)
        self.data.pop(key, None)

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def recording_backend() -> RecordingBackend:
    """Create an empty recording backend."""
    return RecordingBackend()


@pytest.fixture
def sample_config_dict():
    """Sample configuration dictionary for testing."""
    return {
        "key_prefix": "app:",
        "backend": {"name": "memory"},
        "logging": {"level": "DEBUG", "format": "text"},
    }


@pytest.fixture
def backend_factory():
    """Return the RecordingBackend class for tests that need seeded data."""
    return RecordingBackend
