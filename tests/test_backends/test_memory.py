"""Tests for in-memory storage backend."""

import pytest

from syncstorage.backends.memory import MemoryBackend
from syncstorage.protocols import StorageBackend


@pytest.fixture
def backend():
    """Create a memory backend."""
    return MemoryBackend()


class TestMemoryBackend:
    """Tests for MemoryBackend."""

    def test_satisfies_protocol(self, backend):
        """Test that the backend implements StorageBackend."""
        assert isinstance(backend, StorageBackend)

    @pytest.mark.asyncio
    async def test_set_and_multi_get(self, backend):
        """Test setting and fetching values."""
        await backend.set_item("key1", "value1")
        await backend.set_item("key2", "value2")
        result = await backend.multi_get(["key1", "key2"])
        assert result == [("key1", "value1"), ("key2", "value2")]

    @pytest.mark.asyncio
    async def test_multi_get_missing(self, backend):
        """Test that missing keys are paired with None."""
        result = await backend.multi_get(["nonexistent"])
        assert result == [("nonexistent", None)]

    @pytest.mark.asyncio
    async def test_get_all_keys(self, backend):
        """Test listing keys across prefixes."""
        await backend.set_item("prefix:key1", "value1")
        await backend.set_item("other:key2", "value2")

        keys = await backend.get_all_keys()
        assert sorted(keys) == ["other:key2", "prefix:key1"]

    @pytest.mark.asyncio
    async def test_remove(self, backend):
        """Test removing a key."""
        await backend.set_item("key", "value")
        await backend.remove_item("key")
        assert await backend.get_all_keys() == []

    @pytest.mark.asyncio
    async def test_remove_nonexistent(self, backend):
        """Test removing a key that doesn't exist (should not raise)."""
        await backend.remove_item("nonexistent")

    @pytest.mark.asyncio
    async def test_overwrite(self, backend):
        """Test overwriting a value."""
        await backend.set_item("key", "value1")
        await backend.set_item("key", "value2")
        assert await backend.multi_get(["key"]) == [("key", "value2")]

    @pytest.mark.asyncio
    async def test_seeded_data(self):
        """Test that initial data is visible and copied."""
        seed = {"a": "1"}
        backend = MemoryBackend(seed)
        seed["b"] = "2"
        assert await backend.get_all_keys() == ["a"]

    @pytest.mark.asyncio
    async def test_clear(self, backend):
        """Test clearing all data."""
        await backend.set_item("key1", "value1")
        await backend.set_item("key2", "value2")
        await backend.clear()

        assert await backend.get_all_keys() == []
        assert backend.snapshot() == {}
