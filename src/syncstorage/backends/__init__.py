"""Built-in storage backends."""

from syncstorage.backends.file import FileBackend
from syncstorage.backends.memory import MemoryBackend

__all__ = [
    "FileBackend",
    "MemoryBackend",
]
