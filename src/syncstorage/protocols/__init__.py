"""Protocol interfaces for pluggable backends."""

from syncstorage.protocols.backend import StorageBackend

__all__ = [
    "StorageBackend",
]
