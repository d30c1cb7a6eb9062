"""Backend discovery via Python entry points."""

from importlib.metadata import entry_points
from typing import Any

from syncstorage.backends import FileBackend, MemoryBackend
from syncstorage.protocols import StorageBackend

BACKEND_GROUP = "syncstorage.backends"

BUILTIN_BACKENDS: dict[str, Any] = {
    "memory": MemoryBackend,
    "file": FileBackend,
}


def discover_backends() -> dict[str, Any]:
    """Discover all available backends.

    Built-in backends are always present; entry points registered under
    the ``syncstorage.backends`` group may add to or override them.

    Returns:
        Dictionary mapping backend names to their classes
    """
    backends = dict(BUILTIN_BACKENDS)
    for ep in entry_points(group=BACKEND_GROUP):
        backends[ep.name] = ep.load()
    return backends


def get_backend(name: str) -> Any:
    """Get a specific backend class by name.

    Args:
        name: The backend name (e.g., "memory", "file")

    Returns:
        The backend class

    Raises:
        ValueError: If the backend is not found
    """
    backends = discover_backends()
    if name not in backends:
        available = ", ".join(sorted(backends.keys())) or "(none)"
        raise ValueError(f"Backend '{name}' not found. Available: {available}")
    return backends[name]


def create_backend(name: str, **kwargs: Any) -> StorageBackend:
    """Create a StorageBackend instance.

    Args:
        name: The backend name (e.g., "memory", "file")
        **kwargs: Backend-specific configuration

    Returns:
        A StorageBackend implementation
    """
    cls = get_backend(name)
    return cls(**kwargs)
