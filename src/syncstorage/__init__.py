"""syncstorage - Synchronous key-value storage with optimistic async persistence."""

from syncstorage.backends import FileBackend, MemoryBackend
from syncstorage.config import BackendConfig, LoggingConfig, StorageConfig
from syncstorage.exceptions import (
    BackendError,
    BackendUnavailableError,
    ConfigError,
    SyncStorageError,
)
from syncstorage.observability import (
    LogLevel,
    StructuredLogger,
    Timer,
    configure_logging,
    emit_counter,
    emit_metric,
    emit_timer,
    get_logger,
    register_metric_callback,
    unregister_metric_callback,
)
from syncstorage.plugins import create_backend, discover_backends, get_backend
from syncstorage.protocols import StorageBackend
from syncstorage.storage import ReconciliationState, Storage

__version__ = "0.1.0"
__all__ = [
    # Core
    "ReconciliationState",
    "Storage",
    "StorageBackend",
    # Backends
    "FileBackend",
    "MemoryBackend",
    "create_backend",
    "discover_backends",
    "get_backend",
    # Configuration
    "BackendConfig",
    "LoggingConfig",
    "StorageConfig",
    # Errors
    "BackendError",
    "BackendUnavailableError",
    "ConfigError",
    "SyncStorageError",
    # Observability
    "LogLevel",
    "StructuredLogger",
    "Timer",
    "configure_logging",
    "emit_counter",
    "emit_metric",
    "emit_timer",
    "get_logger",
    "register_metric_callback",
    "unregister_metric_callback",
]
