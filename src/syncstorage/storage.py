"""Synchronous key-value storage on top of an asynchronous backend.

Reads and writes are served from an in-memory mapping so that callers get
immediate read-after-write semantics. Persistence is optimistic: every
mutation is applied locally first and then written through to the backend
as a fire-and-forget task. Previously persisted entries are loaded once,
in the background, when the storage is created with a key prefix.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Iterator
from enum import Enum
from functools import partial
from itertools import islice
from typing import Any

from syncstorage.config import StorageConfig
from syncstorage.exceptions import ConfigError
from syncstorage.observability import (
    Timer,
    configure_logging,
    emit_counter,
    emit_metric,
    emit_timer,
    get_logger,
    namespace_var,
)
from syncstorage.plugins import create_backend
from syncstorage.protocols import StorageBackend

logger = get_logger(__name__)


class ReconciliationState(str, Enum):
    """Progress of the one-shot backend load."""

    NOT_STARTED = "not_started"
    ENUMERATING = "enumerating"
    LOADING = "loading"
    MERGING = "merging"
    DONE = "done"


class Storage:
    """Web Storage style key-value store with optimistic persistence.

    Example:
        storage = Storage("app:", MemoryBackend())
        storage.set_item("theme", "dark")
        storage.get_item("theme")  # "dark", without waiting on the backend
    """

    def __init__(
        self,
        key_prefix: str | None = None,
        backend: StorageBackend | None = None,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        """Initialize storage and start loading persisted entries.

        Args:
            key_prefix: Prefix of the backend keys owned by this storage.
                If None, nothing is ever loaded from or written to the backend.
            backend: Backend to persist to. Required when key_prefix is set.
            loop: Event loop for backend tasks. Defaults to the running loop.

        Raises:
            ConfigError: If key_prefix is set without a backend or event loop
        """
        self._items: dict[str, str] = {}
        self._key_prefix = key_prefix
        self._backend = backend
        self._loop: asyncio.AbstractEventLoop | None = None
        self._pending: set[asyncio.Task[None]] = set()
        self._reconcile_task: asyncio.Task[None] | None = None
        self.state = ReconciliationState.NOT_STARTED

        if key_prefix is None:
            return

        if backend is None:
            raise ConfigError("A backend is required when key_prefix is set")
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError as e:
                raise ConfigError(
                    "A running event loop (or an explicit loop) is required "
                    "when key_prefix is set"
                ) from e
        self._loop = loop
        self._reconcile_task = loop.create_task(self._reconcile())

    @classmethod
    def from_config(
        cls,
        config: StorageConfig,
        backend: StorageBackend | None = None,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        setup_logging: bool = False,
    ) -> "Storage":
        """Create a storage from configuration.

        Args:
            config: Storage configuration
            backend: Backend to use instead of the configured one
            loop: Event loop for backend tasks
            setup_logging: Also apply config.logging to the package logger

        Returns:
            A new Storage
        """
        if setup_logging:
            configure_logging(config.logging.level, config.logging.format)
        if config.key_prefix is not None and backend is None:
            try:
                backend = create_backend(
                    config.backend.name, **config.backend.backend_kwargs()
                )
            except ValueError as e:
                raise ConfigError(str(e)) from e
        return cls(config.key_prefix, backend, loop=loop)

    @property
    def key_prefix(self) -> str | None:
        """Prefix prepended to keys sent to the backend."""
        return self._key_prefix

    @property
    def backend(self) -> StorageBackend | None:
        """Backend this storage persists to."""
        return self._backend

    @property
    def length(self) -> int:
        """Number of entries in this storage."""
        return len(self._items)

    def get_item(self, key: str) -> str | None:
        """Return the value for key, or None if absent."""
        return self._items.get(key)

    def set_item(self, key: str, value: Any) -> None:
        """Add or update key. The value is stored as its string form."""
        value = str(value)
        self._items[key] = value
        if self._key_prefix is not None:
            self._write_through(
                "set", key, partial(self._backend.set_item, self._key_prefix + key, value)
            )

    def remove_item(self, key: str) -> None:
        """Remove key. No-op locally if absent."""
        self._items.pop(key, None)
        if self._key_prefix is not None:
            self._write_through(
                "remove", key, partial(self._backend.remove_item, self._key_prefix + key)
            )

    def clear(self) -> None:
        """Remove every key from this storage."""
        for key in list(self._items):
            self.remove_item(key)

    def key(self, n: int) -> str | None:
        """Return the name of the nth key in insertion order, or None."""
        if n < 0:
            return None
        return next(islice(self._items, n, None), None)

    def keys(self) -> list[str]:
        """Return a snapshot of the keys in insertion order."""
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(key_prefix={self._key_prefix!r}, "
            f"length={len(self._items)}, state={self.state.value})"
        )

    async def wait_until_loaded(self) -> None:
        """Wait for the backend load to finish. Returns at once without one."""
        if self._reconcile_task is not None:
            await self._reconcile_task

    async def drain(self) -> None:
        """Wait for the write-through calls issued so far to finish."""
        pending = list(self._pending)
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def _write_through(
        self, op: str, key: str, call: Callable[[], Awaitable[None]]
    ) -> None:
        """Schedule a backend call without waiting for it.

        A closed loop counts as a failed backend call; the local change stands.
        """
        loop = self._loop
        if loop is None:
            return
        coro = self._run_backend_call(op, key, call)
        try:
            task = loop.create_task(coro)
        except RuntimeError as e:
            coro.close()
            self._backend_failed(op, e, key=key)
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_backend_call(
        self, op: str, key: str, call: Callable[[], Awaitable[None]]
    ) -> None:
        namespace_var.set(self._key_prefix)
        try:
            await call()
        except Exception as e:
            self._backend_failed(op, e, key=key)

    def _backend_failed(self, op: str, error: Exception, key: str | None = None) -> None:
        context: dict[str, Any] = {"op": op}
        if key is not None:
            context["key"] = key
        logger.warning("Backend call failed", context=context, error=error)
        emit_counter("storage.backend.error", {"op": op})

    async def _reconcile(self) -> None:
        """Load persisted entries and merge them in without overwriting."""
        prefix, backend = self._key_prefix, self._backend
        if prefix is None or backend is None:
            return
        namespace_var.set(prefix)
        try:
            with Timer() as timer:
                entries = await self._load(prefix, backend)
                self.state = ReconciliationState.MERGING
                loaded, skipped = self._merge(prefix, entries)
        finally:
            self.state = ReconciliationState.DONE

        logger.info(
            "Loaded persisted entries",
            context={"loaded": loaded, "skipped": skipped},
            duration_ms=timer.duration_ms,
        )
        emit_metric("storage.reconcile.loaded", float(loaded))
        emit_metric("storage.reconcile.skipped", float(skipped))
        emit_timer("storage.reconcile.duration_ms", timer.duration_ms)

    async def _load(self, prefix: str, backend: StorageBackend) -> list[Any]:
        """Fetch the backend entries under the prefix. Failures yield nothing."""
        self.state = ReconciliationState.ENUMERATING
        try:
            all_keys = await backend.get_all_keys()
            keys = [k for k in all_keys if isinstance(k, str) and k.startswith(prefix)]
        except Exception as e:
            self._backend_failed("get_all_keys", e)
            return []

        self.state = ReconciliationState.LOADING
        try:
            return list(await backend.multi_get(keys))
        except Exception as e:
            self._backend_failed("multi_get", e)
            return []

    def _merge(self, prefix: str, entries: Iterable[Any]) -> tuple[int, int]:
        """Insert loaded entries whose keys are still absent.

        Must not await: the pass runs atomically with respect to callers.

        Returns:
            Count of entries inserted and count skipped
        """
        loaded = skipped = 0

        for entry in entries:
            try:
                prefixed_key, value = entry
            except (TypeError, ValueError):
                skipped += 1
                continue
            if (
                not isinstance(prefixed_key, str)
                or not prefixed_key.startswith(prefix)
                or value is None
            ):
                skipped += 1
                continue

            key = prefixed_key[len(prefix):]
            # Entries written by the caller in the meantime win
            if key in self._items:
                skipped += 1
                continue
            self._items[key] = str(value)
            loaded += 1

        return loaded, skipped
