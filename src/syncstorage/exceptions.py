"""syncstorage exceptions."""


class SyncStorageError(Exception):
    """Base exception for syncstorage."""

    pass


class ConfigError(SyncStorageError):
    """Configuration error."""

    pass


class BackendError(SyncStorageError):
    """A backend primitive failed."""

    pass


class BackendUnavailableError(BackendError):
    """Backend could not be reached."""

    pass
