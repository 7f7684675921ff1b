class StowError(Exception):
    """Base class for errors raised by the adapter itself."""

    pass


class NotFoundError(StowError, LookupError):
    """Raised when a requested container or item does not exist."""

    pass


class SchemeMismatchError(StowError, ValueError):
    """Raised when a URL belongs to a different storage backend."""

    pass


class ValidationError(StowError, ValueError):
    """Raised when metadata cannot be carried by the backend's wire format."""

    def __init__(self, key: str, message: str | None = None):
        self.key = key
        super().__init__(message or f"value of key '{key}' in metadata must be of type str")


class MissingConfigError(StowError):
    """Raised when a location is built without a required configuration key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"missing required config key '{key}'")


class UnknownBackendError(StowError):
    """Raised when no registered backend matches a kind or URL."""

    pass
