"""Error taxonomy shared by all session store backends."""


class StoreError(Exception):
    """Base class for session store failures."""

    def __init__(self, key: str | None = None, message: str | None = None) -> None:
        self.key = key
        super().__init__(message or f"{self.__class__.__name__}: {key}")


class StoreNotFound(StoreError):
    """The key does not exist (or has expired)."""


class StoreAlreadyExists(StoreError):
    """`set` was refused because the key is already present. Use `replace`."""


class StoreBackendUnavailable(StoreError):
    """The backend could not be reached or did not answer before the deadline.

    Callers must not treat this as "session invalid"; the state of the key
    is simply unknown.
    """
