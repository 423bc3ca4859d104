"""Exception hierarchy for hackstack."""


class HackstackError(Exception):
    """Base class for all hackstack errors."""


class NetworkFailure(HackstackError):
    """A request failed: bad HTTP status, timeout or connection error."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DecodeFailure(HackstackError):
    """A response payload could not be decoded into the expected shape."""


class PersistenceFailure(HackstackError):
    """The local store failed to read or write."""
