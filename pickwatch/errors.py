"""Error taxonomy for the sync core.

Read failures are absorbed into the cache entry and never raised past the
coordinator; write failures travel back to the caller inside a
``TriggerResult``. ``AlreadyInFlightError`` guards the single-flight rule.
"""

from __future__ import annotations


class PickwatchError(Exception):
    """Base class for every error raised by this package."""


class ActorUnavailableError(PickwatchError):
    """No live backend handle is available."""

    def __init__(self, message: str = "Actor not ready") -> None:
        super().__init__(message)


class FetchFailedError(PickwatchError):
    """A read against the backend failed (transport, timeout or payload)."""

    def __init__(self, key: str, cause: BaseException) -> None:
        self.key = key
        self.cause = cause
        super().__init__(f"{key}: {type(cause).__name__}: {cause}")


class TriggerFailedError(PickwatchError):
    """A write against the backend was rejected or could not be sent."""

    def __init__(self, operation: str, cause: BaseException) -> None:
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")


class AlreadyInFlightError(PickwatchError):
    """``begin_fetch`` was called while a fetch for the key is still running."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Fetch already in flight for {key!r}")
