"""
Error classes for remote-fs.

Provides a single taxonomy for every backend. SDK exceptions are translated
into these at the transport boundary so callers never need to import
botocore (or anything else backend specific) to handle failures.

Each class also derives from the closest built-in exception, so code written
against ordinary Python files keeps working (``except FileNotFoundError``,
``except io.UnsupportedOperation``...).
"""
from __future__ import annotations

import io


class RemoteFsError(Exception):
    """Base class for all remote-fs errors."""
    pass


class ObjectNotFound(RemoteFsError, FileNotFoundError):
    """
    Object does not exist.

    Raised when:
    - A metadata probe (open/stat) hits a missing key or file
    - A range-fetch targets a key that was deleted meanwhile
    """
    pass


class TransportError(RemoteFsError, OSError):
    """
    Network, authentication or remote-service failure.

    Generally retryable by the caller. The core never retries internally;
    the original SDK exception is chained as ``__cause__``.
    """
    pass


class Unsupported(RemoteFsError, io.UnsupportedOperation):
    """
    Operation not supported by this stream.

    Raised when:
    - Seeking relative to the end of a remote object
    - Seeking a writer outside the part that is still being buffered
    """
    pass


class WrongDirection(RemoteFsError, io.UnsupportedOperation):
    """Read on a write-only stream or write on a read-only stream."""
    pass


class AlreadyClosed(RemoteFsError, ValueError):
    """Stream was already closed (or its upload was aborted)."""
    pass


class EmptyUpload(RemoteFsError):
    """Upload completion attempted with zero committed parts."""
    pass


class BackendNotFound(RemoteFsError, LookupError):
    """No backend registered for the requested scheme."""

    def __init__(self, scheme: str):
        super().__init__(f"`{scheme}` filesystem not found")
        self.scheme = scheme


__all__ = [
    "RemoteFsError",
    "ObjectNotFound",
    "TransportError",
    "Unsupported",
    "WrongDirection",
    "AlreadyClosed",
    "EmptyUpload",
    "BackendNotFound",
]
