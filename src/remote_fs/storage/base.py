"""
Storage interfaces for remote-fs.

These protocols define the boundary between callers and backend
implementations. A stream is either a ReadStream or a WriteStream; backends
hand out the variant matching the operation instead of one type that fakes
the other direction.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Protocol, runtime_checkable

from .metadata import ObjectMetadata

__all__ = ["WalkEntry", "ReadStream", "WriteStream", "Backend"]


@dataclass(frozen=True, slots=True)
class WalkEntry:
    """One path yielded by Backend.walk()."""
    path: str
    is_dir: bool = False


@runtime_checkable
class ReadStream(Protocol):
    """Readable, seekable byte stream."""

    @property
    def closed(self) -> bool:
        ...

    def readable(self) -> bool:
        ...

    def writable(self) -> bool:
        ...

    def read(self, size: int = -1) -> bytes:
        """
        Read up to ``size`` bytes from the cursor (-1 reads to end of stream).

        Returns:
            Bytes read; empty at end of stream
        """
        ...

    def readinto(self, buffer) -> int:
        """Fill ``buffer`` from the cursor; returns bytes copied, 0 at end of stream."""
        ...

    def read_at(self, buffer, offset: int) -> int:
        """Fill ``buffer`` from ``offset`` without moving the cursor."""
        ...

    def seek(self, offset: int, whence: int = 0) -> int:
        ...

    def tell(self) -> int:
        ...

    def stat(self) -> ObjectMetadata:
        ...

    def url(self) -> str:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class WriteStream(Protocol):
    """Writable byte stream; close() makes the content durable."""

    @property
    def closed(self) -> bool:
        ...

    def readable(self) -> bool:
        ...

    def writable(self) -> bool:
        ...

    def write(self, data) -> int:
        ...

    def flush(self) -> None:
        ...

    def seek(self, offset: int, whence: int = 0) -> int:
        ...

    def tell(self) -> int:
        ...

    def stat(self) -> ObjectMetadata:
        ...

    def url(self) -> str:
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class Backend(Protocol):
    """Protocol for a filesystem-like storage backend."""

    @property
    def name(self) -> str:
        """Backend scheme name (file, s3)."""
        ...

    @property
    def root(self) -> str:
        """Root object of the backend (the bucket for s3)."""
        ...

    def open(self, path: str) -> ReadStream:
        """
        Open an existing object for reading.

        Raises:
            ObjectNotFound: If the object does not exist
            TransportError: For network/auth failures
        """
        ...

    def create(self, path: str) -> WriteStream:
        """
        Create (or replace) an object for writing.

        Missing parent directories are created where the backend has them.
        """
        ...

    def remove(self, path: str) -> None:
        ...

    def remove_all(self, path: str) -> None:
        """Remove ``path`` and everything below it; names merely sharing its prefix survive."""
        ...

    def stat(self, path: str) -> ObjectMetadata:
        ...

    def list_dir(self, path: str) -> list[str]:
        """Return the entries directly below ``path``."""
        ...

    def walk(self, root: str, depth: int = -1) -> Iterator[WalkEntry]:
        """
        Walk everything below ``root``.

        Args:
            root: Path to walk
            depth: Maximum nesting below root (-1 for unlimited)
        """
        ...

    def walk_depth(self, root: str, depth: int) -> Iterator[WalkEntry]:
        ...
