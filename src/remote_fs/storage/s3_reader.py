"""
Readable, seekable stream over a remote S3 object.

Reads are served from a staging RangeBuffer; when it runs dry the reader
fetches the next window of at most chunk_size bytes with a single range
request. Each readinto() call therefore issues at most one remote call, and a
sequence of small reads over an object of N bytes issues ceil(N/chunk_size)
fetches.
"""
from __future__ import annotations

import io
import logging
from typing import Iterator

from ..errors import TransportError, Unsupported, WrongDirection
from ..settings import DEFAULT_CHUNK_SIZE
from .range_buffer import RangeBuffer
from .s3_handle import S3ObjectHandle
from .transport import ObjectTransport

__all__ = ["S3ObjectReader"]

logger = logging.getLogger(__name__)


class S3ObjectReader(S3ObjectHandle):
    """
    Read-only stream over an S3 object.

    The object size comes from the metadata probe done by open(); the cursor
    is purely local, so seek() never talks to S3.
    """

    def __init__(
        self,
        transport: ObjectTransport,
        bucket: str,
        path: str,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        super().__init__(transport, bucket, path)
        self._chunk_size = chunk_size
        self._staged = RangeBuffer(0)

    @classmethod
    def open(
        cls,
        transport: ObjectTransport,
        bucket: str,
        path: str,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> S3ObjectReader:
        """
        Probe the object and return a reader positioned at offset 0.

        Raises:
            ObjectNotFound: If the object does not exist
            TransportError: For network/auth failures
        """
        reader = cls(transport, bucket, path, chunk_size=chunk_size)
        meta = reader.stat()
        logger.debug(f"Opened {reader.url()} for reading ({meta.size} bytes)")
        return reader

    @property
    def size(self) -> int:
        return self.stat().size

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def readable(self) -> bool:
        return True

    def writable(self) -> bool:
        return False

    def readinto(self, buffer) -> int:
        transport = self._require_open()
        view = memoryview(buffer).cast("B")
        if not view:
            return 0
        if self._cursor < 0:
            raise ValueError(f"negative cursor position: {self._cursor}")

        size = self.size
        if self._cursor >= size:
            return 0

        staged = len(self._staged)
        copied = self._staged.readinto(view)
        self._cursor += copied
        if staged >= len(view) or self._cursor >= size:
            return copied

        start = self._cursor
        end = min(start + self._chunk_size, size)
        data = transport.get_range(self.bucket, self.path, start, end - 1)
        if not data:
            raise TransportError(f"Empty range response for {self.url()} at offset {start}")

        self._staged.resize(end - start)
        self._staged.write(data)
        n = self._staged.readinto(view[copied:])
        self._cursor += n
        return copied + n

    def read(self, size: int = -1) -> bytes:
        if size is None or size < 0:
            return self.readall()
        buf = bytearray(size)
        n = self.readinto(buf)
        del buf[n:]
        return bytes(buf)

    def readall(self) -> bytes:
        return b"".join(self.chunks())

    def chunks(self, size: int = 0) -> Iterator[bytes]:
        """Yield the rest of the object in pieces of at most ``size`` bytes (default chunk_size)."""
        size = size or self._chunk_size
        while True:
            data = self.read(size)
            if not data:
                return
            yield data

    def read_at(self, buffer, offset: int) -> int:
        """
        Fill ``buffer`` from ``offset`` with one range-fetch.

        Independent of the sequential cursor and the staging buffer.

        Returns:
            Bytes copied; 0 when offset is at or past the end of the object
        """
        transport = self._require_open()
        if offset < 0:
            raise ValueError(f"negative offset: {offset}")
        view = memoryview(buffer).cast("B")
        size = self.size
        if not view or offset >= size:
            return 0

        end = min(offset + len(view), size)
        data = transport.get_range(self.bucket, self.path, offset, end - 1)
        n = min(len(data), len(view))
        view[:n] = data[:n]
        return n

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._require_open()
        if whence == io.SEEK_SET:
            target = offset
        elif whence == io.SEEK_CUR:
            target = self._cursor + offset
        elif whence == io.SEEK_END:
            raise Unsupported("cannot seek relative to the end of a remote object")
        else:
            raise ValueError(f"invalid whence ({whence})")

        # staged bytes must always start at the cursor
        delta = target - self._cursor
        if 0 <= delta <= len(self._staged):
            self._staged.drain(delta)
        else:
            self._staged.clear()

        self._cursor = target
        return target

    def write(self, data) -> int:
        raise WrongDirection("file not open for writing")

    def close(self) -> None:
        self._require_open()
        self._staged.clear()
        self._release()
        logger.debug(f"Closed reader for {self.url()}")
