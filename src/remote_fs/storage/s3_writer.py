"""
Writable stream over a remote S3 object built on multipart uploads.

Bytes accumulate in a RangeBuffer of part_size bytes. Each time the buffer
fills up it is committed as the next part; close() commits whatever is left
and atomically completes the upload with the ordered (part number, ETag) list.

Failures are never rolled back: a failed part upload or completion moves the
writer to ABORTED and leaves the remote multipart session in place. Callers
that want the storage back use S3ObjectWriter.abort() while the writer is
open, or S3Backend.abort_upload() with the writer's upload_id afterwards.
"""
from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple

from ..errors import AlreadyClosed, EmptyUpload, Unsupported, WrongDirection
from ..settings import DEFAULT_PART_SIZE
from .metadata import ObjectMetadata
from .models import MAX_PART_NUMBER, CompletedPart
from .range_buffer import RangeBuffer
from .s3_handle import S3ObjectHandle
from .transport import ObjectTransport

__all__ = ["S3ObjectWriter", "UploadSession", "WriterState"]

logger = logging.getLogger(__name__)


class WriterState(str, Enum):
    """Lifecycle of a writer."""
    OPEN = "open"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass
class UploadSession:
    """
    Bookkeeping for one multipart upload.

    Invariant: parts are numbered 1..n, contiguous, in commit order.
    """
    upload_id: str
    buffer: RangeBuffer
    next_part_number: int = 1
    parts: List[CompletedPart] = field(default_factory=list)
    committed_bytes: int = 0

    def record(self, etag: str, size: int) -> CompletedPart:
        part = CompletedPart(part_number=self.next_part_number, etag=etag)
        self.parts.append(part)
        self.next_part_number += 1
        self.committed_bytes += size
        return part


class S3ObjectWriter(S3ObjectHandle):
    """
    Write-only stream over an S3 object.

    Memory use is bounded by one part regardless of object size. The part
    size is not checked against the S3 minimum here; Settings enforces it for
    backends built from configuration.
    """

    def __init__(
        self,
        transport: ObjectTransport,
        bucket: str,
        path: str,
        upload_id: str,
        *,
        part_size: int = DEFAULT_PART_SIZE,
    ) -> None:
        if part_size <= 0:
            raise ValueError(f"part_size must be positive, got {part_size}")
        super().__init__(transport, bucket, path)
        self._part_size = part_size
        self._session = UploadSession(upload_id=upload_id, buffer=RangeBuffer(part_size))
        self._state = WriterState.OPEN

    @classmethod
    def create(
        cls,
        transport: ObjectTransport,
        bucket: str,
        path: str,
        *,
        part_size: int = DEFAULT_PART_SIZE,
    ) -> S3ObjectWriter:
        """
        Initiate a multipart upload and return a writer for it.

        Raises:
            TransportError: If the upload cannot be initiated
        """
        upload_id = transport.create_multipart_upload(bucket, path)
        writer = cls(transport, bucket, path, upload_id, part_size=part_size)
        logger.debug(f"Opened {writer.url()} for writing (upload {upload_id}, part size {part_size})")
        return writer

    @property
    def state(self) -> WriterState:
        return self._state

    @property
    def upload_id(self) -> str:
        return self._session.upload_id

    @property
    def part_size(self) -> int:
        return self._part_size

    @property
    def parts(self) -> Tuple[CompletedPart, ...]:
        return tuple(self._session.parts)

    @property
    def bytes_written(self) -> int:
        return self._session.committed_bytes + self._session.buffer.filled

    def readable(self) -> bool:
        return False

    def writable(self) -> bool:
        return True

    def tell(self) -> int:
        return self._session.committed_bytes + self._cursor

    def _require_open(self) -> ObjectTransport:
        if self._state is WriterState.ABORTED:
            raise AlreadyClosed(f"upload {self._session.upload_id} for {self.url()} was aborted")
        return super()._require_open()

    def write(self, data) -> int:
        """
        Buffer ``data``, committing a part every time the buffer fills up.

        Always consumes all of ``data``.

        Returns:
            len(data)

        Raises:
            TransportError: If a part upload fails (the writer is then aborted)
        """
        transport = self._require_open()
        view = memoryview(data).cast("B")
        total = len(view)
        buffer = self._session.buffer

        # rewrite bytes after a backward seek inside the current part
        if self._cursor < buffer.filled:
            n = buffer.overwrite(self._cursor, view)
            self._cursor += n
            view = view[n:]

        while view:
            if buffer.full:
                self._commit(transport)
            n = buffer.write(view)
            self._cursor += n
            view = view[n:]

        if buffer.full:
            self._commit(transport)
        return total

    def flush(self) -> None:
        """Commit the buffered bytes as a part, even if shorter than part_size."""
        transport = self._require_open()
        if not self._session.buffer.filled:
            logger.debug(f"Nothing to flush for {self.url()}")
            return
        self._commit(transport)

    def _commit(self, transport: ObjectTransport) -> CompletedPart:
        session = self._session
        part_number = session.next_part_number
        if part_number > MAX_PART_NUMBER:
            self._abort_local()
            raise Unsupported(
                f"{self.url()} would need more than {MAX_PART_NUMBER} parts; use a larger part_size"
            )
        with session.buffer.view() as view:
            payload = bytes(view)

        try:
            etag = transport.upload_part(self.bucket, self.path, session.upload_id, part_number, payload)
            part = session.record(etag, len(payload))
        except Exception:
            self._abort_local()
            raise

        session.buffer.clear()
        self._cursor = 0
        logger.debug(f"Committed part {part_number} ({len(payload)} bytes) of {self.url()}")
        return part

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        """
        Reposition inside the part that is still being buffered.

        Committed parts are immutable, so the target must lie in
        [start of current part, start of current part + buffered bytes].

        Raises:
            Unsupported: For SEEK_END or a target outside that window
        """
        self._require_open()
        if whence == io.SEEK_SET:
            target = offset
        elif whence == io.SEEK_CUR:
            target = self.tell() + offset
        elif whence == io.SEEK_END:
            raise Unsupported("cannot seek relative to the end of an object being uploaded")
        else:
            raise ValueError(f"invalid whence ({whence})")

        part_start = self._session.committed_bytes
        part_end = part_start + self._session.buffer.filled
        if not part_start <= target <= part_end:
            raise Unsupported(
                f"cannot seek to {target}: only [{part_start}, {part_end}] is still buffered"
            )
        self._cursor = target - part_start
        return target

    def close(self) -> None:
        """
        Commit the remaining bytes and complete the upload.

        Raises:
            AlreadyClosed: If the writer was already completed or aborted
            EmptyUpload: If no part was ever committed
            TransportError: If a part upload or the completion fails
        """
        transport = self._require_open()
        session = self._session
        try:
            if session.buffer.filled:
                self._commit(transport)
            if not session.parts:
                raise EmptyUpload(f"no data written to {self.url()}")
            result = transport.complete_multipart_upload(
                self.bucket, self.path, session.upload_id, session.parts
            )
        except Exception:
            self._abort_local()
            raise

        self._state = WriterState.COMPLETED
        self._release()
        self.bucket = result.bucket or self.bucket
        self.path = result.key or self.path
        self._metadata.set(
            ObjectMetadata(name=self.path, size=session.committed_bytes, etag=result.etag)
        )
        logger.info(
            f"Completed upload of {self.url()}: {len(session.parts)} parts, {session.committed_bytes} bytes"
        )

    def abort(self) -> None:
        """
        Abandon the upload and ask S3 to discard the committed parts.

        Raises:
            AlreadyClosed: If the writer is no longer open
            TransportError: If the abort call fails (the writer is aborted anyway)
        """
        transport = self._require_open()
        self._state = WriterState.ABORTED
        self._session.buffer.clear()
        self._release()
        transport.abort_multipart_upload(self.bucket, self.path, self._session.upload_id)
        logger.info(f"Aborted upload {self._session.upload_id} for {self.url()}")

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        # never publish a partial object when the with-block failed
        if exc_type is not None and not self.closed:
            self._abort_local()
            return
        super().__exit__(exc_type, exc_val, exc_tb)

    def _abort_local(self) -> None:
        if self._state is WriterState.ABORTED:
            return
        self._state = WriterState.ABORTED
        self._session.buffer.clear()
        self._release()
        logger.warning(
            f"Upload {self._session.upload_id} for {self.url()} aborted after "
            f"{len(self._session.parts)} committed parts; remote session left in place"
        )

    def read(self, size: int = -1) -> bytes:
        raise WrongDirection("file not open for reading")

    def readinto(self, buffer) -> int:
        raise WrongDirection("file not open for reading")

    def read_at(self, buffer, offset: int) -> int:
        raise WrongDirection("file not open for reading")
