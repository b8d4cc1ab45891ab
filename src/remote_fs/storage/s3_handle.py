"""
State shared by every open S3 stream: identity, cursor, cached metadata and
the transport reference that close() releases.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from ..errors import AlreadyClosed
from .metadata import MetadataSlot, ObjectMetadata
from .transport import ObjectTransport
from .uri import build_url

__all__ = ["S3_SCHEME", "S3ObjectHandle"]

S3_SCHEME = "s3"


class S3ObjectHandle(ABC):
    """
    One open stream over a remote object.

    Owned by a single caller; concurrent calls on the same handle are not
    supported. Subclasses implement exactly one direction.
    """

    def __init__(self, transport: ObjectTransport, bucket: str, path: str) -> None:
        self._transport: Optional[ObjectTransport] = transport
        self.bucket = bucket
        self.path = path
        self._cursor = 0
        self._metadata = MetadataSlot()

    @property
    def closed(self) -> bool:
        return self._transport is None

    def seekable(self) -> bool:
        return True

    def tell(self) -> int:
        return self._cursor

    def url(self) -> str:
        return build_url(S3_SCHEME, self.bucket, self.path)

    def stat(self) -> ObjectMetadata:
        """
        Return object metadata, probing the remote object at most once.

        Raises:
            ObjectNotFound: If the object does not exist (yet)
            AlreadyClosed: If nothing is cached and the handle is closed
        """
        return self._metadata.get_or_probe(self._probe)

    def _probe(self) -> ObjectMetadata:
        return self._require_open().head(self.bucket, self.path)

    def _require_open(self) -> ObjectTransport:
        if self._transport is None:
            raise AlreadyClosed(f"{self.url()} is already closed")
        return self._transport

    def _release(self) -> None:
        self._transport = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if not self.closed:
            self.close()

    @abstractmethod
    def close(self) -> None:
        ...

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<{type(self).__name__} {self.url()} {state}>"
