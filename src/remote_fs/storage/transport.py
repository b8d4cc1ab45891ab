"""
Remote object API consumed by the S3 streaming engine.

The reader, writer and backend only talk to this protocol, so the engine can
be exercised against an in-memory fake in tests and against boto3 in
production (see s3_transport.S3Transport).
"""
from __future__ import annotations

from typing import Optional, Protocol, Sequence, runtime_checkable

from .metadata import ObjectMetadata
from .models import CompletedPart, CompletedUpload, ListObjectsPage

__all__ = ["ObjectTransport"]


@runtime_checkable
class ObjectTransport(Protocol):
    """Protocol for the remote object store operations."""

    def head(self, bucket: str, key: str) -> ObjectMetadata:
        """
        Probe object metadata without fetching content.

        Raises:
            ObjectNotFound: If the object does not exist
            TransportError: For network/auth/service failures
        """
        ...

    def get_range(self, bucket: str, key: str, start: int, end: int) -> bytes:
        """
        Fetch the inclusive byte interval [start, end] of an object.

        Raises:
            ObjectNotFound: If the object does not exist
            TransportError: For network/auth/service failures
        """
        ...

    def list_page(
        self,
        bucket: str,
        prefix: str,
        *,
        delimiter: Optional[str] = None,
        continuation_token: Optional[str] = None,
    ) -> ListObjectsPage:
        """
        Fetch one page of keys under ``prefix``.

        Raises:
            TransportError: For network/auth/service failures
        """
        ...

    def create_multipart_upload(self, bucket: str, key: str) -> str:
        """
        Initiate a multipart upload.

        Returns:
            Opaque upload identifier
        """
        ...

    def upload_part(self, bucket: str, key: str, upload_id: str, part_number: int, data: bytes) -> str:
        """
        Upload one part.

        Returns:
            Opaque part hash (ETag) needed for completion
        """
        ...

    def complete_multipart_upload(
        self,
        bucket: str,
        key: str,
        upload_id: str,
        parts: Sequence[CompletedPart],
    ) -> CompletedUpload:
        """
        Atomically assemble the committed parts into the final object.

        Returns:
            Final identity and content hash of the object
        """
        ...

    def abort_multipart_upload(self, bucket: str, key: str, upload_id: str) -> None:
        """Discard a multipart upload and its committed parts."""
        ...

    def delete(self, bucket: str, key: str) -> None:
        """Delete one object. Deleting a missing key is not an error."""
        ...
