"""
S3 backend: maps filesystem-style operations onto one bucket.

Opening a path probes the object and returns an S3ObjectReader; creating a
path initiates a multipart upload and returns an S3ObjectWriter. Listing and
walking paginate list_objects_v2 with continuation tokens.
"""
from __future__ import annotations

import logging
from typing import Iterator, Optional

from ..errors import ObjectNotFound
from ..settings import Settings, create_settings_from_env
from .base import Backend, WalkEntry
from .metadata import ObjectMetadata
from .models import ListObjectsPage
from .s3_handle import S3_SCHEME
from .s3_reader import S3ObjectReader
from .s3_transport import S3Transport
from .s3_writer import S3ObjectWriter
from .transport import ObjectTransport
from .uri import clean_key

__all__ = ["S3Backend", "make_s3_backend"]

logger = logging.getLogger(__name__)


class S3Backend(Backend):
    """Backend rooted at one S3 bucket."""

    def __init__(self, *, bucket: str, transport: ObjectTransport, settings: Optional[Settings] = None) -> None:
        """
        Initialize the backend.

        Args:
            bucket: Bucket every path is resolved against
            transport: Remote API implementation (S3Transport in production)
            settings: Part and chunk sizes; defaults if omitted
        """
        if not bucket:
            raise ValueError("bucket is required for the s3 backend")
        self._bucket = bucket
        self._transport = transport
        self._settings = settings or Settings()

    @property
    def name(self) -> str:
        return S3_SCHEME

    @property
    def root(self) -> str:
        return self._bucket

    def open(self, path: str) -> S3ObjectReader:
        return S3ObjectReader.open(
            self._transport,
            self._bucket,
            clean_key(path),
            chunk_size=self._settings.chunk_size,
        )

    def create(self, path: str) -> S3ObjectWriter:
        return S3ObjectWriter.create(
            self._transport,
            self._bucket,
            clean_key(path),
            part_size=self._settings.part_size,
        )

    def abort_upload(self, path: str, upload_id: str) -> None:
        """Discard a multipart upload left behind by an aborted writer."""
        self._transport.abort_multipart_upload(self._bucket, clean_key(path), upload_id)
        logger.info(f"Aborted upload {upload_id} for s3://{self._bucket}/{clean_key(path)}")

    def remove(self, path: str) -> None:
        self._transport.delete(self._bucket, clean_key(path))

    def remove_all(self, path: str) -> None:
        """Delete the object at ``path`` (if any) and every key under ``path + "/"``."""
        key = clean_key(path)
        removed = 0
        if key and not key.endswith("/"):
            try:
                self._transport.head(self._bucket, key)
            except ObjectNotFound:
                pass
            else:
                self._transport.delete(self._bucket, key)
                removed += 1
        for entry in self.walk(path):
            self._transport.delete(self._bucket, entry.path)
            removed += 1
        logger.info(f"Removed {removed} objects under s3://{self._bucket}/{key}")

    def stat(self, path: str) -> ObjectMetadata:
        return self._transport.head(self._bucket, clean_key(path))

    def _pages(self, prefix: str, delimiter: Optional[str] = None) -> Iterator[ListObjectsPage]:
        token: Optional[str] = None
        while True:
            page = self._transport.list_page(
                self._bucket, prefix, delimiter=delimiter, continuation_token=token
            )
            yield page
            token = page.next_token
            if token is None:
                return

    def list_dir(self, path: str) -> list[str]:
        """
        List one level below ``path``.

        Returns:
            Object keys first, then sub-"directory" prefixes (ending in "/")
        """
        prefix = _dir_prefix(path)
        keys: list[str] = []
        prefixes: list[str] = []
        for page in self._pages(prefix, delimiter="/"):
            keys.extend(obj.key for obj in page.contents)
            prefixes.extend(p.prefix for p in page.common_prefixes)
        return keys + prefixes

    def walk(self, root: str, depth: int = -1) -> Iterator[WalkEntry]:
        """
        Yield every object key below the "directory" ``root``.

        ``root`` is treated as ``root + "/"``, so siblings sharing its name as
        a prefix (``tmp2/...`` for ``tmp``) are not included. With depth >= 0,
        keys nested more than ``depth`` "/" separators below root are skipped.
        """
        prefix = _dir_prefix(root)
        for page in self._pages(prefix):
            for obj in page.contents:
                if depth >= 0:
                    rel = obj.key[len(prefix):]
                    if rel.count("/") > depth:
                        continue
                yield WalkEntry(path=obj.key, is_dir=False)

    def walk_depth(self, root: str, depth: int) -> Iterator[WalkEntry]:
        return self.walk(root, depth)

    def __repr__(self) -> str:
        return f"S3Backend(bucket={self._bucket!r})"


def _dir_prefix(path: str) -> str:
    prefix = clean_key(path)
    if prefix and not prefix.endswith("/"):
        prefix += "/"
    return prefix


def make_s3_backend(root: str, settings: Optional[Settings] = None) -> S3Backend:
    """
    Backend factory registered under the "s3" scheme.

    Args:
        root: Bucket name
        settings: Connection and streaming settings (environment if omitted)

    Raises:
        ValueError: If root is empty or settings are invalid
    """
    if not root:
        raise ValueError("s3 backend requires a bucket, e.g. s3://my-bucket/path")
    if settings is None:
        settings = create_settings_from_env()
    transport = S3Transport(settings=settings)
    return S3Backend(bucket=root, transport=transport, settings=settings)
