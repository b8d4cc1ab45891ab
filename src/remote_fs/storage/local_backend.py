"""
Local filesystem backend: a pass-through to the host's file operations.

Paths are joined onto the backend root. Streams wrap native file objects and
raise the same errors as the S3 streams for closed handles and the
unsupported direction.
"""
from __future__ import annotations

import io
import logging
import os
import shutil
from datetime import datetime, timezone
from typing import BinaryIO, Iterator, Optional

from ..errors import AlreadyClosed, ObjectNotFound, WrongDirection
from ..settings import Settings
from .base import Backend, WalkEntry
from .metadata import ObjectMetadata
from .uri import build_url

__all__ = ["LocalBackend", "LocalFile", "FILE_SCHEME"]

logger = logging.getLogger(__name__)

FILE_SCHEME = "file"


def _metadata_from_stat(name: str, st: os.stat_result, is_dir: bool = False) -> ObjectMetadata:
    return ObjectMetadata(
        name=name,
        size=st.st_size,
        modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        is_dir=is_dir,
    )


class LocalFile:
    """Native file handle opened for exactly one direction."""

    def __init__(self, path: str, fh: BinaryIO, *, writable: bool) -> None:
        self.path = path
        self._fh: Optional[BinaryIO] = fh
        self._writable = writable

    @property
    def closed(self) -> bool:
        return self._fh is None

    def _require_open(self) -> BinaryIO:
        if self._fh is None:
            raise AlreadyClosed(f"{self.url()} is already closed")
        return self._fh

    def _require_readable(self) -> BinaryIO:
        fh = self._require_open()
        if self._writable:
            raise WrongDirection("file not open for reading")
        return fh

    def readable(self) -> bool:
        return not self._writable

    def writable(self) -> bool:
        return self._writable

    def seekable(self) -> bool:
        return True

    def url(self) -> str:
        return build_url(FILE_SCHEME, "", self.path)

    def read(self, size: int = -1) -> bytes:
        return self._require_readable().read(size)

    def readinto(self, buffer) -> int:
        return self._require_readable().readinto(buffer)

    def read_at(self, buffer, offset: int) -> int:
        fh = self._require_readable()
        pos = fh.tell()
        try:
            fh.seek(offset)
            return fh.readinto(buffer) or 0
        finally:
            fh.seek(pos)

    def write(self, data) -> int:
        fh = self._require_open()
        if not self._writable:
            raise WrongDirection("file not open for writing")
        return fh.write(data)

    def flush(self) -> None:
        self._require_open().flush()

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._require_open().seek(offset, whence)

    def tell(self) -> int:
        return self._require_open().tell()

    def stat(self) -> ObjectMetadata:
        fh = self._require_open()
        return _metadata_from_stat(os.path.basename(self.path), os.fstat(fh.fileno()))

    def close(self) -> None:
        fh = self._require_open()
        self._fh = None
        fh.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if not self.closed:
            self.close()

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<LocalFile {self.url()} {state}>"


class LocalBackend(Backend):
    """Backend rooted at a local directory (empty root means paths are used as given)."""

    def __init__(self, root: str = "") -> None:
        self._root = root

    @classmethod
    def from_settings(cls, root: str, settings: Optional[Settings] = None) -> LocalBackend:
        """Backend factory registered under the "file" scheme; settings are unused."""
        return cls(root)

    @property
    def name(self) -> str:
        return FILE_SCHEME

    @property
    def root(self) -> str:
        return self._root

    def _join_root(self, path: str) -> str:
        if not self._root:
            return path
        return os.path.join(self._root, path.lstrip("/"))

    def open(self, path: str) -> LocalFile:
        full = self._join_root(path)
        try:
            fh = open(full, "rb")
        except FileNotFoundError as exc:
            raise ObjectNotFound(f"File not found: {full}") from exc
        return LocalFile(full, fh, writable=False)

    def create(self, path: str) -> LocalFile:
        full = self._join_root(path)
        parent = os.path.dirname(full)
        if parent:
            os.makedirs(parent, exist_ok=True)
        return LocalFile(full, open(full, "wb"), writable=True)

    def remove(self, path: str) -> None:
        full = self._join_root(path)
        try:
            os.remove(full)
        except FileNotFoundError as exc:
            raise ObjectNotFound(f"File not found: {full}") from exc

    def remove_all(self, path: str) -> None:
        full = self._join_root(path)
        if os.path.isdir(full) and not os.path.islink(full):
            shutil.rmtree(full)
        elif os.path.lexists(full):
            os.remove(full)
        logger.debug(f"Removed {full}")

    def stat(self, path: str) -> ObjectMetadata:
        full = self._join_root(path)
        try:
            st = os.stat(full)
        except FileNotFoundError as exc:
            raise ObjectNotFound(f"File not found: {full}") from exc
        return _metadata_from_stat(os.path.basename(full), st, is_dir=os.path.isdir(full))

    def list_dir(self, path: str) -> list[str]:
        full = self._join_root(path)
        try:
            names = os.listdir(full)
        except FileNotFoundError as exc:
            raise ObjectNotFound(f"Directory not found: {full}") from exc
        return [os.path.join(full, name) for name in sorted(names)]

    def walk(self, root: str, depth: int = -1) -> Iterator[WalkEntry]:
        """
        Walk the tree below ``root``, the top directory included.

        With depth >= 0, entries nested deeper than ``depth`` separators below
        root are skipped and their directories are not descended into.
        """
        top = self._join_root(root)
        if not os.path.isdir(top):
            if os.path.exists(top):
                yield WalkEntry(path=top, is_dir=False)
                return
            raise ObjectNotFound(f"Directory not found: {top}")

        yield WalkEntry(path=top, is_dir=True)
        for dirpath, dirnames, filenames in os.walk(top):
            dirnames.sort()
            rel = os.path.relpath(dirpath, top)
            level = 0 if rel == os.curdir else rel.count(os.sep) + 1
            for name in dirnames:
                yield WalkEntry(path=os.path.join(dirpath, name), is_dir=True)
            for name in sorted(filenames):
                yield WalkEntry(path=os.path.join(dirpath, name), is_dir=False)
            if depth >= 0 and level >= depth:
                dirnames[:] = []

    def walk_depth(self, root: str, depth: int) -> Iterator[WalkEntry]:
        return self.walk(root, depth)

    def __repr__(self) -> str:
        return f"LocalBackend(root={self._root!r})"
