"""
Object metadata snapshot and its lazily populated holder.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

__all__ = ["ObjectMetadata", "MetadataSlot"]


@dataclass(frozen=True)
class ObjectMetadata:
    """
    Immutable metadata for one stored object.

    Invariants:
    - size: exact byte length (>= 0)
    - etag: opaque content-hash token from the storage API, never computed
      locally; empty when the backend has none (local files)
    - modified: None when the backend did not report it
    """
    name: str
    size: int
    etag: str = ""
    modified: Optional[datetime] = None
    is_dir: bool = False

    def __post_init__(self) -> None:
        if self.size < 0:
            raise ValueError("size must be non-negative")


class MetadataSlot:
    """
    Holds metadata that is either populated or not.

    A fresh probe never mutates an existing ObjectMetadata; it replaces the
    slot's value with a new instance.
    """

    __slots__ = ("_value",)

    def __init__(self, value: Optional[ObjectMetadata] = None) -> None:
        self._value = value

    def is_empty(self) -> bool:
        return self._value is None

    @property
    def value(self) -> Optional[ObjectMetadata]:
        return self._value

    def set(self, value: ObjectMetadata) -> None:
        self._value = value

    def get_or_probe(self, probe: Callable[[], ObjectMetadata]) -> ObjectMetadata:
        """Return the cached value, running ``probe`` once if the slot is empty."""
        if self._value is None:
            self._value = probe()
        return self._value
