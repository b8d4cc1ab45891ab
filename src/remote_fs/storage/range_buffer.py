"""
Fixed-length byte buffer used to stage range-fetches and upload parts.

The buffer never grows on write: once the fill cursor reaches the logical
length, further writes raise BufferFull and the owner must drain or commit
first. Growing is explicit through resize().
"""
from __future__ import annotations

__all__ = ["RangeBuffer", "BufferFull"]


class BufferFull(EOFError):
    """Write attempted on a buffer whose fill cursor reached its length."""
    pass


class RangeBuffer:
    """
    Byte buffer with a logical length and a fill cursor.

    Invariant: filled <= length <= capacity.

    - capacity: size of the backing bytearray
    - length: how many bytes the buffer accepts before it is full
    - filled: how many bytes were written and not yet drained
    """

    def __init__(self, length: int) -> None:
        if length < 0:
            raise ValueError(f"length must be non-negative, got {length}")
        self._data = bytearray(length)
        self._length = length
        self._fill = 0

    @property
    def capacity(self) -> int:
        return len(self._data)

    @property
    def length(self) -> int:
        return self._length

    @property
    def filled(self) -> int:
        return self._fill

    @property
    def remaining(self) -> int:
        return self._length - self._fill

    @property
    def full(self) -> bool:
        return self._fill == self._length

    def __len__(self) -> int:
        return self._fill

    def __repr__(self) -> str:
        return f"RangeBuffer(filled={self._fill}, length={self._length}, capacity={self.capacity})"

    def write(self, data) -> int:
        """
        Append as many bytes of ``data`` as fit before the logical length.

        Returns:
            Number of bytes copied (may be less than len(data))

        Raises:
            BufferFull: If the buffer is already full and data is non-empty
        """
        view = memoryview(data).cast("B")
        if not view:
            return 0
        if self.full:
            raise BufferFull(f"buffer full ({self._length} bytes)")

        n = min(len(view), self.remaining)
        self._data[self._fill:self._fill + n] = view[:n]
        self._fill += n
        return n

    def overwrite(self, offset: int, data) -> int:
        """
        Replace bytes inside the filled region starting at ``offset``.

        Never moves the fill cursor; bytes past it are not written.

        Returns:
            Number of bytes replaced
        """
        if not 0 <= offset <= self._fill:
            raise ValueError(f"offset {offset} outside filled region [0, {self._fill}]")
        view = memoryview(data).cast("B")
        n = min(len(view), self._fill - offset)
        self._data[offset:offset + n] = view[:n]
        return n

    def resize(self, length: int) -> None:
        """
        Change the logical length.

        Bytes in [0, min(old, new)) are preserved. Growing zero-fills the newly
        exposed region and extends capacity if needed; shrinking clamps the
        fill cursor.
        """
        if length < 0:
            raise ValueError(f"length must be non-negative, got {length}")
        if length > self.capacity:
            self._data.extend(bytes(length - self.capacity))
        if length > self._length:
            self._data[self._length:length] = bytes(length - self._length)
        self._length = length
        self._fill = min(self._fill, length)

    def drain(self, n: int) -> bytes:
        """Remove and return the first ``n`` filled bytes."""
        n = max(0, min(n, self._fill))
        out = bytes(self._data[:n])
        self._shift(n)
        return out

    def readinto(self, dest) -> int:
        """
        Move up to len(dest) filled bytes into ``dest``.

        Returns:
            Number of bytes copied
        """
        view = memoryview(dest).cast("B")
        n = min(len(view), self._fill)
        view[:n] = self._data[:n]
        self._shift(n)
        return n

    def view(self) -> memoryview:
        """Read-only view of the filled bytes."""
        return memoryview(self._data)[:self._fill].toreadonly()

    def clear(self) -> None:
        self._fill = 0

    def _shift(self, n: int) -> None:
        # n is bounded by one chunk/part, so the copy stays cheap
        if n == 0:
            return
        remainder = self._fill - n
        self._data[:remainder] = self._data[n:self._fill]
        self._fill = remainder
