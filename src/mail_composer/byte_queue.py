# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Growable FIFO byte buffer.

Bytes are appended at the tail and read from the head. Reading is split in
two steps, ``peek`` (copy without removing) and ``consume`` (advance the
head), so a reader can hand bytes to a sink and only drop them once the sink
accepted them. Consumed bytes are reclaimed lazily: the buffer is compacted
when the dead prefix grows larger than the live data.

Example:
    >>> queue = ByteQueue()
    >>> queue.append(b"hello ")
    >>> queue.append("world")
    >>> queue.peek(5)
    b'hello'
    >>> queue.consume(6)
    >>> bytes(queue.view())
    b'world'
"""

from __future__ import annotations

_COMPACT_THRESHOLD = 4096


class ByteQueue:
    """FIFO byte buffer with peek/consume reads."""

    __slots__ = ("_buffer", "_head")

    def __init__(self, data: bytes | str | None = None):
        self._buffer = bytearray()
        self._head = 0
        if data:
            self.append(data)

    def append(self, data: bytes | bytearray | memoryview | str) -> int:
        """Append ``data`` at the tail. Strings are encoded as UTF-8.

        Returns:
            Number of bytes appended.
        """
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._buffer += data
        return len(data)

    def peek(self, max_bytes: int) -> bytes:
        """Return a copy of up to ``max_bytes`` bytes from the head."""
        if max_bytes < 0:
            raise ValueError(f"max_bytes must be >= 0, got {max_bytes}")
        end = min(self._head + max_bytes, len(self._buffer))
        return bytes(self._buffer[self._head:end])

    def consume(self, n: int) -> None:
        """Advance the head past ``n`` bytes."""
        if n < 0 or n > len(self):
            raise ValueError(f"cannot consume {n} bytes from a queue of {len(self)}")
        self._head += n
        if self._head == len(self._buffer):
            self._buffer.clear()
            self._head = 0
        elif self._head > _COMPACT_THRESHOLD and self._head > len(self._buffer) - self._head:
            del self._buffer[:self._head]
            self._head = 0

    def view(self) -> memoryview:
        """Zero-copy read-only view of the unread bytes.

        The view must be released before the queue is mutated again.
        """
        return memoryview(self._buffer)[self._head:].toreadonly()

    def clear(self) -> None:
        self._buffer = bytearray()
        self._head = 0

    def __len__(self) -> int:
        return len(self._buffer) - self._head

    def __bytes__(self) -> bytes:
        return bytes(self._buffer[self._head:])

    def __repr__(self) -> str:
        return f"ByteQueue(length={len(self)})"
