# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Pull-based reader over a prepared payload.

A transport drains the payload by calling :meth:`TransferCoordinator.pull`
(zero-copy views) or :meth:`TransferCoordinator.pull_into` (copy into a
buffer the transport owns) until nothing is left. Each call resumes where
the previous one stopped. No call reads past the end of the payload, and
neither copies the payload as a whole.

Example:
    >>> source = TransferCoordinator(payload)
    >>> while chunk := source.pull(8192):
    ...     sink.write(chunk)
"""

from __future__ import annotations

from collections.abc import Iterator

from .payload import PreparedPayload


class TransferCoordinator:
    """Cursor over one :class:`PreparedPayload`.

    Not reentrant: one coordinator serves one delivery attempt. A new
    attempt needs a new coordinator.
    """

    def __init__(self, payload: PreparedPayload):
        self.payload = payload
        self._view = memoryview(payload.data)
        self._cursor = 0

    @property
    def position(self) -> int:
        """Bytes drained so far."""
        return self._cursor

    @property
    def remaining(self) -> int:
        return len(self._view) - self._cursor

    @property
    def exhausted(self) -> bool:
        return self._cursor >= len(self._view)

    def pull(self, max_bytes: int) -> memoryview:
        """Return up to ``max_bytes`` bytes and advance the cursor.

        Returns:
            A read-only view into the payload; empty once exhausted.
        """
        if max_bytes < 0:
            raise ValueError(f"max_bytes must be >= 0, got {max_bytes}")
        start = self._cursor
        end = min(start + max_bytes, len(self._view))
        self._cursor = end
        return self._view[start:end]

    def pull_into(self, buffer: bytearray | memoryview) -> int:
        """Copy the next bytes into ``buffer``.

        Returns:
            Number of bytes written, at most ``len(buffer)``; 0 once exhausted.
        """
        target = memoryview(buffer).cast("B")
        chunk = self.pull(len(target))
        n = len(chunk)
        target[:n] = chunk
        return n

    def chunks(self, chunk_size: int = 8192) -> Iterator[memoryview]:
        """Yield successive views until the payload is drained."""
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be > 0, got {chunk_size}")
        while True:
            chunk = self.pull(chunk_size)
            if not chunk:
                return
            yield chunk

    def __repr__(self) -> str:
        return f"TransferCoordinator(position={self._cursor}, size={len(self._view)})"
