# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Custom header table.

Headers are stored by key with latest-wins semantics: setting an existing
key replaces its value. Iteration follows the ordinal order of the keys,
which is the order header lines are written to the payload. Keys are case
sensitive, so ``X-Tag`` and ``x-tag`` are distinct entries.
"""

from __future__ import annotations

import bisect
from collections.abc import Callable, Iterator

from .exceptions import InvalidHeaderError

_FORBIDDEN_KEY_CHARS = frozenset(":\r\n \t")


def _validate(key: str, value: str | None) -> None:
    if not isinstance(key, str) or not key:
        raise InvalidHeaderError("Header key must be a non-empty string", key=key)
    if any(ch in _FORBIDDEN_KEY_CHARS for ch in key):
        raise InvalidHeaderError(f"Invalid character in header key {key!r}", key=key)
    if value is not None:
        if not isinstance(value, str):
            raise InvalidHeaderError(f"Header value for {key!r} must be a string", key=key)
        if "\r" in value or "\n" in value:
            raise InvalidHeaderError(f"Line break in value of header {key!r}", key=key)


class HeaderTable:
    """Key-ordered header map with replace-on-duplicate inserts."""

    def __init__(self):
        self._keys: list[str] = []
        self._values: dict[str, str | None] = {}

    def set(self, key: str, value: str | None) -> bool:
        """Insert or overwrite ``key``.

        Returns:
            True when the key was new, False when an existing value was replaced.

        Raises:
            InvalidHeaderError: Key empty or containing ``:``/whitespace, or
                value containing CR/LF.
        """
        _validate(key, value)
        if key in self._values:
            self._values[key] = value
            return False
        bisect.insort(self._keys, key)
        self._values[key] = value
        return True

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._values.get(key, default)

    def remove(self, key: str) -> bool:
        if key not in self._values:
            return False
        del self._values[key]
        index = bisect.bisect_left(self._keys, key)
        del self._keys[index]
        return True

    def foreach(self, visitor: Callable[[str, str | None], object]) -> int:
        """Call ``visitor(key, value)`` for every header in key order.

        Returns:
            Number of headers visited.
        """
        count = 0
        for key, value in self.items():
            visitor(key, value)
            count += 1
        return count

    def items(self) -> Iterator[tuple[str, str | None]]:
        for key in self._keys:
            yield key, self._values[key]

    def clear(self) -> None:
        self._keys.clear()
        self._values.clear()

    def __iter__(self) -> Iterator[tuple[str, str | None]]:
        return self.items()

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: object) -> bool:
        return key in self._values
