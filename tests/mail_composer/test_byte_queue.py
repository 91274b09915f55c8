# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for the FIFO byte buffer."""

import pytest

from mail_composer.byte_queue import ByteQueue


class TestByteQueue:
    """append / peek / consume / length."""

    def test_empty_queue(self):
        queue = ByteQueue()
        assert len(queue) == 0
        assert queue.peek(10) == b""

    def test_append_bytes_and_str(self):
        """Strings are encoded as UTF-8."""
        queue = ByteQueue()
        assert queue.append(b"abc") == 3
        assert queue.append("è") == 2
        assert len(queue) == 5
        assert bytes(queue) == b"abc\xc3\xa8"

    def test_peek_does_not_remove(self):
        queue = ByteQueue(b"hello world")
        assert queue.peek(5) == b"hello"
        assert queue.peek(5) == b"hello"
        assert len(queue) == 11

    def test_peek_more_than_available(self):
        queue = ByteQueue(b"abc")
        assert queue.peek(100) == b"abc"

    def test_consume_advances_head(self):
        queue = ByteQueue(b"hello world")
        queue.consume(6)
        assert len(queue) == 5
        assert queue.peek(100) == b"world"

    def test_consume_everything_resets(self):
        queue = ByteQueue(b"abc")
        queue.consume(3)
        assert len(queue) == 0
        queue.append(b"xyz")
        assert bytes(queue) == b"xyz"

    def test_consume_more_than_length_rejected(self):
        queue = ByteQueue(b"abc")
        with pytest.raises(ValueError):
            queue.consume(4)

    def test_negative_arguments_rejected(self):
        queue = ByteQueue(b"abc")
        with pytest.raises(ValueError):
            queue.consume(-1)
        with pytest.raises(ValueError):
            queue.peek(-1)

    def test_compaction_keeps_unread_bytes(self):
        """Large consumed prefixes are reclaimed without losing data."""
        queue = ByteQueue()
        queue.append(b"a" * 10000)
        queue.append(b"tail")
        queue.consume(10000)
        assert len(queue) == 4
        assert queue.peek(10) == b"tail"

    def test_interleaved_append_and_consume(self):
        queue = ByteQueue()
        out = bytearray()
        for i in range(200):
            queue.append(bytes([i % 256]) * 100)
            chunk = queue.peek(73)
            out += chunk
            queue.consume(len(chunk))
        out += queue.peek(len(queue))
        expected = b"".join(bytes([i % 256]) * 100 for i in range(200))
        assert bytes(out) == expected

    def test_view_is_read_only(self):
        queue = ByteQueue(b"abcdef")
        queue.consume(2)
        view = queue.view()
        assert bytes(view) == b"cdef"
        assert view.readonly
        view.release()

    def test_clear(self):
        queue = ByteQueue(b"abc")
        queue.clear()
        assert len(queue) == 0
        assert bytes(queue) == b""
