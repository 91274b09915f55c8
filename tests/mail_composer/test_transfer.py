# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for the pull-based transfer coordinator."""

import itertools
from datetime import datetime, timezone

import pytest

from mail_composer.address import Address, AddressType
from mail_composer.payload import prepare
from mail_composer.transfer import TransferCoordinator


@pytest.fixture
def payload():
    body = ("Line with a dot. " * 40 + "\r\n") * 20
    return prepare(
        Address.parse("s@x.com", AddressType.SENDER),
        [Address.parse("a@x.com"), Address.parse("c@x.com", AddressType.CC)],
        [("Subject", "Transfer test")],
        body.encode(),
        dot_escape=True,
        timestamp=datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc),
    )


class TestPull:
    """Draining the payload with pull()."""

    @pytest.mark.parametrize(
        "sizes",
        [[1], [7], [64, 3, 1000], [4096], [10**9], [0, 5, 0, 13]],
    )
    def test_any_partition_reconstructs_payload(self, payload, sizes):
        source = TransferCoordinator(payload)
        out = bytearray()
        for size in itertools.cycle(sizes):
            if source.exhausted:
                break
            out += source.pull(size)
        assert bytes(out) == payload.data
        assert len(source.pull(100)) == 0

    def test_pull_never_exceeds_request(self, payload):
        source = TransferCoordinator(payload)
        chunk = source.pull(10)
        assert len(chunk) == 10
        assert source.position == 10
        assert source.remaining == len(payload) - 10

    def test_pull_returns_views_into_payload(self, payload):
        source = TransferCoordinator(payload)
        chunk = source.pull(32)
        assert isinstance(chunk, memoryview)
        assert chunk.readonly
        assert chunk.obj is payload.data

    def test_exhausted_returns_empty(self, payload):
        source = TransferCoordinator(payload)
        source.pull(len(payload))
        assert source.exhausted
        assert source.pull(1).nbytes == 0
        assert source.pull(1).nbytes == 0

    def test_negative_size_rejected(self, payload):
        with pytest.raises(ValueError):
            TransferCoordinator(payload).pull(-1)


class TestPullInto:
    """Copying into a caller-owned buffer."""

    def test_fills_buffer_and_reports_zero_at_end(self, payload):
        source = TransferCoordinator(payload)
        buffer = bytearray(100)
        out = bytearray()
        while (n := source.pull_into(buffer)) > 0:
            assert n <= len(buffer)
            out += buffer[:n]
        assert bytes(out) == payload.data
        assert source.pull_into(buffer) == 0

    def test_short_final_read(self, payload):
        source = TransferCoordinator(payload)
        source.pull(len(payload) - 3)
        buffer = bytearray(b"\x00" * 10)
        assert source.pull_into(buffer) == 3
        assert bytes(buffer[:3]) == payload.data[-3:]
        assert bytes(buffer[3:]) == b"\x00" * 7


class TestChunks:
    def test_chunks_cover_payload(self, payload):
        source = TransferCoordinator(payload)
        chunks = list(source.chunks(500))
        assert all(len(c) <= 500 for c in chunks)
        assert b"".join(chunks) == payload.data

    def test_chunk_size_must_be_positive(self, payload):
        with pytest.raises(ValueError):
            list(TransferCoordinator(payload).chunks(0))

    def test_independent_coordinators(self, payload):
        """Each coordinator has its own cursor over the same payload."""
        first = TransferCoordinator(payload)
        second = TransferCoordinator(payload)
        first.pull(100)
        assert second.position == 0
        assert bytes(second.pull(100)) == payload.data[:100]
