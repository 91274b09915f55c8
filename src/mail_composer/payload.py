# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Serialization of a composed message into the SMTP DATA payload.

The payload is assembled in a fixed order, every line terminated by CRLF:

1. ``Date:`` (RFC 2822 date, local time zone)
2. ``From:`` the sender as supplied
3. ``To:`` every To recipient, in insertion order, joined by ``", "``
4. ``Cc:`` every Cc recipient, only when there is at least one
5. custom headers in key order
6. an empty line
7. the body, optionally dot-escaped

Bcc recipients never appear in the payload; they only travel in the SMTP
envelope. The output depends only on the inputs (timestamp included), so
two calls with the same arguments produce identical bytes.

Dot escaping:
    ``DotEscapeMode.ALL`` doubles every ``.`` in the body. This is the
    behavior existing callers rely on, although RFC 5321 section 4.5.2 only
    requires doubling a ``.`` that starts a line. ``DotEscapeMode.LINE_START``
    implements the RFC rule.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from email.utils import format_datetime
from enum import Enum

from .address import Address, AddressType
from .byte_queue import ByteQueue
from .exceptions import (
    AllocationFailureError,
    InvalidTimestampError,
    MissingRecipientError,
    MissingSenderError,
)
from .headers import HeaderTable

CRLF = b"\r\n"

_LEADING_DOT = re.compile(rb"(^|\n)\.")


class DotEscapeMode(str, Enum):
    """Which dots :func:`escape_dots` doubles.

    Attributes:
        ALL: Every ``.`` in the body.
        LINE_START: Only a ``.`` at the beginning of a line (RFC 5321).
    """

    ALL = "all"
    LINE_START = "line_start"


Timestamp = datetime | int | float


def format_date(timestamp: Timestamp | None = None) -> str:
    """Format ``timestamp`` as ``"Wed, 01 Jan 2025 10:00:00 +0100"``.

    Args:
        timestamp: Aware or naive ``datetime`` (naive means local time),
            POSIX seconds, or None for the current time.

    Raises:
        InvalidTimestampError: Unsupported type or value out of range.
    """
    if timestamp is not None and (
        isinstance(timestamp, bool) or not isinstance(timestamp, (datetime, int, float))
    ):
        raise InvalidTimestampError(f"Unsupported timestamp type: {type(timestamp).__name__}")
    try:
        if timestamp is None:
            moment = datetime.now().astimezone()
        elif isinstance(timestamp, datetime):
            moment = timestamp if timestamp.tzinfo is not None else timestamp.astimezone()
        else:
            moment = datetime.fromtimestamp(timestamp).astimezone()
        return format_datetime(moment)
    except (OverflowError, OSError, ValueError) as exc:
        raise InvalidTimestampError(f"Cannot format timestamp {timestamp!r}: {exc}") from exc


def escape_dots(body: bytes, mode: DotEscapeMode = DotEscapeMode.ALL) -> bytes:
    """Double the dots selected by ``mode``."""
    if DotEscapeMode(mode) is DotEscapeMode.LINE_START:
        return _LEADING_DOT.sub(rb"\1..", body)
    return body.replace(b".", b"..")


@dataclass(frozen=True)
class PreparedPayload:
    """Immutable serialized message plus the envelope needed to send it.

    Attributes:
        data: The DATA block (headers, blank line, body).
        mail_from: Envelope sender mailbox.
        rcpt_to: Envelope recipient mailboxes (To, Cc and Bcc).
        header_size: Length of the header block including the blank line.
    """

    data: bytes
    mail_from: str
    rcpt_to: tuple[str, ...]
    header_size: int

    @property
    def headers(self) -> bytes:
        return self.data[:self.header_size]

    @property
    def body(self) -> bytes:
        return self.data[self.header_size:]

    def __len__(self) -> int:
        return len(self.data)

    def __bytes__(self) -> bytes:
        return self.data


def _join(addresses: Iterable[Address]) -> str:
    return ", ".join(address.raw for address in addresses)


def prepare(
    sender: Address | None,
    recipients: Iterable[Address],
    headers: HeaderTable | Iterable[tuple[str, str | None]],
    body: bytes | ByteQueue,
    dot_escape: bool = False,
    timestamp: Timestamp | None = None,
    *,
    dot_mode: DotEscapeMode = DotEscapeMode.ALL,
) -> PreparedPayload:
    """Serialize a message.

    Args:
        sender: The From address.
        recipients: To/Cc/Bcc recipients in insertion order.
        headers: Custom headers; a :class:`HeaderTable` or ``(key, value)``
            pairs already in the desired order.
        body: Raw body bytes.
        dot_escape: Double dots in the body according to ``dot_mode``.
        timestamp: Value of the Date header (default: now).
        dot_mode: See :class:`DotEscapeMode`.

    Raises:
        MissingRecipientError: No To recipient (Cc/Bcc alone are not enough).
        MissingSenderError: To recipients present but no sender.
        InvalidTimestampError: ``timestamp`` cannot be formatted.
        AllocationFailureError: Out of memory while assembling.
    """
    recipients = tuple(recipients)
    to_addrs = [r for r in recipients if r.type is AddressType.TO]
    cc_addrs = [r for r in recipients if r.type is AddressType.CC]

    if not to_addrs:
        raise MissingRecipientError("At least one To recipient is required")
    if sender is None:
        raise MissingSenderError("Sender address is not set")

    date = format_date(timestamp)
    raw_body = bytes(body)

    try:
        out = ByteQueue()
        out.append(f"Date: {date}\r\n")
        out.append(f"From: {sender.raw}\r\n")
        out.append(f"To: {_join(to_addrs)}\r\n")
        if cc_addrs:
            out.append(f"Cc: {_join(cc_addrs)}\r\n")
        for key, value in headers:
            out.append(f"{key}: {value or ''}\r\n")
        out.append(CRLF)
        header_size = len(out)

        if raw_body:
            out.append(escape_dots(raw_body, dot_mode) if dot_escape else raw_body)
        data = bytes(out)
    except MemoryError as exc:
        raise AllocationFailureError("Cannot allocate payload buffer") from exc

    return PreparedPayload(
        data=data,
        mail_from=sender.email_part,
        rcpt_to=tuple(r.email_part for r in recipients),
        header_size=header_size,
    )
