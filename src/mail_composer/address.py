# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Address parsing and the deduplicating recipient registry.

An address is accepted in the form ``display name (comment) <mailbox>``,
where every part except the mailbox is optional. The mailbox (``email_part``)
is the text enclosed by ``<`` and ``>``; without angle brackets the whole
string is the mailbox.

The registry keeps one sender and an ordered list of recipients. Recipients
are unique by ``email_part`` across all classifications: a Bcc entry for a
mailbox already listed as To is a duplicate. SMTP delivers To, Cc and Bcc
through the same RCPT list, so one key per mailbox prevents delivering the
same message twice.

Example:
    >>> registry = AddressRegistry()
    >>> registry.add_recipient(AddressType.TO, "Bob <bob@example.com>")
    <DuplicateOutcome.INSERTED: 'inserted'>
    >>> registry.add_recipient(AddressType.BCC, "bob@example.com")
    <DuplicateOutcome.DUPLICATE: 'duplicate'>
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from .exceptions import AllocationFailureError, InvalidAddressError
from .logger import get_logger

EMAIL_ADDRESS_MAX_LENGTH = 256
"""Maximum size of a raw address, in UTF-8 bytes."""

_COMMENT_PATTERN = re.compile(r"\(([^()]*)\)")

logger = get_logger("mail_composer.address")


class AddressType(str, Enum):
    """Classification of an address within a message.

    Attributes:
        SENDER: The From address (also used as MAIL FROM).
        TO: Visible primary recipient.
        CC: Visible carbon-copy recipient.
        BCC: Blind recipient, never written to the payload.
    """

    SENDER = "From"
    TO = "To"
    CC = "Cc"
    BCC = "Bcc"


class DuplicatePolicy(str, Enum):
    """What the registry does when a mailbox is added twice.

    Attributes:
        DISCARD: Keep the first record, ignore the new one.
        REPLACE_WITH_LATEST: Overwrite the stored record in place; the
            recipient keeps its original position.
    """

    DISCARD = "discard"
    REPLACE_WITH_LATEST = "replace_with_latest"


class DuplicateOutcome(str, Enum):
    """Result of :meth:`AddressRegistry.add_recipient`."""

    INSERTED = "inserted"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class Address:
    """A parsed address.

    Attributes:
        type: Classification (sender, to, cc, bcc).
        raw: The address exactly as supplied, written verbatim to headers.
        email_part: The mailbox used for deduplication and the SMTP envelope.
        display_name: Text before ``<``, without the comment. None if absent.
        comment: Text inside the first ``(...)``. None if absent.
    """

    type: AddressType
    raw: str
    email_part: str
    display_name: str | None = None
    comment: str | None = None

    @classmethod
    def parse(cls, address: str, address_type: AddressType = AddressType.TO) -> Address:
        """Validate ``address`` and split it into its parts.

        Raises:
            InvalidAddressError: Empty, longer than 256 bytes, containing
                CR/LF, or with unbalanced angle brackets.
        """
        if not isinstance(address, str):
            raise InvalidAddressError(f"Address must be a string, got {type(address).__name__}")
        raw = address.strip()
        if not raw:
            raise InvalidAddressError("Address is empty", address=address)
        if len(raw.encode("utf-8")) > EMAIL_ADDRESS_MAX_LENGTH:
            raise InvalidAddressError(
                f"Address exceeds {EMAIL_ADDRESS_MAX_LENGTH} bytes", address=address
            )
        if "\r" in raw or "\n" in raw:
            raise InvalidAddressError("Address contains a line break", address=address)

        email_part, before = _split_mailbox(raw)

        comment = None
        match = _COMMENT_PATTERN.search(raw)
        if match:
            comment = match.group(1).strip() or None

        display_name = None
        if before is not None:
            name = _COMMENT_PATTERN.sub("", before).strip().strip('"').strip()
            display_name = name or None

        return cls(
            type=address_type,
            raw=raw,
            email_part=email_part,
            display_name=display_name,
            comment=comment,
        )

    def __str__(self) -> str:
        return self.raw


def _split_mailbox(raw: str) -> tuple[str, str | None]:
    """Return ``(email_part, text_before_bracket)`` for a raw address."""
    start = raw.find("<")
    if start < 0:
        if ">" in raw:
            raise InvalidAddressError("Unbalanced '>' in address", address=raw)
        return raw, None

    end = raw.find(">", start + 1)
    if end < 0:
        raise InvalidAddressError("Missing '>' in address", address=raw)
    mailbox = raw[start + 1:end].strip()
    if not mailbox:
        raise InvalidAddressError("Empty '<>' in address", address=raw)
    return mailbox, raw[:start]


class AddressRegistry:
    """Sender plus an ordered, duplicate-free recipient list.

    Lookups go through a dict keyed by ``email_part``; the list keeps the
    insertion order used for the To/Cc header lines and the RCPT TO
    sequence.
    """

    def __init__(self, policy: DuplicatePolicy = DuplicatePolicy.DISCARD):
        self.policy = DuplicatePolicy(policy)
        self._sender: Address | None = None
        self._order: list[str] = []
        self._by_mailbox: dict[str, Address] = {}

    @property
    def sender(self) -> Address | None:
        return self._sender

    def set_sender(self, address: str) -> Address:
        """Parse ``address`` and store it as the sender, replacing any previous one."""
        self._sender = Address.parse(address, AddressType.SENDER)
        return self._sender

    def add_recipient(self, address_type: AddressType, address: str) -> DuplicateOutcome:
        """Add a To/Cc/Bcc recipient.

        The mailbox is looked up across every classification. A duplicate
        is resolved by :attr:`policy`.

        Returns:
            ``INSERTED`` for a new mailbox, ``DUPLICATE`` otherwise.

        Raises:
            InvalidAddressError: Malformed address or ``address_type`` is SENDER.
            AllocationFailureError: Out of memory.
        """
        address_type = AddressType(address_type)
        if address_type is AddressType.SENDER:
            raise InvalidAddressError("Sender is not a recipient type; use set_sender()", address=address)
        record = Address.parse(address, address_type)

        current = self._by_mailbox.get(record.email_part)
        if current is not None:
            if self.policy is DuplicatePolicy.REPLACE_WITH_LATEST:
                self._by_mailbox[record.email_part] = record
                logger.debug(
                    "Duplicate recipient %s replaced (%s -> %s)",
                    record.email_part, current.type.value, record.type.value,
                )
            else:
                logger.debug(
                    "Duplicate recipient %s discarded (kept as %s)",
                    record.email_part, current.type.value,
                )
            return DuplicateOutcome.DUPLICATE

        try:
            self._by_mailbox[record.email_part] = record
            self._order.append(record.email_part)
        except MemoryError as exc:
            self._by_mailbox.pop(record.email_part, None)
            raise AllocationFailureError("Cannot grow recipient list") from exc
        return DuplicateOutcome.INSERTED

    def find(self, address: str) -> Address | None:
        """Return the recipient whose mailbox matches the mailbox of ``address``."""
        if not isinstance(address, str):
            return None
        try:
            email_part, _ = _split_mailbox(address.strip())
        except InvalidAddressError:
            return None
        return self._by_mailbox.get(email_part)

    def remove(self, address: str) -> bool:
        """Remove the recipient matching ``address``. Returns False if absent."""
        record = self.find(address)
        if record is None:
            return False
        del self._by_mailbox[record.email_part]
        self._order.remove(record.email_part)
        return True

    def recipients(self, address_type: AddressType | None = None) -> Iterator[Address]:
        """Iterate recipients in insertion order, optionally filtered by type."""
        for key in self._order:
            record = self._by_mailbox[key]
            if address_type is None or record.type is address_type:
                yield record

    def envelope_recipients(self) -> list[str]:
        """Mailboxes for RCPT TO: every To, Cc and Bcc recipient."""
        return list(self._order)

    def snapshot(self) -> tuple[Address | None, tuple[Address, ...]]:
        """Frozen copy of sender and recipients for serialization."""
        return self._sender, tuple(self.recipients())

    def clear(self) -> None:
        self._sender = None
        self._order.clear()
        self._by_mailbox.clear()

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, address: object) -> bool:
        return self.find(address) is not None
