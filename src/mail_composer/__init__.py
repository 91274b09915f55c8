# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Compose RFC 5322 messages and stream them to an SMTP transport.

Components:
    MailSession: Composition session (addresses, headers, body, payload).
    AddressRegistry: Sender plus duplicate-free, classified recipients.
    HeaderTable: Key-ordered custom headers with latest-wins inserts.
    prepare: Deterministic serializer producing a PreparedPayload.
    TransferCoordinator: Pull-based reader a transport drains.
    SmtpTransport: aiosmtplib delivery of a prepared payload.

Example:
    Compose and preview a message::

        from mail_composer import AddressType, MailSession

        session = MailSession()
        session.set_sender("s@example.com")
        session.add_recipients(AddressType.TO, "a@example.com")
        session.add_header("Subject", "Hello")
        session.add_body("hi there")
        print(session.prepare().data.decode())
"""

from .address import (
    EMAIL_ADDRESS_MAX_LENGTH,
    Address,
    AddressRegistry,
    AddressType,
    DuplicateOutcome,
    DuplicatePolicy,
)
from .byte_queue import ByteQueue
from .config import ComposerConfig, CompositionConfig, SmtpConfig, load_config
from .exceptions import (
    AllocationFailureError,
    InvalidAddressError,
    InvalidHeaderError,
    InvalidTimestampError,
    MailComposerError,
    MissingRecipientError,
    MissingSenderError,
    SessionStateError,
)
from .headers import HeaderTable
from .payload import DotEscapeMode, PreparedPayload, escape_dots, format_date, prepare
from .session import MailSession, SessionState
from .smtp import DeliveryResult, DeliveryStatus, SecurityMode, SmtpTransport, Transport
from .transfer import TransferCoordinator

__version__ = "0.1.0"


def main() -> None:
    """CLI entry point."""
    from .cli import main as cli_main

    cli_main()


__all__ = [
    "EMAIL_ADDRESS_MAX_LENGTH",
    "Address",
    "AddressRegistry",
    "AddressType",
    "AllocationFailureError",
    "ByteQueue",
    "ComposerConfig",
    "CompositionConfig",
    "DeliveryResult",
    "DeliveryStatus",
    "DotEscapeMode",
    "DuplicateOutcome",
    "DuplicatePolicy",
    "HeaderTable",
    "InvalidAddressError",
    "InvalidHeaderError",
    "InvalidTimestampError",
    "MailComposerError",
    "MailSession",
    "MissingRecipientError",
    "MissingSenderError",
    "PreparedPayload",
    "SecurityMode",
    "SessionState",
    "SessionStateError",
    "SmtpConfig",
    "SmtpTransport",
    "TransferCoordinator",
    "Transport",
    "escape_dots",
    "format_date",
    "load_config",
    "prepare",
]
