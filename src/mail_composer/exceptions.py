# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Error taxonomy for message composition.

Every error carries a machine readable ``code`` so callers (and the CLI)
can report failures without matching on message text. Duplicate addresses
are not errors: they are reported through
:class:`mail_composer.address.DuplicateOutcome`.
"""

from __future__ import annotations


class MailComposerError(Exception):
    """Base class for all composition errors."""

    code = "mail_composer_error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.__class__.__doc__)


class InvalidAddressError(MailComposerError, ValueError):
    """Address is empty, malformed or longer than the allowed limit."""

    code = "invalid_address"

    def __init__(self, message: str | None = None, address: str | None = None):
        super().__init__(message)
        self.address = address


class MissingRecipientError(MailComposerError):
    """Message has no To recipient."""

    code = "missing_recipient"


class MissingSenderError(MailComposerError):
    """Message has no sender address."""

    code = "missing_sender"


class InvalidTimestampError(MailComposerError, ValueError):
    """Timestamp cannot be formatted as an RFC 2822 date."""

    code = "invalid_timestamp"


class InvalidHeaderError(MailComposerError, ValueError):
    """Header key or value would break the header block."""

    code = "invalid_header"

    def __init__(self, message: str | None = None, key: str | None = None):
        super().__init__(message)
        self.key = key


class AllocationFailureError(MailComposerError, MemoryError):
    """Resource exhaustion while composing; the session should be discarded."""

    code = "allocation_failure"


class SessionStateError(MailComposerError, RuntimeError):
    """Operation not allowed in the current session state."""

    code = "session_state"

    def __init__(self, message: str | None = None, state: object | None = None):
        super().__init__(message)
        self.state = state


__all__ = [
    "AllocationFailureError",
    "InvalidAddressError",
    "InvalidHeaderError",
    "InvalidTimestampError",
    "MailComposerError",
    "MissingRecipientError",
    "MissingSenderError",
    "SessionStateError",
]
