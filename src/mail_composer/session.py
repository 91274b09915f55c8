# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Message composition session.

A :class:`MailSession` owns everything needed to build and deliver one
message: the address registry, the header table, the body buffer, the
prepared payload and the SMTP settings. It moves through these states::

    IDLE -> CONFIGURING -> PREPARED -> SENDING -> IDLE | FAILED

- Adding a sender, recipient, header or body text moves to CONFIGURING.
  Doing so in PREPARED or FAILED discards the prepared payload; doing so
  while SENDING raises :class:`SessionStateError`.
- ``prepare()`` freezes the inputs into an immutable payload. A failed
  prepare leaves the session in CONFIGURING with every input intact.
- ``send()`` hands a fresh :class:`TransferCoordinator` to the transport and
  ends in IDLE (delivered) or FAILED. Either way the payload is consumed;
  the next send prepares again.
- ``clear()`` empties everything and returns to IDLE from any state.

A session is meant for a single owner; it does no locking.

Example:
    Compose and send a message::

        session = MailSession()
        session.set_smtp_server("smtp.example.com", security=SecurityMode.SSL)
        session.set_auth_plain("mailer@example.com", "secret")
        session.set_sender("Mailer <mailer@example.com>")
        session.add_recipients(AddressType.TO, "alice@example.com", "bob@example.com")
        session.add_header("Subject", "Weekly report")
        session.add_body("Hello,\\r\\nthe report is ready.\\r\\n")
        result = await session.send()
"""

from __future__ import annotations

from enum import Enum

from .address import Address, AddressRegistry, AddressType, DuplicateOutcome
from .byte_queue import ByteQueue
from .config import ComposerConfig
from .exceptions import InvalidAddressError, MailComposerError, SessionStateError
from .headers import HeaderTable
from .logger import get_logger
from .payload import DotEscapeMode, PreparedPayload, Timestamp, prepare
from .smtp import DeliveryResult, SecurityMode, SmtpTransport, Transport
from .transfer import TransferCoordinator

SASL_PLAIN_AUTH_NAME_LENGTH = 256

logger = get_logger("mail_composer.session")


class SessionState(str, Enum):
    """Lifecycle state of a :class:`MailSession`."""

    IDLE = "idle"
    CONFIGURING = "configuring"
    PREPARED = "prepared"
    SENDING = "sending"
    FAILED = "failed"


class MailSession:
    """Compose one message and deliver it through a transport.

    Attributes:
        config: Composer configuration; SMTP settings are updated in place by
            :meth:`set_smtp_server` and :meth:`set_auth_plain`.
        addresses: Sender and recipients.
        headers: Custom headers.
        body: Body bytes.
        payload: The prepared payload, or None.
        state: Current :class:`SessionState`.
        last_result: Result of the most recent delivery attempt.
    """

    def __init__(
        self,
        *,
        config: ComposerConfig | None = None,
        transport: Transport | None = None,
    ):
        self.config = config or ComposerConfig()
        self.transport = transport
        self.addresses = AddressRegistry(self.config.composition.duplicates)
        self.headers = HeaderTable()
        self.body = ByteQueue()
        self.payload: PreparedPayload | None = None
        self.state = SessionState.IDLE
        self.last_result: DeliveryResult | None = None
        self._generation = 0

    # -------------------------------------------------------------------------
    # SMTP settings
    # -------------------------------------------------------------------------

    @property
    def url(self) -> str | None:
        return self.config.smtp.url

    def set_smtp_server(
        self,
        host: str,
        port: int = 0,
        security: SecurityMode = SecurityMode.DEFAULT,
    ) -> str:
        """Set the SMTP server. ``port=0`` selects the default for ``security``.

        Returns:
            The server URL, e.g. ``smtps://smtp.example.com:465``.
        """
        if not host:
            raise ValueError("SMTP host is required")
        if not 0 <= port <= 65535:
            raise ValueError(f"Invalid SMTP port: {port}")
        smtp = self.config.smtp
        smtp.host = host
        smtp.port = port
        smtp.security = SecurityMode(security)
        return smtp.url

    def set_auth_plain(self, username: str | None, password: str | None) -> None:
        """Set the credentials used to log in to the SMTP server."""
        for label, value in (("username", username), ("password", password)):
            if value is not None and len(value.encode("utf-8")) > SASL_PLAIN_AUTH_NAME_LENGTH:
                raise ValueError(f"SMTP {label} exceeds {SASL_PLAIN_AUTH_NAME_LENGTH} bytes")
        if username is not None:
            self.config.smtp.user = username
        if password is not None:
            self.config.smtp.password = password

    # -------------------------------------------------------------------------
    # Composition
    # -------------------------------------------------------------------------

    def _check_not_sending(self) -> None:
        if self.state is SessionState.SENDING:
            raise SessionStateError("Message is being sent", state=self.state)

    def _begin_mutation(self) -> None:
        self._check_not_sending()
        if self.payload is not None:
            logger.debug("Inputs changed, discarding prepared payload")
        self.payload = None
        self.state = SessionState.CONFIGURING

    def set_sender(self, address: str) -> Address:
        self._check_not_sending()
        Address.parse(address, AddressType.SENDER)
        self._begin_mutation()
        return self.addresses.set_sender(address)

    def add_recipients(self, address_type: AddressType, *addresses: str) -> int:
        """Add one or more recipients of the same type.

        Addresses are added in order; the first invalid one raises and the
        remaining ones are not added. A call that adds nothing keeps the
        prepared payload.

        Returns:
            Number of duplicates found.
        """
        self._check_not_sending()
        address_type = AddressType(address_type)
        if address_type is AddressType.SENDER:
            raise InvalidAddressError("Sender is not a recipient type; use set_sender()")
        duplicates = 0
        for address in addresses:
            Address.parse(address, address_type)
            self._begin_mutation()
            if self.addresses.add_recipient(address_type, address) is DuplicateOutcome.DUPLICATE:
                duplicates += 1
        return duplicates

    def remove_recipient(self, address: str) -> bool:
        self._begin_mutation()
        return self.addresses.remove(address)

    def add_header(self, key: str, value: str | None) -> None:
        self._begin_mutation()
        self.headers.set(key, value)

    def add_body(self, text: str | bytes) -> int:
        """Append ``text`` to the body. Returns the number of bytes added."""
        if text is None or len(text) == 0:
            raise ValueError("Body text must not be empty")
        self._begin_mutation()
        return self.body.append(text)

    def prepare(
        self,
        dot_escape: bool | None = None,
        timestamp: Timestamp | None = None,
        *,
        dot_mode: DotEscapeMode | None = None,
    ) -> PreparedPayload:
        """Serialize the message and freeze it as :attr:`payload`.

        Args:
            dot_escape: Escape dots in the body. Defaults to the configured value.
            timestamp: Date header value. Defaults to now.
            dot_mode: Which dots to escape. Defaults to the configured value.

        Raises:
            MissingSenderError, MissingRecipientError, InvalidTimestampError,
            AllocationFailureError: The session stays in CONFIGURING.
            SessionStateError: The session is sending.
        """
        if self.state is SessionState.SENDING:
            raise SessionStateError("Message is being sent", state=self.state)
        composition = self.config.composition
        sender, recipients = self.addresses.snapshot()
        self.payload = None
        try:
            payload = prepare(
                sender,
                recipients,
                self.headers,
                self.body,
                composition.dot_escape if dot_escape is None else dot_escape,
                timestamp,
                dot_mode=dot_mode or composition.dot_mode,
            )
        except MailComposerError as exc:
            self.state = SessionState.CONFIGURING
            logger.warning("Cannot prepare message: %s", exc)
            raise
        self.payload = payload
        self.state = SessionState.PREPARED
        logger.debug(
            "Prepared %d byte payload for %d recipient(s)", len(payload), len(payload.rcpt_to)
        )
        return payload

    def _resolve_transport(self, transport: Transport | None) -> Transport:
        if transport is not None:
            return transport
        if self.transport is None:
            if not self.config.smtp.host:
                raise SessionStateError("No transport and no SMTP server configured", state=self.state)
            self.transport = SmtpTransport(self.config.smtp)
        return self.transport

    async def send(self, transport: Transport | None = None) -> DeliveryResult:
        """Deliver the message.

        Prepares the payload first unless it is already prepared. The
        implicit prepare skips manual dot escaping because the SMTP
        transport applies DATA transparency itself.

        Returns:
            The transport's :class:`DeliveryResult`. Failures are returned,
            not raised, and leave the session in FAILED.
        """
        if self.state is SessionState.SENDING:
            raise SessionStateError("A delivery is already in progress", state=self.state)
        transport = self._resolve_transport(transport)
        if self.state is not SessionState.PREPARED or self.payload is None:
            self.prepare(dot_escape=False)

        source = TransferCoordinator(self.payload)
        generation = self._generation
        self.state = SessionState.SENDING
        try:
            result = await transport.deliver(source)
        except BaseException:
            if generation == self._generation:
                self.state = SessionState.FAILED
                self.payload = None
            raise

        if generation != self._generation:
            # clear() ran during delivery; the session no longer owns this attempt
            logger.debug("Session cleared during delivery, result not recorded")
            return result
        self.last_result = result
        self.payload = None
        if result.ok:
            self.state = SessionState.IDLE
            logger.info("Message delivered (%d bytes)", source.position)
        else:
            self.state = SessionState.FAILED
            logger.warning("Message delivery failed: %s %s", result.status.value, result.message)
        return result

    def clear(self) -> None:
        """Remove sender, recipients, headers, body and payload.

        Valid in any state. A delivery still in flight finishes but no
        longer updates the session.
        """
        self._generation += 1
        self.addresses.clear()
        self.headers.clear()
        self.body.clear()
        self.payload = None
        self.last_result = None
        self.state = SessionState.IDLE

    def dump(self) -> str:
        """Human readable account of the session. The password is masked."""
        smtp = self.config.smtp
        lines = [
            f"url: {smtp.url or '-'}",
            f"mode: {SecurityMode(smtp.security).value}",
            f"username: {smtp.user or ''}",
            f"password: {'****' if smtp.password else ''}",
            f"state: {self.state.value}",
        ]
        sender = self.addresses.sender
        lines.append(f"MAIL FROM {sender.raw if sender else '-'}")
        for recipient in self.addresses.recipients():
            lines.append(f"({recipient.type.value}) RCPT TO {recipient.raw}")
        if self.payload is not None:
            lines.append(f"---- dump payload: cb={len(self.payload)} ----")
            lines.append(self.payload.data.decode("utf-8", errors="replace"))
        return "\n".join(lines)
