# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Delivery of a prepared payload over SMTP.

A transport receives a :class:`~mail_composer.transfer.TransferCoordinator`,
drains it and reports a :class:`DeliveryResult`. Failures are returned,
not raised, so the session can record them and move to its failed state.

:class:`SmtpTransport` opens one aiosmtplib connection per delivery:

- SSL: implicit TLS (``use_tls=True``)
- FORCE_TLS / DEFAULT: mandatory STARTTLS
- TRY_TLS: STARTTLS when the server offers it
- PLAIN: no encryption

aiosmtplib applies SMTP transparency (leading dots doubled, line endings
normalized to CRLF) when it writes DATA, so payloads handed to it are
normally prepared without manual dot escaping.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Protocol

import aiosmtplib

from ..logger import get_logger
from ..transfer import TransferCoordinator
from .security import SecurityMode

if TYPE_CHECKING:
    from ..config import SmtpConfig

logger = get_logger("mail_composer.smtp")

DEFAULT_CHUNK_SIZE = 16 * 1024


class DeliveryStatus(str, Enum):
    """Final status reported by a transport."""

    SUCCESS = "success"
    PROTOCOL_ERROR = "protocol_error"
    CONNECTION_ERROR = "connection_error"


@dataclass
class DeliveryResult:
    """Outcome of one delivery attempt.

    Attributes:
        status: SUCCESS, PROTOCOL_ERROR or CONNECTION_ERROR.
        smtp_code: Reply code of the failing command, when known.
        message: Server reply or error description.
        refused: Recipients the server rejected while still accepting the
            message for others, mapped to the server reply.
        bytes_sent: Payload bytes drained from the coordinator.
    """

    status: DeliveryStatus
    smtp_code: int | None = None
    message: str = ""
    refused: dict[str, str] = field(default_factory=dict)
    bytes_sent: int = 0

    @property
    def ok(self) -> bool:
        return self.status is DeliveryStatus.SUCCESS


class Transport(Protocol):
    """Anything that can drain a coordinator and deliver its payload."""

    async def deliver(self, source: TransferCoordinator) -> DeliveryResult: ...


def classify_error(exc: BaseException) -> DeliveryResult:
    """Map an exception raised during delivery to a failed DeliveryResult.

    Network, timeout and disconnection errors are connection errors; any
    other SMTP error is a protocol error carrying the server reply code.
    """
    smtp_code = None
    if isinstance(exc, aiosmtplib.SMTPException):
        smtp_code = getattr(exc, "code", None) or getattr(exc, "smtp_code", None)

    connection_errors = (
        aiosmtplib.SMTPConnectError,
        aiosmtplib.SMTPServerDisconnected,
        aiosmtplib.SMTPTimeoutError,
        asyncio.TimeoutError,
        TimeoutError,
        ConnectionError,
        OSError,
    )
    if isinstance(exc, connection_errors):
        status = DeliveryStatus.CONNECTION_ERROR
    else:
        status = DeliveryStatus.PROTOCOL_ERROR
    return DeliveryResult(status=status, smtp_code=smtp_code, message=str(exc) or type(exc).__name__)


class SmtpTransport:
    """Deliver payloads to one SMTP server with aiosmtplib."""

    def __init__(self, config: SmtpConfig, *, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if not config.host:
            raise ValueError("SMTP host is not configured")
        self.config = config
        self.chunk_size = chunk_size

    def _client(self) -> aiosmtplib.SMTP:
        security = SecurityMode(self.config.security)
        return aiosmtplib.SMTP(
            hostname=self.config.host,
            port=self.config.effective_port,
            timeout=self.config.timeout,
            **security.client_options(),
        )

    async def _open(self, smtp: aiosmtplib.SMTP) -> None:
        await smtp.connect()
        if self.config.user and self.config.password:
            await smtp.login(self.config.user, self.config.password)

    async def deliver(self, source: TransferCoordinator) -> DeliveryResult:
        """Connect, authenticate, send MAIL/RCPT/DATA and quit.

        The DATA block is built by draining ``source`` chunk by chunk.
        """
        payload = source.payload
        smtp = self._client()
        try:
            # Wrap in asyncio.wait_for so a stalled handshake cannot hang the caller
            await asyncio.wait_for(self._open(smtp), timeout=self.config.timeout + 5.0)
            data = b"".join(source.chunks(self.chunk_size))
            refused, response = await smtp.sendmail(payload.mail_from, list(payload.rcpt_to), data)
        except Exception as exc:
            result = classify_error(exc)
            logger.warning(
                "Delivery to %s failed (%s, code=%s): %s",
                self.config.url, result.status.value, result.smtp_code, result.message,
            )
            result.bytes_sent = source.position
            return result
        finally:
            if smtp.is_connected:
                try:
                    await smtp.quit()
                except Exception as exc:
                    logger.debug("QUIT failed after delivery: %s", exc)

        result = DeliveryResult(
            status=DeliveryStatus.SUCCESS,
            smtp_code=250,
            message=str(response),
            refused={rcpt: str(reply) for rcpt, reply in refused.items()},
            bytes_sent=source.position,
        )
        if result.refused:
            logger.warning("Server refused %d recipient(s): %s", len(result.refused), ", ".join(result.refused))
        logger.info(
            "Delivered %d bytes to %d recipient(s) via %s",
            result.bytes_sent, len(payload.rcpt_to) - len(result.refused), self.config.url,
        )
        return result
