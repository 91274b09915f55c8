# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SMTP delivery subsystem.

- SecurityMode: connection security and default ports
- SmtpTransport: aiosmtplib-based transport draining a TransferCoordinator
- DeliveryResult / DeliveryStatus: outcome reported back to the session

Usage:
    from mail_composer.smtp import SmtpTransport

    transport = SmtpTransport(config.smtp)
    result = await session.send(transport)
"""

from .security import SecurityMode, server_url
from .transport import (
    DEFAULT_CHUNK_SIZE,
    DeliveryResult,
    DeliveryStatus,
    SmtpTransport,
    Transport,
    classify_error,
)

__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "DeliveryResult",
    "DeliveryStatus",
    "SecurityMode",
    "SmtpTransport",
    "Transport",
    "classify_error",
    "server_url",
]
