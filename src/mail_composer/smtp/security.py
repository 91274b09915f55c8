# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SMTP connection security modes and their defaults."""

from __future__ import annotations

from enum import Enum


class SecurityMode(str, Enum):
    """How the connection to the SMTP server is protected.

    Attributes:
        DEFAULT: Same as FORCE_TLS.
        TRY_TLS: Upgrade with STARTTLS when the server offers it.
        SSL: Implicit TLS from the first byte (smtps, port 465).
        FORCE_TLS: Mandatory STARTTLS (submission, port 587).
        PLAIN: No encryption. Only for local relays and test servers.
    """

    DEFAULT = "default"
    TRY_TLS = "try_tls"
    SSL = "ssl"
    FORCE_TLS = "force_tls"
    PLAIN = "plain"

    def resolved(self) -> SecurityMode:
        return SecurityMode.FORCE_TLS if self is SecurityMode.DEFAULT else self

    @property
    def default_port(self) -> int:
        mode = self.resolved()
        if mode is SecurityMode.SSL:
            return 465
        if mode is SecurityMode.PLAIN:
            return 25
        return 587

    @property
    def scheme(self) -> str:
        return "smtps" if self.resolved() is SecurityMode.SSL else "smtp"

    def client_options(self) -> dict[str, bool | None]:
        """``use_tls``/``start_tls`` keyword arguments for ``aiosmtplib.SMTP``.

        ``start_tls=None`` lets aiosmtplib upgrade only if the server
        advertises STARTTLS.
        """
        mode = self.resolved()
        if mode is SecurityMode.SSL:
            return {"use_tls": True, "start_tls": False}
        if mode is SecurityMode.FORCE_TLS:
            return {"use_tls": False, "start_tls": True}
        if mode is SecurityMode.TRY_TLS:
            return {"use_tls": False, "start_tls": None}
        return {"use_tls": False, "start_tls": False}


def server_url(host: str, port: int = 0, security: SecurityMode = SecurityMode.DEFAULT) -> str:
    """Build ``smtp://host:port`` (or ``smtps://``), filling in the default port."""
    security = SecurityMode(security)
    return f"{security.scheme}://{host}:{port or security.default_port}"
