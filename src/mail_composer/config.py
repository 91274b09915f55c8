# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration dataclasses and the INI/environment loader.

Provides nested configuration structure:
- config.smtp.host
- config.composition.duplicates
- config.log_level

Values come from an INI file with ``MAIL_COMPOSER_*`` environment variables
as fallbacks::

    [smtp]
    host = smtp.example.com
    port = 587
    security = force_tls
    user = mailer@example.com
    password = secret
    timeout = 10

    [composition]
    duplicates = discard
    dot_escape = false
    dot_mode = all

    [logging]
    level = INFO
"""

from __future__ import annotations

import configparser
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .address import DuplicatePolicy
from .payload import DotEscapeMode
from .smtp.security import SecurityMode, server_url

DEFAULT_CONFIG_PATH = "mail-composer.ini"
ENV_PREFIX = "MAIL_COMPOSER_"


@dataclass
class SmtpConfig:
    """SMTP server and credentials."""

    host: str | None = None
    """SMTP server hostname. None means no server configured."""

    port: int = 0
    """Server port. 0 selects the default for the security mode."""

    security: SecurityMode = SecurityMode.DEFAULT
    """Connection security (see SecurityMode)."""

    user: str | None = None
    """Username for AUTH PLAIN/LOGIN."""

    password: str | None = None
    """Password for AUTH PLAIN/LOGIN."""

    timeout: float = 10.0
    """Timeout in seconds for each SMTP command."""

    @property
    def effective_port(self) -> int:
        return self.port or SecurityMode(self.security).default_port

    @property
    def url(self) -> str | None:
        if not self.host:
            return None
        return server_url(self.host, self.port, self.security)


@dataclass
class CompositionConfig:
    """Message composition behavior."""

    duplicates: DuplicatePolicy = DuplicatePolicy.DISCARD
    """How a recipient added twice is resolved."""

    dot_escape: bool = False
    """Escape dots in the body when preparing the payload explicitly."""

    dot_mode: DotEscapeMode = DotEscapeMode.ALL
    """Which dots are escaped when dot_escape is on."""


@dataclass
class ComposerConfig:
    """Main configuration container.

    Example:
        config = ComposerConfig(
            smtp=SmtpConfig(host="smtp.example.com", security=SecurityMode.SSL),
        )
        session = MailSession(config=config)
    """

    smtp: SmtpConfig = field(default_factory=SmtpConfig)
    """SMTP server settings."""

    composition: CompositionConfig = field(default_factory=CompositionConfig)
    """Composition settings."""

    log_level: str = "INFO"
    """Logging level used by the command-line entry point."""


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = str(value).strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def load_config(
    path: str | os.PathLike[str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> ComposerConfig:
    """Load configuration from an INI file with environment fallbacks.

    Environment variables (all prefixed with MAIL_COMPOSER_):
      MAIL_COMPOSER_CONFIG - Path to the INI file (default: mail-composer.ini)
      MAIL_COMPOSER_SMTP_HOST, _SMTP_PORT, _SMTP_SECURITY, _SMTP_USER,
      _SMTP_PASSWORD, _SMTP_TIMEOUT - SMTP server settings
      MAIL_COMPOSER_DUPLICATES - discard | replace_with_latest
      MAIL_COMPOSER_DOT_ESCAPE - Escape dots on explicit prepare
      MAIL_COMPOSER_DOT_MODE - all | line_start
      MAIL_COMPOSER_LOG_LEVEL - Logging level (default: INFO)

    A missing file is not an error: defaults and environment apply.

    Raises:
        ValueError: Unknown security mode, duplicate policy or dot mode, or a
            non-numeric port/timeout.
    """
    env = os.environ if environ is None else environ
    config_path = Path(path or env.get(f"{ENV_PREFIX}CONFIG", DEFAULT_CONFIG_PATH))
    parser = configparser.ConfigParser()
    parser.read(config_path)

    def get(section: str, option: str, env_name: str, fallback: str | None = None) -> str | None:
        if parser.has_option(section, option):
            return parser.get(section, option)
        return env.get(f"{ENV_PREFIX}{env_name}", fallback)

    port = get("smtp", "port", "SMTP_PORT")
    timeout = get("smtp", "timeout", "SMTP_TIMEOUT")
    smtp = SmtpConfig(
        host=(get("smtp", "host", "SMTP_HOST") or "").strip() or None,
        port=int(port) if port else 0,
        security=SecurityMode(get("smtp", "security", "SMTP_SECURITY", "default").strip().lower()),
        user=get("smtp", "user", "SMTP_USER") or None,
        password=get("smtp", "password", "SMTP_PASSWORD") or None,
        timeout=float(timeout) if timeout else 10.0,
    )
    composition = CompositionConfig(
        duplicates=DuplicatePolicy(get("composition", "duplicates", "DUPLICATES", "discard").strip().lower()),
        dot_escape=_parse_bool(get("composition", "dot_escape", "DOT_ESCAPE"), False),
        dot_mode=DotEscapeMode(get("composition", "dot_mode", "DOT_MODE", "all").strip().lower()),
    )
    log_level = (get("logging", "level", "LOG_LEVEL", "INFO") or "INFO").strip().upper()
    return ComposerConfig(smtp=smtp, composition=composition, log_level=log_level)


__all__ = [
    "ComposerConfig",
    "CompositionConfig",
    "SmtpConfig",
    "load_config",
]
