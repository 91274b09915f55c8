# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Logging utilities for the mail composer.

Library modules only obtain loggers here. Handlers, level and format are
configured once by the entry point (see :func:`configure_logging`, called by
the CLI) to avoid duplicate handlers.

Example:
    Typical usage in a module::

        from mail_composer.logger import get_logger

        logger = get_logger("mail_composer.session")
        logger.info("Payload prepared")
"""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str = "mail_composer") -> logging.Logger:
    """Retrieve a logger instance.

    Args:
        name: The logger name. Defaults to "mail_composer".

    Returns:
        A ``logging.Logger`` instance bound to the given name.
    """
    return logging.getLogger(name)


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for command-line use.

    Args:
        level: Level name (DEBUG, INFO, ...). Falls back to the
            ``MAIL_COMPOSER_LOG_LEVEL`` environment variable, then INFO.
    """
    level_name = (level or os.getenv("MAIL_COMPOSER_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        force=True,  # Force reconfiguration to avoid duplicate handlers
    )
