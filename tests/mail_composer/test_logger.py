# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for logger helpers."""

import logging

import pytest

from mail_composer.logger import LOG_FORMAT, configure_logging, get_logger


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestGetLogger:
    def test_default_name(self):
        assert get_logger().name == "mail_composer"

    def test_custom_name(self):
        logger = get_logger("mail_composer.session")
        assert logger is logging.getLogger("mail_composer.session")


class TestConfigureLogging:
    """Root configuration done by the command-line entry point."""

    def test_explicit_level(self, restore_root_logging):
        configure_logging("debug")
        assert restore_root_logging.level == logging.DEBUG
        assert len(restore_root_logging.handlers) == 1
        assert restore_root_logging.handlers[0].formatter._fmt == LOG_FORMAT

    def test_level_from_environment(self, restore_root_logging, monkeypatch):
        monkeypatch.setenv("MAIL_COMPOSER_LOG_LEVEL", "warning")
        configure_logging()
        assert restore_root_logging.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, restore_root_logging):
        configure_logging("chatty")
        assert restore_root_logging.level == logging.INFO

    def test_reconfigure_replaces_handlers(self, restore_root_logging):
        configure_logging("info")
        configure_logging("error")
        assert len(restore_root_logging.handlers) == 1
        assert restore_root_logging.level == logging.ERROR
