# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for configuration loading from INI files and environment."""

import pytest

from mail_composer.address import DuplicatePolicy
from mail_composer.config import ComposerConfig, SmtpConfig, load_config
from mail_composer.payload import DotEscapeMode
from mail_composer.smtp import SecurityMode


def _write(tmp_path, text):
    path = tmp_path / "mail-composer.ini"
    path.write_text(text)
    return path


class TestDefaults:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.ini", environ={})
        assert config == ComposerConfig()
        assert config.smtp.host is None
        assert config.smtp.url is None
        assert config.composition.duplicates is DuplicatePolicy.DISCARD
        assert config.composition.dot_escape is False
        assert config.composition.dot_mode is DotEscapeMode.ALL
        assert config.log_level == "INFO"

    def test_effective_port_and_url(self):
        smtp = SmtpConfig(host="mail.example.com", security=SecurityMode.SSL)
        assert smtp.effective_port == 465
        assert smtp.url == "smtps://mail.example.com:465"
        smtp.port = 2465
        assert smtp.effective_port == 2465


class TestIniFile:
    """Values read from the INI file."""

    def test_all_sections(self, tmp_path):
        path = _write(
            tmp_path,
            "[smtp]\n"
            "host = smtp.example.com\n"
            "port = 2525\n"
            "security = TRY_TLS\n"
            "user = mailer\n"
            "password = secret\n"
            "timeout = 3.5\n"
            "[composition]\n"
            "duplicates = replace_with_latest\n"
            "dot_escape = yes\n"
            "dot_mode = line_start\n"
            "[logging]\n"
            "level = debug\n",
        )
        config = load_config(path, environ={})

        assert config.smtp.host == "smtp.example.com"
        assert config.smtp.port == 2525
        assert config.smtp.security is SecurityMode.TRY_TLS
        assert config.smtp.user == "mailer"
        assert config.smtp.password == "secret"
        assert config.smtp.timeout == 3.5
        assert config.composition.duplicates is DuplicatePolicy.REPLACE_WITH_LATEST
        assert config.composition.dot_escape is True
        assert config.composition.dot_mode is DotEscapeMode.LINE_START
        assert config.log_level == "DEBUG"

    def test_file_takes_priority_over_environment(self, tmp_path):
        path = _write(tmp_path, "[smtp]\nhost = from-file\n")
        config = load_config(path, environ={"MAIL_COMPOSER_SMTP_HOST": "from-env"})
        assert config.smtp.host == "from-file"

    def test_config_path_from_environment(self, tmp_path):
        path = _write(tmp_path, "[smtp]\nhost = named\n")
        config = load_config(environ={"MAIL_COMPOSER_CONFIG": str(path)})
        assert config.smtp.host == "named"


class TestEnvironment:
    """MAIL_COMPOSER_* fallbacks."""

    def test_environment_fallbacks(self, tmp_path):
        env = {
            "MAIL_COMPOSER_SMTP_HOST": "env.example.com",
            "MAIL_COMPOSER_SMTP_PORT": "465",
            "MAIL_COMPOSER_SMTP_SECURITY": "ssl",
            "MAIL_COMPOSER_SMTP_USER": "u",
            "MAIL_COMPOSER_SMTP_PASSWORD": "p",
            "MAIL_COMPOSER_DUPLICATES": "discard",
            "MAIL_COMPOSER_DOT_ESCAPE": "1",
            "MAIL_COMPOSER_LOG_LEVEL": "warning",
        }
        config = load_config(tmp_path / "absent.ini", environ=env)
        assert config.smtp.url == "smtps://env.example.com:465"
        assert config.smtp.user == "u"
        assert config.smtp.password == "p"
        assert config.composition.dot_escape is True
        assert config.log_level == "WARNING"

    def test_blank_host_means_unset(self, tmp_path):
        config = load_config(tmp_path / "absent.ini", environ={"MAIL_COMPOSER_SMTP_HOST": "  "})
        assert config.smtp.host is None

    @pytest.mark.parametrize(
        "name,value",
        [
            ("MAIL_COMPOSER_SMTP_SECURITY", "starttls"),
            ("MAIL_COMPOSER_DUPLICATES", "keep_all"),
            ("MAIL_COMPOSER_DOT_MODE", "some"),
            ("MAIL_COMPOSER_SMTP_PORT", "twenty-five"),
        ],
    )
    def test_invalid_values_raise(self, tmp_path, name, value):
        with pytest.raises(ValueError):
            load_config(tmp_path / "absent.ini", environ={name: value})
