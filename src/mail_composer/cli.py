# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Command-line interface for genro-mail-composer.

Usage:
    mail-composer preview message.json
    mail-composer preview message.json --dot-escape --dot-mode line_start
    mail-composer send message.json --host smtp.example.com --security ssl \\
        --user mailer@example.com --password secret
    mail-composer config

Settings not given on the command line come from the INI file named by
``--config`` (or ``MAIL_COMPOSER_CONFIG``) and from ``MAIL_COMPOSER_*``
environment variables.
"""

from __future__ import annotations

import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from .config import ComposerConfig, load_config
from .exceptions import MailComposerError
from .logger import configure_logging
from .payload import DotEscapeMode
from .schema import MessageSpec
from .session import MailSession
from .smtp import DEFAULT_CHUNK_SIZE, SecurityMode, SmtpTransport

console = Console()
err_console = Console(stderr=True)


def run_async(coro):
    """Execute an async coroutine synchronously from CLI context."""
    return asyncio.run(coro)


def print_error(message: str) -> None:
    """Print a formatted error message to stderr."""
    err_console.print(f"[red]Error:[/red] {message}")


def print_success(message: str) -> None:
    """Print a formatted success message with checkmark."""
    console.print(f"[green]✓[/green] {message}")


def load_message(path: str) -> MessageSpec:
    """Read and validate a JSON message description.

    Raises:
        click.ClickException: Unreadable file, invalid JSON or schema errors.
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise click.ClickException(f"Cannot read {path}: {e}") from e
    try:
        return MessageSpec.model_validate(raw)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise click.ClickException(f"Invalid message {path}: {errors}") from e


def build_session(config: ComposerConfig, message: MessageSpec) -> MailSession:
    session = MailSession(config=config)
    duplicates = message.apply(session)
    if duplicates:
        err_console.print(f"[yellow]{duplicates} duplicate recipient(s) ignored[/yellow]")
    return session


@click.group()
@click.version_option(package_name="genro-mail-composer")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), default=None,
              help="INI configuration file (default: MAIL_COMPOSER_CONFIG or mail-composer.ini).")
@click.option("--log-level", default=None, help="Logging level (DEBUG, INFO, WARNING...).")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, log_level: str | None) -> None:
    """Compose RFC 5322 messages and deliver them over SMTP."""
    try:
        config = load_config(config_path)
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e
    configure_logging(log_level or config.log_level)
    ctx.obj = config


@main.command("preview")
@click.argument("message_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--dot-escape/--no-dot-escape", default=None, help="Escape dots in the body.")
@click.option("--dot-mode", type=click.Choice([m.value for m in DotEscapeMode]), default=None,
              help="Which dots to escape.")
@click.pass_obj
def preview_cmd(config: ComposerConfig, message_file: str, dot_escape: bool | None,
                dot_mode: str | None) -> None:
    """Print the payload that would be sent for MESSAGE_FILE."""
    message = load_message(message_file)
    try:
        session = build_session(config, message)
        payload = session.prepare(
            dot_escape=dot_escape,
            timestamp=message.date,
            dot_mode=DotEscapeMode(dot_mode) if dot_mode else None,
        )
    except MailComposerError as e:
        raise click.ClickException(f"{e.code}: {e}") from e

    click.echo(payload.data.decode("utf-8", errors="replace"), nl=False)
    err_console.print(
        f"[dim]{len(payload)} bytes, envelope: MAIL FROM {payload.mail_from}, "
        f"RCPT TO {', '.join(payload.rcpt_to)}[/dim]"
    )


@main.command("send")
@click.argument("message_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--host", "-h", default=None, help="SMTP server host.")
@click.option("--port", "-p", type=int, default=None, help="SMTP server port (default by security mode).")
@click.option("--security", type=click.Choice([m.value for m in SecurityMode]), default=None,
              help="Connection security.")
@click.option("--user", "-u", default=None, help="SMTP username.")
@click.option("--password", default=None, help="SMTP password.")
@click.option("--chunk-size", type=click.IntRange(min=1), default=DEFAULT_CHUNK_SIZE, show_default=True,
              help="Bytes pulled from the payload per read.")
@click.pass_obj
def send_cmd(config: ComposerConfig, message_file: str, host: str | None, port: int | None,
             security: str | None, user: str | None, password: str | None, chunk_size: int) -> None:
    """Deliver MESSAGE_FILE through the SMTP server."""
    message = load_message(message_file)
    try:
        session = build_session(config, message)
        if host or port is not None or security:
            target = host or config.smtp.host
            if not target:
                raise click.ClickException("No SMTP host given (use --host or [smtp] host)")
            session.set_smtp_server(
                target,
                port if port is not None else config.smtp.port,
                SecurityMode(security) if security else config.smtp.security,
            )
        if user or password:
            session.set_auth_plain(user, password)
        if not session.config.smtp.host:
            raise click.ClickException("No SMTP host given (use --host or [smtp] host)")
        session.prepare(dot_escape=False, timestamp=message.date)
        transport = SmtpTransport(session.config.smtp, chunk_size=chunk_size)
        result = run_async(session.send(transport))
    except MailComposerError as e:
        raise click.ClickException(f"{e.code}: {e}") from e
    except ValueError as e:
        raise click.ClickException(str(e)) from e

    if not result.ok:
        code = f" ({result.smtp_code})" if result.smtp_code else ""
        print_error(f"{result.status.value}{code}: {result.message}")
        sys.exit(1)
    print_success(f"Delivered {result.bytes_sent} bytes via {session.url}")
    for rcpt, reply in result.refused.items():
        err_console.print(f"[yellow]Refused[/yellow] {rcpt}: {reply}")


@main.command("config")
@click.pass_obj
def config_cmd(config: ComposerConfig) -> None:
    """Show the effective configuration (password masked)."""
    data: dict[str, Any] = asdict(config)
    if data["smtp"].get("password"):
        data["smtp"]["password"] = "****"

    table = Table(show_header=True, header_style="bold")
    table.add_column("Setting")
    table.add_column("Value")
    for section in ("smtp", "composition"):
        for key, value in data[section].items():
            if hasattr(value, "value"):
                value = value.value
            table.add_row(f"{section}.{key}", "[dim]-[/dim]" if value is None else str(value))
    table.add_row("log_level", data["log_level"])
    console.print(table)


if __name__ == "__main__":
    main()
