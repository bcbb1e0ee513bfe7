from __future__ import annotations

from typing import NoReturn

import typer
from pydantic import ValidationError

from anvbot.adapters.base import ProtocolAdapter
from anvbot.adapters.mock import MockAdapter
from anvbot.bot import Bot, new_bot
from anvbot.config import (
    Option,
    Settings,
    new_config,
    with_db_dialect,
    with_db_name,
    with_log_level,
    with_request_full_sync,
)
from anvbot.domain import JID, Device
from anvbot.errors import AnvError
from anvbot.logging_setup import get_logger, setup_logging

app = typer.Typer(help="AnvBot - minimal WhatsApp bot")


def _build_adapter(settings: Settings) -> ProtocolAdapter:
    name = settings.ADAPTER.lower()
    if name == "mock":
        # An already linked account, so no QR code is shown.
        return MockAdapter(Device(jid=JID(user="mock", server="s.whatsapp.net"), push_name=settings.DEVICE_NAME))
    if name == "neonize":
        from anvbot.adapters.neonize import NeonizeAdapter

        return NeonizeAdapter(device_name=settings.DEVICE_NAME)
    raise typer.BadParameter("Unknown adapter. Choose 'neonize' or 'mock'.")


def _settings(
    db_name: str | None = None,
    log_level: str | None = None,
    dialect: str | None = None,
    full_sync: bool = False,
    adapter: str | None = None,
) -> Settings:
    options: list[Option] = []
    if db_name is not None:
        options.append(with_db_name(db_name))
    if log_level is not None:
        options.append(with_log_level(log_level))
    if dialect is not None:
        options.append(with_db_dialect(dialect))
    if full_sync:
        options.append(with_request_full_sync())
    overrides = {"ADAPTER": adapter} if adapter is not None else {}
    return new_config(*options, **overrides)


def _start(settings: Settings, json_logs: bool = False) -> Bot:
    setup_logging(json_logs=json_logs or settings.LOG_JSON, level=settings.LOG_LEVEL, force=True)
    bot = new_bot(settings, adapter=_build_adapter(settings))
    bot.start()
    return bot


def _fail(exc: Exception) -> NoReturn:
    get_logger("Anv").error("Startup failed: %s", exc)
    typer.echo(f"error: {exc}", err=True)
    raise typer.Exit(code=1)


def _run_bot(
    json_logs: bool = False,
    db_name: str | None = None,
    log_level: str | None = None,
    dialect: str | None = None,
    full_sync: bool = False,
    adapter: str | None = None,
) -> None:
    try:
        bot = _start(_settings(db_name, log_level, dialect, full_sync, adapter), json_logs)
    except (AnvError, ValidationError) as exc:
        _fail(exc)
    bot.run_forever()


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    json_logs: bool = typer.Option(False, "--json-logs", help="Enable JSON logs"),
):
    setup_logging(json_logs=json_logs)
    ctx.obj = {"json_logs": json_logs}
    if ctx.invoked_subcommand is None:
        _run_bot(json_logs)


@app.command()
def run(
    ctx: typer.Context,
    db_name: str | None = typer.Option(None, "--db-name", help="sqlite file or postgres DSN"),
    log_level: str | None = typer.Option(None, "--log-level", help="DEBUG|INFO|WARN|ERROR"),
    dialect: str | None = typer.Option(None, "--dialect", help="sqlite3|postgres"),
    full_sync: bool = typer.Option(False, "--full-sync", help="Request full history sync"),
    adapter: str | None = typer.Option(None, "--adapter", help="neonize|mock"),
):
    """Pair if needed, connect and handle events until the process is killed."""
    _run_bot(ctx.obj["json_logs"], db_name, log_level, dialect, full_sync, adapter)


@app.command()
def send(
    ctx: typer.Context,
    to: str = typer.Option(..., "--to", help="recipient as user@server"),
    text: str = typer.Option(..., "--text"),
    adapter: str | None = typer.Option(None, "--adapter", help="neonize|mock"),
):
    """Connect with the stored device and send one text message."""
    try:
        bot = _start(_settings(adapter=adapter), ctx.obj["json_logs"])
        resp = bot.reply(to, text)
    except (AnvError, ValidationError) as exc:
        _fail(exc)
    typer.echo(resp.model_dump_json(indent=2))
