"""Application entry point for the telescrape bot."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv
from telethon import events

import settings
from adapters.http_fetcher import HttpFetcher
from adapters.sqlite_storage import SQLiteStorage
from adapters.telegram_mapper import SERVICE_ID, build_context
from adapters.telegram_sink import TelegramSink
from client import build_client
from core.admin import AdminCommands
from core.commands import CommandRouter, build_scraper_commands
from core.config import ScrapeConfig, load_scrape_configs_from_path, write_example_config
from core.errors import ConfigError
from core.heartbeat import heartbeat
from core.models import Conversation, Guild, Message

NAME = "TELESCRAPE"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/telescrape.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _log_task_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logging.getLogger(__name__).error(
            "Background task %s failed", task.get_name(), exc_info=exc
        )


def _load_rules() -> list[ScrapeConfig]:
    """Load scrape rules or exit; a broken rule must never be skipped."""

    try:
        return load_scrape_configs_from_path(settings.SCRAPERS_PATH)
    except ConfigError as exc:
        logging.getLogger(__name__).error("Unable to load scrape rules: %s", exc)
        print(f"Unable to load scrape rules: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting telescrape")

    storage = SQLiteStorage(settings.DB_PATH)
    storage.init_db()
    seeded = storage.seed_admins(
        (Guild(service_id=SERVICE_ID, guild_id=chat_id), user) for chat_id, user in settings.ADMINS
    )
    logger.info("%s admins are seeded", seeded)

    rules = _load_rules()
    logger.info("%s scrape rules are loaded", len(rules))

    fetcher = HttpFetcher(
        timeout_seconds=settings.FETCH_TIMEOUT_SECONDS,
        user_agent=settings.FETCH_USER_AGENT,
    )
    commands = build_scraper_commands(rules, fetcher) + AdminCommands(storage).commands()
    router = CommandRouter(commands, prefix=settings.COMMAND_PREFIX)

    client, bot_token = build_client()
    sink = TelegramSink(client)

    # All command matching happens in the core router.
    @client.on(events.NewMessage(incoming=True))
    async def handler(event) -> None:
        try:
            text = event.message.raw_text or ""
            if not text.startswith(settings.COMMAND_PREFIX):
                return
            await event.get_sender()
            conversation, user = build_context(event.message, storage)
            await router.dispatch(conversation, user, text, sink)
        except Exception:
            logger.exception("Error while handling command")

    if settings.HEARTBEAT_ENABLED and settings.HEARTBEAT_CHAT_ID is not None:
        destination = Conversation(
            service_id=SERVICE_ID,
            conversation_id=str(settings.HEARTBEAT_CHAT_ID),
            guild_id=str(settings.HEARTBEAT_CHAT_ID),
        )
        heartbeat_task = client.loop.create_task(
            heartbeat(
                settings.HEARTBEAT_SECONDS,
                destination,
                Message(description=settings.HEARTBEAT_TEXT),
                sink,
            ),
            name="heartbeat",
        )
        heartbeat_task.add_done_callback(_log_task_failure)
        logger.info("Heartbeat every %ss to %s", settings.HEARTBEAT_SECONDS, settings.HEARTBEAT_CHAT_ID)

    client.start(bot_token=bot_token)
    logger.info("Client connected. Listening for commands...")
    try:
        client.run_until_disconnected()
    finally:
        client.loop.run_until_complete(fetcher.aclose())


def _check() -> None:
    rules = _load_rules()
    fetcher = HttpFetcher()
    router = CommandRouter(build_scraper_commands(rules, fetcher), prefix=settings.COMMAND_PREFIX)
    print(f"{len(rules)} scrape rules are valid:")
    print(router.help_text())


def _example(path: Optional[str]) -> None:
    target = path or settings.SCRAPERS_PATH
    if os.path.exists(target):
        print(f"Refusing to overwrite existing file: {target}")
        raise SystemExit(1)
    write_example_config(target)
    print(f"Example scrape rules written to {target}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="telescrape")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bot")
    subparsers.add_parser("check", help="Validate the scrape rules and list the commands")
    example_parser = subparsers.add_parser("example", help="Write an example scrape rule file")
    example_parser.add_argument("path", nargs="?", help="Target file (defaults to scrapers_path)")

    args = parser.parse_args(argv)
    if args.command == "check":
        _check()
        return
    if args.command == "example":
        _example(args.path)
        return
    _run()


if __name__ == "__main__":
    main()
