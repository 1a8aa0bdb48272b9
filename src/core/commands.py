"""Command compilation and dispatch (core domain)."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence, Tuple

from core.config import ScrapeConfig
from core.models import Conversation, Message, User
from core.ports import ContentFetcher, MessageSink
from core.scraper import Scraper

LOGGER = logging.getLogger(__name__)

Handler = Callable[[Conversation, User, Sequence[str], MessageSink], Awaitable[None]]


@dataclass(frozen=True)
class Command:
    """A chat command: trigger word, argument pattern, and handler."""

    name: str
    trigger: re.Pattern
    capture: re.Pattern
    handler: Handler
    help: str = ""


@dataclass(frozen=True)
class CommandMatch:
    command: Command
    captures: List[str]


def build_scraper_commands(configs: Iterable[ScrapeConfig], fetcher: ContentFetcher) -> List[Command]:
    """Wrap every scrape rule in a Command sharing one fetcher."""

    commands: List[Command] = []
    for config in configs:
        scraper = Scraper(config, fetcher)
        commands.append(
            Command(
                name=config.trigger,
                trigger=config.trigger_pattern,
                capture=config.capture_pattern,
                handler=scraper.handle,
                help=config.help,
            )
        )
    return commands


def _split(text: str) -> Tuple[str, str]:
    word, _, rest = text.strip().partition(" ")
    return word, rest.strip()


class CommandRouter:
    """Match chat text against commands and run the first that fits.

    Matching logic:
    - The text must start with the prefix; the first word is the command.
    - The command's trigger must match the whole word.
    - The capture pattern is searched in the remaining arguments; its full
      match and groups become the captures passed on (missing groups as "").
    """

    def __init__(self, commands: Iterable[Command], prefix: str = "!") -> None:
        self._prefix = prefix
        self._commands = list(commands)
        self._commands.append(
            Command(
                name="help",
                trigger=re.compile("help"),
                capture=re.compile(""),
                handler=self._help,
                help="help - list the available commands",
            )
        )

    @property
    def commands(self) -> List[Command]:
        return list(self._commands)

    def match(self, text: str) -> Optional[CommandMatch]:
        if not text.startswith(self._prefix):
            return None
        word, arguments = _split(text[len(self._prefix):])
        if not word:
            return None

        for command in self._commands:
            if not command.trigger.fullmatch(word):
                continue
            found = command.capture.search(arguments)
            if found is None:
                continue
            captures = [found.group(0)] + [group or "" for group in found.groups()]
            return CommandMatch(command=command, captures=captures)
        return None

    async def dispatch(
        self,
        conversation: Conversation,
        user: User,
        text: str,
        sink: MessageSink,
    ) -> bool:
        """Run the matching command; return False when nothing matched."""

        found = self.match(text)
        if found is None:
            return False
        LOGGER.info("Command %s from %s in %s", found.command.name, user.name, conversation.conversation_id)
        await found.command.handler(conversation, user, found.captures, sink)
        return True

    def help_text(self) -> str:
        lines = []
        for command in self._commands:
            if command.help:
                lines.append(f"{self._prefix}{command.help}")
        return "\n".join(lines)

    async def _help(
        self,
        conversation: Conversation,
        user: User,
        captures: Sequence[str],
        sink: MessageSink,
    ) -> None:
        await sink.send(conversation, Message(title="Commands", description=self.help_text()))
