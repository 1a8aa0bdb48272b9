"""Scrape orchestration: one command invocation from captures to replies.

This module is integration-agnostic. It only relies on the fetcher and sink
ports, so the same rule runs against Telegram, the CLI, or test fakes.

An invocation walks the stages in ScrapeStage order. Every failure is turned
into reply text where it is detected; nothing propagates to the caller.
"""

from __future__ import annotations

import asyncio
import json
import logging
import random
from enum import Enum
from typing import Any, List, Optional, Sequence

from bs4 import BeautifulSoup

from core.config import CaptureSpec, ContentType, ScrapeConfig
from core.errors import ExtractionEmpty, FetchError, ReadError, URLBuildError
from core.models import Conversation, Message, MessageField, User
from core.ports import ContentFetcher, MessageSink
from core.selectors import resolve, select_html, select_json, select_regex
from core.tokens import make_token
from core.url_builder import build_url

LOGGER = logging.getLogger(__name__)

ERROR_BUILDING_URL = "An error when building the url."
ERROR_RETRIEVING = "An error occurred retrieving the webpage."
ERROR_PROCESSING = "An error occurred when processing the webpage."
ERROR_NOT_FOUND = "Webpage not found at {url}."
ERROR_TITLE = "There was an error retrieving information from the webpage."
ERROR_NO_DATA = "Could not extract data from the webpage."
READ_MORE = "{reply}.\n\nRead more at: {url}"


class ScrapeStage(Enum):
    BUILDING_URL = "building_url"
    FETCHING = "fetching"
    PARSING = "parsing"
    EXTRACTING_TITLE = "extracting_title"
    EXTRACTING_CAPTURES = "extracting_captures"
    EMITTING = "emitting"
    DONE = "done"


class Scraper:
    """Runs one ScrapeConfig against a content fetcher."""

    def __init__(
        self,
        config: ScrapeConfig,
        fetcher: ContentFetcher,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config = config
        self._fetcher = fetcher
        # SystemRandom draws from the OS, so invocations share no sequence state.
        self._rng = rng or random.SystemRandom()

    @property
    def config(self) -> ScrapeConfig:
        return self._config

    def build_url(self, arguments: Sequence[str]) -> str:
        """Fill the URL template and append the token when one is configured."""

        url = build_url(self._config.url, arguments)
        if self._config.token is not None:
            url += make_token(" ".join(arguments), self._config.token)
        return url

    async def scrape(self, captures: Optional[Sequence[str]]) -> List[Message]:
        """Return the reply messages for one invocation.

        ``captures`` is the regex match list: index 0 is the full match and
        the groups follow.
        """

        arguments = list(captures[1:]) if captures else []

        try:
            url = self.build_url(arguments)
        except URLBuildError as exc:
            self._log_failure(ScrapeStage.BUILDING_URL, exc)
            return [Message(description=ERROR_BUILDING_URL)]

        try:
            body = await self._fetcher.fetch(url)
        except FetchError as exc:
            self._log_failure(ScrapeStage.FETCHING, exc, url)
            return [Message(description=ERROR_RETRIEVING, url=url)]
        except ReadError as exc:
            self._log_failure(ScrapeStage.FETCHING, exc, url)
            return [Message(description=ERROR_PROCESSING, url=url)]

        if not body.strip():
            self._log_failure(ScrapeStage.FETCHING, ReadError("empty body"), url)
            return [Message(description=ERROR_NOT_FOUND.format(url=url), url=url)]

        try:
            content = self._parse(body)
        except ReadError as exc:
            self._log_failure(ScrapeStage.PARSING, exc, url)
            return [Message(description=ERROR_PROCESSING, url=url)]

        title = self._extract(content, self._config.title, ERROR_TITLE, ScrapeStage.EXTRACTING_TITLE)
        messages = self._assemble(content, title, url)
        LOGGER.info(
            "Scraped %s for trigger %r (%s message(s))",
            url,
            self._config.trigger,
            len(messages),
        )
        return messages

    async def handle(
        self,
        conversation: Conversation,
        user: User,
        captures: Optional[Sequence[str]],
        sink: MessageSink,
    ) -> None:
        """Scrape and deliver, pausing between ungrouped messages."""

        messages = await self.scrape(captures)
        LOGGER.debug("Trigger %r %s %s message(s)", self._config.trigger, ScrapeStage.EMITTING.value, len(messages))
        for index, message in enumerate(messages):
            if index and self._config.delay > 0:
                await asyncio.sleep(self._config.delay)
            await sink.send(conversation, message)
        LOGGER.debug("Trigger %r %s", self._config.trigger, ScrapeStage.DONE.value)

    def _parse(self, body: bytes) -> Any:
        text = body.decode("utf-8", errors="replace")
        if self._config.content_type is ContentType.JSON:
            try:
                return json.loads(text)
            except ValueError as exc:
                raise ReadError(f"Response is not valid JSON: {exc}") from exc
        if self._config.content_type is ContentType.REGEX:
            return text
        return BeautifulSoup(text, "html.parser")

    def _matches(self, content: Any, spec: CaptureSpec) -> List[str]:
        if self._config.content_type is ContentType.JSON:
            return select_json(content, spec.selectors)
        if self._config.content_type is ContentType.REGEX:
            patterns = self._config.selector_patterns
            return select_regex(content, [patterns[selector] for selector in spec.selectors])
        return select_html(content, spec.selectors)

    def _resolve(self, content: Any, spec: CaptureSpec, stage: ScrapeStage, join: bool = False) -> Optional[str]:
        matches = self._matches(content, spec)
        if join and matches:
            matches = [" ".join(matches)]
        try:
            return resolve(matches, spec, self._rng)
        except ExtractionEmpty as exc:
            LOGGER.info("No value for trigger %r while %s: %s", self._config.trigger, stage.value, exc)
            return None

    def _extract(
        self,
        content: Any,
        spec: CaptureSpec,
        fallback: str,
        stage: ScrapeStage = ScrapeStage.EXTRACTING_CAPTURES,
    ) -> str:
        value = self._resolve(content, spec, stage)
        return fallback if value is None else value

    def _extract_body(self, content: Any, spec: CaptureSpec, url: str) -> str:
        """Resolve a reply body; regex rules join every match and link the page."""

        if self._config.content_type is not ContentType.REGEX:
            return self._extract(content, spec, ERROR_NO_DATA)
        value = self._resolve(content, spec, ScrapeStage.EXTRACTING_CAPTURES, join=True)
        if value is None:
            return ERROR_NO_DATA
        return READ_MORE.format(reply=value, url=url)

    def _assemble(self, content: Any, title: str, url: str) -> List[Message]:
        config = self._config
        if not config.captures:
            return [Message(title=title, description=config.description, url=url)]

        if config.grouped:
            fields = []
            for capture in config.captures:
                name = self._extract(content, capture.title, ERROR_TITLE) if capture.title else ""
                fields.append(MessageField(name=name, value=self._extract_body(content, capture.body, url)))
            return [Message(title=title, description=config.description, url=url, fields=tuple(fields))]

        messages = []
        for capture in config.captures:
            capture_title = self._extract(content, capture.title, ERROR_TITLE) if capture.title else title
            messages.append(
                Message(
                    title=capture_title,
                    description=self._extract_body(content, capture.body, url),
                    url=url,
                )
            )
        return messages

    def _log_failure(self, stage: ScrapeStage, exc: Exception, url: str = "") -> None:
        LOGGER.warning(
            "Scrape for trigger %r failed while %s%s: %s",
            self._config.trigger,
            stage.value,
            f" {url}" if url else "",
            exc,
        )
