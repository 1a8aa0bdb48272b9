from __future__ import annotations

import asyncio

from core.config import CaptureSpec, ContentType, ReplyCapture, ScrapeConfig
from core.errors import FetchError
from core.models import Conversation, Message, User
from core.scraper import ERROR_NO_DATA, ERROR_RETRIEVING, Scraper

PAGE = b"""<html>
<head><title>Daily Facts</title></head>
<body>
<p class="fact">Honey never spoils</p>
<p class="fact">Octopuses have three hearts</p>
<span>Wombat: cube shaped</span>
</body>
</html>"""

CONVERSATION = Conversation(service_id="demo", conversation_id="0")
USER = User(name="Test_User", service_id="demo")


class PageFetcher:
    def __init__(self, body: bytes = PAGE) -> None:
        self._body = body

    async def fetch(self, url: str) -> bytes:
        return self._body


class DownFetcher:
    async def fetch(self, url: str) -> bytes:
        raise FetchError("connection refused")


class FakeSink:
    def __init__(self) -> None:
        self.sent: list[Message] = []

    async def send(self, conversation: Conversation, message: Message) -> None:
        self.sent.append(message)


def _config(body: str, title: str = "<title>(.*?)</title>", template: str = "Fact: %s") -> ScrapeConfig:
    return ScrapeConfig(
        trigger="fact",
        url="https://facts.example.com/%s",
        capture="(.*)",
        content_type=ContentType.REGEX,
        title=CaptureSpec(template=template, selectors=(title,)),
        captures=(ReplyCapture(body=CaptureSpec(template="%s", selectors=(body,))),),
    )


def _run(config: ScrapeConfig, fetcher=None) -> list[Message]:
    sink = FakeSink()
    scraper = Scraper(config, fetcher or PageFetcher())
    asyncio.run(scraper.handle(CONVERSATION, USER, ["today", "today"], sink))
    return sink.sent


def test_every_match_is_joined_into_the_reply() -> None:
    url = "https://facts.example.com/today"
    assert _run(_config(r'<p class="fact">(.*?)</p>')) == [
        Message(
            title="Fact: Daily Facts",
            description=f"Honey never spoils Octopuses have three hearts.\n\nRead more at: {url}",
            url=url,
        )
    ]


def test_groups_of_one_match_are_joined_by_a_space() -> None:
    sent = _run(_config(r"<span>(\w+): (.*?)</span>"))
    assert sent[0].description.startswith("Wombat cube shaped.\n\nRead more at: ")


def test_no_match_reports_missing_data() -> None:
    sent = _run(_config(r"<li>(.*?)</li>"))
    assert [m.description for m in sent] == [ERROR_NO_DATA]


def test_missing_title_keeps_a_literal_template() -> None:
    sent = _run(_config(r"<span>(.*?)</span>", title="<h1>(.*?)</h1>", template="Facts"))
    assert sent[0].title == "Facts"


def test_transport_failure_uses_the_retrieval_error() -> None:
    sent = _run(_config(r"<p>(.*?)</p>"), DownFetcher())
    assert sent == [Message(description=ERROR_RETRIEVING, url="https://facts.example.com/today")]
