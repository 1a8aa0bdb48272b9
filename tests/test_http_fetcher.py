from __future__ import annotations

import asyncio

import httpx
import pytest

from adapters.http_fetcher import HttpFetcher
from core.errors import FetchError, ReadError


class BrokenStream(httpx.AsyncByteStream):
    async def __aiter__(self):
        yield b"<html>"
        raise httpx.ReadError("connection reset")

    async def aclose(self) -> None:
        pass


def _fetcher(handler) -> HttpFetcher:
    return HttpFetcher(client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def test_fetch_returns_the_body() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, content=b"<h1>Hi</h1>")

    body = asyncio.run(_fetcher(handler).fetch("https://example.com/page"))
    assert body == b"<h1>Hi</h1>"
    assert seen == ["https://example.com/page"]


def test_error_status_is_a_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, content=b"missing")

    with pytest.raises(FetchError):
        asyncio.run(_fetcher(handler).fetch("https://example.com/missing"))


def test_connection_failure_is_a_fetch_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(FetchError):
        asyncio.run(_fetcher(handler).fetch("https://example.com/"))


def test_broken_body_is_a_read_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=BrokenStream())

    with pytest.raises(ReadError):
        asyncio.run(_fetcher(handler).fetch("https://example.com/"))
