"""Ports (interfaces) used by the core.

Ports define the minimal contracts for fetching, message delivery, and admin
storage so the core can run against Telegram, tests, or anything else.
"""

from __future__ import annotations

from typing import Protocol

from core.models import Conversation, Guild, Message


class ContentFetcher(Protocol):
    """Retrieve the raw body at a URL.

    Raises FetchError when the endpoint cannot be reached or answers with a
    terminal status, and ReadError when the body cannot be read.
    """

    async def fetch(self, url: str) -> bytes:
        ...


class MessageSink(Protocol):
    """One-way delivery of a reply into a conversation."""

    async def send(self, conversation: Conversation, message: Message) -> None:
        ...


class AdminStore(Protocol):
    """Admin permissions, scoped per guild."""

    def is_admin(self, guild: Guild, user: str) -> bool:
        ...

    def set_admin(self, guild: Guild, user: str) -> None:
        ...

    def unset_admin(self, guild: Guild, user: str) -> None:
        ...
