"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any chat-service specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class Conversation:
    """Where a command came from and where replies go."""

    service_id: str
    conversation_id: str
    guild_id: str = ""
    admin: bool = False


@dataclass(frozen=True)
class User:
    """The sender of a command."""

    name: str
    id: str = ""
    service_id: str = ""


@dataclass(frozen=True)
class Guild:
    """Scope for admin permissions (a Telegram chat)."""

    service_id: str
    guild_id: str


@dataclass(frozen=True)
class MessageField:
    name: str
    value: str


@dataclass(frozen=True)
class Message:
    """A reply produced by a command, independent of how it is rendered."""

    title: str = ""
    description: str = ""
    url: str = ""
    fields: Tuple[MessageField, ...] = field(default_factory=tuple)
