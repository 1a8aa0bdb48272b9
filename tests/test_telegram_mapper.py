from __future__ import annotations

from adapters.telegram_mapper import SERVICE_ID, build_context, user_from_message
from core.models import Guild


class DummySender:
    def __init__(self, username: "str | None" = None) -> None:
        self.username = username


class DummyMessage:
    def __init__(self, *, chat_id: int, sender_id: int, sender: "DummySender | None" = None) -> None:
        self.chat_id = chat_id
        self.sender_id = sender_id
        self.sender = sender


class DummyAdminStore:
    def __init__(self, admins: set) -> None:
        self._admins = admins
        self.queries = []

    def is_admin(self, guild: Guild, user: str) -> bool:
        self.queries.append((guild, user))
        return (guild.guild_id, user) in self._admins

    def set_admin(self, guild: Guild, user: str) -> None:
        self._admins.add((guild.guild_id, user))

    def unset_admin(self, guild: Guild, user: str) -> None:
        self._admins.discard((guild.guild_id, user))


def test_user_prefers_lowercased_username() -> None:
    user = user_from_message(DummyMessage(chat_id=-100, sender_id=42, sender=DummySender("Alice")))
    assert user.name == "alice"
    assert user.id == "42"
    assert user.service_id == SERVICE_ID


def test_user_falls_back_to_sender_id() -> None:
    user = user_from_message(DummyMessage(chat_id=-100, sender_id=42, sender=DummySender(None)))
    assert user.name == "42"


def test_context_uses_the_chat_as_guild() -> None:
    conversation, user = build_context(DummyMessage(chat_id=-100, sender_id=42))
    assert conversation.conversation_id == "-100"
    assert conversation.guild_id == "-100"
    assert conversation.service_id == SERVICE_ID
    assert conversation.admin is False
    assert user.name == "42"


def test_context_looks_up_admin_rights() -> None:
    store = DummyAdminStore({("-100", "alice")})

    conversation, _ = build_context(
        DummyMessage(chat_id=-100, sender_id=42, sender=DummySender("alice")), store
    )
    assert conversation.admin is True
    assert store.queries == [(Guild(service_id=SERVICE_ID, guild_id="-100"), "alice")]

    conversation, _ = build_context(DummyMessage(chat_id=-200, sender_id=42, sender=DummySender("alice")), store)
    assert conversation.admin is False
