from __future__ import annotations

import asyncio

from adapters.sqlite_storage import SQLiteStorage
from core.admin import UNSET_ADMIN_USAGE, AdminCommands
from core.commands import CommandRouter
from core.models import Conversation, Guild, Message, User

GUILD = Guild(service_id="demo", guild_id="-100")


class FakeSink:
    def __init__(self) -> None:
        self.sent: list[Message] = []

    async def send(self, conversation: Conversation, message: Message) -> None:
        self.sent.append(message)


def _storage(tmp_path) -> SQLiteStorage:
    storage = SQLiteStorage(str(tmp_path / "admins.db"))
    storage.init_db()
    return storage


def _conversation(admin: bool) -> Conversation:
    return Conversation(service_id="demo", conversation_id="-100", guild_id="-100", admin=admin)


def test_storage_set_and_unset(tmp_path) -> None:
    storage = _storage(tmp_path)
    assert not storage.is_admin(GUILD, "alice")

    storage.set_admin(GUILD, "alice")
    storage.set_admin(GUILD, "alice")
    assert storage.is_admin(GUILD, "alice")
    assert not storage.is_admin(Guild(service_id="demo", guild_id="-200"), "alice")

    storage.unset_admin(GUILD, "alice")
    assert not storage.is_admin(GUILD, "alice")


def test_seed_admins(tmp_path) -> None:
    storage = _storage(tmp_path)
    assert storage.seed_admins([(GUILD, "alice"), (GUILD, "bob")]) == 2
    assert storage.is_admin(GUILD, "bob")


def test_check_admin_replies_for_target_or_sender(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.set_admin(GUILD, "alice")
    router = CommandRouter(AdminCommands(storage).commands(), prefix="!")
    sink = FakeSink()

    asyncio.run(router.dispatch(_conversation(False), User(name="bob"), "!checkadmin @alice", sink))
    asyncio.run(router.dispatch(_conversation(False), User(name="bob"), "!checkadmin", sink))
    assert [m.description for m in sink.sent] == ["alice is an admin.", "bob is not an admin."]


def test_admin_can_unset_admins(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.set_admin(GUILD, "alice")
    storage.set_admin(GUILD, "bob")
    router = CommandRouter(AdminCommands(storage).commands(), prefix="!")
    sink = FakeSink()

    asyncio.run(router.dispatch(_conversation(True), User(name="alice"), "!unsetadmin bob", sink))
    assert [m.description for m in sink.sent] == ["Admin has been unset."]
    assert not storage.is_admin(GUILD, "bob")


def test_non_admin_cannot_unset_admins(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.set_admin(GUILD, "alice")
    router = CommandRouter(AdminCommands(storage).commands(), prefix="!")
    sink = FakeSink()

    asyncio.run(router.dispatch(_conversation(False), User(name="mallory"), "!unsetadmin alice", sink))
    assert sink.sent == []
    assert storage.is_admin(GUILD, "alice")


def test_unset_admin_needs_a_user(tmp_path) -> None:
    storage = _storage(tmp_path)
    storage.set_admin(GUILD, "alice")
    router = CommandRouter(AdminCommands(storage).commands(), prefix="!")
    sink = FakeSink()

    asyncio.run(router.dispatch(_conversation(True), User(name="alice"), "!unsetadmin", sink))
    asyncio.run(router.dispatch(_conversation(True), User(name="alice"), "!unsetadmin @", sink))
    assert [m.description for m in sink.sent] == [UNSET_ADMIN_USAGE, UNSET_ADMIN_USAGE]
    assert storage.is_admin(GUILD, "alice")
