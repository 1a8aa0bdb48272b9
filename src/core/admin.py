"""Admin permission commands backed by an AdminStore."""

from __future__ import annotations

import logging
import re
from typing import List, Sequence

from core.commands import Command
from core.models import Conversation, Guild, Message, User
from core.ports import AdminStore, MessageSink

LOGGER = logging.getLogger(__name__)

UNSET_ADMIN_USAGE = "Usage: unsetadmin <user>"


def _guild(conversation: Conversation) -> Guild:
    return Guild(service_id=conversation.service_id, guild_id=conversation.guild_id)


def _named(captures: Sequence[str]) -> str:
    return captures[1] if len(captures) > 1 else ""


class AdminCommands:
    """checkadmin / unsetadmin for one admin store."""

    def __init__(self, storage: AdminStore) -> None:
        self._storage = storage

    async def check_admin(
        self,
        conversation: Conversation,
        user: User,
        captures: Sequence[str],
        sink: MessageSink,
    ) -> None:
        target = _named(captures) or user.name
        if self._storage.is_admin(_guild(conversation), target):
            await sink.send(conversation, Message(description=f"{target} is an admin."))
        else:
            await sink.send(conversation, Message(description=f"{target} is not an admin."))

    async def unset_admin(
        self,
        conversation: Conversation,
        user: User,
        captures: Sequence[str],
        sink: MessageSink,
    ) -> None:
        # Non-admins get no reply at all.
        if not conversation.admin:
            return
        target = _named(captures)
        if not target:
            await sink.send(conversation, Message(description=UNSET_ADMIN_USAGE))
            return
        self._storage.unset_admin(_guild(conversation), target)
        LOGGER.info("%s unset admin %s in %s", user.name, target, conversation.conversation_id)
        await sink.send(conversation, Message(description="Admin has been unset."))

    def commands(self) -> List[Command]:
        argument = re.compile(r"@?(\S*)")
        return [
            Command(
                name="checkadmin",
                trigger=re.compile("checkadmin"),
                capture=argument,
                handler=self.check_admin,
                help="checkadmin [user] - tell whether a user is an admin here",
            ),
            Command(
                name="unsetadmin",
                trigger=re.compile("unsetadmin"),
                capture=argument,
                handler=self.unset_admin,
                help="unsetadmin <user> - remove a user's admin rights (admins only)",
            ),
        ]
