"""Telegram-to-core mapping adapter.

This keeps Telethon-specific details out of the core command handling.
"""

from __future__ import annotations

from typing import Optional, Tuple

from telethon.tl.custom import Message as TelethonMessage

from core.models import Conversation, Guild, User
from core.ports import AdminStore

SERVICE_ID = "telegram"


def user_from_message(message: TelethonMessage) -> User:
    """Build a core User, preferring the username over the numeric id."""

    sender = getattr(message, "sender", None)
    username = getattr(sender, "username", None)
    sender_id = getattr(message, "sender_id", None)

    if isinstance(username, str) and username:
        name = username.lower()
    else:
        # No username: use the numeric id
        name = str(sender_id) if sender_id is not None else ""
    return User(name=name, id=str(sender_id or ""), service_id=SERVICE_ID)


def build_context(
    message: TelethonMessage,
    admin_store: Optional[AdminStore] = None,
) -> Tuple[Conversation, User]:
    """Build the core Conversation and User for an incoming message.

    The chat doubles as the guild, so admin rights are granted per chat.
    """

    user = user_from_message(message)
    chat_id = str(message.chat_id)
    admin = False
    if admin_store is not None and user.name:
        admin = admin_store.is_admin(Guild(service_id=SERVICE_ID, guild_id=chat_id), user.name)

    conversation = Conversation(
        service_id=SERVICE_ID,
        conversation_id=chat_id,
        guild_id=chat_id,
        admin=admin,
    )
    return conversation, user
