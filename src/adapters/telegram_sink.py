"""Telegram delivery adapter.

Formats a reply and sends it into the conversation it belongs to.
"""

from __future__ import annotations

import logging

from adapters.message_formatting import format_message
from core.models import Conversation, Message

LOGGER = logging.getLogger(__name__)


class TelegramSink:
    """MessageSink adapter backed by a Telethon client."""

    def __init__(self, client, mode: str = "html") -> None:
        self._client = client
        self._mode = mode

    async def send(self, conversation: Conversation, message: Message) -> None:
        """Send the formatted reply to the conversation's chat."""

        text = format_message(message, mode=self._mode)
        if not text:
            LOGGER.debug("Skipping empty reply to %s", conversation.conversation_id)
            return
        await self._client.send_message(
            int(conversation.conversation_id),
            text,
            parse_mode="html" if self._mode == "html" else "md",
            link_preview=False,
        )
