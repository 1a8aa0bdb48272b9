"""Periodic liveness message, mostly useful while testing a deployment."""

from __future__ import annotations

import asyncio
from typing import Optional

from core.models import Conversation, Message
from core.ports import MessageSink


async def heartbeat(
    delay: float,
    destination: Conversation,
    message: Message,
    sink: MessageSink,
    beats: Optional[int] = None,
) -> None:
    """Send ``message`` every ``delay`` seconds, forever or ``beats`` times."""

    sent = 0
    while beats is None or sent < beats:
        await asyncio.sleep(delay)
        await sink.send(destination, message)
        sent += 1
