"""Shared reply formatting helpers.

Renders core Messages as Telegram HTML or Markdown text.
"""

from __future__ import annotations

import html

from core.models import Message


def _format_markdown(message: Message) -> str:
    """Create the Markdown body used by clients that send with parse_mode="md"."""

    def escape_md(value: str) -> str:
        for ch in r"*[`_":
            value = value.replace(ch, f"\\{ch}")
        return value

    lines = []
    if message.title:
        lines.append(f"**{escape_md(message.title)}**")
    if message.description:
        lines.append(escape_md(message.description))
    for field in message.fields:
        if field.name:
            lines.extend(["", f"**{escape_md(field.name)}**", escape_md(field.value)])
        else:
            lines.extend(["", escape_md(field.value)])
    if message.url:
        lines.extend(["", message.url])
    return "\n".join(lines)


def _format_html(message: Message) -> str:
    """Create the HTML body used by the Telegram sink."""

    parts = []
    if message.title:
        parts.append(f"<b>{html.escape(message.title)}</b>")
    if message.description:
        parts.append(html.escape(message.description))
    for field in message.fields:
        if field.name:
            parts.extend(["", f"<b>{html.escape(field.name)}</b>", html.escape(field.value)])
        else:
            parts.extend(["", html.escape(field.value)])
    if message.url:
        safe_link = html.escape(message.url)
        parts.extend(["", f"<a href=\"{safe_link}\">{safe_link}</a>"])
    return "\n".join(parts)


def format_message(message: Message, mode: str = "html") -> str:
    """Return the reply formatted for the requested mode."""

    if mode == "markdown":
        return _format_markdown(message)
    if mode == "html":
        return _format_html(message)
    raise ValueError(f"Unsupported message format: {mode}")
