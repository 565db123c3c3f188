"""
Chat channel seam.

Everything that posts into chat goes through a ``ChannelResolver`` so the
publisher and notifier stay independent of the Discord client.
"""

from __future__ import annotations

from typing import Any, Protocol

# Discord rejects messages longer than this.
MAX_MESSAGE_LENGTH: int = 2000


class TextChannel(Protocol):
    async def send(self, content: str) -> Any: ...


class ChannelResolver(Protocol):
    async def fetch_text_channel(self, channel_id: str) -> TextChannel | None:
        """Text-capable channel for ``channel_id``, or None."""
        ...


def clip_message(text: str, limit: int = MAX_MESSAGE_LENGTH) -> str:
    """Cut ``text`` to ``limit`` characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "…"
