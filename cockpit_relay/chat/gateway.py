"""
Discord gateway adapter.

A ``discord.Client`` that resolves text-capable channels for the publisher and
notifier, and forwards inbound messages to the intake handler.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

import discord

from cockpit_relay.chat.intake_handler import ChatIntakeHandler
from cockpit_relay.utils.logger import get_logger

logger = get_logger(__name__)


def build_intents() -> discord.Intents:
    """Guilds, guild messages and message content."""
    intents = discord.Intents.none()
    intents.guilds = True
    intents.guild_messages = True
    intents.message_content = True
    return intents


class DiscordGateway(discord.Client):
    """Discord client used by the relay."""

    def __init__(self, **options: Any) -> None:
        super().__init__(intents=build_intents(), **options)
        self._intake: ChatIntakeHandler | None = None
        self._ready_callbacks: list[Callable[[], Awaitable[None]]] = []

    def set_intake_handler(self, handler: ChatIntakeHandler) -> None:
        self._intake = handler

    def add_ready_callback(self, callback: Callable[[], Awaitable[None]]) -> None:
        """Run ``callback`` on every READY event (including reconnects)."""
        self._ready_callbacks.append(callback)

    async def fetch_text_channel(self, channel_id: str) -> discord.abc.Messageable | None:
        """Cached or fetched channel, if it can receive messages."""
        if not channel_id:
            return None
        cid = int(channel_id)
        channel = self.get_channel(cid)
        if channel is None:
            channel = await self.fetch_channel(cid)
        if isinstance(channel, discord.abc.Messageable):
            return channel
        return None

    async def on_ready(self) -> None:
        for callback in self._ready_callbacks:
            try:
                await callback()
            except Exception as exc:
                logger.error("Ready callback failed: %s", exc, exc_info=True)

    async def on_message(self, message: discord.Message) -> None:
        if self._intake is not None:
            await self._intake.handle(message)
