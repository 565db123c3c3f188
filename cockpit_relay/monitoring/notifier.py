"""
Bot-log notifier.

Sends one-line status messages to the operational log channel. Delivery is
best-effort: failures are logged locally and dropped, so a broken log channel
never disturbs the caller's own error handling.
"""

from __future__ import annotations

import logging

from cockpit_relay.chat.channels import ChannelResolver, clip_message
from cockpit_relay.utils.logger import get_logger

logger = get_logger(__name__)


class BotLogNotifier:
    """Best-effort status line delivery to the bot-log channel.

    Every line is mirrored to the process log at ``level`` before delivery.
    """

    def __init__(self, resolver: ChannelResolver, channel_id: str) -> None:
        self._resolver = resolver
        self._channel_id = channel_id

    async def notify(self, text: str, level: int = logging.INFO) -> bool:
        """Send ``text`` to the bot-log channel.

        Returns:
            True when the channel accepted the message. Never raises.
        """
        logger.log(level, "%s", text)
        if not self._channel_id:
            return False
        try:
            channel = await self._resolver.fetch_text_channel(self._channel_id)
            if channel is None:
                logger.debug("Bot-log channel %s is not text-capable", self._channel_id)
                return False
            await channel.send(clip_message(text))
            return True
        except Exception as exc:
            logger.debug("Bot-log delivery failed (channel=%s): %s", self._channel_id, exc)
            return False
