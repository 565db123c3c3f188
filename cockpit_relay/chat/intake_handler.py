"""
Chat intake handler.

Links pasted into a registered intake channel are forwarded one by one to the
ingestion endpoint. The source message gets a reaction summarising the
outcome and the bot log gets one status line per message.
"""

from __future__ import annotations

import logging
from typing import Any

from cockpit_relay.backend.ingest import IngestionClient
from cockpit_relay.crawler.feed_document import extract_urls
from cockpit_relay.monitoring.notifier import BotLogNotifier
from cockpit_relay.utils.logger import get_logger

logger = get_logger(__name__)

REACTION_INSERTED = "✅"
REACTION_DEDUPED = "☑️"
REACTION_ERROR = "⚠️"


class ChatIntakeHandler:
    """Routes intake-channel messages to the ingestion client.

    Args:
        ingestion: Backend ingestion client.
        notifier: Bot-log notifier.
        intake_channels: Channel id -> vertical.
    """

    def __init__(
        self,
        ingestion: IngestionClient,
        notifier: BotLogNotifier,
        intake_channels: dict[str, str],
    ) -> None:
        self._ingestion = ingestion
        self._notifier = notifier
        self._intake_channels = dict(intake_channels)

    def vertical_for(self, channel_id: Any) -> str | None:
        return self._intake_channels.get(str(channel_id))

    async def handle(self, message: Any) -> None:
        """Process one inbound message. Never raises."""
        try:
            await self._handle(message)
        except Exception as exc:
            logger.error("Intake handler crashed: %s", exc, exc_info=True)
            await self._notifier.notify(f"🔥 Handler crash: {exc}", level=logging.ERROR)

    async def _handle(self, message: Any) -> None:
        author = getattr(message, "author", None)
        if author is None or getattr(author, "bot", False):
            return

        channel_id = str(message.channel.id)
        vertical = self.vertical_for(channel_id)
        if vertical is None:
            return

        urls = extract_urls(message.content)
        if not urls:
            return

        inserted = 0
        deduped = 0
        errors: list[tuple[str, str]] = []

        for url in urls:
            try:
                candidate = IngestionClient.from_message(url, vertical, message)
                result = await self._ingestion.ingest(candidate)
            except Exception as exc:
                errors.append((url, str(exc)))
                continue
            if result.inserted:
                inserted += 1
            else:
                deduped += 1

        if not errors:
            if inserted > 0:
                await message.add_reaction(REACTION_INSERTED)
            if deduped > 0:
                await message.add_reaction(REACTION_DEDUPED)
            await self._notifier.notify(
                f"🧾 Ingest from <#{channel_id}>: inserted={inserted}, deduped={deduped}"
            )
            return

        await message.add_reaction(REACTION_ERROR)
        details = "\n".join(f"• {url}\n  ↳ {err}" for url, err in errors)
        await self._notifier.notify(
            f"⚠️ Ingest errors from <#{channel_id}>. "
            f"inserted={inserted} deduped={deduped} err={len(errors)}\n{details}",
            level=logging.WARNING,
        )
