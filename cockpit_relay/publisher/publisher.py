"""
Brief publisher.

Per vertical: pull scored items that have not been posted, post each to the
vertical's brief channel, escalate high scores to the triage channel, then
mark the item posted. Marking happens only after the posts went through, so a
crash in between re-posts rather than loses an item.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from cockpit_relay.backend.briefs import BriefClient
from cockpit_relay.chat.channels import ChannelResolver
from cockpit_relay.monitoring.notifier import BotLogNotifier
from cockpit_relay.publisher.formatters import build_brief_message, build_triage_message
from cockpit_relay.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class VerticalRoute:
    """Where a vertical's briefs go."""

    vertical: str
    label: str
    channel_id: str


# Verticals that have a brief channel, in publishing order.
VERTICAL_LABELS: dict[str, str] = {"ree": "REE", "coal": "Coal"}


class Publisher:
    """Publishes scored briefs, one guarded cycle per vertical."""

    def __init__(
        self,
        briefs: BriefClient,
        resolver: ChannelResolver,
        notifier: BotLogNotifier,
        brief_channels: dict[str, str],
        triage_channel_id: str = "",
        limit: int = 5,
        triage_score: int = 85,
    ) -> None:
        self._briefs = briefs
        self._resolver = resolver
        self._notifier = notifier
        self._routes = {
            vertical: VerticalRoute(vertical, label, brief_channels.get(vertical, ""))
            for vertical, label in VERTICAL_LABELS.items()
        }
        self._triage_channel_id = triage_channel_id
        self._limit = limit
        self._triage_score = triage_score
        self._locks: dict[str, bool] = {vertical: False for vertical in self._routes}

    def is_publishing(self, vertical: str) -> bool:
        return self._locks.get(vertical, False)

    async def publish_all(self) -> None:
        """Run one cycle for every vertical, sequentially."""
        for vertical in self._routes:
            await self.publish_vertical(vertical)

    async def publish_vertical(self, vertical: str) -> int:
        """Publish pending briefs for ``vertical``.

        Returns immediately when a cycle for the same vertical is still
        running. Errors are reported to the bot log and never propagate.

        Returns:
            Number of items marked posted in this cycle.
        """
        route = self._routes.get(vertical)
        if route is None or not route.channel_id:
            return 0
        if self._locks[vertical]:
            logger.debug("Publish cycle for %s already running, skipping", vertical)
            return 0
        self._locks[vertical] = True

        posted = 0
        try:
            items = await self._briefs.fetch_unposted(vertical, self._limit)
            if not items:
                return 0

            channel = await self._resolver.fetch_text_channel(route.channel_id)
            if channel is None:
                raise RuntimeError(f"Brief channel not text-based: {route.channel_id}")

            triage = None
            if self._triage_channel_id:
                triage = await self._resolver.fetch_text_channel(self._triage_channel_id)

            for item in items:
                if item.id is None or item.id <= 0:
                    logger.warning("Skipping %s brief without a valid id", vertical)
                    continue

                message = build_brief_message(item, route.label)
                await channel.send(message)

                score = item.relevance_score
                if triage is not None and math.isfinite(score) and score >= self._triage_score:
                    await triage.send(build_triage_message(message, route.label, item))
                    await self._notifier.notify(
                        f"🚨 Triage posted {vertical} processed_item_id={item.id} "
                        f"score={item.display_score}"
                    )

                await self._briefs.mark_posted([item.id])
                posted += 1
                await self._notifier.notify(f"📣 Posted {vertical} processed_item_id={item.id}")
        except Exception as exc:
            logger.error("Publisher cycle failed for %s: %s", vertical, exc, exc_info=True)
            await self._notifier.notify(f"🔥 Publisher crash ({vertical}): {exc}")
        finally:
            self._locks[vertical] = False
        return posted
