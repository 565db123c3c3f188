"""
Cockpit relay entry point.

Wires the Discord gateway, the backend clients and the periodic jobs, then
runs until SIGINT/SIGTERM. Missing required configuration aborts startup;
nothing else is allowed to stop the process.
"""

from __future__ import annotations

import asyncio
import signal
import sys

from cockpit_relay.backend.briefs import BriefClient, ProcessingTrigger
from cockpit_relay.backend.cockpit_client import CockpitClient
from cockpit_relay.backend.ingest import IngestionClient
from cockpit_relay.backend.sources import SourceStore
from cockpit_relay.chat.gateway import DiscordGateway
from cockpit_relay.chat.intake_handler import ChatIntakeHandler
from cockpit_relay.crawler.feed_client import FeedClient
from cockpit_relay.monitoring.notifier import BotLogNotifier
from cockpit_relay.orchestration.scheduler import (
    FEED_POLL_INITIAL_DELAY,
    PUBLISH_INITIAL_DELAY,
    Scheduler,
)
from cockpit_relay.publisher.publisher import Publisher
from cockpit_relay.utils.config import ConfigurationError, Settings, get_settings
from cockpit_relay.utils.logger import get_logger

logger = get_logger(__name__)

_SHUTDOWN_TIMEOUT: float = 15.0


class RelayApp:
    """Owns every long-lived component of the relay.

    Args:
        settings: Validated settings.
        gateway: Discord client; a ``DiscordGateway`` is built when omitted.
        cockpit: Backend HTTP client; built from ``settings`` when omitted.
    """

    def __init__(
        self,
        settings: Settings,
        gateway: DiscordGateway | None = None,
        cockpit: CockpitClient | None = None,
    ) -> None:
        self.settings = settings
        self.gateway = gateway if gateway is not None else DiscordGateway()
        self.cockpit = cockpit or CockpitClient(settings.api_base, timeout=settings.http_timeout)
        self.notifier = BotLogNotifier(self.gateway, settings.botlogs_channel_id)

        self.ingestion = IngestionClient(self.cockpit, settings.cockpit_ingest_secret)
        self.sources = SourceStore(self.cockpit, settings.cockpit_ingest_secret)
        self.feed_client = FeedClient(
            self.sources,
            self.ingestion,
            self.notifier,
            max_sources=settings.max_sources,
            max_items=settings.max_items_per_source,
            rate_sensitive_domains=settings.rate_sensitive_domains,
            politeness_delay=settings.politeness_delay_sec,
            user_agent=settings.rss_user_agent,
            corporate_user_agent=settings.rss_corporate_user_agent,
        )
        self.intake = ChatIntakeHandler(self.ingestion, self.notifier, settings.intake_channels)

        self.publisher: Publisher | None = None
        self.processing: ProcessingTrigger | None = None
        process_secret = settings.cockpit_process_secret
        if process_secret:
            self.publisher = Publisher(
                BriefClient(self.cockpit, process_secret),
                self.gateway,
                self.notifier,
                brief_channels=settings.brief_channels,
                triage_channel_id=settings.triage_channel_id,
                limit=settings.publish_limit,
                triage_score=settings.triage_score,
            )
            if settings.process_url:
                self.processing = ProcessingTrigger(
                    self.cockpit,
                    settings.process_url,
                    process_secret,
                    settings.process_limit,
                    self.notifier,
                )

        self.scheduler = self._build_scheduler()
        self._online = False

        self.gateway.set_intake_handler(self.intake)
        self.gateway.add_ready_callback(self.on_ready)

    def _build_scheduler(self) -> Scheduler:
        settings = self.settings
        scheduler = Scheduler()
        scheduler.add_job(
            "feed_poll",
            self.feed_client.poll_all,
            initial_delay=FEED_POLL_INITIAL_DELAY,
            interval=settings.rss_interval_min * 60,
        )

        if self.processing is not None:
            scheduler.add_job(
                "processing",
                self.processing.run_once,
                initial_delay=settings.process_initial_delay_sec,
                interval=settings.process_interval_min * 60,
            )
        else:
            logger.warning(
                "COCKPIT_PROCESS_URL/COCKPIT_PROCESS_SECRET not set: processing trigger disabled"
            )

        if self.publisher is not None:
            scheduler.add_job(
                "publish",
                self.publisher.publish_all,
                initial_delay=PUBLISH_INITIAL_DELAY,
                interval=settings.publish_interval_min * 60,
            )
        else:
            logger.warning("COCKPIT_PROCESS_SECRET not set: brief publishing disabled")
        return scheduler

    async def on_ready(self) -> None:
        """First READY: announce and start the timers. Reconnects are ignored."""
        if self._online:
            return
        self._online = True
        user = self.gateway.user
        logger.info("Logged in as %s", user)
        await self.notifier.notify(f"🟢 Online as {user}")
        self.scheduler.start()

    async def shutdown(self) -> None:
        """Stop timers, close HTTP clients and the gateway."""
        await self.scheduler.stop()
        await self.feed_client.close()
        await self.cockpit.close()
        if not self.gateway.is_closed():
            await self.gateway.close()


async def run(settings: Settings) -> None:
    """Run the relay until the gateway closes or a stop signal arrives."""
    app = RelayApp(settings)

    def signal_handler(sig: signal.Signals) -> None:
        logger.info("Received signal %s, shutting down...", sig.name)
        asyncio.ensure_future(app.gateway.close())

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
        except NotImplementedError:
            pass

    try:
        await app.gateway.start(settings.discord_bot_token)
    finally:
        try:
            await asyncio.wait_for(app.shutdown(), timeout=_SHUTDOWN_TIMEOUT)
        except asyncio.TimeoutError:
            logger.warning("Shutdown timed out after %.0f seconds", _SHUTDOWN_TIMEOUT)


def main() -> int:
    """Console entry point."""
    settings = get_settings()
    try:
        settings.validate_required()
    except ConfigurationError as exc:
        logger.critical("%s", exc)
        return 2

    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
