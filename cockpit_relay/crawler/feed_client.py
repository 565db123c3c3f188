"""
Feed client.

Polls backend-registered RSS/Atom sources with conditional requests, asks the
backend which entries it has already seen, forwards the rest to ingestion and
reports each poll's outcome (cache validators, error, newly seen keys).

Failures are isolated per item and per source: a failing item is retried on a
later poll because its key is not reported as seen, and a failing source keeps
its last known-good validators.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import aiohttp

from cockpit_relay.backend.ingest import IngestionClient
from cockpit_relay.backend.sources import SourceStore
from cockpit_relay.crawler.feed_document import FeedFetchError, parse_feed, source_domain
from cockpit_relay.models import FeedSource, PollCycleStats, PollResult
from cockpit_relay.monitoring.notifier import BotLogNotifier
from cockpit_relay.utils.logger import get_logger

logger = get_logger(__name__)

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

_FEED_TIMEOUT_TOTAL: float = 30.0
_FEED_TIMEOUT_CONNECT: float = 10.0

# Characters of an error message stored as the source's last_error.
_LAST_ERROR_LIMIT: int = 500

_ACCEPT = "application/rss+xml, application/atom+xml, application/xml;q=0.9, */*;q=0.8"

SOURCE_TYPE_FEED = "rss"
SOURCE_TYPE_CORPORATE = "corporate"


@dataclass
class FeedResponse:
    """Raw answer to a conditional feed request."""

    status: int
    body: bytes = b""
    etag: str | None = None
    last_modified: str | None = None


class FeedClient:
    """Conditional feed poller backed by the cockpit source store.

    Attributes:
        max_sources: Sources listed per cycle.
        max_items: Entries considered per source and poll.
    """

    def __init__(
        self,
        store: SourceStore,
        ingestion: IngestionClient,
        notifier: BotLogNotifier,
        *,
        max_sources: int = 50,
        max_items: int = 25,
        rate_sensitive_domains: tuple[str, ...] = (),
        politeness_delay: float = 2.0,
        user_agent: str = "CockpitRelay/1.0",
        corporate_user_agent: str = "",
    ) -> None:
        self._store = store
        self._ingestion = ingestion
        self._notifier = notifier
        self.max_sources = max_sources
        self.max_items = max_items
        self._rate_sensitive = tuple(d.lower() for d in rate_sensitive_domains)
        self._politeness_delay = politeness_delay
        self._user_agent = user_agent
        self._corporate_user_agent = corporate_user_agent or user_agent
        self._session: aiohttp.ClientSession | None = None
        self._polling = False

    @property
    def is_polling(self) -> bool:
        return self._polling

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    async def get_session(self) -> aiohttp.ClientSession:
        """Return the feed session, creating one if needed."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(
                total=_FEED_TIMEOUT_TOTAL,
                connect=_FEED_TIMEOUT_CONNECT,
            )
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        """Close the feed session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
            self._session = None

    def is_rate_sensitive(self, url: str) -> bool:
        domain = source_domain(url)
        if not domain:
            return False
        return any(domain == d or domain.endswith(f".{d}") for d in self._rate_sensitive)

    async def fetch(self, source: FeedSource, user_agent: str) -> FeedResponse:
        """Conditional GET of ``source.url`` using its stored validators."""
        headers = {"User-Agent": user_agent, "Accept": _ACCEPT}
        if source.etag:
            headers["If-None-Match"] = source.etag
        if source.last_modified:
            headers["If-Modified-Since"] = source.last_modified

        session = await self.get_session()
        async with session.get(source.url, headers=headers) as response:
            body = b"" if response.status == 304 else await response.read()
            return FeedResponse(
                status=response.status,
                body=body,
                etag=response.headers.get("ETag"),
                last_modified=response.headers.get("Last-Modified"),
            )

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    async def poll_source(self, source: FeedSource) -> PollResult:
        """Poll one source and report the outcome to the backend.

        Raises:
            Exception: Whatever failed the poll, after it has been reported
                with the source's previous validators.
        """
        corporate = self.is_rate_sensitive(source.url)
        source_type = SOURCE_TYPE_CORPORATE if corporate else SOURCE_TYPE_FEED
        user_agent = self._corporate_user_agent if corporate else self._user_agent

        try:
            if corporate and self._politeness_delay > 0:
                await asyncio.sleep(self._politeness_delay)

            response = await self.fetch(source, user_agent)
            etag = response.etag or source.etag
            last_modified = response.last_modified or source.last_modified

            if response.status == 304:
                await self._store.report(
                    source.id,
                    etag=etag,
                    last_modified=last_modified,
                    last_error=None,
                    seen_keys=[],
                )
                logger.debug("[%s] not modified", source.name or source.id)
                return PollResult(not_modified=True)

            if not 200 <= response.status < 300:
                raise FeedFetchError(f"HTTP {response.status}")

            document = parse_feed(response.body)
            fetched = min(len(document.entries), self.max_items)
            items = document.items(limit=self.max_items)

            seen = await self._store.check_seen(source.id, [i.key for i in items])
            fresh = [i for i in items if i.key not in seen]

            result = PollResult(fetched=fetched)
            newly_seen: list[str] = []
            for item in fresh:
                candidate = IngestionClient.from_feed(item.link, source, source_type)
                try:
                    outcome = await self._ingestion.ingest(candidate)
                except Exception as exc:
                    logger.warning(
                        "[%s] ingest failed for %s: %s", source.name or source.id, item.link, exc,
                    )
                    continue
                newly_seen.append(item.key)
                if outcome.inserted:
                    result.ingested += 1
                else:
                    result.skipped += 1

            await self._store.report(
                source.id,
                etag=etag,
                last_modified=last_modified,
                last_error=None,
                seen_keys=newly_seen,
            )
            logger.info(
                "[%s] %s feed: fetched=%d new=%d ingested=%d skipped=%d",
                source.name or source.id, document.kind, result.fetched,
                len(fresh), result.ingested, result.skipped,
            )
            return result
        except Exception as exc:
            await self._report_failure(source, exc)
            raise

    async def _report_failure(self, source: FeedSource, exc: Exception) -> None:
        message = (str(exc) or type(exc).__name__)[:_LAST_ERROR_LIMIT]
        try:
            await self._store.report(
                source.id,
                etag=source.etag,
                last_modified=source.last_modified,
                last_error=message,
                seen_keys=[],
            )
        except Exception as report_exc:
            logger.error(
                "[%s] failed to report poll error (%s): %s",
                source.name or source.id, message, report_exc,
            )

    async def poll_all(self) -> PollCycleStats | None:
        """Poll every registered source once.

        A call made while a cycle is still running returns None without doing
        anything. A bot-log summary is sent only when something was ingested.
        """
        if self._polling:
            logger.debug("Feed poll already running, skipping")
            return None
        self._polling = True

        try:
            stats = PollCycleStats()
            try:
                sources = await self._store.list_sources(self.max_sources)
            except Exception as exc:
                logger.error("Feed source listing failed: %s", exc, exc_info=True)
                await self._notifier.notify(f"🔥 RSS poll crash: {exc}")
                return None

            stats.sources = len(sources)
            for source in sources:
                try:
                    stats.add(await self.poll_source(source))
                except Exception as exc:
                    stats.errors += 1
                    logger.warning(
                        "[%s] feed poll failed (%s): %s", source.name or source.id, source.url, exc,
                    )

            logger.info(
                "Feed poll done: sources=%d fetched=%d ingested=%d skipped=%d "
                "not_modified=%d errors=%d",
                stats.sources, stats.fetched, stats.ingested, stats.skipped,
                stats.not_modified, stats.errors,
            )
            if stats.ingested > 0:
                await self._notifier.notify(
                    f"📰 RSS poll: sources={stats.sources}, ingested={stats.ingested}, "
                    f"skipped={stats.skipped}, errors={stats.errors}"
                )
            return stats
        finally:
            self._polling = False
