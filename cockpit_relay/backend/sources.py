"""
Feed source store adapter.

The backend keeps the feed registry, the per-source cache validators and the
seen-key history; this adapter lists sources, asks which keys are already
known and reports each poll's outcome.
"""

from __future__ import annotations

from typing import Any

from cockpit_relay.backend.cockpit_client import CockpitClient
from cockpit_relay.models import FeedSource
from cockpit_relay.utils.logger import get_logger

logger = get_logger(__name__)


class SourceStore:
    """``/api/sources/rss/*`` endpoints."""

    def __init__(self, cockpit: CockpitClient, secret: str) -> None:
        self._cockpit = cockpit
        self._secret = secret

    async def list_sources(self, limit: int) -> list[FeedSource]:
        """Return up to ``limit`` registered feed sources."""
        payload = await self._cockpit.send_json(
            "GET",
            "/api/sources/rss",
            label="Source list",
            secret=self._secret,
            params={"limit": limit},
        )
        raw = payload.get("sources") if isinstance(payload, dict) else None
        if not isinstance(raw, list):
            return []
        sources = [FeedSource.from_dict(s) for s in raw if isinstance(s, dict)]
        return [s for s in sources if s.id is not None and s.id != "" and s.url][:limit]

    async def check_seen(self, source_id: Any, keys: list[str]) -> set[str]:
        """Subset of ``keys`` the backend has already recorded for the source."""
        if not keys:
            return set()
        payload = await self._cockpit.send_json(
            "POST",
            "/api/sources/rss/seen",
            label="Seen check",
            secret=self._secret,
            json_body={"source_id": source_id, "keys": keys},
        )
        seen = payload.get("seen") if isinstance(payload, dict) else None
        if not isinstance(seen, list):
            return set()
        return {str(k) for k in seen}

    async def report(
        self,
        source_id: Any,
        *,
        etag: str | None,
        last_modified: str | None,
        last_error: str | None,
        seen_keys: list[str],
    ) -> None:
        """Record a poll outcome: validators, error and newly seen keys."""
        await self._cockpit.send(
            "POST",
            "/api/sources/rss/report",
            label="Poll report",
            secret=self._secret,
            json_body={
                "source_id": source_id,
                "etag": etag,
                "last_modified": last_modified,
                "last_error": last_error,
                "seen_keys": seen_keys,
            },
        )
