"""
Ingestion client.

Posts one candidate link to ``/api/ingest``. The backend deduplicates by
normalised URL and answers whether the submission was a fresh insert.
"""

from __future__ import annotations

from typing import Any

from cockpit_relay.backend.cockpit_client import CockpitClient, parse_json
from cockpit_relay.models import FeedSource, IngestCandidate, IngestResult
from cockpit_relay.utils.logger import get_logger

logger = get_logger(__name__)


class IngestionClient:
    """Forward candidate links to the backend ingestion endpoint."""

    def __init__(self, cockpit: CockpitClient, secret: str) -> None:
        self._cockpit = cockpit
        self._secret = secret

    async def ingest(self, candidate: IngestCandidate) -> IngestResult:
        """Submit one candidate.

        A success body that is not a JSON object is treated as an empty
        payload, i.e. a duplicate.

        Raises:
            CockpitAPIError: The backend answered non-2xx.
        """
        text = await self._cockpit.send(
            "POST",
            "/api/ingest",
            label="Ingest",
            secret=self._secret,
            json_body=candidate.to_payload(),
        )
        result = IngestResult.from_payload(parse_json(text))
        logger.debug(
            "Ingested %s (vertical=%s, source=%s, inserted=%s)",
            candidate.url, candidate.vertical, candidate.source, result.inserted,
        )
        return result

    @staticmethod
    def from_message(url: str, vertical: str, message: Any) -> IngestCandidate:
        """Candidate for a link pasted into a Discord intake channel."""
        author = getattr(message, "author", None)
        author_id = getattr(author, "id", None)
        channel = getattr(message, "channel", None)
        return IngestCandidate(
            url=url,
            vertical=vertical,
            source="discord",
            source_channel_id=str(channel.id) if channel is not None else None,
            source_message_id=str(message.id),
            author_id=str(author_id) if author_id is not None else None,
            author_username=getattr(author, "name", None),
        )

    @staticmethod
    def from_feed(url: str, source: FeedSource, source_type: str) -> IngestCandidate:
        """Candidate for a new entry of a polled feed."""
        return IngestCandidate(
            url=url,
            vertical=source.vertical,
            source="rss",
            metadata={
                "source_id": source.id,
                "source_name": source.name,
                "source_type": source_type,
            },
        )
