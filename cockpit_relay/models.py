"""
Relay data records.

The backend owns every record here; the relay only reads them off the wire,
carries them through one cycle and reports outcomes back.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, (list, tuple)):
        return []
    return [str(v) if v is not None else "" for v in value]


def _item_id(value: Any) -> int | None:
    """Integer row id, or None unless ``value`` is an exact integer."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


@dataclass
class FeedSource:
    """A feed registered on the backend.

    ``id`` is the backend's identifier, carried through untouched.
    ``etag`` / ``last_modified`` are the cache validators from the last
    successful poll.
    """

    id: Any
    url: str
    vertical: str
    name: str = ""
    etag: str | None = None
    last_modified: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FeedSource:
        return cls(
            id=data.get("id"),
            url=str(data.get("url") or "").strip(),
            vertical=str(data.get("vertical") or "").strip(),
            name=str(data.get("name") or "").strip(),
            etag=_opt_str(data.get("etag")),
            last_modified=_opt_str(data.get("last_modified")),
        )


@dataclass
class IngestCandidate:
    """One link submitted to ``/api/ingest`` with its provenance."""

    url: str
    vertical: str
    source: str
    source_channel_id: str | None = None
    source_message_id: str | None = None
    author_id: str | None = None
    author_username: str | None = None
    metadata: dict[str, Any] | None = None
    posted_at: str = field(default_factory=utc_now_iso)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "url": self.url,
            "vertical": self.vertical,
            "source": self.source,
            "posted_at": self.posted_at,
        }
        if self.source == "discord":
            payload.update(
                source_channel_id=self.source_channel_id,
                source_message_id=self.source_message_id,
                author_id=self.author_id,
                author_username=self.author_username,
            )
        if self.metadata is not None:
            payload["metadata"] = self.metadata
        return payload


@dataclass
class IngestResult:
    """Backend decision for one ingest call.

    ``inserted`` is False when the backend omits it; such a submission is
    counted as a duplicate.
    """

    inserted: bool = False
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> IngestResult:
        if not isinstance(payload, dict):
            return cls()
        return cls(inserted=bool(payload.get("inserted")), payload=payload)


@dataclass
class PublishableItem:
    """A backend-scored brief item awaiting publication."""

    id: int | None
    vertical: str
    relevance_score: float
    title: str = ""
    summary: str = ""
    bullets: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    why_it_matters: str = ""
    url: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PublishableItem:
        item_id = _item_id(data.get("id"))
        try:
            score = float(data.get("relevance_score") or 0)
        except (TypeError, ValueError):
            score = float("nan")
        summary = data.get("summary_1")
        if summary is None:
            summary = data.get("summary")
        return cls(
            id=item_id,
            vertical=str(data.get("vertical") or ""),
            relevance_score=score,
            title=str(data.get("title") or ""),
            summary=str(summary or ""),
            bullets=_str_list(data.get("bullets")),
            tags=_str_list(data.get("tags")),
            why_it_matters=str(data.get("why_it_matters") or ""),
            url=str(data.get("url") or ""),
        )

    @property
    def display_score(self) -> str:
        """Score as shown in messages: integral scores without a decimal part."""
        score = self.relevance_score
        if not math.isfinite(score):
            return "NaN" if score != score else ("Infinity" if score > 0 else "-Infinity")
        if score == int(score):
            return str(int(score))
        return f"{score:g}"


@dataclass
class PollResult:
    """Outcome of polling one feed source."""

    fetched: int = 0
    ingested: int = 0
    skipped: int = 0
    not_modified: bool = False


@dataclass
class PollCycleStats:
    """Totals for one pass over all feed sources."""

    sources: int = 0
    fetched: int = 0
    ingested: int = 0
    skipped: int = 0
    not_modified: int = 0
    errors: int = 0

    def add(self, result: PollResult) -> None:
        self.fetched += result.fetched
        self.ingested += result.ingested
        self.skipped += result.skipped
        if result.not_modified:
            self.not_modified += 1
