"""
Feed document parsing and item identity.

A fetched feed body is parsed once with feedparser and classified into one of
two shapes: ``RssDocument`` (a channel wrapping items) or ``AtomDocument`` (a
feed wrapping entries). Each shape knows how to derive a stable key and a
canonical link for its entries; everything downstream works on ``FeedItem``.
"""

from __future__ import annotations

import io
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar
from urllib.parse import urljoin, urlsplit

import feedparser

from cockpit_relay.utils.logger import get_logger

logger = get_logger(__name__)

MAX_KEY_LENGTH: int = 512

_URL_PATTERN = re.compile(r"https?://[^\s<>()]+")


class FeedError(Exception):
    """A feed source could not be fetched or understood."""


class FeedFetchError(FeedError):
    """The feed server answered with a non-success status."""


class FeedParseError(FeedError):
    """The body is neither an RSS nor an Atom document."""


@dataclass(frozen=True)
class FeedItem:
    key: str
    link: str
    title: str = ""


def pick_items(container: Any, field_name: str) -> list[Any]:
    """Return the list held by ``container[field_name]``.

    A missing field yields ``[]`` and a single non-list entry yields a
    one-element list, so callers never probe the shape themselves.
    """
    if container is None:
        return []
    if isinstance(container, Mapping):
        value = container.get(field_name)
    else:
        value = getattr(container, field_name, None)
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _text(value: Any) -> str:
    """Flatten a scalar or a ``{"value": ...}`` style node to stripped text."""
    if value is None:
        return ""
    if isinstance(value, Mapping):
        for k in ("value", "#text", "href"):
            if value.get(k):
                return str(value[k]).strip()
        return ""
    if isinstance(value, (list, tuple)):
        return _text(value[0]) if value else ""
    return str(value).strip()


def _clean_link(raw: str, base: str = "") -> str:
    link = raw.strip()
    if link.startswith("<"):
        link = link[1:]
    if link.endswith(">"):
        link = link[:-1]
    link = link.strip()
    if link and base and not urlsplit(link).scheme:
        link = urljoin(base, link)
    return link


def _link_from_set(links: list[Any]) -> str:
    """Prefer the ``alternate`` relation, else the first link with an href."""
    candidates = [l for l in links if isinstance(l, Mapping) and _text(l.get("href"))]
    for link in candidates:
        if (link.get("rel") or "alternate") == "alternate":
            return _text(link.get("href"))
    if candidates:
        return _text(candidates[0].get("href"))
    return ""


def _first_text(entry: Mapping[str, Any], *fields: str) -> str:
    for name in fields:
        text = _text(entry.get(name))
        if text:
            return text
    return ""


@dataclass(frozen=True)
class _FeedDocument:
    feed: Mapping[str, Any] = field(default_factory=dict)
    entries: list[Any] = field(default_factory=list)

    kind: ClassVar[str] = ""
    format_id_fields: ClassVar[tuple[str, ...]] = ()

    @property
    def base_url(self) -> str:
        return _text(self.feed.get("link"))

    def item_link(self, entry: Mapping[str, Any]) -> str:
        raise NotImplementedError

    def item_key(self, entry: Mapping[str, Any]) -> str:
        """Stable identity: unique id > format id > link > title, truncated."""
        key = (
            _first_text(entry, "id")
            or _first_text(entry, *self.format_id_fields)
            or self.item_link(entry)
            or _first_text(entry, "title")
        )
        return key[:MAX_KEY_LENGTH]

    def items(self, limit: int | None = None) -> list[FeedItem]:
        """Usable items in document order, first ``limit`` entries only.

        Entries without a key or link are dropped; a repeated key keeps its
        first occurrence.
        """
        entries = self.entries if limit is None else self.entries[:limit]
        seen: set[str] = set()
        out: list[FeedItem] = []
        for entry in entries:
            if not isinstance(entry, Mapping):
                continue
            key = self.item_key(entry)
            link = self.item_link(entry)
            if not key or not link:
                logger.debug("Dropping feed entry without key/link: key=%r link=%r", key, link)
                continue
            if key in seen:
                continue
            seen.add(key)
            out.append(FeedItem(key=key, link=link, title=_first_text(entry, "title")))
        return out


@dataclass(frozen=True)
class RssDocument(_FeedDocument):
    """RSS 0.9x / 1.0 / 2.0: ``<channel>`` wrapping ``<item>`` elements."""

    kind = "rss"
    format_id_fields = ("guid",)

    def item_link(self, entry: Mapping[str, Any]) -> str:
        raw = entry.get("link")
        link = _text(raw) if isinstance(raw, str) else ""
        if not link:
            link = _link_from_set(pick_items(entry, "links"))
        return _clean_link(link, self.base_url)


@dataclass(frozen=True)
class AtomDocument(_FeedDocument):
    """Atom: ``<feed>`` wrapping ``<entry>`` elements."""

    kind = "atom"
    format_id_fields = ("dc_identifier",)

    def item_link(self, entry: Mapping[str, Any]) -> str:
        link = _link_from_set(pick_items(entry, "links"))
        if not link:
            link = _text(entry.get("link"))
        return _clean_link(link, self.base_url)


FeedDocument = RssDocument | AtomDocument


def parse_feed(raw: bytes | str) -> FeedDocument:
    """Parse a feed body and classify it as RSS or Atom.

    Raises:
        FeedParseError: The body has no recognisable feed shape and no entries.
    """
    if isinstance(raw, str):
        raw = raw.encode("utf-8")
    parsed = feedparser.parse(io.BytesIO(raw))

    version = str(parsed.get("version") or "")
    feed_meta = parsed.get("feed") or {}
    entries = pick_items(parsed, "entries")

    if version.startswith("atom"):
        return AtomDocument(feed=feed_meta, entries=entries)
    if version.startswith("rss") or entries:
        return RssDocument(feed=feed_meta, entries=entries)

    cause = parsed.get("bozo_exception")
    raise FeedParseError(f"Unrecognised feed document: {cause or 'no channel or feed element'}")


def extract_urls(text: str | None) -> list[str]:
    """All distinct http(s) URLs in ``text``, in order of first appearance."""
    if not text:
        return []
    return list(dict.fromkeys(m.strip() for m in _URL_PATTERN.findall(text)))


def source_domain(url: str) -> str:
    """Lower-cased host of ``url`` without a leading ``www.``."""
    host = (urlsplit(url).hostname or "").lower()
    return host.removeprefix("www.")
