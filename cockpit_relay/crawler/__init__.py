"""
Feed intake: document parsing, item identity and the conditional poller.
"""

from cockpit_relay.crawler.feed_client import FeedClient
from cockpit_relay.crawler.feed_document import (
    AtomDocument,
    FeedDocument,
    FeedItem,
    RssDocument,
    extract_urls,
    parse_feed,
    pick_items,
)

__all__ = [
    "AtomDocument",
    "FeedClient",
    "FeedDocument",
    "FeedItem",
    "RssDocument",
    "extract_urls",
    "parse_feed",
    "pick_items",
]
