"""Tests for feed parsing, item keys and link extraction."""

import pytest

from cockpit_relay.crawler.feed_document import (
    MAX_KEY_LENGTH,
    AtomDocument,
    FeedParseError,
    RssDocument,
    extract_urls,
    parse_feed,
    pick_items,
    source_domain,
)

RSS_XML = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Example wire</title>
    <link>https://example.com/</link>
    <description>News</description>
    <item>
      <title>First</title>
      <link>https://example.com/a</link>
      <guid isPermaLink="false">guid-a</guid>
    </item>
    <item>
      <title>Second</title>
      <link>https://example.com/b</link>
    </item>
    <item>
      <title>Orphan without link</title>
    </item>
  </channel>
</rss>
"""

ATOM_XML = """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Example feed</title>
  <id>urn:example:feed</id>
  <updated>2024-05-01T00:00:00Z</updated>
  <entry>
    <title>Entry one</title>
    <id>urn:uuid:entry-1</id>
    <updated>2024-05-01T00:00:00Z</updated>
    <link rel="related" href="https://example.com/related"/>
    <link rel="alternate" href="https://example.com/entry-1"/>
  </entry>
</feed>
"""


@pytest.mark.parametrize("field_name", ["item", "entry"])
def test_pick_items_missing_field_is_empty(field_name):
    assert pick_items({"title": "x"}, field_name) == []
    assert pick_items(None, field_name) == []


@pytest.mark.parametrize("field_name", ["item", "entry"])
def test_pick_items_single_entry_becomes_list(field_name):
    entry = {"title": "only"}
    assert pick_items({field_name: entry}, field_name) == [entry]


@pytest.mark.parametrize("field_name", ["item", "entry"])
def test_pick_items_list_returned_in_full(field_name):
    entries = [{"title": "a"}, {"title": "b"}, {"title": "c"}]
    assert pick_items({field_name: entries}, field_name) == entries


def test_parse_rss_document():
    doc = parse_feed(RSS_XML)

    assert isinstance(doc, RssDocument)
    items = doc.items()
    assert [i.key for i in items] == ["guid-a", "https://example.com/b"]
    assert [i.link for i in items] == ["https://example.com/a", "https://example.com/b"]


def test_parse_atom_document_prefers_alternate_link():
    doc = parse_feed(ATOM_XML.encode("utf-8"))

    assert isinstance(doc, AtomDocument)
    items = doc.items()
    assert len(items) == 1
    assert items[0].key == "urn:uuid:entry-1"
    assert items[0].link == "https://example.com/entry-1"


def test_parse_rejects_non_feed():
    with pytest.raises(FeedParseError):
        parse_feed("this is not a feed at all")


def test_key_priority_order():
    doc = RssDocument()
    entry = {"id": "uid", "guid": "g", "link": "https://x.test/a", "title": "t"}
    assert doc.item_key(entry) == "uid"

    entry.pop("id")
    assert doc.item_key(entry) == "g"

    entry.pop("guid")
    assert doc.item_key(entry) == "https://x.test/a"

    entry.pop("link")
    assert doc.item_key(entry) == "t"


def test_atom_format_identifier_before_link():
    doc = AtomDocument()
    entry = {"dc_identifier": "doi:10/1", "links": [{"rel": "alternate", "href": "https://x.test/e"}]}
    assert doc.item_key(entry) == "doi:10/1"


def test_key_is_stable_and_bounded():
    doc = RssDocument()
    entry = {"id": "k" * (MAX_KEY_LENGTH + 100), "link": "https://x.test/a"}

    first = doc.item_key(entry)
    assert first == doc.item_key(dict(entry))
    assert len(first) == MAX_KEY_LENGTH


def test_link_angle_brackets_and_relative_links():
    doc = RssDocument(feed={"link": "https://example.com/news/"})
    assert doc.item_link({"link": "  <https://x.test/a>  "}) == "https://x.test/a"
    assert doc.item_link({"link": "/story/1"}) == "https://example.com/story/1"


def test_rss_link_falls_back_to_link_set():
    doc = RssDocument()
    entry = {"links": [{"rel": "enclosure", "href": "https://x.test/audio.mp3"}]}
    assert doc.item_link(entry) == "https://x.test/audio.mp3"


def test_atom_link_set_without_alternate_uses_first():
    doc = AtomDocument()
    entry = {
        "links": [
            {"rel": "related"},
            {"rel": "related", "href": "https://x.test/first"},
            {"rel": "via", "href": "https://x.test/second"},
        ]
    }
    assert doc.item_link(entry) == "https://x.test/first"


def test_items_drop_incomplete_and_repeated_keys():
    doc = RssDocument(
        entries=[
            {"title": "no link"},
            {"link": "https://x.test/1", "id": "same"},
            {"link": "https://x.test/2", "id": "same"},
            {"link": "https://x.test/3"},
        ]
    )
    items = doc.items()
    assert [(i.key, i.link) for i in items] == [
        ("same", "https://x.test/1"),
        ("https://x.test/3", "https://x.test/3"),
    ]


def test_items_limit_applies_before_filtering():
    doc = RssDocument(entries=[{"link": f"https://x.test/{n}"} for n in range(10)])
    assert len(doc.items(limit=3)) == 3


def test_extract_urls_dedupes_in_order():
    text = "see https://a.test/x and (https://b.test/y) again https://a.test/x <https://c.test/z>"
    assert extract_urls(text) == ["https://a.test/x", "https://b.test/y", "https://c.test/z"]
    assert extract_urls("") == []
    assert extract_urls(None) == []


def test_source_domain():
    assert source_domain("https://www.Reuters.com/markets/rss") == "reuters.com"
    assert source_domain("not a url") == ""
