"""Tests for brief rendering and its shrink stages."""

import pytest

from cockpit_relay.models import PublishableItem
from cockpit_relay.publisher.formatters import (
    MAX_BRIEF_LENGTH,
    build_brief_message,
    build_triage_message,
    format_bullets,
    format_tags,
)

BULLETS = ["- first point", "• second point", "third point", "fourth point", "fifth point"]
TAGS = ["lithium", "supply", "policy"]


def make_item(**overrides):
    data = dict(
        id=7,
        vertical="ree",
        relevance_score=91.0,
        title="Mine output rises",
        summary="Output grew.",
        bullets=list(BULLETS),
        tags=list(TAGS),
        why_it_matters="Prices react.",
        url="https://x.test/7",
    )
    data.update(overrides)
    return PublishableItem(**data)


def with_summary_length(base, target_length, **overrides):
    """Item whose rendering (under ``base`` rules) is exactly ``target_length`` long."""
    probe = make_item(summary="s", **overrides)
    fixed = len(base(probe)) - 1
    return make_item(summary="s" * (target_length - fixed))


def full_render(item):
    return build_brief_message(item, "REE")


def short_render(item):
    short = make_item(summary=item.summary, bullets=BULLETS[:3], tags=[])
    return build_brief_message(short, "REE")


def test_full_message_layout():
    message = build_brief_message(make_item(), "REE")

    assert message == (
        "🟣 **REE Brief** | Score: **91**\n"
        "\n**Mine output rises**\n"
        "\nOutput grew.\n"
        "\n• first point\n• second point\n• third point\n• fourth point\n• fifth point\n"
        "\n**Why it matters:** Prices react.\n"
        "\n**Tags:** lithium, supply, policy\n"
        "\n**Source:** https://x.test/7"
    )


def test_empty_sections_omitted_and_fractional_score():
    item = make_item(relevance_score=72.5, summary="", bullets=[], tags=[], why_it_matters="")
    message = build_brief_message(item, "Coal")

    assert message == (
        "🟣 **Coal Brief** | Score: **72.5**\n"
        "\n**Mine output rises**\n"
        "\n**Source:** https://x.test/7"
    )


def test_format_helpers_bounds():
    assert format_bullets(["a", "", None, "- b", "c", "d", "e", "f"]) == [
        "• a", "• b", "• c", "• d", "• e",
    ]
    assert format_tags([]) == ""
    assert format_tags([str(n) for n in range(10)]) == "\n**Tags:** 0, 1, 2, 3, 4, 5"


def test_message_at_limit_is_untouched():
    item = with_summary_length(full_render, MAX_BRIEF_LENGTH)

    message = build_brief_message(item, "REE")

    assert len(message) == MAX_BRIEF_LENGTH
    assert "**Tags:**" in message
    assert "• fifth point" in message


def test_one_over_limit_drops_tags_and_extra_bullets():
    item = with_summary_length(full_render, MAX_BRIEF_LENGTH + 1)

    message = build_brief_message(item, "REE")

    assert "**Tags:**" not in message
    assert "• third point" in message
    assert "• fourth point" not in message
    assert message.endswith("**Source:** https://x.test/7")
    assert len(message) < MAX_BRIEF_LENGTH


def test_shortened_message_at_limit_is_not_cut():
    item = with_summary_length(short_render, MAX_BRIEF_LENGTH)

    message = build_brief_message(item, "REE")

    assert len(message) == MAX_BRIEF_LENGTH
    assert not message.endswith("…")
    assert "**Tags:**" not in message


def test_shortened_message_over_limit_is_hard_cut():
    item = with_summary_length(short_render, MAX_BRIEF_LENGTH + 1)

    message = build_brief_message(item, "REE")

    assert len(message) == 1891
    assert message.endswith("…")
    assert message.startswith("🟣 **REE Brief**")


@pytest.mark.parametrize("summary_length", [0, 500, 1890, 5000])
def test_message_never_exceeds_limit(summary_length):
    item = make_item(summary="y" * summary_length)

    assert len(build_brief_message(item, "REE")) <= MAX_BRIEF_LENGTH


def test_triage_message_wraps_brief():
    item = make_item()
    brief = build_brief_message(item, "REE")

    assert build_triage_message(brief, "REE", item) == (
        f"🚨 **High-signal REE** (Score: **91**)\n\n{brief}"
    )
