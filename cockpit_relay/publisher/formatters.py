"""
Brief message formatter.

Renders a scored item as a Discord Markdown message. Oversized messages are
shrunk in two stages: first the bullet list is shortened and the tags are
dropped, then the text is hard-truncated. Title, summary, why-it-matters and
source link therefore survive longer than bullets and tags.
"""

from __future__ import annotations

import re
from typing import Any

from cockpit_relay.models import PublishableItem

# Rendered message ceiling (below Discord's 2000 with margin).
MAX_BRIEF_LENGTH: int = 1900
_HARD_CUT_LENGTH: int = 1890

MAX_BULLETS: int = 5
SHORT_BULLETS: int = 3
MAX_TAGS: int = 6

_BULLET_MARKER = re.compile(r"^\s*[-•]\s*")


def _cleaned(values: list[Any], limit: int) -> list[str]:
    out = [str(v or "").strip() for v in values]
    return [v for v in out if v][:limit]


def format_bullets(bullets: list[Any], limit: int = MAX_BULLETS) -> list[str]:
    """Up to ``limit`` non-empty bullets, re-prefixed with a uniform marker."""
    return [f"• {_BULLET_MARKER.sub('', b).strip()}" for b in _cleaned(bullets, limit)]


def format_tags(tags: list[Any]) -> str:
    cleaned = _cleaned(tags, MAX_TAGS)
    return f"\n**Tags:** {', '.join(cleaned)}" if cleaned else ""


def _render(
    header: str,
    title: str,
    summary: str,
    bullets: list[str],
    why: str,
    tags_block: str,
    url: str,
) -> str:
    parts = [
        header,
        f"\n**{title}**",
        f"\n{summary}" if summary else "",
        "\n" + "\n".join(bullets) if bullets else "",
        f"\n**Why it matters:** {why}" if why else "",
        tags_block,
        f"\n**Source:** {url}" if url else "",
    ]
    return "\n".join(p for p in parts if p)


def build_brief_message(item: PublishableItem, vertical_label: str) -> str:
    """Render ``item`` for the ``vertical_label`` brief channel.

    Args:
        item: Scored item from the backend.
        vertical_label: Display name of the vertical ("REE", "Coal").

    Returns:
        Message text no longer than ``MAX_BRIEF_LENGTH`` characters.
    """
    header = f"🟣 **{vertical_label} Brief** | Score: **{item.display_score}**"
    title = item.title.strip() or "(untitled)"
    summary = item.summary.strip()
    why = item.why_it_matters.strip()
    url = item.url.strip()
    bullets = format_bullets(item.bullets)

    message = _render(header, title, summary, bullets, why, format_tags(item.tags), url)
    if len(message) > MAX_BRIEF_LENGTH:
        message = _render(header, title, summary, bullets[:SHORT_BULLETS], why, "", url)
    if len(message) > MAX_BRIEF_LENGTH:
        message = message[:_HARD_CUT_LENGTH] + "…"
    return message


def build_triage_message(message: str, vertical_label: str, item: PublishableItem) -> str:
    """Escalated copy of a rendered brief for the triage channel."""
    return (
        f"🚨 **High-signal {vertical_label}** (Score: **{item.display_score}**)\n\n{message}"
    )
