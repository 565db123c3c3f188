"""Shared fakes for the relay tests."""

import logging
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest


class FakeChannel:
    """Text channel that records what it was sent."""

    def __init__(self, fail: bool = False, log: list | None = None, name: str = "channel"):
        self.sent: list[str] = []
        self.fail = fail
        self._log = log
        self._name = name

    async def send(self, content: str):
        if self.fail:
            raise RuntimeError("send failed")
        self.sent.append(content)
        if self._log is not None:
            self._log.append((self._name, content))


class FakeResolver:
    def __init__(self, channels: dict):
        self.channels = channels

    async def fetch_text_channel(self, channel_id: str):
        return self.channels.get(channel_id)


class RecordingNotifier:
    """Stand-in for BotLogNotifier."""

    def __init__(self):
        self.lines: list[str] = []

    async def notify(self, text: str, level: int = logging.INFO) -> bool:
        self.lines.append(text)
        return True


def make_message(content: str, channel_id: int = 100, bot: bool = False):
    message = MagicMock()
    message.author = SimpleNamespace(bot=bot, id=42, name="operator")
    message.channel = SimpleNamespace(id=channel_id)
    message.id = 555
    message.content = content
    message.add_reaction = AsyncMock()
    return message


@pytest.fixture
def notifier():
    return RecordingNotifier()
