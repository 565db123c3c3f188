"""Operational notifications."""
from cockpit_relay.monitoring.notifier import BotLogNotifier

__all__ = ["BotLogNotifier"]
