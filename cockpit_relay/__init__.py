"""
Cockpit relay.

Forwards chat-pasted links and polled feed entries to the cockpit backend and
republishes backend-scored briefs to Discord.
"""

__version__ = "1.0.0"
