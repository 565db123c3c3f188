"""Brief publishing."""
from cockpit_relay.publisher.formatters import build_brief_message
from cockpit_relay.publisher.publisher import Publisher

__all__ = ["Publisher", "build_brief_message"]
