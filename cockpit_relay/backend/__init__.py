"""Cockpit backend clients."""
from cockpit_relay.backend.briefs import BriefClient, ProcessingTrigger
from cockpit_relay.backend.cockpit_client import CockpitAPIError, CockpitClient
from cockpit_relay.backend.ingest import IngestionClient
from cockpit_relay.backend.sources import SourceStore

__all__ = [
    "BriefClient",
    "CockpitAPIError",
    "CockpitClient",
    "IngestionClient",
    "ProcessingTrigger",
    "SourceStore",
]
