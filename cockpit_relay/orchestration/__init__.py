"""Periodic job orchestration."""
from cockpit_relay.orchestration.scheduler import PeriodicJob, Scheduler

__all__ = ["PeriodicJob", "Scheduler"]
