"""Tests for application wiring."""

import asyncio

from cockpit_relay.backend.cockpit_client import CockpitClient
from cockpit_relay.main import RelayApp
from cockpit_relay.orchestration.scheduler import FEED_POLL_INITIAL_DELAY, PUBLISH_INITIAL_DELAY
from cockpit_relay.utils.config import Settings

from conftest import FakeChannel

BASE = dict(
    discord_bot_token="token",
    cockpit_api_base="https://cockpit.test",
    cockpit_ingest_secret="ingest",
    reeraw_channel_id="1",
    coalraw_channel_id="2",
    policyraw_channel_id="3",
    botlogs_channel_id="4",
    reebrief_channel_id="11",
    coalbrief_channel_id="12",
)


class FakeGateway:
    user = "relay#0001"

    def __init__(self):
        self.intake = None
        self.ready_callbacks = []
        self.botlog = FakeChannel()
        self.closed = False

    def set_intake_handler(self, handler):
        self.intake = handler

    def add_ready_callback(self, callback):
        self.ready_callbacks.append(callback)

    async def fetch_text_channel(self, channel_id):
        return self.botlog if channel_id == "4" else None

    def is_closed(self):
        return self.closed

    async def close(self):
        self.closed = True


def make_app(**overrides):
    values = dict(BASE)
    values.update(overrides)
    settings = Settings(_env_file=None, **values)
    gateway = FakeGateway()
    return RelayApp(settings, gateway=gateway, cockpit=CockpitClient(settings.api_base)), gateway


def job_table(app):
    return {job.name: (job.initial_delay, job.interval) for job in app.scheduler.jobs}


def test_full_wiring_schedules_all_jobs():
    app, gateway = make_app(
        cockpit_process_url="https://proc.test/run",
        cockpit_process_secret="p",
        cockpit_process_interval_min="3",
        cockpit_process_initial_delay_sec="20",
    )

    assert gateway.intake is app.intake
    assert gateway.ready_callbacks == [app.on_ready]
    assert job_table(app) == {
        "feed_poll": (FEED_POLL_INITIAL_DELAY, 600),
        "processing": (20, 180),
        "publish": (PUBLISH_INITIAL_DELAY, 900),
    }
    assert app.intake.vertical_for("3") == "policy"


def test_missing_process_secret_disables_processing_and_publishing():
    app, _ = make_app(cockpit_process_url="https://proc.test/run")

    assert app.publisher is None
    assert app.processing is None
    assert set(job_table(app)) == {"feed_poll"}


def test_missing_process_url_keeps_publishing():
    app, _ = make_app(cockpit_process_secret="p")

    assert app.processing is None
    assert set(job_table(app)) == {"feed_poll", "publish"}


def test_ready_announces_once_and_shutdown_closes_everything():
    app, gateway = make_app()

    async def scenario():
        await app.on_ready()
        await app.on_ready()
        assert app.scheduler.started
        await app.shutdown()

    asyncio.run(scenario())

    assert gateway.botlog.sent == ["🟢 Online as relay#0001"]
    assert not app.scheduler.started
    assert gateway.closed
