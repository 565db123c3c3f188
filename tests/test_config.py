"""Tests for settings parsing."""

from pathlib import Path

import pytest

from cockpit_relay.utils.config import ConfigurationError, Settings, clamp_int
from cockpit_relay.utils.logger import build_file_handler

REQUIRED = dict(
    discord_bot_token="token",
    cockpit_api_base="https://cockpit.test/",
    cockpit_ingest_secret="ingest",
    reeraw_channel_id="1",
    coalraw_channel_id="2",
    policyraw_channel_id="3",
    botlogs_channel_id="4",
)


def make_settings(**overrides):
    values = dict(REQUIRED)
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("7", 7),
        ("7.9", 7),
        (" 12 ", 12),
        ("1", 1),
        ("50", 50),
        ("0", 20),
        ("51", 20),
        ("-3", 20),
        ("abc", 20),
        ("", 20),
        (None, 20),
        ("nan", 20),
        ("inf", 20),
    ],
)
def test_clamp_int(value, expected):
    assert clamp_int(value, 20, 1, 50) == expected


def test_validate_required_passes():
    make_settings().validate_required()


@pytest.mark.parametrize(
    "attr, env_name",
    [
        ("discord_bot_token", "DISCORD_BOT_TOKEN"),
        ("cockpit_api_base", "COCKPIT_API_BASE"),
        ("cockpit_ingest_secret", "COCKPIT_INGEST_SECRET"),
        ("policyraw_channel_id", "POLICYRAW_CHANNEL_ID"),
        ("botlogs_channel_id", "BOTLOGS_CHANNEL_ID"),
    ],
)
def test_validate_required_names_missing_var(attr, env_name):
    settings = make_settings(**{attr: "  "})

    with pytest.raises(ConfigurationError, match=f"Missing env var: {env_name}"):
        settings.validate_required()


def test_channel_mappings():
    settings = make_settings(reebrief_channel_id="11", coalbrief_channel_id="")

    assert settings.intake_channels == {"1": "ree", "2": "coal", "3": "policy"}
    assert settings.brief_channels == {"ree": "11", "coal": ""}
    assert settings.triage_channel_id == "1476283871208145087"
    assert settings.api_base == "https://cockpit.test"


def test_tunables_defaults_and_fallbacks():
    settings = make_settings(cockpit_publish_limit="99", cockpit_triage_score="70")

    assert settings.publish_limit == 5
    assert settings.triage_score == 70
    assert settings.process_limit == 20
    assert settings.process_initial_delay_sec == 15
    assert settings.rss_interval_min == 10
    assert settings.max_items_per_source == 25
    assert settings.http_timeout == 30.0


def test_rate_sensitive_domains_normalised():
    settings = make_settings(rss_rate_sensitive_domains=" WWW.Example.com, ,corp.test ")

    assert settings.rate_sensitive_domains == ("example.com", "corp.test")


def test_derived_settings_appear_in_dump():
    dumped = make_settings(cockpit_publish_interval_min="20").model_dump()

    assert dumped["publish_interval_min"] == 20
    assert dumped["intake_channels"] == {"1": "ree", "2": "coal", "3": "policy"}


def test_log_location_from_settings(tmp_path):
    settings = make_settings(log_dir=str(tmp_path / "relay"), log_file="intake.log",
                             log_backup_days="7")

    assert settings.log_path == tmp_path / "relay" / "intake.log"
    assert settings.log_backup_count == 7


def test_log_location_defaults():
    settings = make_settings(log_backup_days="0")

    assert settings.log_path.name == "cockpit_relay.log"
    assert settings.log_path.parent.name == "logs"
    assert settings.log_backup_count == 30


def test_file_handler_creates_directory(tmp_path):
    path = tmp_path / "nested" / "relay.log"

    handler = build_file_handler(path, 20, 5)
    try:
        assert path.parent.is_dir()
        assert Path(handler.baseFilename) == path
        assert handler.backupCount == 5
    finally:
        handler.close()
