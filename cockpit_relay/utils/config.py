"""
Relay settings.

Loads environment variables (and ``.env``) into a typed settings object.
Integer tunables stay raw strings and are normalised through ``clamp_int`` so
that a bad value falls back to its default instead of failing startup.
"""
from __future__ import annotations

from pathlib import Path

from pydantic import computed_field
from pydantic_settings import BaseSettings

_DEFAULT_LOG_DIR = Path(__file__).resolve().parent.parent.parent / "logs"

# Production triage channel used when TRIAGE_CHANNEL_ID is not set.
_DEFAULT_TRIAGE_CHANNEL_ID = "1476283871208145087"

# Settings whose absence aborts startup (attribute name -> env var name).
_REQUIRED: dict[str, str] = {
    "discord_bot_token": "DISCORD_BOT_TOKEN",
    "cockpit_api_base": "COCKPIT_API_BASE",
    "cockpit_ingest_secret": "COCKPIT_INGEST_SECRET",
    "reeraw_channel_id": "REERAW_CHANNEL_ID",
    "coalraw_channel_id": "COALRAW_CHANNEL_ID",
    "policyraw_channel_id": "POLICYRAW_CHANNEL_ID",
    "botlogs_channel_id": "BOTLOGS_CHANNEL_ID",
}


class ConfigurationError(RuntimeError):
    """A required setting is missing."""


def clamp_int(value: object, default: int, lo: int, hi: int) -> int:
    """Coerce ``value`` to an int within ``[lo, hi]``.

    Non-numeric and out-of-range inputs return ``default``; fractional
    inputs are floored.
    """
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return default
    if number != number or number in (float("inf"), float("-inf")):
        return default
    number = int(number // 1)
    if number < lo or number > hi:
        return default
    return number


class Settings(BaseSettings):
    """Process-wide relay configuration."""

    # Discord
    discord_bot_token: str = ""

    # Cockpit backend
    cockpit_api_base: str = ""
    cockpit_ingest_secret: str = ""
    cockpit_process_url: str = ""
    cockpit_process_secret: str = ""
    cockpit_http_timeout_sec: str = "30"

    # Intake channels (vertical -> raw channel)
    reeraw_channel_id: str = ""
    coalraw_channel_id: str = ""
    policyraw_channel_id: str = ""

    # Output channels
    botlogs_channel_id: str = ""
    reebrief_channel_id: str = ""
    coalbrief_channel_id: str = ""
    triage_channel_id: str = _DEFAULT_TRIAGE_CHANNEL_ID

    # Processing trigger
    cockpit_process_limit: str = "20"
    cockpit_process_interval_min: str = "10"
    cockpit_process_initial_delay_sec: str = "15"

    # Publisher
    cockpit_publish_limit: str = "5"
    cockpit_publish_interval_min: str = "15"
    cockpit_triage_score: str = "85"

    # Feed polling
    cockpit_rss_interval_min: str = "10"
    rss_max_sources: str = "50"
    rss_max_items_per_source: str = "25"
    rss_rate_sensitive_domains: str = ""
    rss_politeness_delay_sec: str = "2"
    rss_user_agent: str = "CockpitRelay/1.0 (+feed intake)"
    rss_corporate_user_agent: str = (
        "Mozilla/5.0 (compatible; CockpitRelay/1.0; research feed reader)"
    )

    # Logging
    log_level: str = "INFO"
    log_dir: str = ""
    log_file: str = "cockpit_relay.log"
    log_backup_days: str = "30"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def validate_required(self) -> None:
        """Raise ``ConfigurationError`` naming the first missing required setting."""
        for attr, env_name in _REQUIRED.items():
            if not str(getattr(self, attr) or "").strip():
                raise ConfigurationError(f"Missing env var: {env_name}")

    @computed_field
    @property
    def api_base(self) -> str:
        return self.cockpit_api_base.rstrip("/")

    @computed_field
    @property
    def process_url(self) -> str:
        return self.cockpit_process_url.rstrip("/")

    @computed_field
    @property
    def intake_channels(self) -> dict[str, str]:
        """Intake channel id -> vertical."""
        mapping = {
            self.reeraw_channel_id: "ree",
            self.coalraw_channel_id: "coal",
            self.policyraw_channel_id: "policy",
        }
        return {cid: vertical for cid, vertical in mapping.items() if cid}

    @computed_field
    @property
    def brief_channels(self) -> dict[str, str]:
        """Vertical -> brief output channel id (may be empty)."""
        return {"ree": self.reebrief_channel_id, "coal": self.coalbrief_channel_id}

    @computed_field
    @property
    def http_timeout(self) -> float:
        return float(clamp_int(self.cockpit_http_timeout_sec, 30, 1, 300))

    @computed_field
    @property
    def process_limit(self) -> int:
        return clamp_int(self.cockpit_process_limit, 20, 1, 50)

    @computed_field
    @property
    def process_interval_min(self) -> int:
        return clamp_int(self.cockpit_process_interval_min, 10, 1, 1440)

    @computed_field
    @property
    def process_initial_delay_sec(self) -> int:
        return clamp_int(self.cockpit_process_initial_delay_sec, 15, 1, 3600)

    @computed_field
    @property
    def publish_limit(self) -> int:
        return clamp_int(self.cockpit_publish_limit, 5, 1, 10)

    @computed_field
    @property
    def publish_interval_min(self) -> int:
        return clamp_int(self.cockpit_publish_interval_min, 15, 1, 1440)

    @computed_field
    @property
    def triage_score(self) -> int:
        return clamp_int(self.cockpit_triage_score, 85, 1, 100)

    @computed_field
    @property
    def rss_interval_min(self) -> int:
        return clamp_int(self.cockpit_rss_interval_min, 10, 1, 1440)

    @computed_field
    @property
    def max_sources(self) -> int:
        return clamp_int(self.rss_max_sources, 50, 1, 500)

    @computed_field
    @property
    def max_items_per_source(self) -> int:
        return clamp_int(self.rss_max_items_per_source, 25, 1, 200)

    @computed_field
    @property
    def politeness_delay_sec(self) -> int:
        return clamp_int(self.rss_politeness_delay_sec, 2, 0, 60)

    @computed_field
    @property
    def rate_sensitive_domains(self) -> tuple[str, ...]:
        parts = (d.strip().lower() for d in self.rss_rate_sensitive_domains.split(","))
        return tuple(d.removeprefix("www.") for d in parts if d)

    @computed_field
    @property
    def log_path(self) -> Path:
        """Log file; ``LOG_DIR`` defaults to ``logs/`` beside the package."""
        directory = Path(self.log_dir).expanduser() if self.log_dir.strip() else _DEFAULT_LOG_DIR
        return directory / (self.log_file.strip() or "cockpit_relay.log")

    @computed_field
    @property
    def log_backup_count(self) -> int:
        return clamp_int(self.log_backup_days, 30, 1, 365)


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the Settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
