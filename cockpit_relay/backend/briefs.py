"""
Brief endpoints and the processing trigger.

``BriefClient`` reads scored items that have not been posted yet and marks
them posted. ``ProcessingTrigger`` pokes the backend processor so pending
intake gets scored; it never raises, it only reports.
"""

from __future__ import annotations

from typing import Any

from cockpit_relay.backend.cockpit_client import CockpitClient, parse_json
from cockpit_relay.models import PublishableItem
from cockpit_relay.monitoring.notifier import BotLogNotifier
from cockpit_relay.utils.logger import get_logger

logger = get_logger(__name__)

# Characters of a failed processor response echoed to the bot log.
_PROCESS_BODY_LIMIT: int = 400


class BriefClient:
    """``/api/brief/*`` endpoints."""

    def __init__(self, cockpit: CockpitClient, secret: str) -> None:
        self._cockpit = cockpit
        self._secret = secret

    async def fetch_unposted(self, vertical: str, limit: int) -> list[PublishableItem]:
        """Items of ``vertical`` not yet published, in backend order.

        Raises:
            CockpitAPIError: Non-2xx or non-JSON response.
        """
        payload = await self._cockpit.send_json(
            "GET",
            "/api/brief/unposted",
            label="unposted fetch",
            secret=self._secret,
            params={"vertical": vertical, "limit": limit},
        )
        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            return []
        return [PublishableItem.from_dict(i) for i in items if isinstance(i, dict)]

    async def mark_posted(self, ids: list[int]) -> int:
        """Flag ``ids`` as published; returns the backend's update count."""
        if not ids:
            return 0
        text = await self._cockpit.send(
            "POST",
            "/api/brief/mark-posted",
            label="mark-posted",
            secret=self._secret,
            json_body={"ids": ids},
        )
        payload = parse_json(text)
        if not isinstance(payload, dict):
            return 0
        try:
            return int(payload.get("updated") or 0)
        except (TypeError, ValueError):
            return 0


class ProcessingTrigger:
    """Authenticated GET against the backend processor."""

    def __init__(
        self,
        cockpit: CockpitClient,
        process_url: str,
        secret: str,
        limit: int,
        notifier: BotLogNotifier,
    ) -> None:
        self._cockpit = cockpit
        self._process_url = process_url.rstrip("/")
        self._secret = secret
        self._limit = limit
        self._notifier = notifier

    async def run_once(self) -> dict[str, Any] | None:
        """Trigger one processing run and log its summary.

        Returns:
            The decoded response, or None when the call failed.
        """
        try:
            response = await self._cockpit.client.get(
                self._process_url,
                params={"secret": self._secret, "limit": self._limit},
            )
            text = response.text

            if not response.is_success:
                await self._notifier.notify(
                    f"⚠️ Process run failed ({response.status_code}): "
                    f"{text[:_PROCESS_BODY_LIMIT]}"
                )
                return None

            payload = parse_json(text)
            if not isinstance(payload, dict):
                await self._notifier.notify(
                    f"⚠️ Process returned non-JSON: {text[:_PROCESS_BODY_LIMIT]}"
                )
                return None

            picked = _as_number(payload.get("picked"))
            processed = _as_number(payload.get("processed"))
            if picked > 0 or processed > 0:
                await self._notifier.notify(
                    f"🧠 Process run: picked={picked}, processed={processed}"
                )
            else:
                logger.debug("Process run: nothing to do")
            return payload
        except Exception as exc:
            await self._notifier.notify(f"🔥 Process runner crash: {exc}")
            return None


def _as_number(value: Any) -> int:
    try:
        return int(float(value or 0))
    except (TypeError, ValueError, OverflowError):
        return 0
