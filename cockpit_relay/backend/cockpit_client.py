"""
Cockpit backend HTTP client.

Thin wrapper over a shared ``httpx.AsyncClient``: resolves paths against the
API base, attaches the shared-secret header and turns non-2xx answers into
``CockpitAPIError`` carrying a truncated body for diagnostics.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from cockpit_relay.utils.logger import get_logger

logger = get_logger(__name__)

SECRET_HEADER = "x-cockpit-secret"

# Response body characters kept on an error.
ERROR_BODY_LIMIT: int = 300

_DEFAULT_TIMEOUT_SECONDS: float = 30.0


class CockpitAPIError(Exception):
    """Backend call failed.

    Attributes:
        status_code: HTTP status, or None for a malformed response.
        body: Response body truncated to ``ERROR_BODY_LIMIT`` characters.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def parse_json(text: str) -> Any | None:
    """Decode ``text`` as JSON, returning None when it is not JSON."""
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return None


class CockpitClient:
    """Authenticated access to the cockpit API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = _DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}{path}"

    async def send(
        self,
        method: str,
        path: str,
        *,
        label: str,
        secret: str = "",
        json_body: Any = None,
        params: dict[str, Any] | None = None,
    ) -> str:
        """Perform one request and return the response text.

        Args:
            method: HTTP method.
            path: Path below the API base, or an absolute URL.
            label: Operation name used in error messages.
            secret: Shared secret sent as ``x-cockpit-secret`` when non-empty.
            json_body: JSON request body.
            params: Query parameters.

        Raises:
            CockpitAPIError: Non-2xx response.
            httpx.HTTPError: Transport failure.
        """
        headers = {SECRET_HEADER: secret} if secret else {}
        response = await self.client.request(
            method, self._url(path), json=json_body, params=params, headers=headers,
        )
        text = response.text
        if not response.is_success:
            body = text[:ERROR_BODY_LIMIT]
            raise CockpitAPIError(
                f"{label} failed {response.status_code}: {body}",
                status_code=response.status_code,
                body=body,
            )
        return text

    async def send_json(self, method: str, path: str, *, label: str, **kwargs: Any) -> Any:
        """Like ``send`` but the response must be JSON.

        Raises:
            CockpitAPIError: Non-2xx or non-JSON response.
        """
        text = await self.send(method, path, label=label, **kwargs)
        payload = parse_json(text)
        if payload is None:
            body = text[:ERROR_BODY_LIMIT]
            raise CockpitAPIError(f"{label} returned non-JSON: {body}", body=body)
        return payload
