from __future__ import annotations

import logging
from typing import Any

import requests

from config import SWAP_CONFIG
from core.errors import TransportError

logger = logging.getLogger(__name__)


class RunesClient:
    """Read-only REST client for the swap server (wallet listing)."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._base_url = (base_url or SWAP_CONFIG["apiUrl"]).rstrip("/")
        self._timeout = timeout_seconds
        self._session = requests.Session()
        key = api_key if api_key is not None else SWAP_CONFIG["apiKey"]
        self._session.headers.update(
            {
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
            }
        )

    def _get(self, path: str) -> Any:
        url = f"{self._base_url}{path}"
        try:
            resp = self._session.get(url, timeout=self._timeout)
        except requests.RequestException as exc:
            raise TransportError(f"Request to {path} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise TransportError(
                _error_message(resp, f"Request to {path} failed"),
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise TransportError(f"Invalid JSON from {path}: {resp.text!r}") from exc

    def get_wallets(self) -> Any:
        """Requires the ``read`` scope on the API key."""
        data = self._get("/wallets")
        logger.debug("fetched wallets: %r", data)
        return data


def _error_message(resp: requests.Response, default: str) -> str:
    try:
        body = resp.json()
    except ValueError:
        return default
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return default
