"""Finnhub REST client.

Thin synchronous wrapper around the Finnhub endpoints the board uses:
- /quote               → real-time quote (all-zero payload for unknown symbols)
- /stock/profile2      → company profile
- /company-news        → per-symbol news for a date window
- /news                → general market news by category

The async adapter runs these calls in a worker thread.
"""

from __future__ import annotations

import os
from datetime import date
from pathlib import Path
from typing import Any

import requests
import yaml

from src.domain.exceptions import ConfigurationError, MarketDataError
from src.utils.logging_setup import get_logger

logger = get_logger(__name__)

FINNHUB_BASE_URL = "https://finnhub.io/api/v1"
DEFAULT_TIMEOUT = 10.0

_SECRETS_PATH = Path(__file__).resolve().parents[4] / "config" / "secrets.yaml"


def load_finnhub_key(secrets_path: Path | None = None) -> str:
    """Load the Finnhub API key from FINNHUB_API_KEY or config/secrets.yaml."""
    key = os.environ.get("FINNHUB_API_KEY", "")
    if key:
        return key

    path = secrets_path or _SECRETS_PATH
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        key = (data.get("finnhub") or {}).get("api_key", "")
    except FileNotFoundError:
        pass
    return key


class FinnhubClient:
    """Blocking Finnhub HTTP client sharing one requests session."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = FINNHUB_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self._api_key = api_key or load_finnhub_key()
        if not self._api_key:
            raise ConfigurationError(
                "Finnhub API key required. Set FINNHUB_API_KEY env var or add to config/secrets.yaml"
            )
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    def quote(self, symbol: str) -> dict[str, Any]:
        data = self._get("/quote", {"symbol": symbol})
        return data if isinstance(data, dict) else {}

    def profile(self, symbol: str) -> dict[str, Any]:
        data = self._get("/stock/profile2", {"symbol": symbol})
        return data if isinstance(data, dict) else {}

    def company_news(self, symbol: str, since: date, until: date) -> list[dict[str, Any]]:
        data = self._get(
            "/company-news",
            {"symbol": symbol, "from": since.isoformat(), "to": until.isoformat()},
        )
        return data if isinstance(data, list) else []

    def market_news(self, category: str = "general") -> list[dict[str, Any]]:
        data = self._get("/news", {"category": category})
        return data if isinstance(data, list) else []

    def close(self) -> None:
        self._session.close()

    def _get(self, path: str, params: dict[str, Any]) -> Any:
        """GET a Finnhub endpoint and decode the JSON body."""
        request_params = dict(params)
        request_params["token"] = self._api_key
        url = f"{self._base_url}{path}"

        try:
            resp = self._session.get(url, params=request_params, timeout=self._timeout)
            if resp.status_code == 429:
                logger.warning(f"Finnhub rate limit hit for {path}")
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as e:
            raise MarketDataError(f"Finnhub request {path} failed: {e}") from e
        except ValueError as e:
            raise MarketDataError(f"Finnhub response for {path} is not JSON: {e}") from e
