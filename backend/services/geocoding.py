"""Thin HTTP client for OpenStreetMap Nominatim.

Covers the three calls the place search needs (search, details, reverse) and
nothing else. Failures are raised as the errors in ``domain.errors``; deciding
what the user sees is left to the caller.
"""

from __future__ import annotations

import logging
import re
import threading
import time
from typing import Any, Optional

import requests

from domain.errors import MalformedResponseError, TransportError
from settings import settings

logger = logging.getLogger(__name__)

FALLBACK_UA = "AquaNova/1.0"
SEARCH_RESULT_LIMIT = 10


def _redact_email(ua: str) -> str:
    if "@" not in ua:
        return ua
    return re.sub(r"\S+@\S+", "<redacted>", ua)


class NominatimClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        referer: Optional[str] = None,
        min_interval_sec: Optional[float] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.GEOCODER_BASE_URL).rstrip("/")
        ua = user_agent or settings.GEOCODER_USER_AGENT
        if not ua:
            logger.warning(
                "GEOCODER_USER_AGENT not set in environment; using fallback UA. "
                "This may violate Nominatim usage policy."
            )
            ua = FALLBACK_UA
        self.headers = {
            "User-Agent": ua,
            "Accept": "application/json",
        }
        referer = referer or settings.GEOCODER_REFERER
        if referer:
            self.headers["Referer"] = referer
        self.min_interval_sec = (
            settings.GEOCODER_MIN_INTERVAL if min_interval_sec is None else min_interval_sec
        )
        self.timeout = settings.GEOCODER_TIMEOUT if timeout is None else timeout
        self._session = session or requests.Session()
        self._lock = threading.Lock()
        self._last_request_ts = 0.0
        self._logged_ua = False

    def _throttled_get(self, path: str, params: dict[str, Any]) -> requests.Response:
        """Perform a GET request honouring the minimum interval between calls."""
        with self._lock:
            if self.min_interval_sec > 0:
                delta = time.monotonic() - self._last_request_ts
                if delta < self.min_interval_sec:
                    time.sleep(self.min_interval_sec - delta)
            self._last_request_ts = time.monotonic()
        if not self._logged_ua:
            logger.debug("Nominatim User-Agent: %s", _redact_email(self.headers["User-Agent"]))
            self._logged_ua = True
        return self._session.get(
            f"{self.base_url}/{path}",
            params=params,
            headers=self.headers,
            timeout=self.timeout,
        )

    def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        try:
            resp = self._throttled_get(path, params)
        except requests.RequestException as exc:
            raise TransportError(f"Nominatim /{path} request failed: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            raise TransportError(
                f"Nominatim /{path} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as exc:
            raise MalformedResponseError(f"Nominatim /{path} returned invalid JSON: {exc}") from exc

    def search(
        self,
        text: str,
        *,
        language: str,
        country_codes: str,
        limit: int = SEARCH_RESULT_LIMIT,
    ) -> list[dict]:
        params = {
            "q": text,
            "format": "json",
            "addressdetails": "1",
            "limit": str(limit),
            "accept-language": language,
        }
        if country_codes:
            params["countrycodes"] = country_codes
        data = self._get_json("search", params)
        if not isinstance(data, list):
            raise MalformedResponseError(
                f"Nominatim /search returned {type(data).__name__}, expected a list"
            )
        return data

    def details(self, place_id: str, *, language: Optional[str] = None) -> dict:
        params = {"place_id": place_id, "format": "json"}
        if language:
            params["accept-language"] = language
        data = self._get_json("details", params)
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"Nominatim /details returned {type(data).__name__}, expected an object"
            )
        return data

    def reverse(self, lat: float, lon: float, *, language: str, zoom: int = 18) -> dict:
        params = {
            "format": "jsonv2",
            "lat": str(lat),
            "lon": str(lon),
            "zoom": str(zoom),
            "addressdetails": "1",
            "accept-language": language,
        }
        data = self._get_json("reverse", params)
        if not isinstance(data, dict):
            raise MalformedResponseError(
                f"Nominatim /reverse returned {type(data).__name__}, expected an object"
            )
        return data
