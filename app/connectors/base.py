"""
app/connectors/base.py

Shared HTTP mechanics for catalog connectors: rate limiting, bounded
retries with exponential backoff, JSON decoding.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

import requests

from app.config import ExternalHTTPSettings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}
NOT_FOUND_STATUS_CODE = 404


class ConnectorRequestError(RuntimeError):
    """
    Raised when a connector cannot fetch data after retries.
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class JSONHTTPConnector:
    """
    GETs JSON documents below ``base_url``. A 404 is reported as None so
    callers can tell "no such item" apart from transport failures.
    """

    def __init__(
        self,
        *,
        source: str,
        base_url: str,
        http_settings: ExternalHTTPSettings,
        session: requests.Session | None = None,
        default_headers: dict[str, str] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.source = source
        self._base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._default_headers = dict(default_headers or {})
        self._sleep = sleep
        self._settings = http_settings
        self._min_interval_seconds = (
            1.0 / http_settings.rate_limit_per_second if http_settings.rate_limit_per_second > 0 else 0.0
        )
        self._last_request_at = 0.0

    def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any | None:
        url = f"{self._base_url}/{path.lstrip('/')}"
        response = self._send(url, params)
        if response is None:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ConnectorRequestError(f"{self.source}: response was not valid JSON.") from exc

    def _send(self, url: str, params: dict[str, Any] | None) -> requests.Response | None:
        attempts = self._settings.max_retries + 1
        last_error: Exception | None = None

        for attempt in range(1, attempts + 1):
            self._throttle()
            try:
                response = self._session.get(
                    url,
                    params=params,
                    headers=self._default_headers,
                    timeout=self._settings.timeout_seconds,
                )
            except (requests.Timeout, requests.ConnectionError) as exc:
                last_error = exc
            except requests.RequestException as exc:
                logger.error("Connector request failed source=%s url=%s error=%s", self.source, url, exc)
                raise ConnectorRequestError(f"{self.source}: request failed: {exc}") from exc
            else:
                if response.status_code == NOT_FOUND_STATUS_CODE:
                    return None
                if response.status_code not in RETRYABLE_STATUS_CODES:
                    self._raise_for_status(response, url)
                    return response
                last_error = requests.HTTPError(
                    f"Retryable HTTP status code: {response.status_code}",
                    response=response,
                )

            if attempt == attempts:
                break
            wait_seconds = self._settings.backoff_initial_seconds * (
                self._settings.backoff_multiplier ** (attempt - 1)
            )
            logger.warning(
                "Connector request retry source=%s attempt=%s/%s wait_seconds=%.2f url=%s",
                self.source,
                attempt,
                attempts,
                wait_seconds,
                url,
            )
            self._sleep(wait_seconds)

        logger.error(
            "Connector request exhausted retries source=%s url=%s error=%s",
            self.source,
            url,
            last_error,
        )
        raise ConnectorRequestError(f"{self.source}: request failed after retries.") from last_error

    def _raise_for_status(self, response: requests.Response, url: str) -> None:
        try:
            response.raise_for_status()
        except requests.HTTPError as exc:
            logger.error(
                "Connector request failed source=%s status=%s url=%s",
                self.source,
                response.status_code,
                url,
            )
            raise ConnectorRequestError(
                f"{self.source}: request rejected with status {response.status_code}.",
                status_code=response.status_code,
            ) from exc

    def _throttle(self) -> None:
        if self._min_interval_seconds <= 0:
            return
        remaining = self._min_interval_seconds - (time.monotonic() - self._last_request_at)
        if remaining > 0:
            self._sleep(remaining)
        self._last_request_at = time.monotonic()
