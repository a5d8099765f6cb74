"""HTTP client with retry/backoff, request spacing and per-kind metrics."""
from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests

logger = logging.getLogger(__name__)

REQUEST_KINDS = ("listing", "detail", "geocode")


@dataclass
class RequestMetrics:
    network_listing: int = 0
    network_detail: int = 0
    network_geocode: int = 0
    cache_hits_geocode: int = 0

    def inc_network(self, kind: str) -> None:
        if kind not in REQUEST_KINDS:
            raise ValueError(f"Unknown request kind: {kind}")
        attr = f"network_{kind}"
        setattr(self, attr, getattr(self, attr) + 1)

    def inc_cache_hit(self, kind: str) -> None:
        if kind != "geocode":
            raise ValueError(f"Unknown request kind: {kind}")
        self.cache_hits_geocode += 1

    def summary(self) -> Dict[str, int]:
        return {
            "listing_requests": self.network_listing,
            "detail_requests": self.network_detail,
            "geocode_requests": self.network_geocode,
            "geocode_cache_hits": self.cache_hits_geocode,
        }


class RequestSpacer:
    """Enforces a minimum interval between consecutive calls to ``wait``.

    Shared by every caller hitting the same host, so spacing holds across
    records as well as between the dependent calls of one record.
    """

    def __init__(
        self,
        min_interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_interval_seconds = max(0.0, float(min_interval_seconds))
        self._clock = clock
        self._sleep = sleep
        self._last: Optional[float] = None
        self._lock = threading.Lock()

    def wait(self) -> None:
        with self._lock:
            now = self._clock()
            if self._last is not None:
                remaining = self.min_interval_seconds - (now - self._last)
                if remaining > 0:
                    self._sleep(remaining)
                    now = self._clock()
            self._last = now


class HttpClient:
    def __init__(
        self,
        timeout: float = 20,
        retry_max: int = 3,
        backoff_base: float = 0.5,
        backoff_max: float = 8.0,
        user_agent: Optional[str] = None,
        metrics: Optional[RequestMetrics] = None,
    ) -> None:
        self.timeout = timeout
        self.retry_max = max(1, int(retry_max))
        self.backoff_base = backoff_base
        self.backoff_max = backoff_max
        self.metrics = metrics
        self.session = requests.Session()
        if user_agent:
            self.session.headers.update({"User-Agent": user_agent})

    def set_metrics(self, metrics: Optional[RequestMetrics]) -> None:
        self.metrics = metrics

    def get_text(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        kind: str = "detail",
        timeout: Optional[float] = None,
    ) -> str:
        resp = self._request("GET", url, kind, params=params, timeout=timeout)
        return _decode_text(resp)

    def post_form(
        self,
        url: str,
        form: Dict[str, str],
        params: Optional[Dict[str, Any]] = None,
        kind: str = "listing",
        timeout: Optional[float] = None,
    ) -> str:
        # requests form-encodes a dict body and sets the urlencoded content type.
        resp = self._request("POST", url, kind, params=params, data=form, timeout=timeout)
        return _decode_text(resp)

    def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        kind: str = "geocode",
        timeout: Optional[float] = None,
    ) -> Any:
        resp = self._request("GET", url, kind, params=params, headers=headers, timeout=timeout)
        try:
            return resp.json()
        except ValueError:
            logger.error("Non-JSON response from %s", url)
            raise

    def _request(
        self,
        method: str,
        url: str,
        kind: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> requests.Response:
        effective_timeout = self.timeout if timeout is None else timeout
        for attempt in range(1, self.retry_max + 1):
            if self.metrics is not None:
                self.metrics.inc_network(kind)
            try:
                if method == "POST":
                    resp = self.session.post(
                        url, params=params, data=data, headers=headers, timeout=effective_timeout
                    )
                else:
                    resp = self.session.get(
                        url, params=params, headers=headers, timeout=effective_timeout
                    )
            except requests.RequestException as exc:
                logger.warning("%s %s failed (attempt %s): %s", method, url, attempt, exc)
                if attempt >= self.retry_max:
                    raise
                self._sleep_backoff(attempt)
                continue

            status = resp.status_code
            if status == 200:
                return resp

            if status in (429, 500, 502, 503, 504):
                logger.warning("HTTP %s from %s (attempt %s)", status, url, attempt)
                if attempt >= self.retry_max:
                    resp.raise_for_status()
                if not self._sleep_retry_after(resp):
                    self._sleep_backoff(attempt)
                continue

            # Non-retryable
            logger.error("HTTP %s from %s", status, url)
            resp.raise_for_status()
            return resp

        raise RuntimeError("Unexpected HTTP retry loop exit")

    def _sleep_backoff(self, attempt: int) -> None:
        base = min(self.backoff_base * (2 ** (attempt - 1)), self.backoff_max)
        jitter = random.uniform(0, self.backoff_base)
        time.sleep(base + jitter)

    def _sleep_retry_after(self, resp: requests.Response) -> bool:
        retry_after = resp.headers.get("Retry-After")
        if not retry_after:
            return False
        try:
            delay = float(retry_after)
        except ValueError:
            return False
        delay = max(0.0, min(delay, self.backoff_max))
        time.sleep(delay)
        return True


def _decode_text(resp: requests.Response) -> str:
    # Upstream pages omit the charset header; fall back to the sniffed encoding.
    if not resp.encoding or resp.encoding.lower() == "iso-8859-1":
        apparent = getattr(resp, "apparent_encoding", None)
        if apparent:
            resp.encoding = apparent
    return resp.text
