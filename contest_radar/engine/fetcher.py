"""HTTP fetching with bounded retry and failure classification."""

from __future__ import annotations

import json
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict

import httpx
import structlog

from ..config import HttpConfig, RetryConfig
from ..errors import NetworkError, ShapeError

RETRYABLE_STATUS = frozenset({408, 429, 500, 502, 503, 504})


@dataclass(slots=True)
class FetchRequest:
    """Input for the fetcher."""

    url: str
    method: str = "GET"
    params: dict[str, Any] | None = None
    json: dict[str, Any] | None = None
    headers: dict[str, str] | None = None
    timeout: float | None = None
    render_with_browser: bool = False
    # When rendering, optionally wait for a CSS selector to appear
    wait_selector: str | None = None


@dataclass(slots=True)
class FetchResponse:
    """Standardised response wrapper."""

    url: str
    status_code: int
    text: str
    headers: Dict[str, str]
    raw: httpx.Response | None = field(repr=False, default=None)

    def json(self) -> Any:
        try:
            return json.loads(self.text)
        except ValueError as exc:
            raise ShapeError(f"Invalid JSON payload from {self.url}: {exc}") from exc


@dataclass(frozen=True)
class RetryPolicy:
    max_retries: int = 2
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 8.0
    jitter: float = 0.25

    @classmethod
    def from_config(cls, config: RetryConfig) -> "RetryPolicy":
        return cls(
            max_retries=config.max_retries,
            base_delay_seconds=config.base_delay_seconds,
            max_delay_seconds=config.max_delay_seconds,
            jitter=config.jitter,
        )

    def compute_backoff(self, attempt: int) -> float:
        """
        attempt: 1..N
        """
        delay = self.base_delay_seconds * (2 ** max(0, attempt - 1))
        delay = min(delay, self.max_delay_seconds)
        if self.jitter > 0:
            delay = delay * (1.0 + (random.random() * 2 - 1) * self.jitter)
        return max(0.0, delay)


class Fetcher:
    """Execute outbound requests, retrying network failures only."""

    def __init__(
        self,
        http_config: HttpConfig,
        logger: structlog.BoundLogger | None = None,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.http_config = http_config
        self.retry_policy = RetryPolicy.from_config(http_config.retry)
        self.logger = logger or structlog.get_logger("contest_radar.fetcher")
        self._sleep = sleep
        self._client = client or httpx.Client(
            follow_redirects=True,
            timeout=http_config.request_timeout_seconds,
            headers={"User-Agent": http_config.user_agent},
        )

    def close(self) -> None:
        self._client.close()

    def get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        return self.fetch(FetchRequest(url=url, params=params)).json()

    def post_json(self, url: str, payload: dict[str, Any]) -> Any:
        request = FetchRequest(
            url=url,
            method="POST",
            json=payload,
            headers={"Content-Type": "application/json", "Referer": url},
        )
        return self.fetch(request).json()

    def get_text(
        self, url: str, *, render_with_browser: bool = False, wait_selector: str | None = None
    ) -> str:
        request = FetchRequest(
            url=url, render_with_browser=render_with_browser, wait_selector=wait_selector
        )
        return self.fetch(request).text

    def fetch(self, request: FetchRequest) -> FetchResponse:
        attempt = 1
        while True:
            try:
                return self._send(request)
            except NetworkError as exc:
                if attempt > self.retry_policy.max_retries:
                    raise NetworkError(
                        f"Fetch failed after {attempt} attempts: {request.url}: {exc}"
                    ) from exc
                delay = self.retry_policy.compute_backoff(attempt)
                self.logger.warning(
                    "fetch_retry",
                    url=request.url,
                    attempt=attempt,
                    delay=round(delay, 3),
                    error=str(exc),
                )
                self._sleep(delay)
                attempt += 1

    # ------------------------------------------------------------------
    def _send(self, request: FetchRequest) -> FetchResponse:
        timeout = request.timeout or self.http_config.request_timeout_seconds
        headers = dict(request.headers or {})
        if request.render_with_browser:
            return self._fetch_via_browser(request, headers, timeout)
        try:
            response = self._client.request(
                method=request.method,
                url=request.url,
                params=request.params,
                json=request.json,
                headers=headers,
                timeout=timeout,
            )
        except httpx.TransportError as exc:
            raise NetworkError(f"{type(exc).__name__}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise ShapeError(f"{type(exc).__name__}: {exc}") from exc
        status = response.status_code
        if self._is_retryable_status(status):
            raise NetworkError(f"Unexpected status {status} from {request.url}")
        if status >= 400:
            raise ShapeError(f"Unexpected status {status} from {request.url}")
        return FetchResponse(
            url=str(response.url),
            status_code=status,
            text=response.text,
            headers=dict(response.headers),
            raw=response,
        )

    def _fetch_via_browser(
        self, request: FetchRequest, headers: dict[str, str], timeout: float
    ) -> FetchResponse:
        """Use Playwright to retrieve pages that only render client-side."""

        try:
            from playwright.sync_api import Error as PlaywrightError
            from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
            from playwright.sync_api import sync_playwright
        except ImportError as exc:  # pragma: no cover
            raise RuntimeError(
                "Playwright support requires installing the 'playwright' package."
            ) from exc

        timeout_ms = int(timeout * 1000)
        try:
            with sync_playwright() as playwright:
                browser = playwright.chromium.launch(headless=True)
                try:
                    context = browser.new_context(
                        user_agent=headers.get("User-Agent") or self.http_config.user_agent
                    )
                    page = context.new_page()
                    response = page.goto(request.url, wait_until="domcontentloaded", timeout=timeout_ms)
                    if request.wait_selector:
                        try:
                            page.wait_for_selector(request.wait_selector, timeout=timeout_ms)
                        except PlaywrightTimeoutError:
                            # Missing blocks are reported as drift by the parser.
                            pass
                    content = page.content()
                    final_url = page.url
                    status = response.status if response else 200
                    response_headers = dict(response.headers) if response else {}
                finally:
                    browser.close()
        except PlaywrightError as exc:
            raise NetworkError(f"Playwright error: {exc}") from exc
        if self._is_retryable_status(status):
            raise NetworkError(f"Unexpected status {status} from {request.url}")
        if status >= 400:
            raise ShapeError(f"Unexpected status {status} from {request.url}")
        return FetchResponse(url=final_url, status_code=status, text=content, headers=response_headers)

    @staticmethod
    def _is_retryable_status(status_code: int) -> bool:
        return status_code in RETRYABLE_STATUS or status_code >= 500


__all__ = ["FetchRequest", "FetchResponse", "Fetcher", "RetryPolicy"]
