# =============================================================================
# gbif_core/client.py  —  GBIF REST API Client
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Wraps httpx.AsyncClient with everything a long-running MCP server needs
#   in front of a shared public API:
#     - base URL, User-Agent, JSON Accept header, optional basic auth
#     - a concurrency cap (asyncio.Semaphore) and a per-minute request window
#     - retries through tenacity: 5xx and transport errors with exponential
#       delay, 429 with Retry-After (or a backoff growing by the multiplier)
#     - a circuit breaker that fails fast after repeated upstream failures
#
# ERRORS:
#   Any request that still fails after its retries raises GbifApiError
#   (CircuitOpenError while the breaker is open).  Callers never see raw
#   httpx exceptions.
# =============================================================================

import asyncio
import time
from enum import Enum
from types import TracebackType
from typing import Any, AsyncIterator, Callable, Mapping, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from gbif_core.config import GbifSettings, RateLimitSettings
from gbif_core.errors import CircuitOpenError, GbifApiError
from gbif_core.log_context import LogContext

_WINDOW_SECONDS = 60.0


class RetryableResponse(Exception):
    """A 429 or 5xx answer that a later attempt may turn into a success."""

    def __init__(self, response: httpx.Response):
        super().__init__(f"HTTP {response.status_code}")
        self.response = response

    @property
    def status_code(self) -> int:
        return self.response.status_code


def clean_params(params: Optional[Mapping[str, Any]]) -> dict[str, Any]:
    """Drop None values and empty lists; httpx repeats list values."""
    if not params:
        return {}
    cleaned = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)) and not value:
            continue
        cleaned[key] = list(value) if isinstance(value, tuple) else value
    return cleaned


# =============================================================================
# Circuit breaker
# =============================================================================
class CircuitState(str, Enum):
    CLOSED = "CLOSED"          # Normal operation
    OPEN = "OPEN"              # Reject requests until the timeout elapses
    HALF_OPEN = "HALF_OPEN"    # Let requests through to probe recovery


class CircuitBreaker:
    """Counts consecutive upstream failures and trips after a threshold."""

    def __init__(
        self,
        log: LogContext,
        failure_threshold: int = 5,
        success_threshold: int = 2,
        reset_timeout: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._log = log
        self._failure_threshold = failure_threshold
        self._success_threshold = success_threshold
        self._reset_timeout = reset_timeout
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._successes = 0
        self._opened_at = 0.0

    @property
    def state(self) -> CircuitState:
        return self._state

    def can_request(self) -> bool:
        if self._state is CircuitState.OPEN:
            if self._clock() - self._opened_at < self._reset_timeout:
                return False
            self._log.info("Circuit breaker transitioning to HALF_OPEN")
            self._state = CircuitState.HALF_OPEN
            self._successes = 0
        return True

    def record_success(self) -> None:
        self._failures = 0
        if self._state is CircuitState.HALF_OPEN:
            self._successes += 1
            if self._successes >= self._success_threshold:
                self._log.info("Circuit breaker transitioning to CLOSED")
                self._state = CircuitState.CLOSED
                self._successes = 0

    def record_failure(self) -> None:
        self._failures += 1
        if self._state is CircuitState.HALF_OPEN:
            self._log.warning("Circuit breaker transitioning to OPEN (failure during HALF_OPEN)")
            self._trip()
        elif self._state is CircuitState.CLOSED and self._failures >= self._failure_threshold:
            self._log.warning(f"Circuit breaker transitioning to OPEN ({self._failures} failures)")
            self._trip()

    def reset(self) -> None:
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._successes = 0
        self._opened_at = 0.0

    def _trip(self) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = self._clock()
        self._successes = 0


# =============================================================================
# Client
# =============================================================================
class GbifClient:
    """Async client for https://api.gbif.org/v1.

    Usage:
        async with GbifClient(settings.gbif, settings.rate_limit, log) as client:
            page = await client.get("/species/search", {"q": "Puma"})
    """

    def __init__(
        self,
        settings: Optional[GbifSettings] = None,
        rate_limit: Optional[RateLimitSettings] = None,
        log: Optional[LogContext] = None,
        breaker: Optional[CircuitBreaker] = None,
    ):
        self.settings = settings or GbifSettings()
        self.rate_limit = rate_limit or RateLimitSettings()
        self._log = (log or LogContext()).child("client")
        self._breaker = breaker or CircuitBreaker(self._log)
        self._semaphore = asyncio.Semaphore(self.rate_limit.max_concurrent_requests)
        self._window_lock = asyncio.Lock()
        self._window_start = time.monotonic()
        self._window_count = 0

        delay = self.settings.retry_delay_ms / 1000
        max_backoff = self.rate_limit.max_backoff_ms / 1000
        self._error_wait = wait_exponential(multiplier=delay, max=max_backoff)
        self._throttle_wait = wait_exponential(
            multiplier=delay, exp_base=self.rate_limit.backoff_multiplier, max=max_backoff
        )

        auth = None
        if self.settings.has_credentials:
            auth = httpx.BasicAuth(self.settings.username, self.settings.password)

        self._http = httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=self.settings.timeout_ms / 1000,
            headers={
                "User-Agent": self.settings.user_agent,
                "Accept": "application/json",
            },
            auth=auth,
        )

    async def __aenter__(self) -> "GbifClient":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def circuit_state(self) -> CircuitState:
        return self._breaker.state

    def reset_circuit_breaker(self) -> None:
        self._breaker.reset()
        self._log.info("Circuit breaker reset")

    # -------------------------------------------------------------------------
    # Public request methods
    # -------------------------------------------------------------------------
    async def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(
        self,
        path: str,
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        return await self._request("POST", path, params=params, json=json)

    async def paginate(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        page_size: int = 20,
    ) -> AsyncIterator[list[Any]]:
        """Yield successive `results` lists until the last page."""
        offset = 0
        while True:
            page = await self.get(path, {**(params or {}), "offset": offset, "limit": page_size})
            results = (page or {}).get("results") or []
            if not results:
                return
            yield results
            if page.get("endOfRecords", len(results) < page_size):
                return
            offset += page_size

    # -------------------------------------------------------------------------
    # Request pipeline
    # -------------------------------------------------------------------------
    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        if not self._breaker.can_request():
            self._log.warning(
                "Request rejected by circuit breaker", path=path, state=self._breaker.state.value
            )
            raise CircuitOpenError()

        query = clean_params(params)

        async with self._semaphore:
            try:
                async for attempt in AsyncRetrying(
                    stop=stop_after_attempt(self.settings.retry_attempts + 1),
                    wait=self._retry_wait,
                    retry=retry_if_exception_type((httpx.TransportError, RetryableResponse)),
                    before_sleep=self._log_retry,
                    sleep=asyncio.sleep,
                    reraise=True,
                ):
                    with attempt:
                        response = await self._send(method, path, query, json)
            except httpx.TransportError as exc:
                self._breaker.record_failure()
                self._log.error("GBIF API request failed", method=method, path=path, error=str(exc))
                raise GbifApiError(
                    f"GBIF request failed: {exc}", code=type(exc).__name__
                ) from exc
            except RetryableResponse as exc:
                self._breaker.record_failure()
                raise self._failed(method, path, exc.response) from None

        if response.status_code >= 400:
            raise self._failed(method, path, response)

        self._breaker.record_success()
        return self._decode(response)

    async def _send(
        self,
        method: str,
        path: str,
        query: Mapping[str, Any],
        json: Any,
    ) -> httpx.Response:
        """One attempt. 429 and 5xx answers raise RetryableResponse."""
        await self._enforce_rate_limit()
        self._log.debug("GBIF request", method=method, path=path, params=query)
        response = await self._http.request(method, path, params=query, json=json)
        if response.status_code == 429 or response.status_code >= 500:
            raise RetryableResponse(response)
        return response

    def _failed(self, method: str, path: str, response: httpx.Response) -> GbifApiError:
        error = self._api_error(response)
        self._log.error(
            "GBIF API request failed",
            method=method,
            path=path,
            status_code=response.status_code,
            error=error.message,
        )
        return error

    async def _enforce_rate_limit(self) -> None:
        limit = self.rate_limit.max_requests_per_minute
        if limit <= 0:
            return
        async with self._window_lock:
            now = time.monotonic()
            if now - self._window_start >= _WINDOW_SECONDS:
                self._window_start = now
                self._window_count = 0
            if self._window_count >= limit:
                wait = _WINDOW_SECONDS - (now - self._window_start)
                self._log.debug(f"Rate limit reached: waiting {wait:.2f}s")
                await asyncio.sleep(wait)
                self._window_start = time.monotonic()
                self._window_count = 0
            self._window_count += 1

    # -------------------------------------------------------------------------
    # Retry policy (tenacity callbacks)
    # -------------------------------------------------------------------------
    def _retry_wait(self, retry_state: RetryCallState) -> float:
        """Retry-After for 429 when GBIF sends one, exponential backoff otherwise."""
        error = retry_state.outcome.exception()
        if isinstance(error, RetryableResponse) and error.status_code == 429:
            retry_after = self._retry_after(error.response)
            if retry_after is not None:
                return retry_after
            return self._throttle_wait(retry_state)
        return self._error_wait(retry_state)

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception()
        delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
        if isinstance(error, RetryableResponse) and error.status_code == 429:
            self._log.warning(f"Rate limited by GBIF API, backing off for {delay:.2f}s")
        elif isinstance(error, RetryableResponse):
            self._log.warning(
                f"Server error {error.status_code}, retrying in {delay:.2f}s "
                f"(attempt {retry_state.attempt_number})"
            )
        else:
            self._log.warning(
                f"Transport error, retrying in {delay:.2f}s (attempt {retry_state.attempt_number})",
                error=str(error),
            )

    @staticmethod
    def _retry_after(response: httpx.Response) -> Optional[float]:
        value = response.headers.get("retry-after")
        if value is None:
            return None
        try:
            return max(0.0, float(value))
        except ValueError:
            # HTTP-date form; use the backoff instead
            return None

    @staticmethod
    def _api_error(response: httpx.Response) -> GbifApiError:
        message = ""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            message = str(body["message"])
        if not message:
            message = response.text[:500] or response.reason_phrase
        return GbifApiError(message, status_code=response.status_code, code=f"HTTP_{response.status_code}")

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        content_type = response.headers.get("content-type", "")
        if "json" not in content_type:
            try:
                return response.json()
            except ValueError:
                return response.text
        return response.json()
