"""
Run history service client.

Two calls make up the contract:

    POST nodes/{node}/runs           {"action": "begin"}  -> {"uri": ...}
    POST nodes/{node}/runs/{run_id}  <run report, action="end">

A 404 on begin means the service does not keep run history; that is
returned as :class:`RunHistoryUnsupported` rather than raised, so the
session can decide to stop reporting. Transient failures are retried
here; everything else is raised as :class:`RunHistoryError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union
from urllib.parse import quote, urlparse

import httpx
import structlog
from circuitbreaker import CircuitBreaker, CircuitBreakerError
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from runreport.config.settings import Settings
from runreport.core.errors import RunHistoryError, RunHistoryUnavailable
from runreport.schema import BeginRunRequest, BeginRunResponse

logger = structlog.get_logger()

DEFAULT_USER_AGENT = "runreport/0.1.0"
CLIENT_NAME_HEADER = "X-Runreport-Client"


class RetryableHTTPError(Exception):
    """HTTP errors that should be retried."""


def is_retryable_status(status_code: int) -> bool:
    """Determine if HTTP status code is retryable."""
    return status_code in (408, 429, 500, 502, 503, 504)


def run_id_from_uri(uri: str) -> str:
    """Return the last path segment of a run locator URI."""
    path = urlparse(uri).path.rstrip("/")
    run_id = path.rsplit("/", 1)[-1]
    if not run_id:
        raise RunHistoryError("Run locator has no run id", {"uri": uri})
    return run_id


@dataclass(frozen=True)
class RunCreated:
    uri: str
    run_id: str


@dataclass(frozen=True)
class RunHistoryUnsupported:
    status_code: int
    path: str


BeginRunOutcome = Union[RunCreated, RunHistoryUnsupported]


class RunHistoryClient:
    """Blocking HTTP client for the run history service."""

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        client_name: str | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
        backoff_factor: float = 0.5,
        circuit_failure_threshold: int = 5,
        circuit_recovery_timeout: int = 60,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._client_name = client_name
        self._max_retries = max(1, max_retries)
        self._backoff_factor = backoff_factor
        self._user_agent = user_agent
        self._breaker = CircuitBreaker(
            failure_threshold=circuit_failure_threshold,
            recovery_timeout=circuit_recovery_timeout,
            expected_exception=RetryableHTTPError,
            name="run_history",
        )
        self._guarded_send = self._breaker.decorate(self._send_with_retry)
        self._http = httpx.Client(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "RunHistoryClient":
        return cls(
            settings.server_url,
            token=settings.token,
            client_name=settings.client_name,
            timeout=settings.http_timeout,
            max_retries=settings.http_max_retries,
            backoff_factor=settings.http_retry_backoff_factor,
            **kwargs,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "RunHistoryClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": self._user_agent,
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        if self._client_name:
            headers[CLIENT_NAME_HEADER] = self._client_name
        return headers

    def _send(self, method: str, url: str, body: dict[str, Any] | None) -> httpx.Response:
        try:
            response = self._http.request(method, url, json=body, headers=self._headers())
        except (httpx.TimeoutException, httpx.ConnectError, httpx.ReadError) as exc:
            logger.warning("http_network_error", method=method, url=url, error=str(exc))
            raise RetryableHTTPError(str(exc)) from exc

        if is_retryable_status(response.status_code):
            logger.warning("http_retryable_error", status=response.status_code, method=method, url=url)
            raise RetryableHTTPError(f"HTTP {response.status_code}: {response.text}")
        return response

    def _send_with_retry(self, method: str, url: str, body: dict[str, Any] | None) -> httpx.Response:
        retrying = Retrying(
            retry=retry_if_exception_type(RetryableHTTPError),
            stop=stop_after_attempt(self._max_retries),
            wait=wait_exponential(multiplier=self._backoff_factor, max=30),
            reraise=True,
        )
        return retrying(self._send, method, url, body)

    def _request(self, method: str, path: str, *, json: dict[str, Any] | None = None) -> httpx.Response:
        """Execute a request; returns any non-retryable response for the caller to judge."""
        url = f"{self._base_url}/{path.lstrip('/')}"
        try:
            return self._guarded_send(method, url, json)
        except RetryableHTTPError as exc:
            raise RunHistoryUnavailable(
                "Run history service unavailable", {"url": url, "error": str(exc)}
            ) from exc
        except CircuitBreakerError as exc:
            raise RunHistoryUnavailable("Run history circuit open", {"url": url}) from exc
        except httpx.HTTPError as exc:
            logger.error("http_unexpected_error", method=method, url=url, error=str(exc))
            raise RunHistoryError("Run history request failed", {"url": url, "error": str(exc)}) from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response, path: str) -> None:
        if response.is_success:
            return
        logger.error("http_permanent_error", status=response.status_code, path=path)
        raise RunHistoryError(
            f"Run history request failed with HTTP {response.status_code}",
            {"path": path, "body": response.text[:200]},
            status_code=response.status_code,
        )

    @staticmethod
    def _json(response: httpx.Response, path: str) -> dict[str, Any]:
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as exc:
            raise RunHistoryError("Run history returned invalid JSON", {"path": path}) from exc
        if not isinstance(data, dict):
            raise RunHistoryError("Run history returned a non-object body", {"path": path})
        return data

    def begin_run(self, node_name: str) -> BeginRunOutcome:
        """Create a run history entry for ``node_name``."""
        path = f"nodes/{quote(node_name, safe='')}/runs"
        response = self._request("POST", path, json=BeginRunRequest().model_dump())
        if response.status_code == 404:
            return RunHistoryUnsupported(status_code=404, path=path)
        self._raise_for_status(response, path)

        try:
            body = BeginRunResponse.model_validate(self._json(response, path))
        except PydanticValidationError as exc:
            raise RunHistoryError("Begin response has no run uri", {"path": path}) from exc
        return RunCreated(uri=body.uri, run_id=run_id_from_uri(body.uri))

    def submit_run(self, node_name: str, run_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Post the final run report."""
        path = f"nodes/{quote(node_name, safe='')}/runs/{quote(run_id, safe='')}"
        response = self._request("POST", path, json=payload)
        self._raise_for_status(response, path)
        return self._json(response, path)
