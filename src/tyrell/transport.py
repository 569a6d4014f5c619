"""HTTP transport for the Messages endpoint.

A transport takes serialized request bytes and returns the raw response
body. Non-2xx answers become ``APIStatusError`` (carrying status and body);
failures before any response become ``NetworkError``. Retries happen only
when the configured ``RetryPolicy`` allows more than one attempt.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

import httpx

from tyrell._http import RETRYABLE_STATUS_CODES
from tyrell.errors import APIStatusError, NetworkError, RateLimitError
from tyrell.retry import retry_async, retry_call

if TYPE_CHECKING:
    from types import TracebackType

    from tyrell.config import Config

logger = logging.getLogger(__name__)


@runtime_checkable
class Transport(Protocol):
    """Blocking transport contract."""

    def send(self, body: bytes) -> bytes:
        """Send a serialized request and return the response body."""
        ...


@runtime_checkable
class AsyncTransport(Protocol):
    """Async transport contract."""

    async def send(self, body: bytes) -> bytes:
        """Send a serialized request and return the response body."""
        ...


def build_headers(config: Config) -> dict[str, str]:
    return {
        "content-type": "application/json",
        "anthropic-version": config.anthropic_version,
        "x-api-key": config.api_key or "",
    }


def parse_retry_after(headers: Any) -> float | None:
    """Read a ``Retry-After`` header as seconds, ignoring HTTP-date forms."""
    raw = headers.get("retry-after") if headers is not None else None
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        seconds = float(raw)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def _auth_hint(status_code: int) -> str | None:
    if status_code in {401, 403}:
        return "Check credentials/permissions (try setting ANTHROPIC_API_KEY or Config.api_key)."
    return None


def status_error(response: httpx.Response) -> APIStatusError:
    """Map a non-2xx response into APIStatusError with retry metadata."""
    status_code = response.status_code
    body = response.text
    retry_after_s = parse_retry_after(response.headers)
    err_cls: type[APIStatusError] = RateLimitError if status_code == 429 else APIStatusError
    return err_cls(
        f"API request failed with status {status_code}: {body}",
        status_code=status_code,
        body=body,
        hint=_auth_hint(status_code),
        retryable=status_code in RETRYABLE_STATUS_CODES or retry_after_s is not None,
        retry_after_s=retry_after_s,
    )


class HttpTransport:
    """Blocking transport backed by ``httpx.Client``."""

    def __init__(self, config: Config, *, client: httpx.Client | None = None) -> None:
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=config.timeout_s)

    def send(self, body: bytes) -> bytes:
        return retry_call(lambda: self._send_once(body), policy=self.config.retry)

    def _send_once(self, body: bytes) -> bytes:
        url = self.config.messages_url
        logger.debug("POST %s (%d bytes)", url, len(body))
        try:
            response = self._client.post(url, content=body, headers=build_headers(self.config))
        except httpx.RequestError as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e
        logger.debug("Response status=%d (%d bytes)", response.status_code, len(response.content))
        if not response.is_success:
            raise status_error(response)
        return response.content

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class AsyncHttpTransport:
    """Async transport backed by ``httpx.AsyncClient``."""

    def __init__(
        self, config: Config, *, client: httpx.AsyncClient | None = None
    ) -> None:
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=config.timeout_s)

    async def send(self, body: bytes) -> bytes:
        return await retry_async(lambda: self._send_once(body), policy=self.config.retry)

    async def _send_once(self, body: bytes) -> bytes:
        url = self.config.messages_url
        logger.debug("POST %s (%d bytes)", url, len(body))
        try:
            response = await self._client.post(
                url, content=body, headers=build_headers(self.config)
            )
        except httpx.RequestError as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e
        logger.debug("Response status=%d (%d bytes)", response.status_code, len(response.content))
        if not response.is_success:
            raise status_error(response)
        return response.content

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncHttpTransport:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
