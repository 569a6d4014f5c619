"""Client facades: encode a Request, send it, decode the Response."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, TypeVar

from pydantic import BaseModel

from tyrell.config import Config
from tyrell.errors import ConfigurationError
from tyrell.response import Response, decode_response, extract_tool_input
from tyrell.transport import AsyncHttpTransport, HttpTransport

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import TracebackType

    from tyrell.request import Request
    from tyrell.transport import AsyncTransport, Transport

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _encode(request: Request) -> bytes:
    if request.stream:
        raise ConfigurationError(
            "Streaming responses are not supported by this client",
            hint="Leave stream unset, or send the request with your own transport.",
        )
    return request.to_json().encode("utf-8")


class Client:
    """Blocking client.

    Example:
        with Client() as client:
            response = client.create(request)
            info = response.parse_tool_input(SuperBowl)
    """

    def __init__(
        self, config: Config | None = None, *, transport: Transport | None = None
    ) -> None:
        self.config = config or Config()
        self._transport = transport or HttpTransport(self.config)

    def create(self, request: Request) -> Response:
        """Send *request* and decode the reply."""
        return decode_response(self._transport.send(_encode(request)))

    def extract(self, request: Request, model: type[M], *, name: str | None = None) -> M:
        """Send *request* and validate the named tool call into *model*."""
        return extract_tool_input(self.create(request), model, name=name)

    def close(self) -> None:
        close = getattr(self._transport, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> Client:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


class AsyncClient:
    """Async client with bounded fan-out over independent requests."""

    def __init__(
        self, config: Config | None = None, *, transport: AsyncTransport | None = None
    ) -> None:
        self.config = config or Config()
        self._transport = transport or AsyncHttpTransport(self.config)

    async def create(self, request: Request) -> Response:
        """Send *request* and decode the reply."""
        return decode_response(await self._transport.send(_encode(request)))

    async def extract(
        self, request: Request, model: type[M], *, name: str | None = None
    ) -> M:
        """Send *request* and validate the named tool call into *model*."""
        return extract_tool_input(await self.create(request), model, name=name)

    async def create_many(self, requests: Sequence[Request]) -> list[Response]:
        """Send independent requests concurrently; results keep input order.

        At most ``config.request_concurrency`` calls are in flight. All calls
        run to completion before a failure is raised, and the failure of the
        lowest-index request wins.
        """
        sem = asyncio.Semaphore(self.config.request_concurrency)
        logger.debug(
            "Executing %d request(s) concurrency=%d",
            len(requests),
            self.config.request_concurrency,
        )

        async def _one(request: Request) -> Response:
            async with sem:
                return await self.create(request)

        tasks = [asyncio.create_task(_one(r)) for r in requests]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for item in results:
            if isinstance(item, BaseException):
                raise item
        return list(results)  # type: ignore[arg-type]

    async def aclose(self) -> None:
        aclose = getattr(self._transport, "aclose", None)
        if callable(aclose):
            await aclose()

    async def __aenter__(self) -> AsyncClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            await self.aclose()
        except asyncio.CancelledError:
            raise
        except Exception as cleanup_exc:
            # Cleanup should never mask the primary failure.
            logger.warning("Transport cleanup failed: %s", cleanup_exc)
