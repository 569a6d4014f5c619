"""Exception hierarchy for Tyrell."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class TyrellError(Exception):
    """Base exception for all Tyrell errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(TyrellError):
    """Configuration validation or resolution failed."""


class BuildError(TyrellError):
    """A request could not be finalized from the builder state."""

    def __init__(
        self, message: str, *, field: str, hint: str | None = None
    ) -> None:
        super().__init__(message, hint=hint)
        self.field = field


class MissingFieldError(BuildError):
    """A required request field was never set."""

    def __init__(self, field: str, *, hint: str | None = None) -> None:
        super().__init__(f"Missing required field: {field}", field=field, hint=hint)


class InvalidFieldError(BuildError):
    """A request field was set to a value the API cannot accept."""


class SchemaError(TyrellError):
    """A typed record cannot be described as a tool input schema."""


class DecodeError(TyrellError):
    """A wire payload could not be decoded."""


class UnknownContentTypeError(DecodeError):
    """A content block carried a ``type`` tag this library does not know."""

    def __init__(self, content_type: object) -> None:
        super().__init__(
            f"Unknown content block type: {content_type!r}",
            hint="Upgrade tyrell if the API introduced a new content block type.",
        )
        self.content_type = content_type


class ToolUseNotFoundError(DecodeError):
    """No tool_use block with the expected tool name was present."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(
            f"Response contains no tool_use block for tool {tool_name!r}",
            hint="Force the call with ToolChoice.specific(name) or check stop_reason.",
        )
        self.tool_name = tool_name


class SchemaMismatchError(DecodeError):
    """A tool_use input did not validate against the caller's record type."""

    def __init__(self, message: str, *, tool_name: str) -> None:
        super().__init__(message)
        self.tool_name = tool_name


class TransportError(TyrellError):
    """The HTTP exchange with the API failed."""


class NetworkError(TransportError):
    """The request never produced an HTTP response (DNS, connect, timeout)."""


class APIStatusError(TransportError):
    """The API answered with a non-2xx status.

    The raw response body is kept for diagnostics; ``retryable`` and
    ``retry_after_s`` let a retry policy decide without parsing messages.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        body: str,
        hint: str | None = None,
        retryable: bool | None = None,
        retry_after_s: float | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code
        self.body = body
        self.retryable = retryable
        self.retry_after_s = retry_after_s


class RateLimitError(APIStatusError):
    """Rate limit exceeded (HTTP 429)."""


def _walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)
