"""Response decoding and typed tool-input extraction."""

from __future__ import annotations

from collections.abc import Mapping
import json
import logging
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from tyrell.content import ContentBlock, TextBlock, ToolUseBlock, decode_content
from tyrell.errors import (
    DecodeError,
    SchemaError,
    SchemaMismatchError,
    ToolUseNotFoundError,
)
from tyrell.models import Model, Role, StopReason, Usage
from tyrell.tools import registered_name

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class Response(BaseModel):
    """A decoded Messages API response. Read-only."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: Literal["message"] = "message"
    role: Role
    content: tuple[ContentBlock, ...]
    model: Model
    stop_reason: StopReason | None = None
    stop_sequence: str | None = None
    usage: Usage

    @property
    def text(self) -> str:
        """Concatenated text of all text blocks."""
        return "\n\n".join(b.text for b in self.content if isinstance(b, TextBlock))

    def tool_uses(self, name: str | None = None) -> list[ToolUseBlock]:
        """Return tool_use blocks in order, optionally filtered by tool name."""
        return [
            b
            for b in self.content
            if isinstance(b, ToolUseBlock) and (name is None or b.name == name)
        ]

    def parse_tool_input(self, model: type[M], name: str | None = None) -> M:
        """Shortcut for :func:`extract_tool_input`."""
        return extract_tool_input(self, model, name=name)


def decode_response(payload: bytes | str | Mapping[str, Any]) -> Response:
    """Decode a wire response body into a Response.

    Raises:
        UnknownContentTypeError: If a content block has an unrecognized tag.
        DecodeError: If the payload is not valid JSON or lacks required fields.
    """
    if isinstance(payload, (bytes, bytearray, str)):
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise DecodeError(f"Response body is not valid JSON: {e}") from e
    else:
        data = payload

    if not isinstance(data, Mapping):
        raise DecodeError(f"Response must be a JSON object, got {type(data).__name__}")
    if "content" not in data:
        raise DecodeError("Response is missing 'content'")

    blocks = decode_content(data["content"])
    fields = {k: v for k, v in data.items() if k != "content"}
    try:
        response = Response.model_validate({**fields, "content": blocks})
    except ValidationError as e:
        raise DecodeError(f"Malformed response: {e}") from e

    logger.debug(
        "Decoded response id=%s blocks=%d stop_reason=%s",
        response.id,
        len(response.content),
        response.stop_reason,
    )
    return response


def extract_tool_input(
    response: Response, model: type[M], *, name: str | None = None
) -> M:
    """Validate the first tool_use block named *name* into an instance of *model*.

    *name* defaults to the tool name registered for *model* with ``@tool``.

    Raises:
        SchemaError: If no name is given and *model* is not registered.
        ToolUseNotFoundError: If no tool_use block carries the name.
        SchemaMismatchError: If the block input does not validate.
    """
    tool_name = name or registered_name(model)
    if tool_name is None:
        raise SchemaError(
            f"No tool name for {model.__name__}",
            hint="Decorate the record with @tool('name') or pass name=...",
        )

    for block in response.content:
        if isinstance(block, ToolUseBlock) and block.name == tool_name:
            try:
                return model.model_validate(block.input)
            except ValidationError as e:
                raise SchemaMismatchError(
                    f"Tool {tool_name!r} input does not match {model.__name__}: {e}",
                    tool_name=tool_name,
                ) from e

    raise ToolUseNotFoundError(tool_name)
