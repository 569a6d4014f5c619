"""Message content: tagged content blocks and the Message envelope.

Every block class pins its wire ``type`` tag with a ``Literal`` default, so a
block can never carry a tag that disagrees with its payload. Encoding goes
through explicit ``to_wire()`` methods rather than ``model_dump`` so optional
fields are omitted, never emitted as ``null``.
"""

from __future__ import annotations

import base64
from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tyrell.errors import DecodeError, UnknownContentTypeError
from tyrell.models import Role


class ImageSource(BaseModel):
    """Inline image payload. ``source_type`` is the wire ``type`` key."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source_type: str = Field(default="base64", alias="type")
    media_type: str
    data: str

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": self.source_type,
            "media_type": self.media_type,
            "data": self.data,
        }


class TextBlock(BaseModel):
    """Plain text content."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str

    def to_wire(self) -> dict[str, Any]:
        return {"type": self.type, "text": self.text}


class ImageBlock(BaseModel):
    """Image content with an inline base64 source."""

    model_config = ConfigDict(frozen=True)

    type: Literal["image"] = "image"
    source: ImageSource

    @classmethod
    def from_bytes(cls, data: bytes, media_type: str) -> ImageBlock:
        """Build an image block from raw image bytes."""
        encoded = base64.b64encode(data).decode("ascii")
        return cls(source=ImageSource(media_type=media_type, data=encoded))

    def to_wire(self) -> dict[str, Any]:
        return {"type": self.type, "source": self.source.to_wire()}


class ToolUseBlock(BaseModel):
    """The model's request to invoke a tool with concrete arguments."""

    model_config = ConfigDict(frozen=True)

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: Any

    def to_wire(self) -> dict[str, Any]:
        return {"type": self.type, "id": self.id, "name": self.name, "input": self.input}


class ToolResultBlock(BaseModel):
    """The caller's answer to a previous tool_use block."""

    model_config = ConfigDict(frozen=True)

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str
    is_error: bool | None = None

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {
            "type": self.type,
            "tool_use_id": self.tool_use_id,
            "content": self.content,
        }
        if self.is_error is not None:
            wire["is_error"] = self.is_error
        return wire


ContentBlock = Annotated[
    Union[TextBlock, ImageBlock, ToolUseBlock, ToolResultBlock],
    Field(discriminator="type"),
]

_BLOCK_TYPES: dict[str, type[BaseModel]] = {
    "text": TextBlock,
    "image": ImageBlock,
    "tool_use": ToolUseBlock,
    "tool_result": ToolResultBlock,
}


def decode_content_block(raw: Any) -> ContentBlock:
    """Decode one wire content block, dispatching on its ``type`` tag."""
    if not isinstance(raw, Mapping):
        raise DecodeError(
            f"Content block must be a JSON object, got {type(raw).__name__}"
        )
    tag = raw.get("type")
    block_cls = _BLOCK_TYPES.get(tag) if isinstance(tag, str) else None
    if block_cls is None:
        raise UnknownContentTypeError(tag)
    try:
        return block_cls.model_validate(raw)  # type: ignore[return-value]
    except ValidationError as e:
        raise DecodeError(f"Malformed {tag!r} content block: {e}") from e


def decode_content(raw: Any) -> tuple[ContentBlock, ...]:
    """Decode a message ``content`` value (block array or plain-string shorthand)."""
    if isinstance(raw, str):
        return (TextBlock(text=raw),)
    if not isinstance(raw, list):
        raise DecodeError(
            f"Message content must be a string or an array, got {type(raw).__name__}"
        )
    return tuple(decode_content_block(item) for item in raw)


class Message(BaseModel):
    """One conversation turn: a role and its ordered content blocks."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: tuple[ContentBlock, ...]

    @field_validator("content", mode="before")
    @classmethod
    def _expand_text_shorthand(cls, value: Any) -> Any:
        if isinstance(value, str):
            return (TextBlock(text=value),)
        return value

    @classmethod
    def user(cls, content: str | list[ContentBlock] | tuple[ContentBlock, ...]) -> Message:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(
        cls, content: str | list[ContentBlock] | tuple[ContentBlock, ...]
    ) -> Message:
        return cls(role=Role.ASSISTANT, content=content)

    @classmethod
    def from_wire(cls, raw: Any) -> Message:
        """Decode a wire message, surfacing unknown block tags as typed errors."""
        if not isinstance(raw, Mapping):
            raise DecodeError(f"Message must be a JSON object, got {type(raw).__name__}")
        if "content" not in raw:
            raise DecodeError("Message is missing 'content'")
        blocks = decode_content(raw["content"])
        try:
            return cls(role=raw.get("role"), content=blocks)
        except ValidationError as e:
            raise DecodeError(f"Malformed message: {e}") from e

    @property
    def text(self) -> str:
        """Concatenated text of all text blocks."""
        return "\n\n".join(b.text for b in self.content if isinstance(b, TextBlock))

    def to_wire(self) -> dict[str, Any]:
        return {
            "role": self.role.value,
            "content": [block.to_wire() for block in self.content],
        }
