"""Request construction: a persistent builder and the validated Request.

``RequestBuilder`` is a frozen dataclass; every setter returns a new builder,
so both chained and step-wise construction work and a builder value can be
reused as a template. Validation happens once, in ``build()``.

Example:
    request = (
        Request.builder()
        .model(Model.SONNET_35)
        .add_message(Role.USER, "Who won Super Bowl XVI?")
        .max_tokens(200)
        .build()
    )
    body = request.to_json()
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace
import json
import logging
from typing import Any

from pydantic import BaseModel, ValidationError

from tyrell.content import ContentBlock, Message
from tyrell.errors import DecodeError, InvalidFieldError, MissingFieldError
from tyrell.models import Model, Role
from tyrell.tool_choice import ToolChoice
from tyrell.tools import Tool

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Request:
    """A validated, immutable Messages API request."""

    model: Model
    messages: tuple[Message, ...]
    max_tokens: int
    metadata: dict[str, str] | None = None
    stop_sequences: tuple[str, ...] | None = None
    stream: bool | None = None
    system: str | None = None
    temperature: float | None = None
    top_k: int | None = None
    top_p: float | None = None
    tools: tuple[Tool, ...] | None = None
    tool_choice: ToolChoice | None = None

    # Unhashable: metadata and tools hold mappings.
    __hash__ = None  # type: ignore[assignment]

    @staticmethod
    def builder() -> RequestBuilder:
        return RequestBuilder()

    def to_wire(self) -> dict[str, Any]:
        """Return the wire payload; unset optional fields are omitted."""
        wire: dict[str, Any] = {
            "model": self.model.value,
            "messages": [m.to_wire() for m in self.messages],
            "max_tokens": self.max_tokens,
        }
        if self.metadata is not None:
            wire["metadata"] = dict(self.metadata)
        if self.stop_sequences is not None:
            wire["stop_sequences"] = list(self.stop_sequences)
        if self.stream is not None:
            wire["stream"] = self.stream
        if self.system is not None:
            wire["system"] = self.system
        if self.temperature is not None:
            wire["temperature"] = self.temperature
        if self.top_k is not None:
            wire["top_k"] = self.top_k
        if self.top_p is not None:
            wire["top_p"] = self.top_p
        if self.tools is not None:
            wire["tools"] = [t.to_wire() for t in self.tools]
        if self.tool_choice is not None:
            wire["tool_choice"] = self.tool_choice.to_wire()
        return wire

    def to_json(self) -> str:
        """Serialize to compact JSON."""
        return json.dumps(self.to_wire(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_wire(cls, raw: Mapping[str, Any]) -> Request:
        """Decode a wire payload back into a Request.

        Runs through the builder, so the same required-field checks apply.

        Raises:
            DecodeError: If the payload or one of its fields has the wrong shape.
            BuildError: If the decoded fields do not form a valid request.
        """
        if not isinstance(raw, Mapping):
            raise DecodeError(f"Request must be a JSON object, got {type(raw).__name__}")

        builder = RequestBuilder()
        model = _wire_value(raw, "model", (str,), "a string")
        if model is not None:
            builder = builder.model(model)
        messages = _wire_value(raw, "messages", (list,), "an array") or ()
        builder = builder.messages(Message.from_wire(m) for m in messages)
        max_tokens = _wire_value(raw, "max_tokens", (int,), "an integer")
        if max_tokens is not None:
            builder = builder.max_tokens(max_tokens)
        metadata = _wire_value(raw, "metadata", (Mapping,), "an object")
        if metadata is not None:
            _require_strings(metadata.values(), "metadata")
            builder = builder.metadata(metadata)
        stop_sequences = _wire_value(raw, "stop_sequences", (list,), "an array")
        if stop_sequences is not None:
            _require_strings(stop_sequences, "stop_sequences")
            builder = builder.stop_sequences(stop_sequences)
        stream = _wire_value(raw, "stream", (bool,), "a boolean")
        if stream is not None:
            builder = builder.stream(stream)
        system = _wire_value(raw, "system", (str,), "a string")
        if system is not None:
            builder = builder.system(system)
        temperature = _wire_value(raw, "temperature", (int, float), "a number")
        if temperature is not None:
            builder = builder.temperature(temperature)
        top_k = _wire_value(raw, "top_k", (int,), "an integer")
        if top_k is not None:
            builder = builder.top_k(top_k)
        top_p = _wire_value(raw, "top_p", (int, float), "a number")
        if top_p is not None:
            builder = builder.top_p(top_p)
        tools = _wire_value(raw, "tools", (list,), "an array")
        if tools is not None:
            builder = builder.tools(Tool.from_wire(t) for t in tools)
        if raw.get("tool_choice") is not None:
            builder = builder.tool_choice(ToolChoice.from_wire(raw["tool_choice"]))
        return builder.build()


def _wire_value(
    raw: Mapping[str, Any], key: str, kinds: tuple[type, ...], expected: str
) -> Any:
    """Return ``raw[key]`` (None when absent) after checking its JSON type."""
    value = raw.get(key)
    if value is None:
        return None
    # bool is an int subclass.
    if not isinstance(value, kinds) or (isinstance(value, bool) and bool not in kinds):
        raise DecodeError(
            f"Request field {key!r} must be {expected}, got {type(value).__name__}"
        )
    return value


def _require_strings(values: Iterable[Any], key: str) -> None:
    if not all(isinstance(v, str) for v in values):
        raise DecodeError(f"Request field {key!r} must contain only strings")


@dataclass(frozen=True)
class RequestBuilder:
    """Accumulates request fields; ``build()`` validates and freezes them."""

    _model: Model | None = None
    _messages: tuple[Message, ...] = ()
    _max_tokens: int | None = None
    _metadata: dict[str, str] | None = None
    _stop_sequences: tuple[str, ...] | None = None
    _stream: bool | None = None
    _system: str | None = None
    _temperature: float | None = None
    _top_k: int | None = None
    _top_p: float | None = None
    _tools: tuple[Tool, ...] | None = None
    _tool_choice: ToolChoice | None = None

    __hash__ = None  # type: ignore[assignment]

    def model(self, model: Model | str) -> RequestBuilder:
        try:
            resolved = Model(model)
        except ValueError as e:
            known = ", ".join(m.value for m in Model)
            raise InvalidFieldError(
                f"Unknown model: {model!r}",
                field="model",
                hint=f"Use a Model member or one of: {known}.",
            ) from e
        return replace(self, _model=resolved)

    def add_message(
        self, role: Role | str, content: str | Sequence[ContentBlock]
    ) -> RequestBuilder:
        """Append a message; conversation order is the call order."""
        try:
            message = Message(role=role, content=content)
        except ValidationError as e:
            raise InvalidFieldError(
                f"Invalid message: {e}",
                field="messages",
                hint="Pass a Role and a string or a list of content blocks.",
            ) from e
        return replace(self, _messages=(*self._messages, message))

    def messages(self, messages: Iterable[Message]) -> RequestBuilder:
        """Append already-built messages in order."""
        return replace(self, _messages=(*self._messages, *messages))

    def max_tokens(self, max_tokens: int) -> RequestBuilder:
        return replace(self, _max_tokens=max_tokens)

    def metadata(self, metadata: Mapping[str, str]) -> RequestBuilder:
        return replace(self, _metadata=dict(metadata))

    def stop_sequences(self, stop_sequences: Iterable[str]) -> RequestBuilder:
        return replace(self, _stop_sequences=tuple(stop_sequences))

    def stream(self, stream: bool) -> RequestBuilder:
        return replace(self, _stream=stream)

    def system(self, system: str) -> RequestBuilder:
        return replace(self, _system=system)

    def temperature(self, temperature: float) -> RequestBuilder:
        return replace(self, _temperature=temperature)

    def top_k(self, top_k: int) -> RequestBuilder:
        return replace(self, _top_k=top_k)

    def top_p(self, top_p: float) -> RequestBuilder:
        return replace(self, _top_p=top_p)

    def tools(self, tools: Iterable[Tool | type[BaseModel]]) -> RequestBuilder:
        """Set the tool list; record classes are converted with ``Tool.from_model``."""
        resolved = tuple(
            t if isinstance(t, Tool) else Tool.from_model(t) for t in tools
        )
        return replace(self, _tools=resolved)

    def tool_choice(self, tool_choice: ToolChoice) -> RequestBuilder:
        return replace(self, _tool_choice=tool_choice)

    def build(self) -> Request:
        """Validate the accumulated fields and return an immutable Request.

        Raises:
            MissingFieldError: If model, messages or max_tokens is unset.
            InvalidFieldError: If max_tokens is not a positive integer.
        """
        if self._model is None:
            raise MissingFieldError("model", hint="Call .model(Model.SONNET_35).")
        if not self._messages:
            raise MissingFieldError(
                "messages", hint="Call .add_message(Role.USER, '...') at least once."
            )
        if self._max_tokens is None:
            raise MissingFieldError("max_tokens", hint="Call .max_tokens(1024).")
        if (
            isinstance(self._max_tokens, bool)
            or not isinstance(self._max_tokens, int)
            or self._max_tokens <= 0
        ):
            raise InvalidFieldError(
                f"max_tokens must be a positive integer, got {self._max_tokens!r}",
                field="max_tokens",
            )

        request = Request(
            model=self._model,
            messages=self._messages,
            max_tokens=self._max_tokens,
            metadata=self._metadata,
            stop_sequences=self._stop_sequences,
            stream=self._stream,
            system=self._system,
            temperature=self._temperature,
            top_k=self._top_k,
            top_p=self._top_p,
            tools=self._tools,
            tool_choice=self._tool_choice,
        )
        logger.debug(
            "Built request model=%s messages=%d tools=%d",
            request.model.value,
            len(request.messages),
            len(request.tools or ()),
        )
        return request
