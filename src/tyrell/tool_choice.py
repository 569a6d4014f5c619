"""Tool choice policy and its wire encoding.

``ToolChoiceNone`` encodes as ``{}``; the other variants encode as
``{"type": <tag>, ...}`` and include ``disable_parallel_tool_use`` only when
it was set.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

from tyrell.errors import DecodeError


class ToolChoice:
    """Base of the tool choice variants; also hosts the factory helpers."""

    tag: ClassVar[str | None] = None

    def to_wire(self) -> dict[str, Any]:
        raise NotImplementedError

    @staticmethod
    def none() -> ToolChoiceNone:
        return ToolChoiceNone()

    @staticmethod
    def auto(*, disable_parallel_tool_use: bool | None = None) -> ToolChoiceAuto:
        return ToolChoiceAuto(disable_parallel_tool_use=disable_parallel_tool_use)

    @staticmethod
    def any(*, disable_parallel_tool_use: bool | None = None) -> ToolChoiceAny:
        return ToolChoiceAny(disable_parallel_tool_use=disable_parallel_tool_use)

    @staticmethod
    def specific(
        name: str, *, disable_parallel_tool_use: bool | None = None
    ) -> ToolChoiceSpecific:
        return ToolChoiceSpecific(
            name=name, disable_parallel_tool_use=disable_parallel_tool_use
        )

    @staticmethod
    def from_wire(raw: Mapping[str, Any]) -> ToolChoice:
        """Decode a wire tool choice."""
        if not isinstance(raw, Mapping):
            raise DecodeError(
                f"tool_choice must be a JSON object, got {type(raw).__name__}"
            )
        tag = raw.get("type")
        disable = raw.get("disable_parallel_tool_use")
        if disable is not None and not isinstance(disable, bool):
            raise DecodeError(
                f"disable_parallel_tool_use must be a boolean, got {type(disable).__name__}"
            )
        if tag is None or tag == "none":
            return ToolChoiceNone()
        if tag == "auto":
            return ToolChoiceAuto(disable_parallel_tool_use=disable)
        if tag == "any":
            return ToolChoiceAny(disable_parallel_tool_use=disable)
        if tag == "tool":
            name = raw.get("name")
            if not isinstance(name, str):
                raise DecodeError("tool_choice of type 'tool' requires a string 'name'")
            return ToolChoiceSpecific(name=name, disable_parallel_tool_use=disable)
        raise DecodeError(f"Unknown tool_choice type: {tag!r}")


def _with_parallel_flag(wire: dict[str, Any], flag: bool | None) -> dict[str, Any]:
    if flag is not None:
        wire["disable_parallel_tool_use"] = flag
    return wire


@dataclass(frozen=True)
class ToolChoiceNone(ToolChoice):
    """No directive; encodes as an empty object."""

    def to_wire(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class ToolChoiceAuto(ToolChoice):
    """The model decides whether to call a tool."""

    tag: ClassVar[str] = "auto"
    disable_parallel_tool_use: bool | None = None

    def to_wire(self) -> dict[str, Any]:
        return _with_parallel_flag({"type": self.tag}, self.disable_parallel_tool_use)


@dataclass(frozen=True)
class ToolChoiceAny(ToolChoice):
    """The model must call one of the tools."""

    tag: ClassVar[str] = "any"
    disable_parallel_tool_use: bool | None = None

    def to_wire(self) -> dict[str, Any]:
        return _with_parallel_flag({"type": self.tag}, self.disable_parallel_tool_use)


@dataclass(frozen=True)
class ToolChoiceSpecific(ToolChoice):
    """The model must call the named tool."""

    tag: ClassVar[str] = "tool"
    name: str
    disable_parallel_tool_use: bool | None = None

    def to_wire(self) -> dict[str, Any]:
        return _with_parallel_flag(
            {"type": self.tag, "name": self.name}, self.disable_parallel_tool_use
        )
