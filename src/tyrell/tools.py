"""Tool definitions built from typed records.

Example:
    @tool("extract_super_bowl_info", description="Extract Super Bowl information from text")
    class SuperBowl(BaseModel):
        year: UInt16
        winner: str

    Tool.from_model(SuperBowl).to_wire()
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import inspect
import logging
import re
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel

from tyrell.errors import DecodeError, SchemaError
from tyrell.schema import InputSchema, derive_schema

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_TOOL_NAME_RE = re.compile(r"^[a-zA-Z0-9_-]{1,64}$")

# Record type -> (tool name, description), filled by @tool at import time.
_REGISTRY: dict[type[BaseModel], tuple[str, str | None]] = {}


@dataclass(frozen=True)
class Tool:
    """A schema-described function the model may choose to call."""

    name: str
    input_schema: InputSchema
    description: str | None = None

    # Unhashable: the input schema holds mappings.
    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not _TOOL_NAME_RE.match(self.name):
            raise SchemaError(
                f"Invalid tool name: {self.name!r}",
                hint="Tool names are 1-64 characters of letters, digits, '_' or '-'.",
            )

    @classmethod
    def from_model(
        cls,
        model: type[BaseModel],
        *,
        name: str | None = None,
        description: str | None = None,
    ) -> Tool:
        """Build a Tool whose input schema is derived from *model*.

        Name and description default to what ``@tool`` registered; the
        description falls back to the model docstring.
        """
        registered_name, registered_description = _REGISTRY.get(model, (None, None))
        tool_name = name or registered_name
        if tool_name is None:
            raise SchemaError(
                f"No tool name for {getattr(model, '__name__', model)!r}",
                hint="Decorate the record with @tool('name') or pass name=...",
            )
        if description is None:
            description = registered_description or _docstring(model)
        return cls(
            name=tool_name,
            input_schema=derive_schema(model),
            description=description,
        )

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = {"name": self.name}
        if self.description is not None:
            wire["description"] = self.description
        wire["input_schema"] = self.input_schema.to_wire()
        return wire

    @classmethod
    def from_wire(cls, raw: Mapping[str, Any]) -> Tool:
        """Rebuild a Tool from its wire form (used for request round-trips).

        Raises:
            DecodeError: If *raw* is not an object or the description is not a string.
            SchemaError: If the name or the input schema is malformed.
        """
        if not isinstance(raw, Mapping):
            raise DecodeError(f"Tool must be a JSON object, got {type(raw).__name__}")
        name = raw.get("name")
        description = raw.get("description")
        if description is not None and not isinstance(description, str):
            raise DecodeError(f"Tool {name!r} description must be a string")

        schema = raw.get("input_schema")
        if not isinstance(schema, Mapping) or schema.get("type") != "object":
            raise SchemaError(f"Tool {name!r} input_schema must be an object schema")
        properties = schema.get("properties") or {}
        required = schema.get("required") or []
        if not isinstance(properties, Mapping):
            raise SchemaError(f"Tool {name!r} input_schema properties must be an object")
        if not isinstance(required, list) or not all(isinstance(r, str) for r in required):
            raise SchemaError(f"Tool {name!r} input_schema required must be an array of names")

        return cls(
            name=name,  # type: ignore[arg-type]
            description=description,
            input_schema=InputSchema(properties=properties, required=tuple(required)),
        )


def tool(
    name: str, *, description: str | None = None
) -> Callable[[type[M]], type[M]]:
    """Register a record class as a tool input.

    The schema is derived immediately, so an unsupported record shape fails
    when the decorated module is imported rather than at request time.
    """

    def register(model: type[M]) -> type[M]:
        schema = derive_schema(model)
        # Validate the name eagerly too.
        Tool(name=name, input_schema=schema, description=description)
        _REGISTRY[model] = (name, description)
        logger.debug(
            "Registered tool %s for %s (%d properties)",
            name,
            model.__name__,
            len(schema.properties),
        )
        return model

    return register


def registered_name(model: type[BaseModel]) -> str | None:
    """Return the tool name registered for *model*, if any."""
    entry = _REGISTRY.get(model)
    return entry[0] if entry else None


def _docstring(model: type[BaseModel]) -> str | None:
    doc = model.__doc__
    return inspect.cleandoc(doc) if doc else None
