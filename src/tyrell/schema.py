"""Tool input schemas derived from pydantic record types.

A record is a ``BaseModel`` subclass; ``derive_schema`` walks its fields and
produces the JSON-Schema object the Messages API expects under
``input_schema``. The walk is rule-based rather than delegated to
``model_json_schema()`` so the output shape is fixed by this module:
nested records are inlined, optional fields become nullable, and numeric
width tags (``format``/``minimum``) come from the aliases below.

Example:
    class SuperBowl(BaseModel):
        year: UInt16
        winner: str
        total_points_scored: UInt8 | None = None

    derive_schema(SuperBowl).to_wire()
    # {"type": "object",
    #  "properties": {"total_points_scored": {"type": ["integer", "null"], ...},
    #                 "winner": {"type": "string"},
    #                 "year": {"type": "integer", "format": "uint16", "minimum": 0.0}},
    #  "required": ["winner", "year"]}
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
import datetime as dt
from enum import Enum
import functools
import inspect
import types
from typing import Annotated, Any, Literal, Union, get_args, get_origin

from pydantic import BaseModel, Field
from pydantic.fields import FieldInfo

from tyrell.errors import SchemaError


@dataclass(frozen=True)
class NumberFormat:
    """Annotation marker carrying a numeric width tag into the schema."""

    format: str
    unsigned: bool = False


def _unsigned(bits: int) -> Any:
    return Annotated[
        int, Field(ge=0, le=2**bits - 1), NumberFormat(f"uint{bits}", unsigned=True)
    ]


def _signed(bits: int) -> Any:
    bound = 2 ** (bits - 1)
    return Annotated[int, Field(ge=-bound, le=bound - 1), NumberFormat(f"int{bits}")]


UInt8 = _unsigned(8)
UInt16 = _unsigned(16)
UInt32 = _unsigned(32)
UInt64 = _unsigned(64)
Int8 = _signed(8)
Int16 = _signed(16)
Int32 = _signed(32)
Int64 = _signed(64)
Float32 = Annotated[float, NumberFormat("float")]
Float64 = Annotated[float, NumberFormat("double")]


@dataclass(frozen=True)
class InputSchema:
    """JSON-Schema object describing a tool's input; ``type`` is always ``object``.

    ``properties`` is read-only: nested mappings are ``MappingProxyType`` and
    arrays are tuples. ``to_wire()`` returns fresh dicts and lists.
    """

    properties: Mapping[str, Any]
    required: tuple[str, ...]

    # Unhashable: properties holds mappings.
    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        object.__setattr__(self, "properties", _freeze(self.properties))
        object.__setattr__(self, "required", tuple(self.required))

    def to_wire(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": _thaw(self.properties),
            "required": list(self.required),
        }


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return types.MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


@functools.cache
def derive_schema(model: type[BaseModel]) -> InputSchema:
    """Derive the input schema for *model*.

    Results are cached per type, so repeated calls return the same object.

    Raises:
        SchemaError: If *model* is not a pydantic model or uses a field type
            that has no tool-schema mapping.
    """
    if not (isinstance(model, type) and issubclass(model, BaseModel)):
        raise SchemaError(
            f"Expected a pydantic BaseModel subclass, got {model!r}",
            hint="Declare tool inputs as `class MyInput(BaseModel): ...`.",
        )
    properties, required = _object_body(model, stack=(model,))
    return InputSchema(properties=properties, required=required)


def _object_body(
    model: type[BaseModel], *, stack: tuple[type, ...]
) -> tuple[dict[str, Any], tuple[str, ...]]:
    properties: dict[str, Any] = {}
    required: list[str] = []

    for attr, info in model.model_fields.items():
        where = f"{model.__name__}.{attr}"
        name = _property_name(attr, info, where=where)
        inner, optional = _split_optional(info.annotation)

        if optional and info.is_required():
            raise SchemaError(
                f"Optional field {where} has no default",
                hint=f"Declare it as `{attr}: ... | None = None`.",
            )

        fragment = _fragment(inner, list(info.metadata), where=where, stack=stack)
        if optional:
            fragment = _nullable(fragment)
        if info.description:
            fragment.pop("description", None)
            fragment = {"description": info.description, **fragment}
        properties[name] = fragment

        if not optional and info.is_required():
            required.append(name)

    return dict(sorted(properties.items())), tuple(sorted(required))


def _property_name(attr: str, info: FieldInfo, *, where: str) -> str:
    """Return the key pydantic validates *attr* under."""
    alias = info.validation_alias
    if alias is not None and not isinstance(alias, str):
        raise SchemaError(
            f"Field {where} uses a {type(alias).__name__} validation alias",
            hint="Use Field(alias='name') or a plain string validation_alias.",
        )
    return alias or info.alias or attr


def _split_optional(annotation: Any) -> tuple[Any, bool]:
    """Return ``(T, True)`` for ``T | None``, else ``(annotation, False)``."""
    if get_origin(annotation) in (Union, types.UnionType):
        args = get_args(annotation)
        non_null = [a for a in args if a is not type(None)]
        if len(non_null) == len(args):
            return annotation, False
        if len(non_null) == 1:
            return non_null[0], True
        return Union[tuple(non_null)], True
    return annotation, False


def _nullable(fragment: dict[str, Any]) -> dict[str, Any]:
    kind = fragment.get("type")
    if kind is None:
        # Unconstrained (Any) already admits null.
        return fragment
    out = dict(fragment)
    if isinstance(kind, list):
        if "null" not in kind:
            out["type"] = [*kind, "null"]
    else:
        out["type"] = [kind, "null"]
    if "enum" in out and None not in out["enum"]:
        out["enum"] = [*out["enum"], None]
    return out


def _fragment(
    tp: Any, metadata: list[Any], *, where: str, stack: tuple[type, ...]
) -> dict[str, Any]:
    origin = get_origin(tp)

    if origin is Annotated:
        base, *extra = get_args(tp)
        return _fragment(base, [*metadata, *extra], where=where, stack=stack)

    if tp is Any:
        return {}
    if tp is bool:
        return {"type": "boolean"}
    if tp is str:
        return {"type": "string"}
    if tp is int or tp is float:
        return _number(tp, metadata)
    if tp is dt.datetime:
        return {"type": "string", "format": "date-time"}
    if tp is dt.date:
        return {"type": "string", "format": "date"}

    if origin is Literal:
        return _enum(list(get_args(tp)), where=where)
    if isinstance(tp, type) and issubclass(tp, Enum):
        return _enum([member.value for member in tp], where=where)

    if origin in (Union, types.UnionType):
        inner, optional = _split_optional(tp)
        if optional:
            return _nullable(_fragment(inner, [], where=where, stack=stack))
        raise SchemaError(
            f"Union types are not supported for {where}: {tp!r}",
            hint="Use a single record type or an Enum of string values.",
        )

    if origin in (list, tuple, Sequence) or tp in (list, tuple):
        return {"type": "array", "items": _items(tp, origin, where=where, stack=stack)}
    if origin in (set, frozenset):
        return {
            "type": "array",
            "items": _items(tp, origin, where=where, stack=stack),
            "uniqueItems": True,
        }
    if origin in (dict, Mapping) or tp is dict:
        key_type, value_type = get_args(tp) or (str, Any)
        if key_type is not str:
            raise SchemaError(f"Mapping keys must be str for {where}, got {key_type!r}")
        return {
            "type": "object",
            "additionalProperties": _fragment(value_type, [], where=where, stack=stack),
        }

    if isinstance(tp, type) and issubclass(tp, BaseModel):
        if tp in stack:
            raise SchemaError(
                f"Recursive record {tp.__name__} referenced from {where}",
                hint="Tool input schemas must be finite trees.",
            )
        properties, required = _object_body(tp, stack=(*stack, tp))
        nested: dict[str, Any] = {
            "type": "object",
            "properties": properties,
            "required": list(required),
        }
        doc = tp.__doc__
        if doc:
            nested = {"description": inspect.cleandoc(doc), **nested}
        return nested

    raise SchemaError(
        f"Unsupported field type for {where}: {tp!r}",
        hint="Use str, bool, int, float, lists, dicts, Enums or nested BaseModels.",
    )


def _number(tp: type, metadata: list[Any]) -> dict[str, Any]:
    fmt = next((m for m in metadata if isinstance(m, NumberFormat)), None)
    if tp is float:
        return {"type": "number", "format": fmt.format if fmt else "double"}
    fragment: dict[str, Any] = {"type": "integer"}
    if fmt is not None:
        fragment["format"] = fmt.format
        if fmt.unsigned:
            fragment["minimum"] = 0.0
    return fragment


def _items(tp: Any, origin: Any, *, where: str, stack: tuple[type, ...]) -> dict[str, Any]:
    args = get_args(tp)
    if origin is tuple:
        if len(args) != 2 or args[1] is not Ellipsis:
            raise SchemaError(
                f"Only homogeneous tuple[T, ...] is supported for {where}: {tp!r}"
            )
        args = args[:1]
    if not args:
        return {}
    return _fragment(args[0], [], where=where, stack=stack)


def _enum(values: list[Any], *, where: str) -> dict[str, Any]:
    if values and all(isinstance(v, str) for v in values):
        return {"type": "string", "enum": values}
    if values and all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        return {"type": "integer", "enum": values}
    raise SchemaError(
        f"Enumeration for {where} must have only str or only int values: {values!r}",
        hint="Data-carrying variants are not supported; use a value Enum.",
    )


__all__ = [
    "Float32",
    "Float64",
    "InputSchema",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "NumberFormat",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "derive_schema",
]
