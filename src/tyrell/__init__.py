"""Tyrell: a typed client for the Anthropic Messages API.

Public API:
    - @tool / Tool: typed records as tool definitions
    - Request.builder(): validated request construction
    - decode_response() / extract_tool_input(): typed response parsing
    - Client / AsyncClient: send requests over HTTP
    - Config: transport configuration
"""

from __future__ import annotations

import logging

from tyrell.client import AsyncClient, Client
from tyrell.config import Config
from tyrell.content import (
    ContentBlock,
    ImageBlock,
    ImageSource,
    Message,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from tyrell.errors import (
    APIStatusError,
    BuildError,
    ConfigurationError,
    DecodeError,
    InvalidFieldError,
    MissingFieldError,
    NetworkError,
    RateLimitError,
    SchemaError,
    SchemaMismatchError,
    ToolUseNotFoundError,
    TransportError,
    TyrellError,
    UnknownContentTypeError,
)
from tyrell.models import Model, Role, StopReason, Usage
from tyrell.request import Request, RequestBuilder
from tyrell.response import Response, decode_response, extract_tool_input
from tyrell.retry import RetryPolicy
from tyrell.schema import (
    Float32,
    Float64,
    InputSchema,
    Int8,
    Int16,
    Int32,
    Int64,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    derive_schema,
)
from tyrell.tool_choice import (
    ToolChoice,
    ToolChoiceAny,
    ToolChoiceAuto,
    ToolChoiceNone,
    ToolChoiceSpecific,
)
from tyrell.tools import Tool, tool

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("tyrell")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("tyrell").addHandler(logging.NullHandler())

__all__ = [
    "APIStatusError",
    "AsyncClient",
    "BuildError",
    "Client",
    "Config",
    "ConfigurationError",
    "ContentBlock",
    "DecodeError",
    "Float32",
    "Float64",
    "ImageBlock",
    "ImageSource",
    "InputSchema",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "InvalidFieldError",
    "Message",
    "MissingFieldError",
    "Model",
    "NetworkError",
    "RateLimitError",
    "Request",
    "RequestBuilder",
    "Response",
    "RetryPolicy",
    "Role",
    "SchemaError",
    "SchemaMismatchError",
    "StopReason",
    "TextBlock",
    "Tool",
    "ToolChoice",
    "ToolChoiceAny",
    "ToolChoiceAuto",
    "ToolChoiceNone",
    "ToolChoiceSpecific",
    "ToolResultBlock",
    "ToolUseBlock",
    "ToolUseNotFoundError",
    "TransportError",
    "TyrellError",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "UnknownContentTypeError",
    "Usage",
    "decode_response",
    "derive_schema",
    "extract_tool_input",
    "tool",
]
