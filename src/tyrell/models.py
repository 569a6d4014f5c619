"""Closed vocabularies of the Messages API: models, roles, stop reasons, usage."""

from __future__ import annotations

from enum import Enum, unique

from pydantic import BaseModel, ConfigDict


@unique
class Model(str, Enum):
    """Supported Claude models; each value is the exact wire identifier."""

    SONNET_35 = "claude-3-5-sonnet-20240620"
    OPUS_3 = "claude-3-opus-20240229"
    SONNET_3 = "claude-3-sonnet-20240229"
    HAIKU_3 = "claude-3-haiku-20240307"

    def __str__(self) -> str:
        return self.value


class Role(str, Enum):
    """Conversation roles.

    There is no system role: the system prompt travels as the top-level
    ``system`` request field.
    """

    USER = "user"
    ASSISTANT = "assistant"

    def __str__(self) -> str:
        return self.value


class StopReason(str, Enum):
    """Why the model stopped generating."""

    END_TURN = "end_turn"
    MAX_TOKENS = "max_tokens"
    STOP_SEQUENCE = "stop_sequence"
    TOOL_USE = "tool_use"

    def __str__(self) -> str:
        return self.value


class Usage(BaseModel):
    """Token accounting for one API call."""

    model_config = ConfigDict(frozen=True)

    input_tokens: int
    output_tokens: int

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens
