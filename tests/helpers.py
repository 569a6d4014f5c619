"""Test helpers: shared records, wire payload builders and HTTP doubles.

Keep this file tiny and purpose-built. Records decorated with ``@tool`` live
here so registration happens once per session.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
import json
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from tyrell import UInt8, UInt16, tool


@tool("extract_super_bowl_info", description="Extract Super Bowl information from text")
class SuperBowl(BaseModel):
    year: UInt16
    winner: str
    loser: str
    winner_score: UInt8
    loser_score: UInt8
    total_points_scored: UInt8 | None = None


class Trend(str, Enum):
    INCREASING = "Increasing"
    DECREASING = "Decreasing"
    STABLE = "Stable"


class EconomicIndicator(BaseModel):
    """Represents a single economic indicator for a country's economy"""

    model_config = ConfigDict(use_attribute_docstrings=True)

    name: str
    """Name of the economic indicator (e.g., "GDP", "Inflation Rate")"""
    value: float | None = None
    """Current value of the indicator, if available"""
    trend: Trend
    """Current trend of the indicator"""


@tool(
    "analyze_economy",
    description="Analyze economic news and extract key information about a country's economy",
)
class EconomyAnalysis(BaseModel):
    """Comprehensive analysis of a country's economic situation"""

    country: str = Field(description="Name of the country being analyzed")
    economic_indicators: list[EconomicIndicator] = Field(
        description="List of relevant economic indicators for the country"
    )
    notable_events: list[str]
    overall_economic_sentiment: str


SUPER_BOWL_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "loser": {"type": "string"},
        "loser_score": {"type": "integer", "format": "uint8", "minimum": 0.0},
        "total_points_scored": {
            "type": ["integer", "null"],
            "format": "uint8",
            "minimum": 0.0,
        },
        "winner": {"type": "string"},
        "winner_score": {"type": "integer", "format": "uint8", "minimum": 0.0},
        "year": {"type": "integer", "format": "uint16", "minimum": 0.0},
    },
    "required": ["loser", "loser_score", "winner", "winner_score", "year"],
}

SUPER_BOWL_INPUT: dict[str, Any] = {
    "winner": "Green Bay Packers",
    "winner_score": 31,
    "loser": "Miami Dolphins",
    "loser_score": 10,
    "year": 1982,
}


def wire_response(
    content: Any,
    *,
    stop_reason: str | None = "tool_use",
    model: str = "claude-3-5-sonnet-20240620",
    **overrides: Any,
) -> dict[str, Any]:
    """Return a Messages API response payload around *content*."""
    payload: dict[str, Any] = {
        "id": "msg_01RhY4TxxRHM2b3N81ijdJms",
        "type": "message",
        "role": "assistant",
        "content": content,
        "model": model,
        "stop_reason": stop_reason,
        "stop_sequence": None,
        "usage": {"input_tokens": 512, "output_tokens": 94},
    }
    payload.update(overrides)
    return payload


def super_bowl_response() -> dict[str, Any]:
    return wire_response(
        [
            {
                "type": "tool_use",
                "id": "toolu_01CQ1Yq17jrrMpF5uiAMt4bU",
                "name": "extract_super_bowl_info",
                "input": dict(SUPER_BOWL_INPUT),
            }
        ]
    )


def json_handler(
    payload: dict[str, Any], *, status_code: int = 200, seen: list[httpx.Request] | None = None
) -> Callable[[httpx.Request], httpx.Response]:
    """Return an httpx.MockTransport handler that answers with *payload*."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, content=json.dumps(payload).encode())

    return handler
