"""Real API integration tests.

These tests make real Anthropic calls and are intentionally compact:
- ENABLE_API_TESTS=1 is required to run any API tests
- ANTHROPIC_API_KEY is required
"""

from __future__ import annotations

import pytest

from tests.helpers import EconomyAnalysis, SuperBowl
from tyrell import (
    AsyncClient,
    Client,
    Config,
    Model,
    Request,
    Role,
    StopReason,
    ToolChoice,
)

pytestmark = [pytest.mark.api, pytest.mark.slow]

_ECONOMY_NEWS = (
    "The US economy grew 2.1% last quarter while inflation eased to 3.2%. "
    "The Federal Reserve held rates steady and unemployment stayed at 3.8%."
)


def _extraction(text: str, model: type, name: str) -> Request:
    return (
        Request.builder()
        .model(Model.HAIKU_3)
        .add_message(Role.USER, text)
        .max_tokens(1024)
        .tools([model])
        .tool_choice(ToolChoice.specific(name))
        .build()
    )


def test_super_bowl_extraction(anthropic_api_key: str) -> None:
    request = _extraction(
        "Extract information about the 1982 Super Bowl using the tool.",
        SuperBowl,
        "extract_super_bowl_info",
    )

    with Client(Config(api_key=anthropic_api_key)) as client:
        response = client.create(request)
        info = response.parse_tool_input(SuperBowl)

    assert response.stop_reason is StopReason.TOOL_USE
    assert info.year in {1982, 1981}
    assert info.winner


@pytest.mark.asyncio
async def test_economy_analysis_and_plain_text(anthropic_api_key: str) -> None:
    plain = (
        Request.builder()
        .model(Model.HAIKU_3)
        .system("Answer in one word.")
        .add_message(Role.USER, "What color is the sky on a clear day?")
        .max_tokens(10)
        .build()
    )
    extraction = _extraction(_ECONOMY_NEWS, EconomyAnalysis, "analyze_economy")

    async with AsyncClient(Config(api_key=anthropic_api_key)) as client:
        text_response, tool_response = await client.create_many([plain, extraction])

    assert text_response.text
    analysis = tool_response.parse_tool_input(EconomyAnalysis)
    assert analysis.economic_indicators
