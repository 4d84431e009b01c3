"""
End-to-end completions against the real vendor APIs.

Run with: pytest --run-e2e -m e2e
Each test is skipped when its API key is not configured.
"""

from __future__ import annotations

import json
import os

import pytest

from sourcechat.driver import run_completion
from sourcechat.tools import Tool, ToolParameter
from sourcechat.types import CompletionRequest, Message

pytestmark = pytest.mark.e2e


def _lookup_tool(calls):
    def handler(ctx, args):
        calls.append(args["prompt"])
        return json.dumps(
            {
                "sources": [
                    {
                        "id": "1",
                        "document_id": "doc-1",
                        "text": "The Eiffel Tower is 330 metres tall.",
                    }
                ]
            }
        )

    return Tool(
        name="get_sources",
        description="Retrieve sources about a topic from the document collection.",
        parameters=[ToolParameter("prompt", str, "The topic to retrieve sources for")],
        handler=handler,
    )


def _request(model: str, tool: Tool) -> CompletionRequest:
    return CompletionRequest(
        system_prompt="Always call get_sources before answering. Answer in one sentence.",
        history=[],
        message=Message.user("How tall is the Eiffel Tower?"),
        model=model,
        max_tokens=256,
        tools=[tool],
    )


def _check(response, calls) -> None:
    assert calls, "model never called get_sources"
    assert "330" in response.content
    assert response.usage.total_tokens > 0
    assert response.tool_rounds >= 1


@pytest.mark.anthropic
@pytest.mark.skipif(not os.getenv("ANTHROPIC_API_KEY"), reason="ANTHROPIC_API_KEY not set")
def test_anthropic_tool_loop() -> None:
    from sourcechat.providers import AnthropicProvider

    calls = []
    response = run_completion(
        _request("claude-3-5-haiku-20241022", _lookup_tool(calls)), AnthropicProvider()
    )
    _check(response, calls)


@pytest.mark.openai
@pytest.mark.skipif(not os.getenv("OPENAI_API_KEY"), reason="OPENAI_API_KEY not set")
def test_openai_tool_loop() -> None:
    from sourcechat.providers import OpenAIProvider

    calls = []
    response = run_completion(_request("gpt-4o-mini", _lookup_tool(calls)), OpenAIProvider())
    _check(response, calls)


@pytest.mark.gemini
@pytest.mark.skipif(
    not (os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")),
    reason="GEMINI_API_KEY not set",
)
def test_gemini_tool_loop() -> None:
    from sourcechat.providers import GeminiProvider

    calls = []
    response = run_completion(_request("gemini-2.0-flash", _lookup_tool(calls)), GeminiProvider())
    _check(response, calls)
