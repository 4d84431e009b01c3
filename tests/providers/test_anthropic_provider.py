"""
Tests for the Anthropic adapter using an injected fake client.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Dict, List

import pytest

from sourcechat.exceptions import ProviderConfigurationError, ProviderTransportError
from sourcechat.providers import AnthropicProvider
from sourcechat.tools import Tool, ToolParameter
from sourcechat.types import GenerationOptions, Message, ToolCall, ToolResult


class FakeMessages:
    def __init__(self, response: Any = None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.requests: List[Dict[str, Any]] = []

    def create(self, **kwargs):
        self.requests.append(kwargs)
        if self.error:
            raise self.error
        return self.response


def _client(response=None, error=None) -> SimpleNamespace:
    return SimpleNamespace(messages=FakeMessages(response, error))


def _response(blocks, input_tokens=11, output_tokens=7, model="claude-3-5-sonnet-20241022"):
    usage = SimpleNamespace(input_tokens=input_tokens, output_tokens=output_tokens)
    return SimpleNamespace(content=blocks, usage=usage, model=model)


def _sources_tool() -> Tool:
    return Tool(
        name="get_sources",
        description="Retrieve sources.",
        parameters=[ToolParameter("prompt", str, "Topic")],
        handler=lambda ctx, args: "{}",
    )


OPTIONS = GenerationOptions(model="claude-3-5-sonnet-20241022", system_prompt="Be precise.")


class TestConfiguration:
    def test_missing_api_key_raises(self, monkeypatch) -> None:
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        monkeypatch.setattr(
            "sourcechat.providers.anthropic_provider.load_default_env", lambda: False
        )
        with pytest.raises(ProviderConfigurationError) as exc_info:
            AnthropicProvider()
        assert "ANTHROPIC_API_KEY" in str(exc_info.value)

    @pytest.mark.parametrize(
        "model,expected",
        [
            ("claude-3-5-sonnet-20241022", True),
            ("anthropic.claude-3-5-sonnet-20241022-v2:0", True),
            ("gpt-4o", False),
            ("gemini-1.5-pro", False),
        ],
    )
    def test_provides_model(self, model, expected) -> None:
        assert AnthropicProvider(client=_client()).provides_model(model) is expected


class TestTranslateRequest:
    def test_basic_request(self) -> None:
        provider = AnthropicProvider(client=_client())
        request = provider.translate_request([Message.user("hi")], [_sources_tool()], OPTIONS)

        assert request["model"] == OPTIONS.model
        assert request["system"] == "Be precise."
        assert request["max_tokens"] == 1024
        assert request["temperature"] == 0.0
        assert "top_p" not in request
        assert request["messages"] == [
            {"role": "user", "content": [{"type": "text", "text": "hi"}]}
        ]
        assert request["tools"] == [
            {
                "name": "get_sources",
                "description": "Retrieve sources.",
                "input_schema": {
                    "type": "object",
                    "properties": {"prompt": {"type": "string", "description": "Topic"}},
                    "required": ["prompt"],
                },
            }
        ]

    def test_no_tools_key_without_tools(self) -> None:
        provider = AnthropicProvider(client=_client())
        request = provider.translate_request([Message.user("hi")], [], OPTIONS)
        assert "tools" not in request

    def test_top_p_forwarded_when_set(self) -> None:
        provider = AnthropicProvider(client=_client())
        options = GenerationOptions(model="claude-3-haiku", top_p=0.8)
        request = provider.translate_request([Message.user("hi")], [], options)
        assert request["top_p"] == 0.8
        assert "system" not in request

    def test_system_messages_folded_into_system_prompt(self) -> None:
        provider = AnthropicProvider(client=_client())
        history = [Message.system("Extra rule."), Message.user("hi")]
        request = provider.translate_request(history, [], OPTIONS)
        assert request["system"] == "Be precise.\n\nExtra rule."
        assert [m["role"] for m in request["messages"]] == ["user"]

    def test_tool_round_encoding_merges_results(self) -> None:
        provider = AnthropicProvider(client=_client())
        calls = [
            ToolCall("get_sources", {"prompt": "a"}, id="toolu_1"),
            ToolCall("get_sources", {"prompt": "b"}, id="toolu_2"),
        ]
        history = [
            Message.user("question"),
            Message.tool_calls(calls, text="Searching."),
            Message.tool_result(ToolResult("toolu_1", "get_sources", '{"sources": []}')),
            Message.tool_result(ToolResult("toolu_2", "get_sources", "boom", is_error=True)),
        ]
        messages = provider.translate_request(history, [_sources_tool()], OPTIONS)["messages"]

        assert [m["role"] for m in messages] == ["user", "assistant", "user"]
        assert messages[1]["content"] == [
            {"type": "text", "text": "Searching."},
            {"type": "tool_use", "id": "toolu_1", "name": "get_sources", "input": {"prompt": "a"}},
            {"type": "tool_use", "id": "toolu_2", "name": "get_sources", "input": {"prompt": "b"}},
        ]
        assert messages[2]["content"] == [
            {"type": "tool_result", "tool_use_id": "toolu_1", "content": '{"sources": []}'},
            {"type": "tool_result", "tool_use_id": "toolu_2", "content": "boom", "is_error": True},
        ]

    def test_history_not_mutated(self) -> None:
        provider = AnthropicProvider(client=_client())
        history = [Message.user("a"), Message.assistant("b")]
        snapshot = list(history)
        provider.translate_request(history, [], OPTIONS)
        assert history == snapshot


class TestParseResponse:
    def test_text_response(self) -> None:
        blocks = [
            SimpleNamespace(type="text", text="Hello "),
            SimpleNamespace(type="text", text="there"),
        ]
        client = _client(_response(blocks))
        provider = AnthropicProvider(client=client)

        turn = provider.send_and_parse({"model": "claude-3-5-sonnet-20241022", "messages": []})

        assert turn.text == "Hello there"
        assert turn.tool_calls == []
        assert turn.usage.input_tokens == 11
        assert turn.usage.output_tokens == 7
        assert turn.usage.provider == "anthropic"
        assert client.messages.requests[0]["model"] == "claude-3-5-sonnet-20241022"

    def test_tool_use_blocks_become_calls(self) -> None:
        blocks = [
            SimpleNamespace(type="text", text="Let me check."),
            SimpleNamespace(
                type="tool_use", id="toolu_9", name="get_sources", input={"prompt": "x"}
            ),
        ]
        turn = AnthropicProvider(client=_client()).parse_response(_response(blocks), "claude")

        assert turn.text == "Let me check."
        assert turn.tool_calls == [ToolCall("get_sources", {"prompt": "x"}, id="toolu_9")]

    def test_missing_usage_is_zero(self) -> None:
        response = SimpleNamespace(content=[SimpleNamespace(type="text", text="ok")], usage=None)
        turn = AnthropicProvider(client=_client()).parse_response(response, "claude-3-haiku")
        assert turn.usage.total_tokens == 0
        assert turn.usage.model == "claude-3-haiku"

    def test_empty_content_is_empty_turn(self) -> None:
        turn = AnthropicProvider(client=_client()).parse_response(_response([]), "claude")
        assert turn.is_empty

    def test_non_object_input_is_transport_error(self) -> None:
        blocks = [SimpleNamespace(type="tool_use", id="t", name="get_sources", input="oops")]
        with pytest.raises(ProviderTransportError):
            AnthropicProvider(client=_client()).parse_response(_response(blocks), "claude")

    def test_client_failure_is_transport_error(self) -> None:
        provider = AnthropicProvider(client=_client(error=RuntimeError("overloaded")))
        with pytest.raises(ProviderTransportError) as exc_info:
            provider.send_and_parse({"model": "claude", "messages": []})
        assert "overloaded" in str(exc_info.value)
