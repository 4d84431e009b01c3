"""
Tests for types.py: tagged message content and persistence round trips.
"""

from __future__ import annotations

import json

import pytest

from sourcechat.types import (
    CompletionRequest,
    Message,
    NeutralTurn,
    Role,
    TextContent,
    ToolCall,
    ToolCallContent,
    ToolResult,
    ToolResultContent,
)
from sourcechat.usage import UsageStats


class TestMessageConstructors:
    def test_user_message_is_text(self) -> None:
        msg = Message.user("hello")
        assert msg.role == Role.USER
        assert isinstance(msg.content, TextContent)
        assert msg.text == "hello"

    def test_tool_calls_message_keeps_order(self) -> None:
        calls = [ToolCall("a", {"x": 1}, id="c1"), ToolCall("b", {}, id="c2")]
        msg = Message.tool_calls(calls, text="Let me look that up.")
        assert msg.role == Role.ASSISTANT
        assert isinstance(msg.content, ToolCallContent)
        assert [c.id for c in msg.content.calls] == ["c1", "c2"]
        assert msg.text == "Let me look that up."

    def test_tool_calls_content_is_immutable_tuple(self) -> None:
        calls = [ToolCall("a", id="c1")]
        msg = Message.tool_calls(calls)
        calls.append(ToolCall("b", id="c2"))
        assert len(msg.content.calls) == 1

    def test_tool_result_message_has_no_text(self) -> None:
        msg = Message.tool_result(ToolResult(call_id="c1", tool_name="a", payload="{}"))
        assert msg.role == Role.TOOL
        assert isinstance(msg.content, ToolResultContent)
        assert msg.text is None

    def test_tool_call_ids_are_unique_by_default(self) -> None:
        assert ToolCall("a").id != ToolCall("a").id


class TestMessageRoundTrip:
    def test_tool_result_round_trip(self) -> None:
        payload = json.dumps({"sources": [{"id": "1", "document_id": "d", "text": "t"}]})
        original = Message.tool_result(
            ToolResult(call_id="toolu_1", tool_name="get_sources", payload=payload)
        )

        restored = Message.from_dict(json.loads(json.dumps(original.to_dict())))

        assert restored == original
        assert restored.content.result.payload == payload

    def test_failed_tool_result_keeps_marker(self) -> None:
        original = Message.tool_result(
            ToolResult(call_id="c", tool_name="t", payload="boom", is_error=True)
        )
        restored = Message.from_dict(original.to_dict())
        assert restored.content.result.is_error is True

    def test_tool_call_round_trip(self) -> None:
        original = Message.tool_calls(
            [ToolCall("get_sources", {"prompt": "q", "nested": {"k": [1, 2]}}, id="c1")]
        )
        assert Message.from_dict(original.to_dict()) == original

    def test_tool_call_signature_survives_json(self) -> None:
        original = Message.tool_calls(
            [ToolCall("get_sources", {"prompt": "q"}, id="fc1", signature=b"\x00\xffsig")]
        )
        stored = json.loads(json.dumps(original.to_dict()))

        restored = Message.from_dict(stored)

        assert restored == original
        assert restored.content.calls[0].signature == b"\x00\xffsig"

    def test_tool_call_without_signature_stores_none(self) -> None:
        data = ToolCall("a", id="c1").to_dict()
        assert "signature" not in data
        assert ToolCall.from_dict(data).signature is None

    @pytest.mark.parametrize("factory", [Message.user, Message.assistant, Message.system])
    def test_text_round_trip(self, factory) -> None:
        original = factory("some text")
        assert Message.from_dict(original.to_dict()) == original

    def test_unknown_content_type_rejected(self) -> None:
        with pytest.raises(ValueError):
            Message.from_dict({"role": "user", "content": {"type": "image"}})


class TestNeutralTurn:
    def test_empty_when_no_text_and_no_calls(self) -> None:
        assert NeutralTurn().is_empty
        assert NeutralTurn(text="   ").is_empty

    def test_not_empty_with_text_or_calls(self) -> None:
        assert not NeutralTurn(text="hi").is_empty
        assert not NeutralTurn(tool_calls=[ToolCall("a")]).is_empty

    def test_default_usage_is_zero(self) -> None:
        turn = NeutralTurn(text="x")
        assert turn.usage == UsageStats()


class TestCompletionRequest:
    def test_history_and_tools_frozen_as_tuples(self) -> None:
        history = [Message.user("a"), Message.assistant("b")]
        request = CompletionRequest(
            system_prompt="sys", history=history, message=Message.user("c"), model="m"
        )
        history.append(Message.user("late"))
        assert isinstance(request.history, tuple)
        assert len(request.history) == 2

    def test_options_carry_sampling_settings(self) -> None:
        request = CompletionRequest(
            system_prompt="sys",
            history=[],
            message=Message.user("c"),
            model="claude-3-5-sonnet",
            max_tokens=256,
            top_p=0.9,
            temperature=0.2,
        )
        options = request.options()
        assert options.model == "claude-3-5-sonnet"
        assert options.system_prompt == "sys"
        assert options.max_tokens == 256
        assert options.top_p == 0.9
        assert options.temperature == 0.2
