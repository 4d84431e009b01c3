"""
OpenAI provider adapter (Chat Completions with function tools).
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List, Optional, Sequence

from ..env import load_default_env
from ..exceptions import ProviderConfigurationError, ProviderTransportError
from ..types import (
    GenerationOptions,
    Message,
    NeutralTurn,
    Role,
    ToolCall,
    ToolCallContent,
    ToolResultContent,
)
from ..usage import UsageStats
from .base import ProviderAdapter, token_count, tool_schemas

MODEL_PREFIXES = ("gpt-", "o1", "o3", "o4", "chatgpt-")
# Reasoning models take max_completion_tokens and only the default sampling settings.
REASONING_PREFIXES = ("o1", "o3", "o4")


class OpenAIProvider(ProviderAdapter):
    """Adapter that speaks to OpenAI's Chat Completions API."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        base_url: str | None = None,
        client: Any = None,
    ):
        if client is not None:
            self._client = client
            return

        load_default_env()
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise ProviderConfigurationError(
                provider_name="OpenAI",
                missing_config="API key",
                env_var="OPENAI_API_KEY",
            )

        try:
            from openai import OpenAI
        except ImportError as exc:
            raise ProviderConfigurationError(
                provider_name="OpenAI",
                missing_config="openai package (pip install openai)",
            ) from exc

        self._client = OpenAI(api_key=self.api_key, base_url=base_url)

    def provides_model(self, model: str) -> bool:
        return model.startswith(MODEL_PREFIXES)

    def translate_request(
        self,
        history: Sequence[Message],
        tools: Sequence[Any],
        options: GenerationOptions,
    ) -> Dict[str, Any]:
        request: Dict[str, Any] = {
            "model": options.model,
            "messages": self._format_messages(options.system_prompt, history),
        }
        if options.model.startswith(REASONING_PREFIXES):
            request["max_completion_tokens"] = options.max_tokens
        else:
            request["max_tokens"] = options.max_tokens
            request["temperature"] = options.temperature
            if options.top_p is not None:
                request["top_p"] = options.top_p
        if tools:
            request["tools"] = [
                {"type": "function", "function": schema} for schema in tool_schemas(tools)
            ]
        return request

    def _format_messages(
        self, system_prompt: str, history: Sequence[Message]
    ) -> List[Dict[str, Any]]:
        payload: List[Dict[str, Any]] = []
        if system_prompt:
            payload.append({"role": "system", "content": system_prompt})

        for message in history:
            content = message.content
            if isinstance(content, ToolCallContent):
                payload.append(
                    {
                        "role": "assistant",
                        "content": content.text,
                        "tool_calls": [
                            {
                                "id": call.id,
                                "type": "function",
                                "function": {
                                    "name": call.tool_name,
                                    "arguments": json.dumps(call.parameters),
                                },
                            }
                            for call in content.calls
                        ],
                    }
                )
            elif isinstance(content, ToolResultContent):
                payload.append(
                    {
                        "role": "tool",
                        "tool_call_id": content.result.call_id,
                        "content": content.result.payload,
                    }
                )
            else:
                payload.append({"role": message.role.value, "content": content.text})
        return payload

    def send_and_parse(self, request: Dict[str, Any]) -> NeutralTurn:
        try:
            response = self._client.chat.completions.create(**request)
        except Exception as exc:  # noqa: BLE001
            raise ProviderTransportError(self.name, f"completion failed: {exc}") from exc
        return self.parse_response(response, request.get("model", ""))

    def parse_response(self, response: Any, model: str) -> NeutralTurn:
        """Convert a chat completion into a NeutralTurn."""
        usage = getattr(response, "usage", None)
        stats = UsageStats(
            input_tokens=token_count(usage, "prompt_tokens"),
            output_tokens=token_count(usage, "completion_tokens"),
            model=getattr(response, "model", None) or model,
            provider=self.name,
        )

        choices = getattr(response, "choices", None) or []
        if not choices:
            return NeutralTurn(usage=stats)
        message = choices[0].message

        calls: List[ToolCall] = []
        for raw in getattr(message, "tool_calls", None) or []:
            function = raw.function
            try:
                arguments = json.loads(function.arguments or "{}")
            except ValueError as exc:
                raise ProviderTransportError(
                    self.name, f"malformed arguments for tool '{function.name}': {exc}"
                ) from exc
            if not isinstance(arguments, dict):
                raise ProviderTransportError(
                    self.name, f"arguments for tool '{function.name}' are not an object"
                )
            calls.append(ToolCall(tool_name=function.name, parameters=arguments, id=raw.id))

        text: Optional[str] = (getattr(message, "content", None) or "").strip() or None
        return NeutralTurn(text=text, tool_calls=calls, usage=stats)


__all__ = ["OpenAIProvider"]
