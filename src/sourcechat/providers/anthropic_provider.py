"""
Anthropic provider adapter (Messages API, direct or via AWS Bedrock).
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional, Sequence

from ..env import load_default_env
from ..exceptions import ProviderConfigurationError, ProviderTransportError
from ..types import (
    GenerationOptions,
    Message,
    NeutralTurn,
    Role,
    TextContent,
    ToolCall,
    ToolCallContent,
    ToolResultContent,
)
from ..usage import UsageStats
from .base import ProviderAdapter, token_count, tool_schemas

logger = logging.getLogger(__name__)


class AnthropicProvider(ProviderAdapter):
    """
    Anthropic Messages API adapter.

    With ``bedrock=True`` requests go through ``AnthropicBedrock`` and use AWS
    credentials from the environment instead of an Anthropic API key.
    """

    name = "anthropic"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        bedrock: bool = False,
        aws_region: str | None = None,
        base_url: str | None = None,
        client: Any = None,
    ):
        self.bedrock = bedrock
        if client is not None:
            self._client = client
            return

        load_default_env()
        try:
            import anthropic
        except ImportError as exc:
            raise ProviderConfigurationError(
                provider_name="Anthropic",
                missing_config="anthropic package (pip install anthropic)",
            ) from exc

        if bedrock:
            region = aws_region or os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION")
            self._client = anthropic.AnthropicBedrock(aws_region=region)
            return

        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ProviderConfigurationError(
                provider_name="Anthropic",
                missing_config="API key",
                env_var="ANTHROPIC_API_KEY",
            )
        self._client = anthropic.Anthropic(api_key=self.api_key, base_url=base_url)

    def provides_model(self, model: str) -> bool:
        return model.startswith("claude") or "anthropic.claude" in model

    def translate_request(
        self,
        history: Sequence[Message],
        tools: Sequence[Any],
        options: GenerationOptions,
    ) -> Dict[str, Any]:
        system_parts = [options.system_prompt] if options.system_prompt else []
        system_parts.extend(
            m.content.text
            for m in history
            if m.role == Role.SYSTEM and isinstance(m.content, TextContent)
        )

        request: Dict[str, Any] = {
            "model": options.model,
            "messages": self._format_messages(history),
            "max_tokens": options.max_tokens,
            "temperature": options.temperature,
        }
        if system_parts:
            request["system"] = "\n\n".join(system_parts)
        if options.top_p is not None:
            request["top_p"] = options.top_p
        if tools:
            request["tools"] = [
                {
                    "name": schema["name"],
                    "description": schema["description"],
                    "input_schema": schema["parameters"],
                }
                for schema in tool_schemas(tools)
            ]
        return request

    def _format_messages(self, history: Sequence[Message]) -> List[Dict[str, Any]]:
        """
        Format history as Anthropic content blocks.

        Anthropic requires alternating roles and expects every tool_result of
        a turn inside the single user message that follows the tool_use turn,
        so consecutive messages of the same role are merged.
        """
        formatted: List[Dict[str, Any]] = []
        for message in history:
            content = message.content
            if message.role == Role.SYSTEM:
                continue

            if isinstance(content, ToolCallContent):
                role = "assistant"
                blocks: List[Dict[str, Any]] = []
                if content.text:
                    blocks.append({"type": "text", "text": content.text})
                for call in content.calls:
                    blocks.append(
                        {
                            "type": "tool_use",
                            "id": call.id,
                            "name": call.tool_name,
                            "input": dict(call.parameters),
                        }
                    )
            elif isinstance(content, ToolResultContent):
                role = "user"
                block: Dict[str, Any] = {
                    "type": "tool_result",
                    "tool_use_id": content.result.call_id,
                    "content": content.result.payload,
                }
                if content.result.is_error:
                    block["is_error"] = True
                blocks = [block]
            else:
                role = "assistant" if message.role == Role.ASSISTANT else "user"
                blocks = [{"type": "text", "text": content.text}]

            if formatted and formatted[-1]["role"] == role:
                formatted[-1]["content"].extend(blocks)
            else:
                formatted.append({"role": role, "content": blocks})
        return formatted

    def send_and_parse(self, request: Dict[str, Any]) -> NeutralTurn:
        try:
            response = self._client.messages.create(**request)
        except Exception as exc:  # noqa: BLE001
            raise ProviderTransportError(self.name, f"completion failed: {exc}") from exc
        return self.parse_response(response, request.get("model", ""))

    def parse_response(self, response: Any, model: str) -> NeutralTurn:
        """Convert a Messages API response into a NeutralTurn."""
        text_chunks: List[str] = []
        calls: List[ToolCall] = []
        for block in getattr(response, "content", None) or []:
            kind = getattr(block, "type", None)
            if kind == "text":
                text_chunks.append(getattr(block, "text", "") or "")
            elif kind == "tool_use":
                arguments = getattr(block, "input", None) or {}
                if not isinstance(arguments, dict):
                    raise ProviderTransportError(
                        self.name, f"tool_use input for '{block.name}' is not an object"
                    )
                calls.append(ToolCall(tool_name=block.name, parameters=arguments, id=block.id))

        usage = getattr(response, "usage", None)
        stats = UsageStats(
            input_tokens=token_count(usage, "input_tokens"),
            output_tokens=token_count(usage, "output_tokens"),
            model=getattr(response, "model", None) or model,
            provider=self.name,
        )
        if usage is None:
            logger.debug("Anthropic response for %s carried no usage", model)

        text: Optional[str] = "".join(text_chunks).strip() or None
        return NeutralTurn(text=text, tool_calls=calls, usage=stats)


__all__ = ["AnthropicProvider"]
