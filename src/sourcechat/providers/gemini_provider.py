"""
Google Gemini provider adapter using the google-genai SDK.

The same adapter serves the Gemini Developer API and Vertex AI; pass
``vertexai=True`` (plus project and location) for the latter.
See: https://ai.google.dev/gemini-api/docs/function-calling
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional, Sequence

from ..env import load_default_env
from ..exceptions import ProviderConfigurationError, ProviderTransportError
from ..types import (
    LOCAL_CALL_ID_PREFIX,
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

VERTEX_PREFIX = "vertex/"


def _to_gemini_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a JSON schema dict to the upper-case type names google-genai expects."""
    converted: Dict[str, Any] = {}
    for key, value in schema.items():
        if key == "type" and isinstance(value, str):
            converted[key] = value.upper()
        elif key == "properties" and isinstance(value, dict):
            converted[key] = {name: _to_gemini_schema(prop) for name, prop in value.items()}
        elif key == "items" and isinstance(value, dict):
            converted[key] = _to_gemini_schema(value)
        else:
            converted[key] = value
    return converted


def _vendor_call_id(call_id: str) -> Optional[str]:
    """Return the id Gemini issued for a call, or None for a locally minted one."""
    if not call_id or call_id.startswith(LOCAL_CALL_ID_PREFIX):
        return None
    return call_id


def _function_response_body(payload: str, is_error: bool) -> Dict[str, Any]:
    """Gemini function responses must be JSON objects."""
    if is_error:
        return {"error": payload}
    try:
        value = json.loads(payload)
    except (TypeError, ValueError):
        return {"result": payload}
    if isinstance(value, dict):
        return value
    return {"result": value}


class GeminiProvider(ProviderAdapter):
    """
    Google Gemini adapter.

    Uses the centralized Client API:
    - client.models.generate_content() with function declarations
    - automatic function calling disabled so the driver owns tool execution
    """

    name = "gemini"

    def __init__(
        self,
        api_key: str | None = None,
        *,
        vertexai: bool = False,
        project: str | None = None,
        location: str | None = None,
        client: Any = None,
    ):
        try:
            from google import genai
            from google.genai import types
        except ImportError as exc:
            raise ProviderConfigurationError(
                provider_name="Gemini",
                missing_config="google-genai package (pip install google-genai)",
            ) from exc
        self._types = types

        if client is not None:
            self._client = client
            return

        load_default_env()
        if vertexai:
            self._client = genai.Client(
                vertexai=True,
                project=project or os.getenv("GOOGLE_CLOUD_PROJECT"),
                location=location or os.getenv("GOOGLE_CLOUD_LOCATION", "us-central1"),
            )
            return

        self.api_key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
        if not self.api_key:
            raise ProviderConfigurationError(
                provider_name="Gemini",
                missing_config="API key",
                env_var="GEMINI_API_KEY",
            )
        self._client = genai.Client(api_key=self.api_key)

    def provides_model(self, model: str) -> bool:
        if model.startswith(VERTEX_PREFIX):
            model = model[len(VERTEX_PREFIX) :]
        return model.startswith("gemini")

    def translate_request(
        self,
        history: Sequence[Message],
        tools: Sequence[Any],
        options: GenerationOptions,
    ) -> Dict[str, Any]:
        types = self._types
        model_name = options.model
        if model_name.startswith(VERTEX_PREFIX):
            model_name = model_name[len(VERTEX_PREFIX) :]

        system_parts = [options.system_prompt] if options.system_prompt else []
        system_parts.extend(
            m.content.text
            for m in history
            if m.role == Role.SYSTEM and isinstance(m.content, TextContent)
        )

        config_args: Dict[str, Any] = {
            "temperature": options.temperature,
            "max_output_tokens": options.max_tokens,
            "system_instruction": "\n\n".join(system_parts) if system_parts else None,
        }
        if options.top_p is not None:
            config_args["top_p"] = options.top_p
        if tools:
            declarations = [
                types.FunctionDeclaration(
                    name=schema["name"],
                    description=schema["description"],
                    parameters=_to_gemini_schema(schema["parameters"]),
                )
                for schema in tool_schemas(tools)
            ]
            config_args["tools"] = [types.Tool(function_declarations=declarations)]
            config_args["automatic_function_calling"] = types.AutomaticFunctionCallingConfig(
                disable=True
            )

        return {
            "model": model_name,
            "contents": self._format_contents(history),
            "config": types.GenerateContentConfig(**config_args),
        }

    def _format_contents(self, history: Sequence[Message]) -> List[Any]:
        """
        Format history as Gemini contents.

        Assistant turns map to the "model" role. Function responses of one
        turn share a single user content, matching the function calls that
        preceded them.
        """
        types = self._types
        contents: List[Any] = []
        for message in history:
            content = message.content
            if message.role == Role.SYSTEM:
                continue

            if isinstance(content, ToolCallContent):
                role = "model"
                parts = [types.Part(text=content.text)] if content.text else []
                parts.extend(
                    types.Part(
                        function_call=types.FunctionCall(
                            id=_vendor_call_id(call.id),
                            name=call.tool_name,
                            args=dict(call.parameters),
                        ),
                        thought_signature=call.signature,
                    )
                    for call in content.calls
                )
            elif isinstance(content, ToolResultContent):
                role = "user"
                result = content.result
                parts = [
                    types.Part(
                        function_response=types.FunctionResponse(
                            id=_vendor_call_id(result.call_id),
                            name=result.tool_name,
                            response=_function_response_body(result.payload, result.is_error),
                        )
                    )
                ]
            else:
                role = "model" if message.role == Role.ASSISTANT else "user"
                parts = [types.Part(text=content.text)]

            previous = contents[-1] if contents else None
            if (
                previous is not None
                and isinstance(content, ToolResultContent)
                and previous.role == role
                and previous.parts
                and previous.parts[-1].function_response is not None
            ):
                previous.parts.extend(parts)
            else:
                contents.append(types.Content(role=role, parts=parts))
        return contents

    def send_and_parse(self, request: Dict[str, Any]) -> NeutralTurn:
        try:
            response = self._client.models.generate_content(**request)
        except Exception as exc:  # noqa: BLE001
            raise ProviderTransportError(self.name, f"completion failed: {exc}") from exc
        return self.parse_response(response, request.get("model", ""))

    def parse_response(self, response: Any, model: str) -> NeutralTurn:
        """Convert a generate_content response into a NeutralTurn."""
        usage = getattr(response, "usage_metadata", None)
        stats = UsageStats(
            input_tokens=token_count(usage, "prompt_token_count"),
            output_tokens=token_count(usage, "candidates_token_count"),
            model=model,
            provider=self.name,
        )

        candidates = getattr(response, "candidates", None) or []
        content = getattr(candidates[0], "content", None) if candidates else None
        parts = getattr(content, "parts", None) or []
        if not parts:
            logger.debug("Gemini response for %s had no content parts", model)
            return NeutralTurn(usage=stats)

        text_chunks: List[str] = []
        calls: List[ToolCall] = []
        for part in parts:
            function_call = getattr(part, "function_call", None)
            if function_call is not None:
                if not function_call.name:
                    raise ProviderTransportError(self.name, "function_call without a name")
                arguments = dict(function_call.args or {})
                call_id: Optional[str] = getattr(function_call, "id", None)
                signature: Optional[bytes] = getattr(part, "thought_signature", None)
                if call_id:
                    calls.append(
                        ToolCall(function_call.name, arguments, id=call_id, signature=signature)
                    )
                else:
                    calls.append(ToolCall(function_call.name, arguments, signature=signature))
                continue
            text = getattr(part, "text", None)
            if text:
                text_chunks.append(text)

        text_out: Optional[str] = "".join(text_chunks).strip() or None
        return NeutralTurn(text=text_out, tool_calls=calls, usage=stats)


__all__ = ["GeminiProvider"]
