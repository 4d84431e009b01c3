"""
Scripted provider for offline testing and development.

This provider doesn't call any external API; it replays queued turns.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from ..exceptions import ProviderTransportError
from ..types import GenerationOptions, Message, NeutralTurn, ToolCall
from ..usage import UsageStats
from .base import ProviderAdapter

ScriptedTurn = Union[NeutralTurn, str, ToolCall, List[ToolCall], Exception]


class ScriptedProvider(ProviderAdapter):
    """
    Offline adapter replaying a fixed script of turns.

    Each script entry is one provider turn: a NeutralTurn, a string (text
    answer), a ToolCall or list of ToolCalls, or an exception to raise as a
    transport failure. The last entry repeats once the script is exhausted.
    A callable entry receives the translated request and returns any of the
    above.

    Attributes:
        requests: Every translated request sent, in order.
    """

    name = "scripted"

    def __init__(
        self,
        script: Iterable[Union[ScriptedTurn, Callable[[Dict[str, Any]], ScriptedTurn]]],
        *,
        usage: Optional[UsageStats] = None,
        models: Sequence[str] = (),
    ):
        self.script = list(script)
        if not self.script:
            raise ValueError("ScriptedProvider needs at least one scripted turn")
        self.usage = usage or UsageStats(input_tokens=10, output_tokens=5)
        self.models = tuple(models)
        self.requests: List[Dict[str, Any]] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    def provides_model(self, model: str) -> bool:
        return not self.models or model in self.models

    def translate_request(
        self,
        history: Sequence[Message],
        tools: Sequence[Any],
        options: GenerationOptions,
    ) -> Dict[str, Any]:
        return {
            "model": options.model,
            "history": list(history),
            "tools": [tool.name for tool in tools],
            "options": options,
        }

    def send_and_parse(self, request: Dict[str, Any]) -> NeutralTurn:
        entry = self.script[min(len(self.requests), len(self.script) - 1)]
        self.requests.append(request)
        if callable(entry):
            entry = entry(request)
        if isinstance(entry, Exception):
            raise ProviderTransportError(self.name, str(entry)) from entry

        usage = UsageStats(
            input_tokens=self.usage.input_tokens,
            output_tokens=self.usage.output_tokens,
            model=request["model"],
            provider=self.name,
        )
        if isinstance(entry, NeutralTurn):
            return entry
        if isinstance(entry, str):
            return NeutralTurn(text=entry, usage=usage)
        if isinstance(entry, ToolCall):
            return NeutralTurn(tool_calls=[entry], usage=usage)
        return NeutralTurn(tool_calls=list(entry), usage=usage)


__all__ = ["ScriptedProvider", "ScriptedTurn"]
