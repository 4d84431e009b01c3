"""
Provider abstraction for vendor-agnostic tool calling.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from ..types import GenerationOptions, Message, NeutralTurn

if TYPE_CHECKING:
    from ..tools import Tool


@runtime_checkable
class ProviderAdapter(Protocol):
    """
    Interface every provider adapter must satisfy.

    An adapter translates the neutral turn history into one vendor's wire
    request and parses the vendor response back into a NeutralTurn. It never
    mutates the history it is given; the driver owns all history changes.
    """

    name: str

    def provides_model(self, model: str) -> bool:
        """Return True if this adapter serves the given model id."""
        ...

    def translate_request(
        self,
        history: Sequence[Message],
        tools: Sequence["Tool"],
        options: GenerationOptions,
    ) -> Any:
        """
        Encode the full history, tool definitions, and options as a vendor request.

        The whole history is encoded on every call, never just the delta.
        """
        ...

    def send_and_parse(self, request: Any) -> NeutralTurn:
        """
        Send a translated request and parse the response into a NeutralTurn.

        A response without content parts parses to an empty turn. Missing
        usage metadata yields zero token counts.

        Raises:
            ProviderTransportError: If the call fails or the payload is malformed.
        """
        ...


def tool_schemas(tools: Sequence["Tool"]) -> List[Dict[str, Any]]:
    """Return the neutral JSON schema of each tool, in order."""
    return [tool.schema() for tool in tools]


def token_count(source: Any, *names: str) -> int:
    """Return the first integer attribute found on `source`, or 0."""
    if source is None:
        return 0
    for name in names:
        value: Optional[Any] = getattr(source, name, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return 0


__all__ = ["ProviderAdapter", "tool_schemas", "token_count"]
