"""
Core conversation types shared by providers, the driver, and tests.

Message content is an explicit tagged variant: every message carries exactly
one of TextContent, ToolCallContent or ToolResultContent, chosen when the
message is built. Adapters translate on the variant instead of probing
attributes at runtime.
"""

from __future__ import annotations

import base64
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Union

from .usage import CompletionUsage, UsageStats

if TYPE_CHECKING:
    from .rag.evidence import Source
    from .tools import Tool


class Role(str, Enum):
    """Conversation role."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


LOCAL_CALL_ID_PREFIX = "call_"


@dataclass(frozen=True)
class ToolCall:
    """
    A model-issued request to run a named tool with structured arguments.

    Attributes:
        tool_name: Name of the requested tool.
        parameters: Arguments the model supplied.
        id: Vendor call id, or a locally minted one starting with "call_".
        signature: Opaque vendor replay data (Gemini thought signature) that must
            be sent back unchanged with the call on the next turn.
    """

    tool_name: str
    parameters: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: f"{LOCAL_CALL_ID_PREFIX}{uuid.uuid4().hex[:24]}")
    signature: Optional[bytes] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "tool_name": self.tool_name,
            "parameters": dict(self.parameters),
        }
        if self.signature is not None:
            data["signature"] = base64.b64encode(self.signature).decode("ascii")
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolCall":
        signature = data.get("signature")
        return cls(
            tool_name=data["tool_name"],
            parameters=dict(data.get("parameters") or {}),
            id=data["id"],
            signature=base64.b64decode(signature) if signature else None,
        )


@dataclass(frozen=True)
class ToolResult:
    """
    Outcome of one tool invocation.

    Either `payload` holds the JSON string returned by the handler, or
    `is_error` marks a failed invocation (payload then carries the reason).
    """

    call_id: str
    tool_name: str
    payload: str
    is_error: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "call_id": self.call_id,
            "tool_name": self.tool_name,
            "payload": self.payload,
            "is_error": self.is_error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolResult":
        return cls(
            call_id=data["call_id"],
            tool_name=data["tool_name"],
            payload=data["payload"],
            is_error=bool(data.get("is_error", False)),
        )


@dataclass(frozen=True)
class TextContent:
    text: str

    type = "text"


@dataclass(frozen=True)
class ToolCallContent:
    """Assistant turn that requested one or more tools, with optional preamble text."""

    calls: Tuple[ToolCall, ...]
    text: Optional[str] = None

    type = "tool_call"

    def __post_init__(self) -> None:
        object.__setattr__(self, "calls", tuple(self.calls))


@dataclass(frozen=True)
class ToolResultContent:
    result: ToolResult

    type = "tool_result"


MessageContent = Union[TextContent, ToolCallContent, ToolResultContent]


@dataclass(frozen=True)
class Message:
    """
    One entry of the turn history.

    Build messages through the constructors below rather than by hand:

        >>> Message.user("What does the paper conclude?")
        >>> Message.tool_calls([ToolCall("get_sources", {"prompt": "conclusion"})])
        >>> Message.tool_result(ToolResult(call_id="call_1", tool_name="get_sources", payload="{}"))
    """

    role: Role
    content: MessageContent

    @classmethod
    def user(cls, text: str) -> "Message":
        return cls(role=Role.USER, content=TextContent(text))

    @classmethod
    def assistant(cls, text: str) -> "Message":
        return cls(role=Role.ASSISTANT, content=TextContent(text))

    @classmethod
    def system(cls, text: str) -> "Message":
        return cls(role=Role.SYSTEM, content=TextContent(text))

    @classmethod
    def tool_calls(cls, calls: List[ToolCall], text: Optional[str] = None) -> "Message":
        return cls(role=Role.ASSISTANT, content=ToolCallContent(calls, text))

    @classmethod
    def tool_result(cls, result: ToolResult) -> "Message":
        return cls(role=Role.TOOL, content=ToolResultContent(result))

    @property
    def text(self) -> Optional[str]:
        """Plain text carried by the message, if any."""
        if isinstance(self.content, (TextContent, ToolCallContent)):
            return self.content.text
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Return a plain-JSON-safe representation used for persistence."""
        content = self.content
        if isinstance(content, TextContent):
            body: Dict[str, Any] = {"type": content.type, "text": content.text}
        elif isinstance(content, ToolCallContent):
            body = {
                "type": content.type,
                "text": content.text,
                "calls": [call.to_dict() for call in content.calls],
            }
        else:
            body = {"type": content.type, "result": content.result.to_dict()}
        return {"role": self.role.value, "content": body}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        role = Role(data["role"])
        body = data["content"]
        kind = body.get("type")
        if kind == TextContent.type:
            return cls(role=role, content=TextContent(body["text"]))
        if kind == ToolCallContent.type:
            calls = [ToolCall.from_dict(call) for call in body.get("calls", [])]
            return cls(role=role, content=ToolCallContent(calls, body.get("text")))
        if kind == ToolResultContent.type:
            return cls(role=role, content=ToolResultContent(ToolResult.from_dict(body["result"])))
        raise ValueError(f"Unknown message content type: {kind!r}")


@dataclass
class NeutralTurn:
    """Provider-agnostic view of one model response."""

    text: Optional[str] = None
    tool_calls: List[ToolCall] = field(default_factory=list)
    usage: UsageStats = field(default_factory=UsageStats)

    @property
    def is_empty(self) -> bool:
        return not self.tool_calls and not (self.text and self.text.strip())


@dataclass(frozen=True)
class GenerationOptions:
    """Sampling and model settings forwarded to a provider."""

    model: str
    system_prompt: str = ""
    max_tokens: int = 1024
    temperature: float = 0.0
    top_p: Optional[float] = None


@dataclass(frozen=True)
class CompletionRequest:
    """
    Everything one completion needs. Frozen once handed to the driver.

    Attributes:
        system_prompt: Instructions sent with every turn.
        history: Prior thread messages, oldest first.
        message: The new user message for this completion.
        model: Model id; also used to pick the provider adapter.
        max_tokens: Output token limit per turn.
        top_p: Nucleus sampling, None to leave the vendor default.
        temperature: Sampling temperature.
        caller_id: Identity of the user the completion runs for.
        tools: Tool definitions available to the model.
    """

    system_prompt: str
    history: Tuple[Message, ...]
    message: Message
    model: str
    max_tokens: int = 1024
    top_p: Optional[float] = None
    temperature: float = 0.0
    caller_id: str = ""
    tools: Tuple["Tool", ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "history", tuple(self.history))
        object.__setattr__(self, "tools", tuple(self.tools))

    def options(self) -> GenerationOptions:
        return GenerationOptions(
            model=self.model,
            system_prompt=self.system_prompt,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            top_p=self.top_p,
        )


@dataclass
class CompletionResponse:
    """Terminal result of a successful completion."""

    message: Message
    history: List[Message]
    usage: CompletionUsage
    sources: List["Source"] = field(default_factory=list)
    tool_rounds: int = 0

    @property
    def content(self) -> str:
        return self.message.text or ""


__all__ = [
    "Role",
    "ToolCall",
    "ToolResult",
    "TextContent",
    "ToolCallContent",
    "ToolResultContent",
    "MessageContent",
    "Message",
    "NeutralTurn",
    "GenerationOptions",
    "CompletionRequest",
    "CompletionResponse",
]
