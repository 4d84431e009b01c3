"""Public exports for the sourcechat package."""

from .attribution import SourceAttributor
from .config import ServiceConfig
from .datastore import Datastore, InMemoryDatastore, ModelUsageRecord, Thread
from .driver import CancellationToken, CompletionDriver, DriverConfig, run_completion
from .exceptions import (
    AttributionLookupError,
    CompletionCancelledError,
    CompletionError,
    EmptyModelResponseError,
    InvalidRequestError,
    NotFoundError,
    ProviderConfigurationError,
    ProviderTransportError,
    SourcechatError,
    ToolExecutionError,
    ToolLoopExceededError,
    UnknownToolError,
    UsageTrackingError,
)
from .providers import (
    AnthropicProvider,
    GeminiProvider,
    OpenAIProvider,
    ProviderAdapter,
    ScriptedProvider,
    select_provider,
)
from .rag import EvidenceItem, RetrievalResult, RetrievalUsage, Retriever, Source, SourcesTool
from .service import ChatReply, ChatService, ModelOptions, Prompt, RetrievalOptions
from .tools import Tool, ToolContext, ToolParameter, ToolRegistry
from .types import (
    CompletionRequest,
    CompletionResponse,
    GenerationOptions,
    Message,
    NeutralTurn,
    Role,
    ToolCall,
    ToolResult,
)
from .usage import CompletionUsage, UsageStats

__all__ = [
    # Driver
    "CompletionDriver",
    "DriverConfig",
    "CancellationToken",
    "run_completion",
    # Conversation model
    "Message",
    "Role",
    "ToolCall",
    "ToolResult",
    "NeutralTurn",
    "GenerationOptions",
    "CompletionRequest",
    "CompletionResponse",
    # Providers
    "ProviderAdapter",
    "AnthropicProvider",
    "GeminiProvider",
    "OpenAIProvider",
    "ScriptedProvider",
    "select_provider",
    # Tools and retrieval
    "Tool",
    "ToolParameter",
    "ToolContext",
    "ToolRegistry",
    "SourcesTool",
    "EvidenceItem",
    "Source",
    "Retriever",
    "RetrievalResult",
    "RetrievalUsage",
    "SourceAttributor",
    # Service
    "ChatService",
    "ChatReply",
    "Prompt",
    "ModelOptions",
    "RetrievalOptions",
    "ServiceConfig",
    "Datastore",
    "InMemoryDatastore",
    "Thread",
    "ModelUsageRecord",
    # Usage tracking
    "UsageStats",
    "CompletionUsage",
    # Exceptions
    "SourcechatError",
    "CompletionError",
    "InvalidRequestError",
    "UnknownToolError",
    "ToolExecutionError",
    "ToolLoopExceededError",
    "ProviderTransportError",
    "EmptyModelResponseError",
    "CompletionCancelledError",
    "ProviderConfigurationError",
    "UsageTrackingError",
    "AttributionLookupError",
    "NotFoundError",
]
