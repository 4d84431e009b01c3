"""
Exception hierarchy for completion orchestration.

Fatal errors derive from CompletionError: they abort the whole completion and
nothing produced by it is persisted. UsageTrackingError and
AttributionLookupError describe degraded, non-fatal paths; they are logged by
the code that catches them and never reach the caller.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence


class SourcechatError(Exception):
    """Base exception for all sourcechat errors."""

    pass


class CompletionError(SourcechatError):
    """Base class for errors that abort a completion."""

    pass


class InvalidRequestError(CompletionError):
    """Raised when a request is malformed before the turn loop starts."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid request: {reason}")


class UnknownToolError(CompletionError):
    """Raised when the model requests a tool that is not registered."""

    def __init__(self, tool_name: str, available: Sequence[str] = ()):
        self.tool_name = tool_name
        self.available = list(available)
        available_list = ", ".join(self.available) or "<none>"
        super().__init__(f"Unknown tool '{tool_name}'. Available tools: {available_list}")


class ToolExecutionError(CompletionError):
    """Raised when a registered tool handler fails."""

    def __init__(self, tool_name: str, error: Exception, params: Dict[str, Any]):
        self.tool_name = tool_name
        self.error = error
        self.params = params

        message = f"\n{'='*60}\n"
        message += f"❌ Tool Execution Failed: '{tool_name}'\n"
        message += f"{'='*60}\n\n"
        message += f"Error: {type(error).__name__}: {str(error)}\n"
        message += f"Parameters: {params}\n"
        message += f"\n💡 Check that:\n"
        message += f"  - All required parameters are provided\n"
        message += f"  - The handler returns a JSON string\n"
        message += f"  - External services used by the tool are reachable\n"
        message += f"\n{'='*60}\n"

        super().__init__(message)


class ToolLoopExceededError(CompletionError):
    """Raised when the model keeps requesting tools past the round limit."""

    def __init__(self, max_rounds: int, tool_names: Sequence[str] = ()):
        self.max_rounds = max_rounds
        self.tool_names = list(tool_names)

        message = f"\n{'='*60}\n"
        message += f"⚠️  Tool Loop Exceeded\n"
        message += f"{'='*60}\n\n"
        message += f"Limit: {max_rounds} tool round trips\n"
        if self.tool_names:
            message += f"Pending calls: {', '.join(self.tool_names)}\n"
        message += f"\n💡 Suggestions:\n"
        message += f"  - Tighten the system prompt so the model answers after retrieval\n"
        message += f"  - Raise DriverConfig(max_tool_rounds=...) if longer chains are expected\n"
        message += f"\n{'='*60}\n"

        super().__init__(message)


class ProviderTransportError(CompletionError):
    """Raised when a vendor call fails or returns a malformed payload."""

    def __init__(self, provider_name: str, detail: str):
        self.provider_name = provider_name
        self.detail = detail
        super().__init__(f"{provider_name} request failed: {detail}")


class EmptyModelResponseError(CompletionError):
    """Raised when a provider turn has neither text nor tool calls."""

    def __init__(self, provider_name: str, model: str):
        self.provider_name = provider_name
        self.model = model
        super().__init__(f"{provider_name} returned an empty turn for model '{model}'")


class CompletionCancelledError(CompletionError):
    """Raised at a checkpoint once the cancellation token has been triggered."""

    def __init__(self, checkpoint: str):
        self.checkpoint = checkpoint
        super().__init__(f"Completion cancelled ({checkpoint})")


class ProviderConfigurationError(SourcechatError):
    """Raised when provider configuration is incorrect."""

    def __init__(self, provider_name: str, missing_config: str, env_var: str = ""):
        self.provider_name = provider_name
        self.missing_config = missing_config
        self.env_var = env_var

        message = f"\n{'='*60}\n"
        message += f"❌ Provider Configuration Error: '{provider_name}'\n"
        message += f"{'='*60}\n\n"
        message += f"Missing: {missing_config}\n"
        if env_var:
            message += f"\n💡 How to fix:\n"
            message += f"  1. Set the environment variable:\n"
            message += f"     export {env_var}='your-api-key'\n"
            message += f"  2. Or pass it directly:\n"
            message += f"     provider = {provider_name}Provider(api_key='your-api-key')\n"
        message += f"\n{'='*60}\n"

        super().__init__(message)


class UsageTrackingError(SourcechatError):
    """Best-effort usage record could not be written. Non-fatal."""

    def __init__(self, what: str, error: Optional[Exception] = None):
        self.what = what
        self.error = error
        detail = f": {error}" if error else ""
        super().__init__(f"Failed to record {what} usage{detail}")


class AttributionLookupError(SourcechatError):
    """A document display name could not be resolved. Non-fatal."""

    def __init__(self, document_id: str, error: Optional[Exception] = None):
        self.document_id = document_id
        self.error = error
        detail = f": {error}" if error else ""
        super().__init__(f"Could not resolve name for document '{document_id}'{detail}")


class NotFoundError(SourcechatError):
    """Raised by datastores when a thread or document does not exist."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} '{key}' not found")


__all__ = [
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
