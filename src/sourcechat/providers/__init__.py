"""Provider adapters for the supported LLM vendors."""

from .anthropic_provider import AnthropicProvider
from .base import ProviderAdapter
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAIProvider
from .selector import select_provider
from .stubs import ScriptedProvider

__all__ = [
    "ProviderAdapter",
    "AnthropicProvider",
    "GeminiProvider",
    "OpenAIProvider",
    "ScriptedProvider",
    "select_provider",
]
