"""
Pick the provider adapter that serves a model id.
"""

from __future__ import annotations

from typing import Sequence

from ..exceptions import InvalidRequestError
from .base import ProviderAdapter


def select_provider(model: str, providers: Sequence[ProviderAdapter]) -> ProviderAdapter:
    """
    Return the first adapter whose provides_model() accepts `model`.

    Raises:
        InvalidRequestError: If the model id is empty or no adapter serves it.
    """
    if not model:
        raise InvalidRequestError("model id missing")
    for provider in providers:
        if provider.provides_model(model):
            return provider
    names = ", ".join(provider.name for provider in providers) or "<none>"
    raise InvalidRequestError(f"no provider for model '{model}' (configured: {names})")


__all__ = ["select_provider"]
