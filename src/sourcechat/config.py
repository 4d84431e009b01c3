"""
Service-level configuration.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from .driver.config import DEFAULT_MAX_TOOL_ROUNDS, DriverConfig
from .env import load_default_env

DEFAULT_SYSTEM_PROMPT = (
    "You are a scientific research assistant. Use the get_sources tool to find evidence "
    "in the user's documents before answering. Quote sources with \\cite{document_id}."
)


@dataclass
class ServiceConfig:
    """
    Settings for ChatService.

    Attributes:
        system_prompt: Instructions sent with every completion.
        driver: Driver settings (tool round limit, hooks, verbosity).
    """

    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    driver: DriverConfig = field(default_factory=DriverConfig)

    @classmethod
    def from_env(cls, prefix: str = "SOURCECHAT_") -> "ServiceConfig":
        """
        Build a config from environment variables (after loading .env files).

        Reads ``{prefix}SYSTEM_PROMPT``, ``{prefix}MAX_TOOL_ROUNDS`` and
        ``{prefix}VERBOSE``; unset variables keep their defaults.
        """
        load_default_env()
        system_prompt = os.getenv(f"{prefix}SYSTEM_PROMPT") or DEFAULT_SYSTEM_PROMPT
        rounds_raw: Optional[str] = os.getenv(f"{prefix}MAX_TOOL_ROUNDS")
        try:
            max_tool_rounds = int(rounds_raw) if rounds_raw else DEFAULT_MAX_TOOL_ROUNDS
        except ValueError as exc:
            raise ValueError(
                f"{prefix}MAX_TOOL_ROUNDS must be an integer, got {rounds_raw!r}"
            ) from exc
        verbose = os.getenv(f"{prefix}VERBOSE", "").lower() in {"1", "true", "yes"}
        return cls(
            system_prompt=system_prompt,
            driver=DriverConfig(max_tool_rounds=max_tool_rounds, verbose=verbose),
        )


__all__ = ["ServiceConfig", "DEFAULT_SYSTEM_PROMPT"]
