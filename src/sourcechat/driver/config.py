"""
Configuration options for the completion driver.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional

# Hook type definitions
HookCallable = Callable[..., None]
Hooks = Dict[str, HookCallable]

DEFAULT_MAX_TOOL_ROUNDS = 6


@dataclass
class DriverConfig:
    """
    Configuration options for one completion driver.

    Attributes:
        max_tool_rounds: Tool round trips allowed per completion. A model that
               asks for tools once more after this many rounds fails the
               completion with ToolLoopExceededError. Default: 6.
        verbose: Print turn-by-turn trace lines for debugging. Default: False.
        hooks: Optional dict of lifecycle hooks for observability. Default: None.
               Available hooks:
               - 'on_completion_start': Called with (request,)
               - 'on_turn_start': Called with (turn_number, history)
               - 'on_llm_end': Called with (neutral_turn, usage_stats)
               - 'on_tool_start': Called with (tool_name, tool_args)
               - 'on_tool_end': Called with (tool_name, result, duration)
               - 'on_tool_error': Called with (tool_name, error, tool_args)
               - 'on_completion_end': Called with (response,)
               - 'on_error': Called with (error, context)
    """

    max_tool_rounds: int = DEFAULT_MAX_TOOL_ROUNDS
    verbose: bool = False
    hooks: Optional[Hooks] = None

    def __post_init__(self) -> None:
        if self.max_tool_rounds < 0:
            raise ValueError("max_tool_rounds must be >= 0")
