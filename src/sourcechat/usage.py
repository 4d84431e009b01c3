"""
Token usage accounting across provider round trips.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class UsageStats:
    """
    Token usage reported for a single provider round trip.

    Attributes:
        input_tokens: Tokens consumed by the request (prompt, history, tool results).
        output_tokens: Tokens generated by the model.
        model: Model id the turn was served by.
        provider: Provider name (anthropic, gemini, openai, ...).
    """

    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""
    provider: str = ""

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "model": self.model,
            "provider": self.provider,
        }


@dataclass
class CompletionUsage:
    """
    Aggregates usage across every turn of one completion.

    Totals only ever grow: each provider turn is added exactly once and
    nothing is subtracted or reset while a completion is running.

    Attributes:
        input_tokens: Cumulative input tokens.
        output_tokens: Cumulative output tokens.
        tool_usage: Mapping of tool name to number of executions.
        iterations: UsageStats for each provider turn, in order.
    """

    input_tokens: int = 0
    output_tokens: int = 0
    tool_usage: Dict[str, int] = field(default_factory=dict)
    iterations: List[UsageStats] = field(default_factory=list)

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def add_usage(self, stats: UsageStats) -> None:
        """
        Add usage stats from a single provider turn.

        Args:
            stats: UsageStats returned alongside a NeutralTurn.
        """
        self.input_tokens += max(stats.input_tokens, 0)
        self.output_tokens += max(stats.output_tokens, 0)
        self.iterations.append(stats)

    def record_tool(self, tool_name: str) -> None:
        self.tool_usage[tool_name] = self.tool_usage.get(tool_name, 0) + 1

    @property
    def model(self) -> Optional[str]:
        """Model of the last turn that reported one."""
        for stats in reversed(self.iterations):
            if stats.model:
                return stats.model
        return None

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize to dictionary for logging/display.

        Returns:
            Dictionary containing all usage statistics.
        """
        return {
            "total_tokens": self.total_tokens,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "tool_usage": dict(self.tool_usage),
            "iterations": len(self.iterations),
        }

    def __str__(self) -> str:
        lines = [
            "\n" + "=" * 60,
            "📊 Usage Summary",
            "=" * 60,
            f"Total Tokens: {self.total_tokens:,}",
            f"  - Input: {self.input_tokens:,}",
            f"  - Output: {self.output_tokens:,}",
            f"Turns: {len(self.iterations)}",
        ]

        if self.tool_usage:
            lines.append("\nTool Usage:")
            for tool_name, count in sorted(self.tool_usage.items(), key=lambda x: -x[1]):
                lines.append(f"  - {tool_name}: {count} calls")

        lines.append("=" * 60 + "\n")
        return "\n".join(lines)


__all__ = ["UsageStats", "CompletionUsage"]
