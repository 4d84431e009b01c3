"""
Tools package exports.
"""

from .base import Tool, ToolContext, ToolHandler, ToolParameter
from .registry import ToolRegistry

__all__ = ["Tool", "ToolParameter", "ToolContext", "ToolHandler", "ToolRegistry"]
