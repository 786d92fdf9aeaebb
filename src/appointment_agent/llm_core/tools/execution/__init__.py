"""Tool execution logic."""

from .executor import ToolExecutor
from .dispatcher import TurnDispatcher

__all__ = ["ToolExecutor", "TurnDispatcher"]
