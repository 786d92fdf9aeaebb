"""Tool-related data models."""

from .models import ToolDefinition
from .tool_call import (
    ToolCallRequest,
    ToolCallResult,
    new_call_id,
    is_local_call_id,
    UNKNOWN_TOOL,
    TOOL_VALIDATION_ERROR,
    TOOL_EXECUTION_ERROR,
)

__all__ = [
    "ToolDefinition",
    "ToolCallRequest",
    "ToolCallResult",
    "new_call_id",
    "is_local_call_id",
    "UNKNOWN_TOOL",
    "TOOL_VALIDATION_ERROR",
    "TOOL_EXECUTION_ERROR",
]
