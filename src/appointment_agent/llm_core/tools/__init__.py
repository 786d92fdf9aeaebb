from .models import ToolDefinition, ToolCallRequest, ToolCallResult
from .registry import ToolRegistry
from .execution import ToolExecutor, TurnDispatcher
from .schema import SchemaValidator

__all__ = [
    "ToolDefinition",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolRegistry",
    "ToolExecutor",
    "TurnDispatcher",
    "SchemaValidator",
]
