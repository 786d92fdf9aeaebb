"""Public exports for the provider-agnostic conversation core."""

from .base import ModelTransport, ModelResponse
from .exceptions import (
    AgentError,
    LLMToolError,
    ToolRegistrationError,
    ToolNotFoundError,
    ToolExecutionError,
    ToolValidationError,
    TransportError,
    MalformedModelResponseError,
    ConversationStateError,
    ConfigurationError,
)
from .logger import get_logger, setup_logging
from .messages import (
    BaseMessage,
    SystemMessage,
    UserMessage,
    AssistantMessage,
    ToolCallMessage,
    ToolResultMessage,
    ConversationTurn,
)
from .orchestration import OrchestrationLoop, LoopState, TurnOutcome
from .session import ConversationSession
from .tools import (
    ToolDefinition,
    ToolCallRequest,
    ToolCallResult,
    ToolRegistry,
    ToolExecutor,
    TurnDispatcher,
    SchemaValidator,
)

__all__ = [
    "ModelTransport",
    "ModelResponse",
    "AgentError",
    "LLMToolError",
    "ToolRegistrationError",
    "ToolNotFoundError",
    "ToolExecutionError",
    "ToolValidationError",
    "TransportError",
    "MalformedModelResponseError",
    "ConversationStateError",
    "ConfigurationError",
    "get_logger",
    "setup_logging",
    "BaseMessage",
    "SystemMessage",
    "UserMessage",
    "AssistantMessage",
    "ToolCallMessage",
    "ToolResultMessage",
    "ConversationTurn",
    "OrchestrationLoop",
    "LoopState",
    "TurnOutcome",
    "ConversationSession",
    "ToolDefinition",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolRegistry",
    "ToolExecutor",
    "TurnDispatcher",
    "SchemaValidator",
]
