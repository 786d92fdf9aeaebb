"""Export the exception hierarchy used across tool execution, transports and configuration."""

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

__all__ = [
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
]
