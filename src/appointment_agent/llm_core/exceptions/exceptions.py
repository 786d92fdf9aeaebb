"""
Custom exception classes for the appointment agent.

Tool errors are contained by the executor and reported back to the model.
Transport errors end the current user turn and are shown to the user.
Configuration errors only occur at startup.
"""


class AgentError(Exception):
    """Base exception for all agent errors."""

    pass


class LLMToolError(AgentError):
    """Base exception for all tool-related errors."""

    pass


class ToolRegistrationError(LLMToolError):
    """Raised when there is an error registering a tool."""

    pass


class ToolNotFoundError(LLMToolError):
    """Raised when a requested tool is not found in the registry (``UnknownTool``)."""

    pass


class ToolExecutionError(LLMToolError):
    """Raised when a tool fails during execution."""

    pass


class ToolValidationError(LLMToolError):
    """Raised when tool parameters or definition are invalid."""

    pass


class TransportError(AgentError):
    """Raised when the model provider call fails (network, auth, timeout, provider error)."""

    pass


class MalformedModelResponseError(TransportError):
    """Raised when a model response carries neither text nor a usable tool-call batch."""

    pass


class ConversationStateError(AgentError):
    """Raised when appending a turn would break the conversation history invariants."""

    pass


class ConfigurationError(AgentError):
    """Raised when required settings such as credentials are missing or invalid."""

    pass
