"""Appointment Agent - a tool-calling conversational scheduler built on a provider-agnostic LLM core."""

from .llm_core import (
    ConversationSession,
    OrchestrationLoop,
    LoopState,
    TurnOutcome,
    ModelTransport,
    ModelResponse,
    ToolRegistry,
    ToolDefinition,
    ToolCallRequest,
    ToolCallResult,
    ToolExecutor,
    TurnDispatcher,
    SystemMessage,
    UserMessage,
    AssistantMessage,
    ToolCallMessage,
    ToolResultMessage,
)
from .llm_impl import GeminiTransport, GeminiToolRegistry, OpenAITransport, OpenAIToolRegistry
from .config import AgentConfig
from .agent import Agent, build_agent

__all__ = [
    "ConversationSession",
    "OrchestrationLoop",
    "LoopState",
    "TurnOutcome",
    "ModelTransport",
    "ModelResponse",
    "ToolRegistry",
    "ToolDefinition",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolExecutor",
    "TurnDispatcher",
    "SystemMessage",
    "UserMessage",
    "AssistantMessage",
    "ToolCallMessage",
    "ToolResultMessage",
    "GeminiTransport",
    "GeminiToolRegistry",
    "OpenAITransport",
    "OpenAIToolRegistry",
    "AgentConfig",
    "Agent",
    "build_agent",
]
