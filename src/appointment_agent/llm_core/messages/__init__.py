"""Expose provider-agnostic conversation turn types shared by transports and the orchestration loop."""

from .models import (
    BaseMessage,
    SystemMessage,
    UserMessage,
    AssistantMessage,
    ToolCallMessage,
    ToolResultMessage,
    ConversationTurn,
)

__all__ = [
    "BaseMessage",
    "SystemMessage",
    "UserMessage",
    "AssistantMessage",
    "ToolCallMessage",
    "ToolResultMessage",
    "ConversationTurn",
]
