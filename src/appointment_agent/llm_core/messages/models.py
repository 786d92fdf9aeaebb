"""Provider-agnostic conversation turns.

A conversation is an append-only sequence of these turns. Every model call
replays the whole sequence, so each turn must carry everything a provider
needs to rebuild its own message format.
"""

from abc import ABC
from typing import Annotated, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from ..tools.models import ToolCallRequest, ToolCallResult


class BaseMessage(ABC, BaseModel):
    """Base model for turns exchanged with an LLM.

    Attributes:
        kind: Discriminator naming the turn variant.
        author: Role associated with the turn.
        content: Text payload of the turn (empty for tool batches).
    """

    model_config = ConfigDict(frozen=True)

    kind: str
    author: str
    content: str = ""


class SystemMessage(BaseMessage):
    """Seed turn carrying persona and tool usage instructions.

    Providers must pass this as instruction context, never as user speech.
    """

    kind: Literal["system"] = "system"
    author: str = "system"


class UserMessage(BaseMessage):
    """Message authored by an end user."""

    kind: Literal["user"] = "user"
    author: str = "user"


class AssistantMessage(BaseMessage):
    """Final natural-language reply from the model."""

    kind: Literal["model_text"] = "model_text"
    author: str = "assistant"


class ToolCallMessage(BaseMessage):
    """A batch of tool calls the model requested in one response."""

    kind: Literal["tool_call_batch"] = "tool_call_batch"
    author: str = "assistant"
    tool_calls: List[ToolCallRequest]

    @property
    def call_ids(self) -> List[str]:
        return [call.call_id for call in self.tool_calls]


class ToolResultMessage(BaseMessage):
    """The results answering one ``ToolCallMessage``, one per call."""

    kind: Literal["tool_result_batch"] = "tool_result_batch"
    author: str = "tool"
    results: List[ToolCallResult]

    @property
    def call_ids(self) -> List[str]:
        return [result.call_id for result in self.results]


ConversationTurn = Annotated[
    Union[SystemMessage, UserMessage, AssistantMessage, ToolCallMessage, ToolResultMessage],
    Field(discriminator="kind"),
]
