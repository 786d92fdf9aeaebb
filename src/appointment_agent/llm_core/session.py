"""Conversation session owning the ordered turn history."""

from __future__ import annotations

from typing import List, Optional, Tuple

from .exceptions import ConversationStateError
from .logger import get_logger
from .messages import BaseMessage, SystemMessage, ToolCallMessage, ToolResultMessage

logger = get_logger(__name__)


class ConversationSession:
    """Append-only history of one user session.

    The session is seeded with a single ``SystemMessage`` and enforces the pairing rule
    for tool batches: a ``ToolCallMessage`` must be answered by exactly one
    ``ToolResultMessage`` covering its call ids before anything else is appended.
    """

    def __init__(self, system_prompt: str) -> None:
        self._turns: List[BaseMessage] = [SystemMessage(content=system_prompt)]
        self._closed = False

    def append(self, turn: BaseMessage) -> None:
        """Append a turn.

        Raises:
            ConversationStateError: If the session is closed or the turn breaks the
                tool call/result pairing.
        """
        if self._closed:
            raise ConversationStateError("Cannot append to a closed conversation session.")
        if isinstance(turn, SystemMessage):
            raise ConversationStateError("A session holds exactly one system turn, set at creation.")

        pending = self.pending_tool_calls
        if pending is not None:
            if not isinstance(turn, ToolResultMessage):
                raise ConversationStateError(
                    f"Tool calls {pending.call_ids} must be answered before appending a '{turn.kind}' turn."
                )
            if sorted(turn.call_ids) != sorted(pending.call_ids):
                raise ConversationStateError(
                    f"Tool results {turn.call_ids} do not match the requested calls {pending.call_ids}."
                )
        elif isinstance(turn, ToolResultMessage):
            raise ConversationStateError("Tool results appended without a preceding tool call batch.")

        self._turns.append(turn)
        logger.debug(f"Appended '{turn.kind}' turn. History length: {len(self._turns)}.")

    def history(self) -> Tuple[BaseMessage, ...]:
        """Return a read-only snapshot of the turns, oldest first."""
        return tuple(self._turns)

    @property
    def last_turn(self) -> BaseMessage:
        return self._turns[-1]

    @property
    def pending_tool_calls(self) -> Optional[ToolCallMessage]:
        """The trailing tool call batch still waiting for its results, if any."""
        last = self._turns[-1] if self._turns else None
        return last if isinstance(last, ToolCallMessage) else None

    @property
    def system_prompt(self) -> str:
        return self._turns[0].content if self._turns else ""

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Discard the history. The session cannot be used afterwards."""
        self._turns.clear()
        self._closed = True
        logger.debug("Conversation session closed.")

    def __len__(self) -> int:
        return len(self._turns)

    def __enter__(self) -> "ConversationSession":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
