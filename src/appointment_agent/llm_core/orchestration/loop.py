"""The tool-augmented conversation loop.

Each user turn cycles between the model and the tool dispatcher until the
model answers in plain text, the cycle budget runs out, or the transport fails.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Sequence, Union

from ..base import ModelTransport
from ..exceptions import MalformedModelResponseError, TransportError
from ..logger import get_logger
from ..messages import AssistantMessage, ToolCallMessage, ToolResultMessage, UserMessage
from ..session import ConversationSession
from ..tools.execution import TurnDispatcher
from ..tools.models import ToolCallRequest, ToolCallResult, TOOL_EXECUTION_ERROR

logger = get_logger(__name__)

DEFAULT_MAX_TOOL_CYCLES = 8
CYCLE_LIMIT_MESSAGE = "Sorry, I could not complete that request. Please try rephrasing it or ask again."

ToolCallHook = Callable[[Sequence[ToolCallRequest]], Union[None, Awaitable[None]]]


class LoopState(str, Enum):
    AWAITING_USER_INPUT = "AwaitingUserInput"
    AWAITING_MODEL_RESPONSE = "AwaitingModelResponse"
    PROCESSING_TOOL_CALLS = "ProcessingToolCalls"
    IDLE = "Idle"


@dataclass
class TurnOutcome:
    """What a single user turn produced.

    Attributes:
        reply: Text to show the user: the model's answer, the cycle-limit notice or an error message.
        error: The transport error that ended the turn, if any.
        completed: True when the model produced a final answer.
        tool_cycles: Number of tool batches executed during the turn.
        states: Every state the loop passed through, in order.
    """

    reply: str
    error: Optional[Exception] = None
    completed: bool = True
    tool_cycles: int = 0
    states: List[LoopState] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return self.error is not None


class OrchestrationLoop:
    """Drives one conversation: user text in, final model text out.

    Only the loop appends to the session. Tool implementations never see it.
    """

    def __init__(
        self,
        session: ConversationSession,
        transport: ModelTransport,
        dispatcher: TurnDispatcher,
        *,
        max_tool_cycles: int = DEFAULT_MAX_TOOL_CYCLES,
        on_tool_calls: Optional[ToolCallHook] = None,
    ) -> None:
        """Initialize the loop.

        Args:
            session: History this loop appends to.
            transport: Model provider boundary.
            dispatcher: Executes tool call batches.
            max_tool_cycles: Maximum tool batches per user turn before giving up.
            on_tool_calls: Optional callback notified before each batch is dispatched.
        """
        if max_tool_cycles < 1:
            raise ValueError("max_tool_cycles must be at least 1.")
        self.session = session
        self.transport = transport
        self.dispatcher = dispatcher
        self.max_tool_cycles = max_tool_cycles
        self._on_tool_calls = on_tool_calls
        self._state = LoopState.AWAITING_USER_INPUT
        self._trace: List[LoopState] = []

    @property
    def state(self) -> LoopState:
        return self._state

    def _enter(self, state: LoopState) -> None:
        logger.debug(f"{self._state.value} -> {state.value}")
        self._state = state
        self._trace.append(state)

    async def run_turn(self, user_text: str) -> TurnOutcome:
        """
        Process one line of user input through to a reply.

        Args:
            user_text: The user's message.

        Returns:
            The outcome of the turn. Transport failures are reported in the outcome,
            never raised.
        """
        if self._state is LoopState.IDLE:
            self._state = LoopState.AWAITING_USER_INPUT
        self._trace = [self._state]

        self.session.append(UserMessage(content=user_text))
        tool_cycles = 0

        while True:
            self._enter(LoopState.AWAITING_MODEL_RESPONSE)
            try:
                response = await self.transport.generate(self.session.history())
            except MalformedModelResponseError as exc:
                logger.error(f"Malformed model response: {exc}")
                return self._fail(exc, f"An error occurred: the model returned an unusable response ({exc})", tool_cycles)
            except TransportError as exc:
                logger.error(f"Transport error: {exc}")
                return self._fail(exc, f"An error occurred: {exc}", tool_cycles)

            if not response.has_tool_calls:
                text = response.text or ""
                self.session.append(AssistantMessage(content=text))
                self._enter(LoopState.IDLE)
                return TurnOutcome(reply=text, tool_cycles=tool_cycles, states=list(self._trace))

            if tool_cycles >= self.max_tool_cycles:
                logger.warning(f"Max tool cycles ({self.max_tool_cycles}) reached. Stopping execution.")
                self.session.append(AssistantMessage(content=CYCLE_LIMIT_MESSAGE))
                self._enter(LoopState.IDLE)
                return TurnOutcome(
                    reply=CYCLE_LIMIT_MESSAGE,
                    completed=False,
                    tool_cycles=tool_cycles,
                    states=list(self._trace),
                )

            tool_cycles += 1
            logger.info(
                f"Cycle {tool_cycles}/{self.max_tool_cycles}: Processing {len(response.tool_calls)} tool call(s)."
            )
            self.session.append(ToolCallMessage(tool_calls=response.tool_calls))
            self._enter(LoopState.PROCESSING_TOOL_CALLS)

            try:
                await self._notify(response.tool_calls)
                results = await self.dispatcher.dispatch_batch(response.tool_calls)
            except BaseException:
                # Answer the batch anyway so the history never holds orphan calls
                self.session.append(ToolResultMessage(results=_abandoned(response.tool_calls)))
                self._state = LoopState.AWAITING_USER_INPUT
                raise
            self.session.append(ToolResultMessage(results=results))

    async def _notify(self, tool_calls: Sequence[ToolCallRequest]) -> None:
        if self._on_tool_calls is None:
            return
        try:
            pending = self._on_tool_calls(tool_calls)
            if pending is not None:
                await pending
        except Exception as exc:
            logger.warning(f"Tool call hook failed, continuing with the batch: {exc}", exc_info=True)

    def _fail(self, error: Exception, reply: str, tool_cycles: int) -> TurnOutcome:
        self._enter(LoopState.AWAITING_USER_INPUT)
        return TurnOutcome(
            reply=reply,
            error=error,
            completed=False,
            tool_cycles=tool_cycles,
            states=list(self._trace),
        )


def _abandoned(tool_calls: Sequence[ToolCallRequest]) -> List[ToolCallResult]:
    return [ToolCallResult.failure(call, "Tool call was interrupted.", TOOL_EXECUTION_ERROR) for call in tool_calls]
