from typing import Any, Callable, List, Sequence, Tuple, Union

import pytest

from appointment_agent.llm_core import (
    BaseMessage,
    ConversationSession,
    ModelResponse,
    ModelTransport,
    OrchestrationLoop,
    ToolCallRequest,
    ToolExecutor,
    ToolRegistry,
    TurnDispatcher,
)
from appointment_agent.scheduling import AppointmentBook, register_appointment_tools

Step = Union[ModelResponse, BaseException, Callable[[Sequence[BaseMessage]], ModelResponse]]


# Concrete registry for testing base class functionality
# Named to avoid PytestCollectionWarning
class ConcreteTestRegistry(ToolRegistry):
    @property
    def tool_object(self) -> Any:
        return None


class ScriptedTransport(ModelTransport[Any]):
    """Plays back a fixed list of model responses and records every history it was sent."""

    def __init__(self, script: Sequence[Step], timeout: float = 5.0) -> None:
        super().__init__(registry=None, timeout=timeout)
        self._script: List[Step] = list(script)
        self.calls: List[Tuple[BaseMessage, ...]] = []

    async def _generate_impl(self, history: Sequence[BaseMessage]) -> ModelResponse:
        self.calls.append(tuple(history))
        if not self._script:
            raise AssertionError("ScriptedTransport ran out of responses.")
        step = self._script.pop(0)
        if isinstance(step, BaseException):
            raise step
        if callable(step):
            return step(history)
        return step


def text(reply: str) -> ModelResponse:
    return ModelResponse(text=reply)


def calls(*requests: ToolCallRequest) -> ModelResponse:
    return ModelResponse(tool_calls=list(requests))


@pytest.fixture
def registry() -> ConcreteTestRegistry:
    return ConcreteTestRegistry()


@pytest.fixture
def book() -> AppointmentBook:
    return AppointmentBook()


@pytest.fixture
def appointment_registry(book: AppointmentBook) -> ConcreteTestRegistry:
    registry = ConcreteTestRegistry()
    register_appointment_tools(registry, book)
    return registry


@pytest.fixture
def make_loop(appointment_registry: ConcreteTestRegistry) -> Callable[..., OrchestrationLoop]:
    def _make(script: Sequence[Step], max_tool_cycles: int = 8, registry: ToolRegistry | None = None) -> OrchestrationLoop:
        session = ConversationSession("You are an appointment scheduler AI agent.")
        executor = ToolExecutor(registry or appointment_registry, tool_timeout=5.0)
        return OrchestrationLoop(
            session,
            ScriptedTransport(script),
            TurnDispatcher(executor),
            max_tool_cycles=max_tool_cycles,
        )

    return _make
