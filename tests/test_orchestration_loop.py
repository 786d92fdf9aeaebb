import asyncio
from typing import Annotated, Any, Callable, List, Sequence

import pytest
from pydantic import Field

from appointment_agent.llm_core import (
    AssistantMessage,
    BaseMessage,
    ConversationSession,
    LoopState,
    MalformedModelResponseError,
    OrchestrationLoop,
    SystemMessage,
    ToolCallMessage,
    ToolCallRequest,
    ToolExecutor,
    ToolResultMessage,
    TransportError,
    TurnDispatcher,
    UserMessage,
)
from appointment_agent.llm_core.orchestration import CYCLE_LIMIT_MESSAGE
from appointment_agent.scheduling import AppointmentBook, register_appointment_tools
from conftest import ConcreteTestRegistry, ScriptedTransport, calls, text


def kinds(history: Sequence[BaseMessage]) -> List[str]:
    return [turn.kind for turn in history]


@pytest.mark.asyncio
async def test_plain_text_reply(make_loop: Callable[..., OrchestrationLoop]) -> None:
    loop = make_loop([text("Hello! When would you like to meet?")])

    outcome = await loop.run_turn("Hi")

    assert outcome.reply == "Hello! When would you like to meet?"
    assert outcome.completed
    assert not outcome.failed
    assert outcome.tool_cycles == 0
    assert outcome.states == [LoopState.AWAITING_USER_INPUT, LoopState.AWAITING_MODEL_RESPONSE, LoopState.IDLE]
    assert loop.state is LoopState.IDLE
    assert kinds(loop.session.history()) == ["system", "user", "model_text"]


@pytest.mark.asyncio
async def test_availability_check_round_trip(make_loop: Callable[..., OrchestrationLoop]) -> None:
    request = ToolCallRequest(name="check_appointment_availability", arguments={"datetime": "2024-07-15T15:00:00Z"})
    loop = make_loop([calls(request), text("Yes, 3pm UTC on July 15 is free.")])

    outcome = await loop.run_turn("Is 3pm UTC on 2024-07-15 free?")

    assert outcome.reply == "Yes, 3pm UTC on July 15 is free."
    assert outcome.tool_cycles == 1
    assert outcome.states == [
        LoopState.AWAITING_USER_INPUT,
        LoopState.AWAITING_MODEL_RESPONSE,
        LoopState.PROCESSING_TOOL_CALLS,
        LoopState.AWAITING_MODEL_RESPONSE,
        LoopState.IDLE,
    ]

    history = loop.session.history()
    assert kinds(history) == ["system", "user", "tool_call_batch", "tool_result_batch", "model_text"]
    result_turn = history[3]
    assert isinstance(result_turn, ToolResultMessage)
    [result] = result_turn.results
    assert result.ok
    assert result.payload is True
    assert result.call_id == request.call_id
    assert result.response == {"name": "check_appointment_availability", "content": True}


@pytest.mark.asyncio
async def test_full_history_is_replayed_each_cycle(make_loop: Callable[..., OrchestrationLoop]) -> None:
    request = ToolCallRequest(name="check_appointment_availability", arguments={"datetime": "2024-07-15T15:00:00Z"})
    loop = make_loop([calls(request), text("Free.")])

    await loop.run_turn("Is it free?")

    transport = loop.transport
    assert isinstance(transport, ScriptedTransport)
    first, second = transport.calls
    assert kinds(first) == ["system", "user"]
    assert kinds(second) == ["system", "user", "tool_call_batch", "tool_result_batch"]
    assert isinstance(second[0], SystemMessage)


@pytest.mark.asyncio
async def test_partial_failure_in_batch_still_answers_every_call() -> None:
    registry = ConcreteTestRegistry()

    @registry.tool
    def check_appointment_availability(
        datetime: Annotated[str, Field(description="ISO 8601 UTC datetime")],
    ) -> bool:
        """Checks availability."""
        return True

    @registry.tool
    async def send_reminder(email: Annotated[str, Field(description="Recipient")]) -> str:
        """Sends a reminder."""
        raise RuntimeError("mail server unreachable")

    ok_call = ToolCallRequest(name="check_appointment_availability", arguments={"datetime": "2024-07-15T15:00:00Z"})
    bad_call = ToolCallRequest(name="send_reminder", arguments={"email": "ada@example.com"})

    def answer(history: Sequence[BaseMessage]) -> Any:
        last = history[-1]
        assert isinstance(last, ToolResultMessage)
        assert sorted(r.call_id for r in last.results) == sorted([ok_call.call_id, bad_call.call_id])
        return text("The slot is free, but I could not send the reminder.")

    session = ConversationSession("system")
    loop = OrchestrationLoop(
        session,
        ScriptedTransport([calls(ok_call, bad_call), answer]),
        TurnDispatcher(ToolExecutor(registry)),
    )

    outcome = await loop.run_turn("Check 3pm and remind me")

    assert outcome.completed
    result_turn = session.history()[3]
    assert isinstance(result_turn, ToolResultMessage)
    by_name = {r.name: r for r in result_turn.results}
    assert by_name["check_appointment_availability"].ok
    assert not by_name["send_reminder"].ok
    assert by_name["send_reminder"].error_type == "ToolExecutionError"
    assert "mail server unreachable" in (by_name["send_reminder"].error or "")


@pytest.mark.asyncio
async def test_unknown_tool_is_reported_to_the_model(make_loop: Callable[..., OrchestrationLoop]) -> None:
    request = ToolCallRequest(name="cancel_everything", arguments={})
    loop = make_loop([calls(request), text("I can't do that, sorry.")])

    outcome = await loop.run_turn("Cancel everything")

    assert outcome.completed
    result_turn = loop.session.history()[3]
    assert isinstance(result_turn, ToolResultMessage)
    assert result_turn.results[0].error_type == "UnknownTool"


@pytest.mark.asyncio
async def test_transport_error_is_user_visible_and_resets(make_loop: Callable[..., OrchestrationLoop]) -> None:
    loop = make_loop([ConnectionError("network down")])

    outcome = await loop.run_turn("Hello")

    assert outcome.failed
    assert isinstance(outcome.error, TransportError)
    assert "network down" in outcome.reply
    assert loop.state is LoopState.AWAITING_USER_INPUT
    assert outcome.states[-1] is LoopState.AWAITING_USER_INPUT
    assert kinds(loop.session.history()) == ["system", "user"]


@pytest.mark.asyncio
async def test_transport_error_after_tool_batch_leaves_no_orphan_calls(
    make_loop: Callable[..., OrchestrationLoop],
) -> None:
    request = ToolCallRequest(name="check_appointment_availability", arguments={"datetime": "2024-07-15T15:00:00Z"})
    loop = make_loop([calls(request), TransportError("provider returned 503"), text("Welcome back.")])

    outcome = await loop.run_turn("Is 3pm free?")

    assert outcome.failed
    assert kinds(loop.session.history()) == ["system", "user", "tool_call_batch", "tool_result_batch"]
    assert loop.session.pending_tool_calls is None

    # The session stays usable for the next user turn
    follow_up = await loop.run_turn("Are you there?")
    assert follow_up.reply == "Welcome back."
    assert kinds(loop.session.history())[-2:] == ["user", "model_text"]


@pytest.mark.asyncio
async def test_malformed_response_ends_the_turn(make_loop: Callable[..., OrchestrationLoop]) -> None:
    loop = make_loop([MalformedModelResponseError("empty candidate")])

    outcome = await loop.run_turn("Hello")

    assert isinstance(outcome.error, MalformedModelResponseError)
    assert "unusable response" in outcome.reply
    assert loop.state is LoopState.AWAITING_USER_INPUT


@pytest.mark.asyncio
async def test_tool_cycles_are_bounded(make_loop: Callable[..., OrchestrationLoop]) -> None:
    def again() -> Any:
        return calls(
            ToolCallRequest(name="check_appointment_availability", arguments={"datetime": "2024-07-15T15:00:00Z"})
        )

    loop = make_loop([again(), again(), again()], max_tool_cycles=2)

    outcome = await loop.run_turn("Keep checking")

    assert not outcome.completed
    assert not outcome.failed
    assert outcome.reply == CYCLE_LIMIT_MESSAGE
    assert outcome.tool_cycles == 2
    assert loop.state is LoopState.IDLE
    assert kinds(loop.session.history()) == [
        "system",
        "user",
        "tool_call_batch",
        "tool_result_batch",
        "tool_call_batch",
        "tool_result_batch",
        "model_text",
    ]
    last = loop.session.last_turn
    assert isinstance(last, AssistantMessage)
    assert last.content == CYCLE_LIMIT_MESSAGE


@pytest.mark.asyncio
async def test_history_grows_by_one_turn_per_appending_transition(
    make_loop: Callable[..., OrchestrationLoop],
) -> None:
    request = ToolCallRequest(name="check_appointment_availability", arguments={"datetime": "2024-07-15T15:00:00Z"})
    loop = make_loop([text("Hi!"), calls(request), text("Free.")])

    await loop.run_turn("Hello")
    assert len(loop.session) == 3
    await loop.run_turn("Is 3pm free?")
    assert len(loop.session) == 3 + 4


@pytest.mark.asyncio
async def test_replay_produces_identical_history_shape(
    make_loop: Callable[..., OrchestrationLoop],
) -> None:
    def script() -> List[Any]:
        return [
            calls(ToolCallRequest(name="check_appointment_availability", arguments={"datetime": "2024-07-15T10:00:00Z"})),
            text("It's free. What's your name and email?"),
            calls(
                ToolCallRequest(
                    name="schedule_appointment",
                    arguments={"datetime": "2024-07-15T10:00:00Z", "name": "Ada", "email": "ada@example.com"},
                )
            ),
            text("Booked!"),
        ]

    shapes = []
    for _ in range(2):
        registry = register_appointment_tools(ConcreteTestRegistry(), AppointmentBook())
        loop = make_loop(script(), registry=registry)
        await loop.run_turn("Is 10am UTC on July 15 free?")
        await loop.run_turn("Ada, ada@example.com")
        shapes.append(kinds(loop.session.history()))

    assert shapes[0] == shapes[1]
    assert shapes[0] == [
        "system",
        "user",
        "tool_call_batch",
        "tool_result_batch",
        "model_text",
        "user",
        "tool_call_batch",
        "tool_result_batch",
        "model_text",
    ]


@pytest.mark.asyncio
async def test_on_tool_calls_hook_is_notified(appointment_registry: ConcreteTestRegistry) -> None:
    seen: List[List[str]] = []

    async def hook(tool_calls: Sequence[ToolCallRequest]) -> None:
        seen.append([c.name for c in tool_calls])

    request = ToolCallRequest(name="check_appointment_availability", arguments={"datetime": "2024-07-15T15:00:00Z"})
    loop = OrchestrationLoop(
        ConversationSession("system"),
        ScriptedTransport([calls(request), text("Free.")]),
        TurnDispatcher(ToolExecutor(appointment_registry)),
        on_tool_calls=hook,
    )

    await loop.run_turn("Is 3pm free?")

    assert seen == [["check_appointment_availability"]]


@pytest.mark.asyncio
async def test_failing_hook_does_not_orphan_the_batch(appointment_registry: ConcreteTestRegistry) -> None:
    def hook(tool_calls: Sequence[ToolCallRequest]) -> None:
        raise BrokenPipeError("stdout closed")

    request = ToolCallRequest(name="check_appointment_availability", arguments={"datetime": "2024-07-15T15:00:00Z"})
    session = ConversationSession("system")
    loop = OrchestrationLoop(
        session,
        ScriptedTransport([calls(request), text("Free."), text("You're welcome.")]),
        TurnDispatcher(ToolExecutor(appointment_registry)),
        on_tool_calls=hook,
    )

    first = await loop.run_turn("Is 3pm free?")
    second = await loop.run_turn("Thanks!")

    assert first.reply == "Free."
    assert first.tool_cycles == 1
    assert second.reply == "You're welcome."
    assert loop.state is LoopState.IDLE
    assert session.pending_tool_calls is None
    assert kinds(session.history()) == [
        "system",
        "user",
        "tool_call_batch",
        "tool_result_batch",
        "model_text",
        "user",
        "model_text",
    ]
    results = session.history()[3].results
    assert results[0].ok and results[0].payload is True


@pytest.mark.asyncio
async def test_cancelled_dispatch_still_answers_the_batch(appointment_registry: ConcreteTestRegistry) -> None:
    class CancellingDispatcher(TurnDispatcher):
        async def dispatch_batch(self, requests: Sequence[ToolCallRequest]) -> Any:
            raise asyncio.CancelledError()

    request = ToolCallRequest(name="check_appointment_availability", arguments={"datetime": "2024-07-15T15:00:00Z"})
    session = ConversationSession("system")
    loop = OrchestrationLoop(
        session,
        ScriptedTransport([calls(request)]),
        CancellingDispatcher(ToolExecutor(appointment_registry)),
    )

    with pytest.raises(asyncio.CancelledError):
        await loop.run_turn("Is 3pm free?")

    assert session.pending_tool_calls is None
    last = session.last_turn
    assert isinstance(last, ToolResultMessage)
    assert not last.results[0].ok
    session.append(UserMessage(content="still here?"))


def test_max_tool_cycles_must_be_positive(appointment_registry: ConcreteTestRegistry) -> None:
    with pytest.raises(ValueError):
        OrchestrationLoop(
            ConversationSession("system"),
            ScriptedTransport([]),
            TurnDispatcher(ToolExecutor(appointment_registry)),
            max_tool_cycles=0,
        )


@pytest.mark.asyncio
async def test_tool_call_batch_turn_keeps_requests(make_loop: Callable[..., OrchestrationLoop]) -> None:
    first = ToolCallRequest(name="check_appointment_availability", arguments={"datetime": "2024-07-15T10:00:00Z"})
    second = ToolCallRequest(name="check_appointment_availability", arguments={"datetime": "2024-07-15T11:00:00Z"})
    loop = make_loop([calls(first, second), text("Both are free.")])

    await loop.run_turn("Are 10 and 11 free?")

    call_turn = loop.session.history()[2]
    assert isinstance(call_turn, ToolCallMessage)
    assert call_turn.call_ids == [first.call_id, second.call_id]
    result_turn = loop.session.history()[3]
    assert isinstance(result_turn, ToolResultMessage)
    # Same tool twice in one batch: results stay distinct by call id
    assert sorted(result_turn.call_ids) == sorted([first.call_id, second.call_id])
