import asyncio
from typing import Annotated
from unittest.mock import AsyncMock, MagicMock

import pytest
from google.genai import types
from pydantic import Field

from appointment_agent.llm_core import (
    AssistantMessage,
    MalformedModelResponseError,
    SystemMessage,
    ToolCallMessage,
    ToolCallRequest,
    ToolCallResult,
    ToolResultMessage,
    TransportError,
    UserMessage,
)
from appointment_agent.llm_impl import GeminiToolRegistry, GeminiTransport


def _response(*parts: types.Part) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))]
    )


def _client(response=None, side_effect=None) -> MagicMock:
    client = MagicMock()
    client.models.generate_content = AsyncMock(return_value=response, side_effect=side_effect)
    return client


@pytest.fixture
def gemini_registry() -> GeminiToolRegistry:
    registry = GeminiToolRegistry()

    @registry.tool
    def check_appointment_availability(
        datetime: Annotated[str, Field(description="ISO 8601 UTC start time")],
    ) -> bool:
        """Checks whether a slot is free."""
        return True

    return registry


def test_init_offers_registered_tools(gemini_registry: GeminiToolRegistry) -> None:
    transport = GeminiTransport(_client(), "gemini-test", registry=gemini_registry, temp=0.2, max_tokens=100)

    assert transport.config.temperature == 0.2
    assert transport.config.max_output_tokens == 100
    assert transport.config.tools is not None
    assert transport.config.automatic_function_calling.disable is True
    assert len(transport.config.safety_settings) == 4


def test_init_without_tools() -> None:
    transport = GeminiTransport(_client(), "gemini-test")
    assert transport.config.tools is None


def test_convert_history_maps_every_turn_kind() -> None:
    provider_call = ToolCallRequest(name="check_appointment_availability", arguments={"datetime": "x"}, call_id="fc-1")
    local_call = ToolCallRequest(name="schedule_appointment", arguments='{"name": "Ana"}')
    history = [
        SystemMessage(content="You schedule appointments."),
        UserMessage(content="Book me in"),
        ToolCallMessage(tool_calls=[provider_call, local_call]),
        ToolResultMessage(
            results=[
                ToolCallResult.success(provider_call, True),
                ToolCallResult.failure(local_call, "Slot taken", "ToolExecutionError"),
            ]
        ),
        AssistantMessage(content="Done."),
    ]

    instruction, contents = GeminiTransport._convert_history(history)

    assert instruction == "You schedule appointments."
    assert [c.role for c in contents] == ["user", "model", "user", "model"]

    call_parts = contents[1].parts
    assert call_parts[0].function_call.id == "fc-1"
    assert call_parts[0].function_call.args == {"datetime": "x"}
    assert call_parts[1].function_call.id is None
    assert call_parts[1].function_call.args == {"name": "Ana"}

    result_parts = contents[2].parts
    assert result_parts[0].function_response.response == {"name": "check_appointment_availability", "content": True}
    assert result_parts[1].function_response.response == {"name": "schedule_appointment", "error": "Slot taken"}
    assert result_parts[1].function_response.id is None
    assert contents[3].parts[0].text == "Done."


def test_parse_response_text() -> None:
    parsed = GeminiTransport._parse_response(_response(types.Part(text="Hello "), types.Part(text="there")))

    assert parsed.text == "Hello there"
    assert not parsed.has_tool_calls


def test_parse_response_skips_thoughts() -> None:
    parsed = GeminiTransport._parse_response(
        _response(types.Part(text="thinking...", thought=True), types.Part(text="Answer"))
    )
    assert parsed.text == "Answer"


def test_parse_response_function_calls() -> None:
    parsed = GeminiTransport._parse_response(
        _response(
            types.Part(function_call=types.FunctionCall(name="a", args={"x": 1}, id="fc-9")),
            types.Part(function_call=types.FunctionCall(name="a", args={"x": 2})),
        )
    )

    assert [c.name for c in parsed.tool_calls] == ["a", "a"]
    assert parsed.tool_calls[0].call_id == "fc-9"
    assert parsed.tool_calls[1].call_id.startswith("local_")
    assert parsed.tool_calls[1].arguments == {"x": 2}


def test_parse_response_prefers_tool_calls_over_text() -> None:
    parsed = GeminiTransport._parse_response(
        _response(types.Part(text="Let me check."), types.Part(function_call=types.FunctionCall(name="a", args={})))
    )
    assert parsed.text is None
    assert len(parsed.tool_calls) == 1


def test_parse_response_without_candidates_is_malformed() -> None:
    with pytest.raises(MalformedModelResponseError, match="no candidates"):
        GeminiTransport._parse_response(types.GenerateContentResponse(candidates=[]))


def test_parse_response_empty_content_is_malformed() -> None:
    with pytest.raises(MalformedModelResponseError):
        GeminiTransport._parse_response(_response())


@pytest.mark.asyncio
async def test_generate_sends_full_history_with_system_instruction() -> None:
    client = _client(response=_response(types.Part(text="Hi!")))
    transport = GeminiTransport(client, "gemini-test")

    result = await transport.generate([SystemMessage(content="Persona"), UserMessage(content="Hello")])

    assert result.text == "Hi!"
    kwargs = client.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "gemini-test"
    assert kwargs["config"].system_instruction == "Persona"
    assert len(kwargs["contents"]) == 1
    assert transport.config.system_instruction is None


@pytest.mark.asyncio
async def test_generate_wraps_provider_errors() -> None:
    transport = GeminiTransport(_client(side_effect=RuntimeError("503 unavailable")), "gemini-test")

    with pytest.raises(TransportError, match="503 unavailable"):
        await transport.generate([UserMessage(content="Hello")])


@pytest.mark.asyncio
async def test_generate_times_out() -> None:
    async def slow(**kwargs):
        await asyncio.sleep(1)

    client = MagicMock()
    client.models.generate_content = slow
    transport = GeminiTransport(client, "gemini-test", timeout=0.01)

    with pytest.raises(TransportError, match="did not answer"):
        await transport.generate([UserMessage(content="Hello")])


@pytest.mark.asyncio
async def test_generate_keeps_malformed_error_type() -> None:
    transport = GeminiTransport(_client(response=types.GenerateContentResponse(candidates=[])), "gemini-test")

    with pytest.raises(MalformedModelResponseError):
        await transport.generate([UserMessage(content="Hello")])
