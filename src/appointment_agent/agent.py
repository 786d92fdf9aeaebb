"""Assemble a ready-to-chat agent from settings."""

from dataclasses import dataclass
from typing import Optional

from google import genai
from openai import AsyncOpenAI

from .config import AgentConfig
from .llm_core import (
    ConversationSession,
    ModelTransport,
    OrchestrationLoop,
    ToolExecutor,
    ToolRegistry,
    TurnDispatcher,
    get_logger,
)
from .llm_core.orchestration.loop import ToolCallHook
from .llm_impl import GeminiToolRegistry, GeminiTransport, OpenAIToolRegistry, OpenAITransport
from .scheduling import AppointmentBook, build_system_prompt, register_appointment_tools

logger = get_logger(__name__)


@dataclass
class Agent:
    """One user session: its history, the loop driving it and the tools behind it."""

    config: AgentConfig
    session: ConversationSession
    loop: OrchestrationLoop
    book: AppointmentBook

    def close(self) -> None:
        self.session.close()


def build_registry(config: AgentConfig, book: AppointmentBook) -> ToolRegistry:
    registry: ToolRegistry = GeminiToolRegistry() if config.provider == "gemini" else OpenAIToolRegistry()
    return register_appointment_tools(registry, book)


def build_transport(config: AgentConfig, registry: ToolRegistry) -> ModelTransport:
    """Create the provider transport named by ``config.provider``."""
    if config.provider == "gemini":
        aclient = genai.Client(api_key=config.api_key).aio
        return GeminiTransport(
            aclient,
            config.model_name,
            registry=registry,  # type: ignore[arg-type]
            temp=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.transport_timeout,
        )
    client = AsyncOpenAI(api_key=config.api_key, base_url=config.base_url)
    return OpenAITransport(
        client,
        config.model_name,
        registry=registry,  # type: ignore[arg-type]
        temp=config.temperature,
        max_tokens=config.max_tokens,
        timeout=config.transport_timeout,
    )


def build_agent(
    config: AgentConfig,
    *,
    book: Optional[AppointmentBook] = None,
    registry: Optional[ToolRegistry] = None,
    transport: Optional[ModelTransport] = None,
    on_tool_calls: Optional[ToolCallHook] = None,
) -> Agent:
    """Wire a fresh session, registry, dispatcher and loop.

    Args:
        config: Agent settings.
        book: Appointment storage; a new empty book by default.
        registry: Registry to execute tools from; built for the provider with the book's tools by default.
        transport: Use this transport instead of building one from ``config``.
        on_tool_calls: Callback notified before each tool batch runs.
    """
    book = book if book is not None else AppointmentBook()
    if registry is None:
        registry = build_registry(config, book)
    if transport is None:
        transport = build_transport(config, registry)

    session = ConversationSession(build_system_prompt(config.owner_timezone))
    executor = ToolExecutor(registry, tool_timeout=config.tool_timeout)
    loop = OrchestrationLoop(
        session,
        transport,
        TurnDispatcher(executor),
        max_tool_cycles=config.max_tool_cycles,
        on_tool_calls=on_tool_calls,
    )
    logger.info(f"Agent ready: provider={config.provider}, model={config.model_name}, tools={registry.names}")
    return Agent(config=config, session=session, loop=loop, book=book)
