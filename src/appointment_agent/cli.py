"""Terminal chat front end: one line of input per turn, ``quit`` to leave."""

import asyncio
import sys
from typing import Awaitable, Callable, Sequence

from .agent import Agent, build_agent
from .config import AgentConfig
from .llm_core import ConfigurationError, ToolCallRequest, setup_logging
from .scheduling import FAREWELL, GREETING

InputFunc = Callable[[str], Awaitable[str]]
OutputFunc = Callable[[str], None]


async def _read_line(prompt: str) -> str:
    return await asyncio.to_thread(input, prompt)


def announce_tool_calls(output: OutputFunc) -> Callable[[Sequence[ToolCallRequest]], None]:
    def _announce(tool_calls: Sequence[ToolCallRequest]) -> None:
        names = ", ".join(call.name for call in tool_calls)
        output(f"System: (Thinking... received function call request for {names})")

    return _announce


async def chat(agent: Agent, read_line: InputFunc = _read_line, output: OutputFunc = print) -> None:
    """
    Run the conversation until the quit command or end of input.

    Args:
        agent: The agent to talk to.
        read_line: Coroutine returning one line of user input.
        output: Sink for everything shown to the user.
    """
    quit_command = agent.config.quit_command.lower()
    output(f"System: {GREETING}")
    try:
        while True:
            try:
                user_input = (await read_line("You: ")).strip()
            except EOFError:
                break

            if user_input.lower() == quit_command:
                break
            if not user_input:
                continue

            outcome = await agent.loop.run_turn(user_input)
            output(f"System: {outcome.reply}")
    finally:
        output(f"System: {FAREWELL}")
        agent.close()


async def main() -> int:
    """
    Main function to run the appointment agent in a terminal.
    """
    try:
        config = AgentConfig.from_env()
    except ConfigurationError as e:
        print(f"CRITICAL: {e}", file=sys.stderr)
        return 1

    setup_logging(config.log_level)
    print(f"Appointment Scheduler AI Agent (using {config.provider})")
    print(f"Type '{config.quit_command}' to exit.")

    agent = build_agent(config, on_tool_calls=announce_tool_calls(print))
    await chat(agent)
    return 0


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print(f"\nSystem: {FAREWELL}")
        sys.exit(130)


if __name__ == "__main__":
    run()
