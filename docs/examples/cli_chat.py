import asyncio
import os

from dotenv import load_dotenv

from appointment_agent import AgentConfig, build_agent
from appointment_agent.llm_core import setup_logging

# Load environment variables
load_dotenv()


async def main() -> None:
    """
    Drives a scripted conversation against OpenAI and prints every turn of the history.
    """
    print("Welcome to the scripted appointment chat (OpenAI)!")

    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        print("Error: OPENAI_API_KEY not found in environment variables.")
        return

    setup_logging("INFO")
    config = AgentConfig(provider="openai", model_name="gpt-4o-mini", api_key=api_key)
    agent = build_agent(config)

    for line in (
        "Hi, I'm in Berlin. Is tomorrow at 10am my time free?",
        "Great, please book it for Ana Lim, ana@example.com.",
    ):
        print(f"You: {line}")
        outcome = await agent.loop.run_turn(line)
        print(f"System: {outcome.reply} (tool cycles: {outcome.tool_cycles})")

    for turn in agent.session.history():
        print(f"[{turn.kind}] {turn.author}: {turn.content}")

    print(f"Booked: {agent.book.appointments}")
    agent.close()


if __name__ == "__main__":
    asyncio.run(main())
