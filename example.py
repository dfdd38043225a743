"""Example script demonstrating the planning agent.

This script registers a tool, runs the agent against an OpenAI chat model
and prints the answer and the phase events of the run.
"""

import asyncio
import logging

from dotenv import load_dotenv

from agent import EventBus, run_agent
from tooling import tool


@tool(description="Get the current weather for a city")
def get_weather(city: str) -> str:
    forecasts = {"paris": "Sunny, 22C", "london": "Rainy, 14C"}
    return forecasts.get(city.lower(), "No forecast available")


def print_event(event) -> None:
    if not event.event_type.startswith("llm:"):
        print(f"[{event.event_type}] {event.payload}")


async def main() -> None:
    """Run one agent query.

    Requires OPENAI_API_KEY in the environment or a .env file.
    """
    load_dotenv()
    logging.basicConfig(level=logging.INFO)

    events = EventBus()
    events.subscribe("*", print_event)

    response = await run_agent(
        "What's the weather like in Paris and London?",
        events=events,
    )
    print(response.output)
    print(response.metadata)


if __name__ == "__main__":
    asyncio.run(main())
