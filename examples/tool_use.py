#!/usr/bin/env python3
"""
Tool use example.

This example demonstrates defining a tool, executing the calls the
model requests and sending the results back.

Usage:
    export ANTHROPIC_API_KEY="your-api-key"
    python examples/tool_use.py
"""

import asyncio
import json

from anthropic_messages import (
    AnthropicClient,
    Message,
    Role,
    StopReason,
    ToolChoice,
    ToolDefinition,
)
from anthropic_messages.types import tool_result_block

MODEL = "claude-sonnet-4-5"

weather_tool = ToolDefinition.define(
    "get_weather",
    "Get the current weather in a given location",
    {
        "type": "object",
        "properties": {
            "location": {"type": "string", "description": "City and state, e.g. San Francisco, CA"},
            "unit": {"type": "string", "enum": ["celsius", "fahrenheit"]},
        },
        "required": ["location"],
    },
)


def get_weather(location: str, unit: str = "celsius") -> dict:
    """Pretend weather lookup."""
    return {"location": location, "temperature": 18, "unit": unit, "conditions": "fog"}


async def main() -> None:
    """Run tool use example."""
    history = [Message.user("What's the weather like in San Francisco?")]

    async with AnthropicClient.from_env() as client:
        while True:
            request = (
                AnthropicClient.request(MODEL, history, max_tokens=1024)
                .tools([weather_tool])
                .tool_choice(ToolChoice.auto())
                .build()
            )
            # Streamed so tool input arrives incrementally; the final
            # message carries the parsed input
            async with client.messages_stream(request) as stream:
                response = await stream.final_message()

            history.append(response.to_message())
            if response.stop_reason != StopReason.TOOL_USE:
                break

            results = []
            for call in response.tool_uses:
                print(f"Tool call: {call.name}({json.dumps(call.input)})")
                output = get_weather(**call.input)
                results.append(tool_result_block(call.id, json.dumps(output)))
            history.append(Message.with_content(Role.USER, results))

        print(f"\nAnswer: {response.text}")


if __name__ == "__main__":
    asyncio.run(main())
