#!/usr/bin/env python3
"""
Basic Messages API example.

This example demonstrates building a validated request and awaiting
the complete response.

Usage:
    export ANTHROPIC_API_KEY="your-api-key"
    python examples/basic_messages.py
"""

import asyncio

from anthropic_messages import AnthropicClient, ApiError, InvalidRequestError, Message


async def main() -> None:
    """Run basic example."""
    async with AnthropicClient.from_env() as client:
        request = (
            AnthropicClient.request(
                "claude-sonnet-4-5",
                [Message.user("What is the capital of France? Answer in one word.")],
                max_tokens=64,
            )
            .system("You are a helpful geography assistant.")
            .temperature(0.0)
            .build()
        )

        response = await client.messages(request)
        print(f"Response: {response.text}")
        print(f"Stop reason: {response.stop_reason}")
        print(f"Tokens: {response.usage.input_tokens} in, {response.usage.output_tokens} out")

        # Invalid requests are rejected before anything is sent
        try:
            AnthropicClient.request("claude-sonnet-4-5", [], max_tokens=0).temperature(3).build()
        except InvalidRequestError as e:
            print("\nRejected request:")
            for problem in e.problems:
                print(f"  - {problem}")

        # API errors carry a kind and whether retrying may help
        try:
            await client.messages(
                AnthropicClient.request("no-such-model", [Message.user("Hi")], 16).build()
            )
        except ApiError as e:
            print(f"\nAPI error: {e.kind.value} (retryable: {e.retryable})")


if __name__ == "__main__":
    asyncio.run(main())
