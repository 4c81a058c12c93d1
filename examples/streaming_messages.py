#!/usr/bin/env python3
"""
Streaming response example.

This example demonstrates how to stream text as it arrives, inspect
the typed events and stop a stream early.

Usage:
    export ANTHROPIC_API_KEY="your-api-key"
    python examples/streaming_messages.py
"""

import asyncio

from anthropic_messages import AnthropicClient, IncompleteStreamError, Message
from anthropic_messages.telemetry import LogLevel, MessagesLogger
from anthropic_messages.types import ContentBlockStartEvent, MessageDeltaEvent


async def main() -> None:
    """Run streaming example."""
    MessagesLogger.configure(level=LogLevel.INFO, format="text")

    async with AnthropicClient.from_env() as client:
        request = (
            AnthropicClient.request(
                "claude-sonnet-4-5",
                [Message.user("Tell me a very short story about a robot learning to paint.")],
                max_tokens=500,
            )
            .system("You are a creative storyteller.")
            .build()
        )

        print("Streaming response:\n")
        print("-" * 50)

        async with client.messages_stream(request) as stream:
            async for text in stream.text_stream():
                print(text, end="", flush=True)
            message = await stream.final_message()

        print("\n" + "-" * 50)
        print(f"[Stream ended: {message.stop_reason}, {message.usage.output_tokens} tokens]")

        # Typed events
        print("\nEvents:")
        async with client.messages_stream(request) as stream:
            async for event in stream:
                if isinstance(event, ContentBlockStartEvent):
                    print(f"  block {event.index} started ({event.content_block.type})")
                elif isinstance(event, MessageDeltaEvent):
                    print(f"  stop reason: {event.delta.stop_reason}")

        # Stop after the first few fragments
        print("\nCancelled stream:")
        stream = client.messages_stream(request)
        received = 0
        async for text in stream.text_stream():
            print(text, end="", flush=True)
            received += 1
            if received == 5:
                await stream.cancel()
        print(f"\n  partial text: {stream.snapshot().text!r}")
        try:
            await stream.final_message()
        except IncompleteStreamError as e:
            print(f"  no final message: {e.message}")


if __name__ == "__main__":
    asyncio.run(main())
