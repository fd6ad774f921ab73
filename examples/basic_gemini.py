"""Basic Gemini chat example demonstrating the unified genai-bridge interface."""

import asyncio

from google import genai

from genai_bridge import GeminiLLM, get_api_key


async def basic_gemini_example():
    """Simple chat example using the default client."""
    print("=== Basic Gemini Chat Example ===")

    async with GeminiLLM("gemini-2.0-flash-lite") as llm:
        messages = [
            {"role": "system", "content": "You are a helpful assistant."},
            {"role": "user", "content": "What is the capital of Italy?"},
        ]

        response = await llm.chat(messages, params={"max_tokens": 150, "temperature": 0.7})

        if response.is_error:
            print(f"Error: {response.error}")
        else:
            print(f"Gemini: {response.content}")
            print(f"Usage: {response.raw.usage_metadata}")


async def custom_gemini_client_example():
    """Chat example using a pre-configured genai.Client."""
    print("\n=== Custom Gemini Client Example ===")

    client = genai.Client(
        api_key=get_api_key(),
        http_options=genai.types.HttpOptions(timeout=30_000),
    )

    async with GeminiLLM.from_client("gemini-2.0-flash", client) as llm:
        response = await llm.chat(
            [{"role": "user", "content": "What is the capital of Spain?"}],
            params={"max_tokens": 200, "temperature": 0.3},
        )
        print(f"Gemini: {response.content}" if not response.is_error else f"Error: {response.error}")


async def streaming_gemini_example():
    """Demonstrate streaming responses."""
    print("\n=== Streaming Gemini Example ===")

    async with GeminiLLM("gemini-2.0-flash-lite") as llm:
        messages = [{"role": "user", "content": "Write a short poem about coding."}]

        async for chunk in llm.stream(messages, params={"temperature": 0.8}):
            if not chunk.is_error:
                print(chunk.content, end="", flush=True)
        print()


async def main():
    await basic_gemini_example()
    await custom_gemini_client_example()
    await streaming_gemini_example()


if __name__ == "__main__":
    asyncio.run(main())
