from __future__ import annotations

import argparse
import asyncio
import logging

from google.genai import types
from pydantic import BaseModel, Field

from genai_bridge import ChatMessage, GeminiLLM, Tool, ToolCallRequest, ToolCallResult

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


class WeatherArgs(BaseModel):
    location: str = Field(description="City and state, e.g. San Francisco, CA")
    unit: str | None = Field(default=None, description="celsius or fahrenheit")


# Framework-native tool
WEATHER_TOOL = Tool(
    name="get_weather",
    description="Get the current weather in a given location",
    args_schema=WeatherArgs,
)

# OpenAI-style function schema; additionalProperties is stripped on conversion
OPENAI_TIME_TOOL: dict[str, object] = {
    "type": "function",
    "function": {
        "name": "get_time",
        "description": "Get the current local time in a given city",
        "parameters": {
            "type": "object",
            "properties": {"city": {"type": "string"}},
            "required": ["city"],
            "additionalProperties": False,
        },
    },
}

# Native Gemini tool
CODE_EXECUTION_TOOL = types.Tool(code_execution=types.ToolCodeExecution())


def run_local_tool(req: ToolCallRequest) -> str:
    """Stub implementations of the local tools."""
    if req.name == "get_weather":
        return "15 °C, mostly cloudy"
    return "14:05"


async def single_tool_roundtrip(model: str, tool_choice: str | None) -> None:
    """
    Run a single tool-calling roundtrip.

    1) Send user prompt
    2) Let model emit tool calls
    3) Execute stub tools, re-inject calls + results
    4) Ask model to finish using tool results
    """
    tools = [WEATHER_TOOL, OPENAI_TIME_TOOL, CODE_EXECUTION_TOOL]
    params: dict[str, object] = {"tools": tools}
    if tool_choice:
        params["tool_choice"] = tool_choice

    async with GeminiLLM(model) as llm:
        messages: list[ChatMessage] = [
            {"role": "user", "content": "What's the weather and the time in San Francisco?"}
        ]

        rsp1 = await llm.chat(messages, params=params)
        calls = rsp1.tool_calls

        if not calls:
            logger.warning(f"Model answered directly: {rsp1.content}")
            return

        adapter = llm.adapter
        messages.append(adapter.assistant_message_from(rsp1.raw))
        for call in calls:
            result = ToolCallResult(call.id, run_local_tool(call), name=call.name)
            messages.append(adapter.tool_result_message(result))

        rsp2 = await llm.chat(messages, params={"tools": tools})
        logger.info("Gemini says: %s", rsp2.content)


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--model", default="gemini-2.0-flash")
    parser.add_argument("--tool-choice", default=None, help="any, auto, none or a function name")
    args = parser.parse_args()

    asyncio.run(single_tool_roundtrip(args.model, args.tool_choice))
