"""Gemini adapter for pure request/response transformations."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, Optional, Sequence

from google.genai import types

from genai_bridge.response import ChatResponse
from genai_bridge.tools import convert_tools_to_genai
from genai_bridge.types import ChatMessage, ToolCallRequest, ToolCallResult

_SYSTEM_ROLES = ("system", "developer")
_MODEL_ROLES = ("assistant", "model")
_TOOL_ROLES = ("tool", "function")

# Standard params copied to GenerateContentConfig, renamed where Gemini differs.
_CONFIG_KEYS: dict[str, str] = {
    "temperature": "temperature",
    "top_p": "top_p",
    "top_k": "top_k",
    "max_tokens": "max_output_tokens",
    "seed": "seed",
    "frequency_penalty": "frequency_penalty",
    "presence_penalty": "presence_penalty",
}


def _to_parts(content: Any) -> list[types.Part]:
    """Convert message content (str, list of blocks, Parts) to Gemini parts."""
    if content is None or content == "":
        return []
    if isinstance(content, str):
        return [types.Part(text=content)]
    if isinstance(content, types.Part):
        return [content]
    if isinstance(content, list):
        parts: list[types.Part] = []
        for item in content:
            if isinstance(item, Mapping) and item.get("type") == "text":
                parts.append(types.Part(text=item.get("text", "")))
            elif isinstance(item, Mapping):
                parts.append(types.Part.model_validate(dict(item)))
            else:
                parts.extend(_to_parts(item))
        return parts
    return [types.Part(text=str(content))]


def _provider_id(call_id: Optional[str], name: str) -> Optional[str]:
    # ToolCallRequest ids fall back to the function name when Gemini sent none.
    return call_id if call_id and call_id != name else None


def _function_call_part(tool_call: Mapping[str, Any]) -> types.Part:
    function = tool_call.get("function") or {}
    name = function.get("name", "")
    arguments = function.get("arguments") or {}
    if isinstance(arguments, str):
        arguments = json.loads(arguments) if arguments.strip() else {}
    return types.Part(
        function_call=types.FunctionCall(
            id=_provider_id(tool_call.get("id"), name),
            name=name,
            args=dict(arguments),
        )
    )


def _function_response_part(msg: ChatMessage, call_names: Mapping[str, str]) -> types.Part:
    call_id = msg.get("tool_call_id")
    name = msg.get("name") or call_names.get(call_id or "", "")
    if not name:
        raise ValueError(f"Cannot resolve function name for tool result {call_id!r}")

    content = msg.get("content")
    if isinstance(content, Mapping):
        response = dict(content)
    else:
        response = {"result": content if content is not None else ""}

    return types.Part(
        function_response=types.FunctionResponse(
            id=_provider_id(call_id, name),
            name=name,
            response=response,
        )
    )


def _candidate_parts(raw: types.GenerateContentResponse) -> list[types.Part]:
    if not raw.candidates:
        return []
    content = raw.candidates[0].content
    if content is None or not content.parts:
        return []
    return list(content.parts)


def _text_of(parts: Sequence[types.Part]) -> str:
    return "".join(part.text for part in parts if part.text and not part.thought)


def _tool_calls_of(parts: Sequence[types.Part]) -> list[ToolCallRequest]:
    calls: list[ToolCallRequest] = []
    for part in parts:
        fc = part.function_call
        if fc is None:
            continue
        name = fc.name or ""
        calls.append(ToolCallRequest(id=fc.id or name, name=name, arguments=dict(fc.args or {})))
    return calls


class GeminiRequestAdapter:
    """Adapter for converting between generic format and Gemini format."""

    def build_contents(
        self, messages: Sequence[ChatMessage]
    ) -> tuple[list[types.Content], Optional[types.Content]]:
        """Split *messages* into conversation contents and a system instruction."""
        contents: list[types.Content] = []
        system_parts: list[types.Part] = []
        call_names: dict[str, str] = {}  # tool_call_id -> function name

        for msg in messages:
            role = msg["role"]

            if role in _SYSTEM_ROLES:
                system_parts.extend(_to_parts(msg.get("content")))
                continue

            if role in _MODEL_ROLES:
                if msg.get("parts"):
                    # Raw model parts keep thought signatures intact
                    parts = _to_parts(list(msg["parts"]))
                else:
                    parts = _to_parts(msg.get("content"))
                    parts.extend(_function_call_part(tc) for tc in msg.get("tool_calls") or [])
                for tc in msg.get("tool_calls") or []:
                    call_names[tc.get("id", "")] = (tc.get("function") or {}).get("name", "")
                gemini_role = "model"
            elif role in _TOOL_ROLES:
                parts = [_function_response_part(msg, call_names)]
                gemini_role = "user"
            else:
                parts = _to_parts(msg.get("content"))
                gemini_role = "user"

            if not parts:
                continue

            # Gemini expects alternating turns; fold consecutive same-role turns.
            if contents and contents[-1].role == gemini_role:
                previous = contents[-1]
                contents[-1] = types.Content(role=gemini_role, parts=[*(previous.parts or []), *parts])
            else:
                contents.append(types.Content(role=gemini_role, parts=parts))

        system_instruction = types.Content(parts=system_parts) if system_parts else None
        return contents, system_instruction

    def build_config(
        self,
        params: dict[str, Any],
        system_instruction: Optional[types.Content] = None,
    ) -> Optional[types.GenerateContentConfig]:
        """Convert normalized params to a ``GenerateContentConfig``, or None if empty."""
        config: dict[str, Any] = {}

        if system_instruction is not None:
            config["system_instruction"] = system_instruction

        for key, config_key in _CONFIG_KEYS.items():
            if params.get(key) is not None:
                config[config_key] = params[key]

        stop = params.get("stop")
        if stop:
            config["stop_sequences"] = stop if isinstance(stop, list) else [stop]

        response_format = params.get("response_format") or {}
        if response_format.get("type") == "json_object":
            config["response_mime_type"] = "application/json"
        elif response_format.get("type") == "json_schema":
            config["response_mime_type"] = "application/json"
            schema = (response_format.get("json_schema") or {}).get("schema")
            if schema:
                config["response_json_schema"] = schema

        if params.get("tools"):
            converted = convert_tools_to_genai(
                params["tools"],
                tool_choice=params.get("tool_choice"),
                allowed_function_names=params.get("allowed_function_names"),
            )
            config["tools"] = converted.tools
            if converted.tool_config is not None:
                config["tool_config"] = converted.tool_config

        for k, v in (params.get("extra") or {}).items():
            config.setdefault(k, v)

        return types.GenerateContentConfig(**config) if config else None

    def to_provider(
        self, messages: Sequence[ChatMessage], params: dict[str, Any]
    ) -> dict[str, Any]:
        """Convert generic messages and params to ``generate_content`` arguments."""
        contents, system_instruction = self.build_contents(messages)
        return {
            "contents": contents,
            "config": self.build_config(params, system_instruction),
        }

    def from_provider(self, raw: types.GenerateContentResponse) -> ChatResponse:
        """Convert a Gemini response to unified ChatResponse."""
        parts = _candidate_parts(raw)
        return ChatResponse(
            content=_text_of(parts),
            tool_calls=_tool_calls_of(parts) or None,
            raw=raw,
        )

    def stream_text(self, raw_chunk: types.GenerateContentResponse) -> ChatResponse:
        """Extract content from a streaming chunk."""
        # Gemini streams whole function calls, so a chunk converts like a response.
        return self.from_provider(raw_chunk)

    def assistant_message_from(self, raw: types.GenerateContentResponse) -> ChatMessage:
        """Convert a Gemini response to an assistant ChatMessage."""
        parts = _candidate_parts(raw)
        chat_message: ChatMessage = {"role": "assistant", "content": _text_of(parts)}

        tool_calls = _tool_calls_of(parts)
        if tool_calls:
            chat_message["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {"name": tc.name, "arguments": json.dumps(tc.arguments)},
                }
                for tc in tool_calls
            ]
            chat_message["parts"] = parts

        return chat_message

    def tool_result_message(self, result: ToolCallResult) -> ChatMessage:
        """Convert ToolCallResult to a tool ChatMessage."""
        message: ChatMessage = {
            "role": "tool",
            "tool_call_id": result.id,
            "content": result.content,
        }
        if result.name:
            message["name"] = result.name
        return message
