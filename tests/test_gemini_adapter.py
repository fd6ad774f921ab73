"""Tests for the Gemini request adapter."""

import json

import pytest
from google.genai import types

from genai_bridge.adapters.gemini import GeminiRequestAdapter
from genai_bridge.params import normalize_params
from genai_bridge.types import ToolCallResult


def _model_response(*parts: types.Part) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[types.Candidate(content=types.Content(role="model", parts=list(parts)))]
    )


WEATHER_CALL = types.Part(
    function_call=types.FunctionCall(name="get_weather", args={"location": "Paris"})
)


@pytest.fixture
def adapter():
    return GeminiRequestAdapter()


class TestToProvider:
    def test_basic_message_conversion(self, adapter):
        messages = [
            {"role": "system", "content": "You are helpful"},
            {"role": "user", "content": "Hello"},
            {"role": "assistant", "content": "Hi!"},
        ]

        result = adapter.to_provider(messages, normalize_params({}))

        contents = result["contents"]
        assert [c.role for c in contents] == ["user", "model"]
        assert contents[0].parts[0].text == "Hello"
        assert contents[1].parts[0].text == "Hi!"
        assert result["config"].system_instruction.parts[0].text == "You are helpful"

    def test_no_config_without_params_or_system(self, adapter):
        result = adapter.to_provider([{"role": "user", "content": "Hello"}], normalize_params({}))

        assert result["config"] is None

    def test_params_mapping(self, adapter):
        params = normalize_params(
            {
                "temperature": 0.7,
                "max_tokens": 100,
                "top_p": 0.9,
                "stop": "END",
                "stream": True,
                "candidate_count": 1,
            }
        )

        config = adapter.to_provider([{"role": "user", "content": "test"}], params)["config"]

        assert config.temperature == 0.7
        assert config.max_output_tokens == 100
        assert config.top_p == 0.9
        assert config.stop_sequences == ["END"]
        assert config.candidate_count == 1

    def test_json_response_format(self, adapter):
        params = normalize_params(
            {
                "response_format": {
                    "type": "json_schema",
                    "json_schema": {
                        "name": "answer",
                        "schema": {
                            "type": "object",
                            "properties": {"answer": {"type": "string"}},
                            "additionalProperties": False,
                        },
                    },
                }
            }
        )

        config = adapter.to_provider([{"role": "user", "content": "test"}], params)["config"]

        assert config.response_mime_type == "application/json"
        assert config.response_schema is None
        assert config.response_json_schema == {
            "type": "object",
            "properties": {"answer": {"type": "string"}},
            "additionalProperties": False,
        }

    def test_tools_and_tool_choice(self, adapter):
        tools = [
            {
                "type": "function",
                "function": {
                    "name": "calc",
                    "description": "Add two numbers",
                    "parameters": {
                        "type": "object",
                        "properties": {"a": {"type": "integer"}, "b": {"type": "integer"}},
                    },
                },
            }
        ]
        params = normalize_params({"tools": tools, "tool_choice": "calc"})

        config = adapter.to_provider([{"role": "user", "content": "2+2"}], params)["config"]

        assert config.tools[0].function_declarations[0].name == "calc"
        assert config.tool_config.function_calling_config.allowed_function_names == ["calc"]

    def test_tool_call_round_trip(self, adapter):
        messages = [
            {"role": "user", "content": "Calculate 2+2 and 3+3"},
            {
                "role": "assistant",
                "tool_calls": [
                    {
                        "id": "call_1",
                        "type": "function",
                        "function": {"name": "calc", "arguments": json.dumps({"a": 2, "b": 2})},
                    },
                    {
                        "id": "call_2",
                        "type": "function",
                        "function": {"name": "calc", "arguments": {"a": 3, "b": 3}},
                    },
                ],
            },
            {"role": "tool", "tool_call_id": "call_1", "content": "4"},
            {"role": "tool", "tool_call_id": "call_2", "content": {"value": 6}},
        ]

        contents = adapter.to_provider(messages, normalize_params({}))["contents"]

        assert [c.role for c in contents] == ["user", "model", "user"]
        calls = [p.function_call for p in contents[1].parts]
        assert [(c.id, c.name, c.args) for c in calls] == [
            ("call_1", "calc", {"a": 2, "b": 2}),
            ("call_2", "calc", {"a": 3, "b": 3}),
        ]
        responses = [p.function_response for p in contents[2].parts]
        assert [(r.id, r.name) for r in responses] == [("call_1", "calc"), ("call_2", "calc")]
        assert responses[0].response == {"result": "4"}
        assert responses[1].response == {"value": 6}

    def test_unresolvable_tool_result(self, adapter):
        with pytest.raises(ValueError):
            adapter.to_provider(
                [{"role": "tool", "tool_call_id": "unknown", "content": "x"}],
                normalize_params({}),
            )

    def test_content_blocks(self, adapter):
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "Describe this file"},
                    {"file_data": {"file_uri": "https://example.com/f", "mime_type": "video/mp4"}},
                ],
            }
        ]

        parts = adapter.to_provider(messages, normalize_params({}))["contents"][0].parts

        assert parts[0].text == "Describe this file"
        assert parts[1].file_data.mime_type == "video/mp4"


class TestFromProvider:
    def test_text_response(self, adapter):
        response = adapter.from_provider(_model_response(types.Part(text="Hello "), types.Part(text="there")))

        assert response.content == "Hello there"
        assert response.tool_calls is None
        assert not response.is_error

    def test_thoughts_are_skipped(self, adapter):
        raw = _model_response(types.Part(text="thinking...", thought=True), types.Part(text="Answer"))

        assert adapter.from_provider(raw).content == "Answer"

    def test_function_call_without_id(self, adapter):
        response = adapter.from_provider(_model_response(WEATHER_CALL))

        assert response.content == ""
        assert len(response.tool_calls) == 1
        call = response.tool_calls[0]
        assert (call.id, call.name, call.arguments) == ("get_weather", "get_weather", {"location": "Paris"})

    def test_empty_response(self, adapter):
        response = adapter.from_provider(types.GenerateContentResponse())

        assert response.content == ""
        assert response.tool_calls is None


class TestConversationHelpers:
    def test_assistant_message_and_tool_result(self, adapter):
        raw = _model_response(WEATHER_CALL)

        assistant = adapter.assistant_message_from(raw)
        call = adapter.from_provider(raw).tool_calls[0]
        result = adapter.tool_result_message(ToolCallResult(call.id, "15 °C", name=call.name))

        assert assistant["role"] == "assistant"
        assert json.loads(assistant["tool_calls"][0]["function"]["arguments"]) == {"location": "Paris"}
        assert result == {
            "role": "tool",
            "tool_call_id": "get_weather",
            "content": "15 °C",
            "name": "get_weather",
        }

        contents = adapter.to_provider(
            [{"role": "user", "content": "Weather in Paris?"}, assistant, result],
            normalize_params({}),
        )["contents"]

        assert contents[1].parts == [WEATHER_CALL]
        function_response = contents[2].parts[0].function_response
        assert function_response.name == "get_weather"
        assert function_response.id is None
        assert function_response.response == {"result": "15 °C"}

    def test_text_only_assistant_message(self, adapter):
        assistant = adapter.assistant_message_from(_model_response(types.Part(text="Hi")))

        assert assistant == {"role": "assistant", "content": "Hi"}
