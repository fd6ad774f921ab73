"""
Normalize heterogeneous tool descriptions into Gemini ``types.Tool`` objects.

Three input shapes are accepted and may be mixed freely:

* framework-native ``StructuredTool`` objects (``name``, ``description``,
  ``args_schema``),
* OpenAI-style definitions ``{"type": "function", "function": {...}}``,
* native ``google.genai.types.Tool`` objects, or dicts that validate into one.

Framework and OpenAI tools become ``FunctionDeclaration`` objects that are
merged into a single function-declarations group; native tools pass through.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Final, Optional, Union

from google.genai import types
from openai.types.chat import ChatCompletionToolParam
from pydantic import BaseModel, ValidationError

from genai_bridge.errors import ToolConversionError
from genai_bridge.types.tool import StructuredTool

__all__ = [
    "ToolChoice",
    "ToolInput",
    "FrameworkTool",
    "OpenAITool",
    "NativeTool",
    "ClassifiedTool",
    "GenAITools",
    "classify_tool",
    "remove_additional_properties",
    "convert_structured_tool",
    "convert_openai_tool",
    "merge_function_declarations",
    "process_tools",
    "create_tool_config",
    "convert_tools_to_genai",
]

_logger = logging.getLogger(__name__)
_logger.addHandler(logging.NullHandler())

ToolChoice = Union[str, dict[str, Any]]
ToolInput = Union[StructuredTool, ChatCompletionToolParam, types.Tool, Mapping[str, Any]]

_MODE_MAP: Final[dict[str, types.FunctionCallingConfigMode]] = {
    "any": types.FunctionCallingConfigMode.ANY,
    "auto": types.FunctionCallingConfigMode.AUTO,
    "none": types.FunctionCallingConfigMode.NONE,
}


@dataclass(frozen=True, slots=True)
class FrameworkTool:
    tool: StructuredTool


@dataclass(frozen=True, slots=True)
class OpenAITool:
    definition: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class NativeTool:
    tool: types.Tool


ClassifiedTool = Union[FrameworkTool, OpenAITool, NativeTool]


@dataclass(frozen=True, slots=True)
class GenAITools:
    """Result of ``convert_tools_to_genai``: request ``tools`` plus an optional ``tool_config``."""

    tools: list[types.Tool]
    tool_config: Optional[types.ToolConfig] = None


def _tool_name(tool: Any) -> str:
    """Best-effort name of a tool of any shape, for error messages."""
    if isinstance(tool, Mapping):
        function = tool.get("function")
        if isinstance(function, Mapping) and function.get("name"):
            return str(function["name"])
        if tool.get("name"):
            return str(tool["name"])
        return "<unnamed>"
    return str(getattr(tool, "name", None) or type(tool).__name__)


def classify_tool(tool: ToolInput) -> ClassifiedTool:
    """
    Decide which of the three known shapes *tool* has.

    Raises:
        ToolConversionError: if *tool* matches none of them.
    """
    if isinstance(tool, types.Tool):
        return NativeTool(tool)

    if isinstance(tool, Mapping):
        if tool.get("type") == "function":
            return OpenAITool(tool)
        try:
            return NativeTool(types.Tool.model_validate(dict(tool)))
        except ValidationError as exc:
            raise ToolConversionError(_tool_name(tool), f"unrecognized tool shape: {exc}") from exc

    if isinstance(tool, StructuredTool):
        return FrameworkTool(tool)

    raise ToolConversionError(_tool_name(tool), f"unsupported tool type {type(tool).__name__}")


# --- JSON schema cleanup ---------------------------------------------------

# Keywords whose value maps arbitrary names to subschemas.
_SCHEMA_MAP_KEYWORDS: Final = frozenset({"properties", "patternProperties", "$defs", "definitions"})


def remove_additional_properties(schema: Any) -> Any:
    """
    Return a copy of *schema* with every ``additionalProperties`` keyword removed.

    Names inside ``properties`` and definition maps are argument names, not
    keywords, so an argument called ``additionalProperties`` is kept.
    """
    if isinstance(schema, list):
        return [remove_additional_properties(item) for item in schema]
    if not isinstance(schema, Mapping):
        return schema

    cleaned: dict[str, Any] = {}
    for key, value in schema.items():
        if key == "additionalProperties":
            continue
        if key in _SCHEMA_MAP_KEYWORDS and isinstance(value, Mapping):
            cleaned[key] = {name: remove_additional_properties(sub) for name, sub in value.items()}
        else:
            cleaned[key] = remove_additional_properties(value)
    return cleaned


def _build_declaration(
    name: str, description: Optional[str], parameters: Mapping[str, Any]
) -> types.FunctionDeclaration:
    # Gemini rejects OBJECT schemas without properties; send no parameters instead.
    if not parameters.get("properties"):
        return types.FunctionDeclaration(name=name, description=description)
    return types.FunctionDeclaration(
        name=name,
        description=description,
        parameters_json_schema=remove_additional_properties(parameters),
    )


# --- Converters ------------------------------------------------------------

def convert_structured_tool(tool: StructuredTool) -> types.FunctionDeclaration:
    """Convert a framework-native tool to a function declaration."""
    args_schema = tool.args_schema
    if isinstance(args_schema, type) and issubclass(args_schema, BaseModel):
        parameters = args_schema.model_json_schema()
    elif isinstance(args_schema, Mapping):
        parameters = dict(args_schema)
    else:
        raise ToolConversionError(
            tool.name, "args_schema must be a pydantic model class or a JSON schema dict"
        )
    return _build_declaration(tool.name, tool.description, parameters)


def convert_openai_tool(definition: Mapping[str, Any]) -> types.FunctionDeclaration:
    """
    Convert an OpenAI-style tool definition to a function declaration.

    Raises:
        ToolConversionError: if the definition is malformed.
    """
    function = definition.get("function")
    if not isinstance(function, Mapping):
        raise ToolConversionError(
            _tool_name(definition), "expected a 'function' object in OpenAI tool definition"
        )

    name = function.get("name")
    if not isinstance(name, str) or not name:
        raise ToolConversionError(_tool_name(definition), "OpenAI function has no name")

    parameters = function.get("parameters") or {}
    if not isinstance(parameters, Mapping):
        raise ToolConversionError(name, "parameters must be a JSON schema object")

    return _build_declaration(name, function.get("description"), parameters)


def merge_function_declarations(
    native_tools: Sequence[types.Tool],
    declarations: Sequence[types.FunctionDeclaration],
) -> list[types.Tool]:
    """
    Fold *declarations* into *native_tools*, returning a new list.

    The first native tool that already carries a function-declarations group
    absorbs all of them; without one, a new group is appended at the end.
    """
    if not declarations:
        return list(native_tools)

    merged: list[types.Tool] = []
    absorbed = False
    for tool in native_tools:
        if not absorbed and tool.function_declarations is not None:
            merged.append(
                tool.model_copy(
                    update={"function_declarations": [*tool.function_declarations, *declarations]}
                )
            )
            absorbed = True
        else:
            merged.append(tool)

    if not absorbed:
        merged.append(types.Tool(function_declarations=list(declarations)))
    return merged


def process_tools(tools: Sequence[ToolInput]) -> list[types.Tool]:
    """Classify, convert and merge *tools* into the list sent to the API."""
    native_tools: list[types.Tool] = []
    declarations: list[types.FunctionDeclaration] = []

    for classified in map(classify_tool, tools):
        if isinstance(classified, FrameworkTool):
            declarations.append(convert_structured_tool(classified.tool))
        elif isinstance(classified, OpenAITool):
            declarations.append(convert_openai_tool(classified.definition))
        else:
            native_tools.append(classified.tool)

    return merge_function_declarations(native_tools, declarations)


def _forced_function_name(tool_choice: Optional[ToolChoice]) -> Optional[str]:
    """Name of the function *tool_choice* requires, if it names one."""
    if isinstance(tool_choice, str):
        return tool_choice or None
    if isinstance(tool_choice, Mapping) and tool_choice.get("type") == "function":
        function = tool_choice.get("function")
        if isinstance(function, Mapping) and function.get("name"):
            return str(function["name"])
    if tool_choice is not None:
        _logger.warning("Ignoring unsupported tool_choice %r", tool_choice)
    return None


def create_tool_config(
    tools: Sequence[types.Tool],
    tool_choice: Optional[ToolChoice] = None,
    allowed_function_names: Optional[Sequence[str]] = None,
) -> Optional[types.ToolConfig]:
    """
    Map a tool choice directive to a Gemini ``ToolConfig``.

    ``"any"``, ``"auto"`` and ``"none"`` select that calling mode. Any other
    string names a function the model must call: mode ``ANY`` restricted to
    *allowed_function_names* plus that name.
    """
    if tool_choice == "":
        tool_choice = None
    if not tools or (tool_choice is None and allowed_function_names is None):
        return None

    allowed = list(allowed_function_names) if allowed_function_names is not None else None

    if isinstance(tool_choice, str) and tool_choice in _MODE_MAP:
        return types.ToolConfig(
            function_calling_config=types.FunctionCallingConfig(
                mode=_MODE_MAP[tool_choice],
                allowed_function_names=allowed,
            )
        )

    forced = _forced_function_name(tool_choice)
    if forced is not None or allowed is not None:
        return types.ToolConfig(
            function_calling_config=types.FunctionCallingConfig(
                mode=types.FunctionCallingConfigMode.ANY,
                allowed_function_names=[*(allowed or []), *([forced] if forced else [])],
            )
        )

    return None


def convert_tools_to_genai(
    tools: Sequence[ToolInput],
    *,
    tool_choice: Optional[ToolChoice] = None,
    allowed_function_names: Optional[Sequence[str]] = None,
) -> GenAITools:
    """Convert a mixed tool list to Gemini tools plus an optional tool config."""
    genai_tools = process_tools(tools)
    tool_config = create_tool_config(genai_tools, tool_choice, allowed_function_names)
    return GenAITools(tools=genai_tools, tool_config=tool_config)
