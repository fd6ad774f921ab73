"""
Provider-neutral tool types.

``ToolCallRequest``/``ToolCallResult`` carry client-side tool calls in and out
of the model. ``StructuredTool`` is the framework's native tool description;
anything exposing ``name``, ``description`` and ``args_schema`` qualifies.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Union, runtime_checkable

from pydantic import BaseModel

__all__ = ["ToolCallRequest", "ToolCallResult", "StructuredTool", "Tool", "ArgsSchema"]

# A pydantic model class or a JSON schema dict describing the tool arguments.
ArgsSchema = Union[type[BaseModel], dict[str, Any]]


@dataclass(slots=True)
class ToolCallRequest:
    """A model-agnostic request emitted by the LLM to call a local tool."""
    id: str
    name: str
    arguments: dict[str, Any]


@dataclass(slots=True)
class ToolCallResult:
    """Payload to send back to the LLM after the tool finished running."""
    id: str                     # must match the request id
    content: str | dict[str, Any]
    name: str | None = None     # Gemini needs the function name on the response


@runtime_checkable
class StructuredTool(Protocol):
    """Framework-native tool: a named callable with a typed argument schema."""

    name: str
    description: str
    args_schema: ArgsSchema


@dataclass(slots=True)
class Tool:
    """Minimal concrete ``StructuredTool``."""
    name: str
    description: str
    args_schema: ArgsSchema
