from .chat import ChatMessage
from .tool import ArgsSchema, StructuredTool, Tool, ToolCallRequest, ToolCallResult

__all__ = [
    "ChatMessage",
    "ArgsSchema",
    "StructuredTool",
    "Tool",
    "ToolCallRequest",
    "ToolCallResult",
]
