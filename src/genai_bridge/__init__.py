"""
genai-bridge - Gemini chat, embeddings and tool calling behind the bridge interfaces.
"""

from .client import BaseAsyncLLM, GeminiLLM
from .config import get_api_key
from .embeddings import BaseEmbeddings, GeminiEmbeddings
from .errors import ConfigurationError, GenAIBridgeError, ToolConversionError
from .files import wait_for_file
from .response import ChatResponse
from .tools import GenAITools, convert_tools_to_genai
from .types import ChatMessage, StructuredTool, Tool, ToolCallRequest, ToolCallResult

__version__ = "0.1.0"

__all__ = [
    "BaseAsyncLLM",
    "GeminiLLM",
    "BaseEmbeddings",
    "GeminiEmbeddings",
    "ChatResponse",
    "ChatMessage",
    "StructuredTool",
    "Tool",
    "ToolCallRequest",
    "ToolCallResult",
    "GenAITools",
    "convert_tools_to_genai",
    "wait_for_file",
    "get_api_key",
    "GenAIBridgeError",
    "ConfigurationError",
    "ToolConversionError",
]
