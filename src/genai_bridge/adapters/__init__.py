"""Pure transformation adapters between the bridge format and Gemini."""

from .gemini import GeminiRequestAdapter

__all__ = ["GeminiRequestAdapter"]
