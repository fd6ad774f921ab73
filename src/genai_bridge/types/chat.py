"""Chat message types shared by adapters."""

from __future__ import annotations

from typing import Any

# OpenAI-style message dict: role, content, and optionally tool_calls,
# tool_call_id and name.
ChatMessage = dict[str, Any]

__all__ = ["ChatMessage"]
