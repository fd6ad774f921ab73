"""
Bridge-level exceptions, and translation of noisy ``google-genai`` errors into
short messages while preserving the original exception for full tracebacks.
"""

from __future__ import annotations

import logging
from typing import Final, Optional, Type

from google.genai import errors as genai_errors

__all__: tuple[str, ...] = (
    "GenAIBridgeError",
    "ConfigurationError",
    "ToolConversionError",
    "classify_error",
)


class GenAIBridgeError(RuntimeError):
    """Public bridge-level exception.

    Attributes:
        original_exc: The underlying provider exception, if any.
    """

    original_exc: Optional[Exception]

    def __init__(self, message: str, original_exc: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.original_exc = original_exc
        if original_exc is not None:
            self.__cause__ = original_exc


class ConfigurationError(GenAIBridgeError, ValueError):
    """Raised at construction time for a missing API key or invalid options."""


class ToolConversionError(GenAIBridgeError, ValueError):
    """Raised when a tool cannot be translated to a function declaration."""

    def __init__(self, tool_name: str, reason: str) -> None:
        super().__init__(f"Failed to convert tool {tool_name!r}: {reason}")
        self.tool_name = tool_name


CONN_ERRORS: Final[tuple[Type[Exception], ...]] = (
    TimeoutError,
    ConnectionError,
)

_RATE_LIMIT_CODE: Final = 429


def classify_error(
    exc: Exception,
    logger: Optional[logging.Logger] = None,
) -> str:
    """Return a friendly, concise message for an SDK exception and log it."""
    log = logger or logging.getLogger("genai_bridge.errors")

    if isinstance(exc, genai_errors.APIError):
        if exc.code == _RATE_LIMIT_CODE:
            msg = f"Rate-limit exceeded, please retry later: {exc}"
        elif isinstance(exc, genai_errors.ServerError):
            msg = f"Provider reported an internal error ({exc.code}): {exc}"
        else:
            msg = f"API error ({exc.code}): {exc}"
        log.error(msg)
        return msg

    if isinstance(exc, CONN_ERRORS):
        msg = f"Connection error: unable to reach the Gemini API: {exc}"
        log.error(msg)
        return msg

    msg = f"{exc.__class__.__name__}: {exc}"
    log.error(msg, exc_info=exc)  # stack trace for unknown errors
    return msg
