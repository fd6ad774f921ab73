from __future__ import annotations

import os
from typing import Final, Optional

from dotenv import load_dotenv

from genai_bridge.errors import ConfigurationError

load_dotenv()

# Checked in order; the first non-empty value wins.
API_KEY_ENV_VARS: Final[tuple[str, ...]] = ("GOOGLE_API_KEY", "GEMINI_API_KEY")


def get_api_key(api_key: Optional[str] = None) -> str:
    """Return *api_key* or the first key found in the environment, or raise ConfigurationError."""
    if api_key:
        return api_key

    for env_var in API_KEY_ENV_VARS:
        key = os.getenv(env_var)
        if key:
            return key

    raise ConfigurationError(
        "Please set an API key for Google GenerativeAI in the environment "
        f"variable {' or '.join(API_KEY_ENV_VARS)} or pass `api_key` explicitly"
    )


__all__ = ["API_KEY_ENV_VARS", "get_api_key"]
