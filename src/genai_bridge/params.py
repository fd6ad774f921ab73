"""
Parameter normalization for genai-bridge.

Public API
- Users pass a dict to `params` on `llm.chat` or `llm.stream`.

Contract
- Standard keys:
  temperature: float
  max_tokens: int            (sent as max_output_tokens)
  top_p: float
  top_k: int
  stream: bool
  tools: list                (framework, OpenAI-style or native Gemini tools)
  tool_choice: str | dict    ("any" | "auto" | "none" | <function name>)
  allowed_function_names: list[str]
  stop: str | list[str]      (sent as stop_sequences)
  response_format: dict      ({"type": "json_object"} or {"type": "json_schema", ...})
  seed: int
  frequency_penalty: float
  presence_penalty: float

- Gemini specific keys go under `extra` and are passed to
  `GenerateContentConfig` unchanged. Examples:
    extra.candidate_count: int
    extra.thinking_config: dict
    extra.safety_settings: list

Unknown top-level keys are moved into extra.
"""

from __future__ import annotations

from typing import Any

STANDARD_KEYS = {
    "temperature",
    "max_tokens",
    "top_p",
    "top_k",
    "stream",
    "tools",
    "tool_choice",
    "allowed_function_names",
    "stop",
    "response_format",
    "seed",
    "frequency_penalty",
    "presence_penalty",
}


def normalize_params(params: dict | None) -> dict:
    """
    Normalize a user-supplied params dict to a single internal shape.

    Returns a dict with only standard keys plus an `extra` dict.
    Defaults:
      stream defaults to False
      extra defaults to {}
    Rules:
      - Keys not in STANDARD_KEYS are moved into extra
      - If the caller already passed an `extra` dict it is merged last
      - None values are kept so adapters can decide to drop them

    Example
    -------
    >>> normalize_params({
    ...   "temperature": 0.2,
    ...   "max_tokens": 4000,
    ...   "candidate_count": 2,
    ...   "extra": {"thinking_config": {"thinking_budget": 0}}
    ... })
    {'temperature': 0.2, 'max_tokens': 4000, 'stream': False,
     'extra': {'candidate_count': 2, 'thinking_config': {'thinking_budget': 0}}}
    """
    if params is None:
        return {"stream": False, "extra": {}}
    if not isinstance(params, dict):
        raise TypeError(f"params must be a dict, got {type(params).__name__}")

    std: dict = {}
    extra: dict = {}

    user_extra = params.get("extra") or {}
    if user_extra and not isinstance(user_extra, dict):
        raise TypeError("params['extra'] must be a dict")

    for key, value in params.items():
        if key == "extra":
            continue
        if key in STANDARD_KEYS:
            std[key] = value
        else:
            extra[key] = value

    std.setdefault("stream", False)

    # moved unknowns first, then user-provided extra wins
    std["extra"] = {**extra, **user_extra}

    return std


def merge_params(defaults: dict | None, overrides: dict | None) -> dict:
    """
    Shallow-merge client defaults with per-call overrides, then normalize.

    Rules:
      - Top-level keys are overwritten by overrides
      - `extra` is merged with overrides winning per key
    """
    base: dict[str, Any] = dict(defaults or {})
    if overrides:
        base_extra = dict(base.get("extra") or {})
        over_extra = dict(overrides.get("extra") or {})

        for k, v in overrides.items():
            if k != "extra":
                base[k] = v

        base["extra"] = {**base_extra, **over_extra}

    return normalize_params(base)
