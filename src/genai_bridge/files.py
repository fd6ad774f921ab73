"""Helpers for files uploaded to the Gemini Files API."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Optional

from google import genai
from google.genai import types

from genai_bridge.errors import GenAIBridgeError

_logger = logging.getLogger(__name__)
_logger.addHandler(logging.NullHandler())


async def wait_for_file(
    client: genai.Client,
    name: str,
    *,
    poll_interval: float = 2.0,
    timeout: Optional[float] = None,
) -> types.File:
    """
    Poll an uploaded file until it leaves the ``PROCESSING`` state.

    Large uploads (video, audio) must finish processing before they can be
    referenced in a prompt or a context cache.

    Args:
        client: Client the file was uploaded with.
        name: File resource name, e.g. ``files/abc-123``.
        poll_interval: Seconds between polls.
        timeout: Give up after this many seconds; None waits forever.

    Returns:
        The file in its final state.

    Raises:
        GenAIBridgeError: if processing failed or the timeout expired.
    """
    deadline = None if timeout is None else time.monotonic() + timeout

    file = await client.aio.files.get(name=name)
    while file.state == types.FileState.PROCESSING:
        if deadline is not None and time.monotonic() >= deadline:
            raise GenAIBridgeError(f"Timed out waiting for file {name} to finish processing")
        _logger.debug("File %s still processing, next poll in %.1fs", name, poll_interval)
        await asyncio.sleep(poll_interval)
        file = await client.aio.files.get(name=name)

    if file.state == types.FileState.FAILED:
        reason = file.error.message if file.error else "unknown error"
        raise GenAIBridgeError(f"Processing of file {name} failed: {reason}")

    return file


__all__ = ["wait_for_file"]
