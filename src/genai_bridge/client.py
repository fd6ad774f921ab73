"""
Chat models with unified chat() and stream() methods.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import (
    Any,
    AsyncGenerator,
    AsyncIterator,
    Optional,
    Protocol,
    Self,
    Sequence,
    Union,
)

from google import genai
from google.genai import types

from genai_bridge.adapters import GeminiRequestAdapter
from genai_bridge.config import get_api_key
from genai_bridge.errors import classify_error
from genai_bridge.params import merge_params
from genai_bridge.response import ChatResponse
from genai_bridge.types import ChatMessage, ToolCallResult


class RequestAdapter(Protocol):
    """Protocol for adapting between generic chat format and provider-specific format."""

    def to_provider(
        self, messages: Sequence[ChatMessage], params: dict[str, Any]
    ) -> dict[str, Any]:
        """Convert generic messages and normalized params to provider-specific request format."""
        ...

    def from_provider(self, raw: Any) -> ChatResponse:
        """Convert provider response to unified ChatResponse."""
        ...

    def stream_text(self, raw_chunk: Any) -> ChatResponse:
        """Extract content from a streaming chunk and return as ChatResponse."""
        ...

    def assistant_message_from(self, raw: Any) -> ChatMessage:
        """Convert a provider response to a provider-specific assistant ChatMessage."""
        ...

    def tool_result_message(self, result: ToolCallResult) -> ChatMessage:
        """Convert a ToolCallResult to a provider-specific ChatMessage."""
        ...


class BaseAsyncLLM(ABC):
    """
    Abstract base class for async-first chat model wrappers.
    """

    def __init__(
        self,
        model: str,
        *,
        default_params: Optional[dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        self.model = model
        self.default_params = dict(default_params or {})
        self.logger = logger or logging.getLogger(__name__)
        self.name = name or self.__class__.__name__

    @property
    @abstractmethod
    def adapter(self) -> RequestAdapter:
        """Request adapter for this provider."""
        ...

    def _build_request(
        self, messages: Sequence[ChatMessage], params: dict[str, Any]
    ) -> dict[str, Any]:
        """
        Build provider request arguments.

        Runs before the network call so conversion errors (for example a
        malformed tool) reach the caller instead of an error response.
        """
        return self.adapter.to_provider(messages, params)

    @abstractmethod
    async def _chat_impl(
        self,
        request: dict[str, Any],
        params: dict[str, Any],
    ) -> Union[Any, AsyncIterator[Any]]:
        """
        Send a prepared request to the provider.

        Args:
            request: Arguments built by ``_build_request``.
            params: The normalized params the request was built from.

        Returns:
            A raw provider response for non-streaming requests, or an
            async iterator of raw chunks for streaming requests.
        """
        ...

    async def chat(
        self,
        messages: Sequence[ChatMessage],
        *,
        params: dict[str, Any] | None = None,
    ) -> ChatResponse:
        """
        Send chat request and return a single response.

        Provider failures come back as a ChatResponse with ``error`` set.
        """
        normalized_params = merge_params(self.default_params, params)
        normalized_params["stream"] = False
        request = self._build_request(messages, normalized_params)

        try:
            raw = await self._chat_impl(request, normalized_params)
            return self.adapter.from_provider(raw)
        except Exception as exc:
            return self._wrap_error(exc)

    async def stream(
        self,
        messages: Sequence[ChatMessage],
        *,
        params: dict[str, Any] | None = None,
    ) -> AsyncGenerator[ChatResponse, None]:
        """
        Send chat request and yield a ChatResponse for each chunk.
        """
        normalized_params = merge_params(self.default_params, params)
        normalized_params["stream"] = True
        request = self._build_request(messages, normalized_params)

        try:
            raw_result = await self._chat_impl(request, normalized_params)
            if hasattr(raw_result, "__anext__"):
                async for chunk in raw_result:
                    yield self.adapter.stream_text(chunk)
            else:
                yield self.adapter.from_provider(raw_result)
        except Exception as exc:
            yield self._wrap_error(exc)

    def _wrap_error(self, exc: Exception) -> ChatResponse:
        """Wrap exception into an error response."""
        msg = classify_error(exc, self.logger)
        return ChatResponse(content="", error=msg)

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")

    # --- lifecycle ---------------------------------------------------------
    async def aclose(self) -> None:
        """
        Close underlying async HTTP clients to avoid cleanup after the loop closes.
        Safe to call multiple times.
        """
        client = getattr(self, "_client", None)
        close = getattr(getattr(client, "aio", client), "aclose", None)
        if close:
            await close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def http_options(base_url: Optional[str], timeout: Optional[float]) -> Optional[types.HttpOptions]:
    """HttpOptions for ``genai.Client``; *timeout* is in seconds."""
    options: dict[str, Any] = {}
    if base_url:
        options["base_url"] = base_url
    if timeout is not None:
        options["timeout"] = int(timeout * 1000)  # SDK expects milliseconds
    return types.HttpOptions(**options) if options else None


class GeminiLLM(BaseAsyncLLM):
    """
    Gemini chat model on the native ``google-genai`` SDK (async-only).

    Use ``GeminiLLM.from_client`` when you already have a ``genai.Client``.
    """

    def __init__(
        self,
        model: str,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = 60.0,
        default_params: Optional[dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        super().__init__(model=model, default_params=default_params, logger=logger, name=name)
        self.api_key = get_api_key(api_key)
        self.base_url = base_url
        self._client = genai.Client(
            api_key=self.api_key,
            http_options=http_options(base_url, timeout),
        )
        self._adapter = GeminiRequestAdapter()
        self.cached_content: Optional[str] = None

    @classmethod
    def from_client(
        cls,
        model: str,
        client: genai.Client,
        *,
        default_params: Optional[dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> Self:
        """
        Build a ``GeminiLLM`` around an already-configured ``genai.Client``.
        """
        if not isinstance(client, genai.Client):
            raise TypeError(
                f"GeminiLLM.from_client expects genai.Client; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        BaseAsyncLLM.__init__(
            self, model=model, default_params=default_params, logger=logger, name=name
        )
        self.api_key = None
        self.base_url = None
        self._client = client
        self._adapter = GeminiRequestAdapter()
        self.cached_content = None
        return self

    @property
    def adapter(self) -> GeminiRequestAdapter:
        """Request adapter for Gemini."""
        return self._adapter

    @property
    def client(self) -> genai.Client:
        return self._client

    def use_cached_content(self, cached_content: types.CachedContent | str | None) -> None:
        """
        Send every following request against a context cache.

        Accepts a ``CachedContent`` (as returned by ``client.caches.create``)
        or its resource name; ``None`` detaches the cache.
        """
        if isinstance(cached_content, types.CachedContent):
            cached_content = cached_content.name
        self.cached_content = cached_content
        self._log(f"Using cached content {cached_content}", logging.DEBUG)

    def _build_request(
        self, messages: Sequence[ChatMessage], params: dict[str, Any]
    ) -> dict[str, Any]:
        if self.cached_content:
            params = {**params, "extra": {"cached_content": self.cached_content, **params["extra"]}}
        return {"model": self.model, **self._adapter.to_provider(messages, params)}

    async def _chat_impl(
        self,
        request: dict[str, Any],
        params: dict[str, Any],
    ) -> Union[types.GenerateContentResponse, AsyncIterator[types.GenerateContentResponse]]:
        """Core implementation for Gemini generate_content requests."""
        self._log(
            f"Sending request to Gemini model {self.model} (Stream: {params['stream']})"
        )

        if params["stream"]:
            return await self._client.aio.models.generate_content_stream(**request)
        return await self._client.aio.models.generate_content(**request)
