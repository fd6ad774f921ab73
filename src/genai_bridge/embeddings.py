"""
Embedding models.

``GeminiEmbeddings`` embeds one query per request, or many documents in
batches of ``max_batch_size`` sent concurrently. A failed batch never fails
the whole call: its documents get empty vectors, so the output always lines
up index for index with the input.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Final, Optional, Self, Sequence, TypeVar

from google import genai
from google.genai import types

from genai_bridge.client import http_options
from genai_bridge.config import get_api_key
from genai_bridge.errors import ConfigurationError, classify_error

__all__ = [
    "BaseEmbeddings",
    "GeminiEmbeddings",
    "DEFAULT_EMBEDDING_MODEL",
    "MAX_BATCH_SIZE",
    "TASK_TYPES",
    "chunk_list",
]

T = TypeVar("T")

DEFAULT_EMBEDDING_MODEL: Final = "gemini-embedding-001"
# Max number of contents per embed_content call.
MAX_BATCH_SIZE: Final = 100
RETRIEVAL_DOCUMENT: Final = "RETRIEVAL_DOCUMENT"

# Known task types; other strings are passed through for newer models.
TASK_TYPES: Final = frozenset(
    {
        "RETRIEVAL_QUERY",
        "RETRIEVAL_DOCUMENT",
        "SEMANTIC_SIMILARITY",
        "CLASSIFICATION",
        "CLUSTERING",
        "QUESTION_ANSWERING",
        "FACT_VERIFICATION",
        "CODE_RETRIEVAL_QUERY",
    }
)


def chunk_list(items: Sequence[T], size: int) -> list[list[T]]:
    """Split *items* into consecutive chunks of at most *size* elements."""
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class BaseEmbeddings(ABC):
    """Interface for embedding models."""

    @abstractmethod
    async def embed_query(self, text: str) -> list[float]:
        """Embed a single query text."""
        ...

    @abstractmethod
    async def embed_documents(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed many documents, one vector per input, in input order."""
        ...


class GeminiEmbeddings(BaseEmbeddings):
    """
    Embeddings through the Gemini ``embed_content`` endpoint.

    Example::

        embeddings = GeminiEmbeddings(task_type="RETRIEVAL_DOCUMENT", title="Socks")
        vectors = await embeddings.embed_documents(["Hello world", "Bye bye"])
    """

    def __init__(
        self,
        model: str = DEFAULT_EMBEDDING_MODEL,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        task_type: Optional[str] = None,
        title: Optional[str] = None,
        output_dimensionality: Optional[int] = None,
        strip_new_lines: bool = True,
        max_batch_size: int = MAX_BATCH_SIZE,
        timeout: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        """
        Args:
            model: Embedding model; a leading ``models/`` is dropped.
            api_key: Falls back to ``GOOGLE_API_KEY`` / ``GEMINI_API_KEY``.
            base_url: Override the API endpoint.
            task_type: Intended use of the embedding, e.g. ``RETRIEVAL_QUERY``.
            title: Document title; only valid with ``RETRIEVAL_DOCUMENT``.
            output_dimensionality: Truncate vectors to this size.
            strip_new_lines: Replace newlines with spaces before embedding.
            max_batch_size: Documents per request in ``embed_documents``.
            timeout: Request timeout in seconds.

        Raises:
            ConfigurationError: on a missing API key or an invalid option combination.
        """
        self._configure(
            model,
            task_type=task_type,
            title=title,
            output_dimensionality=output_dimensionality,
            strip_new_lines=strip_new_lines,
            max_batch_size=max_batch_size,
            logger=logger,
            name=name,
        )
        self.api_key = get_api_key(api_key)
        self.client = genai.Client(
            api_key=self.api_key,
            http_options=http_options(base_url, timeout),
        )

    @classmethod
    def from_client(
        cls,
        client: genai.Client,
        model: str = DEFAULT_EMBEDDING_MODEL,
        *,
        task_type: Optional[str] = None,
        title: Optional[str] = None,
        output_dimensionality: Optional[int] = None,
        strip_new_lines: bool = True,
        max_batch_size: int = MAX_BATCH_SIZE,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> Self:
        """
        Wrap an existing ``genai.Client``.

        Connection settings (``api_key``, ``base_url``, ``timeout``) belong to
        the client itself and are not accepted here.
        """
        if not isinstance(client, genai.Client):
            raise TypeError(
                f"GeminiEmbeddings.from_client expects genai.Client; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        self._configure(
            model,
            task_type=task_type,
            title=title,
            output_dimensionality=output_dimensionality,
            strip_new_lines=strip_new_lines,
            max_batch_size=max_batch_size,
            logger=logger,
            name=name,
        )
        self.api_key = None
        self.client = client
        return self

    def _configure(
        self,
        model: str,
        *,
        task_type: Optional[str] = None,
        title: Optional[str] = None,
        output_dimensionality: Optional[int] = None,
        strip_new_lines: bool = True,
        max_batch_size: int = MAX_BATCH_SIZE,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
    ) -> None:
        if title and task_type != RETRIEVAL_DOCUMENT:
            raise ConfigurationError(
                f"title can only be specified when task_type is set to '{RETRIEVAL_DOCUMENT}'"
            )
        if max_batch_size < 1:
            raise ConfigurationError(f"max_batch_size must be positive, got {max_batch_size}")

        self.model = model.removeprefix("models/")
        self.task_type = task_type
        self.title = title
        self.output_dimensionality = output_dimensionality
        self.strip_new_lines = strip_new_lines
        self.max_batch_size = max_batch_size
        self.logger = logger or logging.getLogger(__name__)
        self.name = name or self.__class__.__name__

        if task_type and task_type not in TASK_TYPES:
            self._log(f"Unknown task_type {task_type!r}, passing it through", logging.WARNING)

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")

    def _clean_text(self, text: str) -> str:
        return text.replace("\n", " ") if self.strip_new_lines else text

    def _embed_config(self) -> Optional[types.EmbedContentConfig]:
        """Config holding only the fields that were set, or None."""
        config: dict[str, Any] = {}
        if self.task_type:
            config["task_type"] = self.task_type
        if self.title:
            config["title"] = self.title
        if isinstance(self.output_dimensionality, int):
            config["output_dimensionality"] = self.output_dimensionality
        return types.EmbedContentConfig(**config) if config else None

    async def _embed_contents(self, texts: Sequence[str]) -> types.EmbedContentResponse:
        return await self.client.aio.models.embed_content(
            model=self.model,
            contents=[self._clean_text(text) for text in texts],
            config=self._embed_config(),
        )

    async def embed_query(self, text: str) -> list[float]:
        """Embed *text*; returns an empty list if the API sent no embedding."""
        response = await self._embed_contents([text])
        if not response.embeddings:
            return []
        return list(response.embeddings[0].values or [])

    async def embed_documents(self, texts: Sequence[str]) -> list[list[float]]:
        """
        Embed *texts* in concurrent batches.

        Each batch settles independently. A batch that raises contributes one
        empty vector per document instead of failing the call.
        """
        chunks = chunk_list(texts, self.max_batch_size)
        if not chunks:
            return []

        self._log(
            f"Embedding {len(texts)} documents with {self.model} in {len(chunks)} batch(es)",
            logging.DEBUG,
        )
        results = await asyncio.gather(
            *(self._embed_contents(chunk) for chunk in chunks),
            return_exceptions=True,
        )

        embeddings: list[list[float]] = []
        for index, (chunk, result) in enumerate(zip(chunks, results)):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result  # cancellation and interrupts propagate
                msg = classify_error(result, self.logger)
                self._log(f"Batch {index} failed, filling with empty vectors: {msg}", logging.WARNING)
                embeddings.extend([] for _ in chunk)
                continue

            vectors = [list(e.values or []) for e in result.embeddings or []]
            if len(vectors) != len(chunk):
                self._log(
                    f"Batch {index} returned {len(vectors)} embeddings for {len(chunk)} documents",
                    logging.WARNING,
                )
                vectors = (vectors + [[] for _ in chunk])[: len(chunk)]
            embeddings.extend(vectors)

        return embeddings
