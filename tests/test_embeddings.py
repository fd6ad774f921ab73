"""Tests for GeminiEmbeddings."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from google.genai import types

from genai_bridge.embeddings import GeminiEmbeddings, chunk_list
from genai_bridge.errors import ConfigurationError


def _response(*vectors):
    return types.EmbedContentResponse(
        embeddings=[types.ContentEmbedding(values=list(v)) for v in vectors]
    )


async def _embed_by_length(*, model, contents, config):
    """Fake embed_content: one 1-d vector per content holding its length."""
    return _response(*[[float(len(c))] for c in contents])


@pytest.fixture
def embed_mock():
    return AsyncMock(return_value=_response([0.1, 0.2]))


@pytest.fixture
def make_embeddings(monkeypatch, embed_mock):
    def factory(**kwargs):
        embeddings = GeminiEmbeddings(api_key="test-key", **kwargs)
        monkeypatch.setattr(embeddings.client.aio.models, "embed_content", embed_mock)
        return embeddings

    return factory


class TestEmbedQuery:
    def test_returns_first_vector(self, make_embeddings, embed_mock):
        embeddings = make_embeddings()

        assert asyncio.run(embeddings.embed_query("hello world")) == [0.1, 0.2]
        embed_mock.assert_awaited_once()
        assert embed_mock.call_args.kwargs["model"] == "gemini-embedding-001"

    def test_strips_new_lines(self, make_embeddings, embed_mock):
        embeddings = make_embeddings()

        asyncio.run(embeddings.embed_query("a\nb"))

        assert embed_mock.call_args.kwargs["contents"] == ["a b"]

    def test_keeps_new_lines_when_disabled(self, make_embeddings, embed_mock):
        embeddings = make_embeddings(strip_new_lines=False)

        asyncio.run(embeddings.embed_query("a\nb"))

        assert embed_mock.call_args.kwargs["contents"] == ["a\nb"]

    def test_forwards_output_dimensionality(self, make_embeddings, embed_mock):
        embeddings = make_embeddings(output_dimensionality=128)

        asyncio.run(embeddings.embed_query("hello world"))

        assert embed_mock.call_args.kwargs["config"].output_dimensionality == 128

    def test_no_config_when_nothing_set(self, make_embeddings, embed_mock):
        embeddings = make_embeddings()

        asyncio.run(embeddings.embed_query("hello world"))

        assert embed_mock.call_args.kwargs["config"] is None

    def test_only_populated_fields_are_sent(self, make_embeddings, embed_mock):
        embeddings = make_embeddings(task_type="RETRIEVAL_QUERY")

        asyncio.run(embeddings.embed_query("hello world"))

        config = embed_mock.call_args.kwargs["config"]
        assert config.task_type == "RETRIEVAL_QUERY"
        assert config.model_fields_set == {"task_type"}

    def test_title_sent_with_document_task_type(self, make_embeddings, embed_mock):
        embeddings = make_embeddings(task_type="RETRIEVAL_DOCUMENT", title="Socks")

        asyncio.run(embeddings.embed_query("colorful socks"))

        config = embed_mock.call_args.kwargs["config"]
        assert config.title == "Socks"
        assert config.task_type == "RETRIEVAL_DOCUMENT"

    def test_empty_vector_when_no_embeddings(self, make_embeddings, embed_mock):
        embed_mock.return_value = types.EmbedContentResponse()
        embeddings = make_embeddings()

        assert asyncio.run(embeddings.embed_query("hello")) == []


class TestEmbedDocuments:
    def test_single_batch(self, make_embeddings, embed_mock):
        embed_mock.return_value = _response([0.1, 0.2], [0.3, 0.4])
        embeddings = make_embeddings(output_dimensionality=64)

        result = asyncio.run(embeddings.embed_documents(["doc1", "doc2"]))

        assert result == [[0.1, 0.2], [0.3, 0.4]]
        embed_mock.assert_awaited_once()
        assert embed_mock.call_args.kwargs["config"].output_dimensionality == 64

    def test_splits_into_max_batch_size_chunks(self, make_embeddings, embed_mock):
        embed_mock.side_effect = _embed_by_length
        embeddings = make_embeddings()
        docs = ["x" * (i % 7 + 1) for i in range(250)]

        result = asyncio.run(embeddings.embed_documents(docs))

        assert embed_mock.await_count == 3
        sizes = sorted(len(call.kwargs["contents"]) for call in embed_mock.call_args_list)
        assert sizes == [50, 100, 100]
        assert result == [[float(len(d))] for d in docs]

    def test_batches_are_in_flight_together(self, make_embeddings, embed_mock):
        docs = ["a", "bb", "ccc", "dddd", "eeeee"]
        in_flight = 0
        peak = 0
        all_started = asyncio.Event()

        async def gated(*, model, contents, config):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            if in_flight == 3:
                all_started.set()
            try:
                # Sequential batches would never release the gate.
                await asyncio.wait_for(all_started.wait(), timeout=1.0)
                return await _embed_by_length(model=model, contents=contents, config=config)
            finally:
                in_flight -= 1

        embed_mock.side_effect = gated
        embeddings = make_embeddings(max_batch_size=2)

        result = asyncio.run(embeddings.embed_documents(docs))

        assert peak == 3
        assert result == [[float(len(d))] for d in docs]

    def test_failed_batch_yields_empty_vectors_in_place(self, make_embeddings, embed_mock):
        async def flaky(*, model, contents, config):
            if "ccc" in contents:
                raise ConnectionError("connection reset")
            return await _embed_by_length(model=model, contents=contents, config=config)

        embed_mock.side_effect = flaky
        embeddings = make_embeddings(max_batch_size=2)

        result = asyncio.run(embeddings.embed_documents(["a", "bb", "ccc", "dddd", "eeeee"]))

        assert embed_mock.await_count == 3
        assert result == [[1.0], [2.0], [], [], [5.0]]

    def test_all_batches_failing_keeps_length(self, make_embeddings, embed_mock):
        embed_mock.side_effect = RuntimeError("boom")
        embeddings = make_embeddings(max_batch_size=2)

        result = asyncio.run(embeddings.embed_documents(["a", "b", "c"]))

        assert result == [[], [], []]

    def test_short_response_is_padded(self, make_embeddings, embed_mock):
        embed_mock.return_value = _response([0.5])
        embeddings = make_embeddings()

        result = asyncio.run(embeddings.embed_documents(["one", "two"]))

        assert result == [[0.5], []]

    def test_cleans_every_document(self, make_embeddings, embed_mock):
        embed_mock.return_value = _response([0.1], [0.2])
        embeddings = make_embeddings()

        asyncio.run(embeddings.embed_documents(["a\nb", "c"]))

        assert embed_mock.call_args.kwargs["contents"] == ["a b", "c"]

    def test_empty_input(self, make_embeddings, embed_mock):
        embeddings = make_embeddings()

        assert asyncio.run(embeddings.embed_documents([])) == []
        embed_mock.assert_not_awaited()


class TestConstruction:
    def test_title_requires_document_task_type(self):
        with pytest.raises(ConfigurationError, match="RETRIEVAL_DOCUMENT"):
            GeminiEmbeddings(api_key="test-key", title="Socks")

    def test_title_with_other_task_type(self):
        with pytest.raises(ConfigurationError):
            GeminiEmbeddings(api_key="test-key", title="Socks", task_type="RETRIEVAL_QUERY")

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)

        with pytest.raises(ConfigurationError, match="GOOGLE_API_KEY"):
            GeminiEmbeddings()

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "env-key")

        assert GeminiEmbeddings().api_key == "env-key"

    def test_model_prefix_is_stripped(self):
        embeddings = GeminiEmbeddings("models/text-embedding-004", api_key="test-key")

        assert embeddings.model == "text-embedding-004"

    def test_invalid_batch_size(self):
        with pytest.raises(ConfigurationError):
            GeminiEmbeddings(api_key="test-key", max_batch_size=0)

    def test_from_client_rejects_other_objects(self):
        with pytest.raises(TypeError):
            GeminiEmbeddings.from_client(object())

    def test_from_client_validates_options(self):
        from google import genai

        client = genai.Client(api_key="test-key")

        with pytest.raises(ConfigurationError):
            GeminiEmbeddings.from_client(client, title="Socks")

        embeddings = GeminiEmbeddings.from_client(client, output_dimensionality=32)
        assert embeddings.client is client
        assert embeddings.output_dimensionality == 32

    @pytest.mark.parametrize("option", ["api_key", "base_url", "timeout"])
    def test_from_client_rejects_connection_options(self, option):
        from google import genai

        client = genai.Client(api_key="test-key")

        with pytest.raises(TypeError, match=option):
            GeminiEmbeddings.from_client(client, **{option: "x"})

    def test_from_client_accepts_constructor_options(self):
        from google import genai

        client = genai.Client(api_key="test-key")

        embeddings = GeminiEmbeddings.from_client(
            client,
            "models/text-embedding-004",
            task_type="RETRIEVAL_DOCUMENT",
            title="Socks",
            strip_new_lines=False,
            max_batch_size=10,
            name="docs",
        )

        assert embeddings.model == "text-embedding-004"
        assert embeddings.title == "Socks"
        assert embeddings.strip_new_lines is False
        assert embeddings.max_batch_size == 10
        assert embeddings.name == "docs"
        assert embeddings.api_key is None


def test_chunk_list():
    assert chunk_list([1, 2, 3, 4, 5], 2) == [[1, 2], [3, 4], [5]]
    assert chunk_list([], 3) == []
