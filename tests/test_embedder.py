"""
Tests for repoindex/embedder.py
Batching, order preservation and dimension validation.
"""
import pytest
from llama_index.core import MockEmbedding

from repoindex.embedder import BATCH_SIZE, EMBEDDING_DIMENSION, Embedder
from repoindex.errors import EmbeddingDimensionMismatch, EmbeddingProviderError, ValidationError

from .fakes import FailingEmbedModel, HashEmbedModel


class TestEmbed:
    @pytest.mark.asyncio
    async def test_batches_are_sequential_and_bounded(self, embed_model, embedder):
        texts = [f"chunk {i}" for i in range(200)]
        vectors = await embedder.embed(texts)

        assert [len(batch) for batch in embed_model.calls] == [BATCH_SIZE, BATCH_SIZE, 8]
        assert len(vectors) == 200

    @pytest.mark.asyncio
    async def test_order_is_preserved(self, embed_model, embedder):
        texts = [f"chunk {i}" for i in range(150)]
        vectors = await embedder.embed(texts)

        assert vectors == [embed_model.vector(t) for t in texts]

    @pytest.mark.asyncio
    async def test_inputs_are_trimmed(self, embed_model, embedder):
        await embedder.embed(["  padded  "])
        assert embed_model.calls == [["padded"]]

    @pytest.mark.asyncio
    async def test_empty_input_makes_no_calls(self, embed_model, embedder):
        assert await embedder.embed([]) == []
        assert embed_model.calls == []

    @pytest.mark.asyncio
    async def test_blank_text_is_rejected(self, embedder):
        with pytest.raises(ValidationError):
            await embedder.embed(["ok", "   "])

    @pytest.mark.asyncio
    async def test_dimension_mismatch_aborts(self):
        embedder = Embedder(HashEmbedModel(dimension=8))
        with pytest.raises(EmbeddingDimensionMismatch) as exc_info:
            await embedder.embed(["hello"])
        assert exc_info.value.expected == EMBEDDING_DIMENSION
        assert exc_info.value.actual == 8

    @pytest.mark.asyncio
    async def test_provider_failure_is_wrapped(self):
        embedder = Embedder(FailingEmbedModel())
        with pytest.raises(EmbeddingProviderError):
            await embedder.embed(["hello"])

    @pytest.mark.asyncio
    async def test_works_with_llama_index_embedding(self):
        embedder = Embedder(MockEmbedding(embed_dim=EMBEDDING_DIMENSION))
        vectors = await embedder.embed(["a", "b", "c"])
        assert len(vectors) == 3
        assert all(len(v) == EMBEDDING_DIMENSION for v in vectors)


class TestEmbedQuery:
    @pytest.mark.asyncio
    async def test_single_vector(self, embed_model, embedder):
        vector = await embedder.embed_query("how does auth work?")
        assert vector == embed_model.vector("how does auth work?")
