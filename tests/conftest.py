"""
Pytest configuration for the repoindex test suite.

Provides deterministic embedding stubs plus in-memory Qdrant and SQLite
backed collaborators. Async tests run through pytest-asyncio.
"""
import pytest
from qdrant_client import AsyncQdrantClient

from repoindex.embedder import Embedder
from repoindex.repositories import create_repository_store
from repoindex.vector_store import VectorStore

from .fakes import HashEmbedModel


@pytest.fixture
def embed_model():
    return HashEmbedModel()


@pytest.fixture
def embedder(embed_model):
    return Embedder(embed_model)


@pytest.fixture
def qdrant_client():
    return AsyncQdrantClient(location=":memory:")


@pytest.fixture
def vector_store(qdrant_client):
    return VectorStore(qdrant_client, collection_name="test-collection")


@pytest.fixture
def repositories():
    return create_repository_store("sqlite:///:memory:")
