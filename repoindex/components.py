from dataclasses import dataclass

from .config import Settings
from .embedder import Embedder, build_embed_model
from .repositories import RepositoryStore, create_repository_store
from .vector_store import VectorStore, create_qdrant_client


@dataclass
class Components:
    """Long-lived collaborators, constructed once per process and passed to every call site."""

    settings: Settings
    repositories: RepositoryStore
    embedder: Embedder
    vector_store: VectorStore


def build_components(settings: Settings) -> Components:
    return Components(
        settings=settings,
        repositories=create_repository_store(settings.database_url),
        embedder=Embedder(build_embed_model(settings), dimension=settings.embedding_dimension),
        vector_store=VectorStore(
            create_qdrant_client(settings),
            collection_name=settings.collection_name,
            dimension=settings.embedding_dimension,
        ),
    )
