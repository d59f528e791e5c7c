import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlparse

from .embedder import Embedder
from .errors import RepositoryNotFound, ValidationError
from .git import CloneFn, clone_repository, scratch_clone
from .models import (
    IndexResult,
    RepositoryMetadata,
    RepositoryRecord,
    RepositoryStatus,
    VectorPoint,
    failed_status,
)
from .repositories import RepositoryStore
from .retrieval import delete_repository_from_vector_store
from .splitter import chunk_repository_files
from .vector_store import VectorStore

logger = logging.getLogger(__name__)

CLONE_SCHEMES = {"http", "https", "ssh", "git", "file"}


def _validate_repo_url(repo_url: str) -> None:
    parsed = urlparse(repo_url.strip())
    if parsed.scheme not in CLONE_SCHEMES or not (parsed.netloc or parsed.scheme == "file"):
        raise ValidationError(f"Invalid repository URL '{repo_url}'")


async def index_repository(
    repo_path: str | Path,
    repository_id: str,
    repository_url: str,
    *,
    embedder: Embedder,
    vector_store: VectorStore,
) -> list[str]:
    """Chunk, embed and upsert an already cloned repository. Returns the written vector ids."""
    logger.info("Chunking repository %s", repository_id)
    chunks = await asyncio.to_thread(chunk_repository_files, repo_path, repository_id, repository_url)
    logger.info("Generated %d chunks for %s", len(chunks), repository_id)

    embeddings = await embedder.embed([chunk.content for chunk in chunks])
    logger.info("Created %d embeddings for %s", len(embeddings), repository_id)

    points = [
        VectorPoint(vector=vector, payload=chunk)
        for chunk, vector in zip(chunks, embeddings, strict=True)
    ]
    vector_ids = await vector_store.upsert_vectors(points)
    logger.info("Stored %d vectors for %s", len(vector_ids), repository_id)
    return vector_ids


async def index_public_repository(
    repo_url: str,
    branch: str | None,
    metadata: RepositoryMetadata,
    *,
    repositories: RepositoryStore,
    embedder: Embedder,
    vector_store: VectorStore,
    scratch_root: str | Path,
    clone: CloneFn = clone_repository,
) -> IndexResult:
    """Clone, index and record a repository.

    The record is upserted by URL (its id survives re-indexing) and set to
    `indexing`; it ends `indexed` with the number of vectors written, or
    `failed:<reason>` before the error is re-raised. Earlier vectors of the
    same repository are not deleted first.
    """
    _validate_repo_url(repo_url)
    if not metadata.url.strip():
        raise ValidationError("Repository metadata must include a url")

    repository = await asyncio.to_thread(
        repositories.upsert_by_url, metadata, RepositoryStatus.INDEXING.value
    )

    try:
        async with scratch_clone(repo_url, branch, scratch_root, clone=clone) as repo_path:
            vector_ids = await index_repository(
                repo_path,
                repository.id,
                metadata.url,
                embedder=embedder,
                vector_store=vector_store,
            )
    except asyncio.CancelledError:
        logger.warning("Indexing %s was cancelled", metadata.url)
        await asyncio.shield(
            asyncio.to_thread(repositories.update, repository.id, status=failed_status("cancelled"))
        )
        raise
    except Exception as e:
        logger.error("Indexing %s failed: %s", metadata.url, e)
        await asyncio.to_thread(
            repositories.update, repository.id, status=failed_status(str(e))
        )
        raise

    repository = await asyncio.to_thread(
        repositories.update,
        repository.id,
        status=RepositoryStatus.INDEXED.value,
        indexed_at=datetime.now(timezone.utc),
        chunks_indexed=len(vector_ids),
    )
    return IndexResult(repository=repository, chunks_indexed=len(vector_ids))


async def delete_repository_index(
    repository_id: str,
    *,
    repositories: RepositoryStore,
    vector_store: VectorStore,
) -> RepositoryRecord:
    """Drop every vector of a repository and reset its record to `indexed` with no chunks."""
    repository = await asyncio.to_thread(repositories.get, repository_id)
    if repository is None:
        raise RepositoryNotFound(repository_id)

    await delete_repository_from_vector_store(repository.id, vector_store=vector_store)
    return await asyncio.to_thread(
        repositories.update,
        repository.id,
        status=RepositoryStatus.INDEXED.value,
        chunks_indexed=0,
    )
