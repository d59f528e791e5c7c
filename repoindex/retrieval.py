import logging
from collections.abc import Iterable, Sequence

from .embedder import Embedder
from .errors import EmbeddingDimensionMismatch, EmbeddingProviderError, ValidationError
from .models import SearchFilters, SearchResult, Source, SourceMetadata
from .tokens import estimate_tokens
from .vector_store import VectorStore

logger = logging.getLogger(__name__)

MIN_LIMIT = 3
MAX_LIMIT = 15


async def query_repository(
    query: str,
    repository_id: str,
    *,
    embedder: Embedder,
    vector_store: VectorStore,
    limit: int = 5,
    score_threshold: float | None = None,
    max_tokens: int | None = None,
) -> SearchResult:
    """Retrieve the chunks of one repository most similar to `query`.

    Results keep the store's similarity order. With `max_tokens` set, any
    result that would overflow the remaining budget is skipped, not truncated,
    so a later smaller chunk may still fit.
    """
    if not query.strip():
        raise ValidationError("query must not be empty")
    if not repository_id.strip():
        raise ValidationError("repository_id must not be empty")

    safe_limit = max(MIN_LIMIT, min(MAX_LIMIT, limit))

    try:
        embedding = await embedder.embed_query(query)
    except (EmbeddingProviderError, EmbeddingDimensionMismatch) as e:
        logger.warning("Query embedding failed for repository %s: %s", repository_id, e)
        embedding = None
    if not embedding:
        return SearchResult(query=query, sources=[])

    results = await vector_store.search_vectors(
        embedding,
        SearchFilters(repository_id=repository_id),
        limit=safe_limit,
        score_threshold=score_threshold,
    )

    sources: list[Source] = []
    used_tokens = 0
    for result in results:
        token_count = estimate_tokens(result.payload.content)
        if max_tokens is not None and used_tokens + token_count > max_tokens:
            continue

        used_tokens += token_count
        sources.append(
            Source(
                id=result.id,
                content=result.payload.content,
                score=result.score,
                metadata=SourceMetadata(**result.payload.model_dump(exclude={"content"})),
            )
        )

    logger.debug("Query on %s returned %d/%d sources (%d tokens)", repository_id, len(sources), len(results), used_tokens)
    return SearchResult(query=query, sources=sources)


def dedupe_sources(sources: Iterable[Source]) -> list[Source]:
    """Keep the first source per (file_path, chunk_index), for callers merging several queries."""
    seen: set[tuple[str, int]] = set()
    unique = []
    for source in sources:
        key = (source.metadata.file_path, source.metadata.chunk_index)
        if key in seen:
            continue
        seen.add(key)
        unique.append(source)
    return unique


async def delete_from_vector_store(ids: Sequence[str], *, vector_store: VectorStore) -> None:
    await vector_store.delete_vectors(ids)


async def delete_repository_from_vector_store(repository_id: str, *, vector_store: VectorStore) -> None:
    if not repository_id.strip():
        raise ValidationError("repository_id must not be empty")
    await vector_store.delete_vectors_by_repository(repository_id)
