import asyncio
import logging
import uuid
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from pydantic import ValidationError as PayloadValidationError
from qdrant_client import AsyncQdrantClient, models

from .config import Settings
from .embedder import EMBEDDING_DIMENSION
from .errors import EmbeddingDimensionMismatch, RepoIndexError, VectorStoreError
from .models import CodeChunk, SearchFilters, VectorPoint, VectorSearchResult

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION_NAME = "repoindex"
INDEXED_FIELDS = ("repositoryId", "filePath", "type")


def create_qdrant_client(settings: Settings) -> AsyncQdrantClient:
    return AsyncQdrantClient(url=settings.qdrant_url, api_key=settings.qdrant_api_key)


@asynccontextmanager
async def _qdrant_errors(operation: str) -> AsyncIterator[None]:
    try:
        yield
    except RepoIndexError:
        raise
    except Exception as e:
        raise VectorStoreError(f"Qdrant {operation} failed: {e}") from e


def _match(key: str, value: str) -> models.FieldCondition:
    return models.FieldCondition(key=key, match=models.MatchValue(value=value))


class VectorStore:
    """Gateway to the single shared Qdrant collection.

    Repositories are isolated only by the `repositoryId` payload field, so every
    search and bulk delete filters on it.
    """

    def __init__(
        self,
        client: AsyncQdrantClient,
        collection_name: str = DEFAULT_COLLECTION_NAME,
        dimension: int = EMBEDDING_DIMENSION,
    ):
        self.client = client
        self.collection_name = collection_name
        self.dimension = dimension
        self._bootstrap_lock = asyncio.Lock()
        self._ready = False

    async def ensure_collection(self) -> None:
        """Create the collection and its keyword payload indexes unless present.

        An existing collection is checked for missing indexes once per instance,
        so a bootstrap interrupted between the create and the indexes is repaired
        on the next call.
        """
        if self._ready:
            return
        async with self._bootstrap_lock, _qdrant_errors("collection bootstrap"):
            if self._ready:
                return

            if await self.client.collection_exists(self.collection_name):
                existing = await self._indexed_fields()
            else:
                logger.info("Creating collection '%s' (dim=%d)", self.collection_name, self.dimension)
                try:
                    await self.client.create_collection(
                        collection_name=self.collection_name,
                        vectors_config=models.VectorParams(
                            size=self.dimension,
                            distance=models.Distance.COSINE,
                        ),
                    )
                    existing = set()
                except Exception:
                    # Another process may have created it between the check and the create.
                    if not await self.client.collection_exists(self.collection_name):
                        raise
                    existing = await self._indexed_fields()

            for field_name in INDEXED_FIELDS:
                if field_name in existing:
                    continue
                logger.info("Creating payload index '%s' on '%s'", field_name, self.collection_name)
                await self.client.create_payload_index(
                    collection_name=self.collection_name,
                    field_name=field_name,
                    field_schema=models.PayloadSchemaType.KEYWORD,
                    wait=True,
                )
            self._ready = True

    async def _indexed_fields(self) -> set[str]:
        info = await self.client.get_collection(self.collection_name)
        return set(info.payload_schema or {})

    async def upsert_vectors(self, points: Sequence[VectorPoint]) -> list[str]:
        if not points:
            return []

        for point in points:
            if len(point.vector) != self.dimension:
                raise EmbeddingDimensionMismatch(self.dimension, len(point.vector))

        await self.ensure_collection()
        structs = [
            models.PointStruct(
                id=point.id or str(uuid.uuid4()),
                vector=point.vector,
                payload=point.payload.to_payload(),
            )
            for point in points
        ]
        async with _qdrant_errors("upsert"):
            await self.client.upsert(
                collection_name=self.collection_name,
                points=structs,
                wait=True,
            )
        return [str(s.id) for s in structs]

    async def search_vectors(
        self,
        embedding: list[float],
        filters: SearchFilters,
        limit: int,
        score_threshold: float | None = None,
    ) -> list[VectorSearchResult]:
        await self.ensure_collection()

        must = [_match("repositoryId", filters.repository_id)]
        if filters.file_path:
            must.append(_match("filePath", filters.file_path))
        if filters.type:
            must.append(_match("type", filters.type))

        async with _qdrant_errors("search"):
            response = await self.client.query_points(
                collection_name=self.collection_name,
                query=embedding,
                query_filter=models.Filter(must=must),
                limit=limit,
                score_threshold=score_threshold,
                with_payload=True,
            )

        results = []
        for point in response.points:
            if not isinstance(point.id, str) or not point.payload or not isinstance(point.score, (int, float)):
                logger.debug("Dropping malformed search result %r", point.id)
                continue
            try:
                payload = CodeChunk.model_validate(point.payload)
            except PayloadValidationError:
                logger.debug("Dropping search result %s with invalid payload", point.id)
                continue
            results.append(VectorSearchResult(id=point.id, score=float(point.score), payload=payload))
        return results

    async def delete_vectors(self, ids: Sequence[str]) -> None:
        if not ids:
            return

        await self.ensure_collection()
        async with _qdrant_errors("delete"):
            await self.client.delete(
                collection_name=self.collection_name,
                points_selector=models.PointIdsList(points=list(ids)),
                wait=True,
            )

    async def delete_vectors_by_repository(self, repository_id: str) -> None:
        await self.ensure_collection()
        async with _qdrant_errors("delete"):
            await self.client.delete(
                collection_name=self.collection_name,
                points_selector=models.FilterSelector(
                    filter=models.Filter(must=[_match("repositoryId", repository_id)])
                ),
                wait=True,
            )

    async def check_health(self) -> None:
        async with _qdrant_errors("health check"):
            await self.client.get_collections()
