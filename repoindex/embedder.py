import logging
from collections.abc import Sequence

from llama_index.core.base.embeddings.base import BaseEmbedding
from llama_index.embeddings.openai import OpenAIEmbedding

from .config import Settings
from .errors import EmbeddingDimensionMismatch, EmbeddingProviderError, ValidationError

logger = logging.getLogger(__name__)

BATCH_SIZE = 96
EMBEDDING_DIMENSION = 1536


def build_embed_model(settings: Settings) -> OpenAIEmbedding:
    return OpenAIEmbedding(
        model=settings.embedding_model,
        dimensions=settings.embedding_dimension,
        api_base=settings.embedding_api_base,
        api_key=settings.embedding_api_key,
        embed_batch_size=BATCH_SIZE,
        # Retrying is left to whoever re-triggers indexing.
        max_retries=0,
        default_headers={
            "HTTP-Referer": "https://github.com/repoindex",
            "X-Title": "repoindex",
        },
    )


class Embedder:
    """Turns chunk texts into fixed-size vectors, one sequential batch at a time."""

    def __init__(
        self,
        embed_model: BaseEmbedding,
        dimension: int = EMBEDDING_DIMENSION,
        batch_size: int = BATCH_SIZE,
    ):
        self.embed_model = embed_model
        self.dimension = dimension
        self.batch_size = batch_size

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        normalized = [text.strip() for text in texts]
        if any(not text for text in normalized):
            raise ValidationError("Cannot embed empty text")

        embeddings: list[list[float]] = []
        for start in range(0, len(normalized), self.batch_size):
            batch = normalized[start:start + self.batch_size]
            try:
                result = await self.embed_model.aget_text_embedding_batch(batch)
            except Exception as e:
                raise EmbeddingProviderError(f"Embedding request failed: {e}") from e

            if len(result) != len(batch):
                raise EmbeddingProviderError(
                    f"Embedding provider returned {len(result)} vectors for {len(batch)} inputs"
                )
            for vector in result:
                if len(vector) != self.dimension:
                    raise EmbeddingDimensionMismatch(self.dimension, len(vector))
            embeddings.extend(list(vector) for vector in result)
            logger.debug("Embedded batch %d-%d of %d", start, start + len(batch), len(normalized))

        return embeddings

    async def embed_query(self, text: str) -> list[float] | None:
        vectors = await self.embed([text])
        return vectors[0] if vectors else None
