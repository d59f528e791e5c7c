import os

from dotenv import load_dotenv
from pydantic import BaseModel

# Every model here must produce vectors matching the collection dimension.
MODEL_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "openai/text-embedding-3-small": 1536,
    "text-embedding-ada-002": 1536,
    "openai/text-embedding-ada-002": 1536,
}


class Settings(BaseModel):
    qdrant_url: str = "http://localhost:6333"
    qdrant_api_key: str | None = None
    collection_name: str = "repoindex"
    embedding_model: str = "text-embedding-3-small"
    embedding_api_key: str = ""
    embedding_api_base: str = "https://openrouter.ai/api/v1"
    database_url: str = "sqlite:///./data/repoindex.db"
    scratch_root: str = ".tmp/repos"
    github_token: str | None = None
    host: str = "0.0.0.0"
    port: int = 9091

    @property
    def embedding_dimension(self) -> int:
        return MODEL_DIMENSIONS[self.embedding_model]

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()

        model = os.environ.get("EMBEDDING_MODEL", "text-embedding-3-small")
        if model not in MODEL_DIMENSIONS:
            raise ValueError(f"Unknown model '{model}'. Supported: {', '.join(MODEL_DIMENSIONS)}")

        return cls(
            qdrant_url=os.environ.get("QDRANT_URL", "http://localhost:6333"),
            qdrant_api_key=os.environ.get("QDRANT_API_KEY") or None,
            collection_name=os.environ.get("QDRANT_COLLECTION", "repoindex"),
            embedding_model=model,
            embedding_api_key=os.environ.get("OPENROUTER_API_KEY", ""),
            embedding_api_base=os.environ.get("EMBEDDING_API_BASE", "https://openrouter.ai/api/v1"),
            database_url=os.environ.get("DATABASE_URL", "sqlite:///./data/repoindex.db"),
            scratch_root=os.environ.get("SCRATCH_ROOT", ".tmp/repos"),
            github_token=os.environ.get("GITHUB_TOKEN") or None,
            host=os.environ.get("INDEXER_HOST", "0.0.0.0"),
            port=int(os.environ.get("INDEXER_PORT", "9091")),
        )
