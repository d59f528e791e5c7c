from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

ChunkType = Literal["markdown", "code", "text"]


class RepositoryStatus(str, Enum):
    INDEXING = "indexing"
    INDEXED = "indexed"
    FAILED = "failed"


def failed_status(reason: str | None = None, max_length: int = 255) -> str:
    if not reason:
        return RepositoryStatus.FAILED.value
    return f"{RepositoryStatus.FAILED.value}:{reason}"[:max_length]


class RepositoryMetadata(BaseModel):
    name: str
    owner: str
    url: str
    description: str | None = None
    stars: int = Field(default=0, ge=0)
    language: str | None = None
    default_branch: str = "main"


class RepositoryRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    owner: str
    url: str
    description: str | None
    stars: int
    language: str | None
    status: str
    chunks_indexed: int
    indexed_at: datetime | None
    created_at: datetime


class CodeChunk(BaseModel):
    # Stored as the Qdrant payload; camelCase keys back the payload indexes.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    repository_id: str
    repository_url: str
    file_path: str
    file_extension: str
    chunk_index: int = Field(ge=0)
    type: ChunkType
    content: str
    token_estimate: int = Field(ge=0)

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True)


class SourceMetadata(BaseModel):
    repository_id: str
    repository_url: str
    file_path: str
    file_extension: str
    chunk_index: int
    type: ChunkType
    token_estimate: int


class VectorPoint(BaseModel):
    id: str | None = None
    vector: list[float]
    payload: CodeChunk


class SearchFilters(BaseModel):
    repository_id: str
    file_path: str | None = None
    type: ChunkType | None = None


class VectorSearchResult(BaseModel):
    id: str
    score: float
    payload: CodeChunk


class Source(BaseModel):
    id: str
    content: str
    score: float
    metadata: SourceMetadata


class SearchResult(BaseModel):
    query: str
    sources: list[Source]


class IndexResult(BaseModel):
    repository: RepositoryRecord
    chunks_indexed: int


class IndexRepositoryRequest(BaseModel):
    repo_url: str
    branch: str | None = None               # None = repository default branch


class QueryRepositoryRequest(BaseModel):
    repository_id: str = Field(min_length=1)
    query: str = Field(min_length=1)
    limit: int = Field(default=5, ge=3, le=15)
    score_threshold: float | None = Field(default=None, ge=0, le=1)
    max_tokens: int | None = Field(default=None, gt=0)


class DeleteRepositoryIndexRequest(BaseModel):
    repository_id: str = Field(min_length=1)
