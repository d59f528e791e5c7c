class RepoIndexError(Exception):
    """Base class for every failure raised by the indexing and retrieval pipeline."""


class ValidationError(RepoIndexError, ValueError):
    """Malformed input to a public entry point. Raised before any I/O."""


class CloneError(RepoIndexError):
    """The remote could not be cloned (unreachable, missing branch, disk failure)."""


class EmbeddingProviderError(RepoIndexError):
    """Network, auth or rate-limit failure reported by the embedding service."""


class EmbeddingDimensionMismatch(RepoIndexError):
    def __init__(self, expected: int, actual: int):
        super().__init__(f"Unexpected embedding dimension {actual}, expected {expected}")
        self.expected = expected
        self.actual = actual


class VectorStoreError(RepoIndexError):
    """Collection bootstrap, upsert, search or delete failed against Qdrant."""


class MetadataProviderError(RepoIndexError):
    """The repository metadata lookup (GitHub API) failed or was rate-limited."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RepositoryNotFound(RepoIndexError):
    def __init__(self, repository_id: str):
        super().__init__(f"Repository '{repository_id}' not found")
        self.repository_id = repository_id
