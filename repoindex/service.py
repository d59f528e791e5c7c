import asyncio
import logging

import restate
from hypercorn.asyncio import serve
from hypercorn.config import Config

from .components import Components, build_components
from .config import Settings
from .errors import (
    CloneError,
    EmbeddingDimensionMismatch,
    MetadataProviderError,
    RepositoryNotFound,
    ValidationError,
)
from .github import fetch_repository_metadata, parse_github_url
from .indexing import delete_repository_index, index_public_repository
from .models import (
    DeleteRepositoryIndexRequest,
    IndexRepositoryRequest,
    IndexResult,
    QueryRepositoryRequest,
    RepositoryRecord,
    SearchResult,
)
from .retrieval import query_repository

logger = logging.getLogger(__name__)


def as_terminal(e: Exception) -> Exception:
    """Map failures that retrying cannot fix onto restate terminal errors."""
    if isinstance(e, ValidationError):
        return restate.TerminalError(str(e), status_code=400)
    if isinstance(e, RepositoryNotFound):
        return restate.TerminalError(str(e), status_code=404)
    if isinstance(e, (CloneError, EmbeddingDimensionMismatch)):
        return restate.TerminalError(str(e), status_code=422)
    if isinstance(e, MetadataProviderError) and e.status_code is not None:
        # 429 is a rate limit and clears on retry; other 4xx do not.
        if 400 <= e.status_code < 500 and e.status_code != 429:
            return restate.TerminalError(str(e), status_code=e.status_code)
    return e


def create_service(components: Components) -> restate.Service:
    indexer_service = restate.Service("RepositoryIndexer")
    settings = components.settings

    @indexer_service.handler("IndexRepository")
    async def index_repository_handler(ctx: restate.Context, req: IndexRepositoryRequest) -> IndexResult:
        parsed = parse_github_url(req.repo_url)
        if parsed is None:
            raise restate.TerminalError(
                "Invalid GitHub URL. Use format https://github.com/owner/repo", status_code=400
            )
        try:
            metadata = await fetch_repository_metadata(parsed, token=settings.github_token)
            return await index_public_repository(
                parsed.normalized_url,
                req.branch or metadata.default_branch,
                metadata,
                repositories=components.repositories,
                embedder=components.embedder,
                vector_store=components.vector_store,
                scratch_root=settings.scratch_root,
            )
        except Exception as e:
            terminal = as_terminal(e)
            if terminal is e:
                raise
            raise terminal from e

    @indexer_service.handler("QueryRepository")
    async def query_repository_handler(ctx: restate.Context, req: QueryRepositoryRequest) -> SearchResult:
        repository = await asyncio.to_thread(components.repositories.get, req.repository_id)
        if repository is None:
            raise restate.TerminalError("Repository not found", status_code=404)
        try:
            return await query_repository(
                req.query,
                repository.id,
                embedder=components.embedder,
                vector_store=components.vector_store,
                limit=req.limit,
                score_threshold=req.score_threshold,
                max_tokens=req.max_tokens,
            )
        except ValidationError as e:
            raise restate.TerminalError(str(e), status_code=400) from e

    @indexer_service.handler("DeleteRepositoryIndex")
    async def delete_repository_index_handler(
        ctx: restate.Context, req: DeleteRepositoryIndexRequest
    ) -> RepositoryRecord:
        try:
            return await delete_repository_index(
                req.repository_id,
                repositories=components.repositories,
                vector_store=components.vector_store,
            )
        except RepositoryNotFound as e:
            raise restate.TerminalError(str(e), status_code=404) from e

    return indexer_service


def create_app(settings: Settings):
    return restate.app([create_service(build_components(settings))])


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    settings = Settings.from_env()

    config = Config()
    config.bind = [f"{settings.host}:{settings.port}"]

    asyncio.run(serve(create_app(settings), config))
