import asyncio
import logging
import os

from fastmcp import FastMCP

from .components import Components, build_components
from .config import Settings
from .retrieval import query_repository


def create_server(components: Components) -> FastMCP:
    mcp = FastMCP(
        name="repoindex-search",
        instructions=(
            "Semantic search over indexed git repositories. "
            "Use list_repositories to see available repositories, "
            "then search to find relevant code chunks by natural language query."
        ),
    )

    @mcp.tool()
    async def list_repositories() -> list[dict]:
        """List all repositories known to the index with their status."""
        records = await asyncio.to_thread(components.repositories.list_all)
        return [
            {
                "id": r.id,
                "url": r.url,
                "status": r.status,
                "chunks_indexed": r.chunks_indexed,
            }
            for r in records
        ]

    @mcp.tool()
    async def search(query: str, repository_id: str, limit: int = 5, max_tokens: int | None = None) -> list[dict]:
        """Search for code chunks semantically similar to the query.

        Args:
            query: Natural language search query.
            repository_id: Repository id (from list_repositories).
            limit: Number of results to return (3 to 15).
            max_tokens: Optional cap on the estimated tokens of all returned chunks.
        """
        result = await query_repository(
            query,
            repository_id,
            embedder=components.embedder,
            vector_store=components.vector_store,
            limit=limit,
            max_tokens=max_tokens,
        )
        return [
            {
                "file_path": source.metadata.file_path,
                "chunk_index": source.metadata.chunk_index,
                "score": round(source.score, 4),
                "content": source.content,
            }
            for source in result.sources
        ]

    return mcp


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    mcp = create_server(build_components(Settings.from_env()))

    transport = os.environ.get("MCP_TRANSPORT", "stdio")
    kwargs = {}
    if transport != "stdio":
        kwargs["host"] = os.environ.get("MCP_HOST", "0.0.0.0")
        kwargs["port"] = int(os.environ.get("MCP_PORT", "8080"))
    mcp.run(transport=transport, **kwargs)


if __name__ == "__main__":
    main()
