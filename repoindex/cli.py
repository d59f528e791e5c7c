import asyncio
import logging

import click

from .components import Components, build_components
from .config import Settings
from .errors import RepoIndexError
from .github import fetch_repository_metadata, parse_github_url
from .indexing import delete_repository_index, index_public_repository
from .retrieval import query_repository


def _components() -> Components:
    try:
        return build_components(Settings.from_env())
    except ValueError as e:
        raise click.ClickException(str(e))


def _run(coro):
    try:
        return asyncio.run(coro)
    except RepoIndexError as e:
        raise click.ClickException(str(e))


@click.group()
@click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """Index git repositories into Qdrant and query them."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@cli.command()
@click.argument("repo_url")
@click.option("--branch", default=None, help="Branch to index (defaults to the repository default branch).")
def index(repo_url: str, branch: str | None) -> None:
    """Clone a public GitHub repository and index it."""
    parsed = parse_github_url(repo_url)
    if parsed is None:
        raise click.ClickException("Invalid GitHub URL. Use format https://github.com/owner/repo")
    c = _components()

    async def _index():
        metadata = await fetch_repository_metadata(parsed, token=c.settings.github_token)
        return await index_public_repository(
            parsed.normalized_url,
            branch or metadata.default_branch,
            metadata,
            repositories=c.repositories,
            embedder=c.embedder,
            vector_store=c.vector_store,
            scratch_root=c.settings.scratch_root,
        )

    result = _run(_index())
    click.echo(f"Repository: {result.repository.id} ({result.repository.url})")
    click.echo(f"Done. {result.chunks_indexed} chunks indexed.")


@cli.command()
@click.argument("repository_id")
@click.argument("query")
@click.option("--limit", type=click.IntRange(3, 15), default=5, show_default=True)
@click.option("--score-threshold", type=click.FloatRange(0, 1), default=None)
@click.option("--max-tokens", type=click.IntRange(min=1), default=None)
def query(repository_id: str, query: str, limit: int, score_threshold: float | None, max_tokens: int | None) -> None:
    """Search an indexed repository."""
    c = _components()
    result = _run(
        query_repository(
            query,
            repository_id,
            embedder=c.embedder,
            vector_store=c.vector_store,
            limit=limit,
            score_threshold=score_threshold,
            max_tokens=max_tokens,
        )
    )
    if not result.sources:
        click.echo("No results.")
    for source in result.sources:
        click.echo(f"[{source.score:.4f}] {source.metadata.file_path}#{source.metadata.chunk_index}")
        click.echo(f"  {source.content[:120].strip()}")
        click.echo()


@cli.command()
@click.argument("repository_id")
def delete(repository_id: str) -> None:
    """Delete every stored vector of a repository."""
    c = _components()
    repository = _run(
        delete_repository_index(repository_id, repositories=c.repositories, vector_store=c.vector_store)
    )
    click.echo(f"Cleared index of {repository.url}.")


@cli.command()
def repos() -> None:
    """List known repositories."""
    c = _components()
    records = c.repositories.list_all()
    if not records:
        click.echo("No repositories found. Index a repo first.")
    for r in records:
        click.echo(f"{r.id}  {r.status:<10} {r.chunks_indexed:>6}  {r.url}")


@cli.command()
def health() -> None:
    """Check that Qdrant is reachable."""
    c = _components()
    _run(c.vector_store.check_health())
    click.echo(f"Qdrant at {c.settings.qdrant_url} is healthy.")


if __name__ == "__main__":
    cli()
