import asyncio
import logging
import os
import shutil
import uuid
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path

from .errors import CloneError

logger = logging.getLogger(__name__)

CloneFn = Callable[[str, Path, str | None], Awaitable[None]]


async def clone_repository(repo_url: str, destination: Path, branch: str | None = None) -> None:
    """Shallow-clone `repo_url` into `destination` (depth 1, single branch, no tags)."""
    args = ["git", "clone", "--depth", "1", "--single-branch", "--no-tags"]
    if branch:
        args += ["--branch", branch]
    args += [repo_url, str(destination)]

    try:
        proc = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env={**os.environ, "GIT_TERMINAL_PROMPT": "0"},
        )
        _, stderr = await proc.communicate()
    except OSError as e:
        raise CloneError(f"Failed to run git clone for {repo_url}: {e}") from e

    if proc.returncode != 0:
        raise CloneError(f"git clone failed for {repo_url}: {stderr.decode(errors='replace').strip()}")


async def remove_tree(path: Path) -> None:
    await asyncio.to_thread(shutil.rmtree, path, ignore_errors=True)


@asynccontextmanager
async def scratch_clone(
    repo_url: str,
    branch: str | None,
    scratch_root: str | Path,
    clone: CloneFn = clone_repository,
) -> AsyncIterator[Path]:
    """Clone into a fresh directory under `scratch_root`, removing it on exit."""
    root = Path(scratch_root).resolve()
    try:
        await asyncio.to_thread(root.mkdir, parents=True, exist_ok=True)
    except OSError as e:
        raise CloneError(f"Cannot create scratch directory {root}: {e}") from e
    repo_path = root / uuid.uuid4().hex

    try:
        logger.info("Cloning %s (branch=%s) into %s", repo_url, branch or "default", repo_path)
        try:
            await clone(repo_url, repo_path, branch)
        except OSError as e:
            raise CloneError(f"Cloning {repo_url} into {repo_path} failed: {e}") from e
        yield repo_path
    finally:
        await remove_tree(repo_path)
        logger.debug("Removed scratch clone %s", repo_path)
