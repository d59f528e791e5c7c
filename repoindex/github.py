import re
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel

from .errors import MetadataProviderError
from .models import RepositoryMetadata

GITHUB_API_URL = "https://api.github.com"


class ParsedRepositoryUrl(BaseModel):
    owner: str
    repo: str
    normalized_url: str


def parse_github_url(url: str) -> ParsedRepositoryUrl | None:
    """Parse `https://github.com/<owner>/<repo>[.git][/...]`; None if it isn't one."""
    try:
        parsed = urlparse(url.strip())
    except ValueError:
        return None

    if parsed.scheme not in ("http", "https") or parsed.hostname != "github.com":
        return None

    segments = [s for s in re.sub(r"\.git$", "", parsed.path).split("/") if s]
    if len(segments) < 2:
        return None

    owner, repo = segments[0], re.sub(r"\.git$", "", segments[1])
    if not owner or not repo:
        return None

    return ParsedRepositoryUrl(
        owner=owner,
        repo=repo,
        normalized_url=f"https://github.com/{owner}/{repo}",
    )


async def fetch_repository_metadata(
    parsed: ParsedRepositoryUrl,
    token: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> RepositoryMetadata:
    headers = {"Accept": "application/vnd.github+json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    url = f"{GITHUB_API_URL}/repos/{parsed.owner}/{parsed.repo}"
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=httpx.Timeout(30.0)) as own_client:
                response = await own_client.get(url, headers=headers)
        else:
            response = await client.get(url, headers=headers)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        raise MetadataProviderError(
            f"GitHub lookup for {parsed.owner}/{parsed.repo} failed: {e}",
            status_code=e.response.status_code,
        ) from e
    except httpx.HTTPError as e:
        raise MetadataProviderError(f"GitHub lookup for {parsed.owner}/{parsed.repo} failed: {e}") from e

    return RepositoryMetadata(
        name=data["name"],
        owner=data["owner"]["login"],
        url=data["html_url"],
        description=data.get("description"),
        stars=data.get("stargazers_count") or 0,
        language=data.get("language"),
        default_branch=data.get("default_branch") or "main",
    )
