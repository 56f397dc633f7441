"""GitHub API and raw-content access.

Thin async wrapper over the GitHub contents API and
raw.githubusercontent.com used by the legacy marketplace, asset helpers,
URL installs and diagnostics.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
RAW_BASE_URL = "https://raw.githubusercontent.com"
USER_AGENT = "agent-skills-cli"

_TREE_URL_RE = re.compile(r"github\.com/([^/]+)/([^/]+)/tree/([^/]+)/(.+)")


class GitHubError(Exception):
    """A GitHub request failed."""


@dataclass
class ContentItem:
    """One entry of a GitHub contents listing."""

    name: str
    path: str
    type: str
    size: int = 0
    download_url: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ContentItem:
        return cls(
            name=str(data.get("name", "")),
            path=str(data.get("path", "")),
            type=str(data.get("type", "")),
            size=int(data.get("size") or 0),
            download_url=data.get("download_url"),
        )


@dataclass(frozen=True)
class GitHubTreeRef:
    """A ``github.com/<owner>/<repo>/tree/<branch>/<path>`` URL."""

    owner: str
    repo: str
    branch: str
    path: str

    @property
    def skill_file_url(self) -> str:
        return f"{RAW_BASE_URL}/{self.owner}/{self.repo}/{self.branch}/{self.path}/SKILL.md"


def parse_github_tree_url(url: str) -> GitHubTreeRef:
    """Parse a GitHub folder URL.

    Raises:
        ValueError: If the URL is not a GitHub tree URL with a path
    """
    match = _TREE_URL_RE.search(url)
    if not match:
        raise ValueError(f"Invalid GitHub URL: {url}")
    owner, repo, branch, path = match.groups()
    path = path.split("?", 1)[0].split("#", 1)[0].strip("/")
    return GitHubTreeRef(owner=owner, repo=repo.removesuffix(".git"), branch=branch, path=path)


class GitHubClient:
    """Minimal async GitHub client.

    Example usage:
        ```python
        client = GitHubClient(token=config.github_token)
        items = await client.list_contents("anthropics", "skills", "skills", "main")
        ```
    """

    def __init__(self, token: str | None = None, timeout: float = 30.0) -> None:
        self._token = token
        self._timeout = timeout

    def _get_headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _get(self, url: str, params: dict[str, str] | None = None, api: bool = True) -> httpx.Response:
        headers = self._get_headers() if api else {"User-Agent": USER_AGENT}
        async with httpx.AsyncClient() as client:
            try:
                response = await client.get(
                    url,
                    headers=headers,
                    params=params,
                    timeout=self._timeout,
                    follow_redirects=True,
                )
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as e:
                logger.debug(f"GitHub error {e.response.status_code} for {url}")
                raise GitHubError(f"GitHub returned {e.response.status_code} for {url}") from e
            except httpx.RequestError as e:
                logger.debug(f"GitHub request failed for {url}: {e}")
                raise GitHubError(f"GitHub request failed: {e}") from e

    async def list_contents(
        self,
        owner: str,
        repo: str,
        path: str = "",
        ref: str | None = None,
    ) -> list[ContentItem]:
        """List a repository directory.

        Raises:
            GitHubError: If the request fails or the path is not a directory
        """
        url = f"{GITHUB_API_URL}/repos/{owner}/{repo}/contents"
        if path.strip("/"):
            url = f"{url}/{path.strip('/')}"
        params = {"ref": ref} if ref else None

        response = await self._get(url, params=params)
        data = response.json()
        if not isinstance(data, list):
            raise GitHubError(f"Not a directory: {owner}/{repo}/{path}")
        return [ContentItem.from_api(item) for item in data if isinstance(item, dict)]

    async def list_files_recursive(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: str | None = None,
    ) -> list[ContentItem]:
        """List every file below a directory, depth first."""
        files: list[ContentItem] = []
        for item in await self.list_contents(owner, repo, path, ref):
            if item.type == "dir":
                files.extend(await self.list_files_recursive(owner, repo, item.path, ref))
            elif item.type == "file":
                files.append(item)
        return files

    async def fetch_text(self, url: str) -> str:
        """Fetch a raw file as text.

        Raises:
            GitHubError: If the request fails
        """
        response = await self._get(url, api=False)
        return response.text

    async def fetch_bytes(self, url: str) -> bytes:
        response = await self._get(url, api=False)
        return response.content

    async def fetch_raw(self, owner: str, repo: str, branch: str, path: str) -> str:
        return await self.fetch_text(f"{RAW_BASE_URL}/{owner}/{repo}/{branch}/{path.lstrip('/')}")

    async def download_directory(
        self,
        owner: str,
        repo: str,
        path: str,
        dest: Path,
        ref: str | None = None,
    ) -> list[Path]:
        """Download every file under a repository directory into dest.

        Returns:
            Paths of the files written
        """
        prefix = path.strip("/")
        written: list[Path] = []
        for item in await self.list_files_recursive(owner, repo, prefix, ref):
            if not item.download_url:
                continue
            relative = item.path[len(prefix) :].lstrip("/") if prefix else item.path
            target = (dest / relative).resolve()
            if not target.is_relative_to(dest.resolve()):
                logger.warning(f"Skipping file outside skill directory: {item.path}")
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(await self.fetch_bytes(item.download_url))
            written.append(target)
        return written

    async def rate_limit(self) -> dict[str, Any]:
        """Return the ``rate`` block of the GitHub rate-limit endpoint."""
        response = await self._get(f"{GITHUB_API_URL}/rate_limit")
        data = response.json()
        rate: dict[str, Any] = data.get("rate", {}) if isinstance(data, dict) else {}
        return rate


async def install_from_github_url(
    url: str,
    install_dir: Path,
    client: GitHubClient | None = None,
) -> tuple[str, Path]:
    """Install a skill's SKILL.md straight from a GitHub folder URL.

    The skill is named after the last path segment.

    Returns:
        Tuple of (skill name, installed directory)

    Raises:
        ValueError: If the URL is not a GitHub folder URL
        GitHubError: If SKILL.md cannot be fetched
    """
    ref = parse_github_tree_url(url)
    client = client or GitHubClient()

    name = ref.path.rsplit("/", 1)[-1] or "skill"
    content = await client.fetch_text(ref.skill_file_url)

    dest = install_dir / name
    dest.mkdir(parents=True, exist_ok=True)
    (dest / "SKILL.md").write_text(content, encoding="utf-8")
    logger.info(f"Installed {name} from {url}")
    return name, dest
