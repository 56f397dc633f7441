"""Remote skills database client.

This module provides the SkillsDatabaseClient class which queries the
central skills index over HTTP. Responses are normalised into
RemoteSkillRecord at this boundary; the index mixes camelCase and
snake_case keys and nothing past this module should care.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

import httpx

from agent_skills.config.app import DEFAULT_SKILLS_API_URL

logger = logging.getLogger(__name__)

SortKey = Literal["stars", "recent", "name"]

USER_AGENT = "agent-skills-cli"

# Candidates fetched when resolving a scoped name
RESOLVE_LIMIT = 50


class RemoteIndexUnavailableError(Exception):
    """The remote index could not be reached or returned an unusable response."""


class ScopedNameError(ValueError):
    """Raised for an empty or malformed scoped skill name."""


@dataclass(frozen=True)
class ScopedName:
    """A parsed ``@author/name`` identifier; author is optional."""

    name: str
    author: str | None = None

    def __str__(self) -> str:
        return f"@{self.author}/{self.name}" if self.author else self.name


def parse_scoped_name(text: str) -> ScopedName:
    """Parse ``@author/name``, ``author/name`` or ``name``.

    Everything after the first slash is the name.

    Raises:
        ScopedNameError: If no name is present
    """
    clean = text.strip().removeprefix("@").strip()
    if "/" in clean:
        author, name = clean.split("/", 1)
        author, name = author.strip(), name.strip()
    else:
        author, name = "", clean

    if not name:
        raise ScopedNameError(f"Invalid skill name: {text!r}")
    return ScopedName(name=name, author=author or None)


def _pick(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


@dataclass
class RemoteAsset:
    name: str
    raw_url: str
    size: int = 0


@dataclass
class RemoteSkillRecord:
    """A skill as listed by a remote index or legacy marketplace.

    Attributes:
        id: Index identifier
        name: Plain skill name (may collide across authors)
        author: Publishing author
        scoped_name: "author/name", unique per record
        description: Short description
        stars: GitHub stars of the hosting repository
        forks: GitHub forks of the hosting repository
        github_url: Browser URL of the skill folder
        raw_url: Raw URL of the SKILL.md file
        repo_full_name: "owner/repo" of the hosting repository
        branch: Branch holding the skill
        path: Path of the skill (or its SKILL.md) inside the repository
        author_avatar: Avatar URL of the author
        has_assets: Whether the skill ships an assets/ folder
        assets: Known asset files
        source_id: Legacy marketplace source, when not from the index
        version: Version declared by the skill, when known
    """

    id: str
    name: str
    author: str = ""
    scoped_name: str = ""
    description: str = ""
    stars: int = 0
    forks: int = 0
    github_url: str = ""
    raw_url: str = ""
    repo_full_name: str = ""
    branch: str = "main"
    path: str = ""
    author_avatar: str | None = None
    has_assets: bool = False
    assets: list[RemoteAsset] = field(default_factory=list)
    source_id: str | None = None
    version: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> RemoteSkillRecord:
        """Build a record from an index payload in either key casing."""
        name = str(_pick(data, "name", default=""))
        author = str(_pick(data, "author", default=""))
        scoped = _pick(data, "scoped_name", "scopedName") or (f"{author}/{name}" if author else name)

        assets = [
            RemoteAsset(
                name=str(_pick(a, "name", default="")),
                raw_url=str(_pick(a, "rawUrl", "raw_url", default="")),
                size=_to_int(_pick(a, "size", default=0)),
            )
            for a in (data.get("assets") or [])
            if isinstance(a, dict)
        ]

        return cls(
            id=str(_pick(data, "id", default=scoped)),
            name=name,
            author=author,
            scoped_name=str(scoped).removeprefix("@"),
            description=str(_pick(data, "description", default="")),
            stars=_to_int(_pick(data, "stars", default=0)),
            forks=_to_int(_pick(data, "forks", default=0)),
            github_url=str(_pick(data, "github_url", "githubUrl", default="")),
            raw_url=str(_pick(data, "raw_url", "rawUrl", default="")),
            repo_full_name=str(_pick(data, "repo_full_name", "repoFullName", default="")),
            branch=str(_pick(data, "branch", default="main") or "main"),
            path=str(_pick(data, "path", default="")),
            author_avatar=_pick(data, "author_avatar", "authorAvatar"),
            has_assets=bool(_pick(data, "has_assets", "hasAssets", default=False)),
            assets=assets,
            version=_pick(data, "version"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "author": self.author,
            "scoped_name": self.scoped_name,
            "description": self.description,
            "stars": self.stars,
            "forks": self.forks,
            "github_url": self.github_url,
            "raw_url": self.raw_url,
            "repo_full_name": self.repo_full_name,
            "branch": self.branch,
            "path": self.path,
            "has_assets": self.has_assets,
            "source_id": self.source_id,
        }


@dataclass
class FetchOptions:
    """Query parameters for the remote index."""

    search: str | None = None
    author: str | None = None
    category: str | None = None
    limit: int | None = None
    offset: int | None = None
    sort_by: SortKey | None = None

    def to_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.search:
            params["search"] = self.search
        if self.author:
            params["author"] = self.author
        if self.category:
            params["category"] = self.category
        if self.limit:
            params["limit"] = str(self.limit)
        if self.offset:
            params["offset"] = str(self.offset)
        if self.sort_by:
            params["sortBy"] = self.sort_by
        return params


@dataclass
class SkillsDBResult:
    skills: list[RemoteSkillRecord]
    total: int


@dataclass
class PageResult:
    """One page of index results."""

    skills: list[RemoteSkillRecord]
    total: int
    has_next: bool
    page: int


class SkillsDatabaseClient:
    """Client for the remote skills index.

    Example usage:
        ```python
        client = SkillsDatabaseClient()
        record = await client.get_by_scoped("@acme/pdf")
        ```
    """

    def __init__(
        self,
        base_url: str = DEFAULT_SKILLS_API_URL,
        timeout: float = 30.0,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self._base_url

    def _get_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
        }

    async def _make_request(self, params: dict[str, str]) -> dict[str, Any]:
        """GET the index and decode its JSON body.

        Raises:
            RemoteIndexUnavailableError: On network failure, non-2xx status or bad JSON
        """
        async with httpx.AsyncClient() as client:
            try:
                response = await client.get(
                    self._base_url,
                    headers=self._get_headers(),
                    params=params,
                    timeout=self._timeout,
                )
                response.raise_for_status()
                result = response.json()
            except httpx.HTTPStatusError as e:
                logger.error(f"Skills index error: {e.response.status_code}")
                raise RemoteIndexUnavailableError(
                    f"Failed to fetch skills: API error {e.response.status_code}"
                ) from e
            except httpx.RequestError as e:
                logger.error(f"Skills index request failed: {e}")
                raise RemoteIndexUnavailableError(f"Failed to fetch skills: {e}") from e
            except ValueError as e:
                raise RemoteIndexUnavailableError(f"Failed to fetch skills: invalid JSON ({e})") from e

        if not isinstance(result, dict):
            raise RemoteIndexUnavailableError("Failed to fetch skills: unexpected response shape")
        return result

    async def fetch(self, options: FetchOptions | None = None) -> SkillsDBResult:
        """Query the index.

        A well-formed response with zero skills is returned as-is.

        Raises:
            RemoteIndexUnavailableError: If the index cannot be used
        """
        data = await self._make_request((options or FetchOptions()).to_params())
        raw_skills = data.get("skills") or []
        skills = [RemoteSkillRecord.from_api(s) for s in raw_skills if isinstance(s, dict)]
        total = _to_int(data.get("total", len(skills)))
        logger.debug(f"Index returned {len(skills)} of {total} skill(s)")
        return SkillsDBResult(skills=skills, total=total)

    async def get_by_scoped(self, scoped: str | ScopedName) -> RemoteSkillRecord | None:
        """Resolve ``@author/name`` or ``name`` to a single record.

        An exact case-insensitive match on name (and author, when given)
        wins. With an author and no exact match the result is None. Without
        an author the top-ranked record by stars is returned.

        Raises:
            ScopedNameError: If the name is malformed
            RemoteIndexUnavailableError: If the index cannot be used
        """
        ref = parse_scoped_name(scoped) if isinstance(scoped, str) else scoped
        result = await self.fetch(
            FetchOptions(search=ref.name, author=ref.author, limit=RESOLVE_LIMIT, sort_by="stars")
        )
        return select_match(result.skills, ref)

    async def search(
        self,
        query: str,
        limit: int = 20,
        offset: int = 0,
        sort_by: SortKey = "stars",
        author: str | None = None,
    ) -> SkillsDBResult:
        return await self.fetch(
            FetchOptions(search=query, author=author, limit=limit, offset=offset, sort_by=sort_by)
        )

    async def by_author(
        self,
        author: str,
        limit: int = 50,
        offset: int = 0,
        sort_by: SortKey = "stars",
    ) -> SkillsDBResult:
        return await self.fetch(
            FetchOptions(author=author, limit=limit, offset=offset, sort_by=sort_by)
        )

    async def fetch_page(
        self,
        search: str | None = None,
        page: int = 1,
        limit: int = 50,
        sort_by: SortKey = "stars",
    ) -> PageResult:
        """Fetch a 1-based page of results."""
        page = max(page, 1)
        offset = (page - 1) * limit
        result = await self.fetch(
            FetchOptions(search=search or None, limit=limit, offset=offset, sort_by=sort_by)
        )
        return PageResult(
            skills=result.skills,
            total=result.total,
            has_next=offset + len(result.skills) < result.total,
            page=page,
        )


def select_match(records: list[RemoteSkillRecord], ref: ScopedName) -> RemoteSkillRecord | None:
    """Pick the record a scoped name refers to from ranked candidates."""
    name = ref.name.lower()
    author = ref.author.lower() if ref.author else None

    for record in records:
        if record.name.lower() != name:
            continue
        if author is None or record.author.lower() == author:
            return record

    if author is not None:
        return None
    # No author given: trust the index ranking
    return records[0] if records else None
