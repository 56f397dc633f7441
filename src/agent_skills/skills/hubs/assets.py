"""On-demand asset fetching.

Asset URLs are derived from a skill's raw SKILL.md URL, so nothing about
assets needs to be stored locally. A skill may publish an
``assets/index.jsonl`` manifest; otherwise the GitHub contents API lists
the assets/ folder.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Literal

from agent_skills.skills.hubs.github import GitHubClient, GitHubError

logger = logging.getLogger(__name__)

_RAW_URL_RE = re.compile(r"https://raw\.githubusercontent\.com/([^/]+)/([^/]+)/([^/]+)/(.+)")
_SKILL_FILE_SUFFIX_RE = re.compile(r"/SKILL\.md$", re.IGNORECASE)


@dataclass(frozen=True)
class RawUrlParts:
    owner: str
    repo: str
    branch: str
    path: str


@dataclass
class AssetFile:
    """An asset listed through the GitHub contents API."""

    name: str
    path: str
    raw_url: str
    size: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "path": self.path, "size": self.size, "rawUrl": self.raw_url}


@dataclass
class SkillAssets:
    """Assets found for a skill and where the listing came from."""

    assets: list[dict[str, Any]] | list[AssetFile]
    source: Literal["manifest", "github-api", "none"]


def get_skill_base_url(raw_url: str) -> str:
    """Strip a trailing /SKILL.md from a raw URL."""
    return _SKILL_FILE_SUFFIX_RE.sub("", raw_url)


def get_asset_url(base_url: str, asset_path: str) -> str:
    return f"{base_url.rstrip('/')}/{asset_path.lstrip('/')}"


def parse_raw_url(raw_url: str) -> RawUrlParts | None:
    """Split a raw.githubusercontent.com URL into repository parts."""
    match = _RAW_URL_RE.match(raw_url)
    if not match:
        return None
    owner, repo, branch, path = match.groups()
    return RawUrlParts(owner=owner, repo=repo, branch=branch, path=get_skill_base_url(path))


def parse_manifest(content: str) -> list[dict[str, Any]]:
    """Parse JSON Lines, skipping blank and malformed lines."""
    entries: list[dict[str, Any]] = []
    for line in content.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            logger.debug(f"Skipping malformed manifest line: {line[:80]}")
            continue
        if isinstance(entry, dict):
            entries.append(entry)
    return entries


async def fetch_asset_manifest(base_url: str, client: GitHubClient | None = None) -> list[dict[str, Any]] | None:
    """Fetch ``assets/index.jsonl`` below a skill base URL, or None if absent."""
    client = client or GitHubClient()
    try:
        content = await client.fetch_text(get_asset_url(base_url, "assets/index.jsonl"))
    except GitHubError:
        return None
    return parse_manifest(content)


async def list_assets_from_github(
    owner: str,
    repo: str,
    skill_path: str,
    client: GitHubClient | None = None,
    ref: str | None = None,
) -> list[AssetFile]:
    """List files in a skill's assets/ folder; empty on any failure."""
    client = client or GitHubClient()
    assets_path = f"{skill_path.strip('/')}/assets" if skill_path.strip("/") else "assets"
    try:
        items = await client.list_contents(owner, repo, assets_path, ref)
    except GitHubError as e:
        logger.debug(f"Asset listing failed: {e}")
        return []
    return [
        AssetFile(name=item.name, path=item.path, raw_url=item.download_url or "", size=item.size)
        for item in items
        if item.type == "file"
    ]


async def fetch_asset(asset_url: str, client: GitHubClient | None = None) -> str | None:
    """Fetch one asset as text, or None if it cannot be fetched."""
    client = client or GitHubClient()
    try:
        return await client.fetch_text(asset_url)
    except GitHubError:
        return None


async def get_skill_assets(raw_url: str, client: GitHubClient | None = None) -> SkillAssets:
    """List a skill's assets, preferring the manifest over the rate-limited API."""
    client = client or GitHubClient()

    manifest = await fetch_asset_manifest(get_skill_base_url(raw_url), client)
    if manifest:
        return SkillAssets(assets=manifest, source="manifest")

    parts = parse_raw_url(raw_url)
    if parts:
        files = await list_assets_from_github(parts.owner, parts.repo, parts.path, client, parts.branch)
        if files:
            return SkillAssets(assets=files, source="github-api")

    return SkillAssets(assets=[], source="none")
