"""Legacy GitHub-source marketplace.

Before the central index existed, skills were listed by scanning a small
set of GitHub repositories. The sources live in ``<home>/marketplace.json``
and are seeded with the verified Anthropic collection. Installs download
the skill folder into ``<home>/skills/<name>`` and append to the tracking
log.
"""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from agent_skills.config.app import get_skills_home
from agent_skills.skills.hubs.github import GitHubClient, GitHubError
from agent_skills.skills.hubs.skillsdb import RemoteSkillRecord
from agent_skills.skills.parser import SkillParseError, is_safe_dir_name, parse_frontmatter
from agent_skills.skills.tracking import InstalledSkillRecord, InstallTracker

logger = logging.getLogger(__name__)

MARKETPLACE_FILENAME = "marketplace.json"
CONFIG_VERSION = 1


class MarketplaceError(Exception):
    """Base error for legacy marketplace operations."""


class SkillNotFoundError(MarketplaceError):
    """No configured source provides the requested skill."""


class SkillNotInstalledError(MarketplaceError):
    """The skill to remove is not installed."""


def replace_directory(staged: Path, dest: Path, backup: Path) -> None:
    """Move a fully prepared folder to dest, keeping the old copy if the move fails."""
    had_previous = dest.exists()
    if had_previous:
        shutil.move(dest, backup)
    dest.parent.mkdir(parents=True, exist_ok=True)
    try:
        shutil.move(staged, dest)
    except OSError:
        if had_previous:
            shutil.rmtree(dest, ignore_errors=True)
            shutil.move(backup, dest)
        raise


@dataclass
class MarketplaceSource:
    """A GitHub repository that hosts a folder of skills."""

    id: str
    name: str
    owner: str
    repo: str
    branch: str = "main"
    skills_path: str = "skills"
    verified: bool = False
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "owner": self.owner,
            "repo": self.repo,
            "branch": self.branch,
            "skillsPath": self.skills_path,
            "verified": self.verified,
        }
        if self.description:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MarketplaceSource:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            owner=str(data["owner"]),
            repo=str(data["repo"]),
            branch=str(data.get("branch") or "main"),
            skills_path=str(data.get("skillsPath", data.get("skills_path", "skills"))),
            verified=bool(data.get("verified", False)),
            description=data.get("description"),
        )


DEFAULT_SOURCES: tuple[MarketplaceSource, ...] = (
    MarketplaceSource(
        id="anthropic-skills",
        name="Anthropic Skills",
        owner="anthropics",
        repo="skills",
        branch="main",
        skills_path="skills",
        verified=True,
        description="Official Agent Skills from Anthropic",
    ),
)


@dataclass
class MarketplaceSkill:
    """A skill found by scanning a source."""

    name: str
    description: str
    source: MarketplaceSource
    path: str
    author: str | None = None
    version: str | None = None

    @property
    def github_url(self) -> str:
        s = self.source
        return f"https://github.com/{s.owner}/{s.repo}/tree/{s.branch}/{self.path}"

    @property
    def raw_url(self) -> str:
        s = self.source
        return f"https://raw.githubusercontent.com/{s.owner}/{s.repo}/{s.branch}/{self.path}/SKILL.md"

    def to_record(self) -> RemoteSkillRecord:
        """Express this skill in the same shape as index results."""
        author = self.author or self.source.owner
        return RemoteSkillRecord(
            id=f"{self.source.id}/{self.name}",
            name=self.name,
            author=author,
            scoped_name=f"{author}/{self.name}",
            description=self.description,
            github_url=self.github_url,
            raw_url=self.raw_url,
            repo_full_name=f"{self.source.owner}/{self.source.repo}",
            branch=self.source.branch,
            path=self.path,
            source_id=self.source.id,
            version=self.version,
        )


@dataclass
class UpdateCheck:
    """Result of comparing an installed skill with its source."""

    record: InstalledSkillRecord
    current_version: str | None
    latest_version: str | None
    has_update: bool
    error: str | None = None


@dataclass
class MarketplaceConfig:
    version: int = CONFIG_VERSION
    sources: list[MarketplaceSource] = field(default_factory=lambda: list(DEFAULT_SOURCES))


class LegacyMarketplace:
    """Scan, install and track skills from configured GitHub sources.

    Example usage:
        ```python
        market = LegacyMarketplace()
        for skill in await market.search("pdf"):
            print(skill.name, skill.source.name)
        record = await market.install("pdf")
        ```
    """

    def __init__(
        self,
        config_path: str | Path | None = None,
        skills_dir: str | Path | None = None,
        tracker: InstallTracker | None = None,
        client: GitHubClient | None = None,
    ) -> None:
        home = get_skills_home()
        self.config_path = Path(config_path) if config_path else home / MARKETPLACE_FILENAME
        self.skills_dir = Path(skills_dir) if skills_dir else home / "skills"
        self.tracker = tracker or InstallTracker()
        self.client = client or GitHubClient()

    # -- source configuration -------------------------------------------------

    def load_config(self) -> MarketplaceConfig:
        """Read the sources file, seeding defaults when it does not exist.

        Raises:
            MarketplaceError: If the file exists but is malformed
        """
        if not self.config_path.exists():
            return MarketplaceConfig()
        try:
            data = json.loads(self.config_path.read_text(encoding="utf-8"))
            sources = [MarketplaceSource.from_dict(s) for s in data.get("sources", [])]
        except (OSError, json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            raise MarketplaceError(f"Invalid marketplace config {self.config_path}: {e}") from e
        return MarketplaceConfig(version=int(data.get("version", CONFIG_VERSION)), sources=sources)

    def save_config(self, config: MarketplaceConfig) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"version": config.version, "sources": [s.to_dict() for s in config.sources]}
        self.config_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")

    def list_sources(self) -> list[MarketplaceSource]:
        return self.load_config().sources

    def add_source(self, source: MarketplaceSource) -> None:
        """Register a new source.

        Raises:
            MarketplaceError: If a source with the same id exists
        """
        config = self.load_config()
        if any(s.id == source.id for s in config.sources):
            raise MarketplaceError(f"Marketplace source already exists: {source.id}")
        config.sources.append(source)
        self.save_config(config)
        logger.info(f"Added marketplace source {source.id} ({source.owner}/{source.repo})")

    def remove_source(self, source_id: str) -> None:
        """Remove a source by id.

        Raises:
            MarketplaceError: If no source has that id
        """
        config = self.load_config()
        remaining = [s for s in config.sources if s.id != source_id]
        if len(remaining) == len(config.sources):
            raise MarketplaceError(f"Marketplace source not found: {source_id}")
        config.sources = remaining
        self.save_config(config)

    def get_source(self, source_id: str) -> MarketplaceSource | None:
        for source in self.list_sources():
            if source.id == source_id:
                return source
        return None

    # -- scanning --------------------------------------------------------------

    async def _read_skill(self, source: MarketplaceSource, dir_name: str, path: str) -> MarketplaceSkill:
        name, description, author, version = dir_name, "", None, None
        try:
            text = await self.client.fetch_raw(source.owner, source.repo, source.branch, f"{path}/SKILL.md")
            frontmatter, _ = parse_frontmatter(text)
        except (GitHubError, SkillParseError) as e:
            logger.debug(f"No readable SKILL.md for {source.id}/{dir_name}: {e}")
        else:
            name = str(frontmatter.get("name") or dir_name)
            description = str(frontmatter.get("description") or "")
            metadata = frontmatter.get("metadata") if isinstance(frontmatter.get("metadata"), dict) else {}
            author = metadata.get("author")
            raw_version = frontmatter.get("version", metadata.get("version"))
            version = str(raw_version) if raw_version is not None else None

        return MarketplaceSkill(
            name=name,
            description=description,
            source=source,
            path=path,
            author=str(author) if author else None,
            version=version,
        )

    async def list_source_skills(self, source: MarketplaceSource) -> list[MarketplaceSkill]:
        """Scan one source; an unreachable source yields no skills."""
        try:
            items = await self.client.list_contents(source.owner, source.repo, source.skills_path, source.branch)
        except GitHubError as e:
            logger.warning(f"Could not list marketplace source {source.id}: {e}")
            return []

        skills = []
        for item in items:
            if item.type != "dir" or item.name.startswith("."):
                continue
            skills.append(await self._read_skill(source, item.name, item.path))
        return skills

    async def list_skills(self) -> list[MarketplaceSkill]:
        """Scan every source in configuration order."""
        skills: list[MarketplaceSkill] = []
        for source in self.list_sources():
            skills.extend(await self.list_source_skills(source))
        return skills

    async def search(self, query: str) -> list[MarketplaceSkill]:
        """Case-insensitive substring search over names and descriptions."""
        needle = query.lower()
        return [
            skill
            for skill in await self.list_skills()
            if needle in skill.name.lower() or needle in skill.description.lower()
        ]

    async def find(self, name: str) -> MarketplaceSkill | None:
        """Return the first skill with this name, in source order."""
        wanted = name.lower()
        for source in self.list_sources():
            for skill in await self.list_source_skills(source):
                if skill.name.lower() == wanted:
                    return skill
        return None

    # -- install / uninstall ---------------------------------------------------

    async def install(self, name: str) -> InstalledSkillRecord:
        """Download a skill into the global skills directory and track it.

        Raises:
            SkillNotFoundError: If no source provides the skill
            MarketplaceError: If the name is unusable or the download fails
        """
        skill = await self.find(name)
        if skill is None:
            raise SkillNotFoundError(f"Skill not found in any marketplace source: {name}")

        dest = self._skill_dir(skill.name)

        # installer imports the hubs package, so import it at call time
        from agent_skills.skills.installer import scratch_directory

        source = skill.source
        async with scratch_directory("market") as scratch:
            staged = scratch / skill.name
            staged.mkdir()
            try:
                files = await self.client.download_directory(source.owner, source.repo, skill.path, staged, source.branch)
            except GitHubError as e:
                raise MarketplaceError(f"Failed to download {skill.name}: {e}") from e

            try:
                replace_directory(staged, dest, scratch / "previous")
            except OSError as e:
                raise MarketplaceError(f"Failed to install {skill.name}: {e}") from e

        logger.info(f"Downloaded {len(files)} file(s) for {skill.name} from {source.id}")

        record = InstalledSkillRecord(
            name=skill.name,
            author=skill.author or source.owner,
            scoped_name=f"@{skill.author or source.owner}/{skill.name}",
            platforms=[],
            source_url=skill.github_url,
            source_id=source.id,
            version=skill.version,
            local_path=str(dest),
        )
        self.tracker.append(record)
        return record

    def uninstall(self, name: str) -> list[InstalledSkillRecord]:
        """Remove an installed skill's directory and tracking entries.

        Raises:
            SkillNotInstalledError: If neither a directory nor a record exists
            MarketplaceError: If the name is not a plain directory name
        """
        dest = self._skill_dir(name)
        removed = self.tracker.remove(name)
        dir_existed = dest.is_dir()
        if dir_existed:
            shutil.rmtree(dest)

        if not removed and not dir_existed:
            raise SkillNotInstalledError(f"Skill is not installed: {name}")
        return removed

    def _skill_dir(self, name: str) -> Path:
        if not is_safe_dir_name(name):
            raise MarketplaceError(f"Invalid skill name: {name!r}")
        return self.skills_dir / name

    def installed(self) -> list[InstalledSkillRecord]:
        return self.tracker.read()

    async def check_updates(self) -> list[UpdateCheck]:
        """Compare each marketplace-installed skill with its source.

        Nothing is updated; callers decide what to do with the result.
        """
        sources = {s.id: s for s in self.list_sources()}
        checks: list[UpdateCheck] = []

        for record in self.installed():
            if not record.source_id:
                continue
            source = sources.get(record.source_id)
            if source is None:
                checks.append(UpdateCheck(record, record.version, None, False, "Source no longer configured"))
                continue

            path = f"{source.skills_path.strip('/')}/{record.name}".lstrip("/")
            latest = await self._read_skill(source, record.name, path)
            has_update = latest.version is not None and latest.version != record.version
            checks.append(UpdateCheck(record, record.version, latest.version, has_update))

        return checks
