"""Remote skill sources: the central index and the legacy GitHub marketplace."""

from agent_skills.skills.hubs.github import GitHubClient, GitHubError
from agent_skills.skills.hubs.marketplace import (
    LegacyMarketplace,
    MarketplaceError,
    MarketplaceSource,
    SkillNotFoundError,
    SkillNotInstalledError,
)
from agent_skills.skills.hubs.resolver import Resolution, SkillResolver
from agent_skills.skills.hubs.skillsdb import (
    RemoteIndexUnavailableError,
    RemoteSkillRecord,
    ScopedNameError,
    SkillsDatabaseClient,
    parse_scoped_name,
)

__all__ = [
    "GitHubClient",
    "GitHubError",
    "LegacyMarketplace",
    "MarketplaceError",
    "MarketplaceSource",
    "RemoteIndexUnavailableError",
    "RemoteSkillRecord",
    "Resolution",
    "ScopedNameError",
    "SkillNotFoundError",
    "SkillNotInstalledError",
    "SkillResolver",
    "SkillsDatabaseClient",
    "parse_scoped_name",
]
