"""Skill name resolution across the index and the legacy marketplace.

The remote index is always asked first. Only when it is unreachable
(RemoteIndexUnavailableError) is the legacy marketplace consulted, and
only once; a well-formed empty answer from the index is final.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from agent_skills.skills.hubs.marketplace import LegacyMarketplace
from agent_skills.skills.hubs.skillsdb import (
    PageResult,
    RemoteIndexUnavailableError,
    RemoteSkillRecord,
    ScopedName,
    SkillsDatabaseClient,
    parse_scoped_name,
    select_match,
)

logger = logging.getLogger(__name__)

Origin = Literal["index", "legacy"]


@dataclass
class Resolution:
    """A resolved skill and where it was found."""

    record: RemoteSkillRecord | None
    origin: Origin
    fallback_reason: str | None = None

    @property
    def found(self) -> bool:
        return self.record is not None


@dataclass
class Listing:
    """Skills listed or searched, with the origin that answered."""

    skills: list[RemoteSkillRecord]
    total: int
    origin: Origin
    has_next: bool = False
    page: int = 1
    fallback_reason: str | None = None


class SkillResolver:
    """Resolve, list and search skills with a single legacy fallback."""

    def __init__(
        self,
        index: SkillsDatabaseClient | None = None,
        legacy: LegacyMarketplace | None = None,
    ) -> None:
        self.index = index or SkillsDatabaseClient()
        self.legacy = legacy or LegacyMarketplace()

    async def resolve(self, scoped: str) -> Resolution:
        """Resolve ``@author/name`` or ``name`` to one record.

        Raises:
            ScopedNameError: If the name is malformed
        """
        ref = parse_scoped_name(scoped)
        try:
            return Resolution(record=await self.index.get_by_scoped(ref), origin="index")
        except RemoteIndexUnavailableError as e:
            logger.warning(f"Skills index unavailable, using legacy marketplace: {e}")
            return Resolution(
                record=await self._resolve_legacy(ref),
                origin="legacy",
                fallback_reason=str(e),
            )

    async def _resolve_legacy(self, ref: ScopedName) -> RemoteSkillRecord | None:
        records = [skill.to_record() for skill in await self.legacy.search(ref.name)]
        return select_match(records, ref)

    async def list_page(self, page: int = 1, limit: int = 50) -> Listing:
        try:
            result: PageResult = await self.index.fetch_page(page=page, limit=limit)
            return Listing(result.skills, result.total, "index", result.has_next, result.page)
        except RemoteIndexUnavailableError as e:
            logger.warning(f"Skills index unavailable, using legacy marketplace: {e}")
            records = [skill.to_record() for skill in await self.legacy.list_skills()]
            return Listing(records[:limit], len(records), "legacy", fallback_reason=str(e))

    async def search(self, query: str, limit: int = 20) -> Listing:
        try:
            result = await self.index.search(query, limit=limit)
            return Listing(result.skills, result.total, "index")
        except RemoteIndexUnavailableError as e:
            logger.warning(f"Skills index unavailable, using legacy marketplace: {e}")
            records = [skill.to_record() for skill in await self.legacy.search(query)]
            return Listing(records[:limit], len(records), "legacy", fallback_reason=str(e))
