"""Installed-skill tracking log.

Every install appends one record to ``<home>/installed.json``. The file is
an audit trail rather than a state store: re-installing the same skill
appends another entry and nothing is ever merged.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from agent_skills.config.app import get_skills_home

logger = logging.getLogger(__name__)

TRACKING_FILENAME = "installed.json"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass
class InstalledSkillRecord:
    """One install event.

    Attributes:
        name: Skill name
        author: Skill author, when known
        scoped_name: "@author/name" identifier
        platforms: Agent keys the skill was installed for
        source_url: Where the files came from
        installed_at: ISO-8601 UTC timestamp
        source_id: Legacy marketplace source id, for update checks
        version: Version recorded at install time
        local_path: Directory written for marketplace installs
    """

    name: str
    author: str | None = None
    scoped_name: str | None = None
    platforms: list[str] = field(default_factory=list)
    source_url: str | None = None
    installed_at: str = field(default_factory=_now_iso)
    source_id: str | None = None
    version: str | None = None
    local_path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "author": self.author,
            "scopedName": self.scoped_name,
            "platforms": self.platforms,
            "githubUrl": self.source_url,
            "installedAt": self.installed_at,
        }
        if self.source_id is not None:
            data["source"] = self.source_id
        if self.version is not None:
            data["version"] = self.version
        if self.local_path is not None:
            data["localPath"] = self.local_path
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InstalledSkillRecord:
        return cls(
            name=str(data.get("name", "")),
            author=data.get("author"),
            scoped_name=data.get("scopedName") or data.get("scoped_name"),
            platforms=list(data.get("platforms") or []),
            source_url=data.get("githubUrl") or data.get("source_url"),
            installed_at=data.get("installedAt") or data.get("installed_at") or "",
            source_id=data.get("source") or data.get("source_id"),
            version=data.get("version"),
            local_path=data.get("localPath") or data.get("local_path"),
        )


class InstallTracker:
    """Reads and appends InstalledSkillRecord entries in a JSON array file."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else get_skills_home() / TRACKING_FILENAME

    def read(self) -> list[InstalledSkillRecord]:
        """Return all records; a missing or corrupt file reads as empty."""
        if not self.path.exists():
            return []
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read tracking file {self.path}: {e}")
            return []
        if not isinstance(data, list):
            logger.warning(f"Tracking file {self.path} is not a JSON array")
            return []
        return [InstalledSkillRecord.from_dict(item) for item in data if isinstance(item, dict)]

    def _write(self, records: list[InstalledSkillRecord]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps([r.to_dict() for r in records], indent=2)
        self.path.write_text(payload + "\n", encoding="utf-8")

    def append(self, record: InstalledSkillRecord) -> None:
        records = self.read()
        records.append(record)
        self._write(records)
        logger.debug(f"Tracked install of {record.name} ({len(records)} entries)")

    def remove(self, name: str) -> list[InstalledSkillRecord]:
        """Remove every record for a skill name and return the removed ones."""
        records = self.read()
        removed = [r for r in records if r.name == name]
        if removed:
            self._write([r for r in records if r.name != name])
        return removed

    def find(self, name: str) -> list[InstalledSkillRecord]:
        return [r for r in self.read() if r.name == name]
