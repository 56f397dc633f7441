"""Tests for the installed-skill tracking log."""

import json
from pathlib import Path

import pytest

from agent_skills.skills.tracking import TRACKING_FILENAME, InstalledSkillRecord, InstallTracker

pytestmark = pytest.mark.unit


class TestInstalledSkillRecord:
    """Tests for InstalledSkillRecord serialization."""

    def test_to_dict_uses_camel_case_keys(self) -> None:
        record = InstalledSkillRecord(
            name="pdf",
            author="acme",
            scoped_name="@acme/pdf",
            platforms=["claude"],
            source_url="https://github.com/acme/skills",
            installed_at="2024-01-01T00:00:00Z",
        )
        assert record.to_dict() == {
            "name": "pdf",
            "author": "acme",
            "scopedName": "@acme/pdf",
            "platforms": ["claude"],
            "githubUrl": "https://github.com/acme/skills",
            "installedAt": "2024-01-01T00:00:00Z",
        }

    def test_optional_keys_only_when_set(self) -> None:
        data = InstalledSkillRecord(name="pdf", source_id="anthropic", version="1.0").to_dict()
        assert data["source"] == "anthropic"
        assert data["version"] == "1.0"
        assert "localPath" not in data

    def test_from_dict(self) -> None:
        record = InstalledSkillRecord.from_dict(
            {"name": "pdf", "scopedName": "@a/pdf", "githubUrl": "u", "platforms": ["cursor"]}
        )
        assert record.scoped_name == "@a/pdf"
        assert record.source_url == "u"
        assert record.platforms == ["cursor"]

    def test_installed_at_defaults_to_utc(self) -> None:
        assert InstalledSkillRecord(name="x").installed_at.endswith("Z")


class TestInstallTracker:
    """Tests for InstallTracker class."""

    def test_default_path_under_skills_home(self, skills_home: Path) -> None:
        assert InstallTracker().path == skills_home / TRACKING_FILENAME

    def test_missing_file_reads_empty(self, temp_dir: Path) -> None:
        assert InstallTracker(temp_dir / "installed.json").read() == []

    def test_append_never_merges(self, temp_dir: Path) -> None:
        """Test re-installing a skill adds a second record."""
        tracker = InstallTracker(temp_dir / "nested" / "installed.json")
        tracker.append(InstalledSkillRecord(name="pdf", platforms=["cursor"]))
        tracker.append(InstalledSkillRecord(name="pdf", platforms=["claude"]))

        records = tracker.read()

        assert [r.platforms for r in records] == [["cursor"], ["claude"]]
        assert len(json.loads(tracker.path.read_text())) == 2

    def test_corrupt_file_reads_empty(self, temp_dir: Path) -> None:
        path = temp_dir / "installed.json"
        path.write_text("{not json")
        assert InstallTracker(path).read() == []

    def test_non_array_reads_empty(self, temp_dir: Path) -> None:
        path = temp_dir / "installed.json"
        path.write_text('{"name": "pdf"}')
        assert InstallTracker(path).read() == []

    def test_remove_and_find(self, temp_dir: Path) -> None:
        tracker = InstallTracker(temp_dir / "installed.json")
        tracker.append(InstalledSkillRecord(name="pdf"))
        tracker.append(InstalledSkillRecord(name="docx"))
        tracker.append(InstalledSkillRecord(name="pdf"))

        assert len(tracker.find("pdf")) == 2
        removed = tracker.remove("pdf")

        assert len(removed) == 2
        assert [r.name for r in tracker.read()] == ["docx"]
        assert tracker.remove("missing") == []
