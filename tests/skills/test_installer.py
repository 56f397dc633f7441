"""Tests for the git-source skill installer."""

import os
from collections.abc import Callable
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from agent_skills.agents import AgentTable
from agent_skills.skills.hubs.skillsdb import RemoteSkillRecord
from agent_skills.skills.installer import (
    CloneError,
    SkillCandidate,
    add_from_source,
    clone_repository,
    discover_candidates,
    install_candidates,
    install_remote_skill,
    install_remote_skills,
    record_repository,
    record_skill_subpath,
    scratch_directory,
    select_candidates,
    summarize_pairs,
)
from agent_skills.skills.sources import SourceParseError
from agent_skills.skills.tracking import InstallTracker

pytestmark = pytest.mark.unit


def fake_clone(populate: Callable[[Path], None], seen: list[Path]) -> AsyncMock:
    """Build a clone_repository stand-in that writes a checkout."""

    async def _clone(url: str, dest: Path, branch: str | None = None, timeout: float = 0) -> None:
        seen.append(dest)
        dest.mkdir(parents=True)
        populate(dest)

    return AsyncMock(side_effect=_clone)


class TestScratchDirectory:
    """Tests for scratch_directory context manager."""

    @pytest.mark.asyncio
    async def test_removed_after_use(self) -> None:
        async with scratch_directory() as path:
            (path / "file").write_text("x")
            assert path.is_dir()
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_removed_on_error(self) -> None:
        with pytest.raises(RuntimeError):
            async with scratch_directory() as path:
                raise RuntimeError("boom")
        assert not path.exists()


class TestCloneRepository:
    """Tests for clone_repository function."""

    @pytest.mark.asyncio
    async def test_builds_shallow_clone_command(self, temp_dir: Path) -> None:
        process = MagicMock()
        process.returncode = 0
        process.communicate = AsyncMock(return_value=(b"", b""))

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as mock_exec:
            await clone_repository("https://github.com/o/r.git", temp_dir / "repo", branch="dev")

        args = mock_exec.call_args.args
        assert args[:4] == ("git", "clone", "--depth", "1")
        assert args[4:6] == ("--branch", "dev")
        assert args[-1] == str(temp_dir / "repo")

    @pytest.mark.asyncio
    async def test_nonzero_exit_raises(self, temp_dir: Path) -> None:
        process = MagicMock()
        process.returncode = 128
        process.communicate = AsyncMock(return_value=(b"", b"fatal: not found"))

        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(CloneError, match="fatal: not found"):
                await clone_repository("https://github.com/o/r.git", temp_dir / "repo")

    @pytest.mark.asyncio
    async def test_missing_git(self, temp_dir: Path) -> None:
        with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError())):
            with pytest.raises(CloneError, match="git is not installed"):
                await clone_repository("u", temp_dir / "repo")


class TestDiscoverCandidates:
    """Tests for discover_candidates function."""

    def test_searches_root_skills_and_agent_dirs(
        self, temp_dir: Path, make_skill: Callable[..., Path], small_agents: AgentTable
    ) -> None:
        make_skill(temp_dir, "top")
        make_skill(temp_dir / "skills", "pdf")
        make_skill(temp_dir / ".claude" / "skills", "docx")

        names = [c.name for c in discover_candidates(temp_dir, None, small_agents)]

        assert names == ["top", "pdf", "docx"]

    def test_subpath_that_is_a_skill(
        self, temp_dir: Path, make_skill: Callable[..., Path], small_agents: AgentTable
    ) -> None:
        make_skill(temp_dir / "skills", "pdf")
        make_skill(temp_dir / "skills", "docx")

        candidates = discover_candidates(temp_dir, "skills/pdf", small_agents)

        assert [c.name for c in candidates] == ["pdf"]

    def test_name_falls_back_to_folder(self, temp_dir: Path, small_agents: AgentTable) -> None:
        skill_dir = temp_dir / "skills" / "folder-name"
        skill_dir.mkdir(parents=True)
        (skill_dir / "SKILL.md").write_text("---\ndescription: d\n---\n")

        assert discover_candidates(temp_dir, None, small_agents)[0].name == "folder-name"

    def test_missing_subpath(self, temp_dir: Path, small_agents: AgentTable) -> None:
        assert discover_candidates(temp_dir, "nope", small_agents) == []

    def test_path_like_name_uses_folder(self, temp_dir: Path, small_agents: AgentTable) -> None:
        skill_dir = temp_dir / "skills" / "evil"
        skill_dir.mkdir(parents=True)
        (skill_dir / "SKILL.md").write_text("---\nname: ../../../escaped\ndescription: d\n---\n")

        candidates = discover_candidates(temp_dir, None, small_agents)

        assert [c.name for c in candidates] == ["evil"]

    def test_duplicate_names_keep_first(
        self, temp_dir: Path, make_skill: Callable[..., Path], small_agents: AgentTable
    ) -> None:
        first = make_skill(temp_dir / "skills", "pdf", dir_name="a")
        make_skill(temp_dir / ".cursor" / "skills", "PDF", dir_name="b")

        candidates = discover_candidates(temp_dir, None, small_agents)

        assert [(c.name, c.path) for c in candidates] == [("pdf", first)]

    def test_loose_front_matter_is_kept(self, temp_dir: Path, small_agents: AgentTable) -> None:
        """Test a description with a second colon is read without YAML."""
        skill_dir = temp_dir / "skills" / "pdf"
        skill_dir.mkdir(parents=True)
        (skill_dir / "SKILL.md").write_text("---\nname: pdf\ndescription: Use when: the user asks for PDFs\n---\n")

        candidates = discover_candidates(temp_dir, None, small_agents)

        assert len(candidates) == 1
        assert candidates[0].name == "pdf"
        assert candidates[0].description == "Use when: the user asks for PDFs"

    def test_select_is_case_insensitive(self) -> None:
        candidates = [SkillCandidate("PDF", "", Path("a")), SkillCandidate("docx", "", Path("b"))]
        assert [c.name for c in select_candidates(candidates, ["pdf"])] == ["PDF"]


class TestInstallCandidates:
    """Tests for install_candidates function."""

    def test_project_and_global_trees_are_independent(
        self, temp_dir: Path, make_skill: Callable[..., Path], small_agents: AgentTable
    ) -> None:
        source = make_skill(temp_dir / "src", "pdf")
        candidate = SkillCandidate("pdf", "", source)
        cwd = temp_dir / "project"
        home = temp_dir / "home"

        install_candidates([candidate], ["antigravity"], small_agents, False, cwd, home)
        install_candidates([candidate], ["antigravity"], small_agents, True, cwd, home)

        assert (cwd / ".agent" / "skills" / "pdf" / "SKILL.md").is_file()
        assert (home / ".gemini" / "antigravity" / "skills" / "pdf" / "SKILL.md").is_file()

    def test_all_pairs_attempted_despite_failure(
        self, temp_dir: Path, make_skill: Callable[..., Path], small_agents: AgentTable
    ) -> None:
        """Test a failing pair does not stop the remaining copies."""
        first = SkillCandidate("pdf", "", make_skill(temp_dir / "src", "pdf"))
        second = SkillCandidate("docx", "", make_skill(temp_dir / "src", "docx"))
        cwd = temp_dir / "project"
        # A file where the claude skills directory should be breaks that pair
        (cwd / ".claude").mkdir(parents=True)
        (cwd / ".claude" / "skills").write_text("blocker")

        pairs = install_candidates([first, second], ["cursor", "claude", "antigravity"], small_agents, cwd=cwd)

        assert len(pairs) == 6
        failed = [(p.skill, p.agent) for p in pairs if not p.success]
        assert failed == [("pdf", "claude"), ("docx", "claude")]
        assert (cwd / ".cursor" / "skills" / "docx" / "SKILL.md").is_file()
        assert (cwd / ".agent" / "skills" / "docx" / "SKILL.md").is_file()
        assert summarize_pairs(pairs) == {"installed": 4, "failed": 2}

    def test_unknown_agent_is_a_failed_pair(
        self, temp_dir: Path, make_skill: Callable[..., Path], small_agents: AgentTable
    ) -> None:
        candidate = SkillCandidate("pdf", "", make_skill(temp_dir / "src", "pdf"))
        pairs = install_candidates([candidate], ["vim"], small_agents, cwd=temp_dir)
        assert not pairs[0].success
        assert pairs[0].error == "Unknown agent: vim"

    def test_path_like_name_is_refused(
        self, temp_dir: Path, make_skill: Callable[..., Path], small_agents: AgentTable
    ) -> None:
        source = make_skill(temp_dir / "src", "pdf")
        cwd = temp_dir / "project"
        candidate = SkillCandidate("../../../escaped", "", source)

        pairs = install_candidates([candidate], ["cursor"], small_agents, cwd=cwd, home=temp_dir / "home")

        assert len(pairs) == 1
        assert not pairs[0].success
        assert pairs[0].destination is None
        assert pairs[0].error is not None and pairs[0].error.startswith("Unsafe skill name")
        assert not (temp_dir / "escaped").exists()
        assert not (cwd / ".cursor").exists()

    def test_git_metadata_not_copied(
        self, temp_dir: Path, make_skill: Callable[..., Path], small_agents: AgentTable
    ) -> None:
        source = make_skill(temp_dir / "src", "pdf")
        (source / ".git").mkdir()
        install_candidates([SkillCandidate("pdf", "", source)], ["cursor"], small_agents, cwd=temp_dir)
        assert not (temp_dir / ".cursor" / "skills" / "pdf" / ".git").exists()


class TestAddFromSource:
    """Tests for add_from_source function."""

    @pytest.mark.asyncio
    async def test_installs_selected_skills(
        self, temp_dir: Path, make_skill: Callable[..., Path], small_agents: AgentTable
    ) -> None:
        seen: list[Path] = []

        def populate(repo: Path) -> None:
            make_skill(repo / "skills", "pdf")
            make_skill(repo / "skills", "docx")

        with patch("agent_skills.skills.installer.clone_repository", fake_clone(populate, seen)) as mock_clone:
            result = await add_from_source(
                "owner/repo",
                small_agents,
                choose_skills=lambda c: select_candidates(c, ["pdf"]),
                choose_agents=lambda: ["cursor", "claude"],
                cwd=temp_dir,
            )

        assert mock_clone.call_args.args[0] == "https://github.com/owner/repo.git"
        assert [c.name for c in result.candidates] == ["docx", "pdf"]
        assert [(p.skill, p.agent) for p in result.pairs] == [("pdf", "cursor"), ("pdf", "claude")]
        assert (temp_dir / ".claude" / "skills" / "pdf" / "SKILL.md").is_file()
        assert not seen[0].parent.exists()

    @pytest.mark.asyncio
    async def test_tree_url_passes_branch(self, small_agents: AgentTable) -> None:
        seen: list[Path] = []
        mock_clone = fake_clone(lambda repo: None, seen)

        with patch("agent_skills.skills.installer.clone_repository", mock_clone):
            result = await add_from_source(
                "https://github.com/o/r/tree/dev/skills",
                small_agents,
                choose_skills=lambda c: c,
                choose_agents=lambda: ["cursor"],
            )

        assert mock_clone.call_args.kwargs["branch"] == "dev"
        assert result.candidates == []

    @pytest.mark.asyncio
    async def test_zero_skills_removes_scratch(self, small_agents: AgentTable) -> None:
        seen: list[Path] = []
        choose_skills = MagicMock()

        with patch("agent_skills.skills.installer.clone_repository", fake_clone(lambda repo: None, seen)):
            result = await add_from_source("o/r", small_agents, choose_skills, lambda: ["cursor"])

        assert result.candidates == []
        choose_skills.assert_not_called()
        assert not seen[0].parent.exists()

    @pytest.mark.asyncio
    async def test_clone_failure_removes_scratch(self, small_agents: AgentTable) -> None:
        seen: list[Path] = []

        async def _fail(url: str, dest: Path, branch: str | None = None, timeout: float = 0) -> None:
            seen.append(dest)
            dest.mkdir(parents=True)
            raise CloneError("Failed to clone")

        with patch("agent_skills.skills.installer.clone_repository", AsyncMock(side_effect=_fail)):
            with pytest.raises(CloneError):
                await add_from_source("o/r", small_agents, lambda c: c, lambda: ["cursor"])

        assert not seen[0].parent.exists()

    @pytest.mark.asyncio
    async def test_list_only_skips_choosers(
        self, make_skill: Callable[..., Path], small_agents: AgentTable
    ) -> None:
        seen: list[Path] = []
        choose_agents = MagicMock()

        with patch(
            "agent_skills.skills.installer.clone_repository",
            fake_clone(lambda repo: make_skill(repo, "pdf"), seen),
        ):
            result = await add_from_source("o/r", small_agents, lambda c: c, choose_agents, list_only=True)

        assert [c.name for c in result.candidates] == ["pdf"]
        assert result.pairs == []
        choose_agents.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_source(self, small_agents: AgentTable) -> None:
        with pytest.raises(SourceParseError):
            await add_from_source("", small_agents, lambda c: c, lambda: [])


class TestRecordHelpers:
    """Tests for record_repository and record_skill_subpath."""

    def test_repository_from_url(self) -> None:
        record = RemoteSkillRecord(id="1", name="pdf", github_url="https://github.com/acme/skills/tree/main/pdf")
        assert record_repository(record) == ("acme", "skills")

    def test_repository_from_full_name(self) -> None:
        record = RemoteSkillRecord(id="1", name="pdf", repo_full_name="acme/skills")
        assert record_repository(record) == ("acme", "skills")

    def test_no_repository(self) -> None:
        assert record_repository(RemoteSkillRecord(id="1", name="pdf")) is None

    @pytest.mark.parametrize(
        ("path", "expected"),
        [("skills/pdf/SKILL.md", "skills/pdf"), ("skills/pdf", "skills/pdf"), ("SKILL.md", ""), ("", "")],
    )
    def test_subpath(self, path: str, expected: str) -> None:
        assert record_skill_subpath(RemoteSkillRecord(id="1", name="pdf", path=path)) == expected


class TestInstallRemoteSkill:
    """Tests for install_remote_skill and install_remote_skills."""

    @pytest.fixture
    def record(self) -> RemoteSkillRecord:
        return RemoteSkillRecord(
            id="1",
            name="pdf",
            author="acme",
            repo_full_name="acme/skills",
            branch="main",
            path="skills/pdf/SKILL.md",
            version="1.2",
        )

    @pytest.mark.asyncio
    async def test_installs_and_tracks(
        self,
        temp_dir: Path,
        make_skill: Callable[..., Path],
        small_agents: AgentTable,
        record: RemoteSkillRecord,
    ) -> None:
        seen: list[Path] = []
        tracker = InstallTracker(temp_dir / "installed.json")
        mock_clone = fake_clone(lambda repo: make_skill(repo / "skills", "pdf"), seen)

        with patch("agent_skills.skills.installer.clone_repository", mock_clone):
            outcome = await install_remote_skill(
                record, ["cursor", "claude"], small_agents, cwd=temp_dir, tracker=tracker
            )

        assert outcome.success
        assert mock_clone.call_args.args[0] == "https://github.com/acme/skills.git"
        assert (temp_dir / ".cursor" / "skills" / "pdf" / "SKILL.md").is_file()
        tracked = tracker.read()
        assert len(tracked) == 1
        assert tracked[0].scoped_name == "@acme/pdf"
        assert tracked[0].platforms == ["cursor", "claude"]
        assert tracked[0].version == "1.2"
        assert not seen[0].parent.exists()

    @pytest.mark.asyncio
    async def test_missing_folder(self, small_agents: AgentTable, record: RemoteSkillRecord) -> None:
        seen: list[Path] = []
        with patch("agent_skills.skills.installer.clone_repository", fake_clone(lambda repo: None, seen)):
            outcome = await install_remote_skill(record, ["cursor"], small_agents)

        assert not outcome.success
        assert "not found" in (outcome.error or "")

    @pytest.mark.asyncio
    async def test_clone_error_reported(self, small_agents: AgentTable, record: RemoteSkillRecord) -> None:
        with patch(
            "agent_skills.skills.installer.clone_repository",
            AsyncMock(side_effect=CloneError("Failed to clone")),
        ):
            outcome = await install_remote_skill(record, ["cursor"], small_agents)

        assert outcome.error == "Failed to clone"

    @pytest.mark.asyncio
    async def test_no_repository(self, small_agents: AgentTable) -> None:
        outcome = await install_remote_skill(RemoteSkillRecord(id="1", name="pdf"), ["cursor"], small_agents)
        assert outcome.error == "No GitHub repository for pdf"

    @pytest.mark.asyncio
    async def test_batch_isolates_failures(
        self,
        temp_dir: Path,
        make_skill: Callable[..., Path],
        small_agents: AgentTable,
        record: RemoteSkillRecord,
    ) -> None:
        orphan = RemoteSkillRecord(id="2", name="orphan")
        seen: list[Path] = []
        mock_clone = fake_clone(lambda repo: make_skill(repo / "skills", "pdf"), seen)

        with patch("agent_skills.skills.installer.clone_repository", mock_clone):
            outcomes = await install_remote_skills([record, orphan], ["cursor"], small_agents, cwd=temp_dir)

        assert [o.success for o in outcomes] == [True, False]
        assert all(not path.parent.exists() for path in seen)
        assert os.path.isdir(temp_dir / ".cursor" / "skills" / "pdf")
