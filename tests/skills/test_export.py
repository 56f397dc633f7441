"""Tests for agent export adapters."""

from pathlib import Path

import pytest
import yaml

from agent_skills.skills.export import (
    EXPORT_TARGETS,
    SkillDirectoryExporter,
    WorkflowExporter,
    get_exporter,
    render_document,
    resolve_targets,
)
from agent_skills.skills.parser import Skill, parse_skill_file

pytestmark = pytest.mark.unit


@pytest.fixture
def skill() -> Skill:
    return Skill(
        name="pdf",
        description="Extract text: tables, forms\nand images from PDFs",
        body="\n# PDF\n\nSteps here.\n\n",
        license="MIT",
        frontmatter={"name": "pdf", "license": "MIT"},
    )


def split_document(text: str) -> tuple[dict, str]:
    _, header, body = text.split("---\n", 2)
    return yaml.safe_load(header), body


class TestSkillDirectoryExporter:
    """Tests for SkillDirectoryExporter class."""

    def test_writes_reduced_front_matter(self, temp_dir: Path, skill: Skill) -> None:
        exporter = get_exporter("claude")

        written = exporter.export([skill], temp_dir)

        path = temp_dir / ".claude" / "skills" / "pdf" / "SKILL.md"
        assert written[0].path == path
        assert written[0].target == "claude"
        fields, body = split_document(path.read_text())
        assert fields == {"name": "pdf", "description": skill.description}
        assert body == "\n# PDF\n\nSteps here.\n"

    def test_output_reparses(self, temp_dir: Path, skill: Skill) -> None:
        """Test a description with a colon still yields valid front matter."""
        get_exporter("cursor").export([skill], temp_dir)

        parsed = parse_skill_file(temp_dir / ".cursor" / "skills" / "pdf")

        assert parsed.description == skill.description
        assert parsed.license is None

    def test_idempotent(self, temp_dir: Path, skill: Skill) -> None:
        exporter = get_exporter("copilot")
        exporter.export([skill], temp_dir)
        first = (temp_dir / ".github" / "skills" / "pdf" / "SKILL.md").read_bytes()

        exporter.export([skill], temp_dir)

        assert (temp_dir / ".github" / "skills" / "pdf" / "SKILL.md").read_bytes() == first

    def test_overwrites_existing(self, temp_dir: Path, skill: Skill) -> None:
        target = temp_dir / ".codex" / "skills" / "pdf"
        target.mkdir(parents=True)
        (target / "SKILL.md").write_text("old")

        get_exporter("codex").export([skill], temp_dir)

        assert "old" not in (target / "SKILL.md").read_text()

    def test_layout_hint(self) -> None:
        assert SkillDirectoryExporter("x", ".x/skills").layout_hint == ".x/skills/<skill>/SKILL.md"


class TestWorkflowExporter:
    """Tests for WorkflowExporter class."""

    def test_flat_file_with_description_only(self, temp_dir: Path, skill: Skill) -> None:
        written = WorkflowExporter().export([skill], temp_dir)

        path = temp_dir / ".agent" / "workflows" / "pdf.md"
        assert written[0].path == path
        fields, _ = split_document(path.read_text())
        assert fields == {"description": "Extract text: tables, forms and images from PDFs"}

    def test_description_truncated(self, temp_dir: Path, skill: Skill) -> None:
        skill.description = "word " * 60
        WorkflowExporter().export([skill], temp_dir)

        fields, _ = split_document((temp_dir / ".agent" / "workflows" / "pdf.md").read_text())

        assert len(fields["description"]) <= 100
        assert not fields["description"].endswith(" ")

    def test_idempotent(self, temp_dir: Path, skill: Skill) -> None:
        exporter = WorkflowExporter()
        exporter.export([skill], temp_dir)
        first = (temp_dir / ".agent" / "workflows" / "pdf.md").read_text()
        exporter.export([skill], temp_dir)
        assert (temp_dir / ".agent" / "workflows" / "pdf.md").read_text() == first


class TestTargets:
    """Tests for get_exporter and resolve_targets."""

    def test_all_expands(self) -> None:
        assert resolve_targets("all") == list(EXPORT_TARGETS)
        assert resolve_targets("cursor") == ["cursor"]

    def test_antigravity_is_workflow(self) -> None:
        assert isinstance(get_exporter("antigravity"), WorkflowExporter)

    def test_unknown_target(self) -> None:
        with pytest.raises(ValueError, match="Unknown export target"):
            get_exporter("vim")

    def test_render_document(self) -> None:
        assert render_document({"a": "b"}, "  body  ") == "---\na: b\n---\n\nbody\n"
