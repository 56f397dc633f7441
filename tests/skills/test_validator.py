"""Tests for skill validation."""

import pytest

from agent_skills.skills.parser import Skill
from agent_skills.skills.validator import (
    MAX_DESCRIPTION_LENGTH,
    MAX_NAME_LENGTH,
    SkillValidator,
    ValidationResult,
    format_validation_result,
    validate_body,
    validate_metadata,
)

pytestmark = pytest.mark.unit


class TestValidateMetadata:
    """Tests for validate_metadata function."""

    def test_valid_metadata(self) -> None:
        """Test a well-formed skill has no errors or warnings."""
        result = validate_metadata({"name": "pdf-tools", "description": "Work with PDF files"})
        assert result.valid
        assert result.errors == []
        assert result.warnings == []

    def test_missing_name_and_description(self) -> None:
        """Test both required fields are reported together."""
        result = validate_metadata({})
        assert not result.valid
        messages = [str(e) for e in result.errors]
        assert "name: Name is required" in messages
        assert "description: Description is required" in messages

    @pytest.mark.parametrize(
        "name",
        ["PDF", "pdf_tools", "-pdf", "pdf-", "pdf--tools", "1pdf"],
    )
    def test_invalid_names(self, name: str) -> None:
        """Test names that break the slug rules."""
        result = validate_metadata({"name": name, "description": "x"})
        assert not result.valid
        assert result.errors[0].field == "name"

    def test_name_too_long(self) -> None:
        """Test the name length limit."""
        result = validate_metadata({"name": "a" * (MAX_NAME_LENGTH + 1), "description": "x"})
        assert any("exceeds" in e.message for e in result.errors)

    def test_description_too_long(self) -> None:
        """Test the description hard limit is an error."""
        result = validate_metadata({"name": "a", "description": "x" * (MAX_DESCRIPTION_LENGTH + 1)})
        assert not result.valid

    def test_long_description_warns(self) -> None:
        """Test a long but legal description only warns."""
        result = validate_metadata({"name": "a", "description": "x" * 600})
        assert result.valid
        assert result.warnings[0].field == "description"

    def test_unknown_field_warns(self) -> None:
        """Test unknown keys produce warnings, not errors."""
        result = validate_metadata({"name": "a", "description": "b", "colour": "blue"})
        assert result.valid
        assert [w.field for w in result.warnings] == ["colour"]

    def test_metadata_must_be_mapping(self) -> None:
        """Test a scalar metadata value is an error."""
        result = validate_metadata({"name": "a", "description": "b", "metadata": "oops"})
        assert not result.valid


class TestValidateBody:
    """Tests for validate_body function."""

    def test_body_with_heading(self) -> None:
        assert validate_body("# Title\n\nSteps").warnings == []

    def test_empty_body_warns(self) -> None:
        result = validate_body("   ")
        assert result.valid
        assert "empty" in result.warnings[0].message

    def test_no_heading_warns(self) -> None:
        result = validate_body("plain text only")
        assert any("headings" in w.message for w in result.warnings)

    def test_long_body_warns(self) -> None:
        body = "# T\n" + "line\n" * 600
        assert any("lines" in w.message for w in validate_body(body).warnings)


class TestSkillValidator:
    """Tests for SkillValidator class."""

    def test_valid_skill(self) -> None:
        skill = Skill(
            name="pdf",
            description="PDFs",
            body="# PDF",
            frontmatter={"name": "pdf", "description": "PDFs"},
        )
        assert SkillValidator().validate(skill).valid

    def test_directory_name_mismatch_warns(self) -> None:
        """Test the optional directory check only warns."""
        skill = Skill(
            name="pdf",
            description="PDFs",
            body="# PDF",
            path="/skills/pdf-old",
            frontmatter={"name": "pdf", "description": "PDFs"},
        )
        result = SkillValidator(check_directory_name=True).validate(skill)
        assert result.valid
        assert any("does not match" in w.message for w in result.warnings)


class TestFormatValidationResult:
    """Tests for format_validation_result function."""

    def test_no_issues(self) -> None:
        assert format_validation_result(ValidationResult()) == "  ✓ No issues found"

    def test_errors_and_warnings(self) -> None:
        result = ValidationResult()
        result.error("name", "Name is required")
        result.warn("body", "Body is empty")

        output = format_validation_result(result)

        assert "✗ name: Name is required" in output
        assert "⚠ body: Body is empty" in output

    def test_to_dict(self) -> None:
        result = ValidationResult()
        result.warn("x", "y")
        assert result.to_dict() == {
            "valid": True,
            "errors": [],
            "warnings": [{"field": "x", "message": "y"}],
        }
