"""Fixtures shared by CLI command tests."""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated_home(skills_home: Path) -> Path:
    """Keep every CLI test away from the real skills home."""
    return skills_home


@pytest.fixture(autouse=True)
def no_logging_setup() -> Iterator[MagicMock]:
    """Leave root logging alone while commands run under CliRunner."""
    with patch("agent_skills.cli.setup_logging") as mock_setup:
        yield mock_setup
