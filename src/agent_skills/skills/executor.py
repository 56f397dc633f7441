"""Run scripts bundled in a skill's scripts/ directory.

Scripts are launched through an interpreter chosen by file extension and
run with the skill directory as the working directory.
"""

from __future__ import annotations

import asyncio
import logging
import re
import sys
import time
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

INTERPRETERS: dict[str, list[str]] = {
    ".py": [sys.executable],
    ".sh": ["bash"],
    ".bash": ["bash"],
    ".js": ["node"],
    ".mjs": ["node"],
    ".ts": ["npx", "tsx"],
    ".rb": ["ruby"],
}

_DANGEROUS_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\brm\s+-[a-z]*r[a-z]*f?\s+/(?:\s|$)"), "Recursive delete of filesystem root"),
    (re.compile(r"\bsudo\b"), "Uses sudo"),
    (re.compile(r"(curl|wget)[^|\n]*\|\s*(ba)?sh\b"), "Pipes a download into a shell"),
    (re.compile(r"\beval\s*\("), "Uses eval()"),
    (re.compile(r"\bmkfs(\.\w+)?\b"), "Formats a filesystem"),
    (re.compile(r"\bdd\s+if="), "Raw disk write with dd"),
    (re.compile(r"chmod\s+(-R\s+)?777"), "World-writable permissions"),
]


@dataclass
class ScriptResult:
    """Outcome of running a skill script."""

    success: bool
    exit_code: int | None
    stdout: str
    stderr: str
    execution_time_ms: int


@dataclass
class ScriptSafety:
    safe: bool
    warnings: list[str]


def list_scripts(skill_path: str | Path) -> list[str]:
    """Return script file names under the skill's scripts/ folder."""
    scripts_dir = Path(skill_path) / "scripts"
    if not scripts_dir.is_dir():
        return []
    return sorted(item.name for item in scripts_dir.iterdir() if item.is_file())


def is_script_safe(content: str) -> ScriptSafety:
    """Flag obviously destructive commands in a script's source."""
    warnings = [message for pattern, message in _DANGEROUS_PATTERNS if pattern.search(content)]
    return ScriptSafety(safe=not warnings, warnings=warnings)


def build_command(script_path: Path, args: list[str]) -> list[str]:
    interpreter = INTERPRETERS.get(script_path.suffix.lower())
    if interpreter is None:
        return [str(script_path), *args]
    return [*interpreter, str(script_path), *args]


async def execute_script(
    skill_path: str | Path,
    script: str,
    args: list[str] | None = None,
    timeout: float = 30.0,
) -> ScriptResult:
    """Run one of a skill's scripts and capture its output.

    Args:
        skill_path: Skill directory
        script: File name under scripts/
        args: Arguments passed to the script
        timeout: Seconds before the process is killed

    Raises:
        FileNotFoundError: If the script does not exist
    """
    skill_dir = Path(skill_path)
    script_path = skill_dir / "scripts" / script
    if not script_path.is_file() or script_path.parent.resolve() != (skill_dir / "scripts").resolve():
        raise FileNotFoundError(f"Script not found: {script}")

    cmd = build_command(script_path, args or [])
    logger.debug(f"Running: {' '.join(cmd)} in {skill_dir}")

    started = time.monotonic()
    process = await asyncio.create_subprocess_exec(
        *cmd,
        cwd=skill_dir,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError:
        process.kill()
        await process.wait()
        elapsed = int((time.monotonic() - started) * 1000)
        logger.warning(f"Script {script} timed out after {timeout}s")
        return ScriptResult(
            success=False,
            exit_code=None,
            stdout="",
            stderr=f"Timed out after {timeout}s",
            execution_time_ms=elapsed,
        )

    elapsed = int((time.monotonic() - started) * 1000)
    return ScriptResult(
        success=process.returncode == 0,
        exit_code=process.returncode,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
        execution_time_ms=elapsed,
    )
