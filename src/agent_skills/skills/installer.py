"""Git-source skill installer.

Clones a repository into a scratch directory, finds skill folders inside it
and copies the chosen ones into agent skill directories. The scratch
directory is owned by a single async context manager so it is removed on
every exit path, including clone failures and empty results.

Copies are attempted per (skill, agent) pair. A failing pair is recorded
and the remaining pairs still run.
"""

from __future__ import annotations

import asyncio
import logging
import re
import shutil
import tempfile
import time
from collections.abc import AsyncIterator, Callable, Iterable, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from agent_skills.agents import AgentTable, AgentTarget
from agent_skills.skills.hubs.skillsdb import RemoteSkillRecord
from agent_skills.skills.loader import SkillLoadError, read_skill_ref, scan_skills
from agent_skills.skills.parser import has_skill_file, is_safe_dir_name
from agent_skills.skills.sources import GitSource, classify_source
from agent_skills.skills.tracking import InstalledSkillRecord, InstallTracker

logger = logging.getLogger(__name__)

CLONE_TIMEOUT = 300.0

_GITHUB_REPO_RE = re.compile(r"github\.com/([^/]+)/([^/]+)")
_IGNORE_ON_COPY = shutil.ignore_patterns(".git")


class CloneError(Exception):
    """git clone failed or could not be started."""


@dataclass
class SkillCandidate:
    """An installable skill folder found inside a cloned repository."""

    name: str
    description: str
    path: Path


@dataclass
class PairResult:
    """Outcome of copying one skill into one agent directory."""

    skill: str
    agent: str
    destination: Path | None
    success: bool
    error: str | None = None


@dataclass
class AddResult:
    """Outcome of ``add``: what was found and what was copied where."""

    source: GitSource
    candidates: list[SkillCandidate] = field(default_factory=list)
    selected: list[SkillCandidate] = field(default_factory=list)
    agents: list[str] = field(default_factory=list)
    pairs: list[PairResult] = field(default_factory=list)

    @property
    def failures(self) -> list[PairResult]:
        return [p for p in self.pairs if not p.success]


@dataclass
class InstallOutcome:
    """Outcome of installing one resolved remote skill."""

    record: RemoteSkillRecord
    pairs: list[PairResult] = field(default_factory=list)
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None and bool(self.pairs) and all(p.success for p in self.pairs)


@asynccontextmanager
async def scratch_directory(prefix: str = "skill") -> AsyncIterator[Path]:
    """Yield a unique temporary directory that is always removed afterwards."""
    path = Path(tempfile.mkdtemp(prefix=f"{prefix}-{int(time.time() * 1000)}-"))
    logger.debug(f"Created scratch directory {path}")
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        logger.debug(f"Removed scratch directory {path}")


async def clone_repository(
    url: str,
    dest: Path,
    branch: str | None = None,
    timeout: float = CLONE_TIMEOUT,
) -> None:
    """Shallow-clone a repository into dest.

    Raises:
        CloneError: If git is missing, times out or exits non-zero
    """
    cmd = ["git", "clone", "--depth", "1"]
    if branch:
        cmd += ["--branch", branch]
    cmd += [url, str(dest)]
    logger.debug(f"Running: {' '.join(cmd)}")

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise CloneError("git is not installed or not on PATH") from e

    try:
        _, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError as e:
        process.kill()
        await process.wait()
        raise CloneError(f"git clone timed out after {timeout:.0f}s: {url}") from e

    if process.returncode != 0:
        message = stderr.decode("utf-8", errors="replace").strip() or "unknown error"
        logger.error(f"git clone failed for {url}: {message}")
        raise CloneError(f"Failed to clone {url}: {message}")


def candidate_search_dirs(base: Path, agents: AgentTable) -> list[Path]:
    """Directories scanned for skills: base, base/skills and each agent's folder."""
    dirs = [base, base / "skills"]
    for agent in agents.values():
        candidate = base / agent.project_dir
        if candidate not in dirs:
            dirs.append(candidate)
    return dirs


def discover_candidates(repo_dir: Path, subpath: str | None, agents: AgentTable) -> list[SkillCandidate]:
    """Find skill folders inside a checkout.

    A subpath that is itself a skill folder yields just that skill.
    Every folder with a marker file is a candidate: front matter that is not
    valid YAML is read line by line, and the name falls back to the folder
    name. When two folders declare the same name the first one wins.
    """
    base = repo_dir / subpath if subpath else repo_dir
    if not base.is_dir():
        return []

    skill_dirs: list[Path] = [base] if has_skill_file(base) else []
    for search_dir in candidate_search_dirs(base, agents):
        skill_dirs.extend(scan_skills(search_dir))

    candidates: list[SkillCandidate] = []
    seen: set[Path] = set()
    names: dict[str, Path] = {}
    for skill_dir in skill_dirs:
        resolved = skill_dir.resolve()
        if resolved in seen:
            continue
        seen.add(resolved)
        try:
            ref = read_skill_ref(skill_dir, strict=False)
        except SkillLoadError as e:
            logger.warning(f"Skipping unreadable skill: {e}")
            continue
        key = ref.name.lower()
        if key in names:
            logger.warning(f"Skipping {skill_dir}: skill name '{ref.name}' already provided by {names[key]}")
            continue
        names[key] = skill_dir
        candidates.append(SkillCandidate(name=ref.name, description=ref.description, path=skill_dir))
    return candidates


def select_candidates(candidates: Sequence[SkillCandidate], names: Iterable[str]) -> list[SkillCandidate]:
    """Keep candidates whose name equals one of names, ignoring case."""
    wanted = {n.lower() for n in names}
    return [c for c in candidates if c.name.lower() in wanted]


def copy_skill(source: Path, destination: Path) -> None:
    """Copy a skill folder, merging into an existing destination."""
    destination.mkdir(parents=True, exist_ok=True)
    shutil.copytree(source, destination, dirs_exist_ok=True, ignore=_IGNORE_ON_COPY)


def install_candidates(
    candidates: Sequence[SkillCandidate],
    agent_keys: Sequence[str],
    agents: AgentTable,
    global_install: bool = False,
    cwd: Path | None = None,
    home: Path | None = None,
) -> list[PairResult]:
    """Copy every candidate into every agent directory, one pair at a time."""
    results: list[PairResult] = []
    for candidate in candidates:
        for key in agent_keys:
            agent: AgentTarget | None = agents.get(key)
            if agent is None:
                results.append(PairResult(candidate.name, key, None, False, f"Unknown agent: {key}"))
                continue

            agent_root = agent.resolve(global_install, cwd=cwd, home=home)
            destination = agent_root / candidate.name
            if not is_safe_dir_name(candidate.name) or not destination.resolve().is_relative_to(agent_root.resolve()):
                logger.warning(f"Refusing to install {candidate.name!r} outside {agent_root}")
                results.append(PairResult(candidate.name, key, None, False, f"Unsafe skill name: {candidate.name!r}"))
                continue

            try:
                copy_skill(candidate.path, destination)
            except OSError as e:
                logger.error(f"Failed to install {candidate.name} for {key}: {e}")
                results.append(PairResult(candidate.name, key, destination, False, str(e)))
                continue
            results.append(PairResult(candidate.name, key, destination, True))
    return results


SkillChooser = Callable[[list[SkillCandidate]], list[SkillCandidate]]
AgentChooser = Callable[[], list[str]]


async def add_from_source(
    source_text: str,
    agents: AgentTable,
    choose_skills: SkillChooser,
    choose_agents: AgentChooser,
    global_install: bool = False,
    list_only: bool = False,
    cwd: Path | None = None,
    home: Path | None = None,
) -> AddResult:
    """Clone a source and install the chosen skills for the chosen agents.

    The choosers run while the checkout still exists, after discovery. An
    empty candidate list is a normal result, not an error.

    Raises:
        SourceParseError: If the source string is empty
        CloneError: If the clone fails (the scratch directory is still removed)
    """
    source = classify_source(source_text)
    result = AddResult(source=source)

    async with scratch_directory() as scratch:
        repo_dir = scratch / "repo"
        await clone_repository(source.clone_url, repo_dir, branch=source.branch)

        result.candidates = discover_candidates(repo_dir, source.subpath, agents)
        logger.info(f"Found {len(result.candidates)} skill(s) in {source.clone_url}")
        if list_only or not result.candidates:
            return result

        result.selected = choose_skills(result.candidates)
        if not result.selected:
            return result

        result.agents = choose_agents()
        if not result.agents:
            return result

        result.pairs = install_candidates(result.selected, result.agents, agents, global_install, cwd, home)

    return result


def record_repository(record: RemoteSkillRecord) -> tuple[str, str] | None:
    """Return (owner, repo) for a record from its GitHub URL or full name."""
    match = _GITHUB_REPO_RE.search(record.github_url or "")
    if match:
        owner, repo = match.groups()
        return owner, repo.removesuffix(".git")
    if record.repo_full_name and "/" in record.repo_full_name:
        owner, repo = record.repo_full_name.split("/", 1)
        return owner, repo
    return None


def record_skill_subpath(record: RemoteSkillRecord) -> str:
    """The skill folder inside the repository; empty for the root."""
    return re.sub(r"/?SKILL\.md$", "", record.path or "", flags=re.IGNORECASE).strip("/")


async def install_remote_skill(
    record: RemoteSkillRecord,
    agent_keys: Sequence[str],
    agents: AgentTable,
    global_install: bool = False,
    cwd: Path | None = None,
    home: Path | None = None,
    tracker: InstallTracker | None = None,
) -> InstallOutcome:
    """Clone a record's repository and place the skill for each agent.

    Never raises for per-skill problems; they are reported on the outcome.
    """
    outcome = InstallOutcome(record=record)

    repository = record_repository(record)
    if repository is None:
        outcome.error = f"No GitHub repository for {record.scoped_name or record.name}"
        return outcome
    owner, repo = repository

    try:
        async with scratch_directory() as scratch:
            repo_dir = scratch / "repo"
            await clone_repository(
                f"https://github.com/{owner}/{repo}.git",
                repo_dir,
                branch=record.branch or "main",
            )
            subpath = record_skill_subpath(record)
            source_dir = repo_dir / subpath if subpath else repo_dir
            if not source_dir.is_dir():
                outcome.error = f"Skill folder not found in repository: {subpath or '/'}"
                return outcome

            candidate = SkillCandidate(record.name, record.description, source_dir)
            outcome.pairs = install_candidates([candidate], agent_keys, agents, global_install, cwd, home)
    except CloneError as e:
        outcome.error = str(e)
        return outcome

    if tracker is not None and any(p.success for p in outcome.pairs):
        tracker.append(
            InstalledSkillRecord(
                name=record.name,
                author=record.author or None,
                scoped_name=f"@{record.author}/{record.name}" if record.author else record.name,
                platforms=[p.agent for p in outcome.pairs if p.success],
                source_url=record.github_url or f"https://github.com/{owner}/{repo}",
                source_id=record.source_id,
                version=record.version,
            )
        )
    return outcome


async def install_remote_skills(
    records: Sequence[RemoteSkillRecord],
    agent_keys: Sequence[str],
    agents: AgentTable,
    global_install: bool = False,
    cwd: Path | None = None,
    home: Path | None = None,
    tracker: InstallTracker | None = None,
) -> list[InstallOutcome]:
    """Install several resolved skills concurrently, one outcome per record."""

    async def _guarded(record: RemoteSkillRecord) -> InstallOutcome:
        try:
            return await install_remote_skill(record, agent_keys, agents, global_install, cwd, home, tracker)
        except Exception as e:
            logger.error(f"Install of {record.name} failed: {e}", exc_info=True)
            return InstallOutcome(record=record, error=str(e))

    outcomes = await asyncio.gather(*(_guarded(r) for r in records))
    return list(outcomes)


def summarize_pairs(pairs: Sequence[PairResult]) -> dict[str, Any]:
    """Count successes and failures for reporting."""
    return {
        "installed": sum(1 for p in pairs if p.success),
        "failed": sum(1 for p in pairs if not p.success),
    }
