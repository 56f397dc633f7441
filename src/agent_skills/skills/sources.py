"""Git source classification.

Turns the free-form source argument of ``skills add`` into one of a small
set of source variants. Rules are tried in a fixed order and the first
match wins:

1. GitHub URL with ``/tree/<branch>/<path>``  -> GitHubTree
2. GitHub URL                                 -> GitHubRepo
3. GitLab URL                                 -> GitLabRepo
4. ``owner/repo[/subpath]`` without a colon   -> Shorthand
5. anything else                              -> RawGit

Inputs containing a colon never match the shorthand rule, so SSH remotes
like ``git@host:owner/repo.git`` are passed to git untouched.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


class SourceParseError(ValueError):
    """Raised when a source string cannot be classified."""


@dataclass(frozen=True)
class GitHubTree:
    owner: str
    repo: str
    branch: str
    subpath: str

    kind = "github"

    @property
    def clone_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}.git"


@dataclass(frozen=True)
class GitHubRepo:
    owner: str
    repo: str

    kind = "github"
    branch = None
    subpath = None

    @property
    def clone_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}.git"


@dataclass(frozen=True)
class GitLabRepo:
    owner: str
    repo: str

    kind = "gitlab"
    branch = None
    subpath = None

    @property
    def clone_url(self) -> str:
        return f"https://gitlab.com/{self.owner}/{self.repo}.git"


@dataclass(frozen=True)
class Shorthand:
    owner: str
    repo: str
    subpath: str | None = None

    kind = "github"
    branch = None

    @property
    def clone_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}.git"


@dataclass(frozen=True)
class RawGit:
    url: str

    kind = "git"
    branch = None
    subpath = None

    @property
    def clone_url(self) -> str:
        return self.url


GitSource = GitHubTree | GitHubRepo | GitLabRepo | Shorthand | RawGit

_GITHUB_TREE_RE = re.compile(r"github\.com/([^/]+)/([^/]+)/tree/([^/]+)/(.+)")
_GITHUB_REPO_RE = re.compile(r"github\.com/([^/]+)/([^/]+)")
_GITLAB_REPO_RE = re.compile(r"gitlab\.com/([^/]+)/([^/]+)")
_SHORTHAND_RE = re.compile(r"^([^/]+)/([^/]+)(?:/(.+))?$")


def _clean_repo(repo: str) -> str:
    repo = repo.split("?", 1)[0].split("#", 1)[0]
    return repo.removesuffix(".git")


def classify_source(text: str) -> GitSource:
    """Classify a source string into a git source variant.

    Raises:
        SourceParseError: If the input is empty
    """
    source = text.strip()
    if not source:
        raise SourceParseError("Source must not be empty")

    match = _GITHUB_TREE_RE.search(source)
    if match:
        owner, repo, branch, subpath = match.groups()
        return GitHubTree(owner=owner, repo=_clean_repo(repo), branch=branch, subpath=subpath.strip("/"))

    match = _GITHUB_REPO_RE.search(source)
    if match:
        owner, repo = match.groups()
        return GitHubRepo(owner=owner, repo=_clean_repo(repo))

    match = _GITLAB_REPO_RE.search(source)
    if match:
        owner, repo = match.groups()
        return GitLabRepo(owner=owner, repo=_clean_repo(repo))

    match = _SHORTHAND_RE.match(source)
    if match and ":" not in source:
        owner, repo, subpath = match.groups()
        return Shorthand(owner=owner, repo=repo, subpath=subpath.strip("/") if subpath else None)

    return RawGit(url=source)


def describe_source(source: GitSource) -> str:
    """Human-readable one-line summary of a classified source."""
    label = source.clone_url
    if source.subpath:
        label = f"{label} ({source.subpath})"
    if source.branch:
        label = f"{label} @ {source.branch}"
    return label
