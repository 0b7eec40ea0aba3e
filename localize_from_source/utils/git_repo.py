# -*- coding: utf-8 -*-
"""
Git Repository Info
===================

Reads the HEAD commit and the GitHub remote straight out of the .git folder
(no git executable needed) so generated files can link each string back to the
line that introduced it.  Worktrees and submodules, whose .git is a file
pointing elsewhere, are followed.  Everything here is best-effort: problems are
reported as warnings and simply mean "no hyperlinks".
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple
from urllib.parse import quote

logger = logging.getLogger(__name__)

_RE_GITHUB_REMOTE_URL = re.compile(r"^\s+url\s*=\s*(?P<uri>https://(?:[^@/\s]+@)?github\.com/\S*)\s*$", re.IGNORECASE)
_RE_GITHUB_SSH_URL = re.compile(r"^\s+url\s*=\s*git@github\.com:(?P<path>\S+)\s*$", re.IGNORECASE)
_RE_COMMIT = re.compile(r"^[0-9a-f]{40}$")
_RE_REMOTE_SECTION = re.compile(r'^\[remote\s+"(?P<name>[^"]+)"\]')


@dataclass(frozen=True)
class GitRepoInfo:
    """Where the repository lives, what is checked out and where it is published."""
    repository_path: Optional[Path] = None
    head_commit: Optional[str] = None
    github_repo_root_url: Optional[str] = None

    @classmethod
    def create_null(cls) -> "GitRepoInfo":
        return cls()

    @classmethod
    def create(cls, source_root: Path, report_problem: Callable[[str], None]) -> "GitRepoInfo":
        """Inspects the repository containing *source_root*."""
        repository_path = find_repo_root(Path(source_root))
        if repository_path is None:
            report_problem("Not executed from a git repository.  Hyperlinks will not be generated.")
            return cls()

        head_commit = read_head_commit(repository_path)
        if head_commit is None:
            report_problem("Could not calculate the git HEAD commit.  Hyperlinks will not be generated.")

        github_url = read_github_url(repository_path)
        if github_url is None:
            report_problem("This repository does not appear to be hosted on Github.  Hyperlinks will not be generated.")

        logger.debug("Git repository %s at %s (remote %s)", repository_path, head_commit, github_url)
        return cls(repository_path, head_commit, github_url)

    def make_link(self, file: Optional[str], line: Optional[int]) -> Optional[str]:
        """GitHub blob link for a source file and line, or None if one can't be made."""
        if file is None or self.repository_path is None or self.head_commit is None or self.github_repo_root_url is None:
            return None

        try:
            relative = os.path.relpath(_normalize_path(file), _normalize_path(str(self.repository_path)))
        except ValueError:
            # Different drive on Windows
            return None
        if relative.startswith(".."):
            return None

        relative = relative.replace("\\", "/")
        link = f"{self.github_repo_root_url}/blob/{self.head_commit}/{quote(relative, safe='/')}"
        if line is not None:
            link += f"#L{line}"
        return link


def _normalize_path(path: str) -> str:
    # Listings produced on Windows carry backslash paths
    return os.path.normpath(path.replace("\\", "/"))


def find_repo_root(source_root: Path) -> Optional[Path]:
    """Closest folder holding a .git folder, or a .git file as worktrees and submodules do."""
    path = source_root.resolve()
    while True:
        if (path / ".git").exists():
            return path
        if path.parent == path:
            return None
        path = path.parent


def find_git_dirs(repository_path: Path) -> Optional[Tuple[Path, Path]]:
    """
    (git dir, common dir).  HEAD lives in the git dir; branches, packed-refs and
    config live in the common dir, which differs from it only for worktrees.
    """
    dot_git = repository_path / ".git"
    if dot_git.is_dir():
        return dot_git, dot_git

    try:
        pointer = dot_git.read_text(encoding="utf-8").strip()
    except OSError as e:
        logger.debug("Cannot read %s: %s", dot_git, e)
        return None
    if not pointer.startswith("gitdir:"):
        return None
    git_dir = (repository_path / pointer[len("gitdir:"):].strip()).resolve()

    common_dir = git_dir
    commondir_file = git_dir / "commondir"
    if commondir_file.is_file():
        common_dir = (git_dir / commondir_file.read_text(encoding="utf-8").strip()).resolve()
    return git_dir, common_dir


def read_head_commit(repository_path: Path) -> Optional[str]:
    dirs = find_git_dirs(repository_path)
    if dirs is None:
        return None
    git_dir, common_dir = dirs
    try:
        head = (git_dir / "HEAD").read_text(encoding="utf-8").strip()
    except OSError as e:
        logger.debug("Cannot read HEAD: %s", e)
        return None

    if not head.startswith("ref:"):
        # Detached HEAD
        return head if _RE_COMMIT.match(head) else None

    ref_path = head[len("ref:"):].strip()
    for folder in (git_dir, common_dir):
        ref_file = folder / ref_path
        if ref_file.is_file():
            commit = ref_file.read_text(encoding="utf-8").strip()
            return commit if _RE_COMMIT.match(commit) else None

    packed_refs = common_dir / "packed-refs"
    if packed_refs.is_file():
        for line in packed_refs.read_text(encoding="utf-8").splitlines():
            if not line.strip() or line.startswith("#") or line.startswith("^"):
                continue
            parts = line.split(" ", 1)
            if len(parts) == 2 and parts[1].strip() == ref_path:
                return parts[0].strip()
    return None


def read_github_url(repository_path: Path) -> Optional[str]:
    """The GitHub URL of 'origin', or of the first GitHub remote when origin is elsewhere."""
    dirs = find_git_dirs(repository_path)
    if dirs is None:
        return None
    config_path = dirs[1] / "config"
    try:
        lines = config_path.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        logger.debug("Cannot read git config: %s", e)
        return None

    remotes: Dict[str, str] = {}
    remote = None
    for line in lines:
        section = _RE_REMOTE_SECTION.match(line)
        if section:
            remote = section.group("name")
        elif line.startswith("["):
            remote = None
        elif remote is not None and remote not in remotes:
            match = _RE_GITHUB_REMOTE_URL.match(line)
            if match:
                remotes[remote] = _clean_repo_url(match.group("uri"))
                continue
            match = _RE_GITHUB_SSH_URL.match(line)
            if match:
                remotes[remote] = _clean_repo_url("https://github.com/" + match.group("path"))

    if "origin" in remotes:
        return remotes["origin"]
    return next(iter(remotes.values()), None)


def _clean_repo_url(url: str) -> str:
    # Strip embedded credentials and the .git suffix
    url = re.sub(r"^https://[^/@]+@", "https://", url)
    if url.endswith(".git"):
        url = url[:-4]
    return url.rstrip("/")
