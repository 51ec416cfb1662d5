"""Changed source files between two git refs, via the ``git`` command line."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from notion_doc_sync.models import ChangeType, CodeChangeRecord

logger = logging.getLogger(__name__)

SOURCE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".py")

_EXCLUDED_FILENAMES = (
    "package.json",
    "tsconfig.json",
    ".gitignore",
    "README.md",
    "LICENSE",
    ".env",
    "setup.py",
    "conftest.py",
)

_STATUS_CHANGE_TYPES: dict[str, ChangeType] = {
    "A": "added",
    "M": "modified",
    "D": "deleted",
    "R": "modified",
    "T": "modified",
}

_GIT_TIMEOUT = 30


class ChangeSourceError(Exception):
    """Base class for repository-state errors."""


class BranchNotFoundError(ChangeSourceError):
    """Raised when a ref passed to the analysis does not exist."""

    def __init__(self, branch: str) -> None:
        super().__init__(f"Branch '{branch}' does not exist")
        self.branch = branch


class NotAGitRepositoryError(ChangeSourceError):
    def __init__(self) -> None:
        super().__init__("Git repository not found or not initialized")


class NoCommitsError(ChangeSourceError):
    def __init__(self) -> None:
        super().__init__("Repository has no commits")


class GitStatusParseError(ChangeSourceError):
    """Raised for a ``git diff --name-status`` line with the wrong shape."""

    def __init__(self, line: str) -> None:
        super().__init__(f"Invalid git status line format: {line!r}")
        self.line = line


def is_source_code_file(file_path: str) -> bool:
    """True for source files; tests, vendored code and config files are excluded."""
    path = file_path.replace("\\", "/")
    name = path.rsplit("/", 1)[-1]

    if "__tests__" in path or ".test." in name or ".spec." in name:
        return False
    if name.startswith("test_") or name.endswith("_test.py"):
        return False
    if path.startswith(("tests/", "test/")) or "/tests/" in path:
        return False
    if "node_modules" in path:
        return False
    if path.endswith(_EXCLUDED_FILENAMES):
        return False

    return path.endswith(SOURCE_EXTENSIONS)


def parse_git_status_line(line: str) -> tuple[ChangeType, str]:
    """Parse one ``--name-status`` line into ``(change_type, path)``.

    Renames report the new path as a modification.

    Raises
    ------
    GitStatusParseError
        If the line does not have a known status and a path.
    """
    parts = line.split("\t")
    if len(parts) < 2 or not parts[0]:
        raise GitStatusParseError(line)

    status = parts[0]
    file_path = parts[1]
    if status.startswith("R"):
        if len(parts) < 3:
            raise GitStatusParseError(line)
        file_path = parts[2]

    change_type = _STATUS_CHANGE_TYPES.get(status[0])
    if change_type is None or not file_path:
        raise GitStatusParseError(line)
    return change_type, file_path


class GitAnalyzer:
    """Runs git in *cwd* to list and diff changed source files."""

    def __init__(self, cwd: Path | None = None) -> None:
        self.cwd = cwd or Path.cwd()

    def _git(self, *args: str) -> subprocess.CompletedProcess[str]:
        try:
            return subprocess.run(
                ["git", *args],  # noqa: S607
                cwd=str(self.cwd),
                capture_output=True,
                text=True,
                timeout=_GIT_TIMEOUT,
            )
        except FileNotFoundError as exc:
            msg = "git executable not found"
            raise ChangeSourceError(msg) from exc
        except subprocess.TimeoutExpired as exc:
            msg = f"git {args[0]} timed out after {_GIT_TIMEOUT}s"
            raise ChangeSourceError(msg) from exc

    def _check_refs(self, base_ref: str, target_ref: str) -> None:
        """Distinguish a missing repo, an empty repo and a missing ref up front."""
        inside = self._git("rev-parse", "--is-inside-work-tree")
        if inside.returncode != 0:
            raise NotAGitRepositoryError

        head = self._git("rev-parse", "--verify", "--quiet", "HEAD")
        if head.returncode != 0:
            raise NoCommitsError

        for ref in (base_ref, target_ref):
            verify = self._git("rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}")
            if verify.returncode != 0:
                raise BranchNotFoundError(ref)

    def _raise_for(self, result: subprocess.CompletedProcess[str], base_ref: str) -> None:
        stderr = result.stderr
        if "not a git repository" in stderr:
            raise NotAGitRepositoryError
        if "does not have any commits" in stderr:
            raise NoCommitsError
        if "bad revision" in stderr or "unknown revision" in stderr:
            raise BranchNotFoundError(base_ref)
        raise ChangeSourceError(stderr.strip() or f"git exited with {result.returncode}")

    def get_code_changes(self, base_ref: str, target_ref: str) -> list[CodeChangeRecord]:
        """Changed source files between *base_ref* and *target_ref*.

        Raises
        ------
        NotAGitRepositoryError, NoCommitsError, BranchNotFoundError
            For the corresponding repository states.
        GitStatusParseError
            If git prints a status line that cannot be parsed.
        """
        self._check_refs(base_ref, target_ref)

        status = self._git("diff", "--name-status", f"{base_ref}..{target_ref}")
        if status.returncode != 0:
            self._raise_for(status, base_ref)

        changes: list[CodeChangeRecord] = []
        for line in status.stdout.splitlines():
            if not line.strip():
                continue
            change_type, file_path = parse_git_status_line(line)
            if not is_source_code_file(file_path):
                logger.debug("Skipping non-source file %s", file_path)
                continue

            diff = self._git("diff", f"{base_ref}..{target_ref}", "--", file_path)
            if diff.returncode != 0:
                self._raise_for(diff, base_ref)
            changes.append(CodeChangeRecord.from_diff(file_path, change_type, diff.stdout))

        return changes

    def get_modified_markdown_files(self, docs_dir: str) -> list[str]:
        """Markdown files under *docs_dir* with uncommitted changes ([] if git fails)."""
        try:
            result = self._git("status", "--porcelain", "--", docs_dir)
        except ChangeSourceError as exc:
            logger.error("Failed to run git status: %s", exc)
            return []
        if result.returncode != 0:
            logger.error("Failed to run git status. Are you in a git repository?")
            return []

        files: list[str] = []
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            path = line[3:].strip()
            if " -> " in path:
                path = path.split(" -> ", 1)[1]
            path = path.strip('"')
            if path.endswith(".md"):
                files.append(path)
        return files

    def list_source_files(self, source_dir: str) -> list[str]:
        """Tracked source files under *source_dir*, relative to the repository root."""
        result = self._git("ls-files", "--", source_dir)
        if result.returncode != 0:
            self._raise_for(result, "HEAD")
        return [path for path in result.stdout.splitlines() if is_source_code_file(path)]
