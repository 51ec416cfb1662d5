"""Value objects shared by the mapper, the sync engine and the collaborators."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from datetime import datetime
    from pathlib import Path

ChangeType = Literal["added", "modified", "deleted"]


class SyncDirection(str, enum.Enum):
    """Outcome of comparing a local and a remote timestamp."""

    PULL = "pull"
    PUSH = "push"
    NONE = "none"


@dataclass(frozen=True)
class DocumentationRecord:
    """A documentation file and the source files it is judged to describe.

    ``linked_files`` and ``confidence`` are recomputed wholesale by every
    mapping pass; they start empty.
    """

    path: str
    content: str
    linked_files: list[str] = field(default_factory=list)
    confidence: float = 0.0


def count_diff_lines(diff: str) -> tuple[int, int]:
    """Count added and removed lines in a unified diff, skipping file headers."""
    added = 0
    removed = 0
    for line in diff.split("\n"):
        if line.startswith("+") and not line.startswith("+++"):
            added += 1
        elif line.startswith("-") and not line.startswith("---"):
            removed += 1
    return added, removed


@dataclass(frozen=True)
class CodeChangeRecord:
    """A changed source file between two git refs."""

    file_path: str
    change_type: ChangeType
    lines_added: int
    lines_removed: int
    diff_content: str
    is_source_code: bool = True

    @classmethod
    def from_diff(cls, file_path: str, change_type: ChangeType, diff: str) -> CodeChangeRecord:
        """Build a record whose line counts are derived from *diff*."""
        added, removed = count_diff_lines(diff)
        return cls(
            file_path=file_path,
            change_type=change_type,
            lines_added=added,
            lines_removed=removed,
            diff_content=diff,
        )


@dataclass(frozen=True)
class LocalDocRef:
    """A local markdown file that carries a Notion page identifier."""

    file_path: Path
    file_name: str
    page_id: str


@dataclass(frozen=True)
class LocalDocMetadata:
    """Full parse of one local document."""

    page_id: str
    title: str
    tags: list[str]
    body_content: str
    last_updated: datetime | None
    raw_content: str
    file_path: Path
    file_name: str


@dataclass(frozen=True)
class RemoteDocument:
    """A Notion page rendered to markdown."""

    id: str
    title: str
    content: str
    tags: list[str]
    last_modified: datetime
    linked_code_file: str | None = None


@dataclass(frozen=True)
class SyncAction:
    """Planned sync step for one document."""

    page_id: str
    file_path: Path
    file_name: str
    direction: SyncDirection
    local_timestamp: datetime | None
    notion_timestamp: datetime


@dataclass(frozen=True)
class SyncResult:
    """Outcome of executing one :class:`SyncAction`."""

    page_id: str
    file_path: Path
    file_name: str
    direction: SyncDirection
    success: bool
    error: str | None = None
    synchronized_timestamp: datetime | None = None

    @classmethod
    def succeeded(
        cls, action: SyncAction, synchronized_timestamp: datetime | None = None
    ) -> SyncResult:
        return cls(
            page_id=action.page_id,
            file_path=action.file_path,
            file_name=action.file_name,
            direction=action.direction,
            success=True,
            synchronized_timestamp=synchronized_timestamp,
        )

    @classmethod
    def failed(cls, action: SyncAction, error: str) -> SyncResult:
        return cls(
            page_id=action.page_id,
            file_path=action.file_path,
            file_name=action.file_name,
            direction=action.direction,
            success=False,
            error=error,
        )
