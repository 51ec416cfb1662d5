"""Local markdown docs carrying a Notion page identifier.

File layout (every section optional, blank separators cosmetic)::

    pageId=<identifier>

    # <title>

    *Last updated: 2026-02-16T14:00:00.000Z*

    **Tags:** tag1, tag2

    body...

``page_id: <identifier>`` is also recognized on read; rewrites always use
the ``pageId=`` form.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING

from notion_doc_sync.models import LocalDocMetadata, LocalDocRef, RemoteDocument
from notion_doc_sync.timestamps import (
    TIMESTAMP_RE,
    build_timestamp_line,
    parse_timestamp,
    replace_timestamp_in_content,
)

if TYPE_CHECKING:
    from datetime import datetime

logger = logging.getLogger(__name__)

_PAGE_ID_RE = re.compile(r"^\s*pageId=([a-f0-9][a-f0-9-]*)\s*$", re.IGNORECASE | re.MULTILINE)
_ALT_PAGE_ID_RE = re.compile(
    r"^\s*page[_-]?id\s*[:=]\s*([a-f0-9][a-f0-9-]*)\s*$", re.IGNORECASE | re.MULTILINE
)
_TITLE_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)
_TAGS_RE = re.compile(r"^\*\*Tags:\*\*\s*(.+)$", re.MULTILINE)

_TIMESTAMP_LINE_RE = re.compile(r"^[*_]Last updated:")
_TITLE_LINE_RE = re.compile(r"^#\s")
_TAGS_LINE_RE = re.compile(r"^\*\*Tags:\*\*")

NO_CONTENT_PLACEHOLDER = "*No content available*"


class LocalDocsError(Exception):
    """Raised when the docs directory itself cannot be read."""


def normalize_page_id(page_id: str) -> str:
    """Identifiers compare equal regardless of ``-`` separators."""
    return page_id.replace("-", "").lower()


def extract_page_id(content: str) -> str | None:
    match = _PAGE_ID_RE.search(content) or _ALT_PAGE_ID_RE.search(content)
    return match.group(1) if match else None


def extract_title(content: str) -> str:
    match = _TITLE_RE.search(content)
    return match.group(1).strip() if match else ""


def extract_tags(content: str) -> list[str]:
    match = _TAGS_RE.search(content)
    if match is None:
        return []
    return [tag.strip() for tag in match.group(1).split(",") if tag.strip()]


def _is_page_id_line(line: str) -> bool:
    return bool(_PAGE_ID_RE.match(line) or _ALT_PAGE_ID_RE.match(line))


def _metadata_kind(line: str) -> str | None:
    if _is_page_id_line(line):
        return "page_id"
    if _TITLE_LINE_RE.match(line):
        return "title"
    if _TIMESTAMP_LINE_RE.match(line):
        return "timestamp"
    if _TAGS_LINE_RE.match(line):
        return "tags"
    return None


def extract_body_content(content: str) -> str:
    """Strip the metadata header and surrounding blank lines.

    The header is the leading run of blank lines and metadata lines, each
    kind at most once. It ends at the first other line, or at a second line
    of a kind already seen; everything from there on is body.
    """
    lines = content.split("\n")
    seen: set[str] = set()
    start = len(lines)
    for index, line in enumerate(lines):
        if not line.strip():
            continue
        kind = _metadata_kind(line)
        if kind is None or kind in seen:
            start = index
            break
        seen.add(kind)

    return "\n".join(lines[start:]).strip()


def build_updated_content(page_id: str | None, doc: RemoteDocument) -> str:
    """Render a remote document in the local file layout."""
    lines: list[str] = []

    if page_id:
        lines.extend([f"pageId={page_id}", ""])

    if doc.title.strip():
        lines.extend([f"# {doc.title}", ""])

    lines.extend([build_timestamp_line(doc.last_modified), ""])

    if doc.tags:
        lines.extend([f"**Tags:** {', '.join(doc.tags)}", ""])

    body = doc.content.strip()
    lines.append(body or NO_CONTENT_PLACEHOLDER)

    return "\n".join(lines) + "\n"


class LocalDocsReader:
    """Reads and rewrites the ``*.md`` files of one docs directory."""

    def __init__(self, docs_dir: Path | str) -> None:
        self.docs_dir = Path(docs_dir)

    def read_local_docs(self) -> list[LocalDocRef]:
        """List the markdown files that carry a page identifier.

        Unreadable files are logged and skipped.

        Raises
        ------
        LocalDocsError
            If the docs directory does not exist or cannot be listed.
        """
        if not self.docs_dir.is_dir():
            msg = f"Failed to read local docs: {self.docs_dir} is not a directory"
            raise LocalDocsError(msg)

        try:
            markdown_files = sorted(p for p in self.docs_dir.iterdir() if p.suffix == ".md")
        except OSError as exc:
            msg = f"Failed to read local docs: {exc}"
            raise LocalDocsError(msg) from exc
        logger.info("Found %d markdown files in %s", len(markdown_files), self.docs_dir)

        refs: list[LocalDocRef] = []
        for path in markdown_files:
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                logger.error("Error reading %s: %s", path.name, exc)
                continue
            page_id = extract_page_id(content)
            if page_id is not None:
                refs.append(LocalDocRef(file_path=path, file_name=path.name, page_id=page_id))

        logger.info("Found %d files with page IDs", len(refs))
        return refs

    def get_page_ids(self) -> list[str]:
        return [ref.page_id for ref in self.read_local_docs()]

    def read_full_doc(self, ref: LocalDocRef) -> LocalDocMetadata:
        raw = ref.file_path.read_text(encoding="utf-8")
        return LocalDocMetadata(
            page_id=ref.page_id,
            title=extract_title(raw),
            tags=extract_tags(raw),
            body_content=extract_body_content(raw),
            last_updated=parse_timestamp(raw),
            raw_content=raw,
            file_path=ref.file_path,
            file_name=ref.file_name,
        )

    def overwrite(self, ref: LocalDocRef, doc: RemoteDocument) -> None:
        """Rewrite *ref* from *doc*, keeping the local identifier.

        Raises
        ------
        ValueError
            If *doc* is not the page *ref* points at.
        """
        if normalize_page_id(doc.id) != normalize_page_id(ref.page_id):
            msg = f"Page {doc.id} does not belong to {ref.file_name} ({ref.page_id})"
            raise ValueError(msg)

        current = ref.file_path.read_text(encoding="utf-8")
        page_id = extract_page_id(current) or ref.page_id
        ref.file_path.write_text(build_updated_content(page_id, doc), encoding="utf-8")
        logger.info("Updated %s", ref.file_name)

    def update_local_docs(self, docs: list[RemoteDocument]) -> list[Path]:
        """Rewrite every local file matching one of *docs*; returns the files written.

        Documents without a local file, and files that fail to write, are
        logged and skipped.
        """
        by_id = {normalize_page_id(ref.page_id): ref for ref in self.read_local_docs()}
        written: list[Path] = []
        for doc in docs:
            ref = by_id.get(normalize_page_id(doc.id))
            if ref is None:
                logger.warning("No local file found for page %s", doc.id)
                continue
            try:
                self.overwrite(ref, doc)
            except (OSError, ValueError) as exc:
                logger.error("Failed to update %s: %s", ref.file_name, exc)
                continue
            written.append(ref.file_path)
        return written

    def update_timestamp_only(self, file_path: Path, value: datetime) -> bool:
        """Rewrite only the timestamp marker; returns False if the file has none."""
        content = file_path.read_text(encoding="utf-8")
        if TIMESTAMP_RE.search(content) is None:
            return False
        updated = replace_timestamp_in_content(content, value)
        if updated != content:
            file_path.write_text(updated, encoding="utf-8")
        return True
