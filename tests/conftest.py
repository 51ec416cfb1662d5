"""Shared test fixtures for notion-doc-sync."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

import pytest

from notion_doc_sync.infrastructure.local_docs import normalize_page_id
from notion_doc_sync.infrastructure.notion_client import NotionAPIError
from notion_doc_sync.models import RemoteDocument

if TYPE_CHECKING:
    from pathlib import Path

PAGE_ID = "2f1a9c3e-0b4d-4e5f-8a6b-7c8d9e0f1a2b"
OTHER_PAGE_ID = "9b8a7c6d-5e4f-4a3b-2c1d-0e9f8a7b6c5d"


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def write_doc(
    docs_dir: Path,
    name: str,
    *,
    page_id: str | None = PAGE_ID,
    title: str | None = "Sample",
    timestamp: str | None = "2026-01-01T00:00:00.000Z",
    tags: str | None = None,
    body: str = "Body text.",
) -> Path:
    lines: list[str] = []
    if page_id is not None:
        lines += [f"pageId={page_id}", ""]
    if title is not None:
        lines += [f"# {title}", ""]
    if timestamp is not None:
        lines += [f"*Last updated: {timestamp}*", ""]
    if tags is not None:
        lines += [f"**Tags:** {tags}", ""]
    lines.append(body)
    path = docs_dir / name
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


class FakeNotion:
    """In-memory stand-in for the Notion client used by the sync engine."""

    def __init__(self) -> None:
        self.pages: dict[str, RemoteDocument] = {}
        self.replaced: dict[str, list[dict[str, Any]]] = {}
        self.fail_last_edited: set[str] = set()
        # Timestamp Notion reports after a content replacement.
        self.edited_after_write = utc(2026, 3, 1, 9, 30, 0)

    async def __aenter__(self) -> FakeNotion:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None

    def add(self, doc: RemoteDocument) -> None:
        self.pages[normalize_page_id(doc.id)] = doc

    async def fetch_page(self, page_id: str) -> RemoteDocument:
        key = normalize_page_id(page_id)
        if key not in self.pages:
            msg = f"Could not find page {page_id}"
            raise NotionAPIError(msg, status_code=404)
        return self.pages[key]

    async def fetch_pages_by_ids(self, page_ids: list[str]) -> list[RemoteDocument]:
        return [
            self.pages[normalize_page_id(pid)]
            for pid in page_ids
            if normalize_page_id(pid) in self.pages
        ]

    async def fetch_page_last_edited(self, page_id: str) -> datetime:
        key = normalize_page_id(page_id)
        if key in self.fail_last_edited:
            msg = f"Page {page_id} is not a full page"
            raise RuntimeError(msg)
        return self.pages[key].last_modified

    async def replace_page_content(self, page_id: str, blocks: list[dict[str, Any]]) -> None:
        key = normalize_page_id(page_id)
        self.replaced[key] = blocks
        doc = self.pages[key]
        self.pages[key] = RemoteDocument(
            id=doc.id,
            title=doc.title,
            content=doc.content,
            tags=doc.tags,
            last_modified=self.edited_after_write,
        )


@pytest.fixture()
def docs_dir(tmp_path: Path) -> Path:
    """Empty local docs directory."""
    path = tmp_path / "notionDocs"
    path.mkdir()
    return path


@pytest.fixture()
def fake_notion() -> FakeNotion:
    return FakeNotion()
