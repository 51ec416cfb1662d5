"""Async Notion REST client: pages, block children and database queries."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from types import TracebackType
from typing import Any

import httpx

from notion_doc_sync.infrastructure.converters import blocks_to_markdown, strip_aws_credentials
from notion_doc_sync.models import RemoteDocument

logger = logging.getLogger(__name__)

NOTION_API_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"

# Notion accepts at most this many children per append request.
APPEND_BATCH_SIZE = 100


class NotionAPIError(Exception):
    """Raised when the Notion API answers with an error status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PageNotFullError(NotionAPIError):
    """Raised when a page payload lacks the fields of a full page object."""


def parse_notion_time(value: str) -> datetime:
    """Parse Notion's ``2026-02-16T14:00:00.000Z`` timestamps as aware UTC datetimes."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value).astimezone(timezone.utc)


def is_full_page(page: dict[str, Any]) -> bool:
    return "properties" in page and "last_edited_time" in page


def extract_title(page: dict[str, Any]) -> str:
    properties = page.get("properties") or {}
    prop = properties.get("Title") or properties.get("Name") or {}
    title = prop.get("title")
    if isinstance(title, list) and title:
        return title[0].get("plain_text") or "Untitled"
    return "Untitled"


def extract_tags(page: dict[str, Any]) -> list[str]:
    prop = (page.get("properties") or {}).get("Tags") or {}
    options = prop.get("multi_select")
    if isinstance(options, list):
        return [str(option.get("name", "")) for option in options]
    return []


def extract_linked_code_file(page: dict[str, Any]) -> str | None:
    prop = (page.get("properties") or {}).get("Code File") or {}
    rich_text = prop.get("rich_text")
    if isinstance(rich_text, list) and rich_text:
        return rich_text[0].get("plain_text")
    return None


class NotionClient:
    """Thin async wrapper over the Notion REST API.

    Use as an async context manager, or call :meth:`aclose` when done.
    A custom *transport* can be injected for testing.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = NOTION_API_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Notion-Version": NOTION_VERSION,
                "content-type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> NotionClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as exc:
            msg = f"Notion request {method} {path} failed: {exc}"
            raise NotionAPIError(msg) from exc

        if response.status_code >= 400:
            try:
                detail = response.json().get("message", response.text)
            except ValueError:
                detail = response.text
            msg = f"Notion API error {response.status_code} on {method} {path}: {detail}"
            raise NotionAPIError(msg, status_code=response.status_code)

        if not response.content:
            return {}
        data: dict[str, Any] = response.json()
        return data

    # -- pages -------------------------------------------------------------

    async def retrieve_page(self, page_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/pages/{page_id}")

    async def fetch_page_last_edited(self, page_id: str) -> datetime:
        """Return the page's ``last_edited_time``.

        Raises
        ------
        PageNotFullError
            If Notion returned a partial page object.
        """
        page = await self.retrieve_page(page_id)
        if not is_full_page(page):
            msg = f"Page {page_id} is not a full page"
            raise PageNotFullError(msg)
        return parse_notion_time(page["last_edited_time"])

    async def fetch_page(self, page_id: str) -> RemoteDocument:
        """Fetch one page with its rendered body.

        Raises
        ------
        NotionAPIError
            If the page or its blocks cannot be read.
        PageNotFullError
            If Notion returned a partial page object.
        """
        page = await self.retrieve_page(page_id)
        if not is_full_page(page):
            msg = f"Page {page_id} is not a full page"
            raise PageNotFullError(msg)
        return await self._parse_page(page)

    async def fetch_pages_by_ids(self, page_ids: list[str]) -> list[RemoteDocument]:
        """Fetch and render each page; pages that fail are logged and skipped."""
        docs: list[RemoteDocument] = []
        for page_id in page_ids:
            try:
                docs.append(await self.fetch_page(page_id))
            except NotionAPIError as exc:
                logger.error("Failed to fetch page %s: %s", page_id, exc)
        return docs

    async def fetch_all_docs(self, database_id: str) -> list[RemoteDocument]:
        """Query every page of a database and render it; unreadable pages are skipped."""
        docs: list[RemoteDocument] = []
        cursor: str | None = None
        while True:
            body: dict[str, Any] = {"start_cursor": cursor} if cursor else {}
            response = await self._request("POST", f"/databases/{database_id}/query", json=body)
            for page in response.get("results", []):
                if not is_full_page(page):
                    continue
                try:
                    docs.append(await self._parse_page(page))
                except NotionAPIError as exc:
                    logger.error("Failed to fetch page %s: %s", page["id"], exc)
            if not response.get("has_more"):
                break
            cursor = response.get("next_cursor")
        return docs

    async def _parse_page(self, page: dict[str, Any]) -> RemoteDocument:
        return RemoteDocument(
            id=page["id"],
            title=extract_title(page),
            content=await self.fetch_page_content(page["id"]),
            tags=extract_tags(page),
            last_modified=parse_notion_time(page["last_edited_time"]),
            linked_code_file=extract_linked_code_file(page),
        )

    # -- blocks ------------------------------------------------------------

    async def list_block_children(self, block_id: str) -> list[dict[str, Any]]:
        """Every child block of *block_id*, following pagination."""
        children: list[dict[str, Any]] = []
        cursor: str | None = None
        while True:
            params: dict[str, Any] = {"page_size": 100}
            if cursor:
                params["start_cursor"] = cursor
            response = await self._request("GET", f"/blocks/{block_id}/children", params=params)
            children.extend(response.get("results", []))
            if not response.get("has_more"):
                return children
            cursor = response.get("next_cursor")

    async def fetch_page_content(self, page_id: str) -> str:
        """Render the page body as markdown.

        Raises
        ------
        NotionAPIError
            If the block children cannot be listed.
        """
        blocks = await self.list_block_children(page_id)
        return strip_aws_credentials(blocks_to_markdown(blocks))

    async def replace_page_content(self, page_id: str, blocks: list[dict[str, Any]]) -> None:
        """Replace the page body wholesale: delete every child, then append *blocks*.

        Blocks are appended in batches of :data:`APPEND_BATCH_SIZE`.
        """
        existing = await self.list_block_children(page_id)
        for child in existing:
            await self._request("DELETE", f"/blocks/{child['id']}")
        logger.debug("Deleted %d blocks from page %s", len(existing), page_id)

        for start in range(0, len(blocks), APPEND_BATCH_SIZE):
            batch = blocks[start : start + APPEND_BATCH_SIZE]
            await self._request("PATCH", f"/blocks/{page_id}/children", json={"children": batch})
        logger.debug("Appended %d blocks to page %s", len(blocks), page_id)
