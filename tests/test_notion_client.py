"""Tests for notion_doc_sync.infrastructure.notion_client (no network)."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

import httpx
import pytest
from conftest import PAGE_ID, utc

from notion_doc_sync.infrastructure.notion_client import (
    APPEND_BATCH_SIZE,
    NOTION_VERSION,
    NotionAPIError,
    NotionClient,
    PageNotFullError,
    extract_linked_code_file,
    extract_tags,
    extract_title,
    parse_notion_time,
)

Handler = Callable[[httpx.Request], httpx.Response]


def _page(page_id: str = PAGE_ID, edited: str = "2026-02-16T14:00:00.000Z") -> dict[str, Any]:
    return {
        "object": "page",
        "id": page_id,
        "last_edited_time": edited,
        "properties": {
            "Title": {"title": [{"plain_text": "Guide"}]},
            "Tags": {"multi_select": [{"name": "api"}, {"name": "sync"}]},
            "Code File": {"rich_text": [{"plain_text": "src/gen.ts"}]},
        },
    }


def _paragraph(text: str, block_id: str = "b1") -> dict[str, Any]:
    return {
        "id": block_id,
        "type": "paragraph",
        "paragraph": {"rich_text": [{"plain_text": text, "annotations": {}}]},
    }


def _client(handler: Handler) -> NotionClient:
    return NotionClient("secret-token", transport=httpx.MockTransport(handler))


class TestPageHelpers:
    def test_parse_notion_time(self) -> None:
        assert parse_notion_time("2026-02-16T14:00:00.000Z") == utc(2026, 2, 16, 14, 0, 0)

    def test_property_extraction(self) -> None:
        page = _page()
        assert extract_title(page) == "Guide"
        assert extract_tags(page) == ["api", "sync"]
        assert extract_linked_code_file(page) == "src/gen.ts"

    def test_property_defaults(self) -> None:
        page = {"properties": {}}
        assert extract_title(page) == "Untitled"
        assert extract_tags(page) == []
        assert extract_linked_code_file(page) is None


class TestRequests:
    @pytest.mark.asyncio()
    async def test_sends_auth_and_version_headers(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_page())

        async with _client(handler) as client:
            await client.retrieve_page(PAGE_ID)

        [request] = seen
        assert request.headers["Authorization"] == "Bearer secret-token"
        assert request.headers["Notion-Version"] == NOTION_VERSION
        assert request.url.path == f"/v1/pages/{PAGE_ID}"

    @pytest.mark.asyncio()
    async def test_error_status_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"message": "Could not find page"})

        async with _client(handler) as client:
            with pytest.raises(NotionAPIError, match="Could not find page") as exc_info:
                await client.retrieve_page(PAGE_ID)
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio()
    async def test_transport_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            msg = "connection refused"
            raise httpx.ConnectError(msg, request=request)

        async with _client(handler) as client:
            with pytest.raises(NotionAPIError, match="connection refused"):
                await client.retrieve_page(PAGE_ID)


class TestPages:
    @pytest.mark.asyncio()
    async def test_fetch_page_last_edited(self) -> None:
        async with _client(lambda r: httpx.Response(200, json=_page())) as client:
            assert await client.fetch_page_last_edited(PAGE_ID) == utc(2026, 2, 16, 14, 0, 0)

    @pytest.mark.asyncio()
    async def test_partial_page_is_rejected(self) -> None:
        partial = {"object": "page", "id": PAGE_ID}
        async with _client(lambda r: httpx.Response(200, json=partial)) as client:
            with pytest.raises(PageNotFullError, match="is not a full page"):
                await client.fetch_page_last_edited(PAGE_ID)

    @pytest.mark.asyncio()
    async def test_fetch_pages_by_ids_skips_failures(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/v1/pages/good":
                return httpx.Response(200, json=_page("good"))
            if request.url.path == "/v1/blocks/good/children":
                return httpx.Response(200, json={"results": [_paragraph("Hello")]})
            return httpx.Response(404, json={"message": "missing"})

        with caplog.at_level(logging.ERROR):
            async with _client(handler) as client:
                docs = await client.fetch_pages_by_ids(["good", "bad"])

        [doc] = docs
        assert doc.id == "good"
        assert doc.title == "Guide"
        assert doc.content == "Hello"
        assert doc.tags == ["api", "sync"]
        assert doc.linked_code_file == "src/gen.ts"
        assert doc.last_modified == utc(2026, 2, 16, 14, 0, 0)
        assert "Failed to fetch page bad" in caplog.text

    @pytest.mark.asyncio()
    async def test_fetch_pages_by_ids_skips_page_with_unreadable_body(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.startswith("/v1/blocks/"):
                return httpx.Response(429, json={"message": "Rate limited"})
            return httpx.Response(200, json=_page())

        with caplog.at_level(logging.ERROR):
            async with _client(handler) as client:
                docs = await client.fetch_pages_by_ids([PAGE_ID])

        assert docs == []
        assert "Rate limited" in caplog.text

    @pytest.mark.asyncio()
    async def test_fetch_page(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.startswith("/v1/blocks/"):
                return httpx.Response(200, json={"results": [_paragraph("Hello")]})
            return httpx.Response(200, json=_page())

        async with _client(handler) as client:
            doc = await client.fetch_page(PAGE_ID)

        assert doc.id == PAGE_ID
        assert doc.content == "Hello"

    @pytest.mark.asyncio()
    async def test_fetch_page_keeps_error_detail(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"message": "API token is invalid."})

        async with _client(handler) as client:
            with pytest.raises(NotionAPIError, match="401.*API token is invalid") as exc_info:
                await client.fetch_page(PAGE_ID)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio()
    async def test_fetch_page_rejects_partial_page(self) -> None:
        partial = {"object": "page", "id": PAGE_ID}
        async with _client(lambda r: httpx.Response(200, json=partial)) as client:
            with pytest.raises(PageNotFullError):
                await client.fetch_page(PAGE_ID)

    @pytest.mark.asyncio()
    async def test_fetch_all_docs_follows_cursor(self) -> None:
        bodies: list[dict[str, Any]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                body = json.loads(request.content or b"{}")
                bodies.append(body)
                if "start_cursor" not in body:
                    return httpx.Response(
                        200,
                        json={"results": [_page("p1")], "has_more": True, "next_cursor": "c2"},
                    )
                return httpx.Response(200, json={"results": [_page("p2")], "has_more": False})
            return httpx.Response(200, json={"results": []})

        async with _client(handler) as client:
            docs = await client.fetch_all_docs("db1")

        assert [d.id for d in docs] == ["p1", "p2"]
        assert bodies == [{}, {"start_cursor": "c2"}]


class TestBlocks:
    @pytest.mark.asyncio()
    async def test_list_block_children_paginates(self) -> None:
        cursors: list[str | None] = []

        def handler(request: httpx.Request) -> httpx.Response:
            cursor = request.url.params.get("start_cursor")
            cursors.append(cursor)
            assert request.url.params["page_size"] == "100"
            if cursor is None:
                first = {"results": [_paragraph("a", "b1")], "has_more": True, "next_cursor": "n"}
                return httpx.Response(200, json=first)
            last = {"results": [_paragraph("b", "b2")], "has_more": False}
            return httpx.Response(200, json=last)

        async with _client(handler) as client:
            children = await client.list_block_children(PAGE_ID)

        assert [c["id"] for c in children] == ["b1", "b2"]
        assert cursors == [None, "n"]

    @pytest.mark.asyncio()
    async def test_fetch_page_content_raises_when_blocks_fail(self) -> None:
        async with _client(lambda r: httpx.Response(403, json={"message": "no"})) as client:
            with pytest.raises(NotionAPIError, match="403") as exc_info:
                await client.fetch_page_content(PAGE_ID)
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio()
    async def test_replace_page_content_deletes_then_appends_in_batches(self) -> None:
        calls: list[tuple[str, str, int]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            count = 0
            if request.method == "PATCH":
                count = len(json.loads(request.content)["children"])
            calls.append((request.method, request.url.path, count))
            if request.method == "GET":
                return httpx.Response(
                    200,
                    json={"results": [_paragraph("x", "old1"), _paragraph("y", "old2")]},
                )
            return httpx.Response(200, json={})

        blocks = [
            {"object": "block", "type": "paragraph", "paragraph": {"rich_text": []}}
            for _ in range(APPEND_BATCH_SIZE + 50)
        ]
        async with _client(handler) as client:
            await client.replace_page_content(PAGE_ID, blocks)

        assert calls == [
            ("GET", f"/v1/blocks/{PAGE_ID}/children", 0),
            ("DELETE", "/v1/blocks/old1", 0),
            ("DELETE", "/v1/blocks/old2", 0),
            ("PATCH", f"/v1/blocks/{PAGE_ID}/children", APPEND_BATCH_SIZE),
            ("PATCH", f"/v1/blocks/{PAGE_ID}/children", 50),
        ]

    @pytest.mark.asyncio()
    async def test_replace_with_no_blocks_only_clears(self) -> None:
        methods: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            methods.append(request.method)
            if request.method == "GET":
                return httpx.Response(200, json={"results": [_paragraph("x", "old1")]})
            return httpx.Response(200, json={})

        async with _client(handler) as client:
            await client.replace_page_content(PAGE_ID, [])

        assert methods == ["GET", "DELETE"]
