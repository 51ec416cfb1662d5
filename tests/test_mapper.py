"""Tests for notion_doc_sync.mapping.mapper."""

from __future__ import annotations

from notion_doc_sync.mapping import (
    DocMapper,
    MappingCache,
    build_mapping_table,
    enhance_documentation_files,
)
from notion_doc_sync.models import DocumentationRecord


class TestEnhanceDocumentationFiles:
    def test_explicit_reference_scenario(self) -> None:
        doc = DocumentationRecord(path="docs/api.md", content="See `src/gen.ts` and `gen()`.")
        [result] = enhance_documentation_files([doc], ["src/gen.ts", "src/other.ts"])
        assert result.linked_files == ["src/gen.ts"]
        assert result.confidence == 0.9

    def test_filename_only_scenario(self) -> None:
        doc = DocumentationRecord(path="docs/button.md", content="Generic content.")
        [result] = enhance_documentation_files([doc], ["src/components/Button.tsx"])
        assert result.linked_files == ["src/components/Button.tsx"]
        assert result.confidence == 0.3

    def test_inputs_are_not_mutated(self) -> None:
        doc = DocumentationRecord(path="docs/button.md", content="x", linked_files=["old.ts"])
        [result] = enhance_documentation_files([doc], ["src/components/Button.tsx"])
        assert doc.linked_files == ["old.ts"]
        assert doc.confidence == 0.0
        assert result is not doc
        assert result.path == doc.path
        assert result.content == doc.content

    def test_stale_links_are_replaced(self) -> None:
        doc = DocumentationRecord(
            path="docs/button.md", content="Generic content.", linked_files=["src/gone.ts"]
        )
        [result] = enhance_documentation_files([doc], ["src/components/Button.tsx"])
        assert result.linked_files == ["src/components/Button.tsx"]

    def test_references_outside_available_files_are_ignored(self) -> None:
        doc = DocumentationRecord(path="notes/x.md", content="See `src/missing.ts`.")
        [result] = enhance_documentation_files([doc], ["src/present.ts"])
        assert result.linked_files == []
        assert result.confidence == 0.0

    def test_links_are_deduplicated(self) -> None:
        doc = DocumentationRecord(path="docs/sync/engine.md", content="`src/sync/engine.ts`")
        [result] = enhance_documentation_files([doc], ["src/sync/engine.ts"])
        assert result.linked_files == ["src/sync/engine.ts"]
        assert result.confidence == 0.9

    def test_union_order(self) -> None:
        doc = DocumentationRecord(path="docs/sync/button.md", content="See `src/api/client.ts`.")
        available = ["src/sync/engine.ts", "src/ui/Button.tsx", "src/api/client.ts"]
        [result] = enhance_documentation_files([doc], available)
        assert result.linked_files == [
            "src/api/client.ts",
            "src/ui/Button.tsx",
            "src/sync/engine.ts",
        ]

    def test_empty_inputs(self) -> None:
        assert enhance_documentation_files([], ["src/a.ts"]) == []
        doc = DocumentationRecord(path="docs/a.md", content="")
        [result] = enhance_documentation_files([doc], [])
        assert result.linked_files == []
        assert result.confidence == 0.0


class TestBuildMappingTable:
    def test_explicit_references_only(self) -> None:
        docs = [
            DocumentationRecord(path="docs/a.md", content="`src/a.ts` and `src/zzz.ts`"),
            DocumentationRecord(path="docs/button.md", content="no refs"),
        ]
        table = build_mapping_table(docs, ["src/a.ts", "src/Button.tsx"])
        assert table == {"docs/a.md": ["src/a.ts"], "docs/button.md": []}


class TestDocMapper:
    def test_without_cache_matches_pure_function(self) -> None:
        doc = DocumentationRecord(path="docs/button.md", content="")
        available = ["src/components/Button.tsx"]
        assert DocMapper().enhance([doc], available) == enhance_documentation_files(
            [doc], available
        )

    def test_cache_is_consulted(self) -> None:
        cache = MappingCache()
        mapper = DocMapper(cache)
        doc = DocumentationRecord(path="docs/button.md", content="")

        [first] = mapper.enhance([doc], ["src/components/Button.tsx"])
        assert cache.get_cached("docs/button.md") == ["src/components/Button.tsx"]

        [second] = mapper.enhance([doc], ["src/other.ts"])
        assert second.linked_files == first.linked_files
        assert second.confidence == 0.3

    def test_invalidate_forces_recompute(self) -> None:
        mapper = DocMapper(MappingCache())
        doc = DocumentationRecord(path="docs/button.md", content="")
        mapper.enhance([doc], ["src/components/Button.tsx"])

        mapper.invalidate("docs/button.md")
        [result] = mapper.enhance([doc], ["src/other.ts"])
        assert result.linked_files == []
        assert result.confidence == 0.0
