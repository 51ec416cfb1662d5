"""Doc mapper: links documentation records to the source files they describe."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence

from notion_doc_sync.mapping.cache import MappingCache
from notion_doc_sync.mapping.confidence import calculate_mapping_confidence
from notion_doc_sync.mapping.heuristics import (
    match_directory_structure,
    match_filename_patterns,
)
from notion_doc_sync.mapping.references import extract_file_path_references
from notion_doc_sync.models import DocumentationRecord

logger = logging.getLogger(__name__)


def referenced_files(document: DocumentationRecord, available: Sequence[str]) -> list[str]:
    """Explicit references in *document* that exist in *available*, in *available* order."""
    references = extract_file_path_references(document.content)
    return [path for path in available if path in references]


def build_mapping_table(
    documents: Sequence[DocumentationRecord],
    available: Sequence[str],
) -> dict[str, list[str]]:
    """Map each doc path to the available files it explicitly references."""
    return {doc.path: referenced_files(doc, available) for doc in documents}


def link_files(document: DocumentationRecord, available: Sequence[str]) -> list[str]:
    """Union of explicit references, filename matches and directory matches.

    Duplicates are dropped, first occurrence wins.
    """
    linked = dict.fromkeys(referenced_files(document, available))
    linked.update(dict.fromkeys(match_filename_patterns(document.path, available)))
    linked.update(dict.fromkeys(match_directory_structure(document.path, available)))
    return list(linked)


def score_links(document: DocumentationRecord, linked: Sequence[str]) -> float:
    """Best confidence over *linked*, scored against *document* as given (0.0 if empty)."""
    return max((calculate_mapping_confidence(document, f) for f in linked), default=0.0)


def enhance_documentation_files(
    documents: Sequence[DocumentationRecord],
    available: Sequence[str],
) -> list[DocumentationRecord]:
    """Return new records with ``linked_files`` and ``confidence`` recomputed.

    Pure: the input records are never mutated.
    """
    enhanced: list[DocumentationRecord] = []
    for document in documents:
        linked = link_files(document, available)
        enhanced.append(
            dataclasses.replace(
                document,
                linked_files=linked,
                confidence=score_links(document, linked),
            )
        )
    return enhanced


class DocMapper:
    """The mapping functions with an optional :class:`MappingCache` in front.

    Cached link lists are reused across calls within one process; the
    confidence score is always recomputed.  Call :meth:`invalidate` whenever
    docs or the set of available files change.
    """

    def __init__(self, cache: MappingCache | None = None) -> None:
        self.cache = cache

    def linked_files_for(
        self, document: DocumentationRecord, available: Sequence[str]
    ) -> list[str]:
        if self.cache is not None:
            cached = self.cache.get_cached(document.path)
            if cached is not None:
                logger.debug("Mapping cache hit for %s", document.path)
                return cached

        linked = link_files(document, available)
        if self.cache is not None:
            self.cache.cache({document.path: linked})
        return linked

    def enhance(
        self,
        documents: Sequence[DocumentationRecord],
        available: Sequence[str],
    ) -> list[DocumentationRecord]:
        if self.cache is None:
            return enhance_documentation_files(documents, available)

        enhanced: list[DocumentationRecord] = []
        for document in documents:
            linked = self.linked_files_for(document, available)
            enhanced.append(
                dataclasses.replace(
                    document,
                    linked_files=linked,
                    confidence=score_links(document, linked),
                )
            )
        return enhanced

    def invalidate(self, doc_path: str | None = None) -> None:
        if self.cache is not None:
            self.cache.invalidate(doc_path)
