"""Confidence that a documentation record describes a given source file.

Evidence classes are evaluated independently; the score is the highest
floor among the classes that fire, never a sum.  Weak evidence therefore
cannot dilute strong evidence, and weak evidence alone stays under its
own ceiling.

| Evidence            | Floor |
|---------------------|-------|
| explicit reference  | 0.90  |
| already linked      | 0.85  |
| function name       | 0.50  |
| filename pattern    | 0.30  |
| shared directory    | 0.15  |
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from notion_doc_sync.mapping.heuristics import (
    extract_base_name,
    match_directory_structure,
    match_filename_patterns,
    names_fuzzy_match,
)
from notion_doc_sync.mapping.references import (
    extract_file_path_references,
    extract_function_name_references,
)
from notion_doc_sync.models import DocumentationRecord

Check = Callable[[DocumentationRecord, str], bool]


@dataclass(frozen=True)
class Evidence:
    """A named predicate and the confidence floor it guarantees when it holds."""

    name: str
    floor: float
    check: Check


def _explicitly_referenced(document: DocumentationRecord, candidate: str) -> bool:
    return candidate in extract_file_path_references(document.content)


def _already_linked(document: DocumentationRecord, candidate: str) -> bool:
    return candidate in document.linked_files


def _function_name_matches(document: DocumentationRecord, candidate: str) -> bool:
    code_base = extract_base_name(candidate)
    if code_base is None:
        return False
    return any(
        names_fuzzy_match(name, code_base)
        for name in extract_function_name_references(document.content)
    )


def _filename_matches(document: DocumentationRecord, candidate: str) -> bool:
    return bool(match_filename_patterns(document.path, [candidate]))


def _shares_directory(document: DocumentationRecord, candidate: str) -> bool:
    return bool(match_directory_structure(document.path, [candidate]))


EVIDENCE: tuple[Evidence, ...] = (
    Evidence("explicit_reference", 0.9, _explicitly_referenced),
    Evidence("already_linked", 0.85, _already_linked),
    Evidence("function_name", 0.5, _function_name_matches),
    Evidence("filename_pattern", 0.3, _filename_matches),
    Evidence("shared_directory", 0.15, _shares_directory),
)


def triggered_evidence(document: DocumentationRecord, candidate: str) -> list[Evidence]:
    """Every evidence class that fires for the pair, in table order."""
    return [evidence for evidence in EVIDENCE if evidence.check(document, candidate)]


def calculate_mapping_confidence(document: DocumentationRecord, candidate: str) -> float:
    """Score in [0, 1]; 0.0 exactly when no evidence fires."""
    return max((e.floor for e in triggered_evidence(document, candidate)), default=0.0)
