"""Filename and directory heuristics linking a doc path to source paths."""

from __future__ import annotations

import re
from collections.abc import Iterable

# Root directories that say nothing about what a file is about.
GENERIC_SEGMENTS = frozenset({"src", "docs", "lib", "tests", "test"})

_CAMEL_SPLIT_RE = re.compile(r"(?=[A-Z])")

# Shortest shared run of characters that counts as "similar".
_SIMILAR_MIN_LENGTH = 4


def extract_base_name(path: str) -> str | None:
    """Return the file name without directory or extension.

    ``docs/doc-mapper.md`` -> ``doc-mapper``.  Returns None for names that
    are empty before the first dot (``.eslintrc``).
    """
    file_name = path.split("/")[-1]
    base = file_name.split(".")[0]
    return base or None


def generate_search_terms(base_name: str) -> set[str]:
    """Expand a base name into the terms used for fuzzy filename matching.

    The whole name, each ``-`` delimited part and each camelCase part
    (lower-cased).  Empty parts are dropped.
    """
    terms = {base_name}

    hyphen_parts = base_name.split("-")
    if len(hyphen_parts) > 1:
        terms.update(part for part in hyphen_parts if part)

    camel_parts = [part for part in _CAMEL_SPLIT_RE.split(base_name) if part]
    if len(camel_parts) > 1:
        terms.update(part.lower() for part in camel_parts)

    return terms


def _contains_either_way(a: str, b: str) -> bool:
    return a in b or b in a


def match_filename_patterns(doc_path: str, candidates: Iterable[str]) -> list[str]:
    """Return the candidates whose base name matches a search term of the doc's name."""
    doc_base = extract_base_name(doc_path)
    if doc_base is None:
        return []

    terms = [term.lower() for term in generate_search_terms(doc_base)]
    matches: list[str] = []
    for candidate in candidates:
        code_base = extract_base_name(candidate)
        if code_base is None:
            continue
        code_lower = code_base.lower()
        if any(_contains_either_way(term, code_lower) for term in terms):
            matches.append(candidate)
    return matches


def meaningful_segments(path: str) -> set[str]:
    """Directory segments of *path* that are neither generic roots nor the file name."""
    directories = path.split("/")[:-1]
    return {
        segment
        for segment in directories
        if segment not in GENERIC_SEGMENTS and segment not in ("", ".", "..")
    }


def match_directory_structure(doc_path: str, candidates: Iterable[str]) -> list[str]:
    """Return the candidates sharing at least one meaningful directory segment with the doc."""
    doc_segments = meaningful_segments(doc_path)
    if not doc_segments:
        return []
    return [c for c in candidates if doc_segments & meaningful_segments(c)]


def similar_words(word1: str, word2: str) -> bool:
    """True when the two words share a contiguous run of at least four characters."""
    for start in range(len(word1) - _SIMILAR_MIN_LENGTH + 1):
        if word1[start : start + _SIMILAR_MIN_LENGTH] in word2:
            return True
    return False


def names_fuzzy_match(function_name: str, code_base_name: str) -> bool:
    """Case-insensitive containment either way, or a shared four-character run."""
    func = function_name.lower()
    code = code_base_name.lower()
    return _contains_either_way(func, code) or similar_words(func, code)
