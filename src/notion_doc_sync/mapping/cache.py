"""In-memory cache of doc path -> linked code files."""

from __future__ import annotations

from collections.abc import Mapping, Sequence


class MappingCache:
    """Process-lifetime side table of previously computed doc-to-code links.

    Entries are defensive copies in both directions, so callers can never
    mutate what is stored.  The cache carries no confidence information and
    knows nothing about staleness: callers invalidate explicitly when the
    docs or the set of available code files change.
    """

    def __init__(self) -> None:
        self._store: dict[str, list[str]] = {}

    def cache(self, table: Mapping[str, Sequence[str]]) -> None:
        """Store a snapshot of every entry in *table*."""
        for doc_path, code_files in table.items():
            self._store[doc_path] = list(code_files)

    def get_cached(self, doc_path: str) -> list[str] | None:
        """Return a copy of the cached links, or None on a miss."""
        entry = self._store.get(doc_path)
        if entry is None:
            return None
        return list(entry)

    def invalidate(self, doc_path: str | None = None) -> None:
        """Drop one entry, or everything when *doc_path* is None."""
        if doc_path is None:
            self._store.clear()
        else:
            self._store.pop(doc_path, None)

    def __contains__(self, doc_path: object) -> bool:
        return doc_path in self._store

    def stats(self) -> dict[str, int]:
        """Return cache statistics."""
        return {"entries": len(self._store)}
