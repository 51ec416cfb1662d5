"""Explicit file-path and function-name references in documentation text.

Each pattern is an independent scanner returning a set; the public
extractors union them.  None of these functions raise: unrecognized input
simply yields an empty set.
"""

from __future__ import annotations

import re

# `src/index.ts`
_BACKTICK_PATH_RE = re.compile(r"`([^`]+\.[a-zA-Z]+)`")

# // File: src/main.ts   or   # File: app/models.py
_FILE_COMMENT_RE = re.compile(r"(?://|#)\s*File:\s*(\S+)")

# from './utils.ts'   /   require("lib/x.js")
_IMPORT_FROM_RE = re.compile(r"""from\s+['"`]([^'"`]+\.[a-zA-Z]+)['"`]""")
_REQUIRE_RE = re.compile(r"""require\s*\(\s*['"`]([^'"`]+\.[a-zA-Z]+)['"`]\s*\)""")

# [text](./file.ext)
_MARKDOWN_LINK_RE = re.compile(r"\[[^\]]*\]\(([^)]+\.[a-zA-Z]+)\)")

_EXTENSION_RE = re.compile(r"\.[a-zA-Z]+\Z")
_RELATIVE_PATH_RE = re.compile(r"\./[a-zA-Z0-9._/-]+")
_PATH_CHARS_RE = re.compile(r"[a-zA-Z0-9._/-]+")

_IDENT = r"[a-zA-Z_$][a-zA-Z0-9_$]*"

# `functionName()`
_BACKTICK_CALL_RE = re.compile(rf"`({_IDENT})\(\)`")

# function myFunction(   /   def my_function(
_DECLARATION_RE = re.compile(rf"\b(?:function|def)\s+({_IDENT})\s*\(")

# obj.methodName()
_METHOD_CALL_RE = re.compile(rf"\.({_IDENT})\(\)")


def is_valid_file_path(path: str) -> bool:
    """Return True when *path* looks like a relative source-file path."""
    if not _EXTENSION_RE.search(path):
        return False

    if path.startswith("./"):
        return len(path) > 2 and _RELATIVE_PATH_RE.fullmatch(path) is not None

    # A lone extension such as ".js".
    if path.startswith(".") and "/" not in path:
        return False

    return _PATH_CHARS_RE.fullmatch(path) is not None


def _scan(pattern: re.Pattern[str], text: str) -> set[str]:
    return {m.group(1) for m in pattern.finditer(text)}


def backtick_paths(text: str) -> set[str]:
    return _scan(_BACKTICK_PATH_RE, text)


def file_comment_paths(text: str) -> set[str]:
    return _scan(_FILE_COMMENT_RE, text)


def import_paths(text: str) -> set[str]:
    return _scan(_IMPORT_FROM_RE, text) | _scan(_REQUIRE_RE, text)


def markdown_link_paths(text: str) -> set[str]:
    return _scan(_MARKDOWN_LINK_RE, text)


def extract_file_path_references(text: str) -> set[str]:
    """Collect every file path the text explicitly references.

    Candidates come from inline code spans, ``File:`` comment annotations,
    import/require statements and markdown link targets, and are kept only
    if they pass :func:`is_valid_file_path`.
    """
    candidates = (
        backtick_paths(text)
        | file_comment_paths(text)
        | import_paths(text)
        | markdown_link_paths(text)
    )
    return {path for path in candidates if is_valid_file_path(path)}


def backtick_calls(text: str) -> set[str]:
    return _scan(_BACKTICK_CALL_RE, text)


def declared_functions(text: str) -> set[str]:
    return _scan(_DECLARATION_RE, text)


def method_calls(text: str) -> set[str]:
    return _scan(_METHOD_CALL_RE, text)


def extract_function_name_references(text: str) -> set[str]:
    """Collect function and method names mentioned in the text."""
    return backtick_calls(text) | declared_functions(text) | method_calls(text)
