"""Collaborators: Notion API, local markdown files, git and format converters."""

from notion_doc_sync.infrastructure.converters import (
    blocks_to_markdown,
    markdown_to_blocks,
    strip_aws_credentials,
)
from notion_doc_sync.infrastructure.git_changes import (
    BranchNotFoundError,
    ChangeSourceError,
    GitAnalyzer,
    GitStatusParseError,
    NoCommitsError,
    NotAGitRepositoryError,
)
from notion_doc_sync.infrastructure.local_docs import LocalDocsError, LocalDocsReader
from notion_doc_sync.infrastructure.notion_client import (
    NotionAPIError,
    NotionClient,
    PageNotFullError,
)

__all__ = [
    "BranchNotFoundError",
    "ChangeSourceError",
    "GitAnalyzer",
    "GitStatusParseError",
    "LocalDocsError",
    "LocalDocsReader",
    "NoCommitsError",
    "NotAGitRepositoryError",
    "NotionAPIError",
    "NotionClient",
    "PageNotFullError",
    "blocks_to_markdown",
    "markdown_to_blocks",
    "strip_aws_credentials",
]
