"""notion-doc-sync - keep local docs, Notion pages and source code aligned."""

__version__ = "1.0.0"
