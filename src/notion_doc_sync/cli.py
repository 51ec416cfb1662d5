"""notion-doc-sync CLI entry point."""

from __future__ import annotations

import fnmatch
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import NoReturn

import click

from notion_doc_sync import __version__
from notion_doc_sync.config import ConfigError, load_config, validate_config
from notion_doc_sync.infrastructure.git_changes import ChangeSourceError
from notion_doc_sync.infrastructure.local_docs import LocalDocsError
from notion_doc_sync.infrastructure.notion_client import NotionAPIError

logger = logging.getLogger(__name__)

_FATAL_ERRORS = (ConfigError, ChangeSourceError, LocalDocsError, NotionAPIError)


def _setup_logging(*, verbose: bool, quiet: bool) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _fail(exc: Exception) -> NoReturn:
    click.echo(f"Error: {exc}", err=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="notion-doc-sync")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """notion-doc-sync - keep Notion documentation aligned with code changes."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    _setup_logging(verbose=verbose, quiet=quiet)


@main.command()
def init() -> None:
    """Create a .notion-doc-sync.yml config file."""
    from notion_doc_sync.config import CONFIG_FILENAME, write_default_config

    config_path = write_default_config(Path.cwd())
    if config_path is None:
        click.echo(f"Config file already exists: {Path.cwd() / CONFIG_FILENAME}")
        click.echo("Remove it first if you want to reinitialize.")
        return

    click.echo(f"Created config file: {config_path}")
    click.echo("Edit the file to add your Notion API key and database ID.")


@main.command()
@click.option(
    "--all",
    "whole_database",
    is_flag=True,
    help="Query every page of the configured database instead of only known page IDs.",
)
def fetch(*, whole_database: bool) -> None:
    """Fetch documentation from Notion and save it locally."""
    import anyio

    from notion_doc_sync.infrastructure.local_docs import LocalDocsReader
    from notion_doc_sync.infrastructure.notion_client import NotionClient

    required = ["notion_api_key", "notion_database_id"] if whole_database else ["notion_api_key"]
    try:
        config = load_config()
        validate_config(config, required)
        reader = LocalDocsReader(config.docs_dir)
        page_ids = reader.get_page_ids()
    except _FATAL_ERRORS as exc:
        _fail(exc)

    if not page_ids:
        click.echo("No local docs found with page IDs. Nothing to fetch.")
        return

    async def _run() -> int:
        async with NotionClient(config.notion_api_key, timeout=config.request_timeout) as client:
            click.echo("Fetching Notion documentation...")
            if whole_database:
                docs = await client.fetch_all_docs(config.notion_database_id)
            else:
                docs = await client.fetch_pages_by_ids(page_ids)
        click.echo(f"Found {len(docs)} documentation pages")
        return len(reader.update_local_docs(docs))

    try:
        written = anyio.run(_run)
    except NotionAPIError as exc:
        _fail(exc)
    click.echo(f"Updated {written} local documentation file(s)")


def _is_excluded(path: str, patterns: list[str]) -> bool:
    return any(fnmatch.fnmatch(path, pattern) for pattern in patterns)


@main.command()
@click.option("--base-branch", default="main", show_default=True, help="Base ref to compare.")
@click.option("--target-branch", default="HEAD", show_default=True, help="Target ref.")
@click.option(
    "--all-files",
    is_flag=True,
    help="Map docs against every tracked source file instead of changed files.",
)
@click.option("--json", "output_json", is_flag=True, help="Output as JSON.")
def analyze(*, base_branch: str, target_branch: str, all_files: bool, output_json: bool) -> None:
    """Map changed code files to the documentation that describes them."""
    from notion_doc_sync.infrastructure.git_changes import GitAnalyzer
    from notion_doc_sync.infrastructure.local_docs import LocalDocsReader
    from notion_doc_sync.mapping import DocMapper, MappingCache
    from notion_doc_sync.models import DocumentationRecord

    git = GitAnalyzer()
    try:
        config = load_config()
        if all_files:
            code_files = git.list_source_files(config.source_dir)
        else:
            if not output_json:
                click.echo(f"Analyzing changes between {base_branch} and {target_branch}...")
            changes = git.get_code_changes(base_branch, target_branch)
            code_files = [c.file_path for c in changes]
        refs = LocalDocsReader(config.docs_dir).read_local_docs() if code_files else []
    except _FATAL_ERRORS as exc:
        _fail(exc)

    code_files = [f for f in code_files if not _is_excluded(f, config.exclude_patterns)]
    if not code_files:
        if output_json:
            click.echo(json.dumps({"code_files": [], "documents": []}, indent=2))
        else:
            click.echo("No code changes detected between branches.")
        return

    if not output_json:
        click.echo(f"Found {len(code_files)} changed code file(s)")

    documents: list[DocumentationRecord] = []
    for ref in refs:
        try:
            content = ref.file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Skipping %s: %s", ref.file_name, exc)
            continue
        documents.append(DocumentationRecord(path=str(ref.file_path), content=content))

    mapper = DocMapper(MappingCache())
    affected = [doc for doc in mapper.enhance(documents, code_files) if doc.linked_files]
    affected.sort(key=lambda doc: doc.confidence, reverse=True)

    if output_json:
        data = {
            "code_files": code_files,
            "documents": [
                {
                    "path": doc.path,
                    "linked_files": doc.linked_files,
                    "confidence": doc.confidence,
                }
                for doc in affected
            ],
        }
        click.echo(json.dumps(data, ensure_ascii=False, indent=2))
        return

    if not affected:
        click.echo("No documentation files are linked to the changed code files.")
        return

    from rich.console import Console
    from rich.table import Table

    table = Table(title="Documentation files potentially affected by code changes")
    table.add_column("Document", style="cyan")
    table.add_column("Linked Code Files")
    table.add_column("Confidence", justify="right")
    for doc in affected:
        table.add_row(doc.path, "\n".join(doc.linked_files), f"{doc.confidence * 100:.0f}%")
    Console().print(table)


@main.command()
@click.option("--dry-run", is_flag=True, help="Show the sync plan without changing anything.")
def sync(*, dry_run: bool) -> None:
    """Pull or push each doc, whichever side was edited last."""
    import anyio

    from notion_doc_sync.infrastructure.local_docs import LocalDocsReader
    from notion_doc_sync.infrastructure.notion_client import NotionClient
    from notion_doc_sync.sync import SyncEngine, run_sync

    try:
        config = load_config()
        validate_config(config, ["notion_api_key"])
    except ConfigError as exc:
        _fail(exc)

    async def _run() -> None:
        async with NotionClient(config.notion_api_key, timeout=config.request_timeout) as client:
            engine = SyncEngine(
                client,
                LocalDocsReader(config.docs_dir),
                timeout=config.request_timeout,
            )
            await run_sync(engine, dry_run=dry_run, echo=click.echo)

    try:
        anyio.run(_run)
    except (LocalDocsError, NotionAPIError) as exc:
        _fail(exc)


@main.command()
def stamp() -> None:
    """Set the 'Last updated' marker of locally modified docs to now."""
    from notion_doc_sync.infrastructure.git_changes import GitAnalyzer
    from notion_doc_sync.timestamps import format_timestamp, replace_timestamp_in_content

    try:
        config = load_config()
    except ConfigError as exc:
        _fail(exc)

    click.echo(f"Checking for modified docs in: {config.docs_dir}")
    root = Path.cwd()
    modified = GitAnalyzer(root).get_modified_markdown_files(config.docs_dir)
    if not modified:
        click.echo("No modified markdown files found.")
        return

    now = datetime.now(tz=timezone.utc)
    stamped = 0
    for rel_path in modified:
        path = root / rel_path
        try:
            content = path.read_text(encoding="utf-8")
            updated = replace_timestamp_in_content(content, now)
            if updated == content:
                click.echo(f"  Skipped (no timestamp line): {rel_path}")
                continue
            path.write_text(updated, encoding="utf-8")
        except OSError as exc:
            click.echo(f"  Failed to stamp {rel_path}: {exc}", err=True)
            continue
        click.echo(f"  Stamped: {rel_path}")
        stamped += 1

    click.echo("")
    click.echo(f"Stamped {stamped} file(s) with timestamp: {format_timestamp(now)}")
