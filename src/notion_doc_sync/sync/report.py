"""Plan and result summaries for the sync command, and the command flow itself."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from notion_doc_sync.models import SyncDirection, SyncResult

if TYPE_CHECKING:
    from notion_doc_sync.models import SyncAction
    from notion_doc_sync.sync.engine import SyncEngine, SyncPlan

logger = logging.getLogger(__name__)

Echo = Callable[..., None]

_ARROWS = {
    SyncDirection.PULL: "<--",
    SyncDirection.PUSH: "-->",
    SyncDirection.NONE: "===",
}


def format_plan(actions: list[SyncAction]) -> list[str]:
    """Summary line with pull/push/skip counts, then one arrow line per document."""
    pulls = sum(1 for a in actions if a.direction is SyncDirection.PULL)
    pushes = sum(1 for a in actions if a.direction is SyncDirection.PUSH)
    skips = sum(1 for a in actions if a.direction is SyncDirection.NONE)

    lines = [f"Sync plan: {pulls} pull, {pushes} push, {skips} skip"]
    lines.extend(
        f"  {_ARROWS[a.direction]} {a.file_name} ({a.direction.value})" for a in actions
    )
    return lines


def format_results(results: list[SyncResult]) -> tuple[list[str], list[str]]:
    """Return ``(summary_lines, failure_lines)``; failures go to stderr."""
    succeeded = sum(1 for r in results if r.success)
    failures = [r for r in results if not r.success]
    summary = [f"Sync complete: {succeeded} succeeded, {len(failures)} failed"]
    failure_lines = [f"  FAILED {r.file_name}: {r.error or 'unknown error'}" for r in failures]
    return summary, failure_lines


@dataclass
class SyncReport:
    plan: SyncPlan | None = None
    results: list[SyncResult] = field(default_factory=list)
    dry_run: bool = False


async def run_sync(engine: SyncEngine, *, dry_run: bool, echo: Echo) -> SyncReport:
    """Plan every local document, print the plan, then execute it unless *dry_run*."""
    report = SyncReport(dry_run=dry_run)

    echo("Reading local documentation files...")
    refs = engine.local.read_local_docs()
    if not refs:
        echo("No local docs found with page IDs. Nothing to sync.")
        return report

    echo("Determining sync actions...")
    report.plan = await engine.plan(refs)

    echo("")
    for line in format_plan(report.plan.actions):
        echo(line)
    for error in report.plan.errors:
        echo(f"  SKIPPED {error.file_name}: {error.error}", err=True)

    if dry_run:
        echo("")
        echo("--dry-run: No changes made.")
        return report

    report.results = await engine.execute(report.plan.actions)

    summary, failures = format_results(report.results)
    echo("")
    for line in summary:
        echo(line)
    for line in failures:
        echo(line, err=True)
    return report
