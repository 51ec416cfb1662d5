"""Sync decision engine: pull, push or leave each document alone."""

from notion_doc_sync.sync.engine import (
    LocalStore,
    Outcome,
    PlanError,
    RemoteStore,
    SyncEngine,
    SyncPlan,
    attempt,
)
from notion_doc_sync.sync.report import SyncReport, format_plan, format_results, run_sync

__all__ = [
    "LocalStore",
    "Outcome",
    "PlanError",
    "RemoteStore",
    "SyncEngine",
    "SyncPlan",
    "SyncReport",
    "attempt",
    "format_plan",
    "format_results",
    "run_sync",
]
