"""Bidirectional sync between local docs and Notion pages.

Each document is planned and executed as an independent unit: its step
yields an :class:`Outcome` (value or error) and one document's failure
never reaches the next.  Documents are processed sequentially so that a
push's write completes before its post-write timestamp is read back.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar

import anyio

from notion_doc_sync.infrastructure.converters import markdown_to_blocks
from notion_doc_sync.models import (
    LocalDocMetadata,
    LocalDocRef,
    RemoteDocument,
    SyncAction,
    SyncDirection,
    SyncResult,
)
from notion_doc_sync.timestamps import compare_sync_timestamps

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

T = TypeVar("T")

BlockConverter = Callable[[str], list[dict[str, Any]]]


class RemoteStore(Protocol):
    """The Notion operations the engine depends on."""

    async def fetch_page(self, page_id: str) -> RemoteDocument: ...

    async def fetch_page_last_edited(self, page_id: str) -> datetime: ...

    async def replace_page_content(self, page_id: str, blocks: list[dict[str, Any]]) -> None: ...


class LocalStore(Protocol):
    """The local document operations the engine depends on."""

    def read_local_docs(self) -> list[LocalDocRef]: ...

    def read_full_doc(self, ref: LocalDocRef) -> LocalDocMetadata: ...

    def overwrite(self, ref: LocalDocRef, doc: RemoteDocument) -> None: ...

    def update_timestamp_only(self, file_path: Path, value: datetime) -> bool: ...


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of one per-document step: a value, or the error that stopped it."""

    value: T | None = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def attempt(step: Callable[[], Awaitable[T]]) -> Outcome[T]:
    """Run *step*, capturing any exception as a failed :class:`Outcome`."""
    try:
        return Outcome(value=await step())
    except Exception as exc:  # noqa: BLE001 - isolated per document
        return Outcome(error=exc)


def describe_error(exc: BaseException) -> str:
    if isinstance(exc, TimeoutError):
        return "timed out waiting for Notion"
    return str(exc) or type(exc).__name__


@dataclass(frozen=True)
class PlanError:
    """A document that could not be planned and is left untouched this run."""

    file_name: str
    error: str


@dataclass
class SyncPlan:
    actions: list[SyncAction] = field(default_factory=list)
    errors: list[PlanError] = field(default_factory=list)


class SyncEngine:
    """Plans and executes pull/push/none per local document.

    Every remote call is bounded by *timeout* seconds; a timeout fails only
    the document it belongs to.
    """

    def __init__(
        self,
        remote: RemoteStore,
        local: LocalStore,
        *,
        to_blocks: BlockConverter = markdown_to_blocks,
        timeout: float = 30.0,
    ) -> None:
        self.remote = remote
        self.local = local
        self.to_blocks = to_blocks
        self.timeout = timeout

    async def _remote_last_edited(self, page_id: str) -> datetime:
        with anyio.fail_after(self.timeout):
            return await self.remote.fetch_page_last_edited(page_id)

    # -- planning ----------------------------------------------------------

    async def plan_one(self, ref: LocalDocRef) -> SyncAction:
        metadata = self.local.read_full_doc(ref)
        notion_timestamp = await self._remote_last_edited(ref.page_id)
        return SyncAction(
            page_id=ref.page_id,
            file_path=ref.file_path,
            file_name=ref.file_name,
            direction=compare_sync_timestamps(metadata.last_updated, notion_timestamp),
            local_timestamp=metadata.last_updated,
            notion_timestamp=notion_timestamp,
        )

    async def plan(self, refs: list[LocalDocRef]) -> SyncPlan:
        """Build one action per document; documents that fail are logged and excluded."""
        plan = SyncPlan()
        for ref in refs:
            outcome = await attempt(lambda ref=ref: self.plan_one(ref))
            if outcome.ok and outcome.value is not None:
                plan.actions.append(outcome.value)
            else:
                message = describe_error(outcome.error) if outcome.error else "unknown error"
                logger.error("Failed to check %s: %s", ref.file_name, message)
                plan.errors.append(PlanError(file_name=ref.file_name, error=message))
        return plan

    # -- execution ---------------------------------------------------------

    def _ref(self, action: SyncAction) -> LocalDocRef:
        return LocalDocRef(
            file_path=action.file_path,
            file_name=action.file_name,
            page_id=action.page_id,
        )

    async def pull(self, action: SyncAction) -> datetime:
        """Overwrite the local file from Notion; returns the timestamp written."""
        with anyio.fail_after(self.timeout):
            doc = await self.remote.fetch_page(action.page_id)
        self.local.overwrite(self._ref(action), doc)
        return doc.last_modified

    async def push(self, action: SyncAction) -> datetime:
        """Replace the Notion page body; returns Notion's post-write timestamp."""
        metadata = self.local.read_full_doc(self._ref(action))
        blocks = self.to_blocks(metadata.body_content)
        with anyio.fail_after(self.timeout):
            await self.remote.replace_page_content(action.page_id, blocks)
        # The write itself moves last_edited_time; read it back after it lands.
        synchronized = await self._remote_last_edited(action.page_id)
        self.local.update_timestamp_only(action.file_path, synchronized)
        return synchronized

    async def execute_one(self, action: SyncAction) -> SyncResult:
        if action.direction is SyncDirection.NONE:
            return SyncResult.succeeded(action)

        step = self.pull if action.direction is SyncDirection.PULL else self.push
        outcome = await attempt(lambda: step(action))
        if outcome.ok:
            logger.info("%s %s", action.direction.value, action.file_name)
            return SyncResult.succeeded(action, synchronized_timestamp=outcome.value)

        message = describe_error(outcome.error) if outcome.error else "unknown error"
        logger.error("Failed to %s %s: %s", action.direction.value, action.file_name, message)
        return SyncResult.failed(action, message)

    async def execute(self, actions: list[SyncAction]) -> list[SyncResult]:
        return [await self.execute_one(action) for action in actions]
