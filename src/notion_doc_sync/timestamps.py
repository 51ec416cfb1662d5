"""The ``*Last updated: ...*`` marker and sync direction between two timestamps.

The marker is read in two forms: full ISO-8601 (``2026-02-16T14:00:00.000Z``)
and the legacy date-only form (``2026-02-16``).  It is always written as
ISO-8601 with millisecond precision and a ``Z`` suffix.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

from notion_doc_sync.models import SyncDirection

TIMESTAMP_RE = re.compile(r"\*Last updated:\s*(.+?)\*")

_LEGACY_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Timestamps closer than this compare equal.
SYNC_RESOLUTION = timedelta(seconds=1)


def _parse_iso(raw: str) -> datetime | None:
    if _LEGACY_DATE_RE.match(raw):
        raw = f"{raw}T00:00:00+00:00"
    elif raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        # Marker values without an offset are UTC.
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def parse_timestamp(content: str) -> datetime | None:
    """Return the first marker's timestamp in *content*, or None.

    None is returned both when no marker is present and when the marker
    value is not a recognizable timestamp.
    """
    match = TIMESTAMP_RE.search(content)
    if match is None:
        return None
    raw = match.group(1).strip()
    if not raw:
        return None
    return _parse_iso(raw)


def format_timestamp(value: datetime) -> str:
    """Format *value* as UTC ISO-8601 with milliseconds, e.g. ``2026-02-16T14:00:00.000Z``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def build_timestamp_line(value: datetime) -> str:
    return f"*Last updated: {format_timestamp(value)}*"


def replace_timestamp_in_content(content: str, value: datetime) -> str:
    """Rewrite the first marker in *content* to *value*.

    Content without a marker is returned unchanged; a marker is never
    injected.
    """
    if TIMESTAMP_RE.search(content) is None:
        return content
    line = build_timestamp_line(value)
    return TIMESTAMP_RE.sub(lambda _m: line, content, count=1)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def compare_sync_timestamps(local: datetime | None, notion: datetime) -> SyncDirection:
    """Decide the sync direction at one-second resolution.

    Differences under :data:`SYNC_RESOLUTION` compare equal so that
    serialization round-trips between the local marker and Notion's clock
    never trigger a sync.
    """
    if local is None:
        return SyncDirection.PULL

    delta = _as_utc(notion) - _as_utc(local)

    if delta >= SYNC_RESOLUTION:
        return SyncDirection.PULL
    if -delta >= SYNC_RESOLUTION:
        return SyncDirection.PUSH
    return SyncDirection.NONE
