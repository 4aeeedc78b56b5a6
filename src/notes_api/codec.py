"""
Conversion between the canonical note shape (flat, millisecond timestamps) and
the remote row shape (snake_case, ISO-8601 timestamp strings).

This module is the only place that crosses that boundary. All functions are pure.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional, Union

from .models import NoteEntity, RemoteRow
from .utils import now_ms

PATCHABLE_FIELDS = ("title", "content")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MS = timedelta(milliseconds=1)

TimestampInput = Union[str, datetime]


# PUBLIC_INTERFACE
def ms_to_iso(ms: int) -> str:
    """Render epoch milliseconds as a UTC ISO-8601 string with millisecond precision."""
    return (_EPOCH + timedelta(milliseconds=ms)).isoformat(timespec="milliseconds")


# PUBLIC_INTERFACE
def iso_to_ms(value: TimestampInput) -> int:
    """
    Parse an ISO-8601 string (or a datetime) into integer epoch milliseconds.
    Naive values are read as UTC.
    """
    dt = datetime.fromisoformat(value.strip()) if isinstance(value, str) else value
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return (dt - _EPOCH) // _ONE_MS


def _optional_ms(value: Optional[TimestampInput]) -> Optional[int]:
    # Absence stays None; it must not collapse into a zero timestamp.
    if value is None or value == "":
        return None
    return iso_to_ms(value)


# PUBLIC_INTERFACE
def to_canonical(row: Optional[Mapping[str, Any]]) -> Optional[NoteEntity]:
    """
    Map a remote row to the canonical note shape.

    Returns None for an absent row. Timestamps present on the row are converted
    to epoch milliseconds; missing timestamps are left as None.
    """
    if not row:
        return None
    return {
        "id": row["id"],
        "title": row.get("title") or "",
        "content": row.get("content") or "",
        "createdAt": _optional_ms(row.get("created_at")),
        "updatedAt": _optional_ms(row.get("updated_at")),
    }


# PUBLIC_INTERFACE
def to_remote_patch(patch: Mapping[str, Any], now: Optional[int] = None) -> RemoteRow:
    """
    Build a partial remote update from a title/content patch.

    Only the patchable fields present in `patch` with a non-None value are
    copied; `updated_at` is always stamped with the current time (or `now`, in
    epoch milliseconds).
    """
    out: RemoteRow = {}
    for field in PATCHABLE_FIELDS:
        if patch.get(field) is not None:
            out[field] = patch[field]  # type: ignore[literal-required]
    out["updated_at"] = ms_to_iso(now_ms() if now is None else now)
    return out


# PUBLIC_INTERFACE
def to_remote_row(note: Mapping[str, Any], now: Optional[int] = None) -> RemoteRow:
    """
    Build a full remote row for insert/upsert from a canonical note.

    `updated_at` comes from the note's updatedAt, falling back to the current
    time. `created_at` comes from createdAt, then updatedAt, then the current time,
    so a stored row never has created_at later than updated_at.
    """
    current = now_ms() if now is None else now
    updated = note.get("updatedAt") or current
    created = note.get("createdAt") or updated
    return {
        "id": note["id"],
        "title": note.get("title") or "",
        "content": note.get("content") or "",
        "updated_at": ms_to_iso(updated),
        "created_at": ms_to_iso(created),
    }
