# doug/schema.py
"""Persisted document layout.

Schema v1:

    {
      "schema_version": 1,
      "next_id": 4,
      "frames": [
        {"id": 1, "project": "writing", "tags": ["book"],
         "start": "2024-03-01T09:00:00Z", "end": "2024-03-01T10:00:00Z"},
        ...
      ]
    }

Older inputs are upgraded on load: a bare array of frame records, or the
`periods.json` array written by earlier doug releases
(`{"project", "start_time", "end_time"}` with no ids or tags).
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence, Tuple

from doug.errors import CorruptStore
from doug.model import Frame, normalize_tags
from doug.util.timeparse import format_iso_timestamp, parse_iso_timestamp
from doug.validate import LATEST_SCHEMA_VERSION, assert_valid_document


def frame_to_record(f: Frame) -> Dict[str, Any]:
    return {
        "id": f.id,
        "project": f.project,
        "tags": list(f.tags),
        "start": format_iso_timestamp(f.start),
        "end": None if f.end is None else format_iso_timestamp(f.end),
    }


def frame_from_record(rec: Dict[str, Any], *, index: int = 0) -> Frame:
    try:
        start = parse_iso_timestamp(rec["start"])
        end_raw = rec.get("end")
        end = None if end_raw is None else parse_iso_timestamp(end_raw)
    except (KeyError, TypeError, ValueError) as ex:
        raise CorruptStore(f"frames[{index}]: {ex}") from ex
    return Frame(
        id=int(rec["id"]),
        project=str(rec["project"]),
        start=start,
        end=end,
        tags=normalize_tags(rec.get("tags") or ()),
    )


def to_document(frames: Sequence[Frame], next_id: int) -> Dict[str, Any]:
    return {
        "schema_version": LATEST_SCHEMA_VERSION,
        "next_id": int(next_id),
        "frames": [frame_to_record(f) for f in frames],
    }


def _upgrade_record(rec: Any) -> Any:
    if not isinstance(rec, dict):
        return rec
    out = dict(rec)
    # Legacy periods.json field names.
    if "start" not in out and "start_time" in out:
        out["start"] = out.pop("start_time")
    if "end" not in out and "end_time" in out:
        out["end"] = out.pop("end_time")
    out.setdefault("end", None)
    tags = out.get("tags")
    if tags is None:
        out["tags"] = []
    elif isinstance(tags, str):
        out["tags"] = [t.strip() for t in tags.split(",") if t.strip()]
    return out


def upgrade_document(raw: Any) -> Dict[str, Any]:
    """Upgrade any accepted input shape to a schema-v1 document (additive, idempotent)."""
    if isinstance(raw, dict) and raw.get("schema_version") == LATEST_SCHEMA_VERSION:
        return raw

    if isinstance(raw, list):
        records: Any = raw
        next_id: Any = None
        extra: Dict[str, Any] = {}
    elif isinstance(raw, dict):
        if "schema_version" in raw:
            # Unknown versions are rejected by validation, not guessed at.
            return raw
        records = raw.get("frames")
        next_id = raw.get("next_id")
        extra = {k: v for k, v in raw.items() if k not in ("frames", "next_id")}
    else:
        raise CorruptStore(f"data file must hold a JSON object or array; got {type(raw).__name__}")

    if not isinstance(records, list):
        raise CorruptStore("data file has no frames list")

    upgraded: List[Any] = [_upgrade_record(r) for r in records]

    used = [r["id"] for r in upgraded if isinstance(r, dict) and isinstance(r.get("id"), int)]
    nxt = max(used, default=0) + 1
    for r in upgraded:
        if isinstance(r, dict) and "id" not in r:
            r["id"] = nxt
            nxt += 1

    if not isinstance(next_id, int) or next_id < nxt:
        next_id = nxt

    doc: Dict[str, Any] = dict(extra)
    doc["schema_version"] = LATEST_SCHEMA_VERSION
    doc["next_id"] = next_id
    doc["frames"] = upgraded
    return doc


def decode_document(raw: Any) -> Tuple[List[Frame], int]:
    """Upgrade, validate and decode a parsed data file into (frames, next_id)."""
    doc = upgrade_document(raw)
    assert_valid_document(doc)
    frames = [frame_from_record(rec, index=i) for i, rec in enumerate(doc["frames"])]
    return frames, int(doc["next_id"])


__all__ = [
    "decode_document",
    "frame_from_record",
    "frame_to_record",
    "to_document",
    "upgrade_document",
]
