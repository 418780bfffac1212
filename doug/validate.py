"""Frame and data-file validation helpers (library-facing)."""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Sequence

from doug.errors import CorruptStore
from doug.model import Frame

LATEST_SCHEMA_VERSION = 1


def _require(cond: bool, msg: str, errs: List[str]) -> None:
    if not cond:
        errs.append(msg)


def _is_aware(v: Any) -> bool:
    return isinstance(v, dt.datetime) and v.tzinfo is not None and v.utcoffset() is not None


def check_frames(frames: Sequence[Frame], *, label: str = "frames") -> List[str]:
    """Return invariant violations for an in-memory frame sequence (empty when valid)."""
    errs: List[str] = []
    seen_ids: set[int] = set()
    running: List[int] = []
    prev_start = None

    for i, f in enumerate(frames):
        if not isinstance(f, Frame):
            errs.append(f"{label}[{i}] must be a Frame")
            continue
        _require(isinstance(f.id, int) and not isinstance(f.id, bool), f"{label}[{i}].id must be int", errs)
        _require(f.id not in seen_ids, f"{label}[{i}].id {f.id} is not unique", errs)
        seen_ids.add(f.id)
        _require(isinstance(f.project, str) and bool(f.project.strip()), f"{label}[{i}].project must be non-empty", errs)
        _require(isinstance(f.tags, tuple), f"{label}[{i}].tags must be a tuple", errs)

        if not _is_aware(f.start):
            errs.append(f"{label}[{i}].start must be a timezone-aware datetime")
            continue
        if f.end is None:
            running.append(f.id)
        elif not _is_aware(f.end):
            errs.append(f"{label}[{i}].end must be a timezone-aware datetime or None")
        elif f.end < f.start:
            errs.append(f"{label}[{i}] (id {f.id}) ends before it starts")

        if prev_start is not None and f.start < prev_start:
            errs.append(f"{label}[{i}] (id {f.id}) is out of start order")
        prev_start = f.start

    if len(running) > 1:
        errs.append(f"{label}: more than one running frame (ids {', '.join(str(x) for x in running)})")
    return errs


def validate_document(doc: Any, *, label: str = "store") -> List[str]:
    """Structural checks on a schema-v1 data file document (before decoding)."""
    if not isinstance(doc, dict):
        return [f"{label}: document must be a JSON object"]

    errs: List[str] = []
    sv = doc.get("schema_version")
    if isinstance(sv, int) and not isinstance(sv, bool) and sv != LATEST_SCHEMA_VERSION:
        return [f"Unsupported schema_version: {sv} (latest={LATEST_SCHEMA_VERSION})"]
    _require(sv == LATEST_SCHEMA_VERSION, f"{label}: schema_version must be {LATEST_SCHEMA_VERSION}", errs)

    nid = doc.get("next_id")
    _require(isinstance(nid, int) and not isinstance(nid, bool) and nid >= 1, f"{label}: next_id must be a positive int", errs)

    frames = doc.get("frames")
    if not isinstance(frames, list):
        errs.append(f"{label}: frames must be a list")
        return errs

    for i, rec in enumerate(frames):
        if not isinstance(rec, dict):
            errs.append(f"{label}: frames[{i}] must be an object")
            continue
        fid = rec.get("id")
        _require(isinstance(fid, int) and not isinstance(fid, bool), f"{label}: frames[{i}].id must be int", errs)
        p = rec.get("project")
        _require(isinstance(p, str) and bool(p.strip()), f"{label}: frames[{i}].project must be non-empty string", errs)
        tags = rec.get("tags")
        _require(
            isinstance(tags, list) and all(isinstance(t, str) for t in tags),
            f"{label}: frames[{i}].tags must be a list of strings",
            errs,
        )
        _require(isinstance(rec.get("start"), str), f"{label}: frames[{i}].start must be a timestamp string", errs)
        end = rec.get("end")
        _require(end is None or isinstance(end, str), f"{label}: frames[{i}].end must be a timestamp string or null", errs)
        if isinstance(fid, int) and isinstance(nid, int) and fid >= nid:
            errs.append(f"{label}: frames[{i}].id {fid} is not below next_id {nid}")

    return errs


def assert_valid_document(doc: Dict[str, Any]) -> None:
    errs = validate_document(doc)
    if errs:
        raise CorruptStore(errs[0])


__all__ = [
    "LATEST_SCHEMA_VERSION",
    "assert_valid_document",
    "check_frames",
    "validate_document",
]
