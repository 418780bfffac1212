# doug/merge.py
"""Combine frames from two independent data files into one conflict-free sequence."""

from __future__ import annotations

import datetime as dt
from typing import Dict, Iterable, List, Optional, Tuple

from .errors import CorruptStore, MultipleRunningFrames
from .model import Frame, MergeResult
from .store import frame_sort_key
from .util.console import obs
from .validate import check_frames


def merge(
    base: Iterable[Frame],
    incoming: Iterable[Frame],
    *,
    dry_run: bool = False,
    next_id: Optional[int] = None,
) -> MergeResult:
    """Union `incoming` into `base`.

    - Frames match by content, `(project, start, end)`; ids only mean something
      inside one file and are ignored for matching.
    - Base frames keep their ids. Each added frame gets a fresh id, handed out
      in start order from the base's next free id.
    - An added frame sharing its start with a base frame is a conflict: both are
      kept and the pair is reported for manual `edit`/`delete`.
    - More than one running frame in the result raises MultipleRunningFrames
      and produces nothing.

    `base` may be an IntervalStore; its `next_id` is honoured when `next_id` is not given.
    """
    if next_id is None:
        next_id = getattr(base, "next_id", None)

    base_frames = sorted(base, key=frame_sort_key)
    incoming_frames = sorted(incoming, key=frame_sort_key)

    nid = max(int(next_id or 0), max((f.id for f in base_frames), default=0) + 1)

    seen = {f.identity for f in base_frames}
    base_by_start: Dict[dt.datetime, Frame] = {}
    for f in base_frames:
        base_by_start.setdefault(f.start, f)

    added: List[Frame] = []
    conflicts: List[Tuple[Frame, Frame]] = []
    for f in incoming_frames:
        if f.identity in seen:
            continue
        seen.add(f.identity)
        fresh = f.with_changes(id=nid)
        nid += 1
        added.append(fresh)
        clash = base_by_start.get(f.start)
        if clash is not None:
            conflicts.append((clash, fresh))

    merged = sorted(base_frames + added, key=frame_sort_key)

    running = [f for f in merged if f.end is None]
    if len(running) > 1:
        raise MultipleRunningFrames(tuple(f.project for f in running))

    errs = check_frames(merged, label="merged")
    if errs:
        raise CorruptStore(errs[0])

    obs(
        "merge",
        f"base={len(base_frames)} incoming={len(incoming_frames)} added={len(added)} "
        f"conflicts={len(conflicts)} dry_run={dry_run}",
    )
    return MergeResult(
        frames=tuple(merged),
        next_id=nid,
        added_count=len(added),
        conflict_count=len(conflicts),
        conflicts=tuple(conflicts),
        dry_run=bool(dry_run),
    )


__all__ = ["merge"]
