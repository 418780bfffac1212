# doug/model.py
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional, Tuple


def normalize_tags(tags: Optional[Iterable[str]]) -> Tuple[str, ...]:
    """Return tags as a sorted, de-duplicated tuple of non-blank strings."""
    if not tags:
        return ()
    if isinstance(tags, str):
        tags = [tags]
    return tuple(sorted({str(t).strip() for t in tags if str(t).strip()}))


@dataclass(frozen=True)
class Frame:
    id: int
    project: str
    start: dt.datetime
    end: Optional[dt.datetime] = None  # None while the frame is running
    tags: Tuple[str, ...] = field(default=())

    @property
    def is_running(self) -> bool:
        return self.end is None

    @property
    def identity(self) -> Tuple[str, dt.datetime, Optional[dt.datetime]]:
        """Content identity used to match frames across files (ids are per-store)."""
        return (self.project, self.start, self.end)

    def elapsed(self, now: dt.datetime) -> dt.timedelta:
        return (self.end if self.end is not None else now) - self.start

    def with_changes(self, **kwargs) -> "Frame":
        return replace(self, **kwargs)


@dataclass(frozen=True)
class LogEntry:
    frame: Frame
    elapsed: dt.timedelta


@dataclass(frozen=True)
class DayLog:
    day: dt.date
    entries: Tuple[LogEntry, ...]
    total: dt.timedelta


@dataclass(frozen=True)
class ReportWindow:
    """Half-open range [start, end) plus optional project/tag filters."""

    start: dt.datetime
    end: dt.datetime
    project: Optional[str] = None
    tags: Tuple[str, ...] = ()

    def contains(self, when: dt.datetime) -> bool:
        return self.start <= when < self.end

    def matches(self, frame: Frame) -> bool:
        if not self.contains(frame.start):
            return False
        if self.project is not None and frame.project != self.project:
            return False
        return all(t in frame.tags for t in self.tags)


@dataclass(frozen=True)
class MergeResult:
    frames: Tuple[Frame, ...]
    next_id: int
    added_count: int
    conflict_count: int
    conflicts: Tuple[Tuple[Frame, Frame], ...] = ()
    dry_run: bool = False


__all__ = [
    "DayLog",
    "Frame",
    "LogEntry",
    "MergeResult",
    "ReportWindow",
    "normalize_tags",
]
