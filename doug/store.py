# doug/store.py
"""The interval store: ordered frames plus the single-running-frame state machine.

States are derived, never tracked separately:

    IDLE    --start-->   RUNNING
    RUNNING --stop-->    IDLE
    RUNNING --cancel-->  IDLE     (the frame is deleted)
    IDLE    --restart--> RUNNING  (needs prior history)

Every mutation builds a candidate list, re-validates it, then commits it.
"""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from .clock import SystemClock
from .errors import (
    AlreadyRunning,
    CorruptStore,
    EmptyProjectName,
    EmptyStore,
    FrameNotFound,
    InvalidRange,
    NoPriorProject,
    NoRunningProject,
)
from .model import Frame, normalize_tags
from .util.console import obs
from .validate import check_frames

Clock = Callable[[], dt.datetime]

_POSITION_RE = re.compile(r"^@(-?\d+)$")


def frame_sort_key(f: Frame) -> Tuple[dt.datetime, int]:
    return (f.start, f.id)


def _require_name(project: object) -> str:
    if not isinstance(project, str) or not project.strip():
        raise EmptyProjectName()
    return project.strip()


@dataclass(frozen=True)
class Selector:
    """Picks one frame for `edit`: by id, by position in start order, or the default."""

    frame_id: Optional[int] = None
    position: Optional[int] = None

    @classmethod
    def by_id(cls, frame_id: int) -> "Selector":
        return cls(frame_id=int(frame_id))

    @classmethod
    def at(cls, position: int) -> "Selector":
        return cls(position=int(position))

    @classmethod
    def parse(cls, raw: str) -> "Selector":
        """`12` selects frame id 12; `@-1` the last frame, `@0` the first."""
        s = (raw or "").strip()
        m = _POSITION_RE.match(s)
        if m:
            return cls.at(int(m.group(1)))
        if s.isdigit():
            return cls.by_id(int(s))
        raise ValueError(f"Invalid frame selector: {raw!r} (use an id like 12 or a position like @-1)")

    def describe(self) -> str:
        if self.frame_id is not None:
            return f"id {self.frame_id}"
        if self.position is not None:
            return f"position @{self.position}"
        return "the current or last frame"


@dataclass(frozen=True)
class FrameChanges:
    start: Optional[dt.datetime] = None
    end: Optional[dt.datetime] = None
    project: Optional[str] = None
    tags: Optional[Tuple[str, ...]] = None

    @property
    def is_empty(self) -> bool:
        return self.start is None and self.end is None and self.project is None and self.tags is None


class IntervalStore:
    def __init__(
        self,
        frames: Iterable[Frame] = (),
        *,
        clock: Optional[Clock] = None,
        next_id: Optional[int] = None,
    ) -> None:
        ordered = sorted(frames, key=frame_sort_key)
        errs = check_frames(ordered)
        if errs:
            raise CorruptStore(errs[0])
        max_id = max((f.id for f in ordered), default=0)
        self._frames: List[Frame] = ordered
        self._next_id = max(int(next_id or 0), max_id + 1)
        self._clock: Clock = clock or SystemClock()

    # --- accessors -----------------------------------------------------------

    @property
    def frames(self) -> Tuple[Frame, ...]:
        return tuple(self._frames)

    @property
    def next_id(self) -> int:
        return self._next_id

    def __len__(self) -> int:
        return len(self._frames)

    def __iter__(self) -> Iterator[Frame]:
        return iter(tuple(self._frames))

    def now(self) -> dt.datetime:
        now = self._clock()
        if now.tzinfo is None:
            raise ValueError("clock must return timezone-aware datetimes")
        return now

    def current(self) -> Optional[Frame]:
        for f in self._frames:
            if f.end is None:
                return f
        return None

    def last(self) -> Optional[Frame]:
        # Sorted by (start, id): ties on start resolve to the highest id.
        return self._frames[-1] if self._frames else None

    def get(self, frame_id: int) -> Optional[Frame]:
        for f in self._frames:
            if f.id == frame_id:
                return f
        return None

    def projects(self) -> List[str]:
        """Project names in first-seen order."""
        seen: List[str] = []
        for f in self._frames:
            if f.project not in seen:
                seen.append(f.project)
        return seen

    def tags(self) -> List[str]:
        return sorted({t for f in self._frames for t in f.tags})

    # --- state machine -------------------------------------------------------

    def start(self, project: str, tags: Iterable[str] = ()) -> Frame:
        name = _require_name(project)
        running = self.current()
        if running is not None:
            raise AlreadyRunning(running.project)

        frame = Frame(
            id=self._next_id,
            project=name,
            start=self.now(),
            end=None,
            tags=normalize_tags(tags),
        )
        self._commit(self._frames + [frame])
        self._next_id += 1
        obs("store", f"start id={frame.id} project={frame.project!r}")
        return frame

    def stop(self) -> Frame:
        running = self.current()
        if running is None:
            raise NoRunningProject()
        now = self.now()
        if now < running.start:
            raise InvalidRange(f"clock reads {now.isoformat()}, before the frame started at {running.start.isoformat()}")

        stopped = running.with_changes(end=now)
        self._commit(self._replaced(running, stopped))
        obs("store", f"stop id={stopped.id} project={stopped.project!r}")
        return stopped

    def cancel(self) -> Frame:
        running = self.current()
        if running is None:
            raise NoRunningProject()
        self._commit([f for f in self._frames if f.id != running.id])
        obs("store", f"cancel id={running.id} project={running.project!r}")
        return running

    def restart(self, tags: Optional[Iterable[str]] = None) -> Frame:
        running = self.current()
        if running is not None:
            raise AlreadyRunning(running.project)
        previous = self.last()
        if previous is None:
            raise NoPriorProject()
        return self.start(previous.project, previous.tags if tags is None else tags)

    # --- editing -------------------------------------------------------------

    def amend(self, new_name: str) -> Frame:
        """Rename the running frame, or the last frame when nothing runs."""
        target = self.current() or self.last()
        if target is None:
            raise EmptyStore()
        name = _require_name(new_name)

        renamed = target.with_changes(project=name)
        self._commit(self._replaced(target, renamed))
        return renamed

    def delete(self, project: str) -> int:
        """Remove every frame of `project`, running or not. Returns how many went."""
        kept = [f for f in self._frames if f.project != project]
        removed = len(self._frames) - len(kept)
        if removed:
            self._commit(kept)
            obs("store", f"delete project={project!r} frames={removed}")
        return removed

    def edit(self, changes: FrameChanges, selector: Optional[Selector] = None) -> Frame:
        if not self._frames:
            raise EmptyStore()
        target = self._select(selector)

        project = target.project if changes.project is None else _require_name(changes.project)
        start = target.start if changes.start is None else changes.start
        end = target.end if changes.end is None else changes.end
        tags = target.tags if changes.tags is None else normalize_tags(changes.tags)

        for when in (start, end):
            if when is not None and when.tzinfo is None:
                raise ValueError("frame timestamps must be timezone-aware")
        if end is not None and end < start:
            raise InvalidRange(f"end {end.isoformat()} is before start {start.isoformat()}")

        updated = target.with_changes(project=project, start=start, end=end, tags=tags)
        self._commit(self._replaced(target, updated))
        return updated

    # --- internals -----------------------------------------------------------

    def _select(self, selector: Optional[Selector]) -> Frame:
        if selector is None or (selector.frame_id is None and selector.position is None):
            target = self.current() or self.last()
            if target is None:
                raise EmptyStore()
            return target
        if selector.frame_id is not None:
            found = self.get(selector.frame_id)
            if found is None:
                raise FrameNotFound(selector.describe())
            return found
        try:
            return self._frames[int(selector.position)]  # type: ignore[arg-type]
        except IndexError:
            raise FrameNotFound(selector.describe()) from None

    def _replaced(self, old: Frame, new: Frame) -> List[Frame]:
        return [new if f.id == old.id else f for f in self._frames]

    def _commit(self, candidate: List[Frame]) -> None:
        ordered = sorted(candidate, key=frame_sort_key)
        errs = check_frames(ordered)
        if errs:
            raise InvalidRange(errs[0])
        self._frames = ordered


__all__ = [
    "FrameChanges",
    "IntervalStore",
    "Selector",
    "frame_sort_key",
]
