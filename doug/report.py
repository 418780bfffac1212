# doug/report.py
"""Query helpers over frames: chronological log, per-day log, per-project totals.

Pure functions; the caller supplies `now` so output is deterministic.
"""

from __future__ import annotations

import datetime as dt
from typing import Dict, Iterable, List, Optional

from .model import DayLog, Frame, LogEntry, ReportWindow
from .util.duration import sum_durations
from .util.tz import local_date


def log(frames: Iterable[Frame], now: dt.datetime) -> List[LogEntry]:
    """All frames, start-ascending, each with its elapsed time (running frames count to `now`)."""
    ordered = sorted(frames, key=lambda f: (f.start, f.id))
    return [LogEntry(frame=f, elapsed=f.elapsed(now)) for f in ordered]


def log_by_day(frames: Iterable[Frame], now: dt.datetime, tz: Optional[dt.tzinfo] = None) -> List[DayLog]:
    """Log entries grouped by the local calendar day their frame started on."""
    tz = tz or now.tzinfo or dt.timezone.utc
    days: Dict[dt.date, List[LogEntry]] = {}
    for entry in log(frames, now):
        days.setdefault(local_date(entry.frame.start, tz), []).append(entry)

    out: List[DayLog] = []
    for day in sorted(days):
        entries = tuple(days[day])
        out.append(DayLog(day=day, entries=entries, total=sum_durations(e.elapsed for e in entries)))
    return out


def select(frames: Iterable[Frame], window: ReportWindow) -> List[Frame]:
    """Frames whose start lies in the window and that pass its project/tag filters."""
    return [f for f in frames if window.matches(f)]


def report(frames: Iterable[Frame], window: ReportWindow, now: dt.datetime) -> Dict[str, dt.timedelta]:
    """Total elapsed time per project for frames starting inside `window`.

    Frames that straddle a window edge count in full when their start is inside.
    Keys keep first-seen order; projects with a zero total are left out.
    """
    totals: Dict[str, dt.timedelta] = {}
    for f in select(sorted(frames, key=lambda f: (f.start, f.id)), window):
        totals[f.project] = totals.get(f.project, dt.timedelta(0)) + f.elapsed(now)
    return {p: d for p, d in totals.items() if d != dt.timedelta(0)}


def earliest_start(frames: Iterable[Frame], window: ReportWindow) -> Optional[dt.datetime]:
    starts = [f.start for f in select(frames, window)]
    return min(starts) if starts else None


__all__ = [
    "earliest_start",
    "log",
    "log_by_day",
    "report",
    "select",
]
