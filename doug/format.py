# doug/format.py
"""Plain-text rendering of frames, logs and reports for the CLI."""

from __future__ import annotations

import datetime as dt
from typing import Dict, List, Mapping, Optional, Sequence

from .model import DayLog, Frame, MergeResult, ReportWindow
from .util.duration import format_duration
from .window import EARLIEST

DURATION_WIDTH = 11


def fmt_time(when: dt.datetime, tz: dt.tzinfo) -> str:
    return when.astimezone(tz).strftime("%H:%M")


def fmt_datetime(when: dt.datetime, tz: dt.tzinfo) -> str:
    return when.astimezone(tz).strftime("%Y-%m-%d %H:%M")


def fmt_day(d: dt.date) -> str:
    # e.g. "Friday 1 March 2024" (no platform-specific %-d)
    return f"{d:%A} {d.day} {d:%B %Y}"


def render_frame(frame: Frame, now: dt.datetime, tz: dt.tzinfo) -> str:
    end = "present" if frame.end is None else fmt_time(frame.end, tz)
    return f"{fmt_time(frame.start, tz)} to {end} {format_duration(frame.elapsed(now))}"


def render_status(frame: Frame, now: dt.datetime, tz: dt.tzinfo) -> str:
    return (
        f"Project {frame.project} started {format_duration(frame.elapsed(now))} ago "
        f"({fmt_datetime(frame.start, tz)})"
    )


def render_log(days: Sequence[DayLog], now: dt.datetime, tz: dt.tzinfo) -> str:
    lines: List[str] = []
    for day in days:
        lines.append(f"{fmt_day(day.day)} ({format_duration(day.total)})")
        for entry in day.entries:
            f = entry.frame
            end = now if f.end is None else f.end
            tags = f" [{', '.join(f.tags)}]" if f.tags else ""
            lines.append(
                f"    {fmt_time(f.start, tz)} to {fmt_time(end, tz)} "
                f"{format_duration(entry.elapsed):>{DURATION_WIDTH}} {f.project}{tags}"
            )
    return "\n".join(lines)


def render_report(
    totals: Mapping[str, dt.timedelta],
    window: ReportWindow,
    tz: dt.tzinfo,
    earliest: Optional[dt.datetime] = None,
) -> str:
    """Header `<from day> -> <to day>` then one aligned line per project, in first-seen order."""
    if window.start == EARLIEST:
        first = earliest or window.end
    else:
        first = window.start
    last = window.end - dt.timedelta(microseconds=1) if window.end > first else window.end
    lines = [f"{fmt_day(first.astimezone(tz).date())} -> {fmt_day(last.astimezone(tz).date())}"]

    rows: Dict[str, str] = {p: format_duration(d) for p, d in totals.items()}
    pwidth = max((len(p) for p in rows), default=0)
    dwidth = max((len(d) for d in rows.values()), default=0)
    for project, dur in rows.items():
        lines.append(f"{project:<{pwidth}} {dur:>{dwidth}}")
    return "\n".join(lines)


def render_merge(result: MergeResult, tz: dt.tzinfo) -> str:
    verb = "Would add" if result.dry_run else "Added"
    lines = [f"{verb} {result.added_count} frame(s); {result.conflict_count} conflict(s)"]
    for ours, theirs in result.conflicts:
        lines.append(
            f"  conflict at {fmt_datetime(ours.start, tz)}: "
            f"#{ours.id} {ours.project} vs #{theirs.id} {theirs.project}"
        )
    return "\n".join(lines)
