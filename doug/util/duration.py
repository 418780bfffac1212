# doug/util/duration.py
from __future__ import annotations

import datetime as dt
from typing import Iterable


def total_seconds(d: dt.timedelta) -> int:
    # Whole seconds, truncated toward zero.
    return int(d.total_seconds())


def sum_durations(items: Iterable[dt.timedelta]) -> dt.timedelta:
    total = dt.timedelta(0)
    for d in items:
        total += d
    return total


def format_duration(d: dt.timedelta) -> str:
    """Render a duration as `45s`, `3m  5s` or `2h  4m  9s`.

    Negative durations keep their sign on the leading unit.
    """
    secs = total_seconds(d)
    sign = "-" if secs < 0 else ""
    secs = abs(secs)
    hours, rem = divmod(secs, 3600)
    minutes, seconds = divmod(rem, 60)

    if hours == 0 and minutes == 0:
        return f"{sign}{seconds}s"
    if hours == 0:
        return f"{sign}{minutes}m {seconds:>2}s"
    return f"{sign}{hours}h {minutes:>2}m {seconds:>2}s"
