# doug/window.py
from __future__ import annotations

import datetime as dt
from typing import Iterable, Optional, Union

from .errors import ConflictingWindow, InvalidRange
from .model import ReportWindow, normalize_tags
from .util.tz import midnight, start_of_week

DateLike = Union[dt.date, dt.datetime]

# Unit sizes follow earlier doug releases: a "year" is 52 weeks, a "month" 4 weeks.
YEAR = dt.timedelta(weeks=52)
MONTH = dt.timedelta(weeks=4)
WEEK = dt.timedelta(weeks=1)
DAY = dt.timedelta(days=1)

EARLIEST = dt.datetime(1, 1, 2, tzinfo=dt.timezone.utc)


def granularity_span(*, years: int = 0, months: int = 0, weeks: int = 0, days: int = 0) -> dt.timedelta:
    """Cumulative span of repeated granularity flags (`-w -w -d` = 2 weeks + 1 day)."""
    for name, n in (("years", years), ("months", months), ("weeks", weeks), ("days", days)):
        if n < 0:
            raise ValueError(f"{name} must not be negative")
    return years * YEAR + months * MONTH + weeks * WEEK + days * DAY


def _as_start(d: DateLike, tz: dt.tzinfo) -> dt.datetime:
    if isinstance(d, dt.datetime):
        return d if d.tzinfo is not None else d.replace(tzinfo=tz)
    return midnight(d, tz)


def _as_end(d: DateLike, tz: dt.tzinfo) -> dt.datetime:
    # A bare date is inclusive: the window runs to the following midnight.
    if isinstance(d, dt.datetime):
        return d if d.tzinfo is not None else d.replace(tzinfo=tz)
    return midnight(d + DAY, tz)


def build_window(
    now: dt.datetime,
    *,
    years: int = 0,
    months: int = 0,
    weeks: int = 0,
    days: int = 0,
    from_: Optional[DateLike] = None,
    to: Optional[DateLike] = None,
    project: Optional[str] = None,
    tags: Iterable[str] = (),
) -> ReportWindow:
    """Compute the `[start, end)` report window.

    Precedence:
      1) explicit `from_`/`to` (cannot be mixed with granularity counts)
      2) granularity counts: `[now - span, now)`
      3) default: `[start of the current week, now)`
    """
    tz = now.tzinfo or dt.timezone.utc
    span = granularity_span(years=years, months=months, weeks=weeks, days=days)
    explicit = from_ is not None or to is not None

    if explicit and span:
        raise ConflictingWindow()

    if explicit:
        start = _as_start(from_, tz) if from_ is not None else EARLIEST
        end = _as_end(to, tz) if to is not None else now
        if end < start:
            raise InvalidRange(f"report window ends ({end.isoformat()}) before it starts ({start.isoformat()})")
    elif span:
        start, end = now - span, now
    else:
        start, end = start_of_week(now), now

    return ReportWindow(
        start=start,
        end=end,
        project=project or None,
        tags=normalize_tags(tags),
    )


__all__ = [
    "DAY",
    "MONTH",
    "WEEK",
    "YEAR",
    "build_window",
    "granularity_span",
]
