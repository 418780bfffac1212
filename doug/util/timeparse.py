# doug/util/timeparse.py
from __future__ import annotations

import datetime as dt
import re
from typing import Optional, Tuple

from dateutil import parser as dtparser

from .tz import midnight

_HHMM_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([ap]m)?$", re.IGNORECASE)
_AGO_RE = re.compile(r"^(\d+)\s*(minute|min|m|hour|h|day|d|week|w)s?\s+ago$", re.IGNORECASE)

_DAY_WORDS = {"today": 0, "yesterday": -1, "tomorrow": 1}
_AGO_UNITS = {
    "minute": dt.timedelta(minutes=1),
    "min": dt.timedelta(minutes=1),
    "m": dt.timedelta(minutes=1),
    "hour": dt.timedelta(hours=1),
    "h": dt.timedelta(hours=1),
    "day": dt.timedelta(days=1),
    "d": dt.timedelta(days=1),
    "week": dt.timedelta(weeks=1),
    "w": dt.timedelta(weeks=1),
}


def parse_hhmm(s: str) -> Tuple[int, int, int]:
    """Parse `9:15`, `09:15:30` or `9:15pm` into (hour, minute, second)."""
    m = _HHMM_RE.match(s.strip())
    if not m:
        raise ValueError(f"Invalid HH:MM: {s!r}")
    hh = int(m.group(1))
    mm = int(m.group(2))
    ss = int(m.group(3) or 0)
    ampm = (m.group(4) or "").lower()
    if ampm:
        if not 1 <= hh <= 12:
            raise ValueError(f"Invalid HH:MM: {s!r}")
        hh = hh % 12 + (12 if ampm == "pm" else 0)
    if not (0 <= hh <= 23 and 0 <= mm <= 59 and 0 <= ss <= 59):
        raise ValueError(f"Invalid HH:MM: {s!r}")
    return hh, mm, ss


def parse_date_yyyy_mm_dd(s: str) -> dt.date:
    return dt.datetime.strptime(s.strip(), "%Y-%m-%d").date()


def parse_date(s: str, now: dt.datetime) -> dt.date:
    """Parse a calendar date: YYYY-MM-DD, today/yesterday/tomorrow, or free-form."""
    raw = (s or "").strip()
    if not raw:
        raise ValueError("Empty date")
    low = raw.lower()
    if low in _DAY_WORDS:
        return now.date() + dt.timedelta(days=_DAY_WORDS[low])
    try:
        return parse_date_yyyy_mm_dd(raw)
    except ValueError:
        pass
    return parse_datetime(raw, now).date()


def parse_datetime(s: str, now: dt.datetime) -> dt.datetime:
    """Parse a humanized point in time relative to `now`.

    Accepted forms:
      - "now"
      - "today", "yesterday 9:00am", "tomorrow 12:15"
      - "15 minutes ago", "2h ago"
      - a bare time "14:30" (today)
      - anything dateutil understands ("2018-1-20 9:00", "thursday 9:00am")

    Naive results are placed in `now`'s timezone; the result is always aware.
    """
    raw = (s or "").strip()
    if not raw:
        raise ValueError("Empty date")
    tz = now.tzinfo or dt.timezone.utc
    low = raw.lower()

    if low == "now":
        return now

    m = _AGO_RE.match(low)
    if m:
        return now - int(m.group(1)) * _AGO_UNITS[m.group(2).lower()]

    head, _, rest = low.partition(" ")
    if head in _DAY_WORDS:
        day = now.date() + dt.timedelta(days=_DAY_WORDS[head])
        base = midnight(day, tz)
        if not rest.strip():
            return base
        hh, mm, ss = parse_hhmm(rest)
        return base.replace(hour=hh, minute=mm, second=ss)

    if _HHMM_RE.match(low):
        hh, mm, ss = parse_hhmm(low)
        return midnight(now.date(), tz).replace(hour=hh, minute=mm, second=ss)

    default = midnight(now.date(), tz).replace(tzinfo=None)
    try:
        parsed = dtparser.parse(raw, default=default)
    except (ValueError, OverflowError) as ex:
        raise ValueError(f"Couldn't parse date {raw!r}") from ex
    return _aware(parsed, tz)


def parse_iso_timestamp(s: str) -> dt.datetime:
    """Parse a stored ISO-8601 timestamp; naive values are taken as UTC."""
    try:
        d = dtparser.isoparse(str(s).strip())
    except (ValueError, OverflowError) as ex:
        raise ValueError(f"Invalid timestamp: {s!r}") from ex
    return _aware(d, dt.timezone.utc)


def format_iso_timestamp(d: dt.datetime) -> str:
    """UTC ISO-8601 with a trailing Z, e.g. 2024-03-01T09:00:00Z."""
    return d.astimezone(dt.timezone.utc).isoformat().replace("+00:00", "Z")


def _aware(d: dt.datetime, tz: Optional[dt.tzinfo]) -> dt.datetime:
    if d.tzinfo is None:
        return d.replace(tzinfo=tz)
    return d
