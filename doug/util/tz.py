# doug/util/tz.py
from __future__ import annotations

import datetime as dt
import re
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_OFFSET_RE = re.compile(r"^([+-])(\d{2}):?(\d{2})$")

_ALIASES = {
    "local": "local",
    "system": "local",
    "native": "local",
    "utc": "UTC",
    "z": "UTC",
    "gmt": "UTC",
    "utc0": "UTC",
    "utc+0": "UTC",
}


def normalize_tz_name(name: Optional[str]) -> str:
    """Canonical timezone name as written to settings.json and read from $DOUG_TZ.

    Blank means "local"; UTC spellings collapse to "UTC"; IANA names and
    fixed offsets ("+02:00", "-0500") pass through unchanged.
    """
    s = str(name or "").strip()
    if not s:
        return "local"
    return _ALIASES.get(s.lower(), s)


def _fixed_offset(name: str) -> Optional[dt.tzinfo]:
    m = _OFFSET_RE.match(name)
    if m is None:
        return None
    sign, hours, minutes = m.group(1), int(m.group(2)), int(m.group(3))
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid timezone offset: {name!r}")
    delta = dt.timedelta(hours=hours, minutes=minutes)
    return dt.timezone(-delta if sign == "-" else delta)


def resolve_tz(name: Optional[str]) -> dt.tzinfo:
    """tzinfo for a day/week bucketing zone; ValueError when the name is unknown."""
    canonical = normalize_tz_name(name)
    if canonical == "UTC":
        return dt.timezone.utc
    if canonical == "local":
        return dt.datetime.now().astimezone().tzinfo or dt.timezone.utc

    offset = _fixed_offset(canonical)
    if offset is not None:
        return offset
    try:
        return ZoneInfo(canonical)
    except (ZoneInfoNotFoundError, ValueError, OSError) as ex:
        raise ValueError(f"Invalid timezone identifier: {canonical!r}") from ex


def local_date(when: dt.datetime, tz: dt.tzinfo) -> dt.date:
    """Calendar date of an aware instant as seen in `tz`."""
    return when.astimezone(tz).date()


def midnight(d: dt.date, tz: dt.tzinfo) -> dt.datetime:
    return dt.datetime(d.year, d.month, d.day, 0, 0, 0, tzinfo=tz)


def start_of_week(now: dt.datetime) -> dt.datetime:
    """Monday 00:00 of the week containing `now`, in `now`'s own timezone."""
    tz = now.tzinfo or dt.timezone.utc
    monday = now.date() - dt.timedelta(days=now.weekday())
    return midnight(monday, tz)
