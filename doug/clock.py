# doug/clock.py
from __future__ import annotations

import datetime as dt
from typing import Optional

from .util.tz import resolve_tz


class SystemClock:
    """Wall clock in a bucketing timezone (default: the machine's local zone)."""

    def __init__(self, tz: Optional[dt.tzinfo] = None) -> None:
        self.tz = tz or resolve_tz("local")

    def now(self) -> dt.datetime:
        return dt.datetime.now(tz=self.tz).replace(microsecond=0)

    __call__ = now


class FixedClock:
    """Clock pinned to a given instant; `advance` moves it forward."""

    def __init__(self, when: dt.datetime) -> None:
        if when.tzinfo is None:
            raise ValueError("FixedClock needs a timezone-aware datetime")
        self.when = when
        self.tz = when.tzinfo

    def now(self) -> dt.datetime:
        return self.when

    __call__ = now

    def advance(self, delta: dt.timedelta) -> dt.datetime:
        self.when = self.when + delta
        return self.when

    def set(self, when: dt.datetime) -> None:
        self.when = when
