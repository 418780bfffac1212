from __future__ import annotations

import datetime as dt
import unittest

from doug.errors import ConflictingWindow, InvalidRange
from doug.window import DAY, EARLIEST, MONTH, WEEK, YEAR, build_window, granularity_span

UTC = dt.timezone.utc
# Wednesday afternoon
NOW = dt.datetime(2024, 3, 6, 15, 30, 0, tzinfo=UTC)


class TestReportWindowContract(unittest.TestCase):
    def test_default_is_start_of_week_to_now(self) -> None:
        w = build_window(NOW)
        self.assertEqual(w.start, dt.datetime(2024, 3, 4, 0, 0, tzinfo=UTC))
        self.assertEqual(w.end, NOW)
        self.assertIsNone(w.project)
        self.assertEqual(w.tags, ())

    def test_default_on_monday_midnight_is_empty_window(self) -> None:
        monday = dt.datetime(2024, 3, 4, 0, 0, tzinfo=UTC)
        w = build_window(monday)
        self.assertEqual(w.start, w.end)

    def test_default_week_start_follows_now_timezone(self) -> None:
        tz = dt.timezone(dt.timedelta(hours=-5))
        # Monday 02:00 UTC is still Sunday evening at -05:00.
        now = dt.datetime(2024, 3, 4, 2, 0, tzinfo=UTC).astimezone(tz)
        w = build_window(now)
        self.assertEqual(w.start, dt.datetime(2024, 2, 26, 0, 0, tzinfo=tz))

    def test_granularity_counts_accumulate(self) -> None:
        self.assertEqual(build_window(NOW, weeks=2).start, NOW - dt.timedelta(weeks=2))
        self.assertEqual(build_window(NOW, days=3).start, NOW - dt.timedelta(days=3))
        w = build_window(NOW, years=1, months=1, weeks=1, days=1)
        self.assertEqual(NOW - w.start, YEAR + MONTH + WEEK + DAY)
        self.assertEqual(w.end, NOW)

    def test_unit_sizes(self) -> None:
        self.assertEqual(YEAR, dt.timedelta(weeks=52))
        self.assertEqual(MONTH, dt.timedelta(weeks=4))
        self.assertEqual(granularity_span(weeks=2, days=1), dt.timedelta(days=15))
        self.assertEqual(granularity_span(), dt.timedelta(0))

    def test_negative_counts_rejected(self) -> None:
        with self.assertRaises(ValueError):
            granularity_span(days=-1)

    def test_explicit_dates_are_inclusive_of_to_day(self) -> None:
        w = build_window(NOW, from_=dt.date(2024, 3, 1), to=dt.date(2024, 3, 7))
        self.assertEqual(w.start, dt.datetime(2024, 3, 1, tzinfo=UTC))
        self.assertEqual(w.end, dt.datetime(2024, 3, 8, tzinfo=UTC))

    def test_open_ended_explicit_dates(self) -> None:
        only_from = build_window(NOW, from_=dt.date(2024, 3, 1))
        self.assertEqual(only_from.end, NOW)
        only_to = build_window(NOW, to=dt.date(2024, 3, 1))
        self.assertEqual(only_to.start, EARLIEST)
        self.assertEqual(only_to.end, dt.datetime(2024, 3, 2, tzinfo=UTC))

    def test_explicit_datetimes_are_used_as_is(self) -> None:
        a = dt.datetime(2024, 3, 1, 9, 0, tzinfo=UTC)
        b = dt.datetime(2024, 3, 1, 17, 0, tzinfo=UTC)
        w = build_window(NOW, from_=a, to=b)
        self.assertEqual((w.start, w.end), (a, b))

    def test_mixing_dates_and_granularity_conflicts(self) -> None:
        with self.assertRaises(ConflictingWindow):
            build_window(NOW, weeks=1, from_=dt.date(2024, 3, 1))
        with self.assertRaises(ConflictingWindow):
            build_window(NOW, days=1, to=dt.date(2024, 3, 1))

    def test_from_after_to_is_invalid(self) -> None:
        with self.assertRaises(InvalidRange):
            build_window(NOW, from_=dt.date(2024, 3, 5), to=dt.date(2024, 3, 1))

    def test_filters_are_normalized(self) -> None:
        w = build_window(NOW, project="", tags=["b", "a", "a"])
        self.assertIsNone(w.project)
        self.assertEqual(w.tags, ("a", "b"))

    def test_window_is_half_open(self) -> None:
        t = dt.datetime(2024, 3, 1, tzinfo=UTC)
        w = build_window(NOW, from_=t, to=t + dt.timedelta(days=7))
        self.assertTrue(w.contains(t))
        self.assertTrue(w.contains(t + dt.timedelta(days=7) - dt.timedelta(seconds=1)))
        self.assertFalse(w.contains(t + dt.timedelta(days=7)))
        self.assertFalse(w.contains(t - dt.timedelta(seconds=1)))


if __name__ == "__main__":
    unittest.main(verbosity=2)
