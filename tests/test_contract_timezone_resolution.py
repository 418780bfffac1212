from __future__ import annotations

import datetime as dt
import unittest

from doug.clock import FixedClock, SystemClock
from doug.util.tz import local_date, midnight, normalize_tz_name, resolve_tz, start_of_week


class TestTimezoneResolutionContract(unittest.TestCase):
    def test_valid_timezone_identifiers_resolve(self) -> None:
        self.assertEqual(resolve_tz("UTC"), dt.timezone.utc)
        self.assertEqual(resolve_tz("z"), dt.timezone.utc)
        self.assertIsNotNone(resolve_tz("local"))
        self.assertEqual(resolve_tz("+02:00"), dt.timezone(dt.timedelta(hours=2)))
        self.assertEqual(resolve_tz("-0530"), dt.timezone(-dt.timedelta(hours=5, minutes=30)))

    def test_invalid_timezone_identifiers_raise(self) -> None:
        with self.assertRaises(ValueError):
            resolve_tz("No/Such_Zone")
        with self.assertRaises(ValueError):
            resolve_tz("+25:00")

    def test_normalize(self) -> None:
        self.assertEqual(normalize_tz_name(None), "local")
        self.assertEqual(normalize_tz_name(" system "), "local")
        self.assertEqual(normalize_tz_name("GMT"), "UTC")

    def test_day_and_week_boundaries(self) -> None:
        tz = dt.timezone(dt.timedelta(hours=2))
        late = dt.datetime(2024, 3, 3, 23, 0, tzinfo=dt.timezone.utc)
        self.assertEqual(local_date(late, tz), dt.date(2024, 3, 4))
        self.assertEqual(midnight(dt.date(2024, 3, 4), tz), dt.datetime(2024, 3, 4, tzinfo=tz))
        sunday = dt.datetime(2024, 3, 10, 23, 59, tzinfo=tz)
        self.assertEqual(start_of_week(sunday), dt.datetime(2024, 3, 4, tzinfo=tz))


class TestClockContract(unittest.TestCase):
    def test_system_clock_is_aware_and_whole_seconds(self) -> None:
        now = SystemClock(dt.timezone.utc)()
        self.assertIsNotNone(now.tzinfo)
        self.assertEqual(now.microsecond, 0)

    def test_fixed_clock(self) -> None:
        t = dt.datetime(2024, 3, 1, tzinfo=dt.timezone.utc)
        c = FixedClock(t)
        self.assertEqual(c(), t)
        c.advance(dt.timedelta(minutes=1))
        self.assertEqual(c.now(), t + dt.timedelta(minutes=1))
        with self.assertRaises(ValueError):
            FixedClock(dt.datetime(2024, 3, 1))


if __name__ == "__main__":
    unittest.main(verbosity=2)
