from __future__ import annotations

import datetime as dt
import unittest

from doug.model import Frame, ReportWindow
from doug.report import earliest_start, log, log_by_day, report, select

UTC = dt.timezone.utc
T = dt.datetime(2024, 3, 1, 0, 0, tzinfo=UTC)
H = dt.timedelta(hours=1)
WEEK_WINDOW = ReportWindow(start=T, end=T + dt.timedelta(days=7))


def _f(fid, project, start, end, tags=()):
    return Frame(id=fid, project=project, start=start, end=end, tags=tuple(tags))


class TestReportAggregateContract(unittest.TestCase):
    def test_window_boundaries(self) -> None:
        frames = [
            _f(1, "inside", T, T + H),
            _f(2, "edge", T + dt.timedelta(days=7), T + dt.timedelta(days=7) + H),
            _f(3, "before", T - H, T + H),
        ]
        totals = report(frames, WEEK_WINDOW, T + dt.timedelta(days=8))
        self.assertEqual(totals, {"inside": H})

    def test_straddling_frame_counts_in_full(self) -> None:
        late = T + dt.timedelta(days=7) - H
        frames = [_f(1, "late", late, late + 3 * H)]
        totals = report(frames, WEEK_WINDOW, T + dt.timedelta(days=8))
        self.assertEqual(totals, {"late": 3 * H})

    def test_totals_keep_first_seen_order(self) -> None:
        frames = [
            _f(1, "zeta", T, T + H),
            _f(2, "alpha", T + 2 * H, T + 3 * H),
            _f(3, "zeta", T + 4 * H, T + 6 * H),
        ]
        totals = report(frames, WEEK_WINDOW, T + 7 * H)
        self.assertEqual(list(totals), ["zeta", "alpha"])
        self.assertEqual(totals["zeta"], 3 * H)

    def test_running_frame_counts_until_now(self) -> None:
        frames = [_f(1, "a", T, None)]
        now = T + 90 * dt.timedelta(minutes=1)
        self.assertEqual(report(frames, WEEK_WINDOW, now), {"a": dt.timedelta(minutes=90)})

    def test_zero_totals_are_dropped(self) -> None:
        frames = [_f(1, "empty", T, T), _f(2, "a", T + H, T + 2 * H)]
        self.assertEqual(report(frames, WEEK_WINDOW, T + 3 * H), {"a": H})

    def test_project_and_tag_filters(self) -> None:
        frames = [
            _f(1, "a", T, T + H, ["x"]),
            _f(2, "a", T + H, T + 2 * H, ["x", "y"]),
            _f(3, "b", T + 2 * H, T + 3 * H, ["x", "y"]),
        ]
        now = T + 4 * H
        by_project = ReportWindow(start=T, end=T + dt.timedelta(days=7), project="a")
        self.assertEqual(report(frames, by_project, now), {"a": 2 * H})

        by_tags = ReportWindow(start=T, end=T + dt.timedelta(days=7), tags=("x", "y"))
        self.assertEqual(report(frames, by_tags, now), {"a": H, "b": H})
        self.assertEqual([f.id for f in select(frames, by_tags)], [2, 3])

    def test_earliest_start(self) -> None:
        frames = [_f(2, "b", T + 5 * H, T + 6 * H), _f(1, "a", T + H, T + 2 * H)]
        self.assertEqual(earliest_start(frames, WEEK_WINDOW), T + H)
        self.assertIsNone(earliest_start([], WEEK_WINDOW))

    def test_log_orders_by_start_then_id(self) -> None:
        frames = [_f(3, "c", T + H, T + 2 * H), _f(2, "b", T, T), _f(1, "a", T, T + H)]
        entries = log(frames, T + 3 * H)
        self.assertEqual([e.frame.id for e in entries], [1, 2, 3])
        self.assertEqual([e.elapsed for e in entries], [H, dt.timedelta(0), H])

    def test_log_by_day_groups_on_local_date(self) -> None:
        tz = dt.timezone(dt.timedelta(hours=2))
        frames = [
            _f(1, "a", T - 2 * H, T - H),  # 00:00 local on 1 Mar
            _f(2, "b", T + 22 * H + dt.timedelta(minutes=30), T + 23 * H),  # 00:30 local on 2 Mar
            _f(3, "c", T + 9 * H, T + 10 * H),
        ]
        days = log_by_day(frames, T + dt.timedelta(days=2), tz)
        self.assertEqual([d.day for d in days], [dt.date(2024, 3, 1), dt.date(2024, 3, 2)])
        self.assertEqual([e.frame.id for e in days[0].entries], [1, 3])
        self.assertEqual(days[0].total, 2 * H)
        self.assertEqual(days[1].total, dt.timedelta(minutes=30))


if __name__ == "__main__":
    unittest.main(verbosity=2)
