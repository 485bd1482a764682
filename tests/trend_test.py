"""
TrendEngine trend direction and consecutive-scan diffs.
"""

import unittest

from history.models import TrendDirection
from history.trend import TrendEngine
from factories import make_record


class TestTrendEngine(unittest.TestCase):
    def setUp(self):
        self.engine = TrendEngine()

    def test_single_record_has_no_trend(self):
        self.assertIsNone(self.engine.trend([make_record()]))
        self.assertIsNone(self.engine.latest_diff([make_record()]))

    def test_trend_uses_first_and_last(self):
        records = [
            make_record(issue_ids=("missing-alt", "missing-lang"), score=40, minutes=0),
            make_record(issue_ids=("missing-alt",), score=90, minutes=1),
            make_record(issue_ids=("missing-alt",), score=60, minutes=2),
        ]
        trend = self.engine.trend(records)
        self.assertEqual(trend.score_change, 20)
        self.assertEqual(trend.issues_change, -1)
        self.assertEqual(trend.direction, TrendDirection.IMPROVING)
        self.assertEqual(trend.total_scans, 3)
        self.assertEqual(trend.first_scan, records[0].scanned_at)
        self.assertEqual(trend.last_scan, records[-1].scanned_at)

    def test_direction_declining_and_stable(self):
        self.assertEqual(
            self.engine.trend([make_record(score=80), make_record(score=70)]).direction, TrendDirection.DECLINING,
        )
        self.assertEqual(
            self.engine.trend([make_record(score=70), make_record(score=70)]).direction, TrendDirection.STABLE,
        )

    def test_diff_by_rule_id(self):
        earlier = make_record(issue_ids=("missing-alt", "missing-lang"), score=50)
        later = make_record(issue_ids=("missing-lang", "empty-link"), score=55)
        diff = self.engine.diff(earlier, later)
        self.assertEqual(diff.score_change, 5)
        self.assertEqual(diff.issues_fixed, ("missing-alt",))
        self.assertEqual(diff.new_issues, ("empty-link",))
        self.assertEqual(diff.fixed_names, ("Images missing alt text",))
        self.assertEqual(diff.new_names, ("Links with no accessible text",))
        self.assertEqual((diff.issues_fixed_count, diff.new_issues_count), (1, 1))

    def test_identical_issue_sets(self):
        a = make_record(issue_ids=("missing-alt",), score=60)
        b = make_record(issue_ids=("missing-alt",), score=60)
        diff = self.engine.diff(a, b)
        self.assertEqual((diff.issues_fixed_count, diff.new_issues_count, diff.score_change), (0, 0, 0))

    def test_history_attaches_diff_to_all_but_first(self):
        records = [make_record(issue_ids=("missing-alt",), minutes=n) for n in range(3)]
        history = self.engine.history(records)
        self.assertIsNone(history[0].diff)
        self.assertIsNotNone(history[1].diff)
        self.assertEqual(history[2].issue_ids, ("missing-alt",))
        self.assertEqual(self.engine.latest_diff(records), history[-1].diff)

    def test_data_points(self):
        record = make_record(issue_ids=("missing-alt",), pass_ids=("missing-lang",))
        (point,) = self.engine.data_points([record])
        self.assertEqual((point.score, point.issues, point.critical, point.passed), (50, 1, 1, 1))


if __name__ == "__main__":
    unittest.main()
