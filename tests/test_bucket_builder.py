import unittest
from datetime import date

from fulfillment_engine.bucket_builder import (
    assign_to_bucket,
    bucket_index,
    build_month_buckets,
    build_week_buckets,
)


class TestMonthBuckets(unittest.TestCase):
    def test_starts_at_anchor_month(self):
        buckets = build_month_buckets(date(2026, 4, 11), 3)
        self.assertEqual([b.label for b in buckets], ["Apr 2026", "May 2026", "Jun 2026"])
        self.assertEqual(buckets[0].start, date(2026, 4, 1))
        self.assertEqual(buckets[-1].end, date(2026, 7, 1))

    def test_buckets_are_contiguous(self):
        buckets = build_month_buckets(date(2026, 11, 20), 4)
        for previous, current in zip(buckets, buckets[1:]):
            self.assertEqual(previous.end, current.start)
        self.assertEqual(buckets[2].label, "Jan 2027")

    def test_assignment_is_half_open(self):
        buckets = build_month_buckets(date(2026, 4, 1), 2)
        self.assertEqual(bucket_index(date(2026, 4, 30), buckets), 0)
        self.assertEqual(bucket_index(date(2026, 5, 1), buckets), 1)
        self.assertIsNone(bucket_index(date(2026, 6, 1), buckets))
        self.assertIsNone(bucket_index(date(2026, 3, 31), buckets))
        self.assertIsNone(assign_to_bucket(None, buckets))
        self.assertEqual(assign_to_bucket(date(2026, 5, 9), buckets).label, "May 2026")

    def test_zero_count(self):
        self.assertEqual(build_month_buckets(date(2026, 4, 1), 0), [])


class TestWeekBuckets(unittest.TestCase):
    def test_last_week_contains_anchor(self):
        buckets = build_week_buckets(date(2026, 4, 11), 3)
        self.assertEqual([b.label for b in buckets], ["23 Mar", "30 Mar", "6 Apr"])
        self.assertTrue(buckets[-1].contains(date(2026, 4, 11)))
        self.assertEqual(buckets[0].start.weekday(), 0)


if __name__ == "__main__":
    unittest.main()
