#!/usr/bin/env python3
"""Test suite for GPS time handling"""

import unittest
from datetime import datetime

from pyspp.core.time import (GNSSTime, gps_seconds_to_week_tow, timediff,
                             week_tow_to_gps_seconds)


class TestGNSSTime(unittest.TestCase):

    def test_from_datetime(self):
        """2024-01-07 is the first day of GPS week 2296"""
        t = GNSSTime.from_datetime(datetime(2024, 1, 7, 1, 0, 0))
        self.assertEqual(t.week, 2296)
        self.assertAlmostEqual(t.tow, 3600.0)

    def test_fractional_seconds(self):
        t = GNSSTime.from_datetime(datetime(2024, 1, 9, 0, 0, 30, 500000))
        self.assertAlmostEqual(t.tow, 2 * 86400 + 30.5)

    def test_datetime_round_trip(self):
        dt = datetime(2023, 6, 15, 12, 34, 56)
        self.assertEqual(GNSSTime.from_datetime(dt).to_datetime(), dt)

    def test_normalization(self):
        t = GNSSTime(10, 604800.0 + 5.0)
        self.assertEqual((t.week, t.tow), (11, 5.0))
        t = GNSSTime(10, -5.0)
        self.assertEqual((t.week, t.tow), (9, 604795.0))

    def test_arithmetic(self):
        t = GNSSTime(2296, 604790.0)
        later = t + 20.0
        self.assertEqual((later.week, later.tow), (2297, 10.0))
        self.assertAlmostEqual(later - t, 20.0)
        self.assertEqual(later - 20.0, t)

    def test_ordering(self):
        self.assertLess(GNSSTime(2296, 10.0), GNSSTime(2296, 11.0))
        self.assertLess(GNSSTime(2296, 604000.0), GNSSTime(2297, 0.0))

    def test_gps_seconds(self):
        t = GNSSTime.from_gps_seconds(week_tow_to_gps_seconds(2296, 3600.0))
        self.assertEqual((t.week, t.tow), (2296, 3600.0))
        self.assertEqual(gps_seconds_to_week_tow(604800.0 + 1.5), (1, 1.5))

    def test_negative_gps_seconds(self):
        with self.assertRaises(ValueError):
            gps_seconds_to_week_tow(-1.0)


class TestTimediff(unittest.TestCase):

    def test_plain(self):
        self.assertEqual(timediff(3600.0, 3000.0), 600.0)

    def test_week_rollover(self):
        """Times of week across the week boundary"""
        self.assertEqual(timediff(10.0, 604790.0), 20.0)
        self.assertEqual(timediff(604790.0, 10.0), -20.0)


if __name__ == '__main__':
    unittest.main()
