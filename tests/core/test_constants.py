#!/usr/bin/env python3
"""Test suite for physical constants"""

import unittest

from pyspp.core.constants import (
    CLIGHT, D2R, E2_WGS84, FE_WGS84, HALF_WEEK, OMGE, R2D, RE_WGS84,
    SYS_GAL, SYS_GLO, SYS_GPS, SYS_NONE, WEEK_SECONDS, char2sys
)


class TestPhysicalConstants(unittest.TestCase):
    """Test physical constants values"""

    def test_speed_of_light(self):
        self.assertEqual(CLIGHT, 299792458.0)

    def test_earth_parameters(self):
        self.assertEqual(RE_WGS84, 6378137.0)
        self.assertAlmostEqual(FE_WGS84, 1.0 / 298.257223563, delta=1e-15)
        self.assertAlmostEqual(E2_WGS84, 6.69437999014e-3, delta=1e-12)
        self.assertEqual(OMGE, 7.2921151467e-5)

    def test_week(self):
        self.assertEqual(WEEK_SECONDS, 7 * 86400.0)
        self.assertEqual(HALF_WEEK * 2.0, WEEK_SECONDS)

    def test_unit_conversions(self):
        self.assertAlmostEqual(90.0 * D2R * R2D, 90.0)


class TestSystemIds(unittest.TestCase):

    def test_letters(self):
        self.assertEqual(char2sys('G'), SYS_GPS)
        self.assertEqual(char2sys('R'), SYS_GLO)
        self.assertEqual(char2sys('E'), SYS_GAL)

    def test_lowercase(self):
        self.assertEqual(char2sys('g'), SYS_GPS)

    def test_unknown(self):
        self.assertEqual(char2sys('X'), SYS_NONE)


if __name__ == '__main__':
    unittest.main()
