#!/usr/bin/env python3
"""Test suite for epoch batch processing"""

import unittest

import numpy as np
from simulation import Scenario

from pyspp.core.data_structures import Coordinates, ObservationData, ObservationHeader
from pyspp.gnss.batch import RESULT_COLUMNS, process_epochs, summarize


class TestProcessEpochs(unittest.TestCase):

    def setUp(self):
        self.scenario = s = Scenario()
        short = [pr if i < 3 else 0.0 for i, pr in enumerate(s.pseudoranges)]
        self.epochs = [s.epoch(), s.epoch(short), s.epoch()]

    def test_one_row_per_epoch(self):
        s = self.scenario
        df = process_epochs(self.epochs, s.nav, s.approx_xyz, orbit_model=s.model)

        self.assertEqual(list(df.columns), RESULT_COLUMNS)
        self.assertEqual(len(df), 3)
        self.assertEqual(list(df['status']),
                         ['ok', 'insufficient_observations', 'ok'])
        self.assertEqual(df['week'].iloc[0], s.gps_time.week)
        self.assertAlmostEqual(df['tow'].iloc[0], 3600.0)

    def test_solved_rows(self):
        s = self.scenario
        df = process_epochs(self.epochs, s.nav, s.approx_xyz, orbit_model=s.model)
        row = df.iloc[0]

        np.testing.assert_allclose([row['x'], row['y'], row['z']], s.true_xyz, atol=1e-4)
        self.assertAlmostEqual(row['lat'], 35.7, places=6)
        self.assertAlmostEqual(row['lon'], 139.7, places=6)
        self.assertAlmostEqual(row['height'], 50.0, places=3)
        self.assertAlmostEqual(row['clock_bias'], s.dtr * 299792458.0, places=3)
        self.assertEqual(row['ns'], 8)
        self.assertEqual(row['message'], '')

        # Offset from the approximate position
        approx = Coordinates.from_xyz(s.approx_xyz)
        expected_neu = Coordinates.from_xyz(s.true_xyz).to_neu(approx)
        np.testing.assert_allclose([row['north'], row['east'], row['up']],
                                   expected_neu, atol=1e-4)

    def test_failed_rows(self):
        s = self.scenario
        df = process_epochs(self.epochs, s.nav, s.approx_xyz, orbit_model=s.model)
        row = df.iloc[1]

        self.assertTrue(np.isnan(row['x']))
        self.assertTrue(np.isnan(row['lat']))
        self.assertEqual(row['ns'], 0)
        self.assertIn('3 usable satellites', row['message'])

    def test_header_position(self):
        s = self.scenario
        header = ObservationHeader(approx_position=Coordinates.from_xyz(s.approx_xyz))
        obs = ObservationData(header=header, records=self.epochs[:1])

        df = process_epochs(obs, s.nav, orbit_model=s.model)
        np.testing.assert_allclose(df[['x', 'y', 'z']].iloc[0], s.true_xyz, atol=1e-4)

    def test_no_position(self):
        s = self.scenario
        with self.assertRaises(ValueError):
            process_epochs(ObservationData(records=self.epochs), s.nav, orbit_model=s.model)


class TestSummarize(unittest.TestCase):

    def test_summary(self):
        s = Scenario()
        short = [pr if i < 3 else 0.0 for i, pr in enumerate(s.pseudoranges)]
        df = process_epochs([s.epoch(), s.epoch(short)], s.nav, s.approx_xyz,
                            orbit_model=s.model)
        summary = summarize(df)

        self.assertEqual(summary['epochs'], 2)
        self.assertEqual(summary['solved'], 1)
        self.assertEqual(summary['status_counts'],
                         {'ok': 1, 'insufficient_observations': 1})
        np.testing.assert_allclose(summary['mean_position'], s.true_xyz, atol=1e-4)
        np.testing.assert_allclose(summary['std_neu'], 0.0, atol=1e-9)

    def test_nothing_solved(self):
        s = Scenario()
        short = [pr if i < 2 else 0.0 for i, pr in enumerate(s.pseudoranges)]
        df = process_epochs([s.epoch(short)], s.nav, s.approx_xyz, orbit_model=s.model)
        summary = summarize(df)

        self.assertEqual(summary['solved'], 0)
        self.assertNotIn('mean_neu', summary)


if __name__ == '__main__':
    unittest.main()
