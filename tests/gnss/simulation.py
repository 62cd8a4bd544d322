"""Synthetic single-epoch scenarios for solver tests

Satellites move on straight lines around a known receiver; pseudoranges are
generated with the same light-time, Earth rotation and clock model the solver
inverts, so a correct solver recovers the true position and clock exactly.
"""

from datetime import datetime

import numpy as np

from pyspp.coordinate import compute_rotation_matrix_enu, llh2ecef
from pyspp.core.constants import CLIGHT
from pyspp.core.data_structures import (EpochRecord, NavigationData,
                                        NavigationRecord, SatelliteId)
from pyspp.core.time import GNSSTime
from pyspp.satellite import compute_satellite_clock, earth_rotation_correction

EPOCH_TIME = datetime(2024, 1, 7, 1, 0, 0)
TRUE_LLH = np.array([np.radians(35.7), np.radians(139.7), 50.0])
TRUE_DTR = 1.0e-5
SAT_DISTANCE = 2.1e7

# (PRN, azimuth deg, elevation deg)
DEFAULT_SKY = [
    (2, 0.0, 70.0),
    (5, 60.0, 45.0),
    (7, 120.0, 30.0),
    (9, 180.0, 55.0),
    (13, 240.0, 25.0),
    (17, 300.0, 40.0),
    (20, 30.0, 15.0),
    (24, 270.0, 80.0),
]


class LinearOrbitModel:
    """Satellites on straight lines: ``p0 + v * (t - t0)``"""

    def __init__(self, t0):
        self.t0 = t0
        self.states = {}

    def add(self, sat, p0, v):
        self.states[sat] = (np.asarray(p0, dtype=float), np.asarray(v, dtype=float))

    def position(self, eph, t):
        p0, v = self.states[eph.sat]
        return p0 + v * (t - self.t0)

    def clock(self, eph, t):
        return compute_satellite_clock(eph, t)


def simulate_pseudorange(model, eph, rec, dtr, rx_tow):
    tau = 0.075
    for _ in range(20):
        t_tx = rx_tow - dtr - tau
        tau = np.linalg.norm(model.position(eph, t_tx) - rec) / CLIGHT
    t_tx = rx_tow - dtr - tau
    pos = model.position(eph, t_tx)
    dts = model.clock(eph, t_tx)

    pr = np.linalg.norm(pos - rec) + CLIGHT * (dtr - dts)
    for _ in range(10):
        rotated = earth_rotation_correction(pos, eph.omega_e * pr / CLIGHT)
        pr = np.linalg.norm(rotated - rec) + CLIGHT * (dtr - dts)
    return pr


class Scenario:
    """Receiver, satellites, ephemerides and one epoch of pseudoranges"""

    def __init__(self, sky=None, time=EPOCH_TIME, true_llh=TRUE_LLH, dtr=TRUE_DTR):
        self.time = time
        self.gps_time = GNSSTime.from_datetime(time)
        self.true_xyz = llh2ecef(true_llh)
        self.dtr = dtr
        self.model = LinearOrbitModel(self.gps_time.tow)
        self.records = []
        self.sats = []

        R = compute_rotation_matrix_enu(true_llh)
        for i, (prn, az, el) in enumerate(sky or DEFAULT_SKY):
            sat = SatelliteId('G', prn)
            az, el = np.radians(az), np.radians(el)
            enu = np.array([np.cos(el) * np.sin(az), np.cos(el) * np.cos(az), np.sin(el)])
            p0 = self.true_xyz + SAT_DISTANCE * (R.T @ enu)
            v = np.cross([0.0, 0.0, 1.0], p0)
            v = 3000.0 * v / np.linalg.norm(v)
            self.model.add(sat, p0, v)
            self.records.append(NavigationRecord(
                sat=sat,
                week=self.gps_time.week,
                toe=self.gps_time.tow,
                toc=self.gps_time.tow,
                a0=1.0e-4 * (1 + i) / 8,
                a1=1.0e-11,
                sqrt_a=np.sqrt(26560e3),
            ))
            self.sats.append(sat)

        self.pseudoranges = [
            simulate_pseudorange(self.model, rec, self.true_xyz, dtr, self.gps_time.tow)
            for rec in self.records
        ]

    @property
    def nav(self):
        return NavigationData(records=list(self.records))

    @property
    def approx_xyz(self):
        return self.true_xyz + np.array([100.0, -100.0, 100.0])

    def epoch(self, pseudoranges=None):
        prs = self.pseudoranges if pseudoranges is None else pseudoranges
        observations = [(sat, pr, 0.0, 0.0, 0.0) for sat, pr in zip(self.sats, prs)]
        return EpochRecord.from_observations(self.time, observations)
