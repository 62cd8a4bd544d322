# Copyright 2024 inuex35
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Satellite position computation from broadcast ephemeris"""

import math

import numpy as np

import cssrlib.ephemeris
from cssrlib.gnss import Eph, gpst2time, id2sat

from ..core.constants import HALF_WEEK
from ..core.data_structures import NavigationRecord
from .clock import compute_satellite_clock


def _to_gtime(tow: float, week_hint: int, reference_tow: float):
    """GPS seconds of week to a cssrlib gtime_t in the week nearest the reference"""
    week = week_hint
    delta = tow - reference_tow
    if delta > HALF_WEEK:
        week -= 1
    elif delta < -HALF_WEEK:
        week += 1
    return gpst2time(week, tow)


def to_cssrlib_eph(eph: NavigationRecord) -> Eph:
    """Build the cssrlib ``Eph`` carrying the orbit and clock of ``eph``"""
    ceph = Eph(id2sat(str(eph.sat)))
    ceph.week = eph.week
    ceph.toe = gpst2time(eph.week, eph.toe)
    ceph.toc = _to_gtime(eph.toc, eph.week, eph.toe)
    ceph.toes = eph.toe
    ceph.af0 = eph.a0
    ceph.af1 = eph.a1
    ceph.af2 = eph.a2
    ceph.A = eph.A
    ceph.e = eph.e
    ceph.i0 = eph.i0
    ceph.OMG0 = eph.omega0
    ceph.omg = eph.omega
    ceph.M0 = eph.m0
    ceph.deln = eph.delta_n
    ceph.OMGd = eph.omega_dot
    ceph.idot = eph.idot
    ceph.crc = eph.crc
    ceph.crs = eph.crs
    ceph.cuc = eph.cuc
    ceph.cus = eph.cus
    ceph.cic = eph.cic
    ceph.cis = eph.cis
    ceph.tgd = eph.tgd
    ceph.iode = eph.iode
    ceph.svh = eph.svh
    ceph.sva = eph.sva
    return ceph


def compute_satellite_position(eph: NavigationRecord, time: float) -> np.ndarray:
    """
    Compute GPS satellite ECEF position from broadcast Keplerian elements

    The orbit is evaluated by ``cssrlib.ephemeris.eph2pos`` in the
    Earth-fixed frame at ``time``. The clock term cssrlib returns alongside
    is discarded; see ``compute_satellite_clock``.

    Parameters
    ----------
    eph : NavigationRecord
        Broadcast ephemeris
    time : float
        Signal transmission time (GPS seconds of week)

    Returns
    -------
    np.ndarray
        Satellite position in ECEF (m), shape (3,)

    Raises
    ------
    ValueError
        If the ephemeris has no orbit (semi-major axis of zero)
    """
    if eph.A <= 0.0:
        raise ValueError(f"Ephemeris of {eph.sat} has no orbit parameters")

    t_cssr = _to_gtime(time, eph.week, eph.toe)
    rs, _ = cssrlib.ephemeris.eph2pos(t_cssr, to_cssrlib_eph(eph))
    return np.asarray(rs, dtype=float)


def earth_rotation_correction(sat_pos: np.ndarray, angle: float) -> np.ndarray:
    """Rotate a satellite position about the Z axis by ``angle`` (rad)

    Transfers a position computed in the Earth-fixed frame at transmission
    time to the frame at reception time, the Earth having turned by
    ``angle = omega_e * travel_time`` in between.
    """
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)
    R = np.array([
        [cos_a, sin_a, 0.0],
        [-sin_a, cos_a, 0.0],
        [0.0, 0.0, 1.0],
    ])
    return R @ np.asarray(sat_pos, dtype=float)


class BroadcastOrbitModel:
    """Satellite state model backed by broadcast ephemeris.

    The solver only needs ``position(record, time)`` and
    ``clock(record, time)``; other models (precise orbits, simulators) can be
    substituted by providing the same two methods.
    """

    def position(self, eph: NavigationRecord, time: float) -> np.ndarray:
        return compute_satellite_position(eph, time)

    def clock(self, eph: NavigationRecord, time: float) -> float:
        return compute_satellite_clock(eph, time)
