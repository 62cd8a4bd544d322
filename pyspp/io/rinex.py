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

"""RINEX navigation files through cssrlib.rinex."""

from __future__ import annotations

import logging
import math
from typing import Iterable, Optional

from cssrlib.gnss import Nav, sat2id, time2gpst
from cssrlib.rinex import rnxdec

from ..core.data_structures import NavigationData, NavigationRecord, SatelliteId

logger = logging.getLogger(__name__)


def eph_from_cssrlib(eph) -> NavigationRecord:
    """Convert a cssrlib ``Eph`` into a ``NavigationRecord``."""

    week, toe = time2gpst(eph.toe)
    _, toc = time2gpst(eph.toc)

    return NavigationRecord(
        sat=SatelliteId.from_str(sat2id(eph.sat)),
        week=int(week),
        toe=float(toe),
        toc=float(toc),
        a0=float(eph.f0),
        a1=float(eph.f1),
        a2=float(eph.f2),
        sqrt_a=math.sqrt(eph.A) if eph.A > 0 else 0.0,
        e=float(eph.e),
        i0=float(eph.i0),
        omega0=float(eph.OMG0),
        omega=float(eph.omg),
        m0=float(eph.M0),
        delta_n=float(eph.deln),
        omega_dot=float(eph.OMGd),
        idot=float(eph.idot),
        crc=float(eph.crc),
        crs=float(eph.crs),
        cuc=float(eph.cuc),
        cus=float(eph.cus),
        cic=float(eph.cic),
        cis=float(eph.cis),
        tgd=float(getattr(eph, 'tgd', 0.0)),
        iode=int(getattr(eph, 'iode', 0)),
        svh=int(getattr(eph, 'svh', 0)),
        sva=int(getattr(eph, 'sva', 0)),
    )


def nav_from_cssrlib(nav: Nav, systems: Iterable[str] = ('G',),
                     max_age: Optional[float] = None) -> NavigationData:
    """Collect the broadcast ephemerides of ``systems`` from a cssrlib Nav."""

    systems = tuple(systems)
    records = []
    for eph in nav.eph:
        sat_id = sat2id(eph.sat)
        if not sat_id or sat_id[0] not in systems:
            continue
        records.append(eph_from_cssrlib(eph))

    data = NavigationData(records=records, max_age=max_age)
    data.sort_records()
    return data


def read_nav(filename: str, systems: Iterable[str] = ('G',),
             max_age: Optional[float] = None) -> NavigationData:
    """Decode a RINEX navigation file into ``NavigationData``."""

    nav = Nav()
    decoder = rnxdec()
    decoder.decode_nav(str(filename), nav, append=False)
    data = nav_from_cssrlib(nav, systems, max_age)
    logger.info("Read %d ephemerides for %d satellites from %s",
                len(data), len(data.satellites()), filename)
    return data
