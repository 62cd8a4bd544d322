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

"""Satellite clock computation from broadcast parameters"""

from ..core.data_structures import NavigationRecord
from ..core.time import timediff


def compute_satellite_clock(eph: NavigationRecord, time: float) -> float:
    """
    Compute satellite clock bias from the broadcast polynomial

    Parameters:
    -----------
    eph : NavigationRecord
        Satellite ephemeris
    time : float
        Time of interest (GPS seconds of week)

    Returns:
    --------
    dts : float
        Satellite clock bias (s), ``a0 + a1*dt + a2*dt^2`` with ``dt = time - toc``
    """
    dt = timediff(time, eph.toc)
    return eph.a0 + eph.a1 * dt + eph.a2 * dt**2

