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

"""GNSS Constants and System Parameters"""

import numpy as np

# Physical Constants
CLIGHT = 299792458.0  # speed of light (m/s)

# GNSS System IDs
SYS_NONE = 0x00   # invalid/unknown
SYS_GPS = 0x01    # GPS
SYS_GLO = 0x02    # GLONASS
SYS_GAL = 0x04    # Galileo
SYS_BDS = 0x08    # BeiDou
SYS_QZS = 0x10    # QZSS
SYS_SBS = 0x20    # SBAS

# Time System Parameters
GPST0 = [1980, 1, 6, 0, 0, 0]  # GPS time reference epoch
WEEK_SECONDS = 604800.0        # seconds in a GPS week
HALF_WEEK = 302400.0

# Earth Parameters (WGS84)
RE_WGS84 = 6378137.0           # earth semimajor axis (m)
FE_WGS84 = 1.0 / 298.257223563 # earth flattening
E2_WGS84 = FE_WGS84 * (2.0 - FE_WGS84)  # first eccentricity squared
OMGE = 7.2921151467E-5         # earth angular velocity (rad/s)

# Unit conversions
R2D = 180.0 / np.pi            # radians to degrees
D2R = np.pi / 180.0            # degrees to radians

# Observations smaller than this are treated as "not observed"
EPS_MISSING = 1E-6

# Solution Status
SOLQ_NONE = 0       # no solution
SOLQ_SINGLE = 5     # single point positioning


def char2sys(c):
    """Convert character to system ID"""
    charmap = {
        'G': SYS_GPS,
        'R': SYS_GLO,
        'E': SYS_GAL,
        'C': SYS_BDS,
        'J': SYS_QZS,
        'S': SYS_SBS
    }
    return charmap.get(c.upper(), SYS_NONE)
