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

"""Coordinate transformation utilities

Conversions between ECEF, WGS84 geodetic and local-level (ENU / NEU)
frames, and satellite azimuth/elevation.
"""

from .transforms import (
    compute_rotation_matrix_enu,
    compute_rotation_matrix_neu,
    ecef2enu,
    ecef2llh,
    ecef2neu,
    enu2ecef,
    llh2ecef,
    neu2ecef,
    satazel,
)

__all__ = [
    'ecef2llh', 'llh2ecef', 'ecef2enu', 'enu2ecef', 'ecef2neu', 'neu2ecef',
    'compute_rotation_matrix_enu', 'compute_rotation_matrix_neu', 'satazel',
]
