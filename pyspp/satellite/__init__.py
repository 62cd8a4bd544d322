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

"""Satellite state model: broadcast orbit and clock"""

from .clock import compute_satellite_clock
from .satellite_position import (
    BroadcastOrbitModel,
    compute_satellite_position,
    earth_rotation_correction,
    to_cssrlib_eph,
)

__all__ = [
    'BroadcastOrbitModel', 'compute_satellite_clock', 'compute_satellite_position',
    'earth_rotation_correction', 'to_cssrlib_eph',
]
