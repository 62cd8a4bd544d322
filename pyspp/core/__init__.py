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

"""Core GNSS Processing Module.

This module provides fundamental components for GNSS data processing:

- **Constants**: physical and WGS84 constants, satellite system identifiers
- **Data Structures**: satellite identifiers, coordinates, epoch records,
  broadcast ephemerides, linear systems and positioning solutions
- **Time**: GPS week / time of week handling
- **Errors**: classification of positioning failures

Example Usage:
    >>> from pyspp.core import *
    >>>
    >>> sat = SatelliteId.from_str('G05')
    >>> t = GNSSTime.from_datetime(datetime(2024, 1, 7, 1, 0, 0))
    >>> t.tow
    3600.0
"""

from .constants import *
from .data_structures import *
from .errors import *
from .time import *
