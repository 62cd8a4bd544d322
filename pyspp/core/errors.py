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

"""Positioning failure classification.

Every failure of the epoch solver is fatal for that epoch and is reported as
one of three causes. ``SolveStatus`` is the tag recorded in batch results; the
exception classes carry the same tag plus the details needed to diagnose it.
"""

from enum import Enum
from typing import Optional


class SolveStatus(Enum):
    """Outcome of solving one epoch"""
    OK = "ok"
    CONVERGENCE_FAILURE = "convergence_failure"
    MISSING_EPHEMERIS = "missing_ephemeris"
    INSUFFICIENT_OBSERVATIONS = "insufficient_observations"


class PositioningError(Exception):
    """Base class for solver failures"""

    status = None

    def __init__(self, message: str, time=None):
        super().__init__(message)
        self.time = time


class ConvergenceError(PositioningError):
    """An iteration cap was reached before its tolerance was met

    ``loop`` is ``"outer"`` for the least-squares iteration and ``"inner"``
    for the signal transmission-time iteration.
    """

    status = SolveStatus.CONVERGENCE_FAILURE

    def __init__(self, loop: str, iterations: int, time=None, sat=None):
        where = f" for {sat}" if sat is not None else ""
        super().__init__(
            f"{loop} iteration did not converge within {iterations} iterations{where}",
            time)
        self.loop = loop
        self.iterations = iterations
        self.sat = sat


class MissingEphemerisError(PositioningError):
    """No navigation record exists for a satellite in the epoch"""

    status = SolveStatus.MISSING_EPHEMERIS

    def __init__(self, sat, time=None):
        super().__init__(f"no ephemeris for {sat}", time)
        self.sat = sat


class InsufficientObservationsError(PositioningError):
    """Too few usable satellites remain to solve for position and clock"""

    status = SolveStatus.INSUFFICIENT_OBSERVATIONS

    def __init__(self, available: int, required: int = 4, time=None,
                 reason: Optional[str] = None):
        message = f"{available} usable satellites, {required} required"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, time)
        self.available = available
        self.required = required
