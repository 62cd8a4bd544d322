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

"""GPS Time representation and conversions"""

from datetime import datetime, timedelta
from typing import Union

from .constants import GPST0, HALF_WEEK, WEEK_SECONDS


class GNSSTime:
    """GPS time as week number and time of week

    Observation epochs are recorded as calendar time in the GPS time scale;
    this class carries them as (week, tow) so that the solver can work with
    seconds of week.
    """

    def __init__(self, week: int = 0, tow: float = 0.0):
        """
        Initialize GPS time

        Parameters:
        -----------
        week : int
            GPS week number
        tow : float
            Time of week in seconds
        """
        self.week = int(week)
        self.tow = float(tow)

        # Normalize TOW to [0, 604800)
        while self.tow >= WEEK_SECONDS:
            self.week += 1
            self.tow -= WEEK_SECONDS
        while self.tow < 0:
            self.week -= 1
            self.tow += WEEK_SECONDS

    @classmethod
    def from_datetime(cls, dt: datetime) -> 'GNSSTime':
        """Create GNSSTime from a calendar datetime in GPS time scale"""
        delta = dt - datetime(*GPST0)
        weeks = delta.days // 7
        tow = (delta.days % 7) * 86400 + delta.seconds + delta.microseconds * 1e-6
        return cls(weeks, tow)

    @classmethod
    def from_gps_seconds(cls, gps_seconds: float) -> 'GNSSTime':
        """Create GNSSTime from GPS seconds since GPS epoch"""
        week = int(gps_seconds // WEEK_SECONDS)
        tow = gps_seconds - week * WEEK_SECONDS
        return cls(week, tow)

    def to_datetime(self) -> datetime:
        """Convert to datetime object"""
        return datetime(*GPST0) + timedelta(weeks=self.week, seconds=self.tow)

    def to_gps_seconds(self) -> float:
        """Convert to GPS seconds since GPS epoch"""
        return self.week * WEEK_SECONDS + self.tow

    def add_seconds(self, seconds: float) -> 'GNSSTime':
        """Add seconds to time"""
        return GNSSTime(self.week, self.tow + seconds)

    def __add__(self, seconds: float) -> 'GNSSTime':
        if isinstance(seconds, (int, float)):
            return self.add_seconds(seconds)
        raise TypeError(f"Cannot add {type(seconds)} to GNSSTime")

    def __sub__(self, other: Union['GNSSTime', float]) -> Union[float, 'GNSSTime']:
        """Subtract time (giving seconds) or seconds (giving time)"""
        if isinstance(other, GNSSTime):
            return (self.week - other.week) * WEEK_SECONDS + (self.tow - other.tow)
        if isinstance(other, (int, float)):
            return self.add_seconds(-other)
        raise TypeError(f"Cannot subtract {type(other)} from GNSSTime")

    def __lt__(self, other: 'GNSSTime') -> bool:
        if not isinstance(other, GNSSTime):
            return NotImplemented
        return (self.week, self.tow) < (other.week, other.tow)

    def __le__(self, other: 'GNSSTime') -> bool:
        if not isinstance(other, GNSSTime):
            return NotImplemented
        return (self.week, self.tow) <= (other.week, other.tow)

    def __eq__(self, other) -> bool:
        if not isinstance(other, GNSSTime):
            return NotImplemented
        return self.week == other.week and abs(self.tow - other.tow) < 1e-9

    def __hash__(self):
        return hash((self.week, round(self.tow, 6)))

    def __str__(self):
        return f"GPS Week: {self.week}, TOW: {self.tow:.3f}"

    def __repr__(self):
        return f"GNSSTime({self.week}, {self.tow})"


def timediff(time: float, tref: float) -> float:
    """Difference of two times of week, accounting for week rollover

    Parameters:
    -----------
    time, tref : float
        Seconds of week

    Returns:
    --------
    float
        ``time - tref`` folded into [-302400, 302400]
    """
    dt = time - tref
    if dt > HALF_WEEK:
        dt -= WEEK_SECONDS
    elif dt < -HALF_WEEK:
        dt += WEEK_SECONDS
    return dt


def gps_seconds_to_week_tow(gps_seconds: float) -> tuple:
    """
    Convert GPS seconds to GPS week number and time of week

    Parameters:
    -----------
    gps_seconds : float
        GPS seconds since GPS epoch (Jan 6, 1980 00:00:00)

    Returns:
    --------
    tuple : (week, tow)
    """
    if gps_seconds < 0:
        raise ValueError(f"GPS seconds must be non-negative, got {gps_seconds}")
    t = GNSSTime.from_gps_seconds(gps_seconds)
    return t.week, t.tow


def week_tow_to_gps_seconds(week: int, tow: float) -> float:
    """Convert GPS week and time of week to GPS seconds"""
    return week * WEEK_SECONDS + tow
