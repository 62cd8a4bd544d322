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

"""Core data structures for GNSS processing"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional, Sequence

import numpy as np

from .constants import (CLIGHT, EPS_MISSING, OMGE, SOLQ_NONE, SYS_NONE,
                        WEEK_SECONDS, char2sys)
from .time import GNSSTime


@dataclass(frozen=True, order=True)
class SatelliteId:
    """Satellite identifier made of a system character and a PRN number.

    Attributes
    ----------
    system : str
        One-letter system code ('G' for GPS, 'R', 'E', 'C', 'J', 'S')
    prn : int
        PRN / slot number within the system
    """
    system: str
    prn: int

    @classmethod
    def from_str(cls, text: str) -> 'SatelliteId':
        """Parse identifiers such as ``'G05'`` or ``'G 5'``.

        Raises
        ------
        ValueError
            If the text is not a system character followed by a number
        """
        text = text.strip()
        if len(text) < 2 or not text[0].isalpha():
            raise ValueError(f"Invalid satellite identifier: {text!r}")
        try:
            prn = int(text[1:].strip())
        except ValueError:
            raise ValueError(f"Invalid satellite identifier: {text!r}") from None
        return cls(text[0].upper(), prn)

    @property
    def sys(self) -> int:
        """System ID bit flag (SYS_GPS, ...)"""
        return char2sys(self.system)

    def is_supported(self, systems: Iterable[str]) -> bool:
        """True if this satellite belongs to one of ``systems``"""
        return self.sys != SYS_NONE and self.system in systems

    def __str__(self):
        return f"{self.system}{self.prn:02d}"


class Coordinates:
    """Immutable ECEF position with geodetic and local-level views.

    Parameters
    ----------
    x, y, z : float
        ECEF coordinates in meters
    """

    __slots__ = ('_xyz',)

    def __init__(self, x: float, y: float, z: float):
        xyz = np.array([x, y, z], dtype=float)
        xyz.setflags(write=False)
        object.__setattr__(self, '_xyz', xyz)

    def __setattr__(self, name, value):
        raise AttributeError("Coordinates are immutable")

    @classmethod
    def from_xyz(cls, xyz: Sequence[float]) -> 'Coordinates':
        return cls(xyz[0], xyz[1], xyz[2])

    @classmethod
    def from_llh(cls, llh: Sequence[float]) -> 'Coordinates':
        """Build from geodetic [lat (rad), lon (rad), height (m)]"""
        from ..coordinate import llh2ecef
        return cls.from_xyz(llh2ecef(np.asarray(llh, dtype=float)))

    @property
    def xyz(self) -> np.ndarray:
        """ECEF coordinates as a read-only array"""
        return self._xyz

    @property
    def llh(self) -> np.ndarray:
        """Geodetic coordinates [lat, lon, height] (radians, meters)"""
        from ..coordinate import ecef2llh
        return ecef2llh(self._xyz)

    def to_neu(self, reference: 'Coordinates') -> np.ndarray:
        """North-East-Up vector of this point relative to ``reference``"""
        from ..coordinate import ecef2neu
        return ecef2neu(self._xyz, reference.llh, reference.xyz)

    def distance_to(self, other: 'Coordinates') -> float:
        return float(np.linalg.norm(self._xyz - other.xyz))

    def __iter__(self):
        return iter(self._xyz.tolist())

    def __eq__(self, other):
        if not isinstance(other, Coordinates):
            return NotImplemented
        return bool(np.array_equal(self._xyz, other.xyz))

    def __hash__(self):
        return hash(tuple(self._xyz.tolist()))

    def __repr__(self):
        x, y, z = self._xyz
        return f"Coordinates({x:.4f}, {y:.4f}, {z:.4f})"


@dataclass(frozen=True)
class EpochRecord:
    """Observations of all retained satellites at one receiver epoch.

    The per-satellite sequences are parallel: index ``i`` of every sequence
    refers to ``sats[i]``. A pseudorange below ``EPS_MISSING`` means the
    satellite was not observed on that signal.

    Attributes
    ----------
    time : datetime
        Receiver time of the epoch (GPS time scale)
    status_flag : int
        Epoch flag from the record header (0 = OK)
    declared_count : int
        Satellite count declared in the record header, before system filtering
    sats : tuple[SatelliteId, ...]
    c1c, c2p : tuple[float, ...]
        L1 C/A and L2 P pseudoranges (m)
    l1c, l2p : tuple[float, ...]
        L1 and L2 carrier phases (cycles)
    """
    time: datetime
    status_flag: int
    declared_count: int
    sats: tuple = ()
    c1c: tuple = ()
    c2p: tuple = ()
    l1c: tuple = ()
    l2p: tuple = ()

    def __post_init__(self):
        n = len(self.sats)
        for name in ('c1c', 'c2p', 'l1c', 'l2p'):
            if len(getattr(self, name)) != n:
                raise ValueError(
                    f"{name} has {len(getattr(self, name))} values for {n} satellites")

    @classmethod
    def from_observations(cls, time: datetime, observations: Iterable,
                          status_flag: int = 0, declared_count: Optional[int] = None,
                          systems: Iterable[str] = ('G',)) -> 'EpochRecord':
        """Build a record from ``(sat, c1c, c2p, l1c, l2p)`` tuples.

        Satellites outside ``systems`` are dropped; ``sat`` may be a
        ``SatelliteId`` or its string form.
        """
        systems = tuple(systems)
        rows = []
        total = 0
        for sat, c1c, c2p, l1c, l2p in observations:
            total += 1
            if not isinstance(sat, SatelliteId):
                sat = SatelliteId.from_str(sat)
            if not sat.is_supported(systems):
                continue
            rows.append((sat, float(c1c), float(c2p), float(l1c), float(l2p)))

        columns = list(zip(*rows)) if rows else [(), (), (), (), ()]
        return cls(time=time,
                   status_flag=status_flag,
                   declared_count=total if declared_count is None else declared_count,
                   sats=tuple(columns[0]),
                   c1c=tuple(columns[1]),
                   c2p=tuple(columns[2]),
                   l1c=tuple(columns[3]),
                   l2p=tuple(columns[4]))

    @property
    def gps_time(self) -> GNSSTime:
        return GNSSTime.from_datetime(self.time)

    @property
    def num_sats(self) -> int:
        return len(self.sats)

    def has_pseudorange(self, index: int) -> bool:
        return self.c1c[index] >= EPS_MISSING


@dataclass
class ObservationHeader:
    """Observation file header.

    Attributes
    ----------
    lines : list[str]
        Header lines verbatim, including the END OF HEADER line
    approx_position : Coordinates or None
        APPROX POSITION XYZ, if present
    version : str
        RINEX version string, if present
    marker_name : str
    """
    lines: list = field(default_factory=list)
    approx_position: Optional[Coordinates] = None
    version: str = ''
    marker_name: str = ''


@dataclass
class ObservationData:
    """Parsed observation file: header plus epoch records in file order"""
    header: ObservationHeader = field(default_factory=ObservationHeader)
    records: list = field(default_factory=list)

    def __len__(self):
        return len(self.records)

    def __iter__(self):
        return iter(self.records)


@dataclass
class NavigationRecord:
    """GPS broadcast ephemeris of one satellite.

    Times are GPS seconds of week; ``week`` is the GPS week of ``toe``.

    Attributes
    ----------
    sat : SatelliteId
    week : int
        GPS week of toe
    toe, toc : float
        Reference times of ephemeris and clock (s of week)
    a0, a1, a2 : float
        Clock bias (s), drift (s/s) and drift rate (s/s^2)
    sqrt_a : float
        Square root of the semi-major axis (m^1/2)
    e, i0, omega0, omega, m0 : float
        Eccentricity and angles (rad)
    delta_n, omega_dot, idot : float
        Rates (rad/s)
    crc, crs, cuc, cus, cic, cis : float
        Harmonic correction terms (m, rad)
    omega_e : float
        Earth rotation rate used for the transit-time correction (rad/s)
    """
    sat: SatelliteId
    week: int = 0
    toe: float = 0.0
    toc: float = 0.0
    a0: float = 0.0
    a1: float = 0.0
    a2: float = 0.0
    sqrt_a: float = 0.0
    e: float = 0.0
    i0: float = 0.0
    omega0: float = 0.0
    omega: float = 0.0
    m0: float = 0.0
    delta_n: float = 0.0
    omega_dot: float = 0.0
    idot: float = 0.0
    crc: float = 0.0
    crs: float = 0.0
    cuc: float = 0.0
    cus: float = 0.0
    cic: float = 0.0
    cis: float = 0.0
    tgd: float = 0.0
    iode: int = 0
    svh: int = 0
    sva: int = 0
    omega_e: float = OMGE

    @property
    def A(self) -> float:
        """Semi-major axis (m)"""
        return self.sqrt_a * self.sqrt_a

    @property
    def toe_seconds(self) -> float:
        """toe as GPS seconds since the GPS epoch"""
        return self.week * WEEK_SECONDS + self.toe


@dataclass
class NavigationData:
    """Container of broadcast ephemerides acting as the ephemeris lookup.

    Attributes
    ----------
    records : list[NavigationRecord]
    max_age : float or None
        If set, records whose toe is farther than this from the requested
        time (s) are ignored
    """
    records: list = field(default_factory=list)
    max_age: Optional[float] = None

    def find_record(self, time: GNSSTime, sat: SatelliteId) -> Optional[NavigationRecord]:
        """Find the record of ``sat`` whose toe is closest to ``time``.

        Parameters
        ----------
        time : GNSSTime
            Requested time
        sat : SatelliteId

        Returns
        -------
        NavigationRecord or None
            Closest record, or None if the satellite has none (within
            ``max_age`` when set)
        """
        t = time.to_gps_seconds()
        best = None
        min_dt = float('inf')
        for rec in self.records:
            if rec.sat != sat:
                continue
            dt = abs(t - rec.toe_seconds)
            if self.max_age is not None and dt > self.max_age:
                continue
            if dt < min_dt:
                min_dt = dt
                best = rec
        return best

    def satellites(self) -> list:
        """Sorted list of satellites with at least one record"""
        return sorted({rec.sat for rec in self.records})

    def sort_records(self):
        """Sort records by satellite, then by toe (in place)"""
        self.records.sort(key=lambda r: (r.sat, r.toe_seconds))

    def __len__(self):
        return len(self.records)


@dataclass
class LinearSystem:
    """Linearized observation equations of one outer iteration.

    Row ``i`` of ``design``, ``residuals``, ``weights`` and ``elevations``
    belongs to ``sats[i]``; rows follow the epoch's satellite order with the
    rejected satellites removed.

    Attributes
    ----------
    design : np.ndarray
        (n, 4) rows ``[dx/rho, dy/rho, dz/rho, 1]``
    residuals : np.ndarray
        (n,) observed minus computed range plus satellite clock (m)
    weights : np.ndarray
        (n,) ``sin(el)^2``
    elevations : np.ndarray
        (n,) elevation angles (rad)
    sats : list[SatelliteId]
    rejected : dict[SatelliteId, str]
        Disposed satellites and why ('missing', 'low_elevation', 'blunder')
    """
    design: np.ndarray
    residuals: np.ndarray
    weights: np.ndarray
    elevations: np.ndarray
    sats: list
    rejected: dict = field(default_factory=dict)

    @property
    def num_obs(self) -> int:
        return len(self.sats)


@dataclass
class Solution:
    """Single point positioning solution of one epoch.

    Attributes
    ----------
    time : GNSSTime
        Epoch time
    type : int
        Solution type (SOLQ_SINGLE on success)
    rr : np.ndarray
        Receiver position ECEF (m), shape (3,)
    dtr : float
        Receiver clock bias (s)
    qr : np.ndarray
        Cofactor matrix ``(A^T W A)^-1`` of [x, y, z, c*dtr], shape (4, 4)
    ns : int
        Number of satellites used
    iterations : int
        Outer iterations performed
    used_sats : list[SatelliteId]
    rejected : dict[SatelliteId, str]
        Satellites disposed in the final iteration
    residuals : np.ndarray
        Post-fit residuals of the final iteration (m)
    """
    time: Optional[GNSSTime] = None
    type: int = SOLQ_NONE
    rr: np.ndarray = field(default_factory=lambda: np.zeros(3))
    dtr: float = 0.0
    qr: np.ndarray = field(default_factory=lambda: np.zeros((4, 4)))
    ns: int = 0
    iterations: int = 0
    used_sats: list = field(default_factory=list)
    rejected: dict = field(default_factory=dict)
    residuals: np.ndarray = field(default_factory=lambda: np.zeros(0))

    @property
    def position(self) -> Coordinates:
        return Coordinates.from_xyz(self.rr)

    @property
    def clock_bias_m(self) -> float:
        """Receiver clock bias expressed as range (m)"""
        return self.dtr * CLIGHT

    def get_llh(self) -> np.ndarray:
        """Geodetic position [lat (rad), lon (rad), height (m)]"""
        from ..coordinate import ecef2llh
        return ecef2llh(self.rr)

    def get_neu(self, reference: Coordinates) -> np.ndarray:
        """Offset of the solution from ``reference`` in North-East-Up (m)"""
        return self.position.to_neu(reference)

    def dops(self) -> dict:
        """Dilution of precision from the cofactor matrix.

        Returns
        -------
        dict
            Keys 'gdop', 'pdop', 'tdop'. The cofactor matrix is weighted, so
            these are weighted DOPs.
        """
        q = np.diag(self.qr)
        return {
            'gdop': float(np.sqrt(np.sum(q))),
            'pdop': float(np.sqrt(np.sum(q[:3]))),
            'tdop': float(np.sqrt(q[3])),
        }
