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

"""Coordinate transformation utilities"""

from typing import Optional

import numpy as np

from ..core.constants import E2_WGS84, RE_WGS84


def ecef2llh(xyz: np.ndarray) -> np.ndarray:
    """Convert ECEF coordinates to geodetic coordinates

    Converts Earth-Centered Earth-Fixed (ECEF) Cartesian coordinates
    to geodetic coordinates using an iterative algorithm.

    Parameters
    ----------
    xyz : np.ndarray
        ECEF coordinates [x, y, z] in meters

    Returns
    -------
    np.ndarray
        Geodetic coordinates [lat, lon, height] where:
        - lat: latitude in radians (-π/2 to π/2)
        - lon: longitude in radians (-π to π)
        - height: height above WGS84 ellipsoid in meters

    Notes
    -----
    Uses the WGS84 ellipsoid parameters. The height is evaluated with the
    form that stays well conditioned at the poles.

    Examples
    --------
    >>> import numpy as np
    >>> ecef = np.array([4193790.895, 454436.195, 4768166.813])
    >>> llh = ecef2llh(ecef)
    >>> lat_deg, lon_deg = np.degrees(llh[0]), np.degrees(llh[1])
    """
    x, y, z = xyz[0], xyz[1], xyz[2]

    lon = np.arctan2(y, x)
    p = np.sqrt(x**2 + y**2)

    # Iterate latitude from the geocentric guess
    lat = np.arctan2(z, p * (1.0 - E2_WGS84))
    for _ in range(10):
        sin_lat = np.sin(lat)
        N = RE_WGS84 / np.sqrt(1.0 - E2_WGS84 * sin_lat**2)
        lat_new = np.arctan2(z + E2_WGS84 * N * sin_lat, p)
        if abs(lat_new - lat) < 1e-14:
            lat = lat_new
            break
        lat = lat_new

    sin_lat = np.sin(lat)
    h = p * np.cos(lat) + z * sin_lat - RE_WGS84 * np.sqrt(1.0 - E2_WGS84 * sin_lat**2)

    return np.array([lat, lon, h])


def llh2ecef(llh: np.ndarray) -> np.ndarray:
    """Convert geodetic coordinates to ECEF coordinates

    Parameters
    ----------
    llh : np.ndarray
        Geodetic coordinates [lat, lon, height] where:
        - lat: latitude in radians
        - lon: longitude in radians
        - height: height above WGS84 ellipsoid in meters

    Returns
    -------
    np.ndarray
        ECEF coordinates [x, y, z] in meters
    """
    lat, lon, h = llh[0], llh[1], llh[2]

    sin_lat = np.sin(lat)
    cos_lat = np.cos(lat)
    sin_lon = np.sin(lon)
    cos_lon = np.cos(lon)

    N = RE_WGS84 / np.sqrt(1.0 - E2_WGS84 * sin_lat**2)

    x = (N + h) * cos_lat * cos_lon
    y = (N + h) * cos_lat * sin_lon
    z = (N * (1.0 - E2_WGS84) + h) * sin_lat

    return np.array([x, y, z])


def compute_rotation_matrix_enu(llh: np.ndarray) -> np.ndarray:
    """Compute rotation matrix from ECEF to ENU coordinates

    Parameters
    ----------
    llh : np.ndarray
        Geodetic coordinates [lat, lon, height] (radians, meters). The height
        is not used.

    Returns
    -------
    np.ndarray
        Rotation matrix (3x3); ``v_enu = R @ v_ecef``
    """
    lat, lon = llh[0], llh[1]
    sin_lat = np.sin(lat)
    cos_lat = np.cos(lat)
    sin_lon = np.sin(lon)
    cos_lon = np.cos(lon)

    return np.array([
        [-sin_lon, cos_lon, 0],
        [-sin_lat * cos_lon, -sin_lat * sin_lon, cos_lat],
        [cos_lat * cos_lon, cos_lat * sin_lon, sin_lat]
    ])


def compute_rotation_matrix_neu(llh: np.ndarray) -> np.ndarray:
    """Rotation matrix from ECEF to North-East-Up; ``v_neu = R @ v_ecef``"""
    R = compute_rotation_matrix_enu(llh)
    return R[[1, 0, 2], :]


def ecef2enu(xyz: np.ndarray, org_llh: np.ndarray,
             org_xyz: Optional[np.ndarray] = None) -> np.ndarray:
    """Convert ECEF to local ENU coordinates

    Parameters
    ----------
    xyz : np.ndarray
        ECEF coordinates [x, y, z] in meters
    org_llh : np.ndarray
        Origin geodetic coordinates [lat, lon, height] (radians, meters)
    org_xyz : np.ndarray, optional
        Origin in ECEF, if already known (avoids a round trip through llh)

    Returns
    -------
    np.ndarray
        Local ENU coordinates [e, n, u] in meters
    """
    if org_xyz is None:
        org_xyz = llh2ecef(org_llh)
    return compute_rotation_matrix_enu(org_llh) @ (np.asarray(xyz, dtype=float) - org_xyz)


def enu2ecef(enu: np.ndarray, org_llh: np.ndarray) -> np.ndarray:
    """Convert local ENU to ECEF coordinates (inverse of ecef2enu)"""
    org_xyz = llh2ecef(org_llh)
    return org_xyz + compute_rotation_matrix_enu(org_llh).T @ np.asarray(enu, dtype=float)


def ecef2neu(xyz: np.ndarray, org_llh: np.ndarray,
             org_xyz: Optional[np.ndarray] = None) -> np.ndarray:
    """Convert ECEF to local North-East-Up coordinates relative to an origin"""
    enu = ecef2enu(xyz, org_llh, org_xyz)
    return np.array([enu[1], enu[0], enu[2]])


def neu2ecef(neu: np.ndarray, org_llh: np.ndarray) -> np.ndarray:
    """Convert local North-East-Up to ECEF coordinates"""
    return enu2ecef(np.array([neu[1], neu[0], neu[2]]), org_llh)


def satazel(sat_pos: np.ndarray, rcv_pos: np.ndarray,
            rcv_llh: Optional[np.ndarray] = None) -> tuple[float, float]:
    """Satellite azimuth and elevation seen from a receiver

    Parameters
    ----------
    sat_pos : np.ndarray
        Satellite ECEF position (m)
    rcv_pos : np.ndarray
        Receiver ECEF position (m), origin of the local frame
    rcv_llh : np.ndarray, optional
        Receiver geodetic position; computed from ``rcv_pos`` if omitted

    Returns
    -------
    az : float
        Azimuth in radians, clockwise from north, in [0, 2π)
    el : float
        Elevation in radians, in [-π/2, π/2]
    """
    if rcv_llh is None:
        rcv_llh = ecef2llh(rcv_pos)
    neu = ecef2neu(sat_pos, rcv_llh, rcv_pos)
    r = np.linalg.norm(neu)
    if r == 0.0:
        return 0.0, np.pi / 2

    az = np.arctan2(neu[1], neu[0])
    if az < 0:
        az += 2 * np.pi
    el = np.arcsin(neu[2] / r)
    return float(az), float(el)
