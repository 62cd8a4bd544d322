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

"""Single Point Positioning (SPP) core implementation

Iterative weighted least squares on single-frequency pseudoranges of one
epoch. Each outer iteration linearizes the range equations at the current
receiver estimate::

    P - rho + c*dts = [(r - s)/rho, 1] . [dx, dy, dz, c*dtr]

with the satellite position ``s`` taken at signal transmission time (light-time
iteration) and rotated by the Earth's rotation during signal transit. Satellites
below the elevation mask or with gross range errors are left out of the system.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from numpy.linalg import norm
from scipy.linalg import LinAlgError, cho_factor, cho_solve

from ..config import SolverConfig
from ..coordinate import satazel
from ..core.constants import CLIGHT, D2R, SOLQ_SINGLE
from ..core.data_structures import (Coordinates, EpochRecord, LinearSystem,
                                    NavigationRecord, SatelliteId, Solution)
from ..core.errors import (ConvergenceError, InsufficientObservationsError,
                           MissingEphemerisError, PositioningError, SolveStatus)
from ..core.time import GNSSTime
from ..logger import LogLevel
from ..satellite import BroadcastOrbitModel, earth_rotation_correction

logger = logging.getLogger(__name__)

REJECT_MISSING = 'missing'
REJECT_ELEVATION = 'low_elevation'
REJECT_BLUNDER = 'blunder'


@dataclass
class SolveResult:
    """Tagged outcome of one epoch: a solution or the reason there is none"""
    status: SolveStatus
    solution: Optional[Solution] = None
    error: Optional[PositioningError] = None

    @property
    def ok(self) -> bool:
        return self.status is SolveStatus.OK


def transmission_position(orbit_model, eph: NavigationRecord, rx_tow: float,
                          dtr: float, rec_pos: np.ndarray, config: SolverConfig,
                          sat: Optional[SatelliteId] = None,
                          time: Optional[GNSSTime] = None) -> tuple[float, np.ndarray]:
    """
    Satellite position at signal transmission time (light-time iteration)

    Parameters
    ----------
    orbit_model : object
        Provides ``position(eph, t)``
    eph : NavigationRecord
    rx_tow : float
        Receiver time of reception (s of week)
    dtr : float
        Receiver clock bias (s)
    rec_pos : np.ndarray
        Receiver ECEF position estimate (m)
    config : SolverConfig

    Returns
    -------
    t_tx : float
        Transmission time (s of week)
    sat_pos : np.ndarray
        Satellite ECEF position at ``t_tx``, in the frame of ``t_tx``

    Raises
    ------
    ConvergenceError
        If the transmission time does not settle within the iteration cap
    """
    delay = config.signal_delay_seed
    t_prev = None
    for _ in range(config.max_light_time_iterations):
        t_tx = rx_tow - dtr - delay
        sat_pos = orbit_model.position(eph, t_tx)
        if t_prev is not None and abs(t_tx - t_prev) <= config.light_time_tolerance:
            return t_tx, sat_pos
        t_prev = t_tx
        delay = norm(sat_pos - rec_pos) / CLIGHT

    raise ConvergenceError('inner', config.max_light_time_iterations, time, sat)


def assemble_linear_system(epoch: EpochRecord, nav, approx: Coordinates,
                           rec_pos: np.ndarray, dtr: float,
                           config: SolverConfig, orbit_model=None,
                           approx_llh: Optional[np.ndarray] = None) -> LinearSystem:
    """
    Build the observation equations of one outer iteration

    Parameters
    ----------
    epoch : EpochRecord
    nav : object
        Ephemeris lookup providing ``find_record(time, sat)``
    approx : Coordinates
        Approximate receiver position; origin of the elevation computation
    rec_pos : np.ndarray
        Current receiver position estimate (m)
    dtr : float
        Current receiver clock bias (s)
    config : SolverConfig
    orbit_model : object, optional
        Satellite state model, ``BroadcastOrbitModel`` by default
    approx_llh : np.ndarray, optional
        Geodetic form of ``approx`` if already computed

    Returns
    -------
    LinearSystem
        Rows of the accepted satellites in epoch order

    Raises
    ------
    MissingEphemerisError
        If a satellite with a pseudorange has no ephemeris
    ConvergenceError
        If a light-time iteration fails
    """
    if orbit_model is None:
        orbit_model = BroadcastOrbitModel()
    if approx_llh is None:
        approx_llh = approx.llh

    time = epoch.gps_time
    rx_tow = time.tow
    mask = config.elevation_mask * D2R

    design = []
    residuals = []
    weights = []
    elevations = []
    sats = []
    rejected = {}

    for i, sat in enumerate(epoch.sats):
        pr = epoch.c1c[i]
        if not epoch.has_pseudorange(i):
            rejected[sat] = REJECT_MISSING
            continue

        eph = nav.find_record(time, sat)
        if eph is None:
            raise MissingEphemerisError(sat, time)

        t_tx, sat_pos = transmission_position(orbit_model, eph, rx_tow, dtr,
                                              rec_pos, config, sat, time)
        sat_pos = earth_rotation_correction(sat_pos, eph.omega_e * pr / CLIGHT)

        _, el = satazel(sat_pos, approx.xyz, approx_llh)
        if el <= mask:
            logger.log(LogLevel.TRACE.value, "%s rejected: elevation %.2f deg",
                       sat, np.rad2deg(el))
            rejected[sat] = REJECT_ELEVATION
            continue

        los = rec_pos - sat_pos
        rho = norm(los)
        if abs(rho - pr) > config.blunder_threshold:
            logger.debug("%s rejected: range %.1f m vs pseudorange %.1f m", sat, rho, pr)
            rejected[sat] = REJECT_BLUNDER
            continue

        dts = orbit_model.clock(eph, t_tx)

        design.append([los[0] / rho, los[1] / rho, los[2] / rho, 1.0])
        residuals.append(pr - rho + CLIGHT * dts)
        weights.append(np.sin(el)**2)
        elevations.append(el)
        sats.append(sat)

    return LinearSystem(
        design=np.array(design, dtype=float).reshape(-1, 4),
        residuals=np.array(residuals, dtype=float),
        weights=np.array(weights, dtype=float),
        elevations=np.array(elevations, dtype=float),
        sats=sats,
        rejected=rejected,
    )


def solve_normal_equations(system: LinearSystem) -> tuple[np.ndarray, np.ndarray]:
    """
    Weighted least squares ``(A^T W A)^-1 A^T W b``

    Returns
    -------
    dx : np.ndarray
        [dx, dy, dz, c*dtr] (m)
    Q : np.ndarray
        Cofactor matrix ``(A^T W A)^-1``

    Raises
    ------
    InsufficientObservationsError
        If the normal matrix is singular (degenerate geometry)
    """
    AtW = system.design.T * system.weights
    N = AtW @ system.design
    try:
        factor = cho_factor(N)
    except LinAlgError:
        raise InsufficientObservationsError(
            system.num_obs, reason='singular normal matrix') from None
    dx = cho_solve(factor, AtW @ system.residuals)
    Q = cho_solve(factor, np.eye(N.shape[0]))
    return dx, Q


def _rejection_summary(rejected: dict) -> str:
    counts = {}
    for reason in rejected.values():
        counts[reason] = counts.get(reason, 0) + 1
    return ', '.join(f"{n} {reason}" for reason, n in sorted(counts.items()))


def single_point_positioning(epoch: EpochRecord, nav,
                             approx_pos: Union[Coordinates, np.ndarray],
                             config: Optional[SolverConfig] = None,
                             orbit_model=None,
                             initial_clock_bias: float = 0.0) -> Solution:
    """
    Estimate the receiver position of one epoch by iterative least squares

    Parameters
    ----------
    epoch : EpochRecord
        Observations of the epoch
    nav : object
        Ephemeris lookup providing ``find_record(time, sat)``, e.g.
        ``NavigationData``
    approx_pos : Coordinates or np.ndarray
        Approximate receiver position (ECEF, m). Starting point of the
        iteration and origin of the elevation computation
    config : SolverConfig, optional
        Thresholds and iteration caps
    orbit_model : object, optional
        Satellite state model with ``position(eph, t)`` and ``clock(eph, t)``
    initial_clock_bias : float
        Starting receiver clock bias (s)

    Returns
    -------
    Solution
        Converged position, clock bias and statistics

    Raises
    ------
    MissingEphemerisError
        A satellite with a pseudorange has no ephemeris
    InsufficientObservationsError
        Fewer than ``config.min_satellites`` satellites are usable
    ConvergenceError
        The outer or a light-time iteration reached its cap
    """
    if config is None:
        config = SolverConfig()
    if orbit_model is None:
        orbit_model = BroadcastOrbitModel()
    if not isinstance(approx_pos, Coordinates):
        approx_pos = Coordinates.from_xyz(approx_pos)

    time = epoch.gps_time
    approx_llh = approx_pos.llh
    rr = np.array(approx_pos.xyz, dtype=float)
    dtr = float(initial_clock_bias)

    for iteration in range(1, config.max_iterations + 1):
        system = assemble_linear_system(epoch, nav, approx_pos, rr, dtr, config,
                                        orbit_model, approx_llh)

        if system.num_obs < config.min_satellites:
            raise InsufficientObservationsError(
                system.num_obs, config.min_satellites, time,
                reason=_rejection_summary(system.rejected) or None)

        try:
            dx, Q = solve_normal_equations(system)
        except InsufficientObservationsError as e:
            e.time = time
            raise

        rr = rr + dx[:3]
        dtr = dx[3] / CLIGHT
        step = norm(dx[:3])

        logger.debug("%s iteration %d: %d sats, |dx| = %.3e m, dtr = %.3e s",
                     time, iteration, system.num_obs, step, dtr)

        if step < config.convergence_tolerance:
            return Solution(
                time=time,
                type=SOLQ_SINGLE,
                rr=rr,
                dtr=dtr,
                qr=Q,
                ns=system.num_obs,
                iterations=iteration,
                used_sats=list(system.sats),
                rejected=dict(system.rejected),
                residuals=system.residuals - system.design @ dx,
            )

    raise ConvergenceError('outer', config.max_iterations, time)


def solve_epoch(epoch: EpochRecord, nav, approx_pos, config: Optional[SolverConfig] = None,
                orbit_model=None, initial_clock_bias: float = 0.0) -> SolveResult:
    """Like ``single_point_positioning`` but returns the failure as a value"""
    try:
        solution = single_point_positioning(epoch, nav, approx_pos, config,
                                            orbit_model, initial_clock_bias)
    except PositioningError as e:
        return SolveResult(status=e.status, error=e)
    return SolveResult(status=SolveStatus.OK, solution=solution)
