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

"""Epoch-by-epoch processing of an observation file into a results table"""

import logging
from typing import Optional

import numpy as np
import pandas as pd

from ..config import SolverConfig
from ..core.constants import CLIGHT, R2D
from ..core.data_structures import Coordinates, ObservationData
from ..core.errors import SolveStatus
from ..core.time import GNSSTime
from .spp import solve_epoch

logger = logging.getLogger(__name__)

RESULT_COLUMNS = [
    'time', 'week', 'tow', 'status',
    'x', 'y', 'z', 'lat', 'lon', 'height',
    'north', 'east', 'up',
    'clock_bias', 'ns', 'iterations', 'gdop', 'pdop', 'message',
]


def _result_row(epoch, result, approx: Coordinates) -> dict:
    time = GNSSTime.from_datetime(epoch.time)
    row = dict.fromkeys(RESULT_COLUMNS, np.nan)
    row.update(time=epoch.time, week=time.week, tow=time.tow,
               status=result.status.value, ns=0, iterations=0, message='')

    if not result.ok:
        row['message'] = str(result.error)
        return row

    sol = result.solution
    llh = sol.get_llh()
    neu = sol.get_neu(approx)
    dops = sol.dops()
    row.update(
        x=sol.rr[0], y=sol.rr[1], z=sol.rr[2],
        lat=llh[0] * R2D, lon=llh[1] * R2D, height=llh[2],
        north=neu[0], east=neu[1], up=neu[2],
        clock_bias=sol.dtr * CLIGHT,
        ns=sol.ns, iterations=sol.iterations,
        gdop=dops['gdop'], pdop=dops['pdop'],
    )
    return row


def process_epochs(obs_data, nav, approx_pos=None,
                   config: Optional[SolverConfig] = None,
                   orbit_model=None) -> pd.DataFrame:
    """
    Solve every epoch of an observation file independently

    A failing epoch does not stop the run; its row carries the failure status
    and message and NaN coordinates.

    Parameters
    ----------
    obs_data : ObservationData or iterable of EpochRecord
        Epochs to process
    nav : object
        Ephemeris lookup providing ``find_record(time, sat)``
    approx_pos : Coordinates or array_like, optional
        Approximate receiver position; the observation header's
        APPROX POSITION XYZ is used when omitted
    config : SolverConfig, optional
    orbit_model : object, optional
        Satellite state model passed to the solver

    Returns
    -------
    pd.DataFrame
        One row per epoch with columns ``RESULT_COLUMNS``. ``clock_bias`` is
        in meters; ``north``/``east``/``up`` are relative to ``approx_pos``

    Raises
    ------
    ValueError
        If no approximate position is given or found in the header
    """
    if config is None:
        config = SolverConfig()

    if approx_pos is None and isinstance(obs_data, ObservationData):
        approx_pos = obs_data.header.approx_position
    if approx_pos is None:
        raise ValueError("An approximate receiver position is required")
    if not isinstance(approx_pos, Coordinates):
        approx_pos = Coordinates.from_xyz(approx_pos)

    epochs = list(obs_data)
    rows = []
    n_solved = 0

    for i, epoch in enumerate(epochs):
        result = solve_epoch(epoch, nav, approx_pos, config, orbit_model)
        if result.ok:
            n_solved += 1
        else:
            logger.warning("Epoch %s failed: %s", epoch.time, result.error)
        rows.append(_result_row(epoch, result, approx_pos))

        if (i + 1) % 100 == 0:
            logger.info("Processed %d/%d epochs", i + 1, len(epochs))

    logger.info("Solved %d of %d epochs", n_solved, len(epochs))
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)


def summarize(results: pd.DataFrame) -> dict:
    """
    Statistics of a results table

    Returns
    -------
    dict
        'epochs', 'solved', counts per status, and mean / std of the solved
        NEU offsets (m)
    """
    solved = results[results['status'] == SolveStatus.OK.value]
    summary = {
        'epochs': len(results),
        'solved': len(solved),
        'status_counts': results['status'].value_counts().to_dict(),
    }
    if len(solved):
        neu = solved[['north', 'east', 'up']]
        summary['mean_neu'] = neu.mean().to_numpy()
        summary['std_neu'] = neu.std(ddof=0).to_numpy()
        summary['mean_position'] = solved[['x', 'y', 'z']].mean().to_numpy()
    return summary
