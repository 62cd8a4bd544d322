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

"""Command line entry point: solve every epoch of an observation file"""

import argparse
import logging
import sys
from typing import Optional, Sequence

import numpy as np

from .config import SolverConfig, load_config
from .core.errors import SolveStatus
from .gnss import process_epochs, summarize
from .io import read_nav, read_obs
from .logger import ROOT_LOGGER, setup_logger, setup_logger_from_config

logger = logging.getLogger(ROOT_LOGGER + '.cli')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='pyspp-solve',
        description='Single point positioning from GPS pseudoranges')
    parser.add_argument('obs', help='Observation file (name ending in o/O)')
    parser.add_argument('nav', help='RINEX navigation file')
    parser.add_argument('--config', help='YAML or JSON configuration file')
    parser.add_argument('--output', help='Write epoch results to this CSV file')
    parser.add_argument('--approx', type=float, nargs=3, metavar=('X', 'Y', 'Z'),
                        help='Approximate ECEF position (m); defaults to the '
                             'observation header')
    parser.add_argument('--log-level', default=None,
                        help='TRACE, DEBUG, INFO, WARNING, ERROR or CRITICAL')
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the solver; returns 0 if at least one epoch was solved"""
    args = build_parser().parse_args(argv)

    config = SolverConfig()
    log_config = {}
    if args.config:
        config, log_config = load_config(args.config)

    if log_config:
        setup_logger_from_config(log_config)
    if args.log_level or not log_config:
        setup_logger(ROOT_LOGGER, args.log_level or 'INFO')

    try:
        obs_data = read_obs(args.obs, config.systems)
    except (OSError, ValueError) as e:
        logger.error("Cannot read observations: %s", e)
        return 1
    try:
        nav = read_nav(args.nav, config.systems, config.max_ephemeris_age)
    except (OSError, ValueError) as e:
        logger.error("Cannot read navigation data: %s", e)
        return 1

    approx = np.array(args.approx) if args.approx else None
    try:
        results = process_epochs(obs_data, nav, approx, config)
    except ValueError as e:
        logger.error("%s", e)
        return 1

    if args.output:
        results.to_csv(args.output, index=False, float_format='%.6f')
        logger.info("Results written to %s", args.output)

    summary = summarize(results)
    logger.info("Solved %d of %d epochs", summary['solved'], summary['epochs'])
    if summary['solved']:
        x, y, z = summary['mean_position']
        solved = results[results['status'] == SolveStatus.OK.value]
        logger.info("Mean position: [%.3f, %.3f, %.3f] m", x, y, z)
        logger.info("Mean LLH: [%.8f, %.8f, %.3f]",
                    solved['lat'].mean(), solved['lon'].mean(), solved['height'].mean())
        logger.info("NEU std: %s m", np.array2string(summary['std_neu'], precision=3))

    return 0 if summary['solved'] else 1


if __name__ == '__main__':
    sys.exit(main())
