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

"""
Solver configuration
====================

Thresholds and iteration limits of the epoch solver. The module-level
constants are the defaults; ``SolverConfig`` bundles them so that a run can
override them from a YAML or JSON file.
"""

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Optional, Union

import yaml

# ============================================================================
# MEASUREMENT SELECTION
# ============================================================================
ELMASK = 10.0              # Elevation cutoff (degrees); el <= ELMASK is rejected
BLUNDER_THRESHOLD = 0.5E6  # Max |geometric range - pseudorange| (m)
MIN_SATELLITES = 4         # Unknowns: x, y, z, receiver clock

# ============================================================================
# ITERATION CONTROL
# ============================================================================
MAXITR = 100               # Max outer (least-squares) iterations
MAXITR_LIGHT_TIME = 100    # Max transmission-time iterations per satellite
TOL_POSITION = 1E-8        # Position correction norm at convergence (m)
TOL_LIGHT_TIME = 1E-8      # Transmission-time change at convergence (s)
SIGNAL_DELAY_SEED = 0.075  # Initial one-way signal travel time (s)


@dataclass
class SolverConfig:
    """Parameters of the single point positioning solver.

    Attributes
    ----------
    elevation_mask : float
        Elevation cutoff in degrees
    blunder_threshold : float
        Pseudoranges farther than this from the geometric range are rejected (m)
    min_satellites : int
        Minimum accepted satellites per iteration
    max_iterations : int
        Outer iteration cap
    max_light_time_iterations : int
        Transmission-time iteration cap
    convergence_tolerance : float
        Position correction norm that ends the outer loop (m)
    light_time_tolerance : float
        Transmission-time change that ends the inner loop (s)
    signal_delay_seed : float
        Initial signal travel time (s)
    systems : tuple[str, ...]
        Satellite systems kept when reading observations
    max_ephemeris_age : float or None
        Ignore ephemerides whose toe is farther than this from the epoch (s)
    """
    elevation_mask: float = ELMASK
    blunder_threshold: float = BLUNDER_THRESHOLD
    min_satellites: int = MIN_SATELLITES
    max_iterations: int = MAXITR
    max_light_time_iterations: int = MAXITR_LIGHT_TIME
    convergence_tolerance: float = TOL_POSITION
    light_time_tolerance: float = TOL_LIGHT_TIME
    signal_delay_seed: float = SIGNAL_DELAY_SEED
    systems: tuple = ('G',)
    max_ephemeris_age: Optional[float] = None

    def __post_init__(self):
        self.systems = tuple(self.systems)
        if self.min_satellites < MIN_SATELLITES:
            raise ValueError(
                f"min_satellites must be at least {MIN_SATELLITES}, got {self.min_satellites}")
        if self.max_iterations < 1 or self.max_light_time_iterations < 1:
            raise ValueError("Iteration caps must be positive")
        if self.convergence_tolerance <= 0 or self.light_time_tolerance <= 0:
            raise ValueError("Tolerances must be positive")

    @classmethod
    def from_dict(cls, data: dict) -> 'SolverConfig':
        """Create a config from a dictionary, rejecting unknown keys"""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown solver options: {sorted(unknown)}")
        return cls(**data)

    def to_dict(self) -> dict:
        data = asdict(self)
        data['systems'] = list(self.systems)
        return data


def load_config(filepath: Union[str, Path]) -> tuple[SolverConfig, dict]:
    """
    Load solver and logging configuration from file.

    Supports both YAML and JSON formats, chosen from the file extension. The
    file holds an optional ``solver`` mapping (``SolverConfig`` fields) and
    an optional ``logging`` mapping (see ``setup_logger_from_config``).

    Parameters:
    -----------
    filepath : str or Path
        Path to configuration file (.yaml, .yml, or .json)

    Returns:
    --------
    tuple[SolverConfig, dict]
        Solver configuration and logging configuration (empty if absent)

    Raises:
        ValueError: If the file format or content is not supported
        FileNotFoundError: If the specified file doesn't exist

    Examples:
        >>> config, log_config = load_config('spp.yaml')
    """
    filepath = Path(filepath)

    if filepath.suffix in ['.yaml', '.yml']:
        with open(filepath) as f:
            data = yaml.safe_load(f)
    elif filepath.suffix == '.json':
        with open(filepath) as f:
            data = json.load(f)
    else:
        raise ValueError(f"Unsupported file format: {filepath.suffix}")

    data = data or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration root must be a mapping: {filepath}")

    unknown = set(data) - {'solver', 'logging'}
    if unknown:
        raise ValueError(f"Unknown configuration sections: {sorted(unknown)}")

    return SolverConfig.from_dict(data.get('solver') or {}), data.get('logging') or {}
