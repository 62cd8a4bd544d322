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

"""GNSS positioning: epoch solver and batch processing"""

from .batch import RESULT_COLUMNS, process_epochs, summarize
from .spp import (
    SolveResult,
    assemble_linear_system,
    single_point_positioning,
    solve_epoch,
    solve_normal_equations,
    transmission_position,
)

__all__ = [
    'RESULT_COLUMNS', 'process_epochs', 'summarize',
    'SolveResult', 'assemble_linear_system', 'single_point_positioning',
    'solve_epoch', 'solve_normal_equations', 'transmission_position',
]
