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

"""Fixed-column observation file reader.

The layout is described by the field tables below (0-indexed column offset,
width); the reader itself contains no column arithmetic.

Header lines are kept verbatim up to the ``END OF HEADER`` label. Each epoch
starts with a record line followed by ``count`` satellite lines; only the
first pseudorange/phase columns of the observation types are read::

    > 2024 01 07 01 00  0.0000000  0  8
    G05  21234567.123 8  21234570.456 7 ...

An epoch with fewer satellite lines than declared ends at the next epoch
line, recognised by the ``>`` marker or, without it, by its fields.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable, Iterator, Optional

from ..core.data_structures import (Coordinates, EpochRecord, ObservationData,
                                    ObservationHeader)

logger = logging.getLogger(__name__)

LABEL_COLUMN = 60
LABEL_END_OF_HEADER = 'END OF HEADER'
LABEL_APPROX_POSITION = 'APPROX POSITION XYZ'
LABEL_VERSION = 'RINEX VERSION / TYPE'
LABEL_MARKER_NAME = 'MARKER NAME'

EPOCH_MARKER = '>'

# Epoch flags whose record lines are satellite observations
OBSERVATION_FLAGS = (0, 1)


@dataclass(frozen=True)
class Field:
    """One fixed-width column of a record line"""
    name: str
    start: int
    width: int
    kind: type = float

    def text(self, line: str) -> str:
        return line[self.start:self.start + self.width]

    def parse(self, line: str, default=None):
        """Convert the field; blank fields give ``default`` when one is set.

        Raises
        ------
        ValueError
            If the field is blank without a default, or not a valid number
        """
        text = self.text(line).strip()
        if not text:
            if default is not None:
                return default
            raise ValueError(f"field '{self.name}' is blank")
        if self.kind is str:
            return text
        try:
            return self.kind(text)
        except ValueError:
            raise ValueError(f"field '{self.name}' is not a valid {self.kind.__name__}: "
                             f"{text!r}") from None


APPROX_POSITION_FIELDS = (
    Field('x', 1, 13),
    Field('y', 15, 13),
    Field('z', 29, 13),
)

EPOCH_FIELDS = (
    Field('year', 1, 5, int),
    Field('month', 6, 3, int),
    Field('day', 9, 3, int),
    Field('hour', 12, 3, int),
    Field('minute', 15, 3, int),
    Field('second', 18, 11, float),
    Field('flag', 29, 3, int),
    Field('count', 32, 3, int),
)

SATELLITE_ID_FIELD = Field('sat', 0, 3, str)

OBSERVABLE_FIELDS = (
    Field('c1c', 3, 14),
    Field('c2p', 19, 14),
    Field('l1c', 51, 14),
    Field('l2p', 67, 14),
)


def _label(line: str, label: str) -> bool:
    return line[LABEL_COLUMN:LABEL_COLUMN + len(label)] == label


class _Lines:
    """Numbered line iterator with one line of push-back"""

    def __init__(self, lines: Iterable[str]):
        self._it = iter(lines)
        self._pending = None
        self.number = 0

    def next(self) -> Optional[str]:
        if self._pending is not None:
            line, self._pending = self._pending, None
            return line
        try:
            line = next(self._it)
        except StopIteration:
            return None
        self.number += 1
        return line.rstrip('\r\n')

    def push_back(self, line: str):
        self._pending = line


def _parse_header(lines: _Lines) -> ObservationHeader:
    header = ObservationHeader()
    while True:
        line = lines.next()
        if line is None:
            raise ValueError("Observation file ended before END OF HEADER")
        header.lines.append(line)
        if _label(line, LABEL_END_OF_HEADER):
            return header
        if _label(line, LABEL_APPROX_POSITION):
            try:
                x, y, z = (f.parse(line) for f in APPROX_POSITION_FIELDS)
            except ValueError as e:
                raise ValueError(f"line {lines.number}: {e}") from None
            header.approx_position = Coordinates(x, y, z)
        elif _label(line, LABEL_VERSION):
            header.version = line[:9].strip()
        elif _label(line, LABEL_MARKER_NAME):
            header.marker_name = line[:60].strip()


def _parse_epoch_line(line: str, number: int) -> dict:
    try:
        values = {f.name: f.parse(line) for f in EPOCH_FIELDS}
        # Whole seconds plus fraction; the calendar fields are GPS time
        values['time'] = datetime(values['year'], values['month'], values['day'],
                                  values['hour'], values['minute']) \
            + timedelta(seconds=values['second'])
    except ValueError as e:
        raise ValueError(f"line {number}: invalid epoch record: {e}") from None
    return values


def _is_epoch_line(line: str) -> bool:
    """Epoch lines start with the marker, or hold a valid epoch record without it"""
    if line.startswith(EPOCH_MARKER):
        return True
    if line[:1].isalpha():
        return False
    try:
        _parse_epoch_line(line, 0)
    except ValueError:
        return False
    return True


def _parse_satellite_line(line: str, number: int) -> tuple:
    try:
        sat = SATELLITE_ID_FIELD.parse(line)
        values = [f.parse(line, default=0.0) for f in OBSERVABLE_FIELDS]
    except ValueError as e:
        raise ValueError(f"line {number}: invalid satellite record: {e}") from None
    return (sat, *values)


def _iter_records(lines: _Lines, systems: tuple) -> Iterator[EpochRecord]:
    while True:
        line = lines.next()
        if line is None or not line.strip():
            return

        epoch = _parse_epoch_line(line, lines.number)
        count = epoch['count']

        if epoch['flag'] not in OBSERVATION_FLAGS:
            # Event records: the count is the number of special lines
            logger.debug("Skipping event flag %d with %d lines at line %d",
                         epoch['flag'], count, lines.number)
            for _ in range(count):
                if lines.next() is None:
                    return
            continue

        observations = []
        for _ in range(count):
            sat_line = lines.next()
            if sat_line is None or not sat_line.strip():
                logger.warning("Epoch %s declares %d satellites but data ended after %d",
                               epoch['time'], count, len(observations))
                if sat_line is not None:
                    lines.push_back(sat_line)
                break
            if _is_epoch_line(sat_line):
                logger.warning("Epoch %s declares %d satellites but the next epoch "
                               "starts after %d", epoch['time'], count, len(observations))
                lines.push_back(sat_line)
                break
            if not sat_line[:1].isalpha():
                raise ValueError(f"line {lines.number}: invalid satellite record: "
                                 f"no satellite id in {sat_line[:3]!r}")
            if sat_line[:1] not in systems:
                continue
            observations.append(_parse_satellite_line(sat_line, lines.number))

        yield EpochRecord.from_observations(
            epoch['time'],
            observations,
            status_flag=epoch['flag'],
            declared_count=count,
            systems=systems)


def parse_obs(lines: Iterable[str], systems: Iterable[str] = ('G',)) -> ObservationData:
    """Parse observation file content.

    Parameters
    ----------
    lines : Iterable[str]
        File lines, with or without line terminators
    systems : Iterable[str]
        System characters to keep; other satellite lines are skipped

    Returns
    -------
    ObservationData
        Header and epoch records in file order

    Raises
    ------
    ValueError
        If the header is unterminated or a record line is malformed
    """
    systems = tuple(systems)
    reader = _Lines(lines)
    header = _parse_header(reader)
    records = list(_iter_records(reader, systems))
    logger.info("Read %d epochs (%s)", len(records), header.marker_name or 'unnamed marker')
    return ObservationData(header=header, records=records)


def read_obs(filename, systems: Iterable[str] = ('G',)) -> ObservationData:
    """Read an observation file.

    The file name must end in ``o``/``O`` (observation file naming, e.g.
    ``site0070.24o``).

    Raises
    ------
    ValueError
        If the name is not an observation file name or the content is invalid
    """
    path = Path(filename)
    if not path.name or path.name[-1] not in ('o', 'O'):
        raise ValueError(f"Not an observation file name: {path.name}")
    with open(path, encoding='ascii', errors='replace') as f:
        return parse_obs(f, systems)
