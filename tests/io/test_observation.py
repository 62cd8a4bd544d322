"""Tests for the fixed-column observation reader."""

import logging

import pytest

from pyspp.core.data_structures import Coordinates, SatelliteId
from pyspp.io.observation import EPOCH_FIELDS, Field, parse_obs, read_obs


def header_line(content, label):
    return f"{content:<60}{label}"


def epoch_line(year, month, day, hour, minute, second, flag, count):
    return (f"> {year:4d} {month:02d} {day:02d} {hour:02d} {minute:02d}"
            f"{second:11.7f}  {flag:1d}{count:3d}")


def sat_line(sat, *values):
    """Observation columns of 16 characters (F14.3 plus two flag columns)"""
    cols = [f"{v:14.3f}  " if v else " " * 16 for v in values]
    return sat + "".join(cols)


HEADER = [
    header_line("     3.04           OBSERVATION DATA    M", "RINEX VERSION / TYPE"),
    header_line("TSUKUBA", "MARKER NAME"),
    header_line(f"{-3957199.2360:14.4f}{3310199.6840:14.4f}{3737711.6870:14.4f}",
                "APPROX POSITION XYZ"),
    header_line("", "END OF HEADER"),
]

G05 = sat_line("G05", 21234567.123, 21234570.456, 0.0, 111588881.123, 86952287.456)
G07 = sat_line("G07", 22345678.901, 0.0, 0.0, 117428876.5, 0.0)
R01 = sat_line("R01", 19876543.210, 19876545.0, 0.0, 106123456.7, 82540000.1)


@pytest.fixture
def sample_lines():
    return HEADER + [
        epoch_line(2024, 1, 7, 1, 0, 0.0, 0, 3),
        G05, R01, G07,
        epoch_line(2024, 1, 7, 1, 0, 30.0, 4, 2),
        "                                                            COMMENT",
        "                                                            COMMENT",
        epoch_line(2024, 1, 7, 1, 1, 0.0, 1, 2),
        G07, G05,
    ]


def test_field_layout():
    """Epoch fields slice the record line at the documented columns"""
    line = epoch_line(2024, 1, 7, 1, 0, 30.5, 0, 12)
    values = {f.name: f.parse(line) for f in EPOCH_FIELDS}
    assert values == {'year': 2024, 'month': 1, 'day': 7, 'hour': 1, 'minute': 0,
                      'second': 30.5, 'flag': 0, 'count': 12}


def test_field_blank():
    field = Field('c1c', 3, 14)
    assert field.parse("G05" + " " * 20, default=0.0) == 0.0
    with pytest.raises(ValueError, match="blank"):
        field.parse("G05" + " " * 20)


def test_field_invalid_number():
    with pytest.raises(ValueError, match="not a valid float"):
        Field('c1c', 3, 14).parse("G05   12x45678.123")


def test_header(sample_lines):
    data = parse_obs(sample_lines)
    header = data.header

    assert header.version == "3.04"
    assert header.marker_name == "TSUKUBA"
    assert header.approx_position == Coordinates(-3957199.2360, 3310199.6840, 3737711.6870)
    assert header.lines == HEADER


def test_records(sample_lines):
    data = parse_obs(sample_lines)

    # The event record is skipped
    assert len(data) == 2
    first, second = data.records

    assert first.time.second == 0
    assert first.declared_count == 3
    assert first.sats == (SatelliteId('G', 5), SatelliteId('G', 7))
    assert first.c1c == pytest.approx((21234567.123, 22345678.901))
    assert first.c2p == pytest.approx((21234570.456, 0.0))
    assert first.l1c == pytest.approx((111588881.123, 117428876.5))
    assert first.l2p == pytest.approx((86952287.456, 0.0))

    assert second.status_flag == 1
    assert second.time.minute == 1
    assert second.sats == (SatelliteId('G', 7), SatelliteId('G', 5))


def test_other_systems(sample_lines):
    data = parse_obs(sample_lines, systems=('G', 'R'))
    assert data.records[0].sats == (SatelliteId('G', 5), SatelliteId('R', 1),
                                    SatelliteId('G', 7))


def test_fractional_seconds():
    lines = HEADER + [epoch_line(2024, 1, 7, 1, 0, 12.25, 0, 1), G05]
    record = parse_obs(lines).records[0]
    assert record.time.second == 12
    assert record.time.microsecond == 250000


def test_line_terminators(sample_lines):
    data = parse_obs(line + "\r\n" for line in sample_lines)
    assert len(data) == 2
    assert data.header.marker_name == "TSUKUBA"


def test_short_epoch(caplog):
    """An epoch with fewer satellite lines than declared keeps what it has"""
    lines = HEADER + [
        epoch_line(2024, 1, 7, 1, 0, 0.0, 0, 3),
        G05, G07,
        epoch_line(2024, 1, 7, 1, 0, 30.0, 0, 1),
        G05,
    ]
    with caplog.at_level(logging.WARNING, logger="pyspp"):
        data = parse_obs(lines)

    assert len(data) == 2
    assert data.records[0].sats == (SatelliteId('G', 5), SatelliteId('G', 7))
    assert data.records[0].declared_count == 3
    assert data.records[1].sats == (SatelliteId('G', 5),)
    assert "declares 3 satellites" in caplog.text


def test_short_epoch_unmarked(caplog):
    """The next epoch is found by its fields when the marker is missing"""
    lines = HEADER + [
        epoch_line(2024, 1, 7, 1, 0, 0.0, 0, 3),
        G05, G07,
        epoch_line(2024, 1, 7, 1, 0, 30.0, 0, 1).replace(">", " ", 1),
        G05,
    ]
    with caplog.at_level(logging.WARNING, logger="pyspp"):
        data = parse_obs(lines)

    assert len(data) == 2
    assert data.records[0].sats == (SatelliteId('G', 5), SatelliteId('G', 7))
    assert data.records[1].time.second == 30
    assert data.records[1].sats == (SatelliteId('G', 5),)
    assert "declares 3 satellites" in caplog.text


def test_satellite_line_without_id():
    lines = HEADER + [epoch_line(2024, 1, 7, 1, 0, 0.0, 0, 2), G05,
                      "     21234567.123"]
    with pytest.raises(ValueError, match="line 7"):
        parse_obs(lines)


def test_truncated_file():
    lines = HEADER + [epoch_line(2024, 1, 7, 1, 0, 0.0, 0, 3), G05]
    data = parse_obs(lines)
    assert len(data) == 1
    assert data.records[0].num_sats == 1


def test_blank_line_ends_data():
    lines = HEADER + [epoch_line(2024, 1, 7, 1, 0, 0.0, 0, 1), G05, "",
                      epoch_line(2024, 1, 7, 1, 0, 30.0, 0, 1), G05]
    assert len(parse_obs(lines)) == 1


def test_missing_end_of_header():
    with pytest.raises(ValueError, match="END OF HEADER"):
        parse_obs(HEADER[:-1])


def test_malformed_epoch():
    lines = HEADER + ["> 2024 xx 07 01 00  0.0000000  0  1", G05]
    with pytest.raises(ValueError, match="line 5"):
        parse_obs(lines)


def test_malformed_satellite():
    lines = HEADER + [epoch_line(2024, 1, 7, 1, 0, 0.0, 0, 1),
                      "G05  2123x567.123"]
    with pytest.raises(ValueError, match="line 6"):
        parse_obs(lines)


def test_read_obs(tmp_path, sample_lines):
    path = tmp_path / "tsuk0070.24o"
    path.write_text("\n".join(sample_lines) + "\n")
    data = read_obs(path)
    assert len(data) == 2


def test_read_obs_uppercase(tmp_path, sample_lines):
    path = tmp_path / "TSUK0070.24O"
    path.write_text("\n".join(sample_lines) + "\n")
    assert len(read_obs(str(path))) == 2


def test_read_obs_rejects_other_files(tmp_path, sample_lines):
    path = tmp_path / "brdc0070.24n"
    path.write_text("\n".join(sample_lines) + "\n")
    with pytest.raises(ValueError, match="Not an observation file"):
        read_obs(path)
