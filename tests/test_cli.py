"""Tests for the pyspp-solve command line entry point."""

import logging
from datetime import datetime

import numpy as np
import pandas as pd
import pytest

from pyspp import cli
from pyspp.core.data_structures import (Coordinates, NavigationData, ObservationData,
                                        ObservationHeader)
from pyspp.gnss.batch import RESULT_COLUMNS
from pyspp.logger import ROOT_LOGGER


def results_frame(statuses):
    rows = []
    for i, status in enumerate(statuses):
        row = dict.fromkeys(RESULT_COLUMNS, np.nan)
        row.update(time=datetime(2024, 1, 7, 1, 0, i), week=2296, tow=3600.0 + i,
                   status=status, ns=0, iterations=0, message='')
        if status == 'ok':
            row.update(x=-3957199.0, y=3310199.0, z=3737711.0, lat=36.1, lon=140.1,
                       height=70.0, north=0.1, east=-0.2, up=0.3, ns=8, iterations=4)
        rows.append(row)
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def fake_io(monkeypatch):
    """Replace file reading and solving; records what the CLI passed on"""
    calls = {}
    header = ObservationHeader(approx_position=Coordinates(-3957199.0, 3310199.0, 3737711.0))
    obs = ObservationData(header=header)

    def read_obs(filename, systems):
        calls['obs'] = (filename, systems)
        return obs

    def read_nav(filename, systems, max_age):
        calls['nav'] = (filename, systems, max_age)
        return NavigationData()

    def process_epochs(obs_data, nav, approx, config):
        calls['process'] = (obs_data, approx, config)
        return calls.get('results', results_frame(['ok', 'missing_ephemeris']))

    monkeypatch.setattr(cli, 'read_obs', read_obs)
    monkeypatch.setattr(cli, 'read_nav', read_nav)
    monkeypatch.setattr(cli, 'process_epochs', process_epochs)
    return calls


def test_parser():
    args = cli.build_parser().parse_args(
        ['site.24o', 'brdc.24n', '--approx', '1', '2', '3', '--log-level', 'DEBUG'])
    assert args.obs == 'site.24o'
    assert args.nav == 'brdc.24n'
    assert args.approx == [1.0, 2.0, 3.0]
    assert args.log_level == 'DEBUG'
    assert args.config is None


def test_solves_and_writes_csv(fake_io, tmp_path):
    output = tmp_path / "out.csv"
    assert cli.main(['site.24o', 'brdc.24n', '--output', str(output)]) == 0

    assert fake_io['obs'] == ('site.24o', ('G',))
    assert fake_io['nav'] == ('brdc.24n', ('G',), None)
    assert fake_io['process'][1] is None

    written = pd.read_csv(output)
    assert list(written.columns) == RESULT_COLUMNS
    assert list(written['status']) == ['ok', 'missing_ephemeris']


def test_approx_option(fake_io):
    cli.main(['site.24o', 'brdc.24n', '--approx', '1', '2', '3'])
    np.testing.assert_array_equal(fake_io['process'][1], [1.0, 2.0, 3.0])


def test_config_file(fake_io, tmp_path):
    path = tmp_path / "spp.yaml"
    path.write_text("solver:\n  elevation_mask: 15.0\n  max_ephemeris_age: 7200\n")
    assert cli.main(['site.24o', 'brdc.24n', '--config', str(path)]) == 0
    assert fake_io['process'][2].elevation_mask == 15.0
    assert fake_io['nav'][2] == 7200


def test_nothing_solved(fake_io):
    fake_io['results'] = results_frame(['insufficient_observations'])
    assert cli.main(['site.24o', 'brdc.24n']) == 1


def test_bad_observation_file(tmp_path):
    path = tmp_path / "site.24n"
    path.write_text("")
    assert cli.main([str(path), 'brdc.24n']) == 1
