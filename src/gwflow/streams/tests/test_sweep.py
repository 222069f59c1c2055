import numpy as np
import pytest

from gwflow.streams.recharge import StreamRecharge
from gwflow.streams.sweep import (
    collect_recharge,
    flag_cells_for_refinement,
    nearest_stream_midpoint,
    recharge_by_stream,
    total_recharge,
)
from gwflow.streams.tests.fixtures.stream_fixture import grid_cells, make_catalog


ROWS = [
    (0.0, 0.0, 10.0, 0.0, 5.0, 1.0),
    (1.0, -1.5, 9.0, 1.5, -2.0, 0.25),
]


def test_collect_recharge_conserves_stream_total():
    engine = StreamRecharge(make_catalog(ROWS[:1]))
    cells = grid_cells(-2.0, -2.0, 7, 2, 2.0)
    out = collect_recharge(engine, cells)
    # cells at x in [0, 10] in both rows; the end columns only touch the strip
    assert len(out) == 10
    assert (0, 0) not in out and (6, 1) not in out
    assert total_recharge(out) == pytest.approx(20.0 * 5.0)


def test_crossing_streams_are_accounted_separately():
    catalog = make_catalog(ROWS)
    engine = StreamRecharge(catalog)
    cells = grid_cells(-2.0, -4.0, 14, 8, 1.0)
    out = collect_recharge(engine, cells)
    per_stream = recharge_by_stream(out)
    assert per_stream[0] == pytest.approx(catalog[0].footprint.area() * 5.0)
    assert per_stream[1] == pytest.approx(catalog[1].footprint.area() * -2.0)


def test_threaded_sweep_matches_serial():
    engine = StreamRecharge(make_catalog(ROWS))
    cells = grid_cells(-2.0, -4.0, 14, 8, 1.0)
    assert collect_recharge(engine, cells, workers=4) == collect_recharge(engine, cells)


def test_sweep_accepts_plain_sequences():
    engine = StreamRecharge(make_catalog(ROWS[:1]))
    cells = list(grid_cells(-2.0, -2.0, 7, 2, 2.0).values())
    out = collect_recharge(engine, cells)
    assert all(isinstance(k, int) for k in out)
    assert total_recharge(out) == pytest.approx(100.0)


def test_flag_cells_for_refinement():
    engine = StreamRecharge(make_catalog(ROWS[:1]))
    cells = grid_cells(-2.0, -2.0, 7, 2, 2.0)
    flags = flag_cells_for_refinement(engine, cells)
    assert flags.dtype == bool
    assert flags.shape == (14,)
    assert int(flags.sum()) == 10
    keys = list(cells)
    assert not flags[keys.index((0, 0))]
    assert flags[keys.index((3, 1))]


def test_nearest_stream_midpoint():
    catalog = make_catalog([
        (0.0, 0.0, 10.0, 0.0, 5.0, 1.0),
        (0.0, 20.0, 10.0, 20.0, 3.0, 1.0),
    ])
    sid, dist = nearest_stream_midpoint(catalog, (5.0, 17.0))
    assert sid == 1
    assert dist == pytest.approx(3.0)


def test_nearest_stream_midpoint_is_not_segment_distance():
    # point sits 1 unit from the long stream but far from its midpoint
    catalog = make_catalog([
        (0.0, 0.0, 100.0, 0.0, 5.0, 1.0),
        (0.0, 10.0, 2.0, 10.0, 3.0, 0.5),
    ])
    sid, dist = nearest_stream_midpoint(catalog, (1.0, 1.0))
    assert sid == 1
    assert dist == pytest.approx(9.0)


def test_nearest_stream_midpoint_empty_catalog():
    sid, dist = nearest_stream_midpoint(make_catalog([]), (0.0, 0.0))
    assert sid is None
    assert np.isinf(dist)
