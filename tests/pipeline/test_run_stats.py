import itertools
import math

import pytest

from volvid.pipeline.context import RunStats
from volvid.stages.tools import MinMaxReport

pytestmark = [pytest.mark.unit, pytest.mark.pipeline]


REPORTS = [
    MinMaxReport(0.0, 1.0, False),
    MinMaxReport(-2.5, 0.5, False),
    MinMaxReport(math.nan, 7.0, True),
    MinMaxReport(1.0, 3.0, True),
]


def _fold(reports):
    stats = RunStats()
    for r in reports:
        stats.fold(r)
    return stats


def test_fold_widens_range():
    stats = _fold(REPORTS)
    assert stats.range() == (-2.5, 7.0)
    assert stats.has_nan
    assert stats.observations == 4


@pytest.mark.parametrize("order", list(itertools.permutations(range(len(REPORTS))))[::5])
def test_fold_is_order_independent(order):
    stats = _fold([REPORTS[i] for i in order])
    assert stats.range() == (-2.5, 7.0)
    assert stats.has_nan


def test_first_finite_observation_seeds_bounds():
    stats = _fold([MinMaxReport(math.nan, math.nan, True), MinMaxReport(4.0, 4.0, False)])
    assert stats.range() == (4.0, 4.0)


def test_no_finite_values_has_no_range():
    stats = _fold([MinMaxReport(math.nan, math.inf, True)])
    assert not stats.has_range
    assert stats.has_nan


def test_empty_stats():
    stats = RunStats()
    assert not stats.has_range
    assert not stats.has_nan
    assert stats.observations == 0
