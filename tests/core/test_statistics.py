"""Unit tests for the statistic reducers and the calculate() dispatcher."""

import logging

import pytest

from timeviz.core import statistics
from timeviz.core.statistics import (
    InvalidArgumentError,
    calculate,
    canonical_statistic,
    is_known_statistic,
    maximum,
    mean,
    median,
    minimum,
    mode,
    percentile,
    standard_deviation,
    total,
)
from timeviz.core.types import StatisticKind

SAMPLES = [
    [5.0],
    [1.0, 2.0, 3.0, 4.0],
    [3.5, -1.0, 7.25, 7.25, 0.0],
    [10.0, 20.0, 30.0, 40.0, 50.0, 60.0, 70.0],
]


@pytest.mark.parametrize("values", SAMPLES)
def test_mean_is_total_over_length(values):
    assert mean(values) == pytest.approx(total(values) / len(values))


def test_empty_input_resolves_to_zero():
    for reducer in (mean, minimum, maximum, median, mode, total, standard_deviation):
        assert reducer([]) == 0
    assert percentile([], 50) == 0


@pytest.mark.parametrize("values", SAMPLES)
def test_percentile_bounds_and_median(values):
    assert percentile(values, 0) == min(values)
    assert percentile(values, 100) == max(values)
    assert percentile(values, 50) == pytest.approx(median(values))


def test_percentile_interpolates_between_ranks():
    # index = 0.25 * 3 = 0.75 -> 1 + 0.75 * (2 - 1)
    assert percentile([4.0, 1.0, 3.0, 2.0], 25) == pytest.approx(1.75)


@pytest.mark.parametrize("p", [101, -1])
def test_percentile_out_of_range_raises(p):
    with pytest.raises(InvalidArgumentError):
        percentile([1.0, 2.0], p)
    with pytest.raises(InvalidArgumentError):
        percentile([], p)


def test_invalid_argument_is_a_value_error():
    assert issubclass(InvalidArgumentError, ValueError)


def test_median_even_length():
    assert median([4.0, 1.0, 3.0, 2.0]) == 2.5


@pytest.mark.parametrize("values", [[7.0], [3.3, 3.3, 3.3], [0.1] * 10])
def test_standard_deviation_of_constant_is_zero(values):
    assert standard_deviation(values) == 0


def test_standard_deviation_is_population():
    assert standard_deviation([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)


def test_mode_rounds_to_one_decimal():
    assert mode([1.04, 1.01, 2.0]) == 1.0
    assert mode([0.25, 0.3, 5.0]) == 0.3


def test_mode_tie_goes_to_first_seen():
    assert mode([1.0, 2.0, 2.0, 1.0]) == 1.0
    assert mode([2.0, 1.0, 1.0, 2.0]) == 2.0


def test_calculate_dispatches_canonical_names_and_aliases():
    values = [1.0, 2.0, 3.0, 4.0]
    assert calculate(values, "average") == 2.5
    assert calculate(values, "mean") == 2.5
    assert calculate(values, "actual") == 2.5
    assert calculate(values, "min") == calculate(values, "minimum") == 1.0
    assert calculate(values, "max") == calculate(values, "maximum") == 4.0
    assert calculate(values, "total") == calculate(values, "sum") == 10.0
    assert calculate(values, "p90") == pytest.approx(percentile(values, 90))
    assert calculate(values, "standardDeviation") == pytest.approx(standard_deviation(values))
    assert calculate(values, StatisticKind.MEDIAN) == 2.5


@pytest.mark.parametrize("values", SAMPLES + [[]])
def test_unknown_statistic_falls_back_to_mean(values):
    assert calculate(values, "unknownStat") == mean(values)


def test_unknown_statistic_logs_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="timeviz"):
        calculate([1.0], "bogus")
    assert "Unknown statistic" in caplog.text


def test_canonical_statistic():
    assert canonical_statistic("mean") == "average"
    assert canonical_statistic("sum") == "total"
    assert canonical_statistic("percentile75") == "p75"
    assert canonical_statistic("median") == "median"
    assert canonical_statistic("bogus") == "average"
    assert is_known_statistic("p90")
    assert not is_known_statistic("bogus")


def test_statistic_types_list():
    ids = [s["id"] for s in statistics.get_statistic_types()]
    assert ids[0] == "actual"
    assert {"average", "median", "min", "max", "mode", "p25", "p75", "total", "stddev"} <= set(ids)


def test_median_and_percentile_leave_input_unchanged():
    values = [5.0, 1.0, 4.0, 2.0]
    original = list(values)
    assert median(values) == 3.0
    percentile(values, 25)
    assert values == original
