import numpy as np
import pytest

from meshreduce import PreconditionError, SchemaError
from meshreduce.reductions import (
    array_histogram,
    array_inf_count,
    array_max,
    array_min,
    array_nan_count,
    array_sum,
    local_histogram,
    local_max,
    local_min,
    local_sum,
)

from conftest import uniform_domain


def test_array_sum_returns_sum_and_count():
    assert array_sum(np.array([1.0, 2.0, 3.5])) == (6.5, 3)
    assert array_sum(np.array([], dtype=np.float64)) == (0.0, 0)


def test_array_extrema_report_first_index():
    values = np.array([3.0, -1.0, 7.0, -1.0, 7.0])
    assert array_min(values) == (-1.0, 1)
    assert array_max(values) == (7.0, 2)


def test_array_extrema_skip_nan():
    values = np.array([np.nan, 2.0, np.nan, -4.0])
    assert array_min(values) == (-4.0, 3)
    assert array_max(values) == (2.0, 1)
    assert array_min(np.array([np.nan, np.nan])) is None
    assert array_max(np.array([], dtype=np.float64)) is None


def test_array_histogram_drops_out_of_range_values():
    counts = array_histogram(np.array([-1.0, 0.0, 0.5, 1.0, 1.9, 2.0, 3.0, np.nan]), 0.0, 2.0, 2)
    assert counts.dtype == np.float64
    np.testing.assert_array_equal(counts, [2.0, 3.0])


@pytest.mark.parametrize("lo,hi,n", [(0.0, 1.0, 0), (1.0, 1.0, 4), (2.0, 1.0, 4), (0.0, np.inf, 2)])
def test_array_histogram_rejects_bad_bins(lo, hi, n):
    with pytest.raises(PreconditionError):
        array_histogram(np.array([0.5]), lo, hi, n)


def test_nan_and_inf_counts():
    values = np.array([np.nan, np.inf, -np.inf, 1.0, np.nan], dtype=np.float32)
    assert array_nan_count(values) == 2
    assert array_inf_count(values) == 2
    assert array_nan_count(np.array([1, 2, 3])) == 0


def test_local_reducer_on_one_domain():
    dom = uniform_domain(4, np.array([5.0, 1.0, 9.0, 2.0]))
    part = local_sum(dom, "f")
    assert (part.value, part.count) == (17.0, 4)

    lo = local_min(dom, "f", domain_index=2)
    assert (lo.value, lo.index, lo.domain_index, lo.domain_id) == (1.0, 1, 2, 4)
    hi = local_max(dom, "f")
    assert (hi.value, hi.index) == (9.0, 2)

    np.testing.assert_array_equal(local_histogram(dom, "f", 0.0, 10.0, 2), [3.0, 1.0])


def test_local_reducer_missing_field_is_schema_error():
    dom = uniform_domain(0, np.zeros(9))
    with pytest.raises(SchemaError, match="'g'"):
        local_sum(dom, "g")
