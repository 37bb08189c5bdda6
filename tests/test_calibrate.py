import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from scrypt_snrp.calibrate import (
    MAX_STEPS,
    OverflowCheck,
    calibrate,
    fit_memory_bound,
    fit_overflow_bound,
    memory_cost,
    overflow_product,
)
from scrypt_snrp.constants import MEMORY_LIMIT, OVERFLOW_LIMIT


def test_max_steps():
    assert MAX_STEPS == 4


def test_baseline_equals_target():
    assert calibrate(250_000, target=250_000) == (14, 8, 1)


def test_fast_device_folds_remainder_into_r():
    # 10x headroom: r clamps to 8, the leftover 2 returns to r, N stays at 2**14
    assert calibrate(25_000, target=250_000) == (14, 10, 1)


def test_slow_device_gets_minimum_r():
    assert calibrate(2_500_000, target=250_000) == (14, 8, 1)


def test_headroom_moves_into_n():
    assert calibrate(10_000, target=250_000) == (16, 8, 1)
    assert calibrate(15_625, target=250_000) == (15, 8, 1)


def test_headroom_beyond_max_shift_moves_into_p():
    assert calibrate(1_000, target=250_000) == (17, 8, 7)


def test_zero_measurement_treated_as_one_microsecond():
    assert calibrate(0, target=250_000) == calibrate(1, target=250_000)


def test_negative_measurement_rejected():
    with pytest.raises(ValueError):
        calibrate(-1)


def test_default_target(monkeypatch):
    import scrypt_snrp.calibrate as module

    monkeypatch.setattr(module, "TARGET_USECONDS", 500_000)
    assert calibrate(50_000) == (14, 10, 1)


MEASUREMENTS = [1, 10, 100, 1_000, 5_000, 7_812, 10_000, 15_625, 16_000,
                20_000, 25_000, 27_000, 31_250, 50_000, 250_000, 2_500_000,
                10**9]


@pytest.mark.parametrize("measured", MEASUREMENTS)
@pytest.mark.parametrize("check", list(OverflowCheck))
def test_result_within_bounds(measured, check):
    shift, r, p = calibrate(measured, target=250_000, check=check)
    assert 1 <= shift <= 17
    assert r >= 1
    assert p >= 1
    assert memory_cost(shift, r) <= MEMORY_LIMIT
    assert overflow_product(shift, r, p, check) < OVERFLOW_LIMIT


def test_faster_device_never_gets_cheaper_parameters():
    costs = []
    for measured in sorted(MEASUREMENTS):
        shift, r, p = calibrate(measured, target=250_000)
        costs.append((1 << shift) * r * p)
    assert costs == sorted(costs, reverse=True)


def test_fit_memory_bound_keeps_feasible_pair():
    assert fit_memory_bound(17, 8) == (17, 8)


def test_fit_memory_bound_lowers_r_first():
    # 128 * 2**17 * 31 is the largest product under 512 MiB
    assert fit_memory_bound(17, 40) == (17, 31)


def test_fit_memory_bound_lowers_shift_when_r_exhausted():
    assert fit_memory_bound(17, 4, limit=128 * 2**15) == (15, 1)


def test_fit_memory_bound_exhausted():
    assert fit_memory_bound(5, 2, limit=10) == (1, 1)


def test_fit_memory_bound_raises_zero_r():
    assert fit_memory_bound(10, 0) == (10, 1)


def test_fit_overflow_bound_literal_check_ignores_p():
    assert fit_overflow_bound(17, 8, 2**29) == (8, 2**29)


def test_fit_overflow_bound_literal_check_lowers_r():
    # 17 * 5 = 85 is the first product under 90; p restarts at 1
    assert fit_overflow_bound(17, 8, 3, limit=90) == (5, 1)


def test_fit_overflow_bound_parallelism_lowers_p_first():
    r, p = fit_overflow_bound(14, 8, 2**28, check=OverflowCheck.PARALLELISM)
    assert r == 8
    assert p == (OVERFLOW_LIMIT - 1) // 8
    assert r * p < OVERFLOW_LIMIT


def test_fit_overflow_bound_parallelism_lowers_r():
    result = fit_overflow_bound(14, 12, 4, check=OverflowCheck.PARALLELISM, limit=10)
    assert result == (9, 1)


def test_fit_overflow_bound_stops_at_r_one():
    assert fit_overflow_bound(17, 1, 5, limit=2) == (1, 5)
    assert fit_overflow_bound(17, 3, 5, limit=2) == (1, 1)


def test_calibration_is_named_tuple():
    result = calibrate(10_000, target=250_000)
    assert (result.shift, result.r, result.p) == (16, 8, 1)


# steps == 4 at 7812.5 us, steps == 2 at 15625 us, ideal r == 8 at 31250 us
BOUNDARIES = [7_812.5, 15_625, 31_250]
EDGE_POINTS = sorted(
    {
        edge + delta
        for edge in BOUNDARIES
        for delta in (-1, -0.5, -0.001, 0, 0.001, 0.5, 1)
    }
)


@pytest.mark.parametrize("measured", EDGE_POINTS)
def test_branch_edges_within_bounds(measured):
    shift, r, p = calibrate(measured, target=250_000)
    assert 1 <= shift <= 17
    assert r >= 1 and p >= 1
    assert memory_cost(shift, r) <= MEMORY_LIMIT


def test_branch_edges_monotonic():
    costs = []
    for measured in EDGE_POINTS:
        shift, r, p = calibrate(measured, target=250_000)
        costs.append((1 << shift) * r * p)
    assert costs == sorted(costs, reverse=True)


def test_steps_edges():
    assert calibrate(7_812.5, target=250_000) == (17, 8, 1)
    assert calibrate(7_813, target=250_000) == (16, 8, 1)
    assert calibrate(15_626, target=250_000) == (14, 15, 1)
    assert calibrate(31_249, target=250_000) == (14, 8, 1)


measurements = st.floats(
    min_value=0, max_value=1e12, allow_nan=False, allow_infinity=False
)


@settings(max_examples=500, deadline=None)
@given(measured=measurements, check=st.sampled_from(list(OverflowCheck)))
def test_any_measurement_within_bounds(measured, check):
    shift, r, p = calibrate(measured, target=250_000, check=check)
    assert 1 <= shift <= 17
    assert r >= 1
    assert p >= 1
    assert memory_cost(shift, r) <= MEMORY_LIMIT
    assert overflow_product(shift, r, p, check) < OVERFLOW_LIMIT


@settings(max_examples=500, deadline=None)
@given(fast=measurements, slow=measurements)
def test_faster_measurement_never_cheaper(fast, slow):
    if fast > slow:
        fast, slow = slow, fast
    f_shift, f_r, f_p = calibrate(fast, target=250_000)
    s_shift, s_r, s_p = calibrate(slow, target=250_000)
    assert (1 << f_shift) * f_r * f_p >= (1 << s_shift) * s_r * s_p


@settings(max_examples=200, deadline=None)
@given(
    shift=st.integers(min_value=0, max_value=40),
    r=st.integers(min_value=0, max_value=10_000),
)
def test_fit_memory_bound_always_feasible(shift, r):
    new_shift, new_r = fit_memory_bound(shift, r)
    assert new_shift <= shift
    assert new_r >= 1
    if shift > 1:
        assert memory_cost(new_shift, new_r) <= MEMORY_LIMIT


@settings(max_examples=200, deadline=None)
@given(
    r=st.integers(min_value=2, max_value=2**31),
    p=st.integers(min_value=1, max_value=2**31),
)
def test_fit_overflow_bound_parallelism_feasible(r, p):
    new_r, new_p = fit_overflow_bound(14, r, p, check=OverflowCheck.PARALLELISM)
    assert 1 <= new_r <= r
    assert 1 <= new_p <= p
    assert new_r * new_p < OVERFLOW_LIMIT or new_r == 1
