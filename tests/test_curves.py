"""Tests for piecewise-linear curve lookups, integrals and discounting."""

from __future__ import annotations

import math

import pytest

from abatement.curves import Curve, copy_region_curves


def test_points_are_sorted_regardless_of_insertion_order():
    curve = Curve([(10.0, 1.0), (0.0, 3.0), (5.0, 2.0)])

    assert curve.points == [(0.0, 3.0), (5.0, 2.0), (10.0, 1.0)]
    assert curve.min_x == 0.0
    assert curve.max_x == 10.0
    assert len(curve) == 3


def test_duplicate_x_is_rejected_and_first_value_kept():
    curve = Curve()
    assert curve.add_point(1.0, 5.0)
    assert not curve.add_point(1.0, 7.0)

    assert curve.get_y(1.0) == pytest.approx(5.0)
    assert len(curve) == 1


def test_tolerance_override_merges_nearby_points(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("ABATEMENT_CURVE_X_TOL", "0.01")
    curve = Curve()

    assert curve.add_point(1.0, 5.0)
    assert not curve.add_point(1.005, 7.0)
    assert curve.add_point(1.02, 7.0)


def test_get_y_exact_interpolated_and_extrapolated():
    curve = Curve([(2020, 10.0), (2030, 30.0)])

    assert curve.get_y(2020) == pytest.approx(10.0)
    assert curve.get_y(2025) == pytest.approx(20.0)
    assert curve.get_y(2035) == pytest.approx(40.0)
    assert curve.get_y(2015) == pytest.approx(0.0)


def test_single_point_curve_is_constant():
    curve = Curve([(3.0, 4.5)])

    assert curve.get_y(-100.0) == pytest.approx(4.5)
    assert curve.get_integral(0.0, 10.0) == 0.0


def test_empty_curve_lookup_raises():
    with pytest.raises(ValueError):
        Curve(title="empty").get_y(1.0)


def test_integral_of_linear_curve():
    curve = Curve([(0.0, 0.0), (10.0, 10.0)])

    assert curve.get_integral(0.0, 10.0) == pytest.approx(50.0)
    assert curve.get_integral(2.0, 4.0) == pytest.approx(6.0)


def test_integral_clamps_to_sampled_domain():
    curve = Curve([(0.0, 2.0), (4.0, 2.0), (6.0, 0.0)])

    assert curve.get_integral(0.0, math.inf) == pytest.approx(10.0)
    assert curve.get_integral(-50.0, 4.0) == pytest.approx(8.0)
    assert curve.get_integral(7.0, 9.0) == 0.0


def test_integral_with_reversed_bounds_flips_sign():
    curve = Curve([(0.0, 1.0), (2.0, 1.0)])

    assert curve.get_integral(2.0, 0.0) == pytest.approx(-2.0)


def test_integral_from_zero_when_all_points_are_negative_is_zero():
    curve = Curve([(-200.0, 0.0), (-100.0, 50.0), (0.0, 100.0)])

    assert curve.get_integral(0.0, math.inf) == 0.0


def test_discounted_value_of_constant_flow_matches_closed_form():
    rate = 0.05
    curve = Curve([(2020, 100.0), (2050, 100.0)])
    k = math.log(1.0 + rate)
    expected = 100.0 * (1.0 - math.exp(-k * 30.0)) / k

    assert curve.get_discounted_value(2020, 2050, rate) == pytest.approx(expected)


def test_discounted_value_of_linear_flow_matches_fine_quadrature():
    rate = 0.03
    curve = Curve([(2005, 0.0), (2020, 150.0), (2050, 60.0)])
    steps = 20000
    width = (2050 - 2005) / steps
    total = 0.0
    for index in range(steps):
        mid = 2005 + (index + 0.5) * width
        total += curve.get_y(mid) * (1.0 + rate) ** -(mid - 2005) * width

    assert curve.get_discounted_value(2005, 2050, rate) == pytest.approx(total, rel=1e-6)


def test_discounting_is_measured_from_the_lower_bound():
    rate = 0.05
    curve = Curve([(2020, 10.0), (2030, 10.0)])
    k = math.log(1.0 + rate)
    expected = 10.0 * math.exp(-k * 15.0) * (1.0 - math.exp(-k * 10.0)) / k

    assert curve.get_discounted_value(2005, 2030, rate) == pytest.approx(expected)


def test_zero_rate_discounting_equals_integral():
    curve = Curve([(2020, 1.0), (2025, 4.0), (2030, 2.0)])

    assert curve.get_discounted_value(2020, 2030, 0.0) == pytest.approx(
        curve.get_integral(2020, 2030)
    )


@pytest.mark.parametrize("rate", [0.01, 0.05, 0.2])
def test_discounted_value_never_exceeds_integral_for_positive_flows(rate):
    curve = Curve([(2020, 5.0), (2030, 50.0), (2040, 20.0)])

    discounted = curve.get_discounted_value(2005, 2040, rate)
    assert 0.0 < discounted <= curve.get_integral(2005, 2040)


def test_discounted_value_with_reversed_bounds_flips_sign():
    curve = Curve([(2020, 100.0), (2030, 50.0)])

    forward = curve.get_discounted_value(2020, 2030, 0.05)
    assert forward > 0.0
    assert curve.get_discounted_value(2030, 2020, 0.05) == pytest.approx(-forward)


def test_discount_rate_at_or_below_minus_one_is_rejected():
    curve = Curve([(0.0, 1.0), (1.0, 1.0)])

    with pytest.raises(ValueError):
        curve.get_discounted_value(0.0, 1.0, -1.0)


def test_copy_region_curves_returns_independent_curves():
    original = {"R1": Curve([(0.0, 1.0)], title="R1", numerical_label=2)}

    copied = copy_region_curves(original)
    copied["R1"].add_point(1.0, 2.0)

    assert len(original["R1"]) == 1
    assert copied["R1"].title == "R1"
    assert copied["R1"].numerical_label == 2


def test_to_frame_lists_sorted_points():
    frame = Curve([(2.0, 20.0), (1.0, 10.0)]).to_frame()

    assert list(frame.columns) == ["x", "y"]
    assert frame["x"].tolist() == [1.0, 2.0]
    assert frame["y"].tolist() == [10.0, 20.0]
