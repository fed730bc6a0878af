"""Tests for regional and global policy cost aggregation."""

from __future__ import annotations

import pytest

from abatement.config import CostCurveConfig
from abatement.curves import Curve
from abatement.regional_costs import PolicySummary, RegionalCostAggregator
from abatement.scenario import ModelTime
from abatement.trials import RegionMismatchError

MODEL_TIME = ModelTime((2020, 2025, 2030))


def _mac(full_reduction: float, full_tax: float, region: str) -> Curve:
    """Linear marginal cost curve from the origin to ``(full_reduction, full_tax)``."""

    return Curve(
        [(full_reduction * k / 4, full_tax * k / 4) for k in range(5)],
        title=f"{region} period cost curve",
    )


def _period_curves() -> list[dict[str, Curve]]:
    return [
        {
            "R1": _mac(100.0, 50.0, "R1"),
            "R2": _mac(40.0, 20.0, "R2"),
            "global": _mac(500.0, 500.0, "global"),
        },
        {
            "R1": _mac(200.0, 100.0, "R1"),
            "R2": _mac(80.0, 40.0, "R2"),
            "global": _mac(500.0, 500.0, "global"),
        },
        {
            "R1": _mac(300.0, 150.0, "R1"),
            "R2": _mac(120.0, 60.0, "R2"),
            "global": _mac(500.0, 500.0, "global"),
        },
    ]


def test_period_cost_is_area_under_marginal_cost_curve():
    curves, _ = RegionalCostAggregator(CostCurveConfig()).aggregate(_period_curves(), MODEL_TIME)

    r1 = curves["R1"]
    assert r1.title == "R1"
    assert r1.points == [
        (2020.0, pytest.approx(2500.0)),
        (2025.0, pytest.approx(10000.0)),
        (2030.0, pytest.approx(22500.0)),
    ]


def test_aggregate_region_is_excluded_from_totals():
    curves, summary = RegionalCostAggregator(CostCurveConfig()).aggregate(
        _period_curves(), MODEL_TIME
    )

    assert "global" not in curves
    assert set(summary.regional_costs) == {"R1", "R2"}


def test_global_cost_is_sum_of_regional_integrals():
    config = CostCurveConfig(discount_start_year=2005)
    curves, summary = RegionalCostAggregator(config).aggregate(_period_curves(), MODEL_TIME)

    expected = sum(curve.get_integral(2005, MODEL_TIME.end_year) for curve in curves.values())
    assert summary.global_cost == pytest.approx(expected)
    assert summary.regional_costs["R1"] == pytest.approx(112500.0)
    assert summary.regional_costs["R2"] == pytest.approx(18000.0)
    assert summary.global_discounted_cost == pytest.approx(
        sum(summary.regional_discounted_costs.values())
    )


def test_discounted_costs_do_not_exceed_undiscounted_costs():
    config = CostCurveConfig(discount_rate=0.05, discount_start_year=2005)
    _, summary = RegionalCostAggregator(config).aggregate(_period_curves(), MODEL_TIME)

    for region, cost in summary.regional_costs.items():
        assert 0.0 < summary.regional_discounted_costs[region] <= cost


def test_discount_start_year_limits_integration():
    config = CostCurveConfig(discount_start_year=2025)
    _, summary = RegionalCostAggregator(config).aggregate(_period_curves(), MODEL_TIME)

    assert summary.regional_costs["R1"] == pytest.approx(81250.0)


def test_custom_aggregate_region_name():
    config = CostCurveConfig(aggregate_region="R2")
    curves, summary = RegionalCostAggregator(config).aggregate(_period_curves(), MODEL_TIME)

    assert set(curves) == {"R1", "global"}


def test_missing_region_in_later_period_is_fatal():
    period_curves = _period_curves()
    del period_curves[2]["R2"]

    with pytest.raises(RegionMismatchError):
        RegionalCostAggregator(CostCurveConfig()).aggregate(period_curves, MODEL_TIME)


def test_no_period_curves_yields_empty_summary():
    curves, summary = RegionalCostAggregator(CostCurveConfig()).aggregate([], MODEL_TIME)

    assert curves == {}
    assert summary.global_cost == 0.0
    assert summary.to_frame().empty


def test_summary_frame_lists_regions():
    summary = PolicySummary()
    summary.add_region("B", 2.0, 1.5)
    summary.add_region("A", 1.0, 0.5)

    frame = summary.to_frame()

    assert frame["region"].tolist() == ["A", "B"]
    assert frame["discounted_cost"].tolist() == [0.5, 1.5]
    assert summary.global_cost == pytest.approx(3.0)
    assert summary.global_discounted_cost == pytest.approx(2.0)
