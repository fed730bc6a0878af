"""Regional and global policy cost totals from period abatement curves."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

import pandas as pd

from abatement.config import CostCurveConfig
from abatement.curves import Curve, RegionCurveMap
from abatement.period_curves import PeriodCostCurves
from abatement.scenario import ModelTime
from abatement.trials import RegionMismatchError

LOGGER = logging.getLogger(__name__)


@dataclass
class PolicySummary:
    """Undiscounted and discounted policy costs by region and in total."""

    regional_costs: dict[str, float] = field(default_factory=dict)
    regional_discounted_costs: dict[str, float] = field(default_factory=dict)
    global_cost: float = 0.0
    global_discounted_cost: float = 0.0

    def add_region(self, region: str, cost: float, discounted_cost: float) -> None:
        self.regional_costs[region] = cost
        self.regional_discounted_costs[region] = discounted_cost
        self.global_cost += cost
        self.global_discounted_cost += discounted_cost

    def to_frame(self) -> pd.DataFrame:
        """Return one row per region with undiscounted and discounted costs."""

        columns = ["region", "undiscounted_cost", "discounted_cost"]
        rows = [
            {
                "region": region,
                "undiscounted_cost": cost,
                "discounted_cost": self.regional_discounted_costs.get(region, 0.0),
            }
            for region, cost in sorted(self.regional_costs.items())
        ]
        if not rows:
            return pd.DataFrame(columns=columns)
        return pd.DataFrame(rows, columns=columns)


class RegionalCostAggregator:
    """Integrate period cost curves into regional cost curves and totals."""

    def __init__(self, config: CostCurveConfig) -> None:
        self.discount_rate = config.discount_rate
        self.start_year = config.discount_start_year
        self.aggregate_region = config.aggregate_region

    def aggregate(
        self, period_curves: PeriodCostCurves, model_time: ModelTime
    ) -> tuple[RegionCurveMap, PolicySummary]:
        summary = PolicySummary()
        regional_curves: RegionCurveMap = {}
        if not period_curves:
            return regional_curves, summary

        end_year = model_time.end_year
        for region in period_curves[0]:
            if region == self.aggregate_region:
                continue

            cost_curve = Curve(title=region)
            for period, year in model_time.periods():
                try:
                    period_curve = period_curves[period][region]
                except KeyError as exc:
                    raise RegionMismatchError(
                        f"region {region!r} has no cost curve in period {period}"
                    ) from exc
                # Area from zero reduction to the largest observed reduction.
                cost_curve.add_point(year, period_curve.get_integral(0.0, math.inf))

            regional_cost = cost_curve.get_integral(self.start_year, end_year)
            discounted_cost = cost_curve.get_discounted_value(
                self.start_year, end_year, self.discount_rate
            )
            LOGGER.debug(
                "Region %s policy cost %.6g (discounted %.6g)",
                region,
                regional_cost,
                discounted_cost,
            )
            regional_curves[region] = cost_curve
            summary.add_region(region, regional_cost, discounted_cost)

        return regional_curves, summary


__all__ = ["PolicySummary", "RegionalCostAggregator"]
