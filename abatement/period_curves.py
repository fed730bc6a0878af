"""Marginal abatement cost curves per model period and region."""
from __future__ import annotations

import logging

from abatement.curves import Curve, RegionCurveMap
from abatement.scenario import ModelTime
from abatement.trials import TrialSet

LOGGER = logging.getLogger(__name__)

PeriodCostCurves = list[RegionCurveMap]


class PeriodCostCurveBuilder:
    """Turn trial emissions and prices into reduction -> tax curves.

    Parameters
    ----------
    reduction_reference:
        ``"baseline"`` measures each trial's reduction as the baseline
        (full-tax) quantity minus the trial quantity, so the baseline trial
        sits at zero reduction. ``"zero-tax"`` measures against trial 0
        instead, so the zero-tax trial sits at zero reduction.
    """

    def __init__(self, reduction_reference: str = "baseline") -> None:
        self.reduction_reference = reduction_reference

    def _reference_trial(self, trials: TrialSet) -> int:
        return 0 if self.reduction_reference == "zero-tax" else trials.baseline_index

    def build(self, trials: TrialSet, model_time: ModelTime) -> PeriodCostCurves:
        trials.validate_regions()
        reference = self._reference_trial(trials)
        regions = trials.regions()

        period_curves: PeriodCostCurves = []
        for period, year in model_time.periods():
            curves: RegionCurveMap = {}
            for region in regions:
                reference_quantity = trials.quantity_curve(reference, region).get_y(year)
                curve = Curve(title=f"{region} period cost curve", numerical_label=period)
                for trial in range(trials.num_points + 1):
                    reduction = reference_quantity - trials.quantity_curve(trial, region).get_y(year)
                    tax = trials.price_curve(trial, region).get_y(year)
                    if not curve.add_point(reduction, tax):
                        LOGGER.debug(
                            "Trial %d duplicates a reduction of %s for %s in %d",
                            trial,
                            reduction,
                            region,
                            year,
                        )
                curves[region] = curve
            period_curves.append(curves)
        return period_curves


__all__ = ["PeriodCostCurveBuilder", "PeriodCostCurves"]
