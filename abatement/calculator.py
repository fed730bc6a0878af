"""Total policy cost calculation driven by a carbon tax sweep."""
from __future__ import annotations

import enum
import logging

from abatement.config import CostCurveConfig
from abatement.curves import RegionCurveMap
from abatement.outputs import CostCurveReport, ReportSink
from abatement.period_curves import PeriodCostCurveBuilder, PeriodCostCurves
from abatement.regional_costs import PolicySummary, RegionalCostAggregator
from abatement.scenario import Scenario
from abatement.trials import BaselineCurves, TrialRunner, TrialSet

LOGGER = logging.getLogger(__name__)


class CalculatorState(enum.Enum):
    NOT_RUN = "not_run"
    SKIPPED = "skipped"
    RUNNING_TRIALS = "running_trials"
    BUILDING_PERIOD_CURVES = "building_period_curves"
    AGGREGATING_REGIONAL_CURVES = "aggregating_regional_curves"
    DONE = "done"


class TotalPolicyCostCalculator:
    """Compute abatement cost curves and total policy costs for a scenario.

    The scenario passed in must already have been solved under its policy.
    The curves of that run are captured on the first sweep and reused as the
    full-tax trial by later sweeps, since a sweep leaves the scenario solved
    under a partial tax. Results are only valid, and only reported, once
    :attr:`ran` is true.
    """

    def __init__(self, scenario: Scenario, config: CostCurveConfig | None = None) -> None:
        self.scenario = scenario
        self.config = config or CostCurveConfig()
        self._baseline: BaselineCurves | None = None
        self._reset()

    def _reset(self) -> None:
        self.state = CalculatorState.NOT_RUN
        self.ran = False
        self.trials: TrialSet | None = None
        self.period_cost_curves: PeriodCostCurves = []
        self.regional_cost_curves: RegionCurveMap = {}
        self.summary = PolicySummary()

    def forget_baseline(self) -> None:
        """Capture the full-tax run afresh on the next sweep.

        Call this after re-solving the scenario under a different policy.
        """

        self._baseline = None

    @property
    def global_cost(self) -> float:
        return self.summary.global_cost

    @property
    def global_discounted_cost(self) -> float:
        return self.summary.global_discounted_cost

    def calculate_abatement_cost_curve(self) -> bool:
        """Run the tax sweep and compute regional and global costs.

        Returns whether every trial solved. When the abated gas has no market
        the sweep is skipped, ``True`` is returned and :attr:`ran` stays false.
        """

        self._reset()
        runner = TrialRunner(self.scenario, self.config)
        if not runner.policy_active():
            LOGGER.info("Skipping cost curve calculations for non-policy model run.")
            self.state = CalculatorState.SKIPPED
            self._baseline = None
            return True

        model_time = self.scenario.model_time

        self.state = CalculatorState.RUNNING_TRIALS
        if self._baseline is None:
            self._baseline = runner.capture_baseline()
        self.trials, success = runner.run(self._baseline)

        self.state = CalculatorState.BUILDING_PERIOD_CURVES
        builder = PeriodCostCurveBuilder(self.config.reduction_reference)
        self.period_cost_curves = builder.build(self.trials, model_time)

        self.state = CalculatorState.AGGREGATING_REGIONAL_CURVES
        aggregator = RegionalCostAggregator(self.config)
        self.regional_cost_curves, self.summary = aggregator.aggregate(
            self.period_cost_curves, model_time
        )

        self.state = CalculatorState.DONE
        self.ran = True
        self._warn_if_costs_vanish()
        if not success:
            LOGGER.warning(
                "Cost curves built with failed trial runs: %s", self.trials.failed_trials
            )
        LOGGER.info(
            "Global policy cost %.6g (discounted %.6g)",
            self.summary.global_cost,
            self.summary.global_discounted_cost,
        )
        return success

    def _warn_if_costs_vanish(self) -> None:
        if self.config.reduction_reference != "baseline" or not self.regional_cost_curves:
            return
        if all(y <= 0.0 for curve in self.regional_cost_curves.values() for _, y in curve):
            LOGGER.warning(
                "Every period cost is zero or negative when reductions are measured "
                "against the baseline run; set reduction-reference = \"zero-tax\" to "
                "measure them against the untaxed trial."
            )

    def report(self) -> CostCurveReport | None:
        """Return the report for the last sweep, or ``None`` if it did not run."""

        if not self.ran:
            return None
        return CostCurveReport(
            scenario_name=self.scenario.name,
            model_time=self.scenario.model_time,
            period_curves=self.period_cost_curves,
            regional_curves=self.regional_cost_curves,
            summary=self.summary,
        )

    def print_output(self, sink: ReportSink) -> bool:
        """Send the report to ``sink``; return whether anything was written."""

        report = self.report()
        if report is None:
            return False
        sink.write(report, self.config.output_name_for(self.scenario.name))
        return True


__all__ = ["CalculatorState", "TotalPolicyCostCalculator"]
