"""Abatement cost curve engine public API."""

from __future__ import annotations

from abatement.calculator import CalculatorState, TotalPolicyCostCalculator
from abatement.config import ConfigError, CostCurveConfig, load_config, load_run_config
from abatement.curves import Curve, RegionCurveMap
from abatement.outputs import CostCurveReport, FileReportSink
from abatement.period_curves import PeriodCostCurveBuilder
from abatement.regional_costs import PolicySummary, RegionalCostAggregator
from abatement.scenario import GHGPolicy, ModelTime, Scenario
from abatement.trials import RegionMismatchError, TrialRunner, TrialSet

__all__ = [
    "CalculatorState",
    "ConfigError",
    "CostCurveConfig",
    "CostCurveReport",
    "Curve",
    "FileReportSink",
    "GHGPolicy",
    "ModelTime",
    "PeriodCostCurveBuilder",
    "PolicySummary",
    "RegionCurveMap",
    "RegionMismatchError",
    "RegionalCostAggregator",
    "Scenario",
    "TotalPolicyCostCalculator",
    "TrialRunner",
    "TrialSet",
    "load_config",
    "load_run_config",
]
