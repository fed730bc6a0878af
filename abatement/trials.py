"""Scaled carbon tax trials used to sample abatement cost curves."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from abatement.config import CostCurveConfig
from abatement.constants import NO_MARKET_PRICE
from abatement.curves import Curve, RegionCurveMap, copy_region_curves
from abatement.scenario import GHGPolicy, Scenario

BaselineCurves = tuple[RegionCurveMap, RegionCurveMap]

LOGGER = logging.getLogger(__name__)


class RegionMismatchError(KeyError):
    """Raised when trials do not report the same set of regions."""


@dataclass
class TrialSet:
    """Emissions quantity and price curves recorded for trials ``0..N``.

    Trial ``N`` is the baseline run under the full tax and trial ``0`` is the
    zero-tax run.
    """

    num_points: int
    quantity: list[RegionCurveMap | None] = field(default_factory=list)
    price: list[RegionCurveMap | None] = field(default_factory=list)
    failed_trials: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.quantity:
            self.quantity = [None] * (self.num_points + 1)
        if not self.price:
            self.price = [None] * (self.num_points + 1)

    @property
    def baseline_index(self) -> int:
        return self.num_points

    def record(self, trial: int, quantity: RegionCurveMap, price: RegionCurveMap) -> None:
        """Store owned copies of the curves produced by ``trial``."""

        self.quantity[trial] = copy_region_curves(quantity)
        self.price[trial] = copy_region_curves(price)

    def quantity_curve(self, trial: int, region: str) -> Curve:
        return _lookup(self.quantity, "quantity", trial, region)

    def price_curve(self, trial: int, region: str) -> Curve:
        return _lookup(self.price, "price", trial, region)

    def regions(self) -> list[str]:
        """Return the regions reported by the baseline quantity curves."""

        baseline = self.quantity[self.baseline_index]
        if baseline is None:
            raise RegionMismatchError("baseline trial has not been recorded")
        return list(baseline)

    def validate_regions(self) -> None:
        """Raise :class:`RegionMismatchError` unless every map has the baseline regions."""

        expected = set(self.regions())
        for label, maps in (("quantity", self.quantity), ("price", self.price)):
            for trial, curves in enumerate(maps):
                if curves is None:
                    raise RegionMismatchError(f"trial {trial} has no {label} curves")
                found = set(curves)
                if found != expected:
                    missing = sorted(expected - found)
                    extra = sorted(found - expected)
                    raise RegionMismatchError(
                        f"trial {trial} {label} regions differ from baseline "
                        f"(missing={missing}, extra={extra})"
                    )


def _lookup(maps: list[RegionCurveMap | None], label: str, trial: int, region: str) -> Curve:
    curves = maps[trial]
    if curves is None:
        raise RegionMismatchError(f"trial {trial} has no {label} curves")
    try:
        return curves[region]
    except KeyError as exc:
        raise RegionMismatchError(f"region {region!r} missing from trial {trial} {label} curves") from exc


class TrialRunner:
    """Re-solves a scenario under fractions of its baseline carbon tax."""

    def __init__(self, scenario: Scenario, config: CostCurveConfig) -> None:
        self.scenario = scenario
        self.config = config

    def policy_active(self) -> bool:
        """Return whether the abated gas has a market in the reference region."""

        price = self.scenario.get_market_price(
            self.config.abated_gas,
            self.config.market_region,
            self.config.market_check_period,
        )
        return price != NO_MARKET_PRICE

    def capture_baseline(self) -> BaselineCurves:
        """Copy the quantity and price curves of the scenario's current solution."""

        gas = self.config.abated_gas
        return (
            copy_region_curves(self.scenario.get_emissions_quantity_curves(gas)),
            copy_region_curves(self.scenario.get_emissions_price_curves(gas)),
        )

    def run(self, baseline: BaselineCurves | None = None) -> tuple[TrialSet, bool]:
        """Run trials ``0..N-1`` and return the trial set and overall success.

        ``baseline`` holds the curves of the full-tax run and becomes trial
        ``N``. When omitted, the scenario must still hold its solved baseline
        run. A trial that fails to solve is logged and its curves are kept;
        the remaining trials still run.
        """

        gas = self.config.abated_gas
        num_points = self.config.num_points
        trials = TrialSet(num_points)
        quantity, price = baseline if baseline is not None else self.capture_baseline()
        trials.record(num_points, quantity, price)
        baseline_prices = trials.price[num_points] or {}
        model_time = self.scenario.model_time

        success = True
        for trial in range(num_points):
            fraction = trial / num_points
            for region, price_curve in baseline_prices.items():
                taxes = [
                    price_curve.get_y(year) * fraction for _, year in model_time.periods()
                ]
                self.scenario.set_tax(GHGPolicy(gas, region, tuple(taxes)))

            LOGGER.info("Starting cost curve point run number %d.", trial)
            solved = bool(self.scenario.run(True, str(trial)))
            if not solved:
                LOGGER.warning(
                    "Cost curve point run %d (tax fraction %.3f) did not solve; "
                    "its curves are kept in the sweep.",
                    trial,
                    fraction,
                )
                trials.failed_trials.append(trial)
            success = success and solved

            trials.record(
                trial,
                self.scenario.get_emissions_quantity_curves(gas),
                self.scenario.get_emissions_price_curves(gas),
            )

        return trials, success


__all__ = ["BaselineCurves", "RegionMismatchError", "TrialRunner", "TrialSet"]
