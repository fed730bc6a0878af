"""Reference scenario with a closed-form linear abatement response.

Each technology emits ``driver * emissions_coef`` before policy. A carbon tax
``t`` scales that by ``max(0, 1 - t / choke_price)``, so emissions fall
linearly until the tax reaches the choke price. The scenario satisfies the
:class:`~abatement.scenario.Scenario` protocol and is what the command line
runs when no external model is wired in.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from abatement.constants import GLOBAL_REGION, NO_MARKET_PRICE
from abatement.curves import Curve, RegionCurveMap
from abatement.emissions_drivers import (
    OUTPUT_DRIVER_TAG,
    EmissionsDriver,
    calc_emissions_driver,
    parse_emissions_driver,
)
from abatement.scenario import GHGPolicy, ModelTime

LOGGER = logging.getLogger(__name__)

_REQUIRED_COLUMNS = ("region", "year", "technology", "emissions_coef")
_DEFAULTS: dict[str, Any] = {
    "gas": "CO2",
    "driver": OUTPUT_DRIVER_TAG,
    "input_name": "",
    "input_demand": 0.0,
    "output": 0.0,
    "choke_price": 0.0,
}
_NUMERIC_COLUMNS = ("emissions_coef", "input_demand", "output", "choke_price")


def validate_technologies(frame: pd.DataFrame) -> pd.DataFrame:
    """Return a cleaned copy of the technology table with defaults filled."""

    if not isinstance(frame, pd.DataFrame):
        raise TypeError("technologies must be provided as a pandas DataFrame")
    missing = [column for column in _REQUIRED_COLUMNS if column not in frame.columns]
    if missing:
        raise ValueError(f"technology data is missing required columns: {missing}")
    if frame.empty:
        raise ValueError("technology data contains no rows")

    cleaned = frame.copy(deep=True)
    for column, default in _DEFAULTS.items():
        if column not in cleaned.columns:
            cleaned[column] = default
        cleaned[column] = cleaned[column].fillna(default)

    cleaned["year"] = pd.to_numeric(cleaned["year"], errors="coerce")
    if cleaned["year"].isna().any():
        raise ValueError("column 'year' must contain numeric values")
    cleaned["year"] = cleaned["year"].astype(int)

    for column in _NUMERIC_COLUMNS:
        cleaned[column] = pd.to_numeric(cleaned[column], errors="coerce")
        if cleaned[column].isna().any():
            raise ValueError(f"column '{column}' must contain numeric values")

    for column in ("region", "technology", "gas", "driver", "input_name"):
        cleaned[column] = cleaned[column].astype(str).str.strip()

    if cleaned.duplicated(subset=["gas", "region", "technology", "year"]).any():
        raise ValueError("technology rows must be unique per gas, region, technology and year")
    return cleaned


def load_technologies(path: str | Path) -> pd.DataFrame:
    """Read and validate a technology CSV."""

    return validate_technologies(pd.read_csv(Path(path)))


@dataclass(frozen=True)
class _Technology:
    gas: str
    region: str
    driver: EmissionsDriver
    inputs: Mapping[str, Sequence[float]]
    outputs: Sequence[Sequence[float]]
    emissions_coef: Sequence[float]
    choke_price: Sequence[float]


class LinearAbatementScenario:
    """Scenario whose emissions respond linearly to the installed carbon tax."""

    def __init__(
        self,
        technologies: pd.DataFrame,
        *,
        name: str = "reference",
        end_year: int | None = None,
        aggregate_region: str = GLOBAL_REGION,
        policies: Iterable[GHGPolicy] = (),
    ) -> None:
        frame = validate_technologies(technologies)
        self.name = name
        self.aggregate_region = aggregate_region
        self._model_time = ModelTime(tuple(sorted(frame["year"].unique())), end_year)
        self._technologies = self._build_technologies(frame)
        self._regions: dict[str, list[str]] = {}
        for tech in self._technologies:
            regions = self._regions.setdefault(tech.gas, [])
            if tech.region not in regions:
                regions.append(tech.region)
        self._taxes: dict[tuple[str, str], tuple[float, ...]] = {}
        self._emissions: dict[str, dict[str, list[float]]] | None = None
        for policy in policies:
            self.set_tax(policy)

    @property
    def model_time(self) -> ModelTime:
        return self._model_time

    def _build_technologies(self, frame: pd.DataFrame) -> list[_Technology]:
        years = self._model_time.years
        technologies: list[_Technology] = []
        grouped = frame.groupby(["gas", "region", "technology"], sort=False)
        for (gas, region, technology), rows in grouped:
            rows = rows.set_index("year").reindex(years)
            drivers = {str(value) for value in rows["driver"].dropna()}
            input_names = {str(value) for value in rows["input_name"].dropna() if str(value)}
            if len(drivers) != 1 or len(input_names) > 1:
                raise ValueError(
                    f"technology {technology!r} in {region!r} must use one driver and input"
                )
            input_name = next(iter(input_names), "")
            driver = parse_emissions_driver(drivers.pop(), {"input-name": input_name})
            inputs = {}
            if input_name:
                inputs[input_name] = rows["input_demand"].fillna(0.0).tolist()
            technologies.append(
                _Technology(
                    gas=str(gas),
                    region=str(region),
                    driver=driver,
                    inputs=inputs,
                    outputs=[rows["output"].fillna(0.0).tolist()],
                    emissions_coef=rows["emissions_coef"].fillna(0.0).tolist(),
                    choke_price=rows["choke_price"].fillna(0.0).tolist(),
                )
            )
        return technologies

    def regions(self, gas: str) -> list[str]:
        return list(self._regions.get(gas, []))

    def get_market_price(self, gas: str, region: str, period: int) -> float:
        taxes = self._taxes.get((gas, region))
        if taxes is None or not 0 <= period < len(taxes):
            return NO_MARKET_PRICE
        return taxes[period]

    def set_tax(self, policy: GHGPolicy) -> None:
        if len(policy.taxes) != self._model_time.max_period:
            raise ValueError(
                f"tax for {policy.gas}/{policy.region} has {len(policy.taxes)} periods; "
                f"expected {self._model_time.max_period}"
            )
        self._taxes[(policy.gas, policy.region)] = policy.taxes

    def _tax(self, gas: str, region: str, period: int) -> float:
        taxes = self._taxes.get((gas, region))
        return taxes[period] if taxes is not None else 0.0

    def run(self, all_periods: bool = True, output_tag: str = "") -> bool:
        """Solve emissions for every period; return ``False`` on non-finite results."""

        periods = range(self._model_time.max_period if all_periods else 1)
        emissions: dict[str, dict[str, list[float]]] = {}
        solved = True
        for tech in self._technologies:
            totals = emissions.setdefault(tech.gas, {}).setdefault(
                tech.region, [0.0] * self._model_time.max_period
            )
            for period in periods:
                driver_value = calc_emissions_driver(tech.driver, tech.inputs, tech.outputs, period)
                tax = self._tax(tech.gas, tech.region, period)
                choke = tech.choke_price[period]
                remaining = max(0.0, 1.0 - tax / choke) if choke > 0.0 else 1.0
                value = driver_value * tech.emissions_coef[period] * remaining
                if not math.isfinite(value):
                    solved = False
                    value = 0.0
                totals[period] += value

        self._emissions = emissions
        if not solved:
            LOGGER.warning("Scenario %s run %r produced non-finite emissions", self.name, output_tag)
        return solved

    def _solved_emissions(self, gas: str) -> dict[str, list[float]]:
        if self._emissions is None:
            raise RuntimeError(f"scenario {self.name!r} has not been run")
        return self._emissions.get(gas, {})

    def get_emissions_quantity_curves(self, gas: str) -> RegionCurveMap:
        years = self._model_time.years
        emissions = self._solved_emissions(gas)
        curves: RegionCurveMap = {}
        aggregate = [0.0] * len(years)
        for region in self.regions(gas):
            values = emissions.get(region, [0.0] * len(years))
            curves[region] = Curve(zip(years, values), title=region)
            aggregate = [total + value for total, value in zip(aggregate, values)]
        curves[self.aggregate_region] = Curve(zip(years, aggregate), title=self.aggregate_region)
        return curves

    def get_emissions_price_curves(self, gas: str) -> RegionCurveMap:
        self._solved_emissions(gas)
        years = self._model_time.years
        regions = self.regions(gas)
        curves: RegionCurveMap = {}
        for region in regions:
            taxes = [self._tax(gas, region, period) for period in range(len(years))]
            curves[region] = Curve(zip(years, taxes), title=region)

        installed = self._taxes.get((gas, self.aggregate_region))
        if installed is not None:
            aggregate = list(installed)
        else:
            aggregate = [
                sum(self._tax(gas, region, period) for region in regions) / max(len(regions), 1)
                for period in range(len(years))
            ]
        curves[self.aggregate_region] = Curve(zip(years, aggregate), title=self.aggregate_region)
        return curves


def tax_policies_from_config(
    data: Mapping[str, Any], model_time: ModelTime
) -> list[GHGPolicy]:
    """Build policies from a ``[policy]`` table.

    ``[policy.tax.<region>]`` maps years to tax levels; model years between or
    beyond the listed years are interpolated along the listed points.
    """

    policy_cfg = data.get("policy", {}) if isinstance(data, Mapping) else {}
    if not isinstance(policy_cfg, Mapping):
        raise ValueError("[policy] must be a table")
    gas = str(policy_cfg.get("gas", "CO2"))
    tax_cfg = policy_cfg.get("tax", {})
    if not isinstance(tax_cfg, Mapping):
        raise ValueError("[policy.tax] must be a table of regions")

    policies: list[GHGPolicy] = []
    for region, schedule in tax_cfg.items():
        if not isinstance(schedule, Mapping) or not schedule:
            raise ValueError(f"tax schedule for {region!r} must map years to prices")
        try:
            curve = Curve((int(year), float(price)) for year, price in schedule.items())
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid tax schedule for {region!r}: {exc}") from exc
        taxes = tuple(max(0.0, curve.get_y(year)) for _, year in model_time.periods())
        policies.append(GHGPolicy(gas, str(region), taxes))
    return policies


__all__ = [
    "LinearAbatementScenario",
    "load_technologies",
    "tax_policies_from_config",
    "validate_technologies",
]
