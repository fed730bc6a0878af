"""Interfaces the cost curve engine consumes from the simulation."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from abatement.curves import RegionCurveMap


@dataclass(frozen=True)
class ModelTime:
    """Ordered model periods and their calendar years."""

    years: tuple[int, ...]
    end_year: int | None = None

    def __post_init__(self) -> None:
        years = tuple(int(year) for year in self.years)
        if not years:
            raise ValueError("ModelTime requires at least one period")
        if any(later <= earlier for earlier, later in zip(years, years[1:])):
            raise ValueError(f"model years must be strictly increasing: {years}")
        object.__setattr__(self, "years", years)
        end_year = years[-1] if self.end_year is None else int(self.end_year)
        if end_year < years[-1]:
            raise ValueError("end_year cannot precede the final model period")
        object.__setattr__(self, "end_year", end_year)

    @property
    def max_period(self) -> int:
        return len(self.years)

    def periods(self) -> list[tuple[int, int]]:
        """Return ``(period, year)`` pairs in model order."""

        return list(enumerate(self.years))


@dataclass(frozen=True)
class GHGPolicy:
    """Fixed per-period tax on one gas in one region."""

    gas: str
    region: str
    taxes: tuple[float, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "taxes", tuple(float(value) for value in self.taxes))


@runtime_checkable
class Scenario(Protocol):
    """Simulation collaborator re-solved once per cost curve trial."""

    name: str

    @property
    def model_time(self) -> ModelTime: ...

    def get_market_price(self, gas: str, region: str, period: int) -> float: ...

    def set_tax(self, policy: GHGPolicy) -> None: ...

    def run(self, all_periods: bool = True, output_tag: str = "") -> bool: ...

    def get_emissions_quantity_curves(self, gas: str) -> RegionCurveMap: ...

    def get_emissions_price_curves(self, gas: str) -> RegionCurveMap: ...


__all__ = ["GHGPolicy", "ModelTime", "Scenario"]
