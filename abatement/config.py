"""Configuration for abatement cost curve calculations."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

try:  # pragma: no cover - Python < 3.11 fallback
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - dependency fallback
    import tomli as tomllib  # type: ignore[import-not-found]

from abatement.constants import GLOBAL_REGION

LOGGER = logging.getLogger(__name__)

REDUCTION_REFERENCES = ("baseline", "zero-tax")


class ConfigError(ValueError):
    """Raised when cost curve configuration values are invalid."""


# Legacy configuration names mapped to dataclass fields.
_KEY_ALIASES: dict[str, str] = {
    "AbatedGasForCostCurves": "abated_gas",
    "numPointsForCO2CostCurve": "num_points",
    "discountRate": "discount_rate",
    "discount-start-year": "discount_start_year",
    "market-region": "market_region",
    "market-check-period": "market_check_period",
    "aggregate-region": "aggregate_region",
    "reduction-reference": "reduction_reference",
    "costCurvesOutputFileName": "output_file_name",
}


@dataclass(frozen=True)
class CostCurveConfig:
    """Explicit settings consumed by :class:`~abatement.calculator.TotalPolicyCostCalculator`."""

    abated_gas: str = "CO2"
    num_points: int = 5
    discount_rate: float = 0.05
    discount_start_year: int = 2005
    market_region: str = "USA"
    market_check_period: int = 1
    aggregate_region: str = GLOBAL_REGION
    reduction_reference: str = "baseline"
    output_file_name: str | None = None

    def __post_init__(self) -> None:
        if not str(self.abated_gas).strip():
            raise ConfigError("AbatedGasForCostCurves must be a non-empty gas name")
        if isinstance(self.num_points, bool) or int(self.num_points) != self.num_points:
            raise ConfigError("numPointsForCO2CostCurve must be an integer")
        if self.num_points < 1:
            raise ConfigError(
                f"numPointsForCO2CostCurve must be at least 1, got {self.num_points}"
            )
        if self.discount_rate <= -1.0:
            raise ConfigError(f"discountRate must be greater than -1, got {self.discount_rate}")
        if self.market_check_period < 0:
            raise ConfigError("market-check-period must be non-negative")
        if self.reduction_reference not in REDUCTION_REFERENCES:
            options = ", ".join(REDUCTION_REFERENCES)
            raise ConfigError(
                f"reduction-reference must be one of {options}; got {self.reduction_reference!r}"
            )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "CostCurveConfig":
        """Build a configuration from legacy or snake_case keys.

        Missing keys keep their defaults; unknown keys are ignored.
        """

        if not data:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError("cost curve configuration must be a mapping")

        known = {field.name: field for field in fields(cls)}
        values: dict[str, Any] = {}
        for raw_key, raw_value in data.items():
            key = _KEY_ALIASES.get(str(raw_key), str(raw_key).replace("-", "_"))
            if key not in known:
                LOGGER.debug("Ignoring unknown cost curve setting %r", raw_key)
                continue
            values[key] = _coerce_value(key, raw_value)
        return replace(cls(), **values)

    def output_name_for(self, scenario_name: str) -> str:
        """Return the XML file name for ``scenario_name``."""

        if self.output_file_name:
            return self.output_file_name
        return f"cost_curves_{scenario_name}.xml"


def _coerce_value(key: str, value: Any) -> Any:
    try:
        if key in {"num_points", "discount_start_year", "market_check_period"}:
            if isinstance(value, bool):
                raise TypeError("boolean is not an integer")
            numeric = float(value)
            if not numeric.is_integer():
                raise ValueError(f"{value!r} is not a whole number")
            return int(numeric)
        if key == "discount_rate":
            if isinstance(value, bool):
                raise TypeError("boolean is not a number")
            return float(value)
        if value is None:
            return None
        return str(value).strip()
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid value for {key}: {value!r}") from exc


def load_config_data(path: str | Path) -> dict[str, Any]:
    """Return the parsed TOML document at ``path``."""

    config_path = Path(path).expanduser()
    try:
        with config_path.open("rb") as handle:
            return tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Unable to parse configuration file {config_path}: {exc}") from exc


def load_run_config(path: str | Path) -> tuple[dict[str, Any], CostCurveConfig]:
    """Return the parsed run config at ``path`` and its ``[cost_curves]`` settings.

    The raw document is returned as well because scenario, policy and
    constant override tables live beside ``[cost_curves]``.
    """

    data = load_config_data(path)
    section = data.get("cost_curves", {})
    if not isinstance(section, Mapping):
        raise ConfigError("[cost_curves] must be a table")
    return data, CostCurveConfig.from_mapping(section)


def load_config(path: str | Path) -> CostCurveConfig:
    """Load :class:`CostCurveConfig` from the ``[cost_curves]`` table of a TOML file."""

    return load_run_config(path)[1]


__all__ = [
    "ConfigError",
    "CostCurveConfig",
    "REDUCTION_REFERENCES",
    "load_config",
    "load_config_data",
    "load_run_config",
]
