"""Emissions drivers selecting the physical quantity emissions scale with."""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Union

OUTPUT_DRIVER_TAG = "output-driver"
INPUT_DRIVER_TAG = "input-driver"


@dataclass(frozen=True)
class OutputDriver:
    """Emissions proportional to the technology's physical output."""

    tag: str = OUTPUT_DRIVER_TAG


@dataclass(frozen=True)
class InputDriver:
    """Emissions proportional to the physical demand of one named input."""

    input_name: str
    tag: str = INPUT_DRIVER_TAG


EmissionsDriver = Union[OutputDriver, InputDriver]


def parse_emissions_driver(tag: str, attributes: Mapping[str, Any] | None = None) -> EmissionsDriver:
    """Return the driver variant named by ``tag``.

    ``attributes`` supplies variant data, e.g. ``{"input-name": "coal"}`` for
    the input driver.
    """

    normalized = str(tag or "").strip().lower()
    attributes = attributes or {}
    if normalized == OUTPUT_DRIVER_TAG:
        return OutputDriver()
    if normalized == INPUT_DRIVER_TAG:
        input_name = attributes.get("input-name", attributes.get("input_name"))
        if input_name is None or not str(input_name).strip():
            raise ValueError("input-driver requires an 'input-name'")
        return InputDriver(str(input_name).strip())
    raise ValueError(f"Unknown emissions driver type {tag!r}")


def calc_emissions_driver(
    driver: EmissionsDriver,
    inputs: Mapping[str, Sequence[float]],
    outputs: Sequence[Sequence[float]],
    period: int,
) -> float:
    """Return the driver quantity for ``period``.

    ``inputs`` maps input names to per-period physical demand and ``outputs``
    holds per-period physical output for each output of the technology.
    """

    if isinstance(driver, InputDriver):
        demand = inputs.get(driver.input_name)
        return float(demand[period]) if demand is not None else 0.0
    if isinstance(driver, OutputDriver):
        return float(sum(output[period] for output in outputs))
    raise TypeError(f"Unsupported emissions driver {driver!r}")


__all__ = [
    "EmissionsDriver",
    "INPUT_DRIVER_TAG",
    "InputDriver",
    "OUTPUT_DRIVER_TAG",
    "OutputDriver",
    "calc_emissions_driver",
    "parse_emissions_driver",
]
