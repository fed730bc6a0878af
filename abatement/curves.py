"""Piecewise-linear curves over explicit point sets.

A :class:`Curve` stores ``(x, y)`` samples keyed by ``x`` and treats the
function between samples as linear. Lookups outside the sampled domain
extrapolate along the nearest end segment, while integrals are clamped to the
sampled domain so that open bounds such as ``math.inf`` can be passed
directly.
"""
from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Iterator

import numpy as np
import pandas as pd

from abatement.constants import curve_x_tolerance

LOGGER = logging.getLogger(__name__)


class Curve:
    """Continuous function represented by ordered two-dimensional points."""

    def __init__(
        self,
        points: Iterable[tuple[float, float]] | None = None,
        *,
        title: str = "",
        numerical_label: int | None = None,
    ) -> None:
        self._points: dict[float, float] = {}
        self.title = title
        self.numerical_label = numerical_label
        for x, y in points or ():
            self.add_point(x, y)

    def add_point(self, x: float, y: float) -> bool:
        """Insert ``(x, y)``; return ``False`` when ``x`` is already sampled."""

        x = float(x)
        y = float(y)
        tolerance = curve_x_tolerance()
        if any(math.isclose(x, existing, rel_tol=0.0, abs_tol=tolerance) for existing in self._points):
            LOGGER.debug("Curve %r already holds a point at x=%s; ignoring y=%s", self.title, x, y)
            return False
        self._points[x] = y
        return True

    @property
    def points(self) -> list[tuple[float, float]]:
        """Return the sampled points sorted by ``x``."""

        return sorted(self._points.items())

    def _arrays(self) -> tuple[np.ndarray, np.ndarray]:
        ordered = self.points
        xs = np.array([x for x, _ in ordered], dtype=float)
        ys = np.array([y for _, y in ordered], dtype=float)
        return xs, ys

    @property
    def min_x(self) -> float:
        if not self._points:
            raise ValueError("Curve has no points")
        return min(self._points)

    @property
    def max_x(self) -> float:
        if not self._points:
            raise ValueError("Curve has no points")
        return max(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[tuple[float, float]]:
        return iter(self.points)

    def __repr__(self) -> str:
        return f"Curve(title={self.title!r}, points={self.points!r})"

    def copy(self) -> "Curve":
        """Return an independent curve with the same points and labels."""

        return Curve(self.points, title=self.title, numerical_label=self.numerical_label)

    def get_y(self, x: float) -> float:
        """Return the value at ``x`` by exact match, interpolation or extrapolation."""

        if not self._points:
            raise ValueError(f"Cannot evaluate empty curve {self.title!r}")
        x = float(x)
        if x in self._points:
            return self._points[x]

        xs, ys = self._arrays()
        if len(xs) == 1:
            return float(ys[0])
        if x < xs[0]:
            return _linear(x, xs[0], ys[0], xs[1], ys[1])
        if x > xs[-1]:
            return _linear(x, xs[-2], ys[-2], xs[-1], ys[-1])
        return float(np.interp(x, xs, ys))

    def _segments(self, low: float, high: float) -> tuple[np.ndarray, np.ndarray]:
        """Return breakpoints and values covering ``[low, high]`` within the domain."""

        xs, _ = self._arrays()
        lower = max(low, float(xs[0]))
        upper = min(high, float(xs[-1]))
        if len(xs) < 2 or lower >= upper:
            return np.empty(0), np.empty(0)
        interior = xs[(xs > lower) & (xs < upper)]
        bounds = np.concatenate(([lower], interior, [upper]))
        values = np.array([self.get_y(value) for value in bounds], dtype=float)
        return bounds, values

    def get_integral(self, low: float, high: float) -> float:
        """Return the area under the curve between ``low`` and ``high``.

        Bounds are clamped to the sampled domain; an empty or single-point
        curve integrates to zero. Reversed bounds flip the sign.
        """

        if high < low:
            return -self.get_integral(high, low)
        if len(self._points) < 2:
            return 0.0
        bounds, values = self._segments(low, high)
        if bounds.size == 0:
            return 0.0
        widths = np.diff(bounds)
        return float(np.sum(widths * (values[1:] + values[:-1]) / 2.0))

    def get_discounted_value(self, low: float, high: float, discount_rate: float) -> float:
        """Return the present value at ``low`` of the curve treated as a flow.

        Each segment is integrated exactly against ``(1 + rate) ** -(x - low)``
        over the part of ``[low, high]`` covered by the sampled domain. As with
        :meth:`get_integral`, reversed bounds flip the sign.
        """

        if discount_rate <= -1.0:
            raise ValueError(f"discount rate must be greater than -1, got {discount_rate}")
        if high < low:
            return -self.get_discounted_value(high, low, discount_rate)
        if len(self._points) < 2:
            return 0.0
        bounds, values = self._segments(low, high)
        if bounds.size == 0:
            return 0.0

        k = math.log1p(discount_rate)
        total = 0.0
        for x0, x1, y0, y1 in zip(bounds[:-1], bounds[1:], values[:-1], values[1:]):
            width = float(x1 - x0)
            slope = float(y1 - y0) / width
            weight = math.exp(-k * float(x0 - low))
            if k == 0.0:
                total += weight * width * float(y0 + y1) / 2.0
                continue
            decay = math.exp(-k * width)
            level_term = float(y0) * (1.0 - decay) / k
            slope_term = slope * (1.0 - decay * (1.0 + k * width)) / (k * k)
            total += weight * (level_term + slope_term)
        return total

    def to_frame(self) -> pd.DataFrame:
        """Return the points as a two-column ``x``/``y`` DataFrame."""

        return pd.DataFrame(self.points, columns=["x", "y"])


def _linear(x: float, x0: float, y0: float, x1: float, y1: float) -> float:
    return float(y0 + (y1 - y0) * (x - x0) / (x1 - x0))


RegionCurveMap = dict[str, Curve]


def copy_region_curves(curves: dict[str, Curve]) -> RegionCurveMap:
    """Return an exclusively owned copy of ``curves``."""

    return {str(region): curve.copy() for region, curve in curves.items()}


__all__ = ["Curve", "RegionCurveMap", "copy_region_curves"]
