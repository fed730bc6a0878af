"""Authoritative constants shared across the cost curve engine."""

from __future__ import annotations

from pathlib import Path

from .constants_overrides import get_constant


_PACKAGE_ROOT = Path(__file__).resolve().parent
REPO_ROOT = _PACKAGE_ROOT.parent
INPUT_DIR = REPO_ROOT / "input"
OUTPUT_DIR = REPO_ROOT / "output"

# Returned by ``Scenario.get_market_price`` when no market exists for a gas.
NO_MARKET_PRICE: float = float("-inf")

# Aggregate pseudo-region reported by scenarios but excluded from cost totals.
GLOBAL_REGION = "global"

# Converts 1975 dollars to 1990 dollars in tabular output.
CURRENCY_CONVERSION_75_TO_90: float = 2.212
CURRENCY_UNIT_LABEL = "(millions)90US$"

# Two x values closer than this are treated as the same curve point.
CURVE_X_TOL: float = 1e-9


def currency_conversion() -> float:
    """Return the 1975 to 1990 dollar factor, honouring overrides."""

    return get_constant("CURRENCY_CONVERSION_75_TO_90", CURRENCY_CONVERSION_75_TO_90, float)


def curve_x_tolerance() -> float:
    return get_constant("CURVE_X_TOL", CURVE_X_TOL, float)


__all__ = [
    "REPO_ROOT",
    "INPUT_DIR",
    "OUTPUT_DIR",
    "NO_MARKET_PRICE",
    "GLOBAL_REGION",
    "CURRENCY_CONVERSION_75_TO_90",
    "CURRENCY_UNIT_LABEL",
    "CURVE_X_TOL",
    "currency_conversion",
    "curve_x_tolerance",
]
