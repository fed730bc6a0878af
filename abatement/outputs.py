"""Report containers and writers for policy cost results."""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

import pandas as pd

from abatement.constants import CURRENCY_UNIT_LABEL, currency_conversion
from abatement.curves import Curve, RegionCurveMap
from abatement.period_curves import PeriodCostCurves
from abatement.regional_costs import PolicySummary
from abatement.scenario import ModelTime

LOGGER = logging.getLogger(__name__)

PERIOD_COST_FILENAME = "policy_cost_by_period.csv"
TOTALS_FILENAME = "policy_cost_totals.csv"


def _format_number(value: float) -> str:
    return repr(float(value))


def _curve_element(curve: Curve) -> ET.Element:
    element = ET.Element("PointSetCurve", name=curve.title)
    if curve.numerical_label is not None:
        element.set("label", str(curve.numerical_label))
    point_set = ET.SubElement(element, "ExplicitPointSet")
    for x, y in curve.points:
        point = ET.SubElement(point_set, "XYDataPoint")
        ET.SubElement(point, "x").text = _format_number(x)
        ET.SubElement(point, "y").text = _format_number(y)
    return element


@dataclass(frozen=True)
class CostCurveReport:
    """Results of one cost curve sweep ready for serialisation."""

    scenario_name: str
    model_time: ModelTime
    period_curves: PeriodCostCurves
    regional_curves: RegionCurveMap
    summary: PolicySummary
    conversion: float = field(default_factory=currency_conversion)

    def to_xml(self) -> ET.Element:
        root = ET.Element("CostCurvesInfo")

        period_root = ET.SubElement(root, "PeriodCostCurves")
        for period, year in self.model_time.periods():
            if period >= len(self.period_curves):
                break
            costs = ET.SubElement(period_root, "CostCurves", year=str(year))
            for curve in self.period_curves[period].values():
                costs.append(_curve_element(curve))

        regional_root = ET.SubElement(root, "RegionalCostCurvesByPeriod")
        for curve in self.regional_curves.values():
            regional_root.append(_curve_element(curve))

        undiscounted = ET.SubElement(root, "RegionalUndiscountedCosts")
        for region, cost in self.summary.regional_costs.items():
            ET.SubElement(undiscounted, "UndiscountedCost", name=region).text = _format_number(cost)

        discounted = ET.SubElement(root, "RegionalDiscountedCosts")
        for region, cost in self.summary.regional_discounted_costs.items():
            ET.SubElement(discounted, "DiscountedCost", name=region).text = _format_number(cost)

        ET.SubElement(root, "GlobalUndiscountedTotalCost").text = _format_number(
            self.summary.global_cost
        )
        ET.SubElement(root, "GlobalDiscountedCost").text = _format_number(
            self.summary.global_discounted_cost
        )
        return root

    def to_xml_string(self) -> str:
        root = self.to_xml()
        ET.indent(root, space="\t")
        return ET.tostring(root, encoding="unicode")

    def cost_series_frame(self) -> pd.DataFrame:
        """Return per-region, per-period undiscounted costs in converted dollars."""

        columns = ["region", "category", "variable", "year", "unit", "value"]
        rows = []
        for region, curve in self.regional_curves.items():
            for _, year in self.model_time.periods():
                rows.append(
                    {
                        "region": region,
                        "category": "General",
                        "variable": "PolicyCostUndisc",
                        "year": year,
                        "unit": CURRENCY_UNIT_LABEL,
                        "value": curve.get_y(year) * self.conversion,
                    }
                )
        if not rows:
            return pd.DataFrame(columns=columns)
        return pd.DataFrame(rows, columns=columns)

    def totals_frame(self) -> pd.DataFrame:
        """Return per-region scalar totals in converted dollars."""

        columns = ["region", "category", "variable", "unit", "value"]
        rows = []
        for variable, costs in (
            ("PolicyCostTotalUndisc", self.summary.regional_costs),
            ("PolicyCostTotalDisc", self.summary.regional_discounted_costs),
        ):
            for region, cost in costs.items():
                rows.append(
                    {
                        "region": region,
                        "category": "General",
                        "variable": variable,
                        "unit": CURRENCY_UNIT_LABEL,
                        "value": cost * self.conversion,
                    }
                )
        if not rows:
            return pd.DataFrame(columns=columns)
        return pd.DataFrame(rows, columns=columns)


class ReportSink(Protocol):
    """Destination receiving a completed cost curve report."""

    def write(self, report: CostCurveReport, xml_name: str) -> None: ...


class FileReportSink:
    """Write the XML document and CSV tables into ``out_dir``."""

    def __init__(self, out_dir: str | Path) -> None:
        self.out_dir = Path(out_dir)
        self.written: list[Path] = []

    def write(self, report: CostCurveReport, xml_name: str) -> None:
        self.out_dir.mkdir(parents=True, exist_ok=True)

        xml_path = self.out_dir / xml_name
        xml_path.write_text(report.to_xml_string(), encoding="utf-8")

        series_path = self.out_dir / PERIOD_COST_FILENAME
        report.cost_series_frame().to_csv(series_path, index=False)

        totals_path = self.out_dir / TOTALS_FILENAME
        report.totals_frame().to_csv(totals_path, index=False)

        self.written = [xml_path, series_path, totals_path]
        LOGGER.info("Wrote cost curve report to %s", self.out_dir)


__all__ = [
    "CostCurveReport",
    "FileReportSink",
    "PERIOD_COST_FILENAME",
    "ReportSink",
    "TOTALS_FILENAME",
]
