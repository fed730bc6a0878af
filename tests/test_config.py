"""Tests for cost curve configuration parsing and validation."""

from __future__ import annotations

from pathlib import Path

import pytest

from abatement.config import ConfigError, CostCurveConfig, load_config, load_run_config


def test_defaults_match_documented_values():
    config = CostCurveConfig()

    assert config.abated_gas == "CO2"
    assert config.num_points == 5
    assert config.discount_rate == pytest.approx(0.05)
    assert config.discount_start_year == 2005
    assert config.market_region == "USA"
    assert config.market_check_period == 1
    assert config.aggregate_region == "global"
    assert config.reduction_reference == "baseline"


def test_from_mapping_accepts_legacy_names():
    config = CostCurveConfig.from_mapping(
        {
            "AbatedGasForCostCurves": "CH4",
            "numPointsForCO2CostCurve": 8,
            "discountRate": 0.03,
            "discount-start-year": 2020,
            "market-region": "EU",
        }
    )

    assert config.abated_gas == "CH4"
    assert config.num_points == 8
    assert config.discount_rate == pytest.approx(0.03)
    assert config.discount_start_year == 2020
    assert config.market_region == "EU"


def test_from_mapping_accepts_snake_case_and_ignores_unknown_keys():
    config = CostCurveConfig.from_mapping(
        {"num_points": "3", "reduction_reference": "zero-tax", "colour": "blue"}
    )

    assert config.num_points == 3
    assert config.reduction_reference == "zero-tax"


def test_from_mapping_with_nothing_returns_defaults():
    assert CostCurveConfig.from_mapping(None) == CostCurveConfig()
    assert CostCurveConfig.from_mapping({}) == CostCurveConfig()


@pytest.mark.parametrize(
    "settings",
    [
        {"numPointsForCO2CostCurve": 0},
        {"numPointsForCO2CostCurve": 2.5},
        {"numPointsForCO2CostCurve": True},
        {"discountRate": -1.0},
        {"discountRate": "high"},
        {"AbatedGasForCostCurves": "  "},
        {"reduction-reference": "sideways"},
    ],
)
def test_invalid_settings_raise_config_error(settings):
    with pytest.raises(ConfigError):
        CostCurveConfig.from_mapping(settings)


def test_output_name_defaults_to_scenario_name():
    assert CostCurveConfig().output_name_for("ref") == "cost_curves_ref.xml"
    named = CostCurveConfig.from_mapping({"costCurvesOutputFileName": "mine.xml"})
    assert named.output_name_for("ref") == "mine.xml"


def test_load_config_reads_cost_curves_table(tmp_path: Path):
    path = tmp_path / "run_config.toml"
    path.write_text(
        "[cost_curves]\nnumPointsForCO2CostCurve = 4\ndiscount-start-year = 2010\n",
        encoding="utf-8",
    )

    config = load_config(path)

    assert config.num_points == 4
    assert config.discount_start_year == 2010
    assert config.discount_rate == pytest.approx(0.05)


def test_load_config_rejects_malformed_toml(tmp_path: Path):
    path = tmp_path / "broken.toml"
    path.write_text("[cost_curves\n", encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(path)


def test_load_run_config_returns_document_and_settings(tmp_path: Path):
    path = tmp_path / "run_config.toml"
    path.write_text(
        '[scenario]\nname = "ref"\n\n[cost_curves]\nmarket-region = "EU"\n',
        encoding="utf-8",
    )

    data, config = load_run_config(path)

    assert data["scenario"] == {"name": "ref"}
    assert config.market_region == "EU"


def test_cost_curves_must_be_a_table(tmp_path: Path):
    path = tmp_path / "run_config.toml"
    path.write_text('cost_curves = "everything"\n', encoding="utf-8")

    with pytest.raises(ConfigError, match="must be a table"):
        load_run_config(path)
