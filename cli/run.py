from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

import typer

from abatement.calculator import TotalPolicyCostCalculator
from abatement.config import ConfigError, CostCurveConfig, load_run_config
from abatement.constants import INPUT_DIR, OUTPUT_DIR
from abatement.constants_overrides import run_config_overrides
from abatement.outputs import FileReportSink
from abatement.simulation import (
    LinearAbatementScenario,
    load_technologies,
    tax_policies_from_config,
)

LOGGER = logging.getLogger(__name__)

EXIT_CONFIG_ERROR = 1
EXIT_INPUT_ERROR = 2
EXIT_TRIAL_FAILURE = 3

app = typer.Typer(
    help='Compute abatement cost curves and total policy costs.',
    invoke_without_command=True,
)


def setup_logger(out_dir: Path, debug: bool) -> None:
    """Send log records to ``out_dir/run.log``."""

    out_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        filename=f'{out_dir}/run.log',
        encoding='utf-8',
        filemode='w',
        format='%(asctime)s | %(name)s | %(levelname)s :: %(message)s',
        datefmt='%d-%b-%y %H:%M:%S',
        level=logging.DEBUG if debug else logging.INFO,
        force=True,
    )
    logging.getLogger('pandas').setLevel(logging.WARNING)


def _build_scenario(
    data: Mapping[str, Any], technologies: Path, config: CostCurveConfig
) -> LinearAbatementScenario:
    scenario_cfg = data.get('scenario', {})
    if not isinstance(scenario_cfg, Mapping):
        raise ConfigError('[scenario] must be a table')

    frame = load_technologies(technologies)
    scenario = LinearAbatementScenario(
        frame,
        name=str(scenario_cfg.get('name', 'reference')),
        end_year=scenario_cfg.get('end_year'),
        aggregate_region=config.aggregate_region,
    )
    try:
        policies = tax_policies_from_config(data, scenario.model_time)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc
    for policy in policies:
        scenario.set_tax(policy)
    return scenario


def _execute(config_path: Path, technologies: Path, out: Path, debug: bool) -> None:
    setup_logger(out, debug)

    try:
        data, config = load_run_config(config_path)
    except (ConfigError, OSError) as exc:
        typer.secho(f'Failed to load configuration: {exc}', err=True, fg=typer.colors.RED)
        raise typer.Exit(EXIT_CONFIG_ERROR)

    with run_config_overrides(data):
        _run_cost_curves(data, config, technologies, out)


def _run_cost_curves(
    data: Mapping[str, Any], config: CostCurveConfig, technologies: Path, out: Path
) -> None:
    try:
        scenario = _build_scenario(data, technologies, config)
    except ConfigError as exc:
        typer.secho(f'Invalid policy configuration: {exc}', err=True, fg=typer.colors.RED)
        raise typer.Exit(EXIT_CONFIG_ERROR)
    except (OSError, ValueError, TypeError) as exc:
        typer.secho(f'Invalid technology data: {exc}', err=True, fg=typer.colors.RED)
        raise typer.Exit(EXIT_INPUT_ERROR)

    LOGGER.info('Solving baseline policy run for scenario %s', scenario.name)
    if not scenario.run(True, 'baseline'):
        typer.secho('Baseline run did not solve.', err=True, fg=typer.colors.YELLOW)

    calculator = TotalPolicyCostCalculator(scenario, config)
    success = calculator.calculate_abatement_cost_curve()

    if not calculator.ran:
        typer.secho(
            f'No {config.abated_gas} market in {config.market_region}; cost curves skipped.',
            fg=typer.colors.YELLOW,
        )
        return

    summary_table = calculator.summary.to_frame()
    if summary_table.empty:
        typer.secho('Regional policy costs: no regions reported.', fg=typer.colors.YELLOW)
    else:
        typer.secho('Regional policy costs:', fg=typer.colors.BLUE)
        typer.echo(summary_table.to_string(index=False))
    typer.echo(
        f'Global cost: {calculator.global_cost:.6g} '
        f'(discounted: {calculator.global_discounted_cost:.6g})'
    )

    sink = FileReportSink(out)
    calculator.print_output(sink)
    typer.secho(f'Saved cost curve report to {out.resolve()}', fg=typer.colors.GREEN)

    if not success:
        failed = ', '.join(str(trial) for trial in calculator.trials.failed_trials)
        typer.secho(f'Trial runs failed to solve: {failed}', err=True, fg=typer.colors.YELLOW)
        raise typer.Exit(EXIT_TRIAL_FAILURE)


@app.callback()
def _default_entrypoint(
    ctx: typer.Context,
    config: Path = typer.Option(
        INPUT_DIR / 'run_config.toml',
        '--config',
        '-c',
        help='Path to the TOML configuration file.',
    ),
    technologies: Path = typer.Option(
        INPUT_DIR / 'technologies.csv',
        '--technologies',
        '-t',
        help='CSV of technologies for the reference scenario.',
    ),
    out: Path = typer.Option(
        OUTPUT_DIR,
        '--out',
        '-o',
        help='Directory where the report and run.log are written.',
    ),
    debug: bool = typer.Option(False, '--debug', help='Log at DEBUG level.'),
) -> None:
    """Execute the default run command when no explicit subcommand is provided."""

    if ctx.invoked_subcommand is None:
        _execute(config, technologies, out, debug)


@app.command('run')
def run_command(
    config: Path = typer.Option(
        INPUT_DIR / 'run_config.toml',
        '--config',
        '-c',
        help='Path to the TOML configuration file.',
    ),
    technologies: Path = typer.Option(
        INPUT_DIR / 'technologies.csv',
        '--technologies',
        '-t',
        help='CSV of technologies for the reference scenario.',
    ),
    out: Path = typer.Option(
        OUTPUT_DIR,
        '--out',
        '-o',
        help='Directory where the report and run.log are written.',
    ),
    debug: bool = typer.Option(False, '--debug', help='Log at DEBUG level.'),
) -> None:
    """Explicit command alias for the cost curve run."""

    _execute(config, technologies, out, debug)


if __name__ == '__main__':  # pragma: no cover - CLI entry point
    app()
