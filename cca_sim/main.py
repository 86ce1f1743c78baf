"""Command-line interface for the CCA simulator.

This module uses the ``click`` library to implement a multi-command
interface. Users can print the per-injection breakdown, the monthly accrual
ledger or the financial summary of a simulation, and compare two scenarios.
Results can be printed to the terminal or exported to JSON, CSV or XLSX
files, or as printable PDF reports.

A scenario is described by an optional JSON configuration file, an optional
CSV import of injections and command-line options, applied in that order so
that options override the file.
"""

from __future__ import annotations

import json
import logging
import math
import shlex
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from .data_models import CCAConfig, PersonType
from .engine import run_simulation
from .export import (
    build_accruals_workbook,
    build_results_workbook,
    export_accruals_csv,
    export_results_csv,
    export_results_json,
    save_workbook,
)
from .formatter import print_accruals, print_comparison, print_results, print_summary
from .loader import (
    ConfigError,
    config_from_dict,
    config_to_dict,
    injection_to_dict,
    injections_from_csv,
    load_config,
)
from .report_pdf import build_accruals_pdf, build_results_pdf, save_pdf
from .utils import decimal_from_str, parse_year_month


def parse_amount(value: str) -> str:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("500000") and shorthand with ``k``/``m`` suffixes
    (e.g., "500k" meaning 500_000). Returns the value as a decimal string.
    """
    value = value.strip().lower().replace(",", "")
    factor = 1
    if value.endswith("k"):
        factor = 1_000
        value = value[:-1]
    elif value.endswith("m"):
        factor = 1_000_000
        value = value[:-1]
    try:
        amount = decimal_from_str(value)
    except ValueError:
        raise click.BadParameter(f"Invalid amount: {value}")
    if not amount.is_finite():
        raise click.BadParameter(f"Invalid amount: {value}")
    return str(amount * factor)


def parse_percent(value: str) -> str:
    """Parse a percentage string such as "80" or "80%"."""
    value = value.strip()
    if value.endswith("%"):
        value = value[:-1]
    try:
        number = float(value)
    except ValueError:
        raise click.BadParameter(f"Invalid percentage: {value}")
    if not math.isfinite(number):
        raise click.BadParameter(f"Invalid percentage: {value}")
    return value


def _person_type(value: str) -> str:
    try:
        return PersonType.parse(value).value
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def parse_injection_strings(values: Tuple[str, ...], offset: int = 0) -> List[Dict[str, Any]]:
    """Parse ``YYYY-MM:AMOUNT[:PCT1[:TYPE1:TYPE2]]`` entries into raw injections."""
    injections: List[Dict[str, Any]] = []
    for index, item in enumerate(values):
        parts = item.split(":")
        if len(parts) not in (2, 3, 5):
            raise click.BadParameter(
                f"Injection must be in YYYY-MM:AMOUNT[:PCT1[:TYPE1:TYPE2]] format; got {item}"
            )
        try:
            dt = parse_year_month(parts[0])
        except ValueError as exc:
            raise click.BadParameter(str(exc))
        raw: Dict[str, Any] = {
            "id": f"cli-{offset + index + 1}",
            "month": dt.month,
            "year": dt.year,
            "amount": parse_amount(parts[1]),
        }
        if len(parts) >= 3:
            raw["pct_part1"] = parse_percent(parts[2])
        if len(parts) == 5:
            raw["type_part1"] = _person_type(parts[3])
            raw["type_part2"] = _person_type(parts[4])
        injections.append(raw)
    return injections


def parse_split_string(value: str) -> Dict[str, str]:
    """Parse a global split in ``PCT1:TYPE1:TYPE2`` format."""
    parts = value.split(":")
    if len(parts) != 3:
        raise click.BadParameter(f"Split must be in PCT1:TYPE1:TYPE2 format; got {value}")
    return {
        "pct_part1": parse_percent(parts[0]),
        "type_part1": _person_type(parts[1]),
        "type_part2": _person_type(parts[2]),
    }


def build_config_from_options(
    config_path: Optional[str] = None,
    csv_path: Optional[str] = None,
    injection: Tuple[str, ...] = (),
    rate: Optional[float] = None,
    vat: Optional[float] = None,
    ras_moral: Optional[float] = None,
    ras_natural: Optional[float] = None,
    end_date: Optional[str] = None,
    base: Optional[str] = None,
    split: Optional[str] = None,
    end_of_month: Optional[bool] = None,
) -> CCAConfig:
    data: Dict[str, Any] = {}
    if config_path:
        try:
            data = config_to_dict(load_config(config_path))
        except (OSError, ConfigError) as exc:
            raise click.BadParameter(str(exc))
    injections: List[Dict[str, Any]] = list(data.get("injections", []))
    if csv_path:
        try:
            text = Path(csv_path).read_text(encoding="utf-8")
        except OSError as exc:
            raise click.BadParameter(str(exc))
        # An imported file replaces the injections of the configuration file.
        injections = [injection_to_dict(inj) for inj in injections_from_csv(text)]
    injections += parse_injection_strings(injection, offset=len(injections))
    data["injections"] = injections

    overrides = {
        "annual_rate": rate,
        "vat_rate": vat,
        "withholding_moral_rate": ras_moral,
        "withholding_natural_rate": ras_natural,
        "end_date": end_date,
        "calculation_base": base,
        "end_of_month": end_of_month,
    }
    for key in ("annual_rate", "vat_rate", "withholding_moral_rate", "withholding_natural_rate"):
        if overrides[key] is not None and not math.isfinite(overrides[key]):
            raise click.BadParameter(f"{key}: expected a finite number, got {overrides[key]}")
    if end_date is not None and end_of_month is None:
        # A new end date gets the default snapping, whatever the file said.
        data.pop("end_of_month", None)
    data.update({key: str(value) if isinstance(value, float) else value
                 for key, value in overrides.items() if value is not None})
    if split:
        data["split_mode"] = "global"
        data["global_split"] = parse_split_string(split)
    try:
        return config_from_dict(data)
    except ConfigError as exc:
        raise click.BadParameter(str(exc))


SCENARIO_OPTIONS = [
    click.option("--config", "-c", "config_path", type=click.Path(dir_okay=False), help="JSON configuration file"),
    click.option("--csv", "csv_path", type=click.Path(dir_okay=False), help="Semicolon CSV of injections (month;year;amount;pct1;type1;type2)"),
    click.option("--injection", "-i", "injection", multiple=True, help="Injection in YYYY-MM:AMOUNT[:PCT1[:TYPE1:TYPE2]] format"),
    click.option("--rate", "-r", "rate", type=float, help="Annual interest rate (percent)"),
    click.option("--vat", "vat", type=float, help="VAT rate (percent)"),
    click.option("--ras-moral", "ras_moral", type=float, help="Withholding rate for moral persons (percent)"),
    click.option("--ras-natural", "ras_natural", type=float, help="Withholding rate for natural persons (percent)"),
    click.option("--end-date", "-e", "end_date", help="Simulation end date (YYYY-MM-DD)"),
    click.option("--base", "base", type=click.Choice(["monthly", "daily"], case_sensitive=False), help="Accrual basis"),
    click.option("--split", "split", help="Global split applied to every injection, PCT1:TYPE1:TYPE2 (e.g. 80:PM:PP)"),
    click.option(
        "--end-of-month/--exact-end-date",
        "end_of_month",
        default=None,
        help="Snap the end date to the last day of its month (default) or keep it as given.",
    ),
]


def scenario_options(func):
    for option in reversed(SCENARIO_OPTIONS):
        func = option(func)
    return func


@click.command("scenario")
@scenario_options
def _scenario_parser(**params: Any) -> Dict[str, Any]:
    return params


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """A command-line simulator for interest on shareholder current accounts."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@scenario_options
@click.option("--output", "-o", "output", type=str, help="Output file path (.json, .csv, .xlsx or .pdf)")
def results(output: Optional[str], **options: Any) -> None:
    """Compute and print the per-injection interest breakdown."""
    report = run_simulation(build_config_from_options(**options))
    if output:
        path = Path(output)
        suffix = path.suffix.lower()
        if suffix == ".json":
            export_results_json(path, report)
        elif suffix == ".csv":
            export_results_csv(path, report.results)
        elif suffix == ".xlsx":
            save_workbook(build_results_workbook(report), path)
        elif suffix == ".pdf":
            save_pdf(build_results_pdf(report), path)
        else:
            raise click.BadParameter("Unsupported output format; use .json, .csv, .xlsx or .pdf")
        click.echo(f"Results exported to {path}")
    else:
        print_summary(report.summary)
        print_results(report.results)


@cli.command()
@scenario_options
@click.option("--output", "-o", "output", type=str, help="Output file path (.csv, .xlsx or .pdf)")
def monthly(output: Optional[str], **options: Any) -> None:
    """Compute and print the month-by-month accrual ledger."""
    report = run_simulation(build_config_from_options(**options))
    if output:
        path = Path(output)
        suffix = path.suffix.lower()
        if suffix == ".csv":
            export_accruals_csv(path, report.accruals)
        elif suffix == ".xlsx":
            save_workbook(build_accruals_workbook(report), path)
        elif suffix == ".pdf":
            save_pdf(build_accruals_pdf(report), path)
        else:
            raise click.BadParameter("Unsupported output format; use .csv, .xlsx or .pdf")
        click.echo(f"Monthly accruals exported to {path}")
    else:
        print_accruals(report.accruals)


@cli.command()
@scenario_options
@click.option("--output", "-o", "output", type=str, help="Output file path (.json)")
def summary(output: Optional[str], **options: Any) -> None:
    """Compute and print only the financial summary."""
    report = run_simulation(build_config_from_options(**options))
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension")
        with path.open("w", encoding="utf-8") as f:
            json.dump({"summary": report.summary.as_dict()}, f, indent=2)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(report.summary)


@cli.command()
@click.option("--scenario1", "scenario1", required=True, help="First scenario options quoted string")
@click.option("--scenario2", "scenario2", required=True, help="Second scenario options quoted string")
def compare(scenario1: str, scenario2: str) -> None:
    """Compare two scenarios.

    Scenarios are provided as quoted option strings, for example:

        cca-sim compare --scenario1 "-i 2025-02:100k -r 5" --scenario2 "-i 2025-02:100k -r 6"
    """

    def parse_scenario_opts(opts: str) -> Dict[str, Any]:
        ctx = _scenario_parser.make_context("scenario", shlex.split(opts))
        return ctx.params

    config1 = build_config_from_options(**parse_scenario_opts(scenario1))
    config2 = build_config_from_options(**parse_scenario_opts(scenario2))
    print_comparison(run_simulation(config1).summary, run_simulation(config2).summary)


if __name__ == "__main__":
    cli()
