"""Configuration sources for the CCA simulator.

Configurations can be read from JSON documents (the format also used by the
web API and the scenario store) and injections can be bulk-imported from the
semicolon-separated CSV files produced by spreadsheet tools. JSON input is
strict and raises ``ConfigError``; CSV import is lenient and falls back to
default values for cells it cannot read.
"""

from __future__ import annotations

import json
import logging
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Union

from .data_models import (
    DEFAULT_ANNUAL_RATE,
    DEFAULT_END_DATE,
    DEFAULT_PCT_PART1,
    DEFAULT_VAT_RATE,
    DEFAULT_WITHHOLDING_MORAL_RATE,
    DEFAULT_WITHHOLDING_NATURAL_RATE,
    CalculationBase,
    CCAConfig,
    Injection,
    InjectionBook,
    PersonType,
)
from .utils import decimal_from_str, end_of_month, parse_date

logger = logging.getLogger(__name__)

CSV_COLUMNS = ["month", "year", "amount", "pct_part1", "type_part1", "type_part2"]
CSV_DEFAULT_YEAR = 2025
MIN_YEAR = 1
MAX_YEAR = 9999


class ConfigError(ValueError):
    """Raised when raw data cannot be turned into a ``CCAConfig``."""


def _expect_dict(value: Any, path: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ConfigError(f"{path}: expected object")
    return value


def _require(data: Dict[str, Any], key: str, path: str) -> Any:
    if key not in data:
        raise ConfigError(f"{path}.{key}: missing required field")
    return data[key]


def _decimal(value: Any, path: str) -> Decimal:
    try:
        return decimal_from_str(str(value))
    except ValueError as exc:
        raise ConfigError(f"{path}: {exc}") from exc


def _int(value: Any, path: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{path}: expected integer, got {value!r}") from exc


def _person_type(value: Any, path: str) -> PersonType:
    try:
        return PersonType.parse(str(value))
    except ValueError as exc:
        raise ConfigError(f"{path}: {exc}") from exc


def injection_from_dict(data: Dict[str, Any], path: str, index: int) -> Injection:
    data = _expect_dict(data, path)
    month = _int(_require(data, "month", path), f"{path}.month")
    if not 1 <= month <= 12:
        raise ConfigError(f"{path}.month: expected 1-12, got {month}")
    year = _int(_require(data, "year", path), f"{path}.year")
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise ConfigError(f"{path}.year: expected {MIN_YEAR}-{MAX_YEAR}, got {year}")
    return Injection(
        id=str(data.get("id") or f"inj-{index + 1}"),
        month=month,
        year=year,
        amount=_decimal(_require(data, "amount", path), f"{path}.amount"),
        pct_part1=_decimal(data.get("pct_part1", DEFAULT_PCT_PART1), f"{path}.pct_part1"),
        type_part1=_person_type(data.get("type_part1", PersonType.MORAL.value), f"{path}.type_part1"),
        type_part2=_person_type(data.get("type_part2", PersonType.NATURAL.value), f"{path}.type_part2"),
    )


def config_from_dict(data: Dict[str, Any], path: str = "config") -> CCAConfig:
    """Build a ``CCAConfig`` from a JSON-compatible dictionary.

    Rates that are absent fall back to the defaults. When ``end_of_month`` is
    true (the default) the end date is moved to the last day of its month.
    With ``split_mode`` set to ``"global"`` the ``global_split`` object
    (``pct_part1``, ``type_part1``, ``type_part2``) overrides the split of
    every injection.
    """
    data = _expect_dict(data, path)
    raw_injections = data.get("injections", [])
    if not isinstance(raw_injections, list):
        raise ConfigError(f"{path}.injections: expected array")

    book = InjectionBook()
    for index, raw in enumerate(raw_injections):
        injection = injection_from_dict(raw, f"{path}.injections[{index}]", index)
        try:
            book.add(injection)
        except ValueError as exc:
            raise ConfigError(f"{path}.injections[{index}].id: {exc}") from exc

    split_mode = str(data.get("split_mode", "variable")).lower()
    if split_mode == "global":
        split = _expect_dict(_require(data, "global_split", path), f"{path}.global_split")
        book.apply_global_split(
            _decimal(split.get("pct_part1", DEFAULT_PCT_PART1), f"{path}.global_split.pct_part1"),
            _person_type(split.get("type_part1", PersonType.MORAL.value), f"{path}.global_split.type_part1"),
            _person_type(split.get("type_part2", PersonType.NATURAL.value), f"{path}.global_split.type_part2"),
        )
    elif split_mode != "variable":
        raise ConfigError(f"{path}.split_mode: expected 'global' or 'variable', got {split_mode!r}")

    end_date: date = DEFAULT_END_DATE
    if data.get("end_date"):
        try:
            end_date = parse_date(str(data["end_date"]))
        except ValueError as exc:
            raise ConfigError(f"{path}.end_date: {exc}") from exc
    if data.get("end_of_month", True):
        end_date = end_of_month(end_date)

    try:
        base = CalculationBase.parse(str(data.get("calculation_base", CalculationBase.MONTHLY.value)))
    except ValueError as exc:
        raise ConfigError(f"{path}.calculation_base: {exc}") from exc

    return CCAConfig(
        injections=book.snapshot(),
        annual_rate=_decimal(data.get("annual_rate", DEFAULT_ANNUAL_RATE), f"{path}.annual_rate"),
        vat_rate=_decimal(data.get("vat_rate", DEFAULT_VAT_RATE), f"{path}.vat_rate"),
        withholding_moral_rate=_decimal(
            data.get("withholding_moral_rate", DEFAULT_WITHHOLDING_MORAL_RATE),
            f"{path}.withholding_moral_rate",
        ),
        withholding_natural_rate=_decimal(
            data.get("withholding_natural_rate", DEFAULT_WITHHOLDING_NATURAL_RATE),
            f"{path}.withholding_natural_rate",
        ),
        end_date=end_date,
        calculation_base=base,
    )


def injection_to_dict(injection: Injection) -> Dict[str, Any]:
    return {
        "id": injection.id,
        "month": injection.month,
        "year": injection.year,
        "amount": str(injection.amount),
        "pct_part1": str(injection.pct_part1),
        "type_part1": injection.type_part1.value,
        "type_part2": injection.type_part2.value,
    }


def config_to_dict(config: CCAConfig) -> Dict[str, Any]:
    """Serialize a configuration so that ``config_from_dict`` reads it back."""
    return {
        "injections": [injection_to_dict(inj) for inj in config.injections],
        "annual_rate": str(config.annual_rate),
        "vat_rate": str(config.vat_rate),
        "withholding_moral_rate": str(config.withholding_moral_rate),
        "withholding_natural_rate": str(config.withholding_natural_rate),
        "end_date": config.end_date.isoformat(),
        "end_of_month": False,
        "calculation_base": config.calculation_base.value,
    }


def load_config(path: Union[str, Path]) -> CCAConfig:
    """Read a JSON configuration file."""
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigError(f"{path}: invalid JSON ({exc})") from exc
    return config_from_dict(data)


def _coerce(cell: str, parse, default, row: int, column: str):
    try:
        value = parse(cell)
    except (ValueError, ArithmeticError):
        logger.warning("CSV row %d: cannot read %s %r, using %s", row, column, cell, default)
        return default
    # Zero and empty values fall back as well, like the spreadsheet templates expect.
    if not value:
        return default
    return value


def _csv_decimal(cell: str) -> Decimal:
    # Semicolon files come from locales where the comma is the decimal mark.
    value = Decimal(cell.replace("\u00a0", "").replace(" ", "").replace(",", "."))
    if not value.is_finite():
        raise ValueError(f"non-finite value {cell!r}")
    return value


def injections_from_csv(text: str) -> List[Injection]:
    """Parse semicolon-separated injections.

    The first non-blank line is a header and is skipped. Each following line
    holds ``month;year;amount;pct_part1;type_part1;type_part2``; missing or
    unreadable cells take the default value of their column. Numbers use a
    comma or a dot as the decimal mark, and spaces may group thousands.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    injections: List[Injection] = []
    for index, line in enumerate(lines[1:]):
        row = index + 2
        cells = [c.strip() for c in line.split(";")]
        cells += [""] * (len(CSV_COLUMNS) - len(cells))
        month = _coerce(cells[0], int, 1, row, "month")
        if not 1 <= month <= 12:
            logger.warning("CSV row %d: month %d out of range, using 1", row, month)
            month = 1
        year = _coerce(cells[1], int, CSV_DEFAULT_YEAR, row, "year")
        if not MIN_YEAR <= year <= MAX_YEAR:
            logger.warning("CSV row %d: year %d out of range, using %d", row, year, CSV_DEFAULT_YEAR)
            year = CSV_DEFAULT_YEAR
        injections.append(
            Injection(
                id=f"imp-{index}",
                month=month,
                year=year,
                amount=_coerce(cells[2], _csv_decimal, Decimal("0"), row, "amount"),
                pct_part1=_coerce(cells[3], _csv_decimal, DEFAULT_PCT_PART1, row, "pct_part1"),
                type_part1=_coerce(cells[4], PersonType.parse, PersonType.MORAL, row, "type_part1"),
                type_part2=_coerce(cells[5], PersonType.parse, PersonType.NATURAL, row, "type_part2"),
            )
        )
    logger.info("Imported %d injections from CSV", len(injections))
    return injections
