"""Export helpers for simulation results.

Results can be written as JSON or CSV files, or as Excel workbooks built
with ``openpyxl``. The workbooks keep the rates on a parameter sheet and
express the interest, withholding and net columns as formulas referencing
those cells, so that an accountant can change a rate in the spreadsheet and
see the figures follow.
"""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

import openpyxl
from openpyxl.styles import Alignment, Font
from openpyxl.workbook import Workbook

from .data_models import MonthlyAccrual, PartResult, PeriodResult, PersonType, SimulationReport

SUMMARY_SHEET = "Summary"
DETAILS_SHEET = "Details"
PARAMETERS_SHEET = "Parameters"
MONTHLY_SHEET = "Monthly Accrual"

# Absolute references into the summary sheet, see ``_write_summary_sheet``.
ANNUAL_RATE_CELL = f"'{SUMMARY_SHEET}'!$B$10"
VAT_RATE_CELL = f"'{SUMMARY_SHEET}'!$B$11"
MORAL_RATE_CELL = f"'{SUMMARY_SHEET}'!$B$12"
NATURAL_RATE_CELL = f"'{SUMMARY_SHEET}'!$B$13"
MONTHLY_VAT_RATE_CELL = f"'{PARAMETERS_SHEET}'!$B$3"

CURRENCY_FORMAT = "#,##0.00"


def _part_to_dict(part: PartResult) -> Dict[str, Any]:
    return {
        "amount": float(part.amount),
        "pct": float(part.pct),
        "person_type": part.person_type.value,
        "interest_ht": float(part.interest_ht),
        "vat": float(part.vat),
        "withholding_rate": float(part.withholding_rate),
        "withholding": float(part.withholding),
        "interest_ttc": float(part.interest_ttc),
        "net": float(part.net),
    }


def serialize_results(results: Iterable[PeriodResult]) -> List[Dict[str, Any]]:
    """Convert period results into JSON-serialisable dictionaries."""
    return [
        {
            "id": r.id,
            "label": r.label,
            "injection_date": r.injection_date.isoformat(),
            "amount_total": float(r.amount_total),
            "duration_value": r.duration_value,
            "duration_unit": r.duration_unit,
            "part1": _part_to_dict(r.part1),
            "part2": _part_to_dict(r.part2),
            "net_total": float(r.net),
        }
        for r in results
    ]


def serialize_accruals(accruals: Iterable[MonthlyAccrual]) -> List[Dict[str, Any]]:
    return [
        {
            "month": a.month,
            "year": a.year,
            "label": a.label,
            "active_capital": float(a.active_capital),
            "interest_ht": float(a.interest_ht),
            "vat": float(a.vat),
            "withholding": float(a.withholding),
            "net": float(a.net),
        }
        for a in accruals
    ]


def serialize_rates(report: SimulationReport) -> Dict[str, Any]:
    return {
        key: float(value) if not isinstance(value, str) else value
        for key, value in report.rates.items()
    }


def serialize_report(report: SimulationReport) -> Dict[str, Any]:
    return {
        "rates": serialize_rates(report),
        "summary": report.summary.as_dict(),
        "results": serialize_results(report.results),
        "accruals": serialize_accruals(report.accruals),
    }


def export_results_json(path: Path, report: SimulationReport) -> None:
    """Export rates, summary, per-injection results and the monthly ledger."""
    with path.open("w", encoding="utf-8") as f:
        json.dump(serialize_report(report), f, indent=2)


def export_results_csv(path: Path, results: Iterable[PeriodResult]) -> None:
    """Export the per-injection breakdown to a CSV file."""
    header = [
        "Period",
        "Injection_Date",
        "Amount_Total",
        "Duration",
        "Unit",
        "Part1_Pct",
        "Part1_Type",
        "Part1_Interest_HT",
        "Part1_VAT",
        "Part1_Withholding",
        "Part1_Net",
        "Part2_Pct",
        "Part2_Type",
        "Part2_Interest_HT",
        "Part2_VAT",
        "Part2_Withholding",
        "Part2_Net",
        "Net_Total",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for r in results:
            writer.writerow(
                [
                    r.label,
                    r.injection_date.isoformat(),
                    float(r.amount_total),
                    r.duration_value,
                    r.duration_unit,
                    float(r.part1.pct),
                    r.part1.person_type.value,
                    float(r.part1.interest_ht),
                    float(r.part1.vat),
                    float(r.part1.withholding),
                    float(r.part1.net),
                    float(r.part2.pct),
                    r.part2.person_type.value,
                    float(r.part2.interest_ht),
                    float(r.part2.vat),
                    float(r.part2.withholding),
                    float(r.part2.net),
                    float(r.net),
                ]
            )


def export_accruals_csv(path: Path, accruals: Iterable[MonthlyAccrual]) -> None:
    """Export the monthly accrual ledger to a CSV file."""
    header = ["Month", "Active_Capital", "Interest_HT", "VAT", "Withholding", "Net"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for a in accruals:
            writer.writerow(
                [
                    a.label,
                    float(a.active_capital),
                    float(a.interest_ht),
                    float(a.vat),
                    float(a.withholding),
                    float(a.net),
                ]
            )


def _style_header(sheet, row: int = 1) -> None:
    for cell in sheet[row]:
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal="center")


def _write_summary_sheet(sheet, report: SimulationReport) -> None:
    summary = report.summary
    config = report.config
    sheet.append(["FINANCIAL SUMMARY"])
    sheet.append(["Total CCA capital", float(summary.total_capital)])
    sheet.append(["Total interest (excl. VAT)", float(summary.total_interest_ht)])
    sheet.append(["Total VAT collected", float(summary.total_vat)])
    sheet.append(["Total withholding to remit", float(summary.total_withholding)])
    sheet.append(["Net received", float(summary.net_total)])
    sheet.append(["Total repayment", float(summary.total_repayment)])
    sheet.append([])
    sheet.append(["RATE CONFIGURATION"])
    # Rows 10-13 are referenced by the formulas of the details sheet.
    sheet.append(["Annual rate (%)", float(config.annual_rate)])
    sheet.append(["VAT rate (%)", float(config.vat_rate)])
    sheet.append(["Withholding rate, moral person (%)", float(config.withholding_moral_rate)])
    sheet.append(["Withholding rate, natural person (%)", float(config.withholding_natural_rate)])
    sheet.append(["Calculation base", config.calculation_base.value])
    sheet.append(["Simulation end date", config.end_date.isoformat()])
    sheet["A1"].font = Font(bold=True)
    sheet["A9"].font = Font(bold=True)
    for row in range(2, 8):
        sheet.cell(row=row, column=2).number_format = CURRENCY_FORMAT
    sheet.column_dimensions["A"].width = 38
    sheet.column_dimensions["B"].width = 18


def _interest_formula(row: int, pct_column: str) -> str:
    base = f"C{row}*({pct_column}{row}/100)*{ANNUAL_RATE_CELL}/100*D{row}"
    return f'=IF(E{row}="Months",({base})/12,({base})/360)'


def _withholding_formula(row: int, interest_column: str, type_column: str) -> str:
    return (
        f'={interest_column}{row}*IF({type_column}{row}="{PersonType.MORAL.value}",'
        f"{MORAL_RATE_CELL}/100,{NATURAL_RATE_CELL}/100)"
    )


def build_results_workbook(report: SimulationReport) -> Workbook:
    """Build the per-injection workbook with live formulas."""
    workbook = openpyxl.Workbook()
    summary_sheet = workbook.active
    summary_sheet.title = SUMMARY_SHEET
    _write_summary_sheet(summary_sheet, report)

    sheet = workbook.create_sheet(DETAILS_SHEET)
    sheet.append(
        [
            "Period",
            "Injection date",
            "Total amount",
            "Duration (N)",
            "Unit",
            "Part 1 %",
            "Type part 1",
            "Interest HT 1",
            "Withholding 1",
            "Part 2 %",
            "Type part 2",
            "Interest HT 2",
            "Withholding 2",
            "Net total",
        ]
    )
    _style_header(sheet)
    for index, r in enumerate(report.results):
        row = index + 2
        sheet.append(
            [
                r.label,
                r.injection_date.isoformat(),
                float(r.amount_total),
                r.duration_value,
                r.duration_unit,
                float(r.part1.pct),
                r.part1.person_type.value,
                _interest_formula(row, "F"),
                _withholding_formula(row, "H", "G"),
                float(r.part2.pct),
                r.part2.person_type.value,
                _interest_formula(row, "J"),
                _withholding_formula(row, "L", "K"),
                f"=(H{row}+L{row})*(1+{VAT_RATE_CELL}/100)-(I{row}+M{row})",
            ]
        )
    for column in ("C", "H", "I", "L", "M", "N"):
        for cell in sheet[column][1:]:
            cell.number_format = CURRENCY_FORMAT
    return workbook


def build_accruals_workbook(report: SimulationReport) -> Workbook:
    """Build the monthly accrual workbook with live VAT and net formulas."""
    workbook = openpyxl.Workbook()
    params = workbook.active
    params.title = PARAMETERS_SHEET
    summary = report.summary
    params.append(["MONTHLY ACCRUAL CONFIGURATION"])
    params.append(["Annual rate (%)", float(report.config.annual_rate)])
    params.append(["VAT rate (%)", float(report.config.vat_rate)])
    params.append(["Total interest (excl. VAT)", float(summary.total_interest_ht)])
    params.append(["Total VAT", float(summary.total_vat)])
    params.append(["Total withholding", float(summary.total_withholding)])
    params.append(["Net total", float(summary.net_total)])
    params["A1"].font = Font(bold=True)
    params.column_dimensions["A"].width = 32

    sheet = workbook.create_sheet(MONTHLY_SHEET)
    sheet.append(
        [
            "Month/Year",
            "Active capital",
            "Interest HT",
            f"VAT ({report.config.vat_rate}%)",
            "Withholding",
            "Net for month",
        ]
    )
    _style_header(sheet)
    for index, a in enumerate(report.accruals):
        row = index + 2
        sheet.append(
            [
                a.label,
                float(a.active_capital),
                float(a.interest_ht),
                f"=C{row}*{MONTHLY_VAT_RATE_CELL}/100",
                float(a.withholding),
                f"=(C{row}+D{row})-E{row}",
            ]
        )
    for column in ("B", "C", "D", "E", "F"):
        for cell in sheet[column][1:]:
            cell.number_format = CURRENCY_FORMAT
    return workbook


def save_workbook(workbook: Workbook, path: Union[str, Path]) -> None:
    workbook.save(str(path))
