"""PDF reports for simulation results.

Two printable reports are built with ``fpdf2``: the simulation report (a
landscape page with the financial summary followed by the per-injection
table) and the monthly accrual ledger (a portrait table closed by a
cumulative total row). Both use the core Helvetica font, so their text is
limited to Latin-1.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import List, Optional, Sequence, Union

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from .data_models import SimulationReport

HEADER_FILL = (30, 41, 59)
DETAIL_HEADER_FILL = (59, 130, 246)
FOOTER_FILL = (51, 65, 85)
ROW_HEIGHT = 7

SUMMARY_LABELS = [
    ("Total CCA capital", "total_capital"),
    ("Total interest (excl. VAT)", "total_interest_ht"),
    ("Total VAT collected", "total_vat"),
    ("Total withholding to remit", "total_withholding"),
    ("Net received by the partners", "net_total"),
    ("Total repayment (capital + interest)", "total_repayment"),
]

RESULT_COLUMNS = [
    ("Period", 18),
    ("Total capital", 30),
    ("Duration", 18),
    ("Part 1 %", 17),
    ("Type 1", 14),
    ("Int. HT 1", 26),
    ("WHT 1", 24),
    ("Part 2 %", 17),
    ("Type 2", 14),
    ("Int. HT 2", 26),
    ("WHT 2", 24),
    ("Net for period", 30),
]

ACCRUAL_COLUMNS = [
    ("Month/Year", 26),
    ("Active capital", 34),
    ("Int. HT", 30),
    ("VAT", 30),
    ("Withholding", 30),
    ("Net", 30),
]


def format_money(value: Decimal) -> str:
    return f"{value:,.2f}"


def _new_document(orientation: str) -> FPDF:
    pdf = FPDF(orientation=orientation, unit="mm", format="A4")
    # Plain content streams keep the report text searchable by simple tools.
    pdf.set_compression(False)
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()
    return pdf


def _title(pdf: FPDF, title: str, subtitle_lines: Sequence[str], size: int) -> None:
    pdf.set_font("Helvetica", style="B", size=size)
    pdf.cell(0, 10, title, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font("Helvetica", size=9)
    for line in subtitle_lines:
        pdf.cell(0, 6, line, new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(4)


def _row(pdf: FPDF, widths: Sequence[int], cells: Sequence[str], fill: Optional[tuple] = None) -> None:
    if fill:
        pdf.set_fill_color(*fill)
        pdf.set_text_color(255, 255, 255)
    for index, (width, text) in enumerate(zip(widths, cells)):
        pdf.cell(
            width,
            ROW_HEIGHT,
            text,
            border=1,
            align="L" if index == 0 else "R",
            fill=bool(fill),
            new_x=XPos.RIGHT,
            new_y=YPos.TOP,
        )
    pdf.ln(ROW_HEIGHT)
    if fill:
        pdf.set_text_color(0, 0, 0)


def _generated_line(generated_at: Optional[datetime]) -> str:
    stamp = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M")
    return f"Generated on: {stamp}"


def build_results_pdf(report: SimulationReport, generated_at: Optional[datetime] = None) -> bytes:
    """Build the landscape simulation report: summary, then one row per injection."""
    config = report.config
    pdf = _new_document("L")
    _title(
        pdf,
        "CCA Simulation Report",
        [
            _generated_line(generated_at),
            f"Calculation base: {config.calculation_base.value} | Annual rate: {config.annual_rate}%"
            f" | VAT: {config.vat_rate}% | End date: {config.end_date.isoformat()}",
        ],
        size=18,
    )

    pdf.set_font("Helvetica", style="B", size=10)
    _row(pdf, [90, 50], ["Indicator", "Amount"], fill=HEADER_FILL)
    pdf.set_font("Helvetica", size=10)
    for label, attribute in SUMMARY_LABELS:
        _row(pdf, [90, 50], [label, format_money(getattr(report.summary, attribute))])
    pdf.ln(8)

    widths = [width for _, width in RESULT_COLUMNS]
    pdf.set_font("Helvetica", style="B", size=8)
    _row(pdf, widths, [name for name, _ in RESULT_COLUMNS], fill=DETAIL_HEADER_FILL)
    pdf.set_font("Helvetica", size=8)
    for r in report.results:
        _row(
            pdf,
            widths,
            [
                r.label,
                format_money(r.amount_total),
                f"{r.duration_value} {r.duration_unit[0]}",
                f"{r.part1.pct}%",
                r.part1.person_type.code,
                format_money(r.part1.interest_ht),
                format_money(r.part1.withholding),
                f"{r.part2.pct}%",
                r.part2.person_type.code,
                format_money(r.part2.interest_ht),
                format_money(r.part2.withholding),
                format_money(r.net),
            ],
        )
    return bytes(pdf.output())


def build_accruals_pdf(report: SimulationReport, generated_at: Optional[datetime] = None) -> bytes:
    """Build the portrait monthly ledger with a cumulative total row."""
    config = report.config
    summary = report.summary
    pdf = _new_document("P")
    _title(
        pdf,
        "Consolidated Monthly Accrual Ledger - CCA",
        [
            _generated_line(generated_at),
            f"Rate: {config.annual_rate}% | Base: {config.calculation_base.value}",
        ],
        size=16,
    )

    widths = [width for _, width in ACCRUAL_COLUMNS]
    pdf.set_font("Helvetica", style="B", size=8)
    _row(pdf, widths, [name for name, _ in ACCRUAL_COLUMNS], fill=HEADER_FILL)
    pdf.set_font("Helvetica", size=8)
    for a in report.accruals:
        _row(
            pdf,
            widths,
            [
                a.label,
                format_money(a.active_capital),
                format_money(a.interest_ht),
                format_money(a.vat),
                format_money(a.withholding),
                format_money(a.net),
            ],
        )
    footer: List[str] = [
        "CUMULATIVE TOTAL",
        "---",
        format_money(summary.total_interest_ht),
        format_money(summary.total_vat),
        format_money(summary.total_withholding),
        format_money(summary.net_total),
    ]
    pdf.set_font("Helvetica", style="B", size=8)
    _row(pdf, widths, footer, fill=FOOTER_FILL)
    return bytes(pdf.output())


def save_pdf(content: bytes, path: Union[str, Path]) -> None:
    Path(path).write_bytes(content)
