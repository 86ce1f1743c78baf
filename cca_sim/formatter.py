"""Output helpers for the CCA simulator.

This module provides simple functions to render per-injection results, the
monthly accrual ledger and financial summaries in a tabular text format. We
rely only on built-in printing and string formatting.
"""

from __future__ import annotations

from typing import Iterable

from .data_models import FinancialSummary, MonthlyAccrual, PeriodResult


def print_summary(summary: FinancialSummary) -> None:
    """Print the financial summary in a human-readable format."""
    print("Summary")
    print("-" * 72)
    print(f"Total capital          : {summary.total_capital:.2f}")
    print(f"Interest HT            : {summary.total_interest_ht:.2f}")
    print(f"  part 1               : {summary.total_interest_ht1:.2f}")
    print(f"  part 2               : {summary.total_interest_ht2:.2f}")
    print(f"VAT collected          : {summary.total_vat:.2f}")
    print(f"Interest incl. VAT     : {summary.total_interest_ttc:.2f}")
    print(f"Withholding to remit   : {summary.total_withholding:.2f}")
    print(f"  part 1               : {summary.total_withholding1:.2f}")
    print(f"  part 2               : {summary.total_withholding2:.2f}")
    print(f"Net received           : {summary.net_total:.2f}")
    print(f"Total repayment        : {summary.total_repayment:.2f}")
    print("-" * 72)


def print_results(results: Iterable[PeriodResult]) -> None:
    """Print the per-injection breakdown as a simple table."""
    headers = [
        "Period",
        "Amount",
        "Duration",
        "P1%",
        "Type1",
        "IntHT1",
        "RAS1",
        "P2%",
        "Type2",
        "IntHT2",
        "RAS2",
        "Net",
    ]
    print("\t".join(headers))
    for r in results:
        row = [
            r.label,
            f"{r.amount_total:.2f}",
            f"{r.duration_value} {r.duration_unit[0]}",
            f"{r.part1.pct:g}",
            r.part1.person_type.code,
            f"{r.part1.interest_ht:.2f}",
            f"{r.part1.withholding:.2f}",
            f"{r.part2.pct:g}",
            r.part2.person_type.code,
            f"{r.part2.interest_ht:.2f}",
            f"{r.part2.withholding:.2f}",
            f"{r.net:.2f}",
        ]
        print("\t".join(row))


def print_accruals(accruals: Iterable[MonthlyAccrual]) -> None:
    """Print the monthly accrual ledger with a cumulative total line."""
    print("\t".join(["Month", "Capital", "IntHT", "VAT", "RAS", "Net"]))
    totals = [0, 0, 0, 0]
    for a in accruals:
        print(
            "\t".join(
                [
                    a.label,
                    f"{a.active_capital:.2f}",
                    f"{a.interest_ht:.2f}",
                    f"{a.vat:.2f}",
                    f"{a.withholding:.2f}",
                    f"{a.net:.2f}",
                ]
            )
        )
        totals = [t + v for t, v in zip(totals, (a.interest_ht, a.vat, a.withholding, a.net))]
    print("\t".join(["TOTAL", "---"] + [f"{t:.2f}" for t in totals]))


def print_comparison(s1: FinancialSummary, s2: FinancialSummary) -> None:
    """Print a comparison of two summaries side by side.

    The difference column is scenario2 - scenario1.
    """
    print("Comparison")
    print("=" * 72)
    keys = [
        "total_capital",
        "total_interest_ht",
        "total_vat",
        "total_withholding",
        "net_total",
        "total_repayment",
    ]
    print(f"{'Metric':20s} {'Scenario1':>15s} {'Scenario2':>15s} {'Difference':>15s}")
    for key in keys:
        v1 = getattr(s1, key)
        v2 = getattr(s2, key)
        diff = v2 - v1
        print(f"{key:20s} {v1:15.2f} {v2:15.2f} {diff:15.2f}")
    print("=" * 72)
