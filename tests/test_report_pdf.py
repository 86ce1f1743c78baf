from datetime import datetime

from cca_sim.engine import run_simulation
from cca_sim.report_pdf import build_accruals_pdf, build_results_pdf, save_pdf
from tests.helpers import make_config, make_injection

GENERATED_AT = datetime(2025, 6, 1, 9, 30)


def _report():
    return run_simulation(
        make_config(
            make_injection("a", 2, 2025, "100000"),
            make_injection("b", 4, 2025, "50000", "50"),
        )
    )


def test_results_pdf_holds_summary_and_injection_rows():
    content = build_results_pdf(_report(), generated_at=GENERATED_AT)

    assert content.startswith(b"%PDF")
    assert b"CCA Simulation Report" in content
    assert b"Generated on: 2025-06-01 09:30" in content
    assert b"Total CCA capital" in content
    assert b"150,000.00" in content
    assert b"Total withholding to remit" in content
    assert b"2/2025" in content
    assert b"4/2025" in content
    assert b"4 M" in content


def test_accruals_pdf_ends_with_cumulative_total(tmp_path):
    report = _report()
    path = tmp_path / "monthly.pdf"

    save_pdf(build_accruals_pdf(report, generated_at=GENERATED_AT), path)

    content = path.read_bytes()
    assert content.startswith(b"%PDF")
    assert b"Consolidated Monthly Accrual Ledger" in content
    for label in (b"2/2025", b"3/2025", b"4/2025", b"5/2025"):
        assert label in content
    assert b"CUMULATIVE TOTAL" in content
    assert f"{report.summary.net_total:,.2f}".encode() in content
