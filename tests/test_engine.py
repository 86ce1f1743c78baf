from datetime import date
from decimal import Decimal

from cca_sim.data_models import CalculationBase, FinancialSummary, PersonType
from cca_sim.engine import (
    compute_duration,
    compute_monthly_accruals,
    compute_period_results,
    run_simulation,
    summarize_results,
)
from tests.helpers import cents, make_config, make_injection


def test_reference_scenario_breakdown(reference_config):
    [result] = compute_period_results(reference_config)

    assert result.duration_value == 4
    assert result.duration_unit == "Months"
    assert result.injection_date == date(2025, 2, 1)
    assert result.label == "2/2025"

    assert cents(result.part1.amount) == Decimal("80000.00")
    assert cents(result.part1.interest_ht) == Decimal("1333.33")
    assert cents(result.part1.vat) == Decimal("133.33")
    assert cents(result.part1.withholding) == Decimal("400.00")
    assert cents(result.part1.net) == Decimal("1066.67")
    assert result.part1.withholding_rate == Decimal("30")

    assert cents(result.part2.amount) == Decimal("20000.00")
    assert cents(result.part2.interest_ht) == Decimal("333.33")
    assert cents(result.part2.withholding) == Decimal("50.00")
    assert cents(result.part2.net) == Decimal("316.67")
    assert result.part2.withholding_rate == Decimal("15")


def test_part_percentages_always_sum_to_hundred():
    config = make_config(
        make_injection("a", 1, 2025, "1000", "0"),
        make_injection("b", 2, 2025, "1000", "37.5"),
        make_injection("c", 3, 2025, "1000", "100"),
    )
    for result in compute_period_results(config):
        assert result.part1.pct + result.part2.pct == 100
        assert result.part1.amount + result.part2.amount == result.amount_total


def test_net_equals_interest_with_vat_minus_withholding_per_part(reference_config):
    config = make_config(
        *reference_config.injections,
        make_injection("b", 4, 2025, "12345.67", "33", PersonType.NATURAL, PersonType.MORAL),
        calculation_base=CalculationBase.DAILY,
    )
    for result in compute_period_results(config):
        for part in (result.part1, result.part2):
            assert part.interest_ttc == part.interest_ht + part.vat
            assert part.net == part.interest_ttc - part.withholding


def test_withholding_rate_follows_part_classification():
    config = make_config(
        make_injection("a", 2, 2025, "1000", "50", PersonType.NATURAL, PersonType.MORAL)
    )
    [result] = compute_period_results(config)

    assert result.part1.withholding_rate == Decimal("15")
    assert result.part2.withholding_rate == Decimal("30")
    # Withholding is assessed on pre-tax interest.
    assert result.part2.withholding == result.part2.interest_ht * Decimal("30") / 100


def test_results_preserve_input_order():
    config = make_config(
        make_injection("late", 5, 2025, "10"),
        make_injection("early", 1, 2025, "10"),
    )
    assert [r.id for r in compute_period_results(config)] == ["late", "early"]


def test_monthly_duration_is_inclusive_month_count():
    base = CalculationBase.MONTHLY
    assert compute_duration(date(2025, 2, 1), date(2025, 5, 31), base) == 4
    assert compute_duration(date(2024, 11, 1), date(2025, 2, 28), base) == 4
    assert compute_duration(date(2025, 5, 1), date(2025, 5, 1), base) == 1


def test_daily_duration_counts_elapsed_days():
    base = CalculationBase.DAILY
    assert compute_duration(date(2025, 2, 1), date(2025, 2, 1), base) == 0
    assert compute_duration(date(2025, 2, 1), date(2025, 5, 31), base) == 119
    assert compute_duration(date(2024, 2, 1), date(2024, 3, 1), base) == 29


def test_duration_is_zero_when_end_date_precedes_injection():
    for base in CalculationBase:
        assert compute_duration(date(2025, 6, 1), date(2025, 5, 31), base) == 0

    config = make_config(make_injection("a", 6, 2025, "1000"))
    [result] = compute_period_results(config)
    assert result.duration_value == 0
    assert result.interest_ht == 0
    assert result.net == 0


def test_daily_basis_uses_360_day_year(reference_injection):
    config = make_config(reference_injection, calculation_base=CalculationBase.DAILY)
    [result] = compute_period_results(config)

    assert result.duration_unit == "Days"
    assert result.duration_value == 119
    assert cents(result.part1.interest_ht) == Decimal("1322.22")
    assert cents(result.part2.interest_ht) == Decimal("330.56")


def test_monthly_accruals_cover_each_month_through_end_date(reference_config):
    accruals = compute_monthly_accruals(reference_config)

    assert [(a.month, a.year) for a in accruals] == [(2, 2025), (3, 2025), (4, 2025), (5, 2025)]
    first = accruals[0]
    assert first.label == "2/2025"
    assert first.active_capital == Decimal("100000")
    assert cents(first.interest_ht) == Decimal("416.67")
    assert cents(first.vat) == Decimal("41.67")
    assert cents(first.withholding) == Decimal("112.50")
    assert cents(first.net) == Decimal("345.83")


def test_monthly_accruals_include_month_containing_end_date(reference_injection):
    config = make_config(reference_injection, end_date=date(2025, 5, 15))
    accruals = compute_monthly_accruals(config)
    assert accruals[-1].month == 5


def test_active_capital_is_non_decreasing():
    config = make_config(
        make_injection("b", 4, 2025, "50000"),
        make_injection("a", 2, 2025, "100000"),
        make_injection("c", 4, 2025, "25000"),
    )
    accruals = compute_monthly_accruals(config)

    capitals = [a.active_capital for a in accruals]
    assert capitals == [Decimal("100000"), Decimal("100000"), Decimal("175000"), Decimal("175000")]
    assert all(x <= y for x, y in zip(capitals, capitals[1:]))


def test_monthly_accruals_daily_basis_uses_days_in_month(reference_injection):
    config = make_config(reference_injection, calculation_base=CalculationBase.DAILY)
    accruals = compute_monthly_accruals(config)

    # February 2025 has 28 days, March 31.
    assert cents(accruals[0].interest_ht) == Decimal("388.89")
    assert cents(accruals[1].interest_ht) == Decimal("430.56")


def test_monthly_accruals_vat_is_applied_to_combined_interest(reference_config):
    for accrual in compute_monthly_accruals(reference_config):
        assert accrual.vat == accrual.interest_ht * (Decimal("10") / 100)
        assert accrual.net == accrual.interest_ht + accrual.vat - accrual.withholding


def test_monthly_totals_match_period_totals_for_shared_end_date():
    config = make_config(
        make_injection("a", 2, 2025, "100000"),
        make_injection("b", 4, 2025, "50000", "50"),
    )
    report = run_simulation(config)

    monthly_interest = sum(a.interest_ht for a in report.accruals)
    monthly_withholding = sum(a.withholding for a in report.accruals)
    assert cents(monthly_interest) == cents(report.summary.total_interest_ht)
    assert cents(monthly_withholding) == cents(report.summary.total_withholding)


def test_empty_configuration_produces_empty_ledger_and_zero_summary():
    config = make_config()
    report = run_simulation(config)

    assert report.results == []
    assert report.accruals == []
    assert report.summary == FinancialSummary()
    assert all(value == 0 for value in report.summary.as_dict().values())


def test_end_date_before_every_injection_produces_empty_ledger():
    config = make_config(make_injection("a", 6, 2025, "1000"))
    assert compute_monthly_accruals(config) == []


def test_summary_totals(reference_config):
    summary = summarize_results(compute_period_results(reference_config))

    assert summary.total_capital == Decimal("100000")
    assert cents(summary.total_interest_ht) == Decimal("1666.67")
    assert cents(summary.total_interest_ht1) == Decimal("1333.33")
    assert cents(summary.total_interest_ht2) == Decimal("333.33")
    assert cents(summary.total_vat) == Decimal("166.67")
    assert cents(summary.total_withholding) == Decimal("450.00")
    assert cents(summary.net_total) == Decimal("1383.33")
    assert cents(summary.total_repayment) == Decimal("101833.33")


def test_summary_is_order_independent():
    config = make_config(
        make_injection("a", 1, 2025, "100000"),
        make_injection("b", 3, 2025, "33333.33", "12.5", PersonType.NATURAL, PersonType.NATURAL),
        make_injection("c", 4, 2025, "777.77", "99", PersonType.MORAL, PersonType.MORAL),
        calculation_base=CalculationBase.DAILY,
    )
    results = compute_period_results(config)

    forward = summarize_results(results)
    backward = summarize_results(list(reversed(results)))
    shuffled = summarize_results([results[1], results[2], results[0]])

    for name, value in forward.as_dict().items():
        assert round(value, 6) == round(backward.as_dict()[name], 6)
        assert round(value, 6) == round(shuffled.as_dict()[name], 6)


def test_run_simulation_is_idempotent_and_exposes_rates(reference_config):
    first = run_simulation(reference_config)
    second = run_simulation(reference_config)

    assert first == second
    assert first.rates["annual_rate"] == Decimal("5")
    assert first.rates["withholding_natural_rate"] == Decimal("15")
    assert first.rates["calculation_base"] == "Monthly"
