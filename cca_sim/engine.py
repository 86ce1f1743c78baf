"""Core calculation engine for the CCA simulator.

This module implements the financial logic of a shareholder current account
simulation. Each capital injection is split into two beneficiary parts which
earn simple interest up to the simulation end date; VAT is charged on the
interest and withholding tax (RAS) is retained according to the
classification of each part. Three pure functions are exposed:

* ``compute_period_results`` evaluates every injection over its whole
  duration;
* ``compute_monthly_accruals`` walks the calendar month by month and
  recomputes the interest accrued during each month;
* ``summarize_results`` folds period results into a ``FinancialSummary``.

``run_simulation`` bundles the three into a ``SimulationReport``. None of
these functions validate their inputs or keep any state between calls.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, getcontext
from functools import reduce
import logging
from typing import Iterable, List, Tuple

from .data_models import (
    HUNDRED,
    CalculationBase,
    CCAConfig,
    FinancialSummary,
    Injection,
    MonthlyAccrual,
    PartResult,
    PeriodResult,
    PersonType,
    SimulationReport,
)
from .utils import add_months, days_in_month

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)


def compute_duration(injection_date: date, end_date: date, base: CalculationBase) -> int:
    """Return the accrual duration of an injection in months or days.

    Monthly basis counts calendar months inclusively, so an injection in
    February with an end date in May accrues for 4 months. Daily basis counts
    elapsed days. Either way the duration is 0 when the end date precedes the
    injection date.
    """
    if end_date < injection_date:
        return 0
    if base is CalculationBase.MONTHLY:
        return (
            (end_date.year - injection_date.year) * 12
            + (end_date.month - injection_date.month)
            + 1
        )
    return max((end_date - injection_date).days, 0)


def split_amount(injection: Injection) -> Tuple[Decimal, Decimal]:
    """Return the amounts of part 1 and part 2 of an injection."""
    share1 = injection.pct_part1 / HUNDRED
    return injection.amount * share1, injection.amount * (1 - share1)


def _evaluate_part(
    amount: Decimal,
    pct: Decimal,
    person_type: PersonType,
    duration: int,
    config: CCAConfig,
) -> PartResult:
    rate = config.annual_rate / HUNDRED
    interest_ht = amount * rate * duration / config.calculation_base.divisor
    vat = interest_ht * (config.vat_rate / HUNDRED)
    withholding_rate = config.withholding_rate_for(person_type)
    # Withholding is assessed on the interest before VAT.
    withholding = interest_ht * withholding_rate / HUNDRED
    interest_ttc = interest_ht + vat
    return PartResult(
        amount=amount,
        pct=pct,
        person_type=person_type,
        interest_ht=interest_ht,
        vat=vat,
        withholding_rate=withholding_rate,
        withholding=withholding,
        interest_ttc=interest_ttc,
        net=interest_ttc - withholding,
    )


def evaluate_injection(injection: Injection, config: CCAConfig) -> PeriodResult:
    """Compute the two-part interest, VAT and withholding of one injection."""
    injection_date = injection.injection_date
    duration = compute_duration(injection_date, config.end_date, config.calculation_base)
    amount1, amount2 = split_amount(injection)
    return PeriodResult(
        id=injection.id,
        label=injection.label,
        injection_date=injection_date,
        amount_total=injection.amount,
        duration_value=duration,
        duration_unit=config.calculation_base.duration_unit,
        part1=_evaluate_part(amount1, injection.pct_part1, injection.type_part1, duration, config),
        part2=_evaluate_part(amount2, injection.pct_part2, injection.type_part2, duration, config),
    )


def compute_period_results(config: CCAConfig) -> List[PeriodResult]:
    """Return one ``PeriodResult`` per injection, in input order."""
    results = [evaluate_injection(injection, config) for injection in config.injections]
    logger.debug(
        "Evaluated %d injections (%s basis, end date %s)",
        len(results),
        config.calculation_base.value,
        config.end_date.isoformat(),
    )
    return results


def _month_slice_units(base: CalculationBase, month_start: date) -> int:
    """Number of accrual units (months or days) in the month at ``month_start``."""
    if base is CalculationBase.MONTHLY:
        return 1
    return days_in_month(month_start.year, month_start.month)


def compute_monthly_accruals(config: CCAConfig) -> List[MonthlyAccrual]:
    """Build the month-by-month accrual ledger.

    The walk starts on the first day of the month of the earliest injection
    and advances one calendar month at a time while the month start is not
    after the end date. For every month the interest accrued during that
    month alone is computed for each active injection; VAT is charged on the
    combined interest while withholding follows each part's classification.

    Parameters
    ----------
    config: CCAConfig
        The simulation configuration.

    Returns
    -------
    List[MonthlyAccrual]
        One record per month, empty when there are no injections.
    """
    injections = config.injections
    if not injections:
        return []

    rate = config.annual_rate / HUNDRED
    vat_rate = config.vat_rate / HUNDRED
    current = min(injection.injection_date for injection in injections)
    accruals: List[MonthlyAccrual] = []

    while current <= config.end_date:
        units = _month_slice_units(config.calculation_base, current)
        divisor = config.calculation_base.divisor
        active_capital = Decimal("0")
        interest_ht = Decimal("0")
        withholding = Decimal("0")
        for injection in injections:
            if injection.injection_date > current:
                continue
            active_capital += injection.amount
            amount1, amount2 = split_amount(injection)
            interest1 = amount1 * rate * units / divisor
            interest2 = amount2 * rate * units / divisor
            interest_ht += interest1 + interest2
            withholding += interest1 * config.withholding_rate_for(injection.type_part1) / HUNDRED
            withholding += interest2 * config.withholding_rate_for(injection.type_part2) / HUNDRED
        vat = interest_ht * vat_rate
        accruals.append(
            MonthlyAccrual(
                month=current.month,
                year=current.year,
                label=f"{current.month}/{current.year}",
                active_capital=active_capital,
                interest_ht=interest_ht,
                vat=vat,
                withholding=withholding,
                net=(interest_ht + vat) - withholding,
            )
        )
        current = add_months(current, 1)

    logger.debug("Walked %d months of accruals", len(accruals))
    return accruals


def summarize_results(results: Iterable[PeriodResult]) -> FinancialSummary:
    """Fold period results into totals. Empty input yields an all-zero summary."""
    return reduce(
        lambda acc, result: acc + FinancialSummary.from_result(result),
        results,
        FinancialSummary(),
    )


def run_simulation(config: CCAConfig) -> SimulationReport:
    """Run the period evaluation, the monthly walk and the aggregation."""
    results = compute_period_results(config)
    return SimulationReport(
        config=config,
        results=results,
        accruals=compute_monthly_accruals(config),
        summary=summarize_results(results),
    )
